"""OpenAPI Enrichment

FastAPI generates the document; this pass adds what it cannot infer from
types alone, using the endpoint registry's constraint metadata:
- StringAsEnum parameters: string schema with the allowed tokens
- StringAsIsoDate parameters: date-formatted string schema
- role-gated operations: 401/403 responses and the roles they require
- the 422 response FastAPI documents becomes the 400 problem document
"""
from __future__ import annotations

from typing import Any, Callable

from fastapi import FastAPI
from fastapi.routing import APIRoute

from core.security import RoleRequirement
from core.validation import (
    PROBLEM_MEDIA_TYPE,
    PROBLEM_TITLE,
    EndpointRegistry,
    FieldConstraint,
    StringAsEnum,
    StringAsIsoDate,
)

ISO_DATE_DESCRIPTION = "ISO date (yyyy-MM-dd)"

PROBLEM_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "status": {"type": "integer"},
        "errors": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
    },
    "required": ["title", "status", "errors"],
}


def required_roles(route: APIRoute) -> tuple[str, ...]:
    """Roles demanded by RoleRequirement dependencies of ``route``."""
    roles: list[str] = []
    for dependency in route.dependencies:
        if isinstance(dependency.dependency, RoleRequirement):
            roles.extend(dependency.dependency.roles)
    return tuple(dict.fromkeys(roles))


def _append_description(target: dict[str, Any], text: str, separator: str = " ") -> None:
    current = target.get("description")
    target["description"] = f"{current}{separator}{text}" if current else text


def _describe_parameter(parameter: dict[str, Any], constraints: tuple[FieldConstraint, ...]) -> None:
    for constraint in constraints:
        if isinstance(constraint, StringAsEnum):
            parameter["schema"] = {"type": "string", "enum": list(constraint.allowed)}
            _append_description(parameter, f"Allowed values: {', '.join(constraint.allowed)}.")
        elif isinstance(constraint, StringAsIsoDate):
            parameter["schema"] = {"type": "string", "format": "date"}
            _append_description(parameter, ISO_DATE_DESCRIPTION)


def _problem_response(operation: dict[str, Any]) -> None:
    responses = operation.get("responses", {})
    if responses.pop("422", None) is None:
        return
    responses["400"] = {
        "description": PROBLEM_TITLE,
        "content": {PROBLEM_MEDIA_TYPE: {"schema": PROBLEM_SCHEMA}},
    }


def _require_roles(operation: dict[str, Any], roles: tuple[str, ...]) -> None:
    responses = operation.setdefault("responses", {})
    responses.setdefault("401", {"description": "Unauthorized"})
    responses.setdefault("403", {"description": "Forbidden"})
    _append_description(operation, f"**Requires roles**: {', '.join(roles)}", separator="\n\n")


def enrich_openapi(schema: dict[str, Any], registry: EndpointRegistry) -> dict[str, Any]:
    paths = schema.get("paths", {})
    for route, metadata in registry.entries():
        if route is None or not route.include_in_schema:
            continue
        path_item = paths.get(route.path_format)
        if not path_item:
            continue
        roles = required_roles(route)
        for method in route.methods or ():
            operation = path_item.get(method.lower())
            if operation is None:
                continue
            for parameter in operation.get("parameters", []):
                entry = metadata.find(parameter["name"])
                if entry is not None and entry.constraints:
                    _describe_parameter(parameter, entry.constraints)
            _problem_response(operation)
            if roles:
                _require_roles(operation, roles)
    return schema


def install_openapi(app: FastAPI, registry: EndpointRegistry) -> None:
    """Replace ``app.openapi`` with a generator that enriches the document once."""
    generate: Callable[[], dict[str, Any]] = app.openapi

    def openapi() -> dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema
        schema = enrich_openapi(generate(), registry)
        app.openapi_schema = schema
        return schema

    app.openapi = openapi
