"""Endpoint Metadata

Per-endpoint table of bindable parameters: their wire names, declared types and
constraints. Built once, when a route is constructed, by inspecting the
handler signature; immutable afterwards and shared by all requests.

Usage:
    metadata = EndpointMetadata.from_endpoint(list_payments, "/payments/query", {"GET"})
    metadata.find("paymentId").constraints
    metadata.parameter_binding("payment_id").external_name   # "paymentId"
"""
from __future__ import annotations

import inspect
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Callable, Iterable, get_args, get_origin, get_type_hints

from fastapi import BackgroundTasks, params
from fastapi.security import SecurityScopes
from pydantic import BaseModel
from pydantic.fields import FieldInfo
from starlette.requests import HTTPConnection
from starlette.responses import Response

from .binding import strip_annotation, type_hint_for
from .constraints import FieldConstraint

_PATH_PARAM_RE = re.compile(r"{(\w+)(?::\w+)?}")
_FRAMEWORK_TYPES = (HTTPConnection, Response, BackgroundTasks, SecurityScopes)


class ParameterSource(str, Enum):
    QUERY = "query"
    PATH = "path"
    BODY = "body"
    HEADER = "header"
    COOKIE = "cookie"


@dataclass(frozen=True, slots=True)
class ExternalNameBinding:
    """Logical name and the explicitly declared wire name, if any."""
    logical_name: str
    external_name: str | None
    source: ParameterSource

    @property
    def wire_name(self) -> str:
        """Name the framework reads from the request."""
        return self.external_name or self.logical_name

    @property
    def is_explicit(self) -> bool:
        return self.external_name is not None


@dataclass(frozen=True, slots=True)
class ParameterMetadata:
    binding: ExternalNameBinding
    annotation: Any = None
    constraints: tuple[FieldConstraint, ...] = ()
    properties: tuple[ParameterMetadata, ...] = ()

    @property
    def name(self) -> str:
        return self.binding.logical_name

    @property
    def type_hint(self) -> str | None:
        return type_hint_for(self.annotation)

    @property
    def is_composite(self) -> bool:
        return bool(self.properties)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.binding.logical_name,
            "external_name": self.binding.external_name,
            "in": self.binding.source.value,
            "type": self.type_hint,
            "constraints": [c.describe() for c in self.constraints],
            "properties": [p.describe() for p in self.properties],
        }


def _index(entries: Iterable[ParameterMetadata], explicit_only: bool) -> dict[str, ParameterMetadata]:
    """Case-insensitive lookup by logical and wire name; first declaration wins."""
    index: dict[str, ParameterMetadata] = {}
    for entry in entries:
        if explicit_only and not entry.binding.is_explicit:
            continue
        for key in (entry.binding.logical_name, entry.binding.wire_name):
            index.setdefault(key.casefold(), entry)
    return index


@dataclass(frozen=True, slots=True)
class EndpointMetadata:
    """Bindable parameters of one endpoint, with precomputed lookups."""
    name: str
    path: str
    methods: frozenset[str]
    parameters: tuple[ParameterMetadata, ...]
    _parameters: dict[str, ParameterMetadata] = field(init=False, repr=False, compare=False)
    _properties: dict[str, ParameterMetadata] = field(init=False, repr=False, compare=False)
    _explicit_parameters: dict[str, ParameterMetadata] = field(init=False, repr=False, compare=False)
    _explicit_properties: dict[str, ParameterMetadata] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        seen: dict[str, str] = {}
        for parameter in self.parameters:
            if not parameter.binding.is_explicit:
                continue
            key = parameter.binding.external_name.casefold()
            if key in seen:
                raise ValueError(
                    f"Duplicate external name '{parameter.binding.external_name}' on {self.name}: "
                    f"used by '{seen[key]}' and '{parameter.name}'"
                )
            seen[key] = parameter.name

        properties = [prop for parameter in self.parameters for prop in parameter.properties]
        object.__setattr__(self, "_parameters", _index(self.parameters, explicit_only=False))
        object.__setattr__(self, "_properties", _index(properties, explicit_only=False))
        object.__setattr__(self, "_explicit_parameters", _index(self.parameters, explicit_only=True))
        object.__setattr__(self, "_explicit_properties", _index(properties, explicit_only=True))

    def find(self, name: str) -> ParameterMetadata | None:
        """Parameter or composite property known by ``name`` (logical or wire)."""
        key = name.casefold()
        return self._parameters.get(key) or self._properties.get(key)

    def parameter_binding(self, name: str) -> ExternalNameBinding | None:
        """Explicit binding of a top-level parameter matching ``name``."""
        entry = self._explicit_parameters.get(name.casefold())
        return entry.binding if entry else None

    def property_binding(self, name: str) -> ExternalNameBinding | None:
        """Explicit binding of a composite property matching ``name``."""
        entry = self._explicit_properties.get(name.casefold())
        return entry.binding if entry else None

    def body_parameter(self) -> ParameterMetadata | None:
        return next((p for p in self.parameters if p.binding.source is ParameterSource.BODY), None)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "path": self.path,
            "methods": sorted(self.methods),
            "parameters": [p.describe() for p in self.parameters],
        }

    @classmethod
    def from_endpoint(
        cls,
        endpoint: Callable[..., Any],
        path: str,
        methods: Iterable[str],
        name: str | None = None,
    ) -> EndpointMetadata:
        """Inspect a handler signature the way FastAPI binds it."""
        path_names = set(_PATH_PARAM_RE.findall(path))
        try:
            hints = get_type_hints(endpoint, include_extras=True)
        except (NameError, TypeError):
            hints = {}

        parameters: list[ParameterMetadata] = []
        for param_name, param in inspect.signature(endpoint).parameters.items():
            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                annotation = Any
            parameter = _describe_parameter(param_name, annotation, param.default, path_names)
            if parameter is not None:
                parameters.append(parameter)

        return cls(
            name=name or getattr(endpoint, "__name__", path),
            path=path,
            methods=frozenset(m.upper() for m in methods),
            parameters=tuple(parameters),
        )


def _describe_parameter(
    param_name: str,
    annotation: Any,
    default: Any,
    path_names: set[str],
) -> ParameterMetadata | None:
    extras: tuple[Any, ...] = ()
    declared = annotation
    if get_origin(annotation) is Annotated:
        declared, *rest = get_args(annotation)
        extras = tuple(rest)

    markers = [*extras]
    if default is not inspect.Parameter.empty:
        markers.append(default)
    if any(isinstance(marker, params.Depends) for marker in markers):
        return None

    bare, _ = strip_annotation(declared)
    if isinstance(bare, type) and issubclass(bare, _FRAMEWORK_TYPES):
        return None

    field_info = next((m for m in reversed(markers) if isinstance(m, FieldInfo)), None)
    source = _source_for(param_name, bare, field_info, path_names)
    alias = getattr(field_info, "alias", None)

    binding = ExternalNameBinding(
        logical_name=param_name,
        external_name=alias if alias and alias != param_name else None,
        source=source,
    )
    constraints = tuple(m for m in extras if isinstance(m, FieldConstraint))
    properties = _model_properties(bare, source) if _is_model(bare) else ()
    return ParameterMetadata(
        binding=binding,
        annotation=declared,
        constraints=constraints,
        properties=properties,
    )


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


def _source_for(
    param_name: str,
    annotation: Any,
    field_info: FieldInfo | None,
    path_names: set[str],
) -> ParameterSource:
    if isinstance(field_info, params.Path):
        return ParameterSource.PATH
    if isinstance(field_info, params.Query):
        return ParameterSource.QUERY
    if isinstance(field_info, params.Header):
        return ParameterSource.HEADER
    if isinstance(field_info, params.Cookie):
        return ParameterSource.COOKIE
    if isinstance(field_info, params.Body):
        return ParameterSource.BODY
    if param_name in path_names:
        return ParameterSource.PATH
    if _is_model(annotation):
        return ParameterSource.BODY
    return ParameterSource.QUERY


def _model_properties(model: type[BaseModel], source: ParameterSource) -> tuple[ParameterMetadata, ...]:
    properties = []
    for field_name, info in model.model_fields.items():
        alias = info.alias
        properties.append(ParameterMetadata(
            binding=ExternalNameBinding(
                logical_name=field_name,
                external_name=alias if alias and alias != field_name else None,
                source=source,
            ),
            annotation=info.annotation,
            constraints=tuple(m for m in info.metadata if isinstance(m, FieldConstraint)),
        ))
    return tuple(properties)
