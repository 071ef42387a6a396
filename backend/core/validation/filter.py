"""Validation Filter

Gate between binding and the handler: once FastAPI has bound every parameter,
the declared constraints of each parameter (and of each property of composite
parameters) are evaluated. Any failure short-circuits the request with a
ValidationProblem; otherwise the handler receives the bound values unchanged.

Routers opt in with the route class:

    router = APIRouter(route_class=ValidatedRoute)
"""
from __future__ import annotations

import functools
import inspect
from typing import Any, Callable, Mapping

from fastapi.routing import APIRoute
from starlette.concurrency import run_in_threadpool

from core.logging import validation_logger

from .evaluator import evaluate
from .metadata import EndpointMetadata
from .naming import resolve_external_name
from .problem import ErrorCollection, ValidationProblem, assemble

log = validation_logger()

FILTER_MARKER = "__validation_filter__"


class ValidationFilter:
    """Evaluates an endpoint's declared constraints against bound arguments."""

    __slots__ = ("metadata", "_checked")

    def __init__(self, metadata: EndpointMetadata):
        self.metadata = metadata
        self._checked = tuple(
            p for p in metadata.parameters
            if p.constraints or any(prop.constraints for prop in p.properties)
        )

    @property
    def is_noop(self) -> bool:
        return not self._checked

    def collect(self, arguments: Mapping[str, Any]) -> ErrorCollection:
        """Messages keyed by logical name, in declaration order."""
        errors = ErrorCollection()
        for parameter in self._checked:
            value = arguments.get(parameter.name)
            if parameter.constraints:
                field_name = resolve_external_name(parameter.name, self.metadata)
                errors.add(parameter.name, evaluate(value, parameter.constraints, field_name))
            for prop in parameter.properties:
                if not prop.constraints:
                    continue
                prop_value = getattr(value, prop.name, None) if value is not None else None
                field_name = resolve_external_name(prop.name, self.metadata)
                errors.add(prop.name, evaluate(prop_value, prop.constraints, field_name))
        return errors

    def check(self, arguments: Mapping[str, Any]) -> ValidationProblem | None:
        """None to proceed to the handler, or the problem to answer with."""
        if self.is_noop:
            return None
        return assemble(None, self.collect(arguments), self.metadata)


def with_validation(endpoint: Callable[..., Any], validation: ValidationFilter) -> Callable[..., Any]:
    """Wrap a handler so the filter runs on its bound arguments first."""
    is_async = inspect.iscoroutinefunction(endpoint)

    @functools.wraps(endpoint)
    async def wrapper(**kwargs: Any) -> Any:
        problem = validation.check(kwargs)
        if problem is not None:
            log.info(
                "validation_failed",
                endpoint=validation.metadata.name,
                fields=list(problem.errors.to_dict()),
            )
            raise problem
        if is_async:
            return await endpoint(**kwargs)
        return await run_in_threadpool(endpoint, **kwargs)

    setattr(wrapper, FILTER_MARKER, validation)
    return wrapper


class ValidatedRoute(APIRoute):
    """APIRoute that records endpoint metadata and runs the validation filter.

    ``include_router`` rebuilds routes from their (already wrapped) endpoints,
    so a wrapped endpoint is unwrapped before being filtered again.
    """

    def __init__(self, path: str, endpoint: Callable[..., Any], **kwargs: Any):
        if getattr(endpoint, FILTER_MARKER, None) is not None:
            endpoint = endpoint.__wrapped__

        methods = kwargs.get("methods") or ["GET"]
        self.endpoint_metadata = EndpointMetadata.from_endpoint(
            endpoint, path, methods, name=kwargs.get("name"),
        )
        self.validation_filter = ValidationFilter(self.endpoint_metadata)
        super().__init__(path, with_validation(endpoint, self.validation_filter), **kwargs)
