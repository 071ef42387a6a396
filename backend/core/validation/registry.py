"""Endpoint Metadata Registry

Application-wide table of endpoint metadata, populated once from the routers'
routes during startup and frozen before traffic is served. Reads need no
locking: after ``freeze`` the table is never mutated.

Usage:
    registry = EndpointRegistry()
    registry.populate(payments.router.routes)
    registry.freeze()

    metadata = metadata_for_request(request)
"""
from __future__ import annotations

import threading
from typing import Any, Iterable

from fastapi.routing import APIRoute
from starlette.routing import BaseRoute
from starlette.requests import Request

from core.logging import validation_logger

from .metadata import EndpointMetadata

log = validation_logger()


class EndpointRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self._entries: list[tuple[APIRoute | None, EndpointMetadata]] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, metadata: EndpointMetadata, route: APIRoute | None = None) -> None:
        with self._lock:
            if self._frozen:
                raise RuntimeError(f"Endpoint registry is frozen, cannot register {metadata.name}")
            self._entries.append((route, metadata))

    def populate(self, routes: Iterable[BaseRoute]) -> int:
        """Register every API route in ``routes``; a frozen registry is left as is."""
        if self._frozen:
            return len(self._entries)
        count = 0
        for route in routes:
            if not isinstance(route, APIRoute):
                continue
            metadata = getattr(route, "endpoint_metadata", None)
            if metadata is None:
                metadata = EndpointMetadata.from_endpoint(
                    route.endpoint, route.path, route.methods or (), name=route.name,
                )
            self.register(metadata, route)
            count += 1
        log.info("endpoint_registry_populated", endpoints=count)
        return count

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    def find(self, method: str, path: str) -> EndpointMetadata | None:
        """Metadata of the route serving ``method`` on a concrete ``path``."""
        method = method.upper()
        for route, metadata in self._entries:
            if method not in metadata.methods:
                continue
            if route is not None and route.path_regex.match(path):
                return metadata
            if route is None and metadata.path == path:
                return metadata
        return None

    def entries(self) -> list[tuple[APIRoute | None, EndpointMetadata]]:
        return list(self._entries)

    def describe(self) -> list[dict[str, Any]]:
        """Declared parameters and constraints of every endpoint, for docs."""
        return [metadata.describe() for _, metadata in self._entries]

    def __len__(self) -> int:
        return len(self._entries)


def metadata_for_request(request: Request) -> EndpointMetadata | None:
    """Metadata of the endpoint that matched ``request``, if known."""
    route = request.scope.get("route")
    metadata = getattr(route, "endpoint_metadata", None)
    if metadata is not None:
        return metadata

    registry = getattr(request.app.state, "endpoint_registry", None)
    if registry is None:
        return None
    return registry.find(request.method, request.url.path)
