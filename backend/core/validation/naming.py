"""External Name Resolution

Maps the logical name of a parameter or property (the Python identifier, or the
name a binder reported) to the name the caller actually used on the wire.

Precedence, first match wins:
1. explicit alias of an endpoint parameter
2. explicit alias of a property of a composite parameter (query model, body)
3. kebab-case of the logical name
Empty names are returned unchanged. Resolution never fails.
"""
from __future__ import annotations

import re

_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_kebab_case(name: str) -> str:
    """``paymentId`` -> ``payment-id``, ``HTTPStatus`` -> ``http-status``, ``value_date`` -> ``value-date``."""
    if not name:
        return name
    return _BOUNDARY_RE.sub("-", name).replace("_", "-").lower()


def resolve_external_name(logical_name: str | None, metadata=None) -> str | None:
    """Best-effort external name for ``logical_name`` within one endpoint."""
    if not logical_name:
        return logical_name

    if metadata is not None:
        binding = metadata.parameter_binding(logical_name)
        if binding is None:
            binding = metadata.property_binding(logical_name)
        if binding is not None:
            return binding.external_name

    return to_kebab_case(logical_name)
