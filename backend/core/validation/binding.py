"""Bind Failure Classification

A structural bind failure is a wire value that could not be converted to the
declared parameter type, or a required value that was never sent. It is
reduced to a single ``BindFailure`` record that the problem assembler turns
into one friendly message.

Two adapters produce records:
- ``from_request_errors``: the structured path, fed by FastAPI's
  ``RequestValidationError.errors()``.
- ``classify``: the text path, for binders that only report a message such as
  ``Failed to bind parameter "Int32 paymentId" from "abc".``

Only the first failure of a request is ever reported. The router stops at the
first unconvertible value, so reporting more would change the wire contract.
"""
from __future__ import annotations

import re
import types
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Iterable, Union, get_args, get_origin
from uuid import UUID

from pydantic import BaseModel

MALFORMED_RE = re.compile(
    r'Failed to bind parameter\s+"(?P<type>[^\s"<>`]+(?:<[^>]+>)?(?:`\d+\[[^\]]+\])?)\s+(?P<name>\w+)"'
    r'\s+from\s+"(?P<value>.*)"'
)
MISSING_RE = re.compile(
    r'^Required parameter\s+"(?P<type>[^\s"<>`]+(?:<[^>]+>)?(?:`\d+\[[^\]]+\])?)\s+(?P<name>\w+)"'
    r"\s+was not provided from query string\.?$"
)
NULLABLE_PATTERNS = (
    re.compile(r"^Nullable<(?P<inner>[^>]+)>$"),
    re.compile(r"^Nullable`\d+\[(?P<inner>[^\]]+)\]$"),
    re.compile(r"^Optional\[(?P<inner>[^\]]+)\]$"),
)

REQUIRED_MISSING_MESSAGE = "Required parameter is missing."
FALLBACK_MESSAGE = "Invalid value."

# Checked in order against the unwrapped, lowercased type hint
FRIENDLY_MESSAGES: tuple[tuple[str, str], ...] = (
    ("guid", "Invalid format. Must be a valid GUID."),
    ("int", "Invalid number. Must be an integer."),
    ("dateonly", "Invalid date. Use yyyy-MM-dd."),
    ("bool", "Invalid boolean. Use true or false."),
)

# bool before int and datetime before date: subclasses first
TYPE_NAMES: tuple[tuple[type, str], ...] = (
    (bool, "Boolean"),
    (int, "Int32"),
    (float, "Double"),
    (Decimal, "Decimal"),
    (UUID, "Guid"),
    (datetime, "DateTime"),
    (date, "DateOnly"),
    (str, "String"),
)

# Used when the failing parameter cannot be found in the endpoint metadata
ERROR_TYPE_HINTS: dict[str, str] = {
    "int_parsing": "Int32",
    "int_from_float": "Int32",
    "int_type": "Int32",
    "uuid_parsing": "Guid",
    "uuid_type": "Guid",
    "date_parsing": "DateOnly",
    "date_from_datetime_parsing": "DateOnly",
    "date_from_datetime_inexact": "DateOnly",
    "date_type": "DateOnly",
    "bool_parsing": "Boolean",
    "bool_type": "Boolean",
    "decimal_parsing": "Decimal",
    "float_parsing": "Double",
    "datetime_parsing": "DateTime",
    "datetime_from_date_parsing": "DateTime",
}


@dataclass(frozen=True, slots=True)
class BindFailure:
    """One malformed or missing parameter."""
    logical_name: str | None
    raw_value: str | None = None
    type_hint: str | None = None
    is_required_missing: bool = False

    def describe(self) -> str:
        """Render the canonical text signal for this failure."""
        target = f"{self.type_hint or 'Object'} {self.logical_name or 'unknown'}"
        if self.is_required_missing:
            return f'Required parameter "{target}" was not provided from query string.'
        return f'Failed to bind parameter "{target}" from "{self.raw_value or ""}".'


def classify(signal: str | None) -> BindFailure | None:
    """Parse a binder message; None when the message is not a bind failure."""
    if not signal:
        return None

    match = MISSING_RE.search(signal.strip())
    if match:
        return BindFailure(
            logical_name=match.group("name"),
            type_hint=match.group("type"),
            is_required_missing=True,
        )

    match = MALFORMED_RE.search(signal)
    if match:
        return BindFailure(
            logical_name=match.group("name"),
            raw_value=match.group("value"),
            type_hint=match.group("type"),
        )
    return None


def unwrap_nullable(type_hint: str | None) -> str:
    if not type_hint:
        return ""
    hint = type_hint.strip()
    for pattern in NULLABLE_PATTERNS:
        match = pattern.match(hint)
        if match:
            return match.group("inner").strip()
    if hint.endswith("?"):
        return hint[:-1]
    if hint.endswith(" | None"):
        return hint[: -len(" | None")]
    return hint


def friendly_message(failure: BindFailure) -> str:
    if failure.is_required_missing:
        return REQUIRED_MISSING_MESSAGE
    hint = unwrap_nullable(failure.type_hint).lower()
    for needle, message in FRIENDLY_MESSAGES:
        if needle in hint:
            return message
    return FALLBACK_MESSAGE


def strip_annotation(annotation: Any) -> tuple[Any, bool]:
    """Drop Annotated metadata and Optional; report whether None was allowed."""
    while get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        nullable = len(args) != len(get_args(annotation))
        if len(args) == 1:
            inner, _ = strip_annotation(args[0])
            return inner, nullable
        return annotation, nullable
    return annotation, False


def type_hint_for(annotation: Any) -> str | None:
    """Binder-style type name for a Python annotation, e.g. ``Nullable<Guid>``."""
    if annotation is None:
        return None
    inner, nullable = strip_annotation(annotation)

    name: str | None = None
    if isinstance(inner, type):
        if issubclass(inner, (Enum, BaseModel)):
            name = inner.__name__
        else:
            for python_type, type_name in TYPE_NAMES:
                if issubclass(inner, python_type):
                    name = type_name
                    break
            else:
                name = inner.__name__
    if name is None:
        return None
    return f"Nullable<{name}>" if nullable else name


def _stringify(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)) and value:
        return _stringify(value[0])
    return str(value)


def from_request_errors(
    errors: Iterable[dict[str, Any]],
    metadata=None,
) -> BindFailure | None:
    """Reduce FastAPI request errors to the first failing parameter.

    ``metadata`` is the endpoint's ``EndpointMetadata``; it maps the wire name
    in the error location back to the logical name and supplies the declared
    type. Without it the wire name and pydantic's error type are used.
    """
    first = next(iter(errors), None)
    if first is None:
        return None

    loc = tuple(first.get("loc") or ())
    source = loc[0] if loc else None
    wire_name = next((part for part in loc[1:] if isinstance(part, str)), None)
    error_type = first.get("type", "")
    is_missing = error_type == "missing"

    parameter = None
    if metadata is not None:
        if wire_name is not None:
            parameter = metadata.find(wire_name)
        elif source == "body":
            parameter = metadata.body_parameter()

    if parameter is not None:
        logical_name = parameter.binding.logical_name
        type_hint = parameter.type_hint
    else:
        logical_name = wire_name
        type_hint = None
    if type_hint is None:
        type_hint = ERROR_TYPE_HINTS.get(error_type)

    return BindFailure(
        logical_name=logical_name,
        raw_value=None if is_missing else _stringify(first.get("input")),
        type_hint=type_hint,
        is_required_missing=is_missing,
    )
