"""Constraint Evaluation

``evaluate`` runs a field's declared constraints against its bound value and
returns the error messages, in declaration order. It is a pure function: it
never raises and never mutates its inputs.

Rules:
- Required fails on None and on blank strings, and stops evaluation of the
  remaining constraints for that field.
- Every other constraint treats None as valid; absence is only governed by
  Required.
"""
from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable

from .constraints import (
    ConstraintKind,
    FieldConstraint,
    Pattern,
    Range,
    StringAsEnum,
    StringLength,
)

ISO_DATE_RE = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")


def _is_blank(value: Any) -> bool:
    return isinstance(value, str) and not value.strip()


def _check_required(constraint: FieldConstraint, value: Any) -> bool:
    return value is not None and not _is_blank(value)


def _check_range(constraint: Range, value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return False
    if not number.is_finite():
        return False
    return Decimal(str(constraint.minimum)) <= number <= Decimal(str(constraint.maximum))


def _check_string_length(constraint: StringLength, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return constraint.minimum <= len(value) <= constraint.maximum


def _check_pattern(constraint: Pattern, value: Any) -> bool:
    text = value if isinstance(value, str) else str(value)
    if text == "":
        return True
    return constraint.compiled.fullmatch(text) is not None


def _check_enum(constraint: StringAsEnum, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    return _is_blank(value) or constraint.accepts(value)


def _check_iso_date(constraint: FieldConstraint, value: Any) -> bool:
    if not isinstance(value, str):
        return False
    if _is_blank(value):
        return True
    return parse_iso_date(value) is not None


def parse_iso_date(value: str) -> date | None:
    """Strict yyyy-MM-dd parse; None unless the text is a real calendar date."""
    match = ISO_DATE_RE.fullmatch(value)
    if match is None:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


CHECKS: dict[ConstraintKind, Callable[[Any, Any], bool]] = {
    ConstraintKind.REQUIRED: _check_required,
    ConstraintKind.RANGE: _check_range,
    ConstraintKind.STRING_LENGTH: _check_string_length,
    ConstraintKind.PATTERN: _check_pattern,
    ConstraintKind.ENUM_MEMBERSHIP: _check_enum,
    ConstraintKind.ISO_DATE: _check_iso_date,
}


def evaluate(
    value: Any,
    constraints: Iterable[FieldConstraint],
    field_name: str,
) -> list[str]:
    """Return the messages of every constraint ``value`` violates."""
    messages: list[str] = []
    for constraint in constraints:
        if constraint.kind is ConstraintKind.REQUIRED:
            if not _check_required(constraint, value):
                messages.append(constraint.format_message(field_name, value))
                break
            continue
        if value is None:
            continue
        if not CHECKS[constraint.kind](constraint, value):
            messages.append(constraint.format_message(field_name, value))
    return messages
