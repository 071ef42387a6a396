"""Declarative Field Constraints

Constraints are attached to handler parameters and model fields as
``typing.Annotated`` metadata. Pydantic and FastAPI ignore them while binding;
the validation filter picks them up and evaluates them before the handler
runs (see core.validation.evaluator).

Usage:
    from typing import Annotated
    from fastapi import Query

    async def list_payments(
        payment_id: Annotated[int | None, Query(alias="paymentId"), Range(1, 1000)] = None,
        status: Annotated[str | None, Query(), StringAsEnum(PaymentStatus)] = None,
    ): ...

Every constraint is immutable and built once, at import time of the module
declaring it, so instances are shared freely across requests.
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

E = TypeVar("E", bound=Enum)

INVALID_VALUE_TEMPLATE = "The value '{value}' is not valid for {field}."


class ConstraintKind(str, Enum):
    REQUIRED = "required"
    RANGE = "range"
    STRING_LENGTH = "string_length"
    PATTERN = "pattern"
    ENUM_MEMBERSHIP = "enum_membership"
    ISO_DATE = "iso_date"


class FieldConstraint(ABC):
    """Base class for declared constraints.

    Subclasses are frozen dataclasses carrying their kind parameters and an
    error template. Templates use ``str.format`` placeholders: ``{field}`` and
    ``{value}`` always, plus the kind-specific ones returned by
    ``template_values``.
    """

    kind: ConstraintKind
    message: str

    @abstractmethod
    def template_values(self) -> dict[str, Any]:
        """Kind-specific placeholders for the error template."""

    def format_message(self, field_name: str, value: Any = None) -> str:
        values = {**self.template_values(), "field": field_name, "value": "" if value is None else value}
        try:
            return self.message.format(**values)
        except (KeyError, IndexError, ValueError):
            return self.message

    def describe(self) -> dict[str, Any]:
        """Read-only export for documentation generators."""
        return {"kind": self.kind.value, **self.template_values()}


@dataclass(frozen=True, slots=True)
class Required(FieldConstraint):
    """Value must be present and, for strings, not blank."""
    message: str = "The {field} field is required."
    kind: ConstraintKind = field(default=ConstraintKind.REQUIRED, init=False)

    def template_values(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True, slots=True)
class Range(FieldConstraint):
    """Inclusive numeric range."""
    minimum: int | float | Decimal
    maximum: int | float | Decimal
    message: str = "The field {field} must be between {minimum} and {maximum}."
    kind: ConstraintKind = field(default=ConstraintKind.RANGE, init=False)

    def template_values(self) -> dict[str, Any]:
        return {"minimum": self.minimum, "maximum": self.maximum}


@dataclass(frozen=True, slots=True)
class StringLength(FieldConstraint):
    """Maximum (and optionally minimum) string length."""
    maximum: int
    minimum: int = 0
    message: str = ""
    kind: ConstraintKind = field(default=ConstraintKind.STRING_LENGTH, init=False)

    def __post_init__(self):
        if not self.message:
            template = (
                "The field {field} must be a string with a minimum length of {minimum} "
                "and a maximum length of {maximum}."
                if self.minimum
                else "The field {field} must be a string with a maximum length of {maximum}."
            )
            object.__setattr__(self, "message", template)

    def template_values(self) -> dict[str, Any]:
        return {"minimum": self.minimum, "maximum": self.maximum}


@dataclass(frozen=True, slots=True)
class Pattern(FieldConstraint):
    """Full-match regular expression."""
    pattern: str
    message: str = "The field {field} must match the regular expression '{pattern}'."
    kind: ConstraintKind = field(default=ConstraintKind.PATTERN, init=False)
    compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "compiled", re.compile(self.pattern))

    def template_values(self) -> dict[str, Any]:
        return {"pattern": self.pattern}


@dataclass(frozen=True, slots=True)
class StringAsEnum(FieldConstraint):
    """String that must name a member of an enum.

    Accepted tokens are the member names and the member values, compared
    case-insensitively. ``allowed`` keeps the display spelling in declaration
    order for documentation; ``tokens`` is the casefolded lookup set.
    """
    enum_type: type[Enum]
    message: str = INVALID_VALUE_TEMPLATE
    kind: ConstraintKind = field(default=ConstraintKind.ENUM_MEMBERSHIP, init=False)
    allowed: tuple[str, ...] = field(init=False, compare=False)
    tokens: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        allowed = allowed_tokens(self.enum_type)
        object.__setattr__(self, "allowed", allowed)
        object.__setattr__(self, "tokens", frozenset(token.casefold() for token in allowed))

    def accepts(self, token: str) -> bool:
        """Match the token as sent, ignoring case only.

        Surrounding whitespace makes a token invalid here, unlike
        ``parse_enum_token``, which strips it once validation has passed.
        """
        return token.casefold() in self.tokens

    def template_values(self) -> dict[str, Any]:
        return {"enum": self.enum_type.__name__, "allowed": list(self.allowed)}


@dataclass(frozen=True, slots=True)
class StringAsIsoDate(FieldConstraint):
    """String that must be a real calendar date in yyyy-MM-dd form."""
    message: str = INVALID_VALUE_TEMPLATE
    kind: ConstraintKind = field(default=ConstraintKind.ISO_DATE, init=False)

    def template_values(self) -> dict[str, Any]:
        return {"format": "yyyy-MM-dd"}


def allowed_tokens(enum_type: type[Enum]) -> tuple[str, ...]:
    """Member values and names, deduplicated case-insensitively, declaration order."""
    seen: set[str] = set()
    tokens: list[str] = []
    for member in enum_type:
        candidates = [member.value, member.name] if isinstance(member.value, str) else [member.name]
        for candidate in candidates:
            if candidate.casefold() not in seen:
                seen.add(candidate.casefold())
                tokens.append(candidate)
    return tuple(tokens)


def parse_enum_token(enum_type: type[E], token: Any) -> E | None:
    """Resolve a member by name or string value, ignoring case."""
    if isinstance(token, enum_type):
        return token
    if not isinstance(token, str) or not token.strip():
        return None
    folded = token.strip().casefold()
    for member in enum_type:
        if member.name.casefold() == folded:
            return member
        if isinstance(member.value, str) and member.value.casefold() == folded:
            return member
    return None
