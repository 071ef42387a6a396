"""Validation Problem Documents

Every client-input failure, structural or semantic, leaves the service as the
same document:

    {
      "title": "One or more parameters are invalid.",
      "status": 400,
      "errors": {"<externalName>": ["<message>", ...]}
    }

served as ``application/problem+json``. ``assemble`` builds it from either a
bind failure (single entry, short-circuit) or a collection of validation
messages keyed by logical name.
"""
from __future__ import annotations

from typing import Iterable, Iterator, Mapping

from .binding import BindFailure, friendly_message
from .naming import resolve_external_name

PROBLEM_TITLE = "One or more parameters are invalid."
PROBLEM_STATUS = 400
PROBLEM_MEDIA_TYPE = "application/problem+json"
UNKNOWN_PARAMETER = "unknownParameter"


class ErrorCollection:
    """Ordered mapping of field name to messages with case-insensitive keys.

    Adding messages under a key that already exists (in any casing) appends to
    that key's list; the first spelling of the key is kept.
    """

    __slots__ = ("_entries",)

    def __init__(self, errors: Mapping[str, Iterable[str]] | None = None):
        self._entries: dict[str, tuple[str, list[str]]] = {}
        if errors:
            for key, messages in errors.items():
                self.add(key, messages)

    def add(self, key: str, messages: Iterable[str]) -> None:
        messages = [m for m in messages if m]
        if not messages:
            return
        folded = key.casefold()
        if folded in self._entries:
            self._entries[folded][1].extend(messages)
        else:
            self._entries[folded] = (key, messages)

    def get(self, key: str) -> list[str] | None:
        entry = self._entries.get(key.casefold())
        return list(entry[1]) if entry else None

    def items(self) -> Iterator[tuple[str, list[str]]]:
        for key, messages in self._entries.values():
            yield key, list(messages)

    def to_dict(self) -> dict[str, list[str]]:
        return {key: messages for key, messages in self.items()}

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.casefold() in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __repr__(self) -> str:
        return f"ErrorCollection({self.to_dict()!r})"


class ValidationProblem(Exception):
    """A complete problem document, raisable from anywhere in request handling."""

    def __init__(self, errors: ErrorCollection, title: str = PROBLEM_TITLE, status: int = PROBLEM_STATUS):
        self.errors = errors
        self.title = title
        self.status = status
        super().__init__(title)

    def to_dict(self) -> dict:
        return {"title": self.title, "status": self.status, "errors": self.errors.to_dict()}


class FieldValidationError(Exception):
    """Raised by handlers for business rules on already bound values.

    Keys are logical names; they are resolved to wire names against the
    endpoint's metadata before the problem document is written.

        raise FieldValidationError({"payment_id": ["Payment ID cannot be 666"]})
    """

    def __init__(self, errors: Mapping[str, Iterable[str]]):
        self.errors = ErrorCollection(errors)
        super().__init__(str(self.errors.to_dict()))


def assemble(
    bind_failure: BindFailure | None,
    validation_errors: ErrorCollection | Mapping[str, Iterable[str]] | None = None,
    metadata=None,
) -> ValidationProblem | None:
    """Merge classifier and evaluator output into one problem, or None if clean."""
    if bind_failure is not None:
        key = resolve_external_name(bind_failure.logical_name, metadata) or UNKNOWN_PARAMETER
        return ValidationProblem(ErrorCollection({key: [friendly_message(bind_failure)]}))

    if not validation_errors:
        return None
    if not isinstance(validation_errors, ErrorCollection):
        validation_errors = ErrorCollection(validation_errors)

    resolved = ErrorCollection()
    for logical_name, messages in validation_errors.items():
        resolved.add(resolve_external_name(logical_name, metadata) or UNKNOWN_PARAMETER, messages)
    return ValidationProblem(resolved) if resolved else None


def raise_validation_problem(
    validation_errors: ErrorCollection | Mapping[str, Iterable[str]],
    metadata=None,
) -> None:
    """Raise the assembled problem for ``validation_errors``, if there is one."""
    problem = assemble(None, validation_errors, metadata)
    if problem is not None:
        raise problem
