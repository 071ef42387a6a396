"""Error Boundary Mappers

Exceptions raised by third-party libraries are mapped to AppErrors where they
cross into application code, so callers only ever see one error type.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from jose import ExpiredSignatureError, JWTError

from .types import AppError
from .builders import internal_error, token_expired, token_invalid

T = TypeVar("T")


class ErrorMapper(ABC, Generic[T]):
    """Abstract base for error mappers at module boundaries."""

    @abstractmethod
    def map_exception(self, exc: Exception) -> AppError:
        """Map a library exception to an AppError."""


class AuthErrorMapper(ErrorMapper[T]):
    """Maps python-jose failures to token errors."""

    def __init__(self, origin: str = "auth"):
        self.origin = origin

    def map_exception(self, exc: Exception) -> AppError:
        # ExpiredSignatureError subclasses JWTError, check it first
        if isinstance(exc, ExpiredSignatureError):
            return token_expired(origin=self.origin).error
        if isinstance(exc, JWTError):
            return token_invalid(str(exc), origin=self.origin).error

        return internal_error(
            f"Authentication error: {exc}",
            origin=self.origin,
            cause=exc,
        ).error
