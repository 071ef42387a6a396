"""Application Error Types

Result (Ok/Err) containers for explicit error propagation out of the payment
engine, plus the AppError record every non-validation failure is expressed as.
Parameter validation failures do not use these types; they travel as
ValidationProblem documents (see core.validation.problem).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, NoReturn, TypeVar, Union, final
from uuid import uuid4

T = TypeVar("T")
E = TypeVar("E", bound="AppError")


class ErrorCode(Enum):
    """Error code taxonomy.

    E2xxx: Request validation errors
    E3xxx: Authentication/Authorization errors
    E4xxx: Resource lookup errors
    E9xxx: Internal/Unknown errors
    """
    # Validation (E2xxx)
    E2000_VALIDATION_GENERIC = 2000

    # Authentication/Authorization (E3xxx)
    E3000_AUTH_GENERIC = 3000
    E3002_TOKEN_EXPIRED = 3002
    E3003_TOKEN_INVALID = 3003
    E3004_TOKEN_MISSING = 3004
    E3010_INSUFFICIENT_PERMISSIONS = 3010

    # Resource (E4xxx)
    E4010_NOT_FOUND = 4010
    E4011_CONFLICT = 4011

    # Internal (E9xxx)
    E9000_INTERNAL_GENERIC = 9000
    E9001_UNEXPECTED_ERROR = 9001

    @property
    def http_status(self) -> int:
        """Map error code to HTTP status."""
        code = self.value
        if 2000 <= code < 3000:
            return 400
        if 3000 <= code < 3010:
            return 401
        if 3010 <= code < 4000:
            return 403
        if code == 4010:
            return 404
        if code == 4011:
            return 409
        return 500

    @property
    def category(self) -> str:
        code = self.value
        if 2000 <= code < 3000:
            return "validation"
        if 3000 <= code < 4000:
            return "auth"
        if 4000 <= code < 5000:
            return "resource"
        return "internal"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Immutable tracing context attached to an error."""
    correlation_id: str = field(default_factory=lambda: str(uuid4())[:8])
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    origin: str = ""
    principal: str | None = None


@dataclass(frozen=True, slots=True)
class AppError:
    """Application error: typed code, client-safe message and debug metadata.

    The cause is kept for logging only and never serialized.
    """
    code: ErrorCode
    message: str
    context: ErrorContext = field(default_factory=ErrorContext)
    metadata: dict = field(default_factory=dict)
    cause: Exception | None = None

    def to_dict(self) -> dict:
        """Serialize error for API responses."""
        return {
            "error": {
                "code": self.code.name,
                "code_num": self.code.value,
                "message": self.message,
                "category": self.code.category,
                "correlation_id": self.context.correlation_id,
                "timestamp": self.context.timestamp.isoformat(),
                "metadata": self.metadata,
            }
        }

    def __str__(self) -> str:
        return f"[{self.code.name}] {self.message} (correlation_id={self.context.correlation_id})"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result, wrapping an AppError."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]
