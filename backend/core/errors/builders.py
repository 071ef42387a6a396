"""Error Builders

Constructors for the AppErrors this service produces. Each returns an Err so
engine code can `return not_found(...)` directly.
"""
from uuid import UUID

from .types import AppError, ErrorCode, ErrorContext, Err


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================

def validation_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E2000_VALIDATION_GENERIC,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
    ))


def bad_request(detail: str, origin: str = "http") -> Err[AppError]:
    """Generic 400 for failures the parameter classifier does not recognise."""
    return validation_error(detail, origin=origin)


# =============================================================================
# Authentication/Authorization Errors (E3xxx)
# =============================================================================

def auth_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E3000_AUTH_GENERIC,
    principal: str | None = None,
    origin: str = "",
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin, principal=principal),
        metadata=metadata,
    ))


def token_expired(origin: str = "") -> Err[AppError]:
    return auth_error(
        "Authentication token has expired",
        code=ErrorCode.E3002_TOKEN_EXPIRED,
        origin=origin,
    )


def token_invalid(reason: str = "", origin: str = "") -> Err[AppError]:
    msg = "Invalid authentication token"
    if reason:
        msg += f": {reason}"
    return auth_error(msg, code=ErrorCode.E3003_TOKEN_INVALID, origin=origin)


def token_missing(origin: str = "") -> Err[AppError]:
    return auth_error(
        "Authentication token required",
        code=ErrorCode.E3004_TOKEN_MISSING,
        origin=origin,
    )


def insufficient_permissions(
    required_roles: list[str], principal: str | None = None, origin: str = ""
) -> Err[AppError]:
    return auth_error(
        f"Requires one of the roles: {', '.join(required_roles)}",
        code=ErrorCode.E3010_INSUFFICIENT_PERMISSIONS,
        principal=principal,
        required_roles=required_roles,
        origin=origin,
    )


# =============================================================================
# Resource Errors (E4xxx)
# =============================================================================

def not_found(
    entity: str,
    id: str | int | UUID | None = None,
    origin: str = "",
) -> Err[AppError]:
    msg = f"{entity} not found"
    if id is not None:
        msg += f": {id}"
    meta = {"entity": entity}
    if id is not None:
        meta["entity_id"] = str(id)
    return Err(AppError(
        code=ErrorCode.E4010_NOT_FOUND,
        message=msg,
        context=ErrorContext(origin=origin),
        metadata=meta,
    ))


# =============================================================================
# Internal Errors (E9xxx)
# =============================================================================

def internal_error(
    message: str,
    *,
    code: ErrorCode = ErrorCode.E9001_UNEXPECTED_ERROR,
    origin: str = "",
    cause: Exception | None = None,
    **metadata,
) -> Err[AppError]:
    return Err(AppError(
        code=code,
        message=message,
        context=ErrorContext(origin=origin),
        metadata=metadata,
        cause=cause,
    ))
