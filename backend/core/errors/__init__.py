"""Application Error Handling

Key components:
- Result[T, E]: Ok/Err container returned by the payment engine
- AppError: error record with code, message and tracing context
- ErrorCode: error code taxonomy mapped to HTTP statuses
- Builder functions: ergonomic error construction
- Handlers: FastAPI exception handlers, including the validation problem
  responses for client-input failures

Usage:
    from core.errors import Ok, Result, AppError, not_found

    def get_payment(payment_id: int) -> Result[Payment, AppError]:
        payment = store.get(payment_id)
        if payment is None:
            return not_found("Payment", payment_id, origin="payments")
        return Ok(payment)

    match get_payment(1):
        case Ok(payment):
            ...
        case Err(error):
            log.warning(error.message, code=error.code.name)
"""
from .types import (
    Result,
    Ok,
    Err,
    AppError,
    ErrorCode,
    ErrorContext,
)

from .builders import (
    validation_error,
    bad_request,
    token_expired,
    token_invalid,
    token_missing,
    insufficient_permissions,
    not_found,
    internal_error,
)

from .boundaries import (
    ErrorMapper,
    AuthErrorMapper,
)

from .handlers import (
    AppErrorException,
    register_error_handlers,
    problem_response,
    result_to_response,
    raise_result,
)

__all__ = [
    # Core types
    "Result",
    "Ok",
    "Err",
    "AppError",
    "ErrorCode",
    "ErrorContext",
    # Builders
    "validation_error",
    "bad_request",
    "token_expired",
    "token_invalid",
    "token_missing",
    "insufficient_permissions",
    "not_found",
    "internal_error",
    # Boundary mappers
    "ErrorMapper",
    "AuthErrorMapper",
    # Handlers
    "AppErrorException",
    "register_error_handlers",
    "problem_response",
    "result_to_response",
    "raise_result",
]
