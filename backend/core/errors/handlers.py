"""FastAPI Exception Handlers

Client-input failures become validation problem documents:
- RequestValidationError (structural bind failure): first error only
- HTTPException 400 whose detail is a recognised binder message
- ValidationProblem raised by the validation filter
- FieldValidationError raised by handlers

Everything else goes through AppError: AppErrorException from dependencies
and handlers, other HTTP exceptions, and a catch-all that never leaks
exception details to the client.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.logging import (
    generate_correlation_id,
    get_correlation_id,
    get_logger,
    validation_logger,
)
from core.validation import (
    PROBLEM_MEDIA_TYPE,
    FieldValidationError,
    ValidationProblem,
    assemble,
    classify,
    from_request_errors,
    metadata_for_request,
)

from .builders import bad_request
from .types import AppError, ErrorCode, ErrorContext

log = get_logger("errors.handlers")
vlog = validation_logger()


class AppErrorException(Exception):
    """Exception wrapper for AppError.

    Use this where a Result cannot be returned (FastAPI dependencies,
    early exits in handlers).
    """

    def __init__(self, error: AppError):
        self.error = error
        super().__init__(str(error))


def _correlation_id(request: Request) -> str:
    """Request header, then the id the middleware stored, then the log context."""
    return (
        request.headers.get("X-Correlation-ID")
        or getattr(request.state, "correlation_id", None)
        or get_correlation_id()
        or generate_correlation_id()
    )


def result_to_response(error: AppError) -> JSONResponse:
    """Convert AppError to JSONResponse, logging it with full context."""
    status_code = error.code.http_status

    log_method = log.warning if status_code < 500 else log.error
    log_method(
        "error_response",
        error_code=error.code.name,
        error_code_num=error.code.value,
        message=error.message,
        category=error.code.category,
        correlation_id=error.context.correlation_id,
        origin=error.context.origin,
        metadata=error.metadata,
    )

    return JSONResponse(
        status_code=status_code,
        content=error.to_dict(),
    )


def problem_response(request: Request, problem: ValidationProblem) -> JSONResponse:
    """Serialize a problem document with its media type.

    The reported fields are kept on request.state for the request log.
    """
    request.state.problem_fields = list(problem.errors.to_dict())
    return JSONResponse(
        status_code=problem.status,
        content=problem.to_dict(),
        media_type=PROBLEM_MEDIA_TYPE,
    )


async def app_error_handler(request: Request, exc: AppErrorException) -> JSONResponse:
    error = exc.error
    correlation_id = _correlation_id(request)
    if correlation_id and correlation_id != error.context.correlation_id:
        error = AppError(
            code=error.code,
            message=error.message,
            context=ErrorContext(
                correlation_id=correlation_id,
                timestamp=error.context.timestamp,
                origin=error.context.origin,
                principal=error.context.principal,
            ),
            metadata=error.metadata,
            cause=error.cause,
        )
    return result_to_response(error)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Structural bind failure: report the first failing parameter only."""
    errors = exc.errors()
    metadata = metadata_for_request(request)
    failure = from_request_errors(errors, metadata)
    if failure is None:
        return result_to_response(bad_request("Request could not be bound", origin="request_validation").error)

    problem = assemble(failure, None, metadata)
    vlog.info(
        "bind_failed",
        signal=failure.describe(),
        errors_reported=1,
        errors_total=len(errors),
        fields=list(problem.errors.to_dict()),
    )
    return problem_response(request, problem)


async def validation_problem_handler(request: Request, exc: ValidationProblem) -> JSONResponse:
    return problem_response(request, exc)


async def field_validation_handler(request: Request, exc: FieldValidationError) -> JSONResponse:
    problem = assemble(None, exc.errors, metadata_for_request(request))
    if problem is None:
        return await unhandled_exception_handler(request, exc)
    vlog.info("handler_validation_failed", fields=list(problem.errors.to_dict()))
    return problem_response(request, problem)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """HTTP exceptions: binder messages become problems, the rest AppErrors."""
    status_code = exc.status_code

    if status_code == 400 and isinstance(exc.detail, str):
        failure = classify(exc.detail)
        if failure is not None:
            problem = assemble(failure, None, metadata_for_request(request))
            vlog.info("bind_failed", signal=exc.detail, fields=list(problem.errors.to_dict()))
            return problem_response(request, problem)

    code_map = {
        400: ErrorCode.E2000_VALIDATION_GENERIC,
        401: ErrorCode.E3004_TOKEN_MISSING,
        403: ErrorCode.E3010_INSUFFICIENT_PERMISSIONS,
        404: ErrorCode.E4010_NOT_FOUND,
        409: ErrorCode.E4011_CONFLICT,
        422: ErrorCode.E2000_VALIDATION_GENERIC,
    }
    code = code_map.get(status_code)
    if code is None:
        code = ErrorCode.E9001_UNEXPECTED_ERROR if status_code >= 500 else ErrorCode.E9000_INTERNAL_GENERIC

    error = AppError(
        code=code,
        message=str(exc.detail) if exc.detail else f"HTTP {status_code}",
        context=ErrorContext(correlation_id=_correlation_id(request), origin="http"),
    )
    response = result_to_response(error)
    # Keep the framework's status (405, 415, ...) when the code maps elsewhere
    response.status_code = status_code
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Catch-all: internal error response, traceback in the logs only."""
    error = AppError(
        code=ErrorCode.E9001_UNEXPECTED_ERROR,
        message="An unexpected error occurred",
        context=ErrorContext(correlation_id=_correlation_id(request), origin="unhandled"),
        cause=exc,
    )

    log.exception(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error_message=str(exc),
        correlation_id=error.context.correlation_id,
    )

    return result_to_response(error)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI app.

    Usage in main.py:
        app = FastAPI(...)
        register_error_handlers(app)
    """
    app.add_exception_handler(AppErrorException, app_error_handler)
    app.add_exception_handler(ValidationProblem, validation_problem_handler)
    app.add_exception_handler(FieldValidationError, field_validation_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def raise_result(result) -> None:
    """Raise if Result is Err, otherwise return.

    Usage:
        result = engine.get_payment(payment_id)
        raise_result(result)
        payment = result.unwrap()
    """
    if result.is_err():
        raise AppErrorException(result.unwrap_err())
