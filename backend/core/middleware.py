"""Request Middleware for Logging and Tracing

One middleware per request:
- correlation id taken from X-Correlation-ID (or generated), bound to the
  log context, stored on ``request.state`` and echoed on the response
- completion log with the matched endpoint and, for validation problems,
  the fields the problem document reported
- slow request warning above the configured threshold
"""
import time
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from core.logging import (
    generate_correlation_id,
    bind_context,
    clear_context,
    api_logger,
)
from core.validation import PROBLEM_MEDIA_TYPE

log = api_logger()

CORRELATION_HEADER = "X-Correlation-ID"


def _endpoint_name(request: Request) -> str | None:
    route = request.scope.get("route")
    return getattr(route, "name", None)


def _outcome(request: Request, response: Response) -> dict:
    """Fields describing how the request was answered."""
    outcome = {"status": response.status_code, "endpoint": _endpoint_name(request)}
    if response.headers.get("content-type", "").startswith(PROBLEM_MEDIA_TYPE):
        fields = getattr(request.state, "problem_fields", None) or []
        outcome.update(problem=True, problem_fields=len(fields), fields=fields)
    return outcome


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request and binds the correlation context for its duration."""

    def __init__(self, app, slow_threshold_ms: float = 1000):
        super().__init__(app)
        self.slow_threshold_ms = slow_threshold_ms

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        request.state.correlation_id = correlation_id

        clear_context()
        bind_context(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        start = time.perf_counter()
        log.debug(
            "request_started",
            query=str(request.query_params) if request.query_params else None,
        )

        try:
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            response.headers[CORRELATION_HEADER] = correlation_id

            outcome = _outcome(request, response)
            status = response.status_code
            log_method = log.info if status < 400 else (log.warning if status < 500 else log.error)
            log_method("request_completed", duration_ms=duration_ms, **outcome)

            if duration_ms > self.slow_threshold_ms:
                log.warning(
                    "slow_request",
                    endpoint=outcome["endpoint"],
                    duration_ms=duration_ms,
                    threshold_ms=self.slow_threshold_ms,
                )
            return response

        except Exception as exc:
            log.exception(
                "request_failed",
                endpoint=_endpoint_name(request),
                error_type=type(exc).__name__,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        finally:
            clear_context()
