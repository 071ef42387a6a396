"""Structured Logging for the Payments API

Logging is an injected capability with an explicit lifecycle:
- configure_logging() once at process start (before the app is built)
- shutdown_logging() from the application lifespan to flush handlers

Output is colored console text in development and JSON in production.
Every event carries the request correlation id and the service identity.
"""
import logging
import sys
from uuid import uuid4

import structlog
from structlog.types import EventDict, Processor

_service_info: dict[str, str] = {"service": "payments-api", "version": "1.0.0"}

SENSITIVE_KEYS = frozenset({
    "password", "token", "access_token", "secret", "authorization", "cookie", "jwt_secret",
})


def _censor_sensitive_keys(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Processor that redacts credentials before rendering."""

    def _redact(obj, depth: int = 0):
        if depth > 5:
            return obj
        if isinstance(obj, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in SENSITIVE_KEYS else _redact(v, depth + 1)
                for k, v in obj.items()
            }
        if isinstance(obj, list):
            return [_redact(item, depth + 1) for item in obj]
        return obj

    return _redact(event_dict)


def _add_service_info(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in _service_info.items():
        event_dict.setdefault(key, value)
    return event_dict


def get_shared_processors() -> list[Processor]:
    """Processors used in both dev and prod configurations."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_service_info,
        _censor_sensitive_keys,
    ]


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    service: str = "payments-api",
    version: str = "1.0.0",
) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: If True, output JSON (production). If False, colored console output.
        service: Service name stamped on every event
        version: Service version stamped on every event
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    _service_info.update(service=service, version=version)

    shared_processors = get_shared_processors()

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        )

    # Formatter for stdlib loggers (uvicorn, httpx, ...)
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for logger_name in ["uvicorn", "uvicorn.error"]:
        logging.getLogger(logger_name).handlers = []

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def shutdown_logging() -> None:
    """Flush and close every handler attached to the root logger."""
    for handler in logging.getLogger().handlers:
        handler.flush()
    logging.shutdown()


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def generate_correlation_id() -> str:
    """Generate a short correlation ID for request tracing."""
    return str(uuid4())[:8]


def bind_context(**kwargs) -> None:
    """Bind key-value pairs to the current logging context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def get_correlation_id() -> str | None:
    """Correlation ID bound for the current request, if any."""
    return structlog.contextvars.get_contextvars().get("correlation_id")


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LoggerRegistry:
    """Registry of loggers per application domain."""

    _loggers: dict[str, structlog.stdlib.BoundLogger] = {}

    @classmethod
    def get(cls, name: str) -> structlog.stdlib.BoundLogger:
        if name not in cls._loggers:
            cls._loggers[name] = get_logger(f"payments.{name}")
        return cls._loggers[name]


def api_logger() -> structlog.stdlib.BoundLogger:
    """Logger for API layer events."""
    return LoggerRegistry.get("api")


def validation_logger() -> structlog.stdlib.BoundLogger:
    """Logger for parameter binding and validation events."""
    return LoggerRegistry.get("validation")


def auth_logger() -> structlog.stdlib.BoundLogger:
    """Logger for authentication/authorization events."""
    return LoggerRegistry.get("auth")


def engine_logger() -> structlog.stdlib.BoundLogger:
    """Logger for payment engine events."""
    return LoggerRegistry.get("engine")
