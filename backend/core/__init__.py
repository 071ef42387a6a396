# Core module exports
from core.config import settings, get_settings
from core.logging import (
    configure_logging,
    shutdown_logging,
    get_logger,
    bind_context,
    clear_context,
    generate_correlation_id,
    api_logger,
    validation_logger,
    auth_logger,
    engine_logger,
)
