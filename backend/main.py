from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import payments
from core.config import settings
from core.logging import configure_logging, get_logger, shutdown_logging
from core.middleware import RequestLoggingMiddleware
from core.errors import register_error_handlers
from core.openapi import install_openapi
from core.validation import EndpointRegistry

# Initialize logging before anything else
configure_logging(
    level=settings.LOG_LEVEL,
    json_logs=settings.LOG_JSON,
    service="payments-api",
    version=settings.APP_VERSION,
)

log = get_logger(__name__)

ROUTERS = [payments.router]


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", message=f"{settings.APP_NAME} starting up")

    registry: EndpointRegistry = app.state.endpoint_registry
    registry.populate(route for router in ROUTERS for route in router.routes)
    registry.freeze()

    yield

    log.info("shutdown", message=f"{settings.APP_NAME} shutting down")
    shutdown_logging()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Payments API with uniform validation problem responses",
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )
    app.state.endpoint_registry = EndpointRegistry()

    # Register structured error handlers
    register_error_handlers(app)

    # Middleware (order matters: last added = first executed)
    app.add_middleware(RequestLoggingMiddleware, slow_threshold_ms=settings.SLOW_REQUEST_MS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for router in ROUTERS:
        app.include_router(router)

    install_openapi(app, app.state.endpoint_registry)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": settings.APP_VERSION}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    log.info("server_config", host=settings.BACKEND_HOST, port=settings.BACKEND_PORT, debug=settings.APP_DEBUG)
    uvicorn.run(
        "main:app",
        host=settings.BACKEND_HOST,
        port=settings.BACKEND_PORT,
        reload=settings.APP_DEBUG,
        log_config=None,  # Disable uvicorn's default logging, we handle it
    )
