"""FastAPI application factory and configuration."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.responses import PlainTextResponse

from ropee import __version__
from ropee.api.dependencies import build_backend_handle
from ropee.api.exceptions import GatewayAPIException
from ropee.api.middleware import LoggingMiddleware, RequestIDMiddleware
from ropee.api.routers import health_router, metrics_router, remote_router
from ropee.backend import BackendClient, ClientFactory, make_client_factory
from ropee.config import Settings, get_settings
from ropee.exceptions import ConstructionError
from ropee.logging_config import get_logger
from ropee.metrics import GatewayMetrics, get_metrics
from ropee.remote.models import Credentials

logger = get_logger(__name__)


def create_write_client(
    settings: Settings, client_factory: ClientFactory
) -> BackendClient | None:
    """Build the shared write client with static credentials.

    Returns None, after logging, if the client cannot be constructed; writes
    then fail with 500 until the process is restarted.
    """
    handle = build_backend_handle(settings, Credentials())
    try:
        client = client_factory(handle)
    except Exception as e:
        error = e if isinstance(e, ConstructionError) else ConstructionError(str(e))
        logger.error(
            "write_client_construction_failed",
            backend=settings.backend,
            error_type=type(error).__name__,
            error=str(error),
        )
        return None

    logger.info("write_client_initialized", backend=settings.backend)
    return client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown tasks:
    - Startup: Log the effective listen address and backend
    - Shutdown: Close the shared write client

    Args:
        app: FastAPI application instance

    Yields:
        None
    """
    settings: Settings = app.state.settings
    logger.info(
        "application_starting",
        listen_addr=settings.listen_addr,
        backend=settings.backend,
        splunk_url=settings.splunk_url,
        splunk_hec_url=settings.splunk_hec_url,
        version=__version__,
    )

    yield

    logger.info("application_shutting_down")
    write_client = app.state.write_client
    if write_client is not None:
        try:
            await write_client.close()
            logger.info("write_client_closed")
        except Exception as e:
            logger.error("shutdown_error", error=str(e), exc_info=True)


def create_app(
    settings: Settings | None = None,
    metrics: GatewayMetrics | None = None,
    client_factory: ClientFactory | None = None,
) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Gateway settings (defaults to the process-wide settings)
        metrics: Counters to update (defaults to the process-wide metrics)
        client_factory: Builds a backend client from a handle (defaults to
            the factory for ``settings.backend``)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()
    metrics = metrics or get_metrics()
    client_factory = client_factory or make_client_factory(settings.backend)

    app = FastAPI(
        title="ropee",
        description="Prometheus remote storage gateway for Splunk",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.metrics = metrics
    app.state.client_factory = client_factory
    app.state.write_client = create_write_client(settings, client_factory)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(remote_router)
    app.include_router(metrics_router)
    app.include_router(health_router)

    logger.debug("application_created", title=app.title, version=app.version)
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers.

    Error bodies are plain text: the detail followed by a newline.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(GatewayAPIException)
    async def gateway_api_exception_handler(
        request: Request,
        exc: GatewayAPIException,
    ) -> PlainTextResponse:
        """Handle GatewayAPIException and all subclasses."""
        return PlainTextResponse(
            f"{exc.detail}\n",
            status_code=exc.status_code,
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> PlainTextResponse:
        """Handle unexpected exceptions."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error(
            "unexpected_error",
            path=request.url.path,
            error=str(exc),
            request_id=request_id,
            exc_info=True,
        )
        return PlainTextResponse(
            "Internal server error\n",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
