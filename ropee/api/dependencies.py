"""FastAPI dependencies for the ropee gateway.

This module provides dependency injection for:
- Process-wide settings and metrics stored on the application
- The shared write client and the per-request client factory
- Caller credential extraction from the Authorization header
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from ropee.backend import BackendClient, BackendClientHandle, ClientFactory
from ropee.config import Settings
from ropee.metrics import GatewayMetrics
from ropee.remote.models import Credentials
from ropee.remote.parser import RemoteRequestParser


def build_backend_handle(settings: Settings, credentials: Credentials) -> BackendClientHandle:
    """Build a backend handle from settings and the given credentials.

    Args:
        settings: Gateway settings
        credentials: Caller credentials (read) or static empty credentials (write)

    Returns:
        Immutable BackendClientHandle
    """
    return BackendClientHandle(
        url=settings.splunk_url,
        hec_url=settings.splunk_hec_url,
        hec_token=settings.splunk_hec_token,
        credentials=credentials,
        index=settings.splunk_metrics_index,
        sourcetype=settings.splunk_metrics_sourcetype,
        timeout_seconds=settings.timeout_seconds,
        verify_tls=settings.verify_tls,
    )


def get_gateway_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway_metrics(request: Request) -> GatewayMetrics:
    return request.app.state.metrics


def get_write_client(request: Request) -> BackendClient | None:
    """Return the shared write client, or None if it failed to construct."""
    return request.app.state.write_client


def get_client_factory(request: Request) -> ClientFactory:
    return request.app.state.client_factory


async def get_caller_credentials(
    authorization: Annotated[str | None, Header()] = None,
) -> Credentials:
    """Extract HTTP Basic credentials, empty when absent.

    Args:
        authorization: Authorization header

    Returns:
        Credentials of the caller

    Example:
        @router.post("/read")
        async def read(credentials: CallerCredentials):
            ...
    """
    return RemoteRequestParser.basic_auth(authorization)


GatewaySettings = Annotated[Settings, Depends(get_gateway_settings)]
Metrics = Annotated[GatewayMetrics, Depends(get_gateway_metrics)]
WriteClient = Annotated[BackendClient | None, Depends(get_write_client)]
ReadClientFactory = Annotated[ClientFactory, Depends(get_client_factory)]
CallerCredentials = Annotated[Credentials, Depends(get_caller_credentials)]
