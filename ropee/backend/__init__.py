"""Backend client system for ropee.

This module provides the backend abstraction with support for:
- Splunk HEC writes and search-export reads
- A process-local in-memory store (development and tests)
- Per-request client construction from an immutable handle

Usage:
    handle = BackendClientHandle(url=..., hec_url=..., credentials=Credentials("u", "p"))
    client = get_backend_client("splunk", handle)
    async with client:
        result = await client.read(query)
"""

from ropee.backend.base import (
    BackendClient,
    BackendClientHandle,
    ClientFactory,
    call_with_deadline,
)
from ropee.exceptions import ConstructionError

__all__ = [
    "BackendClient",
    "BackendClientHandle",
    "ClientFactory",
    "call_with_deadline",
    "get_backend_client",
    "make_client_factory",
]

BACKEND_TYPES = ("splunk", "memory")


def get_backend_client(backend_type: str, handle: BackendClientHandle) -> BackendClient:
    """Create a backend client instance.

    Args:
        backend_type: Type of backend ("splunk", "memory")
        handle: URLs, credentials, routing labels and timeout for the client

    Returns:
        Configured BackendClient instance

    Raises:
        ConstructionError: If backend_type is unknown or the handle is invalid

    Examples:
        Splunk backend:
        >>> client = get_backend_client("splunk", handle)

        In-memory backend (for development and testing):
        >>> client = get_backend_client("memory", handle)
    """
    handle.validate()

    if backend_type == "splunk":
        from ropee.backend.splunk import SplunkHECClient

        return SplunkHECClient(handle)

    if backend_type == "memory":
        from ropee.backend.memory import MemoryBackendClient

        return MemoryBackendClient(handle)

    raise ConstructionError(
        f"Unknown backend type: {backend_type}. Supported types: {', '.join(BACKEND_TYPES)}",
        backend=backend_type,
    )


def make_client_factory(backend_type: str) -> ClientFactory:
    """Bind a backend type into a handle -> client factory."""

    def factory(handle: BackendClientHandle) -> BackendClient:
        return get_backend_client(backend_type, handle)

    return factory
