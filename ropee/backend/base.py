"""Backend client interface for ropee.

This module provides the abstract contract the gateway depends on to store
and query samples, plus the immutable handle a client is built from.

Key Design Principles:
- Clients are configured entirely by a BackendClientHandle
- All operations are async and bounded by the handle's timeout
- Once constructed, a client is safe for concurrent use by multiple callers
- Read results correspond positionally to the queries they answer
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

import httpx

from ropee.exceptions import BackendTimeoutError, ConstructionError
from ropee.remote.models import Credentials, ReadQuery, ReadResult, WriteBatch

T = TypeVar("T")


@dataclass(frozen=True)
class BackendClientHandle:
    """Everything needed to build a backend client.

    Read requests get a fresh handle carrying the caller's credentials; the
    write handle is built once at startup with static credentials and shared.
    """

    url: str
    hec_url: str
    hec_token: str = field(default="", repr=False)
    credentials: Credentials = field(default_factory=Credentials)
    index: str = "*"
    sourcetype: str = "prometheus_metrics"
    timeout_seconds: float = 60.0
    verify_tls: bool = True

    def validate(self) -> None:
        """Check the handle can back a client.

        Raises:
            ConstructionError: If a URL is malformed or the timeout is not positive
        """
        for name, value in (("url", self.url), ("hec_url", self.hec_url)):
            try:
                parsed = httpx.URL(value)
            except (httpx.InvalidURL, TypeError) as e:
                raise ConstructionError(f"invalid {name} {value!r}: {e}") from e
            if parsed.scheme not in ("http", "https") or not parsed.host:
                raise ConstructionError(
                    f"invalid {name} {value!r}: expected an http(s) URL with a host"
                )

        if self.timeout_seconds <= 0:
            raise ConstructionError(
                f"timeout must be positive, got {self.timeout_seconds}"
            )


class BackendClient(ABC):
    """Abstract base class for time-series backend clients.

    Concrete implementations store write batches and answer read queries.
    Precondition for the gateway: backend client instances are safe for
    concurrent use by multiple callers once constructed.

    Clients are async context managers so a per-request client can be scoped
    to the request that created it:

        async with client:
            result = await client.read(query)
    """

    def __init__(self, handle: BackendClientHandle) -> None:
        self.handle = handle

    @property
    def credentials(self) -> Credentials:
        return self.handle.credentials

    @abstractmethod
    async def write(self, batch: WriteBatch) -> None:
        """Store a write batch as a single unit.

        Args:
            batch: Decoded batch, forwarded in input order

        Raises:
            BackendError: If the backend rejects or fails the write
            BackendTimeoutError: If the call exceeds the handle's timeout
        """
        pass

    @abstractmethod
    async def read(self, query: ReadQuery) -> ReadResult:
        """Answer every query of a read request.

        Args:
            query: Decoded read request

        Returns:
            ReadResult with one result set per query, in query order

        Raises:
            BackendError: If the backend fails the search
            BackendTimeoutError: If the call exceeds the handle's timeout
        """
        pass

    async def close(self) -> None:
        """Release resources held by the client."""
        pass

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


ClientFactory = Callable[[BackendClientHandle], BackendClient]


async def call_with_deadline(
    call: Awaitable[T], timeout_seconds: float, operation: str
) -> T:
    """Await a backend call, abandoning it once the timeout elapses.

    A timed-out call is not rolled back inside the backend.

    Raises:
        BackendTimeoutError: If the call does not finish within timeout_seconds
    """
    try:
        return await asyncio.wait_for(call, timeout=timeout_seconds)
    except asyncio.TimeoutError as e:
        raise BackendTimeoutError(operation, timeout_seconds) from e
