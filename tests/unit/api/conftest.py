"""Fixtures for API tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from ropee.api.app import create_app
from ropee.backend.base import BackendClient, BackendClientHandle
from ropee.backend.memory import MemoryBackendClient
from ropee.exceptions import BackendError
from ropee.remote.models import ReadQuery, ReadResult, WriteBatch


class FakeBackendClient(BackendClient):
    """Backend client that records calls and can fail or stall on demand."""

    def __init__(self, handle: BackendClientHandle, factory: "RecordingFactory") -> None:
        super().__init__(handle)
        self.factory = factory
        self.closed = False

    async def write(self, batch: WriteBatch) -> None:
        self.factory.writes.append((self.handle, batch))
        if self.factory.delay:
            await asyncio.sleep(self.factory.delay)
        if self.factory.error:
            raise BackendError(self.factory.error, operation="write")

    async def read(self, query: ReadQuery) -> ReadResult:
        self.factory.reads.append((self.handle, query))
        if self.factory.delay:
            await asyncio.sleep(self.factory.delay)
        if self.factory.error:
            raise BackendError(self.factory.error, operation="read")
        if self.factory.read_result is not None:
            return self.factory.read_result
        return await MemoryBackendClient(self.handle, store=self.factory.store).read(query)

    async def close(self) -> None:
        self.closed = True


class RecordingFactory:
    """Client factory that records every handle it is given."""

    def __init__(self, store) -> None:
        self.store = store
        self.handles: list[BackendClientHandle] = []
        self.clients: list[FakeBackendClient] = []
        self.writes: list = []
        self.reads: list = []
        self.error: str | None = None
        self.delay: float = 0
        self.read_result: ReadResult | None = None

    def __call__(self, handle: BackendClientHandle) -> FakeBackendClient:
        self.handles.append(handle)
        client = FakeBackendClient(handle, self)
        self.clients.append(client)
        return client


@pytest.fixture
def factory(memory_store):
    return RecordingFactory(memory_store)


@pytest.fixture
def app(settings, metrics, factory):
    return create_app(settings=settings, metrics=metrics, client_factory=factory)


@pytest.fixture
def client(app):
    return TestClient(app)
