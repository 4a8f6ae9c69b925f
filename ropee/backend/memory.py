"""In-memory backend client.

Stores samples in a process-local dict. Useful for:
- Unit tests that don't need a real backend
- Development environments (``--backend memory``)
- Exercising the gateway end to end without Splunk
"""

import threading

from ropee.backend.base import BackendClient, BackendClientHandle
from ropee.remote.models import (
    Label,
    QueryResultSet,
    ReadQuery,
    ReadResult,
    Sample,
    TimeSeries,
    WriteBatch,
)

SeriesKey = tuple[Label, ...]


class MemoryStore:
    """Thread-safe sample store keyed by sorted label set.

    A later sample with the same timestamp replaces the earlier one.
    """

    def __init__(self) -> None:
        self._series: dict[SeriesKey, dict[int, float]] = {}
        self._lock = threading.Lock()

    def append(self, batch: WriteBatch) -> None:
        with self._lock:
            for ts in batch.timeseries:
                key = tuple(sorted(ts.labels, key=lambda label: label.name))
                points = self._series.setdefault(key, {})
                for sample in ts.samples:
                    points[sample.timestamp_ms] = sample.value

    def snapshot(self) -> dict[SeriesKey, dict[int, float]]:
        with self._lock:
            return {key: dict(points) for key, points in self._series.items()}

    def clear(self) -> None:
        with self._lock:
            self._series.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)


default_store = MemoryStore()


class MemoryBackendClient(BackendClient):
    """Backend client over a MemoryStore.

    All handles share ``default_store`` unless a store is given, so the write
    client and per-request read clients see the same data.
    """

    def __init__(self, handle: BackendClientHandle, store: MemoryStore | None = None) -> None:
        super().__init__(handle)
        self.store = store if store is not None else default_store

    async def write(self, batch: WriteBatch) -> None:
        self.store.append(batch)

    async def read(self, query: ReadQuery) -> ReadResult:
        snapshot = self.store.snapshot()
        results = []
        for spec in query.queries:
            matched = []
            for key, points in snapshot.items():
                labels = {label.name: label.value for label in key}
                if not spec.matches(labels):
                    continue
                samples = tuple(
                    Sample(timestamp_ms, points[timestamp_ms])
                    for timestamp_ms in sorted(points)
                    if spec.contains(timestamp_ms)
                )
                if samples:
                    matched.append(TimeSeries(labels=key, samples=samples))
            results.append(QueryResultSet(timeseries=tuple(matched)))
        return ReadResult(results=tuple(results))
