"""Splunk backend client.

Samples are written through the HTTP Event Collector (HEC) as JSON events,
one event per sample, and read back through the search export endpoint of
the management API using the caller's Basic credentials.

Event layout (``_raw`` of each indexed event):

    {"labels": {"__name__": "up", "job": "node"}, "value": "1.0", "timestamp": 1000}

Values are strings so NaN and infinities survive JSON.
"""

import asyncio
import json
import logging
import math
from collections import defaultdict
from typing import Any, Iterator

import httpx

from ropee.backend.base import BackendClient, BackendClientHandle
from ropee.exceptions import BackendError, BackendTimeoutError
from ropee.remote.models import (
    Label,
    QueryResultSet,
    QuerySpec,
    ReadQuery,
    ReadResult,
    Sample,
    TimeSeries,
    WriteBatch,
)

logger = logging.getLogger(__name__)

HEC_EVENT_PATH = "/services/collector/event"
SEARCH_EXPORT_PATH = "/services/search/jobs/export"
EVENT_SOURCE = "ropee"


def format_value(value: float) -> str:
    """Render a sample value the way Prometheus does."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(value)


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class SplunkHECClient(BackendClient):
    """Backend client for Splunk HEC (write) and search export (read).

    The client holds only its immutable handle; every call opens its own
    ``httpx.AsyncClient``, so one instance can serve concurrent requests.

    Example:
        handle = BackendClientHandle(
            url="https://splunk:8089",
            hec_url="https://splunk:8088",
            hec_token="...",
            credentials=Credentials("admin", "changeme"),
        )
        async with SplunkHECClient(handle) as client:
            result = await client.read(query)
    """

    def __init__(
        self,
        handle: BackendClientHandle,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(handle)
        self._transport = transport

    def _http_client(self, auth: httpx.BasicAuth | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            auth=auth,
            timeout=httpx.Timeout(self.handle.timeout_seconds),
            verify=self.handle.verify_tls,
            transport=self._transport,
        )

    def build_events(self, batch: WriteBatch) -> Iterator[dict[str, Any]]:
        """Yield one HEC event per sample, preserving batch order."""
        for ts in batch.timeseries:
            labels = ts.label_map
            for sample in ts.samples:
                event: dict[str, Any] = {
                    "time": sample.timestamp_ms / 1000.0,
                    "source": EVENT_SOURCE,
                    "sourcetype": self.handle.sourcetype,
                    "event": {
                        "labels": labels,
                        "value": format_value(sample.value),
                        "timestamp": sample.timestamp_ms,
                    },
                }
                if self.handle.index and self.handle.index != "*":
                    event["index"] = self.handle.index
                yield event

    async def write(self, batch: WriteBatch) -> None:
        body = "\n".join(
            json.dumps(event, separators=(",", ":")) for event in self.build_events(batch)
        )
        if not body:
            logger.debug("Write batch carries no samples, nothing sent to HEC")
            return

        headers = {"Authorization": f"Splunk {self.handle.hec_token}"}
        url = f"{self.handle.hec_url}{HEC_EVENT_PATH}"
        try:
            async with self._http_client() as client:
                response = await client.post(url, content=body, headers=headers)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError("write", self.handle.timeout_seconds) from e
        except httpx.HTTPError as e:
            raise BackendError(f"write: {e}", operation="write") from e

        self._raise_for_status(response, "write")
        logger.debug(f"HEC accepted {batch.sample_count} samples")

    def build_search(self, spec: QuerySpec) -> str:
        """Build the SPL search that selects candidate events for a query.

        Only index and sourcetype narrow the search; label matchers and the
        inclusive time range are applied to the returned events.
        """
        index = "*" if self.handle.index in ("", "*") else _quote(self.handle.index)
        return f"search index={index} sourcetype={_quote(self.handle.sourcetype)}"

    async def read(self, query: ReadQuery) -> ReadResult:
        credentials = self.handle.credentials
        auth = None
        if not credentials.is_anonymous:
            auth = httpx.BasicAuth(credentials.username, credentials.password)

        try:
            async with self._http_client(auth=auth) as client:
                outcomes = await asyncio.gather(
                    *(self._run_query(client, spec) for spec in query.queries),
                    return_exceptions=True,
                )
        except httpx.HTTPError as e:
            raise BackendError(f"read: {e}", operation="read") from e

        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        return ReadResult(results=tuple(outcomes))

    async def _run_query(self, client: httpx.AsyncClient, spec: QuerySpec) -> QueryResultSet:
        data = {
            "search": self.build_search(spec),
            "output_mode": "json",
            "earliest_time": f"{spec.start_timestamp_ms / 1000.0:.3f}",
            "latest_time": f"{(spec.end_timestamp_ms + 1) / 1000.0:.3f}",
        }
        url = f"{self.handle.url}{SEARCH_EXPORT_PATH}"
        try:
            response = await client.post(url, data=data)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError("read", self.handle.timeout_seconds) from e
        except httpx.HTTPError as e:
            raise BackendError(f"read: {e}", operation="read") from e

        self._raise_for_status(response, "read")
        try:
            return self.parse_export(response.text, spec)
        except BackendError:
            raise
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            raise BackendError(f"read: malformed search export: {e}", operation="read") from e

    @staticmethod
    def parse_export(body: str, spec: QuerySpec) -> QueryResultSet:
        """Group exported events into series that satisfy the query.

        Raises:
            BackendError: If the export stream reports a search error
                or carries a malformed message
        """
        points: dict[tuple[Label, ...], dict[int, float]] = defaultdict(dict)

        for line in body.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError:
                logger.debug(f"Skipping non-JSON export line: {line[:200]}")
                continue
            if not isinstance(row, dict):
                continue

            for message in row.get("messages") or []:
                if not isinstance(message, dict):
                    raise BackendError(
                        f"read: malformed search export message: {message!r}", operation="read"
                    )
                if message.get("type") in ("ERROR", "FATAL"):
                    raise BackendError(str(message.get("text", "search failed")), operation="read")

            result = row.get("result")
            if not result or "_raw" not in result:
                continue

            try:
                event = json.loads(result["_raw"])
                labels = {str(k): str(v) for k, v in event["labels"].items()}
                timestamp_ms = int(event["timestamp"])
                value = float(event["value"])
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.debug(f"Skipping event that is not a ropee sample: {e}")
                continue

            if not spec.contains(timestamp_ms) or not spec.matches(labels):
                continue

            key = tuple(Label(name, labels[name]) for name in sorted(labels))
            points[key][timestamp_ms] = value

        timeseries = tuple(
            TimeSeries(
                labels=key,
                samples=tuple(Sample(t, samples[t]) for t in sorted(samples)),
            )
            for key, samples in sorted(
                points.items(), key=lambda item: [(l.name, l.value) for l in item[0]]
            )
        )
        return QueryResultSet(timeseries=timeseries)

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.status_code < 400:
            return

        text = response.text.strip()
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            if "text" in payload:
                text = str(payload["text"])
            elif isinstance(payload.get("messages"), list) and payload["messages"]:
                text = "; ".join(
                    str(m.get("text", "")) if isinstance(m, dict) else str(m)
                    for m in payload["messages"]
                )

        raise BackendError(
            f"{operation}: server returned HTTP status {response.status_code}: {text}",
            operation=operation,
            status_code=response.status_code,
        )
