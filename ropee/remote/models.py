"""Domain model for remote write and remote read payloads.

All entities are immutable and scoped to a single request. The codec converts
them to and from the protobuf wire messages.
"""

import re
from dataclasses import dataclass, field
from enum import IntEnum
from functools import cached_property
from typing import Iterable, Mapping

METRIC_NAME_LABEL = "__name__"


class MatchType(IntEnum):
    """Label matcher type, numbered as on the wire."""

    EQ = 0
    NEQ = 1
    RE = 2
    NRE = 3


class ResponseType(IntEnum):
    """Remote read response types a client accepts."""

    SAMPLES = 0
    STREAMED_XOR_CHUNKS = 1


class MetricType(IntEnum):
    """Metric family type carried in write metadata."""

    UNKNOWN = 0
    COUNTER = 1
    GAUGE = 2
    HISTOGRAM = 3
    GAUGEHISTOGRAM = 4
    SUMMARY = 5
    INFO = 6
    STATESET = 7


@dataclass(frozen=True)
class Label:
    name: str
    value: str


@dataclass(frozen=True)
class Sample:
    timestamp_ms: int
    value: float


@dataclass(frozen=True)
class Exemplar:
    labels: tuple[Label, ...]
    value: float
    timestamp_ms: int


@dataclass(frozen=True)
class TimeSeries:
    """A labelled series with its samples in input order.

    Raises:
        ValueError: If a label name appears more than once
    """

    labels: tuple[Label, ...]
    samples: tuple[Sample, ...] = ()
    exemplars: tuple[Exemplar, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for label in self.labels:
            if label.name in seen:
                raise ValueError(f"duplicate label name {label.name!r} in series")
            seen.add(label.name)

    @classmethod
    def from_labels(
        cls, labels: Mapping[str, str], samples: Iterable[Sample] = ()
    ) -> "TimeSeries":
        """Build a series from a label mapping, with labels sorted by name."""
        return cls(
            labels=tuple(Label(name, labels[name]) for name in sorted(labels)),
            samples=tuple(samples),
        )

    @property
    def label_map(self) -> dict[str, str]:
        return {label.name: label.value for label in self.labels}

    @property
    def metric_name(self) -> str | None:
        return self.label_map.get(METRIC_NAME_LABEL)


@dataclass(frozen=True)
class MetricMetadata:
    type: MetricType
    metric_family_name: str
    help: str = ""
    unit: str = ""


@dataclass(frozen=True)
class WriteBatch:
    """Decoded remote write request."""

    timeseries: tuple[TimeSeries, ...]
    metadata: tuple[MetricMetadata, ...] = ()

    @property
    def sample_count(self) -> int:
        return sum(len(ts.samples) for ts in self.timeseries)


@dataclass(frozen=True)
class LabelMatcher:
    """A single label selector.

    Follows Prometheus semantics: an absent label compares as the empty
    string, and regular expressions must match the whole value.

    Raises:
        ValueError: If a regex matcher carries an invalid pattern
    """

    type: MatchType
    name: str
    value: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", MatchType(self.type))
        if self.type in (MatchType.RE, MatchType.NRE):
            try:
                self._pattern
            except re.error as e:
                raise ValueError(f"invalid regex {self.value!r} for label {self.name!r}: {e}")

    @cached_property
    def _pattern(self) -> re.Pattern:
        return re.compile(f"^(?:{self.value})$")

    def matches(self, labels: Mapping[str, str]) -> bool:
        actual = labels.get(self.name, "")
        if self.type == MatchType.EQ:
            return actual == self.value
        if self.type == MatchType.NEQ:
            return actual != self.value
        if self.type == MatchType.RE:
            return self._pattern.match(actual) is not None
        return self._pattern.match(actual) is None


@dataclass(frozen=True)
class ReadHints:
    step_ms: int = 0
    func: str = ""
    start_ms: int = 0
    end_ms: int = 0
    grouping: tuple[str, ...] = ()
    by: bool = False
    range_ms: int = 0


@dataclass(frozen=True)
class QuerySpec:
    """One query of a read request over an inclusive millisecond range.

    Raises:
        ValueError: If start_timestamp_ms is after end_timestamp_ms
    """

    start_timestamp_ms: int
    end_timestamp_ms: int
    matchers: tuple[LabelMatcher, ...] = ()
    hints: ReadHints | None = None

    def __post_init__(self) -> None:
        if self.start_timestamp_ms > self.end_timestamp_ms:
            raise ValueError(
                f"query start {self.start_timestamp_ms} is after end {self.end_timestamp_ms}"
            )

    def contains(self, timestamp_ms: int) -> bool:
        return self.start_timestamp_ms <= timestamp_ms <= self.end_timestamp_ms

    def matches(self, labels: Mapping[str, str]) -> bool:
        return all(matcher.matches(labels) for matcher in self.matchers)


@dataclass(frozen=True)
class ReadQuery:
    """Decoded remote read request."""

    queries: tuple[QuerySpec, ...]
    accepted_response_types: tuple[ResponseType, ...] = (ResponseType.SAMPLES,)


@dataclass(frozen=True)
class QueryResultSet:
    timeseries: tuple[TimeSeries, ...] = ()


@dataclass(frozen=True)
class ReadResult:
    """Result sets, positionally matching the queries of a ReadQuery."""

    results: tuple[QueryResultSet, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Credentials:
    """Caller identity passed through to the backend.

    Never persisted or logged; the password is masked in ``repr``.
    """

    username: str = ""
    password: str = ""

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"

    @property
    def is_anonymous(self) -> bool:
        return not self.username and not self.password
