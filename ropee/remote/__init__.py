"""Prometheus remote storage protocol support for ropee.

This module provides the wire codec (Snappy + Protobuf), the immutable
domain model of write and read payloads, and HTTP request inspection.
"""

from ropee.remote.codec import CONTENT_ENCODING, CONTENT_TYPE, RemoteCodec
from ropee.remote.models import (
    Credentials,
    Label,
    LabelMatcher,
    MatchType,
    QueryResultSet,
    QuerySpec,
    ReadQuery,
    ReadResult,
    Sample,
    TimeSeries,
    WriteBatch,
)
from ropee.remote.parser import RemoteRequestParser

__all__ = [
    "CONTENT_ENCODING",
    "CONTENT_TYPE",
    "RemoteCodec",
    "RemoteRequestParser",
    "Label",
    "LabelMatcher",
    "Credentials",
    "MatchType",
    "QueryResultSet",
    "QuerySpec",
    "ReadQuery",
    "ReadResult",
    "Sample",
    "TimeSeries",
    "WriteBatch",
]
