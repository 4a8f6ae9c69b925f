"""Prometheus remote storage wire codec.

This module decodes and encodes the remote write and remote read payloads:
Snappy block compression around Protobuf messages.
"""

import logging
from typing import Any, Dict

import snappy
from google.protobuf.message import DecodeError as ProtobufDecodeError

from ropee.exceptions import FramingError, ProtocolError
from ropee.remote import prompb
from ropee.remote.models import (
    Exemplar,
    Label,
    LabelMatcher,
    MetricMetadata,
    MetricType,
    QueryResultSet,
    QuerySpec,
    ReadHints,
    ReadQuery,
    ReadResult,
    ResponseType,
    Sample,
    TimeSeries,
    WriteBatch,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE = "application/x-protobuf"
CONTENT_ENCODING = "snappy"


class RemoteCodec:
    """Codec for the Prometheus remote storage protocol.

    Protocol details:
    - Content-Type: application/x-protobuf
    - Content-Encoding: snappy (block format, not the framed stream format)
    - Body: Snappy-compressed Protobuf WriteRequest, ReadRequest or ReadResponse

    Every ``decode_*`` method raises ``FramingError`` when the compression
    envelope is empty, truncated or corrupt, and ``ProtocolError`` when the
    decompressed bytes are not a well-formed message of the expected type.

    Example:
        codec = RemoteCodec()

        batch = codec.decode_write_request(request_body)
        print(f"Received {len(batch.timeseries)} time series")

        body = codec.encode_read_response(result)
    """

    @staticmethod
    def decompress(compressed_data: bytes) -> bytes:
        """Undo the Snappy envelope.

        Args:
            compressed_data: Snappy block-compressed bytes

        Returns:
            bytes: Decompressed message bytes

        Raises:
            FramingError: If the payload is empty or not valid Snappy
        """
        if not compressed_data:
            raise FramingError("empty payload", size=0)

        try:
            decompressed = snappy.decompress(compressed_data)
        except snappy.UncompressError as e:
            raise FramingError(f"corrupt input: {e}", size=len(compressed_data)) from e
        except Exception as e:
            raise FramingError(f"corrupt input: {e}", size=len(compressed_data)) from e

        logger.debug(
            f"Decompressed {len(compressed_data)} bytes to {len(decompressed)} bytes"
        )
        return decompressed

    @staticmethod
    def compress(data: bytes) -> bytes:
        return snappy.compress(data)

    @staticmethod
    def _parse(message_cls, data: bytes):
        message = message_cls()
        try:
            message.ParseFromString(data)
        except ProtobufDecodeError as e:
            raise ProtocolError(message_cls.DESCRIPTOR.name, str(e)) from e
        return message

    @classmethod
    def _serialize(cls, message) -> bytes:
        return cls.compress(message.SerializeToString(deterministic=True))

    @classmethod
    def decode_write_request(cls, compressed_data: bytes) -> WriteBatch:
        """Decode a remote write request body.

        Args:
            compressed_data: Snappy-compressed Protobuf WriteRequest

        Returns:
            WriteBatch: Decoded batch, series and samples in input order

        Raises:
            FramingError: If decompression fails
            ProtocolError: If the message is malformed or breaks a series invariant

        Example:
            >>> batch = RemoteCodec.decode_write_request(request_body)
            >>> print(f"Received {batch.sample_count} samples")
        """
        message = cls._parse(prompb.WriteRequest, cls.decompress(compressed_data))
        try:
            batch = write_batch_from_proto(message)
        except ValueError as e:
            raise ProtocolError("WriteRequest", str(e)) from e

        logger.debug(
            f"Decoded WriteRequest with {len(batch.timeseries)} time series, "
            f"{len(batch.metadata)} metadata entries"
        )
        return batch

    @classmethod
    def encode_write_request(cls, batch: WriteBatch) -> bytes:
        return cls._serialize(write_batch_to_proto(batch))

    @classmethod
    def decode_read_request(cls, compressed_data: bytes) -> ReadQuery:
        """Decode a remote read request body.

        Args:
            compressed_data: Snappy-compressed Protobuf ReadRequest

        Returns:
            ReadQuery: Decoded queries in request order

        Raises:
            FramingError: If decompression fails
            ProtocolError: If the message is malformed, a query range is
                inverted or a regex matcher does not compile
        """
        message = cls._parse(prompb.ReadRequest, cls.decompress(compressed_data))
        try:
            query = read_query_from_proto(message)
        except ValueError as e:
            raise ProtocolError("ReadRequest", str(e)) from e

        logger.debug(f"Decoded ReadRequest with {len(query.queries)} queries")
        return query

    @classmethod
    def encode_read_request(cls, query: ReadQuery) -> bytes:
        return cls._serialize(read_query_to_proto(query))

    @classmethod
    def decode_read_response(cls, compressed_data: bytes) -> ReadResult:
        """Decode a remote read response body (the client side of /read)."""
        message = cls._parse(prompb.ReadResponse, cls.decompress(compressed_data))
        try:
            return read_result_from_proto(message)
        except ValueError as e:
            raise ProtocolError("ReadResponse", str(e)) from e

    @classmethod
    def encode_read_response(cls, result: ReadResult) -> bytes:
        """Serialize and compress a read result.

        Encoding is deterministic for a given result.
        """
        return cls._serialize(read_result_to_proto(result))

    @staticmethod
    def get_statistics(batch: WriteBatch) -> Dict[str, Any]:
        """Get statistics about a write batch.

        Args:
            batch: Decoded write batch

        Returns:
            dict: Series, sample and metric counts plus the timestamp range

        Example:
            >>> stats = RemoteCodec.get_statistics(batch)
            >>> print(f"Total samples: {stats['total_samples']}")
        """
        stats = {
            "total_time_series": len(batch.timeseries),
            "total_samples": 0,
            "total_exemplars": 0,
            "total_metadata": len(batch.metadata),
            "unique_metrics": set(),
            "min_timestamp": None,
            "max_timestamp": None,
        }

        for ts in batch.timeseries:
            stats["total_samples"] += len(ts.samples)
            stats["total_exemplars"] += len(ts.exemplars)

            if ts.metric_name is not None:
                stats["unique_metrics"].add(ts.metric_name)

            for sample in ts.samples:
                if stats["min_timestamp"] is None or sample.timestamp_ms < stats["min_timestamp"]:
                    stats["min_timestamp"] = sample.timestamp_ms
                if stats["max_timestamp"] is None or sample.timestamp_ms > stats["max_timestamp"]:
                    stats["max_timestamp"] = sample.timestamp_ms

        stats["unique_metrics"] = len(stats["unique_metrics"])

        return stats


def _labels_from_proto(labels) -> tuple[Label, ...]:
    return tuple(Label(label.name, label.value) for label in labels)


def _labels_to_proto(labels: tuple[Label, ...]) -> list:
    return [prompb.Label(name=label.name, value=label.value) for label in labels]


def _series_from_proto(ts) -> TimeSeries:
    return TimeSeries(
        labels=_labels_from_proto(ts.labels),
        samples=tuple(Sample(s.timestamp, s.value) for s in ts.samples),
        exemplars=tuple(
            Exemplar(_labels_from_proto(e.labels), e.value, e.timestamp) for e in ts.exemplars
        ),
    )


def _series_to_proto(ts: TimeSeries):
    return prompb.TimeSeries(
        labels=_labels_to_proto(ts.labels),
        samples=[prompb.Sample(value=s.value, timestamp=s.timestamp_ms) for s in ts.samples],
        exemplars=[
            prompb.Exemplar(
                labels=_labels_to_proto(e.labels), value=e.value, timestamp=e.timestamp_ms
            )
            for e in ts.exemplars
        ],
    )


def _metric_type(value: int) -> MetricType:
    try:
        return MetricType(value)
    except ValueError:
        return MetricType.UNKNOWN


def write_batch_from_proto(message) -> WriteBatch:
    return WriteBatch(
        timeseries=tuple(_series_from_proto(ts) for ts in message.timeseries),
        metadata=tuple(
            MetricMetadata(
                type=_metric_type(m.type),
                metric_family_name=m.metric_family_name,
                help=m.help,
                unit=m.unit,
            )
            for m in message.metadata
        ),
    )


def write_batch_to_proto(batch: WriteBatch):
    return prompb.WriteRequest(
        timeseries=[_series_to_proto(ts) for ts in batch.timeseries],
        metadata=[
            prompb.MetricMetadata(
                type=int(m.type),
                metric_family_name=m.metric_family_name,
                help=m.help,
                unit=m.unit,
            )
            for m in batch.metadata
        ],
    )


def _query_from_proto(q) -> QuerySpec:
    hints = None
    if q.HasField("hints"):
        hints = ReadHints(
            step_ms=q.hints.step_ms,
            func=q.hints.func,
            start_ms=q.hints.start_ms,
            end_ms=q.hints.end_ms,
            grouping=tuple(q.hints.grouping),
            by=q.hints.by,
            range_ms=q.hints.range_ms,
        )
    return QuerySpec(
        start_timestamp_ms=q.start_timestamp_ms,
        end_timestamp_ms=q.end_timestamp_ms,
        matchers=tuple(LabelMatcher(m.type, m.name, m.value) for m in q.matchers),
        hints=hints,
    )


def _query_to_proto(q: QuerySpec):
    message = prompb.Query(
        start_timestamp_ms=q.start_timestamp_ms,
        end_timestamp_ms=q.end_timestamp_ms,
        matchers=[
            prompb.LabelMatcher(type=int(m.type), name=m.name, value=m.value)
            for m in q.matchers
        ],
    )
    if q.hints is not None:
        message.hints.SetInParent()
        message.hints.MergeFrom(
            prompb.ReadHints(
                step_ms=q.hints.step_ms,
                func=q.hints.func,
                start_ms=q.hints.start_ms,
                end_ms=q.hints.end_ms,
                grouping=list(q.hints.grouping),
                by=q.hints.by,
                range_ms=q.hints.range_ms,
            )
        )
    return message


def read_query_from_proto(message) -> ReadQuery:
    accepted = []
    for response_type in message.accepted_response_types:
        if response_type not in ResponseType._value2member_map_:
            raise ValueError(f"unknown response type {response_type}")
        accepted.append(ResponseType(response_type))
    return ReadQuery(
        queries=tuple(_query_from_proto(q) for q in message.queries),
        accepted_response_types=tuple(accepted),
    )


def read_query_to_proto(query: ReadQuery):
    return prompb.ReadRequest(
        queries=[_query_to_proto(q) for q in query.queries],
        accepted_response_types=[int(t) for t in query.accepted_response_types],
    )


def read_result_from_proto(message) -> ReadResult:
    return ReadResult(
        results=tuple(
            QueryResultSet(timeseries=tuple(_series_from_proto(ts) for ts in r.timeseries))
            for r in message.results
        )
    )


def read_result_to_proto(result: ReadResult):
    return prompb.ReadResponse(
        results=[
            prompb.QueryResult(timeseries=[_series_to_proto(ts) for ts in r.timeseries])
            for r in result.results
        ]
    )
