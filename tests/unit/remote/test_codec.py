"""Tests for the remote storage wire codec."""

import math

import pytest
import snappy

from ropee.exceptions import DecodeError, FramingError, ProtocolError
from ropee.remote import prompb
from ropee.remote.codec import CONTENT_ENCODING, CONTENT_TYPE, RemoteCodec
from ropee.remote.models import (
    Exemplar,
    Label,
    LabelMatcher,
    MatchType,
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


@pytest.fixture
def write_batch():
    return WriteBatch(
        timeseries=(
            TimeSeries.from_labels(
                {"__name__": "up", "job": "node", "instance": "a:9100"},
                [Sample(1000, 1.0), Sample(2000, 0.0)],
            ),
            TimeSeries(
                labels=(Label("__name__", "http_requests_total"), Label("code", "200")),
                samples=(Sample(1500, 42.5),),
                exemplars=(Exemplar((Label("trace_id", "abc"),), 1.0, 1500),),
            ),
        ),
        metadata=(
            MetricMetadata(MetricType.COUNTER, "http_requests_total", "Requests.", ""),
        ),
    )


@pytest.fixture
def read_query():
    return ReadQuery(
        queries=(
            QuerySpec(
                start_timestamp_ms=0,
                end_timestamp_ms=10_000,
                matchers=(
                    LabelMatcher(MatchType.EQ, "__name__", "up"),
                    LabelMatcher(MatchType.RE, "job", "node|api"),
                ),
                hints=ReadHints(step_ms=15_000, func="rate", grouping=("job",), by=True),
            ),
            QuerySpec(
                start_timestamp_ms=5,
                end_timestamp_ms=5,
                matchers=(LabelMatcher(MatchType.NEQ, "job", "batch"),),
            ),
        )
    )


class TestConstants:
    """Test protocol header constants."""

    def test_content_headers(self):
        assert CONTENT_TYPE == "application/x-protobuf"
        assert CONTENT_ENCODING == "snappy"


class TestWriteRequest:
    """Test remote write request decoding."""

    def test_round_trip(self, write_batch):
        """Decoding an encoded batch yields an equal batch."""
        body = RemoteCodec.encode_write_request(write_batch)
        assert RemoteCodec.decode_write_request(body) == write_batch

    def test_decode_preserves_input_order(self):
        """Series and samples keep wire order, even when unsorted."""
        message = prompb.WriteRequest(
            timeseries=[
                prompb.TimeSeries(
                    labels=[prompb.Label(name="__name__", value="z")],
                    samples=[
                        prompb.Sample(value=3.0, timestamp=30),
                        prompb.Sample(value=1.0, timestamp=10),
                    ],
                ),
                prompb.TimeSeries(labels=[prompb.Label(name="__name__", value="a")]),
            ]
        )
        body = snappy.compress(message.SerializeToString())

        batch = RemoteCodec.decode_write_request(body)

        assert [ts.metric_name for ts in batch.timeseries] == ["z", "a"]
        assert batch.timeseries[0].samples == (Sample(30, 3.0), Sample(10, 1.0))

    def test_decode_special_values(self):
        """NaN and infinities survive decoding."""
        batch = WriteBatch(
            timeseries=(
                TimeSeries.from_labels(
                    {"__name__": "x"},
                    [Sample(1, float("nan")), Sample(2, float("inf")), Sample(3, float("-inf"))],
                ),
            )
        )
        decoded = RemoteCodec.decode_write_request(RemoteCodec.encode_write_request(batch))
        values = [s.value for s in decoded.timeseries[0].samples]
        assert math.isnan(values[0])
        assert values[1:] == [float("inf"), float("-inf")]

    def test_empty_write_request_is_valid(self):
        """A compressed empty message decodes to an empty batch."""
        batch = RemoteCodec.decode_write_request(snappy.compress(b""))
        assert batch == WriteBatch(timeseries=())

    def test_unknown_metric_type_falls_back(self):
        message = prompb.WriteRequest(
            metadata=[prompb.MetricMetadata(type=42, metric_family_name="m")]
        )
        batch = RemoteCodec.decode_write_request(snappy.compress(message.SerializeToString()))
        assert batch.metadata[0].type is MetricType.UNKNOWN

    def test_duplicate_label_names_rejected(self):
        message = prompb.WriteRequest(
            timeseries=[
                prompb.TimeSeries(
                    labels=[
                        prompb.Label(name="job", value="a"),
                        prompb.Label(name="job", value="b"),
                    ]
                )
            ]
        )
        with pytest.raises(ProtocolError) as exc_info:
            RemoteCodec.decode_write_request(snappy.compress(message.SerializeToString()))
        assert "duplicate label name" in str(exc_info.value)


class TestMalformedPayloads:
    """Test rejection of malformed bodies."""

    def test_empty_payload(self):
        with pytest.raises(FramingError) as exc_info:
            RemoteCodec.decode_write_request(b"")
        assert str(exc_info.value).startswith("snappy:")

    def test_not_snappy(self):
        with pytest.raises(FramingError):
            RemoteCodec.decode_write_request(b"\xff\xff\xff\xff\xff\xff")

    def test_snappy_wrapped_garbage(self):
        """Valid compression around bytes that are not a protobuf message."""
        with pytest.raises(ProtocolError) as exc_info:
            RemoteCodec.decode_write_request(snappy.compress(b"\x0a\x05ab"))
        assert str(exc_info.value).startswith("proto: cannot parse WriteRequest")

    def test_truncated_prefixes_rejected(self, write_batch):
        """Every proper prefix of a valid body fails to decode."""
        body = RemoteCodec.encode_write_request(write_batch)
        for size in range(len(body)):
            with pytest.raises(DecodeError):
                RemoteCodec.decode_write_request(body[:size])

    def test_truncated_read_request_rejected(self, read_query):
        body = RemoteCodec.encode_read_request(read_query)
        for size in range(len(body)):
            with pytest.raises(DecodeError):
                RemoteCodec.decode_read_request(body[:size])


class TestReadRequest:
    """Test remote read request decoding."""

    def test_round_trip(self, read_query):
        body = RemoteCodec.encode_read_request(read_query)
        assert RemoteCodec.decode_read_request(body) == read_query

    def test_hints_absent_stay_absent(self, read_query):
        decoded = RemoteCodec.decode_read_request(RemoteCodec.encode_read_request(read_query))
        assert decoded.queries[0].hints is not None
        assert decoded.queries[1].hints is None

    def test_accepted_response_types(self):
        query = ReadQuery(
            queries=(QuerySpec(0, 1),),
            accepted_response_types=(ResponseType.STREAMED_XOR_CHUNKS, ResponseType.SAMPLES),
        )
        decoded = RemoteCodec.decode_read_request(RemoteCodec.encode_read_request(query))
        assert decoded.accepted_response_types == (
            ResponseType.STREAMED_XOR_CHUNKS,
            ResponseType.SAMPLES,
        )

    def test_unknown_response_type_rejected(self):
        message = prompb.ReadRequest(accepted_response_types=[9])
        with pytest.raises(ProtocolError):
            RemoteCodec.decode_read_request(snappy.compress(message.SerializeToString()))

    def test_inverted_range_rejected(self):
        message = prompb.ReadRequest(
            queries=[prompb.Query(start_timestamp_ms=10, end_timestamp_ms=5)]
        )
        with pytest.raises(ProtocolError) as exc_info:
            RemoteCodec.decode_read_request(snappy.compress(message.SerializeToString()))
        assert "after end" in str(exc_info.value)

    def test_invalid_regex_rejected(self):
        message = prompb.ReadRequest(
            queries=[
                prompb.Query(
                    start_timestamp_ms=0,
                    end_timestamp_ms=1,
                    matchers=[prompb.LabelMatcher(type=2, name="job", value="(")],
                )
            ]
        )
        with pytest.raises(ProtocolError):
            RemoteCodec.decode_read_request(snappy.compress(message.SerializeToString()))

    def test_unknown_matcher_type_rejected(self):
        message = prompb.ReadRequest(
            queries=[
                prompb.Query(
                    start_timestamp_ms=0,
                    end_timestamp_ms=1,
                    matchers=[prompb.LabelMatcher(type=7, name="job", value="x")],
                )
            ]
        )
        with pytest.raises(ProtocolError):
            RemoteCodec.decode_read_request(snappy.compress(message.SerializeToString()))


class TestReadResponse:
    """Test remote read response encoding."""

    def test_round_trip_preserves_result_order(self):
        result = ReadResult(
            results=(
                QueryResultSet(
                    timeseries=(TimeSeries.from_labels({"__name__": "b"}, [Sample(1, 2.0)]),)
                ),
                QueryResultSet(),
                QueryResultSet(
                    timeseries=(TimeSeries.from_labels({"__name__": "a"}, [Sample(1, 1.0)]),)
                ),
            )
        )
        decoded = RemoteCodec.decode_read_response(RemoteCodec.encode_read_response(result))
        assert decoded == result

    def test_encoding_is_deterministic(self):
        result = ReadResult(
            results=(
                QueryResultSet(
                    timeseries=(
                        TimeSeries.from_labels({"__name__": "up", "job": "x"}, [Sample(1, 1.0)]),
                    )
                ),
            )
        )
        assert RemoteCodec.encode_read_response(result) == RemoteCodec.encode_read_response(result)

    def test_empty_result(self):
        decoded = RemoteCodec.decode_read_response(RemoteCodec.encode_read_response(ReadResult()))
        assert decoded.results == ()


class TestStatistics:
    """Test write batch statistics."""

    def test_statistics(self, write_batch):
        stats = RemoteCodec.get_statistics(write_batch)
        assert stats["total_time_series"] == 2
        assert stats["total_samples"] == 3
        assert stats["total_exemplars"] == 1
        assert stats["total_metadata"] == 1
        assert stats["unique_metrics"] == 2
        assert stats["min_timestamp"] == 1000
        assert stats["max_timestamp"] == 2000

    def test_statistics_empty(self):
        stats = RemoteCodec.get_statistics(WriteBatch(timeseries=()))
        assert stats["total_samples"] == 0
        assert stats["min_timestamp"] is None
