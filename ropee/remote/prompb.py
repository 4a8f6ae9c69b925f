"""Protocol buffer messages of the Prometheus remote storage protocol.

The message descriptors are assembled from ``descriptor_pb2`` protos in a
private descriptor pool, so field numbers and types match the upstream
``prompb/types.proto`` and ``prompb/remote.proto`` without generated code.
Only the wire-relevant subset is described; unknown fields (native histograms,
chunked responses) are preserved by the protobuf runtime when parsing.
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "prometheus"

_F = descriptor_pb2.FieldDescriptorProto


def _field(
    message: descriptor_pb2.DescriptorProto,
    name: str,
    number: int,
    field_type: int,
    type_name: str | None = None,
    repeated: bool = False,
) -> None:
    field = message.field.add(
        name=name,
        number=number,
        type=field_type,
        label=_F.LABEL_REPEATED if repeated else _F.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = f".{PACKAGE}.{type_name}"


def _enum(
    message: descriptor_pb2.DescriptorProto, name: str, values: list[str]
) -> None:
    enum = message.enum_type.add(name=name)
    for number, value_name in enumerate(values):
        enum.value.add(name=value_name, number=number)


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    proto = descriptor_pb2.FileDescriptorProto(
        name="ropee/prompb.proto", package=PACKAGE, syntax="proto3"
    )

    metadata = proto.message_type.add(name="MetricMetadata")
    _enum(
        metadata,
        "MetricType",
        [
            "UNKNOWN",
            "COUNTER",
            "GAUGE",
            "HISTOGRAM",
            "GAUGEHISTOGRAM",
            "SUMMARY",
            "INFO",
            "STATESET",
        ],
    )
    _field(metadata, "type", 1, _F.TYPE_ENUM, "MetricMetadata.MetricType")
    _field(metadata, "metric_family_name", 2, _F.TYPE_STRING)
    _field(metadata, "help", 4, _F.TYPE_STRING)
    _field(metadata, "unit", 5, _F.TYPE_STRING)

    sample = proto.message_type.add(name="Sample")
    _field(sample, "value", 1, _F.TYPE_DOUBLE)
    _field(sample, "timestamp", 2, _F.TYPE_INT64)

    label = proto.message_type.add(name="Label")
    _field(label, "name", 1, _F.TYPE_STRING)
    _field(label, "value", 2, _F.TYPE_STRING)

    exemplar = proto.message_type.add(name="Exemplar")
    _field(exemplar, "labels", 1, _F.TYPE_MESSAGE, "Label", repeated=True)
    _field(exemplar, "value", 2, _F.TYPE_DOUBLE)
    _field(exemplar, "timestamp", 3, _F.TYPE_INT64)

    series = proto.message_type.add(name="TimeSeries")
    _field(series, "labels", 1, _F.TYPE_MESSAGE, "Label", repeated=True)
    _field(series, "samples", 2, _F.TYPE_MESSAGE, "Sample", repeated=True)
    _field(series, "exemplars", 3, _F.TYPE_MESSAGE, "Exemplar", repeated=True)

    matcher = proto.message_type.add(name="LabelMatcher")
    _enum(matcher, "Type", ["EQ", "NEQ", "RE", "NRE"])
    _field(matcher, "type", 1, _F.TYPE_ENUM, "LabelMatcher.Type")
    _field(matcher, "name", 2, _F.TYPE_STRING)
    _field(matcher, "value", 3, _F.TYPE_STRING)

    hints = proto.message_type.add(name="ReadHints")
    _field(hints, "step_ms", 1, _F.TYPE_INT64)
    _field(hints, "func", 2, _F.TYPE_STRING)
    _field(hints, "start_ms", 3, _F.TYPE_INT64)
    _field(hints, "end_ms", 4, _F.TYPE_INT64)
    _field(hints, "grouping", 5, _F.TYPE_STRING, repeated=True)
    _field(hints, "by", 6, _F.TYPE_BOOL)
    _field(hints, "range_ms", 7, _F.TYPE_INT64)

    write_request = proto.message_type.add(name="WriteRequest")
    _field(write_request, "timeseries", 1, _F.TYPE_MESSAGE, "TimeSeries", repeated=True)
    _field(write_request, "metadata", 3, _F.TYPE_MESSAGE, "MetricMetadata", repeated=True)
    write_request.reserved_range.add(start=2, end=3)

    read_request = proto.message_type.add(name="ReadRequest")
    _enum(read_request, "ResponseType", ["SAMPLES", "STREAMED_XOR_CHUNKS"])
    _field(read_request, "queries", 1, _F.TYPE_MESSAGE, "Query", repeated=True)
    _field(
        read_request,
        "accepted_response_types",
        2,
        _F.TYPE_ENUM,
        "ReadRequest.ResponseType",
        repeated=True,
    )

    query = proto.message_type.add(name="Query")
    _field(query, "start_timestamp_ms", 1, _F.TYPE_INT64)
    _field(query, "end_timestamp_ms", 2, _F.TYPE_INT64)
    _field(query, "matchers", 3, _F.TYPE_MESSAGE, "LabelMatcher", repeated=True)
    _field(query, "hints", 4, _F.TYPE_MESSAGE, "ReadHints")

    query_result = proto.message_type.add(name="QueryResult")
    _field(query_result, "timeseries", 1, _F.TYPE_MESSAGE, "TimeSeries", repeated=True)

    read_response = proto.message_type.add(name="ReadResponse")
    _field(read_response, "results", 1, _F.TYPE_MESSAGE, "QueryResult", repeated=True)

    return proto


_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_pool.FindMessageTypeByName(f"{PACKAGE}.{name}"))


MetricMetadata = _message_class("MetricMetadata")
Sample = _message_class("Sample")
Label = _message_class("Label")
Exemplar = _message_class("Exemplar")
TimeSeries = _message_class("TimeSeries")
LabelMatcher = _message_class("LabelMatcher")
ReadHints = _message_class("ReadHints")
WriteRequest = _message_class("WriteRequest")
ReadRequest = _message_class("ReadRequest")
Query = _message_class("Query")
QueryResult = _message_class("QueryResult")
ReadResponse = _message_class("ReadResponse")

__all__ = [
    "MetricMetadata",
    "Sample",
    "Label",
    "Exemplar",
    "TimeSeries",
    "LabelMatcher",
    "ReadHints",
    "WriteRequest",
    "ReadRequest",
    "Query",
    "QueryResult",
    "ReadResponse",
]
