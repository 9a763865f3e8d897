"""Message types for the OpenCensus agent protocol and their JSON encoding.

Every field is omitted from the JSON output when it holds its zero value.
Fields that stand for references are omitted only when they are None.
"""

from __future__ import annotations

import base64
import math
from dataclasses import dataclass, field, fields, is_dataclass
from decimal import Decimal
from enum import IntEnum
from typing import Any, Mapping, Optional, Union

Timestamp = str


def _f(name: str, default: Any = None, *, ptr: bool = False) -> Any:
    return field(default=default, metadata={"json": name, "ptr": ptr})


def _list(name: str) -> Any:
    return field(default_factory=list, metadata={"json": name, "ptr": False})


def _dict(name: str) -> Any:
    return field(default_factory=dict, metadata={"json": name, "ptr": False})


# ---------------------------------------------------------------- common


class Language(IntEnum):
    """The language a library is written in."""

    GO = 4


@dataclass
class ProcessIdentifier:
    host_name: str = _f("host_name", "")
    pid: int = _f("pid", 0)
    start_timestamp: Timestamp = _f("start_timestamp", "")


@dataclass
class LibraryInfo:
    language: int = _f("language", 0)
    exporter_version: str = _f("exporter_version", "")
    core_library_version: str = _f("core_library_version", "")


@dataclass
class ServiceInfo:
    name: str = _f("name", "")


@dataclass
class Node:
    identifier: Optional[ProcessIdentifier] = _f("identifier", ptr=True)
    library_info: Optional[LibraryInfo] = _f("library_info", ptr=True)
    service_info: Optional[ServiceInfo] = _f("service_info", ptr=True)
    attributes: dict[str, str] = _dict("attributes")


@dataclass
class Resource:
    type: str = _f("type", "")
    labels: dict[str, str] = _dict("labels")


@dataclass
class TruncatableString:
    value: str = _f("value", "")
    truncated_byte_count: int = _f("truncated_byte_count", 0)


@dataclass
class StringAttribute:
    string_value: Optional[TruncatableString] = _f("stringValue", ptr=True)


@dataclass
class IntAttribute:
    int_value: int = _f("intValue", 0)


@dataclass
class BoolAttribute:
    bool_value: bool = _f("boolValue", False)


@dataclass
class DoubleAttribute:
    double_value: float = _f("doubleValue", 0.0)


Attribute = Union[StringAttribute, IntAttribute, BoolAttribute, DoubleAttribute]


@dataclass
class Attributes:
    attribute_map: dict[str, Attribute] = _dict("attributeMap")
    dropped_attributes_count: int = _f("dropped_attributes_count", 0)


@dataclass
class Module:
    module: Optional[TruncatableString] = _f("module", ptr=True)
    build_id: Optional[TruncatableString] = _f("build_id", ptr=True)


@dataclass
class StackFrame:
    function_name: Optional[TruncatableString] = _f("function_name", ptr=True)
    original_function_name: Optional[TruncatableString] = _f(
        "original_function_name", ptr=True
    )
    file_name: Optional[TruncatableString] = _f("file_name", ptr=True)
    line_number: int = _f("line_number", 0)
    column_number: int = _f("column_number", 0)
    load_module: Optional[Module] = _f("load_module", ptr=True)
    source_version: Optional[TruncatableString] = _f("source_version", ptr=True)


@dataclass
class StackFrames:
    frame: list[StackFrame] = _list("frame")
    dropped_frames_count: int = _f("dropped_frames_count", 0)


@dataclass
class StackTrace:
    stack_frames: Optional[StackFrames] = _f("stack_frames", ptr=True)
    stack_trace_hash_id: int = _f("stack_trace_hash_id", 0)


# ---------------------------------------------------------------- core


@dataclass
class Int64Value:
    value: int = _f("value", 0)


@dataclass
class DoubleValue:
    value: float = _f("value", 0.0)


# ---------------------------------------------------------------- metrics


class MetricDescriptorType(IntEnum):
    """The kind of values a metric holds."""

    UNSPECIFIED = 0
    GAUGE_INT64 = 1
    GAUGE_DOUBLE = 2
    GAUGE_DISTRIBUTION = 3
    CUMULATIVE_INT64 = 4
    CUMULATIVE_DOUBLE = 5
    CUMULATIVE_DISTRIBUTION = 6
    SUMMARY = 7


@dataclass
class LabelKey:
    key: str = _f("key", "")
    description: str = _f("description", "")


@dataclass
class MetricDescriptor:
    name: str = _f("name", "")
    description: str = _f("description", "")
    unit: str = _f("unit", "")
    type: int = _f("type", 0)
    label_keys: list[LabelKey] = _list("label_keys")


@dataclass
class LabelValue:
    value: str = _f("value", "")
    has_value: bool = _f("has_value", False)


@dataclass
class PointInt64Value:
    int64_value: int = _f("int64Value", 0)


@dataclass
class PointDoubleValue:
    double_value: float = _f("doubleValue", 0.0)


@dataclass
class Exemplar:
    value: float = _f("value", 0.0)
    timestamp: Optional[Timestamp] = _f("timestamp", ptr=True)
    attachments: dict[str, str] = _dict("attachments")


@dataclass
class Bucket:
    count: int = _f("count", 0)
    exemplar: Optional[Exemplar] = _f("exemplar", ptr=True)


@dataclass
class BucketOptionsExplicit:
    bounds: list[float] = _list("bounds")

    def to_json(self) -> dict[str, Any]:
        """Encode as ``{"explicit": {...}}``, the form the agent expects."""
        inner: dict[str, Any] = {}
        if self.bounds:
            inner["bounds"] = to_json(self.bounds)
        return {"explicit": inner}


@dataclass
class DistributionValue:
    count: int = _f("count", 0)
    sum: float = _f("sum", 0.0)
    sum_of_squared_deviation: float = _f("sum_of_squared_deviation", 0.0)
    bucket_options: Optional[BucketOptionsExplicit] = _f("bucket_options", ptr=True)
    buckets: list[Bucket] = _list("buckets")


@dataclass
class PointDistributionValue:
    distribution_value: Optional[DistributionValue] = _f(
        "distributionValue", ptr=True
    )


@dataclass
class SnapshotValueAtPercentile:
    percentile: float = _f("percentile", 0.0)
    value: float = _f("value", 0.0)


@dataclass
class Snapshot:
    count: Optional[Int64Value] = _f("count", ptr=True)
    sum: Optional[DoubleValue] = _f("sum", ptr=True)
    percentile_values: list[SnapshotValueAtPercentile] = _list("percentile_values")


@dataclass
class SummaryValue:
    count: Optional[Int64Value] = _f("count", ptr=True)
    sum: Optional[DoubleValue] = _f("sum", ptr=True)
    snapshot: Optional[Snapshot] = _f("snapshot", ptr=True)


@dataclass
class PointSummaryValue:
    summary_value: Optional[SummaryValue] = _f("summaryValue", ptr=True)


PointValue = Union[
    PointInt64Value, PointDoubleValue, PointDistributionValue, PointSummaryValue
]


@dataclass
class Point:
    timestamp: Optional[Timestamp] = _f("timestamp", ptr=True)
    value: Optional[PointValue] = _f("value", ptr=True)

    def to_json(self) -> dict[str, Any]:
        """Encode with the value flattened into the point, as the agent expects.

        Raises TypeError for value types that have no flat encoding.
        """
        value = self.value
        if isinstance(value, PointInt64Value):
            name, inner, ptr = "int64Value", value.int64_value, False
        elif isinstance(value, PointDoubleValue):
            name, inner, ptr = "doubleValue", value.double_value, False
        elif isinstance(value, PointDistributionValue):
            name, inner, ptr = "distributionValue", value.distribution_value, True
        else:
            type_name = "<nil>" if value is None else type(value).__name__
            raise TypeError(f"unknown point type {type_name}")
        out: dict[str, Any] = {}
        if self.timestamp is not None:
            out["timestamp"] = self.timestamp
        if not _is_empty(inner, ptr):
            out[name] = to_json(inner)
        return out


@dataclass
class TimeSeries:
    start_timestamp: Optional[Timestamp] = _f("start_timestamp", ptr=True)
    label_values: list[LabelValue] = _list("label_values")
    points: list[Point] = _list("points")


@dataclass
class Metric:
    metric_descriptor: Optional[MetricDescriptor] = _f("metric_descriptor", ptr=True)
    timeseries: list[TimeSeries] = _list("timeseries")
    resource: Optional[Resource] = _f("resource", ptr=True)


@dataclass
class ExportMetricsServiceRequest:
    node: Optional[Node] = _f("node", ptr=True)
    metrics: list[Metric] = _list("metrics")
    resource: Optional[Resource] = _f("resource", ptr=True)


# ---------------------------------------------------------------- trace


class SpanKind(IntEnum):
    """The role of a span in a remote call."""

    UNSPECIFIED = 0
    SERVER = 1
    CLIENT = 2


@dataclass
class TraceStateEntry:
    key: str = _f("key", "")
    value: str = _f("value", "")


@dataclass
class TraceState:
    entries: list[TraceStateEntry] = _list("entries")


@dataclass
class Annotation:
    description: Optional[TruncatableString] = _f("description", ptr=True)
    attributes: Optional[Attributes] = _f("attributes", ptr=True)


@dataclass
class MessageEvent:
    type: int = _f("type", 0)
    id: int = _f("id", 0)
    uncompressed_size: int = _f("uncompressed_size", 0)
    compressed_size: int = _f("compressed_size", 0)


@dataclass
class TimeEvent:
    time: Timestamp = _f("time", "")
    message_event: Optional[MessageEvent] = _f("messageEvent", ptr=True)
    annotation: Optional[Annotation] = _f("annotation", ptr=True)


@dataclass
class TimeEvents:
    time_event: list[TimeEvent] = _list("timeEvent")
    dropped_annotations_count: int = _f("dropped_annotations_count", 0)
    dropped_message_events_count: int = _f("dropped_message_events_count", 0)


@dataclass
class Link:
    trace_id: bytes = _f("trace_id", b"")
    span_id: bytes = _f("span_id", b"")
    type: int = _f("type", 0)
    attributes: Optional[Attributes] = _f("attributes", ptr=True)
    trace_state: Optional[TraceState] = _f("tracestate", ptr=True)


@dataclass
class Links:
    link: list[Link] = _list("link")
    dropped_links_count: int = _f("dropped_links_count", 0)


@dataclass
class Status:
    code: int = _f("code", 0)
    message: str = _f("message", "")


@dataclass
class Span:
    trace_id: bytes = _f("trace_id", b"")
    span_id: bytes = _f("span_id", b"")
    trace_state: Optional[TraceState] = _f("tracestate", ptr=True)
    parent_span_id: bytes = _f("parent_span_id", b"")
    name: Optional[TruncatableString] = _f("name", ptr=True)
    kind: int = _f("kind", 0)
    start_time: Timestamp = _f("start_time", "")
    end_time: Timestamp = _f("end_time", "")
    attributes: Optional[Attributes] = _f("attributes", ptr=True)
    stack_trace: Optional[StackTrace] = _f("stack_trace", ptr=True)
    time_events: Optional[TimeEvents] = _f("time_events", ptr=True)
    links: Optional[Links] = _f("links", ptr=True)
    status: Optional[Status] = _f("status", ptr=True)
    resource: Optional[Resource] = _f("resource", ptr=True)
    same_process_as_parent_span: bool = _f("same_process_as_parent_span", False)
    child_span_count: bool = _f("child_span_count", False)


@dataclass
class ExportTraceServiceRequest:
    node: Optional[Node] = _f("node", ptr=True)
    spans: list[Span] = _list("spans")
    resource: Optional[Resource] = _f("resource", ptr=True)


# ---------------------------------------------------------------- encoding


def _is_empty(value: Any, ptr: bool) -> bool:
    if value is None:
        return True
    if ptr or is_dataclass(value):
        return False
    if isinstance(value, (bool, int, float)):
        return value == 0
    if isinstance(value, (str, bytes, bytearray, list, tuple, Mapping)):
        return len(value) == 0
    return False


def to_json(value: Any) -> Any:
    """Convert a wire value into plain lists, dicts and scalars.

    Struct fields keep their declared order; map keys are sorted.
    Raises ValueError for non-finite floats and TypeError for unknown types.
    """
    if value is None:
        return None
    if isinstance(value, (Point, BucketOptionsExplicit)):
        return value.to_json()
    if is_dataclass(value) and not isinstance(value, type):
        out: dict[str, Any] = {}
        for spec in fields(value):
            name = spec.metadata.get("json")
            if name is None:
                continue
            item = getattr(value, spec.name)
            if _is_empty(item, spec.metadata.get("ptr", False)):
                continue
            out[name] = to_json(item)
        return out
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValueError(f"unsupported value: {value!r}")
        return value
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Mapping):
        return {str(key): to_json(value[key]) for key in sorted(value)}
    if isinstance(value, (list, tuple)):
        return [to_json(item) for item in value]
    raise TypeError(f"cannot encode value of type {type(value).__name__}")


def _format_float(value: float) -> str:
    if not math.isfinite(value):
        raise ValueError(f"unsupported value: {value!r}")
    magnitude = abs(value)
    if magnitude != 0 and (magnitude < 1e-6 or magnitude >= 1e21):
        mantissa, exponent = repr(float(value)).split("e")
        sign, digits = exponent[0], exponent[1:].lstrip("0") or "0"
        return f"{mantissa}e{sign}{digits}"
    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


_SIMPLE_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _quote(text: str) -> str:
    parts = ['"']
    for ch in text:
        if ch in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[ch])
        elif ord(ch) < 0x20 or ch in "<>&\u2028\u2029":
            parts.append(f"\\u{ord(ch):04x}")
        else:
            parts.append(ch)
    parts.append('"')
    return "".join(parts)


def _write(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, dict):
        items = (f"{_quote(key)}:{_write(item)}" for key, item in value.items())
        return "{" + ",".join(items) + "}"
    if isinstance(value, list):
        return "[" + ",".join(_write(item) for item in value) + "]"
    raise TypeError(f"cannot encode value of type {type(value).__name__}")


def marshal(value: Any) -> str:
    """Encode a wire value as compact JSON text."""
    return _write(to_json(value))