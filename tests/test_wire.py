import pytest

from gosimports.wire import (
    Attributes,
    BoolAttribute,
    Bucket,
    BucketOptionsExplicit,
    DistributionValue,
    DoubleAttribute,
    IntAttribute,
    Language,
    LibraryInfo,
    MetricDescriptor,
    MetricDescriptorType,
    Node,
    Point,
    PointDistributionValue,
    PointDoubleValue,
    PointInt64Value,
    PointSummaryValue,
    ProcessIdentifier,
    ServiceInfo,
    Span,
    StringAttribute,
    TimeEvent,
    TimeEvents,
    TruncatableString,
    marshal,
    to_json,
)


@pytest.mark.parametrize(
    "point, want",
    [
        (Point(value=PointInt64Value(int64_value=5)), '{"int64Value":5}'),
        (Point(value=PointDoubleValue(double_value=3.14)), '{"doubleValue":3.14}'),
        (
            Point(
                value=PointDistributionValue(
                    distribution_value=DistributionValue(
                        count=3,
                        sum=10,
                        buckets=[Bucket(count=1), Bucket(count=2)],
                        bucket_options=BucketOptionsExplicit(bounds=[0, 5]),
                    )
                )
            ),
            '{"distributionValue":{"count":3,"sum":10,"bucket_options":'
            '{"explicit":{"bounds":[0,5]}},"buckets":[{"count":1},{"count":2}]}}',
        ),
        (None, "null"),
    ],
    ids=["PointInt64", "PointDouble", "PointDistribution", "nil point"],
)
def test_marshal_point(point, want):
    assert marshal(point) == want


def test_point_to_json_keeps_timestamp_first():
    point = Point(
        timestamp="1970-01-01T00:00:40Z",
        value=PointDistributionValue(distribution_value=DistributionValue(count=1)),
    )
    assert list(point.to_json()) == ["timestamp", "distributionValue"]
    assert marshal(point) == (
        '{"timestamp":"1970-01-01T00:00:40Z","distributionValue":{"count":1}}'
    )


def test_point_unknown_value_raises():
    with pytest.raises(TypeError):
        Point(value=PointSummaryValue()).to_json()
    with pytest.raises(TypeError):
        marshal(Point())


def test_bucket_options_explicit_to_json():
    assert BucketOptionsExplicit(bounds=[1, 2, 3]).to_json() == {
        "explicit": {"bounds": [1, 2, 3]}
    }
    assert BucketOptionsExplicit().to_json() == {"explicit": {}}


def test_empty_buckets_are_written_as_objects():
    value = DistributionValue(count=1, sum=9700.0, buckets=[Bucket(), Bucket()])
    assert marshal(value) == '{"count":1,"sum":9700,"buckets":[{},{}]}'


def test_node_encoding():
    node = Node(
        identifier=ProcessIdentifier(
            host_name="tester", pid=1, start_timestamp="1970-01-01T00:00:00Z"
        ),
        library_info=LibraryInfo(
            language=Language.GO,
            exporter_version="0.0.1",
            core_library_version="x/tools",
        ),
        service_info=ServiceInfo(name="ocagent-tests"),
    )
    assert marshal(node) == (
        '{"identifier":{"host_name":"tester","pid":1,'
        '"start_timestamp":"1970-01-01T00:00:00Z"},'
        '"library_info":{"language":4,"exporter_version":"0.0.1",'
        '"core_library_version":"x/tools"},'
        '"service_info":{"name":"ocagent-tests"}}'
    )


def test_span_bytes_are_base64():
    span = Span(
        trace_id=bytes(16),
        span_id=bytes(8),
        parent_span_id=bytes(8),
        name=TruncatableString(value="event span"),
        start_time="1970-01-01T00:00:30Z",
        end_time="1970-01-01T00:00:50Z",
        time_events=TimeEvents(time_event=[TimeEvent(time="1970-01-01T00:00:40Z")]),
        same_process_as_parent_span=True,
    )
    assert marshal(span) == (
        '{"trace_id":"AAAAAAAAAAAAAAAAAAAAAA==","span_id":"AAAAAAAAAAA=",'
        '"parent_span_id":"AAAAAAAAAAA=","name":{"value":"event span"},'
        '"start_time":"1970-01-01T00:00:30Z","end_time":"1970-01-01T00:00:50Z",'
        '"time_events":{"timeEvent":[{"time":"1970-01-01T00:00:40Z"}]},'
        '"same_process_as_parent_span":true}'
    )


def test_empty_span_omits_everything():
    assert marshal(Span()) == "{}"


def test_attribute_map_is_sorted_and_zero_values_omitted():
    attrs = Attributes(
        attribute_map={
            "b": IntAttribute(int_value=2),
            "a": BoolAttribute(bool_value=False),
            "c": StringAttribute(string_value=TruncatableString(value="godb")),
            "d": DoubleAttribute(double_value=0.456),
        }
    )
    assert marshal(attrs) == (
        '{"attributeMap":{"a":{},"b":{"intValue":2},'
        '"c":{"stringValue":{"value":"godb"}},"d":{"doubleValue":0.456}}}'
    )


def test_enum_value_encoded_as_number():
    descriptor = MetricDescriptor(
        name="latency_ms", type=MetricDescriptorType.CUMULATIVE_DISTRIBUTION
    )
    assert to_json(descriptor) == {"name": "latency_ms", "type": 6}


@pytest.mark.parametrize(
    "value, want",
    [
        (9700.0, "9700"),
        (96.58, "96.58"),
        (1e-7, "1e-7"),
        (1e21, "1e+21"),
        (0.00001, "0.00001"),
        (-2.5, "-2.5"),
    ],
)
def test_float_formatting(value, want):
    assert marshal([value]) == f"[{want}]"


def test_non_finite_float_raises():
    with pytest.raises(ValueError):
        marshal(DoubleAttribute(double_value=float("nan")))


def test_string_escaping():
    value = TruncatableString(value='a<b>&"\n')
    assert marshal(value) == '{"value":"a\\u003cb\\u003e\\u0026\\"\\n"}'


def test_unknown_type_raises():
    with pytest.raises(TypeError):
        to_json(object())