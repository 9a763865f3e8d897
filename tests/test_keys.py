import pytest

from gosimports import keys, label


@pytest.mark.parametrize(
    "key_class, value",
    [
        (keys.Int, 0x7FFF),
        (keys.Int8, 0x7E),
        (keys.Int8, -128),
        (keys.Int16, 1 << 9),
        (keys.Int32, 0x11F7E294),
        (keys.Int64, 0o644),
        (keys.Int64, -5),
        (keys.UInt, 1),
        (keys.UInt8, 44),
        (keys.UInt16, 55678),
        (keys.UInt32, 1 << 9),
        (keys.UInt64, 0xFFFFFF),
    ],
)
def test_int_round_trip(key_class, value):
    key = key_class("k", "")
    lbl = key.of(value)
    assert key.from_label(lbl) == value
    assert key.format(lbl) == str(value)


@pytest.mark.parametrize(
    "key_class, value",
    [
        (keys.Int8, 128),
        (keys.Int16, -(1 << 15) - 1),
        (keys.UInt8, 256),
        (keys.UInt, -1),
        (keys.UInt64, 1 << 64),
    ],
)
def test_int_out_of_range(key_class, value):
    with pytest.raises(OverflowError):
        key_class("k", "").of(value)


def test_int_label_str():
    key = keys.Int("myInt", "an integer")
    assert str(key.of(6)) == "myInt=6"


@pytest.mark.parametrize("value", [0.456, 1e3, 96.58, -2.5, 0.0])
def test_float64_round_trip(value):
    key = keys.Float64("f", "")
    lbl = key.of(value)
    assert key.from_label(lbl) == value
    assert float(key.format(lbl)) == value


def test_float64_format_uses_exponent_notation():
    key = keys.Float64("f", "")
    assert key.format(key.of(1000.0)) == "1E+03"


@pytest.mark.parametrize("value", [5000.0, 0.5, -1.25])
def test_float32_round_trip_exact(value):
    key = keys.Float32("f", "")
    assert key.from_label(key.of(value)) == value


def test_float32_format_is_shortest_for_single_precision():
    key = keys.Float32("f", "")
    assert key.format(key.of(0.1)) == "1E-01"


def test_float_special_values():
    key = keys.Float64("f", "")
    assert key.format(key.of(float("inf"))) == "+Inf"
    assert key.format(key.of(float("-inf"))) == "-Inf"
    assert key.format(key.of(float("nan"))) == "NaN"


def test_boolean_round_trip():
    key = keys.Boolean("b", "")
    assert key.from_label(key.of(True)) is True
    assert key.from_label(key.of(False)) is False
    assert key.format(key.of(True)) == "true"
    assert key.format(key.of(False)) == "false"


def test_string_round_trip_and_quote():
    key = keys.String("myString", "a string")
    lbl = key.of("some string value")
    assert key.from_label(lbl) == "some string value"
    assert str(lbl) == 'myString="some string value"'


def test_string_quote_escapes():
    key = keys.String("s", "")
    text = 'a"b\\c\n'
    assert key.format(key.of(text)) == '"a\\"b\\\\c\\n"'


def test_string_get_defaults_to_empty():
    key = keys.String("s", "")
    assert key.get(label.new_map()) == ""
    assert key.get(label.new_map(key.of("x"))) == "x"


def test_value_get_and_format():
    key = keys.Value("v", "")
    assert key.get(label.new_map()) is None
    lm = label.new_map(key.of(42))
    assert key.get(lm) == 42
    assert key.format(key.of(42)) == "42"


def test_tag_new_has_no_value():
    lbl = keys.LABEL.new()
    assert lbl.valid()
    assert lbl.key is keys.LABEL
    assert str(lbl) == "label="


def test_error_round_trip_and_get():
    err = ValueError("an error")
    lbl = keys.ERR.of(err)
    assert keys.ERR.from_label(lbl) is err
    assert keys.ERR.format(lbl) == "an error"
    assert keys.ERR.get(label.new_map(lbl)) is err
    assert keys.ERR.get(label.new_map()) is None


def test_error_from_non_exception_is_none():
    lbl = label.of_value(keys.ERR, "not an exception")
    assert keys.ERR.from_label(lbl) is None


def test_standard_key_names():
    assert str(keys.MSG.of("hello")) == 'message="hello"'
    assert str(keys.ERR.of(ValueError("oops"))) == "error=oops"
    assert str(keys.START.of("span")) == 'start="span"'
    assert str(keys.METRIC.new()) == "metric="
    assert str(keys.END.new()) == "end="
    assert str(keys.DETACH.new()) == "detach="


def test_msg_get_from_map():
    lm = label.new_map(keys.MSG.of("my event"))
    assert keys.MSG.get(lm) == "my event"
    assert keys.START.get(lm) == ""