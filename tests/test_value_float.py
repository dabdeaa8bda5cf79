import math

import pytest

from promcommon.model.times import EARLIEST, Time
from promcommon.model.value_float import (
    ZERO_SAMPLE_PAIR,
    SamplePair,
    SampleValue,
    format_float,
)


@pytest.mark.parametrize(
    "a,b,want",
    [
        (3.14, 3.14, True),
        (3.14, 3.1415, False),
        (math.inf, math.inf, True),
        (-math.inf, -math.inf, True),
        (math.inf, -math.inf, False),
        (42, math.inf, False),
        (42, math.nan, False),
        (math.nan, math.nan, True),
    ],
    ids=[
        "equal floats",
        "unequal floats",
        "positive infinities",
        "negative infinities",
        "different infinities",
        "number and infinity",
        "number and NaN",
        "NaNs",
    ],
)
def test_equal_values(a, b, want):
    assert SampleValue(a).equal(SampleValue(b)) is want


def test_sample_pair_json():
    value = SamplePair(value=SampleValue(123.1), timestamp=Time(1234567))
    plain = '[1234.567,"123.1"]'
    assert value.to_json() == plain
    decoded = SamplePair.from_json(plain)
    assert decoded == value
    assert decoded.equal(value)


def test_sample_pair_infinite_value():
    pair = SamplePair.from_json('[1.234,"+Inf"]')
    assert pair.timestamp == 1234
    assert math.isinf(pair.value) and pair.value > 0
    assert pair.to_json() == '[1.234,"+Inf"]'


def test_sample_pair_equal_with_nan():
    a = SamplePair(Time(5), SampleValue(math.nan))
    b = SamplePair(Time(5), SampleValue(math.nan))
    assert a.equal(b)
    assert not a.equal(SamplePair(Time(6), SampleValue(math.nan)))


def test_sample_pair_str():
    assert str(SamplePair(Time(1234567), SampleValue(123.1))) == "123.1 @[1234.567]"


def test_sample_pair_errors():
    with pytest.raises(ValueError, match="quoted string"):
        SamplePair.from_json("[1234.567,123.1]")
    with pytest.raises(ValueError):
        SamplePair.from_json('["1234.567","123.1"]')
    with pytest.raises(ValueError):
        SamplePair.from_json('{"a":1}')


def test_sample_value_json():
    assert SampleValue(123.1).to_json() == '"123.1"'
    assert SampleValue.from_json('"123.12"') == 123.12
    with pytest.raises(ValueError, match="sample value must be a quoted string"):
        SampleValue.from_json("123")
    with pytest.raises(ValueError):
        SampleValue.from_json('"abc"')


def test_sample_value_round_trip():
    for number in (0.0, 1.5, -223.12, 1e-7, 1e21, math.inf, -math.inf):
        assert SampleValue.from_json(SampleValue(number).to_json()) == number
    assert math.isnan(SampleValue.from_json(SampleValue(math.nan).to_json()))


def test_format_float():
    assert format_float(123.1) == "123.1"
    assert format_float(456.0) == "456"
    assert format_float(math.inf) == "+Inf"
    assert format_float(-math.inf) == "-Inf"


def test_format_float_never_uses_exponent():
    for number in (1e-7, 1e21, -3.5e-10, 123456789012345678.0):
        text = format_float(number)
        assert "e" not in text.lower()
        assert float(text) == number


def test_zero_sample_pair():
    assert ZERO_SAMPLE_PAIR.equal(SamplePair(Time(EARLIEST), SampleValue(0.0)))
    assert not ZERO_SAMPLE_PAIR.equal(SamplePair(Time(0), SampleValue(0.0)))