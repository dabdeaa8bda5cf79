import math

import pytest

from promcommon.model.times import Time
from promcommon.model.value import (
    Matrix,
    Sample,
    SampleStream,
    Scalar,
    String,
    Vector,
    samples_equal,
)
from promcommon.model.value_float import SamplePair, SampleValue
from promcommon.model.value_histogram import (
    HistogramBucket,
    SampleHistogram,
    SampleHistogramPair,
)
from promcommon.model.value_type import ValueType

HIST_JSON = (
    '{"count":"6","sum":"3897","buckets":['
    '[1,"-4870.992343051145","-4466.7196729968955","1"],'
    '[1,"-861.0779292198035","-789.6119426088657","1"],'
    '[1,"-558.3399591246119","-512","1"],'
    '[0,"2048","2233.3598364984477","1"],'
    '[0,"2896.3093757400984","3158.4477704354626","1"],'
    '[0,"4466.7196729968955","4870.992343051145","1"]]}'
)

MATRIX_JSON = (
    '[{"metric":{"__name__":"test_metric"},"values":[[1234.567,"123.1"],[12345.678,"123.12"]]},'
    '{"metric":{"foo":"bar"},"values":[[2234.567,"223.1"],[22345.678,"223.12"]]}]'
)


def gen_histogram():
    return SampleHistogram(
        count=6,
        sum=3897,
        buckets=[
            HistogramBucket(1, -4870.992343051145, -4466.7196729968955, 1),
            HistogramBucket(1, -861.0779292198035, -789.6119426088657, 1),
            HistogramBucket(1, -558.3399591246119, -512, 1),
            HistogramBucket(0, 2048, 2233.3598364984477, 1),
            HistogramBucket(0, 2896.3093757400984, 3158.4477704354626, 1),
            HistogramBucket(0, 4466.7196729968955, 4870.992343051145, 1),
        ],
    )


def small_histogram(count, total, inner):
    return SampleHistogram(
        count=count,
        sum=total,
        buckets=[HistogramBucket(0, 4466.7196729968955, 4870.992343051145, inner)],
    )


def matrix_value():
    return Matrix([
        SampleStream(
            metric={"__name__": "test_metric"},
            values=[SamplePair(1234567, 123.1), SamplePair(12345678, 123.12)],
        ),
        SampleStream(
            metric={"foo": "bar"},
            values=[SamplePair(2234567, 223.1), SamplePair(22345678, 223.12)],
        ),
    ])


SHARED = Sample()


@pytest.mark.parametrize(
    "a, b, want",
    [
        (SHARED, SHARED, True),
        (Sample(metric={"foo": "bar"}), Sample(metric={"foo": "biz"}), False),
        (Sample(timestamp=0), Sample(timestamp=1), False),
        (Sample(value=0), Sample(value=1), False),
        (Sample(metric={"foo": "bar"}, timestamp=0, value=1),
         Sample(metric={"foo": "bar"}, timestamp=0, value=1), True),
        (Sample(metric={"foo": "bar"}, histogram=gen_histogram()),
         Sample(metric={"foo": "bar"}, histogram=gen_histogram()), True),
        (Sample(metric={"foo": "bar"}, histogram=small_histogram(2, 4500, 1)),
         Sample(metric={"foo": "bar"}, histogram=gen_histogram()), False),
        (Sample(metric={"foo": "bar"}, histogram=small_histogram(1, 4500.01, 1)),
         Sample(metric={"foo": "bar"}, histogram=gen_histogram()), False),
        (Sample(metric={"foo": "bar"}, histogram=small_histogram(1, 4500, 2)),
         Sample(metric={"foo": "bar"}, histogram=gen_histogram()), False),
        (Sample(value=math.nan), Sample(value=math.nan), True),
    ],
)
def test_equal_samples(a, b, want):
    assert a.equal(b) is want


@pytest.mark.parametrize(
    "plain, value",
    [
        ('[123.456,"456"]', Scalar(value=456, timestamp=123456)),
        ('[123123.456,"+Inf"]', Scalar(value=math.inf, timestamp=123123456)),
        ('[123123.456,"-Inf"]', Scalar(value=-math.inf, timestamp=123123456)),
    ],
)
def test_scalar_json(plain, value):
    assert value.to_json() == plain
    assert Scalar.from_json(plain) == value


def test_scalar_bad_value():
    with pytest.raises(ValueError, match="error parsing sample value"):
        Scalar.from_json('[1,"abc"]')


def test_scalar_str_and_type():
    scalar = Scalar(value=456, timestamp=123456)
    assert str(scalar) == "scalar: 456 @[123.456]"
    assert scalar.value_type() is ValueType.SCALAR


@pytest.mark.parametrize(
    "plain, value",
    [
        ('[123.456,"test"]', String(value="test", timestamp=123456)),
        ('[123123.456,"台北"]', String(value="台北", timestamp=123123456)),
    ],
)
def test_string_json(plain, value):
    assert value.to_json() == plain
    assert String.from_json(plain) == value
    assert str(value) == value.value
    assert value.value_type() is ValueType.STRING


def test_vector_sort():
    data = [("A", 1), ("A", 2), ("C", 1), ("C", 2), ("B", 3), ("B", 2), ("B", 1)]
    vector = Vector(Sample(metric={"__name__": n}, timestamp=t) for n, t in data)
    vector.sort()
    got = [(s.metric["__name__"], int(s.timestamp)) for s in vector]
    assert got == [("A", 1), ("A", 2), ("B", 1), ("B", 2), ("B", 3), ("C", 1), ("C", 2)]


def test_sample_json():
    plain = '{"metric":{"__name__":"test_metric"},"value":[1234.567,"123.1"]}'
    sample = Sample(metric={"__name__": "test_metric"}, value=123.1, timestamp=1234567)
    assert sample.to_json() == plain
    assert Sample.from_json(plain) == sample


@pytest.mark.parametrize(
    "plain, value",
    [
        ("[]", Vector()),
        ('[{"metric":{"__name__":"test_metric"},"value":[1234.567,"123.1"]}]',
         Vector([Sample(metric={"__name__": "test_metric"}, value=123.1, timestamp=1234567)])),
        ('[{"metric":{"__name__":"test_metric"},"value":[1234.567,"123.1"]},'
         '{"metric":{"foo":"bar"},"value":[1.234,"+Inf"]}]',
         Vector([
             Sample(metric={"__name__": "test_metric"}, value=123.1, timestamp=1234567),
             Sample(metric={"foo": "bar"}, value=math.inf, timestamp=1234),
         ])),
    ],
)
def test_vector_json(plain, value):
    assert value.to_json() == plain
    decoded = Vector.from_json(plain)
    assert decoded == value
    assert decoded.equal(value)


@pytest.mark.parametrize("plain, value", [("[]", Matrix()), (MATRIX_JSON, matrix_value())])
def test_matrix_json(plain, value):
    assert value.to_json() == plain
    assert Matrix.from_json(plain) == value


def test_sample_histogram_json():
    plain = '{"metric":{"__name__":"test_metric"},"histogram":[1234.567,' + HIST_JSON + "]}"
    sample = Sample(metric={"__name__": "test_metric"}, histogram=gen_histogram(),
                    timestamp=1234567)
    assert sample.to_json() == plain
    assert Sample.from_json(plain) == sample


def test_vector_histogram_json():
    vector = Vector([
        Sample(metric={"__name__": "test_metric"}, histogram=gen_histogram(), timestamp=1234567),
        Sample(metric={"foo": "bar"}, histogram=gen_histogram(), timestamp=1234),
    ])
    plain = (
        '[{"metric":{"__name__":"test_metric"},"histogram":[1234.567,' + HIST_JSON + "]},"
        '{"metric":{"foo":"bar"},"histogram":[1.234,' + HIST_JSON + "]}]"
    )
    assert vector.to_json() == plain
    assert Vector.from_json(plain) == vector


def test_matrix_histogram_json():
    matrix = Matrix([
        SampleStream(metric={"__name__": "test_metric"}, histograms=[
            SampleHistogramPair(1234567, gen_histogram()),
            SampleHistogramPair(12345678, gen_histogram()),
        ]),
        SampleStream(metric={"foo": "bar"}, histograms=[
            SampleHistogramPair(2234567, gen_histogram()),
            SampleHistogramPair(22345678, gen_histogram()),
        ]),
    ])
    plain = (
        '[{"metric":{"__name__":"test_metric"},"histograms":[[1234.567,' + HIST_JSON + "],"
        "[12345.678," + HIST_JSON + "]]},"
        '{"metric":{"foo":"bar"},"histograms":[[2234.567,' + HIST_JSON + "],"
        "[22345.678," + HIST_JSON + "]]}]"
    )
    assert matrix.to_json() == plain
    assert Matrix.from_json(plain) == matrix


def test_stream_with_values_and_histograms():
    stream = SampleStream(
        metric={"a": "b"},
        values=[SamplePair(1000, 1)],
        histograms=[SampleHistogramPair(2000, gen_histogram())],
    )
    plain = '{"metric":{"a":"b"},"values":[[1,"1"]],"histograms":[[2,' + HIST_JSON + "]]}"
    assert stream.to_json() == plain
    assert SampleStream.from_json(plain) == stream


def test_matrix_str_is_sorted():
    first = SampleStream(metric={"a": "1"}, values=[SamplePair(1000, 1)])
    second = SampleStream(metric={"a": "2"}, values=[SamplePair(1000, 2)])
    assert str(Matrix([second, first])) == str(Matrix([first, second]))
    assert Matrix().value_type() is ValueType.MATRIX


def test_samples_equal():
    a = [Sample(value=1), Sample(value=2)]
    b = [Sample(value=1), Sample(value=2)]
    assert samples_equal(a, b)
    assert not samples_equal(a, b[:1])
    assert not samples_equal(a, [Sample(value=1), Sample(value=3)])
    assert Vector(a).value_type() is ValueType.VECTOR


def test_sample_value_nan_pair_sample():
    sample = Sample.from_json('{"metric":{},"value":[1,"NaN"]}')
    assert math.isnan(sample.value)
    assert isinstance(sample.value, SampleValue)
    assert sample.timestamp == Time(1000)