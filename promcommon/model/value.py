"""Query results: samples, vectors, matrices, scalars and strings."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .times import EARLIEST, Time
from .value_float import (
    SamplePair,
    SampleValue,
    _RawNumber,
    _loads_raw,
    _parse_float,
    _time_from_token,
    format_float,
)
from .value_histogram import SampleHistogram, SampleHistogramPair
from .value_type import ValueType

_METRIC_NAME_LABEL = "__name__"


def _go_quote(s: str) -> str:
    """A JSON string with HTML-sensitive characters escaped."""
    return (
        json.dumps(s, ensure_ascii=False)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


def _metric_json(metric: Optional[dict[str, str]]) -> str:
    if metric is None:
        return "null"
    body = ",".join(f"{_go_quote(k)}:{_go_quote(v)}" for k, v in sorted(metric.items()))
    return "{" + body + "}"


def _metric_from_parsed(obj: Any) -> Optional[dict[str, str]]:
    if obj is None:
        return None
    if not isinstance(obj, dict):
        raise ValueError("metric must be a JSON object")
    metric = {}
    for name, value in obj.items():
        if not isinstance(value, str) or isinstance(value, _RawNumber):
            raise ValueError(f"label value for {_go_quote(name)} must be a JSON string")
        metric[str(name)] = str(value)
    return metric


def _metric_str(metric: Optional[dict[str, str]]) -> str:
    labels = dict(metric or {})
    name = labels.pop(_METRIC_NAME_LABEL, "")
    if name and not labels:
        return name
    body = ", ".join(f"{k}={_go_quote(v)}" for k, v in sorted(labels.items()))
    return f"{name}{{{body}}}"


def _metric_key(metric: Optional[dict[str, str]]) -> tuple:
    return tuple(sorted((metric or {}).items()))


@dataclass
class Sample:
    """A float value or a histogram for a metric at a timestamp."""

    metric: Optional[dict[str, str]] = None
    value: SampleValue = SampleValue(0.0)
    timestamp: Time = Time(0)
    histogram: Optional[SampleHistogram] = None

    def __post_init__(self) -> None:
        self.value = SampleValue(self.value)
        self.timestamp = Time(self.timestamp)

    def equal(self, o: Sample) -> bool:
        """Compare metric, then timestamp, then histogram or value."""
        if self is o:
            return True
        if _metric_key(self.metric) != _metric_key(o.metric):
            return False
        if self.timestamp != o.timestamp:
            return False
        if self.histogram is not None:
            return self.histogram.equal(o.histogram)
        return self.value.equal(o.value)

    def __str__(self) -> str:
        if self.histogram is not None:
            pair: Any = SampleHistogramPair(self.timestamp, self.histogram)
        else:
            pair = SamplePair(self.timestamp, self.value)
        return f"{_metric_str(self.metric)} => {pair}"

    def to_json(self) -> str:
        """JSON form: metric with either a value pair or a histogram pair."""
        metric = _metric_json(self.metric)
        if self.histogram is not None:
            pair = SampleHistogramPair(self.timestamp, self.histogram)
            return f'{{"metric":{metric},"histogram":{pair.to_json()}}}'
        pair_json = SamplePair(self.timestamp, self.value).to_json()
        return f'{{"metric":{metric},"value":{pair_json}}}'

    @classmethod
    def from_json(cls, text: str | bytes) -> Sample:
        """Parse the object form."""
        return cls._from_parsed(_loads_raw(text))

    @classmethod
    def _from_parsed(cls, obj: Any) -> Sample:
        sample = cls()
        if obj is None:
            return sample
        if not isinstance(obj, dict):
            raise ValueError("sample must be a JSON object")
        sample.metric = _metric_from_parsed(obj.get("metric"))
        value_pair = SamplePair._from_parsed(obj["value"]) if "value" in obj else SamplePair()
        histogram_pair = (
            SampleHistogramPair._from_parsed(obj["histogram"]) if "histogram" in obj else None
        )
        if histogram_pair is not None and histogram_pair.histogram is not None:
            sample.timestamp = histogram_pair.timestamp
            sample.histogram = histogram_pair.histogram
        else:
            sample.timestamp = value_pair.timestamp
            sample.value = value_pair.value
        return sample


ZERO_SAMPLE = Sample(timestamp=EARLIEST)


def samples_equal(a: Iterable[Sample], b: Iterable[Sample]) -> bool:
    """True if both sequences hold pairwise equal samples."""
    a, b = list(a), list(b)
    return len(a) == len(b) and all(x.equal(y) for x, y in zip(a, b))


def _sample_key(sample: Sample) -> tuple:
    return (_metric_key(sample.metric), int(sample.timestamp))


@dataclass
class SampleStream:
    """The values and histograms of one metric over time."""

    metric: Optional[dict[str, str]] = None
    values: list[SamplePair] = field(default_factory=list)
    histograms: list[SampleHistogramPair] = field(default_factory=list)

    def __str__(self) -> str:
        entries = [str(v) for v in self.values] + [str(h) for h in self.histograms]
        return f"{_metric_str(self.metric)} =>\n" + "\n".join(entries)

    def to_json(self) -> str:
        """JSON form: metric with values, histograms or both."""
        metric = _metric_json(self.metric)
        values = "[" + ",".join(v.to_json() for v in self.values) + "]"
        histograms = "[" + ",".join(h.to_json() for h in self.histograms) + "]"
        if self.histograms and self.values:
            return f'{{"metric":{metric},"values":{values},"histograms":{histograms}}}'
        if self.histograms:
            return f'{{"metric":{metric},"histograms":{histograms}}}'
        return f'{{"metric":{metric},"values":{values}}}'

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleStream:
        """Parse the object form."""
        return cls._from_parsed(_loads_raw(text))

    @classmethod
    def _from_parsed(cls, obj: Any) -> SampleStream:
        stream = cls()
        if obj is None:
            return stream
        if not isinstance(obj, dict):
            raise ValueError("sample stream must be a JSON object")
        stream.metric = _metric_from_parsed(obj.get("metric"))
        values = obj.get("values")
        if values is not None:
            if not isinstance(values, list):
                raise ValueError("values must be a JSON array")
            stream.values = [SamplePair._from_parsed(v) for v in values]
        histograms = obj.get("histograms")
        if histograms is not None:
            if not isinstance(histograms, list):
                raise ValueError("histograms must be a JSON array")
            stream.histograms = [SampleHistogramPair._from_parsed(h) for h in histograms]
        return stream


def _array_items(obj: Any, what: str) -> list:
    if obj is None:
        return []
    if not isinstance(obj, list):
        raise ValueError(f"{what} must be a JSON array")
    return obj


@dataclass
class Scalar:
    """A scalar value evaluated at a timestamp."""

    value: SampleValue = SampleValue(0.0)
    timestamp: Time = Time(0)

    def __post_init__(self) -> None:
        self.value = SampleValue(self.value)
        self.timestamp = Time(self.timestamp)

    def value_type(self) -> ValueType:
        """Always ``ValueType.SCALAR``."""
        return ValueType.SCALAR

    def __str__(self) -> str:
        return f"scalar: {self.value} @[{self.timestamp}]"

    def to_json(self) -> str:
        """JSON form: ``[timestamp,"value"]``."""
        return f"[{self.timestamp.to_json()},{_go_quote(format_float(self.value))}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> Scalar:
        """Parse the ``[timestamp,"value"]`` form."""
        items = _array_items(_loads_raw(text), "scalar")
        scalar = cls()
        if len(items) > 0 and items[0] is not None:
            scalar.timestamp = _time_from_token(items[0])
        raw = ""
        if len(items) > 1 and items[1] is not None:
            if not isinstance(items[1], str) or isinstance(items[1], _RawNumber):
                raise ValueError("scalar value must be a JSON string")
            raw = str(items[1])
        try:
            scalar.value = SampleValue(_parse_float(raw))
        except ValueError as exc:
            raise ValueError(f"error parsing sample value: {exc}") from exc
        return scalar


@dataclass
class String:
    """A string value evaluated at a timestamp."""

    value: str = ""
    timestamp: Time = Time(0)

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)

    def value_type(self) -> ValueType:
        """Always ``ValueType.STRING``."""
        return ValueType.STRING

    def __str__(self) -> str:
        return self.value

    def to_json(self) -> str:
        """JSON form: ``[timestamp,"value"]``."""
        return f"[{self.timestamp.to_json()},{_go_quote(self.value)}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> String:
        """Parse the ``[timestamp,"value"]`` form."""
        items = _array_items(_loads_raw(text), "string")
        result = cls()
        if len(items) > 0 and items[0] is not None:
            result.timestamp = _time_from_token(items[0])
        if len(items) > 1 and items[1] is not None:
            if not isinstance(items[1], str) or isinstance(items[1], _RawNumber):
                raise ValueError("string value must be a JSON string")
            result.value = str(items[1])
        return result


class Vector(list):
    """Samples that share one timestamp."""

    def value_type(self) -> ValueType:
        """Always ``ValueType.VECTOR``."""
        return ValueType.VECTOR

    def equal(self, o: Iterable[Sample]) -> bool:
        """True if both vectors hold pairwise equal samples."""
        return samples_equal(self, o)

    def sort(self) -> None:  # type: ignore[override]
        """Sort in place by metric, then timestamp."""
        super().sort(key=_sample_key)

    def __str__(self) -> str:
        return "\n".join(str(s) for s in self)

    def to_json(self) -> str:
        """JSON form: an array of sample objects."""
        return "[" + ",".join(s.to_json() for s in self) + "]"

    @classmethod
    def from_json(cls, text: str | bytes) -> Vector:
        """Parse an array of sample objects."""
        items = _array_items(_loads_raw(text), "vector")
        return cls(Sample._from_parsed(item) for item in items)


class Matrix(list):
    """A list of time series."""

    def value_type(self) -> ValueType:
        """Always ``ValueType.MATRIX``."""
        return ValueType.MATRIX

    def __str__(self) -> str:
        ordered = sorted(self, key=lambda ss: _metric_key(ss.metric))
        return "\n".join(str(ss) for ss in ordered)

    def to_json(self) -> str:
        """JSON form: an array of sample stream objects."""
        return "[" + ",".join(ss.to_json() for ss in self) + "]"

    @classmethod
    def from_json(cls, text: str | bytes) -> Matrix:
        """Parse an array of sample stream objects."""
        items = _array_items(_loads_raw(text), "matrix")
        return cls(SampleStream._from_parsed(item) for item in items)