"""Native histogram samples: buckets, histograms and timestamped pairs."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from .times import Time, _parse_int
from .value_float import _RawNumber, _loads_raw, _parse_float, _time_from_token, format_float


def _special(v: float) -> Optional[str]:
    if math.isnan(v):
        return "NaN"
    if math.isinf(v):
        return "+Inf" if v > 0 else "-Inf"
    return None


def _format_g(v: float) -> str:
    """Shortest ``%g`` form: exponent notation below 1e-4 or from 1e6 on."""
    v = float(v)
    special = _special(v)
    if special is not None:
        return special
    d = Decimal(repr(v))
    exp = d.adjusted()
    if -4 <= exp < 6:
        return format(d.normalize(), "f")
    mantissa = format(d.normalize(), "e").partition("e")[0]
    return f"{mantissa}e{exp:+03d}"


def _format_f(v: float) -> str:
    """``%f`` form with six decimals."""
    v = float(v)
    return _special(v) or f"{v:.6f}"


class FloatString(float):
    """A float carried in JSON as a quoted string."""

    __slots__ = ()

    def __str__(self) -> str:
        return format_float(self)

    def to_json(self) -> str:
        """JSON form: the number as a quoted string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> FloatString:
        """Parse a number held in a JSON string."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode()
        if len(text) < 2 or text[0] != '"' or text[-1] != '"':
            raise ValueError("float value must be a quoted string")
        return cls(_parse_float(text[1:-1]))

    @classmethod
    def _from_token(cls, token: Any) -> FloatString:
        if not isinstance(token, str) or isinstance(token, _RawNumber):
            raise ValueError("float value must be a quoted string")
        return cls(_parse_float(token))


def _as_list(obj: Any, what: str) -> list:
    items = [] if obj is None else obj
    if not isinstance(items, list):
        raise ValueError(f"{what} must be a JSON array")
    return items


def _check_length(got: int, want: int) -> None:
    if got != want:
        raise ValueError(f"wrong number of fields: {got} != {want}")


@dataclass
class HistogramBucket:
    """One bucket: boundary kind, lower and upper bound, and count."""

    boundaries: int = 0
    lower: FloatString = FloatString(0.0)
    upper: FloatString = FloatString(0.0)
    count: FloatString = FloatString(0.0)

    def __post_init__(self) -> None:
        self.boundaries = int(self.boundaries)
        self.lower = FloatString(self.lower)
        self.upper = FloatString(self.upper)
        self.count = FloatString(self.count)

    def equal(self, o: Optional[HistogramBucket]) -> bool:
        """True if all four fields match."""
        return self is o or (
            o is not None
            and (self.boundaries, self.lower, self.upper, self.count)
            == (o.boundaries, o.lower, o.upper, o.count)
        )

    def __str__(self) -> str:
        opening = "[" if self.boundaries in (1, 3) else "("
        closing = "]" if self.boundaries in (0, 3) else ")"
        return f"{opening}{_format_g(self.lower)},{_format_g(self.upper)}{closing}:{self.count}"

    def to_json(self) -> str:
        """JSON form: ``[boundaries,"lower","upper","count"]``."""
        return (
            f"[{self.boundaries},{self.lower.to_json()},"
            f"{self.upper.to_json()},{self.count.to_json()}]"
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> HistogramBucket:
        """Parse the four-element array form."""
        return cls._from_parsed(_loads_raw(text))

    @classmethod
    def _from_parsed(cls, obj: Any) -> HistogramBucket:
        items = _as_list(obj, "histogram bucket")
        bucket = cls()
        for index, token in enumerate(items[:4]):
            if token is None:
                continue
            if index == 0:
                if not isinstance(token, _RawNumber):
                    raise ValueError("bucket boundaries must be a JSON number")
                bucket.boundaries = _parse_int(token, 32)
            else:
                setattr(bucket, ("lower", "upper", "count")[index - 1], FloatString._from_token(token))
        _check_length(len(items), 4)
        return bucket


def buckets_equal(
    a: list[Optional[HistogramBucket]], b: list[Optional[HistogramBucket]]
) -> bool:
    """True if both bucket lists have pairwise equal buckets."""
    return len(a) == len(b) and all(
        theirs is None if mine is None else mine.equal(theirs) for mine, theirs in zip(a, b)
    )


@dataclass
class SampleHistogram:
    """A native histogram: total count, sum and buckets."""

    count: FloatString = FloatString(0.0)
    sum: FloatString = FloatString(0.0)
    buckets: list[Optional[HistogramBucket]] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.count = FloatString(self.count)
        self.sum = FloatString(self.sum)
        self.buckets = list(self.buckets or [])

    def equal(self, o: Optional[SampleHistogram]) -> bool:
        """True if count, sum and buckets all match."""
        return self is o or (
            o is not None
            and self.count == o.count
            and self.sum == o.sum
            and buckets_equal(self.buckets, o.buckets)
        )

    def __str__(self) -> str:
        buckets = " ".join("<nil>" if b is None else str(b) for b in self.buckets)
        return f"Count: {_format_f(self.count)}, Sum: {_format_f(self.sum)}, Buckets: [{buckets}]"

    def to_json(self) -> str:
        """JSON form: an object with count, sum and buckets."""
        buckets = ",".join("null" if b is None else b.to_json() for b in self.buckets)
        return (
            f'{{"count":{self.count.to_json()},"sum":{self.sum.to_json()},'
            f'"buckets":[{buckets}]}}'
        )

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleHistogram:
        """Parse the object form."""
        return cls._from_parsed(_loads_raw(text)) or cls()

    @classmethod
    def _from_parsed(cls, obj: Any) -> Optional[SampleHistogram]:
        if obj is None:
            return None
        if not isinstance(obj, dict):
            raise ValueError("histogram must be a JSON object")
        histogram = cls()
        for key in ("count", "sum"):
            if obj.get(key) is not None:
                setattr(histogram, key, FloatString._from_token(obj[key]))
        if obj.get("buckets") is not None:
            histogram.buckets = [
                None if item is None else HistogramBucket._from_parsed(item)
                for item in _as_list(obj["buckets"], "histogram buckets")
            ]
        return histogram


@dataclass
class SampleHistogramPair:
    """A histogram paired with its timestamp."""

    timestamp: Time = Time(0)
    histogram: Optional[SampleHistogram] = None

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)

    def equal(self, o: SampleHistogramPair) -> bool:
        """True if the histograms and the timestamps match."""
        if self is o:
            return True
        same_histogram = self.histogram is o.histogram or (
            self.histogram is not None and self.histogram.equal(o.histogram)
        )
        return same_histogram and self.timestamp == o.timestamp

    def __str__(self) -> str:
        histogram = "<nil>" if self.histogram is None else str(self.histogram)
        return f"{histogram} @[{self.timestamp}]"

    def to_json(self) -> str:
        """JSON form: ``[timestamp,{histogram}]``."""
        if self.histogram is None:
            raise ValueError("histogram is nil")
        return f"[{self.timestamp.to_json()},{self.histogram.to_json()}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleHistogramPair:
        """Parse the ``[timestamp,{histogram}]`` form."""
        return cls._from_parsed(_loads_raw(text))

    @classmethod
    def _from_parsed(cls, obj: Any) -> SampleHistogramPair:
        items = _as_list(obj, "histogram pair")
        pair = cls()
        if items and items[0] is not None:
            pair.timestamp = _time_from_token(items[0])
        if len(items) > 1:
            pair.histogram = SampleHistogram._from_parsed(items[1])
        _check_length(len(items), 2)
        if pair.histogram is None:
            raise ValueError("histogram is null")
        return pair