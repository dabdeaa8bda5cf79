"""Millisecond timestamps and Prometheus-style durations."""

from __future__ import annotations

import json
import math
import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import yaml

_NANOS_PER_TICK = 1_000_000
_TICKS_PER_SECOND = 1_000
_DOT_PRECISION = 3

_INT64_MAX = (1 << 63) - 1
_UINT64_MAX = (1 << 64) - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_INT_RE = re.compile(r"[+-]?[0-9]+")


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def _tmod(a: int, b: int) -> int:
    """Remainder matching truncating division."""
    return a - b * _tdiv(a, b)


def _format_float(value: float) -> str:
    """Shortest round-tripping decimal form of a float, never in exponent form."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _parse_int(text: str, bits: int) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"strconv.ParseInt: parsing {_quote(text)}: invalid syntax")
    value = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= value < limit:
        raise ValueError(f"strconv.ParseInt: parsing {_quote(text)}: value out of range")
    return value


def _nanoseconds(d: int | timedelta) -> int:
    if isinstance(d, timedelta):
        return (d.days * 86_400 + d.seconds) * 1_000_000_000 + d.microseconds * 1_000
    return int(d)


class Time(int):
    """Milliseconds since the Unix epoch, leap seconds excluded."""

    __slots__ = ()

    @classmethod
    def now(cls) -> Time:
        """The current time."""
        return cls.from_unix_nano(time.time_ns())

    @classmethod
    def from_unix(cls, t: int) -> Time:
        """The Time for a Unix time given in seconds."""
        return cls(int(t) * _TICKS_PER_SECOND)

    @classmethod
    def from_unix_nano(cls, t: int) -> Time:
        """The Time for a Unix time given in nanoseconds."""
        return cls(_tdiv(int(t), _NANOS_PER_TICK))

    def add(self, d: int | timedelta) -> Time:
        """This time moved by ``d`` (nanoseconds or a timedelta)."""
        return Time(int(self) + _tdiv(_nanoseconds(d), _NANOS_PER_TICK))

    def sub(self, o: int) -> int:
        """The span ``self - o`` in nanoseconds."""
        return (int(self) - int(o)) * _NANOS_PER_TICK

    def to_datetime(self) -> datetime:
        """This time as an aware UTC datetime."""
        return _EPOCH + timedelta(milliseconds=int(self))

    def unix(self) -> int:
        """Whole seconds since the epoch."""
        return _tdiv(int(self), _TICKS_PER_SECOND)

    def unix_nano(self) -> int:
        """Nanoseconds since the epoch."""
        return int(self) * _NANOS_PER_TICK

    def __str__(self) -> str:
        return _format_float(float(int(self)) / float(_TICKS_PER_SECOND))

    def __repr__(self) -> str:
        return f"Time({int(self)})"

    def to_json(self) -> str:
        """JSON form: seconds as a bare decimal number."""
        return str(self)

    @classmethod
    def from_json(cls, text: str | bytes) -> Time:
        """Parse a decimal number of seconds with up to millisecond precision."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode()
        parts = text.split(".")
        if len(parts) == 1:
            return cls(_parse_int(parts[0], 64) * _TICKS_PER_SECOND)
        if len(parts) == 2:
            whole, frac = parts
            seconds = _parse_int(whole, 64) * _TICKS_PER_SECOND
            missing = _DOT_PRECISION - len(frac)
            if missing < 0:
                frac = frac[:_DOT_PRECISION]
            elif missing > 0:
                frac += "0" * missing
            millis = _parse_int(frac, 32)
            # A leading zero such as in "-0.1" drops the sign during parsing.
            if whole.startswith("-") and seconds + millis > 0:
                return cls(-(seconds + millis))
            return cls(seconds + millis)
        raise ValueError(f"invalid time {_quote(text)}")


EARLIEST = Time(-(1 << 63))
LATEST = Time(_INT64_MAX)


@dataclass(frozen=True)
class Interval:
    """The span between two timestamps."""

    start: Time
    end: Time


_NS_MS = 1_000_000
_NS_S = 1_000 * _NS_MS
_NS_M = 60 * _NS_S
_NS_H = 60 * _NS_M
_NS_D = 24 * _NS_H
_NS_W = 7 * _NS_D
_NS_Y = 365 * _NS_D

# Units must appear from biggest to smallest, so "1m1d" is rejected
# rather than read as a month and a day.
_UNITS = {
    "ms": (7, _NS_MS),
    "s": (6, _NS_S),
    "m": (5, _NS_M),
    "h": (4, _NS_H),
    "d": (3, _NS_D),
    "w": (2, _NS_W),
    "y": (1, _NS_Y),
}

_FORMAT_UNITS = (
    ("y", 1000 * 60 * 60 * 24 * 365, True),
    ("w", 1000 * 60 * 60 * 24 * 7, True),
    ("d", 1000 * 60 * 60 * 24, False),
    ("h", 1000 * 60 * 60, False),
    ("m", 1000 * 60, False),
    ("s", 1000, False),
    ("ms", 1, False),
)

_TOKEN_RE = re.compile(r"([0-9]+)([^0-9]*)")


class Duration(int):
    """A span of time in nanoseconds with the y/w/d/h/m/s/ms text form."""

    __slots__ = ()

    @classmethod
    def parse(cls, s: str) -> Duration:
        """Parse a duration such as ``1d12h``."""
        return cls(parse_duration(s))

    def __str__(self) -> str:
        ms = _tdiv(int(self), _NANOS_PER_TICK)
        if ms == 0:
            return "0s"
        parts = []
        # Years and weeks only when exact: 90d reads better than 12w6d.
        for unit, mult, exact in _FORMAT_UNITS:
            if exact and _tmod(ms, mult) != 0:
                continue
            count = _tdiv(ms, mult)
            if count > 0:
                parts.append(f"{count}{unit}")
                ms -= count * mult
        return "".join(parts)

    def __repr__(self) -> str:
        return f"Duration({int(self)})"

    def to_json(self) -> str:
        """JSON form: the text form as a JSON string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> Duration:
        """Parse a JSON string holding a duration."""
        value = json.loads(text)
        if not isinstance(value, str):
            raise ValueError("duration must be a JSON string")
        return cls.parse(value)

    @classmethod
    def from_yaml(cls, text: str) -> Duration:
        """Parse a YAML scalar holding a duration."""
        try:
            node = yaml.compose(text, Loader=yaml.SafeLoader)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc)) from exc
        if node is None:
            return cls.parse("")
        if not isinstance(node, yaml.ScalarNode):
            raise ValueError("duration must be a YAML scalar")
        return cls.parse(node.value)

    def to_yaml(self) -> str:
        """The value to place in a YAML document."""
        return str(self)


def parse_duration(s: str) -> Duration:
    """Parse a duration, taking a year as 365d, a week as 7d and a day as 24h."""
    if s == "0":
        return Duration(0)
    if s == "":
        raise ValueError("empty duration string")

    invalid = f"not a valid duration string: {_quote(s)}"
    total = 0
    last_rank = 0
    pos = 0
    while pos < len(s):
        match = _TOKEN_RE.match(s, pos)
        if match is None:
            raise ValueError(invalid)
        digits, unit = match.groups()
        value = int(digits)
        if value > _UINT64_MAX or not unit:
            raise ValueError(invalid)
        try:
            rank, mult = _UNITS[unit]
        except KeyError:
            raise ValueError(f"unknown unit {_quote(unit)} in duration {_quote(s)}") from None
        if rank <= last_rank:
            raise ValueError(invalid)
        last_rank = rank
        if value > (1 << 63) // mult:
            raise ValueError("duration out of range")
        total += value * mult
        if total > _INT64_MAX:
            raise ValueError("duration out of range")
        pos = match.end()
    return Duration(total)