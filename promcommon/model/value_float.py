"""Float sample values and timestamp/value pairs."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Any

from .times import EARLIEST, Time, _format_float, _quote


def format_float(v: float) -> str:
    """Format a float in shortest fixed-point form, with +Inf, -Inf and NaN."""
    return _format_float(v)


class _RawNumber(str):
    """A JSON number kept as its source text."""

    __slots__ = ()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON literal {name}")


def _loads_raw(text: str | bytes) -> Any:
    """Decode JSON, keeping numbers as their source text."""
    if isinstance(text, (bytes, bytearray)):
        text = bytes(text).decode()
    return json.loads(
        text,
        parse_float=_RawNumber,
        parse_int=_RawNumber,
        parse_constant=_reject_constant,
    )


def _parse_float(text: str) -> float:
    syntax_error = ValueError(f"strconv.ParseFloat: parsing {_quote(text)}: invalid syntax")
    if not text or text != text.strip() or "_" in text:
        raise syntax_error
    bare = text.lstrip("+-").lower()
    try:
        value = float.fromhex(text) if bare.startswith("0x") else float(text)
    except ValueError:
        raise syntax_error from None
    if math.isinf(value) and bare not in ("inf", "infinity"):
        raise ValueError(f"strconv.ParseFloat: parsing {_quote(text)}: value out of range")
    return value


def _time_from_token(token: Any) -> Time:
    if not isinstance(token, _RawNumber):
        raise ValueError("timestamp must be a JSON number")
    return Time.from_json(token)


class SampleValue(float):
    """The value of a sample at a given time."""

    __slots__ = ()

    def equal(self, o: float) -> bool:
        """True if the values are equal or both are NaN."""
        if float(self) == float(o):
            return True
        return math.isnan(self) and math.isnan(o)

    def __str__(self) -> str:
        return format_float(self)

    def __repr__(self) -> str:
        return f"SampleValue({format_float(self)})"

    def to_json(self) -> str:
        """JSON form: the number as a quoted string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> SampleValue:
        """Parse a number held in a JSON string."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode()
        if len(text) < 2 or text[0] != '"' or text[-1] != '"':
            raise ValueError("sample value must be a quoted string")
        return cls(_parse_float(text[1:-1]))

    @classmethod
    def _from_token(cls, token: Any) -> SampleValue:
        if not isinstance(token, str) or isinstance(token, _RawNumber):
            raise ValueError("sample value must be a quoted string")
        return cls(_parse_float(token))


@dataclass
class SamplePair:
    """A sample value paired with its timestamp."""

    timestamp: Time = Time(0)
    value: SampleValue = SampleValue(0.0)

    def __post_init__(self) -> None:
        self.timestamp = Time(self.timestamp)
        self.value = SampleValue(self.value)

    def equal(self, o: SamplePair) -> bool:
        """True if timestamps match and values are equal or both NaN."""
        return self is o or (self.value.equal(o.value) and self.timestamp == o.timestamp)

    def __str__(self) -> str:
        return f"{self.value} @[{self.timestamp}]"

    def to_json(self) -> str:
        """JSON form: ``[timestamp,"value"]``."""
        return f"[{self.timestamp.to_json()},{self.value.to_json()}]"

    @classmethod
    def from_json(cls, text: str | bytes) -> SamplePair:
        """Parse the ``[timestamp,"value"]`` form."""
        return cls._from_parsed(_loads_raw(text))

    @classmethod
    def _from_parsed(cls, obj: Any) -> SamplePair:
        pair = cls()
        if obj is None:
            return pair
        if not isinstance(obj, list):
            raise ValueError("sample pair must be a JSON array")
        if len(obj) > 0:
            pair.timestamp = _time_from_token(obj[0])
        if len(obj) > 1:
            pair.value = SampleValue._from_token(obj[1])
        return pair


ZERO_SAMPLE_PAIR = SamplePair(timestamp=EARLIEST)