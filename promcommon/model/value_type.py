"""Kinds of values a query evaluation can return."""

from __future__ import annotations

import json
from enum import IntEnum


class ValueType(IntEnum):
    """The type of a query result."""

    NONE = 0
    SCALAR = 1
    VECTOR = 2
    MATRIX = 3
    STRING = 4

    def __str__(self) -> str:
        return _NAMES[self]

    @classmethod
    def parse(cls, s: str) -> ValueType:
        """The value type named ``s``."""
        try:
            return _BY_NAME[s]
        except KeyError:
            raise ValueError(f"unknown value type {json.dumps(s, ensure_ascii=False)}") from None

    def to_json(self) -> str:
        """JSON form: the name as a JSON string."""
        return json.dumps(str(self))

    @classmethod
    def from_json(cls, text: str | bytes) -> ValueType:
        """Parse a JSON string naming a value type."""
        value = json.loads(text)
        if not isinstance(value, str):
            raise ValueError("value type must be a JSON string")
        return cls.parse(value)


_NAMES = {
    ValueType.NONE: "<ValNone>",
    ValueType.SCALAR: "scalar",
    ValueType.VECTOR: "vector",
    ValueType.MATRIX: "matrix",
    ValueType.STRING: "string",
}
_BY_NAME = {name: member for member, name in _NAMES.items()}