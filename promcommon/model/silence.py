"""Silence definitions and the label matchers they hold."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from .times import _quote

_LABEL_NAME_RE = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")


def _is_valid_utf8(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _string_field(obj: dict, key: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"matcher field {_quote(key)} must be a JSON string")
    return value


@dataclass
class Matcher:
    """Matches the value of one label, literally or by regular expression."""

    name: str = ""
    value: str = ""
    is_regex: bool = False

    def validate(self) -> None:
        """Raise ValueError unless name and value are both valid."""
        if not _LABEL_NAME_RE.fullmatch(self.name):
            raise ValueError(f"invalid name {_quote(self.name)}")
        if self.is_regex:
            try:
                re.compile(self.value)
            except re.error:
                raise ValueError(f"invalid regular expression {_quote(self.value)}") from None
        elif not self.value or not _is_valid_utf8(self.value):
            raise ValueError(f"invalid value {_quote(self.value)}")

    @classmethod
    def from_json(cls, text: str | bytes) -> Matcher:
        """Parse a matcher object with ``name``, ``value`` and ``isRegex``."""
        obj: Any = json.loads(text)
        matcher = cls()
        if obj is not None:
            if not isinstance(obj, dict):
                raise ValueError("matcher must be a JSON object")
            matcher.name = _string_field(obj, "name")
            matcher.value = _string_field(obj, "value")
            flag = obj.get("isRegex")
            if flag is not None:
                if not isinstance(flag, bool):
                    raise ValueError('matcher field "isRegex" must be a JSON boolean')
                matcher.is_regex = flag
        if not matcher.name:
            raise ValueError("label name in matcher must not be empty")
        if matcher.is_regex:
            try:
                re.compile(matcher.value)
            except re.error as exc:
                raise ValueError(str(exc)) from exc
        return matcher


@dataclass
class Silence:
    """A silence definition: matchers, a time span and who made it and why."""

    matchers: list[Matcher] = field(default_factory=list)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    created_by: str = ""
    comment: str = ""
    id: int = 0

    def validate(self) -> None:
        """Raise ValueError unless every field holds a valid value."""
        if not self.matchers:
            raise ValueError("at least one matcher required")
        for matcher in self.matchers:
            try:
                matcher.validate()
            except ValueError as exc:
                raise ValueError(f"invalid matcher: {exc}") from exc
        if self.starts_at is None:
            raise ValueError("start time missing")
        if self.ends_at is None:
            raise ValueError("end time missing")
        if self.ends_at < self.starts_at:
            raise ValueError("start time must be before end time")
        if not self.created_by:
            raise ValueError("creator information missing")
        if not self.comment:
            raise ValueError("comment missing")
        if self.created_at is None:
            raise ValueError("creation timestamp missing")