"""Standard leveled loggers with timestamp and caller annotations."""

from __future__ import annotations

import inspect
import json
import os
import sys
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional, TextIO

LEVEL_FLAG_OPTIONS = ["debug", "info", "warn", "error"]
FORMAT_FLAG_OPTIONS = ["logfmt", "json"]

_MISSING = "(MISSING)"
_THIS_FILE = os.path.normcase(os.path.abspath(__file__))


class _Level(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


_RANK = {level: rank for rank, level in enumerate(_Level)}


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


class AllowedLevel:
    """The minimum level a log entry must have to be written."""

    def __init__(self, s: str = "") -> None:
        self._name = ""
        self._threshold: Optional[_Level] = None
        if s:
            self.set(s)

    def set(self, s: str) -> None:
        """Set the level by name; one of debug, info, warn, error."""
        if s not in LEVEL_FLAG_OPTIONS:
            raise ValueError(f"unrecognized log level {_quote(s)}")
        self._threshold = _Level(s)
        self._name = s

    @classmethod
    def from_yaml(cls, text: str) -> AllowedLevel:
        """Parse a YAML scalar naming a level; an empty document gives no level."""
        import yaml

        try:
            node = yaml.compose(text, Loader=yaml.SafeLoader)
        except yaml.YAMLError as exc:
            raise ValueError(str(exc)) from exc
        if node is None:
            return cls()
        if not isinstance(node, yaml.ScalarNode):
            raise ValueError("log level must be a YAML scalar")
        return cls(node.value)

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"AllowedLevel({self._name!r})"


class AllowedFormat:
    """The output format of a logger: logfmt or json."""

    def __init__(self, s: str = "") -> None:
        self._name = ""
        if s:
            self.set(s)

    def set(self, s: str) -> None:
        """Set the format by name."""
        if s not in FORMAT_FLAG_OPTIONS:
            raise ValueError(f"unrecognized log format {_quote(s)}")
        self._name = s

    def __str__(self) -> str:
        return self._name

    def __repr__(self) -> str:
        return f"AllowedFormat({self._name!r})"


@dataclass
class Config:
    """Logger settings."""

    level: Optional[AllowedLevel] = None
    format: Optional[AllowedFormat] = None


def _pad(args: tuple) -> list:
    keyvals = list(args)
    if len(keyvals) % 2:
        keyvals.append(_MISSING)
    return keyvals


def _text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", "replace")
    return str(value)


def _needs_quote(ch: str) -> bool:
    return ch <= " " or ch in '="' or ch == "\ufffd"


def _logfmt_key(key: Any) -> str:
    if key is None:
        raise ValueError("nil key")
    text = _text(key)
    if not text or any(_needs_quote(ch) for ch in text):
        raise ValueError("invalid key")
    return text


def _logfmt_value(value: Any) -> str:
    if value is None:
        return "null"
    text = _text(value)
    if isinstance(value, str) and text == "null":
        return '"null"'
    if any(_needs_quote(ch) for ch in text):
        return _quote(text)
    return text


def _encode_logfmt(args: tuple) -> str:
    keyvals = _pad(args)
    fields = [
        f"{_logfmt_key(k)}={_logfmt_value(v)}" for k, v in zip(keyvals[::2], keyvals[1::2])
    ]
    return " ".join(fields) + "\n"


def _json_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str, list, dict)):
        return value
    return str(value)


def _encode_json(args: tuple) -> str:
    keyvals = _pad(args)
    record = {
        ("<nil>" if k is None else _text(k)): _json_value(v)
        for k, v in zip(keyvals[::2], keyvals[1::2])
    }
    return (
        json.dumps(record, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)
        + "\n"
    )


class _StreamLogger:
    _encode: Callable[[tuple], str]

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream
        self._lock = threading.Lock()

    def log(self, *args: Any) -> None:
        """Write one entry from alternating keys and values."""
        line = type(self)._encode(args)
        with self._lock:
            stream = self._stream if self._stream is not None else sys.stderr
            stream.write(line)
            stream.flush()


class LogfmtLogger(_StreamLogger):
    """Writes ``key=value`` lines; standard error when no stream is given."""

    _encode = staticmethod(_encode_logfmt)

    def log(self, *args: Any) -> None:
        """Write one logfmt line."""
        super().log(*args)


class JsonLogger(_StreamLogger):
    """Writes one JSON object per line; standard error when no stream is given."""

    _encode = staticmethod(_encode_json)

    def log(self, *args: Any) -> None:
        """Write one JSON line."""
        super().log(*args)


class _Valuer:
    """A value computed each time an entry is logged."""

    def __init__(self, func: Callable[[], Any]) -> None:
        self._func = func

    def __call__(self) -> Any:
        return self._func()


class _ContextLogger:
    def __init__(self, logger: Any, keyvals: tuple) -> None:
        self.logger = logger
        self.keyvals = tuple(keyvals)

    def log(self, *args: Any) -> None:
        bound = [v() if isinstance(v, _Valuer) else v for v in self.keyvals]
        self.logger.log(*bound, *args)


def _with(logger: Any, *keyvals: Any) -> _ContextLogger:
    if isinstance(logger, _ContextLogger):
        return _ContextLogger(logger.logger, logger.keyvals + keyvals)
    return _ContextLogger(logger, keyvals)


def _with_prefix(logger: Any, *keyvals: Any) -> _ContextLogger:
    if isinstance(logger, _ContextLogger):
        return _ContextLogger(logger.logger, keyvals + logger.keyvals)
    return _ContextLogger(logger, keyvals)


class _LevelFilter:
    def __init__(self, logger: Any, minimum: _Level) -> None:
        self._logger = logger
        self._minimum = minimum

    def log(self, *args: Any) -> None:
        for value in args[1::2]:
            if isinstance(value, _Level) and _RANK[value] < _RANK[self._minimum]:
                return
        self._logger.log(*args)


def _timestamp() -> str:
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def _caller() -> str:
    frame = inspect.currentframe()
    while frame is not None and os.path.normcase(
        os.path.abspath(frame.f_code.co_filename)
    ) == _THIS_FILE:
        frame = frame.f_back
    if frame is None:
        return "???"
    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


_TS = _Valuer(_timestamp)
_CALLER = _Valuer(_caller)


def _threshold(level: AllowedLevel) -> _Level:
    if level._threshold is None:
        raise ValueError("log level is not set")
    return level._threshold


def _leveled(logger: Any, level: Optional[AllowedLevel]) -> Any:
    annotated = _with(logger, "ts", _TS, "caller", _CALLER)
    if level is None:
        return annotated
    return _LevelFilter(annotated, _threshold(level))


def _stream_logger(config: Config) -> _StreamLogger:
    if config.format is not None and str(config.format) == "json":
        return JsonLogger()
    return LogfmtLogger()


def new(config: Config) -> Any:
    """A leveled logger writing to standard error in the configured format."""
    return new_with_logger(_stream_logger(config), config)


def new_with_logger(logger: Any, config: Config) -> Any:
    """Wrap ``logger`` with timestamp, caller and the configured level filter."""
    return _leveled(logger, config.level)


class DynamicLogger:
    """A leveled logger whose level can be changed while in use."""

    def __init__(self, base: Any, level: Optional[AllowedLevel] = None) -> None:
        self.base = base
        self._leveled: Any = base
        self._current: Optional[AllowedLevel] = None
        self._lock = threading.Lock()
        if level is not None:
            self.set_level(level)

    def log(self, *args: Any) -> None:
        """Log through the current level filter."""
        with self._lock:
            self._leveled.log(*args)

    def set_level(self, level: Optional[AllowedLevel]) -> None:
        """Change the level; ``None`` removes filtering."""
        with self._lock:
            if level is None:
                self._leveled = _leveled(self.base, None)
                self._current = None
                return
            threshold = _threshold(level)
            if self._current is not None and str(self._current) != str(level):
                self.base.log(
                    "msg", "Log level changed", "prev", self._current, "current", level
                )
            self._current = level
            self._leveled = _LevelFilter(
                _with(self.base, "ts", _TS, "caller", _CALLER), threshold
            )


def new_dynamic(config: Config) -> DynamicLogger:
    """A dynamic logger writing to standard error in the configured format."""
    return new_dynamic_with_logger(_stream_logger(config), config)


def new_dynamic_with_logger(logger: Any, config: Config) -> DynamicLogger:
    """A dynamic logger on top of ``logger``."""
    return DynamicLogger(logger, config.level)


def debug(logger: Any, *args: Any) -> None:
    """Log at debug level."""
    _with_prefix(logger, "level", _Level.DEBUG).log(*args)


def info(logger: Any, *args: Any) -> None:
    """Log at info level."""
    _with_prefix(logger, "level", _Level.INFO).log(*args)


def warn(logger: Any, *args: Any) -> None:
    """Log at warn level."""
    _with_prefix(logger, "level", _Level.WARN).log(*args)


def error(logger: Any, *args: Any) -> None:
    """Log at error level."""
    _with_prefix(logger, "level", _Level.ERROR).log(*args)