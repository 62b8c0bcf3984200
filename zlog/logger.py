"""Structured JSON logger: loggers, events and hooks."""

from __future__ import annotations

import abc
import dataclasses
import datetime as _dt
import ipaddress
import json
import math
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from . import level as _level_mod
from .level import Level
from .sampler import Sampler
from .writer import _close, as_level_writer

_UTC = _dt.timezone.utc

TIME_FORMAT_UNIX = ""
TIME_FORMAT_RFC3339 = "rfc3339"


def _default_error_handler(exc: BaseException) -> None:
    print(f"zlog: could not write event: {exc}", file=sys.stderr)


@dataclass
class Settings:
    """Process-wide settings read whenever an event is built."""

    level_field_name: str = "level"
    message_field_name: str = "message"
    error_field_name: str = "error"
    timestamp_field_name: str = "time"
    error_stack_field_name: str = "stack"
    time_field_format: str = TIME_FORMAT_RFC3339
    timestamp_func: Callable[[], _dt.datetime] = field(
        default=lambda: _dt.datetime.now(_UTC)
    )
    error_marshal_func: Callable[[BaseException], Any] = field(default=lambda e: e)
    error_stack_marshaler: Optional[Callable[[BaseException], Any]] = None
    error_handler: Callable[[BaseException], None] = _default_error_handler


settings = Settings()

_global_level = Level.TRACE


def set_global_level(level: int) -> None:
    """Set the minimum level accepted by every logger."""
    global _global_level
    _global_level = Level(level)


def global_level() -> Level:
    """Return the process-wide minimum level."""
    return _global_level


class LogPanic(Exception):
    """Raised after an event at panic level has been written."""


class Hook(abc.ABC):
    """Runs on every enabled event just before it is written."""

    @abc.abstractmethod
    def run(self, event: "Event", level: Level, message: str) -> None:
        """Add fields to ``event`` or otherwise react to it."""


class _TimestampHook(Hook):
    def run(self, event: "Event", level: Level, message: str) -> None:
        event.timestamp()


def _run_hook(hook: Any, event: "Event", level: Level, message: str) -> None:
    if isinstance(hook, Hook) or callable(getattr(hook, "run", None)):
        hook.run(event, level, message)
    else:
        hook(event, level, message)


def _format_time(value: _dt.datetime) -> str:
    if settings.time_field_format == TIME_FORMAT_UNIX:
        aware = value if value.tzinfo else value.replace(tzinfo=_UTC)
        return str(int(aware.timestamp()))
    offset = value.utcoffset() if value.tzinfo else _dt.timedelta(0)
    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    if not offset:
        return json.dumps(text + "Z")
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return json.dumps(f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}")


def _format_float(value: float) -> str:
    if math.isnan(value):
        return '"NaN"'
    if math.isinf(value):
        return '"+Inf"' if value > 0 else '"-Inf"'
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _encode(value: Any) -> str:
    """Render one value as a JSON fragment."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, (bytes, bytearray)):
        return json.dumps(bytes(value).decode("utf-8", "replace"), ensure_ascii=False)
    if isinstance(value, _dt.datetime):
        return _format_time(value)
    if isinstance(value, _dt.timedelta):
        return _format_float(value.total_seconds() * 1000.0)
    if isinstance(value, BaseException):
        return _encode_error(value)
    if callable(getattr(value, "marshal_zlog_object", None)):
        sub = Event._detached()
        value.marshal_zlog_object(sub)
        return sub._render_object()
    if isinstance(value, dict):
        parts = [f"{json.dumps(str(k), ensure_ascii=False)}:{_encode(v)}" for k, v in value.items()]
        return "{" + ",".join(parts) + "}"
    if isinstance(value, (list, tuple, set, frozenset)):
        return "[" + ",".join(_encode(v) for v in value) + "]"
    if isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address,
                          ipaddress.IPv4Network, ipaddress.IPv6Network,
                          ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
        return json.dumps(str(value))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _encode(dataclasses.asdict(value))
    return json.dumps(str(value), ensure_ascii=False)


def _encode_error(error: BaseException) -> str:
    marshaled = settings.error_marshal_func(error)
    if marshaled is None:
        return "null"
    if callable(getattr(marshaled, "marshal_zlog_object", None)):
        return _encode(marshaled)
    if isinstance(marshaled, BaseException):
        return json.dumps(str(marshaled), ensure_ascii=False)
    return _encode(marshaled)


def _key(name: str) -> str:
    return json.dumps(name, ensure_ascii=False)


class Event:
    """A log line being built; nothing is written until ``msg`` is called."""

    def __init__(
        self,
        writer: Any = None,
        level: Level = Level.NO_LEVEL,
        *,
        enabled: bool = True,
        hooks: tuple = (),
        done: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._writer = writer
        self._level = Level(level)
        self._enabled = enabled
        self._hooks = tuple(hooks)
        self._done = done
        self._stack = False
        self._parts: list[str] = []

    @classmethod
    def _detached(cls) -> "Event":
        return cls(None, Level.NO_LEVEL)

    @classmethod
    def _disabled(cls) -> "Event":
        return cls(None, Level.DISABLED, enabled=False)

    def _render_object(self) -> str:
        return "{" + ",".join(self._parts) + "}"

    def _append(self, key: str, fragment: str) -> None:
        self._parts.append(f"{_key(key)}:{fragment}")

    def enabled(self) -> bool:
        """Return whether this event will be written."""
        return self._enabled

    def discard(self) -> "Event":
        """Disable the event so that ``msg`` writes nothing."""
        self._enabled = False
        return self

    def _add(self, key: str, value: Any) -> None:
        self._append(key, _encode(value))
        if isinstance(value, BaseException) and self._stack:
            self._append_stack(value)

    def _append_stack(self, error: BaseException) -> None:
        marshaler = settings.error_stack_marshaler
        if marshaler is None:
            return
        stack = marshaler(error)
        if stack is not None:
            self._append(settings.error_stack_field_name, _encode(stack))

    def field(self, key: str, value: Any) -> "Event":
        """Add ``key`` with ``value`` rendered by its type."""
        if self._enabled:
            self._add(key, value)
        return self

    def fields(self, fields: Any) -> "Event":
        """Add a mapping (in key order) or a flat key/value list of fields."""
        if not self._enabled:
            return self
        if isinstance(fields, dict):
            for key in sorted(fields):
                self._add(key, fields[key])
        elif isinstance(fields, (list, tuple)):
            items = list(fields)
            for pos in range(0, len(items) - 1, 2):
                key, value = items[pos], items[pos + 1]
                if isinstance(key, str):
                    self._add(key, value)
        return self

    def err(self, error: Optional[BaseException]) -> "Event":
        """Add ``error`` under the error field name; None adds nothing."""
        if not self._enabled or error is None:
            return self
        if self._stack:
            self._append_stack(error)
        self._append(settings.error_field_name, _encode_error(error))
        return self

    def timestamp(self) -> "Event":
        """Add the current time under the timestamp field name."""
        if self._enabled:
            self._append(settings.timestamp_field_name, _encode(settings.timestamp_func()))
        return self

    def stack(self) -> "Event":
        """Add a stack trace to errors added after this call."""
        self._stack = True
        return self

    def msg(self, message: str) -> None:
        """Run hooks, add the message and write the event."""
        if not self._enabled:
            return
        for hook in self._hooks:
            _run_hook(hook, self, self._level, message)
        if message:
            self._append(settings.message_field_name, _encode(message))
        line = ("{" + ",".join(self._parts) + "}\n").encode("utf-8")
        self._enabled = False
        try:
            self._writer.write_level(self._level, line)
        except Exception as exc:  # delivery failures go to the handler
            settings.error_handler(exc)
        if self._done is not None:
            self._done(message)

    def msgf(self, fmt: str, *args: Any) -> None:
        """Write the event with a %-formatted message."""
        if self._enabled:
            self.msg(fmt % args if args else fmt)

    def send(self) -> None:
        """Write the event without a message."""
        self.msg("")


def _sprint(args: tuple) -> str:
    out = []
    for pos, arg in enumerate(args):
        if pos > 0 and not isinstance(arg, str) and not isinstance(args[pos - 1], str):
            out.append(" ")
        out.append(str(arg))
    return "".join(out)


class Logger:
    """Produces JSON log events written to one output."""

    def __init__(self, writer: Any = None) -> None:
        self._writer = as_level_writer(writer)
        self._level = Level.TRACE
        self._sampler: Optional[Sampler] = None
        self._context: list[str] = []
        self._hooks: tuple = ()
        self._stack = False

    def _copy(self) -> "Logger":
        other = Logger.__new__(Logger)
        other._writer = self._writer
        other._level = self._level
        other._sampler = self._sampler
        other._context = list(self._context)
        other._hooks = self._hooks
        other._stack = self._stack
        return other

    def output(self, w: Any) -> "Logger":
        """Return a copy writing to ``w``."""
        other = self._copy()
        other._writer = as_level_writer(w)
        return other

    def _encode_context(self, items: dict) -> list[str]:
        scratch = Event._detached()
        scratch._stack = self._stack
        for key, value in items.items():
            scratch._add(key, value)
        return scratch._parts

    def bind(self, **kwargs: Any) -> "Logger":
        """Return a child logger with the given fields in its context."""
        other = self._copy()
        other._context.extend(self._encode_context(kwargs))
        return other

    def bind_timestamp(self) -> "Logger":
        """Return a child logger that stamps every event with the time."""
        return self.hook(_TimestampHook())

    def bind_stack(self) -> "Logger":
        """Return a child logger that adds stack traces to errors."""
        other = self._copy()
        other._stack = True
        return other

    def update_context(self, **kwargs: Any) -> None:
        """Add fields to this logger's own context in place."""
        self._context.extend(self._encode_context(kwargs))

    def level(self, level: int) -> "Logger":
        """Return a child logger with the minimum level set."""
        other = self._copy()
        other._level = Level(level)
        return other

    def get_level(self) -> Level:
        return self._level

    def sample(self, sampler: Optional[Sampler]) -> "Logger":
        """Return a child logger using ``sampler``."""
        other = self._copy()
        other._sampler = sampler
        return other

    def hook(self, *args: Any) -> "Logger":
        """Return a child logger with the hooks appended."""
        if not args:
            return self
        other = self._copy()
        other._hooks = self._hooks + tuple(args)
        return other

    def _new_event(self, level: Level, done: Optional[Callable[[str], None]] = None) -> Event:
        if not self.should(level):
            if done is not None:
                done("")
            return Event._disabled()
        event = Event(self._writer, level, hooks=self._hooks, done=done)
        if level != Level.NO_LEVEL and settings.level_field_name:
            event._append(
                settings.level_field_name,
                _encode(_level_mod.level_field_marshal_func(level)),
            )
        event._parts.extend(self._context)
        if self._stack:
            event.stack()
        return event

    def should(self, level: int) -> bool:
        """Return whether an event at ``level`` would be logged."""
        if self._writer is None:
            return False
        if level < self._level or level < _global_level:
            return False
        if self._sampler is not None:
            return self._sampler.sample(Level(level))
        return True

    def trace(self) -> Event:
        return self._new_event(Level.TRACE)

    def mobile(self) -> Event:
        return self._new_event(Level.MOBILE)

    def debug(self) -> Event:
        return self._new_event(Level.DEBUG)

    def info(self) -> Event:
        return self._new_event(Level.INFO)

    def warn(self) -> Event:
        return self._new_event(Level.WARN)

    def error(self) -> Event:
        return self._new_event(Level.ERROR)

    def err(self, error: Optional[BaseException]) -> Event:
        """Error level with ``error`` attached, or info level for None."""
        if error is not None:
            return self.error().err(error)
        return self.info()

    def fatal(self) -> Event:
        """Fatal level; writing it closes the output and raises SystemExit(1)."""
        def done(_message: str) -> None:
            _close(self._writer)
            raise SystemExit(1)

        return self._new_event(Level.FATAL, done)

    def panic(self) -> Event:
        """Panic level; writing it raises LogPanic with the message."""
        def done(message: str) -> None:
            raise LogPanic(message)

        return self._new_event(Level.PANIC, done)

    def with_level(self, level: int) -> Event:
        """Event at ``level`` without fatal or panic side effects."""
        level = Level(level)
        if level == Level.DISABLED:
            return Event._disabled()
        return self._new_event(level)

    def log(self) -> Event:
        """Event without a level."""
        return self._new_event(Level.NO_LEVEL)

    def alert(self, *args: Any) -> None:
        event = self.mobile()
        if event.enabled():
            event.msg(_sprint(args))

    def print(self, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(_sprint(args))

    def printf(self, fmt: str, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(fmt % args if args else fmt)

    def println(self, *args: Any) -> None:
        event = self.debug()
        if event.enabled():
            event.msg(" ".join(str(a) for a in args) + "\n")

    def write(self, data: bytes | str) -> int:
        """Log ``data`` as a level-less message; one trailing newline is dropped."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        size = len(data)
        if data.endswith(b"\n"):
            data = data[:-1]
        self.log().msg(data.decode("utf-8", "replace"))
        return size


def new(w: Any) -> Logger:
    """Create a root logger writing to ``w`` (None discards)."""
    return Logger(w)


def nop() -> Logger:
    """Return a logger for which every operation does nothing."""
    return new(None).level(Level.DISABLED)