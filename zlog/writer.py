"""Output writers that may receive the level of each log line."""

from __future__ import annotations

import abc
import inspect
import io
import os
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .level import Level


class LevelWriter(abc.ABC):
    """A writer that may also be told the level of each payload."""

    @abc.abstractmethod
    def write(self, data: bytes) -> int:
        """Write ``data`` and return the number of bytes written."""

    @abc.abstractmethod
    def write_level(self, level: Level, data: bytes) -> int:
        """Write ``data`` logged at ``level``; return the bytes written."""


class _Discard:
    def write(self, data: bytes) -> int:
        return len(data)


def _close(writer: Any) -> None:
    close = getattr(writer, "close", None)
    if callable(close):
        close()


def as_level_writer(w: Any) -> Any:
    """Return ``w`` if it takes levels, otherwise wrap it in an adapter.

    ``None`` becomes a writer that discards everything.
    """
    if w is None:
        w = _Discard()
    if isinstance(w, LevelWriter) or callable(getattr(w, "write_level", None)):
        return w
    return LevelWriterAdapter(w)


@dataclass
class LevelWriterAdapter(LevelWriter):
    """Adapts a plain writer (binary or text stream) to a LevelWriter."""

    writer: Any

    def write(self, data: bytes) -> int:
        if isinstance(self.writer, io.TextIOBase):
            self.writer.write(data.decode("utf-8", "replace"))
            return len(data)
        written = self.writer.write(data)
        return len(data) if written is None else written

    def write_level(self, level: Level, data: bytes) -> int:
        return self.write(data)

    def close(self) -> None:
        _close(self.writer)


class SyncWriter(LevelWriter):
    """Serialises every write to the wrapped writer with a lock."""

    def __init__(self, writer: Any) -> None:
        self._writer = as_level_writer(writer)
        self._lock = threading.Lock()

    def write(self, data: bytes) -> int:
        with self._lock:
            return self._writer.write(data)

    def write_level(self, level: Level, data: bytes) -> int:
        with self._lock:
            return self._writer.write_level(level, data)

    def close(self) -> None:
        with self._lock:
            _close(self._writer)


class MultiLevelWriter(LevelWriter):
    """Duplicates every write to all of its writers, like tee(1).

    Every writer is called even when an earlier one fails; the first
    failure is raised once all have been tried.
    """

    def __init__(self, *writers: Any) -> None:
        self.writers = [as_level_writer(w) for w in writers]

    def _fan_out(self, data: bytes, call: Callable[[Any], int]) -> int:
        written = 0
        failure: Optional[BaseException] = None
        for writer in self.writers:
            try:
                count = call(writer)
            except Exception as exc:
                if failure is None:
                    failure = exc
                continue
            if failure is None:
                written = count
                if count != len(data):
                    failure = OSError("short write")
        if failure is not None:
            raise failure
        return written

    def write(self, data: bytes) -> int:
        return self._fan_out(data, lambda w: w.write(data))

    def write_level(self, level: Level, data: bytes) -> int:
        return self._fan_out(data, lambda w: w.write_level(level, data))

    def close(self) -> None:
        """Close every writer in turn; the first error stops the rest."""
        for writer in self.writers:
            _close(writer)


@dataclass
class TestWriter:
    """Writes each line to a test log object exposing ``log(message)``.

    With ``frame`` above zero the reported location is rewritten to the
    caller that many frames above the one writing.
    """

    __test__ = False

    t: Any
    frame: int = 0

    def write(self, data: bytes) -> int:
        written = len(data)
        text = data.rstrip(b"\n").decode("utf-8", "replace")
        if self.frame > 0:
            here = inspect.currentframe()
            origin = here.f_back if here is not None else None
            target = origin
            for _ in range(self.frame):
                target = target.f_back if target is not None else None
            if origin is not None and target is not None:
                erase = "\b" * (
                    len(os.path.basename(origin.f_code.co_filename))
                    + len(str(origin.f_lineno))
                    + 3
                )
                location = f"{os.path.basename(target.f_code.co_filename)}:{target.f_lineno}"
                self.t.log(f"{erase}{location}: {text}")
                return written
        self.t.log(text)
        return written


@dataclass
class FilteredLevelWriter(LevelWriter):
    """Passes on only lines at ``level`` or above."""

    writer: Any
    level: Level

    def write(self, data: bytes) -> int:
        return self.writer.write(data)

    def write_level(self, level: Level, data: bytes) -> int:
        if level >= self.level:
            return self.writer.write_level(level, data)
        return len(data)


@dataclass
class TriggerLevelWriter(LevelWriter):
    """Holds back low-level lines until a line at the trigger level appears.

    Lines at ``conditional_level`` or below are buffered; lines above it
    pass straight through. The first line at ``trigger_level`` or above
    flushes the buffer and from then on everything passes through. If the
    trigger never comes, the buffered lines are never written.
    """

    writer: Any
    conditional_level: Level = Level.DEBUG
    trigger_level: Level = Level.ERROR
    _buffer: Optional[list] = field(default=None, init=False, repr=False)
    _triggered: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def write(self, data: bytes) -> int:
        written = self.writer.write(data)
        return len(data) if written is None else written

    def _forward(self, level: Level, data: bytes) -> int:
        write_level = getattr(self.writer, "write_level", None)
        if callable(write_level):
            return write_level(level, data)
        return self.write(data)

    def write_level(self, level: Level, data: bytes) -> int:
        with self._lock:
            if not self._triggered and level >= self.trigger_level:
                self._trigger()
            if not self._triggered and level <= self.conditional_level:
                if self._buffer is None:
                    self._buffer = []
                self._buffer.append((level, bytes(data)))
                return len(data)
            return self._forward(level, data)

    def _trigger(self) -> None:
        if self._triggered:
            return
        self._triggered = True
        pending, self._buffer = self._buffer, None
        for level, line in pending or ():
            self._forward(level, line)

    def trigger(self) -> None:
        """Flush the buffer and pass everything through from now on."""
        with self._lock:
            self._trigger()

    def close(self) -> None:
        """Drop any buffered lines."""
        with self._lock:
            self._buffer = None