"""Routing of log lines to a syslog-style writer by level."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .level import Level
from .writer import LevelWriter, _close

CEE_PREFIX = "@cee:"

_METHODS = {
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warning",
    Level.ERROR: "err",
    Level.FATAL: "emerg",
    Level.PANIC: "crit",
    Level.NO_LEVEL: "info",
}


@dataclass(frozen=True)
class SyslogLevelWriter(LevelWriter):
    """Calls the syslog method matching each line's level.

    The wrapped writer provides ``write(bytes)`` and the methods
    ``debug``, ``info``, ``warning``, ``err``, ``emerg`` and ``crit``,
    each taking a string. Trace lines are dropped.
    """

    writer: Any
    prefix: str = ""

    def write(self, data: bytes) -> int:
        written = 0
        if self.prefix:
            prefix = self.prefix.encode()
            count = self.writer.write(prefix)
            written = len(prefix) if count is None else count
        count = self.writer.write(data)
        return written + (len(data) if count is None else count)

    def write_level(self, level: Level, data: bytes) -> int:
        if level == Level.TRACE:
            return len(data)
        method = _METHODS.get(level)
        if method is None:
            raise ValueError("invalid level")
        getattr(self.writer, method)(self.prefix + data.decode("utf-8", "replace"))
        return len(data)

    def close(self) -> None:
        _close(self.writer)


def syslog_level_writer(w: Any) -> SyslogLevelWriter:
    """Wrap a syslog-style writer so each line goes to its level's method."""
    return SyslogLevelWriter(w)


def syslog_cee_writer(w: Any) -> SyslogLevelWriter:
    """Like syslog_level_writer, prefixing each entry with the CEE marker."""
    return SyslogLevelWriter(w, CEE_PREFIX)