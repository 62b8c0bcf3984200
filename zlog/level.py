"""Log severity levels and their text form."""

from __future__ import annotations

import re
from typing import Callable, ClassVar

TRACE_VALUE = "trace"
DEBUG_VALUE = "debug"
INFO_VALUE = "info"
WARN_VALUE = "warn"
ERROR_VALUE = "error"
FATAL_VALUE = "fatal"
PANIC_VALUE = "panic"
MOBILE_VALUE = "mobile"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


class Level(int):
    """A log level: a signed 8-bit number with named well-known values.

    Values below ``Level.TRACE`` are valid and are rendered as numbers.
    """

    __slots__ = ()

    TRACE: ClassVar[Level]
    DEBUG: ClassVar[Level]
    INFO: ClassVar[Level]
    WARN: ClassVar[Level]
    ERROR: ClassVar[Level]
    FATAL: ClassVar[Level]
    PANIC: ClassVar[Level]
    MOBILE: ClassVar[Level]
    NO_LEVEL: ClassVar[Level]
    DISABLED: ClassVar[Level]

    def __new__(cls, value: int = 0) -> Level:
        value = int(value)
        if not -128 <= value <= 127:
            raise ValueError(f"Out-Of-Bounds Level: '{value}'")
        return super().__new__(cls, value)

    def __str__(self) -> str:
        return _NAMES.get(int(self), str(int(self)))

    def __repr__(self) -> str:
        name = _CONSTANT_NAMES.get(int(self))
        return f"Level.{name}" if name else f"Level({int(self)})"

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    def marshal_text(self) -> str:
        """Return the text used for this level in log output."""
        return level_field_marshal_func(self)

    @classmethod
    def unmarshal_text(cls, text: str | bytes) -> Level:
        """Parse a level from its text form (str or bytes)."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("utf-8")
        return parse_level(text)


Level.TRACE = Level(-1)
Level.DEBUG = Level(0)
Level.INFO = Level(1)
Level.WARN = Level(2)
Level.ERROR = Level(3)
Level.FATAL = Level(4)
Level.PANIC = Level(5)
Level.MOBILE = Level(6)
Level.NO_LEVEL = Level(7)
Level.DISABLED = Level(8)

_NAMES = {
    -1: TRACE_VALUE,
    0: DEBUG_VALUE,
    1: INFO_VALUE,
    2: WARN_VALUE,
    3: ERROR_VALUE,
    4: FATAL_VALUE,
    5: PANIC_VALUE,
    6: MOBILE_VALUE,
    7: "",
    8: "disabled",
}

_CONSTANT_NAMES = {
    -1: "TRACE",
    0: "DEBUG",
    1: "INFO",
    2: "WARN",
    3: "ERROR",
    4: "FATAL",
    5: "PANIC",
    6: "MOBILE",
    7: "NO_LEVEL",
    8: "DISABLED",
}

_PARSEABLE = (
    Level.TRACE,
    Level.DEBUG,
    Level.INFO,
    Level.WARN,
    Level.ERROR,
    Level.FATAL,
    Level.PANIC,
    Level.DISABLED,
    Level.NO_LEVEL,
)

# Renders a level as the value of the level field; may be replaced.
level_field_marshal_func: Callable[[Level], str] = str


def parse_level(text: str) -> Level:
    """Convert a level string into a Level.

    Raises ValueError when the text is neither a known name nor an
    integer in the signed 8-bit range.
    """
    folded = text.casefold()
    for candidate in _PARSEABLE:
        if folded == level_field_marshal_func(candidate).casefold():
            return candidate
    if not _INT_PATTERN.fullmatch(text):
        raise ValueError(f"Unknown Level String: '{text}', defaulting to NoLevel")
    number = int(text)
    if number > 127 or number < -128:
        raise ValueError(f"Out-Of-Bounds Level: '{number}', defaulting to NoLevel")
    return Level(number)