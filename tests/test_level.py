import pytest

from zlog.level import Level, parse_level

NAMED = [
    (-1, "trace"),
    (0, "debug"),
    (1, "info"),
    (2, "warn"),
    (3, "error"),
    (4, "fatal"),
    (5, "panic"),
    (8, "disabled"),
    (7, ""),
]

PARSED = [
    ("trace", Level.TRACE),
    ("debug", Level.DEBUG),
    ("info", Level.INFO),
    ("warn", Level.WARN),
    ("error", Level.ERROR),
    ("fatal", Level.FATAL),
    ("panic", Level.PANIC),
    ("disabled", Level.DISABLED),
    ("", Level.NO_LEVEL),
    ("-1", Level.TRACE),
    ("-2", Level(-2)),
    ("-3", Level(-3)),
]


@pytest.mark.parametrize("value, expected", NAMED)
def test_str(value, expected):
    assert str(Level(value)) == expected


@pytest.mark.parametrize("value, expected", NAMED)
def test_marshal_text(value, expected):
    assert Level(value).marshal_text() == expected


def test_str_of_unnamed_level_is_number():
    assert str(Level(-2)) == "-2"


@pytest.mark.parametrize("text, expected", PARSED)
def test_parse_level(text, expected):
    assert parse_level(text) == expected


@pytest.mark.parametrize("text, expected", PARSED)
def test_unmarshal_text(text, expected):
    assert Level.unmarshal_text(text.encode()) == expected


def test_parse_is_case_insensitive():
    assert parse_level("WaRn") == Level.WARN


def test_parse_returns_level_instance():
    parsed = parse_level("-5")
    assert isinstance(parsed, Level) and parsed == -5


@pytest.mark.parametrize("text", ["foo", "1.5", "mobile", " 1"])
def test_parse_unknown(text):
    with pytest.raises(ValueError, match="Unknown Level String"):
        parse_level(text)


@pytest.mark.parametrize("text", ["128", "-129"])
def test_parse_out_of_bounds(text):
    with pytest.raises(ValueError, match="Out-Of-Bounds Level"):
        parse_level(text)


def test_constructor_rejects_out_of_range():
    with pytest.raises(ValueError):
        Level(300)


def test_ordering():
    assert Level.TRACE < Level.DEBUG < Level.INFO < Level.WARN < Level.ERROR
    assert Level(-2) < Level.TRACE


def test_round_trip():
    for value, _ in NAMED:
        level = Level(value)
        assert Level.unmarshal_text(level.marshal_text()) == level


def test_repr():
    assert repr(Level.INFO) == "Level.INFO"
    assert repr(Level(-4)) == "Level(-4)"