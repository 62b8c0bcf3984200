import datetime as dt
import io
import ipaddress

import pytest

from zlog import logger as lg
from zlog.level import Level
from zlog.logger import Hook, LogPanic, new, nop, set_global_level
from zlog.sampler import BasicSampler

FIXED = dt.datetime(2001, 2, 3, 4, 5, 6, 7, tzinfo=dt.timezone.utc)


@pytest.fixture(autouse=True)
def _reset_global_level():
    set_global_level(Level.TRACE)
    yield
    set_global_level(Level.TRACE)


def text(buf):
    return buf.getvalue().decode()


def test_log_empty_and_fields():
    out = io.BytesIO()
    log = new(out)
    log.log().msg("")
    log.log().field("foo", "bar").msg("")
    log.log().field("foo", "bar").field("n", 123).msg("")
    assert text(out) == '{}\n{"foo":"bar"}\n{"foo":"bar","n":123}\n'


def test_info():
    out = io.BytesIO()
    new(out).info().field("foo", "bar").field("n", 123).msg("")
    assert text(out) == '{"level":"info","foo":"bar","n":123}\n'


def test_empty_level_field_name(monkeypatch):
    monkeypatch.setattr(lg.settings, "level_field_name", "")
    out = io.BytesIO()
    new(out).info().field("foo", "bar").field("n", 123).msg("")
    assert text(out) == '{"foo":"bar","n":123}\n'


def test_bind_context_values():
    out = io.BytesIO()
    log = new(out).bind(
        string="foo", stringer=ipaddress.ip_address("127.0.0.1"), nil=None,
        bytes=b"bar", bool=True, int=1, float64=12.30303,
        time=dt.datetime(1, 1, 1), error=ValueError("some error"),
    )
    log.log().msg("")
    assert text(out) == (
        '{"string":"foo","stringer":"127.0.0.1","nil":null,"bytes":"bar","bool":true,'
        '"int":1,"float64":12.30303,"time":"0001-01-01T00:00:00Z","error":"some error"}\n'
    )


def test_fields_map_sorted():
    out = io.BytesIO()
    new(out).log().fields(
        {"string": "foo", "nil": None, "int": 1, "float64": 12.0,
         "dur": dt.timedelta(seconds=1), "error": ValueError("some error")}
    ).msg("")
    assert text(out) == (
        '{"dur":1000,"error":"some error","float64":12,"int":1,"nil":null,"string":"foo"}\n'
    )


def test_fields_slice_extraneous():
    out = io.BytesIO()
    new(out).log().fields(
        ["string", "foo", "error", ValueError("some error"), 32, "x",
         "bool", True, "int", 1, "keyWithoutValue"]
    ).msg("")
    assert text(out) == '{"string":"foo","error":"some error","bool":true,"int":1}\n'


def test_fields_not_map_or_slice():
    out = io.BytesIO()
    new(out).log().fields("string").fields(1).msg("")
    assert text(out) == "{}\n"


def test_dict_and_array():
    out = io.BytesIO()
    new(out).log().field("foo", "bar").field(
        "array", ["baz", 1, {"bar": "baz", "n": 1}]
    ).msg("hello world")
    assert text(out) == (
        '{"foo":"bar","array":["baz",1,{"bar":"baz","n":1}],"message":"hello world"}\n'
    )


class Price:
    def marshal_zlog_object(self, e):
        e.field("price", "$64.49")


def test_object_marshaler():
    out = io.BytesIO()
    new(out).log().field("foo", "bar").field("p", Price()).msg("hello world")
    assert text(out) == '{"foo":"bar","p":{"price":"$64.49"},"message":"hello world"}\n'


def test_durs():
    out = io.BytesIO()
    new(out).log().field("durs", [dt.timedelta(seconds=10), dt.timedelta(seconds=20)]).msg("x")
    assert text(out) == '{"durs":[10000,20000],"message":"x"}\n'


def test_msgf():
    out = io.BytesIO()
    new(out).log().msgf("one %s %.1f %d %s", "two", 3.4, 5, ValueError("six"))
    assert text(out) == '{"message":"one two 3.4 5 six"}\n'


def test_disabled_event_writes_nothing():
    out = io.BytesIO()
    event = new(out).level(Level.INFO).debug()
    event.field("a", 1).msg("x")
    assert not event.enabled()
    assert text(out) == ""


@pytest.mark.parametrize(
    "logger_level, call, expected",
    [
        (Level.DISABLED, "info", ""),
        (Level.DISABLED, "log", ""),
        (Level.INFO, "log", '{"message":"test"}\n'),
        (Level.PANIC, "log", '{"message":"test"}\n'),
        (Level.INFO, "info", '{"level":"info","message":"test"}\n'),
    ],
)
def test_level(logger_level, call, expected):
    out = io.BytesIO()
    getattr(new(out).level(logger_level), call)().msg("test")
    assert text(out) == expected


def test_with_level_no_level():
    out = io.BytesIO()
    new(out).level(Level.INFO).with_level(Level.NO_LEVEL).msg("test")
    assert text(out) == '{"message":"test"}\n'


@pytest.mark.parametrize("level", [0, 1, 2, 3, 4, 5, 7, 8])
def test_get_level(level):
    assert new(None).level(level).get_level() == level


def test_sampling():
    out = io.BytesIO()
    log = new(out).sample(BasicSampler(2))
    for i in range(1, 5):
        log.log().field("i", i).msg("")
    assert text(out) == '{"i":1}\n{"i":3}\n'


def test_discard():
    out = io.BytesIO()
    new(out).log().discard().discard().field("a", "b").msgf("one %s", "two")
    assert text(out) == ""


class RecordingWriter:
    def __init__(self):
        self.ops = []

    def write(self, data):
        return len(data)

    def write_level(self, level, data):
        self.ops.append((level, data.decode()))
        return len(data)


def test_level_writer():
    lw = RecordingWriter()
    set_global_level(Level.TRACE - 1)
    log = new(lw).level(Level.TRACE - 1)
    log.trace().msg("0")
    log.error().msg("4")
    log.log().msg("nolevel-1")
    log.with_level(-1).msg("-1")
    log.with_level(-2).msg("-2")
    log.with_level(-3).msg("-3")
    assert lw.ops == [
        (Level.TRACE, '{"level":"trace","message":"0"}\n'),
        (Level.ERROR, '{"level":"error","message":"4"}\n'),
        (Level.NO_LEVEL, '{"message":"nolevel-1"}\n'),
        (Level(-1), '{"level":"trace","message":"-1"}\n'),
        (Level(-2), '{"level":"-2","message":"-2"}\n'),
    ]


def test_context_timestamp(monkeypatch):
    monkeypatch.setattr(lg.settings, "timestamp_func", lambda: FIXED)
    out = io.BytesIO()
    new(out).bind_timestamp().bind(foo="bar").log().msg("hello world")
    assert text(out) == '{"foo":"bar","time":"2001-02-03T04:05:06Z","message":"hello world"}\n'


def test_event_timestamp(monkeypatch):
    monkeypatch.setattr(lg.settings, "timestamp_func", lambda: FIXED)
    out = io.BytesIO()
    new(out).bind(foo="bar").log().timestamp().msg("hello world")
    assert text(out) == '{"foo":"bar","time":"2001-02-03T04:05:06Z","message":"hello world"}\n'


def test_output():
    ignored, out = io.BytesIO(), io.BytesIO()
    new(ignored).output(out).bind(foo="bar").log().msg("hello world")
    assert text(out) == '{"foo":"bar","message":"hello world"}\n'
    assert text(ignored) == ""


class LoggableError(Exception):
    def marshal_zlog_object(self, e):
        e.field("message", f"{self}: loggableError")


class FailingWriter:
    def write(self, data):
        raise OSError("write error")


def test_error_handler(monkeypatch):
    seen = []
    monkeypatch.setattr(lg.settings, "error_handler", seen.append)
    event = new(FailingWriter()).log()
    assert event.enabled() is True
    event.msg("test")
    assert [(type(e), str(e)) for e in seen] == [(OSError, "write error")]


def test_update_empty_context():
    out = io.BytesIO()
    log = new(out)
    log.update_context(foo="bar")
    log.info().msg("no panic")
    assert text(out) == '{"level":"info","foo":"bar","message":"no panic"}\n'


class LevelNameHook(Hook):
    def run(self, event, level, message):
        event.field("level_name", str(level) if level != Level.NO_LEVEL else "NoLevel")


class MessageHook(Hook):
    def run(self, event, level, message):
        event.field("the_message", message)


def test_hooks():
    out = io.BytesIO()
    new(out).hook(LevelNameHook(), MessageHook()).info().msg("hello world")
    assert text(out) == (
        '{"level":"info","level_name":"info","the_message":"hello world","message":"hello world"}\n'
    )


def test_print_family():
    out = io.BytesIO()
    log = new(out)
    log.print("hello world")
    log.printf("hello %s", "world")
    log.println("hello world")
    assert text(out) == (
        '{"level":"debug","message":"hello world"}\n'
        '{"level":"debug","message":"hello world"}\n'
        '{"level":"debug","message":"hello world\\n"}\n'
    )


def test_write_as_stream():
    out = io.BytesIO()
    n = new(out).bind(foo="bar").write(b"hello world\n")
    assert n == 12
    assert text(out) == '{"foo":"bar","message":"hello world"}\n'


def test_err_none_is_info():
    out = io.BytesIO()
    log = new(out)
    log.err(None).msg("a")
    log.err(ValueError("some error")).msg("b")
    assert text(out) == (
        '{"level":"info","message":"a"}\n'
        '{"level":"error","error":"some error","message":"b"}\n'
    )


def test_panic_raises_after_write():
    out = io.BytesIO()
    with pytest.raises(LogPanic, match="boom"):
        new(out).panic().msg("boom")
    assert text(out) == '{"level":"panic","message":"boom"}\n'


def test_fatal_exits():
    out = io.BytesIO()
    with pytest.raises(SystemExit) as info:
        new(out).fatal().msg("bye")
    assert info.value.code == 1


def test_nop_writes_nothing():
    assert not nop().info().enabled()


def test_global_level_filters():
    out = io.BytesIO()
    set_global_level(Level.INFO)
    log = new(out)
    log.debug().msg("hidden")
    log.info().msg("shown")
    assert text(out) == '{"level":"info","message":"shown"}\n'


def test_stack_marshaler(monkeypatch):
    monkeypatch.setattr(lg.settings, "error_stack_marshaler", lambda e: ["frame"])
    out = io.BytesIO()
    new(out).log().stack().err(ValueError("e")).msg("")
    assert text(out) == '{"stack":["frame"],"error":"e"}\n'