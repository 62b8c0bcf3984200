# zlog

Structured JSON logging. Each event is written as a single JSON object on its
own line, in one call to the output's `write_level` method.

## Install

    pip install zlog

## Usage

```python
import sys
from zlog.logger import new
from zlog.level import Level

logger = new(sys.stdout)
logger.info().field("foo", "bar").msg("hello world")
# {"level":"info","foo":"bar","message":"hello world"}

child = logger.bind(component="api")
child.warn().msg("slow request")
# {"level":"warn","component":"api","message":"slow request"}

quiet = logger.level(Level.WARN)
quiet.info().msg("filtered out")
```

`new(w)` accepts a binary stream, a text stream, any object with `write`, or
an object that also has `write_level(level, data)`. `new(None)` discards
everything and `nop()` returns a logger that is disabled.

Events are built in a chain (`field`, `fields`, `err`, `timestamp`, `stack`)
and written by `msg`, `msgf` or `send`. A disabled event (its level is below
the logger's or the global level, or it was sampled out) ignores every call, so
`event.enabled()` can guard expensive work; `discard()` disables an event by
hand.

Values are rendered by type: strings, numbers, booleans, `None`, bytes,
`datetime` (RFC 3339, or Unix seconds when `settings.time_field_format` is
`TIME_FORMAT_UNIX`), `timedelta` (milliseconds), exceptions, IP addresses and
networks, dicts, lists, dataclasses, and any object with a
`marshal_zlog_object(event)` method. `fields` takes a dict (written in key
order) or a flat `[key, value, ...]` list, skipping entries whose key is not a
string.

`Logger` also offers `trace`, `debug`, `info`, `warn`, `error`, `mobile`,
`log` (no level), `with_level(level)`, `err(error)` (error level with the error
attached, or info level for `None`), and the shortcuts `print`, `printf`,
`println` and `alert`. `fatal()` events close the output and raise
`SystemExit(1)` once written; `panic()` events raise `LogPanic` with the
message. `Logger.write(data)` logs a line without a level, so a logger can
serve as the stream of another logging system.

Field names, the time format and the time source, error rendering and the
handler for write failures are attributes of `zlog.logger.settings`.

### Levels

`Level` is an integer with the named values `TRACE`, `DEBUG`, `INFO`, `WARN`,
`ERROR`, `FATAL`, `PANIC`, `MOBILE`, `NO_LEVEL` and `DISABLED`; other values
from -128 to 127 are allowed and shown as numbers. `parse_level` accepts the
names trace, debug, info, warn, error, fatal, panic and disabled in any case,
the empty string for no level, and plain integers from -128 to 127; anything
else raises `ValueError`. `Level.marshal_text()` and `Level.unmarshal_text()`
convert to and from text. `zlog.logger.set_global_level` sets a floor that
applies to every logger.

### Sampling

`BasicSampler(n)` keeps every nth event starting with the first,
`RandomSampler(n)` keeps about one in n, `BurstSampler(burst, period,
next_sampler)` lets a burst through per period (in seconds) before handing over
to another sampler, and `LevelSampler` picks a sampler per level:

```python
from zlog.sampler import BasicSampler

sampled = logger.sample(BasicSampler(2))
```

### Hooks

A `Hook` subclass, or a plain callable, gets `run(event, level, message)` just
before an event is written and may add fields to it. `Logger.hook(*hooks)`
returns a child logger with them appended; `bind_timestamp()` adds a hook
that stamps each event with the time.

### Writers

`zlog.writer` provides `LevelWriterAdapter`, `SyncWriter` (serialised by a
lock), `MultiLevelWriter` (fan-out to every writer; the first failure is raised
after all were tried), `FilteredLevelWriter` (drops lines below a level),
`TriggerLevelWriter` (holds low-level lines back until a line at the trigger
level arrives) and `TestWriter` (sends lines to an object's `log` method).
`zlog.syslog_writer` routes lines to a syslog-like object's
`debug`/`info`/`warning`/`err`/`emerg`/`crit` methods and drops trace lines;
`syslog_cee_writer` adds the `@cee:` prefix.

### Stack traces

`zlog.pkgerrors.marshal_stack` turns the traceback of an exception, or of the
first exception in its cause chain that has one, into a list of
`{"func", "line", "source"}` records, innermost frame first. Set it as
`settings.error_stack_marshaler` and call `Event.stack()` or
`Logger.bind_stack()` to have it added to logged errors.

## What it does not do

There is no ready-made module-wide logger; create one with `new(...)` and pass
it where it is needed. There is no console pretty-printer: output is always
JSON.

## Tests

    pip install -e .[test]
    pytest