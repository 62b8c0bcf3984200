"""Samplers deciding which log events are kept."""

from __future__ import annotations

import abc
import random
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from .level import Level

_UINT32_MASK = 0xFFFFFFFF


class Sampler(abc.ABC):
    """Decides whether an event is part of the sample."""

    @abc.abstractmethod
    def sample(self, level: Level) -> bool:
        """Return True to keep the event, False to drop it."""


@dataclass(frozen=True)
class RandomSampler(Sampler):
    """Keeps roughly one event out of ``n``, chosen at random."""

    n: int

    def sample(self, level: Level) -> bool:
        if self.n <= 0:
            return False
        return random.randrange(self.n) == 0


OFTEN = RandomSampler(10)
SOMETIMES = RandomSampler(100)
RARELY = RandomSampler(1000)


@dataclass
class BasicSampler(Sampler):
    """Keeps every ``n``-th event, starting with the first."""

    n: int
    _counter: int = field(default=0, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def sample(self, level: Level) -> bool:
        if self.n == 1:
            return True
        with self._lock:
            self._counter = (self._counter + 1) & _UINT32_MASK
            count = self._counter
        return count % self.n == 1


@dataclass
class BurstSampler(Sampler):
    """Lets ``burst`` events through per ``period`` seconds, then defers.

    After the burst the decision goes to ``next_sampler``; without one the
    remaining events of the period are dropped.
    """

    burst: int
    period: float = 0.0
    next_sampler: Optional[Sampler] = None
    _counter: int = field(default=0, init=False, repr=False, compare=False)
    _reset_at: Optional[int] = field(default=None, init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def sample(self, level: Level) -> bool:
        if self.burst > 0 and self.period > 0 and self._increment() <= self.burst:
            return True
        if self.next_sampler is None:
            return False
        return self.next_sampler.sample(level)

    def _increment(self) -> int:
        now = time.monotonic_ns()
        with self._lock:
            if self._reset_at is None or now > self._reset_at:
                self._counter = 1
                self._reset_at = now + int(self.period * 1_000_000_000)
            else:
                self._counter = (self._counter + 1) & _UINT32_MASK
            return self._counter


@dataclass
class LevelSampler(Sampler):
    """Applies a different sampler to each level; unset levels always pass."""

    trace_sampler: Optional[Sampler] = None
    debug_sampler: Optional[Sampler] = None
    info_sampler: Optional[Sampler] = None
    warn_sampler: Optional[Sampler] = None
    error_sampler: Optional[Sampler] = None

    def sample(self, level: Level) -> bool:
        chosen = {
            Level.TRACE: self.trace_sampler,
            Level.DEBUG: self.debug_sampler,
            Level.INFO: self.info_sampler,
            Level.WARN: self.warn_sampler,
            Level.ERROR: self.error_sampler,
        }.get(level)
        if chosen is None:
            return True
        return chosen.sample(level)