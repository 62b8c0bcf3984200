"""Structured JSON logging with levels, samplers, hooks and level-aware writers."""

__version__ = "0.1.0"

__all__ = ["level", "sampler", "writer", "syslog_writer", "logger", "pkgerrors"]