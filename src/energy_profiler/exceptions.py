"""Exceptions for the energy profiler."""

from __future__ import annotations

from pathlib import Path


class ProfilerError(Exception):
    """Base exception for profiler errors."""

    pass


class CounterError(ProfilerError):
    """A system counter could not be turned into a number."""

    def __init__(self, path: str | Path, message: str):
        self.path = Path(path)
        super().__init__(f"{self.path}: {message}")


class CounterUnavailableError(CounterError):
    """Counter file is missing, unreadable or empty."""

    pass


class CounterParseError(CounterError):
    """Counter file holds content that is not a valid reading."""

    pass


class AffinityError(ProfilerError):
    """Failed to change the CPU affinity of a thread."""

    pass


class ConfigError(ProfilerError):
    """Configuration file could not be loaded or is invalid."""

    pass
