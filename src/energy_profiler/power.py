"""Background power sampling.

EnergyProfiler owns one worker thread for its whole lifetime. The worker
wakes every ``interval_us`` microseconds and, while sampling is enabled,
reads the power-supply counters and folds the reading into two running
aggregates: the arithmetic mean and an exponential moving average with
weight 0.5.

Usage:
    profiler = EnergyProfiler(interval_us=100)
    profiler.start()
    run_workload()
    profiler.pause()
    print(profiler.get_avg_power(), profiler.get_moving_power())
    profiler.stop()
"""

from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from .counters import PowerSupply
from .exceptions import CounterError

if TYPE_CHECKING:
    from .config import ProfilerConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PowerSnapshot:
    """Consistent view of the sampler aggregates."""

    sample_count: int
    skipped_samples: int
    avg_watts: float
    moving_watts: float


class _SamplerState:
    """State shared between the controlling thread and the worker.

    The flags are events written by the caller. The aggregates are written
    only by the worker and always under ``lock`` so that count, total and
    moving average change together.
    """

    def __init__(self, seed_moving_average: bool = False):
        self.sampling = threading.Event()
        self.terminated = threading.Event()
        self.lock = threading.Lock()
        self.seed_moving_average = seed_moving_average
        self.sample_count = 0
        self.total_power = 0.0
        self.moving_power = 0.0
        self.skipped_samples = 0
        self._reported: set[type] = set()

    def record(self, watts: float) -> None:
        with self.lock:
            if self.seed_moving_average and self.sample_count == 0:
                self.moving_power = watts
            else:
                self.moving_power = (self.moving_power + watts) / 2
            self.sample_count += 1
            self.total_power += watts

    def record_skip(self, error: CounterError) -> None:
        with self.lock:
            self.skipped_samples += 1
            first = type(error) not in self._reported
            self._reported.add(type(error))

        if first:
            logger.warning("Skipping power sample: %s", error)
        else:
            logger.debug("Skipping power sample: %s", error)

    def snapshot(self) -> PowerSnapshot:
        with self.lock:
            return PowerSnapshot(
                sample_count=self.sample_count,
                skipped_samples=self.skipped_samples,
                avg_watts=self.total_power / max(self.sample_count, 1),
                moving_watts=self.moving_power,
            )


def _sample_loop(state: _SamplerState, supply: PowerSupply, interval_s: float) -> None:
    """Worker loop. Holds no reference to the profiler itself."""
    while not state.terminated.is_set():
        if state.sampling.is_set():
            try:
                reading = supply.read()
            except CounterError as e:
                state.record_skip(e)
            else:
                state.record(reading.watts)
        state.terminated.wait(interval_s)
    logger.debug("Power sampling thread exiting")


def _shutdown(state: _SamplerState, thread: threading.Thread) -> None:
    state.terminated.set()
    state.sampling.clear()
    if thread is not threading.current_thread():
        thread.join()


class EnergyProfiler:
    """Sample power draw in a background thread.

    The worker starts immediately but only samples between ``start()`` /
    ``resume()`` and the next ``pause()``. ``stop()`` terminates it for
    good; a new profiler is needed to sample again. Dropping the last
    reference to a profiler, or interpreter exit, runs the same stop
    sequence.
    """

    def __init__(
        self,
        interval_us: int = 100,
        supply: PowerSupply | None = None,
        seed_moving_average: bool = False,
    ):
        """Initialize the profiler and spawn its worker thread.

        Args:
            interval_us: Sleep between sampling attempts in microseconds
            supply: Counters to read (defaults to the standard sysfs paths)
            seed_moving_average: Seed the moving average with the first
                sample instead of starting it from zero
        """
        if interval_us <= 0:
            raise ValueError(f"interval_us must be positive, got {interval_us}")

        self.interval_us = interval_us
        self.supply = supply or PowerSupply()
        self._state = _SamplerState(seed_moving_average=seed_moving_average)
        self._thread = threading.Thread(
            target=_sample_loop,
            args=(self._state, self.supply, interval_us / 1_000_000),
            name="energy-profiler",
            daemon=True,
        )
        self._thread.start()
        self._finalizer = weakref.finalize(self, _shutdown, self._state, self._thread)

    @classmethod
    def from_config(cls, config: ProfilerConfig) -> "EnergyProfiler":
        return cls(
            interval_us=config.interval_us,
            supply=PowerSupply.from_config(config.power_supply),
            seed_moving_average=config.seed_moving_average,
        )

    def start(self) -> None:
        """Enable sampling."""
        self._state.sampling.set()

    def resume(self) -> None:
        """Re-enable sampling after a pause."""
        self._state.sampling.set()

    def pause(self) -> None:
        """Disable sampling, keeping the aggregates."""
        self._state.sampling.clear()

    def stop(self) -> None:
        """Terminate the worker and wait for it to exit.

        Safe to call more than once, and before ``start()``.
        """
        if self._finalizer.alive:
            logger.debug("Stopping power sampling thread")
        self._finalizer()

    def get_avg_power(self) -> float:
        """Mean power in watts over all samples, 0.0 before the first one."""
        return self._state.snapshot().avg_watts

    def get_moving_power(self) -> float:
        """Exponential moving average of power in watts."""
        with self._state.lock:
            return self._state.moving_power

    def snapshot(self) -> PowerSnapshot:
        return self._state.snapshot()

    @property
    def sample_count(self) -> int:
        with self._state.lock:
            return self._state.sample_count

    @property
    def skipped_samples(self) -> int:
        """Sampling attempts dropped because a counter could not be read."""
        with self._state.lock:
            return self._state.skipped_samples

    @property
    def is_sampling(self) -> bool:
        return self._state.sampling.is_set() and not self._state.terminated.is_set()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive()

    @contextmanager
    def region(self) -> Iterator["EnergyProfiler"]:
        """Sample only while the block runs."""
        self.resume()
        try:
            yield self
        finally:
            self.pause()

    def __enter__(self) -> "EnergyProfiler":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def __repr__(self) -> str:
        return (
            f"EnergyProfiler(interval_us={self.interval_us}, "
            f"sampling={self.is_sampling}, running={self.is_running})"
        )
