"""CPU utilization from /proc jiffy counters."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .exceptions import CounterParseError, CounterUnavailableError

if TYPE_CHECKING:
    from .config import UtilizationConfig

logger = logging.getLogger(__name__)

MIN_REFRESH_INTERVAL_S = 0.1
CLOCK_TICKS = 100


@dataclass(frozen=True)
class ProcessTimes:
    """Accounting fields from /proc/<pid>/stat, in jiffies."""

    utime: int
    stime: int
    cutime: int
    cstime: int
    starttime: int

    @property
    def work(self) -> int:
        return self.utime + self.stime + self.cutime + self.cstime


def _read(path: Path) -> str:
    try:
        return path.read_text()
    except UnicodeDecodeError:
        raise CounterParseError(path, "content is not valid text") from None
    except OSError as e:
        raise CounterUnavailableError(path, str(e)) from e


def _ints(path: Path, words: list[str]) -> list[int]:
    try:
        return [int(w) for w in words]
    except ValueError:
        raise CounterParseError(path, f"non-numeric field in {words!r}") from None


def read_process_times(path: Path) -> ProcessTimes:
    """Parse fields 14-17 and 22 of a /proc/<pid>/stat file.

    The comm field (2) is parenthesized and may contain spaces, so fields
    are counted from the last closing parenthesis.
    """
    content = _read(path)
    _, sep, rest = content.rpartition(")")
    words = rest.split()
    # words[0] is field 3 (state)
    if not sep or len(words) < 20:
        raise CounterParseError(path, "truncated process stat line")
    utime, stime, cutime, cstime = _ints(path, words[11:15])
    (starttime,) = _ints(path, words[19:20])
    return ProcessTimes(utime, stime, cutime, cstime, starttime)


def read_uptime(path: Path) -> float:
    """First field of /proc/uptime, in seconds."""
    words = _read(path).split()
    if not words:
        raise CounterUnavailableError(path, "empty")
    try:
        return float(words[0])
    except ValueError:
        raise CounterParseError(path, f"not a number: {words[0]!r}") from None


def read_system_work(path: Path) -> int:
    """Sum of user, nice and system jiffies from the aggregate cpu line of /proc/stat."""
    lines = _read(path).splitlines()
    words = lines[0].split() if lines else []
    if len(words) < 4:
        raise CounterParseError(path, "truncated cpu line")
    return sum(_ints(path, words[1:4]))


class CpuUsageSampler:
    """Rate-limited CPU utilization of everything except this process.

    Each refresh compares the current jiffy counters with those from the
    previous refresh. Calls made within ``refresh_interval_s`` of the last
    refresh return the cached value without touching /proc.

    Not thread-safe: share an instance across threads only with external
    locking.
    """

    def __init__(
        self,
        proc_root: str | Path = "/proc",
        pid: int | None = None,
        refresh_interval_s: float = MIN_REFRESH_INTERVAL_S,
        clock_ticks: int = CLOCK_TICKS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the sampler.

        Args:
            proc_root: Mount point of procfs
            pid: Process to attribute usage to (defaults to this process)
            refresh_interval_s: Minimum time between counter reads
            clock_ticks: Kernel jiffies per second
            clock: Monotonic time source in seconds
        """
        self.proc_root = Path(proc_root)
        self.pid = pid if pid is not None else os.getpid()
        self.refresh_interval_s = refresh_interval_s
        self.clock_ticks = clock_ticks
        self._clock = clock
        self.reset()

    @classmethod
    def from_config(cls, config: UtilizationConfig, pid: int | None = None) -> "CpuUsageSampler":
        return cls(
            proc_root=config.proc_root,
            pid=pid,
            refresh_interval_s=config.refresh_interval_ms / 1000.0,
            clock_ticks=config.clock_ticks,
        )

    def reset(self) -> None:
        """Forget previous counters so the next call starts a fresh baseline."""
        self._work_jiffies = 0
        self._proc_total_jiffies = 0
        self._proc_work_jiffies = 0
        self._cpu_usage = 0.0
        self._proc_usage = 0.0
        self._last_refresh: float | None = None

    @property
    def cpu_usage(self) -> float:
        """System-wide usage from the last refresh."""
        return self._cpu_usage

    @property
    def process_usage(self) -> float:
        """Usage of this process from the last refresh."""
        return self._proc_usage

    @property
    def last_refresh(self) -> float | None:
        return self._last_refresh

    def get_cpu_usage(self) -> float:
        """Fraction of elapsed jiffies spent on work outside this process."""
        now = self._clock()
        if self._last_refresh is not None and now - self._last_refresh < self.refresh_interval_s:
            return self._cpu_usage - self._proc_usage

        self._refresh(now)
        return self._cpu_usage - self._proc_usage

    def _refresh(self, now: float) -> None:
        proc = read_process_times(self.proc_root / str(self.pid) / "stat")
        uptime = read_uptime(self.proc_root / "uptime")

        proc_work_jiffies = proc.work
        proc_total_jiffies = int(uptime * self.clock_ticks) - proc.starttime
        elapsed_jiffies = max(proc_total_jiffies - self._proc_total_jiffies, 1)
        proc_usage = (proc_work_jiffies - self._proc_work_jiffies) / elapsed_jiffies

        work_jiffies = read_system_work(self.proc_root / "stat")
        cpu_usage = (work_jiffies - self._work_jiffies) / elapsed_jiffies

        self._work_jiffies = work_jiffies
        self._proc_total_jiffies = proc_total_jiffies
        self._proc_work_jiffies = proc_work_jiffies
        self._cpu_usage = cpu_usage
        self._proc_usage = proc_usage
        self._last_refresh = now

        logger.debug(
            "CPU usage refreshed: system=%.3f process=%.3f over %d jiffies",
            cpu_usage,
            proc_usage,
            elapsed_jiffies,
        )
