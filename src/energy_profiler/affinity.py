"""Thread CPU affinity."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from .exceptions import AffinityError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AffinityResult:
    """Outcome of a pinning request."""

    tid: int
    cpus: frozenset[int]
    ok: bool
    error: str | None = None

    def raise_for_error(self) -> None:
        if not self.ok:
            raise AffinityError(f"Could not pin thread {self.tid} to CPUs {sorted(self.cpus)}: {self.error}")


def cpu_set(cpu1: int, cpu2: int = 0, cpu3: int = 0) -> frozenset[int]:
    """Build the set of logical CPUs for a pinning request.

    ``cpu1`` is always included. ``cpu2`` and ``cpu3`` are included only
    when non-zero, 0 marks an unused slot.
    """
    for cpu in (cpu1, cpu2, cpu3):
        if cpu < 0:
            raise ValueError(f"CPU ids must be non-negative, got {cpu}")
    return frozenset([cpu1] + [cpu for cpu in (cpu2, cpu3) if cpu])


def pin_thread_to_cpus(cpu1: int, cpu2: int = 0, cpu3: int = 0, tid: int = 0) -> AffinityResult:
    """Restrict a thread to at most three logical CPUs.

    Failures are logged and reported in the result rather than raised.

    Args:
        cpu1: First CPU id
        cpu2: Second CPU id, 0 if unused
        cpu3: Third CPU id, 0 if unused
        tid: Native thread id, 0 for the calling thread

    Returns:
        AffinityResult describing what was requested and whether it took
    """
    cpus = cpu_set(cpu1, cpu2, cpu3)

    if not hasattr(os, "sched_setaffinity"):
        error = "sched_setaffinity is not supported on this platform"
        logger.warning("Could not set CPU affinity: %s", error)
        return AffinityResult(tid=tid, cpus=cpus, ok=False, error=error)

    try:
        os.sched_setaffinity(tid, cpus)
    except OSError as e:
        logger.warning("Could not pin thread %d to CPUs %s: %s", tid, sorted(cpus), e)
        return AffinityResult(tid=tid, cpus=cpus, ok=False, error=str(e))

    logger.info("Pinned thread %d to CPUs %s", tid, sorted(cpus))
    return AffinityResult(tid=tid, cpus=cpus, ok=True)
