"""Energy Profiler - Power and CPU utilization sampling for on-device benchmarks."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("energy-profiler")
except PackageNotFoundError:
    # Package not installed (running from source without pip install -e)
    __version__ = "0.0.0.dev"

from .affinity import AffinityResult, cpu_set, pin_thread_to_cpus
from .config import ProfilerConfig, load_config, save_config
from .counters import CounterSource, PowerReading, PowerSupply, read_counter
from .exceptions import (
    AffinityError,
    ConfigError,
    CounterError,
    CounterParseError,
    CounterUnavailableError,
    ProfilerError,
)
from .power import EnergyProfiler, PowerSnapshot
from .utilization import CpuUsageSampler

__all__ = [
    "__version__",
    # Power
    "EnergyProfiler",
    "PowerSnapshot",
    "PowerSupply",
    "PowerReading",
    "CounterSource",
    "read_counter",
    # Utilization
    "CpuUsageSampler",
    # Affinity
    "pin_thread_to_cpus",
    "cpu_set",
    "AffinityResult",
    # Configuration
    "ProfilerConfig",
    "load_config",
    "save_config",
    # Errors
    "ProfilerError",
    "CounterError",
    "CounterUnavailableError",
    "CounterParseError",
    "AffinityError",
    "ConfigError",
]
