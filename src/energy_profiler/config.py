"""Pydantic models and YAML loader for profiler configuration.

Example configuration file:

    interval_us: 100
    seed_moving_average: false
    power_supply:
      usb_current: /sys/class/power_supply/usb/current_now
      usb_current_fallback: /sys/class/power_supply/usb/input_current_now
    utilization:
      refresh_interval_ms: 100
      clock_ticks: 100
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .counters import BAT_CURRENT, BAT_VOLTAGE, USB_CURRENT, USB_CURRENT_FALLBACK, USB_VOLTAGE
from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = Path(".energy-profiler") / "config.yaml"


class PowerSupplyConfig(BaseModel):
    """Locations of the power-supply counters."""

    usb_current: Path = USB_CURRENT
    usb_current_fallback: Optional[Path] = Field(
        default=USB_CURRENT_FALLBACK,
        description="Read when usb_current is missing or empty",
    )
    usb_voltage: Path = USB_VOLTAGE
    battery_current: Path = BAT_CURRENT
    battery_voltage: Path = BAT_VOLTAGE


class UtilizationConfig(BaseModel):
    """Settings for the CPU utilization sampler."""

    proc_root: Path = Path("/proc")
    refresh_interval_ms: float = Field(
        default=100.0,
        ge=0,
        description="Calls closer together than this return the cached usage",
    )
    clock_ticks: int = Field(
        default=100,
        gt=0,
        description="Kernel jiffies per second",
    )


class ProfilerConfig(BaseModel):
    """Top-level profiler configuration."""

    interval_us: int = Field(
        default=100,
        gt=0,
        description="Sleep between sampling attempts in microseconds",
    )
    seed_moving_average: bool = Field(
        default=False,
        description="Seed the moving average with the first sample instead of 0",
    )
    power_supply: PowerSupplyConfig = Field(default_factory=PowerSupplyConfig)
    utilization: UtilizationConfig = Field(default_factory=UtilizationConfig)


def load_config(path: Union[str, Path]) -> ProfilerConfig:
    """Load profiler configuration from a YAML file.

    An empty file yields the default configuration.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed ProfilerConfig

    Raises:
        ConfigError: If the file can't be read or doesn't match the schema
    """
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Could not read {path}: {e}") from e

    try:
        return ProfilerConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def config_to_yaml(config: ProfilerConfig, include_defaults: bool = True) -> str:
    """Convert configuration to a YAML string.

    Args:
        config: Configuration to convert
        include_defaults: Whether to include default values

    Returns:
        YAML string
    """
    data = config.model_dump(
        exclude_defaults=not include_defaults,
        mode="json",
    )

    return yaml.dump(
        data,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def save_config(
    config: ProfilerConfig,
    path: Union[str, Path],
    include_defaults: bool = True,
) -> Path:
    """Save profiler configuration to a YAML file.

    Args:
        config: Configuration to save
        path: Output path, parent directories are created
        include_defaults: Whether to include default values

    Returns:
        Path to saved file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_to_yaml(config, include_defaults=include_defaults))
    return path
