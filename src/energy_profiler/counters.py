"""Readers for kernel-exposed power-supply counters.

The power_supply class in sysfs exposes instantaneous current and voltage
as plain integers in microamps and microvolts:

- /sys/class/power_supply/usb/current_now (USB input current)
- /sys/class/power_supply/usb/voltage_now (USB input voltage)
- /sys/class/power_supply/battery/current_now (battery current)
- /sys/class/power_supply/battery/voltage_now (battery voltage)

Some devices keep usb/current_now present but empty and publish the value
in usb/input_current_now instead, so that counter carries a fallback.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .exceptions import CounterParseError, CounterUnavailableError

if TYPE_CHECKING:
    from .config import PowerSupplyConfig

logger = logging.getLogger(__name__)

POWER_SUPPLY_PATH = Path("/sys/class/power_supply")
USB_CURRENT = POWER_SUPPLY_PATH / "usb" / "current_now"
USB_CURRENT_FALLBACK = POWER_SUPPLY_PATH / "usb" / "input_current_now"
USB_VOLTAGE = POWER_SUPPLY_PATH / "usb" / "voltage_now"
BAT_CURRENT = POWER_SUPPLY_PATH / "battery" / "current_now"
BAT_VOLTAGE = POWER_SUPPLY_PATH / "battery" / "voltage_now"

MICRO = 1_000_000.0


def _first_token(path: Path) -> str | None:
    """Return the first whitespace-delimited token, or None if there is none."""
    try:
        words = path.read_text().split()
    except UnicodeDecodeError:
        raise CounterParseError(path, "content is not valid text") from None
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
        return None
    return words[0] if words else None


def _parse(path: Path, token: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise CounterParseError(path, f"not an integer: {token!r}") from None


def read_counter(path: str | Path, fallback: str | Path | None = None) -> int:
    """Read a single integer counter.

    Args:
        path: Primary counter location
        fallback: Alternate location for the same quantity, read once if the
            primary is missing or empty

    Returns:
        Counter value

    Raises:
        CounterUnavailableError: If neither location yields any content
        CounterParseError: If the content is not an integer
    """
    path = Path(path)
    token = _first_token(path)
    if token is not None:
        return _parse(path, token)

    if fallback is None:
        raise CounterUnavailableError(path, "missing or empty")

    fallback = Path(fallback)
    logger.debug("%s is empty, falling back to %s", path, fallback)
    token = _first_token(fallback)
    if token is None:
        raise CounterUnavailableError(fallback, f"missing or empty (fallback for {path})")
    return _parse(fallback, token)


class CounterSource:
    """A named counter location with an optional fallback."""

    def __init__(self, path: str | Path, fallback: str | Path | None = None):
        self.path = Path(path)
        self.fallback = Path(fallback) if fallback is not None else None

    def read(self) -> int:
        return read_counter(self.path, self.fallback)

    def exists(self) -> bool:
        """Check if either location is present."""
        if self.path.exists():
            return True
        return self.fallback is not None and self.fallback.exists()

    def __repr__(self) -> str:
        if self.fallback is None:
            return f"CounterSource('{self.path}')"
        return f"CounterSource('{self.path}', fallback='{self.fallback}')"


@dataclass(frozen=True)
class PowerReading:
    """Raw power-supply counters from one sampling instant.

    Currents are in microamps, voltages in microvolts.
    """

    usb_current: int
    usb_voltage: int
    battery_current: int
    battery_voltage: int

    @property
    def usb_watts(self) -> float:
        return self.usb_current / MICRO * (self.usb_voltage / MICRO)

    @property
    def battery_watts(self) -> float:
        return self.battery_current / MICRO * (self.battery_voltage / MICRO)

    @property
    def watts(self) -> float:
        """Total instantaneous power in watts."""
        return self.usb_watts + self.battery_watts


class PowerSupply:
    """The four counters that make up a USB + battery power reading."""

    def __init__(
        self,
        usb_current: CounterSource | None = None,
        usb_voltage: CounterSource | None = None,
        battery_current: CounterSource | None = None,
        battery_voltage: CounterSource | None = None,
    ):
        self.usb_current = usb_current or CounterSource(USB_CURRENT, USB_CURRENT_FALLBACK)
        self.usb_voltage = usb_voltage or CounterSource(USB_VOLTAGE)
        self.battery_current = battery_current or CounterSource(BAT_CURRENT)
        self.battery_voltage = battery_voltage or CounterSource(BAT_VOLTAGE)

    @classmethod
    def from_config(cls, config: PowerSupplyConfig) -> "PowerSupply":
        return cls(
            usb_current=CounterSource(config.usb_current, config.usb_current_fallback),
            usb_voltage=CounterSource(config.usb_voltage),
            battery_current=CounterSource(config.battery_current),
            battery_voltage=CounterSource(config.battery_voltage),
        )

    @property
    def sources(self) -> dict[str, CounterSource]:
        return {
            "usb_current": self.usb_current,
            "usb_voltage": self.usb_voltage,
            "battery_current": self.battery_current,
            "battery_voltage": self.battery_voltage,
        }

    def is_available(self) -> bool:
        """Check if every counter is exposed on this system."""
        return all(source.exists() for source in self.sources.values())

    def read(self) -> PowerReading:
        """Take one reading of all four counters.

        Raises:
            CounterUnavailableError: If a counter is missing or empty
            CounterParseError: If a counter holds malformed content
        """
        return PowerReading(
            usb_current=self.usb_current.read(),
            usb_voltage=self.usb_voltage.read(),
            battery_current=self.battery_current.read(),
            battery_voltage=self.battery_voltage.read(),
        )
