"""Pytest configuration for energy-profiler tests.

Fixtures build synthetic sysfs and procfs trees under tmp_path so the
samplers can run without real power-supply hardware.
"""

import time
from pathlib import Path

import pytest

from energy_profiler.counters import CounterSource, PowerSupply


def write_power_supply(
    root: Path,
    usb_current="2000000",
    usb_voltage="5000000",
    battery_current="1000000",
    battery_voltage="4000000",
    usb_input_current=None,
) -> None:
    """Write power_supply counter files. None leaves a file absent."""
    values = {
        ("usb", "current_now"): usb_current,
        ("usb", "input_current_now"): usb_input_current,
        ("usb", "voltage_now"): usb_voltage,
        ("battery", "current_now"): battery_current,
        ("battery", "voltage_now"): battery_voltage,
    }
    for (supply, name), value in values.items():
        path = root / supply / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if value is None:
            path.unlink(missing_ok=True)
        else:
            path.write_text(f"{value}\n")


def make_power_supply(root: Path) -> PowerSupply:
    return PowerSupply(
        usb_current=CounterSource(root / "usb" / "current_now", root / "usb" / "input_current_now"),
        usb_voltage=CounterSource(root / "usb" / "voltage_now"),
        battery_current=CounterSource(root / "battery" / "current_now"),
        battery_voltage=CounterSource(root / "battery" / "voltage_now"),
    )


def wait_for(predicate, timeout: float = 5.0, poll: float = 0.005) -> bool:
    """Poll until predicate() is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(poll)
    return predicate()


@pytest.fixture
def power_supply_root(tmp_path):
    """A power_supply directory holding 2A@5V USB and 1A@4V battery."""
    root = tmp_path / "power_supply"
    write_power_supply(root)
    return root


@pytest.fixture
def power_supply(power_supply_root):
    return make_power_supply(power_supply_root)


class ProcTree:
    """Writable stand-in for /proc."""

    def __init__(self, root: Path, pid: int = 4242):
        self.root = root
        self.pid = pid
        (root / str(pid)).mkdir(parents=True, exist_ok=True)

    def write(
        self,
        utime=0,
        stime=0,
        cutime=0,
        cstime=0,
        starttime=0,
        uptime="0.00",
        user=0,
        nice=0,
        system=0,
        comm="profiler",
    ) -> None:
        # Fields 3-22 of /proc/<pid>/stat; only 14-17 and 22 matter here
        fields = ["R"] + ["0"] * 19
        fields[11:15] = [str(utime), str(stime), str(cutime), str(cstime)]
        fields[19] = str(starttime)
        (self.root / str(self.pid) / "stat").write_text(
            f"{self.pid} ({comm}) {' '.join(fields)} 0 0 0\n"
        )
        (self.root / "uptime").write_text(f"{uptime} 12345.67\n")
        (self.root / "stat").write_text(
            f"cpu  {user} {nice} {system} 9000 10 0 5 0 0 0\n"
            f"cpu0 {user} {nice} {system} 9000 10 0 5 0 0 0\n"
            "intr 0\n"
        )


@pytest.fixture
def proc_tree(tmp_path):
    return ProcTree(tmp_path / "proc")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()
