"""Tests for the CPU utilization sampler."""

import pytest

from energy_profiler.config import UtilizationConfig
from energy_profiler.exceptions import CounterParseError, CounterUnavailableError
from energy_profiler.utilization import (
    CpuUsageSampler,
    read_process_times,
    read_system_work,
    read_uptime,
)


@pytest.fixture
def sampler(proc_tree, clock):
    return CpuUsageSampler(
        proc_root=proc_tree.root,
        pid=proc_tree.pid,
        refresh_interval_s=0.1,
        clock_ticks=10,
        clock=clock,
    )


class TestProcParsing:
    def test_process_times(self, proc_tree):
        proc_tree.write(utime=11, stime=12, cutime=13, cstime=14, starttime=99)
        times = read_process_times(proc_tree.root / str(proc_tree.pid) / "stat")
        assert (times.utime, times.stime, times.cutime, times.cstime) == (11, 12, 13, 14)
        assert times.starttime == 99
        assert times.work == 50

    def test_process_name_with_spaces(self, proc_tree):
        proc_tree.write(utime=1, stime=2, starttime=7, comm="Web Content (x)")
        times = read_process_times(proc_tree.root / str(proc_tree.pid) / "stat")
        assert times.work == 3
        assert times.starttime == 7

    def test_truncated_process_stat(self, proc_tree):
        path = proc_tree.root / str(proc_tree.pid) / "stat"
        path.write_text("4242 (profiler) R 1 2 3\n")
        with pytest.raises(CounterParseError):
            read_process_times(path)

    def test_uptime(self, proc_tree):
        proc_tree.write(uptime="123.45")
        assert read_uptime(proc_tree.root / "uptime") == 123.45

    def test_system_work(self, proc_tree):
        proc_tree.write(user=100, nice=20, system=3)
        assert read_system_work(proc_tree.root / "stat") == 123

    def test_malformed_system_stat(self, proc_tree):
        (proc_tree.root / "stat").write_text("cpu  a b c d\n")
        with pytest.raises(CounterParseError):
            read_system_work(proc_tree.root / "stat")

    def test_undecodable_uptime(self, proc_tree):
        (proc_tree.root / "uptime").write_bytes(b"\xff\xfe 1.0\n")
        with pytest.raises(CounterParseError):
            read_uptime(proc_tree.root / "uptime")

    def test_undecodable_process_stat(self, proc_tree):
        path = proc_tree.root / str(proc_tree.pid) / "stat"
        path.write_bytes(b"4242 (\xff) R" + b" 0" * 30 + b"\n")
        with pytest.raises(CounterParseError):
            read_process_times(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(CounterUnavailableError):
            read_uptime(tmp_path / "uptime")


class TestCpuUsageSampler:
    def test_usage_from_deltas(self, sampler, proc_tree, clock):
        proc_tree.write(utime=100, starttime=500, uptime="100", user=1000, nice=0, system=0)
        sampler.get_cpu_usage()

        # 10 elapsed jiffies, 5 system-wide work jiffies, 2 of them ours
        clock.advance(1.0)
        proc_tree.write(utime=102, starttime=500, uptime="101", user=1005, nice=0, system=0)
        usage = sampler.get_cpu_usage()

        assert sampler.cpu_usage == pytest.approx(0.5)
        assert sampler.process_usage == pytest.approx(0.2)
        assert usage == pytest.approx(0.3)

    def test_first_call_measures_from_zero(self, sampler, proc_tree):
        proc_tree.write(utime=20, stime=10, starttime=0, uptime="10", user=60, nice=20, system=20)
        usage = sampler.get_cpu_usage()

        # 100 jiffies since start, 30 ours, 100 system-wide
        assert sampler.process_usage == pytest.approx(0.3)
        assert sampler.cpu_usage == pytest.approx(1.0)
        assert usage == pytest.approx(0.7)

    def test_throttled_calls_return_cached_value(self, sampler, proc_tree, clock):
        proc_tree.write(utime=100, starttime=500, uptime="100", user=1000)
        sampler.get_cpu_usage()
        clock.advance(1.0)
        proc_tree.write(utime=102, starttime=500, uptime="101", user=1005)
        first = sampler.get_cpu_usage()

        clock.advance(0.05)
        proc_tree.write(utime=102, starttime=500, uptime="102", user=1020)
        second = sampler.get_cpu_usage()

        assert second == first

    def test_refresh_after_interval(self, sampler, proc_tree, clock):
        proc_tree.write(utime=100, starttime=500, uptime="100", user=1000)
        sampler.get_cpu_usage()
        clock.advance(1.0)
        proc_tree.write(utime=102, starttime=500, uptime="101", user=1005)
        first = sampler.get_cpu_usage()

        clock.advance(0.2)
        proc_tree.write(utime=103, starttime=500, uptime="102", user=1014)
        second = sampler.get_cpu_usage()

        assert second != first
        assert second == pytest.approx(0.9 - 0.1)

    def test_throttle_does_not_read_proc(self, sampler, proc_tree, clock):
        proc_tree.write(utime=100, starttime=500, uptime="100", user=1000)
        first = sampler.get_cpu_usage()

        (proc_tree.root / "stat").unlink()
        clock.advance(0.01)
        assert sampler.get_cpu_usage() == first

    def test_elapsed_floor_of_one_jiffy(self, sampler, proc_tree, clock):
        proc_tree.write(utime=100, starttime=500, uptime="100", user=1000)
        sampler.get_cpu_usage()

        clock.advance(1.0)
        proc_tree.write(utime=101, starttime=500, uptime="100", user=1003)
        usage = sampler.get_cpu_usage()

        assert sampler.cpu_usage == pytest.approx(3.0)
        assert sampler.process_usage == pytest.approx(1.0)
        assert usage == pytest.approx(2.0)

    def test_reset_takes_fresh_baseline(self, sampler, proc_tree, clock):
        proc_tree.write(utime=20, stime=10, starttime=0, uptime="10", user=100)
        baseline = sampler.get_cpu_usage()
        assert sampler.last_refresh == clock.now

        sampler.reset()
        assert sampler.last_refresh is None
        assert sampler.cpu_usage == 0.0
        assert sampler.process_usage == 0.0

        # Within the refresh interval, but the reset forces a re-read
        clock.advance(0.01)
        assert sampler.get_cpu_usage() == baseline
        assert sampler.last_refresh == clock.now

    def test_missing_process(self, proc_tree, clock):
        proc_tree.write()
        sampler = CpuUsageSampler(proc_root=proc_tree.root, pid=1, clock=clock)
        with pytest.raises(CounterUnavailableError):
            sampler.get_cpu_usage()

    def test_defaults_to_current_process(self):
        import os

        assert CpuUsageSampler().pid == os.getpid()

    def test_from_config(self, proc_tree):
        config = UtilizationConfig(proc_root=proc_tree.root, refresh_interval_ms=250, clock_ticks=250)
        sampler = CpuUsageSampler.from_config(config, pid=proc_tree.pid)
        assert sampler.proc_root == proc_tree.root
        assert sampler.refresh_interval_s == 0.25
        assert sampler.clock_ticks == 250
