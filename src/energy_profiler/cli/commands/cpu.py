"""CPU utilization commands."""

import json
import statistics
import time

import click
from rich.table import Table

from energy_profiler.cli import console, get_config, report_error
from energy_profiler.exceptions import ProfilerError
from energy_profiler.utilization import CpuUsageSampler


@click.group()
def cpu():
    """Measure CPU utilization from /proc.

    \b
    Examples:
      # Ten readings, half a second apart
      energy-profiler cpu measure --samples 10 --period 0.5
    """
    pass


@cpu.command()
@click.option("--samples", default=10, show_default=True, type=click.IntRange(min=1), help="Number of readings")
@click.option("--period", default=0.5, show_default=True, type=click.FloatRange(min=0), help="Seconds between readings")
@click.option("--pid", type=int, help="Process to exclude from the system usage (default: this one)")
@click.pass_context
def measure(ctx, samples, period, pid):
    """Report system CPU usage outside a process."""
    json_output = ctx.obj.get("json", False)
    quiet = ctx.obj.get("quiet", False)

    readings = []
    try:
        sampler = CpuUsageSampler.from_config(get_config(ctx).utilization, pid=pid)
        # First call only establishes the baseline
        sampler.get_cpu_usage()
        for _ in range(samples):
            time.sleep(period)
            readings.append(
                {
                    "usage": sampler.get_cpu_usage(),
                    "system": sampler.cpu_usage,
                    "process": sampler.process_usage,
                }
            )
    except ProfilerError as e:
        report_error(ctx, e)
        return

    usages = [r["usage"] for r in readings]
    summary = {
        "pid": sampler.pid,
        "samples": readings,
        "mean_usage": statistics.mean(usages),
        "peak_usage": max(usages),
    }

    if json_output:
        click.echo(json.dumps(summary, indent=2))
    elif quiet:
        click.echo(f"{summary['mean_usage']}")
    else:
        table = Table(title=f"CPU Usage (excluding pid {sampler.pid})", show_header=True)
        table.add_column("#", style="dim")
        table.add_column("Other", style="cyan")
        table.add_column("System", style="white")
        table.add_column("Process", style="white")

        for i, r in enumerate(readings, 1):
            table.add_row(str(i), f"{r['usage']:.3f}", f"{r['system']:.3f}", f"{r['process']:.3f}")

        console.print(table)
        console.print(f"  Mean: {summary['mean_usage']:.3f}")
        console.print(f"  Peak: {summary['peak_usage']:.3f}")
