"""Power sampling commands."""

import json
import time

import click
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from energy_profiler.cli import console, get_config, report_error
from energy_profiler.counters import PowerSupply
from energy_profiler.exceptions import CounterError, ProfilerError
from energy_profiler.power import EnergyProfiler


@click.group()
def power():
    """Sample power draw from the power-supply counters.

    \b
    Examples:
      # Average power over 10 seconds
      energy-profiler power measure --duration 10

      # Check which counters are readable
      energy-profiler power check
    """
    pass


@power.command()
@click.option("--duration", default=10.0, show_default=True, type=click.FloatRange(min=0), help="Seconds to sample for")
@click.option("--interval-us", type=int, help="Sampling interval in microseconds (overrides config)")
@click.pass_context
def measure(ctx, duration, interval_us):
    """Sample power for a fixed duration and report the averages."""
    json_output = ctx.obj.get("json", False)
    quiet = ctx.obj.get("quiet", False)

    try:
        config = get_config(ctx)
        if interval_us is not None:
            config = config.model_copy(update={"interval_us": interval_us})

        with EnergyProfiler.from_config(config) as profiler:
            profiler.start()
            if not quiet and not json_output:
                with Progress(
                    SpinnerColumn(),
                    TextColumn("[progress.description]{task.description}"),
                    TimeElapsedColumn(),
                    console=console,
                ) as progress:
                    task = progress.add_task(f"[cyan]Sampling power for {duration:g}s...", total=None)
                    time.sleep(duration)
                    progress.update(task, completed=1)
            else:
                time.sleep(duration)
            profiler.pause()
            snapshot = profiler.snapshot()
    except (ProfilerError, ValueError) as e:
        report_error(ctx, e)
        return

    if json_output:
        click.echo(
            json.dumps(
                {
                    "duration_s": duration,
                    "interval_us": config.interval_us,
                    "avg_watts": snapshot.avg_watts,
                    "moving_watts": snapshot.moving_watts,
                    "sample_count": snapshot.sample_count,
                    "skipped_samples": snapshot.skipped_samples,
                },
                indent=2,
            )
        )
    elif quiet:
        click.echo(f"{snapshot.avg_watts}")
    else:
        console.print("\n[bold]Power[/bold]")
        console.print(f"  Average: {snapshot.avg_watts:.3f} W")
        console.print(f"  Moving Average: {snapshot.moving_watts:.3f} W")
        console.print(f"  Samples: {snapshot.sample_count}")
        if snapshot.skipped_samples:
            console.print(f"  [yellow]Skipped: {snapshot.skipped_samples}[/yellow]")


@power.command()
@click.pass_context
def check(ctx):
    """Check that the power-supply counters are readable."""
    json_output = ctx.obj.get("json", False)

    try:
        supply = PowerSupply.from_config(get_config(ctx).power_supply)
    except ProfilerError as e:
        report_error(ctx, e)
        return

    counters = []
    for name, source in supply.sources.items():
        entry = {"name": name, "path": str(source.path), "value": None, "error": None}
        try:
            entry["value"] = source.read()
        except CounterError as e:
            entry["error"] = str(e)
        counters.append(entry)

    readable = all(c["error"] is None for c in counters)

    if json_output:
        click.echo(json.dumps({"readable": readable, "counters": counters}, indent=2))
    else:
        table = Table(title="Power Supply Counters", show_header=True)
        table.add_column("Counter", style="cyan")
        table.add_column("Path", style="white")
        table.add_column("Value", style="green")

        for c in counters:
            value = str(c["value"]) if c["error"] is None else f"[red]{c['error']}[/red]"
            table.add_row(c["name"], c["path"], value)

        console.print(table)

    if not readable:
        ctx.exit(1)
