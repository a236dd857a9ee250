"""CPU affinity command."""

import json

import click

from energy_profiler.affinity import pin_thread_to_cpus
from energy_profiler.cli import console, report_error


@click.command()
@click.argument("cpu1", type=click.IntRange(min=0))
@click.argument("cpu2", type=click.IntRange(min=0), default=0)
@click.argument("cpu3", type=click.IntRange(min=0), default=0)
@click.option("--tid", default=0, show_default=True, help="Native thread id, 0 for the calling thread")
@click.pass_context
def pin(ctx, cpu1, cpu2, cpu3, tid):
    """Pin a thread to up to three CPUs.

    CPU2 and CPU3 of 0 mean the slot is unused.

    \b
    Examples:
      energy-profiler pin 4
      energy-profiler pin 0 2
    """
    json_output = ctx.obj.get("json", False)

    result = pin_thread_to_cpus(cpu1, cpu2, cpu3, tid=tid)

    if not result.ok:
        report_error(ctx, RuntimeError(f"Could not set CPU affinity: {result.error}"))
        return

    if json_output:
        click.echo(json.dumps({"status": "success", "tid": result.tid, "cpus": sorted(result.cpus)}))
    else:
        console.print(f"[green]✓[/green] Pinned thread {result.tid} to CPUs {sorted(result.cpus)}")
