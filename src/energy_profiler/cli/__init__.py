"""Energy Profiler CLI.

Command-line interface for sampling power draw and CPU utilization on a
device.
"""

import json
import logging
from pathlib import Path

import click
from rich.console import Console

from energy_profiler import __version__
from energy_profiler.config import DEFAULT_CONFIG_PATH, ProfilerConfig, load_config

console = Console()


def get_config(ctx: click.Context) -> ProfilerConfig:
    """Configuration for the current invocation.

    Uses --config when given, otherwise the default file if it exists,
    otherwise built-in defaults.
    """
    config_path = ctx.obj.get("config_path")
    if config_path is not None:
        return load_config(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ProfilerConfig()


def report_error(ctx: click.Context, error: Exception) -> None:
    """Print an error in the requested format and exit with status 1."""
    if ctx.obj.get("json", False):
        click.echo(json.dumps({"status": "error", "error": str(error)}))
    else:
        console.print(f"[bold red]❌ Error:[/bold red] {error}")
    ctx.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="energy-profiler")
@click.option(
    "-v",
    "--verbose",
    count=True,
    help="Increase verbosity (-v for info, -vv for debug logging)",
)
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option("--quiet", is_flag=True, help="Minimal output")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"Configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
)
@click.pass_context
def cli(ctx, verbose, json, quiet, config_path):
    """Energy Profiler - power and CPU utilization sampling.

    \b
    Examples:
      energy-profiler power measure --duration 10
      energy-profiler power check
      energy-profiler cpu measure --samples 20
      energy-profiler pin 0 2
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )


from energy_profiler.cli.commands import config as _config_cmd  # noqa: E402
from energy_profiler.cli.commands import cpu as _cpu_cmd  # noqa: E402
from energy_profiler.cli.commands import pin as _pin_cmd  # noqa: E402
from energy_profiler.cli.commands import power as _power_cmd  # noqa: E402

cli.add_command(_power_cmd.power)
cli.add_command(_cpu_cmd.cpu)
cli.add_command(_pin_cmd.pin)
cli.add_command(_config_cmd.config)


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
