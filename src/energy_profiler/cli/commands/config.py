"""Configuration management commands."""

import json
from pathlib import Path

import click
from rich.syntax import Syntax

from energy_profiler.cli import console, report_error
from energy_profiler.config import DEFAULT_CONFIG_PATH, ProfilerConfig, config_to_yaml, load_config, save_config
from energy_profiler.exceptions import ConfigError


def _config_file(ctx) -> Path:
    return ctx.obj.get("config_path") or DEFAULT_CONFIG_PATH


@click.group()
def config():
    """Manage configuration settings.

    \b
    Examples:
      # Write the default configuration
      energy-profiler config init

      # Show the effective configuration
      energy-profiler config show
    """
    pass


@config.command()
@click.option("--force", is_flag=True, help="Overwrite an existing file")
@click.pass_context
def init(ctx, force):
    """Initialize configuration file."""
    json_output = ctx.obj.get("json", False)
    config_file = _config_file(ctx)

    if config_file.exists() and not force:
        if json_output:
            click.echo(json.dumps({"status": "exists", "config_file": str(config_file)}))
            ctx.exit(0)
        console.print("[yellow]⚠[/yellow] Configuration file already exists")
        if not click.confirm("Overwrite?"):
            ctx.exit(0)

    save_config(ProfilerConfig(), config_file)

    if json_output:
        click.echo(json.dumps({"status": "success", "config_file": str(config_file)}))
    else:
        console.print(f"\n[green]✓[/green] Configuration initialized: {config_file}")
        console.print("\n[dim]Edit this file to customize your settings[/dim]")


@config.command()
@click.pass_context
def show(ctx):
    """Show the effective configuration."""
    json_output = ctx.obj.get("json", False)
    config_file = _config_file(ctx)

    try:
        if config_file.exists():
            current = load_config(config_file)
            source = str(config_file)
        else:
            current = ProfilerConfig()
            source = "defaults"
    except ConfigError as e:
        report_error(ctx, e)
        return

    if json_output:
        click.echo(json.dumps({"source": source, "config": current.model_dump(mode="json")}, indent=2))
    else:
        console.print(f"\n[bold]Configuration:[/bold] {source}\n")
        syntax = Syntax(config_to_yaml(current), "yaml", theme="monokai", line_numbers=True)
        console.print(syntax)


@config.command()
@click.pass_context
def validate(ctx):
    """Validate configuration."""
    json_output = ctx.obj.get("json", False)
    config_file = _config_file(ctx)

    if not config_file.exists():
        report_error(ctx, ConfigError(f"Configuration file not found: {config_file}"))
        return

    try:
        load_config(config_file)
    except ConfigError as e:
        if json_output:
            click.echo(json.dumps({"valid": False, "error": str(e)}))
        else:
            console.print(f"[bold red]❌ Error:[/bold red] {e}")
        ctx.exit(1)
        return

    if json_output:
        click.echo(json.dumps({"valid": True, "config_file": str(config_file)}))
    else:
        console.print("[green]✓[/green] Configuration is valid")
