"""CLI main entry point."""

import json
import sys
from dataclasses import asdict

import click

from . import __version__
from .commands.plugin import plugin
from .config import CONFIG_TYPES, coerce_value, load_config, save_config, unset_config
from .formatters import print_config_yaml
from .shared.logging import configure_logging
from .shared.paths import ensure_dirs, get_log_file


@click.group()
@click.option("--log-level", default=None, help="Log level (debug, info, warning, error)")
@click.option("--log-json", is_flag=True, help="Emit logs as JSON lines")
@click.option("--log-file", is_flag=True, help="Write logs to ~/.playground/playground.log")
@click.option("--kubeconfig", type=click.Path(), default=None, help="Kubeconfig path")
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: str | None,
    log_json: bool,
    log_file: bool,
    kubeconfig: str | None,
) -> None:
    """Manage plugins on a local playground cluster."""
    ctx.ensure_object(dict)
    config = load_config()
    if kubeconfig:
        config.kubeconfig = kubeconfig
        config._sources["kubeconfig"] = "flag"
    if log_level:
        config.log_level = log_level
        config._sources["log_level"] = "flag"

    log_path = None
    if log_file:
        ensure_dirs()
        log_path = get_log_file()
    configure_logging(config.log_level, log_file=log_path, json_output=log_json)
    ctx.obj["config"] = config


cli.add_command(plugin)


@cli.command()
def version() -> None:
    """Show version information."""
    click.echo(f"playground version {__version__}")


@cli.group()
def config() -> None:
    """Manage CLI configuration."""
    pass


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, json_output: bool) -> None:
    """Show current configuration and where each value came from."""
    loaded = ctx.obj["config"]
    values = {key: value for key, value in asdict(loaded).items() if not key.startswith("_")}
    sources = {key: loaded.get_source(key) for key in values}

    if json_output:
        click.echo(json.dumps({"values": values, "sources": sources}, indent=2))
        return

    click.echo("Playground CLI Configuration\n")
    print_config_yaml(values)
    click.echo("Sources:")
    for key, source in sources.items():
        click.echo(f"  {key}: {source}")


@config.command("set")
@click.argument("key", type=click.Choice(sorted(CONFIG_TYPES)))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Set a value in the config file."""
    try:
        typed = coerce_value(key, value)
    except ValueError:
        click.echo(f"Error: invalid value for {key}: {value}", err=True)
        sys.exit(1)

    save_config(key, typed)
    click.echo(f"✓ {key} = {typed}")


@config.command("unset")
@click.argument("key", type=click.Choice(sorted(CONFIG_TYPES)))
def config_unset(key: str) -> None:
    """Remove a value from the config file."""
    if unset_config(key):
        click.echo(f"✓ {key} unset")
    else:
        click.echo(f"{key} is not set in the config file")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
