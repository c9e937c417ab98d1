"""CLI output formatting helpers."""

from typing import Any

import click
import yaml
from rich.console import Console
from rich.table import Table

from .installer import InstallerKind
from .plugins import PluginRegistry, is_installed_status

console = Console()


def print_config_yaml(data: dict[str, Any], section: str | None = None) -> None:
    """Print config as YAML.

    Args:
        data: Configuration data
        section: Optional section name for header
    """
    if section:
        click.echo(f"{section}:")
        yaml_str = yaml.dump(data, default_flow_style=False, sort_keys=False)
        for line in yaml_str.splitlines():
            click.echo(f"  {line}")
    else:
        click.echo(yaml.dump(data, default_flow_style=False, sort_keys=False))


def print_plugin_table(
    registry: PluginRegistry,
    statuses: dict[str, str],
    kinds: dict[str, InstallerKind],
) -> None:
    """Print every registered plugin with its status and installer.

    Args:
        registry: Registered plugins
        statuses: Status string per plugin name
        kinds: Recorded installer kind per plugin name
    """
    table = Table(title="Plugins")
    table.add_column("Name", style="bold")
    table.add_column("Namespace")
    table.add_column("Dependencies")
    table.add_column("Status")
    table.add_column("Installer")

    for plugin in registry:
        status = statuses.get(plugin.name, "")
        style = "green" if is_installed_status(status) else "dim"
        kind = kinds.get(plugin.name)
        table.add_row(
            plugin.name,
            plugin.namespace,
            ", ".join(plugin.dependencies) or "-",
            f"[{style}]{status}[/{style}]",
            kind.value if kind else "-",
        )

    console.print(table)


def print_dependency_info(name: str, dependencies: list[str], dependents: list[str]) -> None:
    """Print the direct dependencies and dependents of one plugin."""
    console.print(f"[bold]{name}[/bold]")
    console.print(f"  Depends on:    {', '.join(dependencies) or '[dim]none[/dim]'}")
    console.print(f"  Required by:   {', '.join(dependents) or '[dim]none[/dim]'}")


def print_plan(action: str, plan: list[str]) -> None:
    """Print the ordered plugins an action will touch."""
    if not plan:
        console.print(f"Nothing to {action}.")
        return

    console.print(f"Plugins to {action} (in order):")
    for i, name in enumerate(plan, 1):
        console.print(f"  {i}. {name}")
