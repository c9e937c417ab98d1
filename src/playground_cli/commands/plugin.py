"""Plugin commands.

This module provides `playground plugin`, which lists, installs and
removes cluster plugins while respecting their dependencies.
"""

from __future__ import annotations

import sys

import click
import yaml

from ..config import CLIConfig
from ..formatters import console, print_dependency_info, print_plan, print_plugin_table
from ..k8s import Kubectl
from ..plugins import (
    BatchResult,
    InstallerSelector,
    InstallerTracker,
    PluginError,
    PluginSession,
    ReadinessPoller,
    create_registry,
    default_installer_factory,
    is_gitops_controller_ready,
)
from ..utils import parse_overrides


def build_session(config: CLIConfig) -> PluginSession:
    """Wire a session against the cluster selected by ``config``."""
    kubectl = Kubectl(config.kubeconfig)
    tracker = InstallerTracker(kubectl, namespace=config.tracker_namespace)
    selector = InstallerSelector(
        tracker,
        probe=lambda: is_gitops_controller_ready(kubectl),
        factory=default_installer_factory(kubectl),
    )
    readiness = ReadinessPoller(
        kubectl,
        interval_seconds=config.ready_interval,
        timeout_seconds=config.ready_timeout,
    )
    return PluginSession(create_registry(), kubectl, tracker, selector, readiness)


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def _report(result: BatchResult, action: str) -> None:
    for name in result.completed:
        console.print(f"[green]✓[/green] {name} {action}")
    if not result.ok:
        console.print(f"[red]✗[/red] {result.failed}: {result.error.message}")
        remaining = "Completed before failure: " + (", ".join(result.completed) or "none")
        console.print(f"[dim]{remaining}[/dim]")
        sys.exit(1)


@click.group()
def plugin():
    """Manage cluster plugins."""


@plugin.command("list")
@click.pass_context
def list_plugins(ctx):
    """List plugins with their status and installer."""
    session = build_session(ctx.obj["config"])
    print_plugin_table(session.registry, session.statuses(), session.recorded_kinds())


@plugin.command()
@click.option("--name", "-n", default=None, help="Plugin to show (all when omitted)")
@click.pass_context
def deps(ctx, name):
    """Show plugin dependencies and dependents."""
    session = build_session(ctx.obj["config"])
    names = [name] if name else session.registry.names()

    for plugin_name in names:
        if plugin_name not in session.registry:
            _fail(f"plugin '{plugin_name}' not found")
        dependencies, dependents = session.validator.get_dependency_info(plugin_name)
        print_dependency_info(plugin_name, dependencies, dependents)


@plugin.command()
@click.option("--name", "-n", "names", multiple=True, required=True, help="Plugin to install")
@click.option("--no-wait", is_flag=True, help="Do not wait for plugins to become ready")
@click.option("--override", is_flag=True, help="Reinstall with override values")
@click.option("--set", "set_values", multiple=True, help="Override value KEY=VALUE (with --override)")
@click.option("--values", "values_file", type=click.Path(exists=True), help="Override values file")
@click.pass_context
def add(ctx, names, no_wait, override, set_values, values_file):
    """Install plugins and their missing dependencies.

    Examples:

        # Install the ingress controller and the load balancer it needs
        playground plugin add --name nginx-ingress

        # Change the Argo CD admin password
        playground plugin add --name argocd --override --set admin.password=secret
    """
    overrides = None
    if set_values or values_file:
        if not override:
            _fail("--set and --values require --override")
        try:
            overrides = parse_overrides(set_values, values_file)
        except (ValueError, yaml.YAMLError) as e:
            _fail(str(e))
    if override and not overrides:
        _fail("--override requires at least one --set or --values")

    session = build_session(ctx.obj["config"])
    try:
        installed = session.installed_snapshot()
        plan = session.plan_install(names, installed)
        if overrides:
            plan += [n for n in names if n not in plan]
        print_plan("install", plan)
        result = session.install(
            names,
            wait=not no_wait,
            overrides=overrides,
            on_start=lambda n: console.print(f"Installing {n}..."),
        )
    except PluginError as e:
        _fail(e.message)
    _report(result, "installed")


@plugin.command()
@click.option("--name", "-n", "names", multiple=True, required=True, help="Plugin to remove")
@click.pass_context
def remove(ctx, names):
    """Uninstall plugins and every installed plugin that depends on them."""
    session = build_session(ctx.obj["config"])
    try:
        print_plan("uninstall", session.plan_uninstall(names))
        result = session.uninstall(
            names,
            on_start=lambda n: console.print(f"Uninstalling {n}..."),
        )
    except PluginError as e:
        _fail(e.message)
    _report(result, "uninstalled")
