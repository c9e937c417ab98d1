"""Per-plugin install/uninstall driver.

Ties together installer selection, the installer itself, the tracking store
and the optional readiness wait for a single plugin. Tracking failures are
logged here and never escape.
"""

from __future__ import annotations

from dataclasses import replace

from ..installer import InstallerError, InstallerKind
from ..shared.logging import get_logger
from .base import PluginDescriptor
from .errors import (
    BlockedByDependentsError,
    InstallError,
    ReadinessTimeoutError,
    TrackingError,
    UninstallError,
)
from .readiness import ReadinessPoller
from .selector import InstallerSelector
from .tracker import InstallerTracker
from .values import Values, merge_values

logger = get_logger(__name__)


class Orchestrator:
    """Install or uninstall one plugin."""

    def __init__(
        self,
        plugin: PluginDescriptor,
        selector: InstallerSelector,
        tracker: InstallerTracker,
        readiness: ReadinessPoller | None = None,
    ):
        """Initialize orchestrator.

        Args:
            plugin: Plugin to act on.
            selector: Picks the installer.
            tracker: Records which installer was used.
            readiness: Poller used when ``install(wait=True)``.
        """
        self.plugin = plugin
        self.selector = selector
        self.tracker = tracker
        self.readiness = readiness

    def install(self, wait: bool = False, overrides: Values | None = None) -> InstallerKind:
        """Install the plugin and record the installer used.

        Args:
            wait: Wait for the plugin's Deployments to become ready.
            overrides: User values merged over the current and default values.

        Returns:
            The installer kind that was used.

        Raises:
            OverrideError: If an override key is not allowed.
            SelectionError: If no installer could be constructed.
            InstallError: If the installer failed. Nothing is recorded.
            ReadinessTimeoutError: If the plugin did not become ready in time.
        """
        name = self.plugin.name
        if overrides:
            self.plugin.validate_overrides(overrides)

        selection = self.selector.select(name)
        installer = selection.installer

        options = self.plugin.get_options()
        if overrides:
            current = installer.current_values(options)
            values = merge_values(merge_values(options.values, current), overrides)
            options = replace(options, values=values)
            logger.info("Installing plugin with overrides", plugin=name, keys=sorted(overrides))

        logger.info("Installing plugin", plugin=name, kind=selection.kind.value)
        try:
            installer.install(options)
        except InstallerError as e:
            raise InstallError(f"failed to install plugin {name}: {e.message}", plugin=name) from e

        try:
            self.tracker.set(name, selection.kind)
        except TrackingError as e:
            logger.warning("Failed to track installer", plugin=name, error=e.message)

        if wait and self.readiness is not None:
            result = self.readiness.wait_for_ready_sync(options.namespace, name)
            if not result.ready:
                raise ReadinessTimeoutError(
                    name, options.namespace, self.readiness.timeout_seconds, detail=result.error
                )

        logger.info("Plugin installed", plugin=name, kind=selection.kind.value)
        return selection.kind

    def uninstall(self) -> InstallerKind:
        """Uninstall the plugin with the installer it was installed with.

        Returns:
            The installer kind that was used.

        Raises:
            BlockedByDependentsError: If this plugin hosts an installer still
                recorded for other plugins.
            SelectionError: If no installer could be constructed.
            UninstallError: If the installer failed. The record is kept.
        """
        name = self.plugin.name
        if self.plugin.provides is not None:
            self._check_usage(self.plugin.provides)

        selection = self.selector.select(name, for_uninstall=True)

        logger.info("Uninstalling plugin", plugin=name, kind=selection.kind.value)
        try:
            selection.installer.uninstall(self.plugin.get_options())
        except InstallerError as e:
            raise UninstallError(f"failed to uninstall plugin {name}: {e.message}", plugin=name) from e

        try:
            self.tracker.delete(name)
        except TrackingError as e:
            logger.warning("Failed to remove installer tracking", plugin=name, error=e.message)

        logger.info("Plugin uninstalled", plugin=name)
        return selection.kind

    def _check_usage(self, kind: InstallerKind) -> None:
        """Refuse to remove an installer that other plugins were installed with."""
        name = self.plugin.name
        try:
            users = [p for p in self.tracker.list_by_kind(kind) if p != name]
        except TrackingError as e:
            logger.warning("Failed to check installer usage", plugin=name, error=e.message)
            return

        if users:
            raise BlockedByDependentsError(
                name,
                users,
                reason=(
                    f"cannot uninstall {name}: the following plugins were installed "
                    f"with it: {', '.join(users)}. Uninstall them first"
                ),
            )
