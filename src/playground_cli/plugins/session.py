"""Sequential install/uninstall of plugin batches."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..installer import InstallerKind
from ..k8s import Kubectl
from ..shared.logging import get_logger
from .base import PluginRegistry, is_installed_status
from .errors import PluginError, TrackingError
from .orchestrator import Orchestrator
from .readiness import ReadinessPoller
from .selector import InstallerSelector
from .tracker import InstallerTracker
from .validator import DependencyValidator
from .values import Values

logger = get_logger(__name__)


@dataclass
class BatchResult:
    """Outcome of a batch. ``failed`` is the plugin the batch stopped at."""

    completed: list[str] = field(default_factory=list)
    failed: str | None = None
    error: PluginError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PluginSession:
    """Plan and run plugin batches against one cluster."""

    def __init__(
        self,
        registry: PluginRegistry,
        kubectl: Kubectl,
        tracker: InstallerTracker,
        selector: InstallerSelector,
        readiness: ReadinessPoller | None = None,
    ):
        self.registry = registry
        self.kubectl = kubectl
        self.tracker = tracker
        self.selector = selector
        self.readiness = readiness
        self.validator = DependencyValidator(registry)

    def statuses(self) -> dict[str, str]:
        """Probe every registered plugin's status."""
        return {plugin.name: plugin.status(self.kubectl) for plugin in self.registry}

    def installed_snapshot(self) -> set[str]:
        """Names of the plugins that currently look installed."""
        return {name for name, status in self.statuses().items() if is_installed_status(status)}

    def recorded_kinds(self) -> dict[str, InstallerKind]:
        """Recorded installer kinds, empty when the tracker is unreadable."""
        try:
            return self.tracker.records()
        except TrackingError as e:
            logger.warning("Failed to read installer records", error=e.message)
            return {}

    def plan_install(self, names: Iterable[str], installed: Iterable[str] | None = None) -> list[str]:
        """Plugins to install for ``names``, dependencies first."""
        if installed is None:
            installed = self.installed_snapshot()
        return self.validator.validate_installation(names, installed)

    def plan_uninstall(self, names: Iterable[str], installed: Iterable[str] | None = None) -> list[str]:
        """Plugins to remove for ``names``, dependents first."""
        if installed is None:
            installed = self.installed_snapshot()
        return self.validator.validate_uninstallation(names, installed)

    def orchestrator(self, name: str) -> Orchestrator:
        return Orchestrator(self.registry.get(name), self.selector, self.tracker, self.readiness)

    def install(
        self,
        names: Iterable[str],
        wait: bool = True,
        overrides: Values | None = None,
        on_start: Callable[[str], None] | None = None,
    ) -> BatchResult:
        """Install ``names`` and their missing dependencies.

        With ``overrides``, the named plugins are reinstalled even when they
        are already installed, and only they receive the overrides.

        Raises:
            PluginError: If the batch cannot be planned. Nothing is installed.
        """
        names = list(names)
        installed = self.installed_snapshot()
        plan = self.plan_install(names, installed)

        if overrides:
            for name in names:
                if name not in plan:
                    self.validator.graph.validate_install(name, installed | set(plan))
                    plan.append(name)

        result = BatchResult()
        for name in plan:
            if on_start:
                on_start(name)
            try:
                self.orchestrator(name).install(
                    wait=wait,
                    overrides=overrides if name in names else None,
                )
            except PluginError as e:
                logger.error("Plugin install failed", plugin=name, error=e.message)
                result.failed = name
                result.error = e
                return result
            result.completed.append(name)

        return result

    def uninstall(
        self,
        names: Iterable[str],
        on_start: Callable[[str], None] | None = None,
    ) -> BatchResult:
        """Uninstall ``names`` and every installed plugin depending on them.

        Raises:
            PluginError: If the batch cannot be planned. Nothing is removed.
        """
        plan = self.plan_uninstall(names)

        result = BatchResult()
        for name in plan:
            if on_start:
                on_start(name)
            try:
                self.orchestrator(name).uninstall()
            except PluginError as e:
                logger.error("Plugin uninstall failed", plugin=name, error=e.message)
                result.failed = name
                result.error = e
                return result
            result.completed.append(name)

        return result
