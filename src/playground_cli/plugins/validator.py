"""High-level dependency validation for install and uninstall batches."""

from __future__ import annotations

from collections.abc import Iterable

from ..shared.logging import get_logger
from .errors import PluginError
from .graph import DependencyGraph, DependencyPlugin

logger = get_logger(__name__)


class DependencyValidator:
    """Turn graph orderings into actionable, validated plugin lists."""

    def __init__(self, plugins: Iterable[DependencyPlugin]):
        """Build a fresh graph from ``plugins``.

        Args:
            plugins: Every plugin known to this session.
        """
        self.graph = DependencyGraph()
        for plugin in plugins:
            self.graph.add_plugin(plugin)

        if self.graph.has_cycles():
            logger.error("Circular dependency detected in plugin graph")

    def validate_installation(self, targets: Iterable[str], installed: Iterable[str]) -> list[str]:
        """Return the plugins that still need installing, in install order.

        Plugins already in ``installed`` are skipped. Each remaining plugin
        is checked against the snapshot grown by the plugins scheduled
        before it.

        Raises:
            PluginError: On cycles, unknown plugins or unmet dependencies.
        """
        targets = list(targets)
        logger.info("Validating plugin installation dependencies", targets=targets)

        try:
            order = self.graph.get_install_order(targets)
        except PluginError as e:
            logger.error("Failed to determine install order", error=e.message)
            raise

        working = set(installed)
        needed: list[str] = []
        for name in order:
            if name in working:
                continue
            self.graph.validate_install(name, working)
            needed.append(name)
            working.add(name)

        logger.info("Dependency validation passed", order=needed)
        return needed

    def validate_uninstallation(self, targets: Iterable[str], installed: Iterable[str]) -> list[str]:
        """Return the installed plugins to remove, dependents first.

        Plugins not in ``installed`` are skipped. Each remaining plugin is
        checked against the snapshot shrunk by the plugins scheduled before it.

        Raises:
            PluginError: On cycles or when an installed dependent blocks removal.
        """
        targets = list(targets)
        logger.info("Validating plugin uninstallation dependencies", targets=targets)

        try:
            order = self.graph.get_uninstall_order(targets)
        except PluginError as e:
            logger.error("Failed to determine uninstall order", error=e.message)
            raise

        working = set(installed)
        needed: list[str] = []
        for name in order:
            if name not in working:
                continue
            working.discard(name)
            self.graph.validate_uninstall(name, working)
            needed.append(name)

        logger.info("Dependency validation passed", order=needed)
        return needed

    def get_dependency_info(self, name: str) -> tuple[list[str], list[str]]:
        """Return ``(dependencies, dependents)`` of ``name``."""
        return self.graph.get_dependencies(name), self.graph.get_dependents(name)
