"""Plugin data model.

A plugin is described by a plain ``PluginDescriptor`` value. Sessions build a
``PluginRegistry`` of descriptors and pass it explicitly to the graph,
validator and orchestrator.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

from ..installer.base import InstallerKind, InstallOptions
from ..k8s import Kubectl, KubectlError
from ..shared.logging import get_logger
from .errors import OverrideError, PluginNotFoundError
from .values import Values, flatten_keys, merge_values

logger = get_logger(__name__)

STATUS_NOT_INSTALLED = "Not installed"
STATUS_UNKNOWN = "UNKNOWN"
STATUS_RUNNING = "running"

StatusProbe = Callable[[Kubectl], str]


@dataclass(frozen=True)
class ChartSource:
    """Where a plugin's Helm chart comes from."""

    repo_name: str
    repo_url: str
    chart_name: str
    version: str


@dataclass
class PluginDescriptor:
    """Static description of one installable plugin."""

    name: str
    namespace: str
    dependencies: list[str] = field(default_factory=list)
    chart: ChartSource | None = None
    values: Values = field(default_factory=dict)
    status_probe: StatusProbe | None = None
    allowed_overrides: frozenset[str] = frozenset()
    provides: InstallerKind | None = None  # Installer kind this plugin itself hosts
    owns_namespace: bool = True
    crds_group: str | None = None
    values_loader: Callable[[], Values] | None = None  # Fetches remote default values

    def get_name(self) -> str:
        return self.name

    def get_dependencies(self) -> list[str]:
        return list(self.dependencies)

    def get_options(
        self,
        overrides: Values | None = None,
        current: Values | None = None,
    ) -> InstallOptions:
        """Materialize install options.

        Values are merged defaults -> current -> overrides, later layers winning.
        """
        values = merge_values(self.default_values(), current)
        values = merge_values(values, overrides)

        chart = self.chart
        return InstallOptions(
            application_name=self.name,
            namespace=self.namespace,
            repo_url=chart.repo_url if chart else "",
            repo_name=chart.repo_name if chart else "",
            chart_name=chart.chart_name if chart else None,
            version=chart.version if chart else "",
            values=values,
            owns_namespace=self.owns_namespace,
            crds_group=self.crds_group,
        )

    def default_values(self) -> Values:
        """Static values, overlaid with whatever ``values_loader`` returns."""
        if self.values_loader is None:
            return merge_values(self.values, None)
        return merge_values(self.values, self.values_loader())

    def status(self, kubectl: Kubectl) -> str:
        """Probe the cluster for this plugin's status string."""
        probe = self.status_probe or namespace_status(self.namespace)
        return probe(kubectl)

    def validate_overrides(self, overrides: Values) -> None:
        """Reject override keys this plugin does not allow.

        Raises:
            OverrideError: If overrides are unsupported or a key is not allowed.
        """
        if not self.allowed_overrides:
            raise OverrideError(f"plugin {self.name} does not support override values", plugin=self.name)

        for key in flatten_keys(overrides):
            if key not in self.allowed_overrides:
                raise OverrideError(
                    f"override key '{key}' is not allowed for {self.name} plugin. "
                    f"Allowed keys: {sorted(self.allowed_overrides)}",
                    plugin=self.name,
                )


def namespace_status(namespace: str) -> StatusProbe:
    """Status probe that reports running when ``namespace`` exists."""

    def probe(kubectl: Kubectl) -> str:
        try:
            exists = kubectl.namespace_exists(namespace, timeout=5)
        except KubectlError as e:
            logger.debug("Status probe failed", namespace=namespace, error=e.message)
            return STATUS_UNKNOWN
        return STATUS_RUNNING if exists else STATUS_NOT_INSTALLED

    return probe


def resource_status(kind: str, name: str, namespace: str | None = None) -> StatusProbe:
    """Status probe that reports running when a named object exists."""

    def probe(kubectl: Kubectl) -> str:
        try:
            exists = kubectl.resource_exists(kind, name, namespace, timeout=5)
        except KubectlError as e:
            logger.debug("Status probe failed", kind=kind, name=name, error=e.message)
            return STATUS_UNKNOWN
        return STATUS_RUNNING if exists else STATUS_NOT_INSTALLED

    return probe


def is_installed_status(status: str) -> bool:
    """Whether a status string means the plugin is installed."""
    status = status.lower()
    return "running" in status or "configured" in status or "ready" in status


class PluginRegistry:
    """Ordered collection of plugin descriptors for one session."""

    def __init__(self, plugins: Iterable[PluginDescriptor] = ()):
        self._plugins: dict[str, PluginDescriptor] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: PluginDescriptor) -> None:
        """Add or replace a plugin by name."""
        self._plugins[plugin.name] = plugin

    def get(self, name: str) -> PluginDescriptor:
        """Look up a plugin.

        Raises:
            PluginNotFoundError: If no plugin has that name.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(name) from None

    def names(self) -> list[str]:
        return list(self._plugins)

    def __contains__(self, name: Any) -> bool:
        return name in self._plugins

    def __iter__(self) -> Iterator[PluginDescriptor]:
        return iter(self._plugins.values())

    def __len__(self) -> int:
        return len(self._plugins)
