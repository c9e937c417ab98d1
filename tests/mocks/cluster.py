"""In-memory stand-ins for the cluster-facing collaborators."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from playground_cli.installer import InstallerError, InstallerKind, InstallOptions
from playground_cli.plugins import PluginDescriptor, TrackingError


class MemoryTracker:
    """Installer tracker that keeps records in memory."""

    def __init__(self, records: dict[str, InstallerKind] | None = None):
        self.data: dict[str, str] = {k: v.value for k, v in (records or {}).items()}
        self.fail_reads = False
        self.fail_writes = False

    def get(self, plugin: str) -> tuple[InstallerKind, bool]:
        if self.fail_reads:
            raise TrackingError("connection refused")
        if plugin not in self.data:
            return InstallerKind.UNKNOWN, False
        return InstallerKind.parse(self.data[plugin]), True

    def set(self, plugin: str, kind: InstallerKind) -> None:
        if self.fail_writes:
            raise TrackingError("connection refused")
        self.data[plugin] = kind.value

    def delete(self, plugin: str) -> None:
        if self.fail_writes:
            raise TrackingError("connection refused")
        self.data.pop(plugin, None)

    def records(self) -> dict[str, InstallerKind]:
        if self.fail_reads:
            raise TrackingError("connection refused")
        return {k: InstallerKind.parse(v) for k, v in self.data.items()}

    def list_by_kind(self, kind: InstallerKind) -> list[str]:
        return [k for k, v in self.records().items() if v == kind]


@dataclass
class FakeInstaller:
    """Installer that records calls instead of touching a cluster."""

    kind: InstallerKind
    installed: list[InstallOptions] = field(default_factory=list)
    uninstalled: list[InstallOptions] = field(default_factory=list)
    fail: bool = False
    values: dict[str, Any] = field(default_factory=dict)

    def install(self, options: InstallOptions) -> None:
        if self.fail:
            raise InstallerError("chart not found")
        self.installed.append(options)

    def uninstall(self, options: InstallOptions) -> None:
        if self.fail:
            raise InstallerError("release not found")
        self.uninstalled.append(options)

    def current_values(self, options: InstallOptions) -> dict[str, Any]:
        return dict(self.values)


def make_plugin(name: str, *dependencies: str, **kwargs: Any) -> PluginDescriptor:
    """Build a descriptor whose namespace matches its name."""
    return PluginDescriptor(name=name, namespace=name, dependencies=list(dependencies), **kwargs)
