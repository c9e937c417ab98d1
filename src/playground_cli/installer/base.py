"""Installer contract shared by the delivery mechanisms."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class InstallerKind(Enum):
    """Delivery mechanism used to materialize a plugin.

    The values are what gets persisted in the tracking store.
    """

    GITOPS_APPLICATION = "argocd"  # Argo CD Application
    PACKAGE_MANAGER_RELEASE = "helm"  # Helm release
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> InstallerKind:
        """Map a stored string to a kind, UNKNOWN when unrecognized."""
        for kind in cls:
            if kind.value == value:
                return kind
        return cls.UNKNOWN


class InstallerError(Exception):
    """An installer could not be built or its operation failed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


@dataclass
class InstallOptions:
    """Options handed to an installer. The values tree is passed through as-is."""

    application_name: str
    namespace: str
    repo_url: str = ""
    repo_name: str = ""
    chart_name: str | None = None
    version: str = ""
    path: str = ""
    values: dict[str, Any] = field(default_factory=dict)
    owns_namespace: bool = True
    crds_group: str | None = None


class Installer(Protocol):
    """Something that can install and uninstall a plugin."""

    kind: InstallerKind

    def install(self, options: InstallOptions) -> None: ...

    def uninstall(self, options: InstallOptions) -> None: ...

    def current_values(self, options: InstallOptions) -> dict[str, Any]: ...
