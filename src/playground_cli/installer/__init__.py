"""Delivery mechanisms for plugins.

- HelmInstaller: direct Helm release
- ArgoInstaller: Argo CD Application
"""

from .argo import ArgoInstaller, build_application
from .base import Installer, InstallerError, InstallerKind, InstallOptions
from .helm import HelmInstaller

__all__ = [
    "Installer",
    "InstallerError",
    "InstallerKind",
    "InstallOptions",
    "HelmInstaller",
    "ArgoInstaller",
    "build_application",
]
