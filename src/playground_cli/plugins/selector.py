"""Installer selection.

Precedence per plugin:
1. A recorded installer kind always wins.
2. Otherwise use Argo CD when its API server is up and ready.
3. Otherwise fall back to a plain Helm release.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..installer import ArgoInstaller, HelmInstaller, Installer, InstallerError, InstallerKind
from ..k8s import Kubectl, KubectlError
from ..shared.logging import get_logger
from .errors import SelectionError, TrackingError
from .tracker import InstallerTracker

logger = get_logger(__name__)

ARGOCD_NAMESPACE = "argocd"
ARGOCD_SERVER_SELECTOR = "app.kubernetes.io/name=argocd-server"
PROBE_TIMEOUT = 10.0

InstallerFactory = Callable[[InstallerKind], Installer]
ReadinessProbe = Callable[[], bool]


def is_gitops_controller_ready(
    kubectl: Kubectl,
    timeout: float = PROBE_TIMEOUT,
    namespace: str = ARGOCD_NAMESPACE,
    selector: str = ARGOCD_SERVER_SELECTOR,
) -> bool:
    """Whether the Argo CD API server is running with every container ready.

    Any failure to observe the cluster is reported as not ready.
    """
    deadline = time.monotonic() + timeout
    try:
        if not kubectl.namespace_exists(namespace, timeout=timeout):
            logger.debug("Argo CD namespace not found", namespace=namespace)
            return False

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        pods = kubectl.list_pods(namespace, selector, timeout=remaining)
    except KubectlError as e:
        logger.debug("Argo CD readiness probe failed", error=e.message)
        return False

    if not pods:
        logger.debug("No Argo CD server pods found")
        return False

    if any(_pod_ready(pod) for pod in pods):
        return True

    logger.debug("Argo CD pods are not ready")
    return False


def _pod_ready(pod: dict[str, Any]) -> bool:
    status = pod.get("status") or {}
    if status.get("phase") != "Running":
        return False
    containers = status.get("containerStatuses") or []
    return bool(containers) and all(c.get("ready") for c in containers)


def default_installer_factory(kubectl: Kubectl) -> InstallerFactory:
    """Build installers that act on the cluster behind ``kubectl``."""

    def factory(kind: InstallerKind) -> Installer:
        if kind == InstallerKind.GITOPS_APPLICATION:
            return ArgoInstaller(kubectl)
        elif kind == InstallerKind.PACKAGE_MANAGER_RELEASE:
            return HelmInstaller(kubectl.kubeconfig, kubectl=kubectl)
        raise InstallerError(f"no installer for kind '{kind.value}'")

    return factory


@dataclass
class Selection:
    """Chosen installer for one plugin operation."""

    kind: InstallerKind
    installer: Installer
    recorded: bool = False  # True when the kind came from the tracker


class InstallerSelector:
    """Pick the installer for a plugin."""

    def __init__(
        self,
        tracker: InstallerTracker,
        probe: ReadinessProbe,
        factory: InstallerFactory,
    ):
        """Initialize selector.

        Args:
            tracker: Store of previously chosen kinds.
            probe: Returns True when the GitOps controller is ready.
            factory: Builds the concrete installer for a kind.
        """
        self.tracker = tracker
        self.probe = probe
        self.factory = factory

    def select(self, plugin: str, for_uninstall: bool = False) -> Selection:
        """Choose and construct the installer for ``plugin``.

        Args:
            plugin: Plugin name.
            for_uninstall: When True, a tracker read failure is fatal
                instead of falling back to the live probe.

        Raises:
            SelectionError: If the installer cannot be constructed, or the
                tracker cannot be read during uninstall.
        """
        kind: InstallerKind | None = None
        recorded = False

        try:
            recorded_kind, found = self.tracker.get(plugin)
        except TrackingError as e:
            if for_uninstall:
                raise SelectionError(
                    f"cannot determine how '{plugin}' was installed: {e.message}",
                    plugin=plugin,
                ) from e
            logger.warning("Failed to get recorded installer", plugin=plugin, error=e.message)
        else:
            if found and recorded_kind != InstallerKind.UNKNOWN:
                kind = recorded_kind
                recorded = True
                logger.info("Using recorded installer", plugin=plugin, kind=kind.value)
            elif found:
                logger.warning("Unknown recorded installer, falling back to detection", plugin=plugin)

        if kind is None:
            if self.probe():
                kind = InstallerKind.GITOPS_APPLICATION
            else:
                kind = InstallerKind.PACKAGE_MANAGER_RELEASE
            logger.info("Selected installer", plugin=plugin, kind=kind.value)

        try:
            installer = self.factory(kind)
        except (InstallerError, KubectlError) as e:
            raise SelectionError(
                f"failed to create {kind.value} installer for '{plugin}': {e.message}",
                plugin=plugin,
            ) from e

        return Selection(kind=kind, installer=installer, recorded=recorded)
