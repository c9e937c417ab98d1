"""Durable record of which installer kind each plugin was installed with.

The record lives in a single ConfigMap keyed by plugin name. A missing
ConfigMap or missing key means "no opinion yet" and is not an error;
transport failures are raised as ``TrackingError``.
"""

from __future__ import annotations

from ..installer.base import InstallerKind
from ..k8s import Kubectl, KubectlError, KubectlNotFoundError
from ..shared.logging import get_logger
from .errors import TrackingError

logger = get_logger(__name__)

TRACKER_CONFIGMAP_NAME = "playground-plugin-installer-tracker"
TRACKER_NAMESPACE = "kube-system"
READ_TIMEOUT = 10.0
WRITE_TIMEOUT = 30.0


class InstallerTracker:
    """Get/set/delete the recorded installer kind per plugin."""

    def __init__(
        self,
        kubectl: Kubectl,
        namespace: str = TRACKER_NAMESPACE,
        name: str = TRACKER_CONFIGMAP_NAME,
        read_timeout: float = READ_TIMEOUT,
        write_timeout: float = WRITE_TIMEOUT,
    ):
        """Initialize tracker.

        Args:
            kubectl: kubectl wrapper for the target cluster.
            namespace: Namespace holding the tracking ConfigMap.
            name: ConfigMap name.
            read_timeout: Timeout for read operations.
            write_timeout: Timeout for each write step.
        """
        self.kubectl = kubectl
        self.namespace = namespace
        self.name = name
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

    def get(self, plugin: str) -> tuple[InstallerKind, bool]:
        """Return ``(kind, found)`` for ``plugin``.

        An unrecognized stored value is returned as ``(UNKNOWN, True)``.

        Raises:
            TrackingError: If the store cannot be read.
        """
        data = self._read(self.read_timeout)
        if not data or plugin not in data:
            logger.debug("No installer recorded", plugin=plugin)
            return InstallerKind.UNKNOWN, False

        kind = InstallerKind.parse(data[plugin])
        logger.debug("Found recorded installer", plugin=plugin, kind=kind.value)
        return kind, True

    def set(self, plugin: str, kind: InstallerKind) -> None:
        """Record ``kind`` for ``plugin``, creating the ConfigMap if needed.

        Raises:
            TrackingError: If the store cannot be written.
        """
        if self._read(self.write_timeout) is None:
            self._create()

        self._patch({plugin: kind.value})
        logger.debug("Recorded installer", plugin=plugin, kind=kind.value)

    def delete(self, plugin: str) -> None:
        """Remove the record for ``plugin``. Missing records are ignored.

        Raises:
            TrackingError: If the store cannot be written.
        """
        data = self._read(self.write_timeout)
        if not data or plugin not in data:
            logger.debug("Nothing to remove from tracker", plugin=plugin)
            return

        # A null value in a merge patch removes the key
        self._patch({plugin: None})
        logger.debug("Removed installer record", plugin=plugin)

    def records(self) -> dict[str, InstallerKind]:
        """Return every recorded plugin and its kind.

        Raises:
            TrackingError: If the store cannot be read.
        """
        data = self._read(self.read_timeout) or {}
        return {plugin: InstallerKind.parse(value) for plugin, value in data.items()}

    def list_by_kind(self, kind: InstallerKind) -> list[str]:
        """Return the plugins recorded with ``kind``."""
        return [plugin for plugin, recorded in self.records().items() if recorded == kind]

    def _read(self, timeout: float) -> dict[str, str] | None:
        """Return the ConfigMap data, or None when the ConfigMap is absent."""
        try:
            configmap = self.kubectl.get_json(
                ["-n", self.namespace, "get", "configmap", self.name],
                timeout=timeout,
            )
        except KubectlNotFoundError:
            return None
        except KubectlError as e:
            raise TrackingError(f"failed to get tracker ConfigMap: {e.message}") from e
        return configmap.get("data") or {}

    def _create(self) -> None:
        manifest = {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": {
                    "app.kubernetes.io/name": "playground",
                    "app.kubernetes.io/component": "installer-tracker",
                    "app.kubernetes.io/managed-by": "playground",
                },
            },
            "data": {},
        }
        try:
            self.kubectl.create_json(manifest, timeout=self.write_timeout)
        except KubectlError as e:
            if "AlreadyExists" in e.stderr:
                return
            raise TrackingError(f"failed to create tracker ConfigMap: {e.message}") from e
        logger.debug("Created installer tracker ConfigMap", namespace=self.namespace, name=self.name)

    def _patch(self, data: dict[str, str | None]) -> None:
        try:
            self.kubectl.patch_merge(
                "configmap",
                self.name,
                self.namespace,
                {"data": data},
                timeout=self.write_timeout,
            )
        except KubectlError as e:
            raise TrackingError(f"failed to update tracker ConfigMap: {e.message}") from e
