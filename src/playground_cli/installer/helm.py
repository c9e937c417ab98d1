"""Helm release installer.

Drives the helm binary directly: ``helm upgrade --install`` covers both the
first install and later upgrades of an existing release.
"""

from __future__ import annotations

import subprocess
import tempfile
from pathlib import Path
from typing import Any

import yaml

from ..k8s import Kubectl, KubectlError
from ..shared.logging import get_logger
from .base import InstallerError, InstallerKind, InstallOptions

logger = get_logger(__name__)

DEFAULT_HELM_TIMEOUT = 300


class HelmInstaller:
    """Install plugins as Helm releases."""

    kind = InstallerKind.PACKAGE_MANAGER_RELEASE

    def __init__(
        self,
        kubeconfig: str | None = None,
        kubectl: Kubectl | None = None,
        timeout_seconds: int = DEFAULT_HELM_TIMEOUT,
    ):
        """Initialize installer.

        Args:
            kubeconfig: Path to kubeconfig file.
            kubectl: kubectl wrapper used for namespace cleanup.
            timeout_seconds: Timeout for helm install/uninstall.
        """
        self.kubeconfig = kubeconfig
        self.kubectl = kubectl or Kubectl(kubeconfig)
        self.timeout_seconds = timeout_seconds

    def _helm_cmd(self) -> list[str]:
        """Build base helm command."""
        cmd = ["helm"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        return cmd

    def _run(self, args: list[str]) -> str:
        try:
            result = subprocess.run(
                self._helm_cmd() + args,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds + 30,
            )
        except FileNotFoundError:
            raise InstallerError("helm not found. Is helm installed?")
        except subprocess.TimeoutExpired:
            raise InstallerError(f"helm {args[0]} timed out after {self.timeout_seconds}s")

        if result.returncode != 0:
            raise InstallerError(f"helm {args[0]} failed: {result.stderr.strip()}")
        return result.stdout

    def install(self, options: InstallOptions) -> None:
        """Install or upgrade the release for ``options.application_name``."""
        if not options.chart_name:
            raise InstallerError(f"plugin '{options.application_name}' has no chart to install")

        with tempfile.TemporaryDirectory(prefix="playground-helm-") as tmpdir:
            values_file = Path(tmpdir) / "values.yaml"
            with open(values_file, "w") as f:
                yaml.safe_dump(options.values or {}, f, default_flow_style=False, sort_keys=False)

            args = [
                "upgrade",
                "--install",
                options.application_name,
                options.chart_name,
                "--namespace",
                options.namespace,
                "--create-namespace",
                "--values",
                str(values_file),
                "--wait",
                "--timeout",
                f"{self.timeout_seconds}s",
            ]
            if options.repo_url:
                args.extend(["--repo", options.repo_url])
            if options.version:
                args.extend(["--version", options.version])

            logger.info(
                "Installing helm release",
                release=options.application_name,
                chart=options.chart_name,
                namespace=options.namespace,
            )
            self._run(args)

    def uninstall(self, options: InstallOptions) -> None:
        """Uninstall the release and clean up its namespace."""
        self._run(
            [
                "uninstall",
                options.application_name,
                "--namespace",
                options.namespace,
                "--wait",
                "--timeout",
                f"{self.timeout_seconds}s",
            ]
        )

        if options.owns_namespace:
            try:
                self.kubectl.delete_namespace(options.namespace)
            except KubectlError as e:
                logger.warning("Failed to cleanup namespace", namespace=options.namespace, error=str(e))

    def current_values(self, options: InstallOptions) -> dict[str, Any]:
        """Return the user-supplied values of the installed release.

        A missing release yields an empty dict.
        """
        try:
            output = self._run(
                [
                    "get",
                    "values",
                    options.application_name,
                    "--namespace",
                    options.namespace,
                    "--output",
                    "yaml",
                ]
            )
        except InstallerError as e:
            logger.debug("Could not read helm values", release=options.application_name, error=str(e))
            return {}
        return yaml.safe_load(output) or {}
