"""Argo CD Application installer.

Talks to the Argo CD API server through a short-lived ``kubectl
port-forward``. Each install/uninstall opens its own session and always
tears the port-forward down again.
"""

from __future__ import annotations

import subprocess
import time
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import httpx

from ..k8s import Kubectl, KubectlError
from ..shared.logging import get_logger
from .base import InstallerError, InstallerKind, InstallOptions

logger = get_logger(__name__)

DEFAULT_ARGO_NAMESPACE = "argocd"
DEFAULT_ARGO_SERVICE = "svc/argocd-server"
DEFAULT_ARGO_SERVER_PORT = 80
DEFAULT_LOCAL_PORT = 8080
ADMIN_SECRET_NAME = "argocd-initial-admin-secret"
DESTINATION_SERVER = "https://kubernetes.default.svc"


class ArgoInstaller:
    """Install plugins as Argo CD Applications."""

    kind = InstallerKind.GITOPS_APPLICATION

    def __init__(
        self,
        kubectl: Kubectl,
        namespace: str = DEFAULT_ARGO_NAMESPACE,
        local_port: int = DEFAULT_LOCAL_PORT,
        request_timeout: float = 30.0,
        auth_attempts: int = 3,
        retry_delay: float = 2.0,
    ):
        """Initialize installer and read the admin credentials.

        Args:
            kubectl: kubectl wrapper for the target cluster.
            namespace: Namespace Argo CD runs in.
            local_port: Local port for the API port-forward.
            request_timeout: Timeout for each API request.
            auth_attempts: Session login attempts before giving up.
            retry_delay: Base delay between login attempts.

        Raises:
            InstallerError: If the admin password cannot be read.
        """
        self.kubectl = kubectl
        self.namespace = namespace
        self.local_port = local_port
        self.request_timeout = request_timeout
        self.auth_attempts = auth_attempts
        self.retry_delay = retry_delay

        try:
            self._password = kubectl.get_secret_value(namespace, ADMIN_SECRET_NAME, "password")
        except KubectlError as e:
            raise InstallerError(f"failed to get Argo CD admin password: {e.message}") from e

    @property
    def server_url(self) -> str:
        return f"http://127.0.0.1:{self.local_port}"

    def install(self, options: InstallOptions) -> None:
        """Create the Application for ``options``.

        Raises:
            InstallerError: If the API cannot be reached or rejects the request.
        """
        logger.info("Creating Argo CD application", application=options.application_name)
        try:
            with self._session() as client:
                response = client.post("/api/v1/applications", json=build_application(options, self.namespace))
        except httpx.HTTPError as e:
            raise InstallerError(f"failed to create application: {str(e) or type(e).__name__}") from e

        if response.status_code not in (200, 201):
            raise InstallerError(f"failed to create application: HTTP {response.status_code} - {response.text}")

    def uninstall(self, options: InstallOptions) -> None:
        """Delete the Application with cascade and clean up its namespace.

        Raises:
            InstallerError: If the API cannot be reached or rejects the request.
        """
        logger.info("Deleting Argo CD application", application=options.application_name)
        try:
            with self._session() as client:
                response = client.delete(
                    f"/api/v1/applications/{options.application_name}",
                    params={"cascade": "true"},
                )
        except httpx.HTTPError as e:
            raise InstallerError(f"failed to delete application: {str(e) or type(e).__name__}") from e

        if response.status_code not in (200, 204, 404):
            raise InstallerError(f"failed to delete application: HTTP {response.status_code} - {response.text}")

        if options.owns_namespace:
            try:
                self.kubectl.delete_namespace(options.namespace)
            except KubectlError as e:
                logger.warning("Failed to cleanup namespace", namespace=options.namespace, error=str(e))

    def current_values(self, options: InstallOptions) -> dict[str, Any]:
        """Return the Helm values stored on the existing Application."""
        try:
            app = self.kubectl.get_json(
                ["-n", self.namespace, "get", "applications.argoproj.io", options.application_name]
            )
        except KubectlError as e:
            logger.debug("Could not read application values", application=options.application_name, error=str(e))
            return {}
        helm = app.get("spec", {}).get("source", {}).get("helm", {})
        return helm.get("valuesObject") or {}

    @contextmanager
    def _session(self) -> Iterator[httpx.Client]:
        """Port-forward to the API server and yield an authenticated client."""
        try:
            forward = self.kubectl.port_forward(
                self.namespace, DEFAULT_ARGO_SERVICE, self.local_port, DEFAULT_ARGO_SERVER_PORT
            )
        except KubectlError as e:
            raise InstallerError(f"failed to port-forward to Argo CD: {e.message}") from e

        client = httpx.Client(
            base_url=self.server_url,
            timeout=self.request_timeout,
            headers={"Content-Type": "application/json"},
        )
        try:
            token = self._authenticate(client)
            client.headers["Authorization"] = f"Bearer {token}"
            yield client
        finally:
            client.close()
            _stop(forward)

    def _authenticate(self, client: httpx.Client) -> str:
        last_error = ""
        for attempt in range(1, self.auth_attempts + 1):
            try:
                response = client.post(
                    "/api/v1/session",
                    json={"username": "admin", "password": self._password},
                )
                if response.status_code == 200:
                    return _session_token(response)
                last_error = f"HTTP {response.status_code} - {response.text}"
            except httpx.TransportError as e:
                last_error = str(e) or type(e).__name__

            logger.warning("Argo CD authentication failed", attempt=attempt, error=last_error)
            if attempt < self.auth_attempts:
                time.sleep(self.retry_delay * attempt)

        raise InstallerError(
            f"failed to authenticate after {self.auth_attempts} attempts: {last_error}"
        )


def build_application(options: InstallOptions, argo_namespace: str = DEFAULT_ARGO_NAMESPACE) -> dict[str, Any]:
    """Build the Application payload for ``options``."""
    source: dict[str, Any] = {
        "repoURL": options.repo_url,
        "path": options.path or ".",
        "targetRevision": options.version or "HEAD",
    }
    if options.chart_name:
        source["chart"] = options.chart_name
        source["helm"] = {
            "releaseName": options.application_name,
            "valuesObject": options.values or {},
        }

    return {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "Application",
        "metadata": {"name": options.application_name, "namespace": argo_namespace},
        "spec": {
            "project": "default",
            "source": source,
            "destination": {"server": DESTINATION_SERVER, "namespace": options.namespace},
            "syncPolicy": {
                "automated": {"prune": True, "selfHeal": True},
                "syncOptions": ["CreateNamespace=true"],
            },
        },
    }


def _session_token(response: httpx.Response) -> str:
    try:
        token = response.json()["token"]
    except (ValueError, KeyError, TypeError) as e:
        raise InstallerError("invalid Argo CD session response: no token") from e
    if not isinstance(token, str) or not token:
        raise InstallerError("invalid Argo CD session response: no token")
    return token


def _stop(process: subprocess.Popen | None) -> None:
    if process is None:
        return
    process.terminate()
    try:
        process.wait(timeout=5)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
