"""kubectl subprocess wrapper.

All cluster access goes through the kubectl binary so the CLI works with
whatever kubeconfig and auth plugins the user already has configured.
"""

from __future__ import annotations

import asyncio
import base64
import json
import subprocess
from typing import Any

from ..shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


class KubectlError(Exception):
    """kubectl failed, timed out, or is not installed."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        self.message = message
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


class KubectlNotFoundError(KubectlError):
    """The requested Kubernetes object does not exist."""


def _is_not_found(stderr: str) -> bool:
    return "NotFound" in stderr or "not found" in stderr


def _raise_for_result(args: list[str], returncode: int, stderr: str) -> None:
    stderr = stderr.strip()
    command = " ".join(args)
    if _is_not_found(stderr):
        raise KubectlNotFoundError(stderr or f"not found: {command}", returncode, stderr)
    raise KubectlError(f"kubectl {command} failed: {stderr}", returncode, stderr)


class Kubectl:
    """Run kubectl commands against one cluster."""

    def __init__(self, kubeconfig: str | None = None, context: str | None = None):
        """Initialize wrapper.

        Args:
            kubeconfig: Path to kubeconfig file.
            context: Kubeconfig context to use.
        """
        self.kubeconfig = kubeconfig
        self.context = context

    def _kubectl_cmd(self) -> list[str]:
        """Build base kubectl command."""
        cmd = ["kubectl"]
        if self.kubeconfig:
            cmd.extend(["--kubeconfig", self.kubeconfig])
        if self.context:
            cmd.extend(["--context", self.context])
        return cmd

    def run(
        self,
        args: list[str],
        timeout: float | None = DEFAULT_TIMEOUT,
        input: str | None = None,
    ) -> str:
        """Run kubectl and return stdout.

        Raises:
            KubectlNotFoundError: The object does not exist.
            KubectlError: Any other failure, including timeouts.
        """
        try:
            result = subprocess.run(
                self._kubectl_cmd() + args,
                capture_output=True,
                text=True,
                timeout=timeout,
                input=input,
            )
        except FileNotFoundError:
            raise KubectlError("kubectl not found. Is kubectl installed?")
        except subprocess.TimeoutExpired:
            raise KubectlError(f"kubectl {' '.join(args)} timed out after {timeout}s")

        if result.returncode != 0:
            _raise_for_result(args, result.returncode, result.stderr or "")
        return result.stdout

    async def arun(self, args: list[str], timeout: float | None = DEFAULT_TIMEOUT) -> str:
        """Async variant of :meth:`run`.

        The child process is killed if the call times out or is cancelled.
        """
        try:
            proc = await asyncio.create_subprocess_exec(
                *(self._kubectl_cmd() + args),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise KubectlError("kubectl not found. Is kubectl installed?")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _kill(proc)
            raise KubectlError(f"kubectl {' '.join(args)} timed out after {timeout}s")
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if proc.returncode != 0:
            _raise_for_result(args, proc.returncode, stderr.decode(errors="replace"))
        return stdout.decode(errors="replace")

    def get_json(self, args: list[str], timeout: float | None = DEFAULT_TIMEOUT) -> dict[str, Any]:
        """Run a ``get`` style command with ``-o json`` and decode it."""
        output = self.run(args + ["-o", "json"], timeout=timeout)
        try:
            return json.loads(output) if output.strip() else {}
        except json.JSONDecodeError as e:
            raise KubectlError(f"invalid JSON from kubectl: {e}")

    def namespace_exists(self, namespace: str, timeout: float | None = 10.0) -> bool:
        """Check whether a namespace exists.

        Raises:
            KubectlError: On transport failures (a missing namespace is False).
        """
        try:
            self.run(["get", "namespace", namespace, "-o", "name"], timeout=timeout)
        except KubectlNotFoundError:
            return False
        return True

    def resource_exists(
        self,
        kind: str,
        name: str,
        namespace: str | None = None,
        timeout: float | None = 10.0,
    ) -> bool:
        """Check whether a named object exists."""
        args = ["get", kind, name, "-o", "name"]
        if namespace:
            args.extend(["-n", namespace])
        try:
            self.run(args, timeout=timeout)
        except KubectlNotFoundError:
            return False
        return True

    def list_pods(
        self,
        namespace: str,
        selector: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> list[dict[str, Any]]:
        """List pod objects in a namespace."""
        args = ["-n", namespace, "get", "pods"]
        if selector:
            args.extend(["-l", selector])
        return self.get_json(args, timeout=timeout).get("items", [])

    def list_deployments(
        self,
        namespace: str,
        selector: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> list[dict[str, Any]]:
        """List deployment objects in a namespace."""
        args = ["-n", namespace, "get", "deployments"]
        if selector:
            args.extend(["-l", selector])
        return self.get_json(args, timeout=timeout).get("items", [])

    async def alist_deployments(
        self,
        namespace: str,
        selector: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> list[dict[str, Any]]:
        """Async variant of :meth:`list_deployments`."""
        args = ["-n", namespace, "get", "deployments", "-o", "json"]
        if selector:
            args.extend(["-l", selector])
        output = await self.arun(args, timeout=timeout)
        try:
            data = json.loads(output) if output.strip() else {}
        except json.JSONDecodeError as e:
            raise KubectlError(f"invalid JSON from kubectl: {e}")
        return data.get("items", [])

    def get_secret_value(
        self,
        namespace: str,
        name: str,
        key: str,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> str:
        """Read and base64-decode one key of a Secret."""
        secret = self.get_json(["-n", namespace, "get", "secret", name], timeout=timeout)
        encoded = (secret.get("data") or {}).get(key)
        if encoded is None:
            raise KubectlNotFoundError(f"key '{key}' not found in secret {namespace}/{name}")
        return base64.b64decode(encoded).decode()

    def create_json(self, manifest: dict[str, Any], timeout: float | None = DEFAULT_TIMEOUT) -> str:
        """Create an object from a manifest passed on stdin."""
        return self.run(["create", "-f", "-"], timeout=timeout, input=json.dumps(manifest))

    def patch_merge(
        self,
        kind: str,
        name: str,
        namespace: str,
        patch: dict[str, Any],
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> str:
        """Apply a JSON merge patch to an object."""
        return self.run(
            ["-n", namespace, "patch", kind, name, "--type", "merge", "-p", json.dumps(patch)],
            timeout=timeout,
        )

    def delete_namespace(self, namespace: str, timeout: float | None = 300.0) -> None:
        """Delete a namespace and wait for it to go away.

        A namespace that does not exist is not an error.
        """
        if not namespace:
            return
        try:
            self.run(
                ["delete", "namespace", namespace, "--wait=true", f"--timeout={int(timeout or 0)}s"],
                timeout=(timeout + 10) if timeout else None,
            )
        except KubectlNotFoundError:
            return

    def port_forward(
        self,
        namespace: str,
        target: str,
        local_port: int,
        remote_port: int,
    ) -> subprocess.Popen:
        """Start port forwarding.

        Args:
            namespace: K8s namespace.
            target: Resource to forward to (e.g. ``svc/argocd-server``).
            local_port: Local port to forward to.
            remote_port: Remote port on the target.

        Returns:
            Popen process for the port-forward. The caller must terminate it.
        """
        try:
            return subprocess.Popen(
                self._kubectl_cmd()
                + ["-n", namespace, "port-forward", target, f"{local_port}:{remote_port}"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise KubectlError("kubectl not found. Is kubectl installed?")


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            return
        await proc.wait()
