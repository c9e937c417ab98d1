"""Readiness polling for installed plugins.

Waits until the Deployments of a freshly installed plugin report all their
replicas ready.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from ..k8s import Kubectl, KubectlError
from ..shared.logging import get_logger

logger = get_logger(__name__)

INSTANCE_LABEL = "app.kubernetes.io/instance"


@dataclass
class ReadinessResult:
    """Result of a readiness wait."""

    ready: bool
    attempts: int = 0
    elapsed_seconds: float = 0.0
    error: str | None = None


def deployments_ready(deployments: list[dict[str, Any]]) -> tuple[bool, str | None]:
    """Return ``(ready, reason)`` for a list of Deployment objects."""
    if not deployments:
        return False, "no deployments found"

    for deployment in deployments:
        name = deployment.get("metadata", {}).get("name", "?")
        replicas = deployment.get("status", {}).get("replicas") or 0
        ready = deployment.get("status", {}).get("readyReplicas") or 0
        if replicas == 0:
            return False, f"deployment {name} has no replicas"
        if ready < replicas:
            return False, f"deployment {name} has {ready}/{replicas} ready replicas"

    return True, None


class ReadinessPoller:
    """Poll a plugin's Deployments until they are ready."""

    def __init__(
        self,
        kubectl: Kubectl,
        interval_seconds: float = 5.0,
        timeout_seconds: float = 300.0,
    ):
        """Initialize readiness poller.

        Args:
            kubectl: kubectl wrapper for the target cluster.
            interval_seconds: Seconds between attempts.
            timeout_seconds: Overall deadline for the wait.
        """
        self.kubectl = kubectl
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds

    async def wait_for_ready(
        self,
        namespace: str,
        app_name: str,
        on_attempt: Callable[[int, str | None], None] | None = None,
    ) -> ReadinessResult:
        """Poll until every Deployment of ``app_name`` is ready or the deadline passes.

        Args:
            namespace: Namespace the plugin was installed into.
            app_name: Value of the ``app.kubernetes.io/instance`` label.
            on_attempt: Optional callback called with (attempt, error)
                       for progress reporting.

        Returns:
            ReadinessResult with status information.
        """
        start = time.monotonic()
        deadline = start + self.timeout_seconds
        selector = f"{INSTANCE_LABEL}={app_name}"
        last_error: str | None = None
        attempt = 0

        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            attempt += 1
            try:
                deployments = await self.kubectl.alist_deployments(namespace, selector, timeout=remaining)
                ready, last_error = deployments_ready(deployments)
            except KubectlError as e:
                ready, last_error = False, e.message

            if ready:
                logger.info("Plugin is ready", app=app_name, namespace=namespace, attempts=attempt)
                return ReadinessResult(
                    ready=True,
                    attempts=attempt,
                    elapsed_seconds=time.monotonic() - start,
                )

            logger.debug("Plugin not ready yet", app=app_name, attempt=attempt, reason=last_error)
            if on_attempt:
                on_attempt(attempt, last_error)

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(self.interval_seconds, remaining))

        return ReadinessResult(
            ready=False,
            attempts=attempt,
            elapsed_seconds=time.monotonic() - start,
            error=f"{app_name} did not become ready within timeout. Last error: {last_error}",
        )

    def wait_for_ready_sync(
        self,
        namespace: str,
        app_name: str,
        on_attempt: Callable[[int, str | None], None] | None = None,
    ) -> ReadinessResult:
        """Synchronous wrapper for wait_for_ready."""
        return asyncio.run(self.wait_for_ready(namespace, app_name, on_attempt))
