"""Built-in plugin catalog."""

from __future__ import annotations

import hashlib

import httpx
import yaml

from ..installer import InstallerKind
from ..shared.logging import get_logger
from .base import ChartSource, PluginDescriptor, PluginRegistry
from .values import Values

logger = get_logger(__name__)

ARGOCD_VALUES_URL = (
    "https://raw.githubusercontent.com/mrgb7/core-infrastructure/"
    "refs/heads/main/argocd/argocd-values-local.yaml"
)
VALUES_FETCH_TIMEOUT = 30.0
MAX_VALUES_SIZE = 10 * 1024 * 1024


def fetch_values(url: str, timeout: float = VALUES_FETCH_TIMEOUT) -> Values:
    """Download a YAML values file.

    Failures are logged and yield an empty tree so the chart defaults apply.
    """
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error("Failed to fetch values file", url=url, error=str(e))
        return {}

    content = response.content
    if len(content) > MAX_VALUES_SIZE:
        logger.error("Values file too large", url=url, size=len(content), limit=MAX_VALUES_SIZE)
        return {}
    logger.debug("Fetched values file", url=url, sha256=hashlib.sha256(content).hexdigest())

    try:
        values = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.error("Invalid values file", url=url, error=str(e))
        return {}
    if not isinstance(values, dict):
        logger.error("Values file is not a mapping", url=url)
        return {}
    return values


def _argocd_values() -> Values:
    return fetch_values(ARGOCD_VALUES_URL)


OBSERVABILITY_VALUES: Values = {
    "fullnameOverride": "obs",
    "vmsingle": {
        "enabled": True,
        "spec": {
            "retentionPeriod": "7d",
            "storage": {
                "storageClassName": "local-path",
                "accessModes": ["ReadWriteOnce"],
                "size": "5Gi",
            },
        },
    },
    "nodeExporter": {"enabled": True},
    "kubeStateMetrics": {"enabled": True},
    "grafana": {
        "enabled": True,
        "sidecar": {
            "datasources": {"enabled": True},
            "dashboards": {
                "enabled": True,
                "label": "grafana_dashboard",
                "searchNamespace": "ALL",
            },
        },
    },
    "alertmanager": {"enabled": False},
    "vmalert": {"enabled": False},
    "prometheus": {"enabled": False},
}


def builtin_plugins() -> list[PluginDescriptor]:
    """Return fresh descriptors for every built-in plugin."""
    return [
        PluginDescriptor(
            name="argocd",
            namespace="argocd",
            chart=ChartSource(
                repo_name="argo",
                repo_url="https://argoproj.github.io/argo-helm",
                chart_name="argo-cd",
                version="8.0.0",
            ),
            values_loader=_argocd_values,
            allowed_overrides=frozenset({"admin.password"}),
            provides=InstallerKind.GITOPS_APPLICATION,
            crds_group="argoproj.io",
        ),
        PluginDescriptor(
            name="cert-manager",
            namespace="cert-manager",
            chart=ChartSource(
                repo_name="jetstack",
                repo_url="https://charts.jetstack.io",
                chart_name="cert-manager",
                version="v1.17.2",
            ),
            values={"crds": {"enabled": True}},
            crds_group="cert-manager.io",
        ),
        PluginDescriptor(
            name="load-balancer",
            namespace="metallb-system",
            chart=ChartSource(
                repo_name="metallb",
                repo_url="https://metallb.github.io/metallb",
                chart_name="metallb",
                version="0.14.9",
            ),
            crds_group="metallb.io",
        ),
        PluginDescriptor(
            name="nginx-ingress",
            namespace="ingress-nginx",
            dependencies=["load-balancer"],
            chart=ChartSource(
                repo_name="ingress-nginx",
                repo_url="https://kubernetes.github.io/ingress-nginx",
                chart_name="ingress-nginx",
                version="4.12.2",
            ),
            values={"controller": {"service": {"type": "LoadBalancer"}}},
        ),
        PluginDescriptor(
            name="observability",
            namespace="monitoring",
            chart=ChartSource(
                repo_name="victoria-metrics",
                repo_url="https://victoriametrics.github.io/helm-charts/",
                chart_name="victoria-metrics-k8s-stack",
                version="0.50.1",
            ),
            values=OBSERVABILITY_VALUES,
            crds_group="operator.victoriametrics.com",
        ),
    ]


def create_registry() -> PluginRegistry:
    """Build a registry holding the built-in plugins."""
    return PluginRegistry(builtin_plugins())
