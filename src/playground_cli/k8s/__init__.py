"""Kubernetes access through kubectl."""

from .kubectl import Kubectl, KubectlError, KubectlNotFoundError

__all__ = [
    "Kubectl",
    "KubectlError",
    "KubectlNotFoundError",
]
