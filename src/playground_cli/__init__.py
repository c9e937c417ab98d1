"""Playground CLI - plugin management for local Kubernetes clusters."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("playground-cli")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"  # Fallback for editable installs without metadata

__all__ = ["__version__"]
