"""Plugin dependency resolution and installer orchestration."""

from .base import (
    STATUS_NOT_INSTALLED,
    STATUS_RUNNING,
    STATUS_UNKNOWN,
    ChartSource,
    PluginDescriptor,
    PluginRegistry,
    is_installed_status,
    namespace_status,
    resource_status,
)
from .catalog import builtin_plugins, create_registry
from .errors import (
    BlockedByDependentsError,
    CircularDependencyError,
    InstallError,
    OverrideError,
    PluginError,
    PluginNotFoundError,
    ReadinessTimeoutError,
    SelectionError,
    TrackingError,
    UninstallError,
    UnmetDependencyError,
)
from .graph import DependencyGraph, GraphNode
from .orchestrator import Orchestrator
from .readiness import ReadinessPoller, ReadinessResult
from .selector import InstallerSelector, Selection, default_installer_factory, is_gitops_controller_ready
from .session import BatchResult, PluginSession
from .tracker import InstallerTracker
from .validator import DependencyValidator

__all__ = [
    "STATUS_NOT_INSTALLED",
    "STATUS_RUNNING",
    "STATUS_UNKNOWN",
    "ChartSource",
    "PluginDescriptor",
    "PluginRegistry",
    "is_installed_status",
    "namespace_status",
    "resource_status",
    "builtin_plugins",
    "create_registry",
    "BlockedByDependentsError",
    "CircularDependencyError",
    "InstallError",
    "OverrideError",
    "PluginError",
    "PluginNotFoundError",
    "ReadinessTimeoutError",
    "SelectionError",
    "TrackingError",
    "UninstallError",
    "UnmetDependencyError",
    "DependencyGraph",
    "GraphNode",
    "Orchestrator",
    "ReadinessPoller",
    "ReadinessResult",
    "InstallerSelector",
    "Selection",
    "default_installer_factory",
    "is_gitops_controller_ready",
    "BatchResult",
    "PluginSession",
    "InstallerTracker",
    "DependencyValidator",
]
