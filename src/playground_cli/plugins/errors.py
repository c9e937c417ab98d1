"""Plugin error taxonomy.

Graph and validation errors abort a whole batch before anything is applied.
Install/uninstall errors abort a single plugin. Tracking errors never escape
the orchestrator; they are logged and swallowed there.
"""


class PluginError(Exception):
    """Base error for plugin planning and orchestration."""

    def __init__(self, message: str, plugin: str | None = None):
        self.message = message
        self.plugin = plugin
        super().__init__(message)


class PluginNotFoundError(PluginError):
    """A referenced plugin name has no concrete registration."""

    def __init__(self, plugin: str):
        super().__init__(f"plugin '{plugin}' not found", plugin=plugin)


class CircularDependencyError(PluginError):
    """A dependency cycle was found while ordering plugins."""

    def __init__(self, plugin: str | None = None):
        if plugin:
            message = f"circular dependency detected involving plugin '{plugin}'"
        else:
            message = "circular dependency detected"
        super().__init__(message, plugin=plugin)


class UnmetDependencyError(PluginError):
    """A direct dependency is missing from the installed snapshot."""

    def __init__(self, plugin: str, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            f"plugin '{plugin}' has unmet dependencies: {', '.join(self.missing)}",
            plugin=plugin,
        )


class BlockedByDependentsError(PluginError):
    """Removal attempted while installed plugins still depend on the target."""

    def __init__(self, plugin: str, blockers: list[str], reason: str | None = None):
        self.blockers = list(blockers)
        message = reason or (
            f"cannot uninstall '{plugin}': the following installed plugins "
            f"depend on it: {', '.join(self.blockers)}"
        )
        super().__init__(message, plugin=plugin)


class SelectionError(PluginError):
    """No concrete installer could be constructed for a plugin."""


class InstallError(PluginError):
    """The selected installer failed to install the plugin."""


class UninstallError(PluginError):
    """The selected installer failed to uninstall the plugin."""


class TrackingError(PluginError):
    """The installer tracking store could not be read or written."""


class ReadinessTimeoutError(PluginError):
    """Install succeeded but workloads did not become available in time."""

    def __init__(self, plugin: str, namespace: str, timeout_seconds: float, detail: str | None = None):
        self.namespace = namespace
        self.timeout_seconds = timeout_seconds
        message = (
            f"timeout waiting for app {plugin} in namespace {namespace} "
            f"to be ready after {timeout_seconds:g}s"
        )
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, plugin=plugin)


class OverrideError(PluginError):
    """Override values were rejected for a plugin."""
