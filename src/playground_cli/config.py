"""CLI configuration management.

Handles persistent CLI configuration stored in ~/.playground/config.yaml.
Supports environment variable overrides and CLI flag precedence.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .shared.paths import CONFIG_FILE

# Default values
DEFAULT_TRACKER_NAMESPACE = "kube-system"
DEFAULT_READY_TIMEOUT = 300
DEFAULT_READY_INTERVAL = 5
DEFAULT_LOG_LEVEL = "warning"

# Environment variable mappings
ENV_VARS = {
    "kubeconfig": "PLAYGROUND_KUBECONFIG",
    "tracker_namespace": "PLAYGROUND_TRACKER_NAMESPACE",
    "ready_timeout": "PLAYGROUND_READY_TIMEOUT",
    "ready_interval": "PLAYGROUND_READY_INTERVAL",
    "log_level": "PLAYGROUND_LOG_LEVEL",
}

# Value type per key
CONFIG_TYPES: dict[str, type] = {
    "kubeconfig": str,
    "tracker_namespace": str,
    "ready_timeout": int,
    "ready_interval": int,
    "log_level": str,
}


@dataclass
class CLIConfig:
    """CLI configuration."""

    kubeconfig: str | None = None
    tracker_namespace: str = DEFAULT_TRACKER_NAMESPACE
    ready_timeout: int = DEFAULT_READY_TIMEOUT
    ready_interval: int = DEFAULT_READY_INTERVAL
    log_level: str = DEFAULT_LOG_LEVEL

    # Track where each value came from
    _sources: dict[str, str] = field(default_factory=dict)

    def get_source(self, key: str) -> str:
        """Get the source of a config value."""
        return self._sources.get(key, "default")


def get_config_path() -> Path:
    """Get the CLI config file path.

    Returns:
        Path to ~/.playground/config.yaml
    """
    return CONFIG_FILE


def coerce_value(key: str, value: Any) -> Any:
    """Convert a raw value to the type of ``key``.

    Raises:
        KeyError: Unknown key.
        ValueError: Value cannot be converted.
    """
    return CONFIG_TYPES[key](value)


def _read_file(config_path: Path) -> dict[str, Any]:
    if not config_path.exists():
        return {}
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}  # Unreadable config file, use defaults
    return data if isinstance(data, dict) else {}


def load_config() -> CLIConfig:
    """Load CLI configuration.

    Precedence (highest to lowest):
    1. Environment variables
    2. Config file (~/.playground/config.yaml)
    3. Defaults

    ``KUBECONFIG`` is used for ``kubeconfig`` when nothing else sets it.

    Returns:
        CLIConfig with values and sources
    """
    config = CLIConfig()
    sources: dict[str, str] = {key: "default" for key in CONFIG_TYPES}

    file_config = _read_file(get_config_path())
    for key in CONFIG_TYPES:
        if key not in file_config:
            continue
        try:
            setattr(config, key, coerce_value(key, file_config[key]))
        except (TypeError, ValueError):
            continue
        sources[key] = "config file"

    for key, env_var in ENV_VARS.items():
        raw = os.environ.get(env_var)
        if not raw:
            continue
        try:
            setattr(config, key, coerce_value(key, raw))
        except ValueError:
            continue
        sources[key] = "environment"

    if config.kubeconfig is None and os.environ.get("KUBECONFIG"):
        config.kubeconfig = os.environ["KUBECONFIG"]
        sources["kubeconfig"] = "environment"

    config._sources = sources
    return config


def save_config(key: str, value: Any) -> None:
    """Save a config value to the config file.

    Args:
        key: Config key (one of ``CONFIG_TYPES``)
        value: Value to save
    """
    config_path = get_config_path()
    existing = _read_file(config_path)
    existing[key] = value

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)


def unset_config(key: str) -> bool:
    """Remove a config value from the config file.

    Args:
        key: Config key to remove

    Returns:
        True if key was removed, False if not found
    """
    config_path = get_config_path()
    existing = _read_file(config_path)
    if key not in existing:
        return False

    del existing[key]
    with open(config_path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)

    return True
