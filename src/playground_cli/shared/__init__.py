"""Shared modules for playground-cli.

Logging setup and filesystem locations used by every command.
"""

from .logging import configure_logging, get_logger
from .paths import CONFIG_FILE, LOG_DIR, PLAYGROUND_DIR, ensure_dirs, get_log_file

__all__ = [
    # Paths
    "PLAYGROUND_DIR",
    "LOG_DIR",
    "CONFIG_FILE",
    "ensure_dirs",
    "get_log_file",
    # Logging
    "configure_logging",
    "get_logger",
]
