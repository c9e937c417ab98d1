"""Path management for playground-cli.

Manages the ~/.playground/ directory used for CLI config and logs.
"""

from pathlib import Path

# Base directory for all playground data
PLAYGROUND_DIR = Path.home() / ".playground"

# Log directory (same as base for simplicity)
LOG_DIR = PLAYGROUND_DIR

# CLI config file
CONFIG_FILE = PLAYGROUND_DIR / "config.yaml"


def ensure_dirs() -> None:
    """Create directory structure if missing.

    Creates ~/.playground/ with mode 0o700. Silent, no prompts.
    """
    PLAYGROUND_DIR.mkdir(mode=0o700, exist_ok=True)


def get_log_file(name: str = "playground") -> Path:
    """Get path to a log file.

    Args:
        name: Log file name (without extension)

    Returns:
        Path to the log file
    """
    return LOG_DIR / f"{name}.log"
