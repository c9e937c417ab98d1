"""CLI utility functions."""

import json
from pathlib import Path
from typing import Any

import yaml

from .plugins.values import merge_values, parse_set_values


def parse_overrides(
    set_flags: tuple[str, ...],
    values_file: str | None = None,
) -> dict[str, Any]:
    """Parse override values from ``--set`` flags and a values file.

    Args:
        set_flags: Tuple of KEY=VALUE strings, keys in dot notation
        values_file: Path to JSON/YAML file with values

    Returns:
        Nested dictionary of values, flags overriding the file
    """
    values: dict[str, Any] = {}

    # Parse values file first (if provided)
    if values_file:
        file_path = Path(values_file)
        with file_path.open() as f:
            if file_path.suffix in [".yaml", ".yml"]:
                values = yaml.safe_load(f) or {}
            elif file_path.suffix == ".json":
                values = json.load(f)
            else:
                raise ValueError(f"Unsupported values file format: {file_path.suffix}")
        if not isinstance(values, dict):
            raise ValueError(f"Values file must contain a mapping: {values_file}")

    return merge_values(values, parse_set_values(list(set_flags)))
