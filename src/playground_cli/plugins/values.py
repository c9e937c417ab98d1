"""Install option value trees.

Option bags are string-keyed trees whose leaves are str, int, float or bool
and whose inner nodes are dicts. Merging is explicit: a scalar override
replaces, a map override deep-merges, and dotted keys are expanded into
nested maps.
"""

from __future__ import annotations

import copy
from typing import Any

Values = dict[str, Any]


def merge_values(base: Values | None, overrides: Values | None) -> Values:
    """Deep-merge ``overrides`` into a copy of ``base``.

    Args:
        base: Default values. Not modified.
        overrides: Values taking precedence. Keys containing dots are
            treated as paths (``"server.replicas"``).

    Returns:
        A new merged tree.
    """
    result: Values = copy.deepcopy(base) if base else {}

    for key, value in (overrides or {}).items():
        if "." in key:
            set_nested_value(result, key, copy.deepcopy(value))
            continue

        existing = result.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            result[key] = merge_values(existing, value)
        else:
            result[key] = copy.deepcopy(value)

    return result


def set_nested_value(tree: Values, key: str, value: Any) -> None:
    """Set ``value`` at a dot-notation path, creating maps as needed.

    A non-map value sitting on the path is replaced by a map.
    """
    parts = key.split(".")
    current = tree

    for part in parts[:-1]:
        nested = current.get(part)
        if not isinstance(nested, dict):
            nested = {}
            current[part] = nested
        current = nested

    current[parts[-1]] = value


def flatten_keys(tree: Values, prefix: str = "") -> list[str]:
    """Return dot-notation paths of every leaf in ``tree``."""
    keys: list[str] = []

    for key, value in tree.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict) and value:
            keys.extend(flatten_keys(value, full_key))
        else:
            keys.append(full_key)

    return keys


def parse_value(raw: str) -> Any:
    """Parse a ``--set`` value into bool, int, float or str."""
    if raw == "true":
        return True
    if raw == "false":
        return False

    try:
        return int(raw)
    except ValueError:
        pass

    try:
        return float(raw)
    except ValueError:
        return raw


def parse_set_values(set_values: tuple[str, ...] | list[str]) -> Values:
    """Parse ``key=value`` strings into a nested value tree.

    Args:
        set_values: Strings such as ``"server.replicas=3"``.

    Returns:
        Nested dict of parsed values.

    Raises:
        ValueError: If an entry has no ``=`` or an empty key.
    """
    result: Values = {}

    for entry in set_values:
        if "=" not in entry:
            raise ValueError(f"invalid --set format: {entry} (expected key=value)")

        key, raw = entry.split("=", 1)
        key = key.strip()
        if not key:
            raise ValueError(f"empty key in --set: {entry}")

        set_nested_value(result, key, parse_value(raw.strip()))

    return result
