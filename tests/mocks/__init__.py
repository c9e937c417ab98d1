"""Test mocks for playground-cli.

Provides in-memory implementations for testing:
- MemoryTracker: installer tracker backed by a dict
- FakeInstaller: records install/uninstall calls, can be told to fail
"""

from .cluster import FakeInstaller, MemoryTracker, make_plugin

__all__ = ["FakeInstaller", "MemoryTracker", "make_plugin"]
