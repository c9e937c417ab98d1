"""Shared test fixtures for playground-cli tests."""

from __future__ import annotations

import pytest

from playground_cli.installer import InstallerKind
from playground_cli.plugins import InstallerSelector
from tests.mocks import FakeInstaller, MemoryTracker


@pytest.fixture
def tracker():
    """Empty in-memory tracker."""
    return MemoryTracker()


@pytest.fixture
def installers():
    """One fake installer per concrete kind."""
    return {
        InstallerKind.GITOPS_APPLICATION: FakeInstaller(InstallerKind.GITOPS_APPLICATION),
        InstallerKind.PACKAGE_MANAGER_RELEASE: FakeInstaller(InstallerKind.PACKAGE_MANAGER_RELEASE),
    }


@pytest.fixture
def probe_state():
    """Mutable live-probe answer; set ``probe_state["ready"]`` in a test."""
    return {"ready": False}


@pytest.fixture
def selector(tracker, installers, probe_state):
    """Selector over the memory tracker and fake installers."""
    return InstallerSelector(
        tracker,
        probe=lambda: probe_state["ready"],
        factory=installers.__getitem__,
    )
