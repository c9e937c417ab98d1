"""Unit tests for installer selection."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from playground_cli.installer import ArgoInstaller, HelmInstaller, InstallerError, InstallerKind
from playground_cli.k8s import Kubectl, KubectlError
from playground_cli.plugins import (
    InstallerSelector,
    Orchestrator,
    SelectionError,
    default_installer_factory,
    is_gitops_controller_ready,
)
from tests.mocks import make_plugin


def pod(phase="Running", ready=(True,)):
    return {
        "metadata": {"name": "argocd-server-abc"},
        "status": {
            "phase": phase,
            "containerStatuses": [{"name": f"c{i}", "ready": r} for i, r in enumerate(ready)],
        },
    }


class TestSelect:
    """Tests for InstallerSelector.select."""

    def test_probe_ready_picks_gitops(self, selector, probe_state, installers):
        """Test that a ready GitOps controller is used when nothing is recorded."""
        probe_state["ready"] = True

        selection = selector.select("cert-manager")

        assert selection.kind == InstallerKind.GITOPS_APPLICATION
        assert selection.installer is installers[InstallerKind.GITOPS_APPLICATION]
        assert selection.recorded is False

    def test_probe_not_ready_picks_release(self, selector):
        """Test the package-manager fallback."""
        selection = selector.select("cert-manager")

        assert selection.kind == InstallerKind.PACKAGE_MANAGER_RELEASE

    def test_recorded_kind_wins(self, selector, tracker, probe_state):
        """Test that a recorded kind beats a ready GitOps controller."""
        tracker.set("argocd", InstallerKind.PACKAGE_MANAGER_RELEASE)
        probe_state["ready"] = True

        selection = selector.select("argocd")

        assert selection.kind == InstallerKind.PACKAGE_MANAGER_RELEASE
        assert selection.recorded is True

    def test_recorded_kind_skips_probe(self, tracker, installers):
        """Test that the live probe is not consulted when a kind is recorded."""
        tracker.set("argocd", InstallerKind.GITOPS_APPLICATION)
        probe = MagicMock(return_value=False)
        selector = InstallerSelector(tracker, probe=probe, factory=installers.__getitem__)

        assert selector.select("argocd").kind == InstallerKind.GITOPS_APPLICATION
        probe.assert_not_called()

    def test_unknown_recorded_kind_falls_back(self, selector, tracker, probe_state):
        """Test that an unrecognized record falls through to the probe."""
        tracker.data["argocd"] = "kustomize"
        probe_state["ready"] = True

        selection = selector.select("argocd")

        assert selection.kind == InstallerKind.GITOPS_APPLICATION
        assert selection.recorded is False

    def test_tracker_failure_on_install_uses_probe(self, selector, tracker):
        """Test that an unreadable tracker falls back to the probe during install."""
        tracker.fail_reads = True

        assert selector.select("argocd").kind == InstallerKind.PACKAGE_MANAGER_RELEASE

    def test_tracker_failure_on_uninstall_is_fatal(self, selector, tracker):
        """Test that uninstall refuses to guess the mechanism."""
        tracker.fail_reads = True

        with pytest.raises(SelectionError) as exc_info:
            selector.select("argocd", for_uninstall=True)

        assert exc_info.value.plugin == "argocd"

    def test_factory_failure(self, tracker):
        """Test that installer construction failures become SelectionError."""

        def factory(kind):
            raise InstallerError("failed to get Argo CD admin password")

        selector = InstallerSelector(tracker, probe=lambda: True, factory=factory)

        with pytest.raises(SelectionError) as exc_info:
            selector.select("cert-manager")

        assert "admin password" in exc_info.value.message
        assert tracker.data == {}


class TestRecordedAfterInstall:
    """Tests for the selector and tracker working together."""

    def test_gitops_recorded_after_install(self, selector, tracker, probe_state):
        """Test that a GitOps install is recorded and sticks."""
        probe_state["ready"] = True

        Orchestrator(make_plugin("argocd"), selector, tracker).install()

        assert tracker.get("argocd") == (InstallerKind.GITOPS_APPLICATION, True)
        probe_state["ready"] = False
        assert selector.select("argocd").kind == InstallerKind.GITOPS_APPLICATION


class TestGitopsProbe:
    """Tests for is_gitops_controller_ready."""

    @pytest.fixture
    def kubectl(self):
        kubectl = MagicMock(spec=Kubectl)
        kubectl.namespace_exists.return_value = True
        return kubectl

    def test_ready(self, kubectl):
        """Test a running server pod with all containers ready."""
        kubectl.list_pods.return_value = [pod()]

        assert is_gitops_controller_ready(kubectl) is True
        args = kubectl.list_pods.call_args
        assert args[0] == ("argocd", "app.kubernetes.io/name=argocd-server")

    def test_no_namespace(self, kubectl):
        """Test that a missing namespace is not ready."""
        kubectl.namespace_exists.return_value = False

        assert is_gitops_controller_ready(kubectl) is False
        kubectl.list_pods.assert_not_called()

    def test_no_pods(self, kubectl):
        """Test that no server pods is not ready."""
        kubectl.list_pods.return_value = []

        assert is_gitops_controller_ready(kubectl) is False

    def test_pending_pod(self, kubectl):
        """Test that a pod that is not running is not ready."""
        kubectl.list_pods.return_value = [pod(phase="Pending")]

        assert is_gitops_controller_ready(kubectl) is False

    def test_container_not_ready(self, kubectl):
        """Test that one unready container makes the pod not ready."""
        kubectl.list_pods.return_value = [pod(ready=(True, False))]

        assert is_gitops_controller_ready(kubectl) is False

    def test_no_containers(self, kubectl):
        """Test that a pod without container statuses is not ready."""
        kubectl.list_pods.return_value = [pod(ready=())]

        assert is_gitops_controller_ready(kubectl) is False

    def test_any_ready_pod(self, kubectl):
        """Test that one ready pod among several is enough."""
        kubectl.list_pods.return_value = [pod(phase="Pending"), pod()]

        assert is_gitops_controller_ready(kubectl) is True

    def test_kubectl_error(self, kubectl):
        """Test that probe failures read as not ready."""
        kubectl.namespace_exists.side_effect = KubectlError("connection refused")

        assert is_gitops_controller_ready(kubectl) is False


class TestDefaultFactory:
    """Tests for default_installer_factory."""

    def test_release_installer(self):
        """Test building a Helm installer."""
        kubectl = Kubectl(kubeconfig="/tmp/kubeconfig")

        installer = default_installer_factory(kubectl)(InstallerKind.PACKAGE_MANAGER_RELEASE)

        assert isinstance(installer, HelmInstaller)
        assert installer.kubeconfig == "/tmp/kubeconfig"

    def test_gitops_installer(self):
        """Test building an Argo CD installer."""
        kubectl = MagicMock(spec=Kubectl)
        kubectl.get_secret_value.return_value = "s3cret"

        installer = default_installer_factory(kubectl)(InstallerKind.GITOPS_APPLICATION)

        assert isinstance(installer, ArgoInstaller)
        kubectl.get_secret_value.assert_called_once_with("argocd", "argocd-initial-admin-secret", "password")

    def test_unknown_kind(self):
        """Test that UNKNOWN has no installer."""
        with pytest.raises(InstallerError):
            default_installer_factory(MagicMock(spec=Kubectl))(InstallerKind.UNKNOWN)

    def test_missing_credentials_through_selector(self, tracker):
        """Test that unreadable Argo CD credentials fail selection."""
        kubectl = MagicMock(spec=Kubectl)
        kubectl.get_secret_value.side_effect = KubectlError("secrets not found")
        selector = InstallerSelector(
            tracker, probe=lambda: True, factory=default_installer_factory(kubectl)
        )

        with pytest.raises(SelectionError):
            selector.select("cert-manager")
