"""Unit tests for the Helm installer."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import yaml

from playground_cli.installer import HelmInstaller, InstallerError, InstallerKind, InstallOptions
from playground_cli.k8s import Kubectl, KubectlError


@pytest.fixture
def options():
    return InstallOptions(
        application_name="cert-manager",
        namespace="cert-manager",
        repo_url="https://charts.jetstack.io",
        repo_name="jetstack",
        chart_name="cert-manager",
        version="v1.17.2",
        values={"crds": {"enabled": True}},
    )


@pytest.fixture
def kubectl():
    return MagicMock(spec=Kubectl)


class TestHelmInstall:
    """Tests for HelmInstaller.install."""

    def test_kind(self):
        """Test the installer kind."""
        assert HelmInstaller.kind == InstallerKind.PACKAGE_MANAGER_RELEASE

    def test_upgrade_install_command(self, options, kubectl):
        """Test the helm command line and the values file it reads."""
        seen_values = {}

        def fake_run(cmd, **kwargs):
            values_file = cmd[cmd.index("--values") + 1]
            seen_values.update(yaml.safe_load(Path(values_file).read_text()))
            return MagicMock(returncode=0, stdout="", stderr="")

        installer = HelmInstaller(kubeconfig="/tmp/kc", kubectl=kubectl)
        with patch("subprocess.run", side_effect=fake_run) as mock_run:
            installer.install(options)

        cmd = mock_run.call_args[0][0]
        assert cmd[:5] == ["helm", "--kubeconfig", "/tmp/kc", "upgrade", "--install"]
        assert cmd[5:7] == ["cert-manager", "cert-manager"]
        assert "--create-namespace" in cmd
        assert "--wait" in cmd
        assert cmd[cmd.index("--repo") + 1] == "https://charts.jetstack.io"
        assert cmd[cmd.index("--version") + 1] == "v1.17.2"
        assert cmd[cmd.index("--timeout") + 1] == "300s"
        assert seen_values == {"crds": {"enabled": True}}

    def test_no_chart(self, options, kubectl):
        """Test that options without a chart are rejected."""
        options.chart_name = None

        with patch("subprocess.run") as mock_run:
            with pytest.raises(InstallerError):
                HelmInstaller(kubectl=kubectl).install(options)

        mock_run.assert_not_called()

    def test_helm_failure(self, options, kubectl):
        """Test that helm errors become InstallerError."""
        with patch(
            "subprocess.run",
            return_value=MagicMock(returncode=1, stdout="", stderr="Error: chart not found"),
        ):
            with pytest.raises(InstallerError) as exc_info:
                HelmInstaller(kubectl=kubectl).install(options)

        assert "chart not found" in exc_info.value.message

    def test_missing_binary(self, options, kubectl):
        """Test a missing helm binary."""
        with patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(InstallerError) as exc_info:
                HelmInstaller(kubectl=kubectl).install(options)

        assert "helm not found" in exc_info.value.message

    def test_timeout(self, options, kubectl):
        """Test that a hung helm process raises InstallerError."""
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired("helm", 330)):
            with pytest.raises(InstallerError):
                HelmInstaller(kubectl=kubectl).install(options)


class TestHelmUninstall:
    """Tests for HelmInstaller.uninstall."""

    def test_uninstall_and_cleanup(self, options, kubectl):
        """Test uninstalling the release and removing its namespace."""
        with patch("subprocess.run", return_value=MagicMock(returncode=0, stdout="", stderr="")) as mock_run:
            HelmInstaller(kubectl=kubectl).uninstall(options)

        cmd = mock_run.call_args[0][0]
        assert cmd[:3] == ["helm", "uninstall", "cert-manager"]
        kubectl.delete_namespace.assert_called_once_with("cert-manager")

    def test_shared_namespace_kept(self, options, kubectl):
        """Test that a namespace the plugin does not own is kept."""
        options.owns_namespace = False

        with patch("subprocess.run", return_value=MagicMock(returncode=0, stdout="", stderr="")):
            HelmInstaller(kubectl=kubectl).uninstall(options)

        kubectl.delete_namespace.assert_not_called()

    def test_cleanup_failure_ignored(self, options, kubectl):
        """Test that namespace cleanup failures do not fail the uninstall."""
        kubectl.delete_namespace.side_effect = KubectlError("timed out")

        with patch("subprocess.run", return_value=MagicMock(returncode=0, stdout="", stderr="")):
            HelmInstaller(kubectl=kubectl).uninstall(options)

    def test_uninstall_failure(self, options, kubectl):
        """Test that helm uninstall errors raise and skip cleanup."""
        with patch(
            "subprocess.run",
            return_value=MagicMock(returncode=1, stdout="", stderr="release: not found"),
        ):
            with pytest.raises(InstallerError):
                HelmInstaller(kubectl=kubectl).uninstall(options)

        kubectl.delete_namespace.assert_not_called()


class TestHelmCurrentValues:
    """Tests for HelmInstaller.current_values."""

    def test_values(self, options, kubectl):
        """Test reading release values."""
        output = "admin:\n  password: secret\n"
        with patch("subprocess.run", return_value=MagicMock(returncode=0, stdout=output, stderr="")):
            values = HelmInstaller(kubectl=kubectl).current_values(options)

        assert values == {"admin": {"password": "secret"}}

    def test_missing_release(self, options, kubectl):
        """Test that a missing release has no values."""
        with patch(
            "subprocess.run",
            return_value=MagicMock(returncode=1, stdout="", stderr="release: not found"),
        ):
            assert HelmInstaller(kubectl=kubectl).current_values(options) == {}
