"""Tests for config.py module."""

from pathlib import Path

import pytest

from cde_utils import config
from cde_utils.config import ECS_INSTALLER_BIN, Settings


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Clear settings variables and point the RKE2 default at a missing file."""
    for name in ("KUBECONFIG", "CDE_UTILS_SCRATCH", "CDE_UTILS_BIN_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "RKE2_KUBECONFIG", tmp_path / "rke2.yaml")
    return tmp_path


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, clean_env):
        """Test defaults without any environment variables."""
        settings = Settings.from_env()

        assert settings.kubeconfig is None
        assert settings.scratch_dir.name == "cde-utils-tmp"
        assert settings.extra_bin_path == ECS_INSTALLER_BIN
        assert settings.post_action_delay == 7.0

    def test_environment_overrides(self, clean_env, monkeypatch):
        """Test each variable overrides its default."""
        monkeypatch.setenv("KUBECONFIG", "/home/user/.kube/dev")
        monkeypatch.setenv("CDE_UTILS_SCRATCH", str(clean_env / "scratch"))
        monkeypatch.setenv("CDE_UTILS_BIN_PATH", "/usr/local/bin")

        settings = Settings.from_env()

        assert settings.kubeconfig == "/home/user/.kube/dev"
        assert settings.scratch_dir == clean_env / "scratch"
        assert settings.extra_bin_path == "/usr/local/bin"

    def test_rke2_kubeconfig_fallback(self, clean_env):
        """Test the RKE2 kubeconfig is used when present."""
        rke2 = Path(config.RKE2_KUBECONFIG)
        rke2.write_text("apiVersion: v1\n")

        assert Settings.from_env().kubeconfig == str(rke2)

    def test_with_kubeconfig(self, clean_env):
        """Test an explicit kubeconfig replaces the default, None keeps it."""
        settings = Settings.from_env()

        assert settings.with_kubeconfig(None) is settings
        assert settings.with_kubeconfig("/tmp/kube.yaml").kubeconfig == "/tmp/kube.yaml"
        assert settings.kubeconfig is None
