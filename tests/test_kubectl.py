"""Tests for kubectl.py and shell.py modules."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from cde_utils.exceptions import (
    BinaryNotFoundError,
    ExternalCommandError,
    RemoteRejectedError,
    ResourceNotFoundError,
)
from cde_utils.kubectl import Kubectl
from cde_utils.shell import find_binary, run_command


class TestRunCommand:
    """Tests for external command execution."""

    def test_success(self, mock_subprocess):
        """Test stdout is captured and stdin is passed through."""
        mock_subprocess.return_value = MagicMock(returncode=0, stdout="out", stderr="")

        result = run_command(["kubectl", "apply", "-f", "-"], input_text="kind: X")

        assert result.stdout == "out"
        assert mock_subprocess.call_args.kwargs["input"] == "kind: X"
        assert mock_subprocess.call_args.kwargs["check"] is True

    def test_non_zero_exit(self, mock_subprocess):
        """Test a failing command carries its exit code and stderr."""
        mock_subprocess.side_effect = subprocess.CalledProcessError(2, ["openssl"], stderr="bad input\n")

        with pytest.raises(ExternalCommandError) as exc_info:
            run_command(["openssl", "req"])

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "bad input"
        assert "exit code 2" in str(exc_info.value)

    def test_missing_executable(self, mock_subprocess):
        """Test a missing binary is reported as such."""
        mock_subprocess.side_effect = FileNotFoundError()

        with pytest.raises(BinaryNotFoundError, match="openssl"):
            run_command(["openssl", "version"])

    def test_env_is_layered(self, mock_subprocess, monkeypatch):
        """Test extra variables extend the current environment."""
        monkeypatch.setenv("HOME", "/home/test")

        run_command(["kubectl"], env={"NO_PROXY": "api.example.com"})

        env = mock_subprocess.call_args.kwargs["env"]
        assert env["NO_PROXY"] == "api.example.com"
        assert env["HOME"] == "/home/test"


class TestFindBinary:
    """Tests for executable lookup."""

    def test_extra_path_searched_first(self, tmp_path):
        """Test the extra directory wins over $PATH."""
        binary = tmp_path / "kubectl"
        binary.write_text("#!/bin/sh\n")
        binary.chmod(0o755)

        assert find_binary("kubectl", str(tmp_path)) == str(binary)

    def test_not_found(self, tmp_path, monkeypatch):
        """Test a missing binary raises."""
        monkeypatch.setenv("PATH", str(tmp_path))

        with pytest.raises(BinaryNotFoundError, match="kubectl"):
            find_binary("kubectl")


class TestKubectl:
    """Tests for the kubectl wrapper."""

    def test_get_builds_command(self, mock_subprocess):
        """Test reads pass kubeconfig, context and yaml output."""
        mock_subprocess.return_value = MagicMock(returncode=0, stdout="kind: Ingress\n", stderr="")
        kubectl = Kubectl(binary="/bin/kubectl", context="ctx", kubeconfig="/etc/kube.yaml")

        assert kubectl.get("ingress", "dex-base-api", "ns") == "kind: Ingress\n"
        assert mock_subprocess.call_args.args[0] == [
            "/bin/kubectl",
            "--kubeconfig=/etc/kube.yaml",
            "--context=ctx",
            "get",
            "ingress",
            "dex-base-api",
            "-n",
            "ns",
            "-o",
            "yaml",
        ]

    def test_apply_sends_manifest_on_stdin(self, mock_subprocess):
        """Test apply reads the manifest from stdin."""
        Kubectl().apply("kind: ConfigMap\n", namespace="ns")

        assert mock_subprocess.call_args.args[0] == ["kubectl", "apply", "-f", "-", "-n", "ns"]
        assert mock_subprocess.call_args.kwargs["input"] == "kind: ConfigMap\n"

    def test_delete_ignore_not_found(self, mock_subprocess):
        """Test the ignore flag is passed to kubectl."""
        Kubectl().delete("secret", "s", "ns", ignore_not_found=True)

        assert mock_subprocess.call_args.args[0] == ["kubectl", "delete", "--ignore-not-found=true", "secret", "s", "-n", "ns"]

    def test_create_generic_secret(self, mock_subprocess):
        """Test one --from-file per staged file."""
        Kubectl().create_generic_secret("s", "ns", [Path("/tmp/a"), Path("/tmp/b")])

        assert mock_subprocess.call_args.args[0] == [
            "kubectl", "create", "secret", "generic", "s", "--from-file=/tmp/a", "--from-file=/tmp/b", "-n", "ns",
        ]

    def test_dry_run_skips_mutations(self, mock_subprocess):
        """Test no mutating command reaches subprocess in dry-run mode."""
        kubectl = Kubectl(dry_run=True)

        with patch("cde_utils.console.console.print") as mock_print:
            kubectl.apply("kind: ConfigMap\n")
            kubectl.delete("pod", "p", "ns")
            kubectl.create_generic_secret("s", "ns", [Path("/tmp/a")])

        mock_subprocess.assert_not_called()
        echoed = [call.args[0] for call in mock_print.call_args_list]
        assert len(echoed) == 3
        assert all("(Dry Run: yes) Running command: kubectl" in line for line in echoed)

    def test_dry_run_still_reads(self, mock_subprocess):
        """Test reads and client-side renders run in dry-run mode."""
        kubectl = Kubectl(dry_run=True)

        kubectl.get("configmap", "c", "ns")
        kubectl.render_tls_secret("s", "ns", Path("/tmp/c"), Path("/tmp/k"))

        assert mock_subprocess.call_count == 2
        assert "--dry-run=client" in mock_subprocess.call_args.args[0]

    def test_not_found_is_translated(self, mock_subprocess):
        """Test NotFound responses become ResourceNotFoundError."""
        mock_subprocess.side_effect = subprocess.CalledProcessError(
            1, ["kubectl"], stderr='Error from server (NotFound): configmaps "c" not found'
        )

        with pytest.raises(ResourceNotFoundError, match="NotFound"):
            Kubectl().get("configmap", "c", "ns")

    def test_rejection_carries_stderr(self, mock_subprocess):
        """Test other failures become RemoteRejectedError with kubectl's stderr."""
        stderr = 'Error from server (AlreadyExists): secrets "s" already exists'
        mock_subprocess.side_effect = subprocess.CalledProcessError(1, ["kubectl"], stderr=stderr)

        with pytest.raises(RemoteRejectedError) as exc_info:
            Kubectl().create_generic_secret("s", "ns", [Path("/tmp/a")])

        assert str(exc_info.value) == stderr

    def test_no_proxy_host(self, mock_subprocess, monkeypatch):
        """Test the API server host is appended to NO_PROXY."""
        monkeypatch.setenv("NO_PROXY", "localhost")

        Kubectl(no_proxy_host="api.example.com").get("pod", "p", "ns")

        assert mock_subprocess.call_args.kwargs["env"]["NO_PROXY"] == "localhost,api.example.com"
