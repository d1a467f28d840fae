"""kubectl wrapper exposing the remote verbs used by the reconcilers.

Reads always execute. Mutations (apply, delete, create) are echoed and
skipped when dry-run mode is on, so a dry run never changes the cluster.
"""

import os
from pathlib import Path

from cde_utils import console
from cde_utils.exceptions import ExternalCommandError, RemoteRejectedError, ResourceNotFoundError
from cde_utils.models import SecretKind
from cde_utils.shell import run_command

# CLI flag constants for kubectl commands
_DRY_RUN_CLIENT = "--dry-run=client"
_OUTPUT_YAML = ("-o", "yaml")


def _translate_error(err: ExternalCommandError) -> Exception:
    """Map a failed kubectl invocation onto the error taxonomy.

    Args:
        err: The failed command.

    Returns:
        ResourceNotFoundError for NotFound responses, otherwise
        RemoteRejectedError carrying kubectl's stderr verbatim.

    """
    if "(NotFound)" in err.stderr:
        return ResourceNotFoundError(err.stderr)
    return RemoteRejectedError(err.stderr or str(err))


class Kubectl:
    """Runs kubectl against one cluster context.

    Attributes:
        binary: Path to the kubectl executable.
        context: Kube context passed as --context, if any.
        kubeconfig: Kubeconfig passed as --kubeconfig, if any.
        dry_run: Echo mutations instead of executing them.
        no_proxy_host: API server host appended to NO_PROXY.

    """

    def __init__(
        self,
        *,
        binary: str = "kubectl",
        context: str | None = None,
        kubeconfig: str | None = None,
        dry_run: bool = False,
        no_proxy_host: str | None = None,
    ) -> None:
        self.binary = binary
        self.context = context
        self.kubeconfig = kubeconfig
        self.dry_run = dry_run
        self.no_proxy_host = no_proxy_host

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Kubectl(binary={self.binary!r}, context={self.context!r}, dry_run={self.dry_run!r})"

    def _build_cmd(self, args: list[str]) -> list[str]:
        cmd = [self.binary]
        if self.kubeconfig:
            cmd.append(f"--kubeconfig={self.kubeconfig}")
        if self.context:
            cmd.append(f"--context={self.context}")
        cmd.extend(args)
        return cmd

    def _env(self) -> dict[str, str] | None:
        if not self.no_proxy_host:
            return None
        existing = os.environ.get("NO_PROXY", "")
        return {"NO_PROXY": f"{existing},{self.no_proxy_host}" if existing else self.no_proxy_host}

    def _run(self, args: list[str], *, input_text: str | None = None, mutating: bool = False) -> str:
        cmd = self._build_cmd(args)
        if mutating:
            console.command(cmd, dry_run=self.dry_run)
            if self.dry_run:
                return ""
        try:
            return run_command(cmd, input_text=input_text, env=self._env()).stdout
        except ExternalCommandError as err:
            raise _translate_error(err) from err

    def get(self, kind: str, name: str, namespace: str) -> str:
        """Fetch a resource serialized as YAML.

        Args:
            kind: Resource kind (e.g. ``ingress``).
            name: Resource name.
            namespace: Resource namespace.

        Returns:
            The YAML text of the resource.

        Raises:
            ResourceNotFoundError: If the resource does not exist.

        """
        return self._run(["get", kind, name, "-n", namespace, *_OUTPUT_YAML])

    def apply(self, manifest: str, namespace: str | None = None) -> None:
        """Declaratively apply a manifest read from stdin.

        Args:
            manifest: YAML manifest text.
            namespace: Optional namespace override.

        Raises:
            RemoteRejectedError: If the API server refuses the manifest.

        """
        args = ["apply", "-f", "-"]
        if namespace:
            args.extend(["-n", namespace])
        self._run(args, input_text=manifest, mutating=True)

    def delete(self, kind: str, name: str, namespace: str, *, ignore_not_found: bool = False) -> None:
        """Delete a resource.

        Args:
            kind: Resource kind.
            name: Resource name.
            namespace: Resource namespace.
            ignore_not_found: Treat an absent resource as already deleted.

        Raises:
            ResourceNotFoundError: If absent and ``ignore_not_found`` is False.

        """
        args = ["delete"]
        if ignore_not_found:
            args.append("--ignore-not-found=true")
        args.extend([kind, name, "-n", namespace])
        self._run(args, mutating=True)

    def render_tls_secret(self, name: str, namespace: str, cert_path: Path, key_path: Path) -> str:
        """Render a TLS secret manifest locally without touching the cluster.

        Args:
            name: Secret name.
            namespace: Secret namespace.
            cert_path: Path to the PEM certificate.
            key_path: Path to the PEM private key.

        Returns:
            The rendered secret manifest.

        """
        return self._run(
            [
                "create",
                "secret",
                SecretKind.TLS.value,
                name,
                f"--cert={cert_path}",
                f"--key={key_path}",
                "--namespace",
                namespace,
                _DRY_RUN_CLIENT,
                *_OUTPUT_YAML,
            ]
        )

    def create_generic_secret(self, name: str, namespace: str, files: list[Path]) -> None:
        """Create a generic secret whose keys are the given file names.

        Args:
            name: Secret name.
            namespace: Secret namespace.
            files: Files to load with --from-file.

        Raises:
            RemoteRejectedError: If the secret already exists or is refused.

        """
        from_files = [f"--from-file={path}" for path in files]
        args = ["create", "secret", SecretKind.GENERIC.value, name, *from_files, "-n", namespace]
        self._run(args, mutating=True)
