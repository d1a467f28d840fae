"""Runtime settings for cde-utils.

Settings are resolved once per invocation from the environment and then
passed around explicitly; nothing here is mutated after start-up.
"""

import os
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path

# Default kubeconfig on ECS (RKE2) base clusters
RKE2_KUBECONFIG = Path("/etc/rancher/rke2/rke2.yaml")

# kubectl ships inside the ECS installer parcel on base cluster hosts
ECS_INSTALLER_BIN = "/opt/cloudera/parcels/ECS/installer/install/bin/linux/"

# Seconds to wait after an interactive action so remote errors can surface
POST_ACTION_DELAY = 7.0

# Timeout for the second and third characters of an escape sequence
ESCAPE_TIMEOUT = 1.0


def _default_kubeconfig() -> str | None:
    """Resolve the kubeconfig path the same way the cluster hosts expect.

    Returns:
        $KUBECONFIG when set, the RKE2 kubeconfig when present, otherwise
        None (the kubernetes client then uses ~/.kube/config).

    """
    env_value = os.environ.get("KUBECONFIG")
    if env_value:
        return env_value
    if RKE2_KUBECONFIG.exists():
        return str(RKE2_KUBECONFIG)
    return None


@dataclass(frozen=True, slots=True)
class Settings:
    """Process-wide, read-only configuration.

    Attributes:
        kubeconfig: Path to the kubeconfig file, or None for the client default.
        scratch_dir: Directory for generated certificates and staged credentials.
        extra_bin_path: Directory searched for kubectl/openssl before $PATH.
        post_action_delay: Pause after each interactive autoscaler update.
        escape_timeout: Bounded read timeout inside an escape sequence.

    """

    kubeconfig: str | None
    scratch_dir: Path
    extra_bin_path: str = ECS_INSTALLER_BIN
    post_action_delay: float = POST_ACTION_DELAY
    escape_timeout: float = ESCAPE_TIMEOUT

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Returns:
            A Settings instance.

        """
        scratch = os.environ.get("CDE_UTILS_SCRATCH")
        scratch_dir = Path(scratch) if scratch else Path(tempfile.gettempdir()) / "cde-utils-tmp"
        return cls(
            kubeconfig=_default_kubeconfig(),
            scratch_dir=scratch_dir,
            extra_bin_path=os.environ.get("CDE_UTILS_BIN_PATH", ECS_INSTALLER_BIN),
        )

    def with_kubeconfig(self, kubeconfig: str | None) -> "Settings":
        """Return a copy with an explicit kubeconfig, keeping the default when None."""
        if kubeconfig is None:
            return self
        return replace(self, kubeconfig=kubeconfig)
