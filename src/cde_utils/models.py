"""Data models for cde-utils.

This module provides the typed values threaded through every component:
the virtual cluster identity, ingress bindings, certificate sources, the
per-invocation request context and one parameter struct per operator intent.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from cde_utils.config import Settings
from cde_utils.exceptions import ValidationError
from cde_utils.validation import validate_duration

BASE_HOST_LABEL = "service"
WILDCARD_SECRET_NAME = "tls-dex-app"


class IngressScope(str, Enum):
    """Which ingress of a virtual cluster a TLS operation targets."""

    BASE = "base"
    APP = "app"


class SecretKind(str, Enum):
    """Kinds of secrets created by this tool."""

    TLS = "tls"
    GENERIC = "generic"


class FlagState(str, Enum):
    """Presence of an autoscaler flag in the deployment's container args."""

    PRESENT = "present-with-value"
    ABSENT = "absent"


class GangScheduling(str, Enum):
    """Requested gang-scheduling state."""

    ENABLE = "enable"
    DISABLE = "disable"

    @property
    def enabled(self) -> bool:
        """Whether this request turns gang scheduling on."""
        return self is GangScheduling.ENABLE


@dataclass(frozen=True, slots=True)
class VirtualCluster:
    """Identity of a virtual cluster, derived once from its host name.

    Attributes:
        host: The fully qualified virtual cluster host.
        cluster_id: The virtual cluster id (leading host label).
        base_id: The id of the underlying base cluster.

    """

    host: str
    cluster_id: str
    base_id: str

    @classmethod
    def from_host(cls, host: str, *, wildcard: bool = False) -> "VirtualCluster":
        """Derive the cluster identity from a host name.

        Standard hosts look like ``<vc-id>.cde-<base-id>.<domain>``. Hosts of
        wildcard-certificate clusters carry both ids in the first label,
        ``<vc-id>-<...>-<base-id>.<domain>``.

        Args:
            host: The virtual cluster host.
            wildcard: Whether the host uses the wildcard naming scheme.

        Returns:
            The derived VirtualCluster.

        Raises:
            ValidationError: If the host cannot be split into the expected ids.

        """
        host = host.strip()
        labels = host.split(".")
        if len(labels) < 2 or not all(labels):
            raise ValidationError(f"Invalid virtual cluster host: '{host}'")

        if wildcard:
            parts = labels[0].split("-")
            cluster_id = parts[0]
            base_id = parts[2] if len(parts) > 2 else ""
        else:
            cluster_id = labels[0]
            base_id = labels[1].replace("cde-", "")

        if not cluster_id or not base_id:
            raise ValidationError(f"Cannot derive cluster ids from host: '{host}'")
        return cls(host=host, cluster_id=cluster_id, base_id=base_id)

    @property
    def app_namespace(self) -> str:
        """Namespace holding the virtual cluster's workloads."""
        return f"dex-app-{self.cluster_id}"

    @property
    def base_namespace(self) -> str:
        """Namespace of the shared base cluster."""
        return f"dex-base-{self.base_id}"


@dataclass(frozen=True, slots=True)
class IngressBinding:
    """An ingress and the TLS secret/hosts it should terminate.

    Attributes:
        ingress_name: Name of the ingress object.
        namespace: Namespace of the ingress and the secret.
        secret_name: Name of the TLS secret.
        hosts: Hostnames bound to the secret.

    """

    ingress_name: str
    namespace: str
    secret_name: str
    hosts: tuple[str, ...]

    @classmethod
    def for_scope(cls, cluster: VirtualCluster, scope: IngressScope, *, wildcard: bool = False) -> "IngressBinding":
        """Derive the binding for one ingress scope of a virtual cluster.

        Args:
            cluster: The virtual cluster.
            scope: Base or app ingress.
            wildcard: Whether a shared wildcard certificate is used.

        Returns:
            The IngressBinding for that scope.

        """
        match scope:
            case IngressScope.BASE:
                prefix = "dex-base"
                host = cluster.host.replace(cluster.cluster_id, BASE_HOST_LABEL, 1)
            case IngressScope.APP:
                prefix = f"dex-app-{cluster.cluster_id}"
                host = cluster.host

        return cls(
            ingress_name=f"{prefix}-api",
            namespace=cluster.base_namespace,
            secret_name=WILDCARD_SECRET_NAME if wildcard else f"tls-{prefix}",
            hosts=(host,),
        )

    @property
    def host(self) -> str:
        """The primary bound hostname."""
        return self.hosts[0]


@dataclass(frozen=True, slots=True)
class CertificateSource:
    """Where TLS material comes from: operator files or auto-generation.

    Attributes:
        cert_path: Operator-supplied certificate.
        key_path: Operator-supplied private key.
        auto_generate: Generate a self-signed pair instead.

    """

    cert_path: Path | None = None
    key_path: Path | None = None
    auto_generate: bool = False

    def __post_init__(self) -> None:
        if self.auto_generate:
            return
        if self.cert_path is None:
            raise ValidationError(
                "Missing cert-path. Use -c to specify cert-path if you have one. "
                "Otherwise pass -a for auto-cert-generation"
            )
        if self.key_path is None:
            raise ValidationError(
                "Missing key-path. Use -k to specify key-path if you have one. "
                "Otherwise pass -a for auto-cert-generation"
            )


class CertificatePair(NamedTuple):
    """Resolved certificate and key files.

    Attributes:
        cert_path: PEM certificate.
        key_path: PEM private key.
        generated: Whether the pair was generated by this tool.

    """

    cert_path: Path
    key_path: Path
    generated: bool = False


class ResourceRef(NamedTuple):
    """A named, namespaced remote resource."""

    kind: str
    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.kind}/{self.name} -n {self.namespace}"


class AutoscalerFlag(NamedTuple):
    """A tunable as found in the live autoscaler deployment.

    Attributes:
        name: Flag name without leading dashes.
        value: Current value, or None when absent.
        state: Whether the flag is present.

    """

    name: str
    value: str | None
    state: FlagState


class SparkConfig(NamedTuple):
    """One spark-defaults entry."""

    key: str
    value: str


@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable per-invocation context passed to every component.

    Attributes:
        settings: Resolved runtime settings.
        dry_run: Echo remote mutations instead of executing them.
        assume_yes: Skip restart confirmations.

    """

    settings: Settings
    dry_run: bool = False
    assume_yes: bool = False


# Operator intents, one frozen struct per subcommand


@dataclass(frozen=True, slots=True)
class InitBaseCluster:
    """Bind TLS to the base cluster ingress."""

    cluster: VirtualCluster
    certificates: CertificateSource
    wildcard: bool = False


@dataclass(frozen=True, slots=True)
class InitVirtualCluster:
    """Bind TLS to both the base and app ingresses of a virtual cluster."""

    cluster: VirtualCluster
    certificates: CertificateSource
    wildcard: bool = False


@dataclass(frozen=True, slots=True)
class InitUser:
    """Provision a workload user's Kerberos secrets."""

    cluster: VirtualCluster
    username: str
    principal_file: Path
    keytab_file: Path

    def __post_init__(self) -> None:
        if not self.username:
            raise ValidationError("Missing workload-username. Use -u to specify workload-username")


@dataclass(frozen=True, slots=True)
class DeleteUser:
    """Remove a workload user's Kerberos secrets."""

    cluster: VirtualCluster
    username: str

    def __post_init__(self) -> None:
        if not self.username:
            raise ValidationError("Missing workload-username. Use -u to specify workload-username")


@dataclass(frozen=True, slots=True)
class UpdateSparkConfig:
    """Add/update spark defaults and/or toggle gang scheduling."""

    cluster: VirtualCluster
    configs: tuple[SparkConfig, ...] = ()
    gang_scheduling: GangScheduling | None = None

    def __post_init__(self) -> None:
        if not self.configs and self.gang_scheduling is None:
            raise ValidationError("Please provide at least one config or a --gang-scheduling state")


@dataclass(frozen=True, slots=True)
class EditAutoscaler:
    """Update autoscaler tunables from flags or through the interactive menu."""

    values: Mapping[str, str] = field(default_factory=dict)
    interactive: bool = False

    def __post_init__(self) -> None:
        if not self.interactive and not self.values:
            raise ValidationError("No autoscaler arguments provided. Pass -i or at least one tunable")
        invalid = [f"{flag}={value}" for flag, value in self.values.items() if not validate_duration(value)]
        if invalid:
            raise ValidationError(f"Invalid time -> {', '.join(invalid)}")


Intent = InitBaseCluster | InitVirtualCluster | InitUser | DeleteUser | UpdateSparkConfig | EditAutoscaler
