"""Orchestrator facade.

This module provides the Orchestrator class which is the main entry point
for every operator intent. It wires the reconcilers to one kubectl wrapper
and one cluster view, and dispatches each intent to the right one.
"""

from typing import assert_never

from icecream import ic

from cde_utils import console
from cde_utils.autoscaler import AutoscalerFlagManager
from cde_utils.cluster import Cluster
from cde_utils.gang import GangSchedulingToggle
from cde_utils.ingress import IngressTlsReconciler
from cde_utils.kubectl import Kubectl
from cde_utils.models import (
    CertificateSource,
    DeleteUser,
    EditAutoscaler,
    IngressBinding,
    IngressScope,
    InitBaseCluster,
    InitUser,
    InitVirtualCluster,
    Intent,
    RequestContext,
    UpdateSparkConfig,
    VirtualCluster,
)
from cde_utils.patching import ResourcePatcher
from cde_utils.secrets import CertificateProvisioner, delete_user_secrets, provision_user_secrets
from cde_utils.spark import SparkConfigInjector
from cde_utils.terminal import TerminalInputReader


class Orchestrator:
    """Runs operator intents against one cluster.

    Attributes:
        context: Per-invocation settings and flags.
        cluster: Read-only cluster view.
        kubectl: kubectl wrapper carrying the dry-run flag.
        patcher: Shared resource patcher.
        provisioner: Certificate provisioner.
        ingress: Ingress TLS reconciler.
        gang: Gang-scheduling toggle.
        spark: Spark defaults injector.
        autoscaler: Autoscaler tunables manager.

    """

    def __init__(
        self,
        context: RequestContext,
        cluster: Cluster,
        kubectl: Kubectl,
        *,
        openssl: str = "openssl",
        reader: TerminalInputReader | None = None,
    ) -> None:
        """Wire the reconcilers.

        Args:
            context: Per-invocation settings and flags.
            cluster: Read-only cluster view.
            kubectl: kubectl wrapper.
            openssl: openssl executable used for generated certificates.
            reader: Key reader for the autoscaler menu; a raw terminal by default.

        """
        self.context = context
        self.cluster = cluster
        self.kubectl = kubectl
        self.patcher = ResourcePatcher(kubectl)
        self.provisioner = CertificateProvisioner(context.settings.scratch_dir, openssl=openssl)
        self.ingress = IngressTlsReconciler(kubectl, self.patcher, self.provisioner)
        self.gang = GangSchedulingToggle(kubectl, self.patcher, cluster, assume_yes=context.assume_yes)
        self.spark = SparkConfigInjector(kubectl, self.patcher, cluster, assume_yes=context.assume_yes)
        self.autoscaler = AutoscalerFlagManager(
            self.patcher,
            cluster,
            post_action_delay=context.settings.post_action_delay,
            escape_timeout=context.settings.escape_timeout,
            reader=reader,
        )

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Orchestrator(cluster={self.cluster!r}, dry_run={self.context.dry_run!r})"

    def _bind_tls(self, cluster: VirtualCluster, scope: IngressScope, source: CertificateSource, wildcard: bool) -> None:
        binding = IngressBinding.for_scope(cluster, scope, wildcard=wildcard)
        ic(binding)
        self.ingress.reconcile(binding, source, wildcard=wildcard)

    def dispatch(self, intent: Intent) -> None:
        """Run one intent to completion.

        Multi-step intents are not rolled back: steps that succeeded before
        a failure stay applied.

        Args:
            intent: The operator intent.

        Raises:
            CdeUtilsError: Any failure of the underlying reconcilers.
            click.Abort: If the operator declines a restart.

        """
        ic(intent)
        if self.context.dry_run:
            console.warning("Dry run: remote changes are only printed")
        self.cluster.ensure_reachable()

        match intent:
            case InitBaseCluster(cluster=vc, certificates=source, wildcard=wildcard):
                self.cluster.require_namespace(vc.base_namespace)
                self._bind_tls(vc, IngressScope.BASE, source, wildcard)

            case InitVirtualCluster(cluster=vc, certificates=source, wildcard=wildcard):
                self.cluster.require_namespace(vc.base_namespace)
                self._bind_tls(vc, IngressScope.BASE, source, wildcard)
                self._bind_tls(vc, IngressScope.APP, source, wildcard)

            case InitUser(cluster=vc, username=username, principal_file=principal, keytab_file=keytab):
                self.cluster.require_namespace(vc.app_namespace)
                names = provision_user_secrets(
                    self.kubectl, vc.app_namespace, username, principal, keytab, self.context.settings.scratch_dir
                )
                console.summary_panel(
                    "Kerberos secrets",
                    {"Namespace": vc.app_namespace, "Principal": names.principal, "Keytab": names.keytab},
                )

            case DeleteUser(cluster=vc, username=username):
                self.cluster.require_namespace(vc.app_namespace)
                names = delete_user_secrets(self.kubectl, vc.app_namespace, username)
                console.success(f"Removed {console.highlight(names.principal)} and {console.highlight(names.keytab)}")

            case UpdateSparkConfig(cluster=vc, configs=configs, gang_scheduling=gang_scheduling):
                self.cluster.require_namespace(vc.app_namespace)
                if gang_scheduling is not None:
                    self.gang.apply(vc, gang_scheduling)
                self.spark.apply(vc, configs)

            case EditAutoscaler(values=values, interactive=interactive):
                if interactive:
                    self.autoscaler.run_interactive()
                else:
                    self.autoscaler.set_flags(values)

            case _:
                assert_never(intent)
