"""cde-utils: Administration helpers for CDE base and virtual clusters.

This package fixes ingress TLS certificates, manages workload users'
Kerberos secrets, edits spark defaults and gang scheduling, and tunes the
cluster autoscaler.

Example usage:
    from cde_utils import Cluster, Kubectl, Orchestrator, RequestContext, Settings
    from cde_utils.models import DeleteUser, VirtualCluster

    cluster = Cluster(select_context=False)
    kubectl = Kubectl(context=cluster.context, dry_run=True)
    context = RequestContext(settings=Settings.from_env(), dry_run=True)
    vc = VirtualCluster.from_host("abcd1234.cde-wxyz5678.example.com")
    Orchestrator(context, cluster, kubectl).dispatch(DeleteUser(cluster=vc, username="alice"))
"""

__version__ = "1.0.0"

from cde_utils.cli import cli
from cde_utils.cluster import Cluster
from cde_utils.config import Settings
from cde_utils.exceptions import (
    BinaryNotFoundError,
    CdeUtilsError,
    ClusterConnectionError,
    ExternalCommandError,
    MalformedResourceError,
    RemoteRejectedError,
    ResourceNotFoundError,
    ValidationError,
)
from cde_utils.kubectl import Kubectl
from cde_utils.models import RequestContext
from cde_utils.orchestrator import Orchestrator

__all__ = [
    # Version
    "__version__",
    # Main CLI
    "cli",
    # Classes
    "Cluster",
    "Kubectl",
    "Orchestrator",
    "RequestContext",
    "Settings",
    # Exceptions
    "CdeUtilsError",
    "BinaryNotFoundError",
    "ClusterConnectionError",
    "ExternalCommandError",
    "MalformedResourceError",
    "RemoteRejectedError",
    "ResourceNotFoundError",
    "ValidationError",
]
