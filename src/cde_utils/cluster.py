"""Kubernetes cluster discovery.

This module provides the Cluster class: kube context selection plus the
read-only lookups the reconcilers need (reachability, namespaces, the
autoscaler deployment name, component pods). All mutations go through
kubectl instead, so dry-run mode covers them.
"""

from collections.abc import Generator
from contextlib import contextmanager
from urllib.parse import urlparse

import click
import questionary
from icecream import ic
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
from urllib3.exceptions import MaxRetryError

from cde_utils import console
from cde_utils.exceptions import ClusterConnectionError, ResourceNotFoundError
from cde_utils.styles import POINTER, PROMPT_STYLE, QMARK

AUTOSCALER_NAMESPACE = "kube-system"

# cluster-autoscaler before Kubernetes 1.24, autoscaler-aws-autoscaler from 1.24 on
AUTOSCALER_DEPLOYMENTS = ("cluster-autoscaler", "autoscaler-aws-autoscaler")


@contextmanager
def _lookup(description: str) -> Generator[None, None, None]:
    """Turn kubernetes client failures during a read-only lookup into ClusterConnectionError."""
    try:
        yield
    except MaxRetryError as e:
        raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
    except ApiException as e:
        raise ClusterConnectionError(f"Failed to {description}: {e.reason}") from e


class Cluster:
    """Read-only view of the target cluster.

    Attributes:
        context: The active Kubernetes context name.
        kubeconfig: The kubeconfig file in use, or None for the default.

    """

    def __init__(self, *, select_context: bool, kubeconfig: str | None = None) -> None:
        """Pick a context from the kubeconfig and load it for the API clients.

        Args:
            select_context: Prompt for the context instead of using the current one.
            kubeconfig: Kubeconfig path, or None for the client default.

        Raises:
            ClusterConnectionError: If the kubeconfig is missing, invalid or cannot be loaded.
            click.Abort: If the operator cancels the context prompt.

        """
        self.kubeconfig: str | None = kubeconfig
        names, current = self._read_contexts(kubeconfig)
        self.context: str = self._prompt_context(names) if select_context else current
        console.action(f"Working with {console.highlight(self.context)} cluster")
        try:
            config.load_kube_config(config_file=kubeconfig, context=self.context)
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

    @staticmethod
    def _read_contexts(kubeconfig: str | None) -> tuple[list[str], str]:
        """Context names in the kubeconfig and the name of the current one."""
        try:
            contexts, current = config.list_kube_config_contexts(config_file=kubeconfig)
        except ConfigException as e:
            raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e
        ic(contexts)
        return [entry["name"] for entry in contexts], str(current["name"])

    @staticmethod
    def _prompt_context(names: list[str]) -> str:
        chosen: str | None = questionary.select(
            "Which cluster context should cde-utils use?",
            choices=names,
            style=PROMPT_STYLE,
            pointer=POINTER,
            qmark=QMARK,
        ).ask()
        if chosen is None:
            console.warning("No context chosen, aborting.")
            raise click.Abort()
        return chosen

    @property
    def api_server_host(self) -> str | None:
        """Hostname of the API server for the loaded context."""
        return urlparse(client.Configuration.get_default_copy().host).hostname

    @staticmethod
    def ensure_reachable() -> None:
        """Verify the API server answers.

        Raises:
            ClusterConnectionError: If the cluster is unreachable or refuses access.

        """
        with console.spinner("Checking cluster access..."):
            try:
                client.CoreV1Api().list_node(limit=1)
            except MaxRetryError as e:
                raise ClusterConnectionError(f"Failed to connect to the Kubernetes cluster: {e.reason}") from e
            except ApiException as e:
                raise ClusterConnectionError(f"Not able to access the cluster: {e.reason}") from e

    @staticmethod
    def namespace_exists(namespace: str) -> bool:
        """Check whether a namespace exists.

        Args:
            namespace: Namespace name.

        Returns:
            True if the namespace exists.

        Raises:
            ClusterConnectionError: For errors other than 404.

        """
        try:
            client.CoreV1Api().read_namespace(namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise ClusterConnectionError(f"Failed to read namespace '{namespace}': {e.reason}") from e
        return True

    def require_namespace(self, namespace: str) -> None:
        """Fail unless a namespace exists.

        Raises:
            ResourceNotFoundError: If the namespace does not exist.

        """
        if not self.namespace_exists(namespace):
            raise ResourceNotFoundError(f"Namespace '{namespace}' not found; is the virtual cluster host correct?")

    @staticmethod
    def resolve_autoscaler_deployment() -> str:
        """Find the autoscaler deployment name for this cluster version.

        Returns:
            One of AUTOSCALER_DEPLOYMENTS.

        Raises:
            ResourceNotFoundError: If no supported autoscaler deployment exists.
            ClusterConnectionError: If the deployments cannot be listed.

        """
        with _lookup(f"list deployments in {AUTOSCALER_NAMESPACE}"):
            deployments = client.AppsV1Api().list_namespaced_deployment(AUTOSCALER_NAMESPACE).items
        names = [d.metadata.name for d in deployments if d.metadata.name.endswith("-autoscaler")]
        ic(names)

        for name in names:
            if name in AUTOSCALER_DEPLOYMENTS:
                return name
        raise ResourceNotFoundError(
            "Deployment doesn't exist for cluster-autoscaler (only the AWS autoscaler is supported)"
        )

    @staticmethod
    def find_component_pods(namespace: str, component: str) -> list[str]:
        """List the pods of a virtual cluster component (e.g. ``api``, ``livy``).

        Args:
            namespace: The virtual cluster namespace.
            component: Component name as used in pod names.

        Returns:
            Names of matching pods.

        Raises:
            ClusterConnectionError: If the pods cannot be listed.

        """
        prefix = f"{namespace}-{component}-"
        with _lookup(f"list pods in {namespace}"):
            pods = client.CoreV1Api().list_namespaced_pod(namespace).items
        names = [pod.metadata.name for pod in pods if pod.metadata.name.startswith(prefix)]
        ic(names)
        return names

    def __repr__(self) -> str:
        """Return a detailed string representation for debugging."""
        return f"Cluster(context={self.context!r}, kubeconfig={self.kubeconfig!r})"
