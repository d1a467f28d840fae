"""Component restarts.

A virtual cluster component is restarted by deleting its pod; the owning
controller recreates it with the updated configuration.
"""

from cde_utils import console
from cde_utils.cluster import Cluster
from cde_utils.kubectl import Kubectl


def restart_component(kubectl: Kubectl, cluster: Cluster, namespace: str, component: str) -> list[str]:
    """Delete the pods of a component so they restart.

    Args:
        kubectl: kubectl wrapper (deletes honour dry-run).
        cluster: Cluster used to look the pods up.
        namespace: The virtual cluster namespace.
        component: Component name, e.g. ``api`` or ``livy``.

    Returns:
        Names of the deleted pods.

    """
    pods = cluster.find_component_pods(namespace, component)
    if not pods:
        console.warning(f"No {component} pod found in {console.highlight(namespace)}; nothing to restart")
        return []

    for pod in pods:
        console.action(f"Deleting pod {console.highlight(pod)}")
        kubectl.delete("pod", pod, namespace, ignore_not_found=True)
    return pods
