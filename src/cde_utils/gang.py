"""Gang-scheduling toggle for a virtual cluster.

The flag lives in the API configmap as a ``gangSchedulingEnabled:`` line
followed by the value on the next line. The API pod only reads it at
start-up, so a change is followed by a restart.
"""

import re

from cde_utils import console
from cde_utils.cluster import Cluster
from cde_utils.guards import read_flag_at_offset
from cde_utils.kubectl import Kubectl
from cde_utils.models import GangScheduling, ResourceRef, VirtualCluster
from cde_utils.patching import ReplaceMatchingLine, ResourcePatcher
from cde_utils.prompts import confirm_restart
from cde_utils.restart import restart_component

GANG_SCHEDULING_KEY = "gangSchedulingEnabled:"
API_COMPONENT = "api"


def api_configmap_ref(cluster: VirtualCluster) -> ResourceRef:
    """The API configmap of a virtual cluster."""
    namespace = cluster.app_namespace
    return ResourceRef(kind="configmap", name=f"{namespace}-api-cm", namespace=namespace)


class GangSchedulingToggle:
    """Enables or disables gang scheduling, restarting the API on change.

    Attributes:
        kubectl: kubectl wrapper.
        patcher: Resource patcher.
        cluster: Cluster used to find the API pod.
        assume_yes: Skip the restart confirmation.

    """

    def __init__(self, kubectl: Kubectl, patcher: ResourcePatcher, cluster: Cluster, *, assume_yes: bool = False) -> None:
        self.kubectl = kubectl
        self.patcher = patcher
        self.cluster = cluster
        self.assume_yes = assume_yes

    def is_enabled(self, ref: ResourceRef) -> bool:
        """Read the current flag from the live configmap."""
        return read_flag_at_offset(self.patcher.fetch(ref), GANG_SCHEDULING_KEY)

    def apply(self, cluster: VirtualCluster, requested: GangScheduling) -> bool:
        """Move gang scheduling to the requested state.

        Args:
            cluster: The virtual cluster.
            requested: Desired state.

        Returns:
            True if the flag was changed, False if it already matched.

        Raises:
            MalformedResourceError: If the flag cannot be read from the configmap.
            click.Abort: If the operator declines the API restart.

        """
        ref = api_configmap_ref(cluster)
        state_word = "enabled" if requested.enabled else "disabled"

        if self.is_enabled(ref) == requested.enabled:
            console.info(f"gangScheduling already {state_word}!")
            return False

        confirm_restart("API", assume_yes=self.assume_yes)
        console.step("Updating gangScheduling status")
        self.patcher.patch(
            ref,
            ReplaceMatchingLine(prefix="", value=str(requested.enabled).lower(), scope=re.escape(GANG_SCHEDULING_KEY)),
        )
        console.success(f"gangScheduling is {state_word}.")
        restart_component(self.kubectl, self.cluster, ref.namespace, API_COMPONENT)
        return True
