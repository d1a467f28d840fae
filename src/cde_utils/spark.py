"""Spark defaults for a virtual cluster.

Entries are added to (or updated in) the spark-defaults configmap one at a
time; Livy picks them up after a restart.
"""

import json
from typing import NamedTuple

import yaml

from cde_utils import console
from cde_utils.cluster import Cluster
from cde_utils.exceptions import ValidationError
from cde_utils.guards import configmap_data_value
from cde_utils.kubectl import Kubectl
from cde_utils.models import ResourceRef, SparkConfig, VirtualCluster
from cde_utils.patching import InsertBeforeAnchor, ReplaceMatchingLine, ResourcePatcher
from cde_utils.prompts import confirm_restart
from cde_utils.restart import restart_component

LIVY_COMPONENT = "livy"

_PAIR_SEPARATOR = ","
_KEY_VALUE_SEPARATOR = "="
_DATA_SCOPE = r"^data:"
_KIND_ANCHOR = r"^kind:"


def parse_spark_configs(raw: str) -> tuple[SparkConfig, ...]:
    """Parse ``key1=val1,key2=val2`` into spark config entries.

    Each pair is split on its first ``=``, so values may contain ``=``.

    Args:
        raw: The operator-supplied config string.

    Returns:
        The entries in the order given.

    Raises:
        ValidationError: If a pair has no ``=`` or an empty key.

    """
    configs = []
    for pair in raw.split(_PAIR_SEPARATOR):
        key, separator, value = pair.partition(_KEY_VALUE_SEPARATOR)
        key = key.strip()
        if not separator:
            raise ValidationError(f"Invalid spark config '{pair}', expected key=value")
        if not key:
            raise ValidationError(f"Invalid spark config '{pair}', key is empty")
        configs.append(SparkConfig(key=key, value=value.strip()))
    return tuple(configs)


def render_value(value: str) -> str:
    """Render a value for a configmap data line; unquoted values get double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value
    return json.dumps(value)


def spark_configmap_ref(cluster: VirtualCluster) -> ResourceRef:
    """The spark-defaults configmap of a virtual cluster."""
    namespace = cluster.app_namespace
    return ResourceRef(kind="configmap", name=f"spark-defaults-conf-config-map-{namespace}", namespace=namespace)


class PendingConfig(NamedTuple):
    """A spark-defaults entry that differs from the live configmap.

    Attributes:
        key: The spark property.
        rendered: The value as it will be written.
        present: Whether the key already exists with another value.

    """

    key: str
    rendered: str
    present: bool


def _loaded_value(key: str, rendered: str) -> str:
    """The string a rendered value reads back as from the configmap."""
    try:
        return str(yaml.safe_load(rendered))
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid value for spark config '{key}': {rendered}") from e


class SparkConfigInjector:
    """Adds or updates spark defaults, restarting Livy when anything changed.

    Attributes:
        kubectl: kubectl wrapper.
        patcher: Resource patcher.
        cluster: Cluster used to find the Livy pod.
        assume_yes: Skip the restart confirmation.

    """

    def __init__(self, kubectl: Kubectl, patcher: ResourcePatcher, cluster: Cluster, *, assume_yes: bool = False) -> None:
        self.kubectl = kubectl
        self.patcher = patcher
        self.cluster = cluster
        self.assume_yes = assume_yes

    def pending_configs(self, ref: ResourceRef, configs: tuple[SparkConfig, ...]) -> list[PendingConfig]:
        """Compare the requested entries with the live configmap.

        A key given more than once keeps its last value.

        Args:
            ref: The spark-defaults configmap.
            configs: Requested entries.

        Returns:
            The entries that need writing, in first-seen key order.

        Raises:
            ValidationError: If a quoted value is not valid YAML.
            ResourceNotFoundError: If the configmap does not exist.

        """
        current_text = self.patcher.fetch(ref)
        pending: dict[str, PendingConfig] = {}
        for config in configs:
            rendered = render_value(config.value)
            console.info(f"config : {console.highlight(f'{config.key}: {rendered}')}")
            current = configmap_data_value(current_text, config.key)
            if current == _loaded_value(config.key, rendered):
                console.success(f"{config.key} already set to {rendered}")
                pending.pop(config.key, None)
                continue
            pending[config.key] = PendingConfig(config.key, rendered, present=current is not None)
        return list(pending.values())

    def write_config(self, ref: ResourceRef, entry: PendingConfig) -> None:
        """Patch one entry into the configmap.

        Raises:
            MalformedResourceError: If the configmap lacks ``data``/``kind``.

        """
        if entry.present:
            transform = ReplaceMatchingLine(prefix=f"{entry.key}: ", value=entry.rendered, scope=_DATA_SCOPE)
        else:
            transform = InsertBeforeAnchor(anchor=_KIND_ANCHOR, lines=(f"  {entry.key}: {entry.rendered}",))
        self.patcher.patch(ref, transform)

    def apply(self, cluster: VirtualCluster, configs: tuple[SparkConfig, ...]) -> bool:
        """Confirm the Livy restart, write every changed entry, then restart Livy.

        Nothing is written when the operator declines. Entries written
        before a failure stay written.

        Args:
            cluster: The virtual cluster.
            configs: Entries to write.

        Returns:
            True if at least one entry changed.

        Raises:
            ValidationError: If a value is not valid YAML.
            click.Abort: If the operator declines the Livy restart.

        """
        if not configs:
            return False

        ref = spark_configmap_ref(cluster)
        pending = self.pending_configs(ref, configs)
        if not pending:
            console.info("Spark defaults already up to date, Livy restart not needed")
            return False

        confirm_restart("Livy", assume_yes=self.assume_yes)
        for entry in pending:
            self.write_config(ref, entry)
        restart_component(self.kubectl, self.cluster, ref.namespace, LIVY_COMPONENT)
        return True
