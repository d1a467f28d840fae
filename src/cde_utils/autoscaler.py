"""Cluster autoscaler scale-down tunables.

Only the AWS autoscaler deployment shape is supported: the tunables are
``--flag=value`` container arguments listed right above the container's
``env`` block.
"""

import time
from collections.abc import Generator, Mapping
from contextlib import contextmanager

from cde_utils import console
from cde_utils.cluster import AUTOSCALER_NAMESPACE, Cluster
from cde_utils.config import ESCAPE_TIMEOUT, POST_ACTION_DELAY
from cde_utils.exceptions import CdeUtilsError, ValidationError
from cde_utils.guards import container_flag_value
from cde_utils.menu import SelectionMenu
from cde_utils.models import FlagState, ResourceRef
from cde_utils.patching import InsertBeforeAnchor, ReplaceMatchingLine, ResourcePatcher
from cde_utils.prompts import ask_duration
from cde_utils.terminal import RawTerminal, TerminalInputReader
from cde_utils.validation import validate_duration

# Menu and help order
TUNABLES: dict[str, str] = {
    "scale-down-delay-after-add": "Duration after scale up when scale down evaluation resumes",
    "scale-down-delay-after-delete": (
        "Duration after node deletion when scale down evaluation resumes, defaults to scan-interval"
    ),
    "scale-down-delay-after-failure": "Duration after scale down failure when scale down evaluation resumes",
    "scale-down-unneeded-time": "Duration for a node to be unneeded before it is eligible for scale down",
    "unremovable-node-recheck-timeout": (
        "The timeout before we check again a node that couldn't be removed before"
    ),
}

EXIT_LABEL = "Exit"

_ENV_ANCHOR = r"^\s*env:\s*$"


def menu_items() -> list[str]:
    """Menu labels: each tunable with its description, then Exit."""
    return [f"{flag:<35}{description}" for flag, description in TUNABLES.items()] + [EXIT_LABEL]


class AutoscalerFlagManager:
    """Reads and rewrites autoscaler tunables.

    Attributes:
        patcher: Resource patcher.
        cluster: Cluster used to resolve the deployment name.
        post_action_delay: Pause after each interactive update.
        escape_timeout: Escape-sequence timeout for the menu.
        reader: Key reader for the menu; a raw terminal is opened when None.

    """

    def __init__(
        self,
        patcher: ResourcePatcher,
        cluster: Cluster,
        *,
        post_action_delay: float = POST_ACTION_DELAY,
        escape_timeout: float = ESCAPE_TIMEOUT,
        reader: TerminalInputReader | None = None,
    ) -> None:
        self.patcher = patcher
        self.cluster = cluster
        self.post_action_delay = post_action_delay
        self.escape_timeout = escape_timeout
        self.reader = reader

    def deployment_ref(self) -> ResourceRef:
        """Resolve the autoscaler deployment; the name depends on the Kubernetes version."""
        name = self.cluster.resolve_autoscaler_deployment()
        return ResourceRef(kind="deployment", name=name, namespace=AUTOSCALER_NAMESPACE)

    def set_flag(self, flag: str, value: str) -> bool:
        """Set one tunable on the autoscaler deployment.

        Args:
            flag: Tunable name without leading dashes.
            value: Duration such as ``10m``.

        Returns:
            True if the deployment was patched, False if the value was already set.

        Raises:
            ValidationError: If the flag is unknown or the duration is invalid.
            ResourceNotFoundError: If no supported autoscaler deployment exists.
            MalformedResourceError: If an absent flag has no ``env`` block to go above.

        """
        if flag not in TUNABLES:
            raise ValidationError(f"Unknown autoscaler tunable: '{flag}'")
        if not validate_duration(value):
            raise ValidationError(f"Invalid time -> {value}")

        console.action(f"updating {console.highlight(f'{flag}={value}')}")
        ref = self.deployment_ref()
        current = container_flag_value(self.patcher.fetch(ref), flag)

        if current.state is FlagState.PRESENT and current.value == value:
            console.success(f"{flag} already set to {value}")
            return False

        if current.state is FlagState.PRESENT:
            transform = ReplaceMatchingLine(prefix=f"- --{flag}=", value=value)
        else:
            transform = InsertBeforeAnchor(anchor=_ENV_ANCHOR, lines=(f"- --{flag}={value}",))
        self.patcher.patch(ref, transform)
        console.success(f"{flag} set to {value}")
        return True

    def set_flags(self, values: Mapping[str, str]) -> list[str]:
        """Set several tunables, one round trip each, in menu order.

        Args:
            values: Tunable name to duration.

        Returns:
            Names of the tunables that were changed.

        Raises:
            ValidationError: If any flag or duration is invalid; nothing is applied.

        """
        unknown = sorted(set(values) - set(TUNABLES))
        if unknown:
            raise ValidationError(f"Unknown autoscaler tunable(s): {', '.join(unknown)}")
        invalid = [f"{flag}={value}" for flag, value in values.items() if not validate_duration(value)]
        if invalid:
            raise ValidationError(f"Invalid time -> {', '.join(invalid)}")

        changed = []
        for flag in TUNABLES:
            if flag in values and self.set_flag(flag, values[flag]):
                changed.append(flag)
        return changed

    @contextmanager
    def _key_reader(self) -> Generator[TerminalInputReader, None, None]:
        if self.reader is not None:
            yield self.reader
            return
        with RawTerminal() as terminal:
            yield TerminalInputReader(terminal, escape_timeout=self.escape_timeout)

    def choose(self) -> int:
        """Show the menu once and return the chosen index."""
        with self._key_reader() as reader:
            return SelectionMenu(menu_items(), reader).run()

    def run_interactive(self) -> None:
        """Menu session: pick a tunable, enter a duration, apply; until Exit.

        A failed update is reported and the menu is shown again.
        """
        flags = list(TUNABLES)
        while True:
            choice = self.choose()
            if choice >= len(flags):
                console.info("Exiting autoscaler menu")
                return

            flag = flags[choice]
            value = ask_duration(flag)
            try:
                self.set_flag(flag, value)
            except CdeUtilsError as e:
                console.error(str(e))
            time.sleep(self.post_action_delay)
