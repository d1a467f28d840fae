"""Idempotency checks over serialized resources.

Each check answers one question: does the resource, as fetched, already
carry the marker a mutation would add? Mutations only proceed on a "no".
"""

from typing import Any

import yaml

from cde_utils.exceptions import MalformedResourceError
from cde_utils.models import AutoscalerFlag, FlagState

# Column of the t/f character on the line after the gang-scheduling key
GANG_FLAG_OFFSET = 4


def load_resource(text: str) -> dict[str, Any]:
    """Parse a YAML resource body.

    Args:
        text: The serialized resource.

    Returns:
        The resource as a mapping.

    Raises:
        MalformedResourceError: If the text is not a YAML mapping.

    """
    try:
        resource = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise MalformedResourceError(f"Resource body is not valid YAML: {err}") from err
    if not isinstance(resource, dict):
        raise MalformedResourceError("Resource body is not a YAML mapping")
    return resource


def ingress_has_tls_binding(text: str, secret_name: str, host: str) -> bool:
    """Check whether an ingress already binds ``secret_name`` to ``host``.

    Both must appear in the same TLS entry. A secret bound to some other
    host, or the host bound to some other secret, does not count.

    Args:
        text: The serialized ingress.
        secret_name: TLS secret name.
        host: Hostname that should be terminated with the secret.

    Returns:
        True if a matching TLS entry exists.

    """
    spec = load_resource(text).get("spec") or {}
    for entry in spec.get("tls") or []:
        if not isinstance(entry, dict):
            continue
        if entry.get("secretName") == secret_name and host in (entry.get("hosts") or []):
            return True
    return False


def _container_args(resource: dict[str, Any]) -> list[str]:
    """Command and args of every container; the autoscaler chart passes its flags in either."""
    pod_spec = ((resource.get("spec") or {}).get("template") or {}).get("spec") or {}
    args: list[str] = []
    for container in pod_spec.get("containers") or []:
        for field in ("command", "args"):
            args.extend(str(arg) for arg in container.get(field) or [])
    return args


def container_flag_value(text: str, flag: str) -> AutoscalerFlag:
    """Read a ``--flag=value`` container argument from a deployment.

    Args:
        text: The serialized deployment.
        flag: Flag name without leading dashes.

    Returns:
        AutoscalerFlag describing the current value, or an absent flag.

    """
    prefix = f"--{flag}="
    for arg in _container_args(load_resource(text)):
        if arg.startswith(prefix):
            return AutoscalerFlag(name=flag, value=arg[len(prefix) :], state=FlagState.PRESENT)
    return AutoscalerFlag(name=flag, value=None, state=FlagState.ABSENT)


def container_flag_count(text: str, flag: str) -> int:
    """Count occurrences of ``--flag=`` among a deployment's container args."""
    prefix = f"--{flag}="
    return sum(1 for arg in _container_args(load_resource(text)) if arg.startswith(prefix))


def configmap_data_value(text: str, key: str) -> str | None:
    """Return a configmap data value, or None when the key is absent."""
    data = load_resource(text).get("data") or {}
    if key not in data:
        return None
    return str(data[key])


def read_flag_at_offset(text: str, key: str, offset: int = GANG_FLAG_OFFSET) -> bool:
    """Read a boolean written on the line after ``key`` at a fixed column.

    The value is recognized by its first letter alone (``t``/``f``), so this
    depends on the configmap keeping its current indentation.

    Args:
        text: The serialized configmap.
        key: Text identifying the line before the value.
        offset: Column of the value's first character.

    Returns:
        The boolean value.

    Raises:
        MalformedResourceError: If the key is missing or the column holds
            neither ``t`` nor ``f``.

    """
    lines = text.splitlines()
    for index, line in enumerate(lines):
        if key not in line:
            continue
        following = lines[index + 1] if index + 1 < len(lines) else ""
        match following[offset : offset + 1]:
            case "t":
                return True
            case "f":
                return False
            case other:
                raise MalformedResourceError(
                    f"Unexpected value {other!r} at column {offset} after '{key}'; resource layout changed?"
                )
    raise MalformedResourceError(f"'{key}' not found in resource")
