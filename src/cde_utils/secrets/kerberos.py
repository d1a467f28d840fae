"""Kerberos credential secrets for workload users.

Each user gets two generic secrets, one holding the principal and one the
keytab. Resource names cannot contain underscores, so usernames are
encoded before being used in secret names.
"""

import shutil
import tempfile
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import NamedTuple

from cde_utils import console
from cde_utils.exceptions import ValidationError
from cde_utils.kubectl import Kubectl

USERNAME_SEPARATOR = "_"
SEPARATOR_ENCODING = "---"


class KerberosSecretNames(NamedTuple):
    """Secret names derived from a workload username."""

    principal: str
    keytab: str


def encode_username(username: str) -> str:
    """Make a username safe for resource names (``a_b`` -> ``a---b``)."""
    return username.replace(USERNAME_SEPARATOR, SEPARATOR_ENCODING)


def kerberos_secret_names(username: str) -> KerberosSecretNames:
    """Derive the principal and keytab secret names for a user.

    Args:
        username: The workload username.

    Returns:
        KerberosSecretNames for the user.

    """
    encoded = encode_username(username)
    return KerberosSecretNames(principal=f"{encoded}-krb5-principal", keytab=f"{encoded}-krb5-secret")


def _require_file(path: Path, description: str) -> None:
    if not path.is_file():
        raise ValidationError(f"No {description} file found at location: {path}")


@contextmanager
def staged_credentials(
    names: KerberosSecretNames,
    principal_file: Path,
    keytab_file: Path,
    workdir: Path,
) -> Generator[tuple[Path, Path], None, None]:
    """Copy credential files under their secret names for ``--from-file``.

    The copies live in a private temporary directory that is removed on
    every exit path.

    Args:
        names: Target secret names.
        principal_file: Operator's principal file.
        keytab_file: Operator's keytab file.
        workdir: Parent directory for the staging area.

    Yields:
        Paths of the staged principal and keytab copies.

    """
    workdir.mkdir(parents=True, exist_ok=True)
    with tempfile.TemporaryDirectory(dir=workdir, prefix="krb5-") as staging:
        staged_principal = Path(staging) / names.principal
        staged_keytab = Path(staging) / names.keytab
        shutil.copyfile(principal_file, staged_principal)
        shutil.copyfile(keytab_file, staged_keytab)
        yield staged_principal, staged_keytab


def delete_user_secrets(kubectl: Kubectl, namespace: str, username: str) -> KerberosSecretNames:
    """Delete a user's Kerberos secrets; absent secrets are not an error.

    Args:
        kubectl: kubectl wrapper.
        namespace: Virtual cluster namespace.
        username: The workload username.

    Returns:
        The secret names that were targeted.

    """
    names = kerberos_secret_names(username)
    console.step(f"Deleting old secrets in {console.highlight(namespace)}")
    kubectl.delete("secret", names.keytab, namespace, ignore_not_found=True)
    kubectl.delete("secret", names.principal, namespace, ignore_not_found=True)
    return names


def provision_user_secrets(
    kubectl: Kubectl,
    namespace: str,
    username: str,
    principal_file: Path,
    keytab_file: Path,
    workdir: Path,
) -> KerberosSecretNames:
    """Replace a user's Kerberos secrets with fresh ones.

    Old secrets are deleted first, then both secrets are created from
    staged copies of the operator's files.

    Args:
        kubectl: kubectl wrapper.
        namespace: Virtual cluster namespace.
        username: The workload username.
        principal_file: File holding the Kerberos principal.
        keytab_file: The Kerberos keytab.
        workdir: Scratch directory used for staging.

    Returns:
        The names of the created secrets.

    Raises:
        ValidationError: If an input file does not exist.
        RemoteRejectedError: If secret creation is refused.

    """
    _require_file(principal_file, "principal")
    _require_file(keytab_file, "keytab")

    names = delete_user_secrets(kubectl, namespace, username)

    console.step("Temporarily copying files to desired names")
    with staged_credentials(names, principal_file, keytab_file, workdir) as (staged_principal, staged_keytab):
        console.step(f"Creating new secrets in {console.highlight(namespace)}")
        kubectl.create_generic_secret(names.principal, namespace, [staged_principal])
        kubectl.create_generic_secret(names.keytab, namespace, [staged_keytab])

    return names
