"""Custom exceptions for cde-utils.

This module defines the exception hierarchy used throughout the application
to provide meaningful error messages and proper error handling.
"""


class CdeUtilsError(Exception):
    """Base exception for all cde-utils errors.

    All custom exceptions in this package inherit from this class,
    allowing the CLI to report any of them with a single except clause.
    """

    pass


class ValidationError(CdeUtilsError):
    """Raised when operator input is missing or malformed.

    This can occur when:
    - A duration string does not match the expected grammar
    - A required parameter is missing
    - A local certificate, key, principal or keytab file does not exist
    - A host or spark config string cannot be parsed
    """

    pass


class ResourceNotFoundError(CdeUtilsError):
    """Raised when a referenced remote resource is absent.

    Deletions tolerate absence; reads feeding a patch treat it as fatal.
    """

    pass


class MalformedResourceError(CdeUtilsError):
    """Raised when an expected anchor or pattern is absent from a resource body.

    Never retried: mutating a resource without a reliable anchor could
    corrupt it.
    """

    pass


class RemoteRejectedError(CdeUtilsError):
    """Raised when the cluster API refuses a mutation.

    The message carries kubectl's stderr verbatim.
    """

    pass


class ClusterConnectionError(CdeUtilsError):
    """Raised when connection to the Kubernetes cluster fails.

    This can occur when:
    - The kubeconfig is invalid or missing
    - The cluster is unreachable
    - Authentication fails
    """

    pass


class BinaryNotFoundError(CdeUtilsError):
    """Raised when a required binary (kubectl, openssl) is not found."""

    pass


class ExternalCommandError(CdeUtilsError):
    """Raised when a local external command exits with a non-zero status.

    Attributes:
        cmd: The command that was executed.
        returncode: The process exit code.
        stderr: Captured standard error, stripped.

    """

    def __init__(self, cmd: list[str], returncode: int, stderr: str = "") -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr
        details = f" - {stderr}" if stderr else ""
        super().__init__(f"Command '{cmd[0]}' failed (exit code {returncode}){details}")
