"""Synchronous external command execution.

Every local tool (kubectl, openssl) is run through ``run_command`` so that
failures surface as typed exceptions rather than raw exit codes.
"""

import os
import shutil
import subprocess
from typing import NamedTuple

from icecream import ic

from cde_utils.exceptions import BinaryNotFoundError, ExternalCommandError


class CommandResult(NamedTuple):
    """Captured output of a successful command.

    Attributes:
        stdout: Decoded standard output.
        stderr: Decoded standard error.

    """

    stdout: str
    stderr: str


def find_binary(name: str, extra_path: str | None = None) -> str:
    """Locate an executable, searching ``extra_path`` before $PATH.

    Args:
        name: Executable name.
        extra_path: Optional directory searched first.

    Returns:
        Absolute path to the executable.

    Raises:
        BinaryNotFoundError: If the executable cannot be found.

    """
    search_path = os.environ.get("PATH", "")
    if extra_path:
        search_path = os.pathsep.join([extra_path, search_path])
    binary = shutil.which(name, path=search_path)
    if binary is None:
        raise BinaryNotFoundError(f"{name} not found; please install {name} and ensure it's on PATH")
    return binary


def run_command(
    cmd: list[str],
    *,
    input_text: str | None = None,
    env: dict[str, str] | None = None,
) -> CommandResult:
    """Run a command to completion and capture its output.

    Args:
        cmd: The command and its arguments.
        input_text: Optional text passed on stdin.
        env: Extra environment variables layered over the current environment.

    Returns:
        CommandResult with decoded stdout and stderr.

    Raises:
        BinaryNotFoundError: If the executable does not exist.
        ExternalCommandError: If the command exits with a non-zero status.

    """
    ic(cmd)
    run_env = {**os.environ, **env} if env else None
    try:
        completed = subprocess.run(
            cmd,
            input=input_text,
            capture_output=True,
            text=True,
            env=run_env,
            check=True,
        )
    except FileNotFoundError as err:
        raise BinaryNotFoundError(f"{cmd[0]} not found; please install it and ensure it's on PATH") from err
    except subprocess.CalledProcessError as err:
        stderr_msg = err.stderr.strip() if err.stderr else ""
        raise ExternalCommandError(cmd, err.returncode, stderr_msg) from err

    return CommandResult(stdout=completed.stdout or "", stderr=completed.stderr or "")
