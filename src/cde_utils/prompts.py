"""Interactive operator prompts.

This module provides the confirmation and input prompts used by the
reconcilers, all styled consistently through questionary.
"""

import click
import questionary

from cde_utils import console
from cde_utils.styles import PROMPT_STYLE, QMARK
from cde_utils.validation import prompt_duration_validator


def confirm_restart(component: str, *, assume_yes: bool = False) -> None:
    """Ask the operator to confirm a component restart.

    Args:
        component: Human-readable component name (e.g. ``API``).
        assume_yes: Skip the prompt and proceed.

    Raises:
        click.Abort: If the operator declines.

    """
    if assume_yes:
        return

    confirmed = questionary.confirm(
        f"This action will restart {component} pod. Please confirm no jobs/sessions are active",
        default=False,
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).unsafe_ask()
    if not confirmed:
        console.warning("Restart declined, nothing changed.")
        raise click.Abort()


def ask_duration(flag: str) -> str:
    """Prompt for a duration until a valid one is entered.

    Args:
        flag: The tunable being edited.

    Returns:
        A valid duration string.

    """
    return questionary.text(
        f'Enter the time you want to provide for "{flag}"',
        validate=prompt_duration_validator,
        style=PROMPT_STYLE,
        qmark=QMARK,
    ).unsafe_ask()
