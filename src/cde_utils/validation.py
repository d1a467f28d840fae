"""Operator input validators."""

import re

# Leading non-zero digit, optional digits, one unit among minutes/hours/seconds
_DURATION_PATTERN = re.compile(r"[1-9][0-9]*[mhs]")


def validate_duration(value: str) -> bool:
    """Check a duration such as ``10s``, ``5m`` or ``1h``.

    Args:
        value: The operator-supplied duration.

    Returns:
        True if the whole string is a valid duration.

    """
    return _DURATION_PATTERN.fullmatch(value) is not None


def prompt_duration_validator(value: str) -> bool | str:
    """questionary-style validator wrapping ``validate_duration``.

    Returns:
        True if valid, or an error message string if invalid.

    """
    if validate_duration(value):
        return True
    return "Invalid time. Use a positive number followed by s, m or h (e.g. 10s, 5m, 1h)"
