"""Structural text edits of serialized resources.

A patch is one round trip: fetch the resource as YAML, apply exactly one
transform to its text, and resubmit it with ``kubectl apply``. Transforms
never guess: a missing anchor aborts the patch before anything is applied.
"""

import re
from dataclasses import dataclass
from typing import NamedTuple, Protocol

from icecream import ic

from cde_utils import console
from cde_utils.exceptions import MalformedResourceError
from cde_utils.kubectl import Kubectl
from cde_utils.models import ResourceRef


class Transform(Protocol):
    """A pure text rewrite of a serialized resource."""

    def apply(self, text: str) -> str:
        """Return the rewritten text.

        Raises:
            MalformedResourceError: If the text lacks the expected structure.

        """
        ...


def _indentation(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]


def _split(text: str) -> list[str]:
    return text.splitlines()


def _join(lines: list[str], original: str) -> str:
    joined = "\n".join(lines)
    return f"{joined}\n" if original.endswith("\n") else joined


def _search_start(lines: list[str], scope: str | None) -> int:
    """Index of the first line after the scope match (0 without a scope)."""
    if scope is None:
        return 0
    pattern = re.compile(scope)
    for index, line in enumerate(lines):
        if pattern.search(line):
            return index + 1
    raise MalformedResourceError(f"Scope pattern {scope!r} not found in resource")


@dataclass(frozen=True, slots=True)
class InsertBeforeAnchor:
    """Insert lines right before the first line matching ``anchor``.

    Inserted lines are written relative to the anchor's block: each one is
    prefixed with the anchor line's indentation.

    Attributes:
        anchor: Regex matched against each line.
        lines: Lines to insert.
        scope: Optional regex; the anchor search starts after its first match.

    """

    anchor: str
    lines: tuple[str, ...]
    scope: str | None = None

    def apply(self, text: str) -> str:
        lines = _split(text)
        pattern = re.compile(self.anchor)
        for index in range(_search_start(lines, self.scope), len(lines)):
            if pattern.search(lines[index]):
                indent = _indentation(lines[index])
                lines[index:index] = [f"{indent}{line}" for line in self.lines]
                return _join(lines, text)
        raise MalformedResourceError(f"Anchor {self.anchor!r} not found in resource")


@dataclass(frozen=True, slots=True)
class ReplaceMatchingLine:
    """Rewrite the value of the first line that starts with ``prefix``.

    Indentation and the prefix itself are kept; only the rest of the line
    is replaced. With a scope and an empty prefix this targets the line
    right after the scope match.

    Attributes:
        prefix: Text the line starts with, after its indentation.
        value: New trailing value.
        scope: Optional regex; only lines after its first match are considered.

    """

    prefix: str
    value: str
    scope: str | None = None

    def apply(self, text: str) -> str:
        lines = _split(text)
        for index in range(_search_start(lines, self.scope), len(lines)):
            line = lines[index]
            if line.lstrip().startswith(self.prefix):
                lines[index] = f"{_indentation(line)}{self.prefix}{self.value}"
                return _join(lines, text)
        raise MalformedResourceError(f"No line starting with {self.prefix!r} found in resource")


class PatchResult(NamedTuple):
    """Outcome of one patch round trip.

    Attributes:
        ref: The patched resource.
        before: Text as fetched.
        after: Text as submitted.
        applied: False when the apply was only echoed (dry-run).

    """

    ref: ResourceRef
    before: str
    after: str
    applied: bool


class ResourcePatcher:
    """Fetch-transform-apply over kubectl.

    Attributes:
        kubectl: The kubectl wrapper used for both reads and applies.

    """

    def __init__(self, kubectl: Kubectl) -> None:
        self.kubectl = kubectl

    def fetch(self, ref: ResourceRef) -> str:
        """Fetch the current serialized form of a resource.

        Raises:
            ResourceNotFoundError: If the resource does not exist.

        """
        return self.kubectl.get(ref.kind, ref.name, ref.namespace)

    def patch(self, ref: ResourceRef, transform: Transform) -> PatchResult:
        """Apply one transform to a resource and resubmit it.

        Args:
            ref: The resource to patch.
            transform: The text rewrite to apply.

        Returns:
            PatchResult with the before/after text.

        Raises:
            ResourceNotFoundError: If the resource does not exist.
            MalformedResourceError: If the transform's anchor is missing.
            RemoteRejectedError: If the API server refuses the new manifest.

        """
        before = self.fetch(ref)
        after = transform.apply(before)
        ic(transform)
        console.step(f"Patching {console.highlight(str(ref))}")
        self.kubectl.apply(after, namespace=ref.namespace)
        return PatchResult(ref=ref, before=before, after=after, applied=not self.kubectl.dry_run)
