"""Measuring how far a backported patch drifted from its upstream original."""

import difflib
from typing import List, Sequence

from gitbackport.models import PatchComparison

HUNK_PREFIX = "@@"
INDEX_PREFIX = "index "


def content_lines(patch: str) -> List[str]:
    """Added and removed lines of a patch, file headers excluded.

    ``---``/``+++`` lines are file headers only between a ``diff`` line and
    the first hunk of that file; inside a hunk they are content.
    """
    lines = []
    in_file_header = False
    for line in patch.splitlines():
        if line.startswith("diff "):
            in_file_header = True
            continue
        if line.startswith(HUNK_PREFIX):
            in_file_header = False
            continue
        if in_file_header:
            continue
        if line[:1] in ("+", "-"):
            lines.append(line)
    return lines


def context_lines(patch: str) -> List[str]:
    """A patch without hunk-location and index lines.

    Line-number shifts and blob hash changes do not survive this filter.
    """
    return [
        line
        for line in patch.splitlines()
        if not line.startswith(HUNK_PREFIX) and not line.startswith(INDEX_PREFIX)
    ]


def count_differences(old: Sequence[str], new: Sequence[str]) -> int:
    """Number of lines a line diff from ``old`` to ``new`` removes or adds."""
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)
    total = 0
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag != "equal":
            total += (i2 - i1) + (j2 - j1)
    return total


def compare_patches(upstream_patch: str, downstream_patch: str) -> PatchComparison:
    """Functional and contextual difference counts between two patches."""
    return PatchComparison(
        functional=count_differences(content_lines(upstream_patch), content_lines(downstream_patch)),
        contextual=count_differences(context_lines(upstream_patch), context_lines(downstream_patch)),
    )
