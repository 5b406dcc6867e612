"""Apply a validated plan to a line snapshot.

Applying never touches the file: it returns the new line sequence and a
report, and the caller decides whether to persist it. Preview and commit
compute the content the same way; preview only adds a diff.
"""

from __future__ import annotations

import difflib
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .edits import Anchor, EditOperation, Replace
from .hashline import AnchorIndex
from .planner import ApplicationPlan, Splice, plan_edits

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditResult:
    """Outcome of applying one edit batch to a snapshot."""

    lines: tuple[str, ...]
    changed: bool
    edits_applied: int
    anchors_consumed: tuple[Anchor, ...]
    replacements: dict[int, int] = field(default_factory=dict)
    preview: bool = False
    diff: str | None = None

    @property
    def text(self) -> str:
        """New content joined with LF, without a trailing newline."""
        return "\n".join(self.lines)


def apply_splices(lines: Sequence[str], splices: Sequence[Splice]) -> tuple[list[str], int]:
    """Walk the original lines once, emitting each splice in place of what it consumes.

    Returns the new lines and how many splices changed something. ``splices``
    must be sorted and non-overlapping, as produced by the planner.
    """
    out: list[str] = []
    changed = 0
    cursor = 1  # next original line to copy
    for splice in splices:
        out.extend(lines[cursor - 1 : splice.start - 1])
        out.extend(splice.lines)
        if splice.is_insertion:
            if splice.lines:
                changed += 1
        elif tuple(lines[splice.start - 1 : splice.end]) != splice.lines:
            changed += 1
        cursor = max(cursor, splice.end + 1)
    out.extend(lines[cursor - 1 :])
    return out, changed


def apply_replace(text: str, op: Replace) -> tuple[str, int]:
    """Run one textual replace; returns the new text and occurrences replaced.

    A missing ``old_text`` is a no-op, not an error. Both strings are matched
    against LF-normalized text, so CRLF in either is folded to LF first.
    """
    old_text = op.old_text.replace("\r\n", "\n")
    new_text = op.new_text.replace("\r\n", "\n")
    count = text.count(old_text)
    if count == 0:
        return text, 0
    if op.all:
        return text.replace(old_text, new_text), count
    return text.replace(old_text, new_text, 1), 1


def apply_plan(
    lines: Sequence[str],
    plan: ApplicationPlan,
    *,
    preview: bool = False,
    path: str = "file",
) -> EditResult:
    """Execute ``plan`` against ``lines``.

    Anchor-based splices run first in one pass over the original numbering,
    then each replace runs in batch order against the joined result.
    """
    new_lines, edits_applied = apply_splices(lines, plan.splices)

    replacements = {}
    if plan.replaces:
        joined = "\n".join(new_lines)
        for op_index, op in plan.replaces:
            updated, count = apply_replace(joined, op)
            replacements[op_index] = count
            if updated != joined:
                edits_applied += 1
            joined = updated
        new_lines = joined.split("\n") if joined or new_lines else []

    changed = list(lines) != new_lines
    logger.debug(
        "Applied %d splice(s), %d replace(s): %d -> %d lines",
        len(plan.splices),
        len(plan.replaces),
        len(lines),
        len(new_lines),
    )

    diff = None
    if preview:
        diff = render_diff(lines, new_lines, path=path)

    return EditResult(
        lines=tuple(new_lines),
        changed=changed,
        edits_applied=edits_applied,
        anchors_consumed=plan.anchors_consumed,
        replacements=replacements,
        preview=preview,
        diff=diff,
    )


def apply_edits(
    lines: Sequence[str],
    ops: Sequence[EditOperation],
    *,
    preview: bool = False,
    path: str = "file",
) -> EditResult:
    """Plan and apply a batch against a fresh snapshot of ``lines``.

    Raises:
        AnchorMismatch, OverlappingEdits: Before anything is applied.
    """
    index = AnchorIndex.build(lines)
    plan = plan_edits(ops, index)
    return apply_plan(index.texts, plan, preview=preview, path=path)


def render_diff(old_lines: Sequence[str], new_lines: Sequence[str], path: str = "file") -> str:
    """Unified diff between two line sequences (empty string when identical)."""
    return "\n".join(
        difflib.unified_diff(
            list(old_lines),
            list(new_lines),
            fromfile=f"a/{path}",
            tofile=f"b/{path}",
            lineterm="",
        )
    )
