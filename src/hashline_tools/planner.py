"""Turn an edit batch into a validated, non-overlapping splice plan.

Planning is all-or-nothing: every anchor in the batch is verified against one
AnchorIndex snapshot and every splice is checked for overlap before anything
is applied. If planning succeeds, applying the plan cannot fail.

A splice is ``(start, end, lines)`` over the original 1-based numbering. It
consumes lines ``start..end`` inclusive; a pure insertion has ``end == start - 1``
and consumes nothing, landing in the gap just before line ``start``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from .edits import (
    Anchor,
    Append,
    EditOperation,
    InsertAfter,
    InsertBefore,
    Replace,
    ReplaceLines,
    SetLine,
    describe_operation,
    operation_anchors,
    split_text,
)
from .errors import AnchorMismatch, InvalidEdit, OverlappingEdits
from .hashline import AnchorIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Splice:
    """One contiguous replacement over the original line numbering."""

    start: int
    end: int
    lines: tuple[str, ...]
    op_index: int
    label: str

    @property
    def is_insertion(self) -> bool:
        return self.end < self.start

    @property
    def sort_key(self) -> tuple[int, int, int]:
        # At one position, insertions land before a splice that starts there.
        return (self.start, 0 if self.is_insertion else 1, self.op_index)


@dataclass(frozen=True)
class ApplicationPlan:
    """Sorted, non-overlapping splices plus the anchor-free replaces to run after them."""

    splices: tuple[Splice, ...]
    replaces: tuple[tuple[int, Replace], ...] = ()
    anchors_consumed: tuple[Anchor, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.splices) + len(self.replaces)


def _to_splice(op: EditOperation, op_index: int, line_count: int) -> Splice | None:
    label = describe_operation(op)
    match op:
        case SetLine(anchor=anchor, new_text=text):
            start, end = anchor.number, anchor.number
        case ReplaceLines(start_anchor=first, end_anchor=last, new_text=text):
            start, end = first.number, last.number
        case InsertAfter(anchor=anchor, text=text):
            start, end = anchor.number + 1, anchor.number
        case InsertBefore(anchor=anchor, text=text):
            start, end = anchor.number, anchor.number - 1
        case Append(text=text):
            start, end = line_count + 1, line_count
        case Replace():
            return None
        case _:
            raise InvalidEdit(f"unsupported operation {op!r}", op_index=op_index)
    return Splice(start, end, tuple(split_text(text)), op_index, label)


def verify_anchors(ops: Sequence[EditOperation], index: AnchorIndex) -> list[Anchor]:
    """Verify every anchor in the batch, returning them in batch order.

    Raises:
        AnchorMismatch: Listing every missing or stale anchor in the batch.
    """
    consumed = []
    mismatches = []
    for op in ops:
        for anchor in operation_anchors(op):
            mismatch = index.check(anchor)
            if mismatch is not None:
                mismatches.append(mismatch)
            consumed.append(anchor)
    if mismatches:
        raise AnchorMismatch(mismatches)
    return consumed


def find_overlap(splices: Sequence[Splice]) -> tuple[Splice, Splice] | None:
    """Return the first conflicting pair in sort order, or None.

    ``splices`` must already be sorted by ``Splice.sort_key``. A splice
    conflicts when it starts at or before the last line consumed so far, so an
    insertion may touch either edge of a replaced range but never its inside.
    """
    last_end = 0
    owner: Splice | None = None
    for splice in splices:
        if owner is not None and splice.start <= last_end:
            return owner, splice
        if splice.end > last_end:
            last_end = splice.end
            owner = splice
    return None


def plan_edits(ops: Sequence[EditOperation], index: AnchorIndex) -> ApplicationPlan:
    """Validate a batch against ``index`` and produce its application plan.

    Raises:
        AnchorMismatch: If any anchor is missing or stale.
        OverlappingEdits: If two anchor-based operations claim overlapping lines.
    """
    anchors = verify_anchors(ops, index)

    splices = []
    replaces = []
    for i, op in enumerate(ops):
        splice = _to_splice(op, i, len(index))
        if splice is None:
            replaces.append((i, op))
        else:
            splices.append(splice)

    splices.sort(key=lambda s: s.sort_key)
    conflict = find_overlap(splices)
    if conflict is not None:
        clash_line = conflict[1].start
        first, second = sorted(conflict, key=lambda s: s.op_index)
        raise OverlappingEdits(
            (first.op_index, first.label),
            (second.op_index, second.label),
            context={"line": clash_line},
        )

    logger.debug(
        "Planned %d splice(s) and %d replace(s) over %d lines",
        len(splices),
        len(replaces),
        len(index),
    )
    return ApplicationPlan(
        splices=tuple(splices),
        replaces=tuple(replaces),
        anchors_consumed=tuple(anchors),
    )
