"""Edit operations and the LINE:HASH anchor grammar.

Operations are plain frozen dataclasses joined in the ``EditOperation`` union.
They are validated syntactically on construction; checking anchors against a
file is the planner's job.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from .config import HASH_WIDTH
from .errors import InvalidEdit, InvalidRange, MalformedAnchor

_ANCHOR_RE = re.compile(r"([0-9]+):([0-9a-fA-F]+)")
_LINE_PART_RE = re.compile(r"[0-9]+")


@dataclass(frozen=True, order=True)
class Anchor:
    """A (line number, content hash) pair as observed at read time."""

    number: int
    hash: str

    def __str__(self) -> str:
        return f"{self.number}:{self.hash}"


def parse_anchor(anchor: object) -> Anchor:
    """Parse an anchor string like '2:a3b1' into an Anchor.

    The hash part is matched case-insensitively and stored lowercase.

    Raises:
        MalformedAnchor: If the anchor does not match ``<line>:<hex hash>``.
    """
    if isinstance(anchor, Anchor):
        return anchor
    if not isinstance(anchor, str):
        raise MalformedAnchor(anchor, "anchor must be a string")
    if ":" not in anchor:
        raise MalformedAnchor(anchor, "expected LINE:HASH (no colon)")

    match = _ANCHOR_RE.fullmatch(anchor)
    if match is None:
        line_part, _, hash_part = anchor.partition(":")
        if not _LINE_PART_RE.fullmatch(line_part):
            raise MalformedAnchor(anchor, "line number is not a decimal integer")
        if ":" in hash_part:
            raise MalformedAnchor(anchor, "too many ':' separators")
        if not hash_part:
            raise MalformedAnchor(anchor, "hash is empty")
        raise MalformedAnchor(anchor, "hash is not hexadecimal")

    number = int(match.group(1))
    hash_str = match.group(2).lower()
    if number < 1:
        raise MalformedAnchor(anchor, "line numbers are 1-indexed")
    if len(hash_str) != HASH_WIDTH:
        raise MalformedAnchor(anchor, f"hash must be {HASH_WIDTH} hex characters")
    return Anchor(number, hash_str)


def split_text(text: str) -> list[str]:
    """Split replacement text into lines.

    Empty text yields no lines. CRLF is treated as LF, and one trailing line
    break does not add an extra empty line, so "\\n" is a single blank line.
    """
    if not text:
        return []
    parts = text.replace("\r\n", "\n").split("\n")
    if len(parts) > 1 and parts[-1] == "":
        parts.pop()
    return parts


@dataclass(frozen=True)
class SetLine:
    """Replace the anchored line with zero or more lines (empty text deletes it)."""

    anchor: Anchor
    new_text: str


@dataclass(frozen=True)
class ReplaceLines:
    """Replace the inclusive range between two anchors with zero or more lines."""

    start_anchor: Anchor
    end_anchor: Anchor
    new_text: str

    def __post_init__(self):
        if self.start_anchor.number > self.end_anchor.number:
            raise InvalidRange(self.start_anchor, self.end_anchor)


@dataclass(frozen=True)
class InsertAfter:
    """Insert lines immediately after the anchored line."""

    anchor: Anchor
    text: str

    def __post_init__(self):
        if not self.text:
            raise InvalidEdit("insert_after text must be non-empty")


@dataclass(frozen=True)
class InsertBefore:
    """Insert lines immediately before the anchored line."""

    anchor: Anchor
    text: str

    def __post_init__(self):
        if not self.text:
            raise InvalidEdit("insert_before text must be non-empty")


@dataclass(frozen=True)
class Append:
    """Add lines after the last line of the file (works on empty files)."""

    text: str

    def __post_init__(self):
        if not self.text:
            raise InvalidEdit("append text must be non-empty")


@dataclass(frozen=True)
class Replace:
    """Anchor-free substitution, run after every anchor-based edit."""

    old_text: str
    new_text: str
    all: bool = False

    def __post_init__(self):
        if not self.old_text:
            raise InvalidEdit("replace old_text must be non-empty")


EditOperation = SetLine | ReplaceLines | InsertAfter | InsertBefore | Append | Replace
AnchoredOperation = SetLine | ReplaceLines | InsertAfter | InsertBefore


def operation_name(op: EditOperation) -> str:
    match op:
        case SetLine():
            return "set_line"
        case ReplaceLines():
            return "replace_lines"
        case InsertAfter():
            return "insert_after"
        case InsertBefore():
            return "insert_before"
        case Append():
            return "append"
        case Replace():
            return "replace"
    raise TypeError(f"not an edit operation: {op!r}")


def operation_anchors(op: EditOperation) -> tuple[Anchor, ...]:
    """Anchors an operation references, in the order they appear in it."""
    match op:
        case SetLine(anchor=anchor) | InsertAfter(anchor=anchor) | InsertBefore(anchor=anchor):
            return (anchor,)
        case ReplaceLines(start_anchor=start, end_anchor=end):
            return (start, end)
        case Append() | Replace():
            return ()
    raise TypeError(f"not an edit operation: {op!r}")


def describe_operation(op: EditOperation) -> str:
    """Short label used in error messages, e.g. 'replace_lines 2:ab12..4:0f3c'."""
    name = operation_name(op)
    anchors = operation_anchors(op)
    if not anchors:
        return name
    return f"{name} {'..'.join(str(a) for a in anchors)}"
