"""Strip read-view artifacts that callers copy into replacement text."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Sequence

from .config import HASH_WIDTH
from .edits import (
    Append,
    EditOperation,
    InsertAfter,
    InsertBefore,
    ReplaceLines,
    SetLine,
    split_text,
)

_HASHLINE_PREFIX_RE = re.compile(rf"^\d+:[0-9a-f]{{{HASH_WIDTH}}}\|")

PREFIX_STRIP = "prefix_strip"


def strip_content_prefixes(lines: list[str]) -> list[str]:
    """Strip hashline prefixes from content lines when all have them.

    Callers frequently copy hashline-formatted text (e.g. '5:a3b1|content') into
    their content fields. Only strips when 2+ non-empty lines all match the
    exact hashline prefix pattern (N:hhhh|). Single-line content is left alone
    to avoid false positives on literal text that happens to match the pattern.
    """
    if not lines:
        return lines
    non_empty = [ln for ln in lines if ln]
    if len(non_empty) < 2:
        return lines
    prefix_count = sum(1 for ln in non_empty if _HASHLINE_PREFIX_RE.match(ln))
    if prefix_count < len(non_empty):
        return lines
    return [_HASHLINE_PREFIX_RE.sub("", ln) for ln in lines]


def _text_field(op: EditOperation) -> str | None:
    match op:
        case SetLine() | ReplaceLines():
            return "new_text"
        case InsertAfter() | InsertBefore() | Append():
            return "text"
    return None


def clean_operations(ops: Sequence[EditOperation]) -> tuple[list[EditOperation], list[str]]:
    """Return the batch with copied prefixes removed, plus the cleanup actions applied."""
    cleaned = []
    actions: list[str] = []
    for op in ops:
        name = _text_field(op)
        if name is None:
            cleaned.append(op)
            continue
        lines = split_text(getattr(op, name))
        stripped = strip_content_prefixes(lines)
        if stripped != lines:
            op = dataclasses.replace(op, **{name: "\n".join(stripped)})
            if PREFIX_STRIP not in actions:
                actions.append(PREFIX_STRIP)
        cleaned.append(op)
    return cleaned, actions
