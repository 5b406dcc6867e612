"""Read and edit files end to end.

Both the MCP tools and the CLI go through these two functions: load a fresh
snapshot, run the core, and (for a committed edit that changed something)
write the result back atomically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from . import config
from .applier import EditResult, apply_edits
from .cleanup import clean_operations
from .hashline import AnchorIndex
from .payload import parse_edits
from .reader import format_hashlines
from .textfile import TextSnapshot, read_snapshot, write_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReadOutcome:
    content: str
    total_lines: int
    shown_lines: int
    offset: int
    limit: int


@dataclass(frozen=True)
class EditOutcome:
    result: EditResult
    snapshot: TextSnapshot
    new_content: str
    written: bool
    cleanup_applied: list[str] = field(default_factory=list)


def read_file(
    path: str,
    offset: int = 1,
    limit: int = 0,
    encoding: str = config.DEFAULT_ENCODING,
) -> ReadOutcome:
    """Render ``path`` in LINE:HASH|text form.

    Raises:
        FileAccessError: If the file cannot be loaded.
        InvalidWindow: If offset/limit are out of range.
    """
    snapshot = read_snapshot(path, encoding=encoding)
    index = AnchorIndex.build(snapshot.lines)
    content = format_hashlines(index, offset=offset, limit=limit)
    shown = content.count("\n") + 1 if content else 0
    return ReadOutcome(
        content=content,
        total_lines=len(index),
        shown_lines=shown,
        offset=offset,
        limit=limit,
    )


def edit_file(
    path: str,
    edits: Any,
    *,
    preview: bool = False,
    auto_cleanup: bool = False,
    encoding: str = config.DEFAULT_ENCODING,
    display_path: str | None = None,
) -> EditOutcome:
    """Apply an edit batch to ``path``.

    The batch is parsed before the file is opened, and fully validated before
    anything is written. In preview mode nothing is written.

    Raises:
        HashlineError: Any parse, anchor, overlap, or file error. The file is
            unchanged whenever this is raised.
    """
    ops = parse_edits(edits)
    snapshot = read_snapshot(path, encoding=encoding)

    cleanup_applied: list[str] = []
    if auto_cleanup:
        ops, cleanup_applied = clean_operations(ops)

    result = apply_edits(snapshot.lines, ops, preview=preview, path=display_path or path)
    new_content = snapshot.render(result.lines)

    written = False
    if not preview and result.changed:
        write_atomic(path, new_content, encoding=encoding)
        written = True
        logger.info(
            "Updated %s: %d edit(s) applied, %d -> %d lines",
            display_path or path,
            result.edits_applied,
            len(snapshot.lines),
            len(result.lines),
        )
    elif not result.changed:
        logger.info("No changes for %s (edits produced identical content)", display_path or path)

    return EditOutcome(
        result=result,
        snapshot=snapshot,
        new_content=new_content,
        written=written,
        cleanup_applied=cleanup_applied,
    )
