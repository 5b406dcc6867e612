"""Render a snapshot as ``N:hhhh|content`` lines."""

from __future__ import annotations

from collections.abc import Sequence

from .errors import InvalidWindow
from .hashline import AnchorIndex


def format_hashlines(lines: Sequence[str] | AnchorIndex, offset: int = 1, limit: int = 0) -> str:
    """Format lines with N:hhhh|content prefixes.

    Hashes always come from the full snapshot, so windowing with offset/limit
    never changes the anchor a line is shown with.

    Args:
        lines: The file content split into lines, or an already built index.
        offset: 1-indexed start line (default 1).
        limit: Maximum lines to return, 0 means all.

    Returns:
        Formatted string with hashline prefixes, no trailing newline.

    Raises:
        InvalidWindow: If offset < 1, limit < 0, or offset is past the end of a
            non-empty file.
    """
    index = lines if isinstance(lines, AnchorIndex) else AnchorIndex.build(lines)

    total = len(index)
    if offset < 1:
        raise InvalidWindow(
            f"offset is 1-indexed (must be >= 1), got {offset}", offset, limit, total
        )
    if limit < 0:
        raise InvalidWindow(f"limit must be >= 0, got {limit}", offset, limit, total)
    if offset > max(total, 1):
        raise InvalidWindow(
            f"offset {offset} is beyond end of file ({total} lines)", offset, limit, total
        )

    selected = index.lines[offset - 1 :]
    if limit > 0:
        selected = selected[:limit]

    return "\n".join(f"{line.number}:{line.hash}|{line.text}" for line in selected)
