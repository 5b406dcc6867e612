import logging

from fastmcp import FastMCP

from ... import config
from ...errors import HashlineError
from ...security import resolve_path
from ...service import read_file

logger = logging.getLogger(__name__)


def register_tools(mcp: FastMCP) -> None:
    """Register the hashline read tool with the MCP server."""

    @mcp.tool()
    def hashline_read(
        path: str,
        offset: int = 1,
        limit: int = 0,
        encoding: str = config.DEFAULT_ENCODING,
    ) -> dict:
        """
        Purpose
            Read a text file with every line prefixed by its anchor: N:hhhh|content.

        When to use
            Before hashline_edit. Copy the N:hhhh part of a line to reference it
            in an edit.

        Rules & Constraints
            Anchors are computed over the whole file; offset/limit only choose
            which lines are shown.
            Anchors go stale as soon as the line changes. Re-read after editing.

        Args:
            path: The path to the file (relative to the server root)
            offset: 1-indexed start line (default: 1)
            limit: Max lines to return, 0 = all (default: 0)
            encoding: File encoding (default "utf-8")

        Returns:
            Dict with hashline content and line counts, or error dict
        """
        try:
            secure_path = resolve_path(path)
            outcome = read_file(secure_path, offset=offset, limit=limit, encoding=encoding)
        except HashlineError as e:
            return e.to_dict()

        logger.debug("Read %s: %d of %d lines", path, outcome.shown_lines, outcome.total_lines)
        return {
            "success": True,
            "path": path,
            "content": outcome.content,
            "offset": outcome.offset,
            "limit": outcome.limit,
            "total_lines": outcome.total_lines,
            "shown_lines": outcome.shown_lines,
        }
