import logging
from typing import Any

from fastmcp import FastMCP

from ... import config
from ...errors import HashlineError
from ...reader import format_hashlines
from ...security import resolve_path
from ...service import edit_file

logger = logging.getLogger(__name__)


def register_tools(mcp: FastMCP) -> None:
    """Register the hashline edit tool with the MCP server."""

    @mcp.tool()
    def hashline_edit(
        path: str,
        edits: str | list[dict[str, Any]] | dict[str, Any],
        preview: bool = False,
        auto_cleanup: bool = True,
        encoding: str = config.DEFAULT_ENCODING,
    ) -> dict:
        """
        Purpose
            Edit a file using anchor-based line references (N:hash) for precise edits.

        When to use
            After reading a file with hashline_read, use the anchors to make
            targeted edits without reproducing exact file content.

        Rules & Constraints
            Anchors must match the current file content (hash validation).
            All edits in a batch are validated before any are applied (atomic).
            Overlapping line ranges within a single call are rejected.
            replace ops run last, against the result of the anchor-based edits,
            and are a no-op when old_text is not found.

        Args:
            path: The path to the file (relative to the server root)
            edits: JSON array of operations (or {"edits": [...]}). Each op is either
                keyed, e.g. {"set_line": {"anchor": "2:a3b1", "new_text": "x"}}, or
                flat, e.g. {"op": "set_line", "anchor": "2:a3b1", "new_text": "x"}:
                - set_line: anchor, new_text ("" deletes the line)
                - replace_lines: start_anchor, end_anchor, new_text
                - insert_after: anchor, text
                - insert_before: anchor, text
                - append: text
                - replace: old_text, new_text, all (default false)
            preview: If True, compute the result and a diff without writing the file
            auto_cleanup: If True (default), strip N:hhhh| prefixes copied into
                multi-line content. Set to False to write content exactly as provided.
            encoding: File encoding (default "utf-8"). Must match the file's actual encoding.

        Returns:
            Dict with success status, updated hashline content, and edit count, or error dict
        """
        try:
            secure_path = resolve_path(path)
            outcome = edit_file(
                secure_path,
                edits,
                preview=preview,
                auto_cleanup=auto_cleanup,
                encoding=encoding,
                display_path=path,
            )
        except HashlineError as e:
            logger.warning("Rejected edit batch for %s: %s", path, e.error_code)
            return e.to_dict()

        result = outcome.result
        response = {
            "success": True,
            "path": path,
            "preview": result.preview,
            "changed": result.changed,
            "edits_applied": result.edits_applied,
            "anchors_consumed": [str(a) for a in result.anchors_consumed],
            "content": format_hashlines(result.lines),
        }
        if result.preview:
            response["diff"] = result.diff
        if not result.changed:
            response["note"] = "Content unchanged after applying edits"
        if outcome.cleanup_applied:
            response["cleanup_applied"] = outcome.cleanup_applied
        if result.replacements:
            response["replacements"] = {
                f"edit_{op_idx + 1}": count for op_idx, count in result.replacements.items()
            }
        return response
