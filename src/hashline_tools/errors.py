"""
Hashline Exceptions.

Every failure an edit batch can hit is raised before a single line of the file
is rewritten, so any of these means "nothing was applied":
- MalformedAnchor: anchor text does not match LINE:HASH
- InvalidRange: replace_lines with start after end
- AnchorMismatch: anchored line is missing or its content changed
- OverlappingEdits: two anchor-based operations claim the same lines
- InvalidEdit: payload problems that are not anchor grammar
- InvalidWindow: a read offset/limit outside the file
- FileAccessError: the file collaborators could not load or store the file

All exceptions carry a machine-readable error code and a context dict, and can
be rendered as the error dict returned by the MCP tools.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .edits import Anchor


class HashlineError(Exception):
    """
    Base exception for all hashline errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for categorization
        context: Additional context dict for debugging
        original_error: The underlying exception if this wraps another error
    """

    error_code_default = "HASHLINE_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.error_code_default
        self.context = context or {}
        self.original_error = original_error

        full_message = message
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            full_message = f"{message} [{context_str}]"

        super().__init__(full_message)

        if original_error:
            self.__cause__ = original_error

    def to_dict(self) -> dict[str, Any]:
        """Render as the error dict returned by the MCP tools."""
        return {
            "error": str(self),
            "error_code": self.error_code,
            "context": dict(self.context),
        }


# === Edit model errors ===


class MalformedAnchor(HashlineError):
    """Raised when anchor text does not match the NUMBER:HASH grammar."""

    error_code_default = "MALFORMED_ANCHOR"

    def __init__(self, anchor: object, reason: str, **kwargs: Any):
        self.anchor = anchor
        self.reason = reason
        super().__init__(f"Invalid anchor {anchor!r}: {reason}", **kwargs)


class InvalidRange(HashlineError):
    """Raised when a replace_lines start anchor comes after its end anchor."""

    error_code_default = "INVALID_RANGE"

    def __init__(self, start: Anchor, end: Anchor, **kwargs: Any):
        self.start = start
        self.end = end
        super().__init__(
            f"replace_lines start line {start.number} is after end line {end.number} "
            f"({start} > {end})",
            **kwargs,
        )


class InvalidEdit(HashlineError):
    """Raised for malformed edit payloads (bad JSON, unknown op, missing fields)."""

    error_code_default = "INVALID_EDIT"

    def __init__(self, message: str, op_index: int | None = None, **kwargs: Any):
        self.op_index = op_index
        if op_index is not None:
            message = f"Edit #{op_index + 1}: {message}"
        super().__init__(message, **kwargs)


class InvalidWindow(HashlineError):
    """Raised when a read offset/limit does not select part of the file."""

    error_code_default = "INVALID_WINDOW"

    def __init__(self, message: str, offset: int, limit: int, total_lines: int, **kwargs: Any):
        self.offset = offset
        self.limit = limit
        self.total_lines = total_lines
        super().__init__(
            message,
            context={"offset": offset, "limit": limit, "total_lines": total_lines},
            **kwargs,
        )


# === Anchor verification errors ===


class MismatchKind(StrEnum):
    """Why an anchor failed to verify."""

    MISSING = "missing"  # line number no longer exists
    STALE = "stale"  # line exists but its content changed


@dataclass(frozen=True)
class Mismatch:
    """One anchor that no longer holds against the current file."""

    kind: MismatchKind
    anchor: Anchor
    line_count: int
    actual_hash: str | None = None
    actual_text: str | None = None

    def describe(self) -> str:
        if self.kind is MismatchKind.MISSING:
            return (
                f"line {self.anchor.number} does not exist "
                f"(file has {self.line_count} lines)"
            )
        return (
            f">>> {self.anchor.number}:{self.actual_hash}|{self.actual_text}\n"
            f"    expected {self.anchor.hash}"
        )


class AnchorMismatch(HashlineError):
    """Raised when one or more anchors are missing or stale.

    The first mismatch decides ``kind``; all of them are listed in the message
    together with the replacement anchors for the stale ones.
    """

    error_code_default = "ANCHOR_MISMATCH"

    def __init__(self, mismatches: list[Mismatch] | tuple[Mismatch, ...], **kwargs: Any):
        if not mismatches:
            raise ValueError("AnchorMismatch requires at least one mismatch")
        self.mismatches = tuple(mismatches)
        context = kwargs.pop("context", {})
        context["anchors"] = ",".join(str(m.anchor) for m in self.mismatches)
        super().__init__(self._render(), context=context, **kwargs)

    @property
    def kind(self) -> MismatchKind:
        return self.mismatches[0].kind

    @property
    def anchor(self) -> Anchor:
        return self.mismatches[0].anchor

    def _render(self) -> str:
        out = [
            f"{len(self.mismatches)} anchor(s) no longer match the file. "
            "Re-read the file and use updated LINE:HASH anchors.",
            "",
        ]
        out.extend(m.describe() for m in self.mismatches)

        stale = [m for m in self.mismatches if m.kind is MismatchKind.STALE]
        if stale:
            out.append("")
            out.append("Quick fix: replace stale anchors:")
            for m in stale:
                out.append(f"  {m.anchor} -> {m.anchor.number}:{m.actual_hash}")
        return "\n".join(out)


class OverlappingEdits(HashlineError):
    """Raised when two anchor-based operations target overlapping line ranges."""

    error_code_default = "OVERLAPPING_EDITS"

    def __init__(self, first: tuple[int, str], second: tuple[int, str], **kwargs: Any):
        self.first = first
        self.second = second
        (idx_a, desc_a), (idx_b, desc_b) = first, second
        super().__init__(
            f"Overlapping edits: edit #{idx_a + 1} ({desc_a}) and edit #{idx_b + 1} "
            f"({desc_b}) affect overlapping line ranges",
            **kwargs,
        )


# === File collaborator errors ===


class FileAccessError(HashlineError):
    """Raised when the file cannot be resolved, read, or written."""

    error_code_default = "FILE_ACCESS"

    def __init__(self, message: str, path: str | None = None, **kwargs: Any):
        self.path = path
        context = kwargs.pop("context", {})
        if path:
            context["path"] = path
        super().__init__(message, context=context, **kwargs)
