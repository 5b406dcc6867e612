"""
Hashline Tools - anchor-based reading and editing of text files.

Every line is shown as ``N:hhhh|content``; edits reference those anchors and
are rejected as a whole if any anchored line changed since it was read.
"""

from .applier import EditResult, apply_edits, apply_plan
from .edits import (
    Anchor,
    Append,
    EditOperation,
    InsertAfter,
    InsertBefore,
    Replace,
    ReplaceLines,
    SetLine,
    parse_anchor,
)
from .errors import (
    AnchorMismatch,
    FileAccessError,
    HashlineError,
    InvalidEdit,
    InvalidRange,
    InvalidWindow,
    MalformedAnchor,
    Mismatch,
    MismatchKind,
    OverlappingEdits,
)
from .hashline import AnchorIndex, Line, compute_line_hash
from .payload import parse_edits
from .planner import ApplicationPlan, Splice, plan_edits
from .reader import format_hashlines

__version__ = "0.1.0"

__all__ = [
    "Anchor",
    "AnchorIndex",
    "AnchorMismatch",
    "Append",
    "ApplicationPlan",
    "EditOperation",
    "EditResult",
    "FileAccessError",
    "HashlineError",
    "InsertAfter",
    "InsertBefore",
    "InvalidEdit",
    "InvalidRange",
    "InvalidWindow",
    "Line",
    "MalformedAnchor",
    "Mismatch",
    "MismatchKind",
    "OverlappingEdits",
    "Replace",
    "ReplaceLines",
    "SetLine",
    "Splice",
    "apply_edits",
    "apply_plan",
    "compute_line_hash",
    "format_hashlines",
    "parse_anchor",
    "parse_edits",
    "plan_edits",
]
