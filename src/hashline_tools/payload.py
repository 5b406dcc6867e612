"""Parse edit batches from their JSON wire form.

Two shapes are accepted for each operation:

    {"set_line": {"anchor": "2:a3b1", "new_text": "x"}}      keyed by variant
    {"op": "set_line", "anchor": "2:a3b1", "new_text": "x"}  flat, with "op"

and a batch is either a bare list of operations or ``{"edits": [...]}``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, StrictBool, StrictStr, ValidationError

from . import config
from .edits import (
    Append,
    EditOperation,
    InsertAfter,
    InsertBefore,
    Replace,
    ReplaceLines,
    SetLine,
    parse_anchor,
)
from .errors import HashlineError, InvalidEdit


class _Payload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class SetLinePayload(_Payload):
    anchor: StrictStr
    new_text: StrictStr

    def to_operation(self) -> SetLine:
        return SetLine(anchor=parse_anchor(self.anchor), new_text=self.new_text)


class ReplaceLinesPayload(_Payload):
    start_anchor: StrictStr
    end_anchor: StrictStr
    new_text: StrictStr

    def to_operation(self) -> ReplaceLines:
        return ReplaceLines(
            start_anchor=parse_anchor(self.start_anchor),
            end_anchor=parse_anchor(self.end_anchor),
            new_text=self.new_text,
        )


class InsertAfterPayload(_Payload):
    anchor: StrictStr
    text: StrictStr

    def to_operation(self) -> InsertAfter:
        return InsertAfter(anchor=parse_anchor(self.anchor), text=self.text)


class InsertBeforePayload(_Payload):
    anchor: StrictStr
    text: StrictStr

    def to_operation(self) -> InsertBefore:
        return InsertBefore(anchor=parse_anchor(self.anchor), text=self.text)


class AppendPayload(_Payload):
    text: StrictStr

    def to_operation(self) -> Append:
        return Append(text=self.text)


class ReplacePayload(_Payload):
    old_text: StrictStr
    new_text: StrictStr
    all: StrictBool = False

    def to_operation(self) -> Replace:
        return Replace(old_text=self.old_text, new_text=self.new_text, all=self.all)


PAYLOAD_MODELS: dict[str, type[_Payload]] = {
    "set_line": SetLinePayload,
    "replace_lines": ReplaceLinesPayload,
    "insert_after": InsertAfterPayload,
    "insert_before": InsertBeforePayload,
    "append": AppendPayload,
    "replace": ReplacePayload,
}


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "operation"
        problems.append(f"{loc}: {err['msg']}")
    return "; ".join(problems)


def parse_operation(raw: Any, index: int = 0) -> EditOperation:
    """Parse one operation dict (keyed or flat form).

    Raises:
        InvalidEdit: For unknown ops or missing/mistyped fields.
        MalformedAnchor, InvalidRange: For bad anchors.
    """
    if not isinstance(raw, dict):
        raise InvalidEdit("operation must be an object", op_index=index)

    if "op" in raw:
        op_type = raw["op"]
        fields = {k: v for k, v in raw.items() if k != "op"}
    elif len(raw) == 1:
        op_type, fields = next(iter(raw.items()))
        if not isinstance(fields, dict):
            raise InvalidEdit(f"'{op_type}' must map to an object", op_index=index)
    else:
        raise InvalidEdit(
            f"expected exactly one of {sorted(PAYLOAD_MODELS)} or an 'op' field, "
            f"got keys {sorted(raw)}",
            op_index=index,
        )

    model = PAYLOAD_MODELS.get(op_type) if isinstance(op_type, str) else None
    if model is None:
        raise InvalidEdit(f"unknown op {op_type!r}", op_index=index)

    try:
        payload = model.model_validate(fields)
    except ValidationError as e:
        raise InvalidEdit(
            f"{op_type}: {_format_validation_error(e)}", op_index=index, original_error=e
        ) from e

    try:
        return payload.to_operation()
    except InvalidEdit as e:
        raise InvalidEdit(e.message, op_index=index) from e
    except HashlineError as e:
        e.context.setdefault("edit", index + 1)
        raise


def parse_edits(payload: Any, max_edits: int | None = None) -> list[EditOperation]:
    """Parse a whole batch.

    ``payload`` may be a JSON string, a list of operations, or a dict with an
    ``edits`` list. Nothing here reads the file: every syntactic problem is
    reported before the file is touched.

    Raises:
        InvalidEdit: For bad JSON, an empty batch, or too many operations.
    """
    max_edits = config.MAX_EDITS if max_edits is None else max_edits

    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InvalidEdit(f"Invalid JSON in edits: {e}", original_error=e) from e

    if isinstance(payload, dict):
        if set(payload) != {"edits"}:
            raise InvalidEdit("edits object must have exactly one key, 'edits'")
        payload = payload["edits"]

    if not isinstance(payload, list):
        raise InvalidEdit("edits must be a JSON array of operations or {\"edits\": [...]}")
    if not payload:
        raise InvalidEdit("edits array is empty")
    if len(payload) > max_edits:
        raise InvalidEdit(
            f"Too many edits in one call ({len(payload)}, max {max_edits}). "
            "Split into multiple calls."
        )

    return [parse_operation(raw, i) for i, raw in enumerate(payload)]
