"""Integration tests for the hashline_edit tool."""

import json
from unittest.mock import patch

import pytest
from fastmcp import FastMCP

from hashline_tools.hashline import compute_line_hash


@pytest.fixture
def mcp():
    """Create a FastMCP instance."""
    return FastMCP("test-server")


@pytest.fixture(autouse=True)
def mock_root(tmp_path):
    """Confine tool paths to the temp directory."""
    with patch("hashline_tools.config.ROOT_DIR", str(tmp_path)):
        yield


@pytest.fixture
def hashline_edit_fn(mcp):
    from hashline_tools.tools.hashline_edit import register_tools

    register_tools(mcp)
    return mcp._tool_manager._tools["hashline_edit"].fn


def _anchor(line_num, line_text):
    """Helper to build an anchor string."""
    return f"{line_num}:{compute_line_hash(line_text)}"


def _stale_anchor(line_num, line_text):
    h = compute_line_hash(line_text)
    return f"{line_num}:{'0000' if h != '0000' else '0001'}"


class TestSetLine:
    """Tests for the set_line op."""

    def test_set_line_basic(self, hashline_edit_fn, tmp_path):
        """set_line replaces a single line."""
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\n")

        edits = json.dumps([{"set_line": {"anchor": _anchor(2, "bbb"), "new_text": "BBB"}}])
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert result["edits_applied"] == 1
        assert result["anchors_consumed"] == [_anchor(2, "bbb")]
        assert f.read_text() == "aaa\nBBB\nccc\n"

    def test_set_line_multiline(self, hashline_edit_fn, tmp_path):
        """set_line may expand one line into several."""
        f = tmp_path / "test.txt"
        f.write_text("alpha\nbeta\ngamma\n")

        edits = [{"set_line": {"anchor": _anchor(2, "beta"), "new_text": "beta2\nbeta3"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert f.read_text() == "alpha\nbeta2\nbeta3\ngamma\n"

    def test_set_line_empty_content_deletes(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\n")

        edits = [{"op": "set_line", "anchor": _anchor(2, "bbb"), "new_text": ""}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert f.read_text() == "aaa\nccc\n"
        assert result["content"].split("\n")[1] == f"2:{compute_line_hash('ccc')}|ccc"


class TestReplaceLines:
    """Tests for the replace_lines op."""

    def test_replace_lines_basic(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\nddd\n")

        edits = {
            "edits": [
                {
                    "replace_lines": {
                        "start_anchor": _anchor(2, "bbb"),
                        "end_anchor": _anchor(3, "ccc"),
                        "new_text": "NEW",
                    }
                }
            ]
        }
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert f.read_text() == "aaa\nNEW\nddd\n"

    def test_start_after_end_rejected(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\n")

        edits = [
            {
                "replace_lines": {
                    "start_anchor": _anchor(3, "ccc"),
                    "end_anchor": _anchor(1, "aaa"),
                    "new_text": "x",
                }
            }
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["error_code"] == "INVALID_RANGE"
        assert f.read_text() == "aaa\nbbb\nccc\n"


class TestInsertAndAppend:
    def test_insert_after(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("alpha\nbeta\ngamma\n")

        edits = [
            {"insert_after": {"anchor": _anchor(1, "alpha"), "text": "inserted"}},
            {"replace": {"old_text": "gamma", "new_text": "delta", "all": True}},
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert result["replacements"] == {"edit_2": 1}
        assert f.read_text() == "alpha\ninserted\nbeta\ndelta\n"

    def test_multiple_insert_after_same_anchor_preserves_order(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\n")

        edits = [
            {"insert_after": {"anchor": _anchor(2, "bbb"), "text": "FIRST"}},
            {"insert_after": {"anchor": _anchor(2, "bbb"), "text": "SECOND"}},
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert f.read_text() == "aaa\nbbb\nFIRST\nSECOND\nccc\n"

    def test_insert_before_first_line(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\n")

        edits = [{"insert_before": {"anchor": _anchor(1, "aaa"), "text": "HEADER"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert f.read_text() == "HEADER\naaa\nbbb\n"

    def test_append_to_empty_file(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "empty.txt"
        f.write_text("")

        result = hashline_edit_fn(path="empty.txt", edits=[{"append": {"text": "first"}}])

        assert result["success"] is True
        assert f.read_text() == "first\n"


class TestReplace:
    def test_replace_not_found_is_noop(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello world\n")
        mtime = f.stat().st_mtime_ns

        edits = [{"replace": {"old_text": "nonexistent", "new_text": "new"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert result["changed"] is False
        assert result["edits_applied"] == 0
        assert result["replacements"] == {"edit_1": 0}
        assert "unchanged" in result["note"].lower()
        assert f.read_text() == "hello world\n"
        assert f.stat().st_mtime_ns == mtime


class TestErrors:
    """Tests for error cases."""

    def test_invalid_json(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello\n")

        result = hashline_edit_fn(path="test.txt", edits="not json{")

        assert result["error_code"] == "INVALID_EDIT"
        assert "Invalid JSON" in result["error"]

    def test_malformed_anchor_checked_before_file(self, hashline_edit_fn):
        """A malformed anchor is reported even when the file does not exist."""
        edits = [{"set_line": {"anchor": "two:abcd", "new_text": "x"}}]
        result = hashline_edit_fn(path="missing.txt", edits=edits)

        assert result["error_code"] == "MALFORMED_ANCHOR"

    def test_hash_mismatch(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello\n")

        edits = [{"set_line": {"anchor": _stale_anchor(1, "hello"), "new_text": "new"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["error_code"] == "ANCHOR_MISMATCH"
        assert "no longer match" in result["error"]
        assert f"-> {_anchor(1, 'hello')}" in result["error"]

    def test_line_out_of_range(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello\n")

        edits = [{"set_line": {"anchor": "99:ab12", "new_text": "new"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["error_code"] == "ANCHOR_MISMATCH"
        assert "does not exist" in result["error"]

    def test_overlapping_ranges(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\nddd\n")

        edits = [
            {
                "replace_lines": {
                    "start_anchor": _anchor(1, "aaa"),
                    "end_anchor": _anchor(3, "ccc"),
                    "new_text": "X",
                }
            },
            {
                "replace_lines": {
                    "start_anchor": _anchor(2, "bbb"),
                    "end_anchor": _anchor(4, "ddd"),
                    "new_text": "Y",
                }
            },
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["error_code"] == "OVERLAPPING_EDITS"
        assert "overlapping" in result["error"].lower()
        assert f.read_text() == "aaa\nbbb\nccc\nddd\n"

    def test_unknown_op(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello\n")

        result = hashline_edit_fn(path="test.txt", edits=[{"op": "magic", "text": "x"}])

        assert "unknown op" in result["error"].lower()

    def test_empty_edits_array(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello\n")

        result = hashline_edit_fn(path="test.txt", edits="[]")

        assert "empty" in result["error"].lower()

    def test_file_not_found(self, hashline_edit_fn):
        edits = [{"append": {"text": "x"}}]
        result = hashline_edit_fn(path="nope.txt", edits=edits)

        assert result["error_code"] == "FILE_ACCESS"
        assert "not found" in result["error"].lower()

    def test_path_outside_root(self, hashline_edit_fn):
        result = hashline_edit_fn(path="../outside.txt", edits=[{"append": {"text": "x"}}])

        assert result["error_code"] == "FILE_ACCESS"

    def test_edit_count_limit(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("hello\n")

        edits = [{"append": {"text": "x"}}] * 3
        with patch("hashline_tools.config.MAX_EDITS", 2):
            result = hashline_edit_fn(path="test.txt", edits=edits)

        assert "too many" in result["error"].lower()


class TestAtomicity:
    """Nothing is written unless the whole batch is valid."""

    def test_no_partial_apply_on_hash_mismatch(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\n")

        edits = [
            {"set_line": {"anchor": _anchor(1, "aaa"), "new_text": "AAA"}},
            {"set_line": {"anchor": _stale_anchor(3, "ccc"), "new_text": "CCC"}},
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert "error" in result
        assert f.read_bytes() == b"aaa\nbbb\nccc\n"

    def test_stale_after_concurrent_change(self, hashline_edit_fn, tmp_path):
        """An anchor captured before someone else changed the line is rejected."""
        f = tmp_path / "test.txt"
        f.write_text("alpha\nbeta\ngamma\n")
        anchor = _anchor(2, "beta")

        f.write_text("alpha\nBETA\ngamma\n")
        result = hashline_edit_fn(
            path="test.txt", edits=[{"set_line": {"anchor": anchor, "new_text": "x"}}]
        )

        assert result["error_code"] == "ANCHOR_MISMATCH"
        assert f.read_bytes() == b"alpha\nBETA\ngamma\n"


class TestPreview:
    def test_preview_does_not_write(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("alpha\nbeta\ngamma\n")
        mtime = f.stat().st_mtime_ns
        edits = [{"set_line": {"anchor": _anchor(2, "beta"), "new_text": "beta2\nbeta3"}}]

        result = hashline_edit_fn(path="test.txt", edits=edits, preview=True)

        assert result["success"] is True
        assert result["preview"] is True
        assert "-beta" in result["diff"]
        assert "+beta3" in result["diff"]
        assert "a/test.txt" in result["diff"]
        assert f.read_bytes() == b"alpha\nbeta\ngamma\n"
        assert f.stat().st_mtime_ns == mtime

    def test_preview_matches_commit(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("alpha\nbeta\ngamma\n")
        edits = [
            {"insert_after": {"anchor": _anchor(1, "alpha"), "text": "inserted"}},
            {"replace": {"old_text": "gamma", "new_text": "delta"}},
        ]

        previewed = hashline_edit_fn(path="test.txt", edits=edits, preview=True)
        committed = hashline_edit_fn(path="test.txt", edits=edits)

        assert previewed["content"] == committed["content"]
        assert "diff" not in committed


class TestFormatting:
    def test_trailing_newline_absent_preserved(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb")

        edits = [{"set_line": {"anchor": _anchor(2, "bbb"), "new_text": "BBB"}}]
        hashline_edit_fn(path="test.txt", edits=edits)

        assert f.read_text() == "aaa\nBBB"

    def test_preserves_crlf_newlines(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_bytes(b"aaa\r\nbbb\r\n")

        edits = [{"insert_after": {"anchor": _anchor(1, "aaa"), "text": "NEW"}}]
        hashline_edit_fn(path="test.txt", edits=edits)

        assert f.read_bytes() == b"aaa\r\nNEW\r\nbbb\r\n"

    def test_replace_new_text_crlf_on_crlf_file(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_bytes(b"alpha\r\nbeta\r\n")

        edits = [{"replace": {"old_text": "beta", "new_text": "b1\r\nb2"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["success"] is True
        assert f.read_bytes() == b"alpha\r\nb1\r\nb2\r\n"

    def test_replace_old_text_crlf_matches(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_bytes(b"alpha\r\nbeta\r\ngamma\r\n")

        edits = [{"replace": {"old_text": "alpha\r\nbeta", "new_text": "ab"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["replacements"] == {"edit_1": 1}
        assert f.read_bytes() == b"ab\r\ngamma\r\n"

    def test_encoding_latin1(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_bytes("café\n".encode("latin-1"))

        edits = [{"set_line": {"anchor": _anchor(1, "café"), "new_text": "thé"}}]
        result = hashline_edit_fn(path="test.txt", edits=edits, encoding="latin-1")

        assert result["success"] is True
        assert f.read_bytes() == "thé\n".encode("latin-1")


class TestAutoCleanup:
    def test_prefixes_stripped_by_default(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\nccc\n")

        edits = [
            {
                "replace_lines": {
                    "start_anchor": _anchor(2, "bbb"),
                    "end_anchor": _anchor(3, "ccc"),
                    "new_text": "2:ab12|x\n3:cd34|y",
                }
            }
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits)

        assert result["cleanup_applied"] == ["prefix_strip"]
        assert f.read_text() == "aaa\nx\ny\n"

    def test_auto_cleanup_false_preserves_prefix(self, hashline_edit_fn, tmp_path):
        f = tmp_path / "test.txt"
        f.write_text("aaa\nbbb\n")

        edits = [
            {
                "replace_lines": {
                    "start_anchor": _anchor(1, "aaa"),
                    "end_anchor": _anchor(2, "bbb"),
                    "new_text": "1:ab12|x\n2:cd34|y",
                }
            }
        ]
        result = hashline_edit_fn(path="test.txt", edits=edits, auto_cleanup=False)

        assert "cleanup_applied" not in result
        assert f.read_text() == "1:ab12|x\n2:cd34|y\n"
