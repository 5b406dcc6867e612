"""Load and store text files as line snapshots.

A snapshot remembers the file's line ending and whether it ended with a
newline, so writing the edited lines back preserves both.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass

from . import config
from .errors import FileAccessError

logger = logging.getLogger(__name__)


def split_lines(content: str) -> list[str]:
    """Split LF-normalized content into addressable lines.

    A final newline does not add an extra empty line, and an empty file has
    no lines at all.
    """
    if not content:
        return []
    parts = content.split("\n")
    if content.endswith("\n"):
        parts.pop()
    return parts


@dataclass(frozen=True)
class TextSnapshot:
    """The content of one file at one moment, split into lines."""

    lines: tuple[str, ...]
    eol: str = "\n"
    trailing_newline: bool = False

    @classmethod
    def from_text(cls, content: str) -> TextSnapshot:
        eol = "\r\n" if "\r\n" in content else "\n"
        normalized = content.replace("\r\n", "\n")
        return cls(
            lines=tuple(split_lines(normalized)),
            eol=eol,
            trailing_newline=normalized.endswith("\n"),
        )

    def render(self, lines: Sequence[str]) -> str:
        """Join ``lines`` back into file content using this snapshot's conventions.

        New content written into an originally empty file gets a final newline.
        """
        if not lines:
            return ""
        joined = "\n".join(lines)
        if self.trailing_newline or not self.lines:
            joined += "\n"
        if self.eol == "\r\n":
            joined = joined.replace("\n", "\r\n")
        return joined


def read_snapshot(
    path: str, encoding: str = config.DEFAULT_ENCODING, max_bytes: int | None = None
) -> TextSnapshot:
    """Read ``path`` into a snapshot.

    Raises:
        FileAccessError: If the file is missing, not a regular file, too large,
            or cannot be decoded with ``encoding``.
    """
    max_bytes = config.MAX_FILE_BYTES if max_bytes is None else max_bytes
    if not os.path.exists(path):
        raise FileAccessError(f"File not found at {path}", path=path)
    if not os.path.isfile(path):
        raise FileAccessError(f"Path is not a file: {path}", path=path)

    size = os.path.getsize(path)
    if size > max_bytes:
        raise FileAccessError(
            f"File too large for hashline tools ({size} bytes, max {max_bytes})", path=path
        )

    try:
        with open(path, encoding=encoding, newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError, LookupError) as e:
        raise FileAccessError(f"Failed to read file: {e}", path=path, original_error=e) from e

    return TextSnapshot.from_text(content)


def write_atomic(path: str, content: str, encoding: str = config.DEFAULT_ENCODING) -> None:
    """Replace ``path`` with ``content`` via a temp file and ``os.replace``.

    The original permission bits are kept. On failure the original file is
    left untouched and the temp file is removed.

    Raises:
        FileAccessError: If the temp file cannot be written or moved into place.
    """
    try:
        original_mode = os.stat(path).st_mode
        fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(os.path.abspath(path)))
        fd_open = True
        try:
            os.chmod(tmp_path, original_mode)
            with os.fdopen(fd, "w", encoding=encoding, newline="") as f:
                fd_open = False
                f.write(content)
            os.replace(tmp_path, path)
        except BaseException:
            if fd_open:
                os.close(fd)
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
    except (OSError, UnicodeEncodeError) as e:
        raise FileAccessError(f"Failed to write file: {e}", path=path, original_error=e) from e

    logger.debug("Wrote %d chars to %s", len(content), path)
