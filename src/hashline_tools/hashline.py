"""Hashline utilities for anchor-based file editing.

Each line gets a short content hash anchor (line_number:hash). Callers reference
lines by anchor instead of reproducing text. If the file changed since the
caller read it, the hash won't match and the edit is cleanly rejected.
"""

from __future__ import annotations

import zlib
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from .config import HASH_WIDTH
from .edits import Anchor
from .errors import AnchorMismatch, Mismatch, MismatchKind

_HASH_MODULUS = 16 ** HASH_WIDTH


def compute_line_hash(line: str) -> str:
    """Compute a 4-char hex hash for a line of text.

    Uses CRC32 mod 65536, formatted as lowercase hex. Only trailing spaces
    and tabs are stripped before hashing. Leading whitespace (indentation)
    is included so indentation changes invalidate anchors. The line number
    is never mixed in: identical text hashes identically wherever it sits.

    Collision probability is ~0.0015% per changed line.
    """
    stripped = line.rstrip(" \t")
    crc = zlib.crc32(stripped.encode("utf-8")) & 0xFFFFFFFF
    return f"{crc % _HASH_MODULUS:0{HASH_WIDTH}x}"


@dataclass(frozen=True)
class Line:
    """One line of a file snapshot, as observed at read time."""

    number: int
    text: str
    hash: str

    @property
    def anchor(self) -> Anchor:
        return Anchor(self.number, self.hash)


class AnchorIndex:
    """Immutable line snapshot with O(1) anchor verification.

    Built fresh from the current file content on every read or edit; nothing
    is cached across invocations.
    """

    __slots__ = ("_lines",)

    def __init__(self, lines: Sequence[Line]):
        self._lines = tuple(lines)

    @classmethod
    def build(cls, texts: Sequence[str]) -> AnchorIndex:
        """Hash every line of ``texts`` (1-based numbering)."""
        return cls(
            Line(number=i, text=text, hash=compute_line_hash(text))
            for i, text in enumerate(texts, start=1)
        )

    def __len__(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[Line]:
        return iter(self._lines)

    def __getitem__(self, number: int) -> Line:
        """Return the line with 1-based ``number``."""
        if number < 1 or number > len(self._lines):
            raise IndexError(f"line {number} out of range (file has {len(self._lines)} lines)")
        return self._lines[number - 1]

    @property
    def lines(self) -> tuple[Line, ...]:
        return self._lines

    @property
    def texts(self) -> list[str]:
        return [line.text for line in self._lines]

    def check(self, anchor: Anchor) -> Mismatch | None:
        """Return why ``anchor`` fails against this snapshot, or None if it holds."""
        count = len(self._lines)
        if anchor.number < 1 or anchor.number > count:
            return Mismatch(kind=MismatchKind.MISSING, anchor=anchor, line_count=count)

        line = self._lines[anchor.number - 1]
        if line.hash != anchor.hash:
            return Mismatch(
                kind=MismatchKind.STALE,
                anchor=anchor,
                line_count=count,
                actual_hash=line.hash,
                actual_text=line.text,
            )
        return None

    def verify(self, anchor: Anchor) -> Line:
        """Return the anchored line.

        Raises:
            AnchorMismatch: With kind MISSING if the line number is out of range,
                or STALE if the line's current hash differs from the anchor's.
        """
        mismatch = self.check(anchor)
        if mismatch is not None:
            raise AnchorMismatch([mismatch])
        return self._lines[anchor.number - 1]
