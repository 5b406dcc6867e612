import os
import re

from . import config
from .errors import FileAccessError

# Pattern to detect Windows drive letters (e.g., C:, D:, Z:)
_WINDOWS_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def resolve_path(path: str, root: str | None = None) -> str:
    """Resolve a tool path inside the configured root directory.

    - Normalizes both '/' and '\\' separators to os.sep on all platforms.
    - Strips all leading separators, so absolute paths are taken relative to root.
    - Blocks Windows drive-letter paths.
    - Rejects null bytes, which could truncate paths in C-level file operations.
    """
    root_dir = os.path.abspath(root or config.ROOT_DIR)

    path = path.strip()
    if not path:
        raise FileAccessError("Path must not be empty")

    if "\x00" in path:
        raise FileAccessError(f"Access denied: Path contains null bytes: '{path}'")

    normalized = path.replace("/", os.sep).replace("\\", os.sep)

    if _WINDOWS_DRIVE_RE.match(normalized):
        raise FileAccessError(
            f"Access denied: Absolute paths with drive letters are not allowed: '{path}'"
        )

    while normalized and normalized[0] == os.sep:
        normalized = normalized[1:]

    normalized = os.path.normpath(normalized) if normalized else ""

    final_path = os.path.abspath(os.path.join(root_dir, normalized))

    try:
        common_prefix = os.path.commonpath([final_path, root_dir])
    except ValueError as err:
        # commonpath raises ValueError when paths are on different drives (Windows)
        raise FileAccessError(
            f"Access denied: Path '{path}' is outside the root directory.", path=path
        ) from err

    if common_prefix != root_dir:
        raise FileAccessError(
            f"Access denied: Path '{path}' is outside the root directory.", path=path
        )

    return final_path
