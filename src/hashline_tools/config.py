"""Hashline tool configuration constants.

Defaults can be overridden through environment variables. Values are read once
at import time; tests patch the module attributes directly.
"""

import os

HASH_WIDTH = 4
"""Hex characters per line hash. Not configurable: changing it invalidates every anchor."""

MAX_EDITS = int(os.getenv("HASHLINE_MAX_EDITS", "100"))
"""Maximum number of operations accepted in one edit batch."""

MAX_FILE_BYTES = int(os.getenv("HASHLINE_MAX_FILE_BYTES", str(10 * 1024 * 1024)))
"""Largest file (in bytes) the read and edit tools will load."""

ROOT_DIR = os.getenv("HASHLINE_ROOT") or os.getcwd()
"""Directory that MCP tool paths are confined to."""

DEFAULT_ENCODING = os.getenv("HASHLINE_ENCODING", "utf-8")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
