"""
Hashline command line interface.

Usage:
    hashline read PATH [--offset N] [--limit N]
    hashline edit PATH --edits-json '[...]' [--preview] [--auto-cleanup]
    hashline edit PATH --edits-file edits.json
"""

import argparse
import logging
import sys

from . import config
from .errors import HashlineError
from .service import edit_file, read_file

logger = logging.getLogger("hashline_tools")


def setup_logger(verbose: bool) -> None:
    """Log to stderr so stdout only carries command output."""
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hashline", description="Hashline read/edit tools (LINE:HASH anchors)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--encoding", default=config.DEFAULT_ENCODING, help="File encoding (default: utf-8)"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    read = sub.add_parser("read", help="Print a file as LINE:HASH|content")
    read.add_argument("path")
    read.add_argument("--offset", type=int, default=1, help="Start line (1-indexed)")
    read.add_argument("--limit", type=int, default=0, help="Max lines, 0 = all")

    edit = sub.add_parser("edit", help="Apply hashline edits to a file")
    edit.add_argument("path")
    source = edit.add_mutually_exclusive_group(required=True)
    source.add_argument("--edits-json", help="JSON edits payload (array or {\"edits\": [...]})")
    source.add_argument("--edits-file", help="Read the JSON edits payload from a file")
    edit.add_argument(
        "--preview", action="store_true", help="Print a diff of the result without writing"
    )
    edit.add_argument(
        "--auto-cleanup",
        action="store_true",
        help="Strip N:hhhh| prefixes copied into multi-line content",
    )
    return parser


def _run_read(args: argparse.Namespace) -> int:
    outcome = read_file(args.path, offset=args.offset, limit=args.limit, encoding=args.encoding)
    if outcome.content:
        print(outcome.content)
    return 0


def _run_edit(args: argparse.Namespace) -> int:
    if args.edits_file:
        try:
            with open(args.edits_file, encoding="utf-8") as f:
                payload = f.read()
        except OSError as e:
            print(f"edit: failed to read edits file {args.edits_file}: {e}", file=sys.stderr)
            return 1
    else:
        payload = args.edits_json

    outcome = edit_file(
        args.path,
        payload,
        preview=args.preview,
        auto_cleanup=args.auto_cleanup,
        encoding=args.encoding,
    )

    result = outcome.result
    if args.preview:
        if result.diff:
            print(result.diff)
        print(f"preview: {args.path} not modified", file=sys.stderr)
        anchors = ", ".join(str(a) for a in result.anchors_consumed) or "none"
        print(f"anchors consumed: {anchors}", file=sys.stderr)
    elif outcome.written:
        print(f"updated {args.path}", file=sys.stderr)
    else:
        print(f"no changes made to {args.path} (edits produced identical content)", file=sys.stderr)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(args.verbose)

    try:
        if args.command == "read":
            return _run_read(args)
        return _run_edit(args)
    except HashlineError as e:
        print(f"{args.command}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
