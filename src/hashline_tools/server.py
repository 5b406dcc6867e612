"""
Hashline MCP Server

Serves hashline_read and hashline_edit over the Model Context Protocol.

Usage:
    hashline-mcp                 # HTTP on 127.0.0.1:4011
    hashline-mcp --port 8001
    hashline-mcp --stdio         # for local agents

Routes (HTTP transport only):
    GET /health   liveness check, plain "OK"
    GET /status   JSON: tools, root directory and edit limits

Environment Variables:
    MCP_PORT                 - Server port (default: 4011)
    HASHLINE_ROOT            - Directory tool paths are confined to (default: cwd)
    HASHLINE_MAX_EDITS       - Max operations per edit batch (default: 100)
    HASHLINE_MAX_FILE_BYTES  - Max file size in bytes (default: 10MB)
    LOG_LEVEL                - Logging level (default: INFO)
"""

import argparse
import logging
import os
import signal
import sys
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse

from . import __version__, config
from .tools import register_all_tools

SERVER_NAME = "hashline"
DEFAULT_PORT = 4011
DEFAULT_HOST = "127.0.0.1"

logger = logging.getLogger("hashline_tools")


def setup_logger(use_stdio: bool) -> None:
    """Attach one handler to the package logger.

    In stdio mode stdout carries the protocol, so logs go to stderr.
    """
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stderr if use_stdio else sys.stdout)
    handler.setFormatter(
        logging.Formatter("[%(asctime)s] [%(levelname)s] [hashline] %(message)s", "%H:%M:%S")
    )
    logger.addHandler(handler)
    logger.setLevel(config.LOG_LEVEL)


def server_status(tools: list[str]) -> dict[str, Any]:
    """Describe what this server edits and under which limits."""
    return {
        "name": SERVER_NAME,
        "version": __version__,
        "tools": list(tools),
        "root": os.path.abspath(config.ROOT_DIR),
        "max_edits": config.MAX_EDITS,
        "max_file_bytes": config.MAX_FILE_BYTES,
    }


def create_app() -> FastMCP:
    """Build the FastMCP app with both hashline tools and the HTTP routes."""
    mcp = FastMCP(SERVER_NAME)
    tools = register_all_tools(mcp)
    logger.info("Registered %s (root: %s)", ", ".join(tools), config.ROOT_DIR)

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        return PlainTextResponse("OK")

    @mcp.custom_route("/status", methods=["GET"])
    async def status(request: Request) -> JSONResponse:
        return JSONResponse(server_status(tools))

    return mcp


def register_shutdown_handlers() -> None:
    def shutdown_handler(signum, frame):
        logger.info("Received signal %s, shutting down", signum)
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hashline-mcp", description="Hashline MCP server (LINE:HASH anchored editing)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=int(os.getenv("MCP_PORT", DEFAULT_PORT)),
        help="HTTP server port",
    )
    parser.add_argument("--host", default=DEFAULT_HOST, help="HTTP server host")
    parser.add_argument(
        "--stdio", action="store_true", help="Use STDIO transport instead of HTTP"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    setup_logger(use_stdio=args.stdio)
    register_shutdown_handlers()
    mcp = create_app()

    if args.stdio:
        logger.info("Serving over stdio")
        mcp.run(transport="stdio")
    else:
        logger.info("Serving HTTP on %s:%d", args.host, args.port)
        mcp.run(transport="http", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
