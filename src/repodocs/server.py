"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools
- Start the correct transport (stdio or HTTP)
"""

from __future__ import annotations

import json
import logging
import re
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import uvicorn
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, TextContent

import repodocs.tools.get_docs as t_get_docs
import repodocs.tools.read_doc as t_read_doc
from repodocs import __version__
from repodocs.config import Settings
from repodocs.documents import DocumentLoader
from repodocs.errors import DocsError
from repodocs.git import GitTransport
from repodocs.registry import build_registry, load_registry, merge_registries
from repodocs.repo_cache import RepositoryCache
from repodocs.state import AppState
from repodocs.store import LocalStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        # Logs go to stderr; stdout is reserved for the MCP JSON-RPC stream
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


def build_state(settings: Settings, store: LocalStore) -> AppState:
    """Wire registry, repository cache and document loader together."""
    registry = build_registry(settings.libraries)
    if settings.registry.path:
        registry = merge_registries(load_registry(Path(settings.registry.path)), registry)

    repo_cache = RepositoryCache(
        store,
        GitTransport(settings.git),
        base_url=settings.git.base_url,
        depth=settings.git.depth,
    )
    loader = DocumentLoader(
        registry,
        repo_cache,
        pattern=re.compile(settings.docs.file_pattern),
    )
    return AppState(settings=settings, registry=registry, repo_cache=repo_cache, loader=loader)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    _setup_logging(settings)

    log.info(
        "server_starting",
        version=__version__,
        transport=settings.server.transport,
    )

    store = LocalStore.create(settings.cache.root_dir)
    state = build_state(settings, store)

    log.info(
        "server_started",
        version=__version__,
        transport=settings.server.transport,
        libraries=len(state.registry.by_id),
    )

    try:
        yield state
    finally:
        # Only temporary stores are discarded; a configured root is kept
        if settings.cache.root_dir is None:
            store.close()
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("repodocs", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: DocsError) -> CallToolResult:
    """Convert a DocsError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


@mcp.tool()
async def get_docs(ctx: Context, library_id: str | None = None) -> object:
    """List documentation pages for a library, or for every library when omitted.

    Returns each page's slug, path and front matter. Pass a slug to
    read_doc to get its content.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_docs.handle(library_id, state)
    except DocsError as exc:
        log.warning(
            "tool_error",
            tool="get_docs",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_docs", exc_info=True)
        raise


@mcp.tool()
async def read_doc(slug: str, ctx: Context) -> object:
    """Read one documentation page by slug.

    Returns the page's outline (heading level, text and anchor) and its
    content rendered to HTML.
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_read_doc.handle(slug, state)
    except DocsError as exc:
        log.warning(
            "tool_error",
            tool="read_doc",
            code=exc.code,
            message=exc.message,
            recoverable=exc.recoverable,
        )
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="read_doc", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# HTTP transport
# ---------------------------------------------------------------------------


def run_http_server(settings: Settings) -> None:
    """Start the MCP server with Streamable HTTP transport."""
    _setup_logging(settings)
    structlog.get_logger().bind(transport="http").info(
        "http_server_starting", host=settings.server.host, port=settings.server.port
    )

    uvicorn.run(
        mcp.streamable_http_app(),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()

    if settings.server.transport == "http":
        run_http_server(settings)
        return

    mcp.run()


if __name__ == "__main__":
    main()
