"""Tool handler for read_doc.

Looks a document up by slug, compiles it and returns its outline and
rendered HTML. No MCP or FastMCP imports; server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from repodocs.compiler import hydrate
from repodocs.errors import DocsError, ErrorCode
from repodocs.models.tools import ReadDocInput, ReadDocOutput

if TYPE_CHECKING:
    from repodocs.state import AppState


async def handle(slug: str, state: AppState) -> dict:
    """Handle a read_doc tool call."""
    log = structlog.get_logger().bind(tool="read_doc", slug=slug)
    log.info("handler_called")

    # Validate input
    try:
        validated = ReadDocInput(slug=slug)
    except ValueError as exc:
        raise DocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a slug such as '<library-id>/<path>' as listed by get_docs.",
            recoverable=False,
        ) from exc

    doc = await state.loader.find(validated.slug)

    # Only documents from configured repositories reach the compiler
    compiled = hydrate(doc.content)
    log.info("read_doc_complete", headings=len(compiled.outline))

    output = ReadDocOutput(
        slug=doc.key,
        path=doc.path,
        front_matter=doc.front_matter,
        outline=compiled.outline,
        html=compiled.render(),
    )
    return output.model_dump(mode="json")
