"""Tool handler for get_docs.

Receives AppState, runs the acquisition pipeline for one library or for all
of them, and returns a structured dict. No MCP or FastMCP imports;
server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from repodocs.documents import get_docs
from repodocs.errors import DocsError, ErrorCode
from repodocs.models.tools import DocumentSummary, GetDocsInput, GetDocsOutput

if TYPE_CHECKING:
    from repodocs.models.document import Document
    from repodocs.state import AppState


async def handle(library_id: str | None, state: AppState) -> dict:
    """Handle a get_docs tool call."""
    log = structlog.get_logger().bind(tool="get_docs", library_id=library_id)
    log.info("handler_called")

    # Validate input
    try:
        validated = GetDocsInput(library_id=library_id)
    except ValueError as exc:
        raise DocsError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a valid library ID (lowercase alphanumeric, dots, hyphens, "
            "underscores) or omit it to list every library.",
            recoverable=False,
        ) from exc

    result = await get_docs(state.loader, validated.library_id)

    if result is None:
        suggestions = state.registry.suggest(validated.library_id or "")
        hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
        raise DocsError(
            code=ErrorCode.LIBRARY_NOT_FOUND,
            message=f"Library '{validated.library_id}' has no documentation configured.",
            suggestion=f"Call get_docs without a library ID to list everything.{hint}",
            recoverable=False,
        )

    documents: list[Document] = list(result.values()) if isinstance(result, dict) else result
    log.info("get_docs_complete", count=len(documents))

    output = GetDocsOutput(
        library_id=validated.library_id,
        documents=[
            DocumentSummary(slug=doc.key, path=doc.path, front_matter=doc.front_matter)
            for doc in documents
        ],
    )
    return output.model_dump(mode="json")
