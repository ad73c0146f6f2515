from __future__ import annotations

from repodocs.models.document import Document, OutlineEntry
from repodocs.models.library import CrawlTarget, DocsConfig, LibraryConfig
from repodocs.models.tools import (
    DocumentSummary,
    GetDocsInput,
    GetDocsOutput,
    ReadDocInput,
    ReadDocOutput,
)

__all__ = [
    # library
    "DocsConfig",
    "LibraryConfig",
    "CrawlTarget",
    # documents
    "Document",
    "OutlineEntry",
    # tools
    "GetDocsInput",
    "GetDocsOutput",
    "DocumentSummary",
    "ReadDocInput",
    "ReadDocOutput",
]
