"""Application state container.

AppState is created once at server startup (inside the FastMCP lifespan context
manager) and injected into every tool handler via the MCP Context object.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repodocs.config import Settings
    from repodocs.documents import DocumentLoader
    from repodocs.registry import LibraryRegistry
    from repodocs.repo_cache import RepositoryCache


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every tool handler."""

    settings: Settings
    registry: LibraryRegistry
    repo_cache: RepositoryCache
    loader: DocumentLoader
