"""Document sets: acquisition pipeline from registry entry to parsed documents.

For one library: resolve → ensure_cloned → crawl → parse. Across all
libraries the same pipeline runs concurrently, one task per library.
Document sets are rebuilt from the cached snapshot on every call.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

import structlog

from repodocs.crawler import MARKDOWN_RE, crawl
from repodocs.errors import DocsError, ErrorCode
from repodocs.parser import parse_document

if TYPE_CHECKING:
    from repodocs.models.document import Document
    from repodocs.registry import LibraryRegistry
    from repodocs.repo_cache import RepositoryCache

log = structlog.get_logger()


class DocumentLoader:
    """Builds slug-keyed document sets for configured libraries."""

    def __init__(
        self,
        registry: LibraryRegistry,
        repo_cache: RepositoryCache,
        *,
        pattern: re.Pattern[str] = MARKDOWN_RE,
    ) -> None:
        self._registry = registry
        self._repo_cache = repo_cache
        self._pattern = pattern

    async def load(self, library_id: str) -> dict[str, Document] | None:
        """Build the document set for one library.

        Returns None when the library has no docs configured. Clone failures
        propagate, as does DocsError(FILE_UNREADABLE) when the tree cannot be
        listed. Files that fail to parse are logged and skipped. When two
        files map to the same slug, the one processed last wins.
        """
        target = self._registry.resolve(library_id)
        if target is None:
            log.debug("library_not_configured", library_id=library_id)
            return None

        store = self._repo_cache.store
        await self._repo_cache.ensure_cloned(target.repo, target.branch)

        if not await store.exists(target.entry):
            log.warning("docs_entry_missing", library_id=library_id, entry=target.entry)
            return {}

        try:
            files = await crawl(store, target.entry, self._pattern)
        except OSError as exc:
            log.warning(
                "docs_crawl_failed", library_id=library_id, entry=target.entry, error=str(exc)
            )
            raise DocsError(
                code=ErrorCode.FILE_UNREADABLE,
                message=f"Could not list the documentation of '{library_id}': {exc}",
                suggestion="The cached repository may be damaged. Try again later.",
                recoverable=True,
            ) from exc

        docs: dict[str, Document] = {}
        for file in files:
            try:
                raw = await store.read_bytes(file)
            except OSError as exc:
                log.warning("document_skipped", library_id=library_id, path=file, reason=str(exc))
                continue
            try:
                doc = parse_document(file, raw, target.entry, library_id)
            except DocsError as exc:
                log.warning(
                    "document_skipped",
                    library_id=library_id,
                    path=file,
                    code=exc.code,
                    reason=exc.message,
                )
                continue
            if doc.key in docs:
                log.debug("document_slug_collision", slug=doc.key, path=doc.path)
            docs[doc.key] = doc

        log.info("documents_loaded", library_id=library_id, count=len(docs))
        return docs

    async def load_all(self) -> list[Document]:
        """Build and flatten the document sets of every configured library.

        A library whose acquisition fails contributes nothing; the others
        are unaffected.
        """
        library_ids = self._registry.library_ids()
        results = await asyncio.gather(
            *(self.load(library_id) for library_id in library_ids),
            return_exceptions=True,
        )

        documents: list[Document] = []
        for library_id, result in zip(library_ids, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                log.warning(
                    "library_acquisition_failed",
                    library_id=library_id,
                    exc_info=result,
                )
                continue
            if result:
                documents.extend(result.values())
        return documents

    async def find(self, slug: str) -> Document:
        """Return the document addressed by a joined slug such as ``'drei/guide/intro'``."""
        library_id = slug.split("/", 1)[0]
        docs = await self.load(library_id)
        if docs is None:
            suggestions = self._registry.suggest(library_id)
            hint = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
            raise DocsError(
                code=ErrorCode.LIBRARY_NOT_FOUND,
                message=f"Library '{library_id}' has no documentation configured.",
                suggestion=f"Call get_docs without arguments to list available documents.{hint}",
                recoverable=False,
            )

        doc = docs.get(slug)
        if doc is None:
            raise DocsError(
                code=ErrorCode.DOCUMENT_NOT_FOUND,
                message=f"No document with slug '{slug}'.",
                suggestion=f"Call get_docs with library_id='{library_id}' to list its slugs.",
                recoverable=False,
            )
        return doc


async def get_docs(
    loader: DocumentLoader, library_id: str | None = None
) -> dict[str, Document] | list[Document] | None:
    """Fetch one library's document set, or every document when no library is given."""
    if library_id is None:
        return await loader.load_all()
    return await loader.load(library_id)
