"""Shared test fixtures for the repodocs test suite."""

from __future__ import annotations

import pytest

from repodocs.documents import DocumentLoader
from repodocs.errors import DocsError, ErrorCode
from repodocs.models.library import DocsConfig, LibraryConfig
from repodocs.registry import LibraryRegistry, build_registry
from repodocs.repo_cache import RepositoryCache
from repodocs.store import MemoryStore


class FakeTransport:
    """Clones from an in-memory map of ``(url, branch)`` → ``{relative path: bytes}``."""

    def __init__(self, repos: dict[tuple[str, str], dict[str, bytes]] | None = None) -> None:
        self.repos = repos or {}
        self.calls: list[tuple[str, str, str, int]] = []

    async def clone(
        self,
        url: str,
        dest: str,
        store: MemoryStore,
        *,
        branch: str,
        depth: int,
    ) -> None:
        self.calls.append((url, dest, branch, depth))
        files = self.repos.get((url, branch))
        if files is None:
            raise DocsError(
                code=ErrorCode.CLONE_FAILED,
                message=f"git clone of {url} ({branch}) failed: not found",
                suggestion="Check that the repository and branch exist and are public.",
                recoverable=True,
            )
        for relative, data in files.items():
            await store.write_bytes(f"{dest}/{relative}", data)


@pytest.fixture()
def libraries() -> dict[str, LibraryConfig]:
    """Minimal library configs covering the registry's defaults."""
    return {
        "drei": LibraryConfig(docs=DocsConfig(repo="pmndrs/drei", dir="docs")),
        "zustand": LibraryConfig(docs=DocsConfig(repo="pmndrs/zustand", branch="v5")),
        "react-spring": LibraryConfig(docs=DocsConfig(repo="pmndrs/react-spring", dir="docs")),
        "leva": LibraryConfig(),
    }


@pytest.fixture()
def registry(libraries: dict[str, LibraryConfig]) -> LibraryRegistry:
    return build_registry(libraries)


@pytest.fixture()
def repos() -> dict[tuple[str, str], dict[str, bytes]]:
    """Remote repository contents served by the fake transport."""
    return {
        ("https://github.com/pmndrs/drei", "main"): {
            "README.md": b"# drei\n",
            "docs/getting-started/introduction.mdx": (
                b"---\ntitle: Introduction\nnav: 0\n---\n\n# Introduction\n\nHello.\n"
            ),
            "docs/abstractions/text.md": (
                b"<!--\n---\ntitle: Text\n---\n-->\n\n# Text\n<!-- internal note -->\nRenders text.\n"
            ),
            "docs/assets/logo.png": b"\x89PNG\r\n",
        },
        ("https://github.com/pmndrs/zustand", "v5"): {
            "docs/guides/slices.md": b"---\ntitle: Slices\n---\n## Slicing the store\n",
            "readme.md": b"# zustand\n",
        },
    }


@pytest.fixture()
def transport(repos: dict[tuple[str, str], dict[str, bytes]]) -> FakeTransport:
    return FakeTransport(repos)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def repo_cache(store: MemoryStore, transport: FakeTransport) -> RepositoryCache:
    return RepositoryCache(store, transport)


@pytest.fixture()
def loader(registry: LibraryRegistry, repo_cache: RepositoryCache) -> DocumentLoader:
    return DocumentLoader(registry, repo_cache)
