"""Repository cache: one shallow snapshot per repository and branch.

Slots are keyed by ``repo_key(repo, branch)`` and live for the process
lifetime. Concurrent requests for the same key share a single in-flight
clone; different keys write to disjoint subtrees of the store, so no
locking is needed between them. There is no eviction.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from repodocs.git import repo_url

if TYPE_CHECKING:
    from repodocs.protocols import StoreProtocol, TransportProtocol

log = structlog.get_logger()


def repo_key(repo: str, branch: str) -> str:
    """Return the cache slot name: ``'pmndrs/drei', 'main'`` → ``'pmndrs-drei-main'``."""
    return f"{repo.replace('/', '-')}-{branch}"


def slot_path(repo: str, branch: str) -> str:
    return f"/{repo_key(repo, branch)}"


class RepositoryCache:
    """Materialises remote repositories into the store on first use."""

    def __init__(
        self,
        store: StoreProtocol,
        transport: TransportProtocol,
        *,
        base_url: str = "https://github.com",
        depth: int = 1,
    ) -> None:
        self._store = store
        self._transport = transport
        self._base_url = base_url
        self._depth = depth
        self._clones: dict[str, asyncio.Task[str]] = {}

    @property
    def store(self) -> StoreProtocol:
        return self._store

    async def ensure_cloned(self, repo: str, branch: str) -> str:
        """Return the slot path for ``repo``/``branch``, cloning it if needed.

        A failed clone is forgotten so that a later call tries again; the
        failure itself propagates to every caller waiting on it.
        """
        key = repo_key(repo, branch)
        task = self._clones.get(key)
        if task is None:
            task = asyncio.create_task(self._clone(repo, branch))
            self._clones[key] = task
        else:
            log.debug("repo_cache_hit", key=key)

        try:
            return await asyncio.shield(task)
        except Exception:
            if self._clones.get(key) is task:
                del self._clones[key]
            raise

    async def _clone(self, repo: str, branch: str) -> str:
        dest = slot_path(repo, branch)
        # Leftovers from an interrupted clone are never reused
        if await self._store.exists(dest):
            log.info("repo_cache_slot_reset", dest=dest)
            await self._store.remove_tree(dest)

        await self._transport.clone(
            repo_url(self._base_url, repo),
            dest,
            self._store,
            branch=branch,
            depth=self._depth,
        )
        return dest
