"""Protocol interfaces for swappable components.

Acquisition code references these protocols, not the concrete
implementations. This allows:
- Tests to use the in-memory store and a fake transport
- The cache root to live on disk or anywhere else without changing callers
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from pathlib import Path


class StoreProtocol(Protocol):
    """Addressable file store holding cloned repository snapshots.

    Paths are absolute POSIX-style virtual paths such as
    ``/pmndrs-drei-main/docs/intro.md``.
    """

    async def exists(self, path: str) -> bool: ...

    async def is_dir(self, path: str) -> bool: ...

    async def list_dir(self, path: str) -> list[str]: ...

    async def read_bytes(self, path: str) -> bytes: ...

    async def remove_tree(self, path: str) -> None: ...

    def local_path(self, path: str) -> Path: ...


class TransportProtocol(Protocol):
    """Interface for fetching a repository snapshot into the store."""

    async def clone(
        self,
        url: str,
        dest: str,
        store: StoreProtocol,
        *,
        branch: str,
        depth: int,
    ) -> None: ...
