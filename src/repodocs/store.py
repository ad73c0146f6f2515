"""Addressable stores for cloned repository snapshots.

``LocalStore`` maps virtual paths onto a directory on disk; by default a
temporary directory that lives as long as the process. Blocking filesystem
calls run in worker threads so concurrent crawls interleave on the event loop.

``MemoryStore`` keeps everything in a dict. It has no on-disk location, so
only transports that write through ``write_bytes`` can populate it.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from pathlib import Path, PurePosixPath

import structlog

log = structlog.get_logger()


def _normalise(path: str) -> str:
    normalised = str(PurePosixPath("/") / path.lstrip("/"))
    if ".." in PurePosixPath(normalised).parts:
        raise ValueError(f"Path escapes the store: {path!r}")
    return normalised


class LocalStore:
    """Directory-backed store implementing StoreProtocol."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @classmethod
    def create(cls, root_dir: str | None = None) -> LocalStore:
        """Open a store rooted at ``root_dir`` or at a fresh temporary directory."""
        if root_dir is None:
            root = Path(tempfile.mkdtemp(prefix="repodocs-"))
        else:
            root = Path(root_dir).expanduser()
            root.mkdir(parents=True, exist_ok=True)
        log.info("store_opened", root=str(root))
        return cls(root)

    @property
    def root(self) -> Path:
        return self._root

    def local_path(self, path: str) -> Path:
        return self._root / _normalise(path).lstrip("/")

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self.local_path(path).exists)

    async def is_dir(self, path: str) -> bool:
        # lstat semantics: a symlink to a directory is not descended into
        local = self.local_path(path)
        return await asyncio.to_thread(lambda: local.is_dir() and not local.is_symlink())

    async def list_dir(self, path: str) -> list[str]:
        local = self.local_path(path)
        return await asyncio.to_thread(lambda: [child.name for child in local.iterdir()])

    async def read_bytes(self, path: str) -> bytes:
        local = self.local_path(path)

        def _read() -> bytes:
            resolved = local.resolve()
            if not resolved.is_relative_to(self._root.resolve()):
                raise PermissionError(f"Path resolves outside the store: {path}")
            return resolved.read_bytes()

        return await asyncio.to_thread(_read)

    async def remove_tree(self, path: str) -> None:
        local = self.local_path(path)
        await asyncio.to_thread(shutil.rmtree, local, True)

    def close(self) -> None:
        """Delete the store root. Called at shutdown for temporary stores."""
        shutil.rmtree(self._root, ignore_errors=True)
        log.info("store_closed", root=str(self._root))


class MemoryStore:
    """Dict-backed in-process store implementing StoreProtocol."""

    def __init__(self) -> None:
        self._files: dict[str, bytes] = {}

    async def write_bytes(self, path: str, data: bytes) -> None:
        self._files[_normalise(path)] = data

    def local_path(self, path: str) -> Path:
        raise TypeError("MemoryStore has no on-disk location")

    async def exists(self, path: str) -> bool:
        path = _normalise(path)
        return path in self._files or await self.is_dir(path)

    async def is_dir(self, path: str) -> bool:
        prefix = _normalise(path).rstrip("/") + "/"
        return any(name.startswith(prefix) for name in self._files)

    async def list_dir(self, path: str) -> list[str]:
        prefix = _normalise(path).rstrip("/") + "/"
        if not await self.is_dir(path):
            raise NotADirectoryError(path)
        children = {
            name[len(prefix) :].split("/", 1)[0]
            for name in self._files
            if name.startswith(prefix)
        }
        return sorted(children)

    async def read_bytes(self, path: str) -> bytes:
        try:
            return self._files[_normalise(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def remove_tree(self, path: str) -> None:
        path = _normalise(path)
        prefix = path.rstrip("/") + "/"
        for name in [n for n in self._files if n == path or n.startswith(prefix)]:
            del self._files[name]
