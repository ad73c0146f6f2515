"""Unit tests for repodocs.store."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from repodocs.store import LocalStore, MemoryStore

if TYPE_CHECKING:
    from pathlib import Path


class TestMemoryStore:
    async def test_write_and_read(self) -> None:
        store = MemoryStore()
        await store.write_bytes("/slot/docs/a.md", b"hello")
        assert await store.read_bytes("/slot/docs/a.md") == b"hello"

    async def test_directories_are_implicit(self) -> None:
        store = MemoryStore()
        await store.write_bytes("/slot/docs/a.md", b"")
        assert await store.is_dir("/slot")
        assert await store.is_dir("/slot/docs")
        assert not await store.is_dir("/slot/docs/a.md")
        assert await store.exists("/slot/docs")
        assert not await store.exists("/other")

    async def test_list_dir_returns_immediate_children(self) -> None:
        store = MemoryStore()
        await store.write_bytes("/slot/a.md", b"")
        await store.write_bytes("/slot/sub/b.md", b"")
        await store.write_bytes("/slot/sub/c.md", b"")
        assert await store.list_dir("/slot") == ["a.md", "sub"]

    async def test_list_dir_on_file_raises(self) -> None:
        store = MemoryStore()
        await store.write_bytes("/slot/a.md", b"")
        with pytest.raises(NotADirectoryError):
            await store.list_dir("/slot/a.md")

    async def test_missing_file_raises(self) -> None:
        with pytest.raises(FileNotFoundError):
            await MemoryStore().read_bytes("/nope.md")

    async def test_remove_tree_only_touches_subtree(self) -> None:
        store = MemoryStore()
        await store.write_bytes("/a-main/x.md", b"")
        await store.write_bytes("/a-main-2/y.md", b"")
        await store.remove_tree("/a-main")
        assert not await store.exists("/a-main")
        assert await store.exists("/a-main-2/y.md")

    async def test_parent_traversal_rejected(self) -> None:
        with pytest.raises(ValueError):
            await MemoryStore().write_bytes("/../etc", b"")

    def test_has_no_local_path(self) -> None:
        with pytest.raises(TypeError):
            MemoryStore().local_path("/slot")


class TestLocalStore:
    async def test_maps_virtual_paths_under_root(self, tmp_path: Path) -> None:
        store = LocalStore(tmp_path)
        assert store.local_path("/slot/a.md") == tmp_path / "slot" / "a.md"

    async def test_basic_operations(self, tmp_path: Path) -> None:
        (tmp_path / "slot" / "docs").mkdir(parents=True)
        (tmp_path / "slot" / "docs" / "a.md").write_bytes(b"content")
        store = LocalStore(tmp_path)

        assert await store.is_dir("/slot/docs")
        assert not await store.is_dir("/slot/docs/a.md")
        assert await store.list_dir("/slot/docs") == ["a.md"]
        assert await store.read_bytes("/slot/docs/a.md") == b"content"

        await store.remove_tree("/slot")
        assert not await store.exists("/slot")

    async def test_symlink_outside_root_not_readable(self, tmp_path: Path) -> None:
        outside = tmp_path / "outside.md"
        outside.write_text("secret")
        root = tmp_path / "root"
        (root / "slot").mkdir(parents=True)
        os.symlink(outside, root / "slot" / "leak.md")

        store = LocalStore(root)
        with pytest.raises(PermissionError):
            await store.read_bytes("/slot/leak.md")

    def test_parent_traversal_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            LocalStore(tmp_path).local_path("/slot/../../etc/passwd")

    def test_create_temporary_and_close(self) -> None:
        store = LocalStore.create()
        assert store.root.is_dir()
        store.close()
        assert not store.root.exists()

    def test_create_with_configured_root(self, tmp_path: Path) -> None:
        store = LocalStore.create(str(tmp_path / "cache"))
        assert store.root == tmp_path / "cache"
        assert store.root.is_dir()
