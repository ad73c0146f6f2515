"""Integration test fixtures.

Provides a fully wired AppState over an in-memory store and the fake git
transport, a local git remote for end-to-end clones, and a baseline
environment for subprocess-based MCP tests. Library and repository fixtures
come from tests/conftest.py.
"""

from __future__ import annotations

import os
import subprocess
from typing import TYPE_CHECKING

import pytest

from repodocs.config import Settings
from repodocs.documents import DocumentLoader
from repodocs.state import AppState

if TYPE_CHECKING:
    from pathlib import Path

    from repodocs.models.library import LibraryConfig
    from repodocs.registry import LibraryRegistry
    from repodocs.repo_cache import RepositoryCache


def _git(cwd: Path, *args: str) -> None:
    subprocess.run(
        [
            "git",
            "-c", "user.name=repodocs",
            "-c", "user.email=repodocs@example.com",
            "-c", "commit.gpgsign=false",
            *args,
        ],
        cwd=cwd,
        check=True,
        capture_output=True,
    )


@pytest.fixture()
def git_remote(tmp_path: Path) -> str:
    """Create ``<tmp>/remotes/pmndrs/demo`` with one commit on ``main``.

    Returns a ``file://`` base URL to use in place of https://github.com.
    """
    remotes = tmp_path / "remotes"
    work = remotes / "pmndrs" / "demo"
    (work / "docs" / "guide").mkdir(parents=True)
    (work / "README.md").write_text("# demo\n")
    (work / "docs" / "guide" / "intro.md").write_text(
        "---\ntitle: Intro\n---\n\n# Intro\n\n## Install\n\nRun it.\n"
    )
    (work / "docs" / "guide" / "notes.txt").write_text("not documentation\n")
    _git(work, "init", "--quiet", "--initial-branch=main")
    _git(work, "add", ".")
    _git(work, "commit", "--quiet", "-m", "docs")
    return remotes.as_uri()


@pytest.fixture()
def subprocess_env(tmp_path: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Forces stdio transport, points the repository cache at an isolated tmp
    directory and declares no libraries.
    """
    env = os.environ.copy()
    env["REPODOCS__SERVER__TRANSPORT"] = "stdio"
    env["REPODOCS__CACHE__ROOT_DIR"] = str(tmp_path / "repos")
    env["REPODOCS__LIBRARIES"] = "{}"
    env["GIT_CONFIG_NOSYSTEM"] = "1"
    return env


@pytest.fixture()
def app_state(
    registry: LibraryRegistry,
    repo_cache: RepositoryCache,
    libraries: dict[str, LibraryConfig],
) -> AppState:
    """Full AppState wired over the in-memory store and fake transport."""
    return AppState(
        settings=Settings(libraries=libraries),
        registry=registry,
        repo_cache=repo_cache,
        loader=DocumentLoader(registry, repo_cache),
    )
