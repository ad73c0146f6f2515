"""Shallow git clones through the ``git`` executable.

The transport receives a ``GitSettings`` via constructor injection and writes
each snapshot straight into the store's on-disk location for the cache slot.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING

import structlog

from repodocs.errors import DocsError, ErrorCode

if TYPE_CHECKING:
    from repodocs.config import GitSettings
    from repodocs.protocols import StoreProtocol

log = structlog.get_logger()


def repo_url(base_url: str, repo: str) -> str:
    """Return the HTTPS clone URL for ``owner/name``."""
    return f"{base_url.rstrip('/')}/{repo}"


class GitTransport:
    """Clones a single branch at depth 1 (by default) with the git CLI."""

    def __init__(self, settings: GitSettings) -> None:
        self._settings = settings

    async def clone(
        self,
        url: str,
        dest: str,
        store: StoreProtocol,
        *,
        branch: str,
        depth: int,
    ) -> None:
        """Clone ``url`` at ``branch`` into ``dest``.

        Raises DocsError on a non-zero exit status, a missing executable and
        on timeouts. Nothing is retried.
        """
        target = store.local_path(dest)
        target.parent.mkdir(parents=True, exist_ok=True)
        args = [
            self._settings.executable,
            "clone",
            "--quiet",
            "--single-branch",
            "--depth",
            str(depth),
            "--branch",
            branch,
            "--",
            url,
            str(target),
        ]

        log.info("git_clone_started", url=url, branch=branch, dest=dest)
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
            )
        except OSError as exc:
            raise DocsError(
                code=ErrorCode.CLONE_FAILED,
                message=f"Could not run {self._settings.executable!r}: {exc}",
                suggestion="Install git or set REPODOCS__GIT__EXECUTABLE.",
                recoverable=False,
            ) from exc

        try:
            _stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self._settings.clone_timeout_seconds,
            )
        except TimeoutError as exc:
            process.kill()
            await process.wait()
            raise DocsError(
                code=ErrorCode.CLONE_FAILED,
                message=f"Timed out cloning {url} ({branch})",
                suggestion="The repository host may be slow or unreachable. Try again later.",
                recoverable=True,
            ) from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            log.warning(
                "git_clone_failed",
                url=url,
                branch=branch,
                returncode=process.returncode,
                stderr=detail,
            )
            raise DocsError(
                code=ErrorCode.CLONE_FAILED,
                message=f"git clone of {url} ({branch}) failed: {detail or process.returncode}",
                suggestion="Check that the repository and branch exist and are public.",
                recoverable=True,
            )

        log.info("git_clone_complete", url=url, branch=branch, dest=dest)
