"""Recursive, concurrent directory crawl over a store.

Each directory spawns one task per child and joins them with a TaskGroup;
results are flattened on the way back up, so no accumulator is shared
between tasks. Sibling order is not preserved.
"""

from __future__ import annotations

import asyncio
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repodocs.protocols import StoreProtocol

MARKDOWN_RE = re.compile(r"\.mdx?$")


async def crawl(
    store: StoreProtocol,
    root: str,
    pattern: re.Pattern[str] | None = None,
) -> list[str]:
    """Return every file path under ``root`` that matches ``pattern``.

    A ``root`` that is not a directory is treated as a single file. When
    listing a subtree fails, the first OSError is raised as is rather than
    wrapped in an ExceptionGroup.
    """
    if not await store.is_dir(root):
        if pattern is None or pattern.search(root):
            return [root]
        return []

    names = await store.list_dir(root)
    base = root.rstrip("/")
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = [tg.create_task(crawl(store, f"{base}/{name}", pattern)) for name in names]
    except ExceptionGroup as group:
        errors, rest = group.split(OSError)
        if errors is None or rest is not None:
            raise
        raise errors.exceptions[0] from None

    return [path for task in tasks for path in task.result()]
