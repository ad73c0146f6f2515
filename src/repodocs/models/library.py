from __future__ import annotations

import re
from dataclasses import dataclass

from pydantic import BaseModel, field_validator

_LIBRARY_ID_RE = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")
_REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")


def validate_library_id(value: str) -> str:
    if not _LIBRARY_ID_RE.match(value):
        raise ValueError(f"Invalid library ID: {value!r}")
    return value


class DocsConfig(BaseModel):
    """Where a library keeps its documentation."""

    repo: str  # "owner/name"
    dir: str = ""  # relative to the repository root; empty means the root
    branch: str = "main"

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: str) -> str:
        if not _REPO_RE.match(v):
            raise ValueError(f"Repository must be in 'owner/name' form: {v!r}")
        return v

    @field_validator("dir")
    @classmethod
    def strip_dir(cls, v: str) -> str:
        return v.strip("/")


class LibraryConfig(BaseModel):
    """Single entry of the library registry. ``docs`` is None for libraries without docs."""

    docs: DocsConfig | None = None


@dataclass(frozen=True)
class CrawlTarget:
    """Resolved coordinates of one library's documentation tree."""

    library_id: str
    repo: str
    branch: str
    git_dir: str  # cache slot, e.g. "/pmndrs-drei-main"
    entry: str  # git_dir plus the docs subdirectory, if any
