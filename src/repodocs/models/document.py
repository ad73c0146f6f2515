from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class Document(BaseModel):
    """One parsed documentation file."""

    path: str  # relative to the crawl entry
    slug: list[str]  # library ID first, file extension stripped
    front_matter: dict[str, Any] = {}
    content: str  # sanitised body

    @property
    def key(self) -> str:
        return "/".join(self.slug)


class OutlineEntry(BaseModel):
    """Single heading collected while compiling a document."""

    level: int
    text: str
    anchor: str
