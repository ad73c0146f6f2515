from __future__ import annotations

from typing import Any

from pydantic import BaseModel, field_validator

from repodocs.models.document import OutlineEntry
from repodocs.models.library import validate_library_id


class GetDocsInput(BaseModel):
    library_id: str | None = None

    @field_validator("library_id")
    @classmethod
    def validate_id(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_library_id(v)


class DocumentSummary(BaseModel):
    slug: str
    path: str
    front_matter: dict[str, Any]


class GetDocsOutput(BaseModel):
    library_id: str | None
    documents: list[DocumentSummary]


class ReadDocInput(BaseModel):
    slug: str

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: str) -> str:
        v = v.strip().strip("/")
        if not v:
            raise ValueError("Slug must not be empty")
        if len(v) > 1024:
            raise ValueError("Slug must not exceed 1024 characters")
        validate_library_id(v.split("/", 1)[0])
        return v


class ReadDocOutput(BaseModel):
    slug: str
    path: str
    front_matter: dict[str, Any]
    outline: list[OutlineEntry]
    html: str
