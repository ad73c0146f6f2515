"""Library registry: loading and resolution of library docs coordinates.

Pure lookups over a statically defined mapping of library ID → LibraryConfig.
No knowledge of the store, git or MCP.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
import yaml
from pydantic import ValidationError
from rapidfuzz import fuzz, process

from repodocs.models.library import CrawlTarget, LibraryConfig, validate_library_id
from repodocs.repo_cache import slot_path

if TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()


@dataclass
class LibraryRegistry:
    """In-memory registry of configured libraries, in declaration order."""

    by_id: dict[str, LibraryConfig] = field(default_factory=dict)

    def library_ids(self) -> list[str]:
        return list(self.by_id)

    def resolve(self, library_id: str) -> CrawlTarget | None:
        """Resolve a library to its crawl target.

        Returns None when the library is unknown or has no docs configured;
        callers treat that as nothing to fetch.
        """
        config = self.by_id.get(library_id)
        if config is None or config.docs is None:
            return None

        docs = config.docs
        git_dir = slot_path(docs.repo, docs.branch)
        entry = f"{git_dir}/{docs.dir}" if docs.dir else git_dir
        return CrawlTarget(
            library_id=library_id,
            repo=docs.repo,
            branch=docs.branch,
            git_dir=git_dir,
            entry=entry,
        )

    def suggest(self, library_id: str, *, limit: int = 3, score_cutoff: int = 70) -> list[str]:
        """Return configured library IDs that look like ``library_id``."""
        results = process.extract(
            library_id.lower(),
            list(self.by_id),
            scorer=fuzz.ratio,
            limit=limit,
            score_cutoff=score_cutoff,
        )
        return [term for term, _score, _idx in results]


def build_registry(libraries: dict[str, LibraryConfig]) -> LibraryRegistry:
    """Build a registry from already validated library configs."""
    by_id: dict[str, LibraryConfig] = {}
    for library_id, config in libraries.items():
        by_id[validate_library_id(library_id)] = config
    return LibraryRegistry(by_id=by_id)


def load_registry(path: Path) -> LibraryRegistry:
    """Load a registry file (JSON or YAML) mapping library ID → config.

    Raises ValueError when the file is malformed; a broken registry is a
    startup error, not something to serve around.
    """
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix == ".json":
            raw: Any = json.loads(text)
        else:
            raw = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ValueError(f"Registry file {path} is not valid: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Registry file {path} must contain a mapping of library IDs")

    try:
        libraries = {
            str(key): LibraryConfig.model_validate(value or {}) for key, value in raw.items()
        }
    except ValidationError as exc:
        raise ValueError(f"Registry file {path} has an invalid entry: {exc}") from exc

    registry = build_registry(libraries)
    log.info("registry_loaded", source="disk", entries=len(registry.by_id), path=str(path))
    return registry


def merge_registries(*registries: LibraryRegistry) -> LibraryRegistry:
    """Combine registries; later ones win for a repeated library ID."""
    by_id: dict[str, LibraryConfig] = {}
    for registry in registries:
        by_id.update(registry.by_id)
    return LibraryRegistry(by_id=by_id)
