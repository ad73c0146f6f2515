"""Document parser: front matter, comment sanitation and slug derivation.

Plain Markdown sources often hide their front matter from GitHub's renderer
by wrapping it in an HTML comment::

    <!--
    ---
    title: Introduction
    ---
    -->

Sanitation runs in two stages. Stage 1 unwraps such front matter: the opener
in front of the first ``---`` is dropped before the front matter is split off,
and closers left without an opener are dropped from the body. Stage 2 removes
every remaining comment from the body.
"""

from __future__ import annotations

import re
from typing import Any

import yaml

from repodocs.errors import DocsError, ErrorCode
from repodocs.models.document import Document

_FRONT_MATTER_OPENER_RE = re.compile(r"\A\s*<!--(?:\s*-->)?\s*(?=---)")
_FRONT_MATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?:(.*?)\r?\n)?---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL,
)
# Comments are matched first so only closers without an opener are removed
_STRAY_CLOSER_RE = re.compile(r"(<!--.*?-->)|[ \t]*-->", re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?-->|<!--[^\n]*\n", re.DOTALL)


def split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    """Split a leading ``---`` block from ``text``.

    Returns ``({}, text)`` when there is no front matter.
    """
    match = _FRONT_MATTER_RE.match(text)
    if match is None:
        return {}, text

    try:
        data = yaml.safe_load(match.group(1) or "")
    except yaml.YAMLError as exc:
        raise DocsError(
            code=ErrorCode.FRONT_MATTER_INVALID,
            message=f"Invalid YAML front matter: {exc}",
            suggestion="Fix the YAML between the leading '---' lines.",
        ) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DocsError(
            code=ErrorCode.FRONT_MATTER_INVALID,
            message=f"Front matter must be a mapping, got {type(data).__name__}",
            suggestion="Use 'key: value' pairs between the leading '---' lines.",
        )
    # YAML 1.1 reads keys such as `on`, `yes`, `1` or dates as non-strings
    return {str(key): value for key, value in data.items()}, text[match.end() :]


def unwrap_front_matter(text: str) -> str:
    """Stage 1, before splitting: drop a comment opener hiding the front matter."""
    return _FRONT_MATTER_OPENER_RE.sub("", text, count=1)


def strip_stray_closers(body: str) -> str:
    """Stage 1, after splitting: drop ``-->`` closers that have no opener."""
    return _STRAY_CLOSER_RE.sub(lambda m: m.group(1) or "", body)


def strip_comments(body: str) -> str:
    """Stage 2: remove HTML comments, including an unclosed opener to end of line."""
    return _COMMENT_RE.sub("", body)


def derive_slug(path: str, library_id: str) -> list[str]:
    """``'guide/intro.md'`` in library ``lib`` → ``['lib', 'guide', 'intro']``.

    The final extension is dropped whatever the crawl pattern matched.
    """
    *parents, name = path.split("/")
    stem, dot, _extension = name.rpartition(".")
    if dot:
        name = stem
    if not name:
        raise DocsError(
            code=ErrorCode.INVALID_PATH,
            message=f"File name has no stem: {path!r}",
            suggestion="Rename the file so it has a name before its extension.",
        )
    return [library_id, *parents, name]


def parse_document(path: str, raw: bytes, entry: str, library_id: str) -> Document:
    """Parse one crawled file into a Document.

    ``path`` is the absolute store path and ``entry`` the crawl entry it
    lives under.
    """
    relative = path.removeprefix(f"{entry.rstrip('/')}/")
    slug = derive_slug(relative, library_id)

    try:
        text = raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DocsError(
            code=ErrorCode.FILE_UNREADABLE,
            message=f"{relative} is not valid UTF-8: {exc}",
            suggestion="Documentation files must be UTF-8 encoded.",
        ) from exc

    front_matter, body = split_front_matter(unwrap_front_matter(text))
    content = strip_comments(strip_stray_closers(body))

    return Document(path=relative, slug=slug, front_matter=front_matter, content=content)
