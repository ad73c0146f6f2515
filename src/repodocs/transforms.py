"""Tree transforms run by the content compiler.

Every transform has the same contract: it receives the compiled element tree
and a TransformContext, mutates or replaces the tree, and returns a new root
or None. The compiler runs them in a fixed order after inline parsing.
"""

from __future__ import annotations

import html
import re
import xml.etree.ElementTree as etree
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from markdown import util
from markdown.extensions.toc import slugify, unique
from pygments.lexers import get_lexer_by_name
from pygments.token import Text
from pygments.util import ClassNotFound

from repodocs.models.document import OutlineEntry

if TYPE_CHECKING:
    from markdown import Markdown

_HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}
_ESCAPED_RE = re.compile(f"{util.STX}(\\d+){util.ETX}")
_STASHED_RE = re.compile(f"{util.STX}wzxhzdk:\\d+{util.ETX}")
_LANGUAGE_RE = re.compile(r"(?:^|\s)language-(\S+)")


@dataclass
class TransformContext:
    md: Markdown
    used_ids: set[str]


class Transform(Protocol):
    def __call__(self, root: etree.Element, context: TransformContext) -> etree.Element | None: ...


# ---------------------------------------------------------------------------
# Syntax highlighting
# ---------------------------------------------------------------------------


def _token_class(ttype: tuple[str, ...]) -> str:
    """``Token.Keyword.Constant`` → ``'token keyword constant'``; plain text → ``''``."""
    if not ttype or ttype in Text:
        return ""
    return " ".join(["token", *(part.lower() for part in ttype)])


def highlight(root: etree.Element, context: TransformContext) -> None:
    """Tokenise ``<pre><code class="language-x">`` blocks with Pygments.

    Unknown languages are left as plain text.
    """
    for pre in root.iter("pre"):
        code = pre.find("code")
        if code is None or code.text is None or len(code):
            continue
        match = _LANGUAGE_RE.search(code.get("class", ""))
        if match is None:
            continue
        try:
            lexer = get_lexer_by_name(match.group(1), stripnl=False, ensurenl=False)
        except ClassNotFound:
            continue

        source = code.text
        code.text = None
        last: etree.Element | None = None
        for ttype, value in lexer.get_tokens(source):
            css = _token_class(ttype)
            if css:
                last = etree.SubElement(code, "span", {"class": css})
                last.text = util.AtomicString(value)
            elif last is None:
                code.text = util.AtomicString((code.text or "") + value)
            else:
                last.tail = util.AtomicString((last.tail or "") + value)
        pre.set("class", f"language-{match.group(1)}")


# ---------------------------------------------------------------------------
# Embeds
# ---------------------------------------------------------------------------

_EMBED_PROVIDERS: list[tuple[str, re.Pattern[str], str]] = [
    (
        "youtube",
        re.compile(r"^https?://(?:www\.)?(?:youtube\.com/watch\?v=|youtu\.be/)([\w-]{11})"),
        "https://www.youtube-nocookie.com/embed/{}",
    ),
    (
        "codesandbox",
        re.compile(r"^https?://codesandbox\.io/s/([\w-]+)"),
        "https://codesandbox.io/embed/{}",
    ),
    (
        "stackblitz",
        re.compile(r"^https?://stackblitz\.com/edit/([\w-]+)"),
        "https://stackblitz.com/edit/{}?embed=1",
    ),
]


def embed_url(href: str) -> tuple[str, str] | None:
    """Return ``(provider, embed_url)`` for a supported link, else None."""
    for provider, pattern, template in _EMBED_PROVIDERS:
        match = pattern.match(href)
        if match:
            return provider, template.format(match.group(1))
    return None


def embeds(root: etree.Element, context: TransformContext) -> None:
    """Replace paragraphs holding nothing but an embeddable link with an iframe."""
    for p in list(root.iter("p")):
        if len(p) != 1 or (p.text or "").strip():
            continue
        link = p[0]
        if link.tag != "a" or (link.tail or "").strip():
            continue
        resolved = embed_url(link.get("href", ""))
        if resolved is None:
            continue

        provider, src = resolved
        title = "".join(link.itertext()).strip() or provider
        p.clear()
        p.tag = "div"
        p.set("class", f"embed embed-{provider}")
        iframe = etree.SubElement(p, "iframe")
        iframe.set("src", src)
        iframe.set("title", title)
        iframe.set("loading", "lazy")
        iframe.set("allowfullscreen", "allowfullscreen")
        iframe.text = ""


# ---------------------------------------------------------------------------
# Outline
# ---------------------------------------------------------------------------


def heading_text(el: etree.Element) -> str:
    text = "".join(el.itertext())
    text = _STASHED_RE.sub("", text)
    text = _ESCAPED_RE.sub(lambda m: chr(int(m.group(1))), text)
    return " ".join(html.unescape(text).split())


def table_of_contents(outline: list[OutlineEntry]) -> Transform:
    """Build a transform that appends every heading to ``outline``.

    Headings get an ``id`` matching their anchor. Anchors are slugified
    heading text, made unique within the document.
    """

    def transform(root: etree.Element, context: TransformContext) -> None:
        for el in root.iter():
            level = _HEADING_TAGS.get(el.tag)
            if level is None:
                continue
            text = heading_text(el)
            anchor = el.get("id") or unique(slugify(text, "-") or "section", context.used_ids)
            context.used_ids.add(anchor)
            el.set("id", anchor)
            outline.append(OutlineEntry(level=level, text=text, anchor=anchor))

    return transform
