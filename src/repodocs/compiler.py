"""Content compiler: Markdown → element tree + outline.

Compilation has two stages. ``hydrate`` parses a sanitised document body
into an ElementTree and runs the tree transforms over it; the outline is
complete when it returns. ``CompiledDoc.render`` then serialises the tree to
HTML for the view layer. Nothing in either stage executes document text.

Only content acquired through the document loader should be compiled: raw
HTML in the source is passed through to the rendered output unchanged.
"""

from __future__ import annotations

import re
import xml.etree.ElementTree as etree
from collections.abc import Sequence
from dataclasses import dataclass, field

import structlog
from markdown import Markdown, util
from markdown.blockparser import BlockParser
from markdown.blockprocessors import BlockProcessor, CodeBlockProcessor
from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor
from markdown.treeprocessors import Treeprocessor

from repodocs.errors import DocsError, ErrorCode
from repodocs.models.document import OutlineEntry
from repodocs.transforms import (
    Transform,
    TransformContext,
    embeds,
    highlight,
    table_of_contents,
)

log = structlog.get_logger()

DEFAULT_TRANSFORMS: tuple[Transform, ...] = (highlight, embeds)
MARKDOWN_EXTENSIONS = ["tables", "sane_lists"]

_FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})[ \t]*([^`\s]*)[^`]*$")
_FENCE_PLACEHOLDER = util.STX + "fence:{}" + util.ETX
_FENCE_PLACEHOLDER_RE = re.compile(util.STX + r"fence:(\d+)" + util.ETX)


# ---------------------------------------------------------------------------
# Fenced code
# ---------------------------------------------------------------------------


class FencePreprocessor(Preprocessor):
    """Lift fenced code out of the source before raw HTML is stashed.

    Each block is replaced by a placeholder line that FenceBlockProcessor
    turns back into ``<pre><code>``, so the code reaches the tree intact.
    An unclosed fence runs to the end of the document.
    """

    def __init__(self, md: Markdown, fences: list[tuple[str, str]]) -> None:
        super().__init__(md)
        self.fences = fences

    def run(self, lines: list[str]) -> list[str]:
        output: list[str] = []
        fence: str | None = None
        indent = ""
        language = ""
        code: list[str] = []

        for line in lines:
            if fence is None:
                match = _FENCE_OPEN_RE.match(line)
                if match is None:
                    output.append(line)
                    continue
                indent, fence, language = match.group(1), match.group(2), match.group(3)
                code = []
                continue

            stripped = line.strip()
            if stripped.startswith(fence[0] * len(fence)) and not stripped.strip(fence[0]):
                output.extend(self._emit(indent, language, code))
                fence = None
                continue
            # Content lines lose at most the opening fence's indentation
            code.append(line[len(indent) :] if line.startswith(indent) else line.lstrip())

        if fence is not None:
            output.extend(self._emit(indent, language, code))
        return output

    def _emit(self, indent: str, language: str, code: list[str]) -> list[str]:
        self.fences.append((language, "\n".join(code)))
        return ["", indent + _FENCE_PLACEHOLDER.format(len(self.fences) - 1), ""]


class FenceBlockProcessor(BlockProcessor):
    def __init__(
        self,
        parser: BlockParser,
        fences: list[tuple[str, str]],
        fenced: list[etree.Element],
    ) -> None:
        super().__init__(parser)
        self.fences = fences
        self.fenced = fenced

    def test(self, parent: etree.Element, block: str) -> bool:
        return _FENCE_PLACEHOLDER_RE.fullmatch(block.strip()) is not None

    def run(self, parent: etree.Element, blocks: list[str]) -> None:
        match = _FENCE_PLACEHOLDER_RE.fullmatch(blocks.pop(0).strip())
        language, source = self.fences[int(match.group(1))]
        pre = etree.SubElement(parent, "pre")
        code = etree.SubElement(pre, "code")
        if language:
            code.set("class", f"language-{language}")
        code.text = util.AtomicString(source)
        self.fenced.append(pre)


class IndentedCodeProcessor(CodeBlockProcessor):
    """Indented code blocks that never continue a fenced block.

    The stock processor appends indented code to any preceding
    ``<pre><code>`` sibling, which would merge it into a fence.
    """

    def __init__(self, parser: BlockParser, fenced: list[etree.Element]) -> None:
        super().__init__(parser)
        self.fenced = fenced

    def run(self, parent: etree.Element, blocks: list[str]) -> None:
        sibling = self.lastChild(parent)
        if not any(sibling is pre for pre in self.fenced):
            super().run(parent, blocks)
            return
        block, rest = self.detab(blocks.pop(0))
        pre = etree.SubElement(parent, "pre")
        code = etree.SubElement(pre, "code")
        code.text = util.AtomicString(f"{util.code_escape(block.rstrip())}\n")
        if rest:
            blocks.insert(0, rest)


# ---------------------------------------------------------------------------
# Transform pipeline
# ---------------------------------------------------------------------------


class TransformTreeprocessor(Treeprocessor):
    """Run the transforms in order after inline parsing."""

    def __init__(self, md: Markdown, transforms: Sequence[Transform]) -> None:
        super().__init__(md)
        self.transforms = transforms

    def run(self, root: etree.Element) -> etree.Element:
        context = TransformContext(md=self.md, used_ids=set())
        for transform in self.transforms:
            new_root = transform(root, context)
            if new_root is not None:
                root = new_root
        return root


class DocsExtension(Extension):
    def __init__(self, transforms: Sequence[Transform]) -> None:
        super().__init__()
        self.transforms = transforms

    def extendMarkdown(self, md: Markdown) -> None:
        fences: list[tuple[str, str]] = []
        fenced: list[etree.Element] = []
        # Between whitespace normalisation (30) and raw HTML stashing (20)
        md.preprocessors.register(FencePreprocessor(md, fences), "repodocs_fence", 25)
        md.parser.blockprocessors.register(
            FenceBlockProcessor(md.parser, fences, fenced), "repodocs_fence", 75
        )
        # Replaces the stock "code" processor at the same priority
        md.parser.blockprocessors.register(IndentedCodeProcessor(md.parser, fenced), "code", 80)
        # After inline parsing (20), before prettify (10)
        md.treeprocessors.register(
            TransformTreeprocessor(md, self.transforms), "repodocs_transforms", 15
        )


# ---------------------------------------------------------------------------
# Compile / render
# ---------------------------------------------------------------------------


@dataclass
class CompiledDoc:
    """A compiled document: its outline and element tree."""

    outline: list[OutlineEntry]
    tree: etree.Element
    _md: Markdown = field(repr=False)

    def render(self) -> str:
        """Serialise the tree to HTML, restoring stashed raw HTML."""
        # The tail of Markdown.convert (3.5 to 3.x)
        output = self._md.serializer(self.tree)
        doc_tag = self._md.doc_tag
        start = output.find(f"<{doc_tag}>")
        end = output.rfind(f"</{doc_tag}>")
        if start != -1 and end != -1:
            output = output[start + len(doc_tag) + 2 : end].strip()
        else:
            output = ""
        for postprocessor in self._md.postprocessors:
            output = postprocessor.run(output)
        return output.strip()


def hydrate(content: str, *, transforms: Sequence[Transform] = DEFAULT_TRANSFORMS) -> CompiledDoc:
    """Compile a sanitised document body.

    ``transforms`` run in order, followed by outline extraction. Raises
    DocsError(COMPILE_FAILED) when any stage fails; no partial outline is
    returned.
    """
    outline: list[OutlineEntry] = []
    pipeline = [*transforms, table_of_contents(outline)]
    md = Markdown(extensions=[*MARKDOWN_EXTENSIONS, DocsExtension(pipeline)])

    try:
        # The head of Markdown.convert, stopping before serialisation
        lines = content.split("\n")
        for preprocessor in md.preprocessors:
            lines = preprocessor.run(lines)
        root = md.parser.parseDocument(lines).getroot()
        for treeprocessor in md.treeprocessors:
            new_root = treeprocessor.run(root)
            if new_root is not None:
                root = new_root
    except Exception as exc:
        log.warning("compile_failed", error=str(exc), exc_info=True)
        raise DocsError(
            code=ErrorCode.COMPILE_FAILED,
            message=f"Failed to compile document: {exc}",
            suggestion="The document's Markdown could not be processed.",
            recoverable=False,
        ) from exc

    return CompiledDoc(outline=outline, tree=root, _md=md)
