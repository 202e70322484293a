"""
Recursive transclusion of ![[...]] embeds.

Each embed that resolves to a Markdown document is replaced by that
document's text (or a heading / block section of it), itself expanded
first. Sibling embeds are resolved concurrently and spliced back in
left-to-right order.

Degradation rules:
- unresolved, unparseable or non-Markdown target: left verbatim
- target already in the active chain (cycle): replaced by "" with a warning
- requested heading/block missing: replaced by "" with a warning
- read failure: left verbatim with a warning
"""

import asyncio
import re

from mdtex.core.graph.base import ContentGraph
from mdtex.core.resolver import LinkResolver
from mdtex.models.expansion import DocumentCache, ExpansionContext
from mdtex.models.link import LinkReference
from mdtex.utils.exceptions import DocumentReadError
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

EMBED_PATTERN = re.compile(r"!\[\[(.*?)\]\]")
QUOTE_PREFIX_PATTERN = re.compile(r"^\s*(?:>\s*)+$")


def quote_prefix(text: str, position: int) -> str:
    """
    Block quote markers sitting between the start of the line and position.

    Args:
        text: Full text
        position: Offset of the match

    Returns:
        The text before the match on its line if it is only quote markers, else ""
    """
    line_start = text.rfind("\n", 0, position) + 1
    before = text[line_start:position]
    return before if QUOTE_PREFIX_PATTERN.match(before) else ""


def apply_quote_prefix(content: str, prefix: str) -> str:
    """Prefix every line of content with the quote markers."""
    marker = prefix if prefix.endswith(" ") else f"{prefix} "
    return "\n".join(f"{marker}{line}" if line else marker.rstrip() for line in content.split("\n"))


def extract_block(text: str, block_id: str) -> str | None:
    """
    Text of the line ending in ^block_id.

    Args:
        text: Document text
        block_id: Block identifier without the caret

    Returns:
        The line without its block marker, or None if absent
    """
    match = re.search(rf"^(.*)\^{re.escape(block_id)}\s*$", text, re.MULTILINE)
    return match.group(1).strip() if match else None


def extract_heading(text: str, heading: str) -> str | None:
    """
    Lines following a heading up to the next heading of equal or shallower depth.

    Args:
        text: Document text
        heading: Heading text; for nested references only the last segment is used

    Returns:
        Section body (stripped), or None if the heading is absent
    """
    title = heading.split("#")[-1].strip()
    lines = text.splitlines()
    heading_re = re.compile(rf"^(#+)\s+{re.escape(title)}\s*$")

    for index, line in enumerate(lines):
        match = heading_re.match(line)
        if not match:
            continue
        level = len(match.group(1))
        stop_re = re.compile(rf"^#{{1,{level}}}\s+")
        section: list[str] = []
        for following in lines[index + 1 :]:
            if stop_re.match(following):
                break
            section.append(following)
        return "\n".join(section).strip()
    return None


def extract_section(text: str, ref: LinkReference) -> str | None:
    """
    Narrow a document to the section a reference asks for.

    Args:
        text: Document text
        ref: Parsed reference

    Returns:
        Whole text when no section was requested, the section, or None if missing
    """
    if ref.block_id:
        return extract_block(text, ref.block_id)
    if ref.heading:
        return extract_heading(text, ref.heading)
    return text


class TransclusionExpander:
    """
    Expands embeds recursively against a content graph.

    A document id is never expanded twice within one chain, so mutual or
    self embeds terminate.
    """

    def __init__(self, graph: ContentGraph, resolver: LinkResolver | None = None):
        """
        Initialize expander.

        Args:
            graph: Content graph documents are read from
            resolver: Link resolver (defaults to one over graph)
        """
        self.graph = graph
        self.resolver = resolver or LinkResolver(graph)

    async def expand(
        self,
        text: str,
        source_path: str,
        visited: set[str] | frozenset[str] | None = None,
        cache: DocumentCache | None = None,
    ) -> str:
        """
        Expand all embeds in text.

        Args:
            text: Text to expand
            source_path: Document the text belongs to (resolution base)
            visited: Document ids already being expanded
            cache: Read-through document cache to share

        Returns:
            Expanded text
        """
        context = ExpansionContext.model_construct(
            source_path=source_path,
            visited=frozenset(visited or ()),
            cache=cache if cache is not None else DocumentCache(),
            warnings=[],
        )
        return await self.expand_in_context(text, context)

    async def expand_in_context(self, text: str, context: ExpansionContext) -> str:
        """
        Expand embeds using an existing context; warnings accumulate on it.

        Args:
            text: Text to expand
            context: Active expansion context

        Returns:
            Expanded text
        """
        matches = list(EMBED_PATTERN.finditer(text))
        if not matches:
            return text

        replacements = await asyncio.gather(
            *(self._expand_match(text, match, context) for match in matches)
        )

        pieces: list[str] = []
        cursor = 0
        for replacement in replacements:
            if replacement is None:
                continue
            start, end, new_text = replacement
            pieces.append(text[cursor:start])
            pieces.append(new_text)
            cursor = end
        pieces.append(text[cursor:])
        return "".join(pieces)

    async def _expand_match(
        self, text: str, match: re.Match, context: ExpansionContext
    ) -> tuple[int, int, str] | None:
        ref = LinkReference.parse(match.group(1))
        if ref is None:
            return None

        document = await self.resolver.resolve(ref, context.source_path)
        if document is None or not document.is_markdown:
            return None

        if document.id in context.visited:
            self._warn(context, f"Cycle detected: {document.id} embedded from {context.source_path}")
            return match.start(), match.end(), ""

        try:
            raw = await context.cache.read(self.graph, document.id)
        except DocumentReadError as e:
            self._warn(context, f"Could not read {document.id}: {e.message}")
            return None

        section = extract_section(raw, ref)
        if section is None:
            self._warn(context, f"Section not found: {match.group(1)} in {document.id}")
            return match.start(), match.end(), ""

        expanded = await self.expand_in_context(section, context.child(document.id))

        prefix = quote_prefix(text, match.start())
        if prefix and expanded:
            return match.start() - len(prefix), match.end(), apply_quote_prefix(expanded, prefix)
        return match.start(), match.end(), expanded

    @staticmethod
    def _warn(context: ExpansionContext, message: str) -> None:
        logger.warning(message)
        context.warnings.append(message)
