"""
Regex-driven rewrite of embeds and annotated code fences into pandoc/LaTeX markup.

One pass (rewrite_once) handles, left to right:
- ![[image.png]]{#label}[caption] -> ![caption](path){#fig:label scale}
- ![[note]] reaching a Markdown document -> the note's rewritten text
- ```lang {#lst:id caption="..."} fences -> lstlisting environments

rewrite() repeats the pass until the text stops changing, at most
MAX_REWRITE_ITERATIONS times. Anything that cannot be resolved is left as
written; this module never raises for content problems.

Also hosts the smaller text transforms used by the conversion pipeline
(wikilink unwrapping, mermaid fences, docx command conversion).
"""

import re
from pathlib import Path

from mdtex.core.graph.base import ContentGraph
from mdtex.core.resolver import LinkResolver
from mdtex.models.expansion import DocumentCache
from mdtex.models.link import Document, LinkReference
from mdtex.models.profile import OutputFormat, Profile
from mdtex.models.rewrite import EmbedImage, EmbedMarkdownDocument, FencedCode
from mdtex.services.transclusion import apply_quote_prefix, extract_section, quote_prefix
from mdtex.utils.exceptions import DocumentReadError
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

MAX_REWRITE_ITERATIONS = 5

REWRITE_PATTERN = re.compile(
    r"!\[\[([^\]]+)\]\](?:\{#([^}]+)\})?(?:\[(.*?)\])?"
    r"|```([\w-]+)?[ \t]*(?:\{([^}]*)\})?[ \t]*\n(.*?)```",
    re.DOTALL,
)
WIKILINK_PATTERN = re.compile(r"(?<!!)\[\[([^\]]+)\]\]")
MERMAID_FENCE_PATTERN = re.compile(r"^([ \t]*(?:>[ \t]*)*)```mermaid\b[^\n]*$", re.MULTILINE)
LISTING_LABEL_PATTERN = re.compile(r"#lst:([\w-]+)")
LISTING_CAPTION_PATTERN = re.compile(r'caption\s*=\s*"(.*?)"')

FIGURE_PREFIX = "fig:"

LISTING_LANGUAGES = {
    "python": "Python",
    "py": "Python",
    "bash": "bash",
    "sh": "bash",
    "zsh": "bash",
    "javascript": "JavaScript",
    "js": "JavaScript",
    "typescript": "JavaScript",
    "ts": "JavaScript",
    "json": "JavaScript",
    "html": "HTML",
    "css": "CSS",
    "c": "C",
    "cpp": "C++",
    "java": "Java",
    "text": None,
    "plain": None,
}

LATEX_ESCAPES = {
    "\\": r"\textbackslash{}",
    "$": r"\$",
    "%": r"\%",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "^": r"\^{}",
    "~": r"\textasciitilde{}",
    "&": r"\&",
}

PAGE_BREAK_OPENXML = '```{=openxml}\n<w:p><w:r><w:br w:type="page"/></w:r></w:p>\n```'

DOCX_COMMAND_REPLACEMENTS = [
    (re.compile(r"\\textbf\{([^}]+)\}"), r"**\1**"),
    (re.compile(r"\\textit\{([^}]+)\}"), r"*\1*"),
    (re.compile(r"\\footnote\{([^}]+)\}"), r"^[\1]"),
    (re.compile(r"\\centerline\{([^}]+)\}"), '::: {custom-style="Center"}\n\\1\n:::'),
    (re.compile(r"\\rightline\{([^}]+)\}"), '::: {custom-style="Right"}\n\\1\n:::'),
    (re.compile(r"\\vspace\{[^}]+\}"), "\n\n"),
    (re.compile(r"\\kenten\{([^}]+)\}"), r'[\1]{custom-style="Kenten"}'),
    (re.compile(r"\\(?:newpage|clearpage)\b"), PAGE_BREAK_OPENXML),
    (re.compile(r"\\noindent\b[ \t]*"), ""),
]


def escape_latex(text: str) -> str:
    """
    Escape LaTeX special characters in one pass.

    Args:
        text: Plain text

    Returns:
        Text safe to place in a LaTeX argument
    """
    return "".join(LATEX_ESCAPES.get(char, char) for char in text)


def normalize_listing_language(language: str | None) -> str | None:
    """
    Map a fence language tag to a listings language name.

    Args:
        language: Tag after the opening fence

    Returns:
        listings language, or None for plain text and unknown tags
    """
    if not language:
        return None
    return LISTING_LANGUAGES.get(language.lower())


def normalize_figure_label(label: str) -> str:
    """Ensure a figure label carries the fig: namespace exactly once."""
    label = label.strip().lstrip("#")
    return label if label.startswith(FIGURE_PREFIX) else f"{FIGURE_PREFIX}{label}"


def format_link_target(path: str) -> str:
    """Link destination, bracketed when it contains whitespace."""
    return f"<{path}>" if re.search(r"\s", path) else path


def strip_mermaid_language(text: str) -> str:
    """
    Drop the language tag from mermaid fences so they compile as plain code.

    Args:
        text: Markdown text

    Returns:
        Text with ```mermaid fences turned into untagged fences
    """
    return MERMAID_FENCE_PATTERN.sub(r"\1```", text)


def convert_tex_commands_for_docx(text: str) -> str:
    """
    Rewrite common LaTeX commands into Markdown / OpenXML equivalents.

    Args:
        text: Markdown text containing inline LaTeX commands

    Returns:
        Text suitable for the docx writer
    """
    for pattern, replacement in DOCX_COMMAND_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    return text


def search_root_for(graph: ContentGraph, search_directory: str) -> str | None:
    """
    Express a profile search directory as a graph-relative folder.

    Args:
        graph: Content graph
        search_directory: Absolute or graph-relative folder (may be blank)

    Returns:
        Graph-relative folder, or None when unrestricted or outside the graph
    """
    directory = search_directory.strip()
    if not directory:
        return None
    path = Path(directory)
    if not path.is_absolute():
        return directory.replace("\\", "/").strip("/") or None
    if graph.root is None:
        return None
    try:
        relative = path.resolve().relative_to(graph.root)
    except ValueError:
        logger.debug(f"Search directory {directory} is outside the vault; not restricting")
        return None
    return relative.as_posix() if relative.parts else None


class LinkAndCodeRewriter:
    """Rewrites embeds and annotated fences; driven to a fixpoint by rewrite()."""

    def __init__(self, graph: ContentGraph, cache: DocumentCache | None = None):
        """
        Initialize rewriter.

        Args:
            graph: Content graph for link resolution and embedded documents
            cache: Read-through document cache (shared with the expander)
        """
        self.graph = graph
        self.cache = cache if cache is not None else DocumentCache()

    async def rewrite(
        self,
        text: str,
        profile: Profile,
        source_path: str,
        output_format: OutputFormat | None = None,
        max_iterations: int = MAX_REWRITE_ITERATIONS,
    ) -> str:
        """
        Apply rewrite_once until the text stops changing.

        Args:
            text: Markdown text
            profile: Active profile (search directory, image scale)
            source_path: Document the text belongs to
            output_format: Target format (defaults to the profile's)
            max_iterations: Iteration cap

        Returns:
            Rewritten text
        """
        for iteration in range(1, max_iterations + 1):
            rewritten = await self.rewrite_once(text, profile, source_path, output_format)
            if rewritten == text:
                logger.debug(f"Rewrite converged after {iteration} pass(es)")
                return rewritten
            text = rewritten
        logger.debug(f"Rewrite stopped at the {max_iterations} iteration cap")
        return text

    async def rewrite_once(
        self,
        text: str,
        profile: Profile,
        source_path: str,
        output_format: OutputFormat | None = None,
    ) -> str:
        """
        Single left-to-right rewrite pass.

        Args:
            text: Markdown text
            profile: Active profile
            source_path: Document the text belongs to
            output_format: Target format (defaults to the profile's)

        Returns:
            Rewritten text
        """
        return await self._rewrite(
            text, profile, source_path, output_format or profile.output_format, frozenset({source_path})
        )

    async def unwrap_valid_wikilinks(self, text: str, source_path: str) -> str:
        """
        Replace resolvable [[target|alias]] links by their display text.

        Args:
            text: Markdown text
            source_path: Document the text belongs to

        Returns:
            Text with resolvable wikilinks unwrapped; others unchanged
        """
        resolver = LinkResolver(self.graph)
        pieces: list[str] = []
        cursor = 0
        for match in WIKILINK_PATTERN.finditer(text):
            ref = LinkReference.parse(match.group(1))
            if ref is None or await resolver.resolve(ref, source_path) is None:
                continue
            pieces.append(text[cursor : match.start()])
            pieces.append(ref.display_text)
            cursor = match.end()
        pieces.append(text[cursor:])
        return "".join(pieces)

    async def _rewrite(
        self,
        text: str,
        profile: Profile,
        source_path: str,
        output_format: OutputFormat,
        visited: frozenset[str],
    ) -> str:
        resolver = LinkResolver(self.graph, search_root_for(self.graph, profile.search_directory))
        pieces: list[str] = []
        cursor = 0

        for match in REWRITE_PATTERN.finditer(text):
            prefix = quote_prefix(text, match.start())
            if match.group(1) is not None:
                replacement = await self._rewrite_embed(
                    match, prefix, resolver, profile, source_path, output_format, visited
                )
            else:
                replacement = self._rewrite_fence(match, prefix, output_format)

            if replacement is None:
                continue
            new_text, covers_prefix = replacement
            start = match.start() - len(prefix) if covers_prefix else match.start()
            pieces.append(text[cursor:start])
            pieces.append(new_text)
            cursor = match.end()

        if cursor == 0:
            return text
        pieces.append(text[cursor:])
        return "".join(pieces)

    async def _rewrite_embed(
        self,
        match: re.Match,
        prefix: str,
        resolver: LinkResolver,
        profile: Profile,
        source_path: str,
        output_format: OutputFormat,
        visited: frozenset[str],
    ) -> tuple[str, bool] | None:
        ref = LinkReference.parse(match.group(1))
        if ref is None:
            return None
        document = await resolver.resolve(ref, source_path)
        if document is None:
            return None

        label = (match.group(2) or "").strip() or None
        caption = match.group(3) if match.group(3) is not None else ref.alias

        if document.is_markdown:
            embed = EmbedMarkdownDocument(
                original=match.group(0),
                blockquote_prefix=prefix,
                reference=ref,
                document=document,
                label=label,
                caption=caption,
            )
            return await self._render_markdown_embed(embed, profile, output_format, visited)

        embed = EmbedImage(
            original=match.group(0),
            blockquote_prefix=prefix,
            reference=ref,
            document=document,
            label=label,
            caption=caption,
        )
        return self._render_image(embed, profile), False

    def _render_image(self, embed: EmbedImage, profile: Profile) -> str:
        target = format_link_target(embed.document.id)
        scale = profile.image_scale.strip()

        if embed.quoted:
            # Numbered floats are not allowed inside quotes; "\ " keeps it inline
            attributes = f"{{{scale}}}" if scale else ""
            return f"![{embed.caption or ''}]({target}){attributes}\\ "

        label = normalize_figure_label(embed.label) if embed.label else None
        caption = embed.caption
        if label and not (caption and caption.strip()):
            # pandoc-crossref needs a non-empty caption to number a figure
            caption = " "
        attributes = " ".join(part for part in (f"#{label}" if label else "", scale) if part)
        return f"![{caption or ''}]({target})" + (f"{{{attributes}}}" if attributes else "")

    async def _render_markdown_embed(
        self,
        embed: EmbedMarkdownDocument,
        profile: Profile,
        output_format: OutputFormat,
        visited: frozenset[str],
    ) -> tuple[str, bool]:
        document = embed.document
        content: str | None = None
        if document.id in visited:
            logger.warning(f"Cycle detected while rewriting embed of {document.id}")
        else:
            try:
                raw = await self.cache.read(self.graph, document.id)
                content = extract_section(raw, embed.reference)
            except DocumentReadError as e:
                logger.warning(f"Could not read embedded document {document.id}: {e.message}")

        if content is None:
            return self._fallback_link(embed, document), False

        rewritten = await self._rewrite(
            content, profile, document.id, output_format, visited | {document.id}
        )
        if embed.quoted and rewritten:
            return apply_quote_prefix(rewritten, embed.blockquote_prefix), True
        return rewritten, False

    @staticmethod
    def _fallback_link(embed: EmbedMarkdownDocument, document: Document) -> str:
        text = embed.caption or embed.reference.alias or document.stem
        return f"[{text}]({format_link_target(document.id)})"

    def _rewrite_fence(
        self, match: re.Match, prefix: str, output_format: OutputFormat
    ) -> tuple[str, bool] | None:
        fence = FencedCode(
            original=match.group(0),
            blockquote_prefix=prefix,
            language=match.group(4),
            attributes=match.group(5),
            body=match.group(6),
        )
        if fence.language is None and fence.attributes is None:
            return None
        if output_format is OutputFormat.DOCX:
            # listings is LaTeX only; the docx writer renders fences natively
            return None
        return self._render_listing(fence), fence.quoted

    @staticmethod
    def _render_listing(fence: FencedCode) -> str:
        options: list[str] = []
        language = normalize_listing_language(fence.language)
        if language:
            options.append(f"language={language}")
        if fence.attributes:
            label = LISTING_LABEL_PATTERN.search(fence.attributes)
            if label:
                options.append(f"label={{lst:{label.group(1)}}}")
            caption = LISTING_CAPTION_PATTERN.search(fence.attributes)
            if caption:
                options.append(f"caption={{{escape_latex(caption.group(1))}}}")

        body_lines = fence.body.split("\n")
        # Text before the closing fence on its own line (quote markers / indentation)
        tail = body_lines.pop()
        if tail.strip(" \t>"):
            body_lines.append(tail)
        if fence.quoted:
            body_lines = [_strip_quote(line, fence.blockquote_prefix) for line in body_lines]

        begin = r"\begin{lstlisting}" + (f"[{','.join(options)}]" if options else "")
        listing = "\n".join([begin, *body_lines, r"\end{lstlisting}"])
        if fence.quoted:
            return apply_quote_prefix(listing, fence.blockquote_prefix)
        return listing


def _strip_quote(line: str, prefix: str) -> str:
    if line.startswith(prefix):
        return line[len(prefix) :]
    bare = prefix.rstrip()
    if line.startswith(bare):
        return line[len(bare) :].lstrip(" ")
    return line
