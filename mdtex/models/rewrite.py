"""
Rewrite match models.

Transient, per-match view of the constructs the rewriter recognises:
embedded images, embedded Markdown documents and annotated code fences.
"""

from enum import Enum

from pydantic import BaseModel, Field

from mdtex.models.link import Document, LinkReference


class MatchKind(str, Enum):
    """Kinds of rewritable regions."""

    EMBED_IMAGE = "embed_image"
    EMBED_MARKDOWN_DOCUMENT = "embed_markdown_document"
    FENCED_CODE = "fenced_code"


class RewriteMatch(BaseModel):
    """Common fields of every rewritable region."""

    kind: MatchKind
    original: str = Field(..., description="Matched text, returned unchanged on fallback")
    blockquote_prefix: str = Field(default="", description="Quote markers before the match")

    @property
    def quoted(self) -> bool:
        """True when the match sits inside a block quote."""
        return bool(self.blockquote_prefix)


class EmbedImage(RewriteMatch):
    """![[file]] resolved to a non-Markdown file."""

    kind: MatchKind = MatchKind.EMBED_IMAGE
    reference: LinkReference
    document: Document
    label: str | None = None
    caption: str | None = None


class EmbedMarkdownDocument(RewriteMatch):
    """![[note]] resolved to a Markdown document."""

    kind: MatchKind = MatchKind.EMBED_MARKDOWN_DOCUMENT
    reference: LinkReference
    document: Document
    label: str | None = None
    caption: str | None = None


class FencedCode(RewriteMatch):
    """Fenced code block with a language and/or an attribute block."""

    kind: MatchKind = MatchKind.FENCED_CODE
    language: str | None = None
    attributes: str | None = None
    body: str = ""
