"""
Link and document models.

A LinkReference is the parsed form of the text inside [[...]] / ![[...]].
A Document is a resolved node of the content graph, identified by its
graph-relative POSIX path.
"""

from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator

MARKDOWN_EXTENSIONS = {".md"}


class LinkReference(BaseModel):
    """Parsed wikilink target: path plus optional alias, heading and block id."""

    target_path: str = Field(..., min_length=1, description="Path-like link target")
    alias: str | None = Field(default=None, description="Text after '|'")
    heading: str | None = Field(default=None, description="Text after '#'")
    block_id: str | None = Field(default=None, description="Text after '^'")

    @field_validator("target_path")
    @classmethod
    def _strip_target(cls, value: str) -> str:
        return value.strip()

    @classmethod
    def parse(cls, raw: str) -> "LinkReference | None":
        """
        Parse a raw reference such as "note#Section|Shown text" or "note#^abc".

        "|" splits off the alias first, then "^" the block id, then "#" the heading.

        Args:
            raw: Text between the double brackets

        Returns:
            LinkReference, or None when the target path is empty
        """
        path_and_fragment, _, alias = raw.partition("|")
        path_and_heading, _, block_id = path_and_fragment.partition("^")
        path, _, heading = path_and_heading.partition("#")

        if not path.strip():
            return None

        return cls(
            target_path=path,
            alias=alias.strip() or None,
            heading=heading.strip() or None,
            block_id=block_id.strip() or None,
        )

    @property
    def has_section(self) -> bool:
        """True when a heading or block id narrows the target."""
        return bool(self.heading or self.block_id)

    @property
    def display_text(self) -> str:
        """Text a reader would see for this link."""
        return self.alias or self.heading or self.target_path


class Document(BaseModel):
    """Document resolved from the content graph."""

    id: str = Field(..., min_length=1, description="Graph-relative POSIX path")
    content_hash: str | None = Field(default=None, description="Optional stable content hash")

    @property
    def path(self) -> PurePosixPath:
        """Document path as a PurePosixPath."""
        return PurePosixPath(self.id)

    @property
    def name(self) -> str:
        """File name including extension."""
        return self.path.name

    @property
    def stem(self) -> str:
        """File name without extension."""
        return self.path.stem

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot."""
        return self.path.suffix.lower()

    @property
    def is_markdown(self) -> bool:
        """True for text documents that can be transcluded."""
        return self.extension in MARKDOWN_EXTENSIONS
