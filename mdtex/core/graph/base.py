"""
Base interface for content graphs.

A content graph is the host's collection of notes and attachments. The
pipeline only consumes it: resolve a link, read a document, list documents.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class ContentGraph(ABC):
    """Abstract base class for content graph implementations."""

    @abstractmethod
    async def resolve_link(self, reference: str, base_path: str) -> str | None:
        """
        Resolve a link path the way the host's own link index would.

        Args:
            reference: Link target path (no alias/heading/block suffix)
            base_path: Document the link appears in

        Returns:
            Document id, or None if nothing matches
        """
        pass

    @abstractmethod
    async def read_document(self, doc_id: str) -> str:
        """
        Read a document's text.

        Args:
            doc_id: Document identifier

        Returns:
            Document text

        Raises:
            DocumentReadError: If the document cannot be read
        """
        pass

    @abstractmethod
    async def list_documents(self, search_root: str | None = None) -> list[str]:
        """
        List document ids, optionally restricted to a folder.

        Args:
            search_root: Graph-relative folder to restrict the listing to

        Returns:
            Sorted list of document ids
        """
        pass

    async def has_document(self, doc_id: str) -> bool:
        """
        Check whether an exact document id exists.

        Args:
            doc_id: Document identifier

        Returns:
            True if the document exists
        """
        return doc_id in await self.list_documents()

    def locate(self, doc_id: str) -> Path | None:
        """
        Filesystem location of a document, when the graph is disk-backed.

        Args:
            doc_id: Document identifier

        Returns:
            Absolute path or None
        """
        return None

    @property
    def root(self) -> Path | None:
        """Filesystem root of the graph, when disk-backed."""
        return None
