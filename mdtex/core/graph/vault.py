"""
Filesystem-backed content graph.

Treats a directory tree as a vault: every file is a document whose id is
its POSIX path relative to the vault root. Link resolution follows the
usual note-app rules: relative to the linking note, then vault-absolute,
then the shortest path whose tail matches the link.
"""

import asyncio
import os
from pathlib import Path, PurePosixPath

from mdtex.core.graph.base import ContentGraph
from mdtex.utils.exceptions import DocumentReadError, NotFoundError
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

IGNORED_DIRECTORIES = {".git", ".obsidian", ".trash", "node_modules"}


def normalize_link_path(reference: str) -> str:
    """
    Normalise a link path to POSIX form without leading "./" or "/".

    Args:
        reference: Raw link path

    Returns:
        Normalised path (may be empty)
    """
    path = reference.strip().replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path.lstrip("/")


def link_candidates(reference: str) -> list[str]:
    """
    Paths a link may refer to: as written, plus ".md" when it has no suffix.

    Args:
        reference: Normalised link path

    Returns:
        Candidate document paths
    """
    if not reference:
        return []
    if PurePosixPath(reference).suffix:
        return [reference]
    return [f"{reference}.md", reference]


class FileSystemGraph(ContentGraph):
    """Content graph over a directory tree."""

    def __init__(self, root: str | Path):
        """
        Initialize filesystem graph.

        Args:
            root: Vault root directory

        Raises:
            NotFoundError: If root is not a directory
        """
        root_path = Path(root).expanduser().resolve()
        if not root_path.is_dir():
            raise NotFoundError(f"Vault root not found: {root_path}", {"root": str(root)})
        self._root = root_path

    @property
    def root(self) -> Path:
        return self._root

    def locate(self, doc_id: str) -> Path:
        return self._root.joinpath(*PurePosixPath(doc_id).parts)

    def to_document_id(self, path: str | Path) -> str | None:
        """
        Convert a filesystem path into a document id.

        Args:
            path: Absolute path, or path relative to the vault root

        Returns:
            Document id, or None if the path lies outside the vault
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self._root / candidate
        try:
            relative = candidate.resolve().relative_to(self._root)
        except ValueError:
            return None
        return relative.as_posix()

    async def has_document(self, doc_id: str) -> bool:
        return self.locate(doc_id).is_file()

    async def resolve_link(self, reference: str, base_path: str) -> str | None:
        link = normalize_link_path(reference)
        candidates = link_candidates(link)
        if not candidates:
            return None

        base_dir = PurePosixPath(base_path).parent
        for candidate in candidates:
            # Relative to the linking note, then vault-absolute
            for joined in (base_dir / candidate, PurePosixPath(candidate)):
                doc_id = self.to_document_id(joined.as_posix())
                if doc_id and await self.has_document(doc_id):
                    return doc_id

        documents = await self.list_documents()
        for candidate in candidates:
            matches = [
                doc_id
                for doc_id in documents
                if doc_id == candidate or doc_id.endswith(f"/{candidate}")
            ]
            if matches:
                return min(matches, key=lambda d: (d.count("/"), len(d), d))
        return None

    async def read_document(self, doc_id: str) -> str:
        path = self.locate(doc_id)
        if self.to_document_id(path) is None:
            raise DocumentReadError(f"Document outside vault: {doc_id}", {"path": str(path)})
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentReadError(
                f"Failed to read document: {doc_id}", {"path": str(path), "error": str(e)}
            ) from e

    async def list_documents(self, search_root: str | None = None) -> list[str]:
        start = self._root
        if search_root:
            start = Path(search_root)
            if not start.is_absolute():
                start = self._root / normalize_link_path(search_root)
            if not start.is_dir():
                logger.debug(f"Search root does not exist: {start}")
                return []
        return await asyncio.to_thread(self._walk, start)

    def _walk(self, start: Path) -> list[str]:
        found: list[str] = []
        for dirpath, dirnames, filenames in os.walk(start):
            dirnames[:] = [d for d in dirnames if d not in IGNORED_DIRECTORIES]
            for filename in filenames:
                doc_id = self.to_document_id(Path(dirpath) / filename)
                if doc_id:
                    found.append(doc_id)
        return sorted(found)
