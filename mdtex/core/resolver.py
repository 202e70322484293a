"""
Link resolution against a content graph.

Resolution order (first match wins):
1. The graph's own resolver, relative to the linking document
2. Exact path lookup
3. Case-insensitive file name match, optionally restricted to a search root

A miss is not an error: callers leave the original text unchanged.
"""

from pathlib import PurePosixPath

from mdtex.core.graph.base import ContentGraph
from mdtex.core.graph.vault import link_candidates, normalize_link_path
from mdtex.models.link import Document, LinkReference
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)


class LinkResolver:
    """Resolves LinkReferences to Documents, tolerant of case and partial paths."""

    def __init__(self, graph: ContentGraph, search_root: str | None = None):
        """
        Initialize resolver.

        Args:
            graph: Content graph to resolve against
            search_root: Optional folder restricting the file name fallback
        """
        self.graph = graph
        self.search_root = search_root.strip() if search_root and search_root.strip() else None

    async def resolve(self, ref: LinkReference, source_path: str) -> Document | None:
        """
        Resolve a link reference.

        Args:
            ref: Parsed link reference
            source_path: Document containing the link

        Returns:
            Document, or None when nothing matches
        """
        doc_id = await self.graph.resolve_link(ref.target_path, source_path)
        if doc_id:
            return Document(id=doc_id)

        target = normalize_link_path(ref.target_path)
        for candidate in link_candidates(target):
            if await self.graph.has_document(candidate):
                return Document(id=candidate)

        doc_id = await self._match_file_name(target)
        if doc_id:
            return Document(id=doc_id)

        logger.debug(f"Unresolved link: {ref.target_path} (from {source_path})")
        return None

    async def resolve_raw(self, raw: str, source_path: str) -> Document | None:
        """
        Parse and resolve a raw reference string.

        Args:
            raw: Text between the double brackets
            source_path: Document containing the link

        Returns:
            Document, or None when unparseable or unresolved
        """
        ref = LinkReference.parse(raw)
        if ref is None:
            return None
        return await self.resolve(ref, source_path)

    async def _match_file_name(self, target: str) -> str | None:
        wanted = [candidate.lower() for candidate in link_candidates(target)]
        if not wanted:
            return None

        documents = await self.graph.list_documents(self.search_root)
        best: str | None = None
        for doc_id in documents:
            lowered = doc_id.lower()
            for candidate in wanted:
                if "/" in candidate:
                    hit = lowered == candidate or lowered.endswith(f"/{candidate}")
                else:
                    hit = PurePosixPath(lowered).name == candidate
                if hit and (best is None or _rank(doc_id) < _rank(best)):
                    best = doc_id
        return best


def _rank(doc_id: str) -> tuple[int, int, str]:
    return (doc_id.count("/"), len(doc_id), doc_id)
