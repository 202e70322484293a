"""
Expansion context for recursive transclusion.

The document cache is an explicit value threaded through the call chain
instead of a module-level singleton, so callers can inject an empty or
pre-seeded cache.
"""

from pydantic import BaseModel, Field


class DocumentCache:
    """
    Read-through memo of document id -> raw text.

    Writes are idempotent: the same id always maps to the same text, so
    concurrent sibling reads may race and still converge.
    """

    def __init__(self, seed: dict[str, str] | None = None):
        self._texts: dict[str, str] = dict(seed or {})

    def get(self, doc_id: str) -> str | None:
        return self._texts.get(doc_id)

    def put(self, doc_id: str, text: str) -> None:
        self._texts[doc_id] = text

    async def read(self, graph, doc_id: str) -> str:
        """
        Return cached text or read it from the graph.

        Args:
            graph: ContentGraph providing read_document()
            doc_id: Document identifier

        Returns:
            Raw document text

        Raises:
            DocumentReadError: If the graph cannot read the document
        """
        cached = self._texts.get(doc_id)
        if cached is not None:
            return cached
        text = await graph.read_document(doc_id)
        self._texts[doc_id] = text
        return text

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._texts

    def __len__(self) -> int:
        return len(self._texts)


class ExpansionContext(BaseModel):
    """
    State of one active expansion chain.

    visited holds the documents currently being expanded; a document id
    never appears twice in one chain. cache and warnings are shared by
    reference with every child context.
    """

    source_path: str
    visited: frozenset[str] = Field(default_factory=frozenset)
    cache: DocumentCache = Field(default_factory=DocumentCache)
    warnings: list[str] = Field(default_factory=list)

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True

    def child(self, doc_id: str) -> "ExpansionContext":
        """
        Context for expanding doc_id one level deeper.

        Args:
            doc_id: Document about to be expanded

        Returns:
            New context sharing cache and warnings, with doc_id visited
        """
        return ExpansionContext.model_construct(
            source_path=doc_id,
            visited=self.visited | {doc_id},
            cache=self.cache,
            warnings=self.warnings,
        )
