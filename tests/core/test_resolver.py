"""
Tests for link resolution fallbacks.
"""

import pytest

from mdtex.core.resolver import LinkResolver
from mdtex.models.link import LinkReference


@pytest.fixture
def resolver_graph(make_graph):
    """Graph whose native resolver only knows exact relative paths."""
    return make_graph(
        {
            "index.md": "",
            "Projects/Alpha/Plan.md": "",
            "Archive/Plan.md": "",
            "assets/Diagram.PNG": "",
            "assets/other/diagram.png": "",
        }
    )


class TestLinkResolver:
    """Tests for LinkResolver."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_native_resolution_first(self, resolver_graph):
        """Test the graph's resolver wins when it finds a match."""
        resolver = LinkResolver(resolver_graph)

        doc = await resolver.resolve(LinkReference.parse("Plan"), "Archive/notes.md")

        assert doc.id == "Archive/Plan.md"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_case_insensitive_file_name(self, resolver_graph):
        """Test file names match regardless of case."""
        resolver = LinkResolver(resolver_graph)

        doc = await resolver.resolve(LinkReference.parse("diagram.png"), "index.md")

        assert doc.id == "assets/Diagram.PNG"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_partial_path(self, resolver_graph):
        """Test partial folder paths match the tail of an id."""
        resolver = LinkResolver(resolver_graph)

        doc = await resolver.resolve(LinkReference.parse("alpha/plan"), "index.md")

        assert doc.id == "Projects/Alpha/Plan.md"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_search_root_restricts_fallback(self, resolver_graph):
        """Test the file name fallback honours the search root."""
        resolver = LinkResolver(resolver_graph, search_root="assets/other")

        doc = await resolver.resolve(LinkReference.parse("DIAGRAM.png"), "index.md")

        assert doc.id == "assets/other/diagram.png"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unresolved_returns_none(self, resolver_graph):
        """Test misses are not errors."""
        resolver = LinkResolver(resolver_graph)

        assert await resolver.resolve(LinkReference.parse("nothing"), "index.md") is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_resolve_raw(self, resolver_graph):
        """Test raw strings are parsed before resolution."""
        resolver = LinkResolver(resolver_graph)

        doc = await resolver.resolve_raw("Plan#Goals|the plan", "Archive/x.md")

        assert doc.id == "Archive/Plan.md"
        assert await resolver.resolve_raw("|alias", "index.md") is None
