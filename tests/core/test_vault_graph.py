"""
Tests for the filesystem content graph.
"""

import pytest

from mdtex.core.graph import FileSystemGraph
from mdtex.core.graph.vault import link_candidates, normalize_link_path
from mdtex.utils.exceptions import DocumentReadError, NotFoundError


@pytest.fixture
def vault(tmp_path):
    """Vault with nested notes, an attachment and ignored folders."""
    (tmp_path / "notes" / "deep").mkdir(parents=True)
    (tmp_path / "images").mkdir()
    (tmp_path / ".obsidian").mkdir()
    (tmp_path / "index.md").write_text("index", encoding="utf-8")
    (tmp_path / "notes" / "chapter.md").write_text("chapter", encoding="utf-8")
    (tmp_path / "notes" / "deep" / "chapter.md").write_text("deep chapter", encoding="utf-8")
    (tmp_path / "notes" / "sibling.md").write_text("sibling", encoding="utf-8")
    (tmp_path / "images" / "fig.png").write_bytes(b"\x89PNG")
    (tmp_path / ".obsidian" / "workspace.md").write_text("ignored", encoding="utf-8")
    return FileSystemGraph(tmp_path)


class TestLinkPathHelpers:
    """Tests for link path normalisation."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "raw,expected",
        [("./a/b", "a/b"), ("/a/b", "a/b"), ("a\\b", "a/b"), ("  a  ", "a"), ("", "")],
    )
    def test_normalize(self, raw, expected):
        """Test separators, leading markers and whitespace."""
        assert normalize_link_path(raw) == expected

    @pytest.mark.unit
    def test_candidates(self):
        """Test .md is tried first for suffix-less links."""
        assert link_candidates("note") == ["note.md", "note"]
        assert link_candidates("fig.png") == ["fig.png"]
        assert link_candidates("") == []


class TestFileSystemGraph:
    """Tests for FileSystemGraph."""

    def test_missing_root_raises(self, tmp_path):
        """Test a non-directory root is rejected."""
        with pytest.raises(NotFoundError):
            FileSystemGraph(tmp_path / "missing")

    @pytest.mark.asyncio
    async def test_list_documents_skips_ignored_directories(self, vault):
        """Test listing walks the tree and skips app folders."""
        documents = await vault.list_documents()

        assert documents == [
            "images/fig.png",
            "index.md",
            "notes/chapter.md",
            "notes/deep/chapter.md",
            "notes/sibling.md",
        ]

    @pytest.mark.asyncio
    async def test_list_documents_with_search_root(self, vault):
        """Test listing restricted to a folder."""
        assert await vault.list_documents("notes/deep") == ["notes/deep/chapter.md"]
        assert await vault.list_documents("nowhere") == []

    @pytest.mark.asyncio
    async def test_resolve_relative_to_base(self, vault):
        """Test links resolve next to the linking note first."""
        assert await vault.resolve_link("chapter", "notes/deep/other.md") == "notes/deep/chapter.md"
        assert await vault.resolve_link("sibling", "notes/chapter.md") == "notes/sibling.md"

    @pytest.mark.asyncio
    async def test_resolve_vault_absolute(self, vault):
        """Test vault-relative paths."""
        assert await vault.resolve_link("images/fig.png", "index.md") == "images/fig.png"

    @pytest.mark.asyncio
    async def test_resolve_shortest_tail_match(self, vault):
        """Test bare names prefer the shallowest match."""
        assert await vault.resolve_link("chapter", "index.md") == "notes/chapter.md"
        assert await vault.resolve_link("fig.png", "notes/chapter.md") == "images/fig.png"

    @pytest.mark.asyncio
    async def test_resolve_miss(self, vault):
        """Test unknown links return None."""
        assert await vault.resolve_link("nothing", "index.md") is None

    @pytest.mark.asyncio
    async def test_read_document(self, vault):
        """Test documents are read as UTF-8 text."""
        assert await vault.read_document("notes/chapter.md") == "chapter"

    @pytest.mark.asyncio
    async def test_read_missing_document(self, vault):
        """Test read failures raise DocumentReadError."""
        with pytest.raises(DocumentReadError):
            await vault.read_document("missing.md")

    @pytest.mark.asyncio
    async def test_read_outside_vault_rejected(self, vault):
        """Test ids escaping the vault are refused."""
        with pytest.raises(DocumentReadError):
            await vault.read_document("../outside.md")

    @pytest.mark.asyncio
    async def test_has_document(self, vault):
        """Test exact id lookup."""
        assert await vault.has_document("index.md") is True
        assert await vault.has_document("index") is False

    def test_to_document_id(self, vault, tmp_path):
        """Test filesystem paths map to ids."""
        assert vault.to_document_id(tmp_path / "notes" / "chapter.md") == "notes/chapter.md"
        assert vault.to_document_id(tmp_path.parent) is None
