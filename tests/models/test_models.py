"""
Tests for all model classes in MdTex.

Test Organization:
1. Link Models: LinkReference, Document
2. Profile Models: Profile, ProfileState, Settings, OutputFormat
3. Expansion Models: DocumentCache, ExpansionContext
4. Build Models: BuildInvocation, ProcessResult, Diagnostic, ConversionResult
"""

import pytest
from pydantic import ValidationError

from mdtex.models import (
    BuildInvocation,
    ComposedPreamble,
    ConversionResult,
    ConversionStatus,
    Diagnostic,
    Document,
    DocumentCache,
    ExpansionContext,
    LinkReference,
    OutputFormat,
    ProcessResult,
    Profile,
    ProfileState,
    Settings,
)
from mdtex.utils.exceptions import DocumentReadError


class TestLinkReference:
    """Tests for wikilink reference parsing."""

    @pytest.mark.unit
    def test_parse_plain_target(self):
        """Test a bare target has no alias, heading or block."""
        ref = LinkReference.parse("notes/chapter")

        assert ref.target_path == "notes/chapter"
        assert ref.alias is None
        assert ref.heading is None
        assert ref.block_id is None
        assert ref.has_section is False

    @pytest.mark.unit
    def test_parse_heading_and_alias(self):
        """Test '#' and '|' split heading and alias."""
        ref = LinkReference.parse("chapter#Results|see results")

        assert ref.target_path == "chapter"
        assert ref.heading == "Results"
        assert ref.alias == "see results"
        assert ref.display_text == "see results"

    @pytest.mark.unit
    def test_parse_block_id(self):
        """Test '#^id' yields a block id and no heading."""
        ref = LinkReference.parse("chapter#^abc123")

        assert ref.target_path == "chapter"
        assert ref.block_id == "abc123"
        assert ref.heading is None
        assert ref.has_section is True

    @pytest.mark.unit
    def test_parse_strips_target(self):
        """Test target whitespace is trimmed."""
        ref = LinkReference.parse("  chapter  |x")

        assert ref.target_path == "chapter"

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["", "   ", "|alias", "#heading"])
    def test_parse_empty_target_returns_none(self, raw):
        """Test references without a target path are rejected."""
        assert LinkReference.parse(raw) is None

    @pytest.mark.unit
    def test_empty_target_fails_validation(self):
        """Test direct construction enforces a non-empty target."""
        with pytest.raises(ValidationError):
            LinkReference(target_path="")

    @pytest.mark.unit
    def test_display_text_falls_back_to_heading_then_target(self):
        """Test display text preference order."""
        assert LinkReference.parse("chapter#Intro").display_text == "Intro"
        assert LinkReference.parse("chapter").display_text == "chapter"


class TestDocument:
    """Tests for resolved documents."""

    @pytest.mark.unit
    def test_path_properties(self):
        """Test name, stem and extension derive from the id."""
        doc = Document(id="images/My Photo.JPG")

        assert doc.name == "My Photo.JPG"
        assert doc.stem == "My Photo"
        assert doc.extension == ".jpg"
        assert doc.is_markdown is False

    @pytest.mark.unit
    def test_markdown_detection(self):
        """Test .md documents are transcludable."""
        assert Document(id="notes/a.md").is_markdown is True
        assert Document(id="notes/A.MD").is_markdown is True


class TestProfile:
    """Tests for Profile defaults and legacy aliases."""

    @pytest.mark.unit
    def test_defaults(self):
        """Test documented defaults."""
        profile = Profile()

        assert profile.pandoc_path == "pandoc"
        assert profile.latex_engine == "lualatex"
        assert profile.output_format == OutputFormat.PDF
        assert profile.image_scale == "width=0.8\\textwidth"
        assert profile.margin_size == "25mm"
        assert profile.font_size == "11pt"
        assert profile.document_class == "ltjarticle"
        assert profile.fig_prefix == "Fig."
        assert profile.eqn_prefix == "Eq."
        assert profile.use_pandoc_crossref is True
        assert profile.use_standalone is True
        assert profile.delete_intermediate_files is False
        assert profile.lua_filter_path == "tex-to-docx.lua"
        assert "\\usepackage" in profile.header_includes

    @pytest.mark.unit
    def test_accepts_camel_case_aliases(self):
        """Test legacy camelCase keys populate snake_case fields."""
        profile = Profile.model_validate(
            {"pandocPath": "/usr/bin/pandoc", "latexEngine": "xelatex", "outputFormat": "docx"}
        )

        assert profile.pandoc_path == "/usr/bin/pandoc"
        assert profile.latex_engine == "xelatex"
        assert profile.output_format == OutputFormat.DOCX

    @pytest.mark.unit
    def test_accepts_field_names(self):
        """Test snake_case names work as well."""
        profile = Profile(latex_engine="xelatex", use_page_number=False)

        assert profile.latex_engine == "xelatex"
        assert profile.use_page_number is False

    @pytest.mark.unit
    def test_unknown_keys_ignored(self):
        """Test unknown keys from older settings do not fail validation."""
        profile = Profile.model_validate({"name": "Old", "enableLatexGhost": True})

        assert profile.pandoc_path == "pandoc"

    @pytest.mark.unit
    def test_is_beamer(self):
        """Test slide class detection."""
        assert Profile(document_class="beamer").is_beamer is True
        assert Profile().is_beamer is False

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "fmt,ext", [(OutputFormat.PDF, ".pdf"), (OutputFormat.LATEX, ".tex"), (OutputFormat.DOCX, ".docx")]
    )
    def test_output_extension(self, fmt, ext):
        """Test output file extensions per format."""
        assert fmt.extension == ext


class TestProfileState:
    """Tests for the profile map."""

    @pytest.mark.unit
    def test_default_state_has_default_profile(self):
        """Test a fresh state holds one active Default profile."""
        state = ProfileState()

        assert list(state.profiles) == ["Default"]
        assert state.active_profile == "Default"
        assert state.get_active() == Profile()

    @pytest.mark.unit
    def test_get_active_falls_back_to_first(self):
        """Test a stale active name resolves to the first profile."""
        state = ProfileState(
            profiles={"A": Profile(font_size="10pt"), "B": Profile()}, active_profile="missing"
        )

        assert state.get_active().font_size == "10pt"

    @pytest.mark.unit
    def test_settings_defaults(self):
        """Test global toggles."""
        settings = Settings()

        assert settings.suppress_developer_logs is True
        assert settings.enable_markdownlint_fix is False
        assert settings.markdownlint_cli2_path == ""
        assert settings.enable_experimental_mermaid is False
        assert settings.mermaid_cli_path == ""


class TestDocumentCache:
    """Tests for the read-through cache."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reads_once(self, graph):
        """Test repeated reads hit the graph once."""
        cache = DocumentCache()

        first = await cache.read(graph, "chapter.md")
        second = await cache.read(graph, "chapter.md")

        assert first == second == "Chapter body\n"
        assert graph.reads == ["chapter.md"]
        assert "chapter.md" in cache
        assert len(cache) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_seeded_cache_skips_graph(self, graph):
        """Test pre-seeded entries are served without reading."""
        cache = DocumentCache({"chapter.md": "seeded"})

        assert await cache.read(graph, "chapter.md") == "seeded"
        assert graph.reads == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_read_failure_propagates(self, graph):
        """Test graph read errors are not cached."""
        cache = DocumentCache()

        with pytest.raises(DocumentReadError):
            await cache.read(graph, "missing.md")
        assert "missing.md" not in cache


class TestExpansionContext:
    """Tests for expansion chain state."""

    @pytest.mark.unit
    def test_child_shares_cache_and_warnings(self):
        """Test child contexts extend visited and share mutable state."""
        parent = ExpansionContext(source_path="a.md", visited=frozenset({"a.md"}))
        child = parent.child("b.md")

        assert child.source_path == "b.md"
        assert child.visited == {"a.md", "b.md"}
        assert parent.visited == {"a.md"}
        assert child.cache is parent.cache
        assert child.warnings is parent.warnings


class TestBuildModels:
    """Tests for build and result models."""

    @pytest.mark.unit
    def test_invocation_is_frozen(self):
        """Test BuildInvocation cannot be mutated."""
        invocation = BuildInvocation(command="pandoc", args=("-o", "out.pdf"))

        with pytest.raises(ValidationError):
            invocation.command = "other"

    @pytest.mark.unit
    def test_process_result_succeeded(self):
        """Test exit code interpretation."""
        assert ProcessResult(exit_code=0).succeeded is True
        assert ProcessResult(exit_code=43).succeeded is False

    @pytest.mark.unit
    def test_diagnostic_line_is_positive(self):
        """Test diagnostics use 1-based lines."""
        with pytest.raises(ValidationError):
            Diagnostic(line=0, message="x")

    @pytest.mark.unit
    def test_composed_preamble_line_count_non_negative(self):
        """Test line counts cannot be negative."""
        with pytest.raises(ValidationError):
            ComposedPreamble(text="", line_count=-1)

    @pytest.mark.unit
    def test_conversion_result_status(self):
        """Test succeeded reflects status."""
        assert ConversionResult(status=ConversionStatus.COMPLETED).succeeded is True
        assert ConversionResult(status=ConversionStatus.LAUNCH_FAILED).succeeded is False
