"""
Tests for preamble composition.
"""

import pytest

from mdtex.models.build import LabelOverrides
from mdtex.models.profile import Profile
from mdtex.services.diagnostics import count_lines
from mdtex.services.preamble import (
    DRAFT_SNIPPET,
    PAGE_NUMBER_SNIPPET,
    PreambleComposer,
    clean_latex_preamble,
    escape_for_latex_command,
    label_overrides_for,
    render_label_overrides,
)


@pytest.fixture
def composer():
    return PreambleComposer()


class TestCleanLatexPreamble:
    """Tests for header cleanup."""

    @pytest.mark.unit
    def test_strips_yaml_wrapper_and_comments(self):
        header = "---\nheader-includes:\n  - |\n    % comment\n    \\usepackage{a}\n\n\n\n    \\usepackage{b}\n---\n"

        assert clean_latex_preamble(header) == "\\usepackage{a}\n\n\\usepackage{b}"

    @pytest.mark.unit
    def test_plain_latex_unchanged(self):
        assert clean_latex_preamble("\\usepackage{a}\r\n\\usepackage{b}") == "\\usepackage{a}\n\\usepackage{b}"


class TestLabelOverrides:
    """Tests for name override rendering."""

    @pytest.mark.unit
    def test_escape(self):
        assert escape_for_latex_command("A&B_1") == r"A\&B\_1"

    @pytest.mark.unit
    def test_render_all(self):
        block = render_label_overrides(label_overrides_for(Profile(figure_label="図")))

        assert block.startswith("\\makeatletter\n\\AtBeginDocument{")
        assert block.endswith("}\n\\makeatother")
        assert "\\renewcommand{\\figurename}{図}" in block
        assert "\\renewcommand{\\tablename}{Table}" in block
        assert "\\renewcommand{\\lstlistingname}{Listing}" in block
        assert "\\renewcommand{\\lstlistlistingname}{Listing}" in block
        assert "\\providecommand{\\equationname}{}\\renewcommand{\\equationname}{Equation}" in block

    @pytest.mark.unit
    def test_blank_names_skipped(self):
        overrides = label_overrides_for(Profile(figure_label=" ", table_label=""))

        assert overrides.figure_label is None
        assert "figurename" not in render_label_overrides(overrides)

    @pytest.mark.unit
    def test_nothing_configured(self):
        assert render_label_overrides(LabelOverrides()) == ""


class TestPreambleComposer:
    """Tests for PreambleComposer."""

    @pytest.mark.unit
    def test_line_count_matches_text(self, composer):
        result = composer.compose("\\usepackage{a}\n\\usepackage{b}")

        assert result.text == "\\usepackage{a}\n\\usepackage{b}"
        assert result.line_count == 2

    @pytest.mark.unit
    def test_empty_header(self, composer):
        result = composer.compose("")

        assert result.text == ""
        assert result.line_count == 0

    @pytest.mark.unit
    def test_draft_and_page_snippets_come_first(self, composer):
        result = composer.compose("\\usepackage{a}", draft=True, suppress_page_numbers=True)

        assert result.text == f"{DRAFT_SNIPPET}\n\n{PAGE_NUMBER_SNIPPET}\n\n\\usepackage{{a}}"
        assert result.line_count == count_lines(result.text) == 7

    @pytest.mark.unit
    def test_callouts_added_once(self, composer):
        with_callouts = composer.compose("\\usepackage{a}", include_callouts=True)
        already_defined = composer.compose(
            "\\newtcolorbox{obsidiancallout}[1]{}", include_callouts=True
        )

        assert "obsidiancallout" in with_callouts.text
        assert with_callouts.text.startswith("\\usepackage{a}")
        assert already_defined.text == "\\newtcolorbox{obsidiancallout}[1]{}"

    @pytest.mark.unit
    def test_overrides_follow_header(self, composer):
        result = composer.compose("\\usepackage{a}", LabelOverrides(figure_label="Abb."))

        assert result.text.startswith("\\usepackage{a}\n\n\\makeatletter")
        assert "{Abb.}" in result.text

    @pytest.mark.unit
    def test_compose_for_profile(self, composer):
        profile = Profile(header_includes="\\usepackage{x}", use_page_number=False)

        result = composer.compose_for_profile(profile, draft=False)

        assert result.text.startswith(PAGE_NUMBER_SNIPPET)
        assert "\\usepackage{x}" in result.text
        assert "obsidiancallout" in result.text
        assert "\\figurename" in result.text
        assert result.line_count == count_lines(result.text)
