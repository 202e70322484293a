"""
Tests for cross-reference label extraction.
"""

import pytest

from mdtex.services.labels import extract_labels, parse_label


class TestParseLabel:
    """Tests for parse_label."""

    @pytest.mark.unit
    def test_with_caption(self):
        info = parse_label('{#lst:code caption="Example"}')

        assert info.label == "lst:code"
        assert info.kind == "lst"
        assert info.caption == "Example"
        assert info.reference == "@lst:code"

    @pytest.mark.unit
    def test_without_caption(self):
        info = parse_label("{#fig:diagram}")

        assert info.label == "fig:diagram"
        assert info.caption is None

    @pytest.mark.unit
    def test_not_a_label(self):
        assert parse_label("{#sec:intro}") is None
        assert parse_label("plain") is None


class TestExtractLabels:
    """Tests for extract_labels."""

    @pytest.mark.unit
    def test_fence_labels_first_then_inline(self):
        text = (
            "![[a.png]]{#fig:a}\n"
            "$$ E = mc^2 $$ {#eq:energy}\n"
            '```python {#lst:main caption="Main loop"}\ncode\n```\n'
            "| t |\n\n: Table {#tbl:t}\n"
        )

        labels = extract_labels(text)

        assert [info.label for info in labels] == ["lst:main", "fig:a", "eq:energy", "tbl:t"]
        assert labels[0].caption == "Main loop"

    @pytest.mark.unit
    def test_duplicates_removed(self):
        text = "{#fig:a} again {#fig:a}"

        assert [info.label for info in extract_labels(text)] == ["fig:a"]

    @pytest.mark.unit
    def test_no_labels(self):
        assert extract_labels("nothing here") == []
