"""Lint-fix hooks."""

from mdtex.core.lint.base import LintFixer
from mdtex.core.lint.markdownlint import (
    MarkdownlintFixer,
    detect_markdownlint_binary,
    split_front_matter,
)

__all__ = ["LintFixer", "MarkdownlintFixer", "detect_markdownlint_binary", "split_front_matter"]
