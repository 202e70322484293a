"""
Abstract base class for the lint-fix hook run before compilation.
"""

from abc import ABC, abstractmethod


class LintFixer(ABC):
    """Rewrites a Markdown file in place to fix lint findings."""

    @abstractmethod
    async def fix(self, path: str) -> None:
        """
        Apply automatic fixes to a file.

        Args:
            path: Absolute path of the Markdown file

        Raises:
            LintError: If the linter cannot be located or run
        """
        pass
