"""
markdownlint-cli2 lint-fix hook.

Front matter is kept out of the linter's reach: when the file starts with a
YAML (---) or TOML (+++) block, only the body is written to a sibling
temporary file, fixed, and stitched back behind the original front matter.
"""

import asyncio
import os
import re
import shutil
from pathlib import Path

from mdtex.core.lint.base import LintFixer
from mdtex.core.process.base import ProcessRunner
from mdtex.utils.exceptions import LintError, ProcessLaunchError
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

WELL_KNOWN_LOCATIONS = [
    "/opt/homebrew/bin/markdownlint-cli2",
    "/usr/local/bin/markdownlint-cli2",
    "/opt/homebrew/bin/markdownlint-cli",
    "/usr/local/bin/markdownlint-cli",
]

EXTRA_PATH_ENTRIES = [
    "/opt/homebrew/bin",
    "/usr/local/bin",
    "/opt/homebrew/opt/node/bin",
    "/usr/local/opt/node/bin",
]

_YAML_FRONT_MATTER = re.compile(r"^(---[\t ]*\n.*?\n---[\t ]*(?:\n|$))", re.DOTALL)
_TOML_FRONT_MATTER = re.compile(r"^(\+\+\+[\t ]*\n.*?\n(?:\+\+\+|\.\.\.)[\t ]*(?:\n|$))", re.DOTALL)


def detect_markdownlint_binary(configured: str = "") -> str | None:
    """
    Locate the markdownlint CLI.

    Args:
        configured: Path from settings, tried first

    Returns:
        Executable path, or None if not found
    """
    for candidate in [configured.strip(), *WELL_KNOWN_LOCATIONS]:
        if candidate and Path(candidate).is_file():
            return candidate
    return shutil.which("markdownlint-cli2") or shutil.which("markdownlint-cli")


def split_front_matter(text: str) -> tuple[str, str]:
    """
    Split a document into (front matter, body).

    Args:
        text: Full document text

    Returns:
        Tuple of front matter (possibly empty) and body
    """
    match = _YAML_FRONT_MATTER.match(text) or _TOML_FRONT_MATTER.match(text)
    if not match:
        return "", text
    return match.group(1), text[match.end() :]


def lint_environment() -> dict[str, str]:
    """Current environment with common Node install locations on PATH."""
    env = dict(os.environ)
    env["PATH"] = os.pathsep.join([*EXTRA_PATH_ENTRIES, env.get("PATH", "")])
    return env


class MarkdownlintFixer(LintFixer):
    """Runs "markdownlint-cli2 --fix" through a ProcessRunner."""

    def __init__(self, runner: ProcessRunner, cli_path: str = "", cwd: str | None = None):
        """
        Initialize fixer.

        Args:
            runner: Process runner used to invoke the CLI
            cli_path: Configured CLI path (empty = auto-detect)
            cwd: Working directory for the CLI (vault root)
        """
        self.runner = runner
        self.cli_path = cli_path
        self.cwd = cwd

    async def fix(self, path: str) -> None:
        cli = detect_markdownlint_binary(self.cli_path)
        if not cli:
            raise LintError("markdownlint-cli2 not found; set its path in settings")

        target = Path(path)
        original = await asyncio.to_thread(target.read_text, encoding="utf-8")
        front_matter, body = split_front_matter(original)

        if not front_matter:
            await self._run(cli, target)
            return

        body_path = target.with_name(f"{target.name}.lintbody.md")
        await asyncio.to_thread(body_path.write_text, body, encoding="utf-8")
        try:
            await self._run(cli, body_path)
            fixed_body = await asyncio.to_thread(body_path.read_text, encoding="utf-8")
            await asyncio.to_thread(target.write_text, front_matter + fixed_body, encoding="utf-8")
        finally:
            body_path.unlink(missing_ok=True)

    async def _run(self, cli: str, target: Path) -> None:
        try:
            result = await self.runner.run(
                cli,
                ["--fix", str(target)],
                cwd=self.cwd or str(target.parent),
                env=lint_environment(),
            )
        except ProcessLaunchError as e:
            raise LintError(f"Failed to start markdownlint: {e.message}", e.context) from e

        # markdownlint exits 1 when findings remain after fixing; that is not a failure
        if result.exit_code not in (0, 1):
            raise LintError(
                f"markdownlint exited with code {result.exit_code}",
                {"stderr": result.stderr.strip()},
            )
        if result.stdout.strip():
            logger.debug(f"markdownlint output:\n{result.stdout}")
