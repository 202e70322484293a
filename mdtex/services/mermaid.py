"""
Mermaid rasterisation.

Renders ```mermaid fences to PNG with the mermaid CLI (mmdc) so diagrams
survive LaTeX and docx output. Each fence is replaced by an image directive
pointing into a temporary directory; the caller owns that directory and
removes it when the run ends. A fence that fails to render is left as is.
"""

import asyncio
import re
import shutil
import tempfile
from pathlib import Path

from mdtex.core.process.base import ProcessRunner
from mdtex.models.build import RasterizedMermaid
from mdtex.utils.exceptions import ProcessLaunchError
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_MERMAID_CLI = "mmdc"
RENDER_SCALE = "2"
BACKGROUND = "white"
MERMAID_CLASS = ".mermaid"

# fence, body, then an optional {attributes}[caption] on the closing line or the next one
MERMAID_BLOCK_PATTERN = re.compile(
    r"^[ \t]*(`{3,}|~{3,})mermaid[ \t]*\r?\n(.*?)\r?\n[ \t]*\1[ \t]*"
    r"(?:(?:\r?\n)?[ \t]*\{([^}\r\n]+)\}(?:\[([^\]\r\n]*)\])?)?",
    re.MULTILINE | re.DOTALL,
)


def has_mermaid_blocks(markdown: str) -> bool:
    """True when the text holds at least one mermaid fence."""
    return MERMAID_BLOCK_PATTERN.search(markdown) is not None


def build_attribute_block(attributes: str | None, image_scale: str = "") -> str:
    """
    Pandoc attribute block for a rendered diagram.

    Identifiers, classes and other tokens are kept. A width from the fence
    wins over the profile's image scale, which wins over full width.

    Args:
        attributes: Content of the {...} block after the fence, if any
        image_scale: Profile image scale, e.g. "width=0.8\\textwidth"

    Returns:
        "{...}" attribute block
    """
    tokens: list[str] = []
    width: str | None = None
    for token in (attributes or "").split():
        if token.startswith("width="):
            width = token
        else:
            tokens.append(token)

    if width is None:
        scale = image_scale.strip().strip("{}")
        if scale:
            width = scale if scale.startswith("width=") else f"width={scale}"
        else:
            width = "width=100%"
    tokens.append(width)

    if MERMAID_CLASS not in tokens:
        tokens.append(MERMAID_CLASS)
    return "{" + " ".join(tokens) + "}"


class MermaidRasterizer:
    """Replaces mermaid fences with PNG images rendered by mmdc."""

    def __init__(self, runner: ProcessRunner, cli_path: str = ""):
        """
        Initialize rasterizer.

        Args:
            runner: Process runner used to invoke the CLI
            cli_path: Configured mmdc path (empty = "mmdc" from PATH)
        """
        self.runner = runner
        self.cli_path = cli_path.strip() or DEFAULT_MERMAID_CLI

    async def rasterize(self, markdown: str, image_scale: str = "") -> RasterizedMermaid:
        """
        Render every mermaid fence.

        Args:
            markdown: Document text
            image_scale: Default width for the images

        Returns:
            RasterizedMermaid with the rewritten text and the temporary directory
        """
        matches = list(MERMAID_BLOCK_PATTERN.finditer(markdown))
        if not matches:
            return RasterizedMermaid(content=markdown)

        temp_dir = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix="mdtex-mermaid-"))
        rendered = failed = 0
        parts: list[str] = []
        last = 0

        for index, match in enumerate(matches, start=1):
            parts.append(markdown[last : match.start()])
            last = match.end()

            image = await self._render(match.group(2), temp_dir, index)
            if image is None:
                failed += 1
                parts.append(match.group(0))
                continue

            rendered += 1
            caption = (match.group(4) or "").strip()
            attributes = build_attribute_block(match.group(3), image_scale)
            parts.append(f"![{caption}](<{image.as_posix()}>){attributes}")

        parts.append(markdown[last:])
        logger.debug(f"Rendered {rendered} mermaid diagram(s), {failed} failed")
        return RasterizedMermaid(
            content="".join(parts), temp_dir=str(temp_dir), rendered=rendered, failed=failed
        )

    async def _render(self, code: str, temp_dir: Path, index: int) -> Path | None:
        source = temp_dir / f"mermaid-{index}.mmd"
        target = temp_dir / f"mermaid-{index}.png"
        await asyncio.to_thread(source.write_text, code, encoding="utf-8")

        try:
            result = await self.runner.run(
                self.cli_path,
                ["-i", str(source), "-o", str(target), "-s", RENDER_SCALE, "-b", BACKGROUND],
                cwd=str(temp_dir),
            )
        except ProcessLaunchError as e:
            logger.warning(f"Mermaid rendering unavailable, keeping code block: {e.message}")
            return None

        if not result.succeeded or not target.is_file():
            logger.warning(
                f"Mermaid rendering failed (exit code {result.exit_code}), keeping code block: "
                f"{result.stderr.strip()}"
            )
            return None
        return target


def remove_temp_dir(path: str | None) -> None:
    """Delete a rasterisation directory, logging instead of raising."""
    if not path:
        return
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return
    except OSError as e:
        logger.warning(f"Failed to remove temporary mermaid directory {path}: {e}")
