"""
Tests for mermaid rasterisation.

Test Organization:
1. Attribute blocks
2. Rendering through the process runner
3. Failure handling and temporary directory cleanup
"""

from pathlib import Path

import pytest

from mdtex.models.build import ProcessResult
from mdtex.services.mermaid import (
    MermaidRasterizer,
    build_attribute_block,
    has_mermaid_blocks,
    remove_temp_dir,
)
from mdtex.utils.exceptions import ProcessLaunchError

DIAGRAM = "Before\n\n```mermaid\ngraph TD\n  A-->B\n```\n\nAfter\n"


def write_png(command, args, cwd):
    Path(args[args.index("-o") + 1]).write_bytes(b"\x89PNG")


class TestAttributeBlock:
    """Tests for image attributes of rendered diagrams."""

    @pytest.mark.unit
    def test_defaults_to_full_width(self):
        assert build_attribute_block(None) == "{width=100% .mermaid}"

    @pytest.mark.unit
    def test_profile_scale_used_without_width(self):
        assert build_attribute_block("#fig:flow", "width=0.8\\textwidth") == (
            "{#fig:flow width=0.8\\textwidth .mermaid}"
        )

    @pytest.mark.unit
    def test_fence_width_wins(self):
        assert build_attribute_block("#fig:a width=50% .mermaid", "width=0.8\\textwidth") == (
            "{#fig:a .mermaid width=50%}"
        )

    @pytest.mark.unit
    def test_detection(self):
        assert has_mermaid_blocks(DIAGRAM) is True
        assert has_mermaid_blocks("```python\nx = 1\n```\n") is False


class TestRasterize:
    """Tests for rendering fences with mmdc."""

    @pytest.mark.asyncio
    async def test_no_fences_runs_nothing(self, runner):
        result = await MermaidRasterizer(runner).rasterize("plain text\n")

        assert result.content == "plain text\n"
        assert result.temp_dir is None
        assert runner.calls == []

    @pytest.mark.asyncio
    async def test_fence_replaced_by_image(self, make_runner):
        runner = make_runner(on_run=write_png)

        result = await MermaidRasterizer(runner).rasterize(DIAGRAM)

        try:
            temp_dir = Path(result.temp_dir)
            png = (temp_dir / "mermaid-1.png").as_posix()
            assert result.rendered == 1
            assert result.content == f"Before\n\n![](<{png}>){{width=100% .mermaid}}\n\nAfter\n"
            assert (temp_dir / "mermaid-1.mmd").read_text(encoding="utf-8") == "graph TD\n  A-->B"
            call = runner.calls[0]
            assert call["command"] == "mmdc"
            assert call["args"][:2] == ["-i", str(temp_dir / "mermaid-1.mmd")]
            assert call["cwd"] == str(temp_dir)
        finally:
            remove_temp_dir(result.temp_dir)

    @pytest.mark.asyncio
    async def test_attributes_and_caption_absorbed(self, make_runner):
        runner = make_runner(on_run=write_png)
        markdown = "~~~mermaid\nsequenceDiagram\n~~~\n{#fig:seq}[Message flow]\nNext\n"

        result = await MermaidRasterizer(runner, "/opt/bin/mmdc").rasterize(
            markdown, "width=0.5\\textwidth"
        )

        try:
            assert result.content.startswith("![Message flow](<")
            assert result.content.endswith("){#fig:seq width=0.5\\textwidth .mermaid}\nNext\n")
            assert runner.calls[0]["command"] == "/opt/bin/mmdc"
        finally:
            remove_temp_dir(result.temp_dir)

    @pytest.mark.asyncio
    async def test_each_fence_rendered_in_order(self, make_runner):
        runner = make_runner(on_run=write_png)
        markdown = "```mermaid\nA\n```\ntext\n```mermaid\nB\n```\n"

        result = await MermaidRasterizer(runner).rasterize(markdown)

        try:
            assert result.rendered == 2
            assert result.content.index("mermaid-1.png") < result.content.index("mermaid-2.png")
            assert "text" in result.content
        finally:
            remove_temp_dir(result.temp_dir)


class TestRasterizeFailures:
    """Tests for fences that cannot be rendered."""

    @pytest.mark.asyncio
    async def test_non_zero_exit_keeps_block(self, make_runner):
        runner = make_runner(result=ProcessResult(exit_code=1, stderr="Parse error"))

        result = await MermaidRasterizer(runner).rasterize(DIAGRAM)

        assert result.content == DIAGRAM
        assert result.failed == 1
        assert result.rendered == 0
        remove_temp_dir(result.temp_dir)
        assert not Path(result.temp_dir).exists()

    @pytest.mark.asyncio
    async def test_missing_output_keeps_block(self, runner):
        result = await MermaidRasterizer(runner).rasterize(DIAGRAM)

        assert result.content == DIAGRAM
        assert result.failed == 1
        remove_temp_dir(result.temp_dir)

    @pytest.mark.asyncio
    async def test_missing_cli_keeps_block(self, make_runner):
        runner = make_runner(error=ProcessLaunchError("Failed to start mmdc"))

        result = await MermaidRasterizer(runner).rasterize(DIAGRAM)

        assert result.content == DIAGRAM
        remove_temp_dir(result.temp_dir)

    @pytest.mark.unit
    def test_remove_temp_dir_tolerates_missing(self, tmp_path):
        remove_temp_dir(None)
        remove_temp_dir(str(tmp_path / "gone"))

        target = tmp_path / "mdtex-mermaid-x"
        target.mkdir()
        (target / "a.png").write_bytes(b"")
        remove_temp_dir(str(target))

        assert not target.exists()
