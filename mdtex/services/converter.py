"""
Conversion pipeline.

note text -> transclusion -> mermaid rendering (opt-in) -> wikilink unwrapping
-> fixpoint rewrite -> preamble -> pandoc invocation -> process -> diagnostics.

Every run owns its temporary files (named with a run id). The callout Lua
filter is always removed; the preamble and intermediate document are removed
on failure, and on success when the profile asks for it. Rendered mermaid
images are removed with their directory. Cancellation kills
pandoc (see AsyncSubprocessRunner) and still runs the cleanup.
"""

import asyncio
import os
import time
from pathlib import Path
from typing import Any

import yaml

from mdtex.core.graph.base import ContentGraph
from mdtex.core.lint.base import LintFixer
from mdtex.core.lint.markdownlint import MarkdownlintFixer
from mdtex.core.process.base import ProcessRunner
from mdtex.models.build import BuildPaths, ConversionResult, ConversionStatus
from mdtex.models.expansion import DocumentCache, ExpansionContext
from mdtex.models.profile import OutputFormat, Profile, Settings
from mdtex.presets import CALLOUT_LUA_FILTER
from mdtex.services.command_builder import build_pandoc_command, parse_draft_flag
from mdtex.services.diagnostics import DiagnosticMapper
from mdtex.services.mermaid import MermaidRasterizer, remove_temp_dir
from mdtex.services.preamble import PreambleComposer
from mdtex.services.rewriter import (
    LinkAndCodeRewriter,
    convert_tex_commands_for_docx,
    strip_mermaid_language,
)
from mdtex.services.transclusion import TransclusionExpander
from mdtex.utils.exceptions import (
    ConfigurationError,
    MdTexError,
    ProcessLaunchError,
    ValidationError,
)
from mdtex.utils.id_generator import (
    generate_intermediate_name,
    generate_lua_filter_name,
    generate_preamble_name,
    generate_run_id,
    safe_stem,
)
from mdtex.utils.logger import developer_log, get_logger, process_output_sink

logger = get_logger(__name__)

FRONT_MATTER_PREFIX = "---"
DRAFT_LIST_VALUES = {"draft", "true", "1", "yes"}


def _enabled(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() not in ("false", "0")


def detect_draft_in_front_matter(markdown: str) -> bool:
    """
    Check YAML front matter for a draft request.

    Recognised forms: "mdtex: draft", "mdtex.draft: true", a nested
    "mdtex:" mapping with "draft", or a "mdtex:" list containing "- draft".

    Args:
        markdown: Note text

    Returns:
        True when draft mode is requested
    """
    if not markdown.startswith(FRONT_MATTER_PREFIX):
        return False
    _, _, rest = markdown.partition("\n")
    block, separator, _ = rest.partition(f"\n{FRONT_MATTER_PREFIX}")
    if not separator:
        return False

    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as e:
        logger.debug(f"Ignoring unparsable front matter: {e}")
        return False
    if not isinstance(data, dict):
        return False

    for key, value in data.items():
        key = str(key).strip().lower()
        if key == "mdtex.draft":
            return _enabled(value)
        if key != "mdtex" or value is None:
            continue
        if isinstance(value, dict):
            for inner_key, inner_value in value.items():
                if str(inner_key).strip().lower() == "draft":
                    return _enabled(inner_value)
            return False
        if isinstance(value, list):
            return any(str(item).strip().lower() in DRAFT_LIST_VALUES for item in value)
        return _enabled(value)
    return False


def resolve_resource_path(profile: Profile, vault_root: Path | None, working_dir: str) -> str:
    """
    Build the --resource-path value.

    The search directory (absolute, or relative to the vault) comes first,
    then the vault root so graph-relative image paths resolve, then the
    working directory.

    Args:
        profile: Active profile
        vault_root: Filesystem root of the graph, if any
        working_dir: Directory pandoc runs in

    Returns:
        Entries joined with os.pathsep
    """
    entries: list[str] = []
    configured = profile.search_directory.strip()
    if configured:
        path = Path(configured)
        if not path.is_absolute() and vault_root is not None:
            path = vault_root / path
        entries.append(str(path))
    for extra in (str(vault_root) if vault_root is not None else "", working_dir):
        if extra and extra not in entries:
            entries.append(extra)
    return os.pathsep.join(entries)


class ConvertService:
    """
    Orchestrates one note conversion from text to compiled output.

    Failures of the external compiler are reported through
    ConversionResult.status instead of being raised.
    """

    def __init__(
        self,
        graph: ContentGraph,
        runner: ProcessRunner,
        settings: Settings | None = None,
        lint_fixer: LintFixer | None = None,
    ):
        """
        Initialize conversion service.

        Args:
            graph: Content graph the notes live in
            runner: Process runner used for pandoc
            settings: Profiles and global toggles
            lint_fixer: Lint hook (defaults to markdownlint when enabled in settings)
        """
        self.graph = graph
        self.runner = runner
        self.settings = settings or Settings()
        self.lint_fixer = lint_fixer
        self.preamble_composer = PreambleComposer()
        self.diagnostic_mapper = DiagnosticMapper()

    async def convert_note(
        self,
        note_path: str,
        profile: Profile | None = None,
        output_format: OutputFormat | str | None = None,
    ) -> ConversionResult:
        """
        Read a note from the graph and convert it.

        Args:
            note_path: Graph id of a Markdown note
            profile: Profile to use (active profile when omitted)
            output_format: Target format (profile's format when omitted)

        Returns:
            ConversionResult

        Raises:
            ValidationError: If the note is not a Markdown file
            DocumentReadError: If the note cannot be read
        """
        if not note_path.lower().endswith(".md"):
            raise ValidationError(f"Not a Markdown note: {note_path}", {"note_path": note_path})
        text = await self.graph.read_document(note_path)
        return await self.convert(text, profile, output_format, note_path=note_path)

    async def convert(
        self,
        note_text: str,
        profile: Profile | None = None,
        output_format: OutputFormat | str | None = None,
        note_path: str = "note.md",
    ) -> ConversionResult:
        """
        Convert note text.

        Args:
            note_text: Markdown source
            profile: Profile to use (active profile when omitted)
            output_format: Target format (profile's format when omitted)
            note_path: Graph id of the note (resolution base and output name)

        Returns:
            ConversionResult with output path, invocation and diagnostics
        """
        start = time.time()
        profile = profile or self.settings.get_active()
        output_format = OutputFormat(output_format or profile.output_format)
        run_id = generate_run_id()

        vault_root = self.graph.root
        located = self.graph.locate(note_path)
        source_dir = located.parent if located is not None else None

        try:
            output_dir = self._output_directory(profile, vault_root, source_dir)
        except ConfigurationError as e:
            logger.warning(e.message)
            return ConversionResult(
                status=ConversionStatus.INVALID_CONFIGURATION,
                message=e.message,
                processing_time_ms=(time.time() - start) * 1000,
            )

        working_dir = source_dir or output_dir
        stem = safe_stem(note_path)
        output_path = output_dir / f"{stem}{output_format.extension}"
        header_path = output_dir / generate_preamble_name(stem, run_id)
        intermediate_path: Path | None = None
        lua_filter_path: Path | None = None
        mermaid_dir: str | None = None
        succeeded = False

        self._log(f"Converting {note_path} to {output_format.value} (run {run_id})")

        try:
            extras, draft_flag = parse_draft_flag(profile.pandoc_extra_args)
            draft = draft_flag or detect_draft_in_front_matter(note_text)

            context = ExpansionContext.model_construct(
                source_path=note_path,
                visited=frozenset({note_path}),
                cache=DocumentCache({note_path: note_text}),
                warnings=[],
            )
            expander = TransclusionExpander(self.graph)
            rewriter = LinkAndCodeRewriter(self.graph, context.cache)

            content = await expander.expand_in_context(note_text, context)
            if self.settings.enable_experimental_mermaid:
                rasterized = await MermaidRasterizer(
                    self.runner, self.settings.mermaid_cli_path
                ).rasterize(content, profile.image_scale)
                content = rasterized.content
                mermaid_dir = rasterized.temp_dir
            # Fences that were not rendered compile as plain code
            content = strip_mermaid_language(content)
            content = await rewriter.unwrap_valid_wikilinks(content, note_path)
            content = await rewriter.rewrite(content, profile, note_path, output_format)
            if output_format is OutputFormat.DOCX and profile.enable_advanced_tex_commands:
                content = convert_tex_commands_for_docx(content)

            preamble = self.preamble_composer.compose_for_profile(profile, draft=draft)
            await asyncio.to_thread(header_path.write_text, f"{preamble.text}\n", encoding="utf-8")

            use_stdin = True
            if self.settings.enable_markdownlint_fix and source_dir is not None:
                intermediate_path = source_dir / generate_intermediate_name(stem, run_id)
                await asyncio.to_thread(intermediate_path.write_text, content, encoding="utf-8")
                await self._run_lint(intermediate_path, str(vault_root or source_dir))
                use_stdin = False

            lua_filters: list[str] = []
            if output_format in (OutputFormat.PDF, OutputFormat.LATEX):
                lua_filter_path = Path(working_dir) / generate_lua_filter_name(run_id)
                await asyncio.to_thread(lua_filter_path.write_text, CALLOUT_LUA_FILTER, encoding="utf-8")
                lua_filters.append(str(lua_filter_path))
            docx_filter = self._docx_lua_filter(profile, output_format)
            if docx_filter:
                lua_filters.append(docx_filter)

            paths = BuildPaths(
                output_path=str(output_path),
                working_dir=str(working_dir),
                input_path=str(intermediate_path) if intermediate_path else None,
                header_path=str(header_path),
                resource_path=resolve_resource_path(profile, vault_root, str(working_dir)),
                use_stdin=use_stdin,
            )
            invocation = build_pandoc_command(profile, output_format, paths, extras, lua_filters)
            logger.debug(f"Invoking {invocation.command} {' '.join(invocation.args)}")

            try:
                result = await self.runner.run(
                    invocation.command,
                    invocation.args,
                    cwd=str(working_dir),
                    env=dict(os.environ),
                    stdin=content if use_stdin else None,
                    on_stdout=process_output_sink(logger, "pandoc stdout"),
                    on_stderr=process_output_sink(logger, "pandoc stderr"),
                )
            except ProcessLaunchError as e:
                logger.error(f"Could not launch pandoc: {e.message}")
                return ConversionResult(
                    status=ConversionStatus.LAUNCH_FAILED,
                    invocation=invocation,
                    message=e.message,
                    warnings=list(context.warnings),
                    processing_time_ms=(time.time() - start) * 1000,
                )

            if not result.succeeded:
                diagnostics = self.diagnostic_mapper.parse(result.stderr, preamble.line_count)
                logger.error(
                    f"pandoc exited with code {result.exit_code} ({len(diagnostics)} diagnostic(s))"
                )
                return ConversionResult(
                    status=ConversionStatus.COMPILER_FAILED,
                    invocation=invocation,
                    diagnostics=diagnostics,
                    exit_code=result.exit_code,
                    stderr=result.stderr,
                    message=f"pandoc exited with code {result.exit_code}",
                    warnings=list(context.warnings),
                    processing_time_ms=(time.time() - start) * 1000,
                )

            succeeded = True
            return ConversionResult(
                status=ConversionStatus.COMPLETED,
                output_path=str(output_path),
                invocation=invocation,
                exit_code=result.exit_code,
                stderr=result.stderr,
                warnings=list(context.warnings),
                processing_time_ms=(time.time() - start) * 1000,
            )
        finally:
            self._cleanup(lua_filter_path)
            remove_temp_dir(mermaid_dir)
            if not succeeded or profile.delete_intermediate_files:
                self._cleanup(header_path, intermediate_path)
            self._log(
                f"Convert {output_format.value} {'completed' if succeeded else 'failed'} "
                f"in {(time.time() - start) * 1000:.1f}ms"
            )

    @staticmethod
    def _output_directory(profile: Profile, vault_root: Path | None, source_dir: Path | None) -> Path:
        output_dir = Path(
            profile.output_directory.strip() or vault_root or source_dir or Path.cwd()
        ).expanduser()
        if not output_dir.is_dir():
            raise ConfigurationError(
                f"Output directory does not exist: {output_dir}", {"output_directory": str(output_dir)}
            )
        return output_dir

    async def _run_lint(self, path: Path, cwd: str) -> None:
        fixer = self.lint_fixer or MarkdownlintFixer(
            self.runner, self.settings.markdownlint_cli2_path, cwd=cwd
        )
        try:
            await fixer.fix(str(path))
        except MdTexError as e:
            logger.warning(f"Lint fix failed, continuing without it: {e.message}")

    @staticmethod
    def _docx_lua_filter(profile: Profile, output_format: OutputFormat) -> str | None:
        if output_format is not OutputFormat.DOCX or not profile.enable_advanced_tex_commands:
            return None
        configured = profile.lua_filter_path.strip()
        if configured and Path(configured).is_file():
            return configured
        return None

    @staticmethod
    def _cleanup(*paths: Path | None) -> None:
        for path in paths:
            if path is None:
                continue
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Failed to delete temporary file {path}: {e}")

    def _log(self, message: str) -> None:
        developer_log(logger, message, self.settings.suppress_developer_logs)
