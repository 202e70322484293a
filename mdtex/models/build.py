"""
Build models: compiler invocation, process results, preamble and diagnostics.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class BuildPaths(BaseModel):
    """File locations handed to the command builder."""

    output_path: str = Field(..., description="Compiled output file")
    working_dir: str = Field(..., description="Directory pandoc runs in")
    input_path: str | None = Field(default=None, description="Input file, omitted when streamed")
    header_path: str | None = Field(default=None, description="Composed preamble file")
    resource_path: str | None = Field(default=None, description="Explicit --resource-path value")
    use_stdin: bool = Field(default=False, description="Stream the document through stdin")


class BuildInvocation(BaseModel):
    """Fully resolved compiler command and ordered argument list."""

    command: str
    args: tuple[str, ...] = Field(default_factory=tuple)

    class Config:
        """Pydantic configuration."""

        frozen = True


class ProcessResult(BaseModel):
    """Outcome of an external process run."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        """True when the process exited with status 0."""
        return self.exit_code == 0


class LabelOverrides(BaseModel):
    """Display names injected into the preamble as LaTeX command overrides."""

    figure_label: str | None = None
    table_label: str | None = None
    code_label: str | None = None
    lst_prefix: str | None = None
    equation_label: str | None = None


class ComposedPreamble(BaseModel):
    """Composed header text and its exact line count."""

    text: str
    line_count: int = Field(..., ge=0)


class Diagnostic(BaseModel):
    """Compiler-reported problem in original note coordinates."""

    line: int = Field(..., ge=1, description="1-based line in the note")
    message: str


class RasterizedMermaid(BaseModel):
    """Markdown with mermaid fences replaced by rendered images."""

    content: str
    temp_dir: str | None = Field(default=None, description="Directory holding the PNGs, owned by the run")
    rendered: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)


class ConversionStatus(str, Enum):
    """Outcome of a conversion run."""

    COMPLETED = "completed"
    COMPILER_FAILED = "compiler_failed"  # non-zero exit
    LAUNCH_FAILED = "launch_failed"  # binary missing / not executable
    INVALID_CONFIGURATION = "invalid_configuration"


class ConversionResult(BaseModel):
    """
    Result of a conversion run.

    Returned by ConvertService.convert(); failures are reported through
    status rather than raised so callers can present them.
    """

    status: ConversionStatus
    output_path: str | None = None
    invocation: BuildInvocation | None = None
    diagnostics: list[Diagnostic] = Field(default_factory=list)
    exit_code: int | None = None
    stderr: str = ""
    message: str | None = None
    warnings: list[str] = Field(default_factory=list)
    processing_time_ms: float = Field(default=0.0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def succeeded(self) -> bool:
        """True when the output was produced."""
        return self.status == ConversionStatus.COMPLETED
