"""
Profile and settings models.

A Profile bundles everything needed to drive pandoc for one output style.
Settings is the persisted store: named profiles, the active profile name and
a few global toggles. Legacy camelCase keys are accepted as aliases so older
settings files load without a separate translation table.
"""

from enum import Enum

from pydantic import BaseModel, Field

from mdtex.presets import DEFAULT_LATEX_PREAMBLE

DEFAULT_PROFILE_NAME = "Default"


class OutputFormat(str, Enum):
    """Target formats supported by the command builder."""

    PDF = "pdf"
    LATEX = "latex"
    DOCX = "docx"

    @property
    def extension(self) -> str:
        """File extension of the compiled output."""
        return ".tex" if self is OutputFormat.LATEX else f".{self.value}"


class Profile(BaseModel):
    """
    Named conversion configuration.

    Covers compiler and filter paths, page layout, label/prefix names for
    figures, tables, listings and equations, and feature toggles.
    """

    # Tools
    pandoc_path: str = Field(default="pandoc", alias="pandocPath")
    pandoc_extra_args: str = Field(default="", alias="pandocExtraArgs")
    pandoc_crossref_path: str = Field(default="pandoc-crossref", alias="pandocCrossrefPath")
    use_pandoc_crossref: bool = Field(default=True, alias="usePandocCrossref")
    lua_filter_path: str = Field(default="tex-to-docx.lua", alias="luaFilterPath")
    latex_engine: str = Field(default="lualatex", alias="latexEngine")

    # Paths
    search_directory: str = Field(default="", alias="searchDirectory")
    output_directory: str = Field(default="", alias="outputDirectory")
    delete_intermediate_files: bool = Field(default=False, alias="deleteIntermediateFiles")

    # Preamble
    header_includes: str = Field(default=DEFAULT_LATEX_PREAMBLE, alias="headerIncludes")

    # Layout
    image_scale: str = Field(default="width=0.8\\textwidth", alias="imageScale")
    use_page_number: bool = Field(default=True, alias="usePageNumber")
    margin_size: str = Field(default="25mm", alias="marginSize")
    use_margin_size: bool = Field(default=True, alias="useMarginSize")
    font_size: str = Field(default="11pt", alias="fontSize")
    output_format: OutputFormat = Field(default=OutputFormat.PDF, alias="outputFormat")
    document_class: str = Field(default="ltjarticle", alias="documentClass")
    document_class_options: str = Field(default="", alias="documentClassOptions")

    # Labels and cross-reference prefixes
    figure_label: str = Field(default="Figure", alias="figureLabel")
    fig_prefix: str = Field(default="Fig.", alias="figPrefix")
    table_label: str = Field(default="Table", alias="tableLabel")
    tbl_prefix: str = Field(default="Table", alias="tblPrefix")
    code_label: str = Field(default="Listing", alias="codeLabel")
    lst_prefix: str = Field(default="Listing", alias="lstPrefix")
    equation_label: str = Field(default="Equation", alias="equationLabel")
    eqn_prefix: str = Field(default="Eq.", alias="eqnPrefix")

    # Toggles
    use_standalone: bool = Field(default=True, alias="useStandalone")
    enable_advanced_tex_commands: bool = Field(default=True, alias="enableAdvancedTexCommands")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    @property
    def is_beamer(self) -> bool:
        """True when the slide document class is selected."""
        return self.document_class == "beamer"


class ProfileState(BaseModel):
    """Named profiles plus the name of the active one."""

    profiles: dict[str, Profile] = Field(
        default_factory=lambda: {DEFAULT_PROFILE_NAME: Profile()},
        description="Profiles keyed by name",
    )
    active_profile: str = Field(default=DEFAULT_PROFILE_NAME, alias="activeProfile")

    class Config:
        """Pydantic configuration."""

        populate_by_name = True

    def get_active(self) -> Profile:
        """
        Get the active profile.

        Falls back to the first profile when the active name is stale.

        Returns:
            Active Profile
        """
        if self.active_profile in self.profiles:
            return self.profiles[self.active_profile]
        return next(iter(self.profiles.values()))


class Settings(ProfileState):
    """Persisted settings: profile store plus global toggles."""

    suppress_developer_logs: bool = Field(default=True, alias="suppressDeveloperLogs")
    enable_markdownlint_fix: bool = Field(default=False, alias="enableMarkdownlintFix")
    markdownlint_cli2_path: str = Field(default="", alias="markdownlintCli2Path")
    enable_experimental_mermaid: bool = Field(default=False, alias="enableExperimentalMermaid")
    mermaid_cli_path: str = Field(default="", alias="mermaidCliPath")
