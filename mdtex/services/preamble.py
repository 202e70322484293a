"""
Preamble composition.

The user header is stored as it would appear in YAML front matter
(header-includes: - | ...). It is cleaned into raw LaTeX, extended with the
callout environment and name overrides, and prefixed with draft / page style
snippets. The resulting line count is what DiagnosticMapper subtracts.
"""

import re
import textwrap

from mdtex.models.build import ComposedPreamble, LabelOverrides
from mdtex.models.profile import Profile
from mdtex.presets import CALLOUT_PREAMBLE
from mdtex.services.diagnostics import count_lines

PAGE_NUMBER_SNIPPET = r"\makeatletter\let\ps@plain\ps@empty\makeatother"

DRAFT_SNIPPET = "\n".join(
    [
        r"\def\isdraft{1}",
        r"\PassOptionsToPackage{draft}{graphicx}",
        r"\makeatletter\Gin@drafttrue\makeatother",
    ]
)

CALLOUT_ENVIRONMENT = "obsidiancallout"

WRAPPER_PREFIXES = ("---", "header-includes:", "- |")
BLANK_RUN_PATTERN = re.compile(r"\n{3,}")

COMMAND_ESCAPES = {
    "\\": r"\textbackslash{}",
    "{": r"\{",
    "}": r"\}",
    "^": r"\^{}",
    "~": r"\~{}",
    "#": r"\#",
    "%": r"\%",
    "&": r"\&",
    "$": r"\$",
    "_": r"\_",
}


def clean_latex_preamble(latex: str) -> str:
    """
    Strip YAML wrapper lines and comment-only lines from a header.

    Args:
        latex: Header as entered by the user

    Returns:
        Raw LaTeX with runs of blank lines collapsed
    """
    kept = []
    for line in latex.replace("\r\n", "\n").replace("\r", "\n").split("\n"):
        stripped = line.strip()
        if stripped.startswith(WRAPPER_PREFIXES) or stripped.startswith("%"):
            continue
        kept.append(line.rstrip())
    cleaned = textwrap.dedent("\n".join(kept))
    return BLANK_RUN_PATTERN.sub("\n\n", cleaned).strip()


def escape_for_latex_command(text: str) -> str:
    """Escape text for use as a \\renewcommand body."""
    return "".join(COMMAND_ESCAPES.get(char, char) for char in text)


def label_overrides_for(profile: Profile) -> LabelOverrides:
    """Name overrides configured on a profile (blank names are skipped)."""
    return LabelOverrides(
        figure_label=profile.figure_label.strip() or None,
        table_label=profile.table_label.strip() or None,
        code_label=profile.code_label.strip() or None,
        lst_prefix=profile.lst_prefix.strip() or None,
        equation_label=profile.equation_label.strip() or None,
    )


def render_label_overrides(overrides: LabelOverrides) -> str:
    """
    Render name overrides as LaTeX applied at \\begin{document}.

    Args:
        overrides: Display names to install

    Returns:
        LaTeX block, or "" when nothing is configured
    """
    commands = []
    if overrides.figure_label:
        commands.append(rf"\renewcommand{{\figurename}}{{{escape_for_latex_command(overrides.figure_label)}}}")
    if overrides.table_label:
        commands.append(rf"\renewcommand{{\tablename}}{{{escape_for_latex_command(overrides.table_label)}}}")
    if overrides.code_label:
        commands.append(
            rf"\renewcommand{{\lstlistingname}}{{{escape_for_latex_command(overrides.code_label)}}}"
        )
    if overrides.lst_prefix:
        commands.append(
            rf"\renewcommand{{\lstlistlistingname}}{{{escape_for_latex_command(overrides.lst_prefix)}}}"
        )
    if overrides.equation_label:
        commands.append(
            r"\providecommand{\equationname}{}"
            rf"\renewcommand{{\equationname}}{{{escape_for_latex_command(overrides.equation_label)}}}"
        )
    if not commands:
        return ""

    body = "\n".join(f"  {command}" for command in commands)
    return f"\\makeatletter\n\\AtBeginDocument{{\n{body}\n}}\n\\makeatother"


class PreambleComposer:
    """Builds the header file content and its line count."""

    def compose(
        self,
        user_header: str,
        label_overrides: LabelOverrides | None = None,
        *,
        include_callouts: bool = False,
        draft: bool = False,
        suppress_page_numbers: bool = False,
    ) -> ComposedPreamble:
        """
        Compose a preamble.

        Args:
            user_header: Header text from the profile
            label_overrides: Figure/table/listing/equation names
            include_callouts: Append the callout environment unless already defined
            draft: Prepend the draft snippet
            suppress_page_numbers: Prepend the empty page style snippet

        Returns:
            ComposedPreamble with text and exact line count
        """
        header = user_header or ""
        if include_callouts and CALLOUT_ENVIRONMENT not in header:
            header = f"{header.strip()}\n\n{CALLOUT_PREAMBLE}"

        sections = [
            DRAFT_SNIPPET if draft else "",
            PAGE_NUMBER_SNIPPET if suppress_page_numbers else "",
            clean_latex_preamble(header),
            render_label_overrides(label_overrides) if label_overrides else "",
        ]
        text = BLANK_RUN_PATTERN.sub("\n\n", "\n\n".join(s for s in sections if s)).strip()
        return ComposedPreamble(text=text, line_count=count_lines(text))

    def compose_for_profile(self, profile: Profile, draft: bool = False) -> ComposedPreamble:
        """
        Compose the preamble a profile asks for.

        Args:
            profile: Active profile
            draft: Draft mode requested

        Returns:
            ComposedPreamble
        """
        return self.compose(
            profile.header_includes,
            label_overrides_for(profile),
            include_callouts=True,
            draft=draft,
            suppress_page_numbers=not profile.use_page_number,
        )
