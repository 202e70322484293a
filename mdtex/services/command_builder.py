"""
Pandoc invocation builder.

build_pandoc_command is pure: it reads its inputs, never mutates them and
performs no I/O, so identical inputs always give an identical
BuildInvocation. Argument order is significant to pandoc and its filters.
"""

from collections.abc import Iterable

from mdtex.models.build import BuildInvocation, BuildPaths
from mdtex.models.profile import OutputFormat, Profile

DOCX_INPUT_FORMAT = "markdown+raw_html+fenced_divs+raw_attribute"
DEFAULT_INPUT_FORMAT = "markdown"
DEFAULT_PANDOC = "pandoc"
DEFAULT_CROSSREF = "pandoc-crossref"
HIGHLIGHT_STYLE = "tango"
REFERENCE_DOC_FLAG = "--reference-doc"


def parse_draft_flag(extra_args: str) -> tuple[list[str], bool]:
    """
    Split extra arguments and pull out the draft flag.

    "--draft" enables draft mode; "--draft=<value>" enables it unless the
    value is 0 or false. The flag itself is never passed to pandoc.

    Args:
        extra_args: Whitespace-separated extra pandoc arguments

    Returns:
        Tuple of (remaining arguments, draft requested)
    """
    remaining: list[str] = []
    draft = False
    for arg in extra_args.split():
        if arg == "--draft":
            draft = True
        elif arg.startswith("--draft="):
            draft = arg.split("=", 1)[1].lower() not in ("0", "false")
        else:
            remaining.append(arg)
    return remaining, draft


def get_input_format_args(output_format: OutputFormat) -> list[str]:
    """Input format flag; docx gets the richer extension set."""
    if output_format is OutputFormat.DOCX:
        return ["-f", DOCX_INPUT_FORMAT]
    return ["-f", DEFAULT_INPUT_FORMAT]


def filter_pandoc_extras_for_format(extras: Iterable[str], output_format: OutputFormat) -> list[str]:
    """
    Drop extra arguments meaningless for the target format.

    Args:
        extras: Extra pandoc arguments
        output_format: Target format

    Returns:
        Filtered copy (--reference-doc only survives for docx, together
        with its value when given as a separate argument)
    """
    if output_format is OutputFormat.DOCX:
        return list(extras)

    filtered: list[str] = []
    skip_value = False
    for arg in extras:
        if skip_value:
            skip_value = False
            continue
        if arg == REFERENCE_DOC_FLAG:
            skip_value = True
            continue
        if arg.startswith(f"{REFERENCE_DOC_FLAG}="):
            continue
        filtered.append(arg)
    return filtered


def _target_args(profile: Profile, output_format: OutputFormat) -> list[str]:
    if output_format is OutputFormat.PDF:
        args = [f"--pdf-engine={profile.latex_engine}"]
    elif output_format is OutputFormat.LATEX:
        args = ["-t", "latex"]
    else:
        return ["-t", "docx"]
    if profile.is_beamer:
        args += ["-t", "beamer"]
    return args


def _label_metadata(profile: Profile) -> list[str]:
    metadata = [
        f"figureTitle={profile.figure_label}",
        f"figPrefix={profile.fig_prefix}",
        f"tableTitle={profile.table_label}",
        f"tblPrefix={profile.tbl_prefix}",
        f"listingTitle={profile.code_label}",
        f"listing-title={profile.code_label}",
        f"lstPrefix={profile.lst_prefix}",
        f"eqnPrefix={profile.eqn_prefix}",
    ]
    args: list[str] = []
    for entry in metadata:
        args += ["-M", entry]
    return args


def _layout_variables(profile: Profile) -> list[str]:
    args: list[str] = []
    if profile.use_margin_size:
        args += ["-V", f"geometry:margin={profile.margin_size}"]
    if not profile.use_page_number:
        args += ["-V", "pagestyle=empty"]
    if profile.image_scale.strip():
        args += ["-V", f"graphics={profile.image_scale}"]
    if profile.font_size.strip():
        args += ["-V", f"fontsize={profile.font_size}"]
    if profile.document_class.strip():
        args += ["-V", f"documentclass={profile.document_class}"]
    if profile.document_class_options.strip():
        args += ["-V", f"classoption={profile.document_class_options}"]
    return args


def build_pandoc_command(
    profile: Profile,
    output_format: OutputFormat,
    paths: BuildPaths,
    extra_args: Iterable[str] = (),
    lua_filters: Iterable[str] = (),
) -> BuildInvocation:
    """
    Build the pandoc command and ordered argument list.

    Args:
        profile: Conversion profile
        output_format: Target format
        paths: Input, output, header and resource locations
        extra_args: Pass-through pandoc arguments (draft flag already removed)
        lua_filters: Lua filter paths, in application order

    Returns:
        Immutable BuildInvocation
    """
    output_format = OutputFormat(output_format)
    args: list[str] = []

    if paths.input_path and not paths.use_stdin:
        args.append(paths.input_path)

    args += get_input_format_args(output_format)

    if paths.header_path:
        args += ["--include-in-header", paths.header_path]

    args += ["-o", paths.output_path]
    args += _target_args(profile, output_format)

    for lua_filter in lua_filters:
        if lua_filter:
            args += ["--lua-filter", lua_filter]

    args.append("--listings")

    resource_path = (paths.resource_path or profile.search_directory).strip() or paths.working_dir
    args += ["--resource-path", resource_path]

    if profile.use_pandoc_crossref:
        args += ["-F", profile.pandoc_crossref_path.strip() or DEFAULT_CROSSREF]

    args += _label_metadata(profile)
    args += _layout_variables(profile)
    args.append(f"--highlight-style={HIGHLIGHT_STYLE}")
    args += filter_pandoc_extras_for_format(extra_args, output_format)

    if profile.use_standalone:
        args.append("--standalone")

    return BuildInvocation(command=profile.pandoc_path.strip() or DEFAULT_PANDOC, args=tuple(args))
