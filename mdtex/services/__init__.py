"""
Services for MdTex.

Pipeline stages:
- TransclusionExpander: recursive ![[...]] expansion with cycle detection
- LinkAndCodeRewriter: fixpoint rewrite of embeds and annotated fences
- PreambleComposer: header composition with line accounting
- build_pandoc_command: pure pandoc invocation builder
- MermaidRasterizer: mermaid fences -> PNG images via mmdc
- DiagnosticMapper: stderr -> note-relative diagnostics
- ConvertService: the end-to-end conversion

Supporting services:
- profile_manager: profile reducer, migration and YAML store
- labels: cross-reference label extraction
"""

from mdtex.services.command_builder import (
    build_pandoc_command,
    filter_pandoc_extras_for_format,
    get_input_format_args,
    parse_draft_flag,
)
from mdtex.services.converter import ConvertService, detect_draft_in_front_matter
from mdtex.services.diagnostics import DiagnosticMapper, count_lines
from mdtex.services.labels import LabelInfo, extract_labels
from mdtex.services.mermaid import MermaidRasterizer
from mdtex.services.preamble import PreambleComposer, clean_latex_preamble
from mdtex.services.profile_manager import (
    AddProfile,
    ProfileStore,
    RemoveProfile,
    RenameProfile,
    SetActiveProfile,
    UpdateProfile,
    apply_event,
    migrate_settings,
)
from mdtex.services.rewriter import LinkAndCodeRewriter
from mdtex.services.transclusion import TransclusionExpander

__all__ = [
    # Pipeline
    "TransclusionExpander",
    "LinkAndCodeRewriter",
    "PreambleComposer",
    "clean_latex_preamble",
    "build_pandoc_command",
    "get_input_format_args",
    "filter_pandoc_extras_for_format",
    "parse_draft_flag",
    "DiagnosticMapper",
    "count_lines",
    "MermaidRasterizer",
    "ConvertService",
    "detect_draft_in_front_matter",
    # Profiles
    "AddProfile",
    "RemoveProfile",
    "RenameProfile",
    "SetActiveProfile",
    "UpdateProfile",
    "apply_event",
    "migrate_settings",
    "ProfileStore",
    # Labels
    "LabelInfo",
    "extract_labels",
]
