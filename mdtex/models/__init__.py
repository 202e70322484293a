"""
Data models for MdTex.

Core models:
- Profile, ProfileState, Settings, OutputFormat: conversion configuration
- LinkReference, Document: wikilink targets and resolved graph documents
- ExpansionContext, DocumentCache: transclusion state
- EmbedImage, EmbedMarkdownDocument, FencedCode: rewrite matches
- BuildPaths, BuildInvocation, ProcessResult: compiler invocation
- RasterizedMermaid: mermaid fences rendered to images
- LabelOverrides, ComposedPreamble: preamble composition
- Diagnostic, ConversionResult, ConversionStatus: conversion outcome
"""

from mdtex.models.build import (
    BuildInvocation,
    BuildPaths,
    ComposedPreamble,
    ConversionResult,
    ConversionStatus,
    Diagnostic,
    LabelOverrides,
    ProcessResult,
    RasterizedMermaid,
)
from mdtex.models.expansion import DocumentCache, ExpansionContext
from mdtex.models.link import Document, LinkReference
from mdtex.models.profile import (
    DEFAULT_PROFILE_NAME,
    OutputFormat,
    Profile,
    ProfileState,
    Settings,
)
from mdtex.models.rewrite import (
    EmbedImage,
    EmbedMarkdownDocument,
    FencedCode,
    MatchKind,
    RewriteMatch,
)

__all__ = [
    # Configuration models
    "Profile",
    "ProfileState",
    "Settings",
    "OutputFormat",
    "DEFAULT_PROFILE_NAME",
    # Graph models
    "LinkReference",
    "Document",
    # Expansion models
    "ExpansionContext",
    "DocumentCache",
    # Rewrite models
    "MatchKind",
    "RewriteMatch",
    "EmbedImage",
    "EmbedMarkdownDocument",
    "FencedCode",
    # Build models
    "BuildPaths",
    "BuildInvocation",
    "ProcessResult",
    "LabelOverrides",
    "ComposedPreamble",
    "RasterizedMermaid",
    "Diagnostic",
    "ConversionStatus",
    "ConversionResult",
]
