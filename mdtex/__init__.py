"""
MdTex - note-to-document conversion pipeline.

Expands transclusions, rewrites embeds and annotated code fences into
pandoc/LaTeX markup, composes the LaTeX preamble, builds the pandoc
invocation and maps compiler diagnostics back to note lines.
"""

__version__ = "1.0.0"
