"""Content graph implementations."""

from mdtex.core.graph.base import ContentGraph
from mdtex.core.graph.vault import FileSystemGraph

__all__ = ["ContentGraph", "FileSystemGraph"]
