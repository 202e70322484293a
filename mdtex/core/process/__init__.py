"""External process execution."""

from mdtex.core.process.base import OutputCallback, ProcessRunner
from mdtex.core.process.subprocess_runner import AsyncSubprocessRunner

__all__ = ["ProcessRunner", "AsyncSubprocessRunner", "OutputCallback"]
