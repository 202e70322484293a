"""
Abstract base class for external process execution.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping

from mdtex.models.build import ProcessResult

OutputCallback = Callable[[str], None]


class ProcessRunner(ABC):
    """
    Abstract base for running external commands.

    Responsibilities:
    - Spawn the command without a shell
    - Feed optional stdin
    - Stream and accumulate stdout/stderr
    - Report the exit code
    """

    @abstractmethod
    async def run(
        self,
        command: str,
        args: list[str] | tuple[str, ...],
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        stdin: str | None = None,
        on_stdout: OutputCallback | None = None,
        on_stderr: OutputCallback | None = None,
    ) -> ProcessResult:
        """
        Run a command to completion.

        Args:
            command: Executable name or path
            args: Ordered argument list
            cwd: Working directory
            env: Environment (defaults to the current environment)
            stdin: Text written to the process's stdin
            on_stdout: Called with every decoded stdout chunk
            on_stderr: Called with every decoded stderr chunk

        Returns:
            ProcessResult with exit code and accumulated output

        Raises:
            ProcessLaunchError: If the command cannot be started
        """
        pass
