"""
Process runner backed by asyncio subprocesses.
"""

import asyncio
import codecs
import os
from collections.abc import Mapping

from mdtex.core.process.base import OutputCallback, ProcessRunner
from mdtex.models.build import ProcessResult
from mdtex.utils.exceptions import ProcessLaunchError
from mdtex.utils.logger import get_logger

logger = get_logger(__name__)

CHUNK_SIZE = 4096


class AsyncSubprocessRunner(ProcessRunner):
    """
    Runs commands with asyncio.create_subprocess_exec.

    Output is accumulated without a size bound. Cancelling the awaiting task
    kills the child process before the cancellation propagates.
    """

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

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
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=cwd,
                env=dict(env) if env is not None else dict(os.environ),
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessLaunchError(
                f"Failed to start {command}: {e}",
                {"command": command, "cwd": cwd, "error": str(e)},
            ) from e

        try:
            stdout, stderr, _ = await asyncio.gather(
                self._collect(process.stdout, on_stdout),
                self._collect(process.stderr, on_stderr),
                self._feed(process.stdin, stdin),
            )
            exit_code = await process.wait()
        except asyncio.CancelledError:
            logger.warning(f"Cancelled, killing {command} (pid {process.pid})")
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        return ProcessResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

    async def _collect(
        self, stream: asyncio.StreamReader | None, callback: OutputCallback | None
    ) -> str:
        if stream is None:
            return ""
        # Incremental decoding keeps multi-byte characters split across chunks intact
        decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        parts: list[str] = []
        while True:
            chunk = await stream.read(CHUNK_SIZE)
            text = decoder.decode(chunk, final=not chunk)
            if text:
                parts.append(text)
                if callback:
                    callback(text)
            if not chunk:
                break
        return "".join(parts)

    async def _feed(self, stream: asyncio.StreamWriter | None, text: str | None) -> None:
        if stream is None or text is None:
            return
        try:
            stream.write(text.encode(self.encoding))
            await stream.drain()
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("Process closed stdin before all input was written")
        finally:
            stream.close()
