"""
Logging configuration using Loguru.

Besides the sink setup, provides the two helpers the conversion pipeline
needs: a callback that forwards pandoc output into the log line by line,
and a switch between debug and info for developer-facing progress messages.
"""

import sys
from collections.abc import Callable
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[module]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[module]}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """Configure the stderr sink and, optionally, a rotating JSON file sink."""
    logger.remove()
    logger.configure(extra={"module": "mdtex"})

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True, serialize=False)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "mdtex_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def get_logger(name: str):
    """Get a logger instance for a module."""
    return logger.bind(module=name)


def process_output_sink(log, stream: str, level: str = "DEBUG") -> Callable[[str], None]:
    """
    Build an output callback for a ProcessRunner.

    Args:
        log: Bound logger to write to
        stream: Label prefixed to every record, e.g. "pandoc stderr"
        level: Record level

    Returns:
        Callable logging each non-blank line of a chunk
    """

    def sink(chunk: str) -> None:
        for line in chunk.splitlines():
            if line.strip():
                log.log(level, f"{stream}: {line.rstrip()}")

    return sink


def developer_log(log, message: str, suppressed: bool) -> None:
    """Log progress at info, or at debug when developer logs are suppressed."""
    log.log("DEBUG" if suppressed else "INFO", message)
