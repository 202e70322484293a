"""Utility modules for MdTex."""

from mdtex.utils.exceptions import (
    ConfigurationError,
    DocumentReadError,
    LintError,
    MdTexError,
    NotFoundError,
    ProcessError,
    ProcessLaunchError,
    ValidationError,
)
from mdtex.utils.id_generator import (
    generate_intermediate_name,
    generate_lua_filter_name,
    generate_preamble_name,
    generate_run_id,
    safe_stem,
)
from mdtex.utils.logger import get_logger, setup_logging

__all__ = [
    # Logging
    "get_logger",
    "setup_logging",
    # ID Generators
    "generate_run_id",
    "generate_preamble_name",
    "generate_intermediate_name",
    "generate_lua_filter_name",
    "safe_stem",
    # Exceptions
    "MdTexError",
    "ValidationError",
    "NotFoundError",
    "DocumentReadError",
    "ConfigurationError",
    "ProcessError",
    "ProcessLaunchError",
    "LintError",
]
