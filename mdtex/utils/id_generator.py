"""
ID generation utilities for MdTex.

Every conversion run owns its temporary artifacts; names carry a run ID so
concurrent runs never share files:
- Runs: run_xxx
- Preamble files: <stem>.run_xxx.preamble.tex
- Intermediate documents: <stem>.run_xxx.temp.md
- Lua filters: callout-run_xxx.lua
"""

from uuid import uuid4


def generate_run_id() -> str:
    """
    Generate unique conversion run ID.

    Returns:
        ID in format "run_xxx" where xxx is 12 hex characters
    """
    return f"run_{uuid4().hex[:12]}"


def safe_stem(name: str) -> str:
    """
    Turn a note file name into a stem usable for output files.

    Args:
        name: Note path or file name

    Returns:
        Base name without the .md extension, whitespace replaced by "_"
    """
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    if base.lower().endswith(".md"):
        base = base[:-3]
    return "_".join(base.split())


def generate_preamble_name(stem: str, run_id: str) -> str:
    """Preamble file name for a run."""
    return f"{stem}.{run_id}.preamble.tex"


def generate_intermediate_name(stem: str, run_id: str) -> str:
    """Intermediate Markdown file name for a run."""
    return f"{stem}.{run_id}.temp.md"


def generate_lua_filter_name(run_id: str) -> str:
    """Callout Lua filter file name for a run."""
    return f"callout-{run_id}.lua"
