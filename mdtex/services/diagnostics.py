"""
Compiler diagnostic parsing.

TeX reports the offending source line as "l.<n> <fragment>". Line numbers
count the injected preamble, so header_line_count is subtracted to map them
back onto the note; lines that land inside the preamble are dropped.
"""

import re

from mdtex.models.build import Diagnostic

LINE_REPORT_PATTERN = re.compile(r"^l\.(\d+)\s*(.*)$")
NEWLINE_PATTERN = re.compile(r"\r\n|\r|\n")

DEFAULT_MESSAGE = "LaTeX Error"


def count_lines(text: str) -> int:
    """
    Count newline-delimited lines, accepting \\n, \\r\\n and \\r.

    Args:
        text: Any text

    Returns:
        0 for empty text, otherwise number of separators + 1
    """
    if not text:
        return 0
    return len(NEWLINE_PATTERN.split(text))


class DiagnosticMapper:
    """Turns compiler stderr into Diagnostics in note coordinates."""

    def parse(self, stderr: str, header_line_count: int = 0) -> list[Diagnostic]:
        """
        Extract line reports in order of appearance.

        Args:
            stderr: Compiler error output
            header_line_count: Lines of injected preamble to subtract

        Returns:
            Diagnostics whose corrected line is positive
        """
        if not stderr:
            return []

        diagnostics: list[Diagnostic] = []
        for line in NEWLINE_PATTERN.split(stderr):
            match = LINE_REPORT_PATTERN.match(line)
            if not match:
                continue
            source_line = int(match.group(1)) - header_line_count
            if source_line <= 0:
                continue
            message = match.group(2).strip() or DEFAULT_MESSAGE
            diagnostics.append(Diagnostic(line=source_line, message=message))
        return diagnostics
