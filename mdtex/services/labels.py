"""
Cross-reference label extraction.

Finds {#fig:...}, {#tbl:...}, {#lst:...} and {#eq:...} labels in a note,
including the attribute blocks of code fences, in order of first appearance.
"""

import re

from pydantic import BaseModel

FENCE_LABEL_PATTERN = re.compile(r"```(?:[\w-]*)?\s*(\{#(?:lst|fig|eq|tbl):[^}]+\})")
INLINE_LABEL_PATTERN = re.compile(r"\{#(?:lst|fig|eq|tbl):[A-Za-z0-9:_-]+\}")
LABEL_PATTERN = re.compile(r'\{#(lst|fig|eq|tbl):([A-Za-z0-9:_-]+)(?:\s+caption="(.*?)")?\}')


class LabelInfo(BaseModel):
    """A label usable as an @reference target."""

    label: str
    kind: str
    caption: str | None = None

    @property
    def reference(self) -> str:
        """Citation form, e.g. @fig:diagram."""
        return f"@{self.label}"


def parse_label(text: str) -> LabelInfo | None:
    """
    Parse one attribute block such as {#lst:code caption="Example"}.

    Args:
        text: Attribute block text

    Returns:
        LabelInfo, or None if it is not a label block
    """
    match = LABEL_PATTERN.search(text)
    if not match:
        return None
    kind, identifier, caption = match.groups()
    return LabelInfo(label=f"{kind}:{identifier}", kind=kind, caption=caption)


def extract_labels(text: str) -> list[LabelInfo]:
    """
    List unique labels defined in a note.

    Args:
        text: Note text

    Returns:
        Labels in order of appearance (fence labels first), without duplicates
    """
    seen: set[str] = set()
    labels: list[LabelInfo] = []
    candidates = [m.group(1) for m in FENCE_LABEL_PATTERN.finditer(text)]
    candidates += INLINE_LABEL_PATTERN.findall(text)

    for candidate in candidates:
        info = parse_label(candidate)
        if info and info.label not in seen:
            seen.add(info.label)
            labels.append(info)
    return labels
