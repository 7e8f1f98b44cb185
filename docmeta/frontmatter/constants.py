"""Shared constants for frontmatter detection and merging."""

from __future__ import annotations

DELIMITER = "---"

# Field names that mark a leading block as frontmatter.
MARKER_FIELDS: tuple[str, ...] = ("title", "description", "keywords")

# Fields the generator owns; everything else in a block is passed through.
RECOGNIZED_FIELDS: tuple[str, ...] = ("title", "description", "keywords", "faqs")

MAX_KEYWORDS = 5


def is_delimiter(line: str) -> bool:
    """Return True when the line is a bare YAML block delimiter."""
    return line.rstrip() == DELIMITER


__all__ = [
    "DELIMITER",
    "MARKER_FIELDS",
    "MAX_KEYWORDS",
    "RECOGNIZED_FIELDS",
    "is_delimiter",
]
