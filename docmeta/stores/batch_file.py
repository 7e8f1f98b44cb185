"""Reader and writer for the batch working-file format.

A batch file concatenates documents, each introduced by a marker line::

    --- File: src/pages/index.md ---

Anything before the first marker is ignored and the last section runs to EOF.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional

from ..models import BatchSection

MARKER_PATTERN = re.compile(r"^--- File: (.+?) ---[ \t]*\r?$")
MARKER_FMT = "--- File: {path} ---"


def parse_batch(text: str | None) -> List[BatchSection]:
    """Return the sections of a batch file in file order."""
    sections: List[BatchSection] = []
    current_path: Optional[str] = None
    current_lines: List[str] = []

    for line in (text or "").split("\n"):
        match = MARKER_PATTERN.match(line)
        if match:
            if current_path is not None:
                sections.append(_section(current_path, current_lines))
            current_path = match.group(1).strip()
            current_lines = []
        elif current_path is not None:
            current_lines.append(line)

    if current_path is not None:
        sections.append(_section(current_path, current_lines))
    return sections


def format_batch(sections: Iterable[BatchSection]) -> str:
    """Render page contents the way the fetch stages write them."""
    return "".join(
        f"\n\n{MARKER_FMT.format(path=section.path)}\n\n{section.text}" for section in sections
    )


def format_generated(sections: Iterable[BatchSection]) -> str:
    """Render generated metadata blocks, one section per document."""
    return "".join(
        f"{MARKER_FMT.format(path=section.path)}\n{section.text}\n" for section in sections
    )


def read_batch(path: Path) -> List[BatchSection]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    return parse_batch(text)


def write_batch(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def _section(path: str, lines: List[str]) -> BatchSection:
    return BatchSection(path=path, text="\n".join(lines).strip())


__all__ = [
    "MARKER_FMT",
    "MARKER_PATTERN",
    "format_batch",
    "format_generated",
    "parse_batch",
    "read_batch",
    "write_batch",
]
