"""Detection of a leading YAML frontmatter block."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .block import parse_block
from .constants import MARKER_FIELDS, is_delimiter

_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\r?\n)+")


@dataclass(frozen=True)
class Frontmatter:
    """Outcome of frontmatter detection for one document.

    `block` is the text strictly between the two delimiter lines. `end_offset`
    points just past the closing delimiter and `closing_line` is its 1-indexed
    line number; both are zero when no frontmatter is present.
    """

    present: bool
    block: Optional[str]
    body: str
    end_offset: int = 0
    closing_line: int = 0


class FrontmatterDetector:
    """Decides whether a document starts with a frontmatter block and isolates it."""

    def detect(self, raw_text: str | None) -> Frontmatter:
        text = raw_text or ""
        lines = _iter_lines(text)

        first = next(lines, None)
        if first is None or not is_delimiter(first[2]):
            return Frontmatter(present=False, block=None, body=text)
        opening_end = len(first[2]) + 1

        for number, offset, line in lines:
            if not is_delimiter(line):
                continue
            block = text[opening_end:offset]
            if block.endswith("\n"):
                block = block[:-1]
            if not self._has_marker_fields(block):
                return Frontmatter(present=False, block=None, body=text)
            end_offset = offset + len(line)
            body = _LEADING_BLANK_LINES.sub("", text[end_offset:])
            return Frontmatter(
                present=True,
                block=block,
                body=body,
                end_offset=end_offset,
                closing_line=number,
            )

        # Opening delimiter without a closing one.
        return Frontmatter(present=False, block=None, body=text)

    def has_frontmatter(self, raw_text: str | None) -> bool:
        return self.detect(raw_text).present

    @staticmethod
    def _has_marker_fields(block: str) -> bool:
        names = set(parse_block(block).names())
        return any(name in names for name in MARKER_FIELDS)


def _iter_lines(text: str) -> Iterator[Tuple[int, int, str]]:
    """Yield `(line_number, start_offset, line)` without the trailing newline."""
    offset = 0
    for number, line in enumerate(text.split("\n"), start=1):
        yield number, offset, line
        offset += len(line) + 1


__all__ = ["Frontmatter", "FrontmatterDetector"]
