"""Merges generated frontmatter with an existing block."""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from ..stores.batch_file import MARKER_PATTERN
from .block import FieldEntry, MetadataBlock, dedupe_entries, parse_block
from .constants import DELIMITER, MAX_KEYWORDS, RECOGNIZED_FIELDS, is_delimiter

_H1_PATTERN = re.compile(r"^#[ \t]+(.+?)[ \t#]*$")


def find_h1_title(body: str | None) -> Optional[str]:
    """Return the first level-1 heading outside fenced code, if any."""
    in_code = False
    for line in (body or "").splitlines():
        stripped = line.strip()
        if stripped.startswith("```"):
            in_code = not in_code
            continue
        if in_code:
            continue
        match = _H1_PATTERN.match(stripped)
        if match:
            return match.group(1).strip()
    return None


class MetadataMerger:
    """Combines a candidate block from the model with the block already on the page.

    Recognised fields come from the candidate when it sets them and fall back to
    the existing values otherwise. Every other existing field is carried over
    verbatim after them. `merge` never raises: text without any field marker is
    returned unchanged so the caller can decide to skip the document.
    """

    def __init__(self, recognized_fields: Sequence[str] = RECOGNIZED_FIELDS) -> None:
        self.recognized_fields = tuple(recognized_fields)
        self.logger = get_logger("frontmatter.merger")

    def clean(self, generated_text: str | None) -> str:
        """Strip echoed file markers, code fences and delimiters from a completion."""
        lines = [
            line
            for line in (generated_text or "").replace("\r\n", "\n").split("\n")
            if not MARKER_PATTERN.match(line.strip())
        ]
        lines = _trim_blank(lines)
        if lines and lines[0].strip().startswith("```"):
            lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            lines = _trim_blank(lines)

        if lines and is_delimiter(lines[0]):
            lines = lines[1:]
            for index, line in enumerate(lines):
                if is_delimiter(line):
                    lines = lines[:index]
                    break
        elif lines and is_delimiter(lines[-1]):
            lines = lines[:-1]
        return "\n".join(_trim_blank(lines))

    def parse(self, text: str | None) -> MetadataBlock:
        return parse_block(self.clean(text))

    def is_structured(self, generated_text: str | None) -> bool:
        """Return True when the completion sets at least one recognised field."""
        return any(
            entry.name in self.recognized_fields for entry in self.parse(generated_text).entries
        )

    def merge(
        self,
        existing_block: str | None,
        generated_text: str | None,
        h1_title: str | None = None,
    ) -> str:
        candidate = self.parse(generated_text)
        if not any(entry.name in self.recognized_fields for entry in candidate.entries):
            self.logger.debug("Generated metadata sets no recognised field; passing it through unchanged")
            return generated_text or ""

        candidate_entries = [_cap_keywords(entry) for entry in dedupe_entries(candidate.entries)]
        if existing_block is None:
            preamble = candidate.preamble
            entries = self._combine([], candidate_entries)
        else:
            existing = parse_block(existing_block)
            preamble = existing.preamble
            entries = self._combine(dedupe_entries(existing.entries), candidate_entries)

        entries = self._backfill_title(entries, h1_title)
        block = MetadataBlock(entries=tuple(entries), preamble=preamble)
        return f"{DELIMITER}\n{block.render()}\n{DELIMITER}"

    def _combine(
        self, existing: List[FieldEntry], candidate: List[FieldEntry]
    ) -> List[FieldEntry]:
        existing_by_name: Dict[str, FieldEntry] = {entry.name: entry for entry in existing}
        candidate_by_name: Dict[str, FieldEntry] = {
            entry.name: entry
            for entry in candidate
            if entry.name in self.recognized_fields and not entry.is_empty()
        }

        order = [entry.name for entry in existing if entry.name in self.recognized_fields]
        order.extend(name for name in candidate_by_name if name not in existing_by_name)

        merged = [candidate_by_name.get(name) or existing_by_name[name] for name in order]
        passthrough = [entry for entry in existing if entry.name not in self.recognized_fields]

        dropped = [
            entry.name
            for entry in candidate
            if entry.name not in self.recognized_fields and entry.name not in existing_by_name
        ]
        if dropped:
            self.logger.debug("Ignoring fields introduced by the model: %s", ", ".join(dropped))
        return merged + passthrough

    @staticmethod
    def _backfill_title(entries: List[FieldEntry], h1_title: str | None) -> List[FieldEntry]:
        title = next((entry for entry in entries if entry.name == "title"), None)
        if (title is not None and not title.is_empty()) or not h1_title:
            return entries
        remaining = [entry for entry in entries if entry is not title]
        return [FieldEntry.from_value("title", h1_title), *remaining]


def _cap_keywords(entry: FieldEntry) -> FieldEntry:
    if entry.name != "keywords":
        return entry
    value = entry.value()
    if isinstance(value, list) and len(value) > MAX_KEYWORDS:
        return FieldEntry.from_value("keywords", value[:MAX_KEYWORDS])
    return entry


def _trim_blank(lines: List[str]) -> List[str]:
    start = 0
    end = len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return lines[start:end]


__all__ = ["MetadataMerger", "find_h1_title"]
