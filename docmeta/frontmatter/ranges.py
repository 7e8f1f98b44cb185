"""Computes where a final frontmatter block lands in a document."""

from __future__ import annotations

from dataclasses import dataclass

from .detector import FrontmatterDetector


@dataclass(frozen=True)
class SuggestionRange:
    """A 1-indexed, inclusive line range and the text that replaces it."""

    start_line: int
    end_line: int
    replacement_text: str


class ReplacementRangeResolver:
    """Places a final block either by rewriting the file or as a line-ranged suggestion."""

    def __init__(self, detector: FrontmatterDetector | None = None) -> None:
        self.detector = detector or FrontmatterDetector()

    def resolve_for_full_rewrite(self, raw_text: str, final_block: str) -> str:
        frontmatter = self.detector.detect(raw_text)
        if frontmatter.present:
            return final_block + raw_text[frontmatter.end_offset :]
        return f"{final_block}\n{raw_text}"

    def resolve_for_suggestion(self, raw_text: str, final_block: str) -> SuggestionRange:
        frontmatter = self.detector.detect(raw_text)
        if frontmatter.present:
            return SuggestionRange(
                start_line=1,
                end_line=frontmatter.closing_line,
                replacement_text=final_block,
            )
        # A single-line suggestion replaces line 1, so the original line is re-appended.
        first_line = (raw_text or "").split("\n", 1)[0]
        return SuggestionRange(
            start_line=1,
            end_line=1,
            replacement_text=f"{final_block}\n{first_line}",
        )


__all__ = ["ReplacementRangeResolver", "SuggestionRange"]
