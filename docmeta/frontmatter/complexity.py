"""Scores document structure to decide how many FAQs to request."""

from __future__ import annotations

import re
from dataclasses import dataclass

LOW = "low"
MEDIUM = "medium"
HIGH = "high"

FAQ_COUNTS: dict[str, int] = {LOW: 2, MEDIUM: 3, HIGH: 5}

_HEADING_PATTERN = re.compile(r"^#{1,6}(?:\s|$)", re.MULTILINE)
_FENCE_PATTERN = re.compile(r"^\s*```", re.MULTILINE)


@dataclass(frozen=True)
class ComplexityResult:
    """Tier assigned to a document body together with the raw measurements."""

    score: str
    faq_count: int
    length: int = 0
    heading_count: int = 0
    code_block_count: int = 0


class ComplexityClassifier:
    """Maps body length, heading count and fenced code blocks to a complexity tier."""

    def classify(self, body: str | None) -> ComplexityResult:
        text = body or ""
        length = len(text)
        heading_count = len(_HEADING_PATTERN.findall(text))
        code_block_count = len(_FENCE_PATTERN.findall(text)) // 2

        total = (
            self._tiered(length, high=2000, medium=800)
            + self._tiered(heading_count, high=6, medium=2)
            + self._tiered(code_block_count, high=2, medium=0)
        )
        if total >= 3:
            score = HIGH
        elif total >= 1:
            score = MEDIUM
        else:
            score = LOW

        return ComplexityResult(
            score=score,
            faq_count=FAQ_COUNTS[score],
            length=length,
            heading_count=heading_count,
            code_block_count=code_block_count,
        )

    @staticmethod
    def _tiered(value: int, *, high: int, medium: int) -> int:
        if value > high:
            return 2
        if value > medium:
            return 1
        return 0


__all__ = ["FAQ_COUNTS", "HIGH", "LOW", "MEDIUM", "ComplexityClassifier", "ComplexityResult"]
