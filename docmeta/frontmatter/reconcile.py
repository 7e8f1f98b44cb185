"""One-call reconciliation of a document with a generated metadata block."""

from __future__ import annotations

from dataclasses import dataclass

from .complexity import ComplexityClassifier, ComplexityResult
from .detector import FrontmatterDetector
from .merger import MetadataMerger, find_h1_title
from .ranges import ReplacementRangeResolver, SuggestionRange


@dataclass(frozen=True)
class Reconciliation:
    """Everything downstream consumers need for one document."""

    had_frontmatter: bool
    structured: bool
    final_block: str
    document: str
    suggestion: SuggestionRange
    complexity: ComplexityResult


class Reconciler:
    """Runs detection, merge and range resolution against a single document."""

    def __init__(
        self,
        *,
        detector: FrontmatterDetector | None = None,
        merger: MetadataMerger | None = None,
        resolver: ReplacementRangeResolver | None = None,
        classifier: ComplexityClassifier | None = None,
    ) -> None:
        self.detector = detector or FrontmatterDetector()
        self.merger = merger or MetadataMerger()
        self.resolver = resolver or ReplacementRangeResolver(self.detector)
        self.classifier = classifier or ComplexityClassifier()

    def reconcile(self, raw_text: str, generated_text: str) -> Reconciliation:
        frontmatter = self.detector.detect(raw_text)
        final_block = self.merger.merge(
            frontmatter.block,
            generated_text,
            find_h1_title(frontmatter.body),
        )
        return Reconciliation(
            had_frontmatter=frontmatter.present,
            structured=self.merger.is_structured(generated_text),
            final_block=final_block,
            document=self.resolver.resolve_for_full_rewrite(raw_text, final_block),
            suggestion=self.resolver.resolve_for_suggestion(raw_text, final_block),
            complexity=self.classifier.classify(frontmatter.body),
        )


__all__ = ["Reconciler", "Reconciliation"]
