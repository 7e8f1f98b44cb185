"""Frontmatter detection, merging and placement."""

from .complexity import ComplexityClassifier, ComplexityResult
from .detector import Frontmatter, FrontmatterDetector
from .merger import MetadataMerger, find_h1_title
from .ranges import ReplacementRangeResolver, SuggestionRange
from .reconcile import Reconciler, Reconciliation

__all__ = [
    "ComplexityClassifier",
    "ComplexityResult",
    "Frontmatter",
    "FrontmatterDetector",
    "MetadataMerger",
    "Reconciler",
    "Reconciliation",
    "ReplacementRangeResolver",
    "SuggestionRange",
    "find_h1_title",
]
