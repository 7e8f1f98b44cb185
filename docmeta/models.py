"""Core data models shared across docmeta components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from docmeta.frontmatter.detector import FrontmatterDetector


@dataclass(frozen=True)
class Document:
    """One documentation page as read for a pipeline run."""

    path: str
    raw_text: str
    body: str
    metadata_block: Optional[str] = None

    @property
    def has_metadata(self) -> bool:
        return self.metadata_block is not None

    @classmethod
    def from_text(cls, path: str, raw_text: str, detector: "FrontmatterDetector") -> "Document":
        frontmatter = detector.detect(raw_text)
        return cls(
            path=path,
            raw_text=raw_text,
            body=frontmatter.body,
            metadata_block=frontmatter.block,
        )


@dataclass(frozen=True)
class BatchSection:
    """A `(path, text)` pair read from or written to a batch working file."""

    path: str
    text: str


@dataclass(frozen=True)
class ReviewComment:
    """A line-ranged suggestion on one pull request file."""

    path: str
    start_line: int
    end_line: int
    replacement_text: str
    side: str = "RIGHT"

    @property
    def body(self) -> str:
        return f"```suggestion\n{self.replacement_text}\n```"

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"path": self.path}
        if self.start_line < self.end_line:
            payload["start_line"] = self.start_line
            payload["start_side"] = self.side
        payload["line"] = self.end_line
        payload["side"] = self.side
        payload["body"] = self.body
        return payload


@dataclass(frozen=True)
class TreeEntry:
    """A blob reference for a tree-based commit."""

    path: str
    sha: str
    mode: str = "100644"
    type: str = "blob"

    def to_payload(self) -> Dict[str, str]:
        return {"path": self.path, "mode": self.mode, "type": self.type, "sha": self.sha}


__all__ = ["BatchSection", "Document", "ReviewComment", "TreeEntry"]
