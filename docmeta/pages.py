"""Selection rules for documentation pages."""

from __future__ import annotations

from pathlib import PurePosixPath

# Images and binary assets never carry frontmatter.
SKIP_EXTENSIONS = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".svg",
        ".ico",
        ".mp4",
        ".webm",
        ".mov",
        ".mp3",
        ".wav",
        ".pdf",
        ".zip",
        ".tar",
        ".gz",
        ".json",
    }
)


def skip_reason(path: str, pages_root: str) -> str | None:
    """Return why `path` is not a documentation page, or None when it is one."""
    root = pages_root.strip("/")
    if root and not path.startswith(f"{root}/"):
        return f"outside {root}"
    if path.endswith("config.md"):
        return "config file"
    suffix = PurePosixPath(path).suffix.lower()
    if suffix in SKIP_EXTENSIONS:
        return "binary/image file"
    if suffix != ".md":
        return "non-markdown file"
    return None


def is_documentation_page(path: str, pages_root: str) -> bool:
    return skip_reason(path, pages_root) is None


__all__ = ["SKIP_EXTENSIONS", "is_documentation_page", "skip_reason"]
