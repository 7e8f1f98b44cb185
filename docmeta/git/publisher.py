"""Publishes generated frontmatter as a pull request or as review suggestions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..config import GitHubConfig
from ..frontmatter.ranges import ReplacementRangeResolver
from ..http import PermanentUpstreamError
from ..logging import get_logger
from ..models import BatchSection, ReviewComment, TreeEntry
from .github import GitHubClient


class PublishError(RuntimeError):
    """Raised when a publish flow has nothing valid to submit."""


@dataclass
class PublishOutcome:
    """Result of a publish flow."""

    mode: str
    status: str
    paths: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    url: Optional[str] = None


class Publisher:
    """Turns generated blocks into a tree-based commit + PR, or into a PR review."""

    def __init__(
        self,
        client: GitHubClient,
        config: GitHubConfig,
        *,
        resolver: ReplacementRangeResolver | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.resolver = resolver or ReplacementRangeResolver()
        self.logger = get_logger("git.publisher")

    def publish_pr(self, sections: Sequence[BatchSection]) -> PublishOutcome:
        """Commit rewritten pages onto the head branch and open a PR against the base branch."""
        owner, repo = self._coordinates()
        head_ref = f"heads/{self.config.head_branch}"

        base_sha = self.client.get_ref(owner, repo, f"heads/{self.config.base_branch}")
        branch_sha = self.client.create_branch(owner, repo, head_ref, base_sha)

        entries: List[TreeEntry] = []
        unchanged: List[str] = []
        for section in sections:
            current = self.client.get_file_content(
                owner, repo, section.path, ref=self.config.head_branch
            )
            updated = self.resolver.resolve_for_full_rewrite(current, section.text)
            if updated == current:
                self.logger.info("Metadata for %s is already up to date", section.path)
                unchanged.append(section.path)
                continue
            blob_sha = self.client.create_blob(owner, repo, updated)
            entries.append(TreeEntry(path=section.path, sha=blob_sha))
            self.logger.debug("Created blob %s for %s", blob_sha, section.path)

        if not entries:
            return PublishOutcome(mode="pull_request", status="unchanged", skipped=unchanged)

        tree_sha = self.client.create_tree(owner, repo, branch_sha, entries)
        commit_sha = self.client.create_commit(
            owner, repo, tree_sha, branch_sha, message=self.config.commit_message
        )
        self.client.update_ref(owner, repo, head_ref, commit_sha)

        url: Optional[str] = None
        try:
            pr = self.client.create_pull_request(
                owner,
                repo,
                self.config.head_branch,
                self.config.base_branch,
                title=self.config.pr_title,
            )
        except PermanentUpstreamError as exc:
            # 422 means a PR for this head branch is already open; the new commit lands on it.
            if exc.status != 422:
                raise
            self.logger.info("A pull request for %s is already open", self.config.head_branch)
        else:
            url = _as_url(pr)
            self.logger.info("PR created successfully: %s", url)

        return PublishOutcome(
            mode="pull_request",
            status="created",
            paths=[entry.path for entry in entries],
            skipped=unchanged,
            url=url,
        )

    def publish_review(self, sections: Sequence[BatchSection], pr_id: int | str) -> PublishOutcome:
        """Post one review holding a suggestion comment per generated block."""
        owner, repo = self._coordinates()
        files = self.client.list_pull_request_files(owner, repo, pr_id)
        by_name: Dict[str, Dict[str, Any]] = {
            item["filename"]: item
            for item in files
            if isinstance(item, dict) and isinstance(item.get("filename"), str)
        }

        comments: List[ReviewComment] = []
        skipped: List[str] = []
        for section in sections:
            target = by_name.get(section.path)
            if target is None:
                self.logger.warning("Target file %s not found in PR, skipping", section.path)
                skipped.append(section.path)
                continue
            raw_url = target.get("raw_url")
            if isinstance(raw_url, str) and raw_url:
                content = self.client.get_file_content_by_url(raw_url)
            else:
                content = self.client.get_file_content(owner, repo, section.path)
            suggestion = self.resolver.resolve_for_suggestion(content, section.text)
            comments.append(
                ReviewComment(
                    path=section.path,
                    start_line=suggestion.start_line,
                    end_line=suggestion.end_line,
                    replacement_text=suggestion.replacement_text,
                )
            )

        if not comments:
            raise PublishError("No valid files to review")

        review = self.client.create_review(
            owner, repo, pr_id, comments, body=self.config.review_body
        )
        url = _as_url(review)
        self.logger.info("Review created successfully: %s", url)
        return PublishOutcome(
            mode="review",
            status="created",
            paths=[comment.path for comment in comments],
            skipped=skipped,
            url=url,
        )

    def _coordinates(self) -> tuple[str, str]:
        if not self.config.owner or not self.config.repo:
            raise PublishError("GitHub owner and repo must be configured before publishing")
        return self.config.owner, self.config.repo


def _as_url(payload: Any) -> Optional[str]:
    if isinstance(payload, dict):
        url = payload.get("html_url")
        if isinstance(url, str):
            return url
    return None


__all__ = ["PublishError", "PublishOutcome", "Publisher"]
