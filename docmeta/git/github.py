"""Thin client for the GitHub REST endpoints the pipeline needs."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence
from urllib.parse import quote

from ..http import (
    HttpRequest,
    PermanentUpstreamError,
    Transport,
    json_request,
    raise_for_status,
    urllib_transport,
)
from ..logging import get_logger
from ..models import ReviewComment, TreeEntry


class GitHubClient:
    """Wraps repository contents, git data, pull request and review endpoints."""

    JSON_ACCEPT = "application/vnd.github+json"
    RAW_ACCEPT = "application/vnd.github.v3.raw"

    def __init__(
        self,
        token: str | None,
        *,
        api_url: str = "https://api.github.com",
        transport: Transport | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport or urllib_transport
        self.logger = get_logger("git.github")

    # ------------------------------------------------------------------
    # Contents

    def get_file_content(
        self, owner: str, repo: str, path: str, *, ref: str | None = None
    ) -> str:
        url = self._repo_url(owner, repo, f"contents/{quote(path)}")
        if ref:
            url = f"{url}?ref={quote(ref)}"
        response = self._send("GET", url, accept=self.RAW_ACCEPT, context=f"Get file content {path}")
        return response.text()

    def get_file_content_by_url(self, url: str) -> str:
        response = self._send("GET", url, accept=self.RAW_ACCEPT, context="Get file by content URL")
        return response.text()

    def list_directory(self, owner: str, repo: str, path: str) -> List[Dict[str, Any]]:
        url = self._repo_url(owner, repo, f"contents/{quote(path)}")
        items = self._send("GET", url, context=f"List directory {path}").json()
        if not isinstance(items, list):
            raise PermanentUpstreamError(None, f"Expected a directory listing for {path}")
        return items

    # ------------------------------------------------------------------
    # Git data

    def get_ref(self, owner: str, repo: str, ref: str) -> str:
        """Return the commit sha a ref such as `heads/main` points at."""
        url = self._repo_url(owner, repo, f"git/ref/{ref}")
        data = self._send("GET", url, context=f"Fetch ref {ref}").json()
        return _object_sha(data, ref)

    def create_branch(self, owner: str, repo: str, ref: str, base_sha: str) -> str:
        """Create `ref` at `base_sha`, or return the existing ref's sha."""
        try:
            sha = self.get_ref(owner, repo, ref)
        except PermanentUpstreamError as exc:
            if exc.status != 404:
                raise
        else:
            self.logger.info("Branch %s already exists, using existing branch", ref)
            return sha

        self.logger.info("Branch %s doesn't exist, creating new branch", ref)
        data = self._send(
            "POST",
            self._repo_url(owner, repo, "git/refs"),
            payload={"ref": f"refs/{ref}", "sha": base_sha},
            context=f"Create branch {ref}",
        ).json()
        return _object_sha(data, ref)

    def create_blob(self, owner: str, repo: str, content: str) -> str:
        data = self._send(
            "POST",
            self._repo_url(owner, repo, "git/blobs"),
            payload={"content": content, "encoding": "utf-8"},
            context="Create blob",
        ).json()
        return _sha(data, "blob")

    def create_tree(
        self, owner: str, repo: str, base_tree_sha: str, entries: Sequence[TreeEntry]
    ) -> str:
        data = self._send(
            "POST",
            self._repo_url(owner, repo, "git/trees"),
            payload={"base_tree": base_tree_sha, "tree": [entry.to_payload() for entry in entries]},
            context="Create tree",
        ).json()
        return _sha(data, "tree")

    def create_commit(
        self, owner: str, repo: str, tree_sha: str, parent_sha: str, *, message: str
    ) -> str:
        data = self._send(
            "POST",
            self._repo_url(owner, repo, "git/commits"),
            payload={"message": message, "tree": tree_sha, "parents": [parent_sha]},
            context="Create commit",
        ).json()
        return _sha(data, "commit")

    def update_ref(self, owner: str, repo: str, ref: str, commit_sha: str) -> None:
        self._send(
            "PATCH",
            self._repo_url(owner, repo, f"git/refs/{ref}"),
            payload={"sha": commit_sha, "force": False},
            context=f"Update ref {ref}",
        )

    # ------------------------------------------------------------------
    # Pull requests

    def create_pull_request(
        self, owner: str, repo: str, head: str, base: str, *, title: str, body: str | None = None
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"title": title, "head": head, "base": base}
        if body:
            payload["body"] = body
        return self._send(
            "POST",
            self._repo_url(owner, repo, "pulls"),
            payload=payload,
            context="Create PR",
        ).json()

    def list_pull_request_files(self, owner: str, repo: str, pr_id: int | str) -> List[Dict[str, Any]]:
        files: List[Dict[str, Any]] = []
        page = 1
        while True:
            url = self._repo_url(owner, repo, f"pulls/{pr_id}/files?per_page=100&page={page}")
            batch = self._send("GET", url, context="Get PR files").json()
            if not isinstance(batch, list):
                raise PermanentUpstreamError(None, "Expected a list of PR files")
            files.extend(batch)
            if len(batch) < 100:
                return files
            page += 1

    def create_review(
        self,
        owner: str,
        repo: str,
        pr_id: int | str,
        comments: Sequence[ReviewComment],
        *,
        body: str = "AI suggestions",
    ) -> Dict[str, Any]:
        return self._send(
            "POST",
            self._repo_url(owner, repo, f"pulls/{pr_id}/reviews"),
            payload={
                "body": body,
                "event": "COMMENT",
                "comments": [comment.to_payload() for comment in comments],
            },
            context="Create review",
        ).json()

    # ------------------------------------------------------------------
    # Helpers

    def _repo_url(self, owner: str, repo: str, suffix: str) -> str:
        return f"{self.api_url}/repos/{owner}/{repo}/{suffix}"

    def _send(
        self,
        method: str,
        url: str,
        *,
        payload: Any = None,
        accept: str = JSON_ACCEPT,
        context: str,
    ):
        headers = {"Accept": accept}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        request: HttpRequest = json_request(
            method, url, headers=headers, payload=payload, timeout=self.timeout
        )
        self.logger.debug("%s %s", method, url)
        return raise_for_status(self._transport(request), context)


def _sha(data: Any, kind: str) -> str:
    if isinstance(data, dict) and isinstance(data.get("sha"), str):
        return data["sha"]
    raise PermanentUpstreamError(None, f"GitHub returned no {kind} sha")


def _object_sha(data: Any, ref: str) -> str:
    if isinstance(data, dict):
        target = data.get("object")
        if isinstance(target, dict) and isinstance(target.get("sha"), str):
            return target["sha"]
    raise PermanentUpstreamError(None, f"GitHub returned no sha for ref {ref}")


__all__ = ["GitHubClient"]
