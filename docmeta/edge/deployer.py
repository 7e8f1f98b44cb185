"""Preview, publish and purge documentation pages on the edge service."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from ..config import ConfigError, EdgeConfig, EdgeEnvironment
from ..http import HttpRequest, Transport, UpstreamError, urllib_transport
from ..logging import get_logger

OPERATIONS = ("preview", "live", "cache")
DEPLOYABLE_SUFFIXES = (".md", ".json")

ERROR = "error"
SUCCESS = "success"
SKIPPED = "skipped"

_SEVERITY = {ERROR: 0, SUCCESS: 1, SKIPPED: 2}
_HOST_UNSAFE = re.compile(r"[^a-z0-9-]")


@dataclass(frozen=True)
class DeployResult:
    """Outcome of one edge request, keyed by the repository path of the file."""

    path: str
    status: str
    http_status: Optional[int]
    note: str
    page_path: Optional[str] = None


@dataclass
class DeployReport:
    """Results for one deploy run, ordered errors first."""

    operation: str
    results: List[DeployResult] = field(default_factory=list)

    @property
    def failed(self) -> List[DeployResult]:
        return [result for result in self.results if result.status == ERROR]

    def as_rows(self) -> List[List[str]]:
        return [[result.path, result.status, result.note] for result in self.results]


class EdgeDeployer:
    """Triggers edge operations for changed and deleted pages in bounded batches."""

    def __init__(
        self,
        config: EdgeConfig,
        *,
        transport: Transport | None = None,
    ) -> None:
        self.config = config
        self._transport = transport or urllib_transport
        self.logger = get_logger("edge.deployer")

    def trigger(
        self,
        operation: str,
        environment: EdgeEnvironment,
        path: str,
        *,
        method: str = "POST",
        branch: str | None = None,
    ) -> Optional[int]:
        """Send one edge request and return its HTTP status, or None when nothing came back."""
        url = (
            f"{self.config.admin_url.rstrip('/')}/{operation}/{self.config.org}/"
            f"{environment.site}/{environment.code_branch}{path}"
        )
        headers: Dict[str, str] = {}
        if environment.content_source_auth and branch and operation in ("preview", "cache"):
            headers["x-content-source-authorization"] = branch
        request = HttpRequest(
            method=method, url=url, headers=headers, timeout=self.config.request_timeout
        )
        try:
            response = self._transport(request)
        except UpstreamError as exc:
            self.logger.error("Error %s %s: %s", method, path, exc)
            return exc.status
        return response.status

    def deploy(
        self,
        changes: Sequence[str],
        deletions: Sequence[str],
        operation: str,
        environment: EdgeEnvironment,
        *,
        branch: str | None = None,
    ) -> DeployReport:
        if operation not in OPERATIONS:
            raise ConfigError(f"Unknown operation method: {operation}")

        results: List[DeployResult] = []
        results.extend(
            self._run_batches(
                self._unique(changes),
                lambda path: self._deploy_one(path, operation, environment, "POST", branch),
            )
        )
        results.extend(
            self._run_batches(
                self._unique(deletions),
                lambda path: self._deploy_one(path, operation, environment, "DELETE", branch),
            )
        )

        ordered = sorted(results, key=lambda result: (_SEVERITY[result.status], result.path))
        report = DeployReport(operation=operation, results=ordered)
        self.logger.info(
            "Operation %s finished: %d ok, %d failed, %d skipped",
            operation,
            sum(1 for result in ordered if result.status == SUCCESS),
            len(report.failed),
            sum(1 for result in ordered if result.status == SKIPPED),
        )
        return report

    def page_path(self, file: str) -> str:
        """Map a repository file path to the published page path."""
        root = self.config.pages_root.strip("/")
        relative = file
        if root and relative.startswith(f"{root}/"):
            relative = relative[len(root) + 1 :]
        prefix = self.config.path_prefix.rstrip("/")
        return f"{prefix}/{relative.lstrip('/')}"

    def preview_url(
        self, environment: EdgeEnvironment, file: str, *, branch: str | None = None
    ) -> str:
        """Return the preview address of a page, served from `branch` when one is given."""
        page = self.page_path(file)
        if page.endswith(".md"):
            page = page[: -len(".md")]
        ref = _HOST_UNSAFE.sub("-", (branch or environment.code_branch).lower())
        return (
            f"https://{ref}--{environment.site}--{self.config.org}."
            f"{self.config.preview_domain}{page}"
        )

    def _unique(self, paths: Sequence[str]) -> List[str]:
        unique = list(dict.fromkeys(paths))
        if len(unique) != len(paths):
            self.logger.info("Ignoring %d duplicate path(s)", len(paths) - len(unique))
        return unique

    def _run_batches(
        self, paths: Sequence[str], action: Callable[[str], DeployResult]
    ) -> List[DeployResult]:
        collected: List[DeployResult] = []
        batch_size = max(1, self.config.batch_size)
        with ThreadPoolExecutor(max_workers=batch_size, thread_name_prefix="docmeta-edge") as pool:
            for start in range(0, len(paths), batch_size):
                batch = list(paths[start : start + batch_size])
                futures = [pool.submit(action, path) for path in batch]
                collected.extend(future.result() for future in futures)
        return collected

    def _deploy_one(
        self,
        file: str,
        operation: str,
        environment: EdgeEnvironment,
        method: str,
        branch: str | None,
    ) -> DeployResult:
        if not file.endswith(DEPLOYABLE_SUFFIXES):
            self.logger.warning("Skipping %s: only .md or .json files are allowed", file)
            return DeployResult(
                path=file,
                status=SKIPPED,
                http_status=None,
                note="Only .md or .json files are allowed",
            )

        page_path = self.page_path(file)
        http_status = self.trigger(operation, environment, page_path, method=method, branch=branch)
        label = f"HTTP {http_status}" if http_status is not None else "HTTP Unknown"
        verb = f"Delete {operation}" if method == "DELETE" else operation
        if http_status is not None and 200 <= http_status < 300:
            self.logger.info("%s on %s: %s", verb, page_path, label)
            return DeployResult(
                file, SUCCESS, http_status, f"{label} - {verb} completed", page_path=page_path
            )
        self.logger.error("%s on %s failed: %s", verb, page_path, label)
        return DeployResult(
            file, ERROR, http_status, f"{label} - {operation} failed", page_path=page_path
        )


__all__ = ["DeployReport", "DeployResult", "EdgeDeployer", "OPERATIONS"]
