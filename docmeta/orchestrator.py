"""Pipeline orchestration for the fetch, generate, publish, deploy and summarize stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence

from .config import PipelineConfig
from .edge.deployer import DeployReport, EdgeDeployer
from .frontmatter.complexity import ComplexityClassifier
from .frontmatter.detector import FrontmatterDetector
from .frontmatter.merger import MetadataMerger, find_h1_title
from .frontmatter.ranges import ReplacementRangeResolver
from .git.github import GitHubClient
from .git.publisher import PublishOutcome, Publisher
from .http import PermanentUpstreamError, UpstreamError
from .llm.retry import RetryPolicy
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import BatchSection, Document
from .pages import skip_reason
from .prompting.builder import PromptBuilder
from .stores.batch_file import format_batch, format_generated, read_batch, write_batch

NO_PAGES_NOTE = "No matching files found (excluding config.md and binary files)"


@dataclass
class FetchOutcome:
    """Result of a fetch stage."""

    path: Path
    count: int
    skipped: List[str] = field(default_factory=list)


@dataclass
class GenerateOutcome:
    """Result of the generation stage."""

    path: Path
    generated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.generated


@dataclass
class SummarizeOutcome:
    """Result of the summarize stage."""

    path: Path
    summarized: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


class Orchestrator:
    """Coordinates the frontmatter pipeline for one configured repository."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        github: GitHubClient | None = None,
        llm_runner: LLMRunner | None = None,
        prompt_builder: PromptBuilder | None = None,
        detector: FrontmatterDetector | None = None,
        merger: MetadataMerger | None = None,
        classifier: ComplexityClassifier | None = None,
        resolver: ReplacementRangeResolver | None = None,
        publisher: Publisher | None = None,
        deployer: EdgeDeployer | None = None,
    ) -> None:
        self.config = config
        self.detector = detector or FrontmatterDetector()
        self.merger = merger or MetadataMerger()
        self.classifier = classifier or ComplexityClassifier()
        self.resolver = resolver or ReplacementRangeResolver(self.detector)
        self.prompt_builder = prompt_builder or PromptBuilder(
            content_limit=config.content_limit,
            max_tokens=config.llm.max_tokens,
            temperature=config.llm.temperature,
        )
        self._github = github
        self._llm_runner = llm_runner
        self._publisher = publisher
        self._deployer = deployer
        self.logger = get_logger("orchestrator")

    # ------------------------------------------------------------------
    # Fetch stages

    def run_fetch_changed(
        self, changed_files: Sequence[str], output: str | Path | None = None
    ) -> FetchOutcome:
        """Collect the content of changed documentation pages into a batch file."""
        github = self._github_client()
        owner, repo = self.config.github.owner, self.config.github.repo
        self.logger.info("Fetching content for %d changed files", len(changed_files))

        sections: List[BatchSection] = []
        skipped: List[str] = []
        for path in changed_files:
            if self._skip(path, skipped):
                continue
            try:
                content = github.get_file_content(owner, repo, path)
            except UpstreamError as exc:
                self.logger.warning("Failed to fetch content for %s: %s", path, exc)
                skipped.append(path)
                continue
            sections.append(BatchSection(path=path, text=content))
        return self._write_pages(sections, skipped, output)

    def run_fetch_pull_request(
        self, pr_id: int | str, output: str | Path | None = None
    ) -> FetchOutcome:
        """Collect the content of documentation pages touched by a pull request."""
        github = self._github_client()
        owner, repo = self.config.github.owner, self.config.github.repo
        files = github.list_pull_request_files(owner, repo, pr_id)
        self.logger.info("PR %s touches %d files", pr_id, len(files))

        sections: List[BatchSection] = []
        skipped: List[str] = []
        for item in files:
            path = item.get("filename") if isinstance(item, dict) else None
            if not isinstance(path, str) or self._skip(path, skipped):
                continue
            if item.get("status") == "removed":
                self.logger.info("Skipping removed file: %s", path)
                skipped.append(path)
                continue
            try:
                content = self._download(github, item, path)
            except UpstreamError as exc:
                self.logger.error("Failed to fetch content for %s: %s", path, exc)
                skipped.append(path)
                continue
            sections.append(BatchSection(path=path, text=content))
        return self._write_pages(sections, skipped, output)

    def run_fetch_all(self, output: str | Path | None = None) -> FetchOutcome:
        """Collect every documentation page under the configured pages root."""
        github = self._github_client()
        owner, repo = self.config.github.owner, self.config.github.repo
        sections: List[BatchSection] = []
        skipped: List[str] = []

        pending = [self.config.github.pages_root.strip("/")]
        while pending:
            directory = pending.pop(0)
            for item in github.list_directory(owner, repo, directory):
                path = item.get("path")
                if not isinstance(path, str):
                    continue
                if item.get("type") == "dir":
                    pending.append(path)
                    continue
                if item.get("type") != "file" or self._skip(path, skipped):
                    continue
                try:
                    content = self._download(github, item, path)
                except UpstreamError as exc:
                    self.logger.warning("Failed to fetch content for %s: %s", path, exc)
                    skipped.append(path)
                    continue
                sections.append(BatchSection(path=path, text=content))
        return self._write_pages(sections, skipped, output)

    # ------------------------------------------------------------------
    # Generation

    def run_generate(
        self,
        input_path: str | Path | None = None,
        output_path: str | Path | None = None,
    ) -> GenerateOutcome:
        """Ask the model for frontmatter, one document at a time, in batch order."""
        source = self._resolve(input_path, self.config.batch_file)
        target = self._resolve(output_path, self.config.generated_file)
        sections = read_batch(source)
        outcome = GenerateOutcome(path=target)

        if not sections:
            self.logger.info("No documents found in %s; nothing to generate", source)
            write_batch(target, "")
            return outcome

        runner = self._runner()
        generated: List[BatchSection] = []
        for section in sections:
            document = Document.from_text(section.path, section.text, self.detector)
            complexity = self.classifier.classify(document.body)
            request = self.prompt_builder.build_for(document, faq_count=complexity.faq_count)
            self.logger.info(
                "Generating metadata for %s (%s, %s complexity, %d FAQs)",
                document.path,
                request.kind,
                complexity.score,
                complexity.faq_count,
            )
            try:
                completion = runner.complete(
                    request.system_prompt,
                    request.user_prompt,
                    request.max_tokens,
                    request.temperature,
                )
            except PermanentUpstreamError as exc:
                self.logger.error("Skipping %s at generate stage: %s", document.path, exc)
                outcome.skipped.append(document.path)
                continue

            if not self.merger.is_structured(completion):
                self.logger.warning(
                    "Skipping %s at generate stage: completion has no metadata fields",
                    document.path,
                )
                outcome.skipped.append(document.path)
                continue

            final_block = self.merger.merge(
                document.metadata_block, completion, find_h1_title(document.body)
            )
            generated.append(BatchSection(path=document.path, text=final_block))
            outcome.generated.append(document.path)

        write_batch(target, format_generated(generated))
        self.logger.info(
            "Wrote metadata for %d documents to %s (%d skipped)",
            len(generated),
            target,
            len(outcome.skipped),
        )
        return outcome

    # ------------------------------------------------------------------
    # Publish stages

    def run_create_pr(self, input_path: str | Path | None = None) -> PublishOutcome | None:
        """Commit generated metadata to the head branch and open a PR. None for an empty batch."""
        sections = self._generated_sections(input_path)
        if not sections:
            return None
        return self._publisher_instance().publish_pr(sections)

    def run_review(
        self, pr_id: int | str, input_path: str | Path | None = None
    ) -> PublishOutcome | None:
        """Post generated metadata as review suggestions. None for an empty batch."""
        sections = self._generated_sections(input_path)
        if not sections:
            return None
        return self._publisher_instance().publish_review(sections, pr_id)

    # ------------------------------------------------------------------
    # Deploy

    def run_deploy(
        self,
        changes: Sequence[str],
        deletions: Sequence[str],
        operation: str,
        environment: str,
        *,
        branch: str | None = None,
    ) -> DeployReport:
        env = self.config.require_edge(environment)
        deployer = self._deployer or EdgeDeployer(self.config.edge)
        self.logger.info(
            "Running %s on %s for %d changes and %d deletions",
            operation,
            environment,
            len(changes),
            len(deletions),
        )
        return deployer.deploy(changes, deletions, operation, env, branch=branch)

    def run_summarize(
        self,
        changes: Sequence[str],
        environment: str,
        *,
        branch: str | None = None,
        output: str | Path | None = None,
    ) -> SummarizeOutcome:
        """Ask the model for a bulleted summary of each changed page's preview."""
        env = self.config.require_edge(environment)
        deployer = self._deployer or EdgeDeployer(self.config.edge)
        outcome = SummarizeOutcome(path=self._resolve(output, self.config.summary_file))

        pages: List[str] = []
        for file in changes:
            if file.endswith(".md"):
                pages.append(file)
            else:
                self.logger.warning("Skipping %s: only .md files can be summarized", file)
                outcome.skipped.append(file)

        if not pages:
            self.logger.info("No markdown pages among %d changes; nothing to summarize", len(changes))
            write_batch(outcome.path, "")
            return outcome

        runner = self._runner()
        summaries: List[BatchSection] = []
        for file in pages:
            url = deployer.preview_url(env, file, branch=branch)
            request = self.prompt_builder.build_summary(url, path=file)
            self.logger.info("Generating summary for %s from %s", file, url)
            try:
                summary = runner.complete(
                    request.system_prompt,
                    request.user_prompt,
                    request.max_tokens,
                    request.temperature,
                )
            except PermanentUpstreamError as exc:
                self.logger.error("Skipping %s at summarize stage: %s", file, exc)
                outcome.skipped.append(file)
                continue
            summaries.append(BatchSection(path=file, text=summary.strip()))
            outcome.summarized.append(file)

        write_batch(outcome.path, format_generated(summaries))
        self.logger.info(
            "Wrote %d summaries to %s (%d skipped)",
            len(summaries),
            outcome.path,
            len(outcome.skipped),
        )
        return outcome

    # ------------------------------------------------------------------
    # Helpers

    def _skip(self, path: str, skipped: List[str]) -> bool:
        reason = skip_reason(path, self.config.github.pages_root)
        if reason is None:
            return False
        self.logger.info("Skipping %s (%s)", path, reason)
        skipped.append(path)
        return True

    @staticmethod
    def _download(github: GitHubClient, item: Dict[str, Any], path: str) -> str:
        url = item.get("raw_url") or item.get("download_url")
        if isinstance(url, str) and url:
            return github.get_file_content_by_url(url)
        raise PermanentUpstreamError(None, f"No download URL for {path}")

    def _write_pages(
        self,
        sections: List[BatchSection],
        skipped: List[str],
        output: str | Path | None,
    ) -> FetchOutcome:
        target = self._resolve(output, self.config.batch_file)
        if sections:
            write_batch(target, format_batch(sections))
            self.logger.info("Wrote %d pages to %s", len(sections), target)
        else:
            write_batch(target, NO_PAGES_NOTE)
            self.logger.info(NO_PAGES_NOTE)
        return FetchOutcome(path=target, count=len(sections), skipped=skipped)

    def _generated_sections(self, input_path: str | Path | None) -> List[BatchSection]:
        source = self._resolve(input_path, self.config.generated_file)
        sections = read_batch(source)
        if not sections:
            self.logger.info("No generated metadata in %s; nothing to publish", source)
        return sections

    def _resolve(self, path: str | Path | None, default: str) -> Path:
        candidate = Path(path) if path is not None else Path(default)
        if candidate.is_absolute():
            return candidate
        return self.config.root / candidate

    def _github_client(self) -> GitHubClient:
        if self._github is None:
            github = self.config.require_github()
            self._github = GitHubClient(github.token, api_url=github.api_url)
        else:
            self.config.require_github()
        return self._github

    def _runner(self) -> LLMRunner:
        if self._llm_runner is None:
            llm = self.config.require_llm()
            self._llm_runner = LLMRunner(
                llm.model,
                endpoint=llm.endpoint,
                api_key=llm.api_key,
                api_key_header=llm.api_key_header,
                temperature=llm.temperature,
                max_tokens=llm.max_tokens,
                request_timeout=llm.request_timeout,
                retry_policy=RetryPolicy(
                    max_retries=llm.max_retries, base_delay=llm.retry_base_delay
                ),
            )
        return self._llm_runner

    def _publisher_instance(self) -> Publisher:
        if self._publisher is None:
            self._publisher = Publisher(
                self._github_client(), self.config.github, resolver=self.resolver
            )
        return self._publisher


__all__ = ["FetchOutcome", "GenerateOutcome", "NO_PAGES_NOTE", "Orchestrator", "SummarizeOutcome"]
