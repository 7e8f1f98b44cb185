"""Builds completion prompts for frontmatter generation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Environment, FileSystemLoader

from ..frontmatter.constants import MAX_KEYWORDS
from ..models import Document
from .constants import (
    CREATE_TEMPLATE,
    DEFAULT_CONTENT_LIMIT,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    EDIT_TEMPLATE,
    SUMMARY_MAX_TOKENS,
    SUMMARY_MAX_WORDS,
    SUMMARY_TEMPERATURE,
    SUMMARY_TEMPLATE,
    SYSTEM_PROMPT,
)

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


@dataclass
class PromptRequest:
    """Encapsulates a completion request for one document."""

    kind: str
    messages: List[PromptMessage]
    max_tokens: int | None
    temperature: float | None
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def system_prompt(self) -> Optional[str]:
        for message in self.messages:
            if message.role == "system":
                return message.content
        return None

    @property
    def user_prompt(self) -> str:
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return ""


def sanitize_content(text: str | None, limit: int = DEFAULT_CONTENT_LIMIT) -> str:
    """Normalise newlines, drop control characters and cap the length."""
    cleaned = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _CONTROL_CHARS.sub("", cleaned).strip()
    if limit and len(cleaned) > limit:
        cleaned = cleaned[:limit]
    return cleaned


class PromptBuilder:
    """Renders create, edit and summary prompts from Jinja templates."""

    SYSTEM_PROMPT = SYSTEM_PROMPT

    def __init__(
        self,
        templates_dir: Path | None = None,
        *,
        content_limit: int = DEFAULT_CONTENT_LIMIT,
        max_tokens: int | None = DEFAULT_MAX_TOKENS,
        temperature: float | None = DEFAULT_TEMPERATURE,
    ) -> None:
        self.templates_dir = templates_dir
        self.content_limit = content_limit
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._env = self._create_env(templates_dir)

    def build_for(self, document: Document, *, faq_count: int) -> PromptRequest:
        if document.metadata_block is not None:
            return self.build_edit(
                document.metadata_block,
                document.body,
                faq_count=faq_count,
                path=document.path,
            )
        return self.build_create(document.body, faq_count=faq_count, path=document.path)

    def build_create(
        self, content: str, *, faq_count: int, path: str | None = None
    ) -> PromptRequest:
        prompt = self._render(
            CREATE_TEMPLATE,
            content=sanitize_content(content, self.content_limit),
            faq_count=faq_count,
        )
        return self._request("create", prompt, faq_count=faq_count, path=path)

    def build_edit(
        self,
        metadata: str,
        content: str,
        *,
        faq_count: int,
        path: str | None = None,
    ) -> PromptRequest:
        prompt = self._render(
            EDIT_TEMPLATE,
            metadata=metadata.strip(),
            content=sanitize_content(content, self.content_limit),
            faq_count=faq_count,
        )
        return self._request("edit", prompt, faq_count=faq_count, path=path)

    def build_summary(self, url: str, *, path: str | None = None) -> PromptRequest:
        """Ask for a short bulleted summary of the page published at `url`."""
        prompt = self._render(SUMMARY_TEMPLATE, url=url, max_words=SUMMARY_MAX_WORDS)
        metadata: Dict[str, object] = {"url": url}
        if path:
            metadata["path"] = path
        return PromptRequest(
            kind="summary",
            messages=[PromptMessage(role="user", content=prompt)],
            max_tokens=SUMMARY_MAX_TOKENS,
            temperature=SUMMARY_TEMPERATURE,
            metadata=metadata,
        )

    def _request(
        self, kind: str, prompt: str, *, faq_count: int, path: str | None
    ) -> PromptRequest:
        metadata: Dict[str, object] = {"faq_count": faq_count}
        if path:
            metadata["path"] = path
        return PromptRequest(
            kind=kind,
            messages=[
                PromptMessage(role="system", content=self.SYSTEM_PROMPT),
                PromptMessage(role="user", content=prompt),
            ],
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            metadata=metadata,
        )

    def _render(self, template_name: str, **context: object) -> str:
        template = self._env.get_template(template_name)
        return template.render(max_keywords=MAX_KEYWORDS, **context).strip()

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


__all__ = ["PromptBuilder", "PromptMessage", "PromptRequest", "sanitize_content"]
