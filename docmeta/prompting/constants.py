"""Shared constants for frontmatter prompting."""

from __future__ import annotations

SYSTEM_PROMPT = (
    "You are an AI assistant that writes documentation frontmatter in a fixed YAML format. "
    "Provide a title, a short description, a list of keywords and the requested number of FAQs. "
    "Stay grounded in the page content and never invent product names or commands."
)

DEFAULT_CONTENT_LIMIT = 8000
DEFAULT_MAX_TOKENS = 800
DEFAULT_TEMPERATURE = 1.0

CREATE_TEMPLATE = "create.j2"
EDIT_TEMPLATE = "edit.j2"
SUMMARY_TEMPLATE = "summary.j2"

SUMMARY_MAX_WORDS = 100
SUMMARY_MAX_TOKENS = 800
SUMMARY_TEMPERATURE = 1.0


__all__ = [
    "CREATE_TEMPLATE",
    "DEFAULT_CONTENT_LIMIT",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "EDIT_TEMPLATE",
    "SUMMARY_MAX_TOKENS",
    "SUMMARY_MAX_WORDS",
    "SUMMARY_TEMPERATURE",
    "SUMMARY_TEMPLATE",
    "SYSTEM_PROMPT",
]
