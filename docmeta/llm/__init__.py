"""Completion endpoint adapters."""

from .retry import RetryPolicy, retry_call
from .runner import LLMRequest, LLMRunner

__all__ = ["LLMRequest", "LLMRunner", "RetryPolicy", "retry_call"]
