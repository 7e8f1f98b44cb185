"""Adapter around an OpenAI-compatible chat completion endpoint."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..http import (
    PermanentUpstreamError,
    Transport,
    json_request,
    raise_for_status,
    urllib_transport,
)
from ..logging import get_logger
from .retry import RetryPolicy, retry_call

_AUTO_ENDPOINT = object()
_AUTO_API_KEY = object()


@dataclass
class LLMRequest:
    """Represents a single completion request."""

    prompt: str
    system: Optional[str]
    model: Optional[str]
    temperature: Optional[float]
    max_tokens: Optional[int]
    endpoint: Optional[str]
    api_key: Optional[str]
    api_key_header: str
    request_timeout: Optional[float]


class LLMRunner:
    """Sends prompts to the configured completion endpoint and returns the text."""

    ENV_ENDPOINT_KEYS = ("DOCMETA_LLM_ENDPOINT", "AZURE_OPENAI_ENDPOINT", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("DOCMETA_LLM_API_KEY", "AZURE_OPENAI_API_KEY", "OPENAI_API_KEY")
    ENV_MODEL_KEYS = ("DOCMETA_LLM_MODEL", "OPENAI_MODEL")

    def __init__(
        self,
        model: str | None = None,
        *,
        endpoint: str | None | object = _AUTO_ENDPOINT,
        api_key: str | None | object = _AUTO_API_KEY,
        api_key_header: str = "authorization",
        temperature: Optional[float] = 1.0,
        max_tokens: Optional[int] = 800,
        request_timeout: Optional[float] = 60.0,
        retry_policy: RetryPolicy | None = None,
        runner: Callable[[LLMRequest], str] | None = None,
        transport: Transport | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.model = model or self._first_env_value(self.ENV_MODEL_KEYS)
        self.endpoint = self._resolve_endpoint(endpoint)
        self.api_key = self._resolve_api_key(api_key)
        self.api_key_header = api_key_header.lower()
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self.retry_policy = retry_policy or RetryPolicy()
        self._transport = transport or urllib_transport
        self._runner = runner or self._http_runner
        self._sleep = sleep
        self.logger = get_logger("llm.runner")

    def run(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send the prompt and return the completion text, retrying transient failures."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=temperature if temperature is not None else self.temperature,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            endpoint=self.endpoint,
            api_key=self.api_key,
            api_key_header=self.api_key_header,
            request_timeout=self.request_timeout,
        )
        kwargs = {"sleep": self._sleep} if self._sleep is not None else {}
        return retry_call(
            lambda: self._runner(request),
            self.retry_policy,
            description="completion request",
            **kwargs,
        )

    def complete(
        self,
        system_prompt: str | None,
        user_prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        return self.run(
            user_prompt,
            system=system_prompt,
            max_tokens=max_tokens,
            temperature=temperature,
        )

    def _http_runner(self, request: LLMRequest) -> str:
        if not request.endpoint:
            raise RuntimeError("Completion runner requires an endpoint to be configured.")
        payload: dict[str, object] = {
            "messages": self._build_messages(request.system, request.prompt),
            "top_p": 1,
        }
        if request.model:
            payload["model"] = request.model
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        headers: dict[str, str] = {}
        if request.api_key:
            if request.api_key_header == "api-key":
                headers["api-key"] = request.api_key
            else:
                headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = json_request(
            "POST",
            self._completions_url(request.endpoint),
            headers=headers,
            payload=payload,
            timeout=request.request_timeout or 60.0,
        )
        self.logger.debug("Posting completion request to %s", http_request.url)
        response = raise_for_status(self._transport(http_request), "Completion request")
        content = self._extract_content(response.json())
        if not content:
            raise PermanentUpstreamError(response.status, "Completion endpoint returned an empty response")
        return content.strip()

    @staticmethod
    def _completions_url(endpoint: str) -> str:
        normalized = endpoint.rstrip("/")
        if "/chat/completions" in normalized:
            return normalized
        return f"{normalized}/chat/completions"

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            return ""
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    def _resolve_endpoint(self, endpoint: str | None | object) -> str | None:
        if endpoint is _AUTO_ENDPOINT:
            return self._first_env_value(self.ENV_ENDPOINT_KEYS)
        return endpoint  # type: ignore[return-value]

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


__all__ = ["LLMRequest", "LLMRunner"]
