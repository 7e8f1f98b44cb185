"""Minimal HTTP plumbing shared by the GitHub, completion and edge clients."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from http.client import HTTPException
from typing import Any, Callable, Dict, Optional, Type
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


@dataclass
class HttpRequest:
    """Represents an outbound HTTP call."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout: float = 60.0


@dataclass
class HttpResponse:
    """Status and raw body of a completed HTTP call."""

    status: int
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise PermanentUpstreamError(self.status, "response is not valid JSON") from exc


Transport = Callable[[HttpRequest], HttpResponse]


class UpstreamError(RuntimeError):
    """Raised when a remote service answers with a non-2xx status or not at all."""

    def __init__(self, status: Optional[int], message: str) -> None:
        self.status = status
        label = f"HTTP {status}" if status is not None else "no response"
        super().__init__(f"{message} ({label})")


class TransientUpstreamError(UpstreamError):
    """Server error or rate limit; safe to retry."""


class PermanentUpstreamError(UpstreamError):
    """Client error or unreachable host; retrying will not help."""


def is_transient_status(status: Optional[int]) -> bool:
    return status is not None and (status == 429 or 500 <= status < 600)


def is_transient(exc: BaseException) -> bool:
    return isinstance(exc, TransientUpstreamError)


def raise_for_status(response: HttpResponse, context: str) -> HttpResponse:
    """Return the response when it is 2xx, otherwise raise the matching upstream error."""
    if response.ok:
        return response
    detail = response.text().strip()
    message = f"{context} failed: {detail}" if detail else f"{context} failed"
    if is_transient_status(response.status):
        raise TransientUpstreamError(response.status, message)
    raise PermanentUpstreamError(response.status, message)


def json_request(
    method: str,
    url: str,
    *,
    headers: Dict[str, str] | None = None,
    payload: Any = None,
    timeout: float = 60.0,
) -> HttpRequest:
    """Build a request with a JSON-encoded body when a payload is given."""
    merged = dict(headers or {})
    data = None
    if payload is not None:
        data = json.dumps(payload).encode("utf-8")
        merged.setdefault("Content-Type", "application/json")
    return HttpRequest(method=method, url=url, headers=merged, body=data, timeout=timeout)


def urllib_transport(request: HttpRequest) -> HttpResponse:
    """Send the request with urllib, returning non-2xx responses instead of raising."""
    http_request = Request(
        request.url,
        data=request.body,
        headers=request.headers,
        method=request.method,
    )
    try:
        with urlopen(http_request, timeout=request.timeout) as response:  # type: ignore[arg-type]
            return HttpResponse(status=response.status, body=response.read())
    except HTTPError as exc:
        body = exc.read() if hasattr(exc, "read") else b""
        return HttpResponse(status=exc.code, body=body or b"")
    except URLError as exc:
        error = _no_response_error(exc.reason)
        raise error(None, f"{request.method} {request.url} failed: {exc.reason}") from exc
    except (TimeoutError, ConnectionError, HTTPException) as exc:
        raise TransientUpstreamError(
            None, f"{request.method} {request.url} failed: {str(exc) or type(exc).__name__}"
        ) from exc


def _no_response_error(reason: object) -> Type[UpstreamError]:
    # Timeouts and dropped connections are retried. DNS and TLS failures are not.
    if isinstance(reason, (TimeoutError, ConnectionError, HTTPException)):
        return TransientUpstreamError
    return PermanentUpstreamError


__all__ = [
    "HttpRequest",
    "HttpResponse",
    "PermanentUpstreamError",
    "Transport",
    "TransientUpstreamError",
    "UpstreamError",
    "is_transient",
    "is_transient_status",
    "json_request",
    "raise_for_status",
    "urllib_transport",
]
