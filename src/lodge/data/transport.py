"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport layer for JSON API reads and writes.

The transport owns the only wire concerns of the cache layer: headers, body
encoding and reducing every response shape to either a payload or an
``ApiError``. Response bodies come in two shapes, a bare payload or a tagged
envelope ``{"success": bool, "data"?: ..., "error"?: ...}``; both are
normalised here so nothing above this module inspects them.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from .errors import ApiEnvelopeError, ApiStatusError, ApiTransportError
from .types import JSONValue, RawResponse

TokenProvider = Callable[[], str | None]
SendFn = Callable[[str, str, dict[str, str], bytes | None, float], RawResponse]


class ApiTransport(Protocol):
    """Fetch and mutate capabilities the cache layer is built on."""

    async def get(self, key: str) -> JSONValue:
        """Fetch the payload for `key` or raise ``ApiError``."""
        ...

    async def send(
        self,
        method: str,
        key: str,
        payload: JSONValue | None = None,
    ) -> JSONValue:
        """Run one write against `key` or raise ``ApiError``."""
        ...


class TokenStore:
    """Holds the bearer token attached to outgoing requests."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token or None

    def get(self) -> str | None:
        return self._token

    def set(self, token: str | None) -> None:
        self._token = token or None

    def clear(self) -> None:
        self._token = None

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def __call__(self) -> str | None:
        return self._token


def collect_headers(
    token: str | None,
    *,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build normalized string-only request headers."""
    headers: dict[str, str] = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }
    if isinstance(extra, Mapping):
        for key, value in extra.items():
            if isinstance(key, str) and isinstance(value, str):
                headers[key] = value
    if isinstance(token, str) and token:
        headers.setdefault("Authorization", f"Bearer {token}")
    return headers


def _status_message(raw: RawResponse, verb: str) -> str:
    fallback = f"Failed to {verb}: {raw.status}"
    text = raw.text()
    try:
        parsed = json.loads(text)
    except ValueError:
        return f"{fallback} {text}".strip() if text else fallback
    if isinstance(parsed, dict):
        for field_name in ("error", "message"):
            value = parsed.get(field_name)
            if isinstance(value, str) and value:
                return value
    return fallback


def normalize_response(raw: RawResponse, *, verb: str = "fetch") -> JSONValue:
    """
    Reduce one raw response to its payload.

    Args:
        raw: Response as read from the wire.
        verb: Word used in synthesized status messages (``fetch`` for reads,
            the HTTP method for writes).

    Raises:
        ApiStatusError: Non-2xx status.
        ApiEnvelopeError: 2xx body that is not JSON or reports failure.
    """
    if not raw.ok:
        raise ApiStatusError(_status_message(raw, verb), status=raw.status)

    if not raw.body.strip():
        return None
    try:
        payload = json.loads(raw.text())
    except ValueError as e:
        raise ApiEnvelopeError("Invalid JSON response", status=raw.status) from e

    if isinstance(payload, dict) and (payload.get("error") or payload.get("success") is False):
        error = payload.get("error")
        message = error if isinstance(error, str) and error else "API returned an error"
        raise ApiEnvelopeError(message, status=raw.status)
    return payload


def http_send(
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None,
    timeout_s: float,
) -> RawResponse:
    """Blocking HTTP call; error statuses are returned, not raised."""
    req = urllib.request.Request(url, data=body, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:  # noqa: S310
            return RawResponse(
                status=resp.status,
                body=resp.read(),
                headers=dict(resp.headers.items()),
            )
    except urllib.error.HTTPError as e:
        try:
            payload = e.read()
        except Exception:  # noqa: BLE001
            payload = b""
        return RawResponse(
            status=e.code,
            body=payload,
            headers=dict(e.headers.items()) if e.headers else {},
        )
    except urllib.error.URLError as e:
        raise ApiTransportError(f"Network error: {e.reason}") from e
    except (TimeoutError, OSError) as e:
        raise ApiTransportError(f"Network error: {e}") from e


class HttpApiTransport:
    """JSON-over-HTTP transport used by ``DataCacheService``."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_s: float = 30.0,
        token_provider: TokenProvider | None = None,
        headers: Mapping[str, str] | None = None,
        send: SendFn | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") if base_url else None
        self._timeout_s = timeout_s
        self._token_provider = token_provider
        self._headers = dict(headers or {})
        self._send = send or http_send

    def url_for(self, key: str) -> str:
        if self._base_url is None or "://" in key:
            return key
        return f"{self._base_url}/{key.lstrip('/')}"

    async def get(self, key: str) -> JSONValue:
        raw = await self._request("GET", key, None)
        return normalize_response(raw, verb="fetch")

    async def send(
        self,
        method: str,
        key: str,
        payload: JSONValue | None = None,
    ) -> JSONValue:
        verb = method.upper()
        raw = await self._request(verb, key, payload)
        return normalize_response(raw, verb=verb)

    async def _request(self, method: str, key: str, payload: Any) -> RawResponse:
        token = self._token_provider() if self._token_provider is not None else None
        headers = collect_headers(token, extra=self._headers)
        body = json.dumps(payload).encode("utf-8") if payload is not None else None
        return await asyncio.to_thread(
            self._send,
            method,
            self.url_for(key),
            headers,
            body,
            self._timeout_s,
        )
