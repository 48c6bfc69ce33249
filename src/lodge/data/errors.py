"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for API reads and writes.

Every failure is reduced to one human readable message before it reaches the
cache or a handle; the subclasses only exist so callers beneath the cache can
tell the failure kinds apart.
"""

from __future__ import annotations

import asyncio
import socket


class ApiError(RuntimeError):
    """Base error for failed API calls."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class ApiTransportError(ApiError):
    """The request never produced a response (connectivity, DNS, timeout)."""


class ApiStatusError(ApiError):
    """The server answered with a non-success status."""


class ApiEnvelopeError(ApiError):
    """A 2xx response whose body reports failure or cannot be decoded."""


def classify_error(error: BaseException) -> ApiError:
    """Map arbitrary exceptions onto the API error taxonomy."""
    if isinstance(error, ApiError):
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return ApiTransportError(f"Network error: {error or 'timed out'}")
    if isinstance(error, (ConnectionError, OSError)):
        return ApiTransportError(f"Network error: {error}")
    return ApiError(str(error) or "Unknown error")
