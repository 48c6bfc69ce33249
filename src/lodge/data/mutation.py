"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Write handle: one-shot create/update/delete calls with cache invalidation.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any

from .contracts import MutationOptions
from .errors import classify_error
from .types import JSONValue

if TYPE_CHECKING:
    from .service import DataCacheService

logger = logging.getLogger("lodge.data.mutation")


class MutationHandle:
    """
    Runs writes against one endpoint, outside the read cache.

    The response is never cached; on success the keys listed in
    ``options.invalidate_keys`` are dropped so their next read refetches.
    Calls are not deduplicated or debounced.
    """

    def __init__(
        self,
        service: "DataCacheService",
        key: str,
        options: MutationOptions,
    ) -> None:
        self._service = service
        self.key = key
        self.options = options
        self._loading = False
        self._error: str | None = None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> str | None:
        return self._error

    async def mutate(self, payload: JSONValue | None = None) -> JSONValue:
        """
        Send `payload` with the configured method.

        A failing write and an ``on_success`` callback that raises take the
        same error path.

        Returns:
            Decoded response body.

        Raises:
            ApiError: After error state, callback and notification are handled.
        """
        options = self.options
        self._loading = True
        self._error = None
        try:
            try:
                result = await self._service.transport.send(options.method, self.key, payload)
                self._service.invalidate(options.invalidate_keys)
                if options.on_success is not None:
                    await _invoke(options.on_success, result)
            except Exception as exc:  # noqa: BLE001
                error = classify_error(exc)
                message = str(error)
                self._error = message
                logger.warning("%s %s failed: %s", options.method, self.key, message)
                if options.on_error is not None:
                    await _invoke(options.on_error, message)
                if options.notify_errors:
                    self._service.notifier.error(message, title=options.error_title)
                if error is exc:
                    raise
                raise error from exc

            if options.notify_success:
                self._service.notifier.success(options.success_title)
            return result
        finally:
            self._loading = False


async def _invoke(callback: Any, value: Any) -> None:
    result = callback(value)
    if inspect.isawaitable(result):
        await result
