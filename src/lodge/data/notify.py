"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

User-visible notification sinks for fetch and mutation outcomes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Protocol

NotificationLevel = Literal["success", "error"]

logger = logging.getLogger("lodge.notify")


class NotifierError(RuntimeError):
    """Raised when a notifier backend cannot be resolved."""


@dataclass(frozen=True, slots=True)
class Notification:
    """One transient notification."""

    level: NotificationLevel
    message: str
    title: str | None = None


class Notifier(Protocol):
    """Presentation-layer side channel for success and error messages."""

    def success(self, message: str, *, title: str | None = None) -> None: ...

    def error(self, message: str, *, title: str | None = None) -> None: ...


class LoggingNotifier:
    """Default sink: notifications go to the ``lodge.notify`` logger."""

    def success(self, message: str, *, title: str | None = None) -> None:
        logger.info("%s", message if title is None else f"{title}: {message}")

    def error(self, message: str, *, title: str | None = None) -> None:
        logger.warning("%s", message if title is None else f"{title}: {message}")


@dataclass(slots=True)
class InMemoryNotifier:
    """Sink that keeps every notification in process memory."""

    _rows: list[Notification] = field(default_factory=list)

    def success(self, message: str, *, title: str | None = None) -> None:
        self._rows.append(Notification(level="success", message=message, title=title))

    def error(self, message: str, *, title: str | None = None) -> None:
        self._rows.append(Notification(level="error", message=message, title=title))

    def notifications(self) -> list[Notification]:
        return list(self._rows)

    def errors(self) -> list[Notification]:
        return [row for row in self._rows if row.level == "error"]

    def successes(self) -> list[Notification]:
        return [row for row in self._rows if row.level == "success"]


class NullNotifier:
    """No-op sink."""

    def success(self, message: str, *, title: str | None = None) -> None:
        _ = message
        _ = title

    def error(self, message: str, *, title: str | None = None) -> None:
        _ = message
        _ = title


def create_notifier(backend: str | Notifier | None = None) -> Notifier:
    """Resolve a notifier from id (`logging`, `memory`, `null`) or instance."""
    if backend is None:
        return LoggingNotifier()
    if not isinstance(backend, str):
        return backend

    key = backend.strip().lower()
    if key == "logging":
        return LoggingNotifier()
    if key in ("memory", "inmemory"):
        return InMemoryNotifier()
    if key in ("null", "none"):
        return NullNotifier()
    raise NotifierError(f"Unknown notifier backend '{backend}'")
