# src/taskboard/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps persistence/notifications/the confirmation backend swappable and
makes testing easier.
"""

from typing import Any, Awaitable, Protocol

JSONValue = Any
# Whatever json.dumps accepts: dict/list/str/int/float/bool/None.


class KeyValueStore(Protocol):
    """Persistence collaborator: JSON documents addressed by key."""

    def get(self, key: str) -> JSONValue | None: ...
    def set(self, key: str, value: JSONValue) -> None: ...


class Notifier(Protocol):
    """
    User-facing notification sink (toasts in a UI, lines in a console).

    severity is one of: success, error, info, warning.
    """

    def notify(self, severity: str, message: str, duration_ms: int | None = None) -> Any: ...


class ConfirmationApi(Protocol):
    """
    Backend that must confirm a reorder before it is considered durable.

    The returned awaitable resolves on success and raises on failure.
    Latency and failure probability belong to the implementation.
    """

    def reorder(self, task_id: str, new_status: str, new_order: float) -> Awaitable[Any]: ...
