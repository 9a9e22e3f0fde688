"""
Routing of messages to page contexts (tabs).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from ..exceptions import TargetUnavailableError

logger = logging.getLogger(__name__)

MessageHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any] | None]]


class TabMessenger(ABC):
    @abstractmethod
    async def send_to_active_tab(self, message: dict[str, Any]) -> dict[str, Any] | None: ...


class TabRegistry(TabMessenger):
    """In-process tab table.

    A tab opened without a handler models a restricted page (no page context
    listening); messages to it fail with ``TargetUnavailableError``.
    """

    def __init__(self) -> None:
        self._handlers: dict[int, MessageHandler | None] = {}
        self._active: int | None = None

    @property
    def active_tab_id(self) -> int | None:
        return self._active

    def open_tab(
        self, tab_id: int, handler: MessageHandler | None = None, *, activate: bool = True
    ) -> None:
        self._handlers[tab_id] = handler
        if activate:
            self._active = tab_id

    def close_tab(self, tab_id: int) -> None:
        self._handlers.pop(tab_id, None)
        if self._active == tab_id:
            self._active = None

    def activate(self, tab_id: int) -> None:
        if tab_id not in self._handlers:
            raise KeyError(tab_id)
        self._active = tab_id

    async def send_to_tab(self, tab_id: int, message: dict[str, Any]) -> dict[str, Any] | None:
        """Deliver a message to a tab's page context and return its response."""
        handler = self._handlers.get(tab_id)
        if handler is None:
            raise TargetUnavailableError(
                f"Could not establish connection to tab {tab_id}. Receiving end does not exist."
            )

        logger.debug("Sending %s to tab %d", message.get("type"), tab_id)
        return await handler(message)

    async def send_to_active_tab(self, message: dict[str, Any]) -> dict[str, Any] | None:
        if self._active is None:
            raise TargetUnavailableError("No active tab.")
        return await self.send_to_tab(self._active, message)
