"""
Background context: settings bootstrap and forwarding to the active tab.
"""

from __future__ import annotations

import logging
from typing import Any

from .exceptions import TargetUnavailableError
from .protocol.messages import (
    EnsureDefaults,
    ErrorResponse,
    OkResponse,
    PingApplyActiveTab,
    ReloadSettings,
    parse_request,
)
from .protocol.tabs import TabMessenger
from .storage import SettingsStore, ensure_defaults

logger = logging.getLogger(__name__)


class Background:
    """Handles background messages."""

    def __init__(self, store: SettingsStore, tabs: TabMessenger) -> None:
        self.store = store
        self.tabs = tabs

    async def on_installed(self) -> None:
        """Write complete default settings on install/upgrade."""
        try:
            await ensure_defaults(self.store)
        except Exception as e:
            logger.warning("Failed to store default settings: %s", e)

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        request = parse_request(message)
        if not isinstance(request, (EnsureDefaults, PingApplyActiveTab)):
            return None

        try:
            if isinstance(request, EnsureDefaults):
                await ensure_defaults(self.store)
                return OkResponse().to_dict()

            return await self._apply_active_tab()
        except Exception as e:
            logger.debug("Message %s failed: %s", request.type.value, e)
            return ErrorResponse(error=str(e)).to_dict()

    async def _apply_active_tab(self) -> dict[str, Any]:
        try:
            response = await self.tabs.send_to_active_tab(ReloadSettings().to_dict())
        except TargetUnavailableError as e:
            # Restricted pages have no page context; not an error of ours.
            logger.debug("Active tab unavailable: %s", e)
            return ErrorResponse(error=str(e)).to_dict()

        if response is not None and not response.get("ok", False):
            return ErrorResponse(error=str(response.get("error", "Reload failed"))).to_dict()
        return OkResponse().to_dict()
