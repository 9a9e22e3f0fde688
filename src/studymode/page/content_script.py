"""
Page-context message handling.
"""

from __future__ import annotations

import logging
from typing import Any

from ..protocol.messages import (
    ContextResponse,
    ErrorResponse,
    GetContext,
    OkResponse,
    ReloadSettings,
    parse_request,
)
from .controller import PageController

logger = logging.getLogger(__name__)


class ContentScript:
    """Runs in a page: applies settings on load and answers page messages."""

    def __init__(self, controller: PageController) -> None:
        self.controller = controller

    async def start(self) -> None:
        """Initial apply. Failures are logged; the page stays usable."""
        try:
            await self.controller.apply_from_storage()
        except Exception as e:
            logger.warning("Failed to apply study mode on load: %s", e)

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """Handle a raw envelope; None means "not for us, no response"."""
        request = parse_request(message)
        if not isinstance(request, (ReloadSettings, GetContext)):
            return None

        try:
            if isinstance(request, ReloadSettings):
                await self.controller.apply_from_storage()
                return OkResponse().to_dict()

            context = await self.controller.get_context()
            return ContextResponse(
                hostname=context.site_id,
                effective=context.effective,
                has_site_override=context.has_site_override,
            ).to_dict()
        except Exception as e:
            logger.debug("Message %s failed: %s", request.type.value, e)
            return ErrorResponse(error=str(e)).to_dict()

    def unload(self) -> None:
        self.controller.unload()
