"""
Page controller: converges one page to the current settings.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..config import StudyModeConfig
from ..settings import EffectiveConfig, Settings, normalize_site_id, resolve_effective
from ..storage import SettingsStore, load_settings
from .document import Document
from .engine import SuppressionEngine
from .stylesheet import build_stylesheet

logger = logging.getLogger(__name__)

STYLE_ELEMENT_ID = "studymode-focus-style"


@dataclass(frozen=True)
class PageContext:
    """Read-only snapshot of a page's resolved settings."""

    site_id: str
    effective: EffectiveConfig
    has_site_override: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "hostname": self.site_id,
            "effective": self.effective.to_dict(),
            "hasSiteOverride": self.has_site_override,
        }


class PageController:
    """Owns the stylesheet and suppression engine of one page."""

    def __init__(
        self,
        document: Document,
        store: SettingsStore,
        site_id: str,
        *,
        config: StudyModeConfig | None = None,
        engine: SuppressionEngine | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        cfg = config or StudyModeConfig()
        self._document = document
        self._store = store
        self._site_id = normalize_site_id(site_id)
        self._engine = engine or SuppressionEngine(
            document,
            window=cfg.throttle_window,
            max_ancestor_steps=cfg.max_ancestor_steps,
            loop=loop,
        )
        self._effective: EffectiveConfig | None = None

    @property
    def site_id(self) -> str:
        return self._site_id

    @property
    def engine(self) -> SuppressionEngine:
        return self._engine

    @property
    def effective(self) -> EffectiveConfig | None:
        """Effective config from the last apply, None before the first one."""
        return self._effective

    def apply_from_settings(self, settings: Settings) -> EffectiveConfig:
        """Resolve settings for this page and converge the document to them.

        Runs synchronously so the document is never left half-updated at a
        suspension point. Safe to call repeatedly: every call recomputes from
        scratch instead of diffing against the previous state.
        """
        effective, _ = resolve_effective(settings, self._site_id)
        self._effective = effective

        if not effective.enabled:
            self._engine.stop()
            self._document.remove_stylesheet(STYLE_ELEMENT_ID)
            self._engine.restore_all()
            logger.debug("Study mode disabled for %s", self._site_id or "<no host>")
            return effective

        self._document.set_stylesheet(STYLE_ELEMENT_ID, build_stylesheet(effective))
        # Families may have been switched off since the last apply.
        self._engine.restore_all()
        self._engine.apply_dynamic(effective)
        self._engine.start(effective)
        logger.debug("Study mode applied for %s", self._site_id or "<no host>")
        return effective

    async def apply_from_storage(self) -> EffectiveConfig:
        """Load settings from the store, then apply them."""
        settings = await load_settings(self._store)
        return self.apply_from_settings(settings)

    def context_for(self, settings: Settings) -> PageContext:
        effective, has_override = resolve_effective(settings, self._site_id)
        return PageContext(site_id=self._site_id, effective=effective, has_site_override=has_override)

    async def get_context(self) -> PageContext:
        """Resolve this page's context from the stored settings."""
        settings = await load_settings(self._store)
        return self.context_for(settings)

    def unload(self) -> None:
        """Tear down on navigation away. Suppressed elements are left as is."""
        self._engine.stop()
        self._effective = None
