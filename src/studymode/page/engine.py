"""
Dynamic suppression engine.

Keeps a live document in line with the dynamic rules: hides matching elements
(possibly a slightly wider container), remembers their previous inline
``display`` on the element itself, re-runs on document changes through a
throttle, and can restore everything it touched.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum, auto
from typing import TYPE_CHECKING

from .document import Document, Element, MutationRecord, MutationWatch
from .rules import enabled_families
from .throttle import Throttle

if TYPE_CHECKING:
    from ..settings import EffectiveConfig

logger = logging.getLogger(__name__)

HIDDEN_ATTR = "data-studymode-hidden"
PREV_DISPLAY_ATTR = "data-studymode-prev-display"

THROTTLE_WINDOW = 0.25  # seconds
MAX_ANCESTOR_STEPS = 3

# Never hidden, whatever matches.
PAGE_ROOT_TAGS = frozenset({"html", "body"})


class EngineState(Enum):
    STOPPED = auto()
    WATCHING = auto()


class SuppressionEngine:
    """Watches a document and applies dynamic suppression rules to it."""

    def __init__(
        self,
        document: Document,
        *,
        window: float = THROTTLE_WINDOW,
        max_ancestor_steps: int = MAX_ANCESTOR_STEPS,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            document: Document to keep suppressed.
            window: Throttle window in event-loop seconds.
            max_ancestor_steps: How far a match may be widened to a container.
            loop: Event loop for throttle timers. Defaults to the running loop
                at ``start()``.
        """
        self._document = document
        self._window = window
        self._max_ancestor_steps = max_ancestor_steps
        self._loop = loop

        self._state = EngineState.STOPPED
        self._watch: MutationWatch | None = None
        self._throttle: Throttle | None = None
        self._effective: EffectiveConfig | None = None

        # Statistics
        self._pass_count = 0

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def watching(self) -> bool:
        return self._state is EngineState.WATCHING

    @property
    def pass_count(self) -> int:
        return self._pass_count

    def start(self, effective: EffectiveConfig) -> None:
        """Start watching the document. Already watching: just retarget."""
        self._effective = effective
        if self.watching:
            return

        loop = self._loop or asyncio.get_running_loop()
        self._throttle = Throttle(self._on_tick, self._window, loop)
        self._watch = self._document.observe(self._on_mutations)
        self._state = EngineState.WATCHING
        logger.info("Suppression engine watching")

        self.apply_dynamic(effective)

    def stop(self) -> None:
        """Stop watching. Suppressed elements stay suppressed."""
        if not self.watching:
            return

        self._state = EngineState.STOPPED
        if self._watch is not None:
            self._watch.disconnect()
            self._watch = None
        if self._throttle is not None:
            self._throttle.cancel()
            self._throttle = None
        logger.info("Suppression engine stopped")

    def _on_mutations(self, records: list[MutationRecord]) -> None:
        if self._throttle is not None:
            self._throttle()

    def _on_tick(self) -> None:
        # A trailing call can fire after stop(); check before acting.
        if not self.watching:
            return
        effective = self._effective
        if effective is not None and effective.enabled:
            self.apply_dynamic(effective)

    def apply_dynamic(self, effective: EffectiveConfig) -> int:
        """Run one suppression pass.

        Returns:
            Number of elements newly suppressed.
        """
        self._effective = effective
        if not effective.enabled:
            return 0

        self._pass_count += 1
        hidden = 0
        for family in enabled_families(effective):
            for selector in family.dynamic_selectors:
                try:
                    for match in self._document.select(selector):
                        target = self.best_container(match)
                        if self._document.tag_name(target) in PAGE_ROOT_TAGS:
                            continue
                        if self.suppress(target):
                            hidden += 1
                except Exception as e:
                    logger.debug("Rule %s failed: %s", selector, e)
                    continue

        if hidden:
            logger.debug("Suppression pass %d hid %d elements", self._pass_count, hidden)
        return hidden

    def best_container(self, element: Element) -> Element:
        """Widen a match to a nearby ad-like container.

        Walks up at most ``max_ancestor_steps`` parents and stops at the first
        one that looks like a banner, ad/sponsor wrapper or aside. If none
        does, the last ancestor reached is used, so a bare "Sponsored" label
        is not left behind. The walk never reaches ``<body>`` or ``<html>``.
        """
        doc = self._document
        current = element
        for _ in range(self._max_ancestor_steps):
            parent = doc.parent(current)
            if parent is None or doc.tag_name(parent) in PAGE_ROOT_TAGS:
                break

            current = parent
            role = (doc.get_attribute(parent, "role") or "").lower()
            cls = (doc.get_attribute(parent, "class") or "").lower()
            if (
                "banner" in role
                or "ad" in cls
                or "sponsor" in cls
                or doc.tag_name(parent) == "aside"
            ):
                break
        return current

    def is_suppressed(self, element: Element) -> bool:
        return self._document.get_attribute(element, HIDDEN_ATTR) == "1"

    def suppress(self, element: Element) -> bool:
        """Hide one element, recording its inline display. False if already hidden."""
        if self.is_suppressed(element):
            return False

        doc = self._document
        doc.set_attribute(element, PREV_DISPLAY_ATTR, doc.get_style_property(element, "display"))
        doc.set_style_property(element, "display", "none")
        doc.set_attribute(element, HIDDEN_ATTR, "1")
        return True

    def restore_all(self) -> int:
        """Undo every suppression recorded in the document.

        Returns:
            Number of elements restored.
        """
        doc = self._document
        restored = 0
        for element in doc.select(f'[{HIDDEN_ATTR}="1"]'):
            previous = doc.get_attribute(element, PREV_DISPLAY_ATTR) or ""
            doc.set_style_property(element, "display", previous)
            doc.remove_attribute(element, HIDDEN_ATTR)
            doc.remove_attribute(element, PREV_DISPLAY_ATTR)
            restored += 1

        if restored:
            logger.debug("Restored %d suppressed elements", restored)
        return restored
