"""
Suppression rule catalogue.

Each family has two selector lists:

- static selectors go into the injected stylesheet. They are broad
  (case-insensitive substring matches) because removing the stylesheet undoes
  them completely.
- dynamic selectors are queried on every suppression pass and the matches are
  hidden by editing the element. They are narrow, explicit markers only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..settings import EffectiveConfig


@dataclass(frozen=True)
class RuleFamily:
    """A group of rules switched on by one settings flag."""

    name: str
    flag: str  # EffectiveConfig attribute
    label: str  # stylesheet section heading
    static_selectors: tuple[str, ...]
    dynamic_selectors: tuple[str, ...]

    def is_enabled(self, effective: EffectiveConfig) -> bool:
        return bool(getattr(effective, self.flag, False))


AD_RULES = RuleFamily(
    name="ads",
    flag="hide_ads",
    label="Hide Ads (heuristics)",
    static_selectors=(
        # Ad containers by naming
        '[id^="ad" i]',
        '[id*="-ad" i]',
        '[id*="_ad" i]',
        '[id*=" ad" i]',
        '[class^="ad" i]',
        '[class*="-ad" i]',
        '[class*="_ad" i]',
        '[class*=" ad" i]',
        # Sponsored / promoted markers
        '[id*="sponsor" i]',
        '[class*="sponsor" i]',
        '[id*="promoted" i]',
        '[class*="promoted" i]',
        '[id*="advert" i]',
        '[class*="advert" i]',
        # Ad network widgets
        ".adsbygoogle",
        'iframe[id*="google_ads" i]',
        'iframe[src*="doubleclick" i]',
    ),
    dynamic_selectors=(
        '[aria-label*="sponsored" i]',
        '[aria-label*="promoted" i]',
        "[data-ad]",
        "[data-ads]",
        "[data-ad-slot]",
        "[data-adunit]",
        'a[href*="doubleclick" i]',
        'iframe[src*="doubleclick" i]',
        'a[href*="googleadservices" i]',
        'iframe[src*="googlesyndication" i]',
    ),
)

COMMENT_RULES = RuleFamily(
    name="comments",
    flag="hide_comments",
    label="Hide Comments (heuristics)",
    static_selectors=(
        "#comments",
        '[id*="comment" i]',
        '[class*="comment" i]',
        "#disqus_thread",
        '[class*="disqus" i]',
        '[data-testid*="comment" i]',
        '[data-test*="comment" i]',
    ),
    dynamic_selectors=(
        "#comments",
        "#disqus_thread",
        '[data-testid*="comment" i]',
        '[data-test*="comment" i]',
    ),
)

RULE_FAMILIES: tuple[RuleFamily, ...] = (AD_RULES, COMMENT_RULES)


def enabled_families(effective: EffectiveConfig) -> list[RuleFamily]:
    """Families switched on by the effective config, in catalogue order."""
    return [family for family in RULE_FAMILIES if family.is_enabled(effective)]
