"""
Stylesheet synthesis for the theme and static suppression rules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .rules import RULE_FAMILIES, RuleFamily

if TYPE_CHECKING:
    from ..settings import EffectiveConfig

THEME_TEMPLATE = """
/* ---- Study Theme ---- */
:root {{ color-scheme: dark; }}
html {{
  filter: saturate({saturation}) contrast({contrast});
}}
body {{
  background: #0b1220 !important;
  color: #e5e7eb !important;
}}
a {{ color: #93c5fd !important; }}
img, video {{ filter: saturate(1.03) contrast(1.03); }}

/* Reduce motion (best-effort) */
*, *::before, *::after {{
  scroll-behavior: auto !important;
  transition-duration: 0.01ms !important;
  animation-duration: 0.01ms !important;
  animation-iteration-count: 1 !important;
}}
"""

HIDE_TEMPLATE = """
/* ---- {label} ---- */
{selectors} {{
  display: none !important;
  visibility: hidden !important;
}}
"""


def _number(value: float) -> str:
    """Shortest exact rendering: ``1`` for whole numbers, else ``repr``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def build_theme_css(saturation: float, contrast: float) -> str:
    return THEME_TEMPLATE.format(saturation=_number(saturation), contrast=_number(contrast))


def build_hide_css(family: RuleFamily) -> str:
    """Hide rule for a family's static selectors (one selector per line)."""
    return HIDE_TEMPLATE.format(label=family.label, selectors=",\n".join(family.static_selectors))


def build_stylesheet(effective: EffectiveConfig) -> str:
    """Build the stylesheet for an effective config.

    Returns an empty string when suppression is disabled. Output depends only
    on the input, so equal configs give byte-identical stylesheets.
    """
    if not effective.enabled:
        return ""

    css = ""
    if effective.theme_enabled:
        css += build_theme_css(effective.saturation, effective.contrast)

    for family in RULE_FAMILIES:
        if family.is_enabled(effective):
            css += build_hide_css(family)

    return css
