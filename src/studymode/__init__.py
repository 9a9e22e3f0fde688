"""
studymode: hide ad-like and comment-like page regions and apply a calm theme,
with settings resolved per site or globally.
"""

from .page.controller import PageController
from .page.engine import SuppressionEngine
from .settings import EffectiveConfig, defaults, merge_defaults, resolve_effective, set_field

__all__ = [
    "EffectiveConfig",
    "PageController",
    "SuppressionEngine",
    "defaults",
    "merge_defaults",
    "resolve_effective",
    "set_field",
]
