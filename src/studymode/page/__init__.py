"""
Page-side suppression: rules, stylesheet synthesis, the dynamic engine and
the per-page controller.
"""

from .controller import PageController
from .document import HtmlDocument
from .engine import SuppressionEngine

__all__ = ["HtmlDocument", "PageController", "SuppressionEngine"]
