"""
Messaging between studymode contexts.
"""

from .messages import (
    ContextResponse,
    EnsureDefaults,
    ErrorResponse,
    GetContext,
    MessageType,
    OkResponse,
    PingApplyActiveTab,
    ReloadSettings,
    parse_request,
)
from .tabs import TabMessenger, TabRegistry

__all__ = [
    "ContextResponse",
    "EnsureDefaults",
    "ErrorResponse",
    "GetContext",
    "MessageType",
    "OkResponse",
    "PingApplyActiveTab",
    "ReloadSettings",
    "TabMessenger",
    "TabRegistry",
    "parse_request",
]
