"""
Message envelopes exchanged between the background, page and presentation
contexts.

Requests form a closed set keyed by ``type``; anything else is not a message
and gets no response.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from ..settings import EffectiveConfig


class MessageType(str, Enum):
    RELOAD_SETTINGS = "RELOAD_SETTINGS"
    GET_CONTEXT = "GET_CONTEXT"
    ENSURE_DEFAULTS = "ENSURE_DEFAULTS"
    PING_APPLY_ACTIVE_TAB = "PING_APPLY_ACTIVE_TAB"


# === Requests ===


@dataclass(frozen=True)
class ReloadSettings:
    """Page context: re-apply stored settings."""

    type: ClassVar[MessageType] = MessageType.RELOAD_SETTINGS

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value}


@dataclass(frozen=True)
class GetContext:
    """Page context: report hostname and effective settings."""

    type: ClassVar[MessageType] = MessageType.GET_CONTEXT

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value}


@dataclass(frozen=True)
class EnsureDefaults:
    """Background: make sure complete settings are stored."""

    type: ClassVar[MessageType] = MessageType.ENSURE_DEFAULTS

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value}


@dataclass(frozen=True)
class PingApplyActiveTab:
    """Background: forward RELOAD_SETTINGS to the active tab."""

    type: ClassVar[MessageType] = MessageType.PING_APPLY_ACTIVE_TAB

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value}


Request = ReloadSettings | GetContext | EnsureDefaults | PingApplyActiveTab

REQUEST_TYPES: dict[MessageType, type[Request]] = {
    MessageType.RELOAD_SETTINGS: ReloadSettings,
    MessageType.GET_CONTEXT: GetContext,
    MessageType.ENSURE_DEFAULTS: EnsureDefaults,
    MessageType.PING_APPLY_ACTIVE_TAB: PingApplyActiveTab,
}


def parse_request(message: Any) -> Request | None:
    """Decode a raw envelope. Returns None for anything unrecognized."""
    if not isinstance(message, dict):
        return None

    raw_type = message.get("type")
    if not isinstance(raw_type, str):
        return None

    try:
        message_type = MessageType(raw_type)
    except ValueError:
        return None

    return REQUEST_TYPES[message_type]()


# === Responses ===


@dataclass(frozen=True)
class OkResponse:
    def to_dict(self) -> dict[str, Any]:
        return {"ok": True}


@dataclass(frozen=True)
class ContextResponse:
    hostname: str
    effective: EffectiveConfig
    has_site_override: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": True,
            "hostname": self.hostname,
            "effective": self.effective.to_dict(),
            "hasSiteOverride": self.has_site_override,
        }


@dataclass(frozen=True)
class ErrorResponse:
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"ok": False, "error": self.error}


Response = OkResponse | ContextResponse | ErrorResponse
