"""
Settings model: schema, defaults, merging and per-site resolution.

Settings are kept in their stored JSON shape (plain dicts with camelCase keys)
so that unknown keys written by other versions survive a load/save cycle.
Every operation here is pure: inputs are never mutated.
"""

from __future__ import annotations

import copy
import json
import logging
import math
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

from .exceptions import ConfigMalformedError, UnknownFieldError

logger = logging.getLogger(__name__)

Settings = dict[str, Any]


@dataclass(frozen=True)
class FieldSpec:
    """One field of the global/site record."""

    key: str
    attr: str
    default: bool | float
    minimum: float | None = None
    maximum: float | None = None

    @property
    def is_numeric(self) -> bool:
        return self.minimum is not None

    def sanitize(self, value: Any) -> bool | float:
        if self.minimum is None or self.maximum is None:
            return bool(value)
        return clamp(value, self.minimum, self.maximum)


FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("enabled", "enabled", True),
    FieldSpec("hideAds", "hide_ads", True),
    FieldSpec("hideComments", "hide_comments", False),
    FieldSpec("themeEnabled", "theme_enabled", True),
    FieldSpec("saturation", "saturation", 0.85, 0.3, 1.3),
    FieldSpec("contrast", "contrast", 1.08, 0.8, 1.4),
)

FIELDS_BY_KEY = {f.key: f for f in FIELDS}

DEFAULT_GLOBAL: dict[str, Any] = {f.key: f.default for f in FIELDS}


@dataclass(frozen=True)
class EffectiveConfig:
    """Resolved, sanitized settings for one site."""

    enabled: bool = True
    hide_ads: bool = True
    hide_comments: bool = False
    theme_enabled: bool = True
    saturation: float = 0.85
    contrast: float = 1.08
    has_site_override: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Record in stored/wire shape (camelCase, without the override flag)."""
        return {f.key: getattr(self, f.attr) for f in FIELDS}


def defaults() -> Settings:
    """Get a fresh copy of the default settings."""
    return {"global": dict(DEFAULT_GLOBAL), "sites": {}}


def clamp(value: Any, minimum: float, maximum: float) -> float:
    """Coerce to float and clamp; unusable input (None, junk, NaN) maps to minimum."""
    try:
        x = float(value)
    except (TypeError, ValueError):
        return minimum
    if math.isnan(x):
        return minimum
    return min(maximum, max(minimum, x))


def deep_merge(base: Any, patch: Any) -> Any:
    """Merge ``patch`` over ``base``.

    Nested dicts present on both sides are merged recursively; any other patch
    value (scalars, lists, None) replaces the base value. Keys that only exist
    in ``patch`` are kept.
    """
    if not isinstance(patch, dict):
        return copy.deepcopy(base)

    out = copy.deepcopy(base) if isinstance(base, dict) else {}
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def merge_defaults(stored: Any) -> tuple[Settings, bool]:
    """Backfill stored settings with defaults.

    Returns:
        The merged settings and whether they differ from what was stored
        (i.e. whether the caller should persist them).
    """
    if stored is None:
        return defaults(), True

    merged = deep_merge(defaults(), stored)
    return merged, merged != stored


def normalize_site_id(site_id: str | None) -> str:
    """Site keys are lowercase hostnames."""
    return (site_id or "").strip().lower()


def site_id_from_url(url: str) -> str:
    """Get the site key for a URL ('' when the URL has no hostname)."""
    try:
        return normalize_site_id(urlparse(url).hostname)
    except ValueError:
        return ""


def _global_record(settings: Any) -> dict[str, Any]:
    g = settings.get("global") if isinstance(settings, dict) else None
    if not isinstance(g, dict):
        return dict(DEFAULT_GLOBAL)
    return g


def _sites(settings: Any) -> dict[str, Any]:
    sites = settings.get("sites") if isinstance(settings, dict) else None
    return sites if isinstance(sites, dict) else {}


def resolve_effective(settings: Settings, site_id: str) -> tuple[EffectiveConfig, bool]:
    """Resolve the effective configuration for a site.

    Override fields win field by field; unset fields fall through to the
    global record. Each field is then sanitized on its own, so one bad value
    never invalidates the others.

    Args:
        settings: Settings in stored shape (may be malformed).
        site_id: Hostname of the site.

    Returns:
        Tuple of (effective config, has_site_override).
    """
    site_id = normalize_site_id(site_id)
    sites = _sites(settings)
    has_override = site_id in sites

    site = sites.get(site_id)
    merged = {**_global_record(settings), **(site if isinstance(site, dict) else {})}

    values = {f.attr: f.sanitize(merged.get(f.key)) for f in FIELDS}
    effective = EffectiveConfig(has_site_override=has_override, **values)
    return effective, has_override


def _writable_copy(settings: Settings) -> Settings:
    out = copy.deepcopy(settings) if isinstance(settings, dict) else defaults()
    if not isinstance(out.get("global"), dict):
        out["global"] = dict(DEFAULT_GLOBAL)
    if not isinstance(out.get("sites"), dict):
        out["sites"] = {}
    return out


def _snapshot_override(settings: Settings, site_id: str) -> None:
    if not isinstance(settings["sites"].get(site_id), dict):
        effective, _ = resolve_effective(settings, site_id)
        settings["sites"][site_id] = effective.to_dict()


def set_field(
    settings: Settings,
    site_id: str,
    field: str,
    value: Any,
    use_site_scope: bool,
) -> Settings:
    """Write one field, either to the site's override or to the global record.

    When writing to a site that has no override yet, the override starts as
    a snapshot of the site's current effective config so that the other
    fields keep their values.

    Raises:
        UnknownFieldError: If ``field`` is not part of the schema.
    """
    field_spec = FIELDS_BY_KEY.get(field)
    if field_spec is None:
        raise UnknownFieldError(field)

    out = _writable_copy(settings)
    if use_site_scope:
        site_id = normalize_site_id(site_id)
        _snapshot_override(out, site_id)
        out["sites"][site_id][field] = field_spec.sanitize(value)
    else:
        out["global"][field] = field_spec.sanitize(value)
    return out


def enable_site_override(settings: Settings, site_id: str) -> Settings:
    """Give a site its own override, seeded from its effective config."""
    out = _writable_copy(settings)
    _snapshot_override(out, normalize_site_id(site_id))
    return out


def clear_site_override(settings: Settings, site_id: str) -> Settings:
    """Drop a site's override so it follows the global record again."""
    out = _writable_copy(settings)
    out["sites"].pop(normalize_site_id(site_id), None)
    return out


def export_settings(settings: Settings) -> str:
    """Serialize settings for export."""
    return json.dumps(settings, indent=2)


def import_settings(text: str) -> Settings:
    """Parse exported settings, backfilling anything missing with defaults.

    Raises:
        ConfigMalformedError: If the text is not JSON.
    """
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ConfigMalformedError(f"Invalid settings JSON: {e}") from e

    if not isinstance(parsed, dict):
        logger.warning("Imported settings are not an object, using defaults")
    merged: Settings = deep_merge(defaults(), parsed)
    return merged
