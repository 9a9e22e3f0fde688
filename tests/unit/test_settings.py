"""Unit tests for the settings model."""

from __future__ import annotations

import json
import math
from typing import Any

import pytest

from studymode.exceptions import ConfigMalformedError, UnknownFieldError
from studymode.settings import (
    FIELDS_BY_KEY,
    EffectiveConfig,
    FieldSpec,
    clamp,
    clear_site_override,
    deep_merge,
    defaults,
    enable_site_override,
    export_settings,
    import_settings,
    merge_defaults,
    resolve_effective,
    set_field,
    site_id_from_url,
)


class TestDefaults:
    """Tests for default settings."""

    def test_default_values(self) -> None:
        """Test the documented default values."""
        settings = defaults()
        assert settings == {
            "global": {
                "enabled": True,
                "hideAds": True,
                "hideComments": False,
                "themeEnabled": True,
                "saturation": 0.85,
                "contrast": 1.08,
            },
            "sites": {},
        }

    def test_defaults_are_fresh_copies(self) -> None:
        """Test that mutating one defaults() result does not leak into the next."""
        first = defaults()
        first["global"]["hideAds"] = False
        first["sites"]["x.com"] = {}

        second = defaults()
        assert second["global"]["hideAds"] is True
        assert second["sites"] == {}


class TestMergeDefaults:
    """Tests for backfilling stored settings."""

    def test_missing_storage_returns_defaults(self) -> None:
        """Test that absent data yields defaults and asks to be persisted."""
        settings, changed = merge_defaults(None)
        assert settings == defaults()
        assert changed is True

    def test_partial_global_is_backfilled(self) -> None:
        """Test that only the stored field overrides the default."""
        settings, changed = merge_defaults({"global": {"hideAds": False}})

        expected = defaults()
        expected["global"]["hideAds"] = False
        assert settings == expected
        assert changed is True

    def test_complete_data_is_unchanged(self) -> None:
        """Test that complete stored data needs no rewrite."""
        stored = defaults()
        stored["sites"]["example.com"] = {"hideComments": True}

        settings, changed = merge_defaults(stored)
        assert settings == stored
        assert changed is False

    def test_unknown_fields_preserved(self) -> None:
        """Test that fields outside the schema survive the merge."""
        stored = {"global": {"futureFlag": 3}, "version": 2}
        settings, _ = merge_defaults(stored)
        assert settings["global"]["futureFlag"] == 3
        assert settings["version"] == 2
        assert settings["global"]["enabled"] is True

    def test_site_overrides_not_merged_with_global(self) -> None:
        """Test that site records stay partial after load."""
        settings, _ = merge_defaults({"sites": {"a.com": {"contrast": 1.2}}})
        assert settings["sites"]["a.com"] == {"contrast": 1.2}

    def test_non_object_storage_falls_back(self) -> None:
        """Test that garbage stored data is replaced by defaults."""
        settings, changed = merge_defaults("not settings")
        assert settings == defaults()
        assert changed is True

    def test_stored_scalar_replaces_nested_default(self) -> None:
        """Test that a stored non-dict value wins outright."""
        merged = deep_merge({"a": {"b": 1}, "c": [1, 2]}, {"a": None, "c": [3]})
        assert merged == {"a": None, "c": [3]}

    def test_merge_does_not_mutate_inputs(self) -> None:
        """Test that deep_merge leaves both inputs untouched."""
        base = {"a": {"b": 1}}
        patch = {"a": {"c": 2}}
        merged = deep_merge(base, patch)
        merged["a"]["b"] = 99
        assert base == {"a": {"b": 1}}
        assert patch == {"a": {"c": 2}}


class TestClamp:
    """Tests for numeric sanitization."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (0.5, 0.5),
            (-4, 0.3),
            (1e9, 1.3),
            (float("nan"), 0.3),
            (float("inf"), 1.3),
            (float("-inf"), 0.3),
            ("0.9", 0.9),
            ("junk", 0.3),
            (None, 0.3),
            ([1], 0.3),
        ],
    )
    def test_saturation_range(self, value: Any, expected: float) -> None:
        """Test clamping into the saturation range."""
        result = clamp(value, 0.3, 1.3)
        assert result == expected
        assert 0.3 <= result <= 1.3

    def test_resolved_numbers_always_in_range(self) -> None:
        """Test that resolution clamps any stored numeric input."""
        for raw in (float("nan"), -1, 0, 5, 1e300, "x", None, True):
            settings = {"global": {"saturation": raw, "contrast": raw}, "sites": {}}
            effective, _ = resolve_effective(settings, "example.com")
            assert 0.3 <= effective.saturation <= 1.3
            assert 0.8 <= effective.contrast <= 1.4
            assert not math.isnan(effective.saturation)

    def test_field_sanitize(self) -> None:
        """Test that numeric fields clamp and flag fields coerce to bool."""
        assert FIELDS_BY_KEY["contrast"].sanitize(9) == 1.4
        assert FIELDS_BY_KEY["hideAds"].sanitize(0) is False
        assert FIELDS_BY_KEY["enabled"].sanitize("yes") is True
        assert FieldSpec("half", "half", 1.0, minimum=0.0).sanitize("x") is True


class TestResolveEffective:
    """Tests for site vs global resolution."""

    def test_global_only(self) -> None:
        """Test resolution for a site without an override."""
        effective, has_override = resolve_effective(defaults(), "example.com")

        assert has_override is False
        assert effective == EffectiveConfig(
            enabled=True,
            hide_ads=True,
            hide_comments=False,
            theme_enabled=True,
            saturation=0.85,
            contrast=1.08,
            has_site_override=False,
        )

    def test_override_precedence(self) -> None:
        """Test that override fields win and the rest fall through."""
        settings = defaults()
        settings["global"]["contrast"] = 1.2
        settings["sites"]["news.com"] = {"hideComments": True}

        effective, has_override = resolve_effective(settings, "news.com")

        assert has_override is True
        assert effective.has_site_override is True
        assert effective.hide_comments is True
        assert effective.contrast == 1.2
        assert effective.hide_ads is True
        assert effective.saturation == 0.85

    def test_site_id_is_case_insensitive(self) -> None:
        """Test that lookups use the lowercase hostname."""
        settings = defaults()
        settings["sites"]["news.com"] = {"enabled": False}

        effective, has_override = resolve_effective(settings, "News.COM")
        assert has_override is True
        assert effective.enabled is False

    def test_other_sites_unaffected(self) -> None:
        """Test that an override only applies to its own host."""
        settings = defaults()
        settings["sites"]["news.com"] = {"enabled": False}

        effective, has_override = resolve_effective(settings, "blog.com")
        assert has_override is False
        assert effective.enabled is True

    def test_deterministic(self) -> None:
        """Test that repeated resolution gives identical output."""
        settings = defaults()
        settings["sites"]["a.com"] = {"saturation": 0.4}
        snapshot = json.dumps(settings, sort_keys=True)

        first = resolve_effective(settings, "a.com")
        second = resolve_effective(settings, "a.com")
        assert first == second
        assert json.dumps(settings, sort_keys=True) == snapshot

    def test_booleans_coerced(self) -> None:
        """Test that non-boolean flags are coerced by truthiness."""
        settings = {"global": {"enabled": 1, "hideAds": 0, "hideComments": "yes", "themeEnabled": None}}
        effective, _ = resolve_effective(settings, "a.com")
        assert effective.enabled is True
        assert effective.hide_ads is False
        assert effective.hide_comments is True
        assert effective.theme_enabled is False

    @pytest.mark.parametrize(
        "settings",
        [
            None,
            [],
            {"global": "oops"},
            {"global": None, "sites": "oops"},
            {"global": {}, "sites": {"a.com": "oops"}},
        ],
    )
    def test_malformed_settings_do_not_crash(self, settings: Any) -> None:
        """Test that malformed data resolves to something usable."""
        effective, _ = resolve_effective(settings, "a.com")
        assert isinstance(effective, EffectiveConfig)
        assert 0.3 <= effective.saturation <= 1.3

    def test_non_record_override_still_counts(self) -> None:
        """Test that a junk override keeps the key but contributes no fields."""
        settings = {"global": defaults()["global"], "sites": {"a.com": "oops"}}
        effective, has_override = resolve_effective(settings, "a.com")
        assert has_override is True
        assert effective.to_dict() == defaults()["global"]

    def test_to_dict_shape(self) -> None:
        """Test the wire shape of an effective config."""
        effective, _ = resolve_effective(defaults(), "a.com")
        assert effective.to_dict() == defaults()["global"]


class TestSetField:
    """Tests for scoped writes."""

    def test_site_scope_snapshots_effective(self) -> None:
        """Test that the first site write copies every effective field."""
        settings = defaults()
        settings["global"]["hideComments"] = True

        updated = set_field(settings, "x.com", "saturation", 0.5, use_site_scope=True)

        assert updated["sites"]["x.com"] == {
            "enabled": True,
            "hideAds": True,
            "hideComments": True,
            "themeEnabled": True,
            "saturation": 0.5,
            "contrast": 1.08,
        }

    def test_site_scope_keeps_values_after_global_change(self) -> None:
        """Test that a snapshot override no longer follows later global edits."""
        settings = set_field(defaults(), "x.com", "saturation", 0.5, use_site_scope=True)
        settings = set_field(settings, "x.com", "hideAds", False, use_site_scope=False)

        effective, _ = resolve_effective(settings, "x.com")
        assert effective.hide_ads is True
        assert effective.saturation == 0.5

    def test_site_scope_updates_existing_override(self) -> None:
        """Test that an existing override is edited in place."""
        settings = defaults()
        settings["sites"]["x.com"] = {"contrast": 1.3}

        updated = set_field(settings, "x.com", "hideAds", False, use_site_scope=True)
        assert updated["sites"]["x.com"] == {"contrast": 1.3, "hideAds": False}

    def test_global_scope_leaves_overrides(self) -> None:
        """Test that global writes do not touch site overrides."""
        settings = defaults()
        settings["sites"]["x.com"] = {"enabled": False}

        updated = set_field(settings, "x.com", "enabled", True, use_site_scope=False)
        assert updated["global"]["enabled"] is True
        assert updated["sites"]["x.com"] == {"enabled": False}

    def test_input_not_mutated(self) -> None:
        """Test that set_field returns a new settings value."""
        settings = defaults()
        set_field(settings, "x.com", "contrast", 1.3, use_site_scope=True)
        set_field(settings, "x.com", "contrast", 1.3, use_site_scope=False)
        assert settings == defaults()

    def test_written_value_sanitized(self) -> None:
        """Test that written values are clamped."""
        updated = set_field(defaults(), "", "contrast", 9, use_site_scope=False)
        assert updated["global"]["contrast"] == 1.4

    def test_unknown_field_rejected(self) -> None:
        """Test that fields outside the schema raise."""
        with pytest.raises(UnknownFieldError):
            set_field(defaults(), "x.com", "fontSize", 12, use_site_scope=True)

    def test_site_key_normalized(self) -> None:
        """Test that overrides are stored under the lowercase host."""
        updated = set_field(defaults(), "X.com", "hideAds", False, use_site_scope=True)
        assert "x.com" in updated["sites"]
        assert "X.com" not in updated["sites"]


class TestSiteOverrideToggle:
    """Tests for enabling and clearing site overrides."""

    def test_enable_creates_snapshot(self) -> None:
        """Test that enabling copies the effective config."""
        updated = enable_site_override(defaults(), "x.com")
        assert updated["sites"]["x.com"] == defaults()["global"]

    def test_enable_keeps_existing(self) -> None:
        """Test that enabling twice keeps the first override."""
        settings = defaults()
        settings["sites"]["x.com"] = {"hideAds": False}
        assert enable_site_override(settings, "x.com")["sites"]["x.com"] == {"hideAds": False}

    def test_clear_removes_override(self) -> None:
        """Test that clearing restores global behaviour."""
        settings = enable_site_override(defaults(), "x.com")
        cleared = clear_site_override(settings, "x.com")

        assert "x.com" not in cleared["sites"]
        _, has_override = resolve_effective(cleared, "x.com")
        assert has_override is False

    def test_clear_missing_is_noop(self) -> None:
        """Test that clearing an absent override changes nothing."""
        assert clear_site_override(defaults(), "x.com") == defaults()


class TestImportExport:
    """Tests for settings import/export."""

    def test_export_is_json(self) -> None:
        """Test that export produces parseable JSON."""
        settings = set_field(defaults(), "x.com", "hideAds", False, use_site_scope=True)
        assert json.loads(export_settings(settings)) == settings

    def test_import_backfills(self) -> None:
        """Test that imported partial settings gain missing defaults."""
        imported = import_settings('{"global": {"themeEnabled": false}}')
        assert imported["global"]["themeEnabled"] is False
        assert imported["global"]["saturation"] == 0.85
        assert imported["sites"] == {}

    def test_import_invalid_json(self) -> None:
        """Test that non-JSON input raises."""
        with pytest.raises(ConfigMalformedError):
            import_settings("{not json")


class TestSiteIdFromUrl:
    """Tests for hostname extraction."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("https://Example.com/path", "example.com"),
            ("http://news.example.com:8080/", "news.example.com"),
            ("about:blank", ""),
            ("", ""),
        ],
    )
    def test_site_id_from_url(self, url: str, expected: str) -> None:
        """Test lowercase hostname extraction without port."""
        assert site_id_from_url(url) == expected
