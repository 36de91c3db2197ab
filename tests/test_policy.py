"""
Tests for manup.policy package.

Tests policy parsing and gate decisions including:
- Defaults for absent fields and the settings block
- The inverted "enabled" maintenance flag
- Fail-open fallbacks versus strict parsing
- Decision order (maintenance > hard update > soft update > allowed)
- {{app}} substitution and button selection in verdicts
"""

from __future__ import annotations

import json
from unittest.mock import Mock

import pytest

from manup.exceptions import PolicyParseError
from manup.platforms import PlatformKey
from manup.policy import PolicyDocument, build_verdict, decide, parse_policy
from manup.policy.document import (
    DEFAULT_BUTTONS,
    DEFAULT_MAINTENANCE,
    DEFAULT_MANDATORY,
    DEFAULT_OPTIONAL,
)
from manup.policy.parser import load_policy_json
from manup.results import VerdictButtons, VerdictKind
from manup.versioning import ZERO_VERSION, parse_version


def _doc(**fields) -> PolicyDocument:
    return PolicyDocument(platform=PlatformKey.ANDROID, **fields)


class TestParsePolicy:
    """Tests for parse_policy."""

    def test_reads_platform_section(self, sample_policy_json):
        """Test that the requested platform's fields are read."""
        doc = parse_policy(sample_policy_json, PlatformKey.IOS)

        assert doc.platform is PlatformKey.IOS
        assert doc.update_link == "https://example.com/store/app"
        assert doc.latest_version == parse_version("2.0.0")
        assert doc.minimum_version == parse_version("1.5.0")
        assert doc.maintenance_enabled is False

    def test_missing_fields_take_defaults(self):
        """Test that a bare platform section yields a complete document."""
        doc = parse_policy('{"android": {}}', PlatformKey.ANDROID)

        assert doc.update_link == ""
        assert doc.latest_version == ZERO_VERSION
        assert doc.minimum_version == ZERO_VERSION
        assert doc.maintenance_enabled is False
        assert doc.mandatory == DEFAULT_MANDATORY
        assert doc.optional == DEFAULT_OPTIONAL
        assert doc.maintenance == DEFAULT_MAINTENANCE
        assert doc.buttons == DEFAULT_BUTTONS

    def test_enabled_false_means_maintenance(self):
        """Test that the wire flag is inverted into maintenance_enabled."""
        doc = parse_policy('{"android": {"enabled": false}}', PlatformKey.ANDROID)
        assert doc.maintenance_enabled is True

        doc = parse_policy('{"android": {"enabled": true}}', PlatformKey.ANDROID)
        assert doc.maintenance_enabled is False

    @pytest.mark.parametrize(("raw", "maintenance"), [("false", True), ("yes", False), (0, True)])
    def test_enabled_lenient_values(self, raw, maintenance):
        """Test that string and integer flags are accepted."""
        text = json.dumps({"android": {"enabled": raw}})
        doc = parse_policy(text, PlatformKey.ANDROID)
        assert doc.maintenance_enabled is maintenance

    @pytest.mark.parametrize("raw", ["false", 1])
    def test_enabled_strict_requires_boolean(self, raw):
        """Test that strict mode rejects string and integer flags."""
        text = json.dumps({"android": {"enabled": raw}})
        with pytest.raises(PolicyParseError, match="android.enabled"):
            parse_policy(text, PlatformKey.ANDROID, strict=True)

    def test_numeric_versions_accepted(self):
        """Test that JSON numbers are read as versions."""
        doc = parse_policy('{"android": {"latest": 2, "minimum": 1.5}}', PlatformKey.ANDROID)

        assert doc.latest_version == parse_version("2")
        assert doc.minimum_version == parse_version("1.5")

    def test_settings_override_defaults(self):
        """Test that the manup block replaces messages and button labels."""
        text = json.dumps(
            {
                "android": {"latest": "1.0"},
                "manup": {
                    "mandatory": {"title": "Must update", "message": "Get {{app}} now"},
                    "buttons": {"update": "Go", "later": "Not now"},
                },
            }
        )
        doc = parse_policy(text, PlatformKey.ANDROID)

        assert doc.mandatory.title == "Must update"
        assert doc.mandatory.body == "Get {{app}} now"
        assert doc.optional == DEFAULT_OPTIONAL
        assert doc.buttons.update == "Go"
        assert doc.buttons.later == "Not now"
        assert doc.buttons.ok == DEFAULT_BUTTONS.ok

    def test_partial_template_keeps_other_default(self):
        """Test that a template with only a title keeps the default body."""
        text = json.dumps(
            {"android": {}, "manup": {"maintenance": {"title": "Down"}}}
        )
        doc = parse_policy(text, PlatformKey.ANDROID)

        assert doc.maintenance.title == "Down"
        assert doc.maintenance.body == DEFAULT_MAINTENANCE.body

    def test_malformed_version_falls_back_to_zero(self):
        """Test that a malformed version yields 0 and a warning."""
        logger = Mock()
        doc = parse_policy(
            '{"android": {"minimum": "1.x", "latest": "2.0"}}',
            PlatformKey.ANDROID,
            logger=logger,
        )

        assert doc.minimum_version == ZERO_VERSION
        assert doc.latest_version == parse_version("2.0")
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "VERSION"
        assert "android.minimum" in logger.warning.call_args.args[1]

    def test_malformed_version_strict_raises(self):
        """Test that strict mode raises on a malformed version."""
        with pytest.raises(PolicyParseError, match="android.minimum"):
            parse_policy(
                '{"android": {"minimum": "1.x"}}', PlatformKey.ANDROID, strict=True
            )

    def test_wrongly_typed_text_falls_back(self):
        """Test that a non-string message uses the default."""
        logger = Mock()
        text = json.dumps({"android": {}, "manup": {"optional": {"title": 5}}})
        doc = parse_policy(text, PlatformKey.ANDROID, logger=logger)

        assert doc.optional.title == DEFAULT_OPTIONAL.title
        logger.warning.assert_called_once()

    def test_missing_platform_section_raises(self, sample_policy_data):
        """Test that an absent platform section is a parse failure."""
        del sample_policy_data["windows"]
        with pytest.raises(PolicyParseError, match="windows"):
            parse_policy(json.dumps(sample_policy_data), PlatformKey.WINDOWS)

    def test_non_object_platform_section_raises(self):
        """Test that a platform section must be an object."""
        with pytest.raises(PolicyParseError):
            parse_policy('{"android": "1.0"}', PlatformKey.ANDROID)

    @pytest.mark.parametrize("text", ["not json", "[1, 2]", "", '"android"'])
    def test_invalid_document_raises(self, text):
        """Test that invalid JSON or a non-object top level raises."""
        with pytest.raises(PolicyParseError):
            parse_policy(text, PlatformKey.ANDROID)

    def test_parse_error_carries_reason(self):
        """Test that PolicyParseError exposes a readable reason."""
        with pytest.raises(PolicyParseError) as exc_info:
            load_policy_json("{")
        assert exc_info.value.reason.startswith("invalid JSON")


class TestDecide:
    """Tests for the decision order."""

    def test_maintenance_wins_over_everything(self):
        """Test that maintenance beats a hard update."""
        doc = _doc(
            maintenance_enabled=True,
            minimum_version=parse_version("9.0"),
            latest_version=parse_version("9.0"),
        )
        assert decide(doc, parse_version("1.0")) is VerdictKind.MAINTENANCE

    def test_below_minimum_is_hard_update(self):
        """Test that a version below minimum must update."""
        doc = _doc(minimum_version=parse_version("1.5"), latest_version=parse_version("2.0"))
        assert decide(doc, parse_version("1.4.9")) is VerdictKind.HARD_UPDATE

    def test_at_minimum_below_latest_is_soft_update(self):
        """Test that minimum itself is allowed but latest is offered."""
        doc = _doc(minimum_version=parse_version("1.5"), latest_version=parse_version("2.0"))
        assert decide(doc, parse_version("1.5.0")) is VerdictKind.SOFT_UPDATE

    def test_at_latest_is_allowed(self):
        """Test that running the latest version is allowed."""
        doc = _doc(minimum_version=parse_version("1.5"), latest_version=parse_version("2.0"))
        assert decide(doc, parse_version("2")) is VerdictKind.ALLOWED

    def test_newer_than_latest_is_allowed(self):
        """Test that pre-release builds newer than latest are allowed."""
        doc = _doc(latest_version=parse_version("2.0"))
        assert decide(doc, parse_version("2.0.1")) is VerdictKind.ALLOWED

    def test_zero_versions_allow_everything(self):
        """Test that a document with no versions allows any build."""
        assert decide(_doc(), parse_version("0.0.1")) is VerdictKind.ALLOWED

    def test_numeric_comparison(self):
        """Test that 1.2.10 satisfies a minimum of 1.2.9."""
        doc = _doc(minimum_version=parse_version("1.2.9"))
        assert decide(doc, parse_version("1.2.10")) is VerdictKind.ALLOWED


class TestBuildVerdict:
    """Tests for build_verdict."""

    def test_allowed_is_empty(self):
        """Test that an allowed verdict carries no text or buttons."""
        verdict = build_verdict(VerdictKind.ALLOWED, _doc(), app_name="Demo")

        assert verdict.kind is VerdictKind.ALLOWED
        assert verdict.title == ""
        assert verdict.buttons == VerdictButtons()

    def test_maintenance_shows_ok_only(self):
        """Test maintenance text and buttons."""
        verdict = build_verdict(VerdictKind.MAINTENANCE, _doc(), app_name="Demo")

        assert verdict.title == "Maintenance"
        assert verdict.message == (
            "Demo is currently down for maintenance, please try again later."
        )
        assert verdict.buttons == VerdictButtons(ok="OK")

    def test_hard_update_shows_update_only(self):
        """Test hard update text, link and buttons."""
        doc = _doc(update_link="https://example.com/store")
        verdict = build_verdict(VerdictKind.HARD_UPDATE, doc, app_name="Demo")

        assert verdict.title == "Update Required"
        assert "mandatory update for Demo" in verdict.message
        assert verdict.update_link == "https://example.com/store"
        assert verdict.buttons == VerdictButtons(update="Update")

    def test_soft_update_shows_later_and_update(self):
        """Test that the soft update dismiss button uses the later label."""
        verdict = build_verdict(VerdictKind.SOFT_UPDATE, _doc(), app_name="Demo")

        assert verdict.title == "Update Available"
        assert verdict.message == "There is a new update for Demo."
        assert verdict.buttons == VerdictButtons(ok="Later", update="Update")

    def test_app_placeholder_in_titles(self):
        """Test that {{app}} is substituted in titles and every occurrence."""
        text = json.dumps(
            {
                "android": {},
                "manup": {
                    "maintenance": {
                        "title": "{{app}} down",
                        "message": "{{app}} will be back. Thanks for using {{app}}.",
                    }
                },
            }
        )
        doc = parse_policy(text, PlatformKey.ANDROID)
        verdict = build_verdict(VerdictKind.MAINTENANCE, doc, app_name="Demo")

        assert verdict.title == "Demo down"
        assert verdict.message == "Demo will be back. Thanks for using Demo."
