"""
Tests for manup.config module.

Tests settings loading including:
- YAML loading and merging with defaults and overrides
- Required settings and their validation
- Clamping of the staleness window
- Debug overrides and path resolution
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

from manup.config import gate_config_from_dict, load_gate_config
from manup.config.loader import MAX_HOURS_BEFORE_STALE, MIN_HOURS_BEFORE_STALE
from manup.exceptions import ConfigError
from manup.versioning import parse_version

BASE = {
    "config_url": "https://example.com/manup.json",
    "app_name": "Demo",
    "current_version": "1.2.0",
}


class TestLoadGateConfig:
    """Tests for load_gate_config."""

    def test_load_from_yaml(self, create_yaml_file):
        """Test that settings are read from YAML with defaults filled in."""
        path = create_yaml_file("manup.yaml", BASE)

        config = load_gate_config(path)

        assert config.config_url == "https://example.com/manup.json"
        assert config.app_name == "Demo"
        assert config.current_version == parse_version("1.2")
        assert config.hours_before_stale == 24.0
        assert config.fetch_timeout == 30.0
        assert config.log_to_file is False
        assert config.source_path == path.resolve()

    def test_relative_paths_resolve_against_file(self, create_yaml_file, tmp_test_dir):
        """Test that cache and log paths are relative to the settings file."""
        path = create_yaml_file("conf/manup.yaml", {**BASE, "cache_file": "c.json"})

        config = load_gate_config(path)

        assert config.cache_file == (tmp_test_dir / "conf" / "c.json").resolve()
        assert config.log_file == (tmp_test_dir / "conf" / "state" / "manup.log").resolve()

    def test_overrides_win(self, create_yaml_file):
        """Test that programmatic overrides beat the file."""
        path = create_yaml_file("manup.yaml", BASE)

        config = load_gate_config(path, overrides={"current_version": "3.0"})

        assert config.current_version == parse_version("3")

    def test_nested_overrides_deep_merge(self, create_yaml_file):
        """Test that debug overrides merge into the file's debug block."""
        path = create_yaml_file(
            "manup.yaml", {**BASE, "debug": {"enabled": True, "platform": "ios"}}
        )

        config = load_gate_config(path, overrides={"debug": {"version": "0.9"}})

        assert config.debug.platform == "ios"
        assert config.current_version == parse_version("0.9")

    def test_missing_file_raises(self, tmp_test_dir):
        """Test that a nonexistent settings file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_gate_config(tmp_test_dir / "nope.yaml")

    def test_invalid_yaml_raises(self, tmp_test_dir):
        """Test that invalid YAML raises ConfigError."""
        path = tmp_test_dir / "bad.yaml"
        path.write_text("config_url: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigError, match="Error parsing YAML"):
            load_gate_config(path)

    def test_non_mapping_yaml_raises(self, tmp_test_dir):
        """Test that a YAML list at the top level is rejected."""
        path = tmp_test_dir / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_gate_config(path)

    def test_no_file_uses_overrides_only(self):
        """Test that settings can come entirely from overrides."""
        config = load_gate_config(overrides=BASE)
        assert config.app_name == "Demo"
        assert config.source_path is None


class TestGateConfigFromDict:
    """Tests for gate_config_from_dict validation."""

    def test_current_version_required(self, tmp_test_dir):
        """Test that a missing current_version is fatal."""
        data = {k: v for k, v in BASE.items() if k != "current_version"}
        with pytest.raises(ConfigError, match="current_version"):
            gate_config_from_dict(data, base_dir=tmp_test_dir)

    def test_malformed_current_version_is_fatal(self, tmp_test_dir):
        """Test that the app's own version must parse."""
        with pytest.raises(ConfigError, match="Invalid current_version"):
            gate_config_from_dict({**BASE, "current_version": "1.x"}, base_dir=tmp_test_dir)

    def test_numeric_current_version_accepted(self, tmp_test_dir):
        """Test that YAML numbers like 1.5 are accepted as versions."""
        config = gate_config_from_dict({**BASE, "current_version": 1.5}, base_dir=tmp_test_dir)
        assert config.current_version == parse_version("1.5")

    def test_config_url_required(self, tmp_test_dir):
        """Test that a config URL is required."""
        with pytest.raises(ConfigError, match="config_url"):
            gate_config_from_dict({**BASE, "config_url": ""}, base_dir=tmp_test_dir)

    def test_config_url_optional_with_debug_policy_file(self, tmp_test_dir):
        """Test that a debug policy file replaces the config URL."""
        config = gate_config_from_dict(
            {
                **BASE,
                "config_url": "",
                "debug": {"enabled": True, "policy_file": "policy.json"},
            },
            base_dir=tmp_test_dir,
        )

        assert config.policy_override_file == (tmp_test_dir / "policy.json").resolve()

    def test_env_expansion_in_url(self, tmp_test_dir, monkeypatch):
        """Test that ${VAR} in config_url is expanded."""
        monkeypatch.setenv("MANUP_HOST", "cdn.example.com")
        config = gate_config_from_dict(
            {**BASE, "config_url": "https://${MANUP_HOST}/manup.json"},
            base_dir=tmp_test_dir,
        )

        assert config.config_url == "https://cdn.example.com/manup.json"

    @pytest.mark.parametrize(
        ("hours", "expected"),
        [(0.1, MIN_HOURS_BEFORE_STALE), (500, MAX_HOURS_BEFORE_STALE), (12, 12.0)],
    )
    def test_hours_before_stale_clamped(self, tmp_test_dir, hours, expected):
        """Test that the staleness window is clamped with a warning."""
        logger = Mock()
        config = gate_config_from_dict(
            {**BASE, "hours_before_stale": hours}, base_dir=tmp_test_dir, logger=logger
        )

        assert config.hours_before_stale == expected
        assert logger.warning.called is (expected != hours)

    def test_non_numeric_hours_rejected(self, tmp_test_dir):
        """Test that a non-number staleness window is a ConfigError."""
        with pytest.raises(ConfigError, match="hours_before_stale"):
            gate_config_from_dict(
                {**BASE, "hours_before_stale": "soon"}, base_dir=tmp_test_dir
            )

    def test_fetch_timeout_must_be_positive(self, tmp_test_dir):
        """Test that a zero timeout is rejected."""
        with pytest.raises(ConfigError, match="fetch_timeout"):
            gate_config_from_dict({**BASE, "fetch_timeout": 0}, base_dir=tmp_test_dir)

    def test_blank_app_name_uses_default(self, tmp_test_dir):
        """Test that an empty app name falls back to a generic name."""
        config = gate_config_from_dict({**BASE, "app_name": "  "}, base_dir=tmp_test_dir)
        assert config.app_name == "this app"

    def test_debug_ignored_when_disabled(self, tmp_test_dir):
        """Test that debug overrides have no effect unless enabled."""
        config = gate_config_from_dict(
            {
                **BASE,
                "debug": {
                    "enabled": False,
                    "platform": "ios",
                    "version": "0.1",
                    "policy_file": "p.json",
                },
            },
            base_dir=tmp_test_dir,
        )

        assert config.current_version == parse_version("1.2.0")
        assert config.platform_override is None
        assert config.policy_override_file is None

    def test_debug_applied_when_enabled(self, tmp_test_dir):
        """Test that debug overrides apply when enabled."""
        config = gate_config_from_dict(
            {**BASE, "debug": {"enabled": True, "platform": "ios", "version": "0.1"}},
            base_dir=tmp_test_dir,
        )

        assert config.current_version == parse_version("0.1")
        assert config.platform_override == "ios"

    def test_absolute_paths_kept(self, tmp_test_dir):
        """Test that absolute paths are not re-rooted."""
        target = Path(tmp_test_dir / "abs" / "cache.json").resolve()
        config = gate_config_from_dict(
            {**BASE, "cache_file": str(target)}, base_dir=tmp_test_dir / "other"
        )
        assert config.cache_file == target
