"""
Pytest configuration and shared fixtures for ManUp tests.

This module provides reusable fixtures and test utilities used across
the test suite.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import yaml

from manup.config import GateConfig, gate_config_from_dict


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def sample_policy_data() -> dict[str, Any]:
    """
    Provide a sample policy document.

    Every platform is up, latest 2.0.0 and minimum 1.5.0.
    """
    section = {
        "url": "https://example.com/store/app",
        "latest": "2.0.0",
        "minimum": "1.5.0",
        "enabled": True,
    }
    return {
        "android": dict(section),
        "ios": dict(section),
        "osx": dict(section),
        "linux": dict(section),
        "windows": dict(section),
    }


@pytest.fixture
def sample_policy_json(sample_policy_data: dict[str, Any]) -> str:
    """Provide the sample policy document as JSON text."""
    return json.dumps(sample_policy_data)


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("manup.yaml", {"key": "value"})
    """
    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create


@pytest.fixture
def make_config(tmp_test_dir: Path):
    """
    Factory fixture for GateConfig instances rooted in tmp_test_dir.

    Usage:
        config = make_config(current_version="1.0", app_name="Demo")
    """
    def _make(**settings: Any) -> GateConfig:
        data: dict[str, Any] = {
            "config_url": "https://example.com/manup.json",
            "app_name": "Demo",
            "current_version": "1.0.0",
        }
        data.update(settings)
        return gate_config_from_dict(data, base_dir=tmp_test_dir)

    return _make

