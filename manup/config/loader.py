"""
Gate configuration loading for ManUp.

This module builds the settings the engine runs with from up to three
layers, merged in order with "last wins" semantics:

1. **Built-in defaults** (DEFAULTS below)
2. **YAML settings file** (e.g. manup.yaml shipped with the application)
3. **Programmatic overrides** (e.g. values passed on the command line)

Settings File
-------------
    config_url: "https://example.com/manup.json"
    app_name: "My App"
    current_version: "1.2.0"
    hours_before_stale: 24        # clamped to 1..72
    fetch_timeout: 30             # seconds
    cache_file: "state/manup_cache.json"
    log_to_file: false
    log_file: "state/manup.log"
    debug:
      enabled: false              # overrides below only apply when true
      platform: "android"
      version: "1.0"
      policy_file: "fixtures/policy.json"   # bypasses cache and network

Merge Behavior
--------------
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists/Scalars**: Overwritten

Path Resolution
---------------
Relative paths are resolved against the SETTINGS FILE location (or the
working directory when there is no file):
  - cache_file
  - log_file
  - debug.policy_file

Dynamic Expansion
-----------------
``${VAR}`` references in config_url are replaced from the environment, so
staging and production builds can share one settings file.

Error Handling
--------------
- FileNotFoundError: settings file doesn't exist
- ConfigError: YAML parse errors, top level not a mapping, missing
  config_url, missing or malformed current_version, wrongly typed numbers
- All errors are chained with "from err" for better debugging

Examples
--------
    >>> from pathlib import Path
    >>> from manup.config import load_gate_config
    >>> cfg = load_gate_config(Path("manup.yaml"), overrides={"current_version": "1.3"})
    >>> str(cfg.current_version)
    '1.3'
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re
from typing import Any

import yaml

from manup.exceptions import ConfigError, InvalidVersionFormat
from manup.logging import Logger, get_global_logger
from manup.versioning import Version, parse_version

MIN_HOURS_BEFORE_STALE = 1.0
MAX_HOURS_BEFORE_STALE = 72.0
DEFAULT_APP_NAME = "this app"

DEFAULTS: dict[str, Any] = {
    "config_url": "",
    "app_name": "",
    "current_version": "",
    "hours_before_stale": 24,
    "fetch_timeout": 30,
    "cache_file": "state/manup_cache.json",
    "log_to_file": False,
    "log_file": "state/manup.log",
    "debug": {
        "enabled": False,
        "platform": None,
        "version": None,
        "policy_file": None,
    },
}

_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")

# -------------------------------
# Data types
# -------------------------------


@dataclass(frozen=True)
class DebugOptions:
    """
    Overrides for debug builds and tests. Ignored unless enabled.
    """

    enabled: bool = False
    platform: str | None = None
    version: str | None = None
    policy_file: Path | None = None


@dataclass(frozen=True)
class GateConfig:
    """
    Effective settings for one GateEngine.

    current_version already reflects debug.version when debug is enabled.
    """

    config_url: str
    app_name: str
    current_version: Version
    hours_before_stale: float = 24.0
    fetch_timeout: float = 30.0
    cache_file: Path = Path("state/manup_cache.json")
    log_to_file: bool = False
    log_file: Path = Path("state/manup.log")
    debug: DebugOptions = DebugOptions()
    source_path: Path | None = None

    @property
    def platform_override(self) -> str | None:
        return self.debug.platform if self.debug.enabled else None

    @property
    def policy_override_file(self) -> Path | None:
        return self.debug.policy_file if self.debug.enabled else None


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> dict[str, Any]:
    """
    Load a YAML settings file and return the mapping.

    Raises:
      FileNotFoundError - when file does not exist
      ConfigError       - for invalid YAML or a non-mapping top level
    """
    if not p.exists():
        raise FileNotFoundError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Value helpers
# -------------------------------


def _expand_env(value: str, logger: Logger) -> str:
    """Replace ${VAR} references with environment values."""

    def _sub(m: re.Match[str]) -> str:
        env_value = os.environ.get(m.group(1))
        if env_value is None:
            logger.verbose(
                "CONFIG", f"Warning: Environment variable {m.group(1)} not set"
            )
            return ""
        return env_value

    return _ENV_REF.sub(_sub, value)


def _resolve_path(raw: Any, base_dir: Path, field: str) -> Path:
    if not isinstance(raw, (str, os.PathLike)) or not str(raw):
        raise ConfigError(f"{field} must be a non-empty path")
    p = Path(raw)
    if not p.is_absolute():
        p = (base_dir / p).resolve()
    return p


def _number(cfg: dict[str, Any], field: str) -> float:
    value = cfg.get(field)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{field} must be a number, got {value!r}")
    return float(value)


def _clamp_hours(hours: float, logger: Logger) -> float:
    clamped = min(max(hours, MIN_HOURS_BEFORE_STALE), MAX_HOURS_BEFORE_STALE)
    if clamped != hours:
        logger.warning(
            "CONFIG",
            f"hours_before_stale={hours:g} outside "
            f"{MIN_HOURS_BEFORE_STALE:g}-{MAX_HOURS_BEFORE_STALE:g}; using {clamped:g}",
        )
    return clamped


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


# -------------------------------
# Public API
# -------------------------------


def gate_config_from_dict(
    data: dict[str, Any],
    *,
    base_dir: Path | None = None,
    source_path: Path | None = None,
    logger: Logger | None = None,
) -> GateConfig:
    """
    Build a GateConfig from an already-merged settings mapping.

    Missing keys take their DEFAULTS value. Relative paths resolve against
    base_dir (default: the working directory).

    Raises
      ConfigError on missing/invalid settings.
    """
    if logger is None:
        logger = get_global_logger()
    if base_dir is None:
        base_dir = Path.cwd()

    cfg = _deep_merge_dicts(DEFAULTS, data)

    debug_raw = cfg.get("debug") or {}
    if not isinstance(debug_raw, dict):
        raise ConfigError("debug must be a mapping")
    debug_enabled = bool(debug_raw.get("enabled", False))
    policy_file_raw = debug_raw.get("policy_file")
    debug = DebugOptions(
        enabled=debug_enabled,
        platform=_optional_str(debug_raw.get("platform")),
        version=_optional_str(debug_raw.get("version")),
        policy_file=(
            _resolve_path(policy_file_raw, base_dir, "debug.policy_file")
            if policy_file_raw
            else None
        ),
    )

    # Application version: debug override wins when debug is enabled
    raw_version = cfg.get("current_version")
    if debug.enabled and debug.version:
        logger.verbose("CONFIG", f"Using debug version override: {debug.version}")
        raw_version = debug.version
    if raw_version is None or str(raw_version).strip() == "":
        raise ConfigError("current_version is required")
    try:
        current_version = parse_version(str(raw_version))
    except InvalidVersionFormat as err:
        raise ConfigError(f"Invalid current_version {raw_version!r}: {err}") from err

    config_url = _expand_env(str(cfg.get("config_url") or ""), logger)
    if not config_url and not (debug.enabled and debug.policy_file):
        raise ConfigError("config_url is required")

    hours = _clamp_hours(_number(cfg, "hours_before_stale"), logger)
    timeout = _number(cfg, "fetch_timeout")
    if timeout <= 0:
        raise ConfigError(f"fetch_timeout must be positive, got {timeout:g}")

    app_name = str(cfg.get("app_name") or "").strip() or DEFAULT_APP_NAME

    return GateConfig(
        config_url=config_url,
        app_name=app_name,
        current_version=current_version,
        hours_before_stale=hours,
        fetch_timeout=timeout,
        cache_file=_resolve_path(cfg.get("cache_file"), base_dir, "cache_file"),
        log_to_file=bool(cfg.get("log_to_file")),
        log_file=_resolve_path(cfg.get("log_file"), base_dir, "log_file"),
        debug=debug,
        source_path=source_path,
    )


def load_gate_config(
    config_path: Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    logger: Logger | None = None,
) -> GateConfig:
    """
    Load and merge the effective gate configuration.

    Steps
      1) Start from built-in DEFAULTS.
      2) Read the YAML settings file if given.
      3) Merge: defaults -> file -> overrides (dicts deep-merge).
      4) Expand ${VAR} in config_url.
      5) Resolve relative paths against the settings file directory.
      6) Clamp hours_before_stale, validate current_version.

    Returns
      The GateConfig ready for GateEngine.

    Raises
      FileNotFoundError if the settings file itself is missing,
      ConfigError on YAML parse errors or invalid settings.
    """
    if logger is None:
        logger = get_global_logger()

    merged: dict[str, Any] = {}
    base_dir: Path | None = None
    source_path: Path | None = None

    if config_path is not None:
        source_path = config_path.resolve()
        base_dir = source_path.parent
        logger.verbose("CONFIG", f"Loading settings: {source_path}")
        merged = _deep_merge_dicts(merged, _load_yaml_file(source_path))

    if overrides:
        logger.debug("CONFIG", f"Applying overrides: {', '.join(overrides)}")
        merged = _deep_merge_dicts(merged, overrides)

    config = gate_config_from_dict(
        merged, base_dir=base_dir, source_path=source_path, logger=logger
    )
    logger.verbose(
        "CONFIG",
        f"Gate for {config.app_name} {config.current_version}, "
        f"stale after {config.hours_before_stale:g}h",
    )
    return config
