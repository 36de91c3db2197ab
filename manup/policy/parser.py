"""
Policy document parsing for ManUp.

Turns the raw JSON text served at the gate's config URL into a
PolicyDocument for one platform, applying built-in defaults for every
missing key.

Wire Format
-----------
    {
      "android": {
        "url": "https://play.google.com/store/apps/details?id=...",
        "latest": "1.4.0",
        "minimum": "1.2",
        "enabled": true
      },
      "ios": { ... },
      "manup": {
        "mandatory":   {"title": "...", "message": "..."},
        "optional":    {"title": "...", "message": "..."},
        "maintenance": {"title": "...", "message": "..."},
        "buttons":     {"update": "...", "later": "...", "ok": "..."}
      }
    }

The "enabled" flag is INVERTED relative to the model: it means "service is
up". A document with "enabled": false puts the platform into maintenance.
Missing "enabled" means the service is up.

Field Lookup
------------
Fields are addressed with JSONPath expressions ("android.latest",
"manup.buttons.ok") through jsonpath-ng, the same way remote JSON APIs
are read elsewhere. Compiled expressions are cached per path.

Error Handling
--------------
- PolicyParseError: invalid JSON, top level not an object, platform
  section absent or not an object.
- Malformed version strings and wrongly typed values: by default the
  value falls back (version 0, default text) with a logged warning, so
  an operator typo cannot lock every user out. With strict=True they
  raise PolicyParseError instead.

Examples
--------
    >>> from manup.platforms import PlatformKey
    >>> from manup.policy.parser import parse_policy
    >>> doc = parse_policy('{"ios": {"latest": "2.0", "enabled": false}}', PlatformKey.IOS)
    >>> doc.maintenance_enabled
    True
"""

from __future__ import annotations

from functools import lru_cache
import json
from typing import Any

from jsonpath_ng import parse as jsonpath_parse

from manup.exceptions import InvalidVersionFormat, PolicyParseError
from manup.logging import Logger, get_global_logger
from manup.platforms import PlatformKey
from manup.versioning import ZERO_VERSION, Version, parse_version, parse_version_or_zero

from .document import (
    DEFAULT_BUTTONS,
    DEFAULT_MAINTENANCE,
    DEFAULT_MANDATORY,
    DEFAULT_OPTIONAL,
    ButtonLabels,
    MessageTemplate,
    PolicyDocument,
)

SETTINGS_KEY = "manup"

_MISSING = object()
_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


# -------------------------------
# JSONPath helpers
# -------------------------------


@lru_cache(maxsize=None)
def _compiled(path: str):
    return jsonpath_parse(path)


def _find(data: Any, path: str) -> Any:
    """Return the first value matching 'path', or _MISSING."""
    matches = _compiled(path).find(data)
    if not matches:
        return _MISSING
    return matches[0].value


# -------------------------------
# Typed readers
# -------------------------------


class _Reader:
    """Reads typed values from a decoded document with one error policy."""

    def __init__(self, data: dict[str, Any], strict: bool, logger: Logger) -> None:
        self.data = data
        self.strict = strict
        self.logger = logger

    def _reject(self, path: str, problem: str) -> None:
        if self.strict:
            raise PolicyParseError(f"{path}: {problem}")
        self.logger.warning("POLICY", f"{path}: {problem}; using default")

    def text(self, path: str, default: str) -> str:
        value = _find(self.data, path)
        if value is _MISSING or value is None:
            return default
        if not isinstance(value, str):
            self._reject(path, f"expected a string, got {type(value).__name__}")
            return default
        return value

    def version(self, path: str) -> Version:
        value = _find(self.data, path)
        if value is _MISSING or value is None:
            self.logger.debug("POLICY", f"{path} not set, using 0")
            return ZERO_VERSION
        # JSON numbers are accepted ("latest": 2 or 1.5) but booleans are not
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            self._reject(path, f"expected a version string, got {value!r}")
            return ZERO_VERSION
        if not self.strict:
            return parse_version_or_zero(value, field=path, logger=self.logger)
        try:
            return parse_version(value)
        except InvalidVersionFormat as err:
            raise PolicyParseError(f"{path}: {err}") from err

    def flag(self, path: str, default: bool) -> bool:
        value = _find(self.data, path)
        if value is _MISSING or value is None:
            return default
        if isinstance(value, bool):
            return value
        # Strict documents must use JSON booleans
        if self.strict:
            self._reject(path, f"expected a boolean, got {value!r}")
            return default
        if isinstance(value, int):
            return value != 0
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        self._reject(path, f"expected a boolean, got {value!r}")
        return default

    def template(self, category: str, default: MessageTemplate) -> MessageTemplate:
        return MessageTemplate(
            title=self.text(f"{SETTINGS_KEY}.{category}.title", default.title),
            body=self.text(f"{SETTINGS_KEY}.{category}.message", default.body),
        )

    def buttons(self) -> ButtonLabels:
        base = f"{SETTINGS_KEY}.buttons"
        return ButtonLabels(
            update=self.text(f"{base}.update", DEFAULT_BUTTONS.update),
            later=self.text(f"{base}.later", DEFAULT_BUTTONS.later),
            ok=self.text(f"{base}.ok", DEFAULT_BUTTONS.ok),
        )


# -------------------------------
# Public API
# -------------------------------


def load_policy_json(text: str) -> dict[str, Any]:
    """Decode policy text and check that the top level is an object.

    Raises:
        PolicyParseError: If the text is not valid JSON or not an object.
    """
    if not isinstance(text, str):
        raise PolicyParseError(f"policy text must be a string, got {type(text).__name__}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as err:
        raise PolicyParseError(f"invalid JSON: {err}") from err
    if not isinstance(data, dict):
        raise PolicyParseError(
            f"top-level JSON must be an object, got {type(data).__name__}"
        )
    return data


def parse_policy(
    text: str,
    platform: PlatformKey,
    *,
    strict: bool = False,
    logger: Logger | None = None,
) -> PolicyDocument:
    """Parse raw policy JSON into a PolicyDocument for one platform.

    Args:
        text: Raw JSON text (fetched, cached, or from a debug file).
        platform: Platform section to read.
        strict: If True, malformed values raise instead of falling back.
        logger: Logger for fallback warnings. Defaults to the global logger.

    Returns:
        The normalized policy with defaults applied.

    Raises:
        PolicyParseError: If the document is not valid JSON, is not an
            object, or has no usable section for 'platform'. In strict mode
            also for malformed versions and wrongly typed values.

    """
    if logger is None:
        logger = get_global_logger()

    data = load_policy_json(text)

    key = platform.value
    section = data.get(key)
    if section is None:
        raise PolicyParseError(f"no section for platform {key!r}")
    if not isinstance(section, dict):
        raise PolicyParseError(
            f"section for platform {key!r} must be an object, "
            f"got {type(section).__name__}"
        )

    reader = _Reader(data, strict=strict, logger=logger)

    service_up = reader.flag(f"{key}.enabled", default=True)
    document = PolicyDocument(
        platform=platform,
        update_link=reader.text(f"{key}.url", ""),
        latest_version=reader.version(f"{key}.latest"),
        minimum_version=reader.version(f"{key}.minimum"),
        maintenance_enabled=not service_up,
        mandatory=reader.template("mandatory", DEFAULT_MANDATORY),
        optional=reader.template("optional", DEFAULT_OPTIONAL),
        maintenance=reader.template("maintenance", DEFAULT_MAINTENANCE),
        buttons=reader.buttons(),
    )

    logger.debug(
        "POLICY",
        f"Parsed {key}: latest={document.latest_version} "
        f"minimum={document.minimum_version} "
        f"maintenance={document.maintenance_enabled}",
    )
    return document
