# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Exception hierarchy for ManUp.

This module defines the errors raised (or carried) by the version gate:

- ConfigError: Gate settings problems (YAML parse, missing fields, bad app version)
- NetworkError: Policy fetch failures (HTTP errors, timeouts, connection errors)
- CacheError: Cached policy file could not be read back
- PolicyParseError: Policy document is not valid JSON or lacks the platform section
- InvalidVersionFormat: A version string has an empty or non-numeric component
- UnsupportedPlatformError: The runtime platform has no policy key

All exceptions inherit from ManUpError, allowing callers to catch every
gate error with a single except clause.

Example:
    Handling configuration errors at startup:
        ```python
        from manup.config import load_gate_config
        from manup.exceptions import ConfigError

        try:
            config = load_gate_config(Path("manup.yaml"))
        except ConfigError as e:
            print(f"Config error: {e}")
        ```

Note:
    NetworkError is normally not raised at all. Fetchers return it inside a
    FetchResult so the engine can fall back to the cache deterministically.
"""

from __future__ import annotations

__all__ = [
    "ManUpError",
    "ConfigError",
    "NetworkError",
    "CacheError",
    "PolicyParseError",
    "InvalidVersionFormat",
    "UnsupportedPlatformError",
]


class ManUpError(Exception):
    """Base exception for all ManUp errors."""

    pass


class ConfigError(ManUpError):
    """Raised for gate configuration errors.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, top level not a mapping)
    - Missing required settings (config_url without a debug policy file)
    - The application's own version string being malformed
    """

    pass


class NetworkError(ManUpError):
    """Represents a failed policy fetch.

    Covers HTTP error statuses, connection failures and timeouts. Fetchers
    return this inside a FetchResult instead of raising it.
    """

    pass


class CacheError(ManUpError):
    """Raised when the cached policy file is corrupted or unreadable."""

    pass


class PolicyParseError(ManUpError):
    """Raised when a policy document cannot be turned into a PolicyDocument.

    Attributes:
        reason: Human-readable description of what was wrong.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class InvalidVersionFormat(ManUpError, ValueError):
    """Raised when a version string is empty or has a non-numeric component.

    Also a ValueError so it can be caught alongside int() failures.
    """

    pass


class UnsupportedPlatformError(ManUpError):
    """Raised when the runtime platform does not map to a policy key."""

    pass
