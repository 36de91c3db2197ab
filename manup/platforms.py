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

"""Platform key resolution for ManUp.

The policy document carries one section per platform. This module maps the
interpreter's reported platform (sys.platform) to the section key, or takes
an explicit override for debug builds and tests.

Mapping:

- linux, linux2 -> linux
- darwin -> osx
- win32, cygwin -> windows
- ios -> ios (CPython 3.13+ on iOS)
- android -> android (CPython 3.13+ on Android)

Anything else raises UnsupportedPlatformError, which the engine turns into
deactivation rather than a crash.
"""

from __future__ import annotations

from enum import Enum
import sys

from manup.exceptions import UnsupportedPlatformError


class PlatformKey(str, Enum):
    """Policy document section keys."""

    ANDROID = "android"
    IOS = "ios"
    OSX = "osx"
    LINUX = "linux"
    WINDOWS = "windows"


_SYS_PLATFORM_MAP: dict[str, PlatformKey] = {
    "linux": PlatformKey.LINUX,
    "linux2": PlatformKey.LINUX,
    "darwin": PlatformKey.OSX,
    "win32": PlatformKey.WINDOWS,
    "cygwin": PlatformKey.WINDOWS,
    "ios": PlatformKey.IOS,
    "android": PlatformKey.ANDROID,
}


def resolve_platform(
    runtime_platform: str | None = None,
    override: str | PlatformKey | None = None,
) -> PlatformKey:
    """Resolve the policy platform key for this run.

    Args:
        runtime_platform: Reported platform string. Defaults to sys.platform.
        override: Explicit platform key (e.g., "android"). Takes precedence
            over the runtime platform when set.

    Returns:
        The platform key to look up in the policy document.

    Raises:
        UnsupportedPlatformError: If the override is not a known key, or the
            runtime platform has no mapping.

    Example:
        Resolve with a debug override:
            ```python
            resolve_platform(override="ios")  # PlatformKey.IOS
            ```

    """
    if override is not None:
        if isinstance(override, PlatformKey):
            return override
        try:
            return PlatformKey(str(override).strip().lower())
        except ValueError as err:
            raise UnsupportedPlatformError(
                f"Unknown platform override: {override!r}"
            ) from err

    reported = runtime_platform if runtime_platform is not None else sys.platform
    key = _SYS_PLATFORM_MAP.get(reported.lower())
    if key is None:
        raise UnsupportedPlatformError(f"Platform not supported: {reported}")
    return key
