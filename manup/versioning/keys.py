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

"""Core version parsing and comparison for ManUp.

This module is format-agnostic: it does NOT download or read files.
It only parses dotted numeric version strings ("1.12.3") and compares
them consistently, padding the shorter side with zeros.

Parsing is strict. A malformed string raises InvalidVersionFormat; the
decision to fall back to a zero version belongs to the caller, which can
use parse_version_or_zero() to do that with a logged warning.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from manup.exceptions import InvalidVersionFormat
from manup.logging import get_global_logger

if TYPE_CHECKING:
    from manup.logging import Logger

# ----------------------------
# Version DTO
# ----------------------------


@dataclass(frozen=True)
class Version:
    """An ordered tuple of non-negative integer version components.

    Equality and ordering ignore trailing zeros, so Version((2, 0)) equals
    Version((2, 0, 0)). Components are kept as written for display.

    Attributes:
        parts: Parsed numeric components (e.g., (1, 12, 3)).

    """

    parts: tuple[int, ...]

    def _key(self, length: int) -> tuple[int, ...]:
        return self.parts + (0,) * (length - len(self.parts))

    def _aligned(self, other: Version) -> tuple[tuple[int, ...], tuple[int, ...]]:
        n = max(len(self.parts), len(other.parts))
        return self._key(n), other._key(n)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        a, b = self._aligned(other)
        return a == b

    def __hash__(self) -> int:
        trimmed = list(self.parts)
        while len(trimmed) > 1 and trimmed[-1] == 0:
            trimmed.pop()
        return hash(tuple(trimmed))

    def __lt__(self, other: Version) -> bool:
        a, b = self._aligned(other)
        return a < b

    def __le__(self, other: Version) -> bool:
        a, b = self._aligned(other)
        return a <= b

    def __gt__(self, other: Version) -> bool:
        a, b = self._aligned(other)
        return a > b

    def __ge__(self, other: Version) -> bool:
        a, b = self._aligned(other)
        return a >= b

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)


ZERO_VERSION = Version((0,))

# ----------------------------
# Parsing
# ----------------------------


def parse_version(text: str) -> Version:
    """Parse a dot-delimited numeric version string.

    Surrounding whitespace and a single leading "v" are tolerated
    ("v1.2" -> (1, 2)). Every component must be made of digits only.

    Args:
        text: Version string such as "1.12.3".

    Returns:
        The parsed Version.

    Raises:
        InvalidVersionFormat: If the string is empty, has an empty component
            ("1..2") or a non-numeric component ("1.2a").

    Example:
        Parse and compare:
            ```python
            parse_version("1.2.3") < parse_version("1.2.10")  # True
            ```

    """
    if not isinstance(text, str):
        raise InvalidVersionFormat(f"version must be a string, got {text!r}")
    s = text.strip()
    if s[:1] in ("v", "V"):
        s = s[1:]
    if not s:
        raise InvalidVersionFormat(f"empty version string: {text!r}")

    nums: list[int] = []
    for p in s.split("."):
        if not p.isdigit() or not p.isascii():
            raise InvalidVersionFormat(
                f"non-numeric version component {p!r} in {text!r}"
            )
        nums.append(int(p))
    return Version(tuple(nums))


def parse_version_or_zero(
    text: str,
    *,
    field: str = "version",
    logger: Logger | None = None,
) -> Version:
    """Parse a version string, falling back to 0 on malformed input.

    Used for operator-supplied versions in the remote policy, where a typo
    must not block every user. The fallback is logged as a warning so it
    shows up even in non-verbose runs.

    Args:
        text: Version string to parse.
        field: Name of the field being parsed, for the warning message.
        logger: Logger for the warning. Defaults to the global logger.

    Returns:
        The parsed Version, or ZERO_VERSION if parsing failed.

    """
    try:
        return parse_version(text)
    except InvalidVersionFormat as err:
        if logger is None:
            logger = get_global_logger()
        logger.warning("VERSION", f"Invalid {field} {text!r} ({err}); using 0")
        return ZERO_VERSION


# ----------------------------
# Comparison
# ----------------------------


def _coerce(v: Version | str) -> Version:
    return v if isinstance(v, Version) else parse_version(v)


def compare_versions(a: Version | str, b: Version | str) -> int:
    """Compare two versions.

    Strings are parsed strictly with parse_version().

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b.

    Raises:
        InvalidVersionFormat: If a string argument is malformed.

    """
    va, vb = _coerce(a), _coerce(b)
    return (va > vb) - (va < vb)


def is_newer(candidate: Version | str, current: Version | str | None) -> bool:
    """Decide if 'candidate' is strictly newer than 'current'.

    Returns True when there is no current version.
    """
    if current is None:
        return True
    return compare_versions(candidate, current) > 0
