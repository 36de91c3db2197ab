"""
Version parsing and comparison utilities for ManUp.

This package provides the version model used by the gate: dotted numeric
versions ("1.12.3") compared component-wise, with the shorter version
padded with zeros so "2.0" == "2.0.0".

Modules
-------
keys : module
    Version dataclass, strict parser, fail-open parser and comparators.

Public API
----------
Version : dataclass
    Ordered tuple of non-negative integer components.
ZERO_VERSION : Version
    The fallback version (0) used for malformed policy values.
parse_version : function
    Strict parser; raises InvalidVersionFormat.
parse_version_or_zero : function
    Fail-open parser; logs a warning and returns ZERO_VERSION.
compare_versions : function
    Compare two versions, returning -1, 0, or 1.
is_newer : function
    Check if a candidate version is newer than the current version.

Examples
--------
Basic version comparison:

    >>> from manup.versioning import compare_versions, parse_version
    >>> compare_versions("1.2.3", "1.2.10")
    -1
    >>> parse_version("2.0") == parse_version("2.0.0")
    True

Notes
-----
- Parsing is strict; the caller chooses whether to fall back to 0
- A leading "v" is accepted ("v1.2" == "1.2")
"""

from .keys import (
    ZERO_VERSION,
    Version,
    compare_versions,
    is_newer,
    parse_version,
    parse_version_or_zero,
)

__all__ = [
    "Version",
    "ZERO_VERSION",
    "compare_versions",
    "is_newer",
    "parse_version",
    "parse_version_or_zero",
]
