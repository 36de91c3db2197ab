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

"""Policy document validation module.

At runtime the gate is deliberately forgiving: malformed versions fall back
to 0 and unparseable documents let users through. This module is the strict
counterpart for operators, to run before publishing a policy document.

Validation Checks:

- JSON syntax is valid and the top level is an object
- At least one platform section is present
- Unknown top-level keys (warning)
- Each platform section is an object and parses in strict mode
- Missing update link (warning)
- latest version older than minimum version (warning)
- The "manup" settings block and its categories are objects

Example:
    Validate a policy file and handle results:
        ```python
        from pathlib import Path
        from manup.validation import validate_policy

        result = validate_policy(Path("manup.json"))
        if result.status == "valid":
            print(f"Policy is valid for {result.platform_count} platform(s)")
        else:
            for error in result.errors:
                print(f"Error: {error}")
        ```

"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from manup.exceptions import PolicyParseError
from manup.logging import get_global_logger
from manup.platforms import PlatformKey
from manup.policy.parser import SETTINGS_KEY, load_policy_json, parse_policy
from manup.results import ValidationResult

__all__ = ["validate_policy", "validate_policy_text"]

_KNOWN_PLATFORM_FIELDS = {"url", "latest", "minimum", "enabled"}
_SETTINGS_CATEGORIES = ("mandatory", "optional", "maintenance", "buttons")


def _check_settings(data: dict[str, Any], errors: list[str], warnings: list[str]) -> None:
    settings = data.get(SETTINGS_KEY)
    if settings is None:
        return
    if not isinstance(settings, dict):
        errors.append(f"'{SETTINGS_KEY}' must be an object")
        return
    for key, value in settings.items():
        if key not in _SETTINGS_CATEGORIES:
            warnings.append(f"Unknown settings key: {SETTINGS_KEY}.{key}")
        elif not isinstance(value, dict):
            errors.append(f"'{SETTINGS_KEY}.{key}' must be an object")


def validate_policy_text(
    text: str, *, policy_path: str = "<text>", verbose: bool = False
) -> ValidationResult:
    """Validate policy JSON text without any network calls.

    Args:
        text: Raw policy JSON.
        policy_path: Label used in the result (file path or "<text>").
        verbose: If True, log validation progress.

    Returns:
        ValidationResult with status "valid" when there are no errors.
        Warnings never make a document invalid.

    """
    logger = get_global_logger()
    errors: list[str] = []
    warnings: list[str] = []
    platform_count = 0

    try:
        data = load_policy_json(text)
    except PolicyParseError as err:
        errors.append(err.reason)
        return ValidationResult(
            status="invalid",
            errors=errors,
            warnings=warnings,
            platform_count=0,
            policy_path=policy_path,
        )

    known_keys = {p.value for p in PlatformKey} | {SETTINGS_KEY}
    for key in data:
        if key not in known_keys:
            warnings.append(f"Unknown top-level key: {key!r}")

    for platform in PlatformKey:
        if platform.value not in data:
            continue
        platform_count += 1
        if verbose:
            logger.verbose("VALIDATION", f"Checking platform: {platform.value}")

        try:
            document = parse_policy(text, platform, strict=True, logger=logger)
        except PolicyParseError as err:
            errors.append(f"{platform.value}: {err.reason}")
            continue

        section = data[platform.value]
        for field in section:
            if field not in _KNOWN_PLATFORM_FIELDS:
                warnings.append(f"Unknown field: {platform.value}.{field}")
        if not document.update_link:
            warnings.append(f"{platform.value}: no update link ('url') set")
        if document.latest_version < document.minimum_version:
            warnings.append(
                f"{platform.value}: latest {document.latest_version} is older "
                f"than minimum {document.minimum_version}"
            )
        if document.maintenance_enabled:
            warnings.append(f"{platform.value}: maintenance mode is ON")

    if platform_count == 0:
        errors.append(
            "No platform sections found (expected one of: "
            + ", ".join(p.value for p in PlatformKey)
            + ")"
        )

    _check_settings(data, errors, warnings)

    status = "valid" if not errors else "invalid"
    if verbose:
        logger.verbose("VALIDATION", f"Status: {status}")

    return ValidationResult(
        status=status,
        errors=errors,
        warnings=warnings,
        platform_count=platform_count,
        policy_path=policy_path,
    )


def validate_policy(policy_path: Path, verbose: bool = False) -> ValidationResult:
    """Validate a policy file without making network calls.

    Args:
        policy_path: Path to the policy JSON file.
        verbose: If True, log validation progress.

    Returns:
        ValidationResult; a missing or unreadable file is reported as an
            error rather than raised.

    """
    try:
        text = policy_path.read_text(encoding="utf-8")
    except OSError as err:
        return ValidationResult(
            status="invalid",
            errors=[f"Cannot read policy file: {err}"],
            warnings=[],
            platform_count=0,
            policy_path=str(policy_path),
        )
    return validate_policy_text(text, policy_path=str(policy_path), verbose=verbose)
