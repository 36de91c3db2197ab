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

"""Public API return types for ManUp.

This module defines dataclasses for values handed to callers: the Verdict
emitted by every completed check cycle, and the ValidationResult returned
when validating a policy file.

All dataclasses are frozen (immutable). A Verdict is never updated in
place; the next check cycle produces a new one.

Example:
    Consuming a verdict in a presentation layer:
        ```python
        from manup.results import VerdictKind

        verdict = engine.trigger()
        if verdict and verdict.kind is not VerdictKind.ALLOWED:
            show_panel(verdict.title, verdict.message, verdict.buttons)
        ```

Note:
    Only public API return types belong in this module. Domain types
    (like PolicyDocument) remain co-located with their related logic.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class VerdictKind(str, Enum):
    """Outcome of one check cycle."""

    ALLOWED = "allowed"
    MAINTENANCE = "maintenance"
    SOFT_UPDATE = "soft_update"
    HARD_UPDATE = "hard_update"

    @property
    def blocking(self) -> bool:
        """True if the application must not proceed."""
        return self in (VerdictKind.MAINTENANCE, VerdictKind.HARD_UPDATE)


@dataclass(frozen=True)
class VerdictButtons:
    """Button labels to show; None means the button is hidden.

    Attributes:
        ok: Label for the acknowledge/dismiss button.
        update: Label for the update button.
    """

    ok: str | None = None
    update: str | None = None


@dataclass(frozen=True)
class Verdict:
    """Terminal decision of one check cycle.

    Attributes:
        kind: Allowed, maintenance, soft update or hard update.
        title: Panel title with {{app}} already substituted.
        message: Panel body with {{app}} already substituted.
        update_link: Where the update button leads (may be empty).
        buttons: Which buttons to show, with their labels.
    """

    kind: VerdictKind
    title: str = ""
    message: str = ""
    update_link: str = ""
    buttons: VerdictButtons = field(default_factory=VerdictButtons)

    @classmethod
    def allowed(cls) -> Verdict:
        """Verdict for a cycle with no blocking condition (or no policy)."""
        return cls(kind=VerdictKind.ALLOWED)


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a policy document.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        platform_count: Number of platform sections found.
        policy_path: String path to the validated policy file.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    platform_count: int
    policy_path: str
