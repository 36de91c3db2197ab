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

"""Normalized in-memory form of a parsed policy document.

Every field has a built-in default, so a document that only carries a
platform section still yields a complete PolicyDocument. Message templates
keep their {{app}} placeholder; substitution happens when a Verdict is
built, so one document can serve several display names.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from manup.platforms import PlatformKey
from manup.versioning import ZERO_VERSION, Version

APP_PLACEHOLDER = "{{app}}"


@dataclass(frozen=True)
class MessageTemplate:
    """Title and body shown for one verdict category.

    Attributes:
        title: Panel title, may contain {{app}}.
        body: Panel message, may contain {{app}}.
    """

    title: str
    body: str

    def render(self, app_name: str) -> tuple[str, str]:
        """Return (title, body) with {{app}} replaced by app_name."""
        return (
            self.title.replace(APP_PLACEHOLDER, app_name),
            self.body.replace(APP_PLACEHOLDER, app_name),
        )


@dataclass(frozen=True)
class ButtonLabels:
    update: str = "Update"
    later: str = "Later"
    ok: str = "OK"


DEFAULT_MANDATORY = MessageTemplate(
    title="Update Required",
    body="There is a mandatory update for {{app}}, please update to continue.",
)
DEFAULT_OPTIONAL = MessageTemplate(
    title="Update Available",
    body="There is a new update for {{app}}.",
)
DEFAULT_MAINTENANCE = MessageTemplate(
    title="Maintenance",
    body="{{app}} is currently down for maintenance, please try again later.",
)
DEFAULT_BUTTONS = ButtonLabels()


@dataclass(frozen=True)
class PolicyDocument:
    """Policy for one resolved platform.

    Attributes:
        platform: Platform section the values were read from.
        update_link: Store or download page for the update button.
        latest_version: Newest released version (soft update threshold).
        minimum_version: Oldest allowed version (hard update threshold).
        maintenance_enabled: True when the backend declared maintenance.
            Stored inverted on the wire (see manup.policy.parser).
        mandatory: Template for hard update verdicts.
        optional: Template for soft update verdicts.
        maintenance: Template for maintenance verdicts.
        buttons: Button labels.
    """

    platform: PlatformKey
    update_link: str = ""
    latest_version: Version = ZERO_VERSION
    minimum_version: Version = ZERO_VERSION
    maintenance_enabled: bool = False
    mandatory: MessageTemplate = field(default=DEFAULT_MANDATORY)
    optional: MessageTemplate = field(default=DEFAULT_OPTIONAL)
    maintenance: MessageTemplate = field(default=DEFAULT_MAINTENANCE)
    buttons: ButtonLabels = field(default=DEFAULT_BUTTONS)
