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

"""Gate decision policy for ManUp.

Determines what the running application version is allowed to do under a
parsed PolicyDocument, and builds the Verdict handed to the presentation
layer.

Example:
    Decide and build a verdict:

        from manup.policy.decision import build_verdict, decide

        kind = decide(document, current_version=parse_version("1.1.0"))
        verdict = build_verdict(kind, document, app_name="My App")

"""

from __future__ import annotations

from manup.results import Verdict, VerdictButtons, VerdictKind
from manup.versioning import Version

from .document import PolicyDocument


def decide(document: PolicyDocument, current_version: Version) -> VerdictKind:
    """Decide the verdict kind for the current version.

    Rules are evaluated in order and the first match wins:

    1. Maintenance enabled -> MAINTENANCE (regardless of version)
    2. minimum_version > current -> HARD_UPDATE
    3. latest_version > current -> SOFT_UPDATE
    4. Otherwise -> ALLOWED

    Args:
        document: Parsed policy for the running platform.
        current_version: Version of the running application.

    Returns:
        The verdict kind.

    """
    if document.maintenance_enabled:
        return VerdictKind.MAINTENANCE
    if document.minimum_version > current_version:
        return VerdictKind.HARD_UPDATE
    if document.latest_version > current_version:
        return VerdictKind.SOFT_UPDATE
    return VerdictKind.ALLOWED


def build_verdict(
    kind: VerdictKind,
    document: PolicyDocument,
    *,
    app_name: str,
) -> Verdict:
    """Build the user-facing Verdict for a decided kind.

    Substitutes {{app}} in the chosen template with app_name.

    Buttons per kind:

    - MAINTENANCE: ok
    - HARD_UPDATE: update
    - SOFT_UPDATE: later (as the ok/dismiss button) and update
    - ALLOWED: none

    """
    if kind is VerdictKind.ALLOWED:
        return Verdict.allowed()

    labels = document.buttons
    if kind is VerdictKind.MAINTENANCE:
        template = document.maintenance
        buttons = VerdictButtons(ok=labels.ok)
    elif kind is VerdictKind.HARD_UPDATE:
        template = document.mandatory
        buttons = VerdictButtons(update=labels.update)
    else:
        template = document.optional
        buttons = VerdictButtons(ok=labels.later, update=labels.update)

    title, message = template.render(app_name)
    return Verdict(
        kind=kind,
        title=title,
        message=message,
        update_link=document.update_link,
        buttons=buttons,
    )
