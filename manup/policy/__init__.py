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

"""Policy model, parsing and gate decisions for ManUp.

Modules:

document : module
    PolicyDocument, MessageTemplate and ButtonLabels with built-in defaults.
parser : module
    Raw JSON text -> PolicyDocument for one platform.
decision : module
    Decision order (maintenance > hard > soft > allowed) and Verdict building.

Example:
    from manup.platforms import PlatformKey
    from manup.policy import build_verdict, decide, parse_policy

    document = parse_policy(text, PlatformKey.ANDROID)
    kind = decide(document, current_version)
    verdict = build_verdict(kind, document, app_name="My App")

"""

from .decision import build_verdict, decide
from .document import ButtonLabels, MessageTemplate, PolicyDocument
from .parser import parse_policy

__all__ = [
    "ButtonLabels",
    "MessageTemplate",
    "PolicyDocument",
    "build_verdict",
    "decide",
    "parse_policy",
]
