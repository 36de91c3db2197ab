"""
ManUp - remote-configuration version gate

A Python library and CLI that decides, at application start-up, whether the
running build may proceed. It fetches a small JSON policy document, caches
it, and derives a verdict: allowed, soft update, hard update, or
maintenance.

ManUp provides:
  - Cache-aware policy fetching with fallback to the last good copy
  - Platform-specific policy sections (android, ios, osx, linux, windows)
  - Dotted version comparison ("1.2" == "1.2.0" < "1.2.10")
  - A serialized check-cycle state machine with fail-open error handling
  - Verdicts with {{app}}-substituted titles, messages and button labels
  - Strict policy validation for operators

Quick Start
-----------
Check what a build would be told:

    $ manup check manup.yaml --current-version 1.2.0

Validate a policy document before publishing:

    $ manup validate manup.json

Package Structure
-----------------
cli : module
    Command-line interface with argparse.
engine : module
    GateEngine check cycle and state machine.
config : package
    YAML settings loading and merging.
policy : package
    Policy model, parser and decision rules.
versioning : package
    Version parsing and comparison.
cache : package
    Cached policy storage.
io : package
    Policy fetching.

Public API
----------
    from manup.config import load_gate_config
    from manup.engine import GateEngine
    from manup.results import Verdict, VerdictKind
    from manup.validation import validate_policy
    from manup.versioning import compare_versions, parse_version

Project Information
-------------------
Author: Roger Cibrian
License: Apache-2.0
"""

__version__ = "0.1.0"
__author__ = "Roger Cibrian"
__license__ = "Apache-2.0"
__description__ = "ManUp - remote version gate for applications"

# Re-export commonly used names for convenience
from manup.config import GateConfig, load_gate_config
from manup.engine import GateEngine, GateState
from manup.results import Verdict, VerdictKind
from manup.validation import validate_policy
from manup.versioning import Version, compare_versions, parse_version

__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "__description__",
    "GateConfig",
    "GateEngine",
    "GateState",
    "Verdict",
    "VerdictKind",
    "Version",
    "compare_versions",
    "load_gate_config",
    "parse_version",
    "validate_policy",
]
