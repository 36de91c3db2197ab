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

"""Command-line interface for ManUp.

This module provides the main CLI entry point for the manup tool, used by
operators to check what a given app build would be told, and to validate
policy documents before publishing them.

Commands:

    check: Run one gate check cycle and print the verdict
    validate: Validate a policy JSON file (no network)

Example:
    Check the verdict for a build:
        ```bash
        $ manup check manup.yaml --current-version 1.2.0
        ```

    Check as another platform, ignoring the cache:
        ```bash
        $ manup check manup.yaml --platform ios --stateless
        ```

    Validate a policy document:
        ```bash
        $ manup validate manup.json
        ```

Exit Codes:

- 0: Success (allowed, soft update, or valid policy)
- 1: Error (configuration error or invalid policy)
- 2: Blocked (hard update or maintenance)

Note:
    The CLI uses argparse for command parsing (stdlib, zero dependencies).
    Each command has its own handler function (cmd_<command>).
    Verbose mode shows full tracebacks on errors for debugging.

"""

from __future__ import annotations

import argparse
from dataclasses import replace
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import sys
import traceback
from typing import Any

from manup import __version__
from manup.cache import MemoryCacheStore
from manup.config import DebugOptions, load_gate_config
from manup.engine import GateEngine
from manup.exceptions import ConfigError, ManUpError
from manup.logging import get_logger, set_global_logger
from manup.validation import validate_policy

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_BLOCKED = 2


def _package_version() -> str:
    try:
        return version("manup")
    except PackageNotFoundError:
        return __version__


def cmd_check(args: argparse.Namespace) -> int:
    """Handler for 'manup check' command.

    Loads the gate settings, runs one check cycle exactly as an app build
    would at start-up, and prints the resulting verdict. Host actions are
    never invoked; this command only reports.

    Args:
        args: Parsed command-line arguments containing the settings path,
            optional version/platform overrides and flags.

    Returns:
        Exit code (0 allowed/soft update, 2 blocked, 1 error).

    """
    config_path = Path(args.config).resolve()

    # GateEngine adds the FileLogger itself when log_to_file is set
    logger = get_logger(verbose=args.verbose, debug=args.debug)
    set_global_logger(logger)

    overrides: dict[str, Any] = {}
    if args.current_version:
        overrides["current_version"] = args.current_version
        # The command-line version also beats a debug.version from the file
        overrides["debug"] = {"version": None}

    try:
        config = load_gate_config(
            config_path, overrides=overrides or None, logger=logger
        )
    except FileNotFoundError:
        print(f"Error: Settings file not found: {config_path}")
        return EXIT_ERROR
    except ConfigError as err:
        print(f"Error: {err}")
        if args.verbose or args.debug:
            traceback.print_exc()
        return EXIT_ERROR

    if args.platform:
        # Only the platform is forced; other debug settings keep their state
        config = replace(
            config,
            debug=DebugOptions(
                enabled=True,
                platform=args.platform,
                policy_file=config.policy_override_file,
            ),
        )

    print(f"Checking gate for: {config.app_name} {config.current_version}")
    print(f"Config URL: {config.config_url or '(debug policy file)'}")
    print()

    engine = GateEngine(
        config,
        cache=MemoryCacheStore() if args.stateless else None,
        logger=logger,
    )
    try:
        verdict = engine.trigger()
    except ManUpError as err:
        print(f"Error: {err}")
        if args.verbose or args.debug:
            traceback.print_exc()
        return EXIT_ERROR

    # Display results
    print("=" * 70)
    print("CHECK RESULTS")
    print("=" * 70)
    print(f"Platform:        {engine.platform.value if engine.platform else 'unsupported'}")
    print(f"State:           {engine.state.value}")
    print(f"Verdict:         {verdict.kind.value}")
    if verdict.title:
        print(f"Title:           {verdict.title}")
    if verdict.message:
        print(f"Message:         {verdict.message}")
    if verdict.update_link:
        print(f"Update Link:     {verdict.update_link}")
    if verdict.buttons.ok:
        print(f"OK Button:       {verdict.buttons.ok}")
    if verdict.buttons.update:
        print(f"Update Button:   {verdict.buttons.update}")
    print("=" * 70)

    if verdict.kind.blocking:
        print()
        print(f"[BLOCKED] {config.app_name} {config.current_version} may not proceed.")
        return EXIT_BLOCKED

    print()
    print("[SUCCESS] Application may proceed.")
    return EXIT_OK


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'manup validate' command.

    Validates a policy document strictly without network calls.

    Args:
        args: Parsed command-line arguments containing policy path and
            verbose flag.

    Returns:
        Exit code (0 for valid policy, 1 for invalid).

    """
    logger = get_logger(verbose=args.verbose, debug=False)
    set_global_logger(logger)

    policy_path = Path(args.policy).resolve()

    print(f"Validating policy: {policy_path}")
    print()

    result = validate_policy(policy_path, verbose=args.verbose)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"Policy:      {result.policy_path}")
    print(f"Status:      {result.status.upper()}")
    print(f"Platforms:   {result.platform_count}")
    print()

    if result.warnings:
        print(f"Warnings ({len(result.warnings)}):")
        for warning in result.warnings:
            print(f"  [WARNING] {warning}")
        print()

    if result.errors:
        print(f"Errors ({len(result.errors)}):")
        for error in result.errors:
            print(f"  [X] {error}")
        print()

    print("=" * 70)

    if result.status == "valid":
        print()
        print("[SUCCESS] Policy is valid!")
        return EXIT_OK

    print()
    print(f"[FAILED] Policy validation failed with {len(result.errors)} error(s).")
    return EXIT_ERROR


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manup",
        description="ManUp - remote version gate (kill switch) for applications",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"manup {_package_version()}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'check' command
    parser_check = subparsers.add_parser(
        "check",
        help="Run one gate check and print the verdict",
        description="Fetch (or load the cached) policy and report what an app build would be told.",
    )
    parser_check.add_argument(
        "config",
        help="Path to the gate settings YAML file",
    )
    parser_check.add_argument(
        "--current-version",
        default=None,
        help="Application version to check; wins over current_version and "
        "debug.version in the settings file",
    )
    parser_check.add_argument(
        "--platform",
        default=None,
        choices=["android", "ios", "osx", "linux", "windows"],
        help="Policy platform to check (default: this machine's platform)",
    )
    parser_check.add_argument(
        "--stateless",
        action="store_true",
        help="Ignore and don't write the policy cache (always fetch)",
    )
    parser_check.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser_check.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_check.set_defaults(func=cmd_check)

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a policy JSON file (no network)",
        description="Check a policy document for syntax errors and malformed values before publishing it.",
    )
    parser_validate.add_argument(
        "policy",
        help="Path to the policy JSON file",
    )
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress and details",
    )
    parser_validate.set_defaults(func=cmd_validate)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the manup CLI.

    This function is registered as the 'manup' console script in pyproject.toml.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
