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

"""Command-line interface for automodsync.

Commands:

    validate: Check a deployment file without network calls
    sync: Reconcile modules into the target Automation accounts

Example:
    Validate a deployment file:
        ```bash
        $ amsync validate deployments.yaml
        ```

    Reconcile, continuing past failing accounts:
        ```bash
        $ amsync sync deployments.yaml --continue-on-error
        ```

    See what would happen without importing anything:
        ```bash
        $ amsync sync deployments.yaml --dry-run -v
        ```

Exit Codes:

- 0: Success (every target skipped, imported or planned)
- 1: Error (invalid file, failed reconciliation, or a Failed import)

Note:
    Verbose mode shows full tracebacks on errors. Debug mode implies
    verbose mode and also shows HTTP status lines and merged configuration.

"""

from __future__ import annotations

import argparse
from importlib.metadata import version
from pathlib import Path
import sys

from automodsync.core import DEFAULT_REGISTRY_FILE, PollSettings, sync_from_file
from automodsync.exceptions import AMSError
from automodsync.logging import get_logger, set_global_logger
from automodsync.poller import DEFAULT_POLL_INTERVAL
from automodsync.validation import validate_deployment_file


def cmd_validate(args: argparse.Namespace) -> int:
    """Handler for 'amsync validate'.

    Returns:
        Exit code (0 for a valid file, 1 for invalid).

    """
    set_global_logger(get_logger(verbose=args.verbose, debug=False))

    config_path = Path(args.config).resolve()
    print(f"Validating deployment file: {config_path}")
    print()

    result = validate_deployment_file(config_path)

    print("=" * 70)
    print("VALIDATION RESULTS")
    print("=" * 70)
    print(f"File:         {result.config_path}")
    print(f"Status:       {result.status.upper()}")
    print(f"Deployments:  {result.deployment_count}")
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
        print("[SUCCESS] Deployment file is valid!")
        return 0
    print()
    print(f"[FAILED] Validation failed with {len(result.errors)} error(s).")
    return 1


def cmd_sync(args: argparse.Namespace) -> int:
    """Handler for 'amsync sync'.

    Returns:
        Exit code (0 when every target ended skipped, imported or planned).

    """
    set_global_logger(get_logger(verbose=args.verbose, debug=args.debug))

    config_path = Path(args.config).resolve()
    if not config_path.exists():
        print(f"Error: Deployment file not found: {config_path}")
        return 1

    print(f"Synchronizing modules from: {config_path}")
    if args.dry_run:
        print("Dry run: no module will be removed or imported")
    print()

    try:
        result = sync_from_file(
            config_path,
            subscription_id=args.subscription,
            registry_file=args.registry,
            force=True if args.force else None,
            dry_run=args.dry_run,
            on_error="continue" if args.continue_on_error else "abort",
            fail_on_failed_import=args.fail_on_failed_import,
            poll=PollSettings(interval=args.poll_interval, timeout=args.poll_timeout),
        )
    except AMSError as err:
        print(f"Error: {err}")
        if args.verbose or args.debug:
            import traceback

            traceback.print_exc()
        return 1

    print()
    print("=" * 70)
    print("SYNC RESULTS")
    print("=" * 70)
    for target in result.targets:
        action = target.action.value if target.action else "-"
        versions = f"{target.target_version or 'none'} -> {target.source_version or '?'}"
        print(
            f"{target.deployment}/{target.account}: {target.module_name} "
            f"{versions} [{action}] {target.status}"
        )
        if target.error:
            print(f"  [X] {target.error}")
    print("=" * 70)
    print(
        f"Imported: {result.count('imported')}  Skipped: {result.count('skipped')}  "
        f"Planned: {result.count('planned')}  Failed: {result.count('failed')}  "
        f"Errors: {result.count('error')}"
    )
    print()

    if result.ok:
        print("[SUCCESS] Modules are in sync!")
        return 0
    print("[FAILED] One or more targets could not be synchronized.")
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amsync",
        description="Keep Azure Automation account modules in sync with a package repository",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"amsync {version('automodsync')}",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
        required=True,
    )

    # 'validate' command
    parser_validate = subparsers.add_parser(
        "validate",
        help="Validate a deployment file (no network calls)",
        description="Check a deployment YAML file for syntax and configuration errors.",
    )
    parser_validate.add_argument("config", help="Path to the deployment YAML file")
    parser_validate.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show validation progress",
    )
    parser_validate.set_defaults(func=cmd_validate)

    # 'sync' command
    parser_sync = subparsers.add_parser(
        "sync",
        help="Reconcile modules into the target Automation accounts",
        description=(
            "Find each deployment's module in its repository, compare it with the "
            "version imported in every target account, and import when needed."
        ),
    )
    parser_sync.add_argument("config", help="Path to the deployment YAML file")
    parser_sync.add_argument(
        "--subscription",
        default=None,
        help="Azure subscription id (default: file, then AZURE_SUBSCRIPTION_ID)",
    )
    parser_sync.add_argument(
        "--registry",
        type=Path,
        default=DEFAULT_REGISTRY_FILE,
        help=f"Repository registry file (default: {DEFAULT_REGISTRY_FILE})",
    )
    parser_sync.add_argument(
        "--force",
        action="store_true",
        help="Replace imported modules even when they are the same or newer",
    )
    parser_sync.add_argument(
        "--dry-run",
        action="store_true",
        help="Decide what to do without removing or importing anything",
    )
    parser_sync.add_argument(
        "--continue-on-error",
        action="store_true",
        help="Record errors and move on to the next account instead of stopping",
    )
    parser_sync.add_argument(
        "--fail-on-failed-import",
        action="store_true",
        help="Treat an import that ends in state Failed as an error",
    )
    parser_sync.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Seconds between import status checks (default: {DEFAULT_POLL_INTERVAL:g})",
    )
    parser_sync.add_argument(
        "--poll-timeout",
        type=float,
        default=None,
        help="Give up waiting for an import after this many seconds (default: wait forever)",
    )
    parser_sync.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show progress and high-level status updates",
    )
    parser_sync.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Show detailed debugging output (implies --verbose)",
    )
    parser_sync.set_defaults(func=cmd_sync)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the amsync CLI.

    Registered as the 'amsync' console script in pyproject.toml.
    """
    args = build_parser().parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
