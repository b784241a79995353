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

"""Public API return types for automodsync.

All dataclasses are frozen (immutable) to prevent accidental mutation of
return values.

Example:
    ```python
    from automodsync.core import sync_from_file

    result = sync_from_file(Path("deployments.yaml"))
    for target in result.targets:
        print(target.account, target.action, target.final_state)
    ```

Note:
    Only public API return types belong in this module. Domain types
    (like SourceModule or ImportJob) stay co-located with their logic.
"""

from __future__ import annotations

from dataclasses import dataclass

from automodsync.automation.base import ProvisioningState
from automodsync.policy.reconcile import Action

# Statuses that count as a clean outcome for a target.
OK_STATUSES = ("skipped", "imported", "planned")


@dataclass(frozen=True)
class TargetResult:
    """Outcome of reconciling one module against one Automation account.

    Attributes:
        deployment: Deployment name.
        account: Target account name.
        module_name: Module being reconciled.
        source_version: Version found in the repository (None if the
            lookup failed).
        target_version: Version imported before the run (None if absent).
        action: Decision taken (None if the run failed before deciding).
        final_state: Terminal import state, or None when nothing was imported.
        status: "skipped", "imported", "planned" (dry run), "failed" (import
            job ended Failed), or "error" (an exception was recorded).
        error: Error message when status is "error".
    """

    deployment: str
    account: str
    module_name: str
    source_version: str | None
    target_version: str | None
    action: Action | None
    final_state: ProvisioningState | None
    status: str
    error: str | None = None


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a whole run.

    Attributes:
        targets: Per-target results in processing order.
        dry_run: Whether the run only planned actions.
    """

    targets: tuple[TargetResult, ...]
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        """True when every target was skipped, imported, or planned."""
        return all(t.status in OK_STATUSES for t in self.targets)

    def count(self, status: str) -> int:
        return sum(1 for t in self.targets if t.status == status)


@dataclass(frozen=True)
class ValidationResult:
    """Result from validating a deployment file.

    Attributes:
        status: Validation status ("valid" or "invalid").
        errors: List of error messages (empty if valid).
        warnings: List of warning messages.
        deployment_count: Number of deployments in the file.
        config_path: String path to the validated file.
    """

    status: str
    errors: list[str]
    warnings: list[str]
    deployment_count: int
    config_path: str
