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

"""Core orchestration for automodsync.

This module drives one reconciliation pass over a set of deployments. For
each deployment:

1. Resolve the package repository for the deployment's source location
   (registering `<module>-repository` if needed)
2. Find the module in the repository (latest, or the pinned version)

Then, for each target account, in the order the deployment lists them:

3. Look up the Automation account (it must exist)
4. Look up the module currently imported in the account
5. Decide: skip, import, or force-replace
6. Apply the decision and wait for the import to reach a terminal state

Steps 1 and 2 do not depend on the target, so they run once per
deployment. Repository resolution is idempotent either way.

Failure Handling:

- on_error="abort" (default): the first error propagates and ends the run.
  Accounts already reconciled keep their new state; nothing is rolled back.
- on_error="continue": the error is recorded on the TargetResult and the
  run moves on to the next target. A resolver or finder error marks every
  target of that deployment.

An import whose job ends Failed is reported through
TargetResult.final_state and status="failed". Pass
fail_on_failed_import=True to treat it as an ImportFailedError instead.

Example:
    Programmatic usage with the default Azure clients:
        ```python
        from pathlib import Path
        from automodsync.core import sync_from_file

        result = sync_from_file(Path("deployments.yaml"))
        print("all good" if result.ok else "something failed")
        ```

    With explicit collaborators:
        ```python
        from automodsync.core import sync_deployments

        result = sync_deployments(
            loaded.deployments,
            registry=RepositoryRegistry(Path("state/repositories.json")),
            gallery=NuGetGallery(),
            service=ArmAutomationClient(subscription_id, creds.get_token),
        )
        ```

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
import threading
from typing import Literal

from automodsync.auth import CredentialManager
from automodsync.automation.arm import ArmAutomationClient
from automodsync.automation.base import (
    AutomationAccount,
    AutomationService,
    ImportedModuleInfo,
    ProvisioningState,
)
from automodsync.config.loader import DeploymentDescriptor, load_deployment_file
from automodsync.exceptions import (
    AccountNotFoundError,
    AMSError,
    ConfigError,
    ImportFailedError,
    SourceModuleNotFoundError,
)
from automodsync.gallery.base import ModuleGallery, SourceModule
from automodsync.gallery.nuget import NuGetGallery
from automodsync.importer import apply_action
from automodsync.logging import get_global_logger
from automodsync.policy.reconcile import Action, decide
from automodsync.poller import DEFAULT_POLL_INTERVAL, await_completion
from automodsync.repository.registry import RepositoryRegistry
from automodsync.results import SyncResult, TargetResult

OnError = Literal["abort", "continue"]

DEFAULT_REGISTRY_FILE = Path("state/repositories.json")
TOTAL_STEPS = 6


@dataclass(frozen=True)
class TargetContext:
    """Everything needed to reconcile one target account.

    Attributes:
        deployment: Deployment being processed.
        account_name: Target account name.
        source: Module version found in the repository.
        force: Effective force flag for this deployment.
    """

    deployment: DeploymentDescriptor
    account_name: str
    source: SourceModule
    force: bool


@dataclass(frozen=True)
class PollSettings:
    """How to wait for imports."""

    interval: float = DEFAULT_POLL_INTERVAL
    timeout: float | None = None
    cancel: threading.Event | None = None


def find_source_module(
    deployment: DeploymentDescriptor,
    registry: RepositoryRegistry,
    gallery: ModuleGallery,
) -> SourceModule:
    """Resolve the deployment's repository and find the module in it.

    Raises:
        RepositoryRegistrationError: If the repository cannot be resolved.
        SourceModuleNotFoundError: If the module (or pinned version) is absent.
        NetworkError: If the repository cannot be queried.

    """
    logger = get_global_logger()
    opts = deployment.options

    logger.step(1, TOTAL_STEPS, f"Resolving repository for {deployment.source_location}")
    repository = registry.resolve(
        deployment.source_location, opts.module_name, credential=opts.credential
    )

    logger.step(2, TOTAL_STEPS, f"Finding {opts.module_name} in {repository.name}")
    source = gallery.find_module(
        opts.module_name,
        repository,
        required_version=opts.module_version,
        credential=opts.credential,
    )
    if source is None:
        raise SourceModuleNotFoundError(
            opts.module_name, repository.name, required_version=opts.module_version
        )

    logger.verbose("GALLERY", f"Source module: {source.name} {source.version}")
    return source


@dataclass(frozen=True)
class TargetPlan:
    """What was found in one account and what to do about it.

    Attributes:
        account: The target account.
        target: Module currently imported in the account, or None.
        action: Decided action.
    """

    account: AutomationAccount
    target: ImportedModuleInfo | None
    action: Action


def plan_target(context: TargetContext, service: AutomationService) -> TargetPlan:
    """Look up the account and its imported module, then decide.

    Raises:
        AccountNotFoundError: If the account does not exist.
        NetworkError: On transport failures.

    """
    logger = get_global_logger()
    opts = context.deployment.options
    source = context.source

    logger.step(3, TOTAL_STEPS, f"Looking up account {context.account_name}")
    account = service.get_account(context.account_name, opts.resource_group)
    if account is None:
        raise AccountNotFoundError(context.account_name, opts.resource_group)

    logger.step(4, TOTAL_STEPS, f"Inspecting {opts.module_name} in {account.name}")
    target = service.get_module(opts.module_name, account)
    if target is None:
        logger.verbose("ARM", f"{account.name}: {opts.module_name} is not imported")
    else:
        logger.verbose(
            "ARM",
            f"{account.name}: {target.name} {target.version or '(no version)'} "
            f"[{target.provisioning_state.value}]",
        )

    action = decide(source, target, context.force)
    logger.verbose(
        "DECIDE",
        f"{account.name}: source {source.version} vs imported "
        f"{target.version if target else 'none'} (force={context.force}) -> {action.value}",
    )
    return TargetPlan(account=account, target=target, action=action)


def execute_plan(
    context: TargetContext,
    plan: TargetPlan,
    service: AutomationService,
    *,
    dry_run: bool = False,
    fail_on_failed_import: bool = False,
    poll: PollSettings | None = None,
) -> TargetResult:
    """Apply a planned action and wait for the import to finish.

    Raises:
        ImportSubmissionError: If removal or import is rejected.
        ImportFailedError: If requested and the import ended Failed.
        NetworkError: On transport failures.

    """
    logger = get_global_logger()
    poll = poll or PollSettings()
    source = context.source
    account, target, action = plan.account, plan.target, plan.action

    def result(status: str, final_state: ProvisioningState | None = None) -> TargetResult:
        return TargetResult(
            deployment=context.deployment.name,
            account=account.name,
            module_name=source.name,
            source_version=source.version,
            target_version=target.version if target else None,
            action=action,
            final_state=final_state,
            status=status,
        )

    if action is Action.SKIP:
        logger.step(5, TOTAL_STEPS, f"{account.name} is up to date")
        return result("skipped")

    if dry_run:
        logger.step(5, TOTAL_STEPS, f"Dry run: would {action.value} {source.name}")
        return result("planned")

    logger.step(5, TOTAL_STEPS, f"Applying {action.value} to {account.name}")
    job = apply_action(action, source, target, account, service)
    if job is None:
        return result("skipped")

    logger.step(6, TOTAL_STEPS, f"Waiting for import into {account.name}")
    state = await_completion(
        job,
        service,
        interval=poll.interval,
        timeout=poll.timeout,
        cancel=poll.cancel,
    )
    if state is ProvisioningState.FAILED:
        if fail_on_failed_import:
            raise ImportFailedError(
                f"Import of {source.name} {source.version} into "
                f"{account.name!r} finished in state Failed"
            )
        logger.warning("IMPORT", f"Import into {account.name} finished in state Failed")
        return result("failed", state)

    return result("imported", state)


def reconcile_target(
    context: TargetContext,
    service: AutomationService,
    *,
    dry_run: bool = False,
    fail_on_failed_import: bool = False,
    poll: PollSettings | None = None,
) -> TargetResult:
    """Reconcile the source module against one account.

    Args:
        context: Deployment, account name, source module and force flag.
        service: Automation backend.
        dry_run: Decide only; do not remove, import, or poll.
        fail_on_failed_import: Raise ImportFailedError when the import job
            ends Failed instead of reporting it.
        poll: Poll interval, timeout and cancel event.

    Returns:
        TargetResult describing what happened.

    Raises:
        AccountNotFoundError: If the account does not exist.
        ImportSubmissionError: If removal or import is rejected.
        ImportFailedError: If requested and the import ended Failed.
        NetworkError: On transport failures.

    """
    return execute_plan(
        context,
        plan_target(context, service),
        service,
        dry_run=dry_run,
        fail_on_failed_import=fail_on_failed_import,
        poll=poll,
    )


def _error_result(
    deployment: DeploymentDescriptor,
    account_name: str,
    err: AMSError,
    source: SourceModule | None = None,
    plan: TargetPlan | None = None,
) -> TargetResult:
    target = plan.target if plan else None
    return TargetResult(
        deployment=deployment.name,
        account=account_name,
        module_name=source.name if source else deployment.options.module_name,
        source_version=source.version if source else None,
        target_version=target.version if target else None,
        action=plan.action if plan else None,
        final_state=None,
        status="error",
        error=str(err),
    )


def sync_deployment(
    deployment: DeploymentDescriptor,
    *,
    registry: RepositoryRegistry,
    gallery: ModuleGallery,
    service: AutomationService,
    force: bool | None = None,
    dry_run: bool = False,
    on_error: OnError = "abort",
    fail_on_failed_import: bool = False,
    poll: PollSettings | None = None,
) -> list[TargetResult]:
    """Reconcile one deployment against all of its target accounts.

    Args:
        deployment: Deployment to process.
        registry: Repository registry.
        gallery: Module search backend.
        service: Automation backend.
        force: Overrides the deployment's force option when not None.
        dry_run: Decide only.
        on_error: "abort" re-raises the first error, "continue" records it.
        fail_on_failed_import: See reconcile_target().
        poll: Poll settings.

    Returns:
        One TargetResult per target, in declared order.

    """
    logger = get_global_logger()
    effective_force = deployment.options.force if force is None else force
    logger.verbose(
        "SYNC",
        f"Deployment {deployment.name}: {deployment.options.module_name} -> "
        f"{', '.join(deployment.targets)}",
    )

    try:
        source = find_source_module(deployment, registry, gallery)
    except AMSError as err:
        if on_error == "abort":
            raise
        logger.warning("SYNC", f"Deployment {deployment.name}: {err}")
        return [_error_result(deployment, name, err) for name in deployment.targets]

    results: list[TargetResult] = []
    for account_name in deployment.targets:
        context = TargetContext(
            deployment=deployment,
            account_name=account_name,
            source=source,
            force=effective_force,
        )
        plan: TargetPlan | None = None
        try:
            plan = plan_target(context, service)
            results.append(
                execute_plan(
                    context,
                    plan,
                    service,
                    dry_run=dry_run,
                    fail_on_failed_import=fail_on_failed_import,
                    poll=poll,
                )
            )
        except AMSError as err:
            if on_error == "abort":
                raise
            logger.warning("SYNC", f"{deployment.name}/{account_name}: {err}")
            results.append(_error_result(deployment, account_name, err, source, plan))
    return results


def sync_deployments(
    deployments: Iterable[DeploymentDescriptor],
    *,
    registry: RepositoryRegistry,
    gallery: ModuleGallery,
    service: AutomationService,
    force: bool | None = None,
    dry_run: bool = False,
    on_error: OnError = "abort",
    fail_on_failed_import: bool = False,
    poll: PollSettings | None = None,
) -> SyncResult:
    """Reconcile deployments one after another.

    See sync_deployment() for the arguments.

    Returns:
        SyncResult with every TargetResult in processing order.

    """
    if on_error not in ("abort", "continue"):
        raise ConfigError(f"Unknown on_error mode: {on_error!r}")

    results: list[TargetResult] = []
    for deployment in deployments:
        results.extend(
            sync_deployment(
                deployment,
                registry=registry,
                gallery=gallery,
                service=service,
                force=force,
                dry_run=dry_run,
                on_error=on_error,
                fail_on_failed_import=fail_on_failed_import,
                poll=poll,
            )
        )
    return SyncResult(targets=tuple(results), dry_run=dry_run)


def sync_from_file(
    config_path: Path,
    *,
    subscription_id: str | None = None,
    registry_file: Path | None = DEFAULT_REGISTRY_FILE,
    credentials: CredentialManager | None = None,
    force: bool | None = None,
    dry_run: bool = False,
    on_error: OnError = "abort",
    fail_on_failed_import: bool = False,
    poll: PollSettings | None = None,
) -> SyncResult:
    """Load a deployment file and reconcile it with the default clients.

    Uses RepositoryRegistry (JSON store at registry_file), NuGetGallery and
    ArmAutomationClient. The subscription is taken from subscription_id,
    else the file's `subscription_id`, else AZURE_SUBSCRIPTION_ID.

    Args:
        config_path: Deployment YAML file.
        subscription_id: Azure subscription override.
        registry_file: Repository registry store. None keeps it in memory.
        credentials: Credential manager (created from the environment if None).
        force: Overrides every deployment's force option when not None.
        dry_run: Decide only; registrations are not persisted.
        on_error: "abort" or "continue".
        fail_on_failed_import: Treat Failed imports as errors.
        poll: Poll settings.

    Raises:
        ConfigError: On deployment file problems or a missing subscription.
        AMSError: Any reconciliation error when on_error="abort".

    """
    logger = get_global_logger()
    loaded = load_deployment_file(config_path)
    credentials = credentials or CredentialManager()

    subscription = (
        subscription_id or loaded.subscription_id or credentials.get_subscription_id()
    )
    if not subscription:
        raise ConfigError(
            "No Azure subscription configured. Pass --subscription, set "
            "'subscription_id' in the deployment file, or set AZURE_SUBSCRIPTION_ID."
        )
    logger.verbose("ARM", f"Using subscription {subscription}")

    registry = RepositoryRegistry(registry_file, persist=not dry_run)
    registry.load()

    return sync_deployments(
        loaded.deployments,
        registry=registry,
        gallery=NuGetGallery(),
        service=ArmAutomationClient(subscription, credentials.get_token),
        force=force,
        dry_run=dry_run,
        on_error=on_error,
        fail_on_failed_import=fail_on_failed_import,
        poll=poll,
    )
