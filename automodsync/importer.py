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

"""Apply a reconciliation decision to an Automation account.

The Automation service imports modules by fetching a package from a
content URI. For NuGet v2 feeds that URI is derived from the repository
location, module name and version:

    <source location>/package/<module name>/<module version>/

The string is built verbatim; the location is not normalised, so a
location registered with a trailing slash yields a double slash.
"""

from __future__ import annotations

from automodsync.automation.base import (
    AutomationAccount,
    AutomationService,
    ImportedModuleInfo,
    ImportJob,
)
from automodsync.gallery.base import SourceModule
from automodsync.logging import get_global_logger
from automodsync.policy.reconcile import Action
from automodsync.repository.registry import ModuleRepository


def build_content_uri(repository: ModuleRepository, module_name: str, version: str) -> str:
    """Build the package download URI the Automation service imports from."""
    return f"{repository.source_location}/package/{module_name}/{version}/"


def apply_action(
    action: Action,
    source: SourceModule,
    target: ImportedModuleInfo | None,
    account: AutomationAccount,
    service: AutomationService,
) -> ImportJob | None:
    """Carry out a reconciliation action against one account.

    Args:
        action: Decision from policy.decide().
        source: Module version to import.
        target: Module currently imported in the account (None if absent).
        account: Account to act on.
        service: Automation backend.

    Returns:
        The submitted import job, or None for SKIP.

    Raises:
        ImportSubmissionError: If the removal or the import is rejected.
            When a removal is rejected no import is submitted.

    """
    logger = get_global_logger()

    if action is Action.SKIP:
        logger.verbose(
            "IMPORT",
            f"{account.name}: {source.name} already at "
            f"{target.version if target else '?'}, nothing to do",
        )
        return None

    if action is Action.FORCE_REPLACE:
        removed = target.name if target is not None else source.name
        logger.verbose("IMPORT", f"{account.name}: removing {removed} before re-import")
        service.remove_module(removed, account)

    content_uri = build_content_uri(source.repository, source.name, source.version)
    logger.verbose(
        "IMPORT", f"{account.name}: importing {source.name} {source.version}"
    )
    logger.debug("IMPORT", f"Content URI: {content_uri}")
    return service.submit_import(source.name, content_uri, account)
