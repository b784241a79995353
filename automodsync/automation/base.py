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

"""Automation service protocol and shared types for automodsync.

An Automation account hosts imported modules and exposes their lifecycle:
look a module up, import a module from a content URI, remove a module, and
report the provisioning state of an import. The reconciliation only talks
to the service through the AutomationService protocol, so tests and other
backends can stand in for Azure Resource Manager.

Provisioning States:
    PENDING -> SUCCEEDED
    PENDING -> FAILED

SUCCEEDED and FAILED are terminal. Every intermediate state the service
reports (Creating, ContentDownloaded, ...) is collapsed into PENDING.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class ProvisioningState(str, Enum):
    """Provisioning state of an imported module or import job."""

    PENDING = "Pending"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        return self is not ProvisioningState.PENDING

    @classmethod
    def from_service(cls, value: str | None) -> ProvisioningState:
        """Map a service-reported state onto the three-state model.

        A cancelled import is terminal and did not succeed, so it counts as
        FAILED.
        """
        state = (value or "").lower()
        if state == "succeeded":
            return cls.SUCCEEDED
        if state in ("failed", "cancelled", "canceled"):
            return cls.FAILED
        return cls.PENDING


@dataclass(frozen=True)
class AutomationAccount:
    """Target module host.

    Attributes:
        name: Account name.
        resource_group: Resource group the account lives in.
        location: Azure region, when reported.
        resource_id: Full ARM resource id, when reported.
    """

    name: str
    resource_group: str
    location: str | None = None
    resource_id: str | None = None


@dataclass(frozen=True)
class ImportedModuleInfo:
    """A module already registered in an Automation account.

    Attributes:
        name: Module name as the account reports it.
        version: Imported version, or None while the service has not
            determined it yet.
        provisioning_state: Current provisioning state.
    """

    name: str
    version: str | None
    provisioning_state: ProvisioningState


@dataclass(frozen=True)
class ImportJob:
    """A submitted module import.

    Attributes:
        module_name: Module being imported.
        account: Account the import was submitted to.
        content_uri: URI the service fetches the package from.
    """

    module_name: str
    account: AutomationAccount
    content_uri: str


class AutomationService(Protocol):
    """Protocol for Automation account backends."""

    def get_account(self, name: str, resource_group: str) -> AutomationAccount | None:
        """Return the account, or None if it does not exist."""
        ...

    def get_module(self, name: str, account: AutomationAccount) -> ImportedModuleInfo | None:
        """Return the imported module, or None if the account has none by that name."""
        ...

    def submit_import(
        self, name: str, content_uri: str, account: AutomationAccount
    ) -> ImportJob:
        """Start importing a module from content_uri.

        Raises:
            ImportSubmissionError: If the service rejects the request.
        """
        ...

    def remove_module(self, name: str, account: AutomationAccount) -> None:
        """Remove an imported module.

        Raises:
            ImportSubmissionError: If the service rejects the request.
        """
        ...

    def get_job_status(self, job: ImportJob) -> ProvisioningState:
        """Return the current provisioning state of an import."""
        ...
