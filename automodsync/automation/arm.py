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

"""Azure Resource Manager client for Automation accounts.

Implements the AutomationService protocol over the ARM REST API:

    GET    .../automationAccounts/{account}
    GET    .../automationAccounts/{account}/modules/{module}
    PUT    .../automationAccounts/{account}/modules/{module}
    DELETE .../automationAccounts/{account}/modules/{module}

where "..." is
`/subscriptions/{sub}/resourceGroups/{rg}/providers/Microsoft.Automation`.

An import is asynchronous on the service side: the PUT returns as soon as
the request is accepted, and the module's `properties.provisioningState`
moves through intermediate states until it settles on Succeeded or Failed.
Polling that state is how import jobs are tracked.

Error Mapping:

- 404 on account/module reads -> None (absence is a normal result)
- Non-2xx on PUT/DELETE -> ImportSubmissionError (with the service message)
- Other non-2xx or transport errors -> NetworkError

Example:
    ```python
    from automodsync.auth import CredentialManager
    from automodsync.automation import ArmAutomationClient

    creds = CredentialManager()
    client = ArmAutomationClient(creds.get_subscription_id(), creds.get_token)
    account = client.get_account("aa-prod-01", "rg-automation")
    module = client.get_module("Az.Accounts", account)
    ```
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from urllib.parse import quote

import requests

from automodsync.automation.base import (
    AutomationAccount,
    ImportedModuleInfo,
    ImportJob,
    ProvisioningState,
)
from automodsync.exceptions import ImportSubmissionError, NetworkError
from automodsync.io.http import DEFAULT_TIMEOUT, make_session
from automodsync.logging import get_global_logger

ARM_BASE_URL = "https://management.azure.com"
API_VERSION = "2023-11-01"


def _service_message(response: requests.Response) -> str:
    """Extract the ARM error message from a response, falling back to the reason."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error", body)
        if isinstance(error, dict) and error.get("message"):
            code = error.get("code")
            return f"{code}: {error['message']}" if code else str(error["message"])
    return f"{response.status_code} {response.reason}"


class ArmAutomationClient:
    """AutomationService implementation backed by Azure Resource Manager.

    Attributes:
        subscription_id: Subscription that owns the Automation accounts.
        base_url: ARM endpoint (override for sovereign clouds).
        api_version: Microsoft.Automation API version.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        subscription_id: str,
        token_provider: Callable[[], str],
        *,
        base_url: str = ARM_BASE_URL,
        api_version: str = API_VERSION,
        session: requests.Session | None = None,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        self.subscription_id = subscription_id
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout = timeout
        self._token_provider = token_provider
        self._session = session or make_session()

    # ----------------------------
    # URL helpers
    # ----------------------------

    def _account_url(self, name: str, resource_group: str) -> str:
        return (
            f"{self.base_url}/subscriptions/{self.subscription_id}"
            f"/resourceGroups/{quote(resource_group, safe='')}"
            f"/providers/Microsoft.Automation/automationAccounts/{quote(name, safe='')}"
        )

    def _module_url(self, name: str, account: AutomationAccount) -> str:
        return (
            f"{self._account_url(account.name, account.resource_group)}"
            f"/modules/{quote(name, safe='')}"
        )

    # ----------------------------
    # Transport
    # ----------------------------

    def _request(
        self, method: str, url: str, body: dict[str, Any] | None = None
    ) -> requests.Response:
        logger = get_global_logger()
        headers = {"Authorization": f"Bearer {self._token_provider()}"}
        logger.verbose("ARM", f"{method} {url}")
        try:
            response = self._session.request(
                method,
                url,
                params={"api-version": self.api_version},
                headers=headers,
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as err:
            raise NetworkError(f"Azure request failed: {method} {url}: {err}") from err
        logger.debug("ARM", f"Response: {response.status_code} {response.reason}")
        return response

    def _read(self, url: str) -> dict[str, Any] | None:
        response = self._request("GET", url)
        if response.status_code == 404:
            return None
        if not response.ok:
            raise NetworkError(
                f"Azure request failed: GET {url}: {_service_message(response)}"
            )
        return response.json()

    # ----------------------------
    # AutomationService
    # ----------------------------

    def get_account(self, name: str, resource_group: str) -> AutomationAccount | None:
        """Look up an Automation account.

        Returns:
            The account, or None if ARM reports it does not exist.

        Raises:
            NetworkError: On transport failures or unexpected statuses.

        """
        data = self._read(self._account_url(name, resource_group))
        if data is None:
            return None
        return AutomationAccount(
            name=data.get("name", name),
            resource_group=resource_group,
            location=data.get("location"),
            resource_id=data.get("id"),
        )

    def get_module(self, name: str, account: AutomationAccount) -> ImportedModuleInfo | None:
        """Look up a module imported into an account.

        Returns:
            Module info, or None if the account has no module by that name.

        Raises:
            NetworkError: On transport failures or unexpected statuses.

        """
        data = self._read(self._module_url(name, account))
        if data is None:
            return None
        props = data.get("properties") or {}
        return ImportedModuleInfo(
            name=data.get("name", name),
            version=props.get("version") or None,
            provisioning_state=ProvisioningState.from_service(
                props.get("provisioningState")
            ),
        )

    def submit_import(
        self, name: str, content_uri: str, account: AutomationAccount
    ) -> ImportJob:
        """Submit a module import.

        Raises:
            ImportSubmissionError: If ARM rejects the request.
            NetworkError: On transport failures.

        """
        body: dict[str, Any] = {"properties": {"contentLink": {"uri": content_uri}}}
        if account.location:
            body["location"] = account.location

        response = self._request("PUT", self._module_url(name, account), body)
        if not response.ok:
            raise ImportSubmissionError(
                f"Import of {name!r} into {account.name!r} was rejected: "
                f"{_service_message(response)}"
            )
        return ImportJob(module_name=name, account=account, content_uri=content_uri)

    def remove_module(self, name: str, account: AutomationAccount) -> None:
        """Remove a module from an account.

        Raises:
            ImportSubmissionError: If ARM rejects the request.
            NetworkError: On transport failures.

        """
        response = self._request("DELETE", self._module_url(name, account))
        if not response.ok:
            raise ImportSubmissionError(
                f"Removal of {name!r} from {account.name!r} was rejected: "
                f"{_service_message(response)}"
            )

    def get_job_status(self, job: ImportJob) -> ProvisioningState:
        """Read the provisioning state of an import.

        Raises:
            NetworkError: If the module disappeared or the read fails.

        """
        data = self._read(self._module_url(job.module_name, job.account))
        if data is None:
            raise NetworkError(
                f"Module {job.module_name!r} vanished from {job.account.name!r} "
                f"while its import was being tracked"
            )
        props = data.get("properties") or {}
        return ProvisioningState.from_service(props.get("provisioningState"))
