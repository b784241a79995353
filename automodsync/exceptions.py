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

"""Exception hierarchy for automodsync.

Every failure the reconciliation can hit is unrecoverable at the point it is
detected, so these exceptions are raised immediately and only formatted for
display by the CLI layer:

- ConfigError: Deployment file problems (YAML parse, missing fields)
- NetworkError: Transport failures and unexpected HTTP responses on reads
- RepositoryRegistrationError: A package repository could not be resolved
- SourceModuleNotFoundError: The module (or version) is not in the repository
- AccountNotFoundError: The target Automation account does not exist
- ImportSubmissionError: An import or removal request was rejected
- ImportFailedError: An import job finished in the Failed state
- ImportTimeoutError / ImportCancelledError: A bounded poll gave up

All exceptions inherit from AMSError, so callers can catch everything with a
single except clause.

Example:
    Catching specific error types:
        ```python
        from automodsync.core import sync_from_file
        from automodsync.exceptions import AccountNotFoundError, AMSError

        try:
            result = sync_from_file(Path("deployments.yaml"))
        except AccountNotFoundError as e:
            print(f"Missing account: {e.account_name}")
        except AMSError as e:
            print(f"Sync failed: {e}")
        ```
"""

from __future__ import annotations

__all__ = [
    "AMSError",
    "ConfigError",
    "NetworkError",
    "RepositoryRegistrationError",
    "SourceModuleNotFoundError",
    "AccountNotFoundError",
    "ImportSubmissionError",
    "ImportFailedError",
    "ImportTimeoutError",
    "ImportCancelledError",
]


class AMSError(Exception):
    """Base exception for all automodsync errors."""

    pass


class ConfigError(AMSError):
    """Raised for deployment file and settings problems.

    This exception is raised when there are problems with:

    - YAML parsing (syntax errors, invalid structure)
    - Missing or invalid deployment fields
    - A missing subscription id or Azure credentials
    """

    pass


class NetworkError(AMSError):
    """Raised for transport failures and unexpected HTTP responses.

    Covers package feed queries and Azure Resource Manager reads. Requests
    are never retried.
    """

    pass


class RepositoryRegistrationError(AMSError):
    """Raised when a package repository cannot be resolved or registered.

    Typical causes are a malformed source location, a repository name that is
    already registered to a different location, or a registry store that
    cannot be read or written.
    """

    pass


class SourceModuleNotFoundError(AMSError):
    """Raised when the requested module is absent from the source repository.

    Attributes:
        module_name: Module that was searched for.
        required_version: Exact version requested, or None for "latest".
        repository: Name of the repository that was searched.
    """

    def __init__(
        self,
        module_name: str,
        repository: str,
        required_version: str | None = None,
    ) -> None:
        self.module_name = module_name
        self.repository = repository
        self.required_version = required_version
        if required_version:
            message = (
                f"Module {module_name!r} version {required_version} "
                f"not found in repository {repository!r}"
            )
        else:
            message = f"Module {module_name!r} not found in repository {repository!r}"
        super().__init__(message)


class AccountNotFoundError(AMSError):
    """Raised when a target Automation account does not exist.

    Attributes:
        account_name: Name of the missing account.
        resource_group: Resource group that was searched.
    """

    def __init__(self, account_name: str, resource_group: str) -> None:
        self.account_name = account_name
        self.resource_group = resource_group
        super().__init__(
            f"Automation account {account_name!r} not found in "
            f"resource group {resource_group!r}"
        )


class ImportSubmissionError(AMSError):
    """Raised when the Automation service rejects an import or removal.

    Example causes: account at module capacity, content URI the service
    cannot fetch, insufficient permissions.
    """

    pass


class ImportFailedError(AMSError):
    """Raised when an import job reaches the Failed state.

    Only raised when the caller asks for failed imports to be fatal; by
    default the terminal state is returned instead.
    """

    pass


class ImportTimeoutError(AMSError):
    """Raised when a bounded poll exceeds its timeout."""

    pass


class ImportCancelledError(AMSError):
    """Raised when a poll is cancelled through its cancel event."""

    pass
