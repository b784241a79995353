"""
Pytest configuration and shared fixtures for automodsync tests.

This module provides reusable fixtures and in-memory fakes for the gallery
and Automation backends, so orchestration tests never touch the network.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml

from automodsync.automation.base import (
    AutomationAccount,
    ImportedModuleInfo,
    ImportJob,
    ProvisioningState,
)
from automodsync.exceptions import ImportSubmissionError
from automodsync.gallery.base import SourceModule
from automodsync.logging import SilentLogger, set_global_logger
from automodsync.repository.registry import ModuleRepository

PSGALLERY = "https://www.powershellgallery.com/api/v2"


class FakeGallery:
    """ModuleGallery returning modules from a {name: [versions]} table."""

    def __init__(self, modules: dict[str, list[str]] | None = None) -> None:
        self.modules = modules or {}
        self.calls: list[tuple[str, str, str | None]] = []

    def find_module(self, name, repository, required_version=None, credential=None):
        self.calls.append((name, repository.name, required_version))
        versions = self.modules.get(name, [])
        if required_version is not None:
            if required_version not in versions:
                return None
            version = required_version
        elif versions:
            version = versions[-1]
        else:
            return None
        return SourceModule(name=name, version=version, repository=repository)


class FakeAutomationService:
    """AutomationService keeping accounts and modules in memory.

    Every call is appended to `calls` as a tuple so tests can assert order.
    Import jobs report the states queued in `job_states` (Succeeded once the
    queue is empty).
    """

    def __init__(self) -> None:
        self.accounts: dict[str, AutomationAccount] = {}
        self.modules: dict[tuple[str, str], ImportedModuleInfo] = {}
        self.job_states: list[ProvisioningState] = []
        self.reject_import: set[str] = set()
        self.reject_remove: set[str] = set()
        self.calls: list[tuple] = []

    def add_account(self, name: str, resource_group: str = "rg-automation") -> AutomationAccount:
        account = AutomationAccount(name=name, resource_group=resource_group, location="westeurope")
        self.accounts[name] = account
        return account

    def add_module(self, account: str, name: str, version: str | None) -> None:
        self.modules[(account, name)] = ImportedModuleInfo(
            name=name, version=version, provisioning_state=ProvisioningState.SUCCEEDED
        )

    def get_account(self, name, resource_group):
        self.calls.append(("get_account", name))
        account = self.accounts.get(name)
        if account is None or account.resource_group != resource_group:
            return None
        return account

    def get_module(self, name, account):
        self.calls.append(("get_module", account.name, name))
        return self.modules.get((account.name, name))

    def submit_import(self, name, content_uri, account):
        self.calls.append(("submit_import", account.name, name, content_uri))
        if account.name in self.reject_import:
            raise ImportSubmissionError(f"Import of {name!r} into {account.name!r} was rejected")
        return ImportJob(module_name=name, account=account, content_uri=content_uri)

    def remove_module(self, name, account):
        self.calls.append(("remove_module", account.name, name))
        if account.name in self.reject_remove:
            raise ImportSubmissionError(f"Removal of {name!r} from {account.name!r} was rejected")
        self.modules.pop((account.name, name), None)

    def get_job_status(self, job):
        self.calls.append(("get_job_status", job.account.name, job.module_name))
        if self.job_states:
            return self.job_states.pop(0)
        return ProvisioningState.SUCCEEDED

    def names(self, kind: str) -> list[tuple]:
        """Return recorded calls of one kind."""
        return [c for c in self.calls if c[0] == kind]


@pytest.fixture(autouse=True)
def silent_logger():
    """Reset the global logger so CLI tests do not leak verbosity."""
    set_global_logger(SilentLogger())
    yield
    set_global_logger(SilentLogger())


@pytest.fixture
def tmp_test_dir(tmp_path: Path) -> Path:
    """
    Provide a temporary directory for test artifacts.

    Automatically cleaned up after test completion.
    """
    return tmp_path


@pytest.fixture
def repository() -> ModuleRepository:
    """Provide a repository handle pointing at the public gallery."""
    return ModuleRepository(name="psgallery", source_location=PSGALLERY)


@pytest.fixture
def fake_service() -> FakeAutomationService:
    return FakeAutomationService()


@pytest.fixture
def fake_gallery() -> FakeGallery:
    return FakeGallery({"Az.Accounts": ["2.11.0", "2.12.1"]})


@pytest.fixture
def sample_deployment_data() -> dict[str, Any]:
    """
    Provide sample deployment file data.

    Returns a complete deployment file structure for testing.
    """
    return {
        "apiVersion": "amsync/v1",
        "subscription_id": "00000000-0000-0000-0000-000000000000",
        "defaults": {
            "options": {
                "resource_group": "rg-automation",
            },
        },
        "deployments": [
            {
                "name": "az-accounts",
                "source": PSGALLERY,
                "targets": ["aa-prod-01", "aa-prod-02"],
                "options": {
                    "module_name": "Az.Accounts",
                    "module_version": "2.12.1",
                },
            }
        ],
    }


@pytest.fixture
def create_yaml_file(tmp_test_dir: Path):
    """
    Factory fixture for creating temporary YAML files.

    Usage:
        yaml_path = create_yaml_file("test.yaml", {"key": "value"})
    """

    def _create(filename: str, data: dict[str, Any]) -> Path:
        path = tmp_test_dir / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            yaml.dump(data, f)
        return path

    return _create
