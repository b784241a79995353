"""
Tests for automodsync.automation module.

Tests the Azure Resource Manager client including:
- Account and module reads
- Import submission and removal
- Provisioning state mapping
- Error mapping to automodsync exceptions
"""

from __future__ import annotations

import pytest
import requests_mock

from automodsync.automation import (
    ArmAutomationClient,
    AutomationAccount,
    ImportJob,
    ProvisioningState,
)
from automodsync.exceptions import ImportSubmissionError, NetworkError
from automodsync.poller import await_completion

SUB = "00000000-0000-0000-0000-000000000000"
ACCOUNT_URL = (
    f"https://management.azure.com/subscriptions/{SUB}/resourceGroups/rg-automation"
    f"/providers/Microsoft.Automation/automationAccounts/aa-prod-01"
)
MODULE_URL = f"{ACCOUNT_URL}/modules/Az.Accounts"


@pytest.fixture
def client() -> ArmAutomationClient:
    return ArmAutomationClient(SUB, lambda: "token-abc")


@pytest.fixture
def account() -> AutomationAccount:
    return AutomationAccount(name="aa-prod-01", resource_group="rg-automation", location="westeurope")


class TestProvisioningState:
    """Tests for mapping service states."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Succeeded", ProvisioningState.SUCCEEDED),
            ("succeeded", ProvisioningState.SUCCEEDED),
            ("Failed", ProvisioningState.FAILED),
            ("Cancelled", ProvisioningState.FAILED),
            ("Canceled", ProvisioningState.FAILED),
            ("Creating", ProvisioningState.PENDING),
            ("ContentValidated", ProvisioningState.PENDING),
            (None, ProvisioningState.PENDING),
        ],
    )
    def test_from_service(self, value, expected):
        assert ProvisioningState.from_service(value) is expected

    def test_is_terminal(self):
        assert ProvisioningState.SUCCEEDED.is_terminal
        assert ProvisioningState.FAILED.is_terminal
        assert not ProvisioningState.PENDING.is_terminal


class TestReads:
    """Tests for get_account() and get_module()."""

    def test_get_account(self, client):
        body = {"id": "/subscriptions/x/aa-prod-01", "name": "aa-prod-01", "location": "westeurope"}

        with requests_mock.Mocker() as m:
            m.get(ACCOUNT_URL, json=body)
            account = client.get_account("aa-prod-01", "rg-automation")

        assert account.name == "aa-prod-01"
        assert account.resource_group == "rg-automation"
        assert account.location == "westeurope"
        assert m.last_request.headers["Authorization"] == "Bearer token-abc"
        assert m.last_request.qs["api-version"] == ["2023-11-01"]

    def test_missing_account_returns_none(self, client):
        with requests_mock.Mocker() as m:
            m.get(ACCOUNT_URL, status_code=404)
            assert client.get_account("aa-prod-01", "rg-automation") is None

    def test_forbidden_raises_network_error(self, client):
        error = {"error": {"code": "AuthorizationFailed", "message": "no access"}}

        with requests_mock.Mocker() as m:
            m.get(ACCOUNT_URL, status_code=403, json=error)
            with pytest.raises(NetworkError, match="AuthorizationFailed: no access"):
                client.get_account("aa-prod-01", "rg-automation")

    def test_get_module(self, client, account):
        body = {
            "name": "Az.Accounts",
            "properties": {"version": "2.12.1", "provisioningState": "Succeeded"},
        }

        with requests_mock.Mocker() as m:
            m.get(MODULE_URL, json=body)
            module = client.get_module("Az.Accounts", account)

        assert module.name == "Az.Accounts"
        assert module.version == "2.12.1"
        assert module.provisioning_state is ProvisioningState.SUCCEEDED

    def test_module_without_version(self, client, account):
        """Test that an empty version is reported as None."""
        body = {"name": "Az.Accounts", "properties": {"version": "", "provisioningState": "Creating"}}

        with requests_mock.Mocker() as m:
            m.get(MODULE_URL, json=body)
            module = client.get_module("Az.Accounts", account)

        assert module.version is None
        assert module.provisioning_state is ProvisioningState.PENDING

    def test_missing_module_returns_none(self, client, account):
        with requests_mock.Mocker() as m:
            m.get(MODULE_URL, status_code=404)
            assert client.get_module("Az.Accounts", account) is None


class TestWrites:
    """Tests for submit_import() and remove_module()."""

    def test_submit_import(self, client, account):
        uri = "https://www.powershellgallery.com/api/v2/package/Az.Accounts/2.12.1/"

        with requests_mock.Mocker() as m:
            m.put(MODULE_URL, status_code=201, json={})
            job = client.submit_import("Az.Accounts", uri, account)

        assert job == ImportJob(module_name="Az.Accounts", account=account, content_uri=uri)
        assert m.last_request.json() == {
            "properties": {"contentLink": {"uri": uri}},
            "location": "westeurope",
        }

    def test_rejected_import(self, client, account):
        error = {"error": {"code": "BadRequest", "message": "module limit reached"}}

        with requests_mock.Mocker() as m:
            m.put(MODULE_URL, status_code=400, json=error)
            with pytest.raises(ImportSubmissionError, match="module limit reached"):
                client.submit_import("Az.Accounts", "https://x/", account)

    def test_remove_module(self, client, account):
        with requests_mock.Mocker() as m:
            m.delete(MODULE_URL, status_code=200)
            client.remove_module("Az.Accounts", account)

        assert m.last_request.method == "DELETE"

    def test_rejected_removal(self, client, account):
        with requests_mock.Mocker() as m:
            m.delete(MODULE_URL, status_code=409, reason="Conflict")
            with pytest.raises(ImportSubmissionError, match="409"):
                client.remove_module("Az.Accounts", account)


class TestJobStatus:
    """Tests for get_job_status()."""

    def test_reads_provisioning_state(self, client, account):
        job = ImportJob(module_name="Az.Accounts", account=account, content_uri="https://x/")

        with requests_mock.Mocker() as m:
            m.get(MODULE_URL, json={"properties": {"provisioningState": "Failed"}})
            assert client.get_job_status(job) is ProvisioningState.FAILED

    def test_vanished_module_raises(self, client, account):
        job = ImportJob(module_name="Az.Accounts", account=account, content_uri="https://x/")

        with requests_mock.Mocker() as m:
            m.get(MODULE_URL, status_code=404)
            with pytest.raises(NetworkError, match="vanished"):
                client.get_job_status(job)

    def test_cancelled_import_ends_wait(self, client, account):
        """Test that polling stops on a cancelled import and reports it as Failed."""
        job = ImportJob(module_name="Az.Accounts", account=account, content_uri="https://x/")
        sleeps: list[float] = []

        with requests_mock.Mocker() as m:
            m.get(
                MODULE_URL,
                [
                    {"json": {"properties": {"provisioningState": "Creating"}}},
                    {"json": {"properties": {"provisioningState": "Cancelled"}}},
                ],
            )
            state = await_completion(
                job, client, timeout=3600, sleep=sleeps.append, clock=lambda: 0.0
            )

        assert state is ProvisioningState.FAILED
        assert m.call_count == 2
        assert sleeps == [5.0]
