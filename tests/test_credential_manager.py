"""
Tests for automodsync.auth module.

Tests Azure token acquisition including:
- Static access tokens
- Client-credentials flow and caching
- Missing configuration
"""

from __future__ import annotations

import pytest
import requests_mock

from automodsync.auth import CredentialManager
from automodsync.exceptions import ConfigError, NetworkError

TOKEN_URL = "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove AZURE_* variables and disable .env loading."""
    monkeypatch.setattr("automodsync.auth.credential_manager.load_dotenv", lambda: None)
    for key in (
        "ACCESS_TOKEN",
        "SUBSCRIPTION_ID",
        "TENANT_ID",
        "CLIENT_ID",
        "CLIENT_SECRET",
    ):
        monkeypatch.delenv(f"AZURE_{key}", raising=False)
    return monkeypatch


@pytest.fixture
def service_principal(clean_env):
    clean_env.setenv("AZURE_TENANT_ID", "tenant-1")
    clean_env.setenv("AZURE_CLIENT_ID", "client-1")
    clean_env.setenv("AZURE_CLIENT_SECRET", "secret-1")
    return clean_env


def test_static_access_token(clean_env):
    """Test that AZURE_ACCESS_TOKEN is used verbatim."""
    clean_env.setenv("AZURE_ACCESS_TOKEN", "static-token")

    assert CredentialManager().get_token() == "static-token"


def test_subscription_id_is_optional(clean_env):
    assert CredentialManager().get_subscription_id() is None

    clean_env.setenv("AZURE_SUBSCRIPTION_ID", "sub-1")
    assert CredentialManager().get_subscription_id() == "sub-1"


def test_client_credentials_flow(service_principal):
    with requests_mock.Mocker() as m:
        m.post(TOKEN_URL, json={"access_token": "arm-token", "expires_in": 3600})
        manager = CredentialManager()

        assert manager.get_token() == "arm-token"
        assert manager.get_token() == "arm-token"

    assert m.call_count == 1
    body = m.last_request.text
    assert "grant_type=client_credentials" in body
    assert "management.azure.com" in body


def test_expired_token_is_refreshed(service_principal):
    with requests_mock.Mocker() as m:
        m.post(
            TOKEN_URL,
            [
                {"json": {"access_token": "first", "expires_in": 0}},
                {"json": {"access_token": "second", "expires_in": 3600}},
            ],
        )
        manager = CredentialManager()

        assert manager.get_token() == "first"
        assert manager.get_token() == "second"


def test_token_request_failure(service_principal):
    with requests_mock.Mocker() as m:
        m.post(TOKEN_URL, status_code=401)
        with pytest.raises(NetworkError, match="access token"):
            CredentialManager().get_token()


def test_missing_tenant(clean_env):
    with pytest.raises(ConfigError, match="AZURE_TENANT_ID"):
        CredentialManager().get_token()
