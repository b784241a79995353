import getpass
import os
import sys
import time
from typing import Optional

from dotenv import load_dotenv
import requests

from automodsync.exceptions import ConfigError, NetworkError
from automodsync.logging import get_global_logger

ARM_SCOPE = "https://management.azure.com/.default"


class CredentialManager:
    """
    Loads AZURE_* environment variables (optionally from .env) and manages
    a cached Azure Resource Manager access token that is refreshed
    automatically when it is about to expire.

    If AZURE_ACCESS_TOKEN is set it is used verbatim and never refreshed,
    which is how pipelines that already ran `az account get-access-token`
    hand a token over.
    """

    def __init__(self, env_prefix: str = "AZURE_", refresh_margin: int = 60) -> None:
        """
        :param env_prefix: Prefix used for environment variables.
        :param refresh_margin: Seconds before real expiry when we proactively refresh.
        """
        load_dotenv()
        self.env_prefix = env_prefix
        self.refresh_margin = refresh_margin
        self._token: Optional[str] = None
        self._token_expires_at: Optional[int] = None  # UNIX epoch

    # --------------------------------------------------------------------- #
    # Helper: read env vars
    # --------------------------------------------------------------------- #
    def _env_optional(self, key: str) -> Optional[str]:
        return os.getenv(f"{self.env_prefix}{key}") or None

    def _env(self, key: str) -> str:
        value = self._env_optional(key)
        if value is None:
            raise ConfigError(
                f"Missing required environment variable: {self.env_prefix}{key}"
            )
        return value

    # --------------------------------------------------------------------- #
    # Public getters for IDs / secret
    # --------------------------------------------------------------------- #
    def get_subscription_id(self) -> Optional[str]:
        return self._env_optional("SUBSCRIPTION_ID")

    def get_client_id(self) -> str:
        return self._env("CLIENT_ID")

    def get_tenant_id(self) -> str:
        return self._env("TENANT_ID")

    def get_client_secret(self) -> str:
        try:
            return self._env("CLIENT_SECRET")
        except ConfigError:
            if not sys.stdin.isatty():
                raise
            return getpass.getpass("Enter your client secret: ")

    # --------------------------------------------------------------------- #
    # Token handling
    # --------------------------------------------------------------------- #
    def _token_expired(self) -> bool:
        if self._token is None or self._token_expires_at is None:
            return True
        return time.time() >= (self._token_expires_at - self.refresh_margin)

    def _fetch_token(self) -> None:
        """
        Performs the client-credentials flow and stores
        self._token and self._token_expires_at.
        """
        tenant = self.get_tenant_id()
        url = f"https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"

        data = {
            "client_id": self.get_client_id(),
            "client_secret": self.get_client_secret(),
            "grant_type": "client_credentials",
            "scope": ARM_SCOPE,
        }

        get_global_logger().verbose("AUTH", f"Requesting ARM token for tenant {tenant}")
        try:
            response = requests.post(url, data=data, timeout=30)
            response.raise_for_status()
        except requests.exceptions.RequestException as err:
            raise NetworkError(f"Failed to acquire Azure access token: {err}") from err

        token_data = response.json()
        self._token = token_data["access_token"]
        # expires_in is seconds until expiry
        expires_in = int(token_data.get("expires_in", 0))
        self._token_expires_at = int(time.time()) + expires_in

    def get_token(self) -> str:
        """
        Returns a valid access token, refreshing it when necessary.
        """
        static = self._env_optional("ACCESS_TOKEN")
        if static:
            return static
        if self._token_expired():
            self._fetch_token()
        # At this point self._token is guaranteed to be str and valid
        return self._token  # type: ignore[return-value]
