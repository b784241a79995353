"""Azure authentication for automodsync."""

from .credential_manager import CredentialManager

__all__ = ["CredentialManager"]
