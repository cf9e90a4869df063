"""Hashed API access token store."""

from credstore.application.credential_store import CredentialStore

__all__ = ["CredentialStore"]
