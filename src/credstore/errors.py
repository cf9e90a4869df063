"""Errors raised by the credential store."""

from __future__ import annotations


class CredentialStoreError(Exception):
    """Base class for credential store failures."""

    default_message = "credential store error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_message
        super().__init__(self.detail)


class InvalidIDError(CredentialStoreError):
    """Raised when an identifier is empty or contains characters outside ``[A-Za-z0-9_-]``."""

    default_message = "invalid id"


class DuplicateIDError(CredentialStoreError):
    """Raised when ``create`` is called for an identifier that already has a record."""

    default_message = "duplicate access token ID"


class InvalidTypeError(CredentialStoreError):
    """Reserved for token type validation; the store accepts any type today."""

    default_message = "type must be client or network"


class NoMatchIDError(CredentialStoreError):
    """Raised when ``check`` is called for an identifier without a record."""

    default_message = "nonexisting access token ID"


class InvalidAfterError(CredentialStoreError):
    """Raised when a pagination cursor cannot be parsed or is out of range."""

    default_message = "invalid after"


class EmptyStoreError(CredentialStoreError):
    """Raised when listing a store that holds no access tokens."""

    default_message = "no access token"


class RandomSourceError(CredentialStoreError):
    """Raised when the secure random source fails or returns too few bytes."""

    default_message = "secure random source failed"


class MalformedSecretError(CredentialStoreError):
    """Raised when the secret half of an issued token is not hex encoded."""

    default_message = "access token secret must be hex encoded"


class InvalidLimitError(CredentialStoreError, ValueError):
    """Raised when a page limit is negative, or zero for stable pages."""

    default_message = "limit must not be negative"


__all__ = [
    "CredentialStoreError",
    "InvalidIDError",
    "DuplicateIDError",
    "InvalidTypeError",
    "NoMatchIDError",
    "InvalidAfterError",
    "EmptyStoreError",
    "RandomSourceError",
    "MalformedSecretError",
    "InvalidLimitError",
]
