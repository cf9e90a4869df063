"""Access token record and identifier helpers."""

from __future__ import annotations

import binascii
import json
import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from credstore.errors import InvalidIDError, MalformedSecretError

TOKEN_SIZE = 32

# Alphanumeric, underscore or dash; at least one character.
_VALID_ID = re.compile(r"[A-Za-z0-9_-]+")


class AccessToken(BaseModel):
    """Persisted access token metadata.

    ``token`` holds ``"<id>:<hex digest>"``; the plaintext secret is never part
    of the record.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    token: str = ""
    type: str = ""
    created_at: datetime

    def encode(self) -> bytes:
        """Return the stored byte representation (empty token/type omitted)."""
        return self.model_dump_json(exclude_defaults=True).encode("utf-8")

    @classmethod
    def decode(cls, raw: bytes) -> AccessToken:
        return cls.model_validate_json(raw)


def is_valid_id(value: object) -> bool:
    return isinstance(value, str) and _VALID_ID.fullmatch(value) is not None


def require_valid_id(value: str) -> None:
    if not is_valid_id(value):
        raise InvalidIDError(f"invalid id {value!r}")


def storage_key(token_id: str) -> bytes:
    """Return the key an identifier is stored under (its JSON string encoding)."""
    return json.dumps(token_id).encode("utf-8")


def format_credential(token_id: str, material: bytes) -> str:
    """Render ``"<id>:<hex>"`` for either a digest or an issued secret."""
    return f"{token_id}:{material.hex()}"


def split_issued_token(value: str) -> tuple[str, bytes]:
    """Split an issuance string into its identifier and raw secret bytes.

    The separator is the last ``:``; identifiers never contain one.
    """
    token_id, sep, secret_hex = value.rpartition(":")
    if not sep:
        raise InvalidIDError("access token has no id separator")
    require_valid_id(token_id)
    try:
        secret = binascii.unhexlify(secret_hex)
    except (binascii.Error, ValueError) as exc:
        raise MalformedSecretError(f"secret for id {token_id!r} is not hex encoded") from exc
    return token_id, secret


__all__ = [
    "TOKEN_SIZE",
    "AccessToken",
    "format_credential",
    "is_valid_id",
    "require_valid_id",
    "split_issued_token",
    "storage_key",
]
