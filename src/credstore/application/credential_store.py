"""Access token lifecycle: issue, verify, enumerate and revoke."""

from __future__ import annotations

import hmac
import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime

from credstore.application.dto.page import TokenPage
from credstore.application.ports.kv_store import KeyValueStorePort
from credstore.domain.access_token import (
    TOKEN_SIZE,
    AccessToken,
    format_credential,
    require_valid_id,
    storage_key,
)
from credstore.errors import (
    DuplicateIDError,
    EmptyStoreError,
    InvalidAfterError,
    InvalidLimitError,
    NoMatchIDError,
    RandomSourceError,
)
from credstore.infrastructure.crypto import HashFunction, RandomSource, secure_random, sha3_digest

DEFAULT_PAGE_SIZE = 100

_OFFSET = re.compile(r"[0-9]+")

logger = logging.getLogger("credstore.credential_store")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CredentialStore:
    """Stores hashed access tokens in an injected ordered key-value store.

    Operations hold no locks of their own. ``create`` checks for an existing
    record and then writes it, so two concurrent creates for the same id can
    both succeed with the later write kept.
    """

    def __init__(
        self,
        kv: KeyValueStorePort,
        *,
        random_source: RandomSource | None = None,
        hash_fn: HashFunction | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._kv = kv
        self._random = random_source or secure_random
        self._hash = hash_fn or sha3_digest
        self._clock = clock or _utcnow

    # ------------------------------------------------------------------
    # public API

    def create(self, token_id: str, token_type: str = "") -> str:
        """Issue a token for ``token_id`` and return ``"<id>:<hex secret>"``.

        The returned string is the only copy of the secret.
        """
        require_valid_id(token_id)
        key = storage_key(token_id)
        if self._kv.get(key) is not None:
            raise DuplicateIDError(f"id {token_id!r} already in use")

        secret = self._draw_secret()
        record = AccessToken(
            id=token_id,
            token=format_credential(token_id, self._hash(secret)),
            type=token_type,
            created_at=self._clock(),
        )
        self._kv.set(key, record.encode())
        logger.info(
            "access token created",
            extra={"data": {"id": token_id, "type": token_type}},
        )
        return format_credential(token_id, secret)

    def check(self, token_id: str, secret: bytes) -> bool:
        """Return whether ``secret`` matches the token stored for ``token_id``.

        ``secret`` is zero-padded or truncated to 32 bytes before hashing.
        A mismatch returns ``False``; only a missing record raises.
        """
        require_valid_id(token_id)
        framed = bytes(secret[:TOKEN_SIZE]).ljust(TOKEN_SIZE, b"\x00")
        presented = format_credential(token_id, self._hash(framed))

        value = self._kv.get(storage_key(token_id))
        if value is None:
            raise NoMatchIDError(f"check id {token_id!r} nonexisting")
        record = AccessToken.decode(value)
        return hmac.compare_digest(record.token.encode("utf-8"), presented.encode("utf-8"))

    def list(self, after: str, limit: int, default_limit: int = DEFAULT_PAGE_SIZE) -> TokenPage:
        """Return records ``[after, after + limit)`` of the store's iteration order.

        ``after`` is a positional offset. Records created or deleted between
        calls shift positions, so a paginated scan may skip or repeat entries;
        use :meth:`list_stable` when that matters.
        """
        _require_limit(limit)
        offset = 0
        if after != "":
            if _OFFSET.fullmatch(after) is None:
                raise InvalidAfterError(f"value: {after!r}")
            try:
                offset = int(after)
            except ValueError as exc:
                raise InvalidAfterError(f"value: {after!r}") from exc

        records = [value for _, value in self._kv.iterate()]
        total = len(records)
        if total == 0:
            raise EmptyStoreError()
        if offset >= total:
            raise InvalidAfterError(f"value: {after!r}")

        end = min(total, offset + limit)
        items = tuple(AccessToken.decode(value) for value in records[offset:end])
        last_page = end == total or total < default_limit
        return TokenPage(items=items, next_after=str(end), last_page=last_page)

    def list_stable(self, after_id: str, limit: int) -> TokenPage:
        """Return up to ``limit`` records whose id sorts after ``after_id``.

        The cursor is the last returned id, so inserts and deletes between
        calls never cause a record to be skipped or repeated. An empty
        ``after_id`` starts from the beginning.
        """
        if limit < 1:
            raise InvalidLimitError(f"stable pages need a positive limit, got {limit}")
        after_key = b""
        if after_id != "":
            require_valid_id(after_id)
            after_key = storage_key(after_id)

        remaining = [value for key, value in self._kv.iterate() if key > after_key]
        items = tuple(AccessToken.decode(value) for value in remaining[:limit])
        next_after = items[-1].id if items else after_id
        return TokenPage(items=items, next_after=next_after, last_page=len(remaining) <= limit)

    def delete(self, token_id: str) -> None:
        """Remove the token for ``token_id``; deleting an unknown id is a no-op."""
        require_valid_id(token_id)
        self._kv.delete(storage_key(token_id))
        logger.info("access token deleted", extra={"data": {"id": token_id}})

    # ------------------------------------------------------------------
    # helpers

    def _draw_secret(self) -> bytes:
        try:
            secret = self._random(TOKEN_SIZE)
        except OSError as exc:
            raise RandomSourceError(f"random source failed: {exc}") from exc
        if len(secret) < TOKEN_SIZE:
            raise RandomSourceError(f"random source returned {len(secret)} of {TOKEN_SIZE} bytes")
        return bytes(secret[:TOKEN_SIZE])


def _require_limit(limit: int) -> None:
    if limit < 0:
        raise InvalidLimitError(f"limit must not be negative, got {limit}")


__all__ = ["DEFAULT_PAGE_SIZE", "CredentialStore"]
