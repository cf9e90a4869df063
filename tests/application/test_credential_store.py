from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from credstore.application.credential_store import CredentialStore
from credstore.domain.access_token import AccessToken, split_issued_token, storage_key
from credstore.errors import (
    DuplicateIDError,
    EmptyStoreError,
    InvalidAfterError,
    InvalidIDError,
    InvalidLimitError,
    NoMatchIDError,
    RandomSourceError,
)
from credstore.infrastructure.state.memory_kv import InMemoryKeyValueStore


class FixedRandom:
    def __init__(self, *secrets: bytes) -> None:
        self._secrets = list(secrets)

    def __call__(self, size: int) -> bytes:
        return self._secrets.pop(0)


class BlindGetStore(InMemoryKeyValueStore):
    """Store whose reads miss every record while ``blind`` is set, as in a lost create race."""

    blind = True

    def get(self, key: bytes) -> bytes | None:
        if self.blind:
            return None
        return super().get(key)


def _populate(store: CredentialStore, *ids: str) -> None:
    for token_id in ids:
        store.create(token_id, "client")


def test_create_then_check_accepts_issued_secret(store: CredentialStore) -> None:
    issued = store.create("alice", "client")

    token_id, secret = split_issued_token(issued)

    assert token_id == "alice"
    assert len(secret) == 32
    assert store.check("alice", secret) is True


def test_check_rejects_wrong_secret_without_error(store: CredentialStore) -> None:
    _, secret = split_issued_token(store.create("alice", "client"))
    wrong = bytes(b ^ 0xFF for b in secret)

    assert store.check("alice", wrong) is False


def test_create_persists_digest_not_secret(store: CredentialStore, kv: InMemoryKeyValueStore) -> None:
    issued = store.create("alice", "network")
    _, secret = split_issued_token(issued)

    raw = kv.get(storage_key("alice"))
    assert raw is not None
    record = AccessToken.decode(raw)

    assert record.id == "alice"
    assert record.type == "network"
    assert record.created_at == datetime(2025, 10, 17, 12, tzinfo=UTC)
    assert record.token.startswith("alice:")
    assert record.token != issued
    assert record.token.split(":", 1)[1] != secret.hex()
    assert secret.hex() not in raw.decode("utf-8")


def test_create_omits_empty_type_from_stored_record(store: CredentialStore, kv: InMemoryKeyValueStore) -> None:
    store.create("untyped")

    payload = json.loads(kv.get(storage_key("untyped")) or b"{}")

    assert "type" not in payload
    assert set(payload) == {"id", "token", "created_at"}


def test_duplicate_create_keeps_original_record(store: CredentialStore) -> None:
    _, secret = split_issued_token(store.create("alice", "client"))

    with pytest.raises(DuplicateIDError) as excinfo:
        store.create("alice", "network")

    assert "alice" in excinfo.value.detail
    assert store.check("alice", secret) is True


@pytest.mark.parametrize("token_id", ["bad id!", "", "a:b", "name\n", "café"])
def test_create_rejects_invalid_ids(store: CredentialStore, kv: InMemoryKeyValueStore, token_id: str) -> None:
    with pytest.raises(InvalidIDError):
        store.create(token_id, "client")

    assert len(kv) == 0


def test_check_and_delete_validate_ids(store: CredentialStore) -> None:
    with pytest.raises(InvalidIDError):
        store.check("bad id!", b"\x00" * 32)
    with pytest.raises(InvalidIDError):
        store.delete("")


def test_check_unknown_id_raises_no_match(store: CredentialStore) -> None:
    with pytest.raises(NoMatchIDError):
        store.check("ghost", b"\x00" * 32)


def test_check_frames_secret_to_fixed_width(kv: InMemoryKeyValueStore) -> None:
    secret = b"\x01" * 16 + b"\x00" * 16
    store = CredentialStore(kv, random_source=FixedRandom(secret))
    store.create("padded")

    assert store.check("padded", b"\x01" * 16) is True
    assert store.check("padded", secret + b"trailing") is True
    assert store.check("padded", b"\x01" * 15) is False


def test_short_random_source_fails_and_persists_nothing(kv: InMemoryKeyValueStore) -> None:
    store = CredentialStore(kv, random_source=lambda size: b"\x00" * (size - 1))

    with pytest.raises(RandomSourceError):
        store.create("alice")

    assert kv.get(storage_key("alice")) is None


def test_random_source_os_error_is_wrapped(kv: InMemoryKeyValueStore) -> None:
    def failing(size: int) -> bytes:
        raise OSError("entropy pool unavailable")

    store = CredentialStore(kv, random_source=failing)

    with pytest.raises(RandomSourceError) as excinfo:
        store.create("alice")

    assert isinstance(excinfo.value.__cause__, OSError)


def test_delete_unknown_id_is_noop_and_id_stays_usable(store: CredentialStore) -> None:
    store.delete("never-created")

    issued = store.create("never-created", "client")
    assert store.check(*split_issued_token(issued)) is True


def test_delete_frees_id_for_reuse(store: CredentialStore) -> None:
    _, old_secret = split_issued_token(store.create("rotating"))
    store.delete("rotating")

    with pytest.raises(NoMatchIDError):
        store.check("rotating", old_secret)

    _, new_secret = split_issued_token(store.create("rotating"))
    assert store.check("rotating", new_secret) is True
    assert store.check("rotating", old_secret) is False


def test_racing_create_keeps_last_write() -> None:
    kv = BlindGetStore()
    store = CredentialStore(kv)

    _, first = split_issued_token(store.create("raced"))
    _, second = split_issued_token(store.create("raced"))
    kv.blind = False

    assert store.check("raced", first) is False
    assert store.check("raced", second) is True


def test_stored_value_that_fails_to_decode_propagates(store: CredentialStore, kv: InMemoryKeyValueStore) -> None:
    kv.set(storage_key("corrupt"), b'{"id": "corrupt"}')

    with pytest.raises(ValidationError):
        store.check("corrupt", b"\x00" * 32)


def test_create_logs_without_secret(store: CredentialStore, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="credstore.credential_store")

    issued = store.create("alice", "client")

    messages = [record.getMessage() for record in caplog.records]
    assert "access token created" in messages
    created = next(r for r in caplog.records if r.getMessage() == "access token created")
    assert created.__dict__["data"] == {"id": "alice", "type": "client"}
    assert all(issued.split(":", 1)[1] not in repr(r.__dict__) for r in caplog.records)


# ----------------------------------------------------------------------
# listing


def test_list_returns_everything_when_limit_covers_store(store: CredentialStore) -> None:
    _populate(store, "c", "a", "b")

    page = store.list("", 3, 100)

    assert [item.id for item in page.items] == ["a", "b", "c"]
    assert page.last_page is True
    assert page.next_after == "3"


def test_list_pages_through_store(store: CredentialStore) -> None:
    ids = ["a", "b", "c", "d", "e"]
    _populate(store, *ids)
    total = len(ids)

    first = store.list("", total - 1, total)
    assert [item.id for item in first.items] == ids[:-1]
    assert first.last_page is False
    assert first.next_after == str(total - 1)

    second = store.list(first.next_after, total, total)
    assert [item.id for item in second.items] == ids[-1:]
    assert second.last_page is True
    assert second.next_after == str(total)


def test_list_marks_last_page_when_store_smaller_than_default(store: CredentialStore) -> None:
    _populate(store, "a", "b", "c")

    page = store.list("", 1, 100)

    assert len(page.items) == 1
    assert page.last_page is True
    assert page.next_after == "1"


def test_list_offset_past_end_is_invalid(store: CredentialStore) -> None:
    _populate(store, "a", "b", "c")

    with pytest.raises(InvalidAfterError):
        store.list("3", 10, 10)


@pytest.mark.parametrize("after", ["abc", "-1", "1.5", " 1", "+1", "9" * 5000])
def test_list_rejects_unparsable_after(store: CredentialStore, after: str) -> None:
    _populate(store, "a", "b")

    with pytest.raises(InvalidAfterError):
        store.list(after, 10, 10)


def test_list_empty_store_raises(store: CredentialStore) -> None:
    with pytest.raises(EmptyStoreError):
        store.list("", 10, 10)


def test_list_rejects_negative_limit(store: CredentialStore) -> None:
    _populate(store, "a")

    with pytest.raises(InvalidLimitError):
        store.list("", -1, 10)
    with pytest.raises(InvalidLimitError, match="must not be negative"):
        store.list("", -5, 10)
    assert InvalidLimitError().detail == "limit must not be negative"


def test_list_accepts_zero_limit(store: CredentialStore) -> None:
    _populate(store, "a", "b")

    page = store.list("", 0, 10)

    assert page.items == ()
    assert page.next_after == "0"
    assert page.last_page is True


def test_positional_cursor_skips_records_after_concurrent_delete(store: CredentialStore) -> None:
    _populate(store, "a", "b", "c", "d")

    first = store.list("", 2, 10)
    store.delete("a")
    second = store.list(first.next_after, 2, 10)

    assert [item.id for item in first.items] == ["a", "b"]
    # "c" moved to position 1 and is never returned.
    assert [item.id for item in second.items] == ["d"]


def test_positional_cursor_repeats_records_after_concurrent_insert(store: CredentialStore) -> None:
    _populate(store, "b", "c", "d")

    first = store.list("", 2, 10)
    store.create("a")
    second = store.list(first.next_after, 2, 10)

    assert [item.id for item in first.items] == ["b", "c"]
    assert [item.id for item in second.items] == ["c", "d"]


def test_list_stable_does_not_skip_after_delete(store: CredentialStore) -> None:
    _populate(store, "a", "b", "c", "d")

    first = store.list_stable("", 2)
    store.delete("a")
    second = store.list_stable(first.next_after, 2)

    assert [item.id for item in first.items] == ["a", "b"]
    assert first.next_after == "b"
    assert first.last_page is False
    assert [item.id for item in second.items] == ["c", "d"]
    assert second.last_page is True


def test_list_stable_orders_prefix_ids_first(store: CredentialStore) -> None:
    _populate(store, "ab", "a-", "a", "b")

    page = store.list_stable("a", 10)

    assert [item.id for item in page.items] == ["a-", "ab", "b"]
    assert page.last_page is True


def test_list_stable_on_empty_store_returns_empty_last_page(store: CredentialStore) -> None:
    page = store.list_stable("", 10)

    assert page.items == ()
    assert page.next_after == ""
    assert page.last_page is True


def test_list_stable_validates_cursor(store: CredentialStore) -> None:
    with pytest.raises(InvalidIDError):
        store.list_stable("not valid", 10)


@pytest.mark.parametrize("limit", [0, -1])
def test_list_stable_requires_positive_limit(store: CredentialStore, limit: int) -> None:
    _populate(store, "a", "b")

    with pytest.raises(InvalidLimitError):
        store.list_stable("", limit)
