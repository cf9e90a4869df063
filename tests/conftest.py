from __future__ import annotations

from datetime import UTC, datetime

import pytest

from credstore.application.credential_store import CredentialStore
from credstore.infrastructure.state.memory_kv import InMemoryKeyValueStore

FIXED_NOW = datetime(2025, 10, 17, 12, tzinfo=UTC)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv: InMemoryKeyValueStore) -> CredentialStore:
    return CredentialStore(kv, clock=lambda: FIXED_NOW)
