"""Default secret source and digest for access tokens."""

from __future__ import annotations

import hashlib
import secrets
from collections.abc import Callable

RandomSource = Callable[[int], bytes]
HashFunction = Callable[[bytes], bytes]


def secure_random(size: int) -> bytes:
    return secrets.token_bytes(size)


def sha3_digest(data: bytes) -> bytes:
    """Return the 32-byte SHA3-256 digest of ``data``."""
    return hashlib.sha3_256(data).digest()


__all__ = ["HashFunction", "RandomSource", "secure_random", "sha3_digest"]
