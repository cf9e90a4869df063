"""DTOs returned by credential listing."""

from __future__ import annotations

from dataclasses import dataclass

from credstore.domain.access_token import AccessToken


@dataclass(frozen=True, slots=True)
class TokenPage:
    """One page of access tokens plus the cursor for the next call."""

    items: tuple[AccessToken, ...]
    next_after: str
    last_page: bool


__all__ = ["TokenPage"]
