"""Credential models for authenticated providers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BearerToken:
    """OAuth2 access token with an absolute expiry in epoch milliseconds."""

    value: str
    expires_at_ms: float

    def is_valid(self, now_ms: float) -> bool:
        return now_ms < self.expires_at_ms


__all__ = ["BearerToken"]
