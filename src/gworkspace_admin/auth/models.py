"""Pydantic models for persisted OAuth tokens."""

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field


class TokenStatus(str, Enum):
    """State of a stored token."""

    VALID = "valid"
    EXPIRED = "expired"
    MISSING = "missing"
    INVALID = "invalid"


class OAuthToken(BaseModel):
    """Access and refresh token pair as returned by Google."""

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "Bearer"

    def is_expired(self, buffer_seconds: int = 60) -> bool:
        """Check whether the token expires within ``buffer_seconds``.

        Args:
            buffer_seconds: Safety margin so a token is not used right before it expires.

        Returns:
            True if the token should be refreshed.
        """
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) + timedelta(seconds=buffer_seconds) >= expires_at


class TokenMetadata(BaseModel):
    """Bookkeeping stored next to a token."""

    service_name: str
    provider: str = "google"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_refreshed: datetime | None = None


class StoredToken(BaseModel):
    """On-disk token envelope."""

    version: int = 1
    metadata: TokenMetadata
    token: OAuthToken
