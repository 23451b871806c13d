"""OAuth2 access token model."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AccessToken(BaseModel):
    """Bearer token issued by a client-credentials exchange.

    Parameters
    ----------
    access_token : str
        Opaque bearer value.
    token_type : str
        Usually ``"Bearer"``.
    expires_in : int
        Lifetime in seconds as reported by the token endpoint.
    expires_at : datetime
        Absolute (UTC) expiry computed when the token was received.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(min_length=1)
    token_type: str = "Bearer"
    expires_in: int = 0
    expires_at: datetime

    @classmethod
    def from_response(cls, payload: dict[str, Any], *, now: datetime) -> AccessToken:
        """Build a token from a token endpoint response received at *now*."""
        expires_in = int(payload.get("expires_in") or 0)
        return cls(
            access_token=str(payload.get("access_token") or ""),
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_in=expires_in,
            expires_at=now + timedelta(seconds=expires_in),
        )

    def is_valid(self, now: datetime) -> bool:
        """Whether the token has not yet actually expired."""
        return now < self.expires_at

    def needs_refresh(self, now: datetime, margin: timedelta) -> bool:
        """Whether *now* is within *margin* of (or past) the expiry."""
        return now >= self.expires_at - margin

    @property
    def authorization(self) -> str:
        return f"Bearer {self.access_token}"
