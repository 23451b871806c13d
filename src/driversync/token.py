"""Client-credentials token cache shared by both upstream adapters."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from driversync._transport import Transport
from driversync.config import DEFAULT_TOKEN_SAFETY_MARGIN
from driversync.exceptions import AuthenticationError, TransportError
from driversync.models.token import AccessToken

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenCache:
    """Hold one bearer token for one upstream and refresh it on demand.

    The token is refreshed when absent, or when the current time is within
    *safety_margin* seconds of its expiry.  Concurrent callers that observe
    a stale token share a single refresh.

    Parameters
    ----------
    transport : Transport
        Transport used for the token request (mutual TLS for ADP).
    token_url : str
        Full URL of the token endpoint.
    client_id, client_secret : str
        Client credentials.
    safety_margin : float
        Seconds before expiry at which the token is proactively replaced.
    clock : callable
        Returns the current aware UTC datetime; injectable for tests.
    """

    def __init__(
        self,
        transport: Transport,
        token_url: str,
        client_id: str,
        client_secret: str,
        *,
        safety_margin: float = DEFAULT_TOKEN_SAFETY_MARGIN,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._transport = transport
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._margin = timedelta(seconds=safety_margin)
        self._clock = clock
        self._token: AccessToken | None = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> AccessToken | None:
        return self._token

    def _is_fresh(self, token: AccessToken | None) -> bool:
        return token is not None and not token.needs_refresh(self._clock(), self._margin)

    async def get_valid_token(self) -> AccessToken:
        """Return a token that is not within the safety margin of expiry."""
        token = self._token
        if self._is_fresh(token):
            assert token is not None  # noqa: S101
            return token

        async with self._lock:
            # Another caller may have refreshed while we waited on the lock.
            token = self._token
            if self._is_fresh(token):
                assert token is not None  # noqa: S101
                return token
            return await self._refresh()

    def invalidate(self) -> None:
        """Drop the cached token (next call will exchange credentials again)."""
        self._token = None

    async def _refresh(self) -> AccessToken:
        form = {
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }
        try:
            payload = await self._transport.request_json(
                "POST",
                self._token_url,
                headers={"content-type": "application/x-www-form-urlencoded"},
                form=form,
            )
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            token = AccessToken.from_response(payload, now=self._clock())
        except (TransportError, ValidationError, ValueError) as exc:
            self._drop_if_expired()
            raise AuthenticationError(
                f"token request to {self._token_url} failed: {exc}",
                endpoint=self._token_url,
            ) from exc

        self._token = token
        _logger.debug("Obtained token from %s (expires in %ds)", self._token_url, token.expires_in)
        return token

    def _drop_if_expired(self) -> None:
        previous = self._token
        if previous is not None and not previous.is_valid(self._clock()):
            self._token = None
