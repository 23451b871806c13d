"""Custom exception hierarchy for driversync."""

from __future__ import annotations


class DriverSyncError(Exception):
    """Base exception for all driversync errors."""


class ConfigurationError(DriverSyncError):
    """Invalid or missing configuration (credentials, URLs, certificates)."""


class AuthenticationError(DriverSyncError):
    """Client-credentials token exchange failed.

    Every call that depends on the affected token fails with this error
    until a later exchange succeeds.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class TransportError(DriverSyncError):
    """Network-level failure (connection refused, TLS, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class ProtocolError(TransportError):
    """Upstream answered with a non-success status or a malformed body."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
        body: str = "",
    ) -> None:
        self.body = body
        super().__init__(message, status_code=status_code, endpoint=endpoint)


class BusinessRejectionError(DriverSyncError):
    """Fleet system refused an update because of a business rule.

    Currently raised only for drivers with multiple vehicles allocated.
    This is an expected condition: the engine counts it as *skipped*
    rather than as an error.
    """

    def __init__(
        self,
        message: str,
        *,
        driver_id: str = "",
        endpoint: str = "",
    ) -> None:
        self.driver_id = driver_id
        self.endpoint = endpoint
        super().__init__(message)
