"""High-level async entry point wiring config, transports, adapters and engine."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from driversync._transport import HttpTransport, build_client_ssl_context
from driversync.config import SyncConfig
from driversync.engine import SyncEngine
from driversync.exceptions import DriverSyncError
from driversync.fleet import FleetClient
from driversync.hr import HrClient
from driversync.models.report import RunReport
from driversync.token import TokenCache

_logger = logging.getLogger(__name__)


class DriverSync:
    """Run the ADP → fleet address sync.

    Usage::

        async with DriverSync(config) as sync:
            report = await sync.run()

    The ADP client certificate is loaded in the constructor, so a bad
    certificate or key fails before any network call.
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._hr_ssl = build_client_ssl_context(config.hr.cert_file, config.hr.key_file)
        self._external_session = session is not None
        self._http_session = session
        self._hr: HrClient | None = None
        self._fleet: FleetClient | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DriverSync:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        config = self._config

        hr_transport = HttpTransport(self._http_session, timeout=config.request_timeout, ssl_context=self._hr_ssl)
        fleet_transport = HttpTransport(self._http_session, timeout=config.request_timeout)

        self._hr = HrClient(
            config.hr,
            hr_transport,
            tokens=TokenCache(
                hr_transport,
                config.hr.token_url,
                config.hr.client_id,
                config.hr.client_secret,
                safety_margin=config.token_safety_margin,
            ),
            page_size=config.page_size,
        )
        self._fleet = FleetClient(
            config.fleet,
            fleet_transport,
            tokens=TokenCache(
                fleet_transport,
                config.fleet.token_url,
                config.fleet.client_id,
                config.fleet.client_secret,
                safety_margin=config.token_safety_margin,
            ),
        )
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._hr = None
        self._fleet = None

    async def run(self) -> RunReport:
        """Execute one reconciliation pass and return its report."""
        if self._hr is None or self._fleet is None:
            raise DriverSyncError("DriverSync not initialized. Use 'async with DriverSync(...) as sync:'")
        engine = SyncEngine(
            self._hr,
            self._fleet,
            max_concurrency=self._config.max_concurrency,
            run_timeout=self._config.run_timeout,
        )
        return await engine.run()
