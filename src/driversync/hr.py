"""ADP Workforce Now source adapter.

Endpoints:
  - POST /auth/oauth/v2/token   (client credentials, mutual TLS)
  - GET  /hr/v2/workers         ($top/$skip pagination)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from driversync._transport import Transport
from driversync.config import DEFAULT_PAGE_SIZE, HrConfig
from driversync.eligibility import select_drivers
from driversync.exceptions import ProtocolError
from driversync.models.driver import Driver, DriverSelection
from driversync.models.worker import Worker, WorkerPage
from driversync.token import TokenCache

_logger = logging.getLogger(__name__)

WORKERS_PATH = "/hr/v2/workers"


class HrClient:
    """Read eligible drivers from ADP.

    The transport must already present the client certificate; see
    :func:`driversync._transport.build_client_ssl_context`.
    """

    def __init__(
        self,
        config: HrConfig,
        transport: Transport,
        *,
        tokens: TokenCache | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        config.validate()
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._config = config
        self._transport = transport
        self._tokens = tokens or TokenCache(
            transport,
            config.token_url,
            config.client_id,
            config.client_secret,
        )
        self._page_size = page_size
        self._workers_url = f"{config.base_url.rstrip('/')}{WORKERS_PATH}"

    async def _fetch_page(self, skip: int) -> list[Worker]:
        token = await self._tokens.get_valid_token()
        try:
            payload = await self._transport.request_json(
                "GET",
                self._workers_url,
                headers={"authorization": token.authorization},
                params={"$top": str(self._page_size), "$skip": str(skip)},
            )
        except ProtocolError as exc:
            if exc.status_code == 401:
                self._tokens.invalidate()
            raise

        try:
            return WorkerPage.model_validate(payload).workers
        except ValidationError as exc:
            raise ProtocolError(
                f"Unexpected workers payload at $skip={skip}: {exc}",
                endpoint=self._workers_url,
            ) from exc

    async def fetch_workers(self) -> list[Worker]:
        """Fetch every worker, page by page.

        Any failure aborts the whole fetch: a partial list cannot be
        trusted to be contiguous.
        """
        workers: list[Worker] = []
        skip = 0
        while True:
            page = await self._fetch_page(skip)
            if not page:
                break
            workers.extend(page)
            _logger.info("Fetched %d workers from ADP (total so far: %d)", len(page), len(workers))
            if len(page) < self._page_size:
                break
            skip += self._page_size
        return workers

    async def fetch_driver_selection(self) -> DriverSelection:
        workers = await self.fetch_workers()
        selection = select_drivers(workers)
        _logger.info(
            "ADP filter results: %d total workers, %d skipped (no payroll file number), "
            "%d skipped (inactive/terminated), %d skipped (OVERDRIVE SYNC=No), %d eligible for sync",
            selection.total_workers,
            selection.skipped_missing_employee_number,
            selection.skipped_inactive,
            selection.skipped_opt_out,
            len(selection.drivers),
        )
        return selection

    async def fetch_eligible_drivers(self) -> list[Driver]:
        """Return the eligible drivers in ADP order."""
        selection = await self.fetch_driver_selection()
        return selection.drivers
