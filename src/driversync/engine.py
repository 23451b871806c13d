"""Reconciliation engine: push ADP home addresses to the fleet system."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from driversync.exceptions import BusinessRejectionError, DriverSyncError
from driversync.models.driver import Driver
from driversync.models.fleet import FleetDriverRecord
from driversync.models.report import RunReport, SyncOutcome

_logger = logging.getLogger(__name__)

POSTAL_PREFIX_LENGTH = 5


class DriverSource(Protocol):
    async def fetch_eligible_drivers(self) -> list[Driver]:
        ...


class DriverSink(Protocol):
    async def find_drivers(self, employee_number: str) -> list[FleetDriverRecord]:
        ...

    async def update_driver_address(
        self,
        driver_id: str,
        address1: str,
        address2: str,
        zip_code: str,
    ) -> FleetDriverRecord:
        ...


def normalize_employee_number(employee_number: str) -> str:
    """Strip leading zeros; the fleet system stores numbers unpadded."""
    return employee_number.strip().lstrip("0")


def postal_prefix(postal_code: str) -> str:
    return postal_code.strip()[:POSTAL_PREFIX_LENGTH]


def _same_text(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


def needs_update(driver: Driver, record: FleetDriverRecord) -> bool:
    """Whether the fleet record's address differs from the HR address.

    Address lines compare case-insensitively after trimming; postal
    codes compare on their first five characters only, since ADP may
    carry ZIP+4 while the fleet system keeps five digits.
    """
    current = record.address
    return not (
        _same_text(current.address1, driver.address1)
        and _same_text(current.address2, driver.address2)
        and postal_prefix(current.post_code) == postal_prefix(driver.zip_code)
    )


class SyncEngine:
    """Run one reconciliation pass.

    Parameters
    ----------
    source : DriverSource
        Supplies the eligible HR drivers (fetched once per run).
    sink : DriverSink
        Fleet lookups and updates.
    max_concurrency : int
        Drivers processed at once; ``1`` keeps the run sequential.
    run_timeout : float or None
        Deadline in seconds for the fleet phase.  When it elapses, no new
        requests are issued and the report so far is returned with
        ``interrupted=True``.
    """

    def __init__(
        self,
        source: DriverSource,
        sink: DriverSink,
        *,
        max_concurrency: int = 1,
        run_timeout: float | None = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._source = source
        self._sink = sink
        self._max_concurrency = max_concurrency
        self._run_timeout = run_timeout
        self._report = RunReport()

    @property
    def report(self) -> RunReport:
        return self._report

    def _record(self, outcome: SyncOutcome) -> None:
        self._report = self._report.apply(outcome)

    async def run(self) -> RunReport:
        """Fetch drivers, reconcile each, and return the final report.

        Errors while fetching HR drivers propagate: no fleet call is made.
        """
        drivers = await self._source.fetch_eligible_drivers()
        _logger.info("Found %d drivers from ADP", len(drivers))
        self._report = RunReport(total_source_drivers=len(drivers))

        try:
            async with asyncio.timeout(self._run_timeout):
                await self._sync_all(drivers)
        except TimeoutError:
            _logger.warning("Run deadline of %ss reached; stopping early", self._run_timeout)
            self._report = self._report.model_copy(update={"interrupted": True})

        return self._report

    async def _sync_all(self, drivers: Sequence[Driver]) -> None:
        if self._max_concurrency == 1:
            for driver in drivers:
                await self.sync_driver(driver)
            return

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def _bounded(driver: Driver) -> None:
            async with semaphore:
                await self.sync_driver(driver)

        async with asyncio.TaskGroup() as group:
            for driver in drivers:
                group.create_task(_bounded(driver))

    async def sync_driver(self, driver: Driver) -> list[SyncOutcome]:
        """Reconcile one driver against every matching fleet record."""
        employee_number = normalize_employee_number(driver.employee_number)
        if not employee_number:
            _logger.error("ERROR employee number %r has no fleet key; not looked up", driver.employee_number)
            self._record(SyncOutcome.ERROR)
            return [SyncOutcome.ERROR]

        try:
            records = await self._sink.find_drivers(employee_number)
        except DriverSyncError as exc:
            _logger.error("ERROR finding driver %s in Mike Albert: %s", employee_number, exc)
            self._record(SyncOutcome.ERROR)
            return [SyncOutcome.ERROR]

        if not records:
            _logger.debug("Employee %s not found in Mike Albert", employee_number)
            self._record(SyncOutcome.NOT_FOUND)
            return [SyncOutcome.NOT_FOUND]

        outcomes: list[SyncOutcome] = []
        for record in records:
            outcome = await self._sync_record(driver, employee_number, record)
            self._record(outcome)
            outcomes.append(outcome)
        return outcomes

    async def _sync_record(self, driver: Driver, employee_number: str, record: FleetDriverRecord) -> SyncOutcome:
        if not needs_update(driver, record):
            return SyncOutcome.UNCHANGED

        if not record.driver_id:
            _logger.error("ERROR fleet record for EmployeeNumber %s has no driverId", employee_number)
            return SyncOutcome.ERROR

        current = record.address
        _logger.info(
            "  Updating DriverId %s (%s): '%s' -> '%s', '%s' -> '%s', '%s' -> '%s'",
            record.driver_id,
            employee_number,
            current.address1,
            driver.address1,
            current.address2,
            driver.address2,
            current.post_code,
            driver.zip_code,
        )

        try:
            await self._sink.update_driver_address(
                record.driver_id,
                driver.address1,
                driver.address2,
                driver.zip_code,
            )
        except BusinessRejectionError:
            _logger.warning("  WARN: DriverId %s has multiple vehicles - skipping address update", record.driver_id)
            return SyncOutcome.SKIPPED
        except DriverSyncError as exc:
            _logger.error(
                "  ERROR updating DriverId %s for EmployeeNumber %s: %s",
                record.driver_id,
                employee_number,
                exc,
            )
            return SyncOutcome.ERROR

        _logger.info("  SUCCESS: Updated DriverId %s", record.driver_id)
        return SyncOutcome.UPDATED
