"""Mike Albert fleet sink adapter.

Endpoints:
  - POST /token                               (client credentials)
  - POST /driver-management/driver/find       (lookup by employee number)
  - POST /driver-management/driver/{id}       (address update)
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from driversync._transport import Transport
from driversync.config import FleetConfig
from driversync.exceptions import BusinessRejectionError, ProtocolError
from driversync.models.fleet import FleetDriverRecord
from driversync.token import TokenCache

_logger = logging.getLogger(__name__)

FIND_PATH = "/driver-management/driver/find"
UPDATE_PATH = "/driver-management/driver/{driver_id}"

#: Error codes the fleet API may use for the multiple-vehicle rule.
MULTIPLE_VEHICLES_CODES: frozenset[str] = frozenset({"MULTIPLE_VEHICLES_ALLOCATED"})
MULTIPLE_VEHICLES_MESSAGE = "multiple vehicles allocated"

_LIST_KEYS = ("drivers", "content", "items", "data", "results")
_COUNT_KEYS = ("totalCount", "totalElements", "total", "count")
_MESSAGE_KEYS = ("message", "error", "errorMessage", "detail", "title")
_CODE_KEYS = ("code", "errorCode")


def _records_from_payload(payload: Any) -> list[Any]:
    """Extract the list of driver objects from a lookup response."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in _LIST_KEYS:
            if key not in payload:
                continue
            value = payload[key]
            if value is None:
                return []
            if isinstance(value, list):
                return value
        if "driverId" in payload:
            return [payload]
        if not payload or any(payload.get(key) == 0 for key in _COUNT_KEYS):
            return []
    raise ValueError(f"unexpected lookup payload type {type(payload).__name__}")


def _error_details(body: str) -> tuple[set[str], str]:
    """Pull error codes and message text out of an error body."""
    try:
        decoded = json.loads(body) if body else None
    except json.JSONDecodeError:
        return set(), body

    codes: set[str] = set()
    messages: list[str] = []
    items = decoded.get("errors") if isinstance(decoded, dict) else None
    candidates = [decoded] if isinstance(decoded, dict) else []
    if isinstance(items, list):
        candidates.extend(item for item in items if isinstance(item, dict))
    elif isinstance(decoded, list):
        candidates.extend(item for item in decoded if isinstance(item, dict))

    for candidate in candidates:
        for key in _CODE_KEYS:
            if candidate.get(key) is not None:
                codes.add(str(candidate[key]).upper())
        for key in _MESSAGE_KEYS:
            if isinstance(candidate.get(key), str):
                messages.append(candidate[key])
    return codes, " ".join(messages) or body


def is_multiple_vehicles_rejection(exc: ProtocolError) -> bool:
    """Whether an update failure is the fleet's multiple-vehicle rule.

    A structured error code is preferred; the fleet API currently only
    reports the condition in its message text.
    """
    codes, message = _error_details(exc.body)
    if codes & MULTIPLE_VEHICLES_CODES:
        return True
    haystack = f"{message} {exc}".lower()
    return MULTIPLE_VEHICLES_MESSAGE in haystack


class FleetClient:
    """Look up and update driver records in the fleet system."""

    def __init__(
        self,
        config: FleetConfig,
        transport: Transport,
        *,
        tokens: TokenCache | None = None,
    ) -> None:
        config.validate()
        self._config = config
        self._transport = transport
        self._tokens = tokens or TokenCache(
            transport,
            config.token_url,
            config.client_id,
            config.client_secret,
        )
        self._base = config.endpoint.rstrip("/")

    async def _post(self, url: str, body: dict[str, Any]) -> Any:
        token = await self._tokens.get_valid_token()
        try:
            return await self._transport.request_json(
                "POST",
                url,
                headers={"authorization": token.authorization},
                json_body=body,
            )
        except ProtocolError as exc:
            if exc.status_code == 401:
                self._tokens.invalidate()
            raise

    async def find_drivers(self, employee_number: str) -> list[FleetDriverRecord]:
        """Return every fleet driver carrying *employee_number* (may be empty)."""
        url = f"{self._base}{FIND_PATH}"
        payload = await self._post(url, {"employeeNumber": employee_number})
        try:
            items = _records_from_payload(payload)
            return [FleetDriverRecord.model_validate(item) for item in items]
        except (ValueError, ValidationError) as exc:
            raise ProtocolError(
                f"Unexpected lookup payload for employee {employee_number}: {exc}",
                endpoint=url,
            ) from exc

    async def update_driver_address(
        self,
        driver_id: str,
        address1: str,
        address2: str,
        zip_code: str,
    ) -> FleetDriverRecord:
        """Overwrite the home address of one fleet driver.

        Raises :class:`BusinessRejectionError` when the fleet refuses
        because the driver has multiple vehicles allocated; every other
        failure surfaces as the transport's own error.
        """
        url = f"{self._base}{UPDATE_PATH.format(driver_id=driver_id)}"
        body = {
            "address": {
                "address1": address1,
                "address2": address2,
                "postCode": zip_code,
            }
        }
        try:
            payload = await self._post(url, body)
        except ProtocolError as exc:
            if is_multiple_vehicles_rejection(exc):
                raise BusinessRejectionError(
                    f"driver {driver_id} has multiple vehicles allocated",
                    driver_id=str(driver_id),
                    endpoint=url,
                ) from exc
            raise

        if isinstance(payload, dict) and payload:
            try:
                return FleetDriverRecord.model_validate(payload)
            except ValidationError as exc:
                raise ProtocolError(f"Unexpected update payload for driver {driver_id}: {exc}", endpoint=url) from exc
        # Empty body: echo what was written.
        return FleetDriverRecord.model_validate({"driverId": driver_id, "address": body["address"]})
