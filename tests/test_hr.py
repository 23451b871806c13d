from __future__ import annotations

from typing import Any

import pytest

from driversync.config import HrConfig
from driversync.exceptions import AuthenticationError, ConfigurationError, ProtocolError, TransportError
from driversync.hr import HrClient

BASE_URL = "https://api.adp.example"


def _config(**overrides: str) -> HrConfig:
    values = {
        "client_id": "adp-client",
        "client_secret": "adp-secret",
        "base_url": BASE_URL,
        "cert_file": "/etc/adp/cert.pem",
        "key_file": "/etc/adp/key.pem",
    }
    values.update(overrides)
    return HrConfig(**values)


def _raw_worker(payroll: str, *, status: str = "A") -> dict[str, Any]:
    return {
        "workerID": {"idValue": f"W{payroll}"},
        "person": {
            "legalName": {"givenName": "First", "familyName1": f"Last{payroll}"},
            "legalAddress": {"lineOne": f"{payroll} Elm St", "cityName": "Dayton", "postalCode": "45402"},
        },
        "workAssignments": [
            {
                "payrollFileNumber": payroll,
                "primaryIndicator": True,
                "assignmentStatus": {"statusCode": {"codeValue": status}},
            }
        ],
    }


class FakeAdp:
    """Serves the ADP token and workers endpoints from in-memory pages."""

    def __init__(self, pages: list[list[dict[str, Any]]], *, fail_on_page: int | None = None) -> None:
        self.pages = pages
        self.fail_on_page = fail_on_page
        self.token_calls = 0
        self.worker_calls: list[dict[str, Any]] = []
        self.token_fails = False

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        if url.endswith("/auth/oauth/v2/token"):
            self.token_calls += 1
            if self.token_fails:
                raise ProtocolError("HTTP 401", status_code=401, endpoint=url, body="bad client")
            return {"access_token": "adp-token", "token_type": "Bearer", "expires_in": 3600}

        assert url == f"{BASE_URL}/hr/v2/workers"
        assert method == "GET"
        self.worker_calls.append(kwargs)
        index = len(self.worker_calls) - 1
        if self.fail_on_page == index:
            raise TransportError("connection reset", endpoint=url)
        if index >= len(self.pages):
            return {}
        return {"workers": self.pages[index]}


@pytest.mark.asyncio
async def test_pages_until_short_page() -> None:
    adp = FakeAdp([[_raw_worker("1"), _raw_worker("2")], [_raw_worker("3"), _raw_worker("4")], [_raw_worker("5")]])
    client = HrClient(_config(), adp, page_size=2)

    workers = await client.fetch_workers()

    assert [w.work_assignments[0].payroll_file_number for w in workers] == ["1", "2", "3", "4", "5"]
    assert [call["params"] for call in adp.worker_calls] == [
        {"$top": "2", "$skip": "0"},
        {"$top": "2", "$skip": "2"},
        {"$top": "2", "$skip": "4"},
    ]
    assert adp.token_calls == 1
    assert all(call["headers"]["authorization"] == "Bearer adp-token" for call in adp.worker_calls)


@pytest.mark.asyncio
async def test_stops_on_empty_page() -> None:
    adp = FakeAdp([[_raw_worker("1"), _raw_worker("2")], []])
    client = HrClient(_config(), adp, page_size=2)

    workers = await client.fetch_workers()

    assert len(workers) == 2
    assert len(adp.worker_calls) == 2


@pytest.mark.asyncio
async def test_no_content_response_ends_paging() -> None:
    adp = FakeAdp([[_raw_worker("1"), _raw_worker("2")]])
    client = HrClient(_config(), adp, page_size=2)

    workers = await client.fetch_workers()

    assert len(workers) == 2
    assert len(adp.worker_calls) == 2


@pytest.mark.asyncio
async def test_failure_on_later_page_fails_whole_fetch() -> None:
    adp = FakeAdp([[_raw_worker("1"), _raw_worker("2")], [_raw_worker("3")]], fail_on_page=1)
    client = HrClient(_config(), adp, page_size=2)

    with pytest.raises(TransportError):
        await client.fetch_eligible_drivers()


@pytest.mark.asyncio
async def test_token_failure_is_authentication_error() -> None:
    adp = FakeAdp([[_raw_worker("1")]])
    adp.token_fails = True
    client = HrClient(_config(), adp)

    with pytest.raises(AuthenticationError):
        await client.fetch_eligible_drivers()
    assert adp.worker_calls == []


@pytest.mark.asyncio
async def test_malformed_workers_payload_is_protocol_error() -> None:
    class _BadAdp(FakeAdp):
        async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
            if url.endswith("/token"):
                return await super().request_json(method, url, **kwargs)
            return {"workers": "not-a-list"}

    client = HrClient(_config(), _BadAdp([]))

    with pytest.raises(ProtocolError):
        await client.fetch_workers()


@pytest.mark.asyncio
async def test_eligible_drivers_filtered_after_all_pages() -> None:
    adp = FakeAdp([[_raw_worker("0045"), _raw_worker("0046", status="T")], [_raw_worker("0047")]])
    client = HrClient(_config(), adp, page_size=2)

    selection = await client.fetch_driver_selection()

    assert [d.employee_number for d in selection.drivers] == ["0045", "0047"]
    assert selection.total_workers == 3
    assert selection.skipped_inactive == 1
    assert selection.drivers[0].address1 == "0045 Elm St"


@pytest.mark.parametrize("field", ["client_id", "client_secret", "base_url", "cert_file", "key_file"])
def test_constructor_rejects_missing_settings(field: str) -> None:
    with pytest.raises(ConfigurationError):
        HrClient(_config(**{field: ""}), FakeAdp([]))
