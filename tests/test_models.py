"""Tests for Pydantic model parsing of ADP and fleet payloads."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from driversync.models.driver import Driver
from driversync.models.fleet import FleetDriverRecord
from driversync.models.token import AccessToken
from driversync.models.worker import Worker, WorkerPage

# ------------------------------------------------------------------
# Worker
# ------------------------------------------------------------------


class TestWorker:
    def test_nulls_fall_back_to_defaults(self) -> None:
        worker = Worker.model_validate(
            {
                "workerID": {"idValue": "G1"},
                "person": {"legalName": None, "legalAddress": {"lineOne": "9 Pine", "lineTwo": None}},
                "workAssignments": None,
                "customFieldGroup": None,
            }
        )

        assert worker.worker_id.id_value == "G1"
        assert worker.person.legal_name.given_name == ""
        assert worker.person.legal_address.line_two == ""
        assert worker.work_assignments == []
        assert worker.primary_assignment is None

    def test_nested_fields_parsed(self) -> None:
        worker = Worker.model_validate(
            {
                "person": {
                    "legalName": {"givenName": "Ana", "familyName1": "Ruiz"},
                    "legalAddress": {"countrySubdivisionLevel1": {"codeValue": "KY"}, "postalCode": "41011"},
                },
                "workAssignments": [
                    {
                        "itemID": "X1",
                        "payrollFileNumber": "0099",
                        "primaryIndicator": True,
                        "customFieldGroup": {
                            "codeFields": [{"nameCode": {"codeValue": "OVERDRIVE SYNC"}, "codeValue": "No"}]
                        },
                    }
                ],
                "unmodelled": {"ignored": True},
            }
        )

        assert worker.person.legal_name.family_name1 == "Ruiz"
        assert worker.person.legal_address.country_subdivision_level1.code_value == "KY"
        assignment = worker.work_assignments[0]
        assert assignment.item_id == "X1"
        assert assignment.payroll_file_number == "0099"
        assert assignment.primary_indicator is True
        assert assignment.custom_field_group.code_fields[0].code_value == "No"

    def test_empty_page(self) -> None:
        assert WorkerPage.model_validate({}).workers == []


# ------------------------------------------------------------------
# Fleet records
# ------------------------------------------------------------------


class TestFleetDriverRecord:
    def test_numeric_identifiers_become_strings(self) -> None:
        record = FleetDriverRecord.model_validate({"driverId": 12345, "employeeNumber": 45})

        assert record.driver_id == "12345"
        assert record.employee_number == "45"
        assert record.address.post_code == ""

    def test_record_is_frozen(self) -> None:
        record = FleetDriverRecord.model_validate({"driverId": "1"})
        with pytest.raises(ValidationError):
            record.driver_id = "2"  # type: ignore[misc]


# ------------------------------------------------------------------
# Driver / token
# ------------------------------------------------------------------


def test_driver_requires_employee_number() -> None:
    with pytest.raises(ValidationError):
        Driver(employee_number="")


def test_access_token_expiry_window() -> None:
    now = datetime(2026, 3, 1, tzinfo=UTC)
    token = AccessToken.from_response({"access_token": "abc", "expires_in": 600}, now=now)

    assert token.expires_at == now + timedelta(seconds=600)
    assert token.authorization == "Bearer abc"
    assert not token.needs_refresh(now + timedelta(seconds=299), timedelta(seconds=300))
    assert token.needs_refresh(now + timedelta(seconds=300), timedelta(seconds=300))
    assert token.is_valid(now + timedelta(seconds=599))
    assert not token.is_valid(now + timedelta(seconds=600))
