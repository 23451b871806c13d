"""Decide which ADP workers are synchronized, and map them to drivers.

A worker is synchronized when its primary (first) work assignment carries
a payroll file number, the assignment is active, and the worker has not
opted out through the ``OVERDRIVE SYNC`` custom field.

The opt-out rules operate on :class:`CustomField` entries rather than on
ADP's wire shape so they can be tested on plain data.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence

from driversync.models.driver import Driver, DriverSelection
from driversync.models.worker import CustomFieldGroup, WorkAssignment, Worker

ACTIVE_STATUS_CODE = "A"
OPT_OUT_MARKER = "OVERDRIVE"
OPT_OUT_VALUE = "no"

_OPT_OUT_FIELD_NAMES: frozenset[str] = frozenset({"OVERDRIVE SYNC", "OVERDRIVE_SYNC", "OVERDRIVESYNC"})


@dataclasses.dataclass(frozen=True)
class CustomField:
    """A custom field reduced to its candidate names and its value."""

    names: tuple[str, ...]
    value: str


def is_opt_out_marker(names: Iterable[str]) -> bool:
    """Return ``True`` if any of *names* identifies the sync opt-out field."""
    for name in names:
        normalized = name.strip().upper()
        if normalized in _OPT_OUT_FIELD_NAMES or OPT_OUT_MARKER in normalized:
            return True
    return False


def find_marker_value(fields: Iterable[CustomField]) -> str | None:
    """Trimmed value of the first opt-out field in *fields*, ``None`` if absent."""
    for field in fields:
        if is_opt_out_marker(field.names):
            return field.value.strip()
    return None


def opt_out_value(scopes: Iterable[Sequence[CustomField]]) -> str:
    """Resolve the marker value across scopes, earliest scope first.

    Pass the worker-level fields before the assignment-level ones so the
    worker-level value wins.  Returns ``""`` when no scope has the field.
    """
    for fields in scopes:
        value = find_marker_value(fields)
        if value is not None:
            return value
    return ""


def is_opted_out(value: str) -> bool:
    return value.strip().casefold() == OPT_OUT_VALUE


def custom_fields(group: CustomFieldGroup) -> list[CustomField]:
    """Flatten an ADP custom-field group; string fields precede code fields."""
    fields = [
        CustomField(names=(f.name_code.code_value, f.name_code.short_name), value=f.string_value)
        for f in group.string_fields
    ]
    fields.extend(
        CustomField(names=(f.name_code.code_value, f.name_code.short_name), value=f.code_value)
        for f in group.code_fields
    )
    return fields


def worker_opt_out_value(worker: Worker) -> str:
    scopes = [custom_fields(worker.custom_field_group)]
    scopes.extend(custom_fields(wa.custom_field_group) for wa in worker.work_assignments)
    return opt_out_value(scopes)


def is_active(assignment: WorkAssignment) -> bool:
    return assignment.assignment_status.status_code.code_value.strip().upper() == ACTIVE_STATUS_CODE


def employee_number(worker: Worker) -> str | None:
    """Payroll file number of the primary assignment, if any.

    A number made only of zeros has no fleet-side key once the padding is
    stripped, so it counts as missing.
    """
    primary = worker.primary_assignment
    if primary is None:
        return None
    number = primary.payroll_file_number.strip()
    if not number.lstrip("0"):
        return None
    return number


def to_driver(worker: Worker, number: str) -> Driver:
    name = worker.person.legal_name
    address = worker.person.legal_address
    return Driver(
        employee_number=number,
        first_name=name.given_name,
        last_name=name.family_name1,
        address1=address.line_one,
        address2=address.line_two,
        city=address.city_name,
        state=address.country_subdivision_level1.code_value,
        zip_code=address.postal_code,
    )


def select_drivers(workers: Sequence[Worker]) -> DriverSelection:
    """Apply the eligibility rules to *workers*, preserving their order."""
    drivers: list[Driver] = []
    missing_number = 0
    inactive = 0
    opted_out = 0

    for worker in workers:
        number = employee_number(worker)
        if number is None:
            missing_number += 1
            continue

        primary = worker.primary_assignment
        assert primary is not None  # noqa: S101
        if not is_active(primary):
            inactive += 1
            continue

        if is_opted_out(worker_opt_out_value(worker)):
            opted_out += 1
            continue

        drivers.append(to_driver(worker, number))

    return DriverSelection(
        drivers=drivers,
        total_workers=len(workers),
        skipped_missing_employee_number=missing_number,
        skipped_inactive=inactive,
        skipped_opt_out=opted_out,
    )
