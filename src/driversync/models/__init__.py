"""Data models for the HR and fleet APIs and for run reporting."""

from driversync.models._base import ApiModel
from driversync.models.driver import Driver, DriverSelection
from driversync.models.fleet import FleetAddress, FleetDriverRecord
from driversync.models.report import RunReport, SyncOutcome
from driversync.models.token import AccessToken
from driversync.models.worker import (
    CustomCodeField,
    CustomFieldGroup,
    CustomStringField,
    LegalAddress,
    LegalName,
    NameCode,
    Person,
    WorkAssignment,
    Worker,
    WorkerPage,
)

__all__ = [
    "AccessToken",
    "ApiModel",
    "CustomCodeField",
    "CustomFieldGroup",
    "CustomStringField",
    "Driver",
    "DriverSelection",
    "FleetAddress",
    "FleetDriverRecord",
    "LegalAddress",
    "LegalName",
    "NameCode",
    "Person",
    "RunReport",
    "SyncOutcome",
    "WorkAssignment",
    "Worker",
    "WorkerPage",
]
