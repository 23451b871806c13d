"""ADP Workforce Now worker payload models.

Only the parts of ``GET /hr/v2/workers`` that the sync reads are
modelled; everything else in the (very large) worker document is ignored.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field

from driversync.models._base import ApiModel


class NameCode(ApiModel):
    """ADP ``nameCode``/``statusCode`` style code object."""

    code_value: str = ""
    short_name: str = ""


class CustomStringField(ApiModel):
    name_code: NameCode = Field(default_factory=NameCode)
    string_value: str = ""


class CustomCodeField(ApiModel):
    name_code: NameCode = Field(default_factory=NameCode)
    code_value: str = ""


class CustomFieldGroup(ApiModel):
    """Customer-defined fields attached to a worker or a work assignment."""

    string_fields: list[CustomStringField] = Field(default_factory=list)
    code_fields: list[CustomCodeField] = Field(default_factory=list)


class LegalName(ApiModel):
    given_name: str = ""
    family_name1: str = Field(default="", alias="familyName1")


class LegalAddress(ApiModel):
    """Home address from ``person.legalAddress``."""

    line_one: str = ""
    line_two: str = ""
    city_name: str = ""
    country_subdivision_level1: NameCode = Field(default_factory=NameCode, alias="countrySubdivisionLevel1")
    postal_code: str = ""


class Person(ApiModel):
    legal_name: LegalName = Field(default_factory=LegalName)
    legal_address: LegalAddress = Field(default_factory=LegalAddress)


class AssignmentStatus(ApiModel):
    status_code: NameCode = Field(default_factory=NameCode)


class WorkAssignment(ApiModel):
    item_id: str = Field(default="", validation_alias=AliasChoices("itemID", "itemId", "item_id"))
    payroll_file_number: str = ""
    primary_indicator: bool = False
    assignment_status: AssignmentStatus = Field(default_factory=AssignmentStatus)
    custom_field_group: CustomFieldGroup = Field(default_factory=CustomFieldGroup)


class WorkerId(ApiModel):
    id_value: str = ""


class Worker(ApiModel):
    """A single ADP worker record."""

    worker_id: WorkerId = Field(
        default_factory=WorkerId,
        validation_alias=AliasChoices("workerID", "workerId", "worker_id"),
    )
    person: Person = Field(default_factory=Person)
    work_assignments: list[WorkAssignment] = Field(default_factory=list)
    custom_field_group: CustomFieldGroup = Field(default_factory=CustomFieldGroup)

    @property
    def primary_assignment(self) -> WorkAssignment | None:
        """The first work assignment, which ADP lists as the primary one."""
        return self.work_assignments[0] if self.work_assignments else None


class WorkerPage(ApiModel):
    workers: list[Worker] = Field(default_factory=list)
