"""HR-side driver model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Driver(BaseModel):
    """An eligible HR worker, reduced to what the fleet sync needs.

    Parameters
    ----------
    employee_number : str
        Payroll file number from the primary work assignment.  May
        carry leading zeros; normalize before matching.
    first_name, last_name : str
        Legal name.
    address1, address2, city, state : str
        Legal (home) address, exactly as ADP returned it.
    zip_code : str
        Postal code, possibly with a ZIP+4 suffix.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    employee_number: str = Field(min_length=1)
    first_name: str = ""
    last_name: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""


class DriverSelection(BaseModel):
    """Eligible drivers plus the counts of workers filtered out."""

    model_config = ConfigDict(frozen=True)

    drivers: list[Driver] = Field(default_factory=list)
    total_workers: int = 0
    skipped_missing_employee_number: int = 0
    skipped_inactive: int = 0
    skipped_opt_out: int = 0
