"""Mike Albert fleet driver models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from driversync.models._base import ApiModel


class FleetAddress(ApiModel):
    address1: str = ""
    address2: str = ""
    post_code: str = ""
    """May already be truncated to 5 digits by the fleet system."""


class FleetDriverRecord(ApiModel):
    """A driver record returned by the fleet lookup or update endpoints.

    ``driver_id`` is opaque; numeric identifiers are kept as strings.
    """

    driver_id: str | None = Field(default=None, validation_alias=AliasChoices("driverId", "id", "driver_id"))
    employee_number: str = ""
    first_name: str = ""
    last_name: str = ""
    address: FleetAddress = Field(default_factory=FleetAddress)
    raw: dict[str, Any] = Field(default_factory=dict)
    """Original API response dict."""

    @field_validator("driver_id", "employee_number", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value))
        return value

    @model_validator(mode="before")
    @classmethod
    def _stash_raw(cls, values: Any) -> Any:
        if isinstance(values, dict) and "raw" not in values:
            return {**values, "raw": dict(values)}
        return values
