"""Run outcome taxonomy and the end-of-run report."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class SyncOutcome(StrEnum):
    """Classification of one fleet record (or one failed lookup)."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    NOT_FOUND = "not_found"
    SKIPPED = "skipped"
    ERROR = "error"


_COUNTER_FOR_OUTCOME: dict[SyncOutcome, str] = {
    SyncOutcome.UPDATED: "updated",
    SyncOutcome.UNCHANGED: "unchanged",
    SyncOutcome.NOT_FOUND: "not_found_in_sink",
    SyncOutcome.SKIPPED: "skipped",
    SyncOutcome.ERROR: "errors",
}


class RunReport(BaseModel):
    """Immutable snapshot of run statistics.

    A new report is derived for every outcome via :meth:`apply`, so the
    aggregation is a plain reducer: ``outcome -> RunReport -> RunReport``.
    """

    model_config = ConfigDict(frozen=True)

    total_source_drivers: int = 0
    updated: int = 0
    unchanged: int = 0
    not_found_in_sink: int = 0
    skipped: int = 0
    errors: int = 0
    interrupted: bool = False

    def apply(self, outcome: SyncOutcome) -> RunReport:
        counter = _COUNTER_FOR_OUTCOME[outcome]
        return self.model_copy(update={counter: getattr(self, counter) + 1})

    def summary_lines(self) -> list[str]:
        lines = [
            "=== SYNC COMPLETE ===" if not self.interrupted else "=== SYNC INTERRUPTED ===",
            f"  Total ADP drivers:   {self.total_source_drivers}",
            f"  Updated:             {self.updated}",
            f"  Unchanged:           {self.unchanged}",
            f"  Not found in MA:     {self.not_found_in_sink}",
            f"  Skipped (multi-veh): {self.skipped}",
            f"  Errors:              {self.errors}",
        ]
        return lines
