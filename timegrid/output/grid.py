"""
Weekly grid projection.

Turns slots, days and entries into the 2-D view the timetable screen and the
printed timetable are built from: one row per time slot in chronological
order, one column per day.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

from timegrid.conflicts import entries_for_cell
from timegrid.data.models import Day, TimeSlot, TimetableEntry

DEFAULT_PREVIEW_LIMIT = 2


# =============================================================================
# Cells
# =============================================================================

class GridCell(BaseModel):
    """The entries booked into one (slot, day) intersection."""
    slot: TimeSlot
    day: Day
    entries: list[TimetableEntry] = Field(default_factory=list)
    preview_limit: int = Field(default=DEFAULT_PREVIEW_LIMIT, ge=1, exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    @computed_field
    @property
    def count(self) -> int:
        """Badge count."""
        return len(self.entries)

    @property
    def preview(self) -> list[TimetableEntry]:
        """Entries shown inline; the rest are summarised by overflow."""
        return self.entries[:self.preview_limit]

    @computed_field
    @property
    def overflow(self) -> int:
        return max(0, len(self.entries) - self.preview_limit)

    @property
    def is_empty(self) -> bool:
        return not self.entries


# =============================================================================
# Grid
# =============================================================================

class TimetableGrid(BaseModel):
    """Rows of cells plus the entries that could not be placed."""
    slots: list[TimeSlot]
    days: list[Day]
    cells: list[list[GridCell]]
    orphaned_entries: list[TimetableEntry] = Field(default_factory=list, alias="orphanedEntries")

    model_config = ConfigDict(populate_by_name=True)

    def rows(self) -> list[tuple[TimeSlot, list[GridCell]]]:
        return list(zip(self.slots, self.cells))

    def cell(self, slot_id: str, day: Union[Day, str]) -> Optional[GridCell]:
        """Cell at (slot_id, day), or None if either is not on the grid."""
        try:
            day = Day(day)
        except ValueError:
            return None
        for slot, row in zip(self.slots, self.cells):
            if slot.id != slot_id:
                continue
            for cell in row:
                if cell.day is day:
                    return cell
        return None

    def flatten(self) -> list[TimetableEntry]:
        """All placed entries, row by row, left to right."""
        return [entry for row in self.cells for cell in row for entry in cell.entries]

    def day_schedule(self, day: Union[Day, str]) -> list[tuple[TimeSlot, TimetableEntry]]:
        """One day's lessons in slot order; empty for an unknown day."""
        try:
            day = Day(day)
        except ValueError:
            return []
        return [
            (cell.slot, entry)
            for row in self.cells
            for cell in row
            if cell.day is day
            for entry in cell.entries
        ]

    def empty_cells(self) -> list[GridCell]:
        return [cell for row in self.cells for cell in row if cell.is_empty]

    @property
    def entry_count(self) -> int:
        return sum(cell.count for row in self.cells for cell in row)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)


# =============================================================================
# Projection
# =============================================================================

def project(
    slots: Iterable[TimeSlot],
    days: Sequence[Union[Day, str]],
    entries: Iterable[TimetableEntry],
    preview_limit: int = DEFAULT_PREVIEW_LIMIT,
) -> TimetableGrid:
    """
    Build the |slots| x |days| grid.

    Cell (i, j) holds the entries whose interval equals slots[i] and whose
    day is days[j]. Entries matching no cell are reported in
    orphaned_entries.
    """
    ordered_slots = sorted(slots, key=lambda s: (s.start_time, s.end_time))
    grid_days = [Day(d) for d in days]
    entries = list(entries)

    cells = [
        [
            GridCell(
                slot=slot,
                day=day,
                entries=entries_for_cell(entries, slot, day),
                preview_limit=preview_limit,
            )
            for day in grid_days
        ]
        for slot in ordered_slots
    ]

    slot_ids = {s.id for s in ordered_slots}
    day_set = set(grid_days)
    orphaned = [e for e in entries if e.slot_id not in slot_ids or e.day not in day_set]

    return TimetableGrid(
        slots=ordered_slots,
        days=grid_days,
        cells=cells,
        orphaned_entries=orphaned,
    )
