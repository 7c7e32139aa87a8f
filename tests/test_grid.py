"""Tests for the weekly grid projection."""

import json

import pytest

from timegrid.data.models import DEFAULT_DAYS, Day, TimeSlot
from timegrid.output.grid import TimetableGrid, project
from timegrid.registry import TimeSlotRegistry
from timegrid.store import EntryStore


@pytest.fixture
def entries(make_entry):
    return [
        make_entry("e1", day="monday", start="09:00", end="10:00"),
        make_entry("e2", day="monday", start="09:00", end="10:00", teacher_id="t2"),
        make_entry("e3", day="monday", start="09:00", end="10:00", teacher_id="t3"),
        make_entry("e4", day="wednesday", start="11:15", end="12:00"),
        make_entry("e5", day="tuesday", start="10:00", end="11:00"),
    ]


class TestProject:
    """Tests for project()."""

    def test_dimensions(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        assert len(grid.cells) == len(slots)
        assert all(len(row) == 6 for row in grid.cells)
        assert grid.days == list(DEFAULT_DAYS)

    def test_rows_in_chronological_order(self, slots, entries):
        grid = project(list(reversed(slots)), DEFAULT_DAYS, entries)
        assert [s.id for s in grid.slots] == ["09:00-10:00", "10:00-11:00", "11:15-12:00"]

    def test_entries_placed_in_their_cell(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        assert [e.id for e in grid.cell("11:15-12:00", "wednesday").entries] == ["e4"]
        assert [e.id for e in grid.cell("10:00-11:00", Day.TUESDAY).entries] == ["e5"]
        assert grid.cell("10:00-11:00", "monday").is_empty

    def test_every_placed_entry_appears_once(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        assert sorted(e.id for e in grid.flatten()) == sorted(e.id for e in entries)
        assert grid.entry_count == len(entries)
        assert grid.orphaned_entries == []

    def test_preview_and_overflow(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        cell = grid.cell("09:00-10:00", "monday")
        assert cell.count == 3
        assert [e.id for e in cell.preview] == ["e1", "e2"]
        assert cell.overflow == 1

    def test_custom_preview_limit(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries, preview_limit=3)
        cell = grid.cell("09:00-10:00", "monday")
        assert len(cell.preview) == 3
        assert cell.overflow == 0

    def test_no_slots(self, entries):
        grid = project([], DEFAULT_DAYS, entries)
        assert grid.cells == []
        assert len(grid.orphaned_entries) == len(entries)

    def test_day_not_on_grid_is_orphaned(self, slots, make_entry):
        grid = project(slots, DEFAULT_DAYS, [make_entry("sun", day="sunday")])
        assert grid.flatten() == []
        assert [e.id for e in grid.orphaned_entries] == ["sun"]

    def test_partial_overlap_is_orphaned(self, slots, make_entry):
        grid = project(slots, DEFAULT_DAYS, [make_entry("odd", start="09:30", end="10:30")])
        assert grid.flatten() == []
        assert [e.id for e in grid.orphaned_entries] == ["odd"]

    def test_string_days_accepted(self, slots, entries):
        grid = project(slots, ["Monday", "TUESDAY"], entries)
        assert grid.days == [Day.MONDAY, Day.TUESDAY]

    def test_removed_slot_orphans_entries(self, slots, make_entry):
        registry = TimeSlotRegistry(slots)
        store = EntryStore()
        store.upsert(make_entry("e1", start="10:00", end="11:00"))

        registry.remove_slot("10:00-11:00")
        grid = project(registry.list_slots_sorted(), DEFAULT_DAYS, store.entries)

        assert "e1" in store
        assert grid.flatten() == []
        assert [e.id for e in grid.orphaned_entries] == ["e1"]


class TestTimetableGrid:
    """Tests for grid accessors and serialization."""

    def test_cell_missing(self, slots, entries):
        grid = project(slots, [Day.MONDAY], entries)
        assert grid.cell("12:00-13:00", "monday") is None
        assert grid.cell("09:00-10:00", "friday") is None

    def test_day_schedule(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        schedule = grid.day_schedule("monday")
        assert [entry.id for _, entry in schedule] == ["e1", "e2", "e3"]
        assert all(slot.id == "09:00-10:00" for slot, _ in schedule)

    def test_unknown_day_lookups(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        assert grid.cell("09:00-10:00", "someday") is None
        assert grid.day_schedule("someday") == []

    def test_empty_cells(self, slots, entries):
        grid = project(slots, DEFAULT_DAYS, entries)
        assert len(grid.empty_cells()) == 3 * 6 - 3

    def test_to_dict(self, slots, entries):
        data = project(slots, DEFAULT_DAYS, entries).to_dict()
        assert data["days"][0] == "monday"
        assert data["orphanedEntries"] == []
        first = data["cells"][0][0]
        assert first["count"] == 3
        assert first["overflow"] == 1
        assert "preview_limit" not in first
        assert first["entries"][0]["startTime"] == "09:00"

    def test_to_json(self, slots, entries):
        data = json.loads(project(slots, DEFAULT_DAYS, entries).to_json())
        assert len(data["slots"]) == 3

    def test_rows(self, slots):
        grid = project(slots, DEFAULT_DAYS, [])
        rows = grid.rows()
        assert [slot.id for slot, _ in rows] == [s.id for s in slots]
        assert isinstance(grid, TimetableGrid)
        assert rows[0][0] == TimeSlot.of("09:00", "10:00")
