"""
Conflict detection and cell lookup.

Intervals are half-open: [s1, e1) and [s2, e2) overlap when s1 < e2 and
s2 < e1, so back-to-back periods (09:00-10:00, 10:00-11:00) do not clash.

Two different questions are answered here:
- Slot overlap: a new or edited time slot may not overlap another slot. The
  registry enforces this.
- Entry double-booking: several entries may share a cell (split sections,
  combined classes). This is reported as a warning, never prevented.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import TYPE_CHECKING, Iterable, Optional, Union

from .data.models import TIME_PATTERN, Day, TimeSlot, TimetableEntry, normalize_time
from .errors import InvalidIntervalError, InvalidTimeFormatError

if TYPE_CHECKING:
    from .data.models import Scope
    from .registry import TimeSlotRegistry
    from .store import EntryStore


def intervals_overlap(start1: str, end1: str, start2: str, end2: str) -> bool:
    """Half-open interval overlap on 'HH:MM' strings."""
    return start1 < end2 and start2 < end1


def checked_interval(start_time: str, end_time: str) -> tuple[str, str]:
    """
    Normalize a candidate interval and check it is well formed.

    Raises:
        InvalidTimeFormatError: If either time is not 24-hour HH:MM
        InvalidIntervalError: If start_time >= end_time
    """
    start = normalize_time(start_time)
    end = normalize_time(end_time)
    for value in (start, end):
        if not isinstance(value, str) or not TIME_PATTERN.match(value):
            raise InvalidTimeFormatError(value, start, end)
    if start >= end:
        raise InvalidIntervalError(start, end)
    return start, end


def find_overlapping_slot(
    slots: Iterable[TimeSlot],
    start_time: str,
    end_time: str,
    excluding_id: Optional[str] = None,
) -> Optional[TimeSlot]:
    """Return the first slot overlapping [start_time, end_time), skipping excluding_id."""
    start_time = normalize_time(start_time)
    end_time = normalize_time(end_time)
    for slot in slots:
        if excluding_id is not None and slot.id == excluding_id:
            continue
        if intervals_overlap(start_time, end_time, slot.start_time, slot.end_time):
            return slot
    return None


def day_matches(entry: TimetableEntry, day: Union[Day, str]) -> bool:
    """Case-insensitive day comparison."""
    try:
        return entry.day is Day(day)
    except ValueError:
        return False


def entries_for_cell(
    entries: Iterable[TimetableEntry],
    slot: TimeSlot,
    day: Union[Day, str],
) -> list[TimetableEntry]:
    """
    Entries occupying the (slot, day) cell.

    Matching is exact on the interval (not overlap) and case-insensitive on
    the day. Any number of entries may be returned.
    """
    return [
        e for e in entries
        if e.start_time == slot.start_time
        and e.end_time == slot.end_time
        and day_matches(e, day)
    ]


@dataclass(frozen=True)
class TeacherClash:
    """One teacher booked into two overlapping entries on the same day."""
    teacher_id: str
    first: TimetableEntry
    second: TimetableEntry

    def __str__(self) -> str:
        return f"Teacher {self.teacher_id}: {self.first} / {self.second}"


class ConflictEngine:
    """Lookups and conflict checks over a registry and an entry store."""

    def __init__(self, registry: TimeSlotRegistry, store: EntryStore):
        self.registry = registry
        self.store = store

    def entries_for_cell(self, slot: TimeSlot, day: Union[Day, str]) -> list[TimetableEntry]:
        return entries_for_cell(self.store.entries, slot, day)

    def has_interval_conflict(
        self,
        start_time: str,
        end_time: str,
        excluding_id: Optional[str] = None,
    ) -> bool:
        """
        Whether [start_time, end_time) overlaps a registered slot other than excluding_id.

        Raises:
            InvalidIntervalError: If the interval is malformed or empty
        """
        start_time, end_time = checked_interval(start_time, end_time)
        return self.registry.conflicting_slot(start_time, end_time, excluding_id) is not None

    def overlapping_entries(
        self,
        day: Union[Day, str],
        start_time: str,
        end_time: str,
        scope: Optional[Scope] = None,
        excluding_id: Optional[str] = None,
    ) -> list[TimetableEntry]:
        """Entries on the same day whose interval overlaps the given one."""
        start_time = normalize_time(start_time)
        end_time = normalize_time(end_time)
        return [
            e for e in self.store.entries
            if e.id != excluding_id
            and day_matches(e, day)
            and (scope is None or e.in_scope(scope))
            and intervals_overlap(start_time, end_time, e.start_time, e.end_time)
        ]

    def double_bookings(self) -> list[list[TimetableEntry]]:
        """Groups of two or more entries sharing one (day, start, end) cell."""
        groups: dict[tuple[Day, str, str], list[TimetableEntry]] = defaultdict(list)
        for entry in self.store.entries:
            groups[(entry.day, entry.start_time, entry.end_time)].append(entry)

        return [
            group for key, group in sorted(groups.items(), key=lambda kv: _cell_order(kv[0]))
            if len(group) > 1
        ]

    def teacher_clashes(self) -> list[TeacherClash]:
        """Pairs of entries where one teacher is in two places at once."""
        by_teacher_day: dict[tuple[str, Day], list[TimetableEntry]] = defaultdict(list)
        for entry in self.store.entries:
            by_teacher_day[(entry.teacher_id, entry.day)].append(entry)

        clashes = []
        for (teacher_id, _day), entries in by_teacher_day.items():
            ordered = sorted(entries, key=lambda e: (e.start_time, e.end_time, e.id))
            for first, second in combinations(ordered, 2):
                if intervals_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
                    clashes.append(TeacherClash(teacher_id, first, second))
        return clashes


def _cell_order(key: tuple[Day, str, str]) -> tuple[int, str, str]:
    day, start, end = key
    return (list(Day).index(day), start, end)
