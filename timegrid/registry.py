"""
Time slot registry.

Holds the ordered set of intervals used as grid rows. No two stored slots
overlap, and slots are always kept in ascending start-time order.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, Optional

from .conflicts import checked_interval, find_overlapping_slot
from .data.models import TimeSlot, TimetableEntry, make_slot_id, normalize_time
from .errors import SlotConflictError

logger = logging.getLogger(__name__)


class TimeSlotRegistry:
    """Ordered, non-overlapping collection of time slots."""

    def __init__(self, slots: Iterable[TimeSlot] = ()):
        self._slots: list[TimeSlot] = []
        for slot in slots:
            self.add_slot(slot.start_time, slot.end_time)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_slot(self, start_time: str, end_time: str) -> TimeSlot:
        """
        Add a slot for [start_time, end_time).

        Raises:
            InvalidIntervalError: If a time is not HH:MM or start_time >= end_time
            SlotConflictError: If the interval overlaps a stored slot
        """
        slot = self._validated(start_time, end_time, excluding_id=None)
        self._slots.append(slot)
        self._sort()
        logger.debug(f"Added slot {slot.id}")
        return slot

    def edit_slot(self, slot_id: str, start_time: str, end_time: str) -> TimeSlot:
        """
        Move an existing slot to a new interval.

        The edited slot is ignored by the overlap check. Its id changes with
        its interval.

        Raises:
            KeyError: If no slot has slot_id
            InvalidIntervalError: If a time is not HH:MM or start_time >= end_time
            SlotConflictError: If the interval overlaps another stored slot
        """
        index = self._index_of(slot_id)
        if index is None:
            raise KeyError(f"Unknown time slot: {slot_id}")

        slot = self._validated(start_time, end_time, excluding_id=slot_id)
        self._slots[index] = slot
        self._sort()
        logger.debug(f"Edited slot {slot_id} -> {slot.id}")
        return slot

    def remove_slot(self, slot_id: str) -> None:
        """Remove a slot. Entries using its interval are left untouched."""
        index = self._index_of(slot_id)
        if index is not None:
            del self._slots[index]
            logger.debug(f"Removed slot {slot_id}")

    def replace_all(self, slots: Iterable[TimeSlot]) -> list[TimeSlot]:
        """
        Replace the registry with fetched slots.

        Duplicate intervals collapse into one slot. A slot overlapping one
        already accepted is skipped.

        Returns:
            Slots that were skipped because they overlapped
        """
        self._slots = []
        skipped: list[TimeSlot] = []
        # Earliest-first so the accepted set does not depend on service order
        for slot in sorted(slots, key=lambda s: (s.start_time, s.end_time)):
            if slot.id in self:
                continue
            conflict = find_overlapping_slot(self._slots, slot.start_time, slot.end_time)
            if conflict is not None:
                logger.warning(f"Skipping time slot {slot.id}: overlaps {conflict.id}")
                skipped.append(slot)
                continue
            self._slots.append(slot)
        self._sort()
        logger.info(f"Registry loaded with {len(self._slots)} time slots")
        return skipped

    def infer_from_entries(self, entries: Iterable[TimetableEntry]) -> list[TimeSlot]:
        """Rebuild the registry from the intervals entries actually use."""
        observed = {
            (e.start_time, e.end_time): TimeSlot.of(e.start_time, e.end_time)
            for e in entries
            if e.start_time < e.end_time
        }
        return self.replace_all(observed.values())

    def clear(self) -> None:
        self._slots = []

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_slots_sorted(self) -> list[TimeSlot]:
        """Slots in chronological order; this is the grid's row order."""
        return list(self._slots)

    def get(self, slot_id: str) -> Optional[TimeSlot]:
        index = self._index_of(slot_id)
        return self._slots[index] if index is not None else None

    def find(self, start_time: str, end_time: str) -> Optional[TimeSlot]:
        """Slot with exactly this interval, if any."""
        return self.get(make_slot_id(normalize_time(start_time), normalize_time(end_time)))

    def conflicting_slot(
        self,
        start_time: str,
        end_time: str,
        excluding_id: Optional[str] = None,
    ) -> Optional[TimeSlot]:
        """First stored slot overlapping [start_time, end_time), if any."""
        return find_overlapping_slot(self._slots, start_time, end_time, excluding_id)

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[TimeSlot]:
        return iter(list(self._slots))

    def __contains__(self, slot_id: object) -> bool:
        return any(s.id == slot_id for s in self._slots)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _validated(
        self,
        start_time: str,
        end_time: str,
        excluding_id: Optional[str],
    ) -> TimeSlot:
        start_time, end_time = checked_interval(start_time, end_time)

        conflict = self.conflicting_slot(start_time, end_time, excluding_id)
        if conflict is not None:
            raise SlotConflictError(start_time, end_time, conflict)

        return TimeSlot.of(start_time, end_time)

    def _index_of(self, slot_id: str) -> Optional[int]:
        for i, slot in enumerate(self._slots):
            if slot.id == slot_id:
                return i
        return None

    def _sort(self) -> None:
        self._slots.sort(key=lambda s: (s.start_time, s.end_time))
