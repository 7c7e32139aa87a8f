"""Shared fixtures for timegrid tests."""

from __future__ import annotations

from typing import Callable, Optional

import pytest

from timegrid.data.models import Scope, Teacher, TimeSlot, TimetableEntry
from timegrid.errors import SchedulingError
from timegrid.service import InMemorySchedulingService


class RecordingService(InMemorySchedulingService):
    """In-memory service that records calls and can fail on demand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls: list[str] = []
        self.failures: dict[str, SchedulingError] = {}

    def fail_on(self, operation: str, error: SchedulingError) -> None:
        self.failures[operation] = error

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failures:
            raise self.failures.pop(operation)

    def time_slots(self):
        self._record("time_slots")
        return super().time_slots()

    def timetable(self, scope):
        self._record("timetable")
        return super().timetable(scope)

    def teachers_with_subjects(self):
        self._record("teachers_with_subjects")
        return super().teachers_with_subjects()

    def create_entry(self, draft):
        self._record("create_entry")
        return super().create_entry(draft)

    def update_entry(self, entry_id, draft):
        self._record("update_entry")
        return super().update_entry(entry_id, draft)

    def delete_entry(self, entry_id):
        self._record("delete_entry")
        return super().delete_entry(entry_id)


@pytest.fixture
def make_entry() -> Callable[..., TimetableEntry]:
    """Factory for timetable entries with sensible defaults."""

    def factory(
        id: str,
        day: str = "monday",
        start: str = "09:00",
        end: str = "10:00",
        teacher_id: str = "t1",
        subject: str = "Mathematics",
        class_name: str = "Class 5",
        section: str = "A",
        room: Optional[str] = None,
        teacher_name: Optional[str] = None,
    ) -> TimetableEntry:
        return TimetableEntry(
            id=id,
            class_name=class_name,
            section=section,
            subject_name=subject,
            teacher_id=teacher_id,
            day=day,
            start_time=start,
            end_time=end,
            room_number=room,
            teacher_name=teacher_name,
        )

    return factory


@pytest.fixture
def scope() -> Scope:
    return Scope(class_name="Class 5", section="A")


@pytest.fixture
def other_scope() -> Scope:
    return Scope(class_name="Class 6", section="B")


@pytest.fixture
def slots() -> list[TimeSlot]:
    return [
        TimeSlot.of("09:00", "10:00"),
        TimeSlot.of("10:00", "11:00"),
        TimeSlot.of("11:15", "12:00"),
    ]


@pytest.fixture
def teachers() -> list[Teacher]:
    return [
        Teacher(id="t1", full_name="Asha Rao", designation="PGT", subjects=["Mathematics", "Physics"]),
        Teacher(id="t2", full_name="Vikram Singh", subjects='["English", "Hindi"]'),
        Teacher(id="t3", full_name="Meera Iyer"),
    ]


@pytest.fixture
def service(slots, teachers, make_entry) -> RecordingService:
    """Service holding entries for two scopes."""
    return RecordingService(
        time_slots=slots,
        entries=[
            make_entry("e1", day="monday", start="09:00", end="10:00", teacher_id="t1", room="101"),
            make_entry("e2", day="tuesday", start="10:00", end="11:00", teacher_id="t2", subject="English"),
            make_entry("e3", day="monday", start="09:00", end="10:00", teacher_id="t2",
                       subject="English", class_name="Class 6", section="B"),
        ],
        teachers=teachers,
    )
