"""Tests for Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from timegrid.data.models import (
    ClassName,
    Day,
    EntryDraft,
    Scope,
    Section,
    Subject,
    Teacher,
    TimeSlot,
    TimetableEntry,
    format_12h,
    make_slot_id,
    minutes_to_time,
    normalize_time,
    time_to_minutes,
)


class TestTimeHelpers:
    """Tests for time conversion helpers."""

    def test_minutes_to_time(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(540) == "09:00"
        assert minutes_to_time(750) == "12:30"
        assert minutes_to_time(1439) == "23:59"

    def test_time_to_minutes(self):
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("09:00") == 540
        assert time_to_minutes("12:30") == 750
        assert time_to_minutes("23:59") == 1439

    def test_format_12h(self):
        assert format_12h("00:05") == "12:05 AM"
        assert format_12h("09:00") == "9:00 AM"
        assert format_12h("12:00") == "12:00 PM"
        assert format_12h("13:45") == "1:45 PM"

    def test_normalize_time(self):
        assert normalize_time("09:00:00") == "09:00"
        assert normalize_time("9:30") == "09:30"
        assert normalize_time(" 10:15 ") == "10:15"


class TestDay:
    """Tests for the Day enumeration."""

    def test_case_insensitive_lookup(self):
        assert Day("MONDAY") is Day.MONDAY
        assert Day("Monday") is Day.MONDAY
        assert Day(" friday ") is Day.FRIDAY

    def test_unknown_day(self):
        with pytest.raises(ValueError):
            Day("funday")

    def test_labels(self):
        assert Day.WEDNESDAY.label == "Wednesday"
        assert Day.WEDNESDAY.short == "Wed"


class TestTimeSlot:
    """Tests for TimeSlot model."""

    def test_id_derived_from_interval(self):
        slot = TimeSlot.of("09:00", "10:00")
        assert slot.id == "09:00-10:00"
        assert slot.id == make_slot_id("09:00", "10:00")

    def test_service_id_is_replaced(self):
        slot = TimeSlot.model_validate({"id": "slot-7", "startTime": "09:00", "endTime": "10:00"})
        assert slot.id == "09:00-10:00"

    def test_identical_intervals_collapse(self):
        a = TimeSlot.model_validate({"id": "a", "startTime": "09:00", "endTime": "10:00"})
        b = TimeSlot.model_validate({"id": "b", "startTime": "09:00", "endTime": "10:00"})
        assert a == b

    def test_label_generated(self):
        slot = TimeSlot.of("12:30", "13:15")
        assert slot.label == "12:30 PM - 1:15 PM"

    def test_label_kept_when_given(self):
        slot = TimeSlot.model_validate({"startTime": "09:00", "endTime": "10:00", "label": "Period 1"})
        assert slot.label == "Period 1"

    def test_seconds_are_trimmed(self):
        slot = TimeSlot.model_validate({"startTime": "09:00:00", "endTime": "10:00:00"})
        assert slot.start_time == "09:00"
        assert slot.id == "09:00-10:00"

    def test_invalid_time_range(self):
        with pytest.raises(ValidationError, match="must be before"):
            TimeSlot.of("10:00", "09:00")

    def test_equal_start_end(self):
        with pytest.raises(ValidationError):
            TimeSlot.of("09:00", "09:00")

    def test_bad_format(self):
        with pytest.raises(ValidationError):
            TimeSlot.of("25:00", "26:00")

    def test_duration(self):
        assert TimeSlot.of("11:15", "12:00").duration_minutes == 45


class TestTeacher:
    """Tests for Teacher model."""

    def test_minimal_teacher(self):
        teacher = Teacher(id="t1", full_name="Asha Rao")
        assert teacher.subjects == frozenset()
        assert teacher.designation is None

    def test_numeric_id_and_camel_case(self):
        teacher = Teacher.model_validate({"id": 7, "fullName": "Asha Rao"})
        assert teacher.id == "7"
        assert teacher.full_name == "Asha Rao"

    def test_name_field_accepted(self):
        teacher = Teacher.model_validate({"id": "t1", "name": "Asha Rao", "subjects": []})
        assert teacher.full_name == "Asha Rao"

    def test_subjects_from_json_string(self):
        teacher = Teacher.model_validate(
            {"id": "t1", "fullName": "Asha Rao", "subjects": '["Mathematics", "Physics"]'}
        )
        assert teacher.subjects == {"Mathematics", "Physics"}
        assert teacher.can_teach("Physics")
        assert not teacher.can_teach("Art")

    def test_subjects_from_comma_string(self):
        teacher = Teacher(id="t1", full_name="Asha Rao", subjects="Mathematics, Physics")
        assert teacher.subjects == {"Mathematics", "Physics"}

    def test_empty_subject_string(self):
        teacher = Teacher(id="t1", full_name="Asha Rao", subjects="")
        assert teacher.subjects == frozenset()


class TestTimetableEntry:
    """Tests for TimetableEntry model."""

    def test_from_service_payload(self):
        entry = TimetableEntry.model_validate({
            "id": "e1",
            "className": "Class 5",
            "section": "A",
            "subjectName": "Mathematics",
            "teacherId": 7,
            "day": "MONDAY",
            "startTime": "09:00",
            "endTime": "10:00",
            "roomNumber": "101",
            "isMyClass": True,
        })
        assert entry.teacher_id == "7"
        assert entry.day is Day.MONDAY
        assert entry.room_number == "101"
        assert entry.slot_id == "09:00-10:00"

    def test_embedded_teacher_name(self):
        entry = TimetableEntry.model_validate({
            "id": "e1",
            "className": "Class 5",
            "section": "A",
            "subjectName": "Mathematics",
            "teacherId": 7,
            "day": "monday",
            "startTime": "09:00",
            "endTime": "10:00",
            "teacher": {"id": 7, "fullName": "Asha Rao"},
        })
        assert entry.teacher_name == "Asha Rao"

    def test_blank_room_is_none(self):
        entry = TimetableEntry(
            id="e1", class_name="Class 5", section="A", subject_name="Art",
            teacher_id="t1", day="friday", start_time="09:00", end_time="10:00",
            room_number="  ",
        )
        assert entry.room_number is None

    def test_in_scope(self):
        entry = TimetableEntry(
            id="e1", class_name="Class 5", section="A", subject_name="Art",
            teacher_id="t1", day="friday", start_time="09:00", end_time="10:00",
        )
        assert entry.in_scope(Scope(class_name="Class 5", section="A"))
        assert not entry.in_scope(Scope(class_name="Class 5", section="B"))

    def test_serializes_with_aliases(self):
        entry = TimetableEntry(
            id="e1", class_name="Class 5", section="A", subject_name="Art",
            teacher_id="t1", day="friday", start_time="09:00", end_time="10:00",
        )
        data = entry.model_dump(by_alias=True, mode="json")
        assert data["className"] == "Class 5"
        assert data["day"] == "friday"


class TestScope:
    """Tests for Scope model."""

    def test_valid_scope(self):
        scope = Scope(class_name="Class 11 (Science)", section="C")
        assert scope.class_name is ClassName.CLASS_11_SCIENCE
        assert scope.section is Section.C
        assert str(scope) == "Class 11 (Science)-C"

    def test_unknown_class(self):
        with pytest.raises(ValidationError):
            Scope(class_name="Class 13", section="A")

    def test_unknown_section(self):
        with pytest.raises(ValidationError):
            Scope(class_name="Class 5", section="Z")


class TestEntryDraft:
    """Tests for EntryDraft model."""

    def _draft(self, **overrides) -> EntryDraft:
        fields = dict(
            class_name="Class 5",
            section="A",
            subject_name="Mathematics",
            teacher_id="7",
            day="MONDAY",
            start_time="09:00",
            end_time="10:00",
        )
        fields.update(overrides)
        return EntryDraft(**fields)

    def test_payload_day_is_lower_case(self):
        payload = self._draft().to_payload()
        assert payload["day"] == "monday"

    def test_payload_uses_camel_case(self):
        payload = self._draft(room_number="101").to_payload()
        assert payload == {
            "className": "Class 5",
            "section": "A",
            "subjectName": "Mathematics",
            "teacherId": 7,
            "day": "monday",
            "startTime": "09:00",
            "endTime": "10:00",
            "roomNumber": "101",
        }

    def test_non_numeric_teacher_id_kept(self):
        assert self._draft(teacher_id="t1").to_payload()["teacherId"] == "t1"

    def test_missing_room_sent_empty(self):
        assert self._draft().to_payload()["roomNumber"] == ""

    def test_unknown_subject_rejected(self):
        with pytest.raises(ValidationError):
            self._draft(subject_name="Astrology")

    def test_subject_enum(self):
        assert self._draft().subject_name is Subject.MATHEMATICS

    def test_scope(self):
        assert self._draft().scope == Scope(class_name="Class 5", section="A")

    def test_invalid_interval(self):
        with pytest.raises(ValidationError):
            self._draft(start_time="10:00", end_time="09:00")
