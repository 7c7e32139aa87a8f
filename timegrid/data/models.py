"""
Pydantic models for the timetable scheduling core.

Mirrors the JSON the school-management scheduling service speaks: field names
are camelCase on the wire and snake_case in Python (aliases handle both).

Time conventions:
- Wall-clock times are 24-hour zero-padded 'HH:MM' strings
- Lexicographic order of 'HH:MM' strings equals chronological order
- Days are lower-case weekday tokens ('monday' ... 'sunday')

Example intervals:
- 09:00-10:00 -> slot id '09:00-10:00', label '9:00 AM - 10:00 AM'
- 12:30-13:15 -> slot id '12:30-13:15', label '12:30 PM - 1:15 PM'
"""

from __future__ import annotations

import json
import re
from enum import Enum
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


# =============================================================================
# Constants and Enums
# =============================================================================

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Day(str, Enum):
    """Day of week, stored as its lower-case token."""
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def _missing_(cls, value: object) -> Optional["Day"]:
        # 'MONDAY', 'Monday' and ' monday ' all resolve to Day.MONDAY
        if isinstance(value, str):
            token = value.strip().lower()
            for member in cls:
                if member.value == token:
                    return member
        return None

    @property
    def label(self) -> str:
        """Display name, e.g. 'Monday'."""
        return self.value.capitalize()

    @property
    def short(self) -> str:
        """Three-letter abbreviation, e.g. 'Mon'."""
        return self.label[:3]


# School week shown as grid columns unless configured otherwise
DEFAULT_DAYS: tuple[Day, ...] = (
    Day.MONDAY,
    Day.TUESDAY,
    Day.WEDNESDAY,
    Day.THURSDAY,
    Day.FRIDAY,
    Day.SATURDAY,
)


class ClassName(str, Enum):
    """Classes offered by the school."""
    NURSERY = "Nursery"
    LKG = "LKG"
    UKG = "UKG"
    CLASS_1 = "Class 1"
    CLASS_2 = "Class 2"
    CLASS_3 = "Class 3"
    CLASS_4 = "Class 4"
    CLASS_5 = "Class 5"
    CLASS_6 = "Class 6"
    CLASS_7 = "Class 7"
    CLASS_8 = "Class 8"
    CLASS_9 = "Class 9"
    CLASS_10 = "Class 10"
    CLASS_11_SCIENCE = "Class 11 (Science)"
    CLASS_11_COMMERCE = "Class 11 (Commerce)"
    CLASS_11_ARTS = "Class 11 (Arts)"
    CLASS_12_SCIENCE = "Class 12 (Science)"
    CLASS_12_COMMERCE = "Class 12 (Commerce)"
    CLASS_12_ARTS = "Class 12 (Arts)"


class Section(str, Enum):
    """Sections within a class."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"


class Subject(str, Enum):
    """Subjects that can be timetabled."""
    MATHEMATICS = "Mathematics"
    SCIENCE = "Science"
    ENGLISH = "English"
    SOCIAL_STUDIES = "Social Studies"
    HINDI = "Hindi"
    COMPUTER_SCIENCE = "Computer Science"
    PHYSICAL_EDUCATION = "Physical Education"
    ART = "Art"
    MUSIC = "Music"
    ECONOMICS = "Economics"
    BUSINESS_STUDIES = "Business Studies"
    ACCOUNTANCY = "Accountancy"
    HISTORY = "History"
    GEOGRAPHY = "Geography"
    POLITICAL_SCIENCE = "Political Science"
    SOCIOLOGY = "Sociology"
    PSYCHOLOGY = "Psychology"
    BIOLOGY = "Biology"
    PHYSICS = "Physics"
    CHEMISTRY = "Chemistry"


# =============================================================================
# Helper Functions
# =============================================================================

def minutes_to_time(minutes: int) -> str:
    """Convert minutes from midnight to HH:MM format."""
    h, m = divmod(minutes, 60)
    return f"{h:02d}:{m:02d}"


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM format to minutes from midnight."""
    h, m = map(int, time_str.split(":"))
    return h * 60 + m


def format_12h(time_str: str) -> str:
    """Render 'HH:MM' as 12-hour clock time, e.g. '13:05' -> '1:05 PM'."""
    hours, minutes = time_str.split(":")
    hour = int(hours)
    ampm = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minutes} {ampm}"


def make_slot_id(start_time: str, end_time: str) -> str:
    """Deterministic slot id for an interval."""
    return f"{start_time}-{end_time}"


def make_slot_label(start_time: str, end_time: str) -> str:
    """Human-readable 12-hour label for an interval."""
    return f"{format_12h(start_time)} - {format_12h(end_time)}"


def normalize_time(value: Any) -> Any:
    """Trim seconds from 'HH:MM:SS' and zero-pad 'H:MM'; leave other input to validation."""
    if isinstance(value, str):
        value = value.strip()
        parts = value.split(":")
        if len(parts) == 3:
            parts = parts[:2]
        if len(parts) == 2 and parts[0].isdigit() and len(parts[0]) == 1:
            parts[0] = "0" + parts[0]
        value = ":".join(parts)
    return value


def _check_time(value: str) -> str:
    if not TIME_PATTERN.match(value):
        raise ValueError(f"time '{value}' must be in 24-hour HH:MM format")
    return value


# =============================================================================
# Core Entity Models
# =============================================================================

class TimeSlot(BaseModel):
    """
    A row of the weekly grid: the half-open interval [start_time, end_time).

    The id is always derived from the interval, so two slots describing the
    same times are the same slot regardless of what the service calls them.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(description="Derived identifier 'HH:MM-HH:MM'")
    start_time: str = Field(alias="startTime", description="Start time HH:MM")
    end_time: str = Field(alias="endTime", description="End time HH:MM")
    label: str = Field(default="", description="12-hour display label")

    @model_validator(mode="before")
    @classmethod
    def derive_identity(cls, data: Any) -> Any:
        """Derive id (and label when missing) from the interval."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        start = normalize_time(data.get("start_time", data.get("startTime")))
        end = normalize_time(data.get("end_time", data.get("endTime")))
        for key in ("startTime", "endTime"):
            data.pop(key, None)
        data["start_time"] = start
        data["end_time"] = end
        if isinstance(start, str) and isinstance(end, str):
            data["id"] = make_slot_id(start, end)
            if not data.get("label") and TIME_PATTERN.match(start) and TIME_PATTERN.match(end):
                data["label"] = make_slot_label(start, end)
        return data

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)

    @model_validator(mode="after")
    def validate_time_range(self) -> "TimeSlot":
        """Ensure start time is before end time."""
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start_time ({self.start_time}) must be before "
                f"end_time ({self.end_time})"
            )
        return self

    @classmethod
    def of(cls, start_time: str, end_time: str) -> "TimeSlot":
        """Build a slot from its interval."""
        return cls(start_time=start_time, end_time=end_time)

    @property
    def duration_minutes(self) -> int:
        return time_to_minutes(self.end_time) - time_to_minutes(self.start_time)

    def __str__(self) -> str:
        return self.label


class Teacher(BaseModel):
    """Teacher as listed by the scheduling service's teacher directory."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, description="Unique identifier")
    full_name: str = Field(alias="fullName", min_length=1, description="Full name")
    designation: Optional[str] = Field(default=None, description="Job title")
    subjects: frozenset[str] = Field(default_factory=frozenset, description="Subjects this teacher can teach")

    @model_validator(mode="before")
    @classmethod
    def accept_name_alias(cls, data: Any) -> Any:
        # The directory endpoint sends 'name', the teacher profile sends 'fullName'
        if isinstance(data, dict) and "fullName" not in data and "full_name" not in data and "name" in data:
            data = dict(data)
            data["fullName"] = data.pop("name")
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("subjects", mode="before")
    @classmethod
    def decode_subjects(cls, v: Any) -> Any:
        """Subjects arrive either as a list or as a JSON-encoded list string."""
        if v is None:
            return frozenset()
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return frozenset()
            try:
                decoded = json.loads(v)
            except json.JSONDecodeError:
                decoded = [s.strip() for s in v.split(",") if s.strip()]
            v = [decoded] if isinstance(decoded, str) else decoded
        return frozenset(v)

    def can_teach(self, subject_name: str) -> bool:
        return subject_name in self.subjects

    def __str__(self) -> str:
        return f"{self.full_name} ({self.designation or self.id})"


class TimetableEntry(BaseModel):
    """A teacher/subject/room booked into one day and interval for a class/section."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, description="Identifier assigned by the service")
    class_name: str = Field(alias="className", description="Class name")
    section: str = Field(description="Section")
    subject_name: str = Field(alias="subjectName", description="Subject name")
    teacher_id: str = Field(alias="teacherId", min_length=1, description="Teacher ID")
    day: Day = Field(description="Day of week")
    start_time: str = Field(alias="startTime", description="Start time HH:MM")
    end_time: str = Field(alias="endTime", description="End time HH:MM")
    room_number: Optional[str] = Field(default=None, alias="roomNumber", description="Room")
    teacher_name: Optional[str] = Field(default=None, alias="teacherName", description="Resolved teacher name")

    @model_validator(mode="before")
    @classmethod
    def flatten_embedded_teacher(cls, data: Any) -> Any:
        """Lift the name out of an embedded 'teacher' object."""
        if isinstance(data, dict) and isinstance(data.get("teacher"), dict):
            data = dict(data)
            teacher = data.pop("teacher")
            if not data.get("teacherName") and not data.get("teacher_name"):
                data["teacherName"] = teacher.get("fullName") or teacher.get("name")
            if "teacherId" not in data and "teacher_id" not in data and "id" in teacher:
                data["teacherId"] = teacher["id"]
        return data

    @field_validator("id", "teacher_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> Any:
        return normalize_time(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)

    @field_validator("room_number", mode="before")
    @classmethod
    def blank_room_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def slot_id(self) -> str:
        """Id of the time slot this entry renders in."""
        return make_slot_id(self.start_time, self.end_time)

    def in_scope(self, scope: "Scope") -> bool:
        return self.class_name == scope.class_name.value and self.section == scope.section.value

    def __str__(self) -> str:
        room = f" in {self.room_number}" if self.room_number else ""
        teacher = self.teacher_name or self.teacher_id
        return (
            f"{self.subject_name} ({teacher}) {self.day.label} "
            f"{self.start_time}-{self.end_time}{room}"
        )


class Scope(BaseModel):
    """The (class, section) pair whose timetable is loaded at one time."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    class_name: ClassName = Field(alias="className")
    section: Section

    def __str__(self) -> str:
        return f"{self.class_name.value}-{self.section.value}"


class EntryDraft(BaseModel):
    """Payload for creating or updating a timetable entry."""
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    class_name: ClassName = Field(alias="className")
    section: Section
    subject_name: Subject = Field(alias="subjectName")
    teacher_id: str = Field(alias="teacherId", min_length=1)
    day: Day
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    room_number: Optional[str] = Field(default=None, alias="roomNumber")

    @field_validator("teacher_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> Any:
        return normalize_time(v)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _check_time(v)

    @model_validator(mode="after")
    def validate_time_range(self) -> "EntryDraft":
        if self.start_time >= self.end_time:
            raise ValueError(
                f"start_time ({self.start_time}) must be before "
                f"end_time ({self.end_time})"
            )
        return self

    @property
    def scope(self) -> Scope:
        return Scope(class_name=self.class_name, section=self.section)

    def to_payload(self) -> dict[str, Any]:
        """
        Serialize for transmission.

        The day goes out as its lower-case token; numeric teacher ids go out
        as integers, as the service stores them.
        """
        payload = self.model_dump(by_alias=True, mode="json")
        payload["day"] = self.day.value.lower()
        if self.teacher_id.isdigit():
            payload["teacherId"] = int(self.teacher_id)
        if payload.get("roomNumber") is None:
            payload["roomNumber"] = ""
        return payload
