"""Data models and snapshot loading."""

from .models import (
    DEFAULT_DAYS,
    ClassName,
    Day,
    EntryDraft,
    Scope,
    Section,
    Subject,
    Teacher,
    TimeSlot,
    TimetableEntry,
)
from .loader import (
    DataValidationError,
    Snapshot,
    load_snapshot,
    parse_snapshot,
    save_snapshot,
)

__all__ = [
    # Models
    "DEFAULT_DAYS",
    "ClassName",
    "Day",
    "EntryDraft",
    "Scope",
    "Section",
    "Subject",
    "Teacher",
    "TimeSlot",
    "TimetableEntry",
    # Loader
    "DataValidationError",
    "Snapshot",
    "load_snapshot",
    "parse_snapshot",
    "save_snapshot",
]
