"""Load and validate timetable snapshots from JSON files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import Teacher, TimeSlot, TimetableEntry

logger = logging.getLogger(__name__)


class DataValidationError(Exception):
    """Raised when snapshot data fails validation."""
    pass


class Snapshot(BaseModel):
    """Everything the scheduling service would return, captured in one file."""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    time_slots: list[TimeSlot] = Field(default_factory=list, alias="timeSlots")
    entries: list[TimetableEntry] = Field(default_factory=list)
    teachers: list[Teacher] = Field(default_factory=list)

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(by_alias=True, indent=indent, exclude_none=True)


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """
    Load a snapshot from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Validated snapshot

    Raises:
        FileNotFoundError: If the file doesn't exist
        json.JSONDecodeError: If the file isn't valid JSON
        DataValidationError: If the data fails validation
    """
    path = Path(path)

    with open(path) as f:
        data = json.load(f)

    snapshot = parse_snapshot(data)
    logger.info(
        f"Loaded snapshot {path}: {len(snapshot.time_slots)} slots, "
        f"{len(snapshot.entries)} entries, {len(snapshot.teachers)} teachers"
    )
    return snapshot


def parse_snapshot(data: Any) -> Snapshot:
    """
    Validate snapshot structure and references.

    Accepts 'timetable' as a synonym for 'entries'.

    Raises:
        DataValidationError: If validation fails
    """
    if not isinstance(data, dict):
        raise DataValidationError("Snapshot must be a JSON object")

    data = dict(data)
    if "timetable" in data and "entries" not in data:
        data["entries"] = data.pop("timetable")

    try:
        snapshot = Snapshot.model_validate(data)
    except ValidationError as e:
        raise DataValidationError(str(e)) from e

    errors = []

    def check_duplicates(ids: list[str], name: str):
        seen = set()
        for id_ in ids:
            if id_ in seen:
                errors.append(f"Duplicate {name} ID: {id_}")
            seen.add(id_)

    check_duplicates([e.id for e in snapshot.entries], "entry")
    check_duplicates([t.id for t in snapshot.teachers], "teacher")

    if snapshot.teachers:
        teacher_ids = {t.id for t in snapshot.teachers}
        for entry in snapshot.entries:
            if entry.teacher_id not in teacher_ids:
                errors.append(f"Entry {entry.id} references unknown teacher: {entry.teacher_id}")

    if errors:
        raise DataValidationError("; ".join(errors))

    return snapshot


def save_snapshot(snapshot: Snapshot, path: Union[str, Path]) -> Path:
    """Write a snapshot to disk, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(snapshot.to_json())
    return path
