"""
Entry mutation workflow.

Create, update and delete requests go to the scheduling service first; the
local entry store only changes after the service accepted the change, and is
then refreshed from the service. Every failure is turned into a
MutationResult carrying a user-facing notification; nothing is retried.

States: IDLE -> SUBMITTING -> SUCCESS | FAILED
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from .conflicts import ConflictEngine
from .data.models import Day, EntryDraft, Scope, Subject, TimeSlot, TimetableEntry
from .errors import ErrorKind, InvalidDraftError, SchedulingError
from .service import SchedulingService
from .store import EntryStore, TeacherDirectory

logger = logging.getLogger(__name__)

# Fields a caller may change through update()
EDITABLE_FIELDS = (
    "class_name", "section", "subject_name", "teacher_id",
    "day", "start_time", "end_time", "room_number",
)


class MutationState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class Severity(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """Transient message for the user."""
    message: str
    severity: Severity = Severity.SUCCESS


@dataclass
class MutationResult:
    """Outcome of one create/update/delete."""
    state: MutationState
    notification: Notification
    entry: Optional[TimetableEntry] = None
    error_kind: Optional[ErrorKind] = None
    warnings: list[Notification] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is MutationState.SUCCESS


class EntryMutationWorkflow:
    """Orchestrates entry mutations against the service and the local store."""

    def __init__(
        self,
        service: SchedulingService,
        store: EntryStore,
        directory: TeacherDirectory,
        engine: ConflictEngine,
        refresh: Callable[[Scope], Any],
    ):
        self.service = service
        self.store = store
        self.directory = directory
        self.engine = engine
        self.refresh = refresh
        self.state = MutationState.IDLE

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def create(
        self,
        scope: Scope,
        slot: TimeSlot,
        day: Union[Day, str],
        subject_name: Optional[str],
        teacher_id: Optional[str],
        room_number: Optional[str] = None,
    ) -> MutationResult:
        """Book a teacher and subject into the (slot, day) cell of scope."""
        try:
            draft = self._build_draft(
                class_name=scope.class_name,
                section=scope.section,
                subject_name=subject_name,
                teacher_id=teacher_id,
                day=day,
                start_time=slot.start_time,
                end_time=slot.end_time,
                room_number=room_number,
            )
        except InvalidDraftError as e:
            return self._fail(e, "create")

        warnings = self._double_booking_warnings(draft, excluding_id=None)
        return self._submit(
            "create",
            lambda: self.service.create_entry(draft),
            scope,
            "Timetable entry added successfully!",
            warnings,
        )

    def update(self, entry_id: str, **changes: Any) -> MutationResult:
        """Apply changes to a stored entry; day is sent lower-case."""
        try:
            existing = self.store.get(entry_id)
            if existing is None:
                raise InvalidDraftError(f"Timetable entry {entry_id} is not loaded")
            unknown = set(changes) - set(EDITABLE_FIELDS)
            if unknown:
                raise InvalidDraftError(f"Cannot change field(s): {', '.join(sorted(unknown))}")

            fields = {name: getattr(existing, name) for name in EDITABLE_FIELDS}
            fields.update(changes)
            if isinstance(fields["day"], str):
                fields["day"] = fields["day"].lower()
            draft = self._build_draft(**fields)
        except InvalidDraftError as e:
            return self._fail(e, "update")

        warnings = self._double_booking_warnings(draft, excluding_id=entry_id)
        return self._submit(
            "update",
            lambda: self.service.update_entry(entry_id, draft),
            self.store.scope or draft.scope,
            "Timetable entry updated successfully!",
            warnings,
        )

    def delete(self, entry_id: str) -> MutationResult:
        existing = self.store.get(entry_id)
        scope = self.store.scope
        if scope is None and existing is not None:
            try:
                scope = Scope(class_name=existing.class_name, section=existing.section)
            except ValidationError:
                scope = None

        return self._submit(
            "delete",
            lambda: self.service.delete_entry(entry_id),
            scope,
            "Timetable entry deleted successfully!",
            [],
            deleted_id=entry_id,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _build_draft(self, **fields: Any) -> EntryDraft:
        teacher_id = fields.get("teacher_id")
        subject_name = fields.get("subject_name")
        if not teacher_id or not subject_name:
            raise InvalidDraftError("Please select both a teacher and a subject")

        subject_value = getattr(subject_name, "value", subject_name)
        try:
            Subject(subject_value)
        except ValueError:
            raise InvalidDraftError(f"Unknown subject: {subject_value}") from None

        teacher_id = str(teacher_id)
        if not self.directory.can_teach(teacher_id, subject_value):
            name = self.directory.name_for(teacher_id) or teacher_id
            raise InvalidDraftError(f"{name} is not assigned to teach {subject_value}")

        fields["teacher_id"] = teacher_id
        try:
            return EntryDraft(**fields)
        except ValidationError as e:
            problems = "; ".join(err["msg"] for err in e.errors())
            raise InvalidDraftError(f"Invalid timetable entry: {problems}") from e

    def _double_booking_warnings(
        self,
        draft: EntryDraft,
        excluding_id: Optional[str],
    ) -> list[Notification]:
        clashes = self.engine.overlapping_entries(
            draft.day,
            draft.start_time,
            draft.end_time,
            scope=draft.scope,
            excluding_id=excluding_id,
        )
        return [
            Notification(
                f"{draft.scope} already has {e.subject_name} on {e.day.label} "
                f"{e.start_time}-{e.end_time}",
                Severity.WARNING,
            )
            for e in clashes
        ]

    def _submit(
        self,
        action: str,
        call: Callable[[], Optional[TimetableEntry]],
        scope: Optional[Scope],
        success_message: str,
        warnings: list[Notification],
        deleted_id: Optional[str] = None,
    ) -> MutationResult:
        self.state = MutationState.SUBMITTING
        try:
            entry = call()
        except SchedulingError as e:
            return self._fail(e, action)

        if entry is not None:
            entry = self.directory.resolve_names([entry])[0]
            if scope is not None and entry.in_scope(scope):
                self.store.upsert(entry)
            else:
                self.store.remove(entry.id)
        if deleted_id is not None:
            self.store.remove(deleted_id)

        if scope is not None:
            try:
                self.refresh(scope)
            except SchedulingError as e:
                logger.warning(f"Refresh after {action} failed: {e.message}")
                warnings = warnings + [Notification(
                    f"Saved, but the timetable could not be reloaded: {e.message}",
                    Severity.WARNING,
                )]

        self.state = MutationState.SUCCESS
        logger.info(f"Timetable {action} succeeded" + (f" ({entry.id})" if entry else ""))
        return MutationResult(
            state=self.state,
            notification=Notification(success_message, Severity.SUCCESS),
            entry=entry,
            warnings=warnings,
        )

    def _fail(self, error: SchedulingError, action: str) -> MutationResult:
        self.state = MutationState.FAILED
        logger.warning(f"Timetable {action} failed [{error.kind.value}]: {error.message}")
        return MutationResult(
            state=self.state,
            notification=Notification(error.message, Severity.ERROR),
            error_kind=error.kind,
        )
