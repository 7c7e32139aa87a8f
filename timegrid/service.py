"""
Client for the external scheduling service.

The core only depends on the SchedulingService protocol; HttpSchedulingService
is the HTTP/JSON implementation used in production.

Endpoints (relative to the configured base URL):
    GET    /timetable/time-slots
    GET    /timetable/class/{className}/section/{section}
    GET    /timetable/teachers
    POST   /timetable
    PUT    /timetable/{id}
    DELETE /timetable/{id}
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Optional, Protocol, TypeVar
from urllib.parse import quote

import requests
from pydantic import BaseModel, ValidationError

from .config import CoreConfig
from .data.models import EntryDraft, Scope, Teacher, TimeSlot, TimetableEntry
from .errors import (
    GENERIC_REMOTE_MESSAGE,
    AuthMissingError,
    RemoteRejectionError,
    TransportError,
)
from .session import Session

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SchedulingService(Protocol):
    """Operations the scheduling core consumes."""

    def time_slots(self) -> list[TimeSlot]: ...

    def timetable(self, scope: Scope) -> list[TimetableEntry]: ...

    def teachers_with_subjects(self) -> list[Teacher]: ...

    def create_entry(self, draft: EntryDraft) -> TimetableEntry: ...

    def update_entry(self, entry_id: str, draft: EntryDraft) -> TimetableEntry: ...

    def delete_entry(self, entry_id: str) -> None: ...


class HttpSchedulingService:
    """SchedulingService over HTTP/JSON with bearer authentication."""

    def __init__(
        self,
        config: CoreConfig,
        session: Session,
        http: Optional[requests.Session] = None,
    ):
        self.config = config
        self.session = session
        self.http = http or requests.Session()

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def time_slots(self) -> list[TimeSlot]:
        return _parse_list(TimeSlot, self._request("GET", "/timetable/time-slots"))

    def timetable(self, scope: Scope) -> list[TimetableEntry]:
        path = (
            f"/timetable/class/{quote(scope.class_name.value, safe='')}"
            f"/section/{quote(scope.section.value, safe='')}"
        )
        return _parse_list(TimetableEntry, self._request("GET", path))

    def teachers_with_subjects(self) -> list[Teacher]:
        return _parse_list(Teacher, self._request("GET", "/timetable/teachers"))

    def create_entry(self, draft: EntryDraft) -> TimetableEntry:
        data = self._request("POST", "/timetable", payload=draft.to_payload())
        return _parse_one(TimetableEntry, data)

    def update_entry(self, entry_id: str, draft: EntryDraft) -> TimetableEntry:
        data = self._request(
            "PUT", f"/timetable/{quote(entry_id, safe='')}", payload=draft.to_payload()
        )
        return _parse_one(TimetableEntry, data)

    def delete_entry(self, entry_id: str) -> None:
        self._request("DELETE", f"/timetable/{quote(entry_id, safe='')}")

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        headers = {
            "Authorization": self.session.bearer(),
            "Accept": "application/json",
        }
        url = f"{self.config.base_url}{path}"
        logger.debug(f"{method} {url}")

        try:
            response = self.http.request(
                method,
                url,
                headers=headers,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.Timeout as e:
            logger.warning(f"{method} {url} timed out: {e}")
            raise TransportError("The scheduling service did not respond in time. Please try again.") from e
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise TransportError() from e

        if response.status_code == 401:
            self.session.invalidate()
            raise AuthMissingError()

        if not response.ok:
            message = _error_message(response)
            logger.warning(f"{method} {url} rejected ({response.status_code}): {message}")
            raise RemoteRejectionError(message, status=response.status_code)

        if response.status_code == 204 or not response.content:
            return None

        try:
            body = response.json()
        except ValueError as e:
            raise TransportError("The scheduling service returned an unreadable response.") from e

        return _unwrap(body)


class InMemorySchedulingService:
    """
    SchedulingService backed by in-memory lists, e.g. a loaded snapshot.

    Behaves like the real service for the operations the core uses: new
    entries get a generated id and unknown ids are rejected with 404.
    """

    def __init__(
        self,
        time_slots: Iterable[TimeSlot] = (),
        entries: Iterable[TimetableEntry] = (),
        teachers: Iterable[Teacher] = (),
    ):
        self.slots = list(time_slots)
        self.entries: dict[str, TimetableEntry] = {e.id: e for e in entries}
        self.teachers = list(teachers)

    def time_slots(self) -> list[TimeSlot]:
        return list(self.slots)

    def timetable(self, scope: Scope) -> list[TimetableEntry]:
        return [e for e in self.entries.values() if e.in_scope(scope)]

    def teachers_with_subjects(self) -> list[Teacher]:
        return list(self.teachers)

    def create_entry(self, draft: EntryDraft) -> TimetableEntry:
        entry = _entry_from_draft(str(uuid.uuid4()), draft)
        self.entries[entry.id] = entry
        return entry

    def update_entry(self, entry_id: str, draft: EntryDraft) -> TimetableEntry:
        if entry_id not in self.entries:
            raise RemoteRejectionError("Timetable entry not found", status=404)
        entry = _entry_from_draft(entry_id, draft)
        self.entries[entry_id] = entry
        return entry

    def delete_entry(self, entry_id: str) -> None:
        if self.entries.pop(entry_id, None) is None:
            raise RemoteRejectionError("Timetable entry not found", status=404)


def _entry_from_draft(entry_id: str, draft: EntryDraft) -> TimetableEntry:
    return TimetableEntry(
        id=entry_id,
        class_name=draft.class_name.value,
        section=draft.section.value,
        subject_name=draft.subject_name.value,
        teacher_id=draft.teacher_id,
        day=draft.day,
        start_time=draft.start_time,
        end_time=draft.end_time,
        room_number=draft.room_number,
    )


# =============================================================================
# Response Helpers
# =============================================================================

def _error_message(response: requests.Response) -> str:
    """The body's 'message' field, or a generic message."""
    try:
        body = response.json()
    except ValueError:
        return GENERIC_REMOTE_MESSAGE
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return GENERIC_REMOTE_MESSAGE


def _unwrap(body: Any) -> Any:
    """Strip the {'success': ..., 'data': ...} envelope when present."""
    if isinstance(body, dict) and "success" in body:
        if body["success"] is False:
            message = body.get("message")
            raise RemoteRejectionError(message if isinstance(message, str) and message else GENERIC_REMOTE_MESSAGE)
        return body.get("data")
    return body


def _parse_list(model: type[ModelT], data: Any) -> list[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TransportError(f"Expected a list of {model.__name__} from the scheduling service")
    try:
        return [model.model_validate(item) for item in data]
    except ValidationError as e:
        logger.warning(f"Malformed {model.__name__} payload: {e}")
        raise TransportError(f"The scheduling service sent malformed {model.__name__} data.") from e


def _parse_one(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Malformed {model.__name__} payload: {e}")
        raise TransportError(f"The scheduling service sent malformed {model.__name__} data.") from e
