"""
Error types raised by the scheduling core.

Every error carries an ErrorKind so the mutation workflow can turn it into a
user-facing notification without inspecting exception classes.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from timegrid.data.models import TimeSlot


GENERIC_REMOTE_MESSAGE = "An error occurred"
GENERIC_TRANSPORT_MESSAGE = "Network error. Please check your connection and try again."
AUTH_MISSING_MESSAGE = "Authentication failed. Please log in again."


class ErrorKind(str, Enum):
    """Category of a scheduling failure."""
    INVALID_INTERVAL = "invalid_interval"
    SLOT_CONFLICT = "slot_conflict"
    TRANSPORT = "transport"
    REMOTE_REJECTION = "remote_rejection"
    AUTH_MISSING = "auth_missing"
    INVALID_DRAFT = "invalid_draft"


class SchedulingError(Exception):
    """Base class for all scheduling core errors."""
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidIntervalError(SchedulingError):
    """Raised when a time slot's start is not before its end."""
    kind = ErrorKind.INVALID_INTERVAL

    def __init__(self, start_time: str, end_time: str):
        super().__init__(
            f"start time ({start_time}) must be before end time ({end_time})"
        )
        self.start_time = start_time
        self.end_time = end_time


class InvalidTimeFormatError(InvalidIntervalError):
    """Raised when a time is not a 24-hour 'HH:MM' value."""

    def __init__(self, value: object, start_time: str = "", end_time: str = ""):
        SchedulingError.__init__(self, f"time '{value}' must be in 24-hour HH:MM format")
        self.value = value
        self.start_time = start_time
        self.end_time = end_time


class SlotConflictError(SchedulingError):
    """Raised when a candidate slot overlaps an existing one."""
    kind = ErrorKind.SLOT_CONFLICT

    def __init__(self, start_time: str, end_time: str, conflicting: TimeSlot):
        super().__init__(
            f"Time slot {start_time}-{end_time} overlaps existing slot "
            f"{conflicting.start_time}-{conflicting.end_time}"
        )
        self.start_time = start_time
        self.end_time = end_time
        self.conflicting = conflicting


class TransportError(SchedulingError):
    """Network failure or unreadable response from the scheduling service."""
    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str = GENERIC_TRANSPORT_MESSAGE):
        super().__init__(message)


class RemoteRejectionError(SchedulingError):
    """The scheduling service answered with an error response."""
    kind = ErrorKind.REMOTE_REJECTION

    def __init__(self, message: str = GENERIC_REMOTE_MESSAGE, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class AuthMissingError(SchedulingError):
    """No usable credential: none was supplied, or the service refused it."""
    kind = ErrorKind.AUTH_MISSING

    def __init__(self, message: str = AUTH_MISSING_MESSAGE):
        super().__init__(message)


class InvalidDraftError(SchedulingError):
    """An entry draft is incomplete or inconsistent with the teacher directory."""
    kind = ErrorKind.INVALID_DRAFT
