"""
Entry store and teacher directory.

The entry store holds the working set of timetable entries for the selected
scope. Loads are tagged with a generation number so that a fetch started for
an earlier selection can never overwrite the entries of a later one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .data.models import Scope, Teacher, TimetableEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadTicket:
    """Handle for one in-flight load."""
    scope: Scope
    generation: int


class EntryStore:
    """Working set of timetable entries, keyed by entry id."""

    def __init__(self) -> None:
        self._entries: dict[str, TimetableEntry] = {}
        self._scope: Optional[Scope] = None
        self._generation = 0

    @property
    def scope(self) -> Optional[Scope]:
        """Scope of the most recently requested load."""
        return self._scope

    @property
    def entries(self) -> list[TimetableEntry]:
        return list(self._entries.values())

    def begin_load(self, scope: Scope) -> LoadTicket:
        """Start a load; any load begun earlier becomes stale."""
        self._generation += 1
        self._scope = scope
        return LoadTicket(scope=scope, generation=self._generation)

    def is_current(self, ticket: LoadTicket) -> bool:
        return ticket.generation == self._generation

    def complete_load(self, ticket: LoadTicket, entries: Iterable[TimetableEntry]) -> bool:
        """
        Install fetched entries if the ticket is still current.

        Returns:
            True if the entries were installed, False if the load was superseded
        """
        if not self.is_current(ticket):
            logger.info(
                f"Discarding stale timetable for {ticket.scope} "
                f"(generation {ticket.generation}, current {self._generation})"
            )
            return False

        self._entries = {e.id: e for e in entries}
        logger.info(f"Loaded {len(self._entries)} entries for {ticket.scope}")
        return True

    def load(
        self,
        scope: Scope,
        fetch: Callable[[Scope], Iterable[TimetableEntry]],
    ) -> list[TimetableEntry]:
        """Replace the working set with the entries fetch returns for scope."""
        ticket = self.begin_load(scope)
        entries = list(fetch(scope))
        self.complete_load(ticket, entries)
        return self.entries

    def upsert(self, entry: TimetableEntry) -> None:
        self._entries[entry.id] = entry

    def remove(self, entry_id: str) -> None:
        self._entries.pop(entry_id, None)

    def get(self, entry_id: str) -> Optional[TimetableEntry]:
        return self._entries.get(entry_id)

    def clear(self) -> None:
        self._entries = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries


class TeacherDirectory:
    """Read-only lookup of teachers and the subjects they can teach."""

    def __init__(self, teachers: Iterable[Teacher] = ()):
        self._teachers: dict[str, Teacher] = {}
        self.load(teachers)

    def load(self, teachers: Iterable[Teacher]) -> None:
        self._teachers = {t.id: t for t in teachers}

    def get(self, teacher_id: str) -> Optional[Teacher]:
        return self._teachers.get(teacher_id)

    def name_for(self, teacher_id: str) -> Optional[str]:
        teacher = self.get(teacher_id)
        return teacher.full_name if teacher else None

    def subjects_for(self, teacher_id: str) -> frozenset[str]:
        teacher = self.get(teacher_id)
        return teacher.subjects if teacher else frozenset()

    def can_teach(self, teacher_id: str, subject_name: str) -> bool:
        """
        Whether the teacher may be booked for subject_name.

        Teachers the directory does not know, or whose subject list is empty,
        are not restricted.
        """
        subjects = self.subjects_for(teacher_id)
        return not subjects or subject_name in subjects

    def resolve_names(self, entries: Iterable[TimetableEntry]) -> list[TimetableEntry]:
        """Fill in teacher_name on entries that lack it."""
        resolved = []
        for entry in entries:
            name = self.name_for(entry.teacher_id)
            if entry.teacher_name is None and name is not None:
                entry = entry.model_copy(update={"teacher_name": name})
            resolved.append(entry)
        return resolved

    @property
    def teachers(self) -> list[Teacher]:
        return sorted(self._teachers.values(), key=lambda t: t.full_name)

    def __len__(self) -> int:
        return len(self._teachers)
