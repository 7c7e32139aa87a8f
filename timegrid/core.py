"""
Scheduling core for one selected class/section.

Wires the time slot registry, entry store, teacher directory, conflict engine
and mutation workflow around a SchedulingService, and projects the result
into a TimetableGrid.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from .config import CoreConfig, SlotSource
from .conflicts import ConflictEngine
from .data.models import Day, Scope, TimeSlot, TimetableEntry
from .output.grid import TimetableGrid, project
from .registry import TimeSlotRegistry
from .service import SchedulingService
from .store import EntryStore, TeacherDirectory
from .workflow import EntryMutationWorkflow

logger = logging.getLogger(__name__)


class SchedulingCore:
    """
    Timetable state for the currently selected scope.

    Typical use:
        core = SchedulingCore(service)
        core.load_reference_data()
        core.select_scope(Scope(class_name="Class 5", section="A"))
        grid = core.grid()
    """

    def __init__(self, service: SchedulingService, config: Optional[CoreConfig] = None):
        self.service = service
        self.config = config or CoreConfig()
        self.registry = TimeSlotRegistry()
        self.store = EntryStore()
        self.directory = TeacherDirectory()
        self.engine = ConflictEngine(self.registry, self.store)
        self.workflow = EntryMutationWorkflow(
            service=self.service,
            store=self.store,
            directory=self.directory,
            engine=self.engine,
            refresh=self.refresh,
        )

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_reference_data(self) -> None:
        """Fetch the teacher directory and, when authoritative, the time slots."""
        self.directory.load(self.service.teachers_with_subjects())
        if self.config.slot_source is SlotSource.REGISTRY:
            self.registry.replace_all(self.service.time_slots())
        logger.info(
            f"Reference data loaded: {len(self.directory)} teachers, "
            f"{len(self.registry)} time slots"
        )

    def select_scope(self, scope: Scope) -> bool:
        """
        Switch to scope, discarding the previous selection's entries.

        Returns:
            False if a newer selection superseded this one while fetching
        """
        self.store.clear()
        return self._load(scope)

    def refresh(self, scope: Optional[Scope] = None) -> bool:
        """Re-fetch entries for scope (default: the selected scope)."""
        scope = scope or self.store.scope
        if scope is None:
            raise ValueError("No class/section selected")
        return self._load(scope)

    def _load(self, scope: Scope) -> bool:
        ticket = self.store.begin_load(scope)
        entries = self.directory.resolve_names(self.service.timetable(scope))
        installed = self.store.complete_load(ticket, entries)
        if installed and self.config.slot_source is SlotSource.ENTRIES:
            self.registry.infer_from_entries(self.store.entries)
        return installed

    # -------------------------------------------------------------------------
    # Time slots
    # -------------------------------------------------------------------------

    def add_slot(self, start_time: str, end_time: str) -> TimeSlot:
        return self.registry.add_slot(start_time, end_time)

    def edit_slot(self, slot_id: str, start_time: str, end_time: str) -> TimeSlot:
        return self.registry.edit_slot(slot_id, start_time, end_time)

    def remove_slot(self, slot_id: str) -> list[TimetableEntry]:
        """
        Remove a slot.

        Entries using its interval stay in the store and drop out of the grid.

        Returns:
            The entries left without a slot by this removal
        """
        slot = self.registry.get(slot_id)
        self.registry.remove_slot(slot_id)
        if slot is None:
            return []
        stranded = [e for e in self.store.entries if e.slot_id == slot.id]
        if stranded:
            logger.warning(f"Removed slot {slot_id} still used by {len(stranded)} entries")
        return stranded

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    @property
    def scope(self) -> Optional[Scope]:
        return self.store.scope

    def grid(self) -> TimetableGrid:
        return project(
            self.registry.list_slots_sorted(),
            self.config.days,
            self.store.entries,
            preview_limit=self.config.preview_limit,
        )

    def entries_for_cell(self, slot_id: str, day: Union[Day, str]) -> list[TimetableEntry]:
        slot = self.registry.get(slot_id)
        if slot is None:
            return []
        return self.engine.entries_for_cell(slot, day)

    def subjects_for_teacher(self, teacher_id: str) -> list[str]:
        """Subject choices offered when booking teacher_id."""
        return sorted(self.directory.subjects_for(teacher_id))


def open_core(service: SchedulingService, config: Optional[CoreConfig], scope: Scope) -> SchedulingCore:
    """Build a core, load reference data and select scope in one step."""
    core = SchedulingCore(service, config)
    core.load_reference_data()
    core.select_scope(scope)
    return core
