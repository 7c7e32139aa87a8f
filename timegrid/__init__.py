"""timegrid - weekly timetable grid and slot conflict detection."""

from .core import SchedulingCore, open_core
from .config import CoreConfig, SlotSource, load_config
from .registry import TimeSlotRegistry
from .store import EntryStore, TeacherDirectory
from .conflicts import ConflictEngine, intervals_overlap
from .output.grid import TimetableGrid, GridCell, project
from .workflow import EntryMutationWorkflow, MutationResult, MutationState
from .service import HttpSchedulingService, InMemorySchedulingService, SchedulingService
from .session import Session
from .cli import app as cli_app

__all__ = [
    # Core
    "SchedulingCore",
    "open_core",
    "CoreConfig",
    "SlotSource",
    "load_config",
    # Components
    "TimeSlotRegistry",
    "EntryStore",
    "TeacherDirectory",
    "ConflictEngine",
    "intervals_overlap",
    "TimetableGrid",
    "GridCell",
    "project",
    "EntryMutationWorkflow",
    "MutationResult",
    "MutationState",
    # Service
    "SchedulingService",
    "HttpSchedulingService",
    "InMemorySchedulingService",
    "Session",
    # CLI
    "cli_app",
]
