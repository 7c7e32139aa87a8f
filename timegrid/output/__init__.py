"""Grid projection and output formatting."""

from .grid import DEFAULT_PREVIEW_LIMIT, GridCell, TimetableGrid, project
from .formatters import (
    ConsoleFormatter,
    CSVFormatter,
    TextFormatter,
    format_csv,
    format_text,
)

__all__ = [
    "DEFAULT_PREVIEW_LIMIT",
    "GridCell",
    "TimetableGrid",
    "project",
    "ConsoleFormatter",
    "CSVFormatter",
    "TextFormatter",
    "format_csv",
    "format_text",
]
