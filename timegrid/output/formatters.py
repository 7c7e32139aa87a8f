"""
Output formatters for projected timetables.

This module provides formatters for different output formats:
- Text: the printable "Timetable for ..." export, grouped by day
- CSV: flat format for spreadsheets
- Console: the weekly grid as a rich table
"""

from __future__ import annotations

import csv
from io import StringIO
from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from timegrid.data.models import TimetableEntry, format_12h
from timegrid.output.grid import GridCell, TimetableGrid


# =============================================================================
# Text Formatter
# =============================================================================

class TextFormatter:
    """Plain-text export of a timetable, one block per day."""

    def __init__(self, title: Optional[str] = None, include_empty_days: bool = True):
        """
        Initialize text formatter.

        Args:
            title: Heading line, e.g. 'Timetable for Class 5-A'
            include_empty_days: Whether days without lessons get a heading
        """
        self.title = title
        self.include_empty_days = include_empty_days

    def format(self, grid: TimetableGrid) -> str:
        lines: list[str] = []
        if self.title:
            lines.extend([self.title, ""])

        for day in grid.days:
            schedule = grid.day_schedule(day)
            if not schedule and not self.include_empty_days:
                continue
            lines.append(f"{day.label}:")
            for slot, entry in schedule:
                lines.append(
                    f"  {format_12h(slot.start_time)} - {format_12h(slot.end_time)}: "
                    f"{_describe(entry)}"
                )
            lines.append("")

        if grid.orphaned_entries:
            lines.append("Unscheduled (no matching time slot):")
            for entry in grid.orphaned_entries:
                lines.append(f"  {entry.day.label} {entry.start_time}-{entry.end_time}: {_describe(entry)}")
            lines.append("")

        return "\n".join(lines)


def _describe(entry: TimetableEntry) -> str:
    text = entry.subject_name
    if entry.teacher_name:
        text += f" ({entry.teacher_name})"
    if entry.room_number:
        text += f" - Room {entry.room_number}"
    return text


def format_text(grid: TimetableGrid, title: Optional[str] = None) -> str:
    """Convenience function for text export."""
    return TextFormatter(title=title).format(grid)


# =============================================================================
# CSV Formatter
# =============================================================================

class CSVFormatter:
    """Formats placed entries as CSV rows in grid order."""

    DEFAULT_COLUMNS = [
        'id', 'day', 'start_time', 'end_time', 'class_name', 'section',
        'subject_name', 'teacher_id', 'teacher_name', 'room_number',
    ]

    def __init__(
        self,
        columns: list[str] | None = None,
        include_header: bool = True,
        delimiter: str = ',',
    ):
        """
        Initialize CSV formatter.

        Args:
            columns: List of columns to include (None = all)
            include_header: Whether to include header row
            delimiter: Field delimiter
        """
        self.columns = columns or self.DEFAULT_COLUMNS
        self.include_header = include_header
        self.delimiter = delimiter

    def format(self, grid: TimetableGrid) -> str:
        buffer = StringIO()
        writer = csv.writer(buffer, delimiter=self.delimiter, lineterminator="\n")

        if self.include_header:
            writer.writerow(self.columns)

        for entry in grid.flatten():
            writer.writerow([self._value(entry, col) for col in self.columns])

        return buffer.getvalue()

    @staticmethod
    def _value(entry: TimetableEntry, column: str) -> str:
        value = getattr(entry, column)
        if value is None:
            return ""
        return getattr(value, "value", value)


def format_csv(grid: TimetableGrid) -> str:
    """Convenience function for CSV formatting."""
    return CSVFormatter().format(grid)


# =============================================================================
# Console Formatter
# =============================================================================

class ConsoleFormatter:
    """Renders the weekly grid as a rich table."""

    def __init__(self, console: Optional[Console] = None, title: Optional[str] = None):
        self.console = console or Console()
        self.title = title

    def build_table(self, grid: TimetableGrid) -> Table:
        table = Table(title=self.title, show_header=True, header_style="bold cyan", show_lines=True)
        table.add_column("Time", style="dim", no_wrap=True)
        for day in grid.days:
            table.add_column(day.short, justify="center")

        for slot, row in grid.rows():
            time_cell = f"{format_12h(slot.start_time)}\n{format_12h(slot.end_time)}"
            table.add_row(time_cell, *[self._cell_text(cell) for cell in row])

        return table

    def _cell_text(self, cell: GridCell) -> Text:
        if cell.is_empty:
            return Text("+", style="dim")

        text = Text()
        for i, entry in enumerate(cell.preview):
            if i:
                text.append("\n")
            text.append(entry.subject_name, style="bold")
            detail = entry.teacher_name or entry.teacher_id
            if entry.room_number:
                detail += f" @ {entry.room_number}"
            text.append(f"\n{detail}", style="italic")
        if cell.overflow:
            text.append(f"\n+{cell.overflow} more", style="yellow")
        return text

    def print(self, grid: TimetableGrid) -> None:
        self.console.print(self.build_table(grid))
        if grid.orphaned_entries:
            self.console.print(
                f"[yellow]{len(grid.orphaned_entries)} entries have no matching time slot "
                f"and are not shown.[/yellow]"
            )
