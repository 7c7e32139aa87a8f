"""
Command-line interface for the timetable grid.

Usage:
    python -m timegrid grid "Class 5" A
    python -m timegrid --snapshot school.json grid "Class 5" A --day monday
    python -m timegrid --snapshot school.json check-slot 09:30 10:30
    python -m timegrid --snapshot school.json edit-slot 09:00-10:00 09:00 09:45
    python -m timegrid add "Class 5" A 09:00-10:00 monday --subject Mathematics --teacher 7
    python -m timegrid export "Class 5" A --format csv -o class5a.csv
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import ENV_TOKEN, CoreConfig, load_config
from .conflicts import checked_interval
from .core import SchedulingCore, open_core
from .data.loader import DataValidationError, Snapshot, load_snapshot, save_snapshot
from .data.models import Day, Scope, format_12h
from .errors import AuthMissingError, InvalidIntervalError, SchedulingError
from .output.formatters import ConsoleFormatter, CSVFormatter, TextFormatter
from .service import HttpSchedulingService, InMemorySchedulingService, SchedulingService
from .session import Session
from .workflow import MutationResult

# Create Typer app
app = typer.Typer(
    name="timegrid",
    help="Weekly school timetable grid with time-slot conflict detection.",
    add_completion=False,
)

# Rich console for pretty output
console = Console()

EXIT_ERROR = 1
EXIT_AUTH = 2


@dataclass
class CliState:
    """Options shared by every command."""
    config: CoreConfig
    service: SchedulingService
    snapshot_path: Optional[Path] = None


# =============================================================================
# Helper Functions
# =============================================================================

def setup_logging(level: str, log_file: Optional[Path] = None) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
        force=True,
    )


def parse_scope(class_name: str, section: str) -> Scope:
    try:
        return Scope(class_name=class_name, section=section.upper())
    except ValidationError:
        console.print(f"[red]Error:[/red] Unknown class/section '{class_name}' / '{section}'")
        raise typer.Exit(code=EXIT_ERROR)


def parse_day(value: str) -> Day:
    try:
        return Day(value)
    except ValueError:
        console.print(f"[red]Error:[/red] Invalid day '{value}'")
        console.print(f"Valid days: {', '.join(d.value for d in Day)}")
        raise typer.Exit(code=EXIT_ERROR)


def fail(error: SchedulingError) -> None:
    """Print a scheduling error and exit."""
    console.print(f"[red]Error:[/red] {error.message}")
    if isinstance(error, AuthMissingError):
        console.print(f"[dim]Supply a token with --token or {ENV_TOKEN}.[/dim]")
        raise typer.Exit(code=EXIT_AUTH)
    raise typer.Exit(code=EXIT_ERROR)


def open_scope(state: CliState, scope: Scope) -> SchedulingCore:
    try:
        return open_core(state.service, state.config, scope)
    except SchedulingError as e:
        fail(e)


def open_reference(state: CliState) -> SchedulingCore:
    core = SchedulingCore(state.service, state.config)
    try:
        core.load_reference_data()
    except SchedulingError as e:
        fail(e)
    return core


def require_snapshot(state: CliState) -> InMemorySchedulingService:
    if state.snapshot_path is None or not isinstance(state.service, InMemorySchedulingService):
        console.print(
            "[red]Error:[/red] Time slots can only be changed in a snapshot "
            "(use --snapshot FILE)"
        )
        raise typer.Exit(code=EXIT_ERROR)
    return state.service


def persist(state: CliState, core: Optional[SchedulingCore] = None) -> None:
    """Write an in-memory service back to its snapshot file."""
    service = state.service
    if state.snapshot_path is None or not isinstance(service, InMemorySchedulingService):
        return
    if core is not None:
        service.slots = core.registry.list_slots_sorted()
    snapshot = Snapshot(
        time_slots=service.slots,
        entries=list(service.entries.values()),
        teachers=service.teachers,
    )
    save_snapshot(snapshot, state.snapshot_path)
    console.print(f"[dim]Snapshot saved to {state.snapshot_path}[/dim]")


def report(result: MutationResult) -> None:
    """Print a mutation outcome."""
    if result.ok:
        console.print(f"[green]{result.notification.message}[/green]")
        if result.entry is not None:
            console.print(f"  {result.entry.id}: {result.entry}")
    else:
        console.print(f"[red]{result.notification.message}[/red]")
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning.message}")


# =============================================================================
# Global Options
# =============================================================================

@app.callback()
def main_options(
    ctx: typer.Context,
    snapshot: Optional[Path] = typer.Option(
        None,
        "--snapshot", "-s",
        help="Work on a JSON snapshot instead of the scheduling service",
    ),
    api_url: Optional[str] = typer.Option(
        None,
        "--api-url",
        help="Scheduling service base URL",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar=ENV_TOKEN,
        help="Bearer token for the scheduling service",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config", "-c",
        help="JSON configuration file",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write logs to this file",
    ),
) -> None:
    setup_logging(log_level, log_file)

    try:
        config = load_config(config_file)
        if api_url:
            config = config.model_copy(update={"base_url": api_url.rstrip("/")})
    except (OSError, ValueError) as e:
        console.print(f"[red]Error loading configuration:[/red] {e}")
        raise typer.Exit(code=EXIT_ERROR)

    if snapshot is not None:
        try:
            data = load_snapshot(snapshot)
        except FileNotFoundError:
            console.print(f"[red]Error:[/red] Snapshot not found: {snapshot}")
            raise typer.Exit(code=EXIT_ERROR)
        except (ValueError, DataValidationError) as e:
            console.print(f"[red]Error loading snapshot:[/red] {e}")
            raise typer.Exit(code=EXIT_ERROR)
        service: SchedulingService = InMemorySchedulingService(
            time_slots=data.time_slots,
            entries=data.entries,
            teachers=data.teachers,
        )
    else:
        service = HttpSchedulingService(config, Session(token))

    ctx.obj = CliState(config=config, service=service, snapshot_path=snapshot)


# =============================================================================
# Commands
# =============================================================================

@app.command()
def grid(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class, e.g. 'Class 5'"),
    section: str = typer.Argument(..., help="Section, e.g. A"),
    day: Optional[str] = typer.Option(
        None,
        "--day", "-D",
        help="Show only one day's schedule (monday, tuesday, etc.)",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the projected grid as JSON",
    ),
) -> None:
    """
    Display the weekly timetable grid for a class/section.

    Examples:
        python -m timegrid grid "Class 5" A
        python -m timegrid grid "Class 5" A --day monday
    """
    state: CliState = ctx.obj
    scope = parse_scope(class_name, section)
    core = open_scope(state, scope)
    timetable = core.grid()

    if as_json:
        console.print_json(timetable.to_json())
        return

    if day:
        _show_day(timetable, parse_day(day), scope)
        return

    console.print(Panel(f"[bold]{scope}[/bold]", title="Class Timetable"))
    if not timetable.slots:
        console.print("[yellow]No time slots defined[/yellow]")
        return
    ConsoleFormatter(console=console).print(timetable)


def _show_day(timetable, day: Day, scope: Scope) -> None:
    schedule = timetable.day_schedule(day)
    if not schedule:
        console.print(f"[yellow]No lessons scheduled for {scope} on {day.label}[/yellow]")
        return

    table = Table(title=f"{scope} - {day.label}", show_header=True, header_style="bold cyan")
    table.add_column("Time")
    table.add_column("Subject")
    table.add_column("Teacher")
    table.add_column("Room")

    for slot, entry in schedule:
        table.add_row(
            slot.label,
            entry.subject_name,
            entry.teacher_name or entry.teacher_id,
            entry.room_number or "-",
        )

    console.print(table)


@app.command()
def export(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class, e.g. 'Class 5'"),
    section: str = typer.Argument(..., help="Section, e.g. A"),
    format: str = typer.Option(
        "text",
        "--format", "-f",
        help="Output format: text or csv",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write to this file instead of the console",
    ),
) -> None:
    """Export a class/section timetable as text or CSV."""
    state: CliState = ctx.obj
    scope = parse_scope(class_name, section)
    core = open_scope(state, scope)
    timetable = core.grid()

    if format == "csv":
        content = CSVFormatter().format(timetable)
    elif format == "text":
        content = TextFormatter(title=f"Timetable for {scope}").format(timetable)
    else:
        console.print(f"[red]Error:[/red] Unknown format '{format}' (use text or csv)")
        raise typer.Exit(code=EXIT_ERROR)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
        console.print(f"[green]Timetable exported to:[/green] {output}")
    else:
        console.print(content, markup=False, highlight=False)


@app.command()
def slots(ctx: typer.Context) -> None:
    """List the time slots in grid order."""
    core = open_reference(ctx.obj)

    table = Table(title="Time Slots", show_header=True, header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Label")
    table.add_column("Minutes", justify="right")

    for slot in core.registry.list_slots_sorted():
        table.add_row(slot.id, slot.start_time, slot.end_time, slot.label, str(slot.duration_minutes))

    console.print(table)


@app.command("check-slot")
def check_slot(
    ctx: typer.Context,
    start: str = typer.Argument(..., help="Start time HH:MM"),
    end: str = typer.Argument(..., help="End time HH:MM"),
    exclude: Optional[str] = typer.Option(
        None,
        "--exclude",
        help="Slot ID to ignore (when editing that slot)",
    ),
) -> None:
    """Check whether a candidate time slot overlaps an existing one."""
    core = open_reference(ctx.obj)

    try:
        start, end = checked_interval(start, end)
    except InvalidIntervalError as e:
        console.print(f"[red]Invalid interval:[/red] {e.message}")
        raise typer.Exit(code=EXIT_ERROR)

    conflict = core.registry.conflicting_slot(start, end, excluding_id=exclude)
    if conflict is not None:
        console.print(
            f"[red]Conflict:[/red] {start}-{end} overlaps {conflict.id} ({conflict.label})"
        )
        raise typer.Exit(code=EXIT_ERROR)

    console.print(f"[green]OK:[/green] {format_12h(start)} - {format_12h(end)} fits")


@app.command("add-slot")
def add_slot(
    ctx: typer.Context,
    start: str = typer.Argument(..., help="Start time HH:MM"),
    end: str = typer.Argument(..., help="End time HH:MM"),
) -> None:
    """Add a time slot to a snapshot."""
    state: CliState = ctx.obj
    require_snapshot(state)
    core = open_reference(state)

    try:
        slot = core.add_slot(start, end)
    except SchedulingError as e:
        fail(e)

    console.print(f"[green]Added time slot:[/green] {slot.id} ({slot.label})")
    persist(state, core)


@app.command("edit-slot")
def edit_slot(
    ctx: typer.Context,
    slot_id: str = typer.Argument(..., help="Slot ID, e.g. 09:00-10:00"),
    start: str = typer.Argument(..., help="New start time HH:MM"),
    end: str = typer.Argument(..., help="New end time HH:MM"),
) -> None:
    """Move a time slot in a snapshot. Entries keep their own times."""
    state: CliState = ctx.obj
    service = require_snapshot(state)
    core = open_reference(state)

    try:
        slot = core.edit_slot(slot_id, start, end)
    except KeyError:
        console.print(f"[red]Error:[/red] Time slot '{slot_id}' not found")
        raise typer.Exit(code=EXIT_ERROR)
    except SchedulingError as e:
        fail(e)

    console.print(f"[green]Updated time slot:[/green] {slot_id} -> {slot.id}")
    stranded = [e for e in service.entries.values() if e.slot_id == slot_id]
    if stranded and slot.id != slot_id:
        console.print(
            f"[yellow]Warning:[/yellow] {len(stranded)} entries still use {slot_id} "
            f"and will no longer appear in the grid"
        )
    persist(state, core)


@app.command("remove-slot")
def remove_slot(
    ctx: typer.Context,
    slot_id: str = typer.Argument(..., help="Slot ID, e.g. 09:00-10:00"),
) -> None:
    """Remove a time slot from a snapshot. Entries using it are kept."""
    state: CliState = ctx.obj
    service = require_snapshot(state)
    core = open_reference(state)

    if slot_id not in core.registry:
        console.print(f"[red]Error:[/red] Time slot '{slot_id}' not found")
        raise typer.Exit(code=EXIT_ERROR)

    core.remove_slot(slot_id)
    stranded = [e for e in service.entries.values() if e.slot_id == slot_id]
    console.print(f"[green]Removed time slot:[/green] {slot_id}")
    if stranded:
        console.print(
            f"[yellow]Warning:[/yellow] {len(stranded)} entries still use {slot_id} "
            f"and will no longer appear in the grid"
        )
    persist(state, core)


@app.command()
def add(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class, e.g. 'Class 5'"),
    section: str = typer.Argument(..., help="Section, e.g. A"),
    slot_id: str = typer.Argument(..., help="Slot ID, e.g. 09:00-10:00"),
    day: str = typer.Argument(..., help="Day, e.g. monday"),
    subject: Optional[str] = typer.Option(None, "--subject", help="Subject name"),
    teacher: Optional[str] = typer.Option(None, "--teacher", help="Teacher ID"),
    room: Optional[str] = typer.Option(None, "--room", help="Room number"),
) -> None:
    """Book a subject and teacher into one grid cell."""
    state: CliState = ctx.obj
    scope = parse_scope(class_name, section)
    core = open_scope(state, scope)

    slot = core.registry.get(slot_id)
    if slot is None:
        console.print(f"[red]Error:[/red] Time slot '{slot_id}' not found")
        raise typer.Exit(code=EXIT_ERROR)

    result = core.workflow.create(scope, slot, parse_day(day), subject, teacher, room)
    report(result)
    if not result.ok:
        raise typer.Exit(code=EXIT_ERROR)
    persist(state)


@app.command()
def edit(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class of the entry"),
    section: str = typer.Argument(..., help="Section of the entry"),
    entry_id: str = typer.Argument(..., help="Entry ID"),
    subject: Optional[str] = typer.Option(None, "--subject", help="New subject"),
    teacher: Optional[str] = typer.Option(None, "--teacher", help="New teacher ID"),
    room: Optional[str] = typer.Option(None, "--room", help="New room number"),
    day: Optional[str] = typer.Option(None, "--day", help="New day"),
    slot_id: Optional[str] = typer.Option(None, "--slot", help="New slot ID"),
) -> None:
    """Change fields of an existing entry."""
    state: CliState = ctx.obj
    scope = parse_scope(class_name, section)
    core = open_scope(state, scope)

    changes: dict = {}
    if subject is not None:
        changes["subject_name"] = subject
    if teacher is not None:
        changes["teacher_id"] = teacher
    if room is not None:
        changes["room_number"] = room
    if day is not None:
        changes["day"] = parse_day(day).value
    if slot_id is not None:
        slot = core.registry.get(slot_id)
        if slot is None:
            console.print(f"[red]Error:[/red] Time slot '{slot_id}' not found")
            raise typer.Exit(code=EXIT_ERROR)
        changes["start_time"] = slot.start_time
        changes["end_time"] = slot.end_time

    result = core.workflow.update(entry_id, **changes)
    report(result)
    if not result.ok:
        raise typer.Exit(code=EXIT_ERROR)
    persist(state)


@app.command()
def remove(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class of the entry"),
    section: str = typer.Argument(..., help="Section of the entry"),
    entry_id: str = typer.Argument(..., help="Entry ID"),
) -> None:
    """Delete a timetable entry."""
    state: CliState = ctx.obj
    scope = parse_scope(class_name, section)
    core = open_scope(state, scope)

    result = core.workflow.delete(entry_id)
    report(result)
    if not result.ok:
        raise typer.Exit(code=EXIT_ERROR)
    persist(state)


@app.command()
def conflicts(
    ctx: typer.Context,
    class_name: str = typer.Argument(..., help="Class, e.g. 'Class 5'"),
    section: str = typer.Argument(..., help="Section, e.g. A"),
) -> None:
    """List double-booked cells, teacher clashes and entries without a slot."""
    state: CliState = ctx.obj
    scope = parse_scope(class_name, section)
    core = open_scope(state, scope)

    double_bookings = core.engine.double_bookings()
    clashes = core.engine.teacher_clashes()
    orphaned = core.grid().orphaned_entries

    if not (double_bookings or clashes or orphaned):
        console.print(f"[green]No conflicts for {scope}[/green]")
        return

    if double_bookings:
        console.print(f"\n[bold]Shared cells ({len(double_bookings)}):[/bold]")
        for group in double_bookings:
            first = group[0]
            console.print(
                f"  {first.day.label} {first.start_time}-{first.end_time}: "
                + ", ".join(f"{e.subject_name} ({e.teacher_name or e.teacher_id})" for e in group)
            )

    if clashes:
        console.print(f"\n[bold]Teacher clashes ({len(clashes)}):[/bold]")
        for clash in clashes:
            console.print(f"  [red]*[/red] {clash}")

    if orphaned:
        console.print(f"\n[bold]Entries without a time slot ({len(orphaned)}):[/bold]")
        for entry in orphaned:
            console.print(f"  [yellow]*[/yellow] {entry.id}: {entry}")


# =============================================================================
# Main Entry Point
# =============================================================================

def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
