"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Dict, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.json_store import JsonFileStore
from ..adapters.rest_store import RestStoreClient
from ..config import AppConfig, get_default_config_path
from ..domain.colors import build_participant_color_map
from ..domain.exceptions import GroupSlotsError
from ..domain.models import AvailabilitySlot, NewInvitee, TimelineSegment, time_to_minutes
from ..domain.segment_editor import EditMode
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="groupslots",
    help="Collect group availability and show overlapping time slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    config = AppConfig.load_from_yaml(config_path)

    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return config


def _build_service(config: AppConfig) -> AvailabilityService:
    """Create the service on top of the configured store backend."""
    store_config = config.store

    if store_config.backend == "rest":
        store = RestStoreClient(
            base_url=store_config.url,
            api_key=store_config.api_key,
            timeout=store_config.timeout_seconds
        )
    else:
        store = JsonFileStore(data_file=store_config.data_file)

    return AvailabilityService(store=store)


def _format_date(date: str, locale: str) -> str:
    """Format an ISO date as 'Weekday, DD.MM.YYYY'."""
    try:
        return pendulum.from_format(date, "YYYY-MM-DD").format("dddd, DD.MM.YYYY", locale=locale)
    except ValueError:
        return date


def _parse_slot(value: str) -> AvailabilitySlot:
    """
    Parse a slot argument of the form ``YYYY-MM-DD@HH:MM-HH:MM``.

    Raises:
        typer.BadParameter: If the value does not have that shape
    """
    date, sep, times = value.partition("@")
    start_time, dash, end_time = times.partition("-")
    if not sep or not dash:
        raise typer.BadParameter(f"Invalid slot '{value}', expected YYYY-MM-DD@HH:MM-HH:MM")

    try:
        pendulum.from_format(date, "YYYY-MM-DD")
        time_to_minutes(start_time)
        time_to_minutes(end_time)
    except ValueError as e:
        raise typer.BadParameter(f"Invalid slot '{value}': {e}")

    return AvailabilitySlot(date=date, start_time=start_time.strip(), end_time=end_time.strip())


def _parse_invitee(value: str) -> NewInvitee:
    """Parse an invitee argument of the form ``NAME`` or ``NAME:PASSWORD``."""
    name, _, password = value.partition(":")
    return NewInvitee(name=name, password=password or None)


def _format_timestamp(value: Optional[str], locale: str) -> str:
    if not value:
        return ""
    try:
        return pendulum.parse(value).format("DD.MM.YYYY HH:mm", locale=locale)
    except ValueError:
        return value


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command()
def timeline(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    config_file: ConfigOption = None,
):
    """
    Show who is available when, per date.

    Example:

        groupslots timeline 7b1c...
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config)

        project = service.get_project(project_id)
        responses = service.list_responses(project_id)
        by_date = service.load_timeline(project_id)
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    names: Dict[str, str] = {response.id: response.display_name() for response in responses}
    colors = build_participant_color_map(responses)

    console.print(f"\n[bold cyan]{project.title}[/bold cyan]")

    if not by_date:
        console.print("[yellow]No availability submitted yet.[/yellow]\n")
        return

    for date, segments in by_date.items():
        table = Table(
            title=_format_date(date, config.locale),
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Time", style="bold")
        table.add_column("Minutes", justify="right", style="dim")
        table.add_column("Available")

        for segment in segments:
            participants = sorted(segment.participant_ids, key=lambda pid: names.get(pid, pid))
            table.add_row(
                segment.label(),
                str(segment.duration_minutes()),
                ", ".join(
                    f"[{colors[pid].primary}]{names.get(pid, pid)}[/]"
                    if pid in colors else names.get(pid, pid)
                    for pid in participants
                )
            )

        console.print()
        console.print(table)

    console.print()


@app.command()
def slots(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    config_file: ConfigOption = None,
):
    """
    List identical slots submitted by several participants.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config)

        responses = service.list_responses(project_id)
        aggregated = service.load_aggregated_slots(project_id)
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    if not aggregated:
        console.print("[yellow]No availability submitted yet.[/yellow]")
        return

    names = {response.id: response.display_name() for response in responses}

    table = Table(
        title="Submitted slots",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Count", justify="right")
    table.add_column("Participants", style="dim")

    for slot in aggregated:
        table.add_row(
            _format_date(slot.date, config.locale),
            f"{slot.start_time} - {slot.end_time}",
            str(len(slot.participant_ids)),
            ", ".join(sorted(names.get(pid, pid) for pid in slot.participant_ids))
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def participants(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    config_file: ConfigOption = None,
):
    """
    List the invitees of a project and whether they responded.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config)

        invitees = service.list_participants(project_id)
        responses = service.list_responses(project_id)
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    if not invitees:
        console.print("[yellow]No invitees in this project.[/yellow]")
        return

    slot_counts = {response.invitee_id: len(response.slots) for response in responses}

    table = Table(
        title="Invitees",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name", style="bold yellow")
    table.add_column("Responded")
    table.add_column("Slots", justify="right", style="dim")

    for invitee in invitees:
        count = slot_counts.get(invitee.id)
        table.add_row(
            invitee.name,
            "[green]yes[/green]" if count is not None else "[dim]no[/dim]",
            str(count or 0)
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def submit(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    slot_values: Annotated[List[str], typer.Argument(metavar="SLOT...", help="Slots as YYYY-MM-DD@HH:MM-HH:MM")],
    name: Annotated[str, typer.Option("--name", "-n", help="Your invitee name")],
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="Your password, if one was set")] = None,
    config_file: ConfigOption = None,
):
    """
    Replace your availability with the given slots.

    Example:

        groupslots submit 7b1c... 2024-03-10@09:00-10:00 2024-03-11@14:00-15:00 --name Sara
    """
    new_slots = [_parse_slot(value) for value in slot_values]

    try:
        config = _load_config(config_file)
        service = _build_service(config)

        invitee = service.authenticate(project_id, name, password)
        saved = service.save_availability(project_id, invitee, new_slots)
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    console.print(f"[green]✓ Saved {len(saved)} slot(s) for {invitee.name}[/green]")


@app.command()
def edit(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    name: Annotated[str, typer.Option("--name", "-n", help="Your invitee name")],
    date: Annotated[str, typer.Option("--date", help="Date of the slot (YYYY-MM-DD)")],
    start: Annotated[str, typer.Option("--start", help="Current start time (HH:MM)")],
    end: Annotated[str, typer.Option("--end", help="Current end time (HH:MM)")],
    delta: Annotated[int, typer.Option("--delta", help="Minutes to move by (negative moves earlier)")],
    mode: Annotated[EditMode, typer.Option("--mode", help="move, resize-start or resize-end")] = EditMode.MOVE,
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="Your password, if one was set")] = None,
    config_file: ConfigOption = None,
):
    """
    Move or resize one of your slots, snapped to the configured step.

    Example:

        groupslots edit 7b1c... --name Sara --date 2024-03-10 --start 09:00 --end 10:00 --delta 30
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config)

        invitee = service.authenticate(project_id, name, password)
        segment = TimelineSegment(
            start_minutes=time_to_minutes(start),
            end_minutes=time_to_minutes(end),
            participant_ids=frozenset({invitee.id}),
        )
        saved = service.edit_segment(
            project_id,
            invitee,
            date,
            segment,
            mode,
            delta,
            step=config.editing.step_minutes,
            min_duration=config.editing.min_duration_minutes,
        )
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    console.print(f"[green]✓ Updated availability for {invitee.name}:[/green]")
    for slot in saved:
        if slot.date == date:
            console.print(f"  {slot.start_time} - {slot.end_time}")


@app.command()
def create(
    title: Annotated[str, typer.Option("--title", "-t", help="Project title (at least 3 characters)")],
    start_date: Annotated[str, typer.Option("--start-date", help="First allowed date (YYYY-MM-DD)")],
    end_date: Annotated[str, typer.Option("--end-date", help="Last allowed date (YYYY-MM-DD)")],
    invitees: Annotated[List[str], typer.Option("--invitee", "-i", help="Invitee as NAME or NAME:PASSWORD; repeat for each")],
    from_time: Annotated[str, typer.Option("--from", help="Earliest allowed time (HH:MM)")] = "09:00",
    to_time: Annotated[str, typer.Option("--to", help="Latest allowed time (HH:MM)")] = "18:00",
    description: Annotated[Optional[str], typer.Option("--description", "-d", help="Optional description")] = None,
    config_file: ConfigOption = None,
):
    """
    Create a project and invite participants.

    Prints the project id and the generated admin login.

    Example:

        groupslots create --title Kickoff --start-date 2024-03-10 --end-date 2024-03-12 -i Sara:secret -i Omid
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config)

        created = service.create_project(
            title,
            [_parse_invitee(value) for value in invitees],
            start_date=start_date,
            end_date=end_date,
            start_minutes=time_to_minutes(from_time),
            end_minutes=time_to_minutes(to_time),
            description=description,
        )
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    project = created.project
    console.print(f"\n[green]✓ Created project {project.title}[/green]")
    console.print(f"  Project id: [bold]{project.id}[/bold]")
    console.print(
        f"  Window: {project.window.start_date} - {project.window.end_date}, "
        f"{project.window.start_time} - {project.window.end_time}"
    )
    console.print(f"  Invitees: {', '.join(invitee.name for invitee in created.invitees)}")
    console.print(
        f"\n[bold yellow]Admin login:[/bold yellow] {created.admin.name} / {created.admin.password}\n"
    )


@app.command()
def activity(
    project_id: Annotated[str, typer.Argument(help="Project id")],
    name: Annotated[str, typer.Option("--name", "-n", help="Admin invitee name")] = "admin",
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="Admin passcode")] = None,
    config_file: ConfigOption = None,
):
    """
    Show the project's activity log (admin only), newest first.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config)

        viewer = service.authenticate(project_id, name, password)
        entries = service.list_activity(project_id, viewer)
    except (FileNotFoundError, ValueError, GroupSlotsError) as e:
        _fail(e)

    if not entries:
        console.print("[yellow]No activity recorded yet.[/yellow]")
        return

    table = Table(
        title="Activity",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="dim")
    table.add_column("Actor", style="bold yellow")
    table.add_column("Action")
    table.add_column("Summary")

    for entry in entries:
        table.add_row(
            _format_timestamp(entry.created_at, config.locale),
            entry.actor_name or "",
            entry.action,
            entry.summary()
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]groupslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
