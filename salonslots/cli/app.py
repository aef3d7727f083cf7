"""
Main CLI application using Typer.
"""

import asyncio
import logging
from itertools import groupby
from pathlib import Path
from typing import List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.file_sources import JsonBookingSource, JsonCalendarClient
from ..adapters.google_calendar import GoogleCalendarClient
from ..adapters.graph_client import GraphCalendarClient
from ..config import AppConfig, CalendarSourceConfig, get_default_config_path
from ..domain.exceptions import AvailabilityError
from ..domain.models import WEEKDAY_NAMES, Booking, is_blocking_override
from ..services.availability import AvailabilityService, CalendarClientProtocol

app = typer.Typer(
    name="salonslots",
    help="Find bookable appointment slots for a salon provider",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


class _NoBookings:
    """Booking source used when no bookings file is configured."""

    def list_bookings(self, start_time, end_time) -> List[Booking]:
        return []


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Compute salon availability from weekly hours, overrides and busy time.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    logger.debug("Loading configuration from %s", config_path)
    return AppConfig.load_from_yaml(config_path)


def _build_calendar_client(source: CalendarSourceConfig) -> CalendarClientProtocol:
    if source.provider == "google":
        return GoogleCalendarClient(
            access_token=source.access_token,
            calendar_ids=source.calendar_ids or ["primary"],
            name=source.display_name()
        )
    if source.provider == "graph":
        return GraphCalendarClient(
            access_token=source.access_token,
            schedules=source.calendar_ids,
            name=source.display_name()
        )
    return JsonCalendarClient(path=source.path, name=source.display_name())


def _build_service(config: AppConfig, offline: bool) -> AvailabilityService:
    """
    Wire the booking source and calendars from the configuration.

    In offline mode only local file calendars are used.
    """
    booking_source = JsonBookingSource(config.bookings_file) if config.bookings_file else _NoBookings()

    calendars = [
        _build_calendar_client(source)
        for source in config.calendars
        if not offline or source.provider == "file"
    ]

    return AvailabilityService(booking_source=booking_source, calendar_clients=calendars)


def _determine_time_range(
    *,
    tz: str,
    now,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
):
    """
    Resolve the desired time window based on shortcut flags or explicit dates.
    Returns (start_date, end_date).
    """
    if this_week and next_week:
        console.print("[red]Error: --this-week and --next-week cannot be combined.[/red]")
        raise typer.Exit(1)

    local_now = now.in_timezone(tz)

    if this_week:
        return local_now, local_now.end_of("week")

    if next_week:
        next_monday = local_now.next(pendulum.MONDAY).start_of("day")
        return next_monday, next_monday.add(days=6).end_of("day")

    try:
        if start_option:
            start_date = pendulum.from_format(start_option, "YYYY-MM-DD", tz=tz).start_of("day")
        else:
            start_date = local_now.start_of("day")

        if end_option:
            end_date = pendulum.from_format(end_option, "YYYY-MM-DD", tz=tz).end_of("day")
        else:
            end_date = start_date.add(days=7).end_of("day")
    except ValueError as e:
        console.print(f"[red]Could not parse date: {e}[/red]")
        raise typer.Exit(1)

    return start_date, end_date


def _parse_now(now_option: Optional[str], tz: str):
    if not now_option:
        return pendulum.now(tz)
    try:
        return pendulum.parse(now_option, tz=tz)
    except ValueError as e:
        console.print(f"[red]Could not parse --now: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def slots(
    event: Annotated[str, typer.Argument(help="Event type slug, e.g. 'haircut'.")],
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")] = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Pretend the current time is this ISO timestamp.")] = None,
    this_week: Annotated[bool, typer.Option("--this-week", help="Search from now until the end of this week.")] = False,
    next_week: Annotated[bool, typer.Option("--next-week", help="Search next week (Monday-Sunday).")] = False,
    offline: Annotated[bool, typer.Option("--offline", help="Skip remote calendars; use local files only.")] = False,
):
    """
    List bookable slots for an event type.

    Examples:

        salonslots slots haircut
        salonslots slots coloring --next-week
        salonslots slots haircut --start 2024-11-25 --end 2024-11-29 --offline
    """
    try:
        config = _load_config(config_file)
        event_type = config.find_event_type(event)
        tz = config.timezone
        current_time = _parse_now(now, tz)

        date_from, date_to = _determine_time_range(
            tz=tz,
            now=current_time,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )

        service = _build_service(config, offline=offline)
        result = asyncio.run(service.find_slots(
            schedule=config.to_schedule(),
            event=event_type.to_event_parameters(),
            date_from=date_from,
            date_to=date_to,
            now=current_time
        ))
    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    console.print(
        f"\n[bold cyan]{event_type.display_name()}[/bold cyan] "
        f"({event_type.length} min) | "
        f"{date_from.format('DD.MM.YYYY')} - {date_to.format('DD.MM.YYYY')} | {tz}\n"
    )

    if not result.date_ranges:
        console.print("[yellow]No working hours in this period.[/yellow]\n")
        return

    if not result.slots:
        console.print("[yellow]No available times. Try a longer period.[/yellow]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Date")
    table.add_column("Available times")

    for _, day_slots in groupby(result.slots, key=lambda s: s.time.format("YYYY-MM-DD")):
        day_slots = list(day_slots)
        first = day_slots[0].time
        table.add_row(
            WEEKDAY_NAMES[first.isoweekday() % 7],
            first.format("DD.MM.YYYY"),
            " ".join(slot.time.format("HH:mm") for slot in day_slots)
        )

    console.print(table)
    console.print(f"\n[bold green]{len(result.slots)} slot(s) available[/bold green]\n")


@app.command()
def check(
    event: Annotated[str, typer.Argument(help="Event type slug.")],
    when: Annotated[str, typer.Argument(help="Start time, e.g. '2024-11-25 10:30' (provider timezone).")],
    config_file: ConfigOption = None,
    now: Annotated[Optional[str], typer.Option("--now", help="Pretend the current time is this ISO timestamp.")] = None,
    offline: Annotated[bool, typer.Option("--offline", help="Skip remote calendars; use local files only.")] = False,
):
    """
    Check whether one start time can still be booked. Exits with 1 if not.
    """
    try:
        config = _load_config(config_file)
        event_type = config.find_event_type(event)
        start = pendulum.parse(when, tz=config.timezone)

        service = _build_service(config, offline=offline)
        available = asyncio.run(service.check_slot(
            schedule=config.to_schedule(),
            event=event_type.to_event_parameters(),
            start=start,
            now=_parse_now(now, config.timezone)
        ))
    except (FileNotFoundError, ValueError, AvailabilityError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if available:
        console.print(f"[green]✓ {start.format('DD.MM.YYYY HH:mm')} is available[/green]")
    else:
        console.print(f"[red]✗ {start.format('DD.MM.YYYY HH:mm')} is not available[/red]")
        raise typer.Exit(1)


@app.command()
def schedule(config_file: ConfigOption = None):
    """
    Show the configured weekly hours, date overrides and event types.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    provider_schedule = config.to_schedule()

    hours = Table(title=f"Working hours ({config.timezone})", show_header=True, header_style="bold cyan")
    hours.add_column("Days", style="bold yellow")
    hours.add_column("Hours")
    for rule in provider_schedule.weekly_rules:
        hours.add_row(
            ", ".join(WEEKDAY_NAMES[day] for day in sorted(rule.days)),
            f"{rule.start_time:%H:%M} - {rule.end_time:%H:%M}"
        )
    console.print()
    console.print(hours)

    if provider_schedule.date_overrides:
        overrides = Table(title="Date overrides", show_header=True, header_style="bold cyan")
        overrides.add_column("Date", style="bold yellow")
        overrides.add_column("Hours")
        for override in sorted(provider_schedule.date_overrides, key=lambda o: o.date):
            overrides.add_row(
                override.date.strftime("%d.%m.%Y"),
                "blocked" if is_blocking_override(override)
                else f"{override.start_time:%H:%M} - {override.end_time:%H:%M}"
            )
        console.print(overrides)

    if config.event_types:
        events = Table(title="Event types", show_header=True, header_style="bold cyan")
        events.add_column("Slug", style="bold yellow")
        events.add_column("Title")
        events.add_column("Length")
        events.add_column("Notice")
        events.add_column("Buffers")
        for event_type in config.event_types:
            events.add_row(
                event_type.slug,
                event_type.display_name(),
                f"{event_type.length} min",
                f"{event_type.minimum_notice} min",
                f"{event_type.before_buffer}/{event_type.after_buffer} min"
            )
        console.print(events)

    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
