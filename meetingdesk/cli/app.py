"""
Main CLI application using Typer.
"""

import logging
from contextlib import contextmanager
from functools import cached_property
from pathlib import Path
from typing import Annotated, Dict, Iterator, List, Optional, Set, Tuple
from uuid import UUID

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.credential_store import CredentialStore
from ..adapters.gateway import TableGateway
from ..adapters.memory_gateway import DEFAULT_MOCK_DATA, InMemoryGateway
from ..adapters.supabase_gateway import SupabaseGateway
from ..config import AppConfig, get_default_config_path
from ..domain.availability import BookingStatus, EventAvailabilityGrid
from ..domain.exceptions import (
    BookingConflictError,
    ConfigurationError,
    FormValidationError,
    MeetingDeskError,
)
from ..domain.time_slots import TIME_SLOT_INFO, TIME_SLOTS, TimeSlot
from ..services.booking_service import BookingService
from ..services.repositories import Repositories
from ..services.watcher import BookingWatcher

MOCK_URL = "http://localhost:54321"

app = typer.Typer(
    name="meetingdesk",
    help="Manage entrepreneurs, participants, events and meeting bookings",
    add_completion=False,
)
entrepreneurs_app = typer.Typer(help="Manage entrepreneurs", no_args_is_help=True)
participants_app = typer.Typer(help="Manage participants", no_args_is_help=True)
events_app = typer.Typer(help="Manage events and their entrepreneurs", no_args_is_help=True)
bookings_app = typer.Typer(help="Manage meeting bookings", no_args_is_help=True)

app.add_typer(entrepreneurs_app, name="entrepreneurs")
app.add_typer(participants_app, name="participants")
app.add_typer(events_app, name="events")
app.add_typer(bookings_app, name="bookings")

console = Console()

STATUS_STYLE = {
    BookingStatus.AVAILABLE: "[green]free[/green]",
    BookingStatus.BOOKED: "[red]booked[/red]",
    BookingStatus.UNAVAILABLE: "[dim]n/a[/dim]",
}


class CliState:
    """Lazily built configuration and services for one CLI invocation."""

    def __init__(self, config_file: Optional[Path], mock: bool):
        self.config_file = config_file
        self.mock = mock

    @cached_property
    def config(self) -> AppConfig:
        config_path = self.config_file or get_default_config_path()
        if self.mock and not config_path.exists():
            return AppConfig(supabase_url=MOCK_URL)
        return AppConfig.load_from_yaml(config_path)

    @cached_property
    def gateway(self) -> TableGateway:
        if self.mock:
            return InMemoryGateway.from_json(self.config.mock_data or DEFAULT_MOCK_DATA)

        return SupabaseGateway(
            base_url=self.config.supabase_url,
            api_key=resolve_api_key(self.config),
            timeout=self.config.request_timeout,
        )

    @cached_property
    def service(self) -> BookingService:
        return BookingService(Repositories.over(self.gateway), timezone=self.config.timezone)

    @property
    def repositories(self) -> Repositories:
        return self.service.repositories


def resolve_api_key(config: AppConfig, store: Optional[CredentialStore] = None) -> str:
    """
    Find the API key: config file or environment first, then the credential store.
    """
    if config.supabase_key:
        return config.supabase_key

    key = (store or CredentialStore()).load_key(config.supabase_url)
    if key:
        return key

    raise ConfigurationError(
        "No API key configured. Set SUPABASE_ANON_KEY, add supabase_key to "
        "config.yaml or run 'meetingdesk login'."
    )


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("meetingdesk")
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(handler, RichHandler) for handler in package_logger.handlers):
        package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Turn application errors into a red message and exit code 1."""
    try:
        yield
    except FormValidationError as e:
        console.print("[bold red]Invalid input:[/bold red]")
        for field, messages in e.errors.items():
            for message in messages:
                console.print(f"  [yellow]{field}[/yellow]: {message}")
        raise typer.Exit(1)
    except BookingConflictError as e:
        existing = e.conflict.existing_booking
        who = existing.participant.name if existing.participant else str(existing.participant_id)
        console.print(f"[bold red]Conflict:[/bold red] {e}")
        console.print(f"  Already booked by {who} (booking {existing.id})")
        raise typer.Exit(1)
    except (MeetingDeskError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _confirm(what: str, yes: bool) -> None:
    if not yes and not typer.confirm(f"Delete {what}?"):
        console.print("[yellow]Aborted.[/yellow]")
        raise typer.Exit(0)


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")] = None,
    mock: Annotated[bool, typer.Option("--mock", help="Use bundled sample data instead of the hosted database.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Admin tool for business networking events.
    """
    _configure_logging(verbose)
    ctx.obj = CliState(config_file=config_file, mock=mock)
    if mock:
        console.print("[yellow]⚠  Mock mode: using sample data, changes are not saved[/yellow]\n")


# Entrepreneurs

@entrepreneurs_app.command("list")
def list_entrepreneurs(
    ctx: typer.Context,
    active: Annotated[bool, typer.Option("--active", help="Only show active entrepreneurs.")] = False,
):
    """
    List entrepreneurs ordered by company name.
    """
    with _cli_errors():
        repo = _state(ctx).repositories.entrepreneurs
        entrepreneurs = repo.list_active() if active else repo.list_all()

        if not entrepreneurs:
            console.print("[yellow]No entrepreneurs found.[/yellow]")
            return

        table = Table(title="Entrepreneurs", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Company", style="bold yellow")
        table.add_column("Registration")
        table.add_column("Category")
        table.add_column("Active", justify="center")

        for entrepreneur in entrepreneurs:
            table.add_row(
                str(entrepreneur.id),
                entrepreneur.company_name,
                entrepreneur.registration_number,
                entrepreneur.business_category,
                "✓" if entrepreneur.is_active else "✗",
            )

        console.print(table)


@entrepreneurs_app.command("add")
def add_entrepreneur(
    ctx: typer.Context,
    company: Annotated[str, typer.Option("--company", "-n", help="Company name")],
    registration: Annotated[str, typer.Option("--registration", "-r", help="Registration number (A-Z, 0-9, -)")],
    category: Annotated[str, typer.Option("--category", "-k", help="Business category")],
    inactive: Annotated[bool, typer.Option("--inactive", help="Create the entrepreneur as inactive.")] = False,
):
    """
    Register a new entrepreneur.
    """
    data = {
        "company_name": company,
        "registration_number": registration,
        "business_category": category,
    }
    if inactive:
        data["is_active"] = False

    with _cli_errors():
        entrepreneur = _state(ctx).service.create_entrepreneur(data)
        console.print(f"[green]✓ Created entrepreneur {entrepreneur.company_name}[/green] ({entrepreneur.id})")


@entrepreneurs_app.command("update")
def update_entrepreneur(
    ctx: typer.Context,
    entrepreneur_id: Annotated[str, typer.Argument(help="Entrepreneur ID")],
    company: Annotated[Optional[str], typer.Option("--company", "-n")] = None,
    registration: Annotated[Optional[str], typer.Option("--registration", "-r")] = None,
    category: Annotated[Optional[str], typer.Option("--category", "-k")] = None,
    active: Annotated[Optional[bool], typer.Option("--active/--inactive")] = None,
):
    """
    Change fields of an entrepreneur.
    """
    data = _present(
        company_name=company,
        registration_number=registration,
        business_category=category,
        is_active=active,
    )
    with _cli_errors():
        entrepreneur = _state(ctx).service.update_entrepreneur(entrepreneur_id, data)
        console.print(f"[green]✓ Updated entrepreneur {entrepreneur.company_name}[/green]")


@entrepreneurs_app.command("remove")
def remove_entrepreneur(
    ctx: typer.Context,
    entrepreneur_id: Annotated[str, typer.Argument(help="Entrepreneur ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """
    Delete an entrepreneur together with its assignments and bookings.
    """
    with _cli_errors():
        repo = _state(ctx).repositories.entrepreneurs
        entrepreneur = repo.get(entrepreneur_id)
        _confirm(f"entrepreneur {entrepreneur.company_name}", yes)
        repo.delete(entrepreneur.id)
        console.print("[green]✓ Entrepreneur deleted.[/green]")


# Participants

@participants_app.command("list")
def list_participants(ctx: typer.Context):
    """
    List participants ordered by name.
    """
    with _cli_errors():
        participants = _state(ctx).repositories.participants.list_all()

        if not participants:
            console.print("[yellow]No participants found.[/yellow]")
            return

        table = Table(title="Participants", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Phone")
        table.add_column("E-Mail")

        for participant in participants:
            table.add_row(str(participant.id), participant.name, participant.phone, participant.email)

        console.print(table)


@participants_app.command("add")
def add_participant(
    ctx: typer.Context,
    name: Annotated[str, typer.Option("--name", "-n")],
    phone: Annotated[str, typer.Option("--phone", "-p")],
    email: Annotated[str, typer.Option("--email", "-e")],
):
    """
    Register a new participant.
    """
    with _cli_errors():
        participant = _state(ctx).service.create_participant(
            {"name": name, "phone": phone, "email": email}
        )
        console.print(f"[green]✓ Created participant {participant.name}[/green] ({participant.id})")


@participants_app.command("update")
def update_participant(
    ctx: typer.Context,
    participant_id: Annotated[str, typer.Argument(help="Participant ID")],
    name: Annotated[Optional[str], typer.Option("--name", "-n")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone", "-p")] = None,
    email: Annotated[Optional[str], typer.Option("--email", "-e")] = None,
):
    """
    Change fields of a participant.
    """
    with _cli_errors():
        participant = _state(ctx).service.update_participant(
            participant_id, _present(name=name, phone=phone, email=email)
        )
        console.print(f"[green]✓ Updated participant {participant.name}[/green]")


@participants_app.command("remove")
def remove_participant(
    ctx: typer.Context,
    participant_id: Annotated[str, typer.Argument(help="Participant ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y")] = False,
):
    """
    Delete a participant together with their bookings.
    """
    with _cli_errors():
        repo = _state(ctx).repositories.participants
        participant = repo.get(participant_id)
        _confirm(f"participant {participant.name}", yes)
        repo.delete(participant.id)
        console.print("[green]✓ Participant deleted.[/green]")


# Events

@events_app.command("list")
def list_events(ctx: typer.Context):
    """
    List events, newest first.
    """
    with _cli_errors():
        events = _state(ctx).repositories.events.list_all()

        if not events:
            console.print("[yellow]No events found.[/yellow]")
            return

        table = Table(title="Events", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Name", style="bold yellow")
        table.add_column("Date")
        table.add_column("Entrepreneurs", justify="right")

        for event in events:
            table.add_row(
                str(event.id),
                event.name,
                event.event_date.strftime("%d.%m.%Y"),
                str(len(event.entrepreneurs)),
            )

        console.print(table)


@events_app.command("show")
def show_event(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
):
    """
    Show an event and the entrepreneurs assigned to it.
    """
    with _cli_errors():
        event = _state(ctx).repositories.events.get(event_id)

        lines = [
            f"[bold]Date:[/bold] {event.event_date.strftime('%d.%m.%Y')}",
            f"[bold]ID:[/bold] {event.id}",
            "",
            "[bold]Entrepreneurs:[/bold]",
        ]
        if event.entrepreneurs:
            lines.extend(
                f"  • {e.company_name} [dim]({e.business_category}, {e.id})[/dim]"
                for e in event.entrepreneurs
            )
        else:
            lines.append("  [dim]none assigned[/dim]")

        console.print(Panel.fit("\n".join(lines), title=event.name))


@events_app.command("add")
def add_event(
    ctx: typer.Context,
    name: Annotated[str, typer.Option("--name", "-n")],
    date: Annotated[str, typer.Option("--date", "-d", help="Event date (YYYY-MM-DD), today or later")],
):
    """
    Create a new event.
    """
    with _cli_errors():
        event = _state(ctx).service.create_event({"name": name, "event_date": date})
        console.print(f"[green]✓ Created event {event.name}[/green] ({event.id})")


@events_app.command("update")
def update_event(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    name: Annotated[Optional[str], typer.Option("--name", "-n")] = None,
    date: Annotated[Optional[str], typer.Option("--date", "-d")] = None,
):
    """
    Rename or reschedule an event.
    """
    with _cli_errors():
        event = _state(ctx).service.update_event(event_id, _present(name=name, event_date=date))
        console.print(f"[green]✓ Updated event {event.name}[/green]")


@events_app.command("remove")
def remove_event(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    yes: Annotated[bool, typer.Option("--yes", "-y")] = False,
):
    """
    Delete an event together with its assignments and bookings.
    """
    with _cli_errors():
        repo = _state(ctx).repositories.events
        event = repo.get(event_id)
        _confirm(f"event {event.name}", yes)
        repo.delete(event.id)
        console.print("[green]✓ Event deleted.[/green]")


@events_app.command("assign")
def assign_entrepreneur(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    entrepreneur_id: Annotated[str, typer.Argument(help="Entrepreneur ID")],
):
    """
    Assign an entrepreneur to an event.
    """
    with _cli_errors():
        _state(ctx).service.assign_entrepreneur(event_id, entrepreneur_id)
        console.print("[green]✓ Entrepreneur assigned.[/green]")


@events_app.command("unassign")
def unassign_entrepreneur(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    entrepreneur_id: Annotated[str, typer.Argument(help="Entrepreneur ID")],
):
    """
    Remove an entrepreneur from an event.
    """
    with _cli_errors():
        _state(ctx).repositories.events.remove_entrepreneur(event_id, entrepreneur_id)
        console.print("[green]✓ Entrepreneur removed from event.[/green]")


# Bookings

@bookings_app.command("list")
def list_bookings(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
):
    """
    List the bookings of an event by time slot.
    """
    with _cli_errors():
        bookings = _state(ctx).repositories.bookings.list_by_event(event_id)

        if not bookings:
            console.print("[yellow]No bookings for this event.[/yellow]")
            return

        table = Table(title="Bookings", show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Time slot", style="bold")
        table.add_column("Entrepreneur", style="yellow")
        table.add_column("Participant")

        for booking in bookings:
            table.add_row(
                str(booking.id),
                booking.slot.info.display_name if booking.slot else booking.time_slot,
                booking.entrepreneur.company_name if booking.entrepreneur else str(booking.entrepreneur_id),
                booking.participant.name if booking.participant else str(booking.participant_id),
            )

        console.print(table)


@bookings_app.command("add")
def add_booking(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Option("--event", help="Event ID")],
    entrepreneur_id: Annotated[str, typer.Option("--entrepreneur", help="Entrepreneur ID")],
    participant_id: Annotated[str, typer.Option("--participant", help="Participant ID")],
    slot: Annotated[str, typer.Option("--slot", "-s", help="Time slot, e.g. 10:00-11:00")],
):
    """
    Book a meeting between a participant and an entrepreneur.
    """
    with _cli_errors():
        booking = _state(ctx).service.create_booking(
            {
                "event_id": event_id,
                "entrepreneur_id": entrepreneur_id,
                "participant_id": participant_id,
                "time_slot": slot,
            }
        )
        console.print(f"[green]✓ Booked {booking.time_slot}[/green] ({booking.id})")


@bookings_app.command("cancel")
def cancel_booking(
    ctx: typer.Context,
    booking_id: Annotated[str, typer.Argument(help="Booking ID")],
):
    """
    Cancel a booking, freeing its slot.
    """
    with _cli_errors():
        _state(ctx).service.cancel_booking(booking_id)
        console.print("[green]✓ Booking cancelled.[/green]")


@bookings_app.command("agenda")
def agenda(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
):
    """
    Print the meeting schedule of an event with concrete times.
    """
    with _cli_errors():
        state = _state(ctx)
        event = state.repositories.events.get(event_id)
        bookings = state.repositories.bookings.list_by_event(event.id)

        console.print(f"\n[bold cyan]🗓️  {event.name}[/bold cyan]\n")
        if not bookings:
            console.print("[yellow]No meetings booked.[/yellow]")
            return

        for booking in bookings:
            if booking.slot is None:
                continue
            time_range = booking.slot.info.on(event.event_date, state.config.timezone)
            company = booking.entrepreneur.company_name if booking.entrepreneur else booking.entrepreneur_id
            person = booking.participant.name if booking.participant else booking.participant_id
            console.print(f"  {time_range}  {company} ↔ {person}")
        console.print()


# Availability

def parse_unavailable(values: List[str]) -> Set[Tuple[UUID, TimeSlot]]:
    """Parse ``ENTREPRENEUR_ID=SLOT`` overrides."""
    pairs: Set[Tuple[UUID, TimeSlot]] = set()
    for value in values:
        entrepreneur_id, _, slot_value = value.partition("=")
        slot = TimeSlot.parse(slot_value)
        if slot is None:
            raise typer.BadParameter(f"Unknown time slot in {value!r}")
        try:
            pairs.add((UUID(entrepreneur_id), slot))
        except ValueError:
            raise typer.BadParameter(f"Invalid entrepreneur ID in {value!r}") from None
    return pairs


def render_grid(grid: EventAvailabilityGrid, title: str = "Availability") -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Entrepreneur", style="bold yellow")
    for slot in TIME_SLOTS:
        table.add_column(TIME_SLOT_INFO[slot].display_name, justify="center")

    for row in grid.entrepreneurs:
        cells = []
        for cell in row.time_slots:
            if cell.status == BookingStatus.BOOKED and cell.booking is not None:
                participant = cell.booking.participant
                cells.append(f"[red]{participant.name if participant else 'booked'}[/red]")
            else:
                cells.append(STATUS_STYLE[cell.status])
        table.add_row(row.entrepreneur.company_name, *cells)

    return table


@app.command()
def grid(
    ctx: typer.Context,
    event_id: Annotated[str, typer.Argument(help="Event ID")],
    unavailable: Annotated[Optional[List[str]], typer.Option("--unavailable", "-u", help="Block a slot: ENTREPRENEUR_ID=10:00-11:00")] = None,
    watch: Annotated[bool, typer.Option("--watch", "-w", help="Redraw whenever bookings change.")] = False,
):
    """
    Show the entrepreneur x time slot availability grid of an event.
    """
    overrides = parse_unavailable(unavailable or [])

    with _cli_errors():
        state = _state(ctx)
        event = state.repositories.events.get(event_id)

        def show(_bookings=None) -> None:
            current = state.service.availability_grid(event.id, overrides)
            if not current.entrepreneurs:
                console.print("[yellow]No entrepreneurs assigned to this event.[/yellow]")
                return
            stamp = pendulum.now(state.config.timezone).format("HH:mm:ss")
            console.print(render_grid(current, title=f"{event.name} ({stamp})"))
            console.print(
                f"  {current.count(BookingStatus.BOOKED)} booked, "
                f"{current.count(BookingStatus.AVAILABLE)} free\n"
            )

        if not watch:
            show()
            return

        watcher = BookingWatcher(
            state.repositories.bookings,
            event.id,
            interval=state.config.watch_interval,
        )
        console.print("[dim]Watching for booking changes, press Ctrl+C to stop.[/dim]\n")
        try:
            watcher.run(show)
        except KeyboardInterrupt:
            console.print("\n[dim]Stopped.[/dim]")


@app.command()
def slots():
    """
    List the bookable time slots.
    """
    table = Table(title="Time slots", show_header=True, header_style="bold cyan")
    table.add_column("Slot", style="bold yellow")
    table.add_column("Display")
    table.add_column("Part of day")

    for slot in TIME_SLOTS:
        info = TIME_SLOT_INFO[slot]
        table.add_row(slot.value, info.display_name, "morning" if info.is_morning else "afternoon")

    console.print(table)


# Connection

@app.command()
def check_connection(ctx: typer.Context):
    """
    Test the connection to the hosted database.
    """
    with _cli_errors():
        state = _state(ctx)
        state.gateway.ping()
        console.print(Panel.fit(
            f"[bold green]✓ Connection successful![/bold green]\n\n"
            f"[bold]Project:[/bold] {state.config.supabase_url}",
            title="✓ Connection test"
        ))


@app.command()
def login(
    ctx: typer.Context,
    api_key: Annotated[Optional[str], typer.Option("--api-key", help="API key; prompted for when omitted.")] = None,
):
    """
    Store the API key of the configured project in the system keyring.
    """
    with _cli_errors():
        config = _state(ctx).config
        key = api_key or typer.prompt("API key", hide_input=True)

        store = CredentialStore()
        store.save_key(config.supabase_url, key)
        if store.insecure_storage_warning:
            console.print(f"[yellow]⚠  {store.insecure_storage_warning}[/yellow]")
        console.print(f"[green]✓ API key stored ({store.backend}).[/green]")


@app.command()
def logout(ctx: typer.Context):
    """
    Remove the stored API key of the configured project.
    """
    with _cli_errors():
        config = _state(ctx).config
        CredentialStore().clear(config.supabase_url)
        console.print("[green]✓ Stored API key removed.[/green]")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetingdesk[/bold cyan] version [bold]{__version__}[/bold]\n")


def _present(**fields) -> Dict[str, object]:
    """Keep only the options the user actually passed."""
    return {name: value for name, value in fields.items() if value is not None}


if __name__ == "__main__":
    app()
