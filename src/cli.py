"""Command line interface for greenmap."""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from greenmap.auth.models import Profile, Role
from greenmap.auth.roles import PENDING_BANNER, Action, RoleGate, authorize
from greenmap.auth.session import Session, sign_up
from greenmap.config import GreenmapConfig, load_config, merge_cli_overrides
from greenmap.content.authoring import ADDRESS_NOT_FOUND, ContentAuthor, Submission
from greenmap.content.backend import JsonRecordBackend
from greenmap.content.images import LocalImageStorage
from greenmap.content.models import Event, Place, RecordKind
from greenmap.content.store import ContentStore
from greenmap.errors import AuthorizationError, StoreError
from greenmap.geo.directions import APPLE_HINT, PlatformHint, build_directions_url
from greenmap.geo.geocoding import GeocodingService, NotFound
from greenmap.geo.location import FixedLocationSensor, LocationFields, use_my_location
from greenmap.map.controller import MapController
from greenmap.map.filters import EventWindow

app = typer.Typer(
    name="greenmap",
    help="Browse and author nature places and events on the map.",
)

console = Console()


class _Context:
    def __init__(self, config: GreenmapConfig) -> None:
        self.config = config
        self.backend = JsonRecordBackend(config.store_dir)
        self.store = ContentStore(self.backend)
        self.gate = RoleGate(self.backend)
        self.geocoder = GeocodingService(config.geocoding, bounds=config.map.bounds)

    def session(self, profile_id: str | None) -> Session:
        session = Session(self.gate)
        if profile_id:
            session.sign_in(profile_id)
        return session


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from greenmap import __version__

        console.print(f"greenmap {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .greenmap.toml file."),
    ] = None,
    store: Annotated[
        Optional[Path],
        typer.Option("--store", "-s", help="Directory holding the record store."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show info logging.")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """greenmap - places and events on a bounded map."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )
    config = load_config(config_path)
    config = merge_cli_overrides(
        config, store_directory=str(store) if store is not None else None
    )
    ctx.obj = _Context(config)


def _records_table(title: str, records: list[Place | Event]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Kind")
    table.add_column("Title", style="bold")
    table.add_column("Category")
    table.add_column("Vibes")
    table.add_column("Starts")
    for record in records:
        starts = ""
        if isinstance(record, Event) and record.start_time is not None:
            starts = record.start_time.strftime("%Y-%m-%d %H:%M")
        table.add_row(
            record.id, str(record.kind), record.title, record.category, ", ".join(record.vibes), starts
        )
    return table


@app.command("markers")
def markers_cmd(
    ctx: typer.Context,
    window: Annotated[
        EventWindow, typer.Option("--window", "-w", help="Event time window.")
    ] = EventWindow.ALL,
    places: Annotated[bool, typer.Option("--places/--no-places")] = True,
    events: Annotated[bool, typer.Option("--events/--no-events")] = True,
) -> None:
    """List the markers the map would show."""
    context: _Context = ctx.obj
    controller = MapController(context.store)
    controller.mount()
    controller.set_filters(show_places=places, show_events=events, event_window=window)
    if not controller.markers:
        console.print("[yellow]Nothing to show.[/yellow]")
        return
    console.print(_records_table("Markers", controller.markers))


@app.command("show")
def show_cmd(
    ctx: typer.Context,
    record_id: Annotated[str, typer.Argument(help="Record id.")],
    kind: Annotated[RecordKind, typer.Option("--kind", "-k")] = RecordKind.PLACE,
    apple: Annotated[bool, typer.Option("--apple", help="Build an Apple Maps link.")] = False,
) -> None:
    """Show the detail panel for one place or event."""
    context: _Context = ctx.obj
    controller = MapController(context.store)
    controller.mount()
    controller.select_by_id(kind, record_id)
    panel = controller.detail_panel()
    if panel is None:
        console.print(f"[red]No {kind} with id {record_id}[/red]")
        raise typer.Exit(1)

    label = "Event" if panel.is_event else "Place"
    console.print(f"[bold]{panel.title}[/bold]")
    console.print(f"{label}" + (f" · {panel.category}" if panel.category else ""))
    if panel.description:
        console.print(panel.description)
    if panel.vibes:
        console.print("Vibes: " + ", ".join(panel.vibes))
    if panel.address:
        console.print(f"Address: {panel.address}")
    if panel.is_event:
        if panel.start_time:
            console.print(f"Starts: {panel.start_time:%Y-%m-%d %H:%M}")
        if panel.end_time:
            console.print(f"Ends: {panel.end_time:%Y-%m-%d %H:%M}")
    url = controller.directions(APPLE_HINT if apple else PlatformHint())
    if url:
        console.print(f"Directions: {url}")


@app.command()
def geocode(
    ctx: typer.Context,
    address: Annotated[str, typer.Argument(help="Address to look up.")],
) -> None:
    """Resolve an address to coordinates."""
    context: _Context = ctx.obj
    result = context.geocoder.forward_geocode(address)
    if isinstance(result, NotFound):
        console.print(f"[red]{ADDRESS_NOT_FOUND}[/red]")
        raise typer.Exit(1)
    console.print(f"{result.lat},{result.lng}  {result.display_address}")


@app.command()
def reverse(
    ctx: typer.Context,
    lat: Annotated[float, typer.Argument()],
    lng: Annotated[float, typer.Argument()],
) -> None:
    """Resolve coordinates to an address."""
    context: _Context = ctx.obj
    address = context.geocoder.reverse_geocode(lat, lng)
    console.print(address or "[yellow]No address available.[/yellow]")


@app.command()
def locate(ctx: typer.Context) -> None:
    """Fill coordinates from the configured device location."""
    context: _Context = ctx.obj
    loc = context.config.location
    sensor = FixedLocationSensor(loc.lat, loc.lng) if loc.is_configured else None
    fields = LocationFields()
    asyncio.run(use_my_location(fields, sensor, context.geocoder))
    if fields.notice:
        console.print(f"[yellow]{fields.notice}[/yellow]")
        raise typer.Exit(1)
    console.print(f"{fields.lat},{fields.lng}  {fields.address}")


@app.command()
def directions(
    lat: Annotated[str, typer.Argument()],
    lng: Annotated[str, typer.Argument()],
    apple: Annotated[bool, typer.Option("--apple", help="Target Apple Maps.")] = False,
    user_agent: Annotated[
        Optional[str], typer.Option("--user-agent", help="Client user agent string.")
    ] = None,
) -> None:
    """Print a navigation link for a coordinate pair."""
    hint = APPLE_HINT if apple else PlatformHint(user_agent=user_agent or "")
    url = build_directions_url(lat, lng, hint)
    if url is None:
        console.print("[red]Invalid coordinates.[/red]")
        raise typer.Exit(1)
    console.print(url, soft_wrap=True)


@app.command()
def signup(
    ctx: typer.Context,
    email: Annotated[str, typer.Argument()],
    org: Annotated[bool, typer.Option("--org", help="Sign up as an organization.")] = False,
) -> None:
    """Create a profile for a new account."""
    context: _Context = ctx.obj
    try:
        profile = sign_up(context.backend, email, organization=org)
    except StoreError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    console.print(f"Created {profile.role} profile {profile.id}")
    if org:
        console.print("Your organization account has been created and is awaiting approval.")


def _acting_admin(context: _Context, profile_id: str) -> Profile:
    profile = context.session(profile_id).profile
    decision = authorize(profile, Action.REVIEW_ORGS)
    if profile is None or not decision.allowed:
        console.print(f"[red]{decision.reason}[/red]")
        raise typer.Exit(1)
    return profile


AsOption = Annotated[str, typer.Option("--as", help="Acting account id.")]


@app.command()
def pending(ctx: typer.Context, acting: AsOption) -> None:
    """List organizations awaiting approval."""
    context: _Context = ctx.obj
    admin = _acting_admin(context, acting)
    orgs = context.gate.pending_orgs(admin)
    if not orgs:
        console.print("No pending organizations.")
        return
    table = Table(title="Pending organizations")
    table.add_column("ID", style="dim")
    table.add_column("Email")
    table.add_column("Signed up")
    for p in orgs:
        table.add_row(p.id, p.email, p.created_at.strftime("%Y-%m-%d") if p.created_at else "")
    console.print(table)


def _review(context: _Context, acting: str, profile_id: str, approve: bool) -> None:
    admin = _acting_admin(context, acting)
    try:
        if approve:
            result = context.gate.approve_org(admin, profile_id)
        else:
            result = context.gate.deny_org(admin, profile_id)
    except (AuthorizationError, StoreError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    if result is None:
        console.print(f"[red]No profile {profile_id}[/red]")
        raise typer.Exit(1)
    console.print(f"{result.id} is now {result.role}")


@app.command()
def approve(
    ctx: typer.Context, profile_id: Annotated[str, typer.Argument()], acting: AsOption
) -> None:
    """Approve a pending organization."""
    _review(ctx.obj, acting, profile_id, approve=True)


@app.command()
def deny(
    ctx: typer.Context, profile_id: Annotated[str, typer.Argument()], acting: AsOption
) -> None:
    """Deny a pending organization (it becomes a regular user)."""
    _review(ctx.obj, acting, profile_id, approve=False)


def _author(context: _Context, acting: str, submission: Submission, kind: RecordKind) -> None:
    session = context.session(acting)
    profile = session.profile
    if profile is not None and profile.role == Role.PENDING_ORG:
        console.print(f"[yellow]{PENDING_BANNER}[/yellow]")
    author = ContentAuthor(
        context.store,
        context.geocoder,
        images=LocalImageStorage(context.config.store_dir),
        bounds=context.config.map.bounds,
    )
    if kind == RecordKind.EVENT:
        result = author.submit_event(profile, submission)
    else:
        result = author.submit_place(profile, submission)
    if not result.ok or result.record is None:
        console.print(f"[red]{result.notice}[/red]")
        raise typer.Exit(1)
    console.print(f"Added {kind} {result.record.id}: {result.record.title}")


@app.command("add-place")
def add_place(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument()],
    acting: AsOption,
    address: Annotated[str, typer.Option("--address", "-a")] = "",
    lat: Annotated[Optional[float], typer.Option("--lat")] = None,
    lng: Annotated[Optional[float], typer.Option("--lng")] = None,
    category: Annotated[str, typer.Option("--category")] = "",
    description: Annotated[str, typer.Option("--description")] = "",
    vibe: Annotated[Optional[list[str]], typer.Option("--vibe")] = None,
    photo: Annotated[Optional[Path], typer.Option("--photo")] = None,
) -> None:
    """Add a place."""
    submission = Submission(
        title=title,
        category=category,
        description=description,
        vibes=vibe or [],
        address=address,
        lat=lat,
        lng=lng,
        photo=photo,
    )
    _author(ctx.obj, acting, submission, RecordKind.PLACE)


@app.command("add-event")
def add_event(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument()],
    acting: AsOption,
    start: Annotated[datetime, typer.Option("--start")],
    end: Annotated[datetime, typer.Option("--end")],
    address: Annotated[str, typer.Option("--address", "-a")] = "",
    lat: Annotated[Optional[float], typer.Option("--lat")] = None,
    lng: Annotated[Optional[float], typer.Option("--lng")] = None,
    category: Annotated[str, typer.Option("--category")] = "",
    description: Annotated[str, typer.Option("--description")] = "",
    vibe: Annotated[Optional[list[str]], typer.Option("--vibe")] = None,
    photo: Annotated[Optional[Path], typer.Option("--photo")] = None,
) -> None:
    """Add an event (approved organizations only)."""
    submission = Submission(
        title=title,
        category=category,
        description=description,
        vibes=vibe or [],
        address=address,
        lat=lat,
        lng=lng,
        photo=photo,
        start_time=start,
        end_time=end,
    )
    _author(ctx.obj, acting, submission, RecordKind.EVENT)


if __name__ == "__main__":
    app()
