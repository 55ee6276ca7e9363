"""Main CLI application.

Operator tooling for the relay: check broker connectivity, publish an event
the way a service would, and watch the events relayed on a service's
channels.
"""

import asyncio

import typer
from pydantic import ValidationError
from rich.console import Console

from service_sync.broker import Broker, create_broker
from service_sync.channels import channel_name, validate_event_name
from service_sync.codec import decode, encode
from service_sync.exceptions import DecodeError, SyncError
from service_sync.logging import setup_logging
from service_sync.settings import get_settings

app = typer.Typer(
    name="service-sync",
    help="Service sync CLI - broker diagnostics for the event relay",
    no_args_is_help=True,
)
console = Console()

DB_OPTION = typer.Option(
    None,
    "--db",
    help="Broker address (overrides SERVICE_SYNC_DB)",
    metavar="<url>",
)  # fmt: skip
BACKEND_OPTION = typer.Option(
    None,
    "--backend",
    help="Broker backend: redis or memory (overrides SERVICE_SYNC_BACKEND)",
    metavar="<backend>",
    case_sensitive=False,
)  # fmt: skip
LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    help="Log level (overrides SERVICE_SYNC_LOG_LEVEL)",
    metavar="<level>",
    case_sensitive=False,
)  # fmt: skip


def _update_settings(db: str | None, backend: str | None, log_level: str | None) -> None:
    """Update settings with validated CLI overrides.

    Raises:
        ValidationError: If an override is not a valid setting value
    """
    settings = get_settings()

    overrides: dict[str, str] = {}
    if db is not None:
        overrides["db"] = db
    if backend is not None:
        overrides["backend"] = backend
    if log_level is not None:
        overrides["log_level"] = log_level

    validated = settings.with_overrides(**overrides)
    for name in overrides:
        setattr(settings, name, getattr(validated, name))


@app.callback()
def main_callback(
    db: str = DB_OPTION,
    backend: str = BACKEND_OPTION,
    log_level: str = LOG_LEVEL_OPTION,
):
    """Global options for all commands."""
    try:
        _update_settings(db, backend, log_level)
    except ValidationError as e:
        errors = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        console.print(f"[red]Invalid settings: {errors}[/red]")
        raise typer.Exit(1) from e
    setup_logging(get_settings().log_level)


async def _connected_broker() -> Broker:
    broker = create_broker(get_settings())
    await broker.connect()
    return broker


@app.command()
def check():
    """Check that the configured broker accepts connections.

    Examples:
        service-sync check
        service-sync --db redis://cache:6379/1 check
    """
    settings = get_settings()
    console.print(f"[bold]Checking {settings.backend} broker at {settings.db}...[/bold]")

    async def _check() -> None:
        broker = await _connected_broker()
        await broker.disconnect()

    try:
        asyncio.run(_check())
    except ConnectionError as e:
        console.print(f"[red]Broker is not reachable: {e}[/red]")
        raise typer.Exit(1) from e

    console.print("[green]Broker is reachable[/green]")


@app.command()
def publish(
    service: str = typer.Argument(..., help="Service path, e.g. messages"),
    event: str = typer.Argument(..., help="Event name, e.g. created"),
    data: str = typer.Argument("null", help="Event data as JSON text"),
):
    """Publish an event on a service channel as the service itself would.

    Examples:
        service-sync publish messages created '{"text": "hi"}'
    """
    try:
        validate_event_name(event)
        payload = encode(decode(data))
    except SyncError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    channel = channel_name(service, event)

    async def _publish() -> int:
        broker = await _connected_broker()
        try:
            return await broker.publish(channel, payload)
        finally:
            await broker.disconnect()

    try:
        receivers = asyncio.run(_publish())
    except (ConnectionError, SyncError) as e:
        console.print(f"[red]Publish failed: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(f"[green]Published to {channel!r}[/green] [dim]({receivers} receivers)[/dim]")


@app.command()
def listen(
    service: str = typer.Argument(..., help="Service path, e.g. messages"),
    events: list[str] = typer.Argument(..., help="Event names to listen for"),
    count: int = typer.Option(0, "--count", "-n", help="Exit after this many messages (0 = forever)"),
):
    """Print events relayed on a service's channels.

    Examples:
        service-sync listen messages created removed
        service-sync listen messages created --count 1
    """
    try:
        channels = {channel_name(service, validate_event_name(event)): event for event in events}
    except SyncError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    async def _listen() -> None:
        received = 0
        done = asyncio.Event()
        broker = await _connected_broker()

        def on_message(channel: str, payload: str) -> None:
            nonlocal received
            event = channels.get(channel)
            if event is None:
                return
            try:
                data = decode(payload)
            except DecodeError as e:
                console.print(f"[yellow]{channel}: undecodable payload ({e})[/yellow]")
                return
            received += 1
            console.print(f"[cyan]{service}[/cyan] [bold]{event}[/bold]")
            console.print_json(data=data)
            if count and received >= count:
                done.set()

        broker.on_message(on_message)
        await broker.subscribe(*channels)
        console.print(f"[dim]Listening on {', '.join(channels)}[/dim]")
        try:
            await done.wait()
        finally:
            await broker.disconnect()

    try:
        asyncio.run(_listen())
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")
    except ConnectionError as e:
        console.print(f"[red]Broker is not reachable: {e}[/red]")
        raise typer.Exit(1) from e
