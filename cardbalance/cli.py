"""Command-line interface for the card balance client."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel

from .core.types import Envelope
from .sync.client import SyncClient
from .ui.render import card_panel
from .utils.config import settings
from .utils.log import configure_logging, get_logger

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Rich console
console = Console()

app = typer.Typer(
    name="cardbalance",
    help="Card Balance - scan a card image and keep its balance in sync",
    add_completion=False
)


def _build_client() -> SyncClient:
    return SyncClient.from_settings(settings)


async def _with_client(operation):
    async with _build_client() as client:
        return await operation(client)


def _show_envelope(envelope: Envelope) -> None:
    if not envelope.success:
        console.print(f"[red]❌ {envelope.error}[/red]")
        raise typer.Exit(1)

    if envelope.is_fallback:
        console.print("[yellow]⚠ Recognition service unreachable - showing offline data[/yellow]")
    console.print(card_panel(envelope.data, fallback=envelope.is_fallback))


@app.command()
def scan(
    image: Path = typer.Argument(..., help="Path to a photo of the card"),
):
    """Submit a card image for recognition and cache the result."""
    with console.status("[bold green]Processing card image...", spinner="dots"):
        envelope = asyncio.run(_with_client(lambda client: client.submit_image(image)))
    _show_envelope(envelope)


@app.command()
def refresh(
    card_number: Optional[str] = typer.Argument(None, help="Card number (defaults to the cached card)"),
):
    """Refresh the balance of the cached (or given) card."""
    if card_number is None:
        cached = _build_client().get_cached()
        if cached is None:
            console.print("[yellow]Please scan a card first to refresh the balance.[/yellow]")
            raise typer.Exit(1)
        card_number = cached.card_number

    with console.status("[bold green]Refreshing balance...", spinner="dots"):
        envelope = asyncio.run(_with_client(lambda client: client.refresh_balance(card_number)))
    if envelope.success:
        console.print("[green]✓ Balance updated successfully![/green]")
    _show_envelope(envelope)


@app.command()
def show():
    """Show the cached card."""
    client = _build_client()
    card = client.get_cached()
    if card is None:
        console.print(Panel.fit(
            "[bold]No card data[/bold]\n[dim]Scan a card to see its balance here.[/dim]",
            border_style="dim"
        ))
        raise typer.Exit(1)
    console.print(card_panel(card, updated_at=client.last_updated()))


@app.command()
def clear():
    """Forget the cached card."""
    if not _build_client().clear_cached():
        console.print("[red]❌ Failed to clear card data[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ Card data cleared[/green]")


@app.command()
def health():
    """Check whether the recognition service is reachable."""
    healthy = asyncio.run(_with_client(lambda client: client.check_health()))
    if healthy:
        console.print(f"[green]✓ API reachable[/green] [dim]{settings.API_BASE_URL}[/dim]")
    else:
        console.print(f"[red]❌ API unreachable[/red] [dim]{settings.API_BASE_URL}[/dim]")
        raise typer.Exit(1)

