"""Terminal rendering of card data with rich."""

from datetime import datetime, timezone
from typing import Optional

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.types import CardData, Transaction
from ..utils.validation import mask_card_number


def format_amount(amount: float) -> str:
    """Credits get a leading ``+``; debits are shown without sign."""
    prefix = "+" if amount > 0 else ""
    return f"{prefix}${abs(amount):.2f}"


def format_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return value


def format_last_updated(updated_at: Optional[str], now: Optional[datetime] = None) -> str:
    """Relative label for the last cache write: ``Just now``, ``5m ago``, ``2h ago``, or a date."""
    if not updated_at:
        return "Never"
    try:
        moment = datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
    except ValueError:
        return updated_at
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    now = now or datetime.now(timezone.utc)
    minutes = int((now - moment).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    return moment.strftime("%Y-%m-%d")


def _amount_text(transaction: Transaction) -> Text:
    style = "green" if transaction.is_credit else "red"
    return Text(format_amount(transaction.amount), style=style)


def transactions_table(card: CardData) -> Table:
    table = Table(title="Recent Transactions", show_header=True, header_style="bold magenta")
    table.add_column("Date", style="dim")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    for transaction in card.last_transactions:
        table.add_row(format_date(transaction.date), transaction.description, _amount_text(transaction))
    return table


def card_panel(card: CardData, fallback: bool = False, updated_at: Optional[str] = None) -> Panel:
    details = Table.grid(padding=(0, 2))
    details.add_column(style="bold")
    details.add_column()
    details.add_row("Card", mask_card_number(card.card_number))
    details.add_row("Balance", Text(f"${card.balance}", style="bold green"))
    for label, value in (
        ("Type", card.card_type),
        ("Holder", card.card_holder),
        ("Expires", card.expiry_date),
        ("Issuer", card.issuer),
    ):
        if value:
            details.add_row(label, value)
    if updated_at is not None:
        details.add_row("Updated", format_last_updated(updated_at))

    parts = [details]
    if card.last_transactions:
        parts.append(transactions_table(card))

    title = "[bold blue]Card Balance[/bold blue]"
    subtitle = "[yellow]offline fallback data[/yellow]" if fallback else None
    border = "yellow" if fallback else "blue"
    return Panel(Group(*parts), title=title, subtitle=subtitle, border_style=border)
