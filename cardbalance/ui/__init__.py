"""Terminal presentation helpers."""

from .render import card_panel, format_amount, format_last_updated

__all__ = ["card_panel", "format_amount", "format_last_updated"]
