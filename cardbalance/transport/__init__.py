"""Transport package for the card recognition service."""

from .client import CancelToken, CardServiceTransport

__all__ = ["CancelToken", "CardServiceTransport"]
