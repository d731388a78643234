"""Sync package: the client the UI layer talks to."""

from .client import SyncClient

__all__ = ["SyncClient"]
