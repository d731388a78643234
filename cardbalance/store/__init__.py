"""Storage package for the cached card record."""

from .cache import CardStore, MemoryCardStore, SQLiteCardStore, open_store

__all__ = ["CardStore", "MemoryCardStore", "SQLiteCardStore", "open_store"]
