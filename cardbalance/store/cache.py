"""Single-slot local cache for the most recently known card."""

import json
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from ..core.constants import STORAGE_KEY
from ..core.types import CardData
from ..utils.config import Settings, ensure_cache_dir
from ..utils.error_handler import CacheError, CardBalanceError
from ..utils.log import get_logger


class CardStore(ABC):
    """Holds at most one CardData record. Writes overwrite; last writer wins."""

    @abstractmethod
    def read(self) -> Optional[CardData]:
        """Return the cached record, or None when the slot is empty."""

    @abstractmethod
    def write(self, card: CardData) -> None:
        """Replace the cached record."""

    @abstractmethod
    def clear(self) -> None:
        """Empty the slot."""

    @abstractmethod
    def updated_at(self) -> Optional[str]:
        """ISO timestamp of the last write, or None when the slot is empty."""


class MemoryCardStore(CardStore):
    """In-process store; nothing survives a restart."""

    def __init__(self, card: Optional[CardData] = None):
        self._card = card
        self._updated_at = datetime.now(timezone.utc).isoformat() if card else None

    def read(self) -> Optional[CardData]:
        return self._card

    def write(self, card: CardData) -> None:
        self._card = card
        self._updated_at = datetime.now(timezone.utc).isoformat()

    def clear(self) -> None:
        self._card = None
        self._updated_at = None

    def updated_at(self) -> Optional[str]:
        return self._updated_at


class SQLiteCardStore(CardStore):
    """Durable store: one JSON row under a well-known key in a SQLite file."""

    def __init__(self, db_path: Union[str, Path], storage_key: str = STORAGE_KEY):
        self.logger = get_logger(__name__)
        self.db_path = Path(db_path)
        self.storage_key = storage_key
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Initialize SQLite database with the key-value table."""
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                """
                )
                conn.commit()
                self.logger.debug("Card store initialized", db_path=str(self.db_path))

        except sqlite3.Error as e:
            self.logger.error("Error initializing card store", db_path=str(self.db_path), error=str(e))
            raise CacheError(
                "Cannot initialize card store", details={"db_path": str(self.db_path), "error": str(e)}
            ) from e

    def _fetch_row(self) -> Optional[sqlite3.Row]:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.row_factory = sqlite3.Row
                cursor = conn.execute(
                    "SELECT value, updated_at FROM kv WHERE key = ?", (self.storage_key,)
                )
                return cursor.fetchone()
        except sqlite3.Error as e:
            self.logger.error("Error reading card store", key=self.storage_key, error=str(e))
            return None

    def read(self) -> Optional[CardData]:
        row = self._fetch_row()
        if row is None:
            self.logger.debug("Cache miss", key=self.storage_key)
            return None

        try:
            card = CardData.from_dict(json.loads(row["value"]))
        except (ValueError, CardBalanceError) as e:
            self.logger.error("Stored card data is corrupt", key=self.storage_key, error=str(e))
            return None

        self.logger.debug("Cache hit", key=self.storage_key, updated_at=row["updated_at"])
        return card

    def write(self, card: CardData) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO kv (key, value, updated_at)
                    VALUES (?, ?, ?)
                """,
                    (self.storage_key, json.dumps(card.to_dict()), now),
                )
                conn.commit()
        except sqlite3.Error as e:
            self.logger.error("Error writing card store", key=self.storage_key, error=str(e))
            raise CacheError(
                "Failed to store card data", details={"key": self.storage_key, "error": str(e)}
            ) from e

        self.logger.debug("Card data stored", key=self.storage_key)

    def clear(self) -> None:
        try:
            with sqlite3.connect(self.db_path) as conn:
                conn.execute("DELETE FROM kv WHERE key = ?", (self.storage_key,))
                conn.commit()
        except sqlite3.Error as e:
            self.logger.error("Error clearing card store", key=self.storage_key, error=str(e))
            raise CacheError(
                "Failed to clear card data", details={"key": self.storage_key, "error": str(e)}
            ) from e

        self.logger.debug("Card data cleared", key=self.storage_key)

    def updated_at(self) -> Optional[str]:
        row = self._fetch_row()
        return row["updated_at"] if row else None


def open_store(settings: Settings) -> SQLiteCardStore:
    """Open the durable store described by ``settings``."""
    return SQLiteCardStore(ensure_cache_dir(settings.CACHE_DB_PATH), settings.STORAGE_KEY)
