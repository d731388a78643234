"""Card Balance - scan a card image, sync its balance with a recognition service, and cache it."""

__version__ = "1.0.0"
__author__ = "Card Balance Team"
__description__ = "Card-data synchronization client: image submission, balance refresh, offline fallback and local caching"

from .core.types import CardData, Envelope, Transaction
from .fallback.synthesizer import FallbackSynthesizer
from .store.cache import CardStore, MemoryCardStore, SQLiteCardStore, open_store
from .sync.client import SyncClient
from .transport.client import CancelToken, CardServiceTransport
from .utils.config import settings
from .utils.log import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__description__",
    # Core components
    "configure_logging",
    "get_logger",
    "settings",
    "CardData",
    "Transaction",
    "Envelope",
    "CancelToken",
    "CardServiceTransport",
    "FallbackSynthesizer",
    "CardStore",
    "MemoryCardStore",
    "SQLiteCardStore",
    "open_store",
    "SyncClient",
]
