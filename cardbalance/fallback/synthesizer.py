"""Locally synthesized card data for when the recognition service is unreachable."""

import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from decimal import ROUND_CEILING, ROUND_DOWN, Decimal
from typing import Callable, List, Optional

from ..core.constants import BALANCE_CHECK_DESCRIPTION, FALLBACK_MAX_DELTA, HISTORY_CAP
from ..core.types import CardData, Transaction
from ..utils.error_handler import CacheError, ConfigurationError, NoCachedDataError
from ..utils.log import get_logger
from ..utils.validation import parse_balance

CENT = Decimal("0.01")

SENTINEL_CARD_NUMBER = "1234567890123456"
SENTINEL_BALANCE = "45.67"
SENTINEL_CARD_TYPE = "Gift Card"
SENTINEL_CARD_HOLDER = "Card Holder"
SENTINEL_EXPIRY_DATE = "12/25"
SENTINEL_ISSUER = "Sample Store"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix for UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FallbackSynthesizer:
    """Builds substitute CardData so callers always get something to show.

    Submissions get a fixed sentinel record; refreshes patch the cached record
    with a small random balance bump and a zero-amount "Balance Check" entry.
    Randomness and time are injectable so results are reproducible.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
        history_cap: int = HISTORY_CAP,
        max_delta: int = FALLBACK_MAX_DELTA,
    ):
        if history_cap < 1:
            raise ConfigurationError("history_cap must be at least 1", details={"history_cap": history_cap})
        self.rng = rng if rng is not None else random.Random(seed)
        self.clock = clock
        self.history_cap = history_cap
        self.max_delta = Decimal(max_delta)
        self.logger = get_logger(__name__)

    def sentinel_card(self) -> CardData:
        """The placeholder record returned when an image submission fails."""
        now = self.clock()
        return CardData(
            card_number=SENTINEL_CARD_NUMBER,
            balance=SENTINEL_BALANCE,
            card_type=SENTINEL_CARD_TYPE,
            card_holder=SENTINEL_CARD_HOLDER,
            expiry_date=SENTINEL_EXPIRY_DATE,
            issuer=SENTINEL_ISSUER,
            last_transactions=[
                Transaction(
                    id="1",
                    description="Purchase at Store #123",
                    amount=-15.99,
                    date=to_iso(now),
                ),
                Transaction(
                    id="2",
                    description="Card Reload",
                    amount=50.00,
                    date=to_iso(now - timedelta(days=1)),
                ),
            ],
        )

    def _balance_delta(self) -> Decimal:
        # Truncated so the refreshed balance stays strictly below B + max_delta.
        delta = Decimal(str(self.rng.random())) * self.max_delta
        return delta.quantize(CENT, rounding=ROUND_DOWN)

    def _transaction_id(self, now: datetime, existing: List[Transaction]) -> str:
        """Epoch milliseconds, bumped past any numeric id already in the history."""
        candidate = int(now.timestamp() * 1000)
        numeric = [int(t.id) for t in existing if t.id.isdigit()]
        if numeric and max(numeric) >= candidate:
            candidate = max(numeric) + 1
        return str(candidate)

    def refreshed_card(self, cached: Optional[CardData]) -> CardData:
        """Patch the cached record as if its balance had just been re-checked.

        Raises:
            NoCachedDataError: If there is no cached record to start from
            CacheError: If the cached balance is not a decimal number
        """
        if cached is None:
            raise NoCachedDataError()

        try:
            current = parse_balance(cached.balance)
        except ConfigurationError as e:
            raise CacheError(
                "Cached balance is not a number",
                details={"balance": cached.balance, "card_number": cached.card_number}
            ) from e

        # Rounded up so sub-cent cached balances never shrink; still below B + max_delta.
        new_balance = (current + self._balance_delta()).quantize(CENT, rounding=ROUND_CEILING)
        now = self.clock()
        check = Transaction(
            id=self._transaction_id(now, cached.last_transactions),
            description=BALANCE_CHECK_DESCRIPTION,
            amount=0.0,
            date=to_iso(now),
        )
        history = [check, *cached.last_transactions][: self.history_cap]

        self.logger.debug(
            "Synthesized refresh",
            previous_balance=cached.balance,
            balance=f"{new_balance:.2f}",
            history_length=len(history),
        )
        return replace(cached, balance=f"{new_balance:.2f}", last_transactions=history)
