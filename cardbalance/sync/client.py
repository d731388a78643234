"""Card-data synchronization: transport call, fallback, cache write, envelope."""

from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from ..core.constants import (
    HEALTH_TIMEOUT_S,
    REFRESH_FAILED_MESSAGE,
    REQUEST_TIMEOUT_S,
    SCAN_FAILED_MESSAGE,
)
from ..core.types import FALLBACK, LIVE, CardData, Envelope
from ..fallback.synthesizer import FallbackSynthesizer
from ..store.cache import CardStore, open_store
from ..transport.client import CancelToken, CardServiceTransport
from ..utils.config import Settings
from ..utils.error_handler import (
    CacheError,
    CardBalanceError,
    ErrorContext,
    NoCachedDataError,
    TransportError,
    handle_error,
)
from ..utils.log import LoggerMixin
from ..utils.validation import load_image_bytes, validate_card_number

ImageHandle = Union[str, Path, bytes, bytearray]
Request = Callable[[CancelToken], Awaitable[Dict[str, Any]]]


class SyncClient(LoggerMixin):
    """Turns images and card numbers into cached CardData records.

    Every public coroutine resolves to an :class:`Envelope`. Transport failures
    are absorbed by the fallback synthesizer (tagged ``provenance="fallback"``)
    unless ``fallback_enabled`` is False, in which case they surface as
    ``success=False``. The one fallback that can fail is refreshing with an
    empty cache.
    """

    def __init__(
        self,
        transport: CardServiceTransport,
        store: CardStore,
        synthesizer: Optional[FallbackSynthesizer] = None,
        request_timeout_s: float = REQUEST_TIMEOUT_S,
        health_timeout_s: float = HEALTH_TIMEOUT_S,
        fallback_enabled: bool = True,
    ):
        self.transport = transport
        self.store = store
        self.synthesizer = synthesizer or FallbackSynthesizer()
        self.request_timeout_s = request_timeout_s
        self.health_timeout_s = health_timeout_s
        self.fallback_enabled = fallback_enabled

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: Optional[CardStore] = None,
        transport: Optional[CardServiceTransport] = None,
    ) -> "SyncClient":
        """Wire the default stack from application settings."""
        return cls(
            transport=transport or CardServiceTransport(settings.API_BASE_URL),
            store=store if store is not None else open_store(settings),
            synthesizer=FallbackSynthesizer(
                seed=settings.FALLBACK_SEED, history_cap=settings.HISTORY_CAP
            ),
            request_timeout_s=settings.request_timeout_s,
            health_timeout_s=settings.health_timeout_s,
            fallback_enabled=settings.FALLBACK_ENABLED,
        )

    async def submit_image(self, image: ImageHandle) -> Envelope:
        """Submit a card image for recognition and cache the resulting record."""
        try:
            payload = load_image_bytes(image)
        except CardBalanceError as e:
            return self._boundary_failure("submit_image", e, {"image": _describe_image(image)})

        return await self._sync(
            "submit_image",
            lambda token: self.transport.submit_image(payload, token),
            SCAN_FAILED_MESSAGE,
            self.synthesizer.sentinel_card,
            image_bytes=len(payload),
        )

    async def refresh_balance(self, card_number: str) -> Envelope:
        """Refresh the balance of a known card and cache the result."""
        try:
            number = validate_card_number(card_number)
        except CardBalanceError as e:
            return self._boundary_failure("refresh_balance", e, {"card_number": card_number})

        return await self._sync(
            "refresh_balance",
            lambda token: self.transport.refresh_balance(number, token),
            REFRESH_FAILED_MESSAGE,
            lambda: self.synthesizer.refreshed_card(self._cached_for_refresh(number)),
            card_number_tail=number[-4:],
        )

    def get_cached(self) -> Optional[CardData]:
        return self.store.read()

    def last_updated(self) -> Optional[str]:
        return self.store.updated_at()

    def clear_cached(self) -> bool:
        """Empty the cache. Returns False if the store could not be cleared."""
        try:
            self.store.clear()
        except CacheError as e:
            handle_error(e, ErrorContext("clear_cached", __name__, "clear_cached"),
                         self.logger, reraise=False)
            return False
        self.logger.info("Cached card data cleared")
        return True

    async def check_health(self) -> bool:
        with CancelToken.after(self.health_timeout_s) as token:
            return await self.transport.check_health(token)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def _call(self, request: Request) -> Dict[str, Any]:
        with CancelToken.after(self.request_timeout_s) as token:
            return await request(token)

    def _envelope_from_body(self, body: Dict[str, Any], failure_message: str) -> Envelope:
        if body.get("success"):
            return Envelope.ok(CardData.from_dict(body.get("data")), LIVE)
        return Envelope.fail(body.get("error") or failure_message)

    def _cached_for_refresh(self, card_number: str) -> Optional[CardData]:
        cached = self.store.read()
        if cached is not None and cached.card_number != card_number:
            self.logger.warning(
                "Refresh requested for a card other than the cached one; keeping cached card",
                requested_tail=card_number[-4:],
                cached_tail=cached.card_number[-4:],
            )
        return cached

    def _fall_back(
        self, context: Dict[str, Any], error: TransportError, fallback: Callable[[], CardData]
    ) -> Envelope:
        if not self.fallback_enabled:
            self.log_error(context, error, fallback=False)
            return Envelope.fail(error.user_message)

        self.logger.warning(
            "Transport failed, using fallback data",
            operation=context.get("event"),
            error=str(error),
            error_type=type(error).__name__,
        )
        try:
            card = fallback()
        except NoCachedDataError as e:
            self.log_error(context, e, fallback=True)
            return Envelope.fail(e.message)
        return Envelope.ok(card, FALLBACK)

    def _write_cache(self, card: CardData) -> None:
        try:
            self.store.write(card)
        except CacheError as e:
            # The record is still returned; it just won't survive a restart.
            handle_error(e, ErrorContext("cache_write", __name__, "_write_cache",
                                         {"card_number_tail": card.card_number[-4:]}),
                         self.logger, reraise=False)

    async def _sync(
        self,
        operation: str,
        request: Request,
        failure_message: str,
        fallback: Callable[[], CardData],
        **log_context: Any,
    ) -> Envelope:
        context = self.log_start(operation, **log_context)
        try:
            try:
                body = await self._call(request)
                envelope = self._envelope_from_body(body, failure_message)
            except TransportError as e:
                envelope = self._fall_back(context, e, fallback)

            if envelope.success:
                self._write_cache(envelope.data)

            self.log_success(context, success=envelope.success, provenance=envelope.provenance)
            return envelope

        except Exception as e:
            return self._boundary_failure(operation, e, log_context)

    def _boundary_failure(self, operation: str, error: Exception,
                          input_data: Dict[str, Any]) -> Envelope:
        handle_error(error, ErrorContext(operation, __name__, operation, dict(input_data)),
                     self.logger, reraise=False)
        message = error.message if isinstance(error, CardBalanceError) else str(error)
        return Envelope.fail(message or type(error).__name__)


def _describe_image(image: Any) -> str:
    if isinstance(image, (bytes, bytearray)):
        return f"<{len(image)} bytes>"
    return str(image)
