"""HTTP transport for the card recognition service."""

import asyncio
from typing import Any, Awaitable, Dict, Optional

import aiohttp

from ..core.constants import (
    HEALTH_PATH,
    IMAGE_CONTENT_TYPE,
    IMAGE_FIELD,
    IMAGE_FILENAME,
    REFRESH_BALANCE_PATH,
    SCAN_CARD_PATH,
    SCAN_FORM_FIELDS,
)
from ..utils.error_handler import (
    HttpError,
    InvalidResponseError,
    NetworkError,
    RequestTimeoutError,
)
from ..utils.log import LoggerMixin


class CancelToken:
    """Cancellation signal for a single transport call.

    The caller owns the deadline: ``CancelToken.after(10.0)`` arms a timer on
    the running loop that fires the token, and ``dispose()`` disarms it once
    the call is over.
    """

    def __init__(self):
        self._event = asyncio.Event()
        self._timer: Optional[asyncio.TimerHandle] = None
        self.reason: Optional[str] = None

    @classmethod
    def after(cls, timeout_s: float) -> "CancelToken":
        token = cls()
        loop = asyncio.get_running_loop()
        token._timer = loop.call_later(timeout_s, token.cancel, f"deadline of {timeout_s}s exceeded")
        return token

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def dispose(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def __enter__(self) -> "CancelToken":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()


class CardServiceTransport(LoggerMixin):
    """Talks to the recognition service. Never touches the cache."""

    def __init__(self, base_url: str, session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure aiohttp session exists."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def _until_cancelled(self, request: Awaitable[Any], cancel: CancelToken, url: str) -> Any:
        """Run ``request`` unless ``cancel`` fires first.

        On cancellation the request task is cancelled so its connection is
        released, and RequestTimeoutError is raised.
        """
        if cancel.cancelled:
            if asyncio.iscoroutine(request):
                request.close()
            raise RequestTimeoutError(
                "Request cancelled before it was sent", details={"url": url, "reason": cancel.reason}
            )

        request_task = asyncio.ensure_future(request)
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait(
                {request_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            request_task.cancel()
            raise
        finally:
            cancel_task.cancel()

        if request_task in done:
            return request_task.result()

        request_task.cancel()
        await asyncio.gather(request_task, return_exceptions=True)
        raise RequestTimeoutError(
            "Request timed out", details={"url": url, "reason": cancel.reason}
        )

    async def _post(self, path: str, cancel: CancelToken, **kwargs: Any) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        session = await self._ensure_session()
        context = self.log_start("http_post", url=url)

        async def send() -> Dict[str, Any]:
            async with session.post(url, **kwargs) as response:
                if not 200 <= response.status < 300:
                    raise HttpError(response.status, response.reason or "", details={"url": url})
                try:
                    body = await response.json(content_type=None)
                except ValueError as e:
                    raise InvalidResponseError(
                        "Response body is not valid JSON", details={"url": url, "error": str(e)}
                    ) from e
                if not isinstance(body, dict):
                    raise InvalidResponseError(
                        "Response body is not a JSON object",
                        details={"url": url, "type": type(body).__name__}
                    )
                return body

        try:
            body = await self._until_cancelled(send(), cancel, url)
        except (HttpError, InvalidResponseError, RequestTimeoutError) as e:
            self.log_error(context, e)
            raise
        except asyncio.TimeoutError as e:
            self.log_error(context, e)
            raise RequestTimeoutError("Request timed out", details={"url": url}) from e
        except (aiohttp.ClientError, OSError) as e:
            self.log_error(context, e)
            raise NetworkError(str(e) or type(e).__name__, details={"url": url}) from e

        self.log_success(context, success=body.get("success"))
        return body

    async def submit_image(self, image: bytes, cancel: CancelToken) -> Dict[str, Any]:
        """Upload a card image for recognition and return the parsed body."""
        form = aiohttp.FormData()
        form.add_field(IMAGE_FIELD, image, filename=IMAGE_FILENAME, content_type=IMAGE_CONTENT_TYPE)
        for name, value in SCAN_FORM_FIELDS:
            form.add_field(name, value)
        return await self._post(SCAN_CARD_PATH, cancel, data=form)

    async def refresh_balance(self, card_number: str, cancel: CancelToken) -> Dict[str, Any]:
        """Ask the service for the current balance of a known card."""
        return await self._post(REFRESH_BALANCE_PATH, cancel, json={"card_number": card_number})

    async def check_health(self, cancel: CancelToken) -> bool:
        """Return True iff the health endpoint answers 2xx before ``cancel`` fires."""
        url = f"{self.base_url}{HEALTH_PATH}"
        session = await self._ensure_session()

        async def probe() -> bool:
            async with session.get(url) as response:
                return 200 <= response.status < 300

        try:
            return await self._until_cancelled(probe(), cancel, url)
        except (RequestTimeoutError, asyncio.TimeoutError, aiohttp.ClientError, OSError) as e:
            self.logger.warning("API health check failed", url=url, error=str(e),
                                error_type=type(e).__name__)
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def __aenter__(self) -> "CardServiceTransport":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()
