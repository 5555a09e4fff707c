from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.translation_models import TranslationResponse


__all__: list[str] = ["InFlightManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class InFlightManager:
    """Coalesces identical concurrent translation requests.

    The first request for a key becomes the producer and runs the provider chain. Requests for the
    same key that arrive while it runs wait for its outcome instead of calling providers again.
    The producer must finish the key with ``complete``, ``fail`` or ``abandon``.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, asyncio.Future[TranslationResponse]] = {}
        self._lock: asyncio.Lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._inflight)

    async def join(self, key: str, timeout: float) -> TranslationResponse | None:
        """Become the producer for a key, or wait for the current producer.

        Args:
            key (str): Request key.
            timeout (float): Maximum seconds to wait for another producer.

        Returns:
            TranslationResponse | None: The producer's response, or None when the caller has become
            the producer and must run the request itself.

        Raises:
            TimeoutError: If the producer did not finish in time or abandoned the request.
            Exception: Whatever the producer failed with.
        """
        async with self._lock:
            fut: asyncio.Future[TranslationResponse] | None = self._inflight.get(key)
            if fut is None:
                self._inflight[key] = asyncio.get_running_loop().create_future()
                logger.debug("Marked in-flight start for key: %s", key[:16])
                return None
            logger.debug("In-flight translation detected for key: %s", key[:16])

        try:
            async with asyncio.timeout(timeout):
                return await asyncio.shield(fut)
        except TimeoutError:
            logger.warning("In-flight translation timeout for key: %s", key[:16])
            msg: str = f"In-flight translation timed out for key: {key[:16]}"
            raise TimeoutError(msg) from None
        except asyncio.CancelledError:
            if not fut.cancelled():
                raise
            msg = f"In-flight translation abandoned for key: {key[:16]}"
            raise TimeoutError(msg) from None

    async def complete(self, key: str, response: TranslationResponse) -> None:
        async with self._lock:
            fut: asyncio.Future[TranslationResponse] | None = self._inflight.pop(key, None)
            if fut is not None and not fut.done():
                fut.set_result(response)
                logger.debug("Set in-flight translation result for key: %s", key[:16])

    async def fail(self, key: str, exc: BaseException) -> None:
        async with self._lock:
            fut: asyncio.Future[TranslationResponse] | None = self._inflight.pop(key, None)
            if fut is not None and not fut.done():
                fut.set_exception(exc)
                # Mark as retrieved so an exception nobody waited for is not reported at GC time.
                fut.exception()
                logger.debug("Set in-flight translation exception for key: %s", key[:16])

    async def abandon(self, key: str) -> None:
        """Release a key without an outcome; waiters get TimeoutError."""
        async with self._lock:
            fut: asyncio.Future[TranslationResponse] | None = self._inflight.pop(key, None)
            if fut is not None and not fut.done():
                fut.cancel()
                logger.debug("Abandoned in-flight translation for key: %s", key[:16])

    async def cancel_all(self) -> None:
        async with self._lock:
            for fut in self._inflight.values():
                if not fut.done():
                    fut.cancel()
            self._inflight.clear()
        logger.info("In-flight state cleared")
