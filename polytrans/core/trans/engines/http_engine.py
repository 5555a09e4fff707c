"""Base class for adapters that talk to their provider over plain HTTP."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any, ClassVar

import aiohttp

from polytrans.core.trans.engines.http_client import (
    AsyncHttpClient,
    HTTPConnectionError,
    HTTPError,
    HTTPException,
    HTTPTimeoutError,
    HTTPTooManyRequests,
)
from polytrans.core.trans.interface import (
    TransInterface,
    TranslateExceptionError,
    TranslationAuthenticationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
    TranslationTimeoutError,
    TranslationTransientError,
)
from polytrans.models.translation_models import AUTO_DETECT, TranslationResponse
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.config_models import AdapterConfig
    from polytrans.models.translation_models import AlternativeTranslation, UsageInfo

__all__: list[str] = ["HttpTransEngine"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class HttpTransEngine(TransInterface):
    """Shared plumbing of REST adapters.

    Subclasses set ``DEFAULT_ENDPOINT`` and ``LANGUAGE_MAP`` and implement the provider calls with
    ``_request_json``, which maps transport failures onto the translation error taxonomy.

    Attributes:
        DEFAULT_ENDPOINT (ClassVar[str]): Base URL used when the configuration has no override.
        LANGUAGE_MAP (ClassVar[dict[str, str]]): Public language code to provider code, where they differ.
        QUOTA_STATUS_CODES (ClassVar[frozenset[int]]): Statuses meaning the quota is used up.
        ERROR_CODES (ClassVar[dict[str, type[TranslateExceptionError]]]): Error class per error code
            reported in a 200 response body.
    """

    DEFAULT_ENDPOINT: ClassVar[str] = ""
    LANGUAGE_MAP: ClassVar[dict[str, str]] = {}
    QUOTA_STATUS_CODES: ClassVar[frozenset[int]] = frozenset()
    ERROR_CODES: ClassVar[dict[str, type[TranslateExceptionError]]] = {}

    def __init__(self, config: AdapterConfig | None = None) -> None:
        self._http: AsyncHttpClient = AsyncHttpClient()
        super().__init__(config)

    @staticmethod
    def fetch_provider_id() -> str:
        return ""

    @property
    def endpoint(self) -> str:
        return (self._config.endpoint or self.DEFAULT_ENDPOINT).rstrip("/")

    def to_provider_language(self, code: str) -> str:
        return self.LANGUAGE_MAP.get(code, code)

    def from_provider_language(self, code: str | None) -> str | None:
        if code is None:
            return None
        for public_code, provider_code in self.LANGUAGE_MAP.items():
            if provider_code == code:
                return public_code
        return code

    def to_source_language(self, code: str) -> str:
        return AUTO_DETECT if code in ("", AUTO_DETECT) else self.to_provider_language(code)

    async def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send a request with the configured proxy and timeout and decode the JSON body.

        Raises:
            TranslationAuthenticationError: On 401 and 403.
            TranslationQuotaExceededError: On a quota status of the provider.
            TranslationRateLimitError: On 429.
            TranslationTimeoutError: On timeouts and 408.
            TranslationTransientError: On connection failures and 5xx.
            TranslateExceptionError: On any other failure.
        """
        proxy: str | None = None
        proxy_auth: aiohttp.BasicAuth | None = None
        if self._config.proxy is not None:
            proxy = self._config.proxy.url
            if self._config.proxy.username:
                proxy_auth = aiohttp.BasicAuth(self._config.proxy.username, self._config.proxy.password or "")
        timeout: float | None = self._config.timeout / 1000 if self._config.timeout else None

        try:
            return await self._http.request_json(
                method, url, timeout=timeout, proxy=proxy, proxy_auth=proxy_auth, **kwargs
            )
        except HTTPTooManyRequests as err:
            raise TranslationRateLimitError(
                str(err), provider_id=self.provider_id, status=429, retry_after=err.retry_after
            ) from err
        except HTTPError as err:
            raise self._map_status_error(err) from err
        except HTTPTimeoutError as err:
            raise TranslationTimeoutError(str(err), provider_id=self.provider_id) from err
        except HTTPConnectionError as err:
            raise TranslationTransientError(str(err), provider_id=self.provider_id) from err
        except HTTPException as err:
            raise TranslateExceptionError(str(err), provider_id=self.provider_id) from err

    def _map_status_error(self, err: HTTPError) -> TranslateExceptionError:
        status: int = err.status
        kwargs: dict[str, Any] = {"provider_id": self.provider_id, "status": status}
        if status in (401, 403):
            return TranslationAuthenticationError(f"Invalid API credentials: {err}", **kwargs)
        if status in self.QUOTA_STATUS_CODES:
            return TranslationQuotaExceededError(f"Quota exceeded: {err}", **kwargs)
        if status == 408:
            return TranslationTimeoutError(str(err), **kwargs)
        if status >= 500:
            return TranslationTransientError(f"Server error: {err}", **kwargs)
        return TranslateExceptionError(str(err), **kwargs)

    def _api_error(self, code: object, message: str) -> TranslateExceptionError:
        """Build the exception for an error code the provider reported inside a successful response."""
        error_class: type[TranslateExceptionError] = self.ERROR_CODES.get(str(code), TranslateExceptionError)
        msg: str = f"{self.info.name} API error [{code}]: {message}"
        return error_class(msg, provider_id=self.provider_id, details={"code": str(code)})

    def _make_response(
        self,
        translated_text: str,
        *,
        detected_source_language: str | None = None,
        confidence: float | None = None,
        alternatives: list[AlternativeTranslation] | None = None,
        model: str | None = None,
        usage: UsageInfo | None = None,
    ) -> TranslationResponse:
        return TranslationResponse(
            translated_text=translated_text,
            provider=self.provider_id,
            timestamp=int(time.time() * 1000),
            detected_source_language=detected_source_language,
            confidence=confidence,
            alternatives=alternatives or [],
            model=model,
            usage=usage,
        )

    async def close(self) -> None:
        await self._http.close()
