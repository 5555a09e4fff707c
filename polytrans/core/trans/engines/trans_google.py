"""Google Cloud Translation API Basic (v2) adapter.

Requires the google-cloud-translate library. Authentication uses the configured API key when one is
set, otherwise the application default credentials (GOOGLE_APPLICATION_CREDENTIALS).
"""

from __future__ import annotations

import asyncio
import html
from typing import TYPE_CHECKING, Any, ClassVar

from google.api_core.exceptions import (
    BadRequest,
    Forbidden,
    GoogleAPIError,
    RetryError,
    ServerError,
    ServiceUnavailable,
    TooManyRequests,
    Unauthorized,
)
from google.auth.credentials import AnonymousCredentials
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport.requests import AuthorizedSession
from google.cloud import translate_v2 as translate

from polytrans.core.trans.interface import (
    NotSupportedLanguagesError,
    TransInterface,
    TranslateExceptionError,
    TranslationAuthenticationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
    TranslationTransientError,
)
from polytrans.core.trans.language_codes import languages_for
from polytrans.models.provider_models import (
    BillingUnit,
    PricingInfo,
    PricingModel,
    ProviderCategory,
    ProviderFeature,
    ProviderInfo,
    RateLimitInfo,
)
from polytrans.models.translation_models import (
    AUTO_DETECT,
    LanguageDetectionResult,
    TranslationResponse,
    UsageInfo,
)
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.config_models import AdapterConfig
    from polytrans.models.translation_models import TranslationRequest

__all__: list[str] = ["GoogleCloudTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class APIKeySession:
    """HTTP session that appends the API key to every request URL."""

    def __init__(self, api_key: str) -> None:
        self.api_key: str = api_key
        self._session: AuthorizedSession = AuthorizedSession(AnonymousCredentials())

    def request(self, method: str, url: str, **kwargs):
        separator: str = "&" if "?" in url else "?"
        return self._session.request(method, f"{url}{separator}key={self.api_key}", **kwargs)

    def close(self) -> None:
        self._session.close()


class GoogleCloudTranslation(TransInterface):
    """Google Cloud Translation API Basic (v2) adapter.

    The client library is synchronous, so calls run in a worker thread. Cancelling a call stops
    the wait but not the worker thread, which finishes its HTTP request in the background.
    """

    SUPPORTED_CODES: ClassVar[tuple[str, ...]] = (
        "zh-CN", "zh-TW", "en", "ja", "ko", "fr", "de", "es", "ru", "it", "pt", "ar", "hi", "th", "vi",
        "id", "ms", "nl", "pl", "tr",
    )  # fmt: skip
    KEY_ERROR_REASONS: ClassVar[frozenset[str]] = frozenset({"keyInvalid", "keyExpired", "API_KEY_INVALID"})

    def __init__(self, config: AdapterConfig | None = None) -> None:
        self.__inst: translate.Client | None = None
        self.__session: APIKeySession | None = None
        super().__init__(config)

    @staticmethod
    def fetch_provider_id() -> str:
        return "google"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="google",
            name="Google",
            display_name="Google Cloud Translation",
            category=ProviderCategory.TRADITIONAL,
            description="Neural machine translation from Google Cloud, Basic edition (v2).",
            supported_languages=languages_for(cls.SUPPORTED_CODES),
            features=[
                ProviderFeature("language_detection", "Dedicated detection endpoint"),
                ProviderFeature("html", "HTML aware translation"),
            ],
            requires_api_key=False,
            pricing=PricingInfo(
                model=PricingModel.FREEMIUM,
                billing_unit=BillingUnit.CHARACTER,
                free_quota="500,000 characters/month",
                paid_pricing="$20 per million characters",
            ),
            rate_limit=RateLimitInfo(characters_per_request=30000),
            homepage="https://cloud.google.com/translate",
            documentation="https://cloud.google.com/translate/docs/basic/translating-text",
        )

    @property
    def _inst(self) -> translate.Client:
        """Google Cloud Translate client, created on first use.

        Raises:
            TranslationAuthenticationError: If no credentials can be found.
        """
        if self.__inst is None:
            try:
                if self._config.api_key:
                    logger.debug("Using API key authentication")
                    self.__session = APIKeySession(self._config.api_key)
                    self.__inst = translate.Client(credentials=AnonymousCredentials(), _http=self.__session)
                else:
                    logger.debug("Using default credentials (GOOGLE_APPLICATION_CREDENTIALS)")
                    self.__inst = translate.Client()
            except DefaultCredentialsError as err:
                msg: str = "No API key configured and no default credentials found"
                raise TranslationAuthenticationError(msg, provider_id=self.provider_id) from err
        return self.__inst

    def _on_configured(self) -> None:
        self._drop_client()

    def _drop_client(self) -> None:
        if self.__session is not None:
            self.__session.close()
        self.__session = None
        self.__inst = None

    def _map_error(self, err: Exception, action: str) -> TranslateExceptionError:
        kwargs: dict[str, Any] = {"provider_id": self.provider_id, "status": getattr(err, "code", None)}
        if isinstance(err, BadRequest) and self._is_key_error(err):
            return TranslationAuthenticationError(f"{action} unauthorised: {err}", **kwargs)
        if isinstance(err, TooManyRequests):
            return TranslationRateLimitError(f"{action} rate limited: {err}", **kwargs)
        if isinstance(err, (Unauthorized, Forbidden)):
            if "quota" in str(err).lower() or "limit exceeded" in str(err).lower():
                return TranslationQuotaExceededError(f"{action} quota exceeded: {err}", **kwargs)
            return TranslationAuthenticationError(f"{action} unauthorised: {err}", **kwargs)
        if isinstance(err, (ServerError, ServiceUnavailable, RetryError)):
            return TranslationTransientError(f"{action} failed: {err}", **kwargs)
        return TranslateExceptionError(f"{action} failed: {err}", **kwargs)

    def _is_key_error(self, err: BadRequest) -> bool:
        reasons: set[str] = {str(item.get("reason", "")) for item in err.errors if isinstance(item, dict)}
        return bool(reasons & self.KEY_ERROR_REASONS) or "api key not valid" in str(err).lower()

    def _map_bad_request(self, err: BadRequest, request: TranslationRequest) -> TranslateExceptionError:
        """Split HTTP 400 answers: bad keys and bad language codes share the same status."""
        message: str = str(err)
        if self._is_key_error(err):
            return TranslationAuthenticationError(
                f"Translation unauthorised: {message}", provider_id=self.provider_id, status=400
            )
        if "language" in message.lower():
            msg: str = f"Unsupported language pair (src: '{request.source_lang}', tgt: '{request.target_lang}'): {err}"
            return NotSupportedLanguagesError(msg, provider_id=self.provider_id, status=400)
        return TranslateExceptionError(f"Translation failed: {message}", provider_id=self.provider_id, status=400)

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        logger.debug(
            "'text': '%s', 'src_lang': '%s', 'tgt_lang': '%s'", request.text, request.source_lang, request.target_lang
        )
        source_lang: str | None = None if request.is_auto_detect else request.source_lang
        format_: str = "html" if request.options.preserve_formatting else "text"
        model: str | None = self._config.model

        try:
            result: dict[str, Any] = await asyncio.to_thread(
                self._inst.translate,
                request.text,
                target_language=request.target_lang,
                format_=format_,
                source_language=source_lang,
                model=model,
            )
        except BadRequest as err:
            logger.error("Google API rejected the translation request: %s", err)
            raise self._map_bad_request(err, request) from err
        except GoogleAPIError as err:
            logger.error("Google API error during translation: %s", err)
            raise self._map_error(err, "Translation") from err
        except (KeyError, TypeError, ValueError) as err:
            msg = f"Translation failed: {err}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        translated: str = result["translatedText"]
        if format_ == "text":
            translated = html.unescape(translated)
        detected: str | None = result.get("detectedSourceLanguage") or source_lang
        logger.info("translation completed (%s > %s)", detected or AUTO_DETECT, request.target_lang)
        return TranslationResponse(
            translated_text=translated,
            provider=self.provider_id,
            detected_source_language=detected,
            model=result.get("model") or model,
            usage=UsageInfo(characters=len(request.text)),
        )

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        logger.debug("'%s': 'detect language'", self.__class__.__name__)
        try:
            detection: dict[str, Any] = await asyncio.to_thread(self._inst.detect_language, text)
        except GoogleAPIError as err:
            logger.error("Google API error during language detection: %s", err)
            raise self._map_error(err, "Language detection") from err

        language: str = detection["language"]
        confidence: float | None = detection.get("confidence")
        logger.debug("Detected language: '%s' with confidence: %s", language, confidence)
        return LanguageDetectionResult(language=language, confidence=confidence, provider=self.provider_id)

    async def close(self) -> None:
        self._drop_client()
        logger.debug("'%s' process termination", self.__class__.__name__)
