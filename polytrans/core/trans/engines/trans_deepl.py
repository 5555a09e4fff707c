from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, ClassVar

from deepl import DeepLClient, TextResult, Usage
from deepl.exceptions import (
    AuthorizationException,
    ConnectionException,
    DeepLException,
    QuotaExceededException,
    TooManyRequestsException,
)

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
)
from polytrans.models.translation_models import (
    Formality,
    LanguageDetectionResult,
    QuotaInfo,
    QuotaUnit,
    TranslationRequest,
    TranslationResponse,
    UsageInfo,
)
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.config_models import AdapterConfig


__all__: list[str] = ["DeeplTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DEFAULT_CHARACTER_LIMIT: int = 500000


class DeeplTranslation(TransInterface):
    """DeepL adapter built on the official SDK.

    The SDK picks the free or the pro endpoint from the key (free keys end with ``:fx``). Its calls
    are synchronous and run in a worker thread.
    """

    # Public code -> DeepL source code
    _source_codes: ClassVar[dict[str, str]] = {
        "zh-CN": "ZH", "zh-TW": "ZH", "en": "EN", "ja": "JA", "ko": "KO", "fr": "FR", "de": "DE",
        "es": "ES", "ru": "RU", "it": "IT", "pt": "PT", "ar": "AR", "id": "ID", "nl": "NL", "pl": "PL",
        "tr": "TR",
    }  # fmt: skip
    # Public code -> DeepL target code, where the target needs a regional variant
    _target_codes: ClassVar[dict[str, str]] = {
        **_source_codes,
        "zh-CN": "ZH-HANS",
        "zh-TW": "ZH-HANT",
        "en": "EN-US",
        "pt": "PT-PT",
    }
    _formality: ClassVar[dict[Formality, str]] = {
        Formality.FORMAL: "prefer_more",
        Formality.INFORMAL: "prefer_less",
        Formality.DEFAULT: "default",
    }

    def __init__(self, config: AdapterConfig | None = None) -> None:
        self.__inst: DeepLClient | None = None
        super().__init__(config)

    @staticmethod
    def fetch_provider_id() -> str:
        return "deepl"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="deepl",
            name="DeepL",
            display_name="DeepL Translator",
            category=ProviderCategory.TRADITIONAL,
            description="High quality neural translation, strongest on European languages.",
            supported_languages=languages_for(tuple(cls._source_codes)),
            features=[
                ProviderFeature("formality", "Formal and informal register"),
                ProviderFeature("preserve_formatting", "Keeps punctuation and casing as written"),
                ProviderFeature("quota", "Character usage API"),
            ],
            pricing=PricingInfo(
                model=PricingModel.FREEMIUM,
                billing_unit=BillingUnit.CHARACTER,
                free_quota="500,000 characters/month",
                paid_pricing="$25 per million characters",
                details="Free keys end with ':fx'",
            ),
            homepage="https://www.deepl.com",
            documentation="https://developers.deepl.com/docs",
        )

    def _on_configured(self) -> None:
        """Rebuild the client. Authentication happens on the first API call, not here."""
        if not self._config.api_key:
            self.__inst = None
            return
        try:
            self.__inst = DeepLClient(
                self._config.api_key,
                server_url=self._config.endpoint,
                proxy=self._config.proxy.url if self._config.proxy else None,
            )
        except (AttributeError, ValueError) as err:
            logger.critical(err)
            self.__inst = None
        logger.debug("'%s': 'set instance'", self.__class__.__name__)

    @property
    def _inst(self) -> DeepLClient:
        if self.__inst is None:
            msg = "The DeepL instance is not initialised. Please check your authentication key"
            raise TranslationAuthenticationError(msg, provider_id=self.provider_id)
        return self.__inst

    def _map_error(self, err: DeepLException) -> TranslateExceptionError:
        kwargs: dict[str, Any] = {"provider_id": self.provider_id, "status": getattr(err, "http_status_code", None)}
        if isinstance(err, QuotaExceededException):
            return TranslationQuotaExceededError("DeepL character quota exceeded", **kwargs)
        if isinstance(err, AuthorizationException):
            return TranslationAuthenticationError("Authorisation failed. Please check your authentication key", **kwargs)
        if isinstance(err, TooManyRequestsException):
            return TranslationRateLimitError("DeepL rate limit reached", **kwargs)
        if isinstance(err, ConnectionException):
            return TranslationTransientError("An error occurred when connecting to the DeepL server", **kwargs)
        status: int | None = kwargs["status"]
        if status is not None and status >= 500:
            return TranslationTransientError(f"DeepL server error: {err}", **kwargs)
        return TranslateExceptionError(f"An anomaly occurred during the translation process at DeepL: {err}", **kwargs)

    @staticmethod
    def _to_public_code(code: str) -> str:
        lowered: str = code.lower()
        if lowered.startswith("zh"):
            return "zh-TW" if lowered.endswith("hant") else "zh-CN"
        return lowered.split("-")[0]

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        logger.debug(
            "'text': '%s', 'src_lang': '%s', 'tgt_lang': '%s'", request.text, request.source_lang, request.target_lang
        )
        try:
            source_lang: str | None = None if request.is_auto_detect else self._source_codes[request.source_lang]
            target_lang: str = self._target_codes[request.target_lang]
        except KeyError:
            msg: str = (
                "Languages not supported by DeepL. "
                f"Source language: '{request.source_lang}'. Target language: '{request.target_lang}'."
            )
            raise NotSupportedLanguagesError(msg, provider_id=self.provider_id) from None

        kwargs: dict[str, Any] = {"source_lang": source_lang, "target_lang": target_lang}
        if request.options.formality is not None:
            kwargs["formality"] = self._formality[request.options.formality]
        if request.options.preserve_formatting is not None:
            kwargs["preserve_formatting"] = request.options.preserve_formatting
        if request.options.context:
            kwargs["context"] = request.options.context

        try:
            results: TextResult | list[TextResult] = await asyncio.to_thread(
                self._inst.translate_text, request.text, **kwargs
            )
        except DeepLException as err:
            raise self._map_error(err) from err
        except (ValueError, TypeError) as err:
            msg = "An anomaly occurred during the translation process at DeepL"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        logger.info("translation completed (%s > %s)", source_lang, target_lang)
        return self._build_response(results, request)

    def _build_response(self, results: TextResult | list[TextResult], request: TranslationRequest) -> TranslationResponse:
        if isinstance(results, list):
            if not results:
                msg = "DeepL returned no translation"
                raise TranslateExceptionError(msg, provider_id=self.provider_id)
            result: TextResult = results[0]
        else:
            result = results

        billed: int | None = getattr(result, "billed_characters", None)
        return TranslationResponse(
            translated_text=result.text,
            provider=self.provider_id,
            detected_source_language=self._to_public_code(result.detected_source_lang),
            model=getattr(result, "model_type_used", None),
            usage=UsageInfo(characters=billed if billed is not None else len(request.text)),
        )

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        """DeepL has no detection endpoint; detection is a by-product of a translation into English."""
        response: TranslationResponse = await self.translate(TranslationRequest(text=text, target_lang="en"))
        language: str = response.detected_source_language or "en"
        logger.debug("Detected language: '%s'", language)
        return LanguageDetectionResult(language=language, provider=self.provider_id)

    async def get_quota(self) -> QuotaInfo:
        try:
            usage: Usage = await asyncio.to_thread(self._inst.get_usage)
        except DeepLException as err:
            raise self._map_error(err) from err

        used: int = usage.character.count or 0
        limit: int = usage.character.limit or DEFAULT_CHARACTER_LIMIT
        logger.debug("DeepL usage: %d/%d", used, limit)
        return QuotaInfo(used=used, limit=limit, unit=QuotaUnit.CHARACTER)

    async def close(self) -> None:
        self.__inst = None
        logger.debug("'%s' process termination", self.__class__.__name__)
