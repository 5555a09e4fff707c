from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from polytrans.core.trans.engines.http_engine import HttpTransEngine
from polytrans.core.trans.interface import TranslateExceptionError, TranslationQuotaExceededError
from polytrans.core.trans.language_codes import COMMON_LANGUAGES
from polytrans.models.provider_models import (
    BillingUnit,
    PricingInfo,
    PricingModel,
    ProviderCategory,
    ProviderFeature,
    ProviderInfo,
)
from polytrans.models.translation_models import AUTO_DETECT, LanguageDetectionResult, UsageInfo
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.core.trans.engines.http_client import HTTPError
    from polytrans.models.translation_models import TranslationRequest, TranslationResponse

__all__: list[str] = ["MicrosoftTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class MicrosoftTranslation(HttpTransEngine):
    """Azure AI Translator (Text Translation v3)."""

    DEFAULT_ENDPOINT: ClassVar[str] = "https://api.cognitive.microsofttranslator.com"
    API_VERSION: ClassVar[str] = "3.0"
    DEFAULT_REGION: ClassVar[str] = "global"
    LANGUAGE_MAP: ClassVar[dict[str, str]] = {"zh-CN": "zh-Hans", "zh-TW": "zh-Hant"}

    @staticmethod
    def fetch_provider_id() -> str:
        return "microsoft"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="microsoft",
            name="Microsoft",
            display_name="Microsoft Translator",
            category=ProviderCategory.TRADITIONAL,
            description="Enterprise grade translation from Azure AI services, 90+ languages.",
            supported_languages=[language for language in COMMON_LANGUAGES if language.code != AUTO_DETECT],
            features=[
                ProviderFeature("language_detection", "Dedicated detection endpoint"),
                ProviderFeature("confidence", "Detection confidence score"),
            ],
            pricing=PricingInfo(
                model=PricingModel.FREEMIUM,
                billing_unit=BillingUnit.CHARACTER,
                free_quota="2,000,000 characters/month",
                paid_pricing="$10 per million characters",
            ),
            homepage="https://azure.microsoft.com/products/ai-services/ai-translator",
            documentation="https://learn.microsoft.com/azure/ai-services/translator/",
        )

    def _headers(self) -> dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self._config.api_key,
            "Ocp-Apim-Subscription-Region": self._config.region or self.DEFAULT_REGION,
            "Content-Type": "application/json",
        }

    def _map_status_error(self, err: HTTPError) -> TranslateExceptionError:
        # 403001: free tier character quota used up
        if err.status == 403 and "403001" in err.body:
            return TranslationQuotaExceededError(
                f"Quota exceeded: {err}", provider_id=self.provider_id, status=err.status
            )
        return super()._map_status_error(err)

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        params: dict[str, str] = {"api-version": self.API_VERSION, "to": self.to_provider_language(request.target_lang)}
        if not request.is_auto_detect:
            params["from"] = self.to_provider_language(request.source_lang)
        if request.options.preserve_formatting:
            params["textType"] = "html"

        data: Any = await self._request_json(
            "POST",
            f"{self.endpoint}/translate",
            params=params,
            json_body=[{"Text": request.text}],
            headers=self._headers(),
        )
        try:
            result: dict[str, Any] = data[0]
            translated: str = result["translations"][0]["text"]
        except (IndexError, KeyError, TypeError) as err:
            msg: str = f"Unexpected response from Microsoft Translator: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        detected: dict[str, Any] = result.get("detectedLanguage") or {}
        logger.info("translation completed (%s > %s)", request.source_lang, request.target_lang)
        return self._make_response(
            translated,
            detected_source_language=self.from_provider_language(detected.get("language")),
            confidence=detected.get("score"),
            usage=UsageInfo(characters=len(request.text)),
        )

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        data: Any = await self._request_json(
            "POST",
            f"{self.endpoint}/detect",
            params={"api-version": self.API_VERSION},
            json_body=[{"Text": text}],
            headers=self._headers(),
        )
        try:
            result: dict[str, Any] = data[0]
            language: str = result["language"]
        except (IndexError, KeyError, TypeError) as err:
            msg: str = f"Unexpected detection response from Microsoft Translator: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        alternatives: list[tuple[str, float]] = [
            (self.from_provider_language(item["language"]) or item["language"], float(item.get("score", 0.0)))
            for item in result.get("alternatives", [])
        ]
        return LanguageDetectionResult(
            language=self.from_provider_language(language) or language,
            confidence=result.get("score"),
            alternatives=alternatives,
            provider=self.provider_id,
        )
