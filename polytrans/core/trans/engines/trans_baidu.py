from __future__ import annotations

import hashlib
import random
from dataclasses import replace
from typing import TYPE_CHECKING, Any, ClassVar

from polytrans.core.trans.engines.http_engine import HttpTransEngine
from polytrans.core.trans.interface import (
    NotSupportedLanguagesError,
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
from polytrans.models.translation_models import LanguageDetectionResult, UsageInfo
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.config_models import AdapterConfig
    from polytrans.models.translation_models import TranslationRequest, TranslationResponse

__all__: list[str] = ["BaiduTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

SUCCESS_CODES: frozenset[str] = frozenset({"0", "52000"})


class BaiduTranslation(HttpTransEngine):
    """Baidu Fanyi general text translation.

    Credentials are the APP ID (``api_key``) and the secret key (``api_secret``); the settings may
    also give them as ``appId`` and ``secretKey`` extras.
    """

    DEFAULT_ENDPOINT: ClassVar[str] = "https://fanyi-api.baidu.com/api/trans/vip"
    LANGUAGE_MAP: ClassVar[dict[str, str]] = {
        "zh-CN": "zh", "zh-TW": "cht", "en": "en", "ja": "jp", "ko": "kor", "fr": "fra", "de": "de",
        "es": "spa", "ru": "ru", "it": "it", "pt": "pt", "ar": "ara", "hi": "hi", "th": "th", "vi": "vie",
    }  # fmt: skip
    ERROR_CODES: ClassVar[dict[str, type[TranslateExceptionError]]] = {
        "52001": TranslationTransientError,
        "52002": TranslationTransientError,
        "52003": TranslationAuthenticationError,
        "54000": TranslateExceptionError,
        "54001": TranslationAuthenticationError,
        "54003": TranslationRateLimitError,
        "54004": TranslationQuotaExceededError,
        "54005": TranslationRateLimitError,
        "58000": TranslationAuthenticationError,
        "58001": NotSupportedLanguagesError,
        "90107": TranslationAuthenticationError,
    }

    @staticmethod
    def fetch_provider_id() -> str:
        return "baidu"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="baidu",
            name="Baidu",
            display_name="Baidu Translate",
            category=ProviderCategory.TRADITIONAL,
            description="Baidu Fanyi open platform, strong on Chinese.",
            supported_languages=languages_for(tuple(cls.LANGUAGE_MAP)),
            features=[ProviderFeature("language_detection", "Dedicated detection endpoint")],
            requires_api_secret=True,
            pricing=PricingInfo(
                model=PricingModel.FREEMIUM,
                billing_unit=BillingUnit.CHARACTER,
                free_quota="50,000 characters/month",
                paid_pricing="49 CNY per million characters",
                details="Standard edition allows one query per second",
            ),
            rate_limit=RateLimitInfo(requests_per_second=1, characters_per_request=6000),
            homepage="https://fanyi-api.baidu.com",
            documentation="https://fanyi-api.baidu.com/doc/21",
        )

    def normalize_config(self, config: AdapterConfig) -> AdapterConfig:
        api_key: str = config.api_key or config.extra.get("appId", "")
        api_secret: str = config.api_secret or config.extra.get("secretKey", "")
        return replace(config, api_key=api_key.strip(), api_secret=api_secret.strip())

    def generate_sign(self, query: str, salt: str) -> str:
        """MD5 of APP ID + query + salt + secret key."""
        raw: str = f"{self._config.api_key}{query}{salt}{self._config.api_secret}"
        return hashlib.md5(raw.encode("utf-8")).hexdigest()  # noqa: S324

    def _signed_params(self, text: str) -> dict[str, str]:
        salt: str = str(random.randint(32768, 65536))  # noqa: S311
        return {"q": text, "appid": self._config.api_key, "salt": salt, "sign": self.generate_sign(text, salt)}

    def _check_error(self, data: Any) -> dict[str, Any]:
        if not isinstance(data, dict):
            msg: str = f"Unexpected response from Baidu: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id)
        code: str = str(data.get("error_code", "0"))
        if code not in SUCCESS_CODES:
            raise self._api_error(code, str(data.get("error_msg", "")))
        return data

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        params: dict[str, str] = self._signed_params(request.text)
        params["from"] = self.to_source_language(request.source_lang)
        params["to"] = self.to_provider_language(request.target_lang)

        data: dict[str, Any] = self._check_error(
            await self._request_json("GET", f"{self.endpoint}/translate", params=params)
        )
        try:
            translated: str = "\n".join(item["dst"] for item in data["trans_result"])
        except (KeyError, TypeError) as err:
            msg: str = f"Unexpected response from Baidu: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        logger.info("translation completed (%s > %s)", params["from"], params["to"])
        return self._make_response(
            translated,
            detected_source_language=self.from_provider_language(data.get("from")) if request.is_auto_detect else None,
            usage=UsageInfo(characters=len(request.text)),
        )

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        data: dict[str, Any] = self._check_error(
            await self._request_json("GET", f"{self.endpoint}/language", params=self._signed_params(text))
        )
        try:
            language: str = data["data"]["src"]
        except (KeyError, TypeError) as err:
            msg: str = f"Unexpected detection response from Baidu: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err
        return LanguageDetectionResult(
            language=self.from_provider_language(language) or language, confidence=0.9, provider=self.provider_id
        )
