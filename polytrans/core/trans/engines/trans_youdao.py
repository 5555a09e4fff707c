from __future__ import annotations

import hashlib
import secrets
import time
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
    ProviderInfo,
)
from polytrans.models.translation_models import AUTO_DETECT, LanguageDetectionResult, TranslationRequest, UsageInfo
from polytrans.utils.logger_utils import LoggerUtils
from polytrans.utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.config_models import AdapterConfig
    from polytrans.models.translation_models import TranslationResponse

__all__: list[str] = ["YoudaoTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

DETECTION_SAMPLE_LENGTH: int = 100


class YoudaoTranslation(HttpTransEngine):
    """Youdao AI open platform text translation, signature version 3.

    ``api_key`` is the application key and ``api_secret`` the application secret (``appKey`` and
    ``appSecret`` extras are accepted too).
    """

    DEFAULT_ENDPOINT: ClassVar[str] = "https://openapi.youdao.com/api"
    LANGUAGE_MAP: ClassVar[dict[str, str]] = {
        "zh-CN": "zh-CHS", "zh-TW": "zh-CHT", "en": "en", "ja": "ja", "ko": "ko", "fr": "fr", "de": "de",
        "es": "es", "ru": "ru", "it": "it", "pt": "pt", "ar": "ar", "hi": "hi", "th": "th", "vi": "vi",
    }  # fmt: skip
    ERROR_CODES: ClassVar[dict[str, type[TranslateExceptionError]]] = {
        "101": TranslateExceptionError,
        "102": NotSupportedLanguagesError,
        "103": TranslateExceptionError,
        "108": TranslationAuthenticationError,
        "110": TranslationAuthenticationError,
        "111": TranslationAuthenticationError,
        "202": TranslationAuthenticationError,
        "206": TranslationAuthenticationError,
        "401": TranslationQuotaExceededError,
        "411": TranslationRateLimitError,
        "412": TranslationRateLimitError,
        "500": TranslationTransientError,
    }

    @staticmethod
    def fetch_provider_id() -> str:
        return "youdao"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="youdao",
            name="Youdao",
            display_name="Youdao Translate",
            category=ProviderCategory.TRADITIONAL,
            description="NetEase Youdao translation, strong on Chinese, Japanese and Korean.",
            supported_languages=languages_for(tuple(cls.LANGUAGE_MAP)),
            requires_api_secret=True,
            pricing=PricingInfo(
                model=PricingModel.PAID,
                billing_unit=BillingUnit.CHARACTER,
                paid_pricing="48 CNY per million characters",
                details="New accounts receive a trial credit",
            ),
            homepage="https://ai.youdao.com",
            documentation="https://ai.youdao.com/DOCSIRMA/html/trans/api/wbfy/index.html",
        )

    def normalize_config(self, config: AdapterConfig) -> AdapterConfig:
        api_key: str = config.api_key or config.extra.get("appKey", "")
        api_secret: str = config.api_secret or config.extra.get("appSecret", "")
        return replace(config, api_key=api_key.strip(), api_secret=api_secret.strip())

    def generate_sign(self, query: str, salt: str, curtime: str) -> str:
        """SHA-256 of appKey + truncated query + salt + curtime + appSecret."""
        raw: str = f"{self._config.api_key}{StringUtils.truncate_middle(query)}{salt}{curtime}{self._config.api_secret}"
        return hashlib.sha256(raw.encode("utf-8")).hexdigest()

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        salt: str = secrets.token_hex(16)
        curtime: str = str(int(time.time()))
        form: dict[str, str] = {
            "q": request.text,
            "from": self.to_source_language(request.source_lang),
            "to": self.to_provider_language(request.target_lang),
            "appKey": self._config.api_key,
            "salt": salt,
            "curtime": curtime,
            "sign": self.generate_sign(request.text, salt, curtime),
            "signType": "v3",
        }

        data: Any = await self._request_json("POST", self.endpoint, data=form)
        if not isinstance(data, dict):
            msg: str = f"Unexpected response from Youdao: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id)
        code: str = str(data.get("errorCode", ""))
        if code != "0":
            raise self._api_error(code, "request rejected")

        try:
            translated: str = "".join(data["translation"])
        except (KeyError, TypeError) as err:
            msg = f"Unexpected response from Youdao: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        detected: str | None = None
        if request.is_auto_detect and isinstance(data.get("l"), str):
            # "l" is "<from>2<to>", e.g. "en2zh-CHS"
            detected = self.from_provider_language(data["l"].split("2")[0])
        logger.info("translation completed (%s > %s)", form["from"], form["to"])
        return self._make_response(translated, detected_source_language=detected, usage=UsageInfo(characters=len(request.text)))

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        """Youdao has no detection endpoint; the language pair of a short translation is used."""
        response: TranslationResponse = await self.translate(
            TranslationRequest(text=text[:DETECTION_SAMPLE_LENGTH], target_lang="en", source_lang=AUTO_DETECT)
        )
        return LanguageDetectionResult(
            language=response.detected_source_language or "unknown", confidence=0.85, provider=self.provider_id
        )
