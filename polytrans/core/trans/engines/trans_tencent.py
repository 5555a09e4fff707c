from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import replace
from datetime import UTC, datetime
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

__all__: list[str] = ["TencentTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


class TencentTranslation(HttpTransEngine):
    """Tencent Machine Translation (TMT) with TC3-HMAC-SHA256 request signing.

    ``api_key`` is the SecretId and ``api_secret`` the SecretKey (``secretId`` and ``secretKey``
    extras are accepted too).
    """

    HOST: ClassVar[str] = "tmt.tencentcloudapi.com"
    SERVICE: ClassVar[str] = "tmt"
    API_VERSION: ClassVar[str] = "2018-03-21"
    ALGORITHM: ClassVar[str] = "TC3-HMAC-SHA256"
    CONTENT_TYPE: ClassVar[str] = "application/json; charset=utf-8"
    DEFAULT_REGION: ClassVar[str] = "ap-guangzhou"
    DEFAULT_ENDPOINT: ClassVar[str] = f"https://{HOST}"
    LANGUAGE_MAP: ClassVar[dict[str, str]] = {
        "zh-CN": "zh", "zh-TW": "zh-TW", "en": "en", "ja": "ja", "ko": "ko", "fr": "fr", "de": "de",
        "es": "es", "ru": "ru", "it": "it", "pt": "pt", "ar": "ar", "hi": "hi", "th": "th", "vi": "vi",
        "id": "id", "ms": "ms", "tr": "tr",
    }  # fmt: skip
    ERROR_CODES: ClassVar[dict[str, type[TranslateExceptionError]]] = {
        "AuthFailure": TranslationAuthenticationError,
        "FailedOperation.NoFreeAmount": TranslationQuotaExceededError,
        "FailedOperation.ServiceIsolate": TranslationQuotaExceededError,
        "FailedOperation.UserNotRegistered": TranslationAuthenticationError,
        "InternalError": TranslationTransientError,
        "InvalidParameter": TranslateExceptionError,
        "LimitExceeded": TranslationRateLimitError,
        "RequestLimitExceeded": TranslationRateLimitError,
        "UnsupportedOperation.UnsupportedLanguage": NotSupportedLanguagesError,
        "UnsupportedOperation.UnsupportedSourceLanguage": NotSupportedLanguagesError,
        "UnsupportedOperation.TextTooLong": TranslateExceptionError,
    }

    @staticmethod
    def fetch_provider_id() -> str:
        return "tencent"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="tencent",
            name="Tencent",
            display_name="Tencent Machine Translation",
            category=ProviderCategory.TRADITIONAL,
            description="Tencent Cloud TMT text translation.",
            supported_languages=languages_for(tuple(cls.LANGUAGE_MAP)),
            features=[ProviderFeature("language_detection", "LanguageDetect action")],
            requires_api_secret=True,
            pricing=PricingInfo(
                model=PricingModel.FREEMIUM,
                billing_unit=BillingUnit.CHARACTER,
                free_quota="5,000,000 characters/month",
                paid_pricing="58 CNY per million characters",
            ),
            rate_limit=RateLimitInfo(requests_per_second=5, characters_per_request=6000),
            homepage="https://cloud.tencent.com/product/tmt",
            documentation="https://cloud.tencent.com/document/product/551",
        )

    def normalize_config(self, config: AdapterConfig) -> AdapterConfig:
        api_key: str = config.api_key or config.extra.get("secretId", "")
        api_secret: str = config.api_secret or config.extra.get("secretKey", "")
        return replace(config, api_key=api_key.strip(), api_secret=api_secret.strip())

    def build_headers(self, action: str, payload: str, timestamp: int | None = None) -> dict[str, str]:
        """Sign a POST of ``payload`` to the API root.

        Args:
            action (str): API action, e.g. ``TextTranslate``.
            payload (str): JSON body exactly as it will be sent.
            timestamp (int | None): Unix time of the request. Defaults to now.

        Returns:
            dict[str, str]: Request headers including ``Authorization``.
        """
        timestamp = int(time.time()) if timestamp is None else timestamp
        date: str = datetime.fromtimestamp(timestamp, tz=UTC).strftime("%Y-%m-%d")
        signed_headers: str = "content-type;host"
        canonical_request: str = "\n".join(
            [
                "POST",
                "/",
                "",
                f"content-type:{self.CONTENT_TYPE}\nhost:{self.HOST}\n",
                signed_headers,
                hashlib.sha256(payload.encode("utf-8")).hexdigest(),
            ]
        )
        credential_scope: str = f"{date}/{self.SERVICE}/tc3_request"
        string_to_sign: str = "\n".join(
            [
                self.ALGORITHM,
                str(timestamp),
                credential_scope,
                hashlib.sha256(canonical_request.encode("utf-8")).hexdigest(),
            ]
        )
        secret_date: bytes = _hmac_sha256(f"TC3{self._config.api_secret}".encode(), date)
        secret_service: bytes = _hmac_sha256(secret_date, self.SERVICE)
        secret_signing: bytes = _hmac_sha256(secret_service, "tc3_request")
        signature: str = hmac.new(secret_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

        return {
            "Authorization": (
                f"{self.ALGORITHM} Credential={self._config.api_key}/{credential_scope}, "
                f"SignedHeaders={signed_headers}, Signature={signature}"
            ),
            "Content-Type": self.CONTENT_TYPE,
            "Host": self.HOST,
            "X-TC-Action": action,
            "X-TC-Version": self.API_VERSION,
            "X-TC-Timestamp": str(timestamp),
            "X-TC-Region": self._config.region or self.DEFAULT_REGION,
        }

    async def _call(self, action: str, params: dict[str, Any]) -> dict[str, Any]:
        payload: str = json.dumps(params, ensure_ascii=False, separators=(",", ":"))
        data: Any = await self._request_json(
            "POST", self.endpoint, data=payload, headers=self.build_headers(action, payload)
        )
        response: Any = data.get("Response") if isinstance(data, dict) else None
        if not isinstance(response, dict):
            msg: str = f"Unexpected response from Tencent: {data!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id)
        if "Error" in response:
            error: dict[str, str] = response["Error"]
            raise self._api_error(error.get("Code", ""), error.get("Message", ""))
        return response

    def _api_error(self, code: object, message: str) -> TranslateExceptionError:
        # Unlisted sub-codes fall back to their category, e.g. "InternalError.BackendTimeout"
        category: str = str(code).split(".")[0]
        if str(code) not in self.ERROR_CODES and category in self.ERROR_CODES:
            return super()._api_error(category, f"{message} ({code})")
        return super()._api_error(code, message)

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        params: dict[str, Any] = {
            "SourceText": request.text,
            "Source": self.to_source_language(request.source_lang),
            "Target": self.to_provider_language(request.target_lang),
            "ProjectId": 0,
        }
        response: dict[str, Any] = await self._call("TextTranslate", params)
        try:
            translated: str = response["TargetText"]
        except KeyError as err:
            msg: str = f"Unexpected response from Tencent: {response!r}"
            raise TranslateExceptionError(msg, provider_id=self.provider_id) from err

        logger.info("translation completed (%s > %s)", params["Source"], params["Target"])
        return self._make_response(
            translated,
            detected_source_language=self.from_provider_language(response.get("Source")),
            usage=UsageInfo(characters=len(request.text)),
        )

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        response: dict[str, Any] = await self._call("LanguageDetect", {"Text": text, "ProjectId": 0})
        language: str = response.get("Lang") or "unknown"
        return LanguageDetectionResult(
            language=self.from_provider_language(language) or language, confidence=0.85, provider=self.provider_id
        )
