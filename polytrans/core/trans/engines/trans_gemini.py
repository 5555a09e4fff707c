from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from polytrans.core.trans.engines.llm_engine import Completion, LlmTransEngine
from polytrans.core.trans.interface import TranslateExceptionError, TranslationAuthenticationError
from polytrans.models.provider_models import (
    BillingUnit,
    PricingInfo,
    PricingModel,
    ProviderCategory,
    ProviderFeature,
    ProviderInfo,
)
from polytrans.models.translation_models import UsageInfo
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.core.trans.engines.http_client import HTTPError

__all__: list[str] = ["GeminiTranslation"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class GeminiTranslation(LlmTransEngine):
    """Google Gemini ``generateContent``. The key travels as a query parameter."""

    DEFAULT_ENDPOINT: ClassVar[str] = "https://generativelanguage.googleapis.com/v1beta"
    DEFAULT_MODEL: ClassVar[str] = "gemini-1.5-flash"
    # Gemini answers an invalid key with 400 API_KEY_INVALID
    INVALID_KEY_MARKER: ClassVar[str] = "API_KEY_INVALID"

    @staticmethod
    def fetch_provider_id() -> str:
        return "gemini"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="gemini",
            name="Gemini",
            display_name="Google Gemini",
            category=ProviderCategory.AI,
            description="Multilingual translation by Google's Gemini models.",
            supported_languages=cls.supported_languages(),
            features=[ProviderFeature("context", "Understands surrounding context")],
            pricing=PricingInfo(
                model=PricingModel.FREEMIUM,
                billing_unit=BillingUnit.TOKEN,
                free_quota="Free tier with per-minute limits",
            ),
            homepage="https://ai.google.dev",
            documentation="https://ai.google.dev/gemini-api/docs",
        )

    def _map_status_error(self, err: HTTPError) -> TranslateExceptionError:
        if err.status == 400 and self.INVALID_KEY_MARKER in err.body:
            msg: str = f"Invalid API credentials: {err}"
            return TranslationAuthenticationError(msg, provider_id=self.provider_id, status=err.status)
        return super()._map_status_error(err)

    async def _complete(self, system: str, user: str, *, temperature: float, max_tokens: int) -> Completion:
        data: Any = await self._request_json(
            "POST",
            f"{self.endpoint}/models/{self.model}:generateContent",
            params={"key": self._config.api_key},
            json_body={
                "systemInstruction": {"parts": [{"text": system}]},
                "contents": [{"role": "user", "parts": [{"text": user}]}],
                "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
            },
            headers={"Content-Type": "application/json"},
        )
        try:
            text: str = "".join(part.get("text", "") for part in data["candidates"][0]["content"]["parts"])
        except (IndexError, KeyError, TypeError) as err:
            raise self._empty_answer(data) from err

        metadata: Any = data.get("usageMetadata")
        usage: UsageInfo | None = (
            UsageInfo(tokens=int(metadata.get("totalTokenCount", 0))) if isinstance(metadata, dict) else None
        )
        return Completion(text=text, model=data.get("modelVersion") or self.model, usage=usage)
