from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from polytrans.core.trans.engines.llm_engine import Completion, LlmTransEngine
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

__all__: list[str] = ["OpenAITranslation", "estimate_openai_cost"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# USD per 1K tokens, matched by longest model name prefix
COST_PER_1K_TOKENS: dict[str, float] = {
    "gpt-4": 0.03,
    "gpt-4-turbo": 0.01,
    "gpt-3.5-turbo": 0.002,
}


def estimate_openai_cost(model: str, total_tokens: int) -> float:
    prefixes: list[str] = [prefix for prefix in COST_PER_1K_TOKENS if model.startswith(prefix)]
    rate: float = COST_PER_1K_TOKENS[max(prefixes, key=len)] if prefixes else COST_PER_1K_TOKENS["gpt-3.5-turbo"]
    return total_tokens * rate / 1000


class OpenAITranslation(LlmTransEngine):
    """OpenAI chat completions. Any compatible endpoint can be set as ``endpoint``."""

    DEFAULT_ENDPOINT: ClassVar[str] = "https://api.openai.com/v1"
    DEFAULT_MODEL: ClassVar[str] = "gpt-3.5-turbo"

    @staticmethod
    def fetch_provider_id() -> str:
        return "openai"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="openai",
            name="OpenAI",
            display_name="OpenAI GPT",
            category=ProviderCategory.AI,
            description="Context aware translation by GPT models.",
            supported_languages=cls.supported_languages(),
            features=[
                ProviderFeature("context", "Understands surrounding context"),
                ProviderFeature("style", "Follows formality and domain hints"),
                ProviderFeature("glossary", "Honours glossary terms"),
            ],
            pricing=PricingInfo(
                model=PricingModel.USAGE_BASED,
                billing_unit=BillingUnit.TOKEN,
                paid_pricing="GPT-4: $0.03/1K tokens, GPT-3.5: $0.002/1K tokens",
            ),
            homepage="https://openai.com",
            documentation="https://platform.openai.com/docs",
        )

    async def _complete(self, system: str, user: str, *, temperature: float, max_tokens: int) -> Completion:
        data: Any = await self._request_json(
            "POST",
            f"{self.endpoint}/chat/completions",
            json_body={
                "model": self.model,
                "messages": [{"role": "system", "content": system}, {"role": "user", "content": user}],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            headers={"Authorization": f"Bearer {self._config.api_key}", "Content-Type": "application/json"},
        )
        try:
            text: str = data["choices"][0]["message"]["content"]
        except (IndexError, KeyError, TypeError) as err:
            raise self._empty_answer(data) from err

        model: str = data.get("model") or self.model
        usage: UsageInfo | None = None
        if isinstance(data.get("usage"), dict):
            total_tokens: int = int(data["usage"].get("total_tokens", 0))
            usage = UsageInfo(tokens=total_tokens, cost=estimate_openai_cost(model, total_tokens))
        logger.debug("OpenAI usage: %s", usage)
        return Completion(text=text or "", model=model, usage=usage)
