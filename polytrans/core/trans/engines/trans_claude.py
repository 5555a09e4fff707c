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

__all__: list[str] = ["ClaudeTranslation", "estimate_claude_cost"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# USD per million (input, output) tokens, matched by model family
COST_PER_MILLION_TOKENS: dict[str, tuple[float, float]] = {
    "opus": (15.0, 75.0),
    "sonnet": (3.0, 15.0),
    "haiku": (0.25, 1.25),
}


def estimate_claude_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    family: str = next((name for name in COST_PER_MILLION_TOKENS if name in model), "haiku")
    input_rate, output_rate = COST_PER_MILLION_TOKENS[family]
    return (input_tokens * input_rate + output_tokens * output_rate) / 1_000_000


class ClaudeTranslation(LlmTransEngine):
    """Anthropic Messages API."""

    DEFAULT_ENDPOINT: ClassVar[str] = "https://api.anthropic.com/v1"
    DEFAULT_MODEL: ClassVar[str] = "claude-3-haiku-20240307"
    API_VERSION: ClassVar[str] = "2023-06-01"
    QUOTA_STATUS_CODES: ClassVar[frozenset[int]] = frozenset({402})

    @staticmethod
    def fetch_provider_id() -> str:
        return "claude"

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="claude",
            name="Claude",
            display_name="Anthropic Claude",
            category=ProviderCategory.AI,
            description="Natural, nuanced translation by Claude models.",
            supported_languages=cls.supported_languages(),
            features=[
                ProviderFeature("context", "Understands surrounding context"),
                ProviderFeature("long_text", "Large context window"),
            ],
            pricing=PricingInfo(
                model=PricingModel.USAGE_BASED,
                billing_unit=BillingUnit.TOKEN,
                paid_pricing="Haiku: $0.25/$1.25 per million input/output tokens",
            ),
            homepage="https://www.anthropic.com",
            documentation="https://docs.anthropic.com",
        )

    async def _complete(self, system: str, user: str, *, temperature: float, max_tokens: int) -> Completion:
        data: Any = await self._request_json(
            "POST",
            f"{self.endpoint}/messages",
            json_body={
                "model": self.model,
                "system": system,
                "messages": [{"role": "user", "content": user}],
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
            headers={
                "x-api-key": self._config.api_key,
                "anthropic-version": self.API_VERSION,
                "Content-Type": "application/json",
            },
        )
        try:
            text: str = "".join(block["text"] for block in data["content"] if block.get("type") == "text")
        except (KeyError, TypeError) as err:
            raise self._empty_answer(data) from err

        model: str = data.get("model") or self.model
        usage: UsageInfo | None = None
        if isinstance(data.get("usage"), dict):
            input_tokens: int = int(data["usage"].get("input_tokens", 0))
            output_tokens: int = int(data["usage"].get("output_tokens", 0))
            usage = UsageInfo(
                tokens=input_tokens + output_tokens, cost=estimate_claude_cost(model, input_tokens, output_tokens)
            )
        return Completion(text=text, model=model, usage=usage)
