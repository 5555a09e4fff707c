from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, ClassVar, NamedTuple

from polytrans.core.trans.engines.http_engine import HttpTransEngine
from polytrans.core.trans.engines.llm_prompt import (
    DETECTION_PROMPT,
    build_system_prompt,
    build_user_prompt,
    parse_language_code,
)
from polytrans.core.trans.interface import TranslateExceptionError
from polytrans.core.trans.language_codes import COMMON_LANGUAGES
from polytrans.models.translation_models import AUTO_DETECT, LanguageDetectionResult
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.provider_models import Language
    from polytrans.models.translation_models import TranslationRequest, TranslationResponse, UsageInfo

__all__: list[str] = ["Completion", "LlmTransEngine"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class Completion(NamedTuple):
    text: str
    model: str
    usage: UsageInfo | None = None


class LlmTransEngine(HttpTransEngine):
    """Base of the adapters that translate by prompting a chat model.

    Subclasses only implement ``_complete``: one system and one user message in, the model's
    answer out.
    """

    DEFAULT_MODEL: ClassVar[str] = ""
    DEFAULT_TEMPERATURE: ClassVar[float] = 0.3
    DEFAULT_MAX_TOKENS: ClassVar[int] = 2000

    @staticmethod
    def supported_languages() -> list[Language]:
        return [language for language in COMMON_LANGUAGES if language.code != AUTO_DETECT]

    @property
    def model(self) -> str:
        return self._config.model or self.DEFAULT_MODEL

    @abstractmethod
    async def _complete(self, system: str, user: str, *, temperature: float, max_tokens: int) -> Completion:
        """Send one prompt to the model.

        Raises:
            TranslateExceptionError: If the call fails or the answer has no text.
        """
        raise NotImplementedError

    def _empty_answer(self, data: object) -> TranslateExceptionError:
        msg: str = f"{self.info.name} returned no text: {data!r}"
        return TranslateExceptionError(msg[:500], provider_id=self.provider_id)

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        temperature: float = self.DEFAULT_TEMPERATURE if self._config.temperature is None else self._config.temperature
        completion: Completion = await self._complete(
            build_system_prompt(request),
            build_user_prompt(request),
            temperature=temperature,
            max_tokens=self._config.max_tokens or self.DEFAULT_MAX_TOKENS,
        )
        translated: str = completion.text.strip()
        if not translated:
            raise self._empty_answer(completion.text)
        logger.info("translation completed (%s > %s) with '%s'", request.source_lang, request.target_lang, completion.model)
        return self._make_response(translated, model=completion.model, usage=completion.usage)

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        completion: Completion = await self._complete(
            "You identify languages.", DETECTION_PROMPT.format(text=text), temperature=0.0, max_tokens=10
        )
        return LanguageDetectionResult(
            language=parse_language_code(completion.text), confidence=0.95, provider=self.provider_id
        )
