"""Models for translation requests, responses and provider-reported figures.

These dataclasses are the plain-data shapes that cross the messaging boundary. They serialize to
camelCase dictionaries through dataclasses-json (``to_dict()`` / ``from_dict()``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "AUTO_DETECT",
    "AlternativeTranslation",
    "Domain",
    "Formality",
    "LanguageDetectionResult",
    "QuotaInfo",
    "QuotaUnit",
    "TranslationOptions",
    "TranslationRequest",
    "TranslationResponse",
    "UsageInfo",
    "ValidationResult",
]

AUTO_DETECT = "auto"


class Formality(StrEnum):
    FORMAL = "formal"
    INFORMAL = "informal"
    DEFAULT = "default"


class Domain(StrEnum):
    GENERAL = "general"
    MEDICAL = "medical"
    LEGAL = "legal"
    TECHNICAL = "technical"
    FINANCE = "finance"


class QuotaUnit(StrEnum):
    CHARACTER = "character"
    TOKEN = "token"
    REQUEST = "request"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class TranslationOptions(DataClassJsonMixin):
    """Per-request translation options.

    Every field is optional. None means "use the manager default".

    Attributes:
        formality (Formality | None): Requested register of the translation.
        domain (Domain | None): Subject area hint.
        glossary (dict[str, str] | None): Fixed term translations (source term -> target term).
        preserve_formatting (bool | None): Keep line breaks and markup untouched.
        preferred_provider (str | None): Provider id to try first. Treated as a hint only.
        context (str | None): Free text describing the surrounding content, used by LLM providers.
        strict_provider (bool): If True the preferred provider must produce the translation.
            No other provider is tried and cached results from other providers are ignored.
    """

    formality: Formality | None = None
    domain: Domain | None = None
    glossary: dict[str, str] | None = None
    preserve_formatting: bool | None = None
    preferred_provider: str | None = None
    context: str | None = None
    strict_provider: bool = False


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class TranslationRequest(DataClassJsonMixin):
    """A translation request. Immutable once submitted.

    Attributes:
        text (str): Text to translate. Must not be blank.
        target_lang (str): Target language code.
        source_lang (str): Source language code or ``"auto"``.
        options (TranslationOptions): Request options.
    """

    text: str
    target_lang: str
    source_lang: str = AUTO_DETECT
    options: TranslationOptions = field(default_factory=TranslationOptions)

    @property
    def is_auto_detect(self) -> bool:
        return not self.source_lang or self.source_lang == AUTO_DETECT


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class AlternativeTranslation(DataClassJsonMixin):
    text: str
    confidence: float | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class UsageInfo(DataClassJsonMixin):
    """Provider-reported usage of a single call. Each figure is optional."""

    characters: int | None = None
    tokens: int | None = None
    cost: float | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class TranslationResponse(DataClassJsonMixin):
    """Result of a successful translation.

    Attributes:
        translated_text (str): The translation.
        provider (str): Id of the adapter that produced ``translated_text``.
        timestamp (int): Completion time in epoch milliseconds.
        detected_source_language (str | None): Source language reported by the provider.
        confidence (float | None): Confidence in [0, 1] where the provider reports one.
        alternatives (list[AlternativeTranslation]): Other candidate translations, best first.
        model (str | None): Model name for AI providers.
        usage (UsageInfo | None): Characters, tokens and cost of the call.
        cached (bool): True when the response was served from the cache.
    """

    translated_text: str
    provider: str
    timestamp: int = 0
    detected_source_language: str | None = None
    confidence: float | None = None
    alternatives: list[AlternativeTranslation] = field(default_factory=list)
    model: str | None = None
    usage: UsageInfo | None = None
    cached: bool = False

    def __str__(self) -> str:
        return self.translated_text


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class LanguageDetectionResult(DataClassJsonMixin):
    """Detected language of a text.

    Attributes:
        language (str): Detected language code.
        confidence (float | None): Detection confidence in [0, 1].
        alternatives (list[tuple[str, float]]): Other likely languages with confidence.
        provider (str): Id of the adapter that performed the detection.
    """

    language: str
    confidence: float | None = None
    alternatives: list[tuple[str, float]] = field(default_factory=list)
    provider: str = ""


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class QuotaInfo(DataClassJsonMixin):
    """Provider-reported usage against a limit.

    Attributes:
        used (int): Units consumed in the current period.
        limit (int): Units available in the period. 0 means the provider reports no limit.
        unit (QuotaUnit): What ``used`` and ``limit`` count.
        reset_at (int | None): Epoch milliseconds of the next reset, if known.
    """

    used: int = 0
    limit: int = 0
    unit: QuotaUnit = QuotaUnit.CHARACTER
    reset_at: int | None = None

    @property
    def remaining(self) -> int | None:
        if self.limit <= 0:
            return None
        return max(self.limit - self.used, 0)

    @property
    def limit_reached(self) -> bool:
        return self.limit > 0 and self.used >= self.limit


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class ValidationResult(DataClassJsonMixin):
    valid: bool
    message: str = ""
    details: dict[str, str] | None = None
