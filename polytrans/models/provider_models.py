"""Static provider descriptors.

A ProviderInfo is built once per adapter class and never changes after registration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

__all__: list[str] = [
    "BillingUnit",
    "Language",
    "PricingInfo",
    "PricingModel",
    "ProviderCategory",
    "ProviderFeature",
    "ProviderInfo",
    "RateLimitInfo",
]


class ProviderCategory(StrEnum):
    TRADITIONAL = "traditional"
    AI = "ai"
    LOCAL = "local"


class PricingModel(StrEnum):
    FREE = "free"
    FREEMIUM = "freemium"
    PAID = "paid"
    USAGE_BASED = "usage-based"


class BillingUnit(StrEnum):
    CHARACTER = "character"
    TOKEN = "token"
    REQUEST = "request"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class Language(DataClassJsonMixin):
    code: str
    name: str
    native_name: str = ""


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class ProviderFeature(DataClassJsonMixin):
    name: str
    description: str = ""
    available: bool = True


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class PricingInfo(DataClassJsonMixin):
    """Pricing summary shown to users when choosing a provider.

    Attributes:
        model (PricingModel): Pricing scheme.
        billing_unit (BillingUnit): Unit the provider bills by.
        free_quota (str): Human readable free allowance, e.g. "500,000 characters/month".
        paid_pricing (str): Human readable paid price.
        details (str): Additional notes.
    """

    model: PricingModel
    billing_unit: BillingUnit = BillingUnit.CHARACTER
    free_quota: str = ""
    paid_pricing: str = ""
    details: str = ""


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class RateLimitInfo(DataClassJsonMixin):
    requests_per_second: float | None = None
    requests_per_day: int | None = None
    characters_per_request: int | None = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class ProviderInfo(DataClassJsonMixin):
    """Static description of a translation provider.

    Attributes:
        id (str): Unique provider id, the registry key.
        name (str): Short name.
        display_name (str): Name shown to users.
        category (ProviderCategory): Conventional MT, LLM based or local.
        supported_languages (list[Language]): Languages accepted as source or target.
            An empty list means the provider accepts any code.
        features (list[ProviderFeature]): Capability flags.
        requires_api_key (bool): Whether ``api_key`` must be configured.
        requires_api_secret (bool): Whether ``api_secret`` must be configured.
        pricing (PricingInfo | None): Pricing summary.
        rate_limit (RateLimitInfo | None): Rate limit hints.
    """

    id: str
    name: str
    display_name: str
    category: ProviderCategory
    description: str = ""
    supported_languages: list[Language] = field(default_factory=list)
    features: list[ProviderFeature] = field(default_factory=list)
    requires_api_key: bool = True
    requires_api_secret: bool = False
    pricing: PricingInfo | None = None
    rate_limit: RateLimitInfo | None = None
    homepage: str = ""
    documentation: str = ""

    @property
    def language_codes(self) -> frozenset[str]:
        return frozenset(language.code for language in self.supported_languages)

    def supports_language(self, code: str) -> bool:
        if not self.supported_languages:
            return True
        return code in self.language_codes

    def has_feature(self, name: str) -> bool:
        return any(feature.name == name and feature.available for feature in self.features)
