"""Data models for PolyTrans.

This package contains the dataclass definitions for requests, responses, provider descriptors,
configuration, cache entries and usage statistics.
"""

from __future__ import annotations

from polytrans.models.cache_models import CacheEntry, CacheStatistics
from polytrans.models.config_models import (
    AdapterConfig,
    AppConfig,
    ManagerOptions,
    ProviderEntryConfig,
    ProxyConfig,
    TranslationManagerConfig,
)
from polytrans.models.provider_models import (
    BillingUnit,
    Language,
    PricingInfo,
    PricingModel,
    ProviderCategory,
    ProviderFeature,
    ProviderInfo,
    RateLimitInfo,
)
from polytrans.models.stats_models import (
    AttemptOutcome,
    CacheCounters,
    ErrorRecord,
    ProviderStats,
    StatsBucket,
    StatsSnapshot,
)
from polytrans.models.translation_models import (
    AUTO_DETECT,
    AlternativeTranslation,
    Domain,
    Formality,
    LanguageDetectionResult,
    QuotaInfo,
    QuotaUnit,
    TranslationOptions,
    TranslationRequest,
    TranslationResponse,
    UsageInfo,
    ValidationResult,
)

__all__: list[str] = [
    "AUTO_DETECT",
    "AdapterConfig",
    "AlternativeTranslation",
    "AppConfig",
    "AttemptOutcome",
    "BillingUnit",
    "CacheCounters",
    "CacheEntry",
    "CacheStatistics",
    "Domain",
    "ErrorRecord",
    "Formality",
    "Language",
    "LanguageDetectionResult",
    "ManagerOptions",
    "PricingInfo",
    "PricingModel",
    "ProviderCategory",
    "ProviderEntryConfig",
    "ProviderFeature",
    "ProviderInfo",
    "ProviderStats",
    "ProxyConfig",
    "QuotaInfo",
    "QuotaUnit",
    "RateLimitInfo",
    "StatsBucket",
    "StatsSnapshot",
    "TranslationManagerConfig",
    "TranslationOptions",
    "TranslationRequest",
    "TranslationResponse",
    "UsageInfo",
    "ValidationResult",
]
