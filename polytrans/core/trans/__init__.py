"""Translation orchestration and provider interfaces.

This package provides translation through pluggable provider adapters, with a registry, a retry
policy, fallback and race orchestration, and on-demand quota queries.
"""

from polytrans.core.trans.interface import (
    AllProvidersExhaustedError,
    AttemptFailure,
    ErrorKind,
    InvalidRequestError,
    NoProviderAvailableError,
    NotSupportedLanguagesError,
    ProviderNotFoundError,
    TransInterface,
    TranslateExceptionError,
    TranslationAuthenticationError,
    TranslationQuotaExceededError,
    TranslationRateLimitError,
    TranslationTimeoutError,
    TranslationTransientError,
)
from polytrans.core.trans.manager import TransManager
from polytrans.core.trans.quota_tracker import QuotaTracker
from polytrans.core.trans.registry import ProviderRegistry, RegisteredProvider
from polytrans.core.trans.retry_policy import RetryDecision, RetryPolicy

__all__: list[str] = [
    "AllProvidersExhaustedError",
    "AttemptFailure",
    "ErrorKind",
    "InvalidRequestError",
    "NoProviderAvailableError",
    "NotSupportedLanguagesError",
    "ProviderNotFoundError",
    "ProviderRegistry",
    "QuotaTracker",
    "RegisteredProvider",
    "RetryDecision",
    "RetryPolicy",
    "TransInterface",
    "TransManager",
    "TranslateExceptionError",
    "TranslationAuthenticationError",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
    "TranslationTimeoutError",
    "TranslationTransientError",
]
