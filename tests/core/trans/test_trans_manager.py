"""Unit tests for polytrans.core.trans.manager module."""

from __future__ import annotations

import asyncio
import random
from dataclasses import replace
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as google_exceptions

from polytrans.core.trans.engines import trans_google as trans_google_module
from polytrans.core.trans.interface import (
    AllProvidersExhaustedError,
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
    TranslationTransientError,
)
from polytrans.core.trans.language_codes import languages_for
from polytrans.core.trans.manager import TransManager
from polytrans.core.trans.registry import ProviderRegistry
from polytrans.core.trans.retry_policy import RetryPolicy
from polytrans.models.config_models import (
    AdapterConfig,
    ManagerOptions,
    ProviderEntryConfig,
    TranslationManagerConfig,
)
from polytrans.models.provider_models import ProviderCategory, ProviderInfo
from polytrans.models.translation_models import (
    Domain,
    Formality,
    LanguageDetectionResult,
    QuotaInfo,
    TranslationOptions,
    TranslationRequest,
    TranslationResponse,
    UsageInfo,
)

if TYPE_CHECKING:
    from collections.abc import Sequence


class FakeProvider(TransInterface):
    """Scripted adapter. Each call consumes the next outcome: a text or an exception to raise."""

    def __init__(
        self,
        provider_id: str,
        outcomes: Sequence[str | Exception] = (),
        *,
        delay: float = 0.0,
        languages: Sequence[str] | None = None,
        detection: str = "en",
        finish_when_cancelled: bool = False,
    ) -> None:
        self._provider_id: str = provider_id
        self.outcomes: list[str | Exception] = list(outcomes)
        self.delay: float = delay
        self.detection: str = detection
        self.finish_when_cancelled: bool = finish_when_cancelled
        self.calls: int = 0
        self.requests: list[TranslationRequest] = []
        self.configured: list[AdapterConfig] = []
        self.cancelled: bool = False
        self.closed: bool = False
        super().__init__()
        self._info = replace(
            self._info,
            id=provider_id,
            name=provider_id,
            supported_languages=languages_for(languages) if languages else [],
        )

    @staticmethod
    def fetch_provider_id() -> str:
        return ""

    @classmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        return ProviderInfo(
            id="fake",
            name="fake",
            display_name="Fake",
            category=ProviderCategory.LOCAL,
            requires_api_key=False,
        )

    @property
    def provider_id(self) -> str:
        return self._provider_id

    def _on_configured(self) -> None:
        self.configured.append(self._config)

    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        self.calls += 1
        self.requests.append(request)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            if not self.finish_when_cancelled:
                raise

        outcome: str | Exception = self.outcomes.pop(0) if self.outcomes else f"{self._provider_id}:{request.text}"
        if isinstance(outcome, Exception):
            raise outcome
        return TranslationResponse(translated_text=outcome, provider=self._provider_id)

    async def detect_language(self, text: str) -> LanguageDetectionResult:
        if self.outcomes and isinstance(self.outcomes[0], Exception):
            raise self.outcomes.pop(0)
        return LanguageDetectionResult(language=self.detection, confidence=0.9, provider=self._provider_id)

    async def get_quota(self) -> QuotaInfo | None:
        return QuotaInfo(used=10, limit=100)

    async def close(self) -> None:
        self.closed = True


def make_config(primary: str, *fallbacks: str, disabled: Sequence[str] = (), **options) -> TranslationManagerConfig:
    provider_ids: list[str] = [primary, *fallbacks, *disabled]
    return TranslationManagerConfig(
        primary_provider=primary,
        fallback_providers=list(fallbacks),
        providers={
            provider_id: ProviderEntryConfig(enabled=provider_id not in disabled) for provider_id in provider_ids
        },
        options=ManagerOptions(**options),
    )


async def make_manager(config: TranslationManagerConfig, *providers: TransInterface) -> TransManager:
    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider.info, provider)
    manager = TransManager(config, registry=registry, rng=random.Random(0))
    await manager.initialize()
    return manager


def request(text: str = "Hello", target_lang: str = "ja", **options) -> TranslationRequest:
    return TranslationRequest(text=text, target_lang=target_lang, options=TranslationOptions(**options))


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(RetryPolicy, "backoff", lambda _self, _attempt: 0.0)


@pytest.mark.asyncio
async def test_translate_uses_primary_provider() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.translated_text == "alpha:Hello"
    assert response.provider == "alpha"
    assert response.cached is False
    assert response.timestamp > 0
    assert response.usage == UsageInfo(characters=5)
    assert beta.calls == 0
    assert manager.get_stats().total.successes == 1
    assert manager.get_stats().by_provider["alpha"].characters == 5


@pytest.mark.asyncio
async def test_translate_merges_manager_defaults_into_request() -> None:
    alpha = FakeProvider("alpha")
    config: TranslationManagerConfig = make_config("alpha", formality=Formality.FORMAL, domain=Domain.LEGAL)
    manager: TransManager = await make_manager(config, alpha)

    await manager.translate(request())

    sent: TranslationRequest = alpha.requests[0]
    assert sent.options.formality is Formality.FORMAL
    assert sent.options.domain is Domain.LEGAL
    assert sent.source_lang == "auto"


@pytest.mark.asyncio
async def test_second_identical_request_is_served_from_cache() -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    first: TranslationResponse = await manager.translate(request())
    second: TranslationResponse = await manager.translate(request())

    assert alpha.calls == 1
    assert second.cached is True
    assert second.translated_text == first.translated_text
    assert manager.get_stats().cache.hits == 1
    assert manager.get_stats().cache.misses == 1
    assert manager.get_cache_stats().size == 1


@pytest.mark.asyncio
async def test_preferred_provider_does_not_split_the_cache() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    await manager.translate(request())
    response: TranslationResponse = await manager.translate(request(preferred_provider="beta"))

    assert response.cached is True
    assert response.provider == "alpha"
    assert beta.calls == 0


@pytest.mark.asyncio
async def test_cache_disabled_calls_provider_every_time() -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha", cache_results=False), alpha)

    await manager.translate(request())
    response: TranslationResponse = await manager.translate(request())

    assert alpha.calls == 2
    assert response.cached is False
    assert manager.get_cache_stats().size == 0


@pytest.mark.asyncio
async def test_transient_error_is_retried_on_same_provider() -> None:
    alpha = FakeProvider("alpha", [TranslationTransientError("connection reset"), "konnichiwa"])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta", retry_count=2), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.translated_text == "konnichiwa"
    assert alpha.calls == 2
    assert beta.calls == 0
    stats = manager.get_stats().by_provider["alpha"]
    assert stats.requests == 1
    assert stats.successes == 1
    assert stats.failures == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("retry_count", [0, 1, 3])
async def test_provider_succeeding_on_last_retry_is_called_retry_count_plus_one_times(retry_count: int) -> None:
    failures: list[str | Exception] = [TranslationTransientError(f"reset {n}") for n in range(retry_count)]
    alpha = FakeProvider("alpha", [*failures, "konnichiwa"])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta", retry_count=retry_count), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.translated_text == "konnichiwa"
    assert alpha.calls == retry_count + 1
    assert beta.calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("retry_count", [0, 2])
async def test_provider_failing_every_retry_falls_back(retry_count: int) -> None:
    failures: list[str | Exception] = [TranslationTransientError(f"reset {n}") for n in range(retry_count + 1)]
    alpha = FakeProvider("alpha", [*failures, "never returned"])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta", retry_count=retry_count), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"
    assert alpha.calls == retry_count + 1
    assert beta.calls == 1
    assert manager.get_stats().by_provider["alpha"].failures == 1


@pytest.mark.asyncio
async def test_rate_limit_is_retried() -> None:
    alpha = FakeProvider("alpha", [TranslationRateLimitError("slow down", retry_after=0.0), "ok"])
    manager: TransManager = await make_manager(make_config("alpha", retry_count=1), alpha)

    response: TranslationResponse = await manager.translate(request())

    assert response.translated_text == "ok"
    assert alpha.calls == 2


@pytest.mark.asyncio
async def test_permanent_error_falls_back_without_retry() -> None:
    alpha = FakeProvider("alpha", [TranslationAuthenticationError("bad key")])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta", retry_count=3), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"
    assert alpha.calls == 1
    stats = manager.get_stats()
    assert stats.by_provider["alpha"].failures == 1
    assert stats.by_provider["alpha"].errors[0].kind == "unauthenticated"
    assert stats.total.requests == 2
    assert stats.total.successes == 1


@pytest.mark.asyncio
async def test_unexpected_exception_counts_as_provider_error() -> None:
    alpha = FakeProvider("alpha", [RuntimeError("boom")])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"
    assert alpha.calls == 1
    assert manager.get_stats().by_provider["alpha"].errors[0].kind == "provider_error"


@pytest.mark.asyncio
async def test_exhausted_error_lists_failures_in_candidate_order() -> None:
    alpha = FakeProvider("alpha", [TranslationQuotaExceededError("quota")])
    beta = FakeProvider("beta", [TranslationTransientError("down"), TranslationTransientError("still down")])
    manager: TransManager = await make_manager(make_config("alpha", "beta", retry_count=1), alpha, beta)

    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await manager.translate(request())

    assert exc_info.value.pairs == [("alpha", ErrorKind.QUOTA_EXCEEDED), ("beta", ErrorKind.TRANSIENT)]
    assert exc_info.value.failures[1].attempts == 2
    assert exc_info.value.kind is ErrorKind.ALL_PROVIDERS_EXHAUSTED
    assert manager.get_cache_stats().size == 0


@pytest.mark.asyncio
async def test_no_fallback_when_auto_fallback_disabled() -> None:
    alpha = FakeProvider("alpha", [TranslationAuthenticationError("bad key")])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta", auto_fallback=False), alpha, beta)

    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await manager.translate(request())

    assert exc_info.value.pairs == [("alpha", ErrorKind.UNAUTHENTICATED)]
    assert beta.calls == 0


@pytest.mark.asyncio
async def test_invalid_request_from_provider_stops_the_chain() -> None:
    alpha = FakeProvider("alpha", [InvalidRequestError("text too long")])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    with pytest.raises(InvalidRequestError, match="text too long"):
        await manager.translate(request())

    assert alpha.calls == 1
    assert beta.calls == 0


@pytest.mark.asyncio
async def test_provider_specific_rejection_falls_back() -> None:
    alpha = FakeProvider("alpha", [TranslateExceptionError("[54000] required parameter missing")])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"
    assert manager.get_stats().by_provider["alpha"].errors[0].kind == "provider_error"


@pytest.mark.asyncio
async def test_rejected_google_api_key_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    client = MagicMock()
    client.translate.side_effect = google_exceptions.BadRequest(
        "API key not valid. Please pass a valid API key.", errors=[{"reason": "keyInvalid", "domain": "global"}]
    )
    monkeypatch.setattr(trans_google_module.translate, "Client", MagicMock(return_value=client))
    monkeypatch.setattr(trans_google_module, "APIKeySession", MagicMock())
    google = trans_google_module.GoogleCloudTranslation(AdapterConfig(api_key="bad-key"))
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("google", "beta"), google, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"
    assert client.translate.call_count == 1
    assert manager.get_stats().by_provider["google"].errors[0].kind == "unauthenticated"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
async def test_blank_text_is_rejected_before_any_call(text: str) -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    with pytest.raises(InvalidRequestError):
        await manager.translate(request(text))

    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_blank_target_language_is_rejected() -> None:
    manager: TransManager = await make_manager(make_config("alpha"), FakeProvider("alpha"))

    with pytest.raises(InvalidRequestError):
        await manager.translate(request(target_lang=""))


@pytest.mark.asyncio
async def test_no_enabled_provider_raises() -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha", disabled=["beta"]), alpha)
    await manager.update_config(make_config("beta", disabled=["alpha", "beta"]))

    with pytest.raises(NoProviderAvailableError) as exc_info:
        await manager.translate(request())

    assert exc_info.value.kind is ErrorKind.NO_PROVIDER_AVAILABLE
    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_enabled_provider_without_adapter_is_skipped() -> None:
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("ghost", "beta"), beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"


@pytest.mark.asyncio
async def test_preferred_provider_is_tried_first() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    response: TranslationResponse = await manager.translate(request(preferred_provider="beta"))

    assert response.provider == "beta"
    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_disabled_preferred_provider_is_ignored() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", disabled=["beta"]), alpha, beta)

    response: TranslationResponse = await manager.translate(request(preferred_provider="beta"))

    assert response.provider == "alpha"
    assert beta.calls == 0


@pytest.mark.asyncio
async def test_language_pair_preference_comes_before_primary() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    config: TranslationManagerConfig = replace(
        make_config("alpha", "beta"), language_pair_preferences={"en-ja": "beta"}
    )
    manager: TransManager = await make_manager(config, alpha, beta)

    response: TranslationResponse = await manager.translate(
        TranslationRequest(text="Hello", source_lang="en", target_lang="ja")
    )

    assert response.provider == "beta"
    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_provider_without_language_pair_is_skipped() -> None:
    alpha = FakeProvider("alpha", languages=["en", "ja"])
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    response: TranslationResponse = await manager.translate(request(target_lang="de"))

    assert response.provider == "beta"
    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_unsupported_language_pair_everywhere_raises() -> None:
    alpha = FakeProvider("alpha", languages=["en", "ja"])
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    with pytest.raises(NotSupportedLanguagesError):
        await manager.translate(request(target_lang="de"))

    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_strict_provider_never_falls_back() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta", [TranslationAuthenticationError("bad key")])
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await manager.translate(request(preferred_provider="beta", strict_provider=True))

    assert exc_info.value.pairs == [("beta", ErrorKind.UNAUTHENTICATED)]
    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_strict_provider_ignores_cached_response_of_other_provider() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    await manager.translate(request())
    response: TranslationResponse = await manager.translate(request(preferred_provider="beta", strict_provider=True))

    assert response.provider == "beta"
    assert response.cached is False
    assert beta.calls == 1


@pytest.mark.asyncio
async def test_strict_without_preferred_provider_is_invalid() -> None:
    manager: TransManager = await make_manager(make_config("alpha"), FakeProvider("alpha"))

    with pytest.raises(InvalidRequestError):
        await manager.translate(request(strict_provider=True))


@pytest.mark.asyncio
async def test_strict_disabled_provider_is_unavailable() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", disabled=["beta"]), alpha, beta)

    with pytest.raises(NoProviderAvailableError, match="beta"):
        await manager.translate(request(preferred_provider="beta", strict_provider=True))

    assert alpha.calls == 0


@pytest.mark.asyncio
async def test_race_first_success_wins_and_cancels_the_rest() -> None:
    slow = FakeProvider("slow", delay=5.0)
    fast = FakeProvider("fast", delay=0.01)
    manager: TransManager = await make_manager(make_config("slow", "fast", parallel_translation=True), slow, fast)

    response: TranslationResponse = await asyncio.wait_for(manager.translate(request()), timeout=2.0)

    assert response.provider == "fast"
    assert slow.cancelled is True
    stats = manager.get_stats().by_provider
    assert stats["slow"].cancelled == 1
    assert stats["slow"].requests == 0
    assert stats["fast"].successes == 1


@pytest.mark.asyncio
async def test_race_falls_through_failures() -> None:
    alpha = FakeProvider("alpha", [TranslationAuthenticationError("bad key")])
    beta = FakeProvider("beta", delay=0.02)
    manager: TransManager = await make_manager(make_config("alpha", "beta", parallel_translation=True), alpha, beta)

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "beta"
    assert manager.get_stats().by_provider["alpha"].failures == 1


@pytest.mark.asyncio
async def test_race_exhaustion_keeps_candidate_order() -> None:
    alpha = FakeProvider("alpha", [TranslationQuotaExceededError("quota")], delay=0.05)
    beta = FakeProvider("beta", [TranslationAuthenticationError("bad key")])
    manager: TransManager = await make_manager(make_config("alpha", "beta", parallel_translation=True), alpha, beta)

    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await manager.translate(request())

    assert exc_info.value.pairs == [("alpha", ErrorKind.QUOTA_EXCEEDED), ("beta", ErrorKind.UNAUTHENTICATED)]


@pytest.mark.asyncio
async def test_race_with_concurrency_limit_skips_waiting_providers_after_win() -> None:
    alpha = FakeProvider("alpha", delay=0.01)
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(
        make_config("alpha", "beta", parallel_translation=True, max_concurrency=1), alpha, beta
    )

    response: TranslationResponse = await manager.translate(request())

    assert response.provider == "alpha"
    assert beta.calls == 0


@pytest.mark.asyncio
async def test_race_of_three_cancels_both_losers() -> None:
    alpha = FakeProvider("alpha", delay=5.0)
    beta = FakeProvider("beta", delay=0.01)
    gamma = FakeProvider("gamma", delay=5.0)
    manager: TransManager = await make_manager(
        make_config("alpha", "beta", "gamma", parallel_translation=True), alpha, beta, gamma
    )

    response: TranslationResponse = await asyncio.wait_for(manager.translate(request()), timeout=2.0)

    assert response.provider == "beta"
    assert (alpha.cancelled, gamma.cancelled) == (True, True)
    stats = manager.get_stats()
    assert stats.by_provider["alpha"].cancelled == 1
    assert stats.by_provider["gamma"].cancelled == 1
    assert stats.by_provider["beta"].successes == 1
    assert (stats.total.requests, stats.total.successes, stats.total.failures) == (1, 1, 0)


@pytest.mark.asyncio
async def test_race_success_after_the_winner_counts_as_cancelled() -> None:
    late = FakeProvider("late", delay=5.0, finish_when_cancelled=True)
    fast = FakeProvider("fast", delay=0.01)
    manager: TransManager = await make_manager(make_config("late", "fast", parallel_translation=True), late, fast)

    response: TranslationResponse = await asyncio.wait_for(manager.translate(request()), timeout=2.0)

    assert response.provider == "fast"
    assert late.cancelled is True
    stats = manager.get_stats().by_provider["late"]
    assert (stats.cancelled, stats.requests, stats.successes) == (1, 0, 0)
    assert manager.get_stats().total.successes == 1


@pytest.mark.asyncio
async def test_race_candidate_waiting_past_the_budget_is_never_called() -> None:
    alpha = FakeProvider("alpha", delay=5.0)
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(
        make_config("alpha", "beta", parallel_translation=True, max_concurrency=1, timeout=50), alpha, beta
    )

    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await asyncio.wait_for(manager.translate(request()), timeout=2.0)

    assert exc_info.value.pairs == [("alpha", ErrorKind.TRANSIENT)]
    assert beta.calls == 0
    assert "beta" not in manager.get_stats().by_provider
    assert manager.get_stats().total.failures == 1


@pytest.mark.asyncio
async def test_time_budget_bounds_slow_provider() -> None:
    alpha = FakeProvider("alpha", delay=5.0)
    manager: TransManager = await make_manager(make_config("alpha", timeout=50), alpha)

    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await asyncio.wait_for(manager.translate(request()), timeout=2.0)

    assert exc_info.value.pairs == [("alpha", ErrorKind.TRANSIENT)]


@pytest.mark.asyncio
async def test_identical_concurrent_requests_share_one_provider_call() -> None:
    alpha = FakeProvider("alpha", delay=0.05)
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    responses: list[TranslationResponse] = await asyncio.gather(*(manager.translate(request()) for _ in range(3)))

    assert alpha.calls == 1
    assert {response.translated_text for response in responses} == {"alpha:Hello"}


@pytest.mark.asyncio
async def test_identical_concurrent_requests_share_the_failure() -> None:
    alpha = FakeProvider("alpha", [TranslationAuthenticationError("bad key")], delay=0.05)
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    results: list[TranslationResponse | BaseException] = await asyncio.gather(
        manager.translate(request()), manager.translate(request()), return_exceptions=True
    )

    assert alpha.calls == 1
    assert all(isinstance(result, AllProvidersExhaustedError) for result in results)


@pytest.mark.asyncio
async def test_update_config_reconfigures_only_changed_providers() -> None:
    alpha = FakeProvider("alpha")
    config: TranslationManagerConfig = make_config("alpha")
    manager: TransManager = await make_manager(config, alpha)
    configured_before: int = len(alpha.configured)

    await manager.update_config(config.with_options(retry_count=0))
    assert len(alpha.configured) == configured_before

    changed = replace(
        config, providers={"alpha": ProviderEntryConfig(enabled=True, api_key="new-key")}, version=2
    )
    await manager.update_config(changed)

    assert len(alpha.configured) == configured_before + 1
    assert alpha.config.api_key == "new-key"
    assert manager.config.version == 2


@pytest.mark.asyncio
async def test_translate_applies_new_config_snapshot() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    response: TranslationResponse = await manager.translate(request(), make_config("beta", "alpha"))

    assert response.provider == "beta"
    assert manager.config.primary_provider == "beta"


@pytest.mark.asyncio
async def test_initialize_creates_known_adapters_and_skips_unknown(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("DEEPL_API_KEY", raising=False)
    config = TranslationManagerConfig(
        primary_provider="deepl",
        providers={"deepl": ProviderEntryConfig(enabled=True), "no-such-provider": ProviderEntryConfig(enabled=True)},
    )

    async with TransManager(config) as manager:
        assert "deepl" in manager.registry
        assert "no-such-provider" not in manager.registry
        assert manager.is_provider_available("deepl") is True
        assert manager.is_provider_available("no-such-provider") is False
        assert [info.id for info in manager.get_available_providers()] == ["deepl"]


@pytest.mark.asyncio
async def test_shutdown_closes_adapters() -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    await manager.shutdown()

    assert alpha.closed is True


@pytest.mark.asyncio
async def test_parallel_translate_returns_every_outcome() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta", [TranslationAuthenticationError("bad key")])
    manager: TransManager = await make_manager(make_config("alpha", disabled=["beta"]), alpha, beta)

    results = await manager.parallel_translate(request(), ["alpha", "beta"])

    assert isinstance(results["alpha"], TranslationResponse)
    assert results["alpha"].provider == "alpha"
    assert isinstance(results["beta"], TranslationAuthenticationError)


@pytest.mark.asyncio
async def test_parallel_translate_rejects_unknown_provider() -> None:
    manager: TransManager = await make_manager(make_config("alpha"), FakeProvider("alpha"))

    with pytest.raises(ProviderNotFoundError):
        await manager.parallel_translate(request(), ["alpha", "ghost"])


@pytest.mark.asyncio
async def test_batch_translate_keeps_request_order() -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    results = await manager.batch_translate([request("one"), request("two"), request("three")])

    assert [str(result) for result in results] == ["alpha:one", "alpha:two", "alpha:three"]


@pytest.mark.asyncio
async def test_batch_translate_can_collect_errors() -> None:
    manager: TransManager = await make_manager(make_config("alpha"), FakeProvider("alpha"))

    results = await manager.batch_translate([request("ok"), request(" ")], return_exceptions=True)

    assert isinstance(results[0], TranslationResponse)
    assert isinstance(results[1], InvalidRequestError)


@pytest.mark.asyncio
async def test_detect_language_falls_back_between_providers() -> None:
    alpha = FakeProvider("alpha", [TranslationTransientError("down")])
    beta = FakeProvider("beta", detection="de")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    result: LanguageDetectionResult = await manager.detect_language("Guten Morgen")

    assert result.language == "de"
    assert result.provider == "beta"


@pytest.mark.asyncio
async def test_detect_language_with_explicit_provider() -> None:
    alpha = FakeProvider("alpha")
    beta = FakeProvider("beta", detection="fr")
    manager: TransManager = await make_manager(make_config("alpha", "beta"), alpha, beta)

    result: LanguageDetectionResult = await manager.detect_language("Bonjour", "beta")

    assert result.language == "fr"


@pytest.mark.asyncio
async def test_detect_language_errors() -> None:
    alpha = FakeProvider("alpha", [TranslationAuthenticationError("bad key")])
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    with pytest.raises(InvalidRequestError):
        await manager.detect_language("  ")
    with pytest.raises(ProviderNotFoundError):
        await manager.detect_language("Hello", "ghost")
    with pytest.raises(AllProvidersExhaustedError) as exc_info:
        await manager.detect_language("Hello")
    assert exc_info.value.pairs == [("alpha", ErrorKind.UNAUTHENTICATED)]


@pytest.mark.parametrize(
    ("source_lang", "target_lang", "expected"),
    [
        ("zh-CN", "en", "baidu"),
        ("en", "zh-CN", "baidu"),
        ("ja", "zh-CN", "youdao"),
        ("de", "fr", "deepl"),
        ("en", "ja", "google"),
    ],
)
def test_recommend_provider(source_lang: str, target_lang: str, expected: str) -> None:
    assert TransManager.recommend_provider(source_lang, target_lang) == expected


@pytest.mark.asyncio
async def test_get_quota_passes_through() -> None:
    manager: TransManager = await make_manager(make_config("alpha"), FakeProvider("alpha"))

    quota: QuotaInfo | None = await manager.get_quota("alpha")

    assert quota == QuotaInfo(used=10, limit=100)
    with pytest.raises(ProviderNotFoundError):
        await manager.get_quota("ghost")


@pytest.mark.asyncio
async def test_clear_stats_and_cache() -> None:
    alpha = FakeProvider("alpha")
    manager: TransManager = await make_manager(make_config("alpha"), alpha)
    await manager.translate(request())

    removed: int = await manager.clear_cache()
    manager.clear_stats()

    assert removed == 1
    assert manager.get_cache_stats().size == 0
    assert manager.get_stats().total.requests == 0

    response: TranslationResponse = await manager.translate(request())

    assert alpha.calls == 2
    assert response.cached is False
    assert manager.get_stats().total.requests == 1


@pytest.mark.asyncio
async def test_provider_error_message_reaches_caller() -> None:
    alpha = FakeProvider("alpha", [TranslateExceptionError("unexpected body")])
    manager: TransManager = await make_manager(make_config("alpha"), alpha)

    with pytest.raises(AllProvidersExhaustedError, match="unexpected body"):
        await manager.translate(request())
