"""Translation orchestration engine.

``TransManager`` turns a translation request into provider calls: it consults the cache, builds the
candidate provider order from the settings snapshot, calls providers one after another or races
them, applies the retry policy within the request's time budget, and reports every attempted
provider to the stats aggregator.
"""

from __future__ import annotations

import asyncio
import itertools
import time
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, Self

from polytrans.core.cache.inflight_manager import InFlightManager
from polytrans.core.cache.manager import TranslationCacheManager
from polytrans.core.stats.manager import StatsManager
from polytrans.core.trans.engines import (
    BaiduTranslation,  # noqa: F401
    ClaudeTranslation,  # noqa: F401
    DeeplTranslation,  # noqa: F401
    GeminiTranslation,  # noqa: F401
    GoogleCloudTranslation,  # noqa: F401
    MicrosoftTranslation,  # noqa: F401
    OpenAITranslation,  # noqa: F401
    TencentTranslation,  # noqa: F401
    YoudaoTranslation,  # noqa: F401
)
from polytrans.core.trans.interface import (
    AllProvidersExhaustedError,
    AttemptFailure,
    ErrorKind,
    InvalidRequestError,
    NoProviderAvailableError,
    NotSupportedLanguagesError,
    TransInterface,
    TranslateExceptionError,
    TranslationTimeoutError,
)
from polytrans.core.trans.language_codes import EUROPEAN_LANGUAGES
from polytrans.core.trans.quota_tracker import QuotaTracker
from polytrans.core.trans.registry import ProviderRegistry
from polytrans.core.trans.retry_policy import RetryPolicy
from polytrans.models.config_models import AdapterConfig, ProviderEntryConfig, TranslationManagerConfig
from polytrans.models.stats_models import AttemptOutcome
from polytrans.models.translation_models import AUTO_DETECT, UsageInfo
from polytrans.utils.logger_utils import LoggerUtils
from polytrans.utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging
    import random
    from collections.abc import Callable, Mapping, Sequence

    from polytrans.core.trans.registry import RegisteredProvider
    from polytrans.core.trans.retry_policy import RetryDecision
    from polytrans.models.cache_models import CacheStatistics
    from polytrans.models.provider_models import ProviderInfo
    from polytrans.models.stats_models import StatsSnapshot
    from polytrans.models.translation_models import (
        LanguageDetectionResult,
        QuotaInfo,
        TranslationRequest,
        TranslationResponse,
        ValidationResult,
    )


__all__: list[str] = ["OrchestrationState", "TransManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class OrchestrationState(StrEnum):
    CACHE_LOOKUP = "cache_lookup"
    PROVIDER_SELECTION = "provider_selection"
    ATTEMPTING = "attempting"
    SUCCESS = "success"
    RETRYING = "retrying"
    FALLING_BACK = "falling_back"
    COMPLETED = "completed"
    EXHAUSTED = "exhausted"


@dataclass
class _RequestContext:
    """Per-request state shared by every attempt of one orchestration.

    Attributes:
        request_id (int): Sequence number for log correlation.
        request (TranslationRequest): Request with options merged with manager defaults.
        config (TranslationManagerConfig): Settings snapshot the request runs under.
        providers (Mapping[str, RegisteredProvider]): Registry snapshot taken at the start.
        policy (RetryPolicy): Retry policy built from the snapshot.
        fingerprint (str): Cache key of the request.
        started (float): Monotonic start time.
        deadline (float): Monotonic time at which the budget runs out.
    """

    request_id: int
    request: TranslationRequest
    config: TranslationManagerConfig
    providers: Mapping[str, RegisteredProvider]
    policy: RetryPolicy
    fingerprint: str
    started: float
    deadline: float
    state: OrchestrationState = OrchestrationState.CACHE_LOOKUP

    def remaining(self) -> float:
        return self.deadline - time.monotonic()

    def elapsed(self) -> float:
        return time.monotonic() - self.started

    @property
    def required_provider(self) -> str | None:
        options = self.request.options
        return options.preferred_provider if options.strict_provider else None


class _ProviderAttemptError(Exception):
    """Internal signal that one provider failed terminally within a request."""

    def __init__(self, failure: AttemptFailure, error: TranslateExceptionError) -> None:
        super().__init__(str(failure))
        self.failure: AttemptFailure = failure
        self.error: TranslateExceptionError = error


def _now_millis() -> int:
    return int(time.time() * 1000)


class TransManager:
    """Orchestration engine for translation providers.

    One instance is created at startup, initialized from a settings snapshot and torn down with
    ``shutdown()``. The cache, stats and registry it owns are shared by every concurrent request.

    Attributes:
        PAIR_RECOMMENDATIONS (ClassVar[dict[frozenset[str], str]]): Providers known to do well on
            specific language pairs, used by ``recommend_provider``.
    """

    PAIR_RECOMMENDATIONS: ClassVar[dict[frozenset[str], str]] = {
        frozenset({"zh-CN", "en"}): "baidu",
        frozenset({"zh-CN", "ja"}): "youdao",
    }
    DEFAULT_RECOMMENDATION: ClassVar[str] = "google"
    EUROPEAN_RECOMMENDATION: ClassVar[str] = "deepl"

    def __init__(
        self,
        config: TranslationManagerConfig | None = None,
        *,
        registry: ProviderRegistry | None = None,
        cache_manager: TranslationCacheManager | None = None,
        stats_manager: StatsManager | None = None,
        inflight_manager: InFlightManager | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config (TranslationManagerConfig | None): Initial settings snapshot.
            registry (ProviderRegistry | None): Provider directory. Adapters registered on it
                beforehand are kept and configured from the snapshot by ``initialize()``.
            cache_manager (TranslationCacheManager | None): Response cache.
            stats_manager (StatsManager | None): Stats aggregator.
            inflight_manager (InFlightManager | None): Coalescing of identical concurrent requests.
            rng (random.Random | None): Random source for retry jitter.
        """
        self._config: TranslationManagerConfig = config or TranslationManagerConfig()
        self.registry: ProviderRegistry = registry or ProviderRegistry()
        self.cache_manager: TranslationCacheManager = cache_manager or TranslationCacheManager(
            enabled=self._config.options.cache_results
        )
        self.stats_manager: StatsManager = stats_manager or StatsManager()
        self.inflight_manager: InFlightManager = inflight_manager or InFlightManager()
        self.quota_tracker: QuotaTracker = QuotaTracker(self.registry)
        self._rng: random.Random | None = rng
        self._applied_configs: dict[str, AdapterConfig] = {}
        self._retired: list[TransInterface] = []
        self._config_lock: asyncio.Lock = asyncio.Lock()
        self._request_ids: itertools.count[int] = itertools.count(1)
        logger.debug("Registered translation providers: %s", sorted(TransInterface.registered))

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    @property
    def config(self) -> TranslationManagerConfig:
        return self._config

    async def initialize(self, config: TranslationManagerConfig | None = None) -> None:
        """Create or configure one adapter per provider listed in the settings.

        Providers whose adapter class is unknown are logged and skipped.

        Args:
            config (TranslationManagerConfig | None): Settings snapshot. None keeps the current one.
        """
        logger.info("TransManager initialization started")
        async with self._config_lock:
            self._apply_config(config or self._config)
        logger.info("TransManager initialized with providers: %s", self.registry.ids())

    async def update_config(self, config: TranslationManagerConfig) -> None:
        """Switch to a new settings snapshot.

        Requests already running keep the snapshot and adapters they started with.

        Args:
            config (TranslationManagerConfig): New settings snapshot.
        """
        async with self._config_lock:
            if config == self._config and self._applied_configs:
                return
            self._apply_config(config)
        logger.info("Translation configuration updated (version %d)", config.version)

    def _apply_config(self, config: TranslationManagerConfig) -> None:
        for provider_id, entry in config.providers.items():
            adapter_config: AdapterConfig = entry.to_adapter_config()
            existing: TransInterface | None = self.registry.find(provider_id)
            if existing is not None:
                if self._applied_configs.get(provider_id) != adapter_config:
                    existing.configure(adapter_config)
                    self._applied_configs[provider_id] = adapter_config
                continue

            adapter_cls: type[TransInterface] | None = TransInterface.registered.get(provider_id)
            if adapter_cls is None:
                logger.error("Translation provider class not found: '%s'", provider_id)
                continue
            try:
                adapter: TransInterface = adapter_cls(adapter_config)
            except (TranslateExceptionError, ValueError) as err:
                logger.critical("Failed to set up translation provider '%s': %s", provider_id, err)
                continue

            replaced: TransInterface | None = self.registry.register(adapter.info, adapter)
            if replaced is not None:
                self._retired.append(replaced)
            self._applied_configs[provider_id] = adapter_config
            logger.info("Translation provider initialized: '%s'", provider_id)

        for provider_id in config.enabled_providers():
            if provider_id in self.registry and self.registry.get(provider_id).missing_credentials():
                logger.warning("Provider '%s' is enabled but has no credentials configured", provider_id)

        self.cache_manager.enabled = config.options.cache_results
        self._config = config

    async def shutdown(self) -> None:
        """Close every adapter and release waiting requests."""
        logger.info("TransManager shutdown started")
        await self.inflight_manager.cancel_all()
        adapters: list[TransInterface] = [entry.adapter for entry in self.registry.snapshot().values()]
        for adapter in [*adapters, *self._retired]:
            try:
                await adapter.close()
            except TranslateExceptionError as err:
                logger.error("Error closing provider '%s': %s", adapter.provider_id, err)
        self._retired.clear()
        logger.info("TransManager shutdown completed")

    def _transition(self, ctx: _RequestContext, state: OrchestrationState, provider_id: str | None = None) -> None:
        ctx.state = state
        if provider_id is None:
            logger.debug("[req %d] -> %s", ctx.request_id, state)
        else:
            logger.debug("[req %d] -> %s (%s)", ctx.request_id, state, provider_id)

    def _prepare_request(self, request: TranslationRequest, config: TranslationManagerConfig) -> TranslationRequest:
        """Validate a request and merge manager defaults into its options.

        Raises:
            InvalidRequestError: If the text or target language is blank, or a strict request names
                no provider.
        """
        if StringUtils.is_blank(request.text):
            msg = "Text to translate must not be empty"
            raise InvalidRequestError(msg)
        if StringUtils.is_blank(request.target_lang):
            msg = "Target language must be specified"
            raise InvalidRequestError(msg)
        if request.options.strict_provider and not request.options.preferred_provider:
            msg = "strict_provider requires preferred_provider"
            raise InvalidRequestError(msg)

        options = replace(
            request.options,
            formality=request.options.formality or config.options.formality,
            domain=request.options.domain or config.options.domain,
        )
        return replace(request, source_lang=request.source_lang or AUTO_DETECT, options=options)

    def _new_context(self, request: TranslationRequest, config: TranslationManagerConfig) -> _RequestContext:
        effective: TranslationRequest = self._prepare_request(request, config)
        started: float = time.monotonic()
        return _RequestContext(
            request_id=next(self._request_ids),
            request=effective,
            config=config,
            providers=self.registry.snapshot(),
            policy=RetryPolicy(config.options.retry_count, config.options.timeout_sec, rng=self._rng),
            fingerprint=TranslationCacheManager.generate_fingerprint(effective),
            started=started,
            deadline=started + config.options.timeout_sec,
        )

    async def translate(
        self, request: TranslationRequest, config: TranslationManagerConfig | None = None
    ) -> TranslationResponse:
        """Translate a request.

        Args:
            request (TranslationRequest): The request.
            config (TranslationManagerConfig | None): Settings snapshot. A snapshot that differs
                from the active one is applied first. None uses the active one.

        Returns:
            TranslationResponse: Response of the provider that produced the translation, or the
            cached response of an equivalent earlier request.

        Raises:
            InvalidRequestError: If the request is malformed or no provider supports the language pair.
            NoProviderAvailableError: If no enabled provider is registered.
            AllProvidersExhaustedError: If every attempted provider failed.
        """
        if config is not None and config != self._config:
            await self.update_config(config)

        snapshot: TranslationManagerConfig = self._config
        ctx: _RequestContext = self._new_context(request, snapshot)
        caching: bool = snapshot.options.cache_results and self.cache_manager.enabled
        logger.debug(
            "[req %d] Translation started: '%s' (%s -> %s)",
            ctx.request_id,
            StringUtils.preview(ctx.request.text),
            ctx.request.source_lang,
            ctx.request.target_lang,
        )

        if not caching:
            return await self._orchestrate(ctx)

        self._transition(ctx, OrchestrationState.CACHE_LOOKUP)
        cached: TranslationResponse | None = await self.cache_manager.get(ctx.fingerprint, ctx.required_provider)
        if cached is not None:
            self.stats_manager.record_cache_hit()
            self._transition(ctx, OrchestrationState.COMPLETED, cached.provider)
            return replace(cached, cached=True)
        self.stats_manager.record_cache_miss()

        inflight_key: str = f"{ctx.fingerprint}:{ctx.required_provider or ''}"
        try:
            shared: TranslationResponse | None = await self.inflight_manager.join(inflight_key, ctx.remaining())
        except TimeoutError as err:
            logger.warning("[req %d] %s; translating independently", ctx.request_id, err)
            return await self._orchestrate(ctx)
        if shared is not None:
            logger.debug("[req %d] Reused in-flight translation from '%s'", ctx.request_id, shared.provider)
            return shared

        try:
            response: TranslationResponse = await self._orchestrate(ctx)
        except TranslateExceptionError as err:
            await self.inflight_manager.fail(inflight_key, err)
            raise
        except BaseException:
            await asyncio.shield(self.inflight_manager.abandon(inflight_key))
            raise
        else:
            await self.inflight_manager.complete(inflight_key, response)
            return response

    async def _orchestrate(self, ctx: _RequestContext) -> TranslationResponse:
        self._transition(ctx, OrchestrationState.PROVIDER_SELECTION)
        candidates: list[str] = self._select_candidates(ctx)
        options = ctx.config.options

        if options.parallel_translation and len(candidates) > 1:
            response: TranslationResponse = await self._translate_race(ctx, candidates)
        else:
            response = await self._translate_sequential(ctx, candidates)

        if options.cache_results:
            await self.cache_manager.put(ctx.fingerprint, response)
        self._transition(ctx, OrchestrationState.COMPLETED, response.provider)
        return response

    def _select_candidates(self, ctx: _RequestContext) -> list[str]:
        """Build the ordered candidate list for a request.

        Order: preferred provider, language-pair preference, primary, fallbacks. Only enabled,
        registered providers that support the language pair are kept. A strict request only
        considers its preferred provider.

        Raises:
            NotSupportedLanguagesError: If enabled providers exist but none supports the pair.
            NoProviderAvailableError: If no enabled provider is registered.
        """
        request: TranslationRequest = ctx.request
        config: TranslationManagerConfig = ctx.config
        preferred: str | None = request.options.preferred_provider

        ordered: list[str | None]
        if request.options.strict_provider:
            ordered = [preferred]
        else:
            ordered = [
                preferred,
                config.preferred_for_pair(request.source_lang, request.target_lang),
                config.primary_provider,
                *config.fallback_providers,
            ]

        candidates: list[str] = []
        unsupported: list[str] = []
        for provider_id in ordered:
            if not provider_id or provider_id in candidates or provider_id in unsupported:
                continue
            if not config.is_enabled(provider_id):
                if provider_id == preferred:
                    logger.info("Preferred provider '%s' is not enabled; ignored", provider_id)
                continue
            entry: RegisteredProvider | None = ctx.providers.get(provider_id)
            if entry is None:
                logger.warning("Enabled provider '%s' has no registered adapter", provider_id)
                continue
            if not entry.adapter.is_language_pair_supported(request.source_lang, request.target_lang):
                logger.info(
                    "Provider '%s' does not support %s -> %s", provider_id, request.source_lang, request.target_lang
                )
                unsupported.append(provider_id)
                continue
            candidates.append(provider_id)

        if candidates:
            logger.debug("[req %d] Candidates: %s", ctx.request_id, candidates)
            return candidates

        if unsupported:
            msg: str = (
                f"No enabled provider supports {request.source_lang} -> {request.target_lang} "
                f"(checked: {', '.join(unsupported)})"
            )
            raise NotSupportedLanguagesError(msg)
        msg = "No translation provider available"
        if request.options.strict_provider:
            msg = f"Required provider '{preferred}' is not available"
        raise NoProviderAvailableError(msg)

    def _finalize_response(
        self, ctx: _RequestContext, provider_id: str, response: TranslationResponse
    ) -> TranslationResponse:
        """Attribute the response to the adapter that produced it and stamp completion time."""
        if response.provider != provider_id:
            logger.warning("Provider '%s' returned a response labelled '%s'", provider_id, response.provider)
        usage: UsageInfo | None = response.usage
        if usage is None or usage.characters is None:
            usage = replace(usage or UsageInfo(), characters=len(ctx.request.text))
        return replace(response, provider=provider_id, timestamp=_now_millis(), usage=usage, cached=False)

    async def _attempt_provider(
        self, ctx: _RequestContext, provider_id: str, superseded: Callable[[], bool] | None = None
    ) -> TranslationResponse:
        """Call one provider, retrying transient failures within the remaining budget.

        Exactly one stats event is recorded for the provider: success, failure or cancelled. A success
        that arrives after ``superseded`` reports true lost the race and is recorded as cancelled.

        Raises:
            _ProviderAttemptError: If the provider failed terminally.
            asyncio.CancelledError: If the attempt was cancelled.
        """
        adapter: TransInterface = ctx.providers[provider_id].adapter
        attempt: int = 0
        attempt_started: float = time.monotonic()
        err: TranslateExceptionError
        kind: ErrorKind

        try:
            while True:
                attempt += 1
                self._transition(ctx, OrchestrationState.ATTEMPTING, provider_id)
                remaining: float = ctx.remaining()
                if remaining <= 0:
                    msg: str = f"Time budget of {ctx.config.options.timeout} ms exhausted before calling '{provider_id}'"
                    err = TranslationTimeoutError(msg, provider_id=provider_id)
                    kind = err.kind
                    break

                try:
                    async with asyncio.timeout(remaining):
                        response: TranslationResponse = await adapter.translate(ctx.request)
                except TimeoutError as exc:
                    msg = f"'{provider_id}' did not respond within {remaining:.2f}s"
                    err = TranslationTimeoutError(msg, provider_id=provider_id)
                    err.__cause__ = exc
                except TranslateExceptionError as exc:
                    err = exc
                except Exception as exc:  # noqa: BLE001
                    logger.exception("Provider '%s' failed with unexpected error.", provider_id)
                    err = TranslateExceptionError(f"Unexpected error: {exc!r}", provider_id=provider_id)
                    err.__cause__ = exc
                else:
                    response = self._finalize_response(ctx, provider_id, response)
                    if superseded is not None and superseded():
                        self.stats_manager.record_attempt(
                            provider_id,
                            AttemptOutcome.CANCELLED,
                            latency_ms=(time.monotonic() - attempt_started) * 1000,
                        )
                        return response
                    self.stats_manager.record_attempt(
                        provider_id,
                        AttemptOutcome.SUCCESS,
                        response.usage,
                        latency_ms=(time.monotonic() - attempt_started) * 1000,
                    )
                    self._transition(ctx, OrchestrationState.SUCCESS, provider_id)
                    return response

                if err.provider_id is None:
                    err.provider_id = provider_id
                kind = adapter.classify_error(err)
                decision: RetryDecision = ctx.policy.should_retry(
                    attempt, kind, ctx.elapsed(), getattr(err, "retry_after", None)
                )
                if not decision.retry:
                    logger.debug("[req %d] No retry for '%s': %s", ctx.request_id, provider_id, decision.reason)
                    break

                self._transition(ctx, OrchestrationState.RETRYING, provider_id)
                logger.info(
                    "Retrying provider '%s' in %.2fs after %s (attempt %d/%d)",
                    provider_id,
                    decision.delay,
                    kind,
                    attempt + 1,
                    ctx.policy.max_attempts,
                )
                await asyncio.sleep(decision.delay)
        except asyncio.CancelledError:
            self.stats_manager.record_attempt(
                provider_id, AttemptOutcome.CANCELLED, latency_ms=(time.monotonic() - attempt_started) * 1000
            )
            logger.debug("[req %d] Attempt of '%s' cancelled", ctx.request_id, provider_id)
            raise

        self.stats_manager.record_attempt(
            provider_id,
            AttemptOutcome.FAILURE,
            latency_ms=(time.monotonic() - attempt_started) * 1000,
            error=err,
        )
        logger.warning("Provider '%s' failed after %d attempt(s) (%s): %s", provider_id, attempt, kind, err)
        raise _ProviderAttemptError(AttemptFailure(provider_id, kind, str(err), attempt), err)

    async def _translate_sequential(self, ctx: _RequestContext, candidates: Sequence[str]) -> TranslationResponse:
        failures: list[AttemptFailure] = []
        fatal: TranslateExceptionError | None = None

        for index, provider_id in enumerate(candidates):
            if index > 0:
                self._transition(ctx, OrchestrationState.FALLING_BACK, provider_id)
                logger.info("Falling back to provider '%s'", provider_id)
            try:
                return await self._attempt_provider(ctx, provider_id)
            except _ProviderAttemptError as err:
                failures.append(err.failure)
                if err.failure.kind is ErrorKind.INVALID_REQUEST:
                    fatal = err.error
                    break
            if not ctx.config.options.auto_fallback:
                break
            if ctx.remaining() <= 0:
                logger.warning("[req %d] Time budget exhausted; remaining providers skipped", ctx.request_id)
                break

        self._transition(ctx, OrchestrationState.EXHAUSTED)
        if fatal is not None:
            raise fatal
        error = AllProvidersExhaustedError(failures)
        logger.error("[req %d] %s", ctx.request_id, error)
        raise error

    async def _translate_race(self, ctx: _RequestContext, candidates: Sequence[str]) -> TranslationResponse:
        """Call candidates concurrently; the first success wins and cancels the others.

        At most ``max_concurrency`` providers run at once. A provider that fails frees its slot for
        the next candidate. Providers still waiting for a slot when a winner is known, or when the time
        budget is spent, are never called and leave no stats event.
        """
        limit: int = ctx.config.options.max_concurrency or len(candidates)
        gate: asyncio.Semaphore = asyncio.Semaphore(limit)
        tasks: dict[str, asyncio.Task[None]] = {}
        failures: dict[str, AttemptFailure] = {}
        winners: list[TranslationResponse] = []

        async def contend(provider_id: str) -> None:
            async with gate:
                if winners:
                    return
                if ctx.remaining() <= 0:
                    logger.debug("[req %d] Time budget spent before '%s' got a slot", ctx.request_id, provider_id)
                    return
                try:
                    response: TranslationResponse = await self._attempt_provider(
                        ctx, provider_id, superseded=lambda: bool(winners)
                    )
                except _ProviderAttemptError as err:
                    failures[provider_id] = err.failure
                    return
                if winners:
                    logger.debug("[req %d] '%s' finished after the winner", ctx.request_id, provider_id)
                    return
                winners.append(response)
                for other_id, task in tasks.items():
                    if other_id != provider_id and not task.done():
                        task.cancel()

        async with asyncio.TaskGroup() as group:
            for provider_id in candidates:
                tasks[provider_id] = group.create_task(contend(provider_id), name=f"polytrans-race-{provider_id}")

        if winners:
            logger.debug("[req %d] Race won by '%s'", ctx.request_id, winners[0].provider)
            return winners[0]

        self._transition(ctx, OrchestrationState.EXHAUSTED)
        error = AllProvidersExhaustedError([failures[pid] for pid in candidates if pid in failures])
        logger.error("[req %d] %s", ctx.request_id, error)
        raise error

    async def parallel_translate(
        self, request: TranslationRequest, provider_ids: Sequence[str]
    ) -> dict[str, TranslationResponse | TranslateExceptionError]:
        """Translate with several providers and return every outcome, for comparison.

        The cache is neither consulted nor populated. Enablement is not checked so that disabled
        providers can be compared too; every provider must be registered.

        Args:
            request (TranslationRequest): The request.
            provider_ids (Sequence[str]): Providers to call.

        Returns:
            dict[str, TranslationResponse | TranslateExceptionError]: Outcome per provider id.

        Raises:
            ProviderNotFoundError: If a provider is not registered.
        """
        for provider_id in provider_ids:
            self.registry.get(provider_id)
        ctx: _RequestContext = self._new_context(request, self._config)

        async def run(provider_id: str) -> TranslationResponse | TranslateExceptionError:
            try:
                return await self._attempt_provider(ctx, provider_id)
            except _ProviderAttemptError as err:
                return err.error

        results: list[TranslationResponse | TranslateExceptionError] = await asyncio.gather(
            *(run(provider_id) for provider_id in provider_ids)
        )
        return dict(zip(provider_ids, results, strict=True))

    async def batch_translate(
        self,
        requests: Sequence[TranslationRequest],
        config: TranslationManagerConfig | None = None,
        *,
        return_exceptions: bool = False,
    ) -> list[TranslationResponse | BaseException]:
        """Translate several requests concurrently.

        Args:
            requests (Sequence[TranslationRequest]): Requests in order.
            config (TranslationManagerConfig | None): Settings snapshot for every request.
            return_exceptions (bool): Put errors in the result list instead of raising the first one.

        Returns:
            list[TranslationResponse | BaseException]: Outcomes in request order.
        """
        if config is not None and config != self._config:
            await self.update_config(config)
        return await asyncio.gather(
            *(self.translate(request) for request in requests), return_exceptions=return_exceptions
        )

    async def detect_language(self, text: str, provider_id: str | None = None) -> LanguageDetectionResult:
        """Detect the language of a text.

        Args:
            text (str): Text to analyze.
            provider_id (str | None): Provider to use. None tries enabled providers in order.

        Returns:
            LanguageDetectionResult: Detection result.

        Raises:
            InvalidRequestError: If the text is blank.
            ProviderNotFoundError: If ``provider_id`` is not registered.
            NoProviderAvailableError: If no provider is enabled.
            AllProvidersExhaustedError: If every tried provider failed.
        """
        if StringUtils.is_blank(text):
            msg = "Text for language detection must not be empty"
            raise InvalidRequestError(msg)

        provider_ids: list[str] = [provider_id] if provider_id else self.registry.list_enabled(self._config)
        if not provider_ids:
            msg = "No translation provider available for language detection"
            raise NoProviderAvailableError(msg)

        failures: list[AttemptFailure] = []
        try:
            async with asyncio.timeout(self._config.options.timeout_sec):
                for candidate in provider_ids:
                    adapter: TransInterface = self.registry.get(candidate)
                    try:
                        return await adapter.detect_language(text)
                    except TranslateExceptionError as err:
                        logger.warning("Language detection by '%s' failed: %s", candidate, err)
                        failures.append(AttemptFailure(candidate, adapter.classify_error(err), str(err)))
        except TimeoutError as err:
            msg = f"Language detection did not finish within {self._config.options.timeout} ms"
            raise TranslationTimeoutError(msg) from err
        raise AllProvidersExhaustedError(failures)

    def get_available_providers(self) -> list[ProviderInfo]:
        return self.registry.list()

    def is_provider_available(self, provider_id: str) -> bool:
        return provider_id in self.registry and self._config.is_enabled(provider_id)

    @classmethod
    def recommend_provider(cls, source_lang: str, target_lang: str) -> str:
        """Suggest a provider id for a language pair.

        Args:
            source_lang (str): Source language code.
            target_lang (str): Target language code.

        Returns:
            str: Recommended provider id.
        """
        pair: frozenset[str] = frozenset({source_lang, target_lang})
        if pair in cls.PAIR_RECOMMENDATIONS:
            return cls.PAIR_RECOMMENDATIONS[pair]
        if source_lang in EUROPEAN_LANGUAGES and target_lang in EUROPEAN_LANGUAGES:
            return cls.EUROPEAN_RECOMMENDATION
        return cls.DEFAULT_RECOMMENDATION

    def get_stats(self) -> StatsSnapshot:
        return self.stats_manager.snapshot()

    def clear_stats(self) -> None:
        self.stats_manager.clear()

    def get_cache_stats(self) -> CacheStatistics:
        return self.cache_manager.get_cache_statistics()

    async def clear_cache(self) -> int:
        """Drop every cached response.

        Returns:
            int: Number of removed entries.
        """
        return await self.cache_manager.clear()

    async def get_quota(self, provider_id: str) -> QuotaInfo | None:
        """Provider-reported quota, or None if the provider has no quota API."""
        return await self.quota_tracker.check_quota(provider_id)

    async def validate_provider(self, provider_id: str, config: AdapterConfig | None = None) -> ValidationResult:
        """Check a provider configuration without applying it.

        Args:
            provider_id (str): Provider id.
            config (AdapterConfig | None): Configuration to check. None checks the active one.

        Returns:
            ValidationResult: Outcome of the check.

        Raises:
            ProviderNotFoundError: If the provider is not registered.
        """
        adapter: TransInterface = self.registry.get(provider_id)
        if isinstance(config, ProviderEntryConfig):
            config = config.to_adapter_config()
        result: ValidationResult = await adapter.validate(config)
        logger.info("Validation of provider '%s': %s", provider_id, "ok" if result.valid else result.message)
        return result
