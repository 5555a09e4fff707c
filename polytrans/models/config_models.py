"""Configuration data models.

Two families live here:

* The engine-facing snapshot, ``TranslationManagerConfig`` with its ``ManagerOptions`` and per-provider
  ``ProviderEntryConfig``. It is the plain-data settings object exchanged with the settings owner and
  serializes to camelCase through dataclasses-json.
* The INI file sections (``General``, ``Manager``, ``Cache``) populated by ``ConfigLoader``. Their field
  names mirror the INI keys.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

from polytrans.models.translation_models import Domain, Formality

__all__: list[str] = [
    "AdapterConfig",
    "AppConfig",
    "Cache",
    "General",
    "Manager",
    "ManagerOptions",
    "ProviderEntryConfig",
    "ProxyConfig",
    "TranslationManagerConfig",
]

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_RETRY_COUNT = 3


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class ProxyConfig(DataClassJsonMixin):
    host: str
    port: int
    username: str | None = None
    password: str | None = None
    scheme: str = "http"

    @property
    def url(self) -> str:
        """Proxy URL in the form accepted by aiohttp's ``proxy`` argument."""
        return f"{self.scheme}://{self.host}:{self.port}"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class AdapterConfig(DataClassJsonMixin):
    """Runtime configuration of a single provider adapter.

    Attributes:
        api_key (str): Primary credential (API key, app id, secret id...).
        api_secret (str): Secondary credential for providers that sign requests.
        endpoint (str | None): Endpoint override.
        model (str | None): Model name (AI providers).
        temperature (float | None): Sampling temperature (AI providers).
        max_tokens (int | None): Completion token limit (AI providers).
        timeout (int | None): Per-call timeout in milliseconds. The manager budget still applies.
        proxy (ProxyConfig | None): HTTP proxy.
        region (str | None): Service region (Microsoft, Tencent).
        extra (dict[str, str]): Provider specific legacy fields such as ``appId``.
    """

    api_key: str = ""
    api_secret: str = ""
    endpoint: str | None = None
    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    timeout: int | None = None
    proxy: ProxyConfig | None = None
    region: str | None = None
    extra: dict[str, str] = field(default_factory=dict)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class ProviderEntryConfig(AdapterConfig):
    enabled: bool = False

    def to_adapter_config(self) -> AdapterConfig:
        """Strip the ``enabled`` flag."""
        return AdapterConfig(
            api_key=self.api_key,
            api_secret=self.api_secret,
            endpoint=self.endpoint,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
            proxy=self.proxy,
            region=self.region,
            extra=dict(self.extra),
        )


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class ManagerOptions(DataClassJsonMixin):
    """Engine-wide policy.

    Attributes:
        auto_fallback (bool): Move on to the next candidate after a provider fails.
        cache_results (bool): Consult and populate the cache.
        parallel_translation (bool): Race candidates concurrently instead of trying them in turn.
        retry_count (int): Retries per provider after the first attempt.
        timeout (int): Budget in milliseconds for the whole request, retries and fallbacks included.
        max_concurrency (int): Upper bound of concurrently raced providers. 0 means every candidate.
        formality (Formality): Default formality for requests that do not set one.
        domain (Domain): Default domain for requests that do not set one.
    """

    auto_fallback: bool = True
    cache_results: bool = True
    parallel_translation: bool = False
    retry_count: int = DEFAULT_RETRY_COUNT
    timeout: int = DEFAULT_TIMEOUT_MS
    max_concurrency: int = 0
    formality: Formality = Formality.DEFAULT
    domain: Domain = Domain.GENERAL

    @property
    def timeout_sec(self) -> float:
        return self.timeout / 1000


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class TranslationManagerConfig(DataClassJsonMixin):
    """Settings snapshot handed to the engine.

    Attributes:
        primary_provider (str): Provider tried first.
        fallback_providers (list[str]): Providers tried after the primary, in order.
        providers (dict[str, ProviderEntryConfig]): Configuration of each provider by id.
        options (ManagerOptions): Engine policy.
        language_pair_preferences (dict[str, str]): ``"src-tgt"`` to provider id.
        version (int): Incremented by the settings owner on every change.
    """

    primary_provider: str = ""
    fallback_providers: list[str] = field(default_factory=list)
    providers: dict[str, ProviderEntryConfig] = field(default_factory=dict)
    options: ManagerOptions = field(default_factory=ManagerOptions)
    language_pair_preferences: dict[str, str] = field(default_factory=dict)
    version: int = 0

    def is_enabled(self, provider_id: str) -> bool:
        entry: ProviderEntryConfig | None = self.providers.get(provider_id)
        return entry is not None and entry.enabled

    def enabled_providers(self) -> list[str]:
        return [provider_id for provider_id, entry in self.providers.items() if entry.enabled]

    def adapter_config(self, provider_id: str) -> AdapterConfig:
        entry: ProviderEntryConfig | None = self.providers.get(provider_id)
        if entry is None:
            return AdapterConfig()
        return entry.to_adapter_config()

    def preferred_for_pair(self, source_lang: str, target_lang: str) -> str | None:
        return self.language_pair_preferences.get(f"{source_lang}-{target_lang}")

    def with_options(self, **changes) -> TranslationManagerConfig:
        """Return a copy with updated manager options and a bumped version."""
        return replace(self, options=replace(self.options, **changes), version=self.version + 1)

    def copy(self) -> TranslationManagerConfig:
        return copy.deepcopy(self)


@dataclass
class General:
    DEBUG: bool = False
    LOG_FILE: str = ""
    LOG_LEVEL: str = "INFO"


@dataclass
class Manager:
    PRIMARY_PROVIDER: str = ""
    FALLBACK_PROVIDERS: list[str] = field(default_factory=list)
    AUTO_FALLBACK: bool = True
    CACHE_RESULTS: bool = True
    PARALLEL_TRANSLATION: bool = False
    RETRY_COUNT: int = DEFAULT_RETRY_COUNT
    TIMEOUT: int = DEFAULT_TIMEOUT_MS
    MAX_CONCURRENCY: int = 0
    FORMALITY: str = Formality.DEFAULT.value
    DOMAIN: str = Domain.GENERAL.value


@dataclass
class Cache:
    MAX_ENTRIES: int = 1000
    TTL_SECONDS: int = 24 * 60 * 60


@dataclass
class AppConfig:
    """Whole configuration file.

    ``manager_config`` holds the engine snapshot assembled from the MANAGER, PROVIDER.* and
    LANGUAGE_PAIR_PREFERENCES sections.
    """

    GENERAL: General = field(default_factory=General)
    MANAGER: Manager = field(default_factory=Manager)
    CACHE: Cache = field(default_factory=Cache)
    manager_config: TranslationManagerConfig = field(default_factory=TranslationManagerConfig)
