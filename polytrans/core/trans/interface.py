"""This module defines the adapter contract every translation provider implements, and the error taxonomy.

Adapters register themselves by provider id when their class is defined. The error classes carry an
``ErrorKind`` that the retry policy and the orchestration engine use to decide between retrying,
falling back and giving up.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Final

from polytrans.models.config_models import AdapterConfig
from polytrans.models.translation_models import (
    AUTO_DETECT,
    TranslationRequest,
    ValidationResult,
)
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Sequence

    from polytrans.models.provider_models import ProviderInfo
    from polytrans.models.translation_models import (
        LanguageDetectionResult,
        QuotaInfo,
        TranslationResponse,
    )

__all__: list[str] = [
    "AllProvidersExhaustedError",
    "AttemptFailure",
    "ErrorKind",
    "InvalidRequestError",
    "NoProviderAvailableError",
    "NotSupportedLanguagesError",
    "ProviderNotFoundError",
    "TransInterface",
    "TranslateExceptionError",
    "TranslationAuthenticationError",
    "TranslationQuotaExceededError",
    "TranslationRateLimitError",
    "TranslationTimeoutError",
    "TranslationTransientError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

VALIDATION_SAMPLE_TEXT: Final[str] = "Hello"


class ErrorKind(StrEnum):
    """Classification of a failure, shared by the retry policy and the engine."""

    INVALID_REQUEST = "invalid_request"
    UNAUTHENTICATED = "unauthenticated"
    QUOTA_EXCEEDED = "quota_exceeded"
    RATE_LIMITED = "rate_limited"
    TRANSIENT = "transient"
    PROVIDER_ERROR = "provider_error"
    NO_PROVIDER_AVAILABLE = "no_provider_available"
    ALL_PROVIDERS_EXHAUSTED = "all_providers_exhausted"


class TranslateExceptionError(Exception):
    """An error occurred during the translation process.

    The base class stands for a provider failure that is neither transient nor a credential
    problem, for example an unexpected response body. Such failures are not retried but the
    next provider may still be tried.

    Attributes:
        kind (ErrorKind): Classification of the error.
        provider_id (str | None): Provider that raised it, if any.
        status (int | None): HTTP status or provider error code, if any.
        details (dict[str, Any] | None): Provider specific details.
    """

    kind: ClassVar[ErrorKind] = ErrorKind.PROVIDER_ERROR

    def __init__(
        self,
        message: str = "",
        *,
        provider_id: str | None = None,
        status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message: str = message
        self.provider_id: str | None = provider_id
        self.status: int | None = status
        self.details: dict[str, Any] | None = details


class InvalidRequestError(TranslateExceptionError):
    """The request itself is malformed (for example blank text). Never retried, never falls back."""

    kind = ErrorKind.INVALID_REQUEST


class NotSupportedLanguagesError(InvalidRequestError):
    """An unsupported language code was specified."""


class TranslationAuthenticationError(TranslateExceptionError):
    """The provider rejected the configured credentials."""

    kind = ErrorKind.UNAUTHENTICATED


class TranslationQuotaExceededError(TranslateExceptionError):
    """The translatable character quota has been exceeded."""

    kind = ErrorKind.QUOTA_EXCEEDED


class TranslationRateLimitError(TranslateExceptionError):
    """The translation request was rate-limited by the API.

    Attributes:
        retry_after (float | None): Seconds the provider asked to wait, if it said so.
    """

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, message: str = "", *, retry_after: float | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.retry_after: float | None = retry_after


class TranslationTransientError(TranslateExceptionError):
    """A temporary failure such as a dropped connection or a 5xx response."""

    kind = ErrorKind.TRANSIENT


class TranslationTimeoutError(TranslationTransientError):
    """The call did not finish within its time budget."""


class ProviderNotFoundError(TranslateExceptionError):
    """No adapter is registered under the requested provider id."""


class NoProviderAvailableError(TranslateExceptionError):
    """No enabled provider can serve the request. Raised before any attempt is made."""

    kind = ErrorKind.NO_PROVIDER_AVAILABLE


@dataclass(frozen=True)
class AttemptFailure:
    """Terminal failure of one provider within a request.

    Attributes:
        provider_id (str): Provider that failed.
        kind (ErrorKind): Classification of its last error.
        message (str): Message of its last error.
        attempts (int): Number of calls made to the provider, retries included.
    """

    provider_id: str
    kind: ErrorKind
    message: str = ""
    attempts: int = 1

    def __str__(self) -> str:
        return f"{self.provider_id} ({self.kind}): {self.message}"


class AllProvidersExhaustedError(TranslateExceptionError):
    """Every candidate provider failed.

    Attributes:
        failures (list[AttemptFailure]): One entry per attempted provider, in candidate order.
    """

    kind = ErrorKind.ALL_PROVIDERS_EXHAUSTED

    def __init__(self, failures: Sequence[AttemptFailure]) -> None:
        self.failures: list[AttemptFailure] = list(failures)
        summary: str = "; ".join(str(failure) for failure in self.failures) or "no provider was attempted"
        super().__init__(f"All translation providers failed: {summary}")

    @property
    def pairs(self) -> list[tuple[str, ErrorKind]]:
        """(provider id, error kind) of every attempted provider, in candidate order."""
        return [(failure.provider_id, failure.kind) for failure in self.failures]


class TransInterface(ABC):
    """Abstract base class of provider adapters.

    One adapter instance serves one provider id. Its only state is its own normalized
    configuration and whatever client objects it builds from that configuration.

    Attributes:
        registered (ClassVar[dict[str, type[TransInterface]]]): Adapter classes keyed by provider id.
    """

    registered: ClassVar[dict[str, type[TransInterface]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        """Register the subclass under its provider id.

        Abstract intermediate classes return an empty id and are not registered.

        Args:
            **kwargs: Additional keyword arguments passed to parent class.
        """
        super().__init_subclass__(**kwargs)
        provider_id: str = cls.fetch_provider_id()
        if not isinstance(provider_id, str) or provider_id == "":
            return

        if provider_id in cls.registered:
            msg: str = f"A translation provider with the id '{provider_id}' is already registered."
            raise ValueError(msg)

        cls.registered[provider_id] = cls

    def __init__(self, config: AdapterConfig | None = None) -> None:
        self._config: AdapterConfig = AdapterConfig()
        self._info: ProviderInfo = self.fetch_provider_info()
        self.configure(config or AdapterConfig())

    @staticmethod
    @abstractmethod
    def fetch_provider_id() -> str:
        """Fetch the provider id this adapter serves.

        Called from ``__init_subclass__``, so it must work on the class itself.

        Returns:
            str: Provider id, or an empty string for abstract intermediate classes.
        """
        raise NotImplementedError

    @classmethod
    @abstractmethod
    def fetch_provider_info(cls) -> ProviderInfo:
        """Build the static descriptor of the provider."""
        raise NotImplementedError

    @property
    def provider_id(self) -> str:
        return self.fetch_provider_id()

    @property
    def info(self) -> ProviderInfo:
        return self._info

    @property
    def config(self) -> AdapterConfig:
        return self._config

    def configure(self, config: AdapterConfig) -> None:
        """Apply a new configuration.

        Credentials missing from the configuration are taken from the environment, then the
        adapter specific normalization runs once.

        Args:
            config (AdapterConfig): Raw configuration from the settings snapshot.
        """
        self._config = self.normalize_config(self._with_environment_credentials(config))
        self._on_configured()
        logger.debug("Provider '%s' configured", self.provider_id)

    def normalize_config(self, config: AdapterConfig) -> AdapterConfig:
        """Map provider specific fields onto the common configuration shape.

        Adapters whose settings use other credential names (app id, secret id...) override this.
        """
        return config

    def _on_configured(self) -> None:
        """Hook for adapters that build client objects from the configuration."""

    def _with_environment_credentials(self, config: AdapterConfig) -> AdapterConfig:
        """Fill empty credentials from ``<PROVIDER_ID>_API_KEY`` and ``<PROVIDER_ID>_API_SECRET``."""
        prefix: str = self.fetch_provider_id().upper()
        api_key: str = config.api_key or os.getenv(f"{prefix}_API_KEY", "")
        api_secret: str = config.api_secret or os.getenv(f"{prefix}_API_SECRET", "")
        if api_key == config.api_key and api_secret == config.api_secret:
            return config
        return replace(config, api_key=api_key, api_secret=api_secret)

    def missing_credentials(self, config: AdapterConfig | None = None) -> list[str]:
        """Return the names of required credentials that are empty."""
        target: AdapterConfig = config or self._config
        missing: list[str] = []
        if self._info.requires_api_key and not target.api_key:
            missing.append("api_key")
        if self._info.requires_api_secret and not target.api_secret:
            missing.append("api_secret")
        return missing

    def is_language_pair_supported(self, source_lang: str, target_lang: str) -> bool:
        """Check the pair against the declared languages.

        ``auto`` is accepted as source. A provider that declares no languages accepts any code.
        """
        source_ok: bool = source_lang in ("", AUTO_DETECT) or self._info.supports_language(source_lang)
        return source_ok and self._info.supports_language(target_lang)

    def classify_error(self, err: BaseException) -> ErrorKind:
        """Map an exception raised by this adapter to an error kind.

        Args:
            err (BaseException): Exception raised during translation.

        Returns:
            ErrorKind: The kind used for retry and fallback decisions.
        """
        if isinstance(err, TranslateExceptionError):
            return err.kind
        if isinstance(err, (TimeoutError, ConnectionError)):
            return ErrorKind.TRANSIENT
        return ErrorKind.PROVIDER_ERROR

    @abstractmethod
    async def translate(self, request: TranslationRequest) -> TranslationResponse:
        """Translate the request text.

        Args:
            request (TranslationRequest): The request. Options are already merged with manager defaults.

        Returns:
            TranslationResponse: Response attributed to this provider.

        Raises:
            NotSupportedLanguagesError: If the language pair is not supported.
            TranslationAuthenticationError: If the credentials are rejected.
            TranslationQuotaExceededError: If the character quota has been exceeded.
            TranslationRateLimitError: If the request is rate-limited by the API.
            TranslationTransientError: On timeouts, connection failures and server errors.
            TranslateExceptionError: On any other provider failure.
        """
        raise NotImplementedError

    @abstractmethod
    async def detect_language(self, text: str) -> LanguageDetectionResult:
        """Detect the language of the input text.

        Raises:
            TranslateExceptionError: If detection fails.
        """
        raise NotImplementedError

    async def get_quota(self) -> QuotaInfo | None:
        """Retrieve provider-reported usage.

        Returns:
            QuotaInfo | None: Current usage, or None if the provider has no quota API.
        """
        return None

    async def validate(self, config: AdapterConfig | None = None) -> ValidationResult:
        """Check a configuration without touching the active one.

        Required credentials are checked locally first; then a short probe translation is made
        with a throwaway adapter built from the configuration.

        Args:
            config (AdapterConfig | None): Configuration to check. None checks the active one.

        Returns:
            ValidationResult: Outcome of the check.
        """
        probe_config: AdapterConfig = self._config if config is None else config
        missing: list[str] = self.missing_credentials(
            self.normalize_config(self._with_environment_credentials(probe_config))
        )
        if missing:
            return ValidationResult(
                valid=False,
                message=f"Missing required credentials: {', '.join(missing)}",
                details={"missing": ", ".join(missing)},
            )

        probe: TransInterface = type(self)(probe_config)
        try:
            await probe.translate(TranslationRequest(text=VALIDATION_SAMPLE_TEXT, target_lang=self._probe_target()))
        except TranslateExceptionError as err:
            logger.info("Validation of provider '%s' failed: %s", self.provider_id, err)
            return ValidationResult(valid=False, message=str(err), details={"kind": err.kind.value})
        else:
            return ValidationResult(valid=True, message="Configuration is valid")
        finally:
            await probe.close()

    def _probe_target(self) -> str:
        for code in ("de", "fr", "ja", "en"):
            if self._info.supports_language(code):
                return code
        return self._info.supported_languages[0].code

    async def close(self) -> None:
        """Release client resources. Adapters holding sessions override this."""
