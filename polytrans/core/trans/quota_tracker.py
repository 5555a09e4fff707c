from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from polytrans.core.trans.interface import TranslateExceptionError
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.core.trans.interface import TransInterface
    from polytrans.core.trans.registry import ProviderRegistry
    from polytrans.models.translation_models import QuotaInfo

__all__: list[str] = ["QuotaTracker"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class QuotaTracker:
    """On-demand pass-through to the adapters' quota APIs.

    Quota figures are informational. Nothing in the translate path consults them.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry: ProviderRegistry = registry

    async def check_quota(self, provider_id: str) -> QuotaInfo | None:
        """Query one provider.

        Args:
            provider_id (str): Provider id.

        Returns:
            QuotaInfo | None: Provider-reported usage, or None if the provider has no quota API.

        Raises:
            ProviderNotFoundError: If the provider is not registered.
            TranslateExceptionError: If the provider call fails.
        """
        adapter: TransInterface = self._registry.get(provider_id)
        quota: QuotaInfo | None = await adapter.get_quota()
        if quota is None:
            logger.debug("Provider '%s' does not report quota", provider_id)
        else:
            logger.debug("Quota of '%s': %d/%d %s", provider_id, quota.used, quota.limit, quota.unit)
        return quota

    async def check_all(self) -> dict[str, QuotaInfo | None]:
        """Query every registered provider concurrently.

        Providers whose quota call fails are logged and reported as None.

        Returns:
            dict[str, QuotaInfo | None]: Quota by provider id, in registration order.
        """
        provider_ids: list[str] = self._registry.ids()
        results: list[QuotaInfo | BaseException | None] = await asyncio.gather(
            *(self.check_quota(provider_id) for provider_id in provider_ids), return_exceptions=True
        )
        quotas: dict[str, QuotaInfo | None] = {}
        for provider_id, result in zip(provider_ids, results, strict=True):
            if isinstance(result, TranslateExceptionError):
                logger.warning("Quota check of '%s' failed: %s", provider_id, result)
                quotas[provider_id] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                quotas[provider_id] = result
        return quotas
