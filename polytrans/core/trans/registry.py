"""Directory of provider adapters.

Reads never lock: every mutation builds a new read-only mapping and swaps it in, so a request that
took a snapshot keeps working with the adapters it started with.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

from polytrans.core.trans.interface import ProviderNotFoundError
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Mapping

    from polytrans.core.trans.interface import TransInterface
    from polytrans.models.config_models import TranslationManagerConfig
    from polytrans.models.provider_models import ProviderInfo

__all__: list[str] = ["ProviderRegistry", "RegisteredProvider"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@dataclass(frozen=True)
class RegisteredProvider:
    info: ProviderInfo
    adapter: TransInterface


class ProviderRegistry:
    """Holds one adapter per provider id plus its static descriptor.

    Registration order is kept and used by ``list()``. Registering an id again replaces the
    previous adapter in place.
    """

    def __init__(self) -> None:
        self._entries: Mapping[str, RegisteredProvider] = MappingProxyType({})
        self._write_lock: threading.Lock = threading.Lock()
        self._version: int = 0

    @property
    def version(self) -> int:
        """Incremented on every mutation."""
        return self._version

    def register(self, info: ProviderInfo, adapter: TransInterface) -> TransInterface | None:
        """Register or replace the adapter for ``info.id``.

        Args:
            info (ProviderInfo): Static descriptor.
            adapter (TransInterface): Adapter instance.

        Returns:
            TransInterface | None: The adapter that was replaced, if any.
        """
        with self._write_lock:
            entries: dict[str, RegisteredProvider] = dict(self._entries)
            previous: RegisteredProvider | None = entries.get(info.id)
            entries[info.id] = RegisteredProvider(info=info, adapter=adapter)
            self._entries = MappingProxyType(entries)
            self._version += 1

        logger.debug("Provider '%s' registered (version %d)", info.id, self._version)
        return previous.adapter if previous is not None and previous.adapter is not adapter else None

    def unregister(self, provider_id: str) -> TransInterface | None:
        with self._write_lock:
            if provider_id not in self._entries:
                return None
            entries: dict[str, RegisteredProvider] = dict(self._entries)
            removed: RegisteredProvider = entries.pop(provider_id)
            self._entries = MappingProxyType(entries)
            self._version += 1

        logger.debug("Provider '%s' unregistered (version %d)", provider_id, self._version)
        return removed.adapter

    def snapshot(self) -> Mapping[str, RegisteredProvider]:
        """Current read-only mapping. It never changes after being returned."""
        return self._entries

    def get(self, provider_id: str) -> TransInterface:
        """Get the adapter registered for an id.

        Raises:
            ProviderNotFoundError: If no adapter is registered under the id.
        """
        entry: RegisteredProvider | None = self._entries.get(provider_id)
        if entry is None:
            msg: str = f"Translation provider not found: '{provider_id}'"
            raise ProviderNotFoundError(msg, provider_id=provider_id)
        return entry.adapter

    def find(self, provider_id: str) -> TransInterface | None:
        entry: RegisteredProvider | None = self._entries.get(provider_id)
        return entry.adapter if entry is not None else None

    def __contains__(self, provider_id: object) -> bool:
        return provider_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def ids(self) -> list[str]:
        return list(self._entries)

    def list(self) -> list[ProviderInfo]:
        """Descriptors of every registered provider, in registration order."""
        return [entry.info for entry in self._entries.values()]

    def list_enabled(self, config: TranslationManagerConfig) -> list[str]:
        """Registered provider ids enabled in the settings.

        The primary provider comes first when enabled, then the fallback providers in declared
        order, then every other enabled provider in settings order.

        Args:
            config (TranslationManagerConfig): Settings snapshot.

        Returns:
            list[str]: Enabled provider ids without duplicates.
        """
        entries: Mapping[str, RegisteredProvider] = self._entries
        ordered: list[str] = [config.primary_provider, *config.fallback_providers, *config.providers]
        enabled: list[str] = []
        for provider_id in ordered:
            if provider_id in enabled or provider_id not in entries:
                continue
            if config.is_enabled(provider_id):
                enabled.append(provider_id)
        return enabled
