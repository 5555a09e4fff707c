"""Translation cache manager.

In-memory, content-addressed store of translation responses with TTL expiry and LRU eviction.
Entries are keyed by a fingerprint of the normalized request content.
"""

from __future__ import annotations

import asyncio
import json
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, ClassVar

from polytrans.models.cache_models import CacheEntry, CacheStatistics
from polytrans.utils.logger_utils import LoggerUtils
from polytrans.utils.string_utils import StringUtils

if TYPE_CHECKING:
    import logging

    from polytrans.models.translation_models import TranslationRequest, TranslationResponse

__all__: list[str] = ["TranslationCacheManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class TranslationCacheManager:
    """Manager for the translation cache.

    Supports TTL-based expiration, capacity-based LRU eviction and a global enable switch. When
    disabled every operation is a no-op: lookups miss and writes are dropped.

    Attributes:
        DEFAULT_MAX_ENTRIES (ClassVar[int]): Default capacity.
        DEFAULT_TTL_SEC (ClassVar[float]): Default time to live of new entries.
        FINGERPRINT_EXCLUDED_OPTIONS (ClassVar[frozenset[str]]): Option keys that select a provider
            rather than shape the translation; they do not take part in the fingerprint.
    """

    DEFAULT_MAX_ENTRIES: ClassVar[int] = 1000
    DEFAULT_TTL_SEC: ClassVar[float] = 24 * 60 * 60
    FINGERPRINT_EXCLUDED_OPTIONS: ClassVar[frozenset[str]] = frozenset({"preferredProvider", "strictProvider"})

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        ttl_sec: float = DEFAULT_TTL_SEC,
        *,
        enabled: bool = True,
    ) -> None:
        """Initialize the cache manager.

        Args:
            max_entries (int): Capacity. Must be positive.
            ttl_sec (float): Default time to live of new entries in seconds. Must be positive.
            enabled (bool): Initial state of the enable switch.
        """
        if max_entries <= 0:
            msg = f"max_entries must be positive, got {max_entries}"
            raise ValueError(msg)
        if ttl_sec <= 0:
            msg = f"ttl_sec must be positive, got {ttl_sec}"
            raise ValueError(msg)

        self.max_entries: int = max_entries
        self.ttl_sec: float = ttl_sec
        self._enabled: bool = enabled
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock: asyncio.Lock = asyncio.Lock()
        self._hits: int = 0
        self._misses: int = 0
        self._evictions: int = 0
        self._expirations: int = 0
        logger.debug("TranslationCacheManager instance created (max_entries=%d, ttl=%ss)", max_entries, ttl_sec)

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        if value != self._enabled:
            logger.info("Translation cache %s", "enabled" if value else "disabled")
        self._enabled = value

    def _now(self) -> datetime:
        return datetime.now().astimezone()

    @staticmethod
    def generate_fingerprint(request: TranslationRequest) -> str:
        """Generate the cache key of a request.

        The key is a SHA-256 over the NFC-normalized text, both language codes and the canonical
        JSON form of the options, provider-selection options excluded.

        Args:
            request (TranslationRequest): Request with its effective options.

        Returns:
            str: Hex digest fingerprint.
        """
        options: dict[str, Any] = {
            key: value
            for key, value in request.options.to_dict(encode_json=True).items()
            if key not in TranslationCacheManager.FINGERPRINT_EXCLUDED_OPTIONS and value is not None
        }
        canonical_options: str = json.dumps(options, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
        return StringUtils.generate_hash_key(
            StringUtils.normalize_text(request.text),
            request.source_lang,
            request.target_lang,
            canonical_options,
        )

    async def get(self, fingerprint: str, required_provider: str | None = None) -> TranslationResponse | None:
        """Look up a cached response.

        Expired entries are purged on access. A hit moves the entry to the most recently used end.

        Args:
            fingerprint (str): Cache key.
            required_provider (str | None): If set, an entry produced by another provider is a miss.

        Returns:
            TranslationResponse | None: The cached response, or None on a miss.
        """
        if not self._enabled:
            return None

        async with self._lock:
            entry: CacheEntry | None = self._entries.get(fingerprint)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._now()):
                del self._entries[fingerprint]
                self._expirations += 1
                self._misses += 1
                logger.debug("Cache entry expired: %s", fingerprint[:12])
                return None

            if required_provider is not None and entry.response.provider != required_provider:
                self._misses += 1
                logger.debug(
                    "Cache entry %s produced by '%s', '%s' required",
                    fingerprint[:12],
                    entry.response.provider,
                    required_provider,
                )
                return None

            self._entries.move_to_end(fingerprint)
            self._hits += 1
            return entry.response

    async def put(self, fingerprint: str, response: TranslationResponse, ttl_sec: float | None = None) -> bool:
        """Store a response, replacing any entry for the fingerprint.

        Args:
            fingerprint (str): Cache key.
            response (TranslationResponse): Response to store.
            ttl_sec (float | None): Time to live. None uses the default.

        Returns:
            bool: True if stored, False when the cache is disabled.
        """
        if not self._enabled:
            return False

        now: datetime = self._now()
        entry = CacheEntry(
            fingerprint=fingerprint,
            response=response,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_sec if ttl_sec is not None else self.ttl_sec),
        )
        async with self._lock:
            self._entries[fingerprint] = entry
            self._entries.move_to_end(fingerprint)
            self._enforce_capacity_limit()
        return True

    def _enforce_capacity_limit(self) -> None:
        """Evict least recently used entries until the capacity holds. Caller holds the lock."""
        while len(self._entries) > self.max_entries:
            evicted_key, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug("Cache entry evicted: %s", evicted_key[:12])

    async def clear(self) -> int:
        """Remove every entry.

        Returns:
            int: Number of removed entries. 0 when the cache is disabled.
        """
        if not self._enabled:
            return 0
        async with self._lock:
            removed: int = len(self._entries)
            self._entries.clear()
        logger.info("Translation cache cleared (%d entries)", removed)
        return removed

    def size(self) -> int:
        if not self._enabled:
            return 0
        return len(self._entries)

    def usage_ratio(self) -> float:
        """Fill level in [0, 1]."""
        return self.size() / self.max_entries

    async def cleanup_expired_entries(self) -> int:
        """Purge every expired entry.

        Returns:
            int: Number of purged entries.
        """
        if not self._enabled:
            return 0
        now: datetime = self._now()
        async with self._lock:
            expired: list[str] = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            self._expirations += len(expired)
        if expired:
            logger.info("Purged %d expired cache entries", len(expired))
        return len(expired)

    async def clear_by_provider(self, provider_id: str) -> int:
        """Remove every entry produced by one provider.

        Args:
            provider_id (str): Provider id.

        Returns:
            int: Number of removed entries.
        """
        if not self._enabled:
            return 0
        async with self._lock:
            matched: list[str] = [
                key for key, entry in self._entries.items() if entry.response.provider == provider_id
            ]
            for key in matched:
                del self._entries[key]
        logger.info("Removed %d cache entries of provider '%s'", len(matched), provider_id)
        return len(matched)

    def get_cache_statistics(self) -> CacheStatistics:
        return CacheStatistics(
            size=self.size(),
            max_entries=self.max_entries,
            ttl_sec=self.ttl_sec,
            usage=self.usage_ratio(),
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            expirations=self._expirations,
            enabled=self._enabled,
        )

    def reset_statistics(self) -> None:
        self._hits = self._misses = self._evictions = self._expirations = 0
