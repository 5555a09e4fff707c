"""Models for translation cache data.

Defines the cache entry held by the cache store and the statistics it reports.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from dataclasses_json import DataClassJsonMixin, LetterCase, dataclass_json

from polytrans.models.translation_models import TranslationResponse

__all__: list[str] = ["CacheEntry", "CacheStatistics"]


@dataclass(frozen=True)
class CacheEntry:
    """Translation cache entry.

    Entries are replaced, never mutated. A new translation for the same fingerprint creates a new
    entry; access order is tracked by the store itself.

    Attributes:
        fingerprint (str): Cache key (hash of normalized request content).
        response (TranslationResponse): The cached response.
        created_at (datetime): Entry creation timestamp.
        expires_at (datetime): Time after which the entry counts as a miss.
    """

    fingerprint: str
    response: TranslationResponse
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheStatistics(DataClassJsonMixin):
    """Cache statistics information.

    Attributes:
        size (int): Number of resident entries.
        max_entries (int): Capacity.
        ttl_sec (float): Default time to live of new entries.
        usage (float): ``size / max_entries`` in [0, 1].
        hits (int): Lookups answered from the cache.
        misses (int): Lookups that found nothing usable.
        evictions (int): Entries dropped by LRU pressure.
        expirations (int): Entries purged after their TTL.
        enabled (bool): Whether caching is active.
    """

    size: int = 0
    max_entries: int = 0
    ttl_sec: float = 0.0
    usage: float = 0.0
    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    enabled: bool = True

    @property
    def usage_percent(self) -> str:
        return f"{self.usage * 100:.2f}%"
