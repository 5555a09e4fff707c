"""Translation cache package.

Provides the response cache and coalescing of identical concurrent requests.
"""

from __future__ import annotations

from polytrans.core.cache.inflight_manager import InFlightManager
from polytrans.core.cache.manager import TranslationCacheManager

__all__: list[str] = ["InFlightManager", "TranslationCacheManager"]
