"""Usage statistics aggregator.

Consumes completion events emitted by the orchestration engine and keeps lifetime totals, the
active calendar-day bucket and per-provider counters. Nothing here is read back by the engine.
"""

from __future__ import annotations

import copy
import json
import threading
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from polytrans.models.stats_models import (
    AttemptOutcome,
    CacheCounters,
    ErrorRecord,
    ProviderStats,
    StatsBucket,
    StatsSnapshot,
)
from polytrans.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

    from polytrans.core.trans.interface import TranslateExceptionError
    from polytrans.models.translation_models import UsageInfo

__all__: list[str] = ["StatsManager"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class StatsManager:
    """Rolling usage counters.

    Recording is synchronous and guarded by a lock so that counter updates stay atomic no matter
    which task or thread reports them, including tasks that are being cancelled.

    The today bucket belongs to one local calendar date. The first record stamped with a later
    date closes it and opens a fresh one; earlier days are not retained.
    """

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self._total: StatsBucket = StatsBucket()
        self._today: StatsBucket = StatsBucket()
        self._day: date = self._now().date()
        self._by_provider: dict[str, ProviderStats] = {}
        self._cache: CacheCounters = CacheCounters()

    def _now(self) -> datetime:
        return datetime.now().astimezone()

    def _roll_day(self, now: datetime) -> None:
        """Open a new today bucket when ``now`` is on a later local date. Caller holds the lock."""
        current: date = now.astimezone().date()
        if current > self._day:
            logger.info("Daily stats rolled over from %s to %s", self._day.isoformat(), current.isoformat())
            self._today = StatsBucket()
            self._day = current

    def record_attempt(
        self,
        provider_id: str,
        outcome: AttemptOutcome,
        usage: UsageInfo | None = None,
        *,
        latency_ms: float | None = None,
        error: TranslateExceptionError | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        """Record the outcome of one provider within one request.

        Cancelled attempts are counted on their own; they are neither requests nor failures, so they
        do not affect success rates.

        Args:
            provider_id (str): Provider that was attempted.
            outcome (AttemptOutcome): Success, failure or cancelled.
            usage (UsageInfo | None): Characters, tokens and cost reported for a success.
            latency_ms (float | None): Duration of the attempt in milliseconds.
            error (TranslateExceptionError | None): Terminal error of a failure.
            timestamp (datetime | None): Event time. Defaults to now.
        """
        now: datetime = timestamp or self._now()
        with self._lock:
            self._roll_day(now)
            provider: ProviderStats = self._by_provider.setdefault(provider_id, ProviderStats())
            provider.last_used = int(now.timestamp() * 1000)
            buckets: tuple[StatsBucket, ...] = (self._total, self._today, provider)

            if outcome is AttemptOutcome.CANCELLED:
                for bucket in buckets:
                    bucket.cancelled += 1
                return

            for bucket in buckets:
                bucket.requests += 1

            if outcome is AttemptOutcome.SUCCESS:
                for bucket in buckets:
                    bucket.successes += 1
                    if usage is not None:
                        bucket.characters += usage.characters or 0
                        bucket.tokens += usage.tokens or 0
                        bucket.cost += usage.cost or 0.0
                if latency_ms is not None:
                    provider.response_times.append(latency_ms)
                return

            for bucket in buckets:
                bucket.failures += 1
            if error is not None:
                provider.errors.append(
                    ErrorRecord(message=str(error), kind=error.kind.value, timestamp=provider.last_used)
                )

    def record_cache_hit(self) -> None:
        with self._lock:
            self._cache.hits += 1

    def record_cache_miss(self) -> None:
        with self._lock:
            self._cache.misses += 1

    def snapshot(self) -> StatsSnapshot:
        """Deep copy of every counter."""
        with self._lock:
            self._roll_day(self._now())
            return StatsSnapshot(
                total=copy.deepcopy(self._total),
                today=copy.deepcopy(self._today),
                day=self._day.isoformat(),
                by_provider=copy.deepcopy(self._by_provider),
                cache=copy.deepcopy(self._cache),
            )

    def get_provider_stats(self, provider_id: str) -> ProviderStats | None:
        with self._lock:
            stats: ProviderStats | None = self._by_provider.get(provider_id)
            return copy.deepcopy(stats) if stats is not None else None

    def clear(self) -> None:
        with self._lock:
            self._total = StatsBucket()
            self._today = StatsBucket()
            self._day = self._now().date()
            self._by_provider.clear()
            self._cache = CacheCounters()
        logger.info("Statistics cleared")

    def export_json(self) -> str:
        """Serialize the counters for external persistence."""
        return self.snapshot().to_json(ensure_ascii=False, indent=2)

    def import_json(self, payload: str) -> None:
        """Restore counters written by ``export_json``.

        The today bucket is only restored when it belongs to the current date.

        Args:
            payload (str): JSON produced by ``export_json``.

        Raises:
            ValueError: If the payload is not valid stats JSON.
        """
        try:
            data: dict[str, Any] = json.loads(payload)
            restored: StatsSnapshot = StatsSnapshot.from_dict(data)
            restored_day: date = date.fromisoformat(restored.day) if restored.day else self._now().date()
        except (json.JSONDecodeError, TypeError, KeyError, ValueError) as err:
            msg = f"Invalid stats payload: {err}"
            raise ValueError(msg) from err

        with self._lock:
            self._total = restored.total
            self._by_provider = dict(restored.by_provider)
            self._cache = restored.cache
            self._day = self._now().date()
            self._today = restored.today if restored_day == self._day else StatsBucket()
        logger.info("Statistics restored (%d providers)", len(restored.by_provider))
