"""Models for usage statistics.

Counters are owned by the stats aggregator. Snapshots handed to callers are deep copies.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final

from dataclasses_json import DataClassJsonMixin, LetterCase, config, dataclass_json

__all__: list[str] = [
    "AttemptOutcome",
    "CacheCounters",
    "ErrorRecord",
    "ProviderStats",
    "StatsBucket",
    "StatsSnapshot",
]

RESPONSE_TIME_SAMPLES: Final[int] = 100
ERROR_HISTORY_SIZE: Final[int] = 10


class AttemptOutcome(StrEnum):
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"


def _format_rate(successes: int, requests: int) -> str:
    if requests <= 0:
        return "0%"
    return f"{successes / requests * 100:.2f}%"


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class ErrorRecord(DataClassJsonMixin):
    message: str
    kind: str
    timestamp: int


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class StatsBucket(DataClassJsonMixin):
    """Aggregate counters, used for the lifetime total and for the current day."""

    requests: int = 0
    successes: int = 0
    failures: int = 0
    cancelled: int = 0
    characters: int = 0
    tokens: int = 0
    cost: float = 0.0

    @property
    def success_rate(self) -> float:
        return self.successes / self.requests if self.requests else 0.0

    @property
    def success_rate_text(self) -> str:
        return _format_rate(self.successes, self.requests)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class ProviderStats(StatsBucket):
    """Per-provider counters.

    Attributes:
        response_times (deque[float]): Latest response times in milliseconds of successful calls.
        errors (deque[ErrorRecord]): Latest failures, oldest first.
        last_used (int | None): Epoch milliseconds of the last recorded attempt.
    """

    response_times: deque[float] = field(
        default_factory=lambda: deque(maxlen=RESPONSE_TIME_SAMPLES),
        metadata=config(decoder=lambda values: deque(values or [], maxlen=RESPONSE_TIME_SAMPLES)),
    )
    errors: deque[ErrorRecord] = field(
        default_factory=lambda: deque(maxlen=ERROR_HISTORY_SIZE),
        metadata=config(
            decoder=lambda values: deque(
                (ErrorRecord.from_dict(value) for value in values or []), maxlen=ERROR_HISTORY_SIZE
            )
        ),
    )
    last_used: int | None = None

    @property
    def average_response_time(self) -> float:
        if not self.response_times:
            return 0.0
        return sum(self.response_times) / len(self.response_times)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class CacheCounters(DataClassJsonMixin):
    hits: int = 0
    misses: int = 0

    @property
    def hit_rate(self) -> float:
        lookups: int = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class StatsSnapshot(DataClassJsonMixin):
    """Point-in-time copy of every counter.

    Attributes:
        total (StatsBucket): Lifetime counters since the last clear.
        today (StatsBucket): Counters of the active calendar day.
        day (str): ISO date of the ``today`` bucket.
        by_provider (dict[str, ProviderStats]): Counters per provider id.
        cache (CacheCounters): Cache hit and miss counts.
    """

    total: StatsBucket = field(default_factory=StatsBucket)
    today: StatsBucket = field(default_factory=StatsBucket)
    day: str = ""
    by_provider: dict[str, ProviderStats] = field(default_factory=dict)
    cache: CacheCounters = field(default_factory=CacheCounters)
