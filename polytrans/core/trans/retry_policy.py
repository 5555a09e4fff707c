"""Retry decisions shared by every provider call site.

The policy is a pure function of the attempt number, the error kind and the time already spent;
it holds no per-request state.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import ClassVar, Final

from polytrans.core.trans.interface import ErrorKind

__all__: list[str] = ["RetryDecision", "RetryPolicy"]

RETRY_BASE_DELAY_SEC: Final[float] = 0.5
RETRY_MAX_DELAY_SEC: Final[float] = 8.0
RETRY_JITTER_RATIO: Final[float] = 0.25


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of a retry check.

    Attributes:
        retry (bool): Whether the same provider should be called again.
        delay (float): Seconds to wait before the next call. 0 when ``retry`` is False.
        reason (str): Short explanation for logs.
    """

    retry: bool
    delay: float = 0.0
    reason: str = ""


STOP_PERMANENT: Final[RetryDecision] = RetryDecision(retry=False, reason="permanent error")
STOP_ATTEMPTS: Final[RetryDecision] = RetryDecision(retry=False, reason="attempts exhausted")
STOP_BUDGET: Final[RetryDecision] = RetryDecision(retry=False, reason="time budget exhausted")


class RetryPolicy:
    """Exponential backoff with jitter for transient provider errors.

    Args:
        retry_count (int): Retries allowed after the first attempt.
        timeout_sec (float): Budget of the whole request in seconds. Retries that would end
            past it are refused.
        base_delay (float): Delay before the first retry, in seconds.
        max_delay (float): Upper bound of a single delay, in seconds.
        jitter (float): Maximum extra delay as a fraction of the computed delay.
        rng (random.Random | None): Random source, injectable for deterministic tests.
    """

    TRANSIENT_KINDS: ClassVar[frozenset[ErrorKind]] = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.TRANSIENT})

    def __init__(
        self,
        retry_count: int,
        timeout_sec: float,
        *,
        base_delay: float = RETRY_BASE_DELAY_SEC,
        max_delay: float = RETRY_MAX_DELAY_SEC,
        jitter: float = RETRY_JITTER_RATIO,
        rng: random.Random | None = None,
    ) -> None:
        if retry_count < 0:
            msg = f"retry_count must be >= 0, got {retry_count}"
            raise ValueError(msg)
        self.retry_count: int = retry_count
        self.timeout_sec: float = timeout_sec
        self.base_delay: float = base_delay
        self.max_delay: float = max_delay
        self.jitter: float = jitter
        self._rng: random.Random = rng or random.Random()

    @property
    def max_attempts(self) -> int:
        return self.retry_count + 1

    @classmethod
    def is_retryable(cls, kind: ErrorKind) -> bool:
        return kind in cls.TRANSIENT_KINDS

    def backoff(self, attempt: int) -> float:
        """Delay in seconds after the given failed attempt (1-based), jitter included."""
        delay: float = min(self.base_delay * (2 ** max(attempt - 1, 0)), self.max_delay)
        return delay + delay * self._rng.uniform(0.0, self.jitter)

    def should_retry(
        self,
        attempt: int,
        kind: ErrorKind,
        elapsed_sec: float = 0.0,
        retry_after_sec: float | None = None,
    ) -> RetryDecision:
        """Decide whether to call the same provider again.

        Args:
            attempt (int): Number of calls already made to the provider (1 after the first failure).
            kind (ErrorKind): Kind of the error that ended the last call.
            elapsed_sec (float): Time spent on the request so far.
            retry_after_sec (float | None): Minimum wait requested by the provider.

        Returns:
            RetryDecision: Retry with a delay, or stop.
        """
        if not self.is_retryable(kind):
            return STOP_PERMANENT
        if attempt >= self.max_attempts:
            return STOP_ATTEMPTS

        delay: float = self.backoff(attempt)
        if retry_after_sec is not None:
            delay = max(delay, retry_after_sec)
        if elapsed_sec + delay >= self.timeout_sec:
            return STOP_BUDGET
        return RetryDecision(retry=True, delay=delay, reason=f"{kind} on attempt {attempt}")
