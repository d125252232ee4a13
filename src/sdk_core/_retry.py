"""
Retry policy for failed request attempts.

The policy is configuration only: the caller's retry loop owns the attempt
counter and the current delay, and asks the policy whether to go again and
how long to wait.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from sdk_core._types import RetryStrategy

DEFAULT_MAX_RETRIES = 5
# A single-digit code N stands for the whole N00-N99 class
DEFAULT_STATUS_CODES: tuple[int, ...] = (5, 408, 409, 429)
DEFAULT_INITIAL_DELAY_MS = 500.0
DEFAULT_MAX_DELAY_MS = 10_000.0
DEFAULT_BACKOFF_FACTOR = 2.0


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Stateless retry/backoff configuration.

    Attributes:
        max_retries: Highest attempt number that may still be retried
        status_codes: Retryable codes; single digits match a status class
        initial_delay_ms: Delay before the first retry
        max_delay_ms: Upper bound for any delay
        backoff_factor: Multiplier applied to the delay after each retry
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    status_codes: tuple[int, ...] = DEFAULT_STATUS_CODES
    initial_delay_ms: float = DEFAULT_INITIAL_DELAY_MS
    max_delay_ms: float = DEFAULT_MAX_DELAY_MS
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR

    @classmethod
    def merge(
        cls,
        *,
        base: RetryStrategy | None = None,
        override: RetryStrategy | None = None,
    ) -> RetryPolicy:
        """
        Build a policy field by field: override, then base, then default.

        Args:
            base: Client-wide strategy
            override: Per-request strategy

        Returns:
            The merged policy
        """
        # None values are treated as unset
        merged: dict[str, Any] = {}
        for strategy in (base or {}, override or {}):
            merged.update({k: v for k, v in strategy.items() if v is not None})

        if "status_codes" in merged:
            merged["status_codes"] = tuple(merged["status_codes"])
        return cls(**merged)

    @staticmethod
    def matches_code(status_code: int, retry_code: int) -> bool:
        """
        Check a status code against one configured retry code.

        A single-digit retry code N matches the range [N*100, (N+1)*100);
        any other code matches only itself.
        """
        if 0 <= retry_code < 10:
            return retry_code * 100 <= status_code < (retry_code + 1) * 100
        return status_code == retry_code

    def should_retry(self, attempt: int, status_code: int) -> bool:
        """
        Check whether a failed attempt may be retried.

        Args:
            attempt: The 1-based number of the attempt that just failed
            status_code: Its HTTP status

        Returns:
            True if another attempt is allowed
        """
        return attempt <= self.max_retries and any(
            self.matches_code(status_code, code) for code in self.status_codes
        )

    def calc_next_delay(self, current_delay_ms: float) -> float:
        """Return the delay (ms) to wait before the attempt after next."""
        return min(self.max_delay_ms, current_delay_ms * self.backoff_factor)


async def sleep(ms: float) -> None:
    """Suspend the current task for ``ms`` milliseconds."""
    await asyncio.sleep(ms / 1000.0)
