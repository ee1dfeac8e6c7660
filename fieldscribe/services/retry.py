"""Generic retry policy for external calls.

A policy bundles a retryable-error predicate, a backoff schedule and an
attempt cap; any awaitable call can be run through it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)

OVERLOAD_STATUS_CODE = 529


def status_code_of(exc: BaseException) -> int | None:
    """Best-effort HTTP status extraction across SDK and httpx exceptions."""
    code = getattr(exc, "status_code", None)
    if isinstance(code, int):
        return code
    response = getattr(exc, "response", None)
    code = getattr(response, "status_code", None)
    return code if isinstance(code, int) else None


def is_overload_error(exc: BaseException) -> bool:
    """True for backend-overload-class failures: HTTP 5xx including 529."""
    code = status_code_of(exc)
    if code is not None:
        return code >= 500
    return "overloaded" in type(exc).__name__.lower()


def linear_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay grows by base_delay per failed attempt: base, 2*base, 3*base..."""
    return lambda attempt: base_delay * attempt


@dataclass
class RetryPolicy:
    max_attempts: int = 3
    is_retryable: Callable[[BaseException], bool] = is_overload_error
    backoff: Callable[[int], float] = field(default_factory=lambda: linear_backoff(2.0))
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep

    @classmethod
    def from_config(cls, cfg) -> "RetryPolicy":
        return cls(
            max_attempts=cfg.max_attempts,
            backoff=linear_backoff(cfg.base_delay_seconds),
        )

    async def call(self, fn: Callable[..., Awaitable[Any]], *args, **kwargs) -> Any:
        """Await fn(*args, **kwargs), retrying retryable failures up to max_attempts."""
        attempt = 1
        while True:
            try:
                return await fn(*args, **kwargs)
            except Exception as e:
                if attempt >= self.max_attempts or not self.is_retryable(e):
                    raise
                delay = self.backoff(attempt)
                logger.warning(
                    f"Retryable failure ({type(e).__name__}: {e}), "
                    f"attempt {attempt}/{self.max_attempts}, retrying in {delay:.1f}s"
                )
                await self.sleep(delay)
                attempt += 1


NO_RETRY = RetryPolicy(max_attempts=1)
