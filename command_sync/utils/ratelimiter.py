"""Reactive rate limiter for Discord responses.

Discord reports the remaining quota of the current bucket and the time until
it refills on every response:

    X-RateLimit-Remaining: int requests left in the bucket
    X-RateLimit-Reset-After: float seconds until the bucket resets

The limiter acts only after observing exhaustion: when a response says the
remaining quota is exactly zero, the caller is suspended for
``reset_after + margin`` seconds before its result is handed back. The margin
absorbs clock skew with the remote service.

Callers must issue remote calls strictly one at a time; concurrent calls
would race past the zero-remaining signal.

Usage pattern:
    from command_sync.utils.ratelimiter import rate_limiter
    await rate_limiter.apply_backpressure(response.headers)
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Optional

from command_sync.config import RATE_LIMIT_SETTINGS
from command_sync.utils.logger import get_logger

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RateLimitState:
    remaining: Optional[int]
    reset_after: Optional[float]

    @property
    def exhausted(self) -> bool:
        return self.remaining == 0


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    # aiohttp hands back a case-insensitive multidict, plain dicts from tests are not
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def _parse_float(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(str(raw).strip())
    except ValueError:
        return None


def parse_rate_limit_headers(headers: Optional[Mapping[str, str]]) -> RateLimitState:
    """Extract quota telemetry; fields are None when absent or unparseable."""
    if not headers:
        return RateLimitState(remaining=None, reset_after=None)
    remaining = _parse_int(_header(headers, str(RATE_LIMIT_SETTINGS["remaining_header"])))
    reset_after = _parse_float(_header(headers, str(RATE_LIMIT_SETTINGS["reset_after_header"])))
    return RateLimitState(remaining=remaining, reset_after=reset_after)


class ReactiveRateLimiter:
    def __init__(
        self,
        *,
        margin_seconds: Optional[float] = None,
        default_reset_after: Optional[float] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.margin_seconds = float(margin_seconds if margin_seconds is not None else RATE_LIMIT_SETTINGS["margin_seconds"])
        self.default_reset_after = float(
            default_reset_after if default_reset_after is not None else RATE_LIMIT_SETTINGS["default_reset_after_seconds"]
        )
        self._sleep: SleepFunc = sleep or asyncio.sleep

    def compute_delay(self, state: RateLimitState) -> float:
        """Seconds to wait for the given telemetry (0.0 when quota remains)."""
        if not state.exhausted:
            return 0.0
        reset_after = state.reset_after if state.reset_after is not None else self.default_reset_after
        return max(reset_after, 0.0) + self.margin_seconds

    async def apply_backpressure(self, headers: Optional[Mapping[str, str]]) -> float:
        """Suspend the caller if the response reports an exhausted quota.

        Returns the number of seconds waited.
        """
        state = parse_rate_limit_headers(headers)
        delay = self.compute_delay(state)
        if delay <= 0:
            return 0.0
        logger.warning(
            "Rate limit reached, waiting",
            remaining=state.remaining,
            reset_after=state.reset_after,
            wait_seconds=delay,
        )
        await self._sleep(delay)
        return delay


# Singleton instance used application-wide
rate_limiter = ReactiveRateLimiter()

__all__ = ["rate_limiter", "ReactiveRateLimiter", "RateLimitState", "parse_rate_limit_headers"]
