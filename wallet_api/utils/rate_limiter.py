"""
In-memory rate limiting.

Sliding-window counters keyed by caller identity (user id or client
IP). State is local to this process and not shared across replicas.
"""

import math
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from loguru import logger

from wallet_api.config.settings import Settings
from wallet_api.utils.errors import RateLimitError
from wallet_api.utils.security_logging import log_security_event


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateLimiter:
    """
    Sliding window rate limiter with a block period.

    A caller exceeding max_requests within window_seconds is rejected
    until block_seconds have passed.
    """

    def __init__(
        self,
        name: str,
        max_requests: int,
        window_seconds: int,
        block_seconds: int | None = None,
        message: str = "Too many requests, please try again later",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """
        Initialize rate limiter.

        Args:
            name: Limiter name used in logs
            max_requests: Max requests per window
            window_seconds: Window length
            block_seconds: Block duration after a breach (defaults to
                the window length)
            message: Error message returned to the caller
            clock: Time source
        """
        self.name = name
        self.max_requests = max_requests
        self.window = timedelta(seconds=window_seconds)
        self.block = timedelta(
            seconds=block_seconds if block_seconds is not None else window_seconds
        )
        self.message = message
        self._clock = clock
        self._hits: dict[str, list[datetime]] = defaultdict(list)
        self._blocked_until: dict[str, datetime] = {}

    def _cleanup_old_entries(self, key: str, now: datetime) -> None:
        cutoff = now - self.window
        hits = [ts for ts in self._hits[key] if ts > cutoff]
        if hits:
            self._hits[key] = hits
        else:
            self._hits.pop(key, None)

    def hit(self, key: str) -> None:
        """
        Record a request for key.

        Args:
            key: Caller identity

        Raises:
            RateLimitError: Limit exceeded or caller currently blocked
        """
        now = self._clock()

        blocked_until = self._blocked_until.get(key)
        if blocked_until is not None:
            if now < blocked_until:
                raise RateLimitError(
                    retry_after=self._seconds_until(blocked_until, now),
                    message=self.message,
                )
            del self._blocked_until[key]

        self._cleanup_old_entries(key, now)

        if len(self._hits[key]) >= self.max_requests:
            blocked_until = now + self.block
            self._blocked_until[key] = blocked_until
            self._hits.pop(key, None)
            log_security_event(
                "Rate limit exceeded",
                {"limiter": self.name, "key": key},
            )
            raise RateLimitError(
                retry_after=self._seconds_until(blocked_until, now),
                message=self.message,
            )

        self._hits[key].append(now)

    def reset(self, key: str) -> None:
        """Forget all state for key."""
        self._hits.pop(key, None)
        self._blocked_until.pop(key, None)

    @staticmethod
    def _seconds_until(moment: datetime, now: datetime) -> int:
        return max(1, math.ceil((moment - now).total_seconds()))


@dataclass
class RateLimiters:
    """Limiters per endpoint class."""

    general: RateLimiter
    auth: RateLimiter
    transfer: RateLimiter

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimiters":
        """Build limiters from configured thresholds."""
        limiters = cls(
            general=RateLimiter(
                "general",
                settings.rate_limit_max_requests,
                settings.rate_limit_window_seconds,
                block_seconds=60,
            ),
            auth=RateLimiter(
                "auth",
                settings.auth_rate_limit_max_attempts,
                settings.auth_rate_limit_window_seconds,
                message="Too many authentication attempts, please try again later",
            ),
            transfer=RateLimiter(
                "transfer",
                settings.transfer_rate_limit_max,
                settings.transfer_rate_limit_window_seconds,
                message="Transaction limit exceeded, please try again later",
            ),
        )
        logger.info(
            f"Rate limits: general {settings.rate_limit_max_requests}/"
            f"{settings.rate_limit_window_seconds}s, auth "
            f"{settings.auth_rate_limit_max_attempts}/"
            f"{settings.auth_rate_limit_window_seconds}s, transfer "
            f"{settings.transfer_rate_limit_max}/"
            f"{settings.transfer_rate_limit_window_seconds}s"
        )
        return limiters
