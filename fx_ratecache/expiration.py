"""Time-to-live bookkeeping for cached rates."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from fx_ratecache.utils.logger import get_logger

LOGGER = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExpirationPolicy:
    """Hold a TTL and the absolute time at which cached rates go stale.

    A policy without a TTL never expires and ``rates_expiration`` is left
    untouched. The clock is injectable so callers can control time in tests.
    """

    __slots__ = ("_ttl_in_seconds", "_rates_expiration", "_clock")

    def __init__(self, ttl_in_seconds: float | None = None, *, clock: Clock | None = None) -> None:
        self._clock: Clock = clock or utc_now
        self._ttl_in_seconds: float | None = None
        self._rates_expiration: datetime | None = None
        self.configure(ttl_in_seconds)

    @property
    def ttl_in_seconds(self) -> float | None:
        return self._ttl_in_seconds

    @property
    def rates_expiration(self) -> datetime | None:
        return self._rates_expiration

    @property
    def clock(self) -> Clock:
        return self._clock

    def now(self) -> datetime:
        return self._clock()

    def configure(self, ttl_in_seconds: float | None) -> None:
        """Set the TTL and, when one is given, schedule the next expiration."""

        if ttl_in_seconds is not None and ttl_in_seconds < 0:
            raise ValueError("ttl_in_seconds must not be negative")
        self._ttl_in_seconds = ttl_in_seconds
        if ttl_in_seconds is not None:
            self.refresh()

    def is_due(self, now: datetime | None = None) -> bool:
        if self._ttl_in_seconds is None or self._rates_expiration is None:
            return False
        current = now if now is not None else self.now()
        return current >= self._rates_expiration

    def refresh(self, now: datetime | None = None) -> datetime:
        """Move ``rates_expiration`` to ``now + ttl`` and return it."""

        if self._ttl_in_seconds is None:
            raise RuntimeError("Cannot refresh an expiration policy without a TTL")
        current = now if now is not None else self.now()
        self._rates_expiration = current + timedelta(seconds=self._ttl_in_seconds)
        LOGGER.debug("Rates now expire at %s", self._rates_expiration.isoformat())
        return self._rates_expiration

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return (
            f"ExpirationPolicy(ttl_in_seconds={self._ttl_in_seconds!r}, "
            f"rates_expiration={self._rates_expiration!r})"
        )


__all__ = ["Clock", "ExpirationPolicy", "utc_now"]
