"""Exchange caches that resolve rates from a store backed by an upstream provider."""

from __future__ import annotations

import threading
from contextlib import nullcontext
from datetime import datetime
from decimal import Decimal
from typing import ClassVar, ContextManager, Iterable

import requests

from fx_ratecache.currency import CurrencyLike
from fx_ratecache.errors import (
    FixerCurrencyFetchError,
    OandaCurrencyFetchError,
    ProviderFetchError,
    UnknownRate,
)
from fx_ratecache.expiration import Clock, ExpirationPolicy
from fx_ratecache.extraction import FixerTableExtractor, OandaQuoteExtractor, ResponseExtractor
from fx_ratecache.providers.base import DEFAULT_TIMEOUT, RateFetcher
from fx_ratecache.providers.fixer import TABLE_QUOTE_CURRENCY, FixerRateFetcher
from fx_ratecache.providers.oanda import DEFAULT_DATA_SET, OandaRateFetcher
from fx_ratecache.store import MemoryRateStore, RateKey, RateStore
from fx_ratecache.utils.logger import get_logger

LOGGER = get_logger(__name__)


class ExchangeCache:
    """Serve rates from a :class:`RateStore`, fetching misses from a provider.

    Every request first checks expiry, then looks the pair up. On a miss it
    fetches and extracts exactly once, then looks up again. A pair that is
    still missing raises :class:`UnknownRate`.

    Each subclass owns one class-wide :class:`ExpirationPolicy`. Instances
    only use it when created with ``share_expiration=True``; otherwise they
    get a private policy (or the one passed as ``expiration_policy``).
    """

    fetch_error_class: ClassVar[type[ProviderFetchError]] = ProviderFetchError
    _shared_policy: ClassVar[ExpirationPolicy | None] = None

    def __init_subclass__(cls, **kwargs: object) -> None:
        super().__init_subclass__(**kwargs)
        cls._shared_policy = None

    def __init__(
        self,
        fetcher: RateFetcher,
        extractor: ResponseExtractor,
        *,
        store: RateStore | None = None,
        expiration_policy: ExpirationPolicy | None = None,
        share_expiration: bool = False,
        single_flight: bool = False,
    ) -> None:
        if expiration_policy is not None and share_expiration:
            raise ValueError("Pass either expiration_policy or share_expiration, not both")
        self.fetcher = fetcher
        self.extractor = extractor
        self._store: RateStore = store if store is not None else MemoryRateStore()
        if share_expiration:
            expiration_policy = type(self).shared_expiration_policy()
        self.expiration_policy = expiration_policy or ExpirationPolicy()
        self._fetch_lock: threading.Lock | None = threading.Lock() if single_flight else None

    # Class-wide TTL -------------------------------------------------
    @classmethod
    def shared_expiration_policy(cls) -> ExpirationPolicy:
        """Return the policy shared by every opted-in instance of ``cls``."""

        if cls._shared_policy is None:
            cls._shared_policy = ExpirationPolicy()
        return cls._shared_policy

    @classmethod
    def reset_shared_expiration_policy(cls, *, clock: Clock | None = None) -> ExpirationPolicy:
        """Replace the class-wide policy; instances already holding the old one keep it."""

        cls._shared_policy = ExpirationPolicy(clock=clock)
        return cls._shared_policy

    @classmethod
    def set_ttl_in_seconds(cls, ttl_in_seconds: float | None) -> None:
        cls.shared_expiration_policy().configure(ttl_in_seconds)

    @classmethod
    def ttl_in_seconds(cls) -> float | None:
        return cls.shared_expiration_policy().ttl_in_seconds

    @classmethod
    def refresh_rates_expiration(cls) -> datetime:
        return cls.shared_expiration_policy().refresh()

    # Store access ---------------------------------------------------
    @property
    def store(self) -> RateStore:
        return self._store

    def add_rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike, rate: object) -> Decimal:
        return self._store.add_rate(from_currency, to_currency, rate)

    def flush_rates(self) -> None:
        """Clear every cached rate."""

        self._store.clear_rates()

    def flush_rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike) -> Decimal | None:
        """Clear the directional ``from -> to`` rate and return it."""

        return self._store.remove_rate(from_currency, to_currency)

    def expire_rates(self) -> bool:
        """Flush all rates when the TTL has elapsed; return whether it did."""

        policy = self.expiration_policy
        now = policy.now()
        if not policy.is_due(now):
            return False
        LOGGER.debug("Rates expired at %s; flushing %s", policy.rates_expiration, type(self).__name__)
        self.flush_rates()
        policy.refresh(now)
        return True

    # Rate resolution ------------------------------------------------
    def get_rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike) -> Decimal:
        """Return the rate converting one unit of ``from`` into ``to``."""

        self.expire_rates()
        key = RateKey.of(from_currency, to_currency)
        with self._fetch_guard():
            rate = self._store.get_rate(key.base, key.quote)
            if rate is None:
                self._fetch_rates(key.base, key.quote)
                rate = self._store.get_rate(key.base, key.quote)
        if rate is None:
            raise UnknownRate(f"No rate available for {key.base} -> {key.quote}")
        return rate

    def _fetch_guard(self) -> ContextManager[object]:
        return self._fetch_lock if self._fetch_lock is not None else nullcontext()

    def _fetch_rates(self, base: str, quote: str) -> int:
        payload = self.fetcher.fetch(base, quote)
        result = self.extractor.extract_into(self._store, payload)
        if result.failure is not None:
            raise self.fetch_error_class(result.failure.message) from result.failure.cause
        LOGGER.info("Stored %s rates after fetching %s/%s", result.written, base, quote)
        return result.written


class OandaExchangeCache(ExchangeCache):
    """Cache directional OANDA spot midpoints for an allow-listed set of currencies."""

    fetch_error_class = OandaCurrencyFetchError

    def __init__(
        self,
        access_key: str,
        currencies: Iterable[CurrencyLike],
        data_set: str = DEFAULT_DATA_SET,
        *,
        store: RateStore | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        fetcher: RateFetcher | None = None,
        expiration_policy: ExpirationPolicy | None = None,
        share_expiration: bool = False,
        single_flight: bool = False,
    ) -> None:
        if currencies is None:
            raise ValueError("OANDA caches require an allow-list of currencies")
        super().__init__(
            fetcher or OandaRateFetcher(access_key, data_set, session=session, timeout=timeout),
            OandaQuoteExtractor(currencies),
            store=store,
            expiration_policy=expiration_policy,
            share_expiration=share_expiration,
            single_flight=single_flight,
        )
        self.access_key = access_key
        self.data_set = data_set

    @property
    def currencies(self) -> frozenset[str]:
        return self.extractor.allow_list or frozenset()


class FixerExchangeCache(ExchangeCache):
    """Cache the fixer.io EUR table and derive cross rates from it.

    The store holds ``(code, EUR)`` entries, so ``get_rate(a, b)`` is computed
    as ``rate(a, EUR) / rate(b, EUR)`` rather than read directly.
    """

    fetch_error_class = FixerCurrencyFetchError

    def __init__(
        self,
        access_key: str,
        currencies: Iterable[CurrencyLike] | None = None,
        *,
        store: RateStore | None = None,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        fetcher: RateFetcher | None = None,
        expiration_policy: ExpirationPolicy | None = None,
        share_expiration: bool = False,
        single_flight: bool = False,
    ) -> None:
        super().__init__(
            fetcher or FixerRateFetcher(access_key, session=session, timeout=timeout),
            FixerTableExtractor(currencies, quote_currency=TABLE_QUOTE_CURRENCY),
            store=store,
            expiration_policy=expiration_policy,
            share_expiration=share_expiration,
            single_flight=single_flight,
        )
        self.access_key = access_key

    def get_rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike) -> Decimal:
        self.expire_rates()
        key = RateKey.of(from_currency, to_currency)
        with self._fetch_guard():
            if not self._has_table_rates(key):
                self._fetch_rates(key.base, key.quote)
            numerator = self._store.get_rate(key.base, TABLE_QUOTE_CURRENCY)
            denominator = self._store.get_rate(key.quote, TABLE_QUOTE_CURRENCY)
        if numerator is None or denominator is None:
            raise UnknownRate(f"No rate available for {key.base} -> {key.quote}")
        return numerator / denominator

    def _has_table_rates(self, key: RateKey) -> bool:
        return (
            self._store.get_rate(key.base, TABLE_QUOTE_CURRENCY) is not None
            and self._store.get_rate(key.quote, TABLE_QUOTE_CURRENCY) is not None
        )


__all__ = ["ExchangeCache", "FixerExchangeCache", "OandaExchangeCache"]
