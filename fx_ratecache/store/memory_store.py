"""In-memory rate store."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Iterator

from fx_ratecache.currency import CurrencyLike
from fx_ratecache.store.base_store import RateKey, RateStore, coerce_rate


class MemoryRateStore(RateStore):
    """Dictionary-backed store guarded by a re-entrant lock.

    Individual operations are atomic. Use :meth:`transaction` when several
    operations have to be applied without interleaving.
    """

    def __init__(self, rates: dict[RateKey, Decimal] | None = None) -> None:
        self._index: dict[RateKey, Decimal] = {}
        self._lock = threading.RLock()
        for key, rate in (rates or {}).items():
            self._index[key] = coerce_rate(rate)

    @contextmanager
    def transaction(self) -> Iterator["MemoryRateStore"]:
        with self._lock:
            yield self

    def get_rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike) -> Decimal | None:
        key = RateKey.of(from_currency, to_currency)
        with self._lock:
            return self._index.get(key)

    def add_rate(
        self, from_currency: CurrencyLike, to_currency: CurrencyLike, rate: object
    ) -> Decimal:
        key = RateKey.of(from_currency, to_currency)
        value = coerce_rate(rate)
        with self._lock:
            self._index[key] = value
        return value

    def remove_rate(
        self, from_currency: CurrencyLike, to_currency: CurrencyLike
    ) -> Decimal | None:
        key = RateKey.of(from_currency, to_currency)
        with self._lock:
            return self._index.pop(key, None)

    def clear_rates(self) -> None:
        with self._lock:
            self._index.clear()

    def each_rate(self) -> Iterator[tuple[str, str, Decimal]]:
        with self._lock:
            snapshot = list(self._index.items())
        for key, rate in snapshot:
            yield key.base, key.quote, rate

    def keys(self) -> list[RateKey]:
        with self._lock:
            return list(self._index)

    def __len__(self) -> int:
        with self._lock:
            return len(self._index)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._index

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"MemoryRateStore({len(self)} rates)"


__all__ = ["MemoryRateStore"]
