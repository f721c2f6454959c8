"""Rate storage backends."""

from __future__ import annotations

from fx_ratecache.store.base_store import RateKey, RateStore, coerce_rate
from fx_ratecache.store.memory_store import MemoryRateStore

__all__ = ["MemoryRateStore", "RateKey", "RateStore", "coerce_rate"]
