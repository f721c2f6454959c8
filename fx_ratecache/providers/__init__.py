"""Upstream rate providers."""

from __future__ import annotations

from fx_ratecache.providers.base import ProviderRequest, ProviderResponse, RateFetcher
from fx_ratecache.providers.fixer import FixerRateFetcher
from fx_ratecache.providers.oanda import DEFAULT_DATA_SET, FetchOutcome, OandaRateFetcher

__all__ = [
    "DEFAULT_DATA_SET",
    "FetchOutcome",
    "FixerRateFetcher",
    "OandaRateFetcher",
    "ProviderRequest",
    "ProviderResponse",
    "RateFetcher",
]
