"""Public interface for the fx_ratecache package."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from importlib import metadata as importlib_metadata
from typing import Any
from urllib.parse import parse_qsl, unquote, urlparse

import requests

from fx_ratecache.currency import Currency, normalise_allow_list
from fx_ratecache.errors import (
    ExchangeRateError,
    FixerCurrencyFetchError,
    OandaCurrencyFetchError,
    ProviderFetchError,
    UnknownCurrency,
    UnknownRate,
)
from fx_ratecache.exchange import ExchangeCache, FixerExchangeCache, OandaExchangeCache
from fx_ratecache.expiration import ExpirationPolicy
from fx_ratecache.providers.base import DEFAULT_TIMEOUT
from fx_ratecache.providers.oanda import DEFAULT_DATA_SET
from fx_ratecache.store import MemoryRateStore, RateKey, RateStore

__all__ = [
    "__version__",
    "Currency",
    "ExchangeCache",
    "ExchangeRateError",
    "ExpirationPolicy",
    "FixerCurrencyFetchError",
    "FixerExchangeCache",
    "MemoryRateStore",
    "OandaCurrencyFetchError",
    "OandaExchangeCache",
    "ProviderConfig",
    "ProviderFetchError",
    "ProviderKind",
    "RateKey",
    "RateStore",
    "UnknownCurrency",
    "UnknownRate",
    "build_exchange_cache",
]

try:
    __version__ = importlib_metadata.version("fx-ratecache")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"


class ProviderKind(str, Enum):
    """Supported upstream rate providers."""

    OANDA = "oanda"
    FIXER = "fixer"

    @classmethod
    def from_name(cls, name: str) -> "ProviderKind":
        """Normalise provider names and URL schemes into a ProviderKind."""

        if not name:
            raise ValueError("Provider name must not be empty (e.g. oanda or fixer)")
        lowered = name.strip().lower()
        if lowered == "oanda":
            return cls.OANDA
        if lowered in {"fixer", "fixer.io", "fixerio"}:
            return cls.FIXER
        raise ValueError("Unsupported rate provider. Supported values are OANDA and fixer.io.")


@dataclass(slots=True)
class ProviderConfig:
    """Everything needed to build an exchange cache for one provider."""

    provider: ProviderKind
    access_key: str
    currencies: frozenset[str] | None = None
    data_set: str = DEFAULT_DATA_SET
    ttl_in_seconds: float | None = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not isinstance(self.provider, ProviderKind):
            self.provider = ProviderKind.from_name(str(self.provider))
        if not self.access_key:
            raise ValueError("An access key is required to query the rate provider")
        self.currencies = normalise_allow_list(self.currencies)
        if self.provider is ProviderKind.OANDA and not self.currencies:
            raise ValueError("OANDA requires a non-empty currency allow-list")
        if self.ttl_in_seconds is not None and self.ttl_in_seconds < 0:
            raise ValueError("ttl_in_seconds must not be negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        self.data_set = self.data_set or DEFAULT_DATA_SET

    @classmethod
    def from_url(cls, url: str) -> "ProviderConfig":
        """Parse ``oanda://KEY@DATASET?currencies=USD,EUR&ttl=3600&timeout=10``.

        The host part names the OANDA data set and is ignored for fixer.io,
        whose URLs look like ``fixer://KEY@?ttl=60``.
        """

        parsed = urlparse(url)
        if not parsed.scheme:
            raise ValueError("Provider URL must include a scheme (e.g. oanda:// or fixer://)")
        provider = ProviderKind.from_name(parsed.scheme)
        # urlparse only splits userinfo when a netloc exists; fall back for "KEY@".
        netloc = parsed.netloc
        access_key, _, host = netloc.rpartition("@")
        if not access_key:
            raise ValueError("Provider URL must carry the access key before '@'")

        options = {key.lower(): value for key, value in parse_qsl(parsed.query)}
        currencies = options.get("currencies")
        ttl = options.get("ttl") or options.get("ttl_in_seconds")
        timeout = _parse_number(options.get("timeout"), "timeout")
        return cls(
            provider=provider,
            access_key=unquote(access_key),
            currencies=normalise_allow_list(currencies) if currencies else None,
            data_set=(unquote(host).upper() if host else DEFAULT_DATA_SET),
            ttl_in_seconds=_parse_number(ttl, "ttl"),
            timeout=DEFAULT_TIMEOUT if timeout is None else timeout,
        )


def _parse_number(value: str | None, name: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        number = float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {value!r}") from exc
    return int(number) if number.is_integer() else number


def build_exchange_cache(
    config: ProviderConfig | str,
    *,
    store: RateStore | None = None,
    session: requests.Session | None = None,
    **kwargs: Any,
) -> ExchangeCache:
    """Create the exchange cache described by ``config``.

    Extra keyword arguments (``share_expiration``, ``single_flight``,
    ``expiration_policy``) are forwarded to the cache constructor. A TTL from
    the config is applied to the cache's own policy, or to an injected
    ``expiration_policy``. It is rejected together with ``share_expiration``
    because that would reconfigure every instance sharing the class policy;
    use :meth:`ExchangeCache.set_ttl_in_seconds` for that instead.
    """

    if isinstance(config, str):
        config = ProviderConfig.from_url(config)
    if config.ttl_in_seconds is not None and kwargs.get("share_expiration"):
        raise ValueError(
            "A config TTL cannot be combined with share_expiration; "
            "set the shared TTL with set_ttl_in_seconds instead"
        )
    common: dict[str, Any] = {"store": store, "session": session, "timeout": config.timeout}
    common.update(kwargs)
    cache: ExchangeCache
    if config.provider is ProviderKind.OANDA:
        cache = OandaExchangeCache(
            config.access_key,
            config.currencies or frozenset(),
            config.data_set,
            **common,
        )
    else:
        cache = FixerExchangeCache(config.access_key, config.currencies, **common)
    if config.ttl_in_seconds is not None:
        cache.expiration_policy.configure(config.ttl_in_seconds)
    return cache
