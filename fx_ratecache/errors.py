"""Exception hierarchy raised by the exchange caches."""

from __future__ import annotations

__all__ = [
    "ExchangeRateError",
    "UnknownRate",
    "UnknownCurrency",
    "ProviderFetchError",
    "OandaCurrencyFetchError",
    "FixerCurrencyFetchError",
]


class ExchangeRateError(Exception):
    """Base class for every failure surfaced by :mod:`fx_ratecache`."""


class UnknownRate(ExchangeRateError):
    """The requested pair could not be resolved after a fetch attempt."""


class UnknownCurrency(ExchangeRateError):
    """The provider reported that the pair does not exist, even on the default dataset."""


class ProviderFetchError(ExchangeRateError):
    """Transport, rejection or payload failure reported by an upstream provider.

    ``str(exc)`` is the upstream message verbatim when the provider sent one.
    """

    def __init__(
        self,
        message: str = "",
        *,
        status_code: int | None = None,
        code: object | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class OandaCurrencyFetchError(ProviderFetchError):
    """Raised when rates cannot be fetched from or extracted from OANDA."""


class FixerCurrencyFetchError(ProviderFetchError):
    """Raised when rates cannot be fetched from or extracted from fixer.io."""
