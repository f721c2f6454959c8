"""Turn provider payloads into rate store writes.

Extraction is not transactional: entries written before a malformed entry
stay in the store when the payload turns out to be broken half-way.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterable, Iterator

from fx_ratecache.currency import CurrencyLike, normalise_allow_list, normalise_code
from fx_ratecache.store.base_store import RateStore
from fx_ratecache.utils.logger import get_logger

LOGGER = get_logger(__name__)

_PARSE_ERRORS = (ValueError, TypeError, KeyError, ArithmeticError)

# Placeholder yielded for an entry without a magnitude field.
MISSING = object()


@dataclass(frozen=True, slots=True)
class ResponseParseError:
    """Why a payload could not be extracted, with the original exception."""

    message: str
    cause: BaseException | None = None


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Either the number of rates written or a :class:`ResponseParseError`."""

    written: int = 0
    failure: ResponseParseError | None = None

    @classmethod
    def ok(cls, written: int) -> "ExtractionResult":
        return cls(written=written)

    @classmethod
    def failed(cls, failure: ResponseParseError, written: int = 0) -> "ExtractionResult":
        return cls(written=written, failure=failure)

    @property
    def is_ok(self) -> bool:
        return self.failure is None


def _parse_magnitude(value: object) -> Decimal:
    if value is MISSING:
        raise KeyError("rate magnitude")
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Rate magnitude {value!r} is not numeric")
    if isinstance(value, Decimal):
        magnitude = value
    elif isinstance(value, (int, float, str)):
        try:
            magnitude = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Rate magnitude {value!r} is not numeric") from exc
    else:
        raise TypeError(f"Rate magnitude has unsupported type {type(value).__name__}")
    if not magnitude.is_finite():
        raise ValueError(f"Rate magnitude {value!r} is not finite")
    return magnitude


class ResponseExtractor(ABC):
    """Parse a payload into ``(base, quote, magnitude)`` entries and store them."""

    payload_name = "provider"

    def __init__(self, currencies: Iterable[CurrencyLike] | None = None) -> None:
        self.allow_list = normalise_allow_list(currencies)

    @abstractmethod
    def iter_entries(self, data: object) -> Iterator[tuple[object, object, object]]:
        """Yield raw ``(base, quote, magnitude)`` entries from decoded JSON."""

    def is_allowed(self, base: str, quote: str) -> bool:
        if self.allow_list is None:
            return True
        return base in self.allow_list and quote in self.allow_list

    def _allowed_codes(self, raw_base: object, raw_quote: object) -> tuple[str, str] | None:
        """Normalise both codes, or return ``None`` when the allow-list drops the entry.

        Codes that cannot be normalised are only an error when there is no
        allow-list to filter them out.
        """

        if self.allow_list is None:
            return normalise_code(raw_base), normalise_code(raw_quote)
        try:
            base, quote = normalise_code(raw_base), normalise_code(raw_quote)
        except (TypeError, ValueError):
            return None
        return (base, quote) if self.is_allowed(base, quote) else None

    def to_rate(self, magnitude: Decimal) -> Decimal:
        """Convert a provider magnitude into the stored rate direction."""

        return magnitude

    def extract_into(self, store: RateStore, payload: str | bytes | Mapping) -> ExtractionResult:
        written = 0
        try:
            data = payload if isinstance(payload, Mapping) else json.loads(payload)
            for raw_base, raw_quote, raw_magnitude in self.iter_entries(data):
                codes = self._allowed_codes(raw_base, raw_quote)
                if codes is None:
                    LOGGER.debug("Skipping %s/%s: not in the allow-list", raw_base, raw_quote)
                    continue
                base, quote = codes
                magnitude = _parse_magnitude(raw_magnitude)
                if magnitude <= 0:
                    LOGGER.debug("Skipping %s/%s: non-positive rate %s", base, quote, magnitude)
                    continue
                store.add_rate(base, quote, self.to_rate(magnitude))
                written += 1
        except _PARSE_ERRORS as exc:
            LOGGER.warning(
                "Malformed %s payload after %s stored rates: %s", self.payload_name, written, exc
            )
            return ExtractionResult.failed(
                ResponseParseError("Error parsing rates or adding rates to store", exc),
                written=written,
            )
        return ExtractionResult.ok(written)


class OandaQuoteExtractor(ResponseExtractor):
    """Read ``quotes[*].{base_currency, quote_currency, midpoint}``."""

    payload_name = "OANDA"

    def iter_entries(self, data: object) -> Iterator[tuple[object, object, object]]:
        quotes = data["quotes"]  # type: ignore[index]
        if isinstance(quotes, (str, bytes)) or not isinstance(quotes, Sequence):
            raise TypeError("OANDA payload 'quotes' must be a list")
        for quote in quotes:
            yield quote["base_currency"], quote["quote_currency"], quote.get("midpoint", MISSING)


class FixerTableExtractor(ResponseExtractor):
    """Read a ``rates`` table whose values are quote currency per base unit.

    Every entry is stored as ``(code, EUR)`` holding the reciprocal of the
    published magnitude, i.e. EUR per one unit of ``code``. Only the table
    code is checked against the allow-list since EUR is implied, and the
    EUR row itself is always admitted.
    """

    payload_name = "fixer.io"

    def __init__(
        self,
        currencies: Iterable[CurrencyLike] | None = None,
        *,
        quote_currency: str = "EUR",
    ) -> None:
        super().__init__(currencies)
        self.quote_currency = normalise_code(quote_currency)

    def is_allowed(self, base: str, quote: str) -> bool:
        if self.allow_list is None:
            return True
        return base in self.allow_list or base == self.quote_currency

    def to_rate(self, magnitude: Decimal) -> Decimal:
        return Decimal(1) / magnitude

    def iter_entries(self, data: object) -> Iterator[tuple[object, object, object]]:
        rates = data["rates"]  # type: ignore[index]
        if not isinstance(rates, Mapping):
            raise TypeError("fixer.io payload 'rates' must be an object")
        for code, magnitude in rates.items():
            yield code, self.quote_currency, magnitude


__all__ = [
    "ExtractionResult",
    "FixerTableExtractor",
    "OandaQuoteExtractor",
    "ResponseExtractor",
    "ResponseParseError",
]
