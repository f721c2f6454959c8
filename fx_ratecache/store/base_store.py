"""Rate store interfaces shared by every cache implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Iterator

from fx_ratecache.currency import CurrencyLike, normalise_code


@dataclass(frozen=True, slots=True)
class RateKey:
    """Directional ``base -> quote`` pair used as the sole cache index."""

    base: str
    quote: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "base", normalise_code(self.base))
        object.__setattr__(self, "quote", normalise_code(self.quote))

    @classmethod
    def of(cls, from_currency: CurrencyLike, to_currency: CurrencyLike) -> "RateKey":
        return cls(normalise_code(from_currency), normalise_code(to_currency))

    def __str__(self) -> str:
        return f"{self.base}_TO_{self.quote}"


def coerce_rate(value: object) -> Decimal:
    """Convert ``value`` into a positive :class:`~decimal.Decimal` rate."""

    if isinstance(value, bool):
        raise ValueError("Rate must be numeric, not boolean")
    if isinstance(value, Decimal):
        rate = value
    else:
        try:
            rate = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError) as exc:
            raise ValueError(f"Rate {value!r} is not numeric") from exc
    if not rate.is_finite() or rate <= 0:
        raise ValueError(f"Rate must be a positive finite number, got {value!r}")
    return rate


class RateStore(ABC):
    """Pure key/value storage for rates; it knows nothing about expiry."""

    @abstractmethod
    def get_rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike) -> Decimal | None:
        """Return the stored rate or ``None`` when the pair is unknown."""

    @abstractmethod
    def add_rate(
        self, from_currency: CurrencyLike, to_currency: CurrencyLike, rate: object
    ) -> Decimal:
        """Store ``rate`` for the pair, overwriting any previous value."""

    @abstractmethod
    def remove_rate(
        self, from_currency: CurrencyLike, to_currency: CurrencyLike
    ) -> Decimal | None:
        """Drop the pair if present and return the removed rate."""

    @abstractmethod
    def clear_rates(self) -> None:
        """Remove every stored rate."""

    @abstractmethod
    def each_rate(self) -> Iterator[tuple[str, str, Decimal]]:
        """Yield ``(base, quote, rate)`` triples."""

    def __len__(self) -> int:
        return sum(1 for _ in self.each_rate())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, RateKey):
            return False
        return self.get_rate(key.base, key.quote) is not None


__all__ = ["RateKey", "RateStore", "coerce_rate"]
