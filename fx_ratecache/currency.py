"""Currency value type and ISO code normalisation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

__all__ = ["Currency", "CurrencyLike", "normalise_code", "normalise_allow_list"]


def normalise_code(value: object) -> str:
    """Return the canonical upper-case code for ``value``.

    Accepts plain strings as well as any object exposing ``iso_code`` (for
    example the currency type of a money library).
    """

    code = getattr(value, "iso_code", value)
    if not isinstance(code, str):
        raise TypeError(f"Currency code must be a string, got {type(code).__name__}")
    cleaned = code.strip().upper()
    if not cleaned:
        raise ValueError("Currency code must not be empty")
    return cleaned


@dataclass(frozen=True, slots=True)
class Currency:
    """Opaque currency identified by its stable ISO code."""

    iso_code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "iso_code", normalise_code(self.iso_code))

    @classmethod
    def wrap(cls, value: "CurrencyLike") -> "Currency":
        if isinstance(value, Currency):
            return value
        return cls(normalise_code(value))

    def __str__(self) -> str:
        return self.iso_code


CurrencyLike = Union[Currency, str, object]


def normalise_allow_list(currencies: Iterable[CurrencyLike] | None) -> frozenset[str] | None:
    """Freeze an allow-list into canonical codes; ``None`` means "accept all"."""

    if currencies is None:
        return None
    if isinstance(currencies, str):
        currencies = [part for part in currencies.split(",") if part.strip()]
    return frozenset(normalise_code(currency) for currency in currencies)
