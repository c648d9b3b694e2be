"""Money helpers: currency precision and rounding."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

# ISO 4217 zero-decimal currencies; money columns store at most two decimals
_MINOR_UNITS: dict[str, int] = {
    "CLP": 0,
    "ISK": 0,
    "JPY": 0,
    "KRW": 0,
}
DEFAULT_MINOR_UNITS = 2


def minor_units(currency: str | None) -> int:
    if not currency:
        return DEFAULT_MINOR_UNITS
    return _MINOR_UNITS.get(currency.strip().upper(), DEFAULT_MINOR_UNITS)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert to Decimal via ``str`` so binary float noise is not carried over."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_money(amount: Decimal | int | float | str, currency: str | None) -> Decimal:
    exponent = Decimal(1).scaleb(-minor_units(currency))
    return to_decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)
