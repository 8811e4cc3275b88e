# Overview: Decimal money helpers; the core keeps dollars, gateways speak cents.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Coerce to a 2-place Decimal, rounding half-up on the cent.

    Floats go through str() so 0.1 stays 0.1 and not its binary expansion.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a monetary amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(value) -> int:
    return int((to_money(value) * 100).to_integral_value(rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(int(cents)) / 100).quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value) -> str | None:
    """JSON representation for money columns ("71.37")."""
    if value is None:
        return None
    return str(to_money(value))
