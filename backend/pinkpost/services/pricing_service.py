# Overview: Pure order pricing: subtotal, fees, discount floor, tax hand-off and total.

"""
Pricing Calculator

Every figure is a Decimal dollar amount rounded half-up to the cent after
each multiplicative step. The calculator reads nothing from the app or the
database: fees come in through PricingConfig and tax through a resolver
callable, so the same function prices checkout, edits and previews.

    subtotal            = sum(unit_price * quantity)
    discounted_subtotal = max(0, subtotal - discount)
    taxable_amount      = discounted_subtotal + expedite_fee + no_post_surcharge
    total               = taxable_amount + fuel_surcharge + tax

The fuel surcharge is a flat fee that is never taxed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, Mapping

from pinkpost.money import ZERO, to_money
from pinkpost.validation import ITEM_TYPES, ValidationError


@dataclass(frozen=True)
class PricingConfig:
    fuel_surcharge: Decimal = Decimal("2.47")
    expedite_fee: Decimal = Decimal("25.00")
    no_post_surcharge: Decimal = Decimal("0.00")
    fallback_tax_rate: Decimal = Decimal("0.06")
    default_state: str = "KY"

    @classmethod
    def from_mapping(cls, config: Mapping) -> "PricingConfig":
        """Build from Flask config (PRICING_* keys); missing keys keep defaults."""
        defaults = cls()
        return cls(
            fuel_surcharge=to_money(config.get("PRICING_FUEL_SURCHARGE", defaults.fuel_surcharge)),
            expedite_fee=to_money(config.get("PRICING_EXPEDITE_FEE", defaults.expedite_fee)),
            no_post_surcharge=to_money(config.get("PRICING_NO_POST_SURCHARGE", defaults.no_post_surcharge)),
            fallback_tax_rate=Decimal(str(config.get("PRICING_FALLBACK_TAX_RATE", defaults.fallback_tax_rate))),
            default_state=config.get("PRICING_DEFAULT_STATE") or defaults.default_state,
        )


@dataclass(frozen=True)
class CartItem:
    item_type: str
    unit_price: Decimal
    quantity: int = 1
    description: str | None = None

    @property
    def total_price(self) -> Decimal:
        return to_money(self.unit_price * self.quantity)


@dataclass(frozen=True)
class TaxResult:
    amount: Decimal
    method: str  # stripe_tax, fallback
    rate: Decimal
    jurisdiction: str = ""


# (taxable_amount, items, expedite_fee, no_post_surcharge, discount) -> TaxResult
TaxResolver = Callable[[Decimal, "list[CartItem]", Decimal, Decimal, Decimal], TaxResult]


@dataclass(frozen=True)
class PricedOrder:
    subtotal: Decimal
    discount: Decimal
    discounted_subtotal: Decimal
    fuel_surcharge: Decimal
    no_post_surcharge: Decimal
    expedite_fee: Decimal
    taxable_amount: Decimal
    tax: Decimal
    tax_method: str
    tax_rate: Decimal
    total: Decimal
    jurisdiction: str = ""


def _check_items(items: list[CartItem]) -> None:
    if not items:
        raise ValidationError("Order must contain at least one item")
    for item in items:
        if item.item_type not in ITEM_TYPES:
            raise ValidationError(f"Unknown item type: {item.item_type}")
        if isinstance(item.quantity, bool) or not isinstance(item.quantity, int) or item.quantity < 1:
            raise ValidationError("quantity must be a positive integer")
        if to_money(item.unit_price) < 0:
            raise ValidationError("unit_price must be >= 0")


def cart_subtotal(items: Iterable[CartItem]) -> Decimal:
    return to_money(sum((item.total_price for item in items), ZERO))


def no_post_surcharge_for(items: Iterable[CartItem], config: PricingConfig) -> Decimal:
    """Flat surcharge for carts that reuse a post already at the property."""
    if config.no_post_surcharge <= 0:
        return ZERO
    if any(item.item_type == "post" for item in items):
        return ZERO
    return to_money(config.no_post_surcharge)


def price_cart(
    items: list[CartItem],
    *,
    is_expedited: bool = False,
    discount: Decimal = ZERO,
    config: PricingConfig,
    tax_resolver: TaxResolver,
) -> PricedOrder:
    """
    Raises:
        ValidationError: empty cart, unknown item type, quantity < 1,
            negative unit price or negative discount
    """
    items = list(items)
    _check_items(items)

    discount = to_money(discount)
    if discount < 0:
        raise ValidationError("discount must be >= 0")

    subtotal = cart_subtotal(items)
    expedite_fee = to_money(config.expedite_fee) if is_expedited else ZERO
    no_post_surcharge = no_post_surcharge_for(items, config)
    fuel_surcharge = to_money(config.fuel_surcharge)

    discounted_subtotal = max(ZERO, subtotal - discount)
    taxable_amount = discounted_subtotal + expedite_fee + no_post_surcharge

    tax = tax_resolver(taxable_amount, items, expedite_fee, no_post_surcharge, discount)
    tax_amount = to_money(tax.amount)

    total = discounted_subtotal + fuel_surcharge + expedite_fee + no_post_surcharge + tax_amount

    return PricedOrder(
        subtotal=subtotal,
        discount=discount,
        discounted_subtotal=discounted_subtotal,
        fuel_surcharge=fuel_surcharge,
        no_post_surcharge=no_post_surcharge,
        expedite_fee=expedite_fee,
        taxable_amount=taxable_amount,
        tax=tax_amount,
        tax_method=tax.method,
        tax_rate=tax.rate,
        total=to_money(total),
        jurisdiction=tax.jurisdiction,
    )
