# Overview: Stripe Tax lookup with the 6% business fallback; never raises to callers.

"""
Tax Resolution

Policy: the business charges tax on every order. A positive Stripe Tax
figure is used as-is (tax_method="stripe_tax"). A zero figure means Stripe
classified the service as non-taxable, and the fallback rate applies
exactly as it does when the tax service errors or is not configured
(tax_method="fallback").
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from pinkpost.money import ZERO, from_cents, to_cents, to_money
from .pricing_service import CartItem, PricingConfig, TaxResult

logger = logging.getLogger(__name__)

GENERAL_SERVICES_TAX_CODE = "txcd_99999999"

RATE_PLACES = Decimal("0.0001")

# (line_items, address) -> gateway.TaxCalculationResult
TaxCalculator = Callable[[list, dict], object]


def build_tax_address(
    address: str | None,
    city: str | None,
    state: str | None,
    postal_code: str | None,
    *,
    config: PricingConfig,
) -> dict:
    return {
        "line1": address or "",
        "city": city or "",
        "state": state or config.default_state,
        "postal_code": postal_code or "",
        "country": "US",
    }


def build_tax_line_items(
    items: list[CartItem],
    *,
    expedite_fee: Decimal = ZERO,
    no_post_surcharge: Decimal = ZERO,
    discount: Decimal = ZERO,
) -> list[dict]:
    """
    Cents line items for Stripe Tax.

    Fees go on their own lines. The whole discount comes off the first line
    (floored at zero), matching how checkout has always quoted tax.
    """
    line_items = [
        {
            "amount": to_cents(item.total_price),
            "reference": f"item_{index}_{item.item_type}",
            "tax_code": GENERAL_SERVICES_TAX_CODE,
        }
        for index, item in enumerate(items)
    ]

    if expedite_fee > 0:
        line_items.append({
            "amount": to_cents(expedite_fee),
            "reference": "expedite_fee",
            "tax_code": GENERAL_SERVICES_TAX_CODE,
        })

    if no_post_surcharge > 0:
        line_items.append({
            "amount": to_cents(no_post_surcharge),
            "reference": "no_post_surcharge",
            "tax_code": GENERAL_SERVICES_TAX_CODE,
        })

    if discount > 0 and line_items:
        line_items[0]["amount"] = max(0, line_items[0]["amount"] - to_cents(discount))

    return line_items


def fallback_tax(taxable_amount: Decimal, config: PricingConfig, jurisdiction: str = "") -> TaxResult:
    rate = config.fallback_tax_rate
    amount = (to_money(taxable_amount) * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return TaxResult(amount=amount, method="fallback", rate=rate, jurisdiction=jurisdiction)


def _breakdown_rate(breakdown: list[dict]) -> tuple[Decimal | None, str]:
    if not breakdown:
        return None, ""
    primary = breakdown[0]
    try:
        percent = Decimal(str(primary.get("rate") or "0"))
    except ArithmeticError:
        percent = Decimal("0")
    return (percent / 100).quantize(RATE_PLACES, rounding=ROUND_HALF_UP), primary.get("jurisdiction") or ""


def resolve_tax(
    taxable_amount: Decimal,
    line_items: list[dict],
    address: dict,
    *,
    config: PricingConfig,
    calculator: TaxCalculator | None,
) -> TaxResult:
    """
    Returns the tax for taxable_amount. Never raises: any calculator error,
    a missing calculator, or a zero result takes the fallback path.
    """
    fallback_label = f"{config.default_state} ({config.fallback_tax_rate * 100:.0f}% applied)"

    if calculator is None:
        return fallback_tax(taxable_amount, config, fallback_label)

    if to_money(taxable_amount) <= 0:
        return TaxResult(amount=ZERO, method="fallback", rate=config.fallback_tax_rate, jurisdiction=fallback_label)

    try:
        result = calculator(line_items, address)
        stripe_tax = from_cents(result.tax_amount_exclusive)
        breakdown = list(result.tax_breakdown or [])
    except Exception as exc:  # any provider failure takes the fallback path
        logger.warning("Stripe Tax calculation failed, using fallback rate: %s", exc)
        return fallback_tax(taxable_amount, config, fallback_label)

    if stripe_tax <= 0:
        logger.warning(
            "Stripe Tax returned zero for taxable amount %s, applying fallback rate %s",
            taxable_amount,
            config.fallback_tax_rate,
        )
        return fallback_tax(taxable_amount, config, fallback_label)

    rate, jurisdiction = _breakdown_rate(breakdown)
    return TaxResult(
        amount=stripe_tax,
        method="stripe_tax",
        rate=rate if rate is not None else ZERO,
        jurisdiction=jurisdiction,
    )


def make_tax_resolver(address: dict, *, config: PricingConfig, calculator: TaxCalculator | None):
    """Bind an address and calculator into the resolver price_cart expects."""
    def _resolve(taxable_amount, items, expedite_fee, no_post_surcharge, discount) -> TaxResult:
        line_items = build_tax_line_items(
            items,
            expedite_fee=expedite_fee,
            no_post_surcharge=no_post_surcharge,
            discount=discount,
        )
        return resolve_tax(taxable_amount, line_items, address, config=config, calculator=calculator)
    return _resolve


def make_fallback_resolver(config: PricingConfig):
    """Resolver that always applies the fallback rate (order edits)."""
    def _resolve(taxable_amount, items, expedite_fee, no_post_surcharge, discount) -> TaxResult:
        return fallback_tax(taxable_amount, config, f"{config.default_state} (fallback)")
    return _resolve
