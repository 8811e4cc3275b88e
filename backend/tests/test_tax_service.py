"""
Tax resolution tests.

Verifies:
- A positive Stripe Tax result is used as-is (stripe_tax)
- A zero result, an exception, or no calculator fall back to 6% of the taxable amount
- Line items carry fees separately and the discount comes off the first line
"""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from pinkpost.services.gateway import GatewayError
from pinkpost.services.pricing_service import CartItem, PricingConfig
from pinkpost.services.tax_service import build_tax_address, build_tax_line_items, resolve_tax

D = Decimal
CONFIG = PricingConfig()
ADDRESS = build_tax_address("1 Main St", "Louisville", "KY", "40202", config=CONFIG)


def calculator_returning(cents, percent="6.0"):
    def _calc(line_items, address):
        return SimpleNamespace(
            tax_amount_exclusive=cents,
            tax_breakdown=[{"amount": cents, "jurisdiction": "KY", "rate": percent}],
        )
    return _calc


def calculator_raising(exc):
    def _calc(line_items, address):
        raise exc
    return _calc


class TestResolveTax:

    def test_positive_result_uses_stripe_tax(self):
        result = resolve_tax(D("65.00"), [], ADDRESS, config=CONFIG, calculator=calculator_returning(455, "7.0"))

        assert result.method == "stripe_tax"
        assert result.amount == D("4.55")
        assert result.rate == D("0.0700")
        assert result.jurisdiction == "KY"

    def test_zero_result_falls_back(self):
        result = resolve_tax(D("65.00"), [], ADDRESS, config=CONFIG, calculator=calculator_returning(0))

        assert result.method == "fallback"
        assert result.amount == D("3.90")
        assert result.rate == D("0.06")

    @pytest.mark.parametrize("exc", [GatewayError("timeout"), RuntimeError("boom"), KeyError("tax_breakdown")])
    def test_any_exception_falls_back(self, exc):
        result = resolve_tax(D("70.00"), [], ADDRESS, config=CONFIG, calculator=calculator_raising(exc))

        assert result.method == "fallback"
        assert result.amount == D("4.20")

    def test_no_calculator_falls_back(self):
        result = resolve_tax(D("80.00"), [], ADDRESS, config=CONFIG, calculator=None)

        assert result.method == "fallback"
        assert result.amount == D("4.80")

    def test_fallback_rounds_half_up(self):
        # 0.25 * 0.06 = 0.015
        result = resolve_tax(D("0.25"), [], ADDRESS, config=CONFIG, calculator=None)
        assert result.amount == D("0.02")

    def test_zero_taxable_skips_calculator(self):
        calls = []

        def _calc(line_items, address):
            calls.append(line_items)
            raise AssertionError("should not be called")

        result = resolve_tax(D("0.00"), [], ADDRESS, config=CONFIG, calculator=_calc)

        assert result.amount == D("0.00")
        assert calls == []


class TestTaxLineItems:

    def test_fees_get_their_own_lines(self):
        lines = build_tax_line_items(
            [CartItem("post", D("55.00")), CartItem("rider", D("5.00"), quantity=2)],
            expedite_fee=D("25.00"),
            no_post_surcharge=D("0.00"),
        )

        assert [line["amount"] for line in lines] == [5500, 1000, 2500]
        assert lines[2]["reference"] == "expedite_fee"
        assert all(line["tax_code"] == "txcd_99999999" for line in lines)

    def test_discount_comes_off_first_line_floored_at_zero(self):
        lines = build_tax_line_items(
            [CartItem("rider", D("5.00")), CartItem("post", D("55.00"))],
            discount=D("30.00"),
        )

        assert lines[0]["amount"] == 0
        assert lines[1]["amount"] == 5500

    def test_address_defaults_state(self):
        address = build_tax_address("1 Main St", "Louisville", None, "40202", config=CONFIG)
        assert address == {
            "line1": "1 Main St",
            "city": "Louisville",
            "state": "KY",
            "postal_code": "40202",
            "country": "US",
        }
