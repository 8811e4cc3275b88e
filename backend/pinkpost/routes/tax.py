# Overview: Flask API route for a checkout tax preview (Stripe Tax with fallback rate).

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..extensions import gateway
from ..money import ZERO, money_str
from ..services.order_service import pricing_config
from ..services.pricing_service import CartItem
from ..services.tax_service import build_tax_address, build_tax_line_items, resolve_tax
from ..validation import ValidationError, coerce_money


tax_bp = Blueprint("tax", __name__, url_prefix="/api/tax")


def _preview_items(raw_items) -> list[CartItem]:
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")
    items = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            raise ValidationError("Each item must be an object")
        items.append(CartItem(
            item_type=str(raw.get("item_type") or "item"),
            unit_price=coerce_money("total_price", raw.get("total_price", 0)),
            quantity=1,
        ))
    return items


@tax_bp.post("/calculate")
@require_auth
def calculate_tax_route():
    """
    Body: {"items": [{"item_type", "total_price"}], "expedite_fee"?, "no_post_surcharge"?,
           "discount"?, "address": {"address", "city", "state", "zip"}}
    """
    try:
        data = request.get_json(silent=True) or {}
        config = pricing_config()
        items = _preview_items(data.get("items") or [])
        expedite_fee = coerce_money("expedite_fee", data.get("expedite_fee") or 0)
        no_post_surcharge = coerce_money("no_post_surcharge", data.get("no_post_surcharge") or 0)
        discount = coerce_money("discount", data.get("discount") or 0)
        if not items:
            raise ValidationError("At least one item is required")

        subtotal = sum((i.total_price for i in items), ZERO)
        discounted = max(ZERO, subtotal - discount)
        taxable = discounted + no_post_surcharge + expedite_fee

        raw_address = data.get("address") or {}
        address = build_tax_address(
            raw_address.get("address"),
            raw_address.get("city"),
            raw_address.get("state"),
            raw_address.get("zip"),
            config=config,
        )
        line_items = build_tax_line_items(
            items,
            expedite_fee=expedite_fee,
            no_post_surcharge=no_post_surcharge,
            discount=discount,
        )
        calculator = gateway.calculate_tax if gateway.is_configured else None
        result = resolve_tax(taxable, line_items, address, config=config, calculator=calculator)

        return jsonify({
            "tax": money_str(result.amount),
            "tax_rate": str(result.rate),
            "tax_method": result.method,
            "jurisdiction": result.jurisdiction,
            "taxable_amount": money_str(taxable),
        })

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to calculate tax")
        return jsonify({"error": "Internal server error"}), 500
