# Overview: Flask API route for checking a promo code against a cart subtotal.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth
from ..money import money_str
from ..services import promotions_service
from ..services.promotions_service import PromoCodeError
from ..validation import ValidationError, coerce_money


promotions_bp = Blueprint("promotions", __name__, url_prefix="/api/promo-codes")


@promotions_bp.post("/validate")
@require_auth
def validate_promo_code_route():
    """Body: {"code": str, "subtotal": number}. Does not redeem the code."""
    try:
        data = request.get_json(silent=True) or {}
        subtotal = coerce_money("subtotal", data.get("subtotal", 0))
        result = promotions_service.validate_promo_code(data.get("code"), subtotal)
        return jsonify({
            "valid": True,
            "promo_code": result.promo.to_dict(),
            "discount": money_str(result.discount),
        })

    except (PromoCodeError, ValidationError) as e:
        return jsonify({"valid": False, "error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to validate promo code")
        return jsonify({"error": "Internal server error"}), 500
