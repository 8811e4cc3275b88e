# Overview: Flask API routes for a customer's saved payment methods and card setup.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import payment_service
from ..services.payment_service import PaymentError
from ..validation import NotFoundError, ValidationError


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.get("/methods")
@require_auth
def list_methods_route():
    methods = payment_service.list_payment_methods(g.current_user.id)
    return jsonify({"payment_methods": [m.to_dict() for m in methods]})


@payments_bp.post("/setup-intent")
@require_auth
def setup_intent_route():
    try:
        client_secret = payment_service.create_setup_intent(g.current_user)
        return jsonify({"client_secret": client_secret})

    except PaymentError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create setup intent")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/methods")
@require_auth
def add_method_route():
    """Body: {"payment_method_id": "pm_...", "make_default"?: bool}"""
    try:
        data = request.get_json(silent=True) or {}
        method = payment_service.add_payment_method(
            g.current_user,
            data.get("payment_method_id"),
            make_default=bool(data.get("make_default")),
        )
        return jsonify({"payment_method": method.to_dict()}), 201

    except (ValidationError, PaymentError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add payment method")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.post("/methods/<int:method_id>/default")
@require_auth
def set_default_method_route(method_id: int):
    try:
        method = payment_service.set_default_payment_method(g.current_user, method_id)
        return jsonify({"payment_method": method.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@payments_bp.delete("/methods/<int:method_id>")
@require_auth
def delete_method_route(method_id: int):
    try:
        payment_service.delete_payment_method(g.current_user, method_id)
        return jsonify({"message": "Payment method removed"})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete payment method")
        return jsonify({"error": "Internal server error"}), 500
