# Overview: Flask API routes for customer orders; parses input and returns JSON responses.

# backend/pinkpost/routes/orders.py
"""Customer order routes. Customers only ever see their own orders."""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import order_service
from ..services.lifecycle_service import LifecycleError
from ..services.order_service import OrderError
from ..validation import NotFoundError, ValidationError


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")

MAX_PAGE_SIZE = 100


def page_args() -> tuple[int, int]:
    limit = request.args.get("limit", default=50, type=int)
    offset = request.args.get("offset", default=0, type=int)
    return max(1, min(limit, MAX_PAGE_SIZE)), max(0, offset)


@orders_bp.post("")
@require_auth
def create_order_route():
    try:
        order, client_secret = order_service.create_order(g.current_user, request.get_json(silent=True))
        return jsonify({"order": order.to_dict(), "client_secret": client_secret}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
def list_orders_route():
    try:
        limit, offset = page_args()
        orders, total = order_service.list_orders(
            user_id=g.current_user.id,
            status=request.args.get("status") or None,
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "orders": [o.to_dict() for o in orders],
            "total": total,
            "limit": limit,
            "offset": offset,
        })

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = order_service.get_order_for_user(g.current_user, order_id)
        return jsonify({"order": order.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@orders_bp.patch("/<int:order_id>")
@require_auth
def edit_order_route(order_id: int):
    try:
        order = order_service.edit_order(g.current_user, order_id, request.get_json(silent=True))
        return jsonify({"order": order.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, OrderError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to edit order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.delete("/<int:order_id>")
@require_auth
def cancel_order_route(order_id: int):
    try:
        order = order_service.cancel_order(g.current_user, order_id)
        return jsonify({"order": order.to_dict(), "message": "Order cancelled"})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (OrderError, LifecycleError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to cancel order")
        return jsonify({"error": "Internal server error"}), 500
