# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/pinkpost/routes/admin.py
"""
Admin API routes: dashboard stats, order status transitions, manual charges,
promo codes, service requests, customers and their storage inventory.

All routes require an authenticated admin (403 otherwise).
"""

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_auth, require_admin
from ..extensions import db
from ..models import User
from ..models.auth import ROLE_CUSTOMER
from ..services import (
    installation_service,
    lifecycle_service,
    order_service,
    payment_service,
    promotions_service,
    reporting_service,
    storage_service,
)
from ..services.lifecycle_service import LifecycleError
from ..services.payment_service import PaymentError
from ..validation import NotFoundError, ValidationError
from .orders import page_args


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _order_detail(order) -> dict:
    data = order.to_dict()
    user = order.user
    data["customer"] = {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "phone": user.phone,
        "has_stripe_customer": bool(user.stripe_customer_id),
    } if user else None
    data["post_type"] = order.post_type.to_dict() if order.post_type else None
    return data


# =============================================================================
# DASHBOARD
# =============================================================================

@admin_bp.get("/stats")
@require_auth
@require_admin
def stats_route():
    try:
        return jsonify({"stats": reporting_service.admin_dashboard_stats()})

    except Exception:
        current_app.logger.exception("Failed to build dashboard stats")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# ORDERS
# =============================================================================

@admin_bp.get("/orders")
@require_auth
@require_admin
def list_orders_route():
    try:
        limit, offset = page_args()
        orders, total = order_service.list_orders(
            user_id=request.args.get("user_id", type=int),
            status=request.args.get("status") or None,
            limit=limit,
            offset=offset,
        )
        return jsonify({
            "orders": [_order_detail(o) for o in orders],
            "total": total,
            "limit": limit,
            "offset": offset,
        })

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/orders/<int:order_id>")
@require_auth
@require_admin
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id)
        data = _order_detail(order)
        installation = installation_service.get_installation_for_order(order.id)
        data["installation"] = installation.to_dict() if installation else None
        return jsonify({"order": data})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.put("/orders/<int:order_id>")
@require_auth
@require_admin
def update_order_route(order_id: int):
    """
    Status transition and/or schedule / payment status correction.

    Body: {"status"?, "scheduled_date"?, "payment_status"?}
    Side-effect failures are reported in "tasks" but never fail the request.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not any(k in data for k in ("status", "scheduled_date", "payment_status")):
            return jsonify({"error": "status, scheduled_date or payment_status required"}), 400

        order, outcomes = lifecycle_service.transition_order_status(
            order_id,
            data.get("status") or None,
            scheduled_date=data.get("scheduled_date"),
            payment_status=data.get("payment_status") or None,
        )
        return jsonify({
            "order": _order_detail(order),
            "tasks": [{"name": o.name, "ok": o.ok, "error": o.error} for o in outcomes],
        })

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, LifecycleError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update order")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/orders/<int:order_id>/charge")
@require_auth
@require_admin
def charge_order_route(order_id: int):
    try:
        data = request.get_json(silent=True) or {}
        order = payment_service.charge_order(order_id, data.get("payment_method_id"))
        return jsonify({"success": True, "payment_status": order.payment_status, "order": _order_detail(order)})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except PaymentError as e:
        body = {"success": False, "error": str(e)}
        if e.requires_action:
            body["requires_action"] = True
            body["client_secret"] = e.client_secret
        return jsonify(body), 400
    except Exception:
        current_app.logger.exception("Failed to charge order")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PROMO CODES
# =============================================================================

@admin_bp.get("/promo-codes")
@require_auth
@require_admin
def list_promo_codes_route():
    active_only = request.args.get("active_only", "false").lower() == "true"
    promos = promotions_service.list_promo_codes(active_only=active_only)
    return jsonify({"promo_codes": [p.to_dict() for p in promos]})


@admin_bp.post("/promo-codes")
@require_auth
@require_admin
def create_promo_code_route():
    try:
        promo = promotions_service.create_promo_code(request.get_json(silent=True) or {})
        return jsonify({"promo_code": promo.to_dict()}), 201

    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create promo code")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/promo-codes/<int:promo_id>")
@require_auth
@require_admin
def update_promo_code_route(promo_id: int):
    try:
        promo = promotions_service.update_promo_code(promo_id, request.get_json(silent=True) or {})
        return jsonify({"promo_code": promo.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update promo code")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/promo-codes/<int:promo_id>")
@require_auth
@require_admin
def deactivate_promo_code_route(promo_id: int):
    try:
        promo = promotions_service.deactivate_promo_code(promo_id)
        return jsonify({"promo_code": promo.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


# =============================================================================
# SERVICE REQUESTS
# =============================================================================

@admin_bp.get("/service-requests")
@require_auth
@require_admin
def list_service_requests_route():
    requests_ = installation_service.list_service_requests(status=request.args.get("status") or None)
    return jsonify({"service_requests": [r.to_dict() for r in requests_]})


@admin_bp.put("/service-requests/<int:request_id>")
@require_auth
@require_admin
def update_service_request_route(request_id: int):
    try:
        service_request = installation_service.update_service_request(
            request_id, request.get_json(silent=True) or {}
        )
        return jsonify({"service_request": service_request.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to update service request")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CUSTOMERS & STORAGE
# =============================================================================

@admin_bp.get("/customers")
@require_auth
@require_admin
def list_customers_route():
    customers = (
        db.session.query(User)
        .filter_by(role=ROLE_CUSTOMER)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )
    return jsonify({"customers": [c.to_dict() for c in customers]})


@admin_bp.get("/customers/<int:customer_id>/inventory")
@require_auth
@require_admin
def list_customer_inventory_route(customer_id: int):
    if db.session.get(User, customer_id) is None:
        return jsonify({"error": "Customer not found"}), 404
    storage = storage_service.list_storage(customer_id)
    return jsonify({kind: [i.to_dict() for i in items] for kind, items in storage.items()})


@admin_bp.post("/customers/<int:customer_id>/inventory")
@require_auth
@require_admin
def add_customer_inventory_route(customer_id: int):
    try:
        item = storage_service.add_storage_item(customer_id, request.get_json(silent=True) or {})
        return jsonify({"item": item.to_dict()}), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add inventory")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.patch("/customers/<int:customer_id>/inventory/<kind>/<int:item_id>")
@require_auth
@require_admin
def update_customer_inventory_route(customer_id: int, kind: str, item_id: int):
    try:
        item = storage_service.update_storage_item(customer_id, kind, item_id, request.get_json(silent=True) or {})
        return jsonify({"item": item.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@admin_bp.post("/customers/<int:customer_id>/inventory/<kind>/<int:item_id>/return")
@require_auth
@require_admin
def return_customer_inventory_route(customer_id: int, kind: str, item_id: int):
    try:
        item = storage_service.return_to_storage(customer_id, kind, item_id)
        return jsonify({"item": item.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@admin_bp.delete("/customers/<int:customer_id>/inventory/<kind>/<int:item_id>")
@require_auth
@require_admin
def delete_customer_inventory_route(customer_id: int, kind: str, item_id: int):
    try:
        storage_service.delete_storage_item(customer_id, kind, item_id)
        return jsonify({"message": "Deleted"})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
