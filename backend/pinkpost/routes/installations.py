# Overview: Flask API routes for a customer's installations, removals and service requests.

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth
from ..services import installation_service
from ..services.installation_service import ServiceRequestError
from ..validation import NotFoundError, ValidationError


installations_bp = Blueprint("installations", __name__, url_prefix="/api")


@installations_bp.get("/installations")
@require_auth
def list_installations_route():
    installations = installation_service.list_installations(
        user_id=g.current_user.id,
        status=request.args.get("status") or None,
    )
    return jsonify({"installations": [i.to_dict() for i in installations]})


@installations_bp.get("/installations/<int:installation_id>")
@require_auth
def get_installation_route(installation_id: int):
    try:
        installation = installation_service.get_installation_for_user(g.current_user.id, installation_id)
        return jsonify({"installation": installation.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@installations_bp.post("/installations/<int:installation_id>/schedule-removal")
@require_auth
def schedule_removal_route(installation_id: int):
    try:
        data = request.get_json(silent=True) or {}
        installation = installation_service.schedule_removal(
            g.current_user.id, installation_id, data.get("removal_date")
        )
        return jsonify({"installation": installation.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, ServiceRequestError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to schedule removal")
        return jsonify({"error": "Internal server error"}), 500


@installations_bp.post("/installations/<int:installation_id>/add-rider")
@require_auth
def add_rider_route(installation_id: int):
    """Body: {"rider_type" | "rider_id", "custom_value"?, "is_rental"?, "customer_rider_id"?}"""
    try:
        rider = installation_service.add_rider(
            g.current_user.id, installation_id, request.get_json(silent=True) or {}
        )
        return jsonify({"rider": rider.to_dict()}), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, ServiceRequestError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to add rider")
        return jsonify({"error": "Internal server error"}), 500


@installations_bp.post("/installations/<int:installation_id>/service-request")
@require_auth
def create_service_request_route(installation_id: int):
    """Body: {"type": removal|service|repair|replacement, "description"?, "requested_date"?, "notes"?}"""
    try:
        service_request = installation_service.create_service_request(
            g.current_user.id, installation_id, request.get_json(silent=True) or {}
        )
        return jsonify({"service_request": service_request.to_dict()}), 201

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except (ValidationError, ServiceRequestError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create service request")
        return jsonify({"error": "Internal server error"}), 500


@installations_bp.get("/service-requests")
@require_auth
def list_service_requests_route():
    requests_ = installation_service.list_service_requests(
        user_id=g.current_user.id,
        status=request.args.get("status") or None,
    )
    return jsonify({"service_requests": [r.to_dict() for r in requests_]})
