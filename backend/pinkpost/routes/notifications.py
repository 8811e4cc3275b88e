# Overview: Flask API routes for in-app notifications.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..services import notification_service
from ..validation import NotFoundError


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    unread_only = request.args.get("unread_only", "false").lower() == "true"
    limit = max(1, min(request.args.get("limit", default=50, type=int), 100))
    notifications = notification_service.list_notifications(g.current_user.id, unread_only=unread_only, limit=limit)
    return jsonify({
        "notifications": [n.to_dict() for n in notifications],
        "unread_count": notification_service.unread_count(g.current_user.id),
    })


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
def mark_read_route(notification_id: int):
    try:
        notification = notification_service.mark_read(g.current_user.id, notification_id)
        return jsonify({"notification": notification.to_dict()})

    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404


@notifications_bp.post("/read-all")
@require_auth
def mark_all_read_route():
    updated = notification_service.mark_all_read(g.current_user.id)
    return jsonify({"updated": updated})
