# Overview: Flask API route for a customer's own storage inventory.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..services import storage_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    in_storage_only = request.args.get("in_storage", "false").lower() == "true"
    storage = storage_service.list_storage(g.current_user.id, in_storage_only=in_storage_only)
    return jsonify({kind: [item.to_dict() for item in items] for kind, items in storage.items()})
