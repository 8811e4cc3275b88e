# Overview: Unauthenticated Stripe webhook endpoint; trust comes from the signature header.

from flask import Blueprint, request, jsonify, current_app

from ..extensions import gateway
from ..services import webhook_service
from ..services.gateway import GatewayError


webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/api/webhooks")


@webhooks_bp.post("/stripe")
def stripe_webhook_route():
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        return jsonify({"error": "Missing stripe-signature header"}), 400

    try:
        event = gateway.construct_webhook_event(request.get_data(), signature)
    except GatewayError as e:
        current_app.logger.warning("Rejected Stripe webhook: %s", e)
        return jsonify({"error": "Invalid signature"}), 400

    try:
        webhook_service.handle_stripe_event(event)
        return jsonify({"received": True})

    except Exception:
        current_app.logger.exception("Stripe webhook handler failed for %s", event.type)
        return jsonify({"error": "Webhook handler failed"}), 500
