# Overview: Settles orders from verified Stripe PaymentIntent webhook events.

"""
Stripe Webhook Service

Orders are matched by payment_intent_id. Events for unknown intents and
event types we do not act on are acknowledged and ignored, so Stripe stops
retrying them.

    payment_intent.succeeded       -> paid, confirmation + admin emails
    payment_intent.payment_failed  -> failed
    payment_intent.canceled        -> failed, order cancelled if still open

A succeeded order is never downgraded by a late failure event.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Order
from . import email_service, lifecycle_service
from .gateway import WebhookEvent
from pinkpost.time_utils import utcnow

logger = logging.getLogger(__name__)

HANDLED_EVENTS = (
    "payment_intent.succeeded",
    "payment_intent.payment_failed",
    "payment_intent.canceled",
)


def _order_for_intent(payment_intent_id: str | None) -> Order | None:
    if not payment_intent_id:
        return None
    return db.session.query(Order).filter_by(payment_intent_id=payment_intent_id).first()


def handle_stripe_event(event: WebhookEvent) -> Order | None:
    """
    Apply one webhook event. Returns the order it touched, if any.

    Email failures are logged by email_service and never fail the delivery.
    """
    if event.type not in HANDLED_EVENTS:
        logger.info("Ignoring Stripe event %s", event.type)
        return None

    order = _order_for_intent(event.object_id)
    if order is None:
        logger.warning("Stripe event %s for unknown PaymentIntent %s", event.type, event.object_id)
        return None

    if event.type == "payment_intent.succeeded":
        if order.payment_status == "succeeded":
            return order
        order.payment_status = "succeeded"
        order.paid_at = utcnow()
        db.session.commit()
        logger.info("Order %s paid via webhook", order.order_number)
        email_service.send_order_confirmation(order)
        email_service.send_admin_order_notification(order)
        return order

    if order.payment_status == "succeeded":
        logger.warning("Ignoring %s for already paid order %s", event.type, order.order_number)
        return order

    order.payment_status = "failed"
    db.session.commit()
    logger.info("Order %s payment failed via webhook (%s)", order.order_number, event.type)

    if event.type == "payment_intent.canceled" and order.status not in lifecycle_service.TERMINAL_STATUSES:
        order, _ = lifecycle_service.transition_order_status(order.id, "cancelled")
    return order
