# Overview: Saved cards, completion-time payment capture, and admin manual charges via Stripe.

"""
Payment Service

Two charging paths exist:

- capture_order_payment(): runs as a post-commit task when an order is
  completed. It never raises. An order that still holds its checkout
  PaymentIntent is reconciled against that intent first: a settled intent
  marks the order paid, an in-flight one is left "processing" for the
  webhook, and an abandoned one is cancelled before the default card is
  charged. Every charge attempt ends in "succeeded" or "failed".
- charge_order(): admin-initiated retry with an explicit card. Failures are
  reported back to the admin as PaymentError.

Webhook deliveries settle orders by payment_intent_id (webhook_service).
"""

from __future__ import annotations

import logging

from ..extensions import db, gateway
from ..models import Order, PaymentMethod, User
from . import email_service
from .gateway import GatewayError
from pinkpost.money import to_cents, to_money
from pinkpost.time_utils import utcnow
from pinkpost.validation import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = ("pending", "processing", "succeeded", "failed", "refunded")

# Stripe PaymentIntent.status -> Order.payment_status
_INTENT_STATUS_MAP = {
    "succeeded": "succeeded",
    "processing": "processing",
    "requires_action": "processing",
    "requires_confirmation": "processing",
    "requires_capture": "processing",
    "requires_payment_method": "pending",
    "canceled": "failed",
}

# Money may still move on these without another charge.
_IN_FLIGHT_INTENT_STATUSES = ("processing", "requires_capture")


class PaymentError(ValueError):
    """Charge rejected; the message is shown to the admin."""

    def __init__(self, message: str, *, requires_action: bool = False, client_secret: str | None = None):
        super().__init__(message)
        self.requires_action = requires_action
        self.client_secret = client_secret


def payment_status_for_intent(intent_status: str | None) -> str:
    return _INTENT_STATUS_MAP.get(intent_status or "", "pending")


# =============================================================================
# STRIPE CUSTOMER
# =============================================================================

def ensure_stripe_customer(user: User) -> str:
    """
    Return the user's Stripe customer id, creating the customer on first use.

    Raises:
        GatewayError: Stripe unavailable or not configured
    """
    if user.stripe_customer_id:
        return user.stripe_customer_id
    customer_id = gateway.create_customer(user.email, user.full_name)
    user.stripe_customer_id = customer_id
    db.session.commit()
    return customer_id


def create_setup_intent(user: User) -> str:
    """
    Client secret the frontend uses to collect and confirm a new card.

    Raises:
        PaymentError: Stripe unavailable or rejected the request
    """
    try:
        customer_id = ensure_stripe_customer(user)
        return gateway.create_setup_intent(customer_id)
    except GatewayError as exc:
        raise PaymentError(str(exc)) from exc


# =============================================================================
# SAVED PAYMENT METHODS
# =============================================================================

def list_payment_methods(user_id: int) -> list[PaymentMethod]:
    return (
        db.session.query(PaymentMethod)
        .filter_by(user_id=user_id)
        .order_by(PaymentMethod.is_default.desc(), PaymentMethod.created_at.desc(), PaymentMethod.id.desc())
        .all()
    )


def get_default_payment_method(user_id: int) -> PaymentMethod | None:
    return db.session.query(PaymentMethod).filter_by(user_id=user_id, is_default=True).first()


def add_payment_method(user: User, stripe_payment_method_id: str, make_default: bool = False) -> PaymentMethod:
    """
    Attach a card confirmed by the frontend SetupIntent to the customer.

    The first saved card always becomes the default.

    Raises:
        ValidationError: missing id or card already saved
        PaymentError: Stripe rejected the attach
    """
    stripe_payment_method_id = (stripe_payment_method_id or "").strip()
    if not stripe_payment_method_id:
        raise ValidationError("payment_method_id is required")

    existing = db.session.query(PaymentMethod).filter_by(stripe_payment_method_id=stripe_payment_method_id).first()
    if existing:
        raise ValidationError("This card is already saved")

    try:
        customer_id = ensure_stripe_customer(user)
        card = gateway.attach_payment_method(stripe_payment_method_id, customer_id)
    except GatewayError as exc:
        raise PaymentError(str(exc)) from exc

    is_first = db.session.query(PaymentMethod).filter_by(user_id=user.id).count() == 0
    is_default = is_first or make_default

    if is_default:
        db.session.query(PaymentMethod).filter_by(user_id=user.id, is_default=True).update(
            {"is_default": False}, synchronize_session=False
        )

    method = PaymentMethod(
        user_id=user.id,
        stripe_payment_method_id=card.id,
        brand=card.brand,
        last4=card.last4,
        exp_month=card.exp_month,
        exp_year=card.exp_year,
        is_default=is_default,
    )
    db.session.add(method)
    db.session.commit()

    if is_default:
        _sync_default_to_stripe(customer_id, card.id)

    return method


def _sync_default_to_stripe(customer_id: str | None, stripe_payment_method_id: str) -> None:
    if not customer_id:
        return
    try:
        gateway.set_default_payment_method(customer_id, stripe_payment_method_id)
    except GatewayError as exc:
        logger.warning("Could not sync default payment method to Stripe: %s", exc)


def _get_owned_method(user_id: int, method_id: int) -> PaymentMethod:
    method = db.session.query(PaymentMethod).filter_by(id=method_id, user_id=user_id).first()
    if method is None:
        raise NotFoundError("Payment method not found")
    return method


def set_default_payment_method(user: User, method_id: int) -> PaymentMethod:
    method = _get_owned_method(user.id, method_id)
    db.session.query(PaymentMethod).filter(
        PaymentMethod.user_id == user.id,
        PaymentMethod.id != method.id,
    ).update({"is_default": False}, synchronize_session=False)
    method.is_default = True
    db.session.commit()

    _sync_default_to_stripe(user.stripe_customer_id, method.stripe_payment_method_id)
    return method


def delete_payment_method(user: User, method_id: int) -> None:
    """Detach from Stripe, delete, and promote the newest remaining card if needed."""
    method = _get_owned_method(user.id, method_id)
    was_default = method.is_default

    try:
        gateway.detach_payment_method(method.stripe_payment_method_id)
    except GatewayError as exc:
        logger.warning("Stripe detach failed for %s, deleting locally: %s", method.stripe_payment_method_id, exc)

    db.session.delete(method)
    db.session.commit()

    if was_default:
        replacement = (
            db.session.query(PaymentMethod)
            .filter_by(user_id=user.id)
            .order_by(PaymentMethod.created_at.desc(), PaymentMethod.id.desc())
            .first()
        )
        if replacement is not None:
            set_default_payment_method(user, replacement.id)


# =============================================================================
# CAPTURE ON COMPLETION
# =============================================================================

def _mark_paid(order: Order, payment_intent_id: str | None) -> None:
    order.payment_status = "succeeded"
    order.payment_intent_id = payment_intent_id or order.payment_intent_id
    order.paid_at = utcnow()


def _reconcile_open_intent(order: Order) -> bool:
    """
    Settle the order against its checkout PaymentIntent.

    Returns True when the order must not be charged again. An intent that
    never collected money is cancelled and unlinked so the default card can
    be charged.
    """
    try:
        intent = gateway.retrieve_payment_intent(order.payment_intent_id)
    except GatewayError as exc:
        logger.warning("Could not look up PaymentIntent for order %s: %s", order.order_number, exc)
        order.payment_status = "failed"
        return True

    if intent.status == "succeeded":
        _mark_paid(order, intent.id)
        return True
    if intent.status in _IN_FLIGHT_INTENT_STATUSES:
        logger.info(
            "Order %s completed with PaymentIntent %s still %s; waiting for webhook",
            order.order_number, intent.id, intent.status,
        )
        order.payment_status = "processing"
        return True

    if intent.status != "canceled":
        try:
            gateway.cancel_payment_intent(intent.id)
        except GatewayError as exc:
            logger.warning("Could not cancel PaymentIntent for order %s: %s", order.order_number, exc)
            order.payment_status = "failed"
            return True
    order.payment_intent_id = None
    return False


def capture_order_payment(order: Order) -> str:
    """
    Charge the customer's default card for order.total.

    Returns the resulting payment_status. Already-paid orders are left
    alone. A zero total is marked paid without calling Stripe.
    """
    if order.payment_status == "succeeded":
        return order.payment_status

    if to_money(order.total) <= 0:
        _mark_paid(order, None)
        db.session.commit()
        return order.payment_status

    if order.payment_intent_id and _reconcile_open_intent(order):
        db.session.commit()
        return order.payment_status

    user = order.user
    method = get_default_payment_method(order.user_id)

    if not user or not user.stripe_customer_id or method is None:
        logger.warning("Order %s completed without a chargeable default card", order.order_number)
        order.payment_status = "failed"
        db.session.commit()
        return order.payment_status

    try:
        intent = gateway.charge_payment_method(
            user.stripe_customer_id,
            method.stripe_payment_method_id,
            to_cents(order.total),
            f"Pink Post order {order.order_number}",
            {"order_id": str(order.id), "order_number": order.order_number},
        )
    except Exception as exc:  # completion must end in a terminal payment state
        logger.warning("Payment capture failed for order %s: %s", order.order_number, exc)
        intent = None

    if intent is not None and intent.status == "succeeded":
        _mark_paid(order, intent.id)
    else:
        if intent is not None:
            logger.warning("Payment capture for order %s ended in status %s", order.order_number, intent.status)
        order.payment_status = "failed"

    db.session.commit()
    return order.payment_status


# =============================================================================
# ADMIN MANUAL CHARGE
# =============================================================================

def charge_order(order_id: int, stripe_payment_method_id: str | None) -> Order:
    """
    Raises:
        ValidationError: no payment method given
        NotFoundError: order missing
        PaymentError: already paid, customer has no Stripe account, or Stripe declined
    """
    if not stripe_payment_method_id:
        raise ValidationError("Payment method ID is required")

    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    if order.payment_status == "succeeded":
        raise PaymentError("Order already paid")
    if not order.user or not order.user.stripe_customer_id:
        raise PaymentError("Customer has no Stripe account")

    try:
        if order.payment_intent_id:
            intent = gateway.confirm_payment_intent(order.payment_intent_id, stripe_payment_method_id)
        else:
            intent = gateway.create_payment_intent(
                order.total,
                customer_id=order.user.stripe_customer_id,
                payment_method_id=stripe_payment_method_id,
                metadata={"order_id": str(order.id), "order_number": order.order_number},
            )
    except GatewayError as exc:
        raise PaymentError(str(exc) or "Payment failed") from exc

    if intent.status == "requires_action":
        # keep the intent so the webhook can settle it after authentication
        order.payment_intent_id = intent.id
        order.payment_status = "processing"
        db.session.commit()
        raise PaymentError(
            "Payment requires additional authentication",
            requires_action=True,
            client_secret=intent.client_secret,
        )
    if intent.status != "succeeded":
        raise PaymentError(f"Payment failed with status: {intent.status}")

    _mark_paid(order, intent.id)
    db.session.commit()

    email_service.send_order_confirmation(order)
    email_service.send_admin_order_notification(order)
    return order
