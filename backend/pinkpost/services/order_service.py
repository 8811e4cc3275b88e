# Overview: Order checkout, listing, customer edits and cancellation.

"""
Order Service

Checkout sequence (create_order):
1. Validate the payload and resolve catalog prices. Nothing external has
   been called if this raises.
2. Look up the promo code leniently (a bad code never blocks checkout).
3. Price the cart (Stripe Tax with fallback).
4. Ensure a Stripe customer and create the PaymentIntent. payment_status
   mirrors the intent (an unconfirmed intent is "pending"). A Stripe failure
   leaves the order pending for an admin to charge later.
5. Write Order + OrderItems in one transaction.
6. Record the promo redemption and, when the card was charged, send the
   confirmation and admin emails (best-effort).
"""

from __future__ import annotations

import dataclasses
import logging
import secrets
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db, gateway
from ..models import (
    CustomerBrochureBox,
    CustomerLockbox,
    CustomerRider,
    CustomerSign,
    LockboxType,
    Order,
    OrderItem,
    PostType,
    RiderCatalog,
    User,
)
from . import email_service, lifecycle_service, payment_service, promotions_service
from .concurrency import run_with_retry
from .gateway import GatewayError
from .pricing_service import CartItem, PricedOrder, PricingConfig, cart_subtotal, price_cart
from .tax_service import build_tax_address, make_fallback_resolver, make_tax_resolver
from pinkpost.money import ZERO, to_money
from pinkpost.time_utils import utcnow
from pinkpost.validation import (
    ITEM_CATEGORIES,
    ITEM_TYPES,
    PROPERTY_TYPES,
    NotFoundError,
    ValidationError,
    coerce_date,
    coerce_int,
    coerce_money,
    require_json_object,
)

logger = logging.getLogger(__name__)

MAX_ITEMS_PER_ORDER = 50

# item_type -> (storage model, payload key)
STORAGE_KEYS = {
    "sign": (CustomerSign, "customer_sign_id"),
    "rider": (CustomerRider, "customer_rider_id"),
    "lockbox": (CustomerLockbox, "customer_lockbox_id"),
    "brochure_box": (CustomerBrochureBox, "customer_brochure_box_id"),
}


class OrderError(ValueError):
    """Business-rule conflict on an existing order (edit/cancel)."""


@dataclass
class OrderLine:
    """A validated cart line with its server-resolved unit price."""
    item_type: str
    item_category: str | None
    description: str | None
    quantity: int
    unit_price: Decimal
    customer_sign_id: int | None = None
    customer_rider_id: int | None = None
    customer_lockbox_id: int | None = None
    customer_brochure_box_id: int | None = None
    rider_id: int | None = None
    lockbox_type_id: int | None = None
    lockbox_code: str | None = None
    custom_value: str | None = None

    def to_cart_item(self) -> CartItem:
        return CartItem(
            item_type=self.item_type,
            unit_price=self.unit_price,
            quantity=self.quantity,
            description=self.description,
        )

    def to_model(self) -> OrderItem:
        fields = dataclasses.asdict(self)
        return OrderItem(total_price=to_money(self.unit_price * self.quantity), **fields)


def pricing_config() -> PricingConfig:
    return PricingConfig.from_mapping(current_app.config)


def generate_order_number() -> str:
    """PP-YYYYMMDD-XXXXXX"""
    return f"PP-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


# =============================================================================
# PAYLOAD PARSING
# =============================================================================

def _optional_id(raw: dict, key: str) -> int | None:
    value = raw.get(key)
    if value in (None, ""):
        return None
    return coerce_int(key, value)


def _optional_text(raw: dict, key: str, max_length: int = 255) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    value = str(value).strip()
    if len(value) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return value or None


def _resolve_post_type(post_type_id: int | None) -> PostType | None:
    if post_type_id is None:
        return None
    post_type = db.session.get(PostType, post_type_id)
    if post_type is None or not post_type.is_active:
        raise ValidationError("Unknown post type")
    return post_type


def _parse_line(user_id: int, raw, post_type: PostType | None, index: int) -> OrderLine:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{index}] must be an object")

    item_type = raw.get("item_type")
    if item_type not in ITEM_TYPES:
        raise ValidationError(f"items[{index}]: unknown item type {item_type!r}")

    item_category = raw.get("item_category") or None
    if item_category is not None and item_category not in ITEM_CATEGORIES:
        raise ValidationError(f"items[{index}]: unknown item category {item_category!r}")

    quantity = coerce_int("quantity", raw.get("quantity", 1))
    if quantity < 1:
        raise ValidationError(f"items[{index}]: quantity must be at least 1")

    line = OrderLine(
        item_type=item_type,
        item_category=item_category,
        description=_optional_text(raw, "description"),
        quantity=quantity,
        unit_price=coerce_money("unit_price", raw.get("unit_price", 0)),
        rider_id=_optional_id(raw, "rider_id"),
        lockbox_type_id=_optional_id(raw, "lockbox_type_id"),
        lockbox_code=_optional_text(raw, "lockbox_code", 64),
        custom_value=_optional_text(raw, "custom_value"),
    )

    # Storage references must belong to the ordering customer
    for ref_type, (model, key) in STORAGE_KEYS.items():
        ref_id = _optional_id(raw, key)
        if ref_id is None:
            continue
        if ref_type != item_type:
            raise ValidationError(f"items[{index}]: {key} is not valid on a {item_type} item")
        record = db.session.get(model, ref_id)
        if record is None or record.user_id != user_id:
            raise ValidationError(f"items[{index}]: stored {item_type.replace('_', ' ')} not found")
        setattr(line, key, ref_id)

    # Catalog prices win over submitted prices
    if item_type == "post":
        if post_type is None:
            raise ValidationError("post_type_id is required for a post item")
        line.unit_price = to_money(post_type.price)
        line.description = line.description or post_type.name
    elif item_type == "rider" and line.rider_id is not None:
        rider = db.session.get(RiderCatalog, line.rider_id)
        if rider is None or not rider.is_active:
            raise ValidationError(f"items[{index}]: unknown rider")
        if item_category == "rental":
            line.unit_price = to_money(rider.rental_price)
        line.description = line.description or rider.name
    elif item_type == "lockbox" and line.lockbox_type_id is not None:
        lockbox_type = db.session.get(LockboxType, line.lockbox_type_id)
        if lockbox_type is None or not lockbox_type.is_active:
            raise ValidationError(f"items[{index}]: unknown lockbox type")
        if item_category == "rental":
            if not lockbox_type.is_rentable or lockbox_type.rental_price is None:
                raise ValidationError(f"items[{index}]: {lockbox_type.name} is not available for rental")
            line.unit_price = to_money(lockbox_type.rental_price)
        else:
            line.unit_price = to_money(lockbox_type.install_fee)
        line.description = line.description or lockbox_type.name

    return line


def parse_order_lines(user_id: int, raw_items, post_type: PostType | None) -> list[OrderLine]:
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")
    if len(raw_items) > MAX_ITEMS_PER_ORDER:
        raise ValidationError(f"An order cannot have more than {MAX_ITEMS_PER_ORDER} items")
    return [_parse_line(user_id, raw, post_type, i) for i, raw in enumerate(raw_items)]


def _parse_property(payload: dict) -> dict:
    property_type = payload.get("property_type")
    if property_type not in PROPERTY_TYPES:
        raise ValidationError(f"property_type must be one of: {', '.join(PROPERTY_TYPES)}")

    fields = {"property_type": property_type}
    for key, limit in (("property_address", 255), ("property_city", 128), ("property_zip", 16)):
        value = _optional_text(payload, key, limit)
        if not value:
            raise ValidationError(f"{key} is required")
        fields[key] = value

    fields["property_state"] = (_optional_text(payload, "property_state", 8) or "").upper() or None
    fields["installation_location"] = _optional_text(payload, "installation_location")
    fields["property_notes"] = _optional_text(payload, "property_notes", 2000) or _optional_text(
        payload, "installation_notes", 2000
    )
    requested = payload.get("requested_date")
    fields["requested_date"] = coerce_date("requested_date", requested) if requested else None
    return fields


# =============================================================================
# CHECKOUT
# =============================================================================

def _price(lines: list[OrderLine], *, is_expedited: bool, discount, config: PricingConfig, resolver) -> PricedOrder:
    return price_cart(
        [line.to_cart_item() for line in lines],
        is_expedited=is_expedited,
        discount=discount,
        config=config,
        tax_resolver=resolver,
    )


def _apply_pricing(order: Order, priced: PricedOrder) -> None:
    order.subtotal = priced.subtotal
    order.discount = priced.discount
    order.fuel_surcharge = priced.fuel_surcharge
    order.no_post_surcharge = priced.no_post_surcharge
    order.expedite_fee = priced.expedite_fee
    order.tax = priced.tax
    order.tax_method = priced.tax_method
    order.tax_rate = priced.tax_rate
    order.total = priced.total


def _start_payment(user: User, order_number: str, total, payment_method_id: str | None):
    """Returns (payment_status, payment_intent_id, client_secret)."""
    if to_money(total) <= 0:
        return "succeeded", None, None
    try:
        customer_id = payment_service.ensure_stripe_customer(user)
        intent = gateway.create_payment_intent(
            total,
            customer_id=customer_id,
            payment_method_id=payment_method_id,
            metadata={"order_number": order_number, "user_id": str(user.id)},
        )
    except GatewayError as exc:
        logger.warning("Payment setup failed for order %s, saving as pending: %s", order_number, exc)
        return "pending", None, None

    return payment_service.payment_status_for_intent(intent.status), intent.id, intent.client_secret


def create_order(user: User, payload: dict) -> tuple[Order, str | None]:
    """
    Returns (order, payment client_secret for the frontend or None).

    Raises:
        ValidationError: malformed cart, unknown post/property/item type
    """
    payload = require_json_object(payload)
    config = pricing_config()

    property_fields = _parse_property(payload)
    property_fields["property_state"] = property_fields["property_state"] or config.default_state

    post_type = _resolve_post_type(_optional_id(payload, "post_type_id"))
    lines = parse_order_lines(user.id, payload.get("items") or [], post_type)
    if post_type is not None and not any(line.item_type == "post" for line in lines):
        lines.insert(0, _parse_line(user.id, {"item_type": "post", "item_category": "install"}, post_type, 0))
    if not lines:
        raise ValidationError("Order must contain at least one item")

    is_expedited = bool(payload.get("is_expedited"))
    payment_method_id = _optional_text(payload, "payment_method_id", 64)

    subtotal = cart_subtotal(line.to_cart_item() for line in lines)
    promo, discount = promotions_service.resolve_checkout_discount(payload.get("promo_code"), subtotal)

    address = build_tax_address(
        property_fields["property_address"],
        property_fields["property_city"],
        property_fields["property_state"],
        property_fields["property_zip"],
        config=config,
    )
    calculator = gateway.calculate_tax if gateway.is_configured else None
    priced = _price(
        lines,
        is_expedited=is_expedited,
        discount=discount,
        config=config,
        resolver=make_tax_resolver(address, config=config, calculator=calculator),
    )

    order_number = generate_order_number()
    payment_status, payment_intent_id, client_secret = _start_payment(
        user, order_number, priced.total, payment_method_id
    )

    def _persist() -> Order:
        order = Order(
            order_number=order_number,
            user_id=user.id,
            post_type_id=post_type.id if post_type else None,
            promo_code_id=promo.id if promo else None,
            status="pending",
            payment_status=payment_status,
            payment_intent_id=payment_intent_id,
            paid_at=utcnow() if payment_status == "succeeded" else None,
            is_expedited=is_expedited,
            **property_fields,
        )
        _apply_pricing(order, priced)
        order.items = [line.to_model() for line in lines]
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(_persist)
    logger.info("Created order %s (total=%s, payment=%s)", order.order_number, order.total, order.payment_status)

    if promo is not None:
        try:
            promotions_service.record_promo_usage(promo.id, user.id, order.id, priced.discount)
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Could not record promo usage for order %s", order.order_number)

    if order.payment_status == "succeeded":
        email_service.send_order_confirmation(order)
        email_service.send_admin_order_notification(order)

    return order, client_secret


# =============================================================================
# READS
# =============================================================================

def list_orders(
    user_id: int | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Order], int]:
    q = db.session.query(Order)
    if user_id is not None:
        q = q.filter(Order.user_id == user_id)
    if status:
        lifecycle_service.validate_status(status)
        q = q.filter(Order.status == status)
    total = q.count()
    orders = q.order_by(Order.created_at.desc(), Order.id.desc()).offset(offset).limit(limit).all()
    return orders, total


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_order_for_user(user: User, order_id: int) -> Order:
    """Customers see only their own orders; others' orders are reported missing."""
    order = get_order(order_id)
    if order.user_id != user.id and not user.is_admin:
        raise NotFoundError("Order not found")
    return order


# =============================================================================
# EDIT / CANCEL
# =============================================================================

def edit_order(user: User, order_id: int, payload: dict) -> Order:
    """
    Replace every non-post line and reprice.

    The post line, fuel surcharge, expedite fee and no-post surcharge stay
    as charged at checkout. The attached promo is re-applied to the new
    subtotal while it is still active. Tax is recomputed at the fallback
    rate.
    """
    payload = require_json_object(payload)
    order = db.session.query(Order).filter_by(id=order_id, user_id=user.id).first()
    if order is None:
        raise NotFoundError("Order not found")
    if not lifecycle_service.can_edit_order(order):
        raise OrderError("Cannot edit completed or cancelled orders")

    new_lines = parse_order_lines(user.id, payload.get("items") or [], None)
    if any(line.item_type == "post" for line in new_lines):
        raise ValidationError("The post on an existing order cannot be changed")

    kept_posts = [item for item in order.items if item.item_type == "post"]
    cart = [
        CartItem(item_type=item.item_type, unit_price=to_money(item.unit_price), quantity=item.quantity)
        for item in kept_posts
    ] + [line.to_cart_item() for line in new_lines]
    if not cart:
        raise ValidationError("Order must contain at least one item")

    subtotal = cart_subtotal(cart)
    discount = ZERO
    if order.promo_code is not None and order.promo_code.is_active:
        discount = promotions_service.compute_discount(order.promo_code, subtotal)

    config = dataclasses.replace(
        pricing_config(),
        fuel_surcharge=to_money(order.fuel_surcharge),
        expedite_fee=to_money(order.expedite_fee),
        no_post_surcharge=to_money(order.no_post_surcharge),
    )
    priced = price_cart(
        cart,
        is_expedited=order.is_expedited,
        discount=discount,
        config=config,
        tax_resolver=make_fallback_resolver(config),
    )

    order.items = kept_posts + [line.to_model() for line in new_lines]
    _apply_pricing(order, priced)
    if "installation_notes" in payload or "property_notes" in payload:
        order.property_notes = _optional_text(payload, "property_notes", 2000) or _optional_text(
            payload, "installation_notes", 2000
        )

    db.session.commit()
    logger.info("Edited order %s (total=%s)", order.order_number, order.total)
    return order


def cancel_order(user: User, order_id: int) -> Order:
    """
    Owner or admin; only pending/confirmed orders. Storage and
    installations are never touched by a cancellation.
    """
    order = get_order_for_user(user, order_id)
    if not lifecycle_service.can_cancel_order(order):
        raise OrderError(f"Cannot cancel an order that is {order.status.replace('_', ' ')}")
    order, _ = lifecycle_service.transition_order_status(order.id, "cancelled")
    return order
