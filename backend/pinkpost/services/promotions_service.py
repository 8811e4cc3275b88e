# Overview: Promo code lookup, discount math, redemption counting and admin CRUD.

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import update

from ..extensions import db
from ..models import PromoCode, PromoCodeUsage
from pinkpost.money import CENT, ZERO, to_money
from pinkpost.time_utils import utcnow
from pinkpost.validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    validate_payload,
)

logger = logging.getLogger(__name__)

DISCOUNT_TYPES = ("percentage", "fixed")


class PromoCodeError(ValueError):
    """A code that cannot be applied; the message is shown to the customer."""


@dataclass(frozen=True)
class PromoValidation:
    promo: PromoCode
    discount: Decimal


PROMO_POLICY = ModelValidationPolicy(
    writable_fields={
        "code", "description", "discount_type", "discount_value", "min_order_amount",
        "max_uses", "starts_at", "expires_at", "is_active",
    },
    required_on_create={"code", "discount_type", "discount_value"},
)


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def find_promo_code(code: str | None) -> PromoCode | None:
    normalized = normalize_code(code)
    if not normalized:
        return None
    return db.session.query(PromoCode).filter_by(code=normalized).first()


def compute_discount(promo: PromoCode, subtotal) -> Decimal:
    """
    percentage: subtotal * value / 100, rounded half-up to the cent
    fixed: min(value, subtotal)
    """
    subtotal = to_money(subtotal)
    value = Decimal(promo.discount_value)
    if promo.discount_type == "percentage":
        return (subtotal * value / Decimal(100)).quantize(CENT, rounding=ROUND_HALF_UP)
    return to_money(min(value, subtotal))


def validate_promo_code(code: str | None, subtotal, now: datetime | None = None) -> PromoValidation:
    """
    Strict check used by the "apply code" action.

    Raises:
        PromoCodeError: with the reason the code cannot be used
    """
    if not normalize_code(code):
        raise PromoCodeError("Promo code is required")

    promo = find_promo_code(code)
    if promo is None:
        raise PromoCodeError("Invalid promo code")

    now = now or utcnow()
    subtotal = to_money(subtotal)

    if not promo.is_active:
        raise PromoCodeError("This promo code is no longer active")
    if promo.starts_at and now < promo.starts_at:
        raise PromoCodeError("This promo code is not yet active")
    if promo.expires_at and now > promo.expires_at:
        raise PromoCodeError("This promo code has expired")
    if promo.max_uses and promo.current_uses >= promo.max_uses:
        raise PromoCodeError("This promo code has reached its usage limit")
    if promo.min_order_amount and subtotal < to_money(promo.min_order_amount):
        raise PromoCodeError(
            f"Minimum order amount of ${to_money(promo.min_order_amount)} required for this promo code"
        )

    return PromoValidation(promo=promo, discount=compute_discount(promo, subtotal))


def resolve_checkout_discount(code: str | None, subtotal) -> tuple[PromoCode | None, Decimal]:
    """
    Lenient variant for order submission: a code that does not apply
    leaves the order undiscounted instead of failing checkout.
    """
    if not normalize_code(code):
        return None, ZERO
    try:
        result = validate_promo_code(code, subtotal)
    except PromoCodeError as exc:
        logger.info("Ignoring promo code %r at checkout: %s", normalize_code(code), exc)
        return None, ZERO
    return result.promo, result.discount


def record_promo_usage(promo_id: int, user_id: int, order_id: int | None, discount_amount) -> PromoCodeUsage:
    """
    Record one redemption and bump current_uses.

    The increment is a single conditional UPDATE so concurrent checkouts
    cannot push current_uses past max_uses. A submitted order is never
    rejected here: when the guard matches no row the usage row is still
    written and the overrun is logged for follow-up.
    """
    usage = PromoCodeUsage(
        promo_code_id=promo_id,
        user_id=user_id,
        order_id=order_id,
        discount_amount=to_money(discount_amount),
    )
    db.session.add(usage)

    result = db.session.execute(
        update(PromoCode)
        .where(PromoCode.id == promo_id)
        .where(db.or_(PromoCode.max_uses.is_(None), PromoCode.current_uses < PromoCode.max_uses))
        .values(current_uses=PromoCode.current_uses + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning(
            "Promo code %s redeemed on order %s after reaching max_uses; usage recorded without increment",
            promo_id,
            order_id,
        )

    db.session.commit()
    return usage


# =============================================================================
# ADMIN CRUD
# =============================================================================

def _enforce_promo_rules(promo: PromoCode) -> None:
    if promo.discount_type not in DISCOUNT_TYPES:
        raise ValidationError(f"discount_type must be one of: {', '.join(DISCOUNT_TYPES)}")
    value = Decimal(promo.discount_value)
    if value <= 0:
        raise ValidationError("discount_value must be > 0")
    if promo.discount_type == "percentage" and value > 100:
        raise ValidationError("percentage discount_value cannot exceed 100")
    if promo.max_uses is not None and promo.max_uses < 1:
        raise ValidationError("max_uses must be >= 1")
    if promo.starts_at and promo.expires_at and promo.expires_at <= promo.starts_at:
        raise ValidationError("expires_at must be after starts_at")


def list_promo_codes(active_only: bool = False) -> list[PromoCode]:
    q = db.session.query(PromoCode)
    if active_only:
        q = q.filter_by(is_active=True)
    return q.order_by(PromoCode.created_at.desc(), PromoCode.id.desc()).all()


def create_promo_code(data: dict) -> PromoCode:
    patch = validate_payload(model=PromoCode, payload=data, policy=PROMO_POLICY, partial=False)
    patch["code"] = normalize_code(patch["code"])

    if find_promo_code(patch["code"]):
        raise ValidationError(f"Promo code {patch['code']} already exists")

    promo = PromoCode(current_uses=0, **patch)
    if promo.is_active is None:
        promo.is_active = True
    _enforce_promo_rules(promo)

    db.session.add(promo)
    db.session.commit()
    return promo


def update_promo_code(promo_id: int, data: dict) -> PromoCode:
    promo = db.session.get(PromoCode, promo_id)
    if promo is None:
        raise NotFoundError("Promo code not found")

    patch = validate_payload(model=PromoCode, payload=data, policy=PROMO_POLICY, partial=True)
    if "code" in patch:
        patch["code"] = normalize_code(patch["code"])
        existing = find_promo_code(patch["code"])
        if existing and existing.id != promo.id:
            raise ValidationError(f"Promo code {patch['code']} already exists")

    for key, value in patch.items():
        setattr(promo, key, value)
    _enforce_promo_rules(promo)

    db.session.commit()
    return promo


def deactivate_promo_code(promo_id: int) -> PromoCode:
    promo = db.session.get(PromoCode, promo_id)
    if promo is None:
        raise NotFoundError("Promo code not found")
    promo.is_active = False
    db.session.commit()
    return promo
