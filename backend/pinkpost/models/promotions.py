from __future__ import annotations

from ..extensions import db
from pinkpost.money import money_str
from pinkpost.time_utils import to_utc_z


class PromoCode(db.Model):
    """
    Checkout discount codes.

    discount_type is "percentage" (discount_value is a percent, e.g. 15)
    or "fixed" (discount_value is dollars). Codes are stored upper-cased.
    """
    __tablename__ = "promo_codes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.String(255), nullable=True)

    discount_type = db.Column(db.String(16), nullable=False)  # percentage, fixed
    discount_value = db.Column(db.Numeric(10, 2), nullable=False)

    min_order_amount = db.Column(db.Numeric(10, 2), nullable=True)
    max_uses = db.Column(db.Integer, nullable=True)
    current_uses = db.Column(db.Integer, nullable=False, default=0)

    starts_at = db.Column(db.DateTime(timezone=True), nullable=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": money_str(self.discount_value),
            "min_order_amount": money_str(self.min_order_amount),
            "max_uses": self.max_uses,
            "current_uses": self.current_uses,
            "starts_at": to_utc_z(self.starts_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PromoCodeUsage(db.Model):
    """
    One row per redemption on a submitted order.

    Durable evidence of use; current_uses on PromoCode is the fast counter.
    """
    __tablename__ = "promo_code_usages"
    __table_args__ = (
        db.Index("ix_promo_code_usages_code_user", "promo_code_id", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    promo_code_id = db.Column(db.Integer, db.ForeignKey("promo_codes.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)
    discount_amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    promo_code = db.relationship("PromoCode", backref=db.backref("usages", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "promo_code_id": self.promo_code_id,
            "user_id": self.user_id,
            "order_id": self.order_id,
            "discount_amount": money_str(self.discount_amount),
            "used_at": to_utc_z(self.used_at),
        }
