from __future__ import annotations

from ..extensions import db
from pinkpost.time_utils import to_utc_z


class PaymentMethod(db.Model):
    """
    A card saved on the customer's Stripe customer.

    Only display details are stored; the card itself stays with Stripe.
    At most one row per user has is_default set.
    """
    __tablename__ = "payment_methods"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    stripe_payment_method_id = db.Column(db.String(64), nullable=False, unique=True)

    brand = db.Column(db.String(32), nullable=True)
    last4 = db.Column(db.String(4), nullable=True)
    exp_month = db.Column(db.Integer, nullable=True)
    exp_year = db.Column(db.Integer, nullable=True)

    is_default = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User", backref=db.backref("payment_methods", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "stripe_payment_method_id": self.stripe_payment_method_id,
            "brand": self.brand,
            "last4": self.last4,
            "exp_month": self.exp_month,
            "exp_year": self.exp_year,
            "is_default": self.is_default,
            "created_at": to_utc_z(self.created_at),
        }
