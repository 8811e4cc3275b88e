from __future__ import annotations

from ..extensions import db
from pinkpost.money import money_str
from pinkpost.time_utils import to_utc_z, to_iso_date


class Order(db.Model):
    """
    Installation order placed by a customer.

    Money columns are decimal dollars. The total identity is
    total = max(0, subtotal - discount) + fuel_surcharge + no_post_surcharge
            + expedite_fee + tax
    and is established once by the pricing calculator.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_status_created", "user_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable order number (e.g., "PP-20260105-3FA9C1")
    order_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    post_type_id = db.Column(db.Integer, db.ForeignKey("post_types.id"), nullable=True)
    promo_code_id = db.Column(db.Integer, db.ForeignKey("promo_codes.id"), nullable=True)

    # Lifecycle
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    # Property
    property_type = db.Column(db.String(32), nullable=False)
    property_address = db.Column(db.String(255), nullable=False)
    property_city = db.Column(db.String(128), nullable=False)
    property_state = db.Column(db.String(8), nullable=False)
    property_zip = db.Column(db.String(16), nullable=False)
    installation_location = db.Column(db.String(255), nullable=True)
    property_notes = db.Column(db.Text, nullable=True)

    # Scheduling
    requested_date = db.Column(db.Date, nullable=True)
    scheduled_date = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_date = db.Column(db.DateTime(timezone=True), nullable=True)
    is_expedited = db.Column(db.Boolean, nullable=False, default=False)

    # Pricing
    subtotal = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    fuel_surcharge = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    no_post_surcharge = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    expedite_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    tax_method = db.Column(db.String(16), nullable=False, default="fallback")  # stripe_tax, fallback
    tax_rate = db.Column(db.Numeric(8, 4), nullable=True)

    # Payment
    payment_intent_id = db.Column(db.String(64), nullable=True, index=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)

    user = db.relationship("User", backref=db.backref("orders", lazy=True))
    post_type = db.relationship("PostType")
    promo_code = db.relationship("PromoCode")
    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "user_id": self.user_id,
            "post_type_id": self.post_type_id,
            "promo_code_id": self.promo_code_id,
            "promo_code": self.promo_code.code if self.promo_code else None,
            "status": self.status,
            "payment_status": self.payment_status,
            "property_type": self.property_type,
            "property_address": self.property_address,
            "property_city": self.property_city,
            "property_state": self.property_state,
            "property_zip": self.property_zip,
            "installation_location": self.installation_location,
            "property_notes": self.property_notes,
            "requested_date": to_iso_date(self.requested_date),
            "scheduled_date": to_utc_z(self.scheduled_date),
            "completed_date": to_utc_z(self.completed_date),
            "is_expedited": self.is_expedited,
            "subtotal": money_str(self.subtotal),
            "discount": money_str(self.discount),
            "fuel_surcharge": money_str(self.fuel_surcharge),
            "no_post_surcharge": money_str(self.no_post_surcharge),
            "expedite_fee": money_str(self.expedite_fee),
            "tax": money_str(self.tax),
            "total": money_str(self.total),
            "tax_method": self.tax_method,
            "tax_rate": str(self.tax_rate) if self.tax_rate is not None else None,
            "payment_intent_id": self.payment_intent_id,
            "paid_at": to_utc_z(self.paid_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    """One cart line on an order."""
    __tablename__ = "order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    item_type = db.Column(db.String(16), nullable=False)  # post, sign, rider, lockbox, brochure_box
    item_category = db.Column(db.String(16), nullable=True)  # storage, owned, rental, purchase, install, new
    description = db.Column(db.String(255), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    # Storage references
    customer_sign_id = db.Column(db.Integer, db.ForeignKey("customer_signs.id"), nullable=True)
    customer_rider_id = db.Column(db.Integer, db.ForeignKey("customer_riders.id"), nullable=True)
    customer_lockbox_id = db.Column(db.Integer, db.ForeignKey("customer_lockboxes.id"), nullable=True)
    customer_brochure_box_id = db.Column(db.Integer, db.ForeignKey("customer_brochure_boxes.id"), nullable=True)

    # Catalog references
    rider_id = db.Column(db.Integer, db.ForeignKey("rider_catalog.id"), nullable=True)
    lockbox_type_id = db.Column(db.Integer, db.ForeignKey("lockbox_types.id"), nullable=True)

    lockbox_code = db.Column(db.String(64), nullable=True)
    custom_value = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "item_type": self.item_type,
            "item_category": self.item_category,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": money_str(self.unit_price),
            "total_price": money_str(self.total_price),
            "customer_sign_id": self.customer_sign_id,
            "customer_rider_id": self.customer_rider_id,
            "customer_lockbox_id": self.customer_lockbox_id,
            "customer_brochure_box_id": self.customer_brochure_box_id,
            "rider_id": self.rider_id,
            "lockbox_type_id": self.lockbox_type_id,
            "lockbox_code": self.lockbox_code,
            "custom_value": self.custom_value,
        }
