from __future__ import annotations

from ..extensions import db
from pinkpost.time_utils import to_utc_z


class _StoredItemMixin:
    """
    Columns shared by every item we hold in the warehouse for a customer.

    in_storage flips to False when a completed order installs the item, and
    back to True when a removal brings it home.
    """
    id = db.Column(db.Integer, primary_key=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    in_storage = db.Column(db.Boolean, nullable=False, default=True, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    removed_from_storage_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "quantity": self.quantity,
            "in_storage": self.in_storage,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "removed_from_storage_at": to_utc_z(self.removed_from_storage_at),
        }


class CustomerSign(_StoredItemMixin, db.Model):
    __tablename__ = "customer_signs"
    __table_args__ = {"sqlite_autoincrement": True}

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    size = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("stored_signs", lazy=True))

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({"kind": "sign", "description": self.description, "size": self.size})
        return data


class CustomerRider(_StoredItemMixin, db.Model):
    __tablename__ = "customer_riders"
    __table_args__ = {"sqlite_autoincrement": True}

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    rider_id = db.Column(db.Integer, db.ForeignKey("rider_catalog.id"), nullable=False, index=True)

    user = db.relationship("User", backref=db.backref("stored_riders", lazy=True))
    rider = db.relationship("RiderCatalog")

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "kind": "rider",
            "rider_id": self.rider_id,
            "rider_name": self.rider.name if self.rider else None,
        })
        return data


class CustomerLockbox(_StoredItemMixin, db.Model):
    __tablename__ = "customer_lockboxes"
    __table_args__ = {"sqlite_autoincrement": True}

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    lockbox_type_id = db.Column(db.Integer, db.ForeignKey("lockbox_types.id"), nullable=False, index=True)
    code = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("stored_lockboxes", lazy=True))
    lockbox_type = db.relationship("LockboxType")

    def to_dict(self) -> dict:
        data = self._base_dict()
        data.update({
            "kind": "lockbox",
            "lockbox_type_id": self.lockbox_type_id,
            "lockbox_type_name": self.lockbox_type.name if self.lockbox_type else None,
            "code": self.code,
        })
        return data


class CustomerBrochureBox(_StoredItemMixin, db.Model):
    __tablename__ = "customer_brochure_boxes"
    __table_args__ = {"sqlite_autoincrement": True}

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    user = db.relationship("User", backref=db.backref("stored_brochure_boxes", lazy=True))

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["kind"] = "brochure_box"
        return data
