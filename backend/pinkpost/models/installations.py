from __future__ import annotations

from ..extensions import db
from pinkpost.time_utils import to_utc_z


INSTALLATION_STATUSES = ("active", "removal_scheduled", "removed")
SERVICE_REQUEST_TYPES = ("removal", "service", "repair", "replacement")
SERVICE_REQUEST_STATUSES = ("pending", "acknowledged", "scheduled", "in_progress", "completed", "cancelled")


class Installation(db.Model):
    """
    A sign post standing at a property, created when its order completes.

    The address columns mirror the order at completion time; later order
    edits do not move a standing post.
    """
    __tablename__ = "installations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, unique=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    post_type_id = db.Column(db.Integer, db.ForeignKey("post_types.id"), nullable=True)
    customer_sign_id = db.Column(db.Integer, db.ForeignKey("customer_signs.id"), nullable=True)

    property_address = db.Column(db.String(255), nullable=False)
    property_city = db.Column(db.String(128), nullable=False)
    property_state = db.Column(db.String(8), nullable=False)
    property_zip = db.Column(db.String(16), nullable=False)
    installation_location = db.Column(db.String(255), nullable=True)

    status = db.Column(db.String(24), nullable=False, default="active", index=True)
    installed_at = db.Column(db.DateTime(timezone=True), nullable=False)
    removal_date = db.Column(db.DateTime(timezone=True), nullable=True)
    removed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("installation", uselist=False))
    user = db.relationship("User", backref=db.backref("installations", lazy=True))
    post_type = db.relationship("PostType")
    riders = db.relationship("InstallationRider", backref="installation", lazy=True, cascade="all, delete-orphan")
    lockboxes = db.relationship("InstallationLockbox", backref="installation", lazy=True, cascade="all, delete-orphan")

    def to_dict(self, include_children: bool = True) -> dict:
        data = {
            "id": self.id,
            "order_id": self.order_id,
            "order_number": self.order.order_number if self.order else None,
            "user_id": self.user_id,
            "post_type_id": self.post_type_id,
            "post_type_name": self.post_type.name if self.post_type else None,
            "customer_sign_id": self.customer_sign_id,
            "property_address": self.property_address,
            "property_city": self.property_city,
            "property_state": self.property_state,
            "property_zip": self.property_zip,
            "installation_location": self.installation_location,
            "status": self.status,
            "installed_at": to_utc_z(self.installed_at),
            "removal_date": to_utc_z(self.removal_date),
            "removed_at": to_utc_z(self.removed_at),
            "created_at": to_utc_z(self.created_at),
        }
        if include_children:
            data["riders"] = [r.to_dict() for r in self.riders]
            data["lockboxes"] = [lb.to_dict() for lb in self.lockboxes]
        return data


class InstallationRider(db.Model):
    __tablename__ = "installation_riders"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    installation_id = db.Column(db.Integer, db.ForeignKey("installations.id"), nullable=False, index=True)
    rider_id = db.Column(db.Integer, db.ForeignKey("rider_catalog.id"), nullable=False)
    customer_rider_id = db.Column(db.Integer, db.ForeignKey("customer_riders.id"), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    is_rental = db.Column(db.Boolean, nullable=False, default=False)
    custom_value = db.Column(db.String(255), nullable=True)

    rider = db.relationship("RiderCatalog")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "installation_id": self.installation_id,
            "rider_id": self.rider_id,
            "rider_name": self.rider.name if self.rider else None,
            "customer_rider_id": self.customer_rider_id,
            "quantity": self.quantity,
            "is_rental": self.is_rental,
            "custom_value": self.custom_value,
        }


class InstallationLockbox(db.Model):
    __tablename__ = "installation_lockboxes"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    installation_id = db.Column(db.Integer, db.ForeignKey("installations.id"), nullable=False, index=True)
    lockbox_type_id = db.Column(db.Integer, db.ForeignKey("lockbox_types.id"), nullable=False)
    customer_lockbox_id = db.Column(db.Integer, db.ForeignKey("customer_lockboxes.id"), nullable=True)
    is_rental = db.Column(db.Boolean, nullable=False, default=False)
    code = db.Column(db.String(64), nullable=True)

    lockbox_type = db.relationship("LockboxType")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "installation_id": self.installation_id,
            "lockbox_type_id": self.lockbox_type_id,
            "lockbox_type_name": self.lockbox_type.name if self.lockbox_type else None,
            "customer_lockbox_id": self.customer_lockbox_id,
            "is_rental": self.is_rental,
            "code": self.code,
        }


class ServiceRequest(db.Model):
    """Customer request against a standing installation (removal, repair, ...)."""
    __tablename__ = "service_requests"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    installation_id = db.Column(db.Integer, db.ForeignKey("installations.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    request_type = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    description = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    requested_date = db.Column(db.Date, nullable=True)
    scheduled_date = db.Column(db.DateTime(timezone=True), nullable=True)
    admin_notes = db.Column(db.Text, nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    installation = db.relationship("Installation", backref=db.backref("service_requests", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "installation_id": self.installation_id,
            "user_id": self.user_id,
            "request_type": self.request_type,
            "status": self.status,
            "description": self.description,
            "notes": self.notes,
            "requested_date": self.requested_date.isoformat() if self.requested_date else None,
            "scheduled_date": to_utc_z(self.scheduled_date),
            "admin_notes": self.admin_notes,
            "completed_at": to_utc_z(self.completed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
