from __future__ import annotations

from ..extensions import db
from pinkpost.money import money_str


class PostType(db.Model):
    """Installable post styles (White Vinyl, Black Vinyl, Signature Pink)."""
    __tablename__ = "post_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    image_url = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money_str(self.price),
            "image_url": self.image_url,
            "is_active": self.is_active,
        }


class RiderCatalog(db.Model):
    """Status placards hung under the sign (FOR SALE, SOLD, OPEN HOUSE...)."""
    __tablename__ = "rider_catalog"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    rental_price = db.Column(db.Numeric(10, 2), nullable=False, default=5)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "rental_price": money_str(self.rental_price),
            "is_active": self.is_active,
        }


class LockboxType(db.Model):
    """
    Lockbox kinds. Customer-owned types (SentriLock, mechanical) carry only an
    install fee; rentable types also carry a rental price.
    """
    __tablename__ = "lockbox_types"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    rental_price = db.Column(db.Numeric(10, 2), nullable=True)
    install_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_rentable = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "rental_price": money_str(self.rental_price),
            "install_fee": money_str(self.install_fee),
            "is_rentable": self.is_rentable,
            "is_active": self.is_active,
        }
