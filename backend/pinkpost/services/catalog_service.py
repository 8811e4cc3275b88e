# Overview: Product catalog (post types, riders, lockbox types): listing and idempotent seeding.

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import LockboxType, PostType, RiderCatalog


DEFAULT_POST_TYPES = [
    ("White Vinyl Post", "Classic white vinyl post with professional installation and pickup", "55.00"),
    ("Black Vinyl Post", "Sleek black vinyl post with professional installation and pickup", "55.00"),
    ("Signature Pink Post", "Our signature pink vinyl post", "65.00"),
]

DEFAULT_RIDERS = [
    "COMING SOON", "FOR SALE", "NEW LISTING", "OPEN HOUSE", "UNDER CONTRACT", "PENDING",
    "SOLD", "REDUCED", "NEW PRICE", "PRICE IMPROVED", "MOVE-IN READY", "MUST SEE",
    "MOTIVATED SELLER", "AGENT ON SITE", "BY APPOINTMENT", "CALL FOR DETAILS",
    "HOME WARRANTY", "POOL", "ACREAGE", "NEW CONSTRUCTION", "JUST LISTED",
    "VIRTUAL TOUR", "VIDEO TOUR", "WATERFRONT", "GOLF COURSE", "CUSTOM",
]
RIDER_RENTAL_PRICE = "5.00"

# name, description, rental_price, install_fee, is_rentable
DEFAULT_LOCKBOX_TYPES = [
    ("SentriLock", "Electronic SentriLock - customer owned", None, "5.00", False),
    ("Mechanical (Customer Owned)", "Standard mechanical lockbox - customer owned", None, "5.00", False),
    ("Mechanical (Rental)", "Standard mechanical lockbox rental", "15.00", "5.00", True),
]


def list_post_types(include_inactive: bool = False) -> list[PostType]:
    q = db.session.query(PostType)
    if not include_inactive:
        q = q.filter_by(is_active=True)
    return q.order_by(PostType.price, PostType.name).all()


def list_riders(include_inactive: bool = False) -> list[RiderCatalog]:
    q = db.session.query(RiderCatalog)
    if not include_inactive:
        q = q.filter_by(is_active=True)
    return q.order_by(RiderCatalog.name).all()


def list_lockbox_types(include_inactive: bool = False) -> list[LockboxType]:
    q = db.session.query(LockboxType)
    if not include_inactive:
        q = q.filter_by(is_active=True)
    return q.order_by(LockboxType.name).all()


def seed_catalog() -> dict[str, int]:
    """
    Insert any missing default catalog rows (matched by name).
    Existing rows are left untouched so admin price edits survive a re-run.

    Returns counts of rows created per table.
    """
    created = {"post_types": 0, "riders": 0, "lockbox_types": 0}

    for name, description, price in DEFAULT_POST_TYPES:
        if db.session.query(PostType).filter_by(name=name).first() is None:
            db.session.add(PostType(name=name, description=description, price=Decimal(price), is_active=True))
            created["post_types"] += 1

    for name in DEFAULT_RIDERS:
        if db.session.query(RiderCatalog).filter_by(name=name).first() is None:
            db.session.add(RiderCatalog(
                name=name,
                description=f"{name} rider",
                rental_price=Decimal(RIDER_RENTAL_PRICE),
                is_active=True,
            ))
            created["riders"] += 1

    for name, description, rental_price, install_fee, is_rentable in DEFAULT_LOCKBOX_TYPES:
        if db.session.query(LockboxType).filter_by(name=name).first() is None:
            db.session.add(LockboxType(
                name=name,
                description=description,
                rental_price=Decimal(rental_price) if rental_price else None,
                install_fee=Decimal(install_fee),
                is_rentable=is_rentable,
                is_active=True,
            ))
            created["lockbox_types"] += 1

    db.session.commit()
    return created
