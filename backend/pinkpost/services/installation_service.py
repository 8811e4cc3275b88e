# Overview: Turns completed orders into installations, consumes stored inventory, and runs removals/service requests.

"""
Installation Materializer

An Installation is created the first time an order reaches "completed".
Materialization is idempotent on the unique Installation.order_id: a second
call finds the existing row and does nothing.

Each order item is handled by a per-item_type handler. Handlers commit
individually, so a bad rider or lockbox line is logged and skipped without
losing the installation or the other lines. Readers must tolerate an
installation with fewer children than the order had lines.

Inventory consumption happens here and nowhere else: an order can be
created, edited or cancelled without touching in_storage.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import (
    CustomerBrochureBox,
    CustomerLockbox,
    CustomerRider,
    CustomerSign,
    Installation,
    InstallationLockbox,
    InstallationRider,
    LockboxType,
    Order,
    OrderItem,
    RiderCatalog,
    ServiceRequest,
)
from ..models.installations import SERVICE_REQUEST_STATUSES, SERVICE_REQUEST_TYPES
from . import notification_service
from pinkpost.time_utils import utcnow
from pinkpost.validation import NotFoundError, ValidationError, coerce_date, coerce_datetime

logger = logging.getLogger(__name__)

# Categories whose storage reference means "this came out of our warehouse".
STORAGE_CATEGORIES = {"storage", "owned"}

# item_type -> (storage model, OrderItem reference attribute)
STORAGE_REFERENCES = {
    "sign": (CustomerSign, "customer_sign_id"),
    "rider": (CustomerRider, "customer_rider_id"),
    "lockbox": (CustomerLockbox, "customer_lockbox_id"),
    "brochure_box": (CustomerBrochureBox, "customer_brochure_box_id"),
}

# Searched in this order against the item description, then LockboxType.name
LOCKBOX_KEYWORDS = ("sentrilock", "supra", "mechanical")


class ServiceRequestError(ValueError):
    """Service request rejected by a business rule (e.g. removed installation)."""


# =============================================================================
# INVENTORY CONSUMPTION
# =============================================================================

def stored_record_for(item: OrderItem):
    """The customer storage row an order item points at, or None."""
    ref = STORAGE_REFERENCES.get(item.item_type)
    if ref is None:
        return None
    model, attr = ref
    record_id = getattr(item, attr)
    if record_id is None:
        return None
    return db.session.get(model, record_id)


def consume_storage_item(item: OrderItem) -> bool:
    """
    Flag the referenced storage record as out of storage.

    Only storage-sourced lines qualify; rental and new items never touch
    storage. Returns True when a record was flipped, False when nothing
    applied or the record was already out.
    """
    if item.item_category not in STORAGE_CATEGORIES:
        return False

    record = stored_record_for(item)
    if record is None or not record.in_storage:
        return False

    record.in_storage = False
    record.removed_from_storage_at = utcnow()
    return True


# =============================================================================
# CATALOG RESOLUTION
# =============================================================================

def resolve_rider_id(item: OrderItem) -> int | None:
    if item.rider_id:
        return item.rider_id
    stored = stored_record_for(item)
    return stored.rider_id if stored is not None else None


def _match_lockbox_type_by_name(description: str | None, is_rental: bool) -> LockboxType | None:
    text = (description or "").lower()
    for keyword in LOCKBOX_KEYWORDS:
        if keyword not in text:
            continue
        candidates = (
            db.session.query(LockboxType)
            .filter(LockboxType.is_active.is_(True), LockboxType.name.ilike(f"%{keyword}%"))
            .order_by(LockboxType.id)
            .all()
        )
        if candidates:
            preferred = [c for c in candidates if bool(c.is_rentable) == is_rental]
            return (preferred or candidates)[0]
    return None


def resolve_lockbox_type(item: OrderItem) -> tuple[LockboxType | None, str | None]:
    """
    (lockbox type, code) for a lockbox line.

    Resolution order: explicit lockbox_type_id on the line, the stored
    lockbox's type, then a keyword match of the description against active
    catalog names.
    """
    stored = stored_record_for(item)
    code = (stored.code if stored is not None else None) or item.lockbox_code

    if item.lockbox_type_id:
        lockbox_type = db.session.get(LockboxType, item.lockbox_type_id)
        if lockbox_type is not None:
            return lockbox_type, code

    if stored is not None and stored.lockbox_type is not None:
        return stored.lockbox_type, code

    return _match_lockbox_type_by_name(item.description, item.item_category == "rental"), code


# =============================================================================
# PER-ITEM HANDLERS
# =============================================================================

def _handle_post(installation: Installation, item: OrderItem) -> None:
    # The post itself is the installation row.
    return None


def _handle_sign(installation: Installation, item: OrderItem) -> None:
    if item.customer_sign_id and installation.customer_sign_id is None:
        installation.customer_sign_id = item.customer_sign_id
    consume_storage_item(item)


def _handle_rider(installation: Installation, item: OrderItem) -> None:
    rider_id = resolve_rider_id(item)
    if rider_id is None:
        logger.warning("Order item %s: no rider reference, skipping rider", item.id)
        return
    db.session.add(InstallationRider(
        installation_id=installation.id,
        rider_id=rider_id,
        customer_rider_id=item.customer_rider_id,
        quantity=item.quantity,
        is_rental=item.item_category == "rental",
        custom_value=item.custom_value,
    ))
    consume_storage_item(item)


def _handle_lockbox(installation: Installation, item: OrderItem) -> None:
    lockbox_type, code = resolve_lockbox_type(item)
    if lockbox_type is None:
        logger.warning("Order item %s: could not resolve lockbox type from %r, skipping", item.id, item.description)
        return
    db.session.add(InstallationLockbox(
        installation_id=installation.id,
        lockbox_type_id=lockbox_type.id,
        customer_lockbox_id=item.customer_lockbox_id,
        is_rental=item.item_category == "rental",
        code=code,
    ))
    consume_storage_item(item)


def _handle_brochure_box(installation: Installation, item: OrderItem) -> None:
    consume_storage_item(item)


ITEM_HANDLERS = {
    "post": _handle_post,
    "sign": _handle_sign,
    "rider": _handle_rider,
    "lockbox": _handle_lockbox,
    "brochure_box": _handle_brochure_box,
}


# =============================================================================
# MATERIALIZER
# =============================================================================

def get_installation_for_order(order_id: int) -> Installation | None:
    return db.session.query(Installation).filter_by(order_id=order_id).first()


def materialize_installation(order: Order) -> Installation | None:
    """
    Create the Installation (and its riders/lockboxes) for a completed order.

    Returns the new Installation, or None when one already existed.
    """
    if get_installation_for_order(order.id) is not None:
        logger.info("Installation for order %s already exists, skipping", order.order_number)
        return None

    installation = Installation(
        order_id=order.id,
        user_id=order.user_id,
        post_type_id=order.post_type_id,
        property_address=order.property_address,
        property_city=order.property_city,
        property_state=order.property_state,
        property_zip=order.property_zip,
        installation_location=order.installation_location,
        status="active",
        installed_at=order.completed_date or utcnow(),
    )
    db.session.add(installation)
    db.session.commit()

    installation_id = installation.id
    for item in list(order.items):
        handler = ITEM_HANDLERS.get(item.item_type)
        if handler is None:
            logger.warning("Order item %s has unknown type %r, skipping", item.id, item.item_type)
            continue
        item_id = item.id
        try:
            handler(installation, item)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Installation %s: failed to materialize order item %s", installation_id, item_id)

    logger.info("Created installation %s for order %s", installation_id, order.order_number)
    return installation


# =============================================================================
# CUSTOMER INSTALLATIONS
# =============================================================================

def list_installations(user_id: int | None = None, status: str | None = None) -> list[Installation]:
    q = db.session.query(Installation)
    if user_id is not None:
        q = q.filter_by(user_id=user_id)
    if status:
        q = q.filter_by(status=status)
    return q.order_by(Installation.installed_at.desc(), Installation.id.desc()).all()


def get_installation_for_user(user_id: int, installation_id: int) -> Installation:
    installation = db.session.query(Installation).filter_by(id=installation_id, user_id=user_id).first()
    if installation is None:
        raise NotFoundError("Installation not found")
    return installation


def schedule_removal(user_id: int, installation_id: int, removal_date) -> Installation:
    """Only active installations can be scheduled for removal."""
    installation = get_installation_for_user(user_id, installation_id)
    if installation.status != "active":
        raise ServiceRequestError("Only active installations can be scheduled for removal")
    if removal_date in (None, ""):
        raise ValidationError("removal_date is required")

    installation.removal_date = coerce_datetime("removal_date", removal_date)
    installation.status = "removal_scheduled"
    db.session.commit()
    return installation


def _resolve_rider_type(data: dict) -> RiderCatalog:
    rider_id = data.get("rider_id")
    rider_type = data.get("rider_type")
    if isinstance(rider_type, str):
        rider_type = rider_type.strip()
    if rider_id in (None, "") and not rider_type:
        raise ValidationError("Rider type is required")

    q = db.session.query(RiderCatalog).filter(RiderCatalog.is_active.is_(True))
    if rider_id not in (None, ""):
        try:
            rider = q.filter(RiderCatalog.id == int(rider_id)).first()
        except (TypeError, ValueError):
            raise ValidationError("rider_id must be an integer")
    else:
        rider = q.filter(db.func.lower(RiderCatalog.name) == str(rider_type).lower()).first()
    if rider is None:
        raise ValidationError("Unknown rider type")
    return rider


def add_rider(user_id: int, installation_id: int, data: dict) -> InstallationRider:
    """
    Hang another rider on a standing post.

    data: rider_id or rider_type (catalog name), custom_value?, is_rental?,
    customer_rider_id? (a stored rider the customer owns)
    """
    rider = _resolve_rider_type(data)
    installation = get_installation_for_user(user_id, installation_id)
    if installation.status != "active":
        raise ServiceRequestError("Can only add riders to active installations")

    customer_rider_id = data.get("customer_rider_id")
    if customer_rider_id not in (None, ""):
        stored = db.session.query(CustomerRider).filter_by(id=customer_rider_id, user_id=user_id).first()
        if stored is None:
            raise NotFoundError("Stored rider not found")
        customer_rider_id = stored.id
    else:
        customer_rider_id = None

    custom_value = data.get("custom_value")
    installation_rider = InstallationRider(
        installation_id=installation.id,
        rider_id=rider.id,
        customer_rider_id=customer_rider_id,
        quantity=1,
        is_rental=bool(data.get("is_rental")),
        custom_value=str(custom_value).strip()[:255] if custom_value else None,
    )
    db.session.add(installation_rider)
    db.session.commit()
    logger.info("Added rider %s to installation %s", rider.name, installation.id)
    return installation_rider


# =============================================================================
# SERVICE REQUESTS
# =============================================================================

def _installation_address(installation: Installation) -> str:
    return f"{installation.property_address}, {installation.property_city}"


def create_service_request(user_id: int, installation_id: int, data: dict) -> ServiceRequest:
    request_type = (data.get("type") or "").strip()
    if not request_type:
        raise ValidationError("Request type is required")
    if request_type not in SERVICE_REQUEST_TYPES:
        raise ValidationError("Invalid request type")

    installation = get_installation_for_user(user_id, installation_id)
    if installation.status == "removed":
        raise ServiceRequestError("Cannot create service request for removed installation")

    requested_date = data.get("requested_date")
    requested_date = coerce_date("requested_date", requested_date) if requested_date else None

    service_request = ServiceRequest(
        installation_id=installation.id,
        user_id=user_id,
        request_type=request_type,
        status="pending",
        description=data.get("description"),
        notes=data.get("notes"),
        requested_date=requested_date,
    )
    db.session.add(service_request)

    if request_type == "removal" and requested_date:
        installation.status = "removal_scheduled"
        installation.removal_date = coerce_datetime("requested_date", data.get("requested_date"))

    db.session.commit()
    return service_request


def list_service_requests(user_id: int | None = None, status: str | None = None) -> list[ServiceRequest]:
    q = db.session.query(ServiceRequest)
    if user_id is not None:
        q = q.filter_by(user_id=user_id)
    if status:
        q = q.filter_by(status=status)
    return q.order_by(ServiceRequest.created_at.desc(), ServiceRequest.id.desc()).all()


def update_service_request(request_id: int, data: dict) -> ServiceRequest:
    """
    Admin status update. A scheduled_date without a status moves the
    request to "scheduled". Completing a removal marks the installation
    removed. The customer is notified for acknowledged/scheduled/completed.
    """
    service_request = db.session.get(ServiceRequest, request_id)
    if service_request is None:
        raise NotFoundError("Service request not found")

    status = data.get("status")
    if status and status not in SERVICE_REQUEST_STATUSES:
        raise ValidationError("Invalid status")

    if "admin_notes" in data:
        service_request.admin_notes = data.get("admin_notes")

    if data.get("scheduled_date"):
        service_request.scheduled_date = coerce_datetime("scheduled_date", data["scheduled_date"])
        if not status:
            status = "scheduled"

    status_changed = bool(status) and status != service_request.status
    if status:
        service_request.status = status
        if status == "completed":
            service_request.completed_at = utcnow()
            installation = service_request.installation
            if service_request.request_type == "removal" and installation.status != "removed":
                installation.status = "removed"
                installation.removed_at = service_request.completed_at

    db.session.commit()

    if status_changed:
        try:
            notification_service.create_service_request_notification(
                service_request.user_id,
                _installation_address(service_request.installation),
                service_request.status,
            )
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Could not create notification for service request %s", request_id)

    return service_request
