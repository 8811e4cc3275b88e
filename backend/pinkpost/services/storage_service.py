# Overview: Customer storage inventory (signs, riders, lockboxes, brochure boxes held in the warehouse).

from __future__ import annotations

from ..extensions import db
from ..models import (
    CustomerBrochureBox,
    CustomerLockbox,
    CustomerRider,
    CustomerSign,
    LockboxType,
    RiderCatalog,
    User,
)
from pinkpost.validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    require_json_object,
    validate_payload,
)


STORAGE_MODELS = {
    "sign": CustomerSign,
    "rider": CustomerRider,
    "lockbox": CustomerLockbox,
    "brochure_box": CustomerBrochureBox,
}

STORAGE_POLICIES = {
    "sign": ModelValidationPolicy(
        writable_fields={"description", "size", "quantity", "notes"},
        required_on_create={"description"},
    ),
    "rider": ModelValidationPolicy(
        writable_fields={"rider_id", "quantity", "notes"},
        required_on_create={"rider_id"},
    ),
    "lockbox": ModelValidationPolicy(
        writable_fields={"lockbox_type_id", "code", "quantity", "notes"},
        required_on_create={"lockbox_type_id"},
    ),
    "brochure_box": ModelValidationPolicy(
        writable_fields={"quantity", "notes"},
        required_on_create=set(),
    ),
}


def _model_for(kind: str | None):
    model = STORAGE_MODELS.get(kind or "")
    if model is None:
        raise ValidationError(f"type must be one of: {', '.join(STORAGE_MODELS)}")
    return model


def _check_references(patch: dict) -> None:
    if patch.get("rider_id") is not None and db.session.get(RiderCatalog, patch["rider_id"]) is None:
        raise ValidationError("Unknown rider")
    if patch.get("lockbox_type_id") is not None and db.session.get(LockboxType, patch["lockbox_type_id"]) is None:
        raise ValidationError("Unknown lockbox type")
    if patch.get("quantity") is not None and patch["quantity"] < 1:
        raise ValidationError("quantity must be at least 1")


def list_storage(user_id: int, in_storage_only: bool = False) -> dict[str, list]:
    result = {}
    for kind, model in STORAGE_MODELS.items():
        q = db.session.query(model).filter_by(user_id=user_id)
        if in_storage_only:
            q = q.filter_by(in_storage=True)
        result[kind] = q.order_by(model.id).all()
    return result


def add_storage_item(customer_id: int, data: dict):
    """
    Admin intake of a customer item into storage.

    Brochure boxes are tracked as one row per customer: adding again
    updates the quantity on the existing row.
    """
    data = dict(require_json_object(data))
    kind = data.pop("type", None)
    model = _model_for(kind)

    customer = db.session.get(User, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")

    patch = validate_payload(model=model, payload=data, policy=STORAGE_POLICIES[kind], partial=False)
    _check_references(patch)

    if kind == "brochure_box":
        existing = db.session.query(CustomerBrochureBox).filter_by(user_id=customer_id).first()
        if existing is not None:
            existing.quantity = patch.get("quantity") or existing.quantity
            existing.in_storage = True
            existing.removed_from_storage_at = None
            db.session.commit()
            return existing

    item = model(user_id=customer_id, in_storage=True, **patch)
    db.session.add(item)
    db.session.commit()
    return item


def _get_storage_item(customer_id: int, kind: str, item_id: int):
    model = _model_for(kind)
    item = db.session.query(model).filter_by(id=item_id, user_id=customer_id).first()
    if item is None:
        raise NotFoundError("Storage item not found")
    return item


def update_storage_item(customer_id: int, kind: str, item_id: int, data: dict):
    item = _get_storage_item(customer_id, kind, item_id)
    patch = validate_payload(model=type(item), payload=data, policy=STORAGE_POLICIES[kind], partial=True)
    _check_references(patch)
    for key, value in patch.items():
        setattr(item, key, value)
    db.session.commit()
    return item


def return_to_storage(customer_id: int, kind: str, item_id: int):
    """Item came back from a removed installation."""
    item = _get_storage_item(customer_id, kind, item_id)
    item.in_storage = True
    item.removed_from_storage_at = None
    db.session.commit()
    return item


def delete_storage_item(customer_id: int, kind: str, item_id: int) -> None:
    item = _get_storage_item(customer_id, kind, item_id)
    db.session.delete(item)
    db.session.commit()
