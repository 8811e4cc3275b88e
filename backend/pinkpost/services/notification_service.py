# Overview: In-app notifications for order and service-request status changes.

from __future__ import annotations

from ..extensions import db
from ..models import Notification
from pinkpost.time_utils import utcnow
from pinkpost.validation import NotFoundError


ORDER_NOTIFICATIONS = {
    "confirmed": (
        "order_confirmed",
        "Order Confirmed",
        "Your order {order_number} has been confirmed and is being processed.",
    ),
    "scheduled": (
        "order_scheduled",
        "Installation Scheduled",
        "Your order {order_number} has been scheduled for installation.",
    ),
    "in_progress": (
        "order_in_progress",
        "Installation In Progress",
        "Your order {order_number} installation is now in progress.",
    ),
    "completed": (
        "order_completed",
        "Installation Complete",
        "Great news! Your order {order_number} installation is complete.",
    ),
    "cancelled": (
        "order_cancelled",
        "Order Cancelled",
        "Your order {order_number} has been cancelled.",
    ),
}

SERVICE_REQUEST_NOTIFICATIONS = {
    "acknowledged": (
        "service_request_acknowledged",
        "Service Request Received",
        "Your service request for {address} has been acknowledged.",
    ),
    "scheduled": (
        "service_request_scheduled",
        "Service Scheduled",
        "Your service request for {address} has been scheduled.",
    ),
    "completed": (
        "service_request_completed",
        "Service Completed",
        "Your service request for {address} has been completed.",
    ),
}


def create_notification(user_id: int, type: str, title: str, message: str, link: str | None = None) -> Notification:
    notification = Notification(user_id=user_id, type=type, title=title, message=message, link=link)
    db.session.add(notification)
    db.session.commit()
    return notification


def create_order_notification(user_id: int, order_number: str, order_id: int, status: str) -> Notification | None:
    """Returns None for statuses customers are not told about (pending)."""
    entry = ORDER_NOTIFICATIONS.get(status)
    if entry is None:
        return None
    type_, title, template = entry
    return create_notification(
        user_id,
        type_,
        title,
        template.format(order_number=order_number),
        link=f"/dashboard/orders/{order_id}",
    )


def create_service_request_notification(user_id: int, installation_address: str, status: str) -> Notification | None:
    entry = SERVICE_REQUEST_NOTIFICATIONS.get(status)
    if entry is None:
        return None
    type_, title, template = entry
    return create_notification(
        user_id,
        type_,
        title,
        template.format(address=installation_address),
        link="/dashboard",
    )


def create_welcome_notification(user_id: int, name: str) -> Notification:
    return create_notification(
        user_id,
        "welcome",
        "Welcome to Pink Post!",
        f"Hi {name}! Thanks for joining Pink Post Installations. Ready to place your first order?",
        link="/dashboard/place-order",
    )


def list_notifications(user_id: int, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    q = db.session.query(Notification).filter_by(user_id=user_id)
    if unread_only:
        q = q.filter_by(is_read=False)
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def unread_count(user_id: int) -> int:
    return db.session.query(Notification).filter_by(user_id=user_id, is_read=False).count()


def mark_read(user_id: int, notification_id: int) -> Notification:
    notification = db.session.query(Notification).filter_by(id=notification_id, user_id=user_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.session.commit()
    return notification


def mark_all_read(user_id: int) -> int:
    updated = db.session.query(Notification).filter_by(user_id=user_id, is_read=False).update(
        {"is_read": True, "read_at": utcnow()},
        synchronize_session=False,
    )
    db.session.commit()
    return updated
