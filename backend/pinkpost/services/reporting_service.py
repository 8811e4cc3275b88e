# Overview: Admin dashboard counters: customers, order volume, open work and collected revenue.

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import func

from ..extensions import db
from ..models import Installation, Order, User
from ..models.auth import ROLE_CUSTOMER
from pinkpost.money import money_str, to_money
from pinkpost.time_utils import utcnow

OPEN_ORDER_STATUSES = ("pending", "confirmed")


def period_starts(now: datetime) -> dict[str, datetime]:
    """Start of the current day, week (weeks begin on Sunday) and month, UTC-naive."""
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    days_since_sunday = (today.weekday() + 1) % 7
    return {
        "today": today,
        "this_week": today - timedelta(days=days_since_sunday),
        "this_month": today.replace(day=1),
    }


def _orders_since(start: datetime) -> int:
    return db.session.query(func.count(Order.id)).filter(Order.created_at >= start).scalar() or 0


def _revenue_since(start: datetime) -> str:
    total = (
        db.session.query(func.coalesce(func.sum(Order.total), 0))
        .filter(Order.created_at >= start, Order.payment_status == "succeeded")
        .scalar()
    )
    return money_str(to_money(total))


def admin_dashboard_stats(now: datetime | None = None) -> dict:
    starts = period_starts(now or utcnow())

    total_customers = db.session.query(func.count(User.id)).filter(User.role == ROLE_CUSTOMER).scalar() or 0
    pending_orders = (
        db.session.query(func.count(Order.id)).filter(Order.status.in_(OPEN_ORDER_STATUSES)).scalar() or 0
    )
    active_installations = (
        db.session.query(func.count(Installation.id)).filter(Installation.status == "active").scalar() or 0
    )

    return {
        "total_customers": total_customers,
        "orders": {
            **{name: _orders_since(start) for name, start in starts.items()},
            "pending": pending_orders,
        },
        "active_installations": active_installations,
        "revenue": {name: _revenue_since(start) for name, start in starts.items()},
    }
