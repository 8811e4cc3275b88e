"""
Admin dashboard stats tests.

Verifies:
- Day / week (Sunday start) / month order counts
- Revenue only counts succeeded payments
- Open orders, customer and active installation counts
"""

from datetime import datetime
from decimal import Decimal

import pytest

from pinkpost.models import Installation, Order
from pinkpost.services import reporting_service

# Wednesday; the week began Sunday 2026-10-18.
NOW = datetime(2026, 10, 21, 15, 0)


def make_order(db_session, user, number, created_at, total, status="pending", payment_status="pending"):
    order = Order(
        order_number=f"PP-TEST-{number}",
        user_id=user.id,
        status=status,
        payment_status=payment_status,
        property_type="house",
        property_address=f"{number} Main St",
        property_city="Louisville",
        property_state="KY",
        property_zip="40202",
        total=Decimal(total),
        created_at=created_at,
    )
    db_session.add(order)
    db_session.commit()
    return order


def make_installation(db_session, order, status):
    installation = Installation(
        order_id=order.id,
        user_id=order.user_id,
        property_address=order.property_address,
        property_city=order.property_city,
        property_state=order.property_state,
        property_zip=order.property_zip,
        status=status,
        installed_at=order.created_at,
    )
    db_session.add(installation)
    db_session.commit()
    return installation


@pytest.fixture
def history(db_session, customer, other_customer, admin):
    today = make_order(db_session, customer, 1, datetime(2026, 10, 21, 9, 0), "100.00", payment_status="succeeded")
    monday = make_order(
        db_session, other_customer, 2, datetime(2026, 10, 19, 12, 0), "50.00",
        status="completed", payment_status="succeeded",
    )
    make_order(db_session, customer, 3, datetime(2026, 10, 5, 8, 0), "30.00", status="confirmed", payment_status="failed")
    last_month = make_order(
        db_session, customer, 4, datetime(2026, 9, 30, 23, 0), "999.00",
        status="completed", payment_status="succeeded",
    )
    make_installation(db_session, monday, "active")
    make_installation(db_session, last_month, "removed")
    return today


class TestPeriodStarts:

    def test_week_starts_on_sunday(self):
        starts = reporting_service.period_starts(NOW)

        assert starts["today"] == datetime(2026, 10, 21)
        assert starts["this_week"] == datetime(2026, 10, 18)
        assert starts["this_month"] == datetime(2026, 10, 1)

    def test_sunday_is_its_own_week_start(self):
        starts = reporting_service.period_starts(datetime(2026, 10, 18, 6, 0))
        assert starts["this_week"] == datetime(2026, 10, 18)


class TestDashboardStats:

    def test_counts_and_revenue(self, history):
        stats = reporting_service.admin_dashboard_stats(now=NOW)

        assert stats["total_customers"] == 2
        assert stats["orders"] == {"today": 1, "this_week": 2, "this_month": 3, "pending": 2}
        assert stats["active_installations"] == 1
        assert stats["revenue"] == {"today": "100.00", "this_week": "150.00", "this_month": "150.00"}

    def test_empty_database(self, db_session):
        stats = reporting_service.admin_dashboard_stats(now=NOW)

        assert stats["total_customers"] == 0
        assert stats["orders"]["this_month"] == 0
        assert stats["revenue"]["this_month"] == "0.00"

    def test_endpoint_requires_admin(self, client, customer_headers, admin_headers):
        assert client.get("/api/admin/stats", headers=customer_headers).status_code == 403

        resp = client.get("/api/admin/stats", headers=admin_headers)

        assert resp.status_code == 200
        assert set(resp.get_json()["stats"]) == {"total_customers", "orders", "active_installations", "revenue"}
