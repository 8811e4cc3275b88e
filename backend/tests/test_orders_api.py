"""
Order API tests.

Verifies:
- Checkout over HTTP: catalog prices win, fees and fallback tax applied
- Promo codes at checkout: applied and counted, or ignored when invalid
- Customers list/edit/cancel only their own orders
- Admin status updates and manual charges
- Tax preview and notification endpoints
"""

from decimal import Decimal

import pytest

from pinkpost.models import Order, PromoCode

D = Decimal

PROPERTY = {
    "property_type": "house",
    "property_address": "2100 Frankfort Ave",
    "property_city": "Louisville",
    "property_state": "KY",
    "property_zip": "40206",
}


def checkout(client, headers, post_type, items=None, **extra):
    payload = dict(PROPERTY, post_type_id=post_type.id, items=items or [], **extra)
    return client.post("/api/orders", json=payload, headers=headers)


def rental_riders(rider, quantity):
    return [{"item_type": "rider", "item_category": "rental", "rider_id": rider.id, "quantity": quantity}]


@pytest.fixture
def placed(client, customer_headers, white_post, sold_rider):
    """Post + 2 rental riders at the fallback rate: $71.37."""
    resp = checkout(client, customer_headers, white_post, rental_riders(sold_rider, 2))
    assert resp.status_code == 201
    return resp.get_json()["order"]


# =============================================================================
# CHECKOUT
# =============================================================================


class TestCheckout:

    def test_post_with_two_rental_riders(self, placed):
        assert placed["subtotal"] == "65.00"
        assert placed["fuel_surcharge"] == "2.47"
        assert placed["tax"] == "3.90"
        assert placed["tax_method"] == "fallback"
        assert placed["total"] == "71.37"
        assert placed["status"] == "pending"
        assert placed["payment_status"] == "pending"
        assert placed["order_number"].startswith("PP-")

    def test_post_line_is_added_from_post_type(self, placed):
        posts = [i for i in placed["items"] if i["item_type"] == "post"]
        assert len(posts) == 1
        assert posts[0]["unit_price"] == "55.00"
        assert posts[0]["description"] == "White Vinyl Post"

    def test_submitted_rider_price_is_ignored(self, client, customer_headers, white_post, sold_rider):
        items = [{"item_type": "rider", "item_category": "rental", "rider_id": sold_rider.id, "unit_price": "0.01"}]
        resp = checkout(client, customer_headers, white_post, items)
        rider = [i for i in resp.get_json()["order"]["items"] if i["item_type"] == "rider"][0]
        assert rider["unit_price"] == "5.00"

    def test_stripe_tax_and_payment_intent(self, client, customer_headers, white_post, sold_rider, fake_gateway):
        fake_gateway.tax_cents = 455
        fake_gateway.tax_percent = "7.0"

        resp = checkout(client, customer_headers, white_post, rental_riders(sold_rider, 2))

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["client_secret"] == "pi_checkout_secret"
        assert body["order"]["tax"] == "4.55"
        assert body["order"]["tax_method"] == "stripe_tax"
        assert body["order"]["total"] == "72.02"
        assert body["order"]["payment_status"] == "pending"
        assert body["order"]["payment_intent_id"] == "pi_checkout"

        intent = fake_gateway.called("create_payment_intent")[0]
        assert intent[1] == D("72.02")
        assert intent[2] == "cus_agent"

    @pytest.mark.parametrize("intent_status, payment_status", [
        ("requires_payment_method", "pending"),
        ("requires_action", "processing"),
        ("processing", "processing"),
        ("succeeded", "succeeded"),
    ])
    def test_payment_status_mirrors_intent(
        self, client, customer_headers, white_post, sold_rider, fake_gateway, sent_emails, intent_status, payment_status
    ):
        fake_gateway.intent_status = intent_status

        resp = checkout(
            client, customer_headers, white_post, rental_riders(sold_rider, 2), payment_method_id="pm_test_visa"
        )

        assert resp.status_code == 201
        assert resp.get_json()["order"]["payment_status"] == payment_status

    def test_fixed_promo_applied_and_counted(self, client, db_session, customer_headers, white_post):
        promo = PromoCode(code="SAVE30", discount_type="fixed", discount_value=D("30.00"), is_active=True)
        db_session.add(promo)
        db_session.commit()

        items = [{"item_type": "sign", "item_category": "purchase", "unit_price": "45.00"}]
        resp = checkout(client, customer_headers, white_post, items, promo_code="save30")

        order = resp.get_json()["order"]
        assert order["subtotal"] == "100.00"
        assert order["discount"] == "30.00"
        assert order["tax"] == "4.20"
        assert order["total"] == "76.67"
        assert order["promo_code"] == "SAVE30"

        db_session.refresh(promo)
        assert promo.current_uses == 1

    def test_unknown_promo_does_not_block_checkout(self, client, customer_headers, white_post):
        resp = checkout(client, customer_headers, white_post, promo_code="NOPE")
        assert resp.status_code == 201
        order = resp.get_json()["order"]
        assert order["discount"] == "0.00"
        assert order["promo_code"] is None

    @pytest.mark.parametrize(
        "override,message",
        [
            ({"property_type": "castle"}, "property_type must be one of"),
            ({"property_address": ""}, "property_address is required"),
            ({"items": "lots"}, "items must be a list"),
            ({"items": [{"item_type": "flag"}]}, "unknown item type"),
            ({"items": [{"item_type": "sign", "quantity": 0}]}, "quantity must be at least 1"),
            ({"post_type_id": 999999}, "Unknown post type"),
        ],
    )
    def test_invalid_payload(self, client, customer_headers, white_post, override, message):
        payload = dict(PROPERTY, post_type_id=white_post.id, items=[])
        payload.update(override)
        resp = client.post("/api/orders", json=payload, headers=customer_headers)
        assert resp.status_code == 400
        assert message in resp.get_json()["error"]

    def test_empty_cart_rejected(self, client, customer_headers, catalog):
        resp = client.post("/api/orders", json=dict(PROPERTY, items=[]), headers=customer_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Order must contain at least one item"

    def test_nothing_saved_on_validation_error(self, client, db_session, customer_headers, white_post):
        checkout(client, customer_headers, white_post, [{"item_type": "flag"}])
        assert db_session.query(Order).count() == 0


# =============================================================================
# CUSTOMER ORDER MANAGEMENT
# =============================================================================


class TestCustomerOrders:

    def test_list_is_scoped_to_customer(self, client, customer_headers, other_headers, white_post, placed):
        checkout(client, other_headers, white_post)

        resp = client.get("/api/orders", headers=customer_headers)
        body = resp.get_json()
        assert body["total"] == 1
        assert [o["id"] for o in body["orders"]] == [placed["id"]]

    def test_list_filters_by_status(self, client, customer_headers, placed):
        assert client.get("/api/orders?status=pending", headers=customer_headers).get_json()["total"] == 1
        assert client.get("/api/orders?status=completed", headers=customer_headers).get_json()["total"] == 0

    def test_list_unknown_status_is_400(self, client, customer_headers, placed):
        assert client.get("/api/orders?status=shipped", headers=customer_headers).status_code == 400

    def test_page_size_is_clamped(self, client, customer_headers, placed):
        body = client.get("/api/orders?limit=5000&offset=-3", headers=customer_headers).get_json()
        assert body["limit"] == 100
        assert body["offset"] == 0

    def test_edit_replaces_riders_and_keeps_post(self, client, customer_headers, sold_rider, placed):
        resp = client.patch(
            f"/api/orders/{placed['id']}",
            json={"items": rental_riders(sold_rider, 1), "installation_notes": "Front yard, left of drive"},
            headers=customer_headers,
        )

        assert resp.status_code == 200
        order = resp.get_json()["order"]
        assert order["subtotal"] == "60.00"
        assert order["tax"] == "3.60"
        assert order["total"] == "66.07"
        assert order["property_notes"] == "Front yard, left of drive"
        assert sorted(i["item_type"] for i in order["items"]) == ["post", "rider"]

    def test_edit_cannot_change_post(self, client, customer_headers, placed):
        resp = client.patch(
            f"/api/orders/{placed['id']}",
            json={"items": [{"item_type": "post"}]},
            headers=customer_headers,
        )
        assert resp.status_code == 400

    def test_cancel_then_cancel_again(self, client, customer_headers, placed):
        first = client.delete(f"/api/orders/{placed['id']}", headers=customer_headers)
        assert first.status_code == 200
        assert first.get_json()["order"]["status"] == "cancelled"

        second = client.delete(f"/api/orders/{placed['id']}", headers=customer_headers)
        assert second.status_code == 400
        assert second.get_json()["error"] == "Cannot cancel an order that is cancelled"

    def test_completed_order_cannot_be_edited(self, client, customer_headers, admin_headers, sold_rider, placed):
        client.put(f"/api/admin/orders/{placed['id']}", json={"status": "completed"}, headers=admin_headers)

        resp = client.patch(
            f"/api/orders/{placed['id']}",
            json={"items": rental_riders(sold_rider, 1)},
            headers=customer_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Cannot edit completed or cancelled orders"


# =============================================================================
# ADMIN
# =============================================================================


class TestAdminOrders:

    def test_status_update_reports_tasks(self, client, admin_headers, placed):
        resp = client.put(f"/api/admin/orders/{placed['id']}", json={"status": "confirmed"}, headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["order"]["status"] == "confirmed"
        assert body["order"]["customer"]["email"] == "agent@realty.test"
        assert all(task["ok"] for task in body["tasks"])

    def test_backwards_move_is_400(self, client, admin_headers, placed):
        client.put(f"/api/admin/orders/{placed['id']}", json={"status": "scheduled"}, headers=admin_headers)
        resp = client.put(f"/api/admin/orders/{placed['id']}", json={"status": "pending"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_empty_update_is_400(self, client, admin_headers, placed):
        resp = client.put(f"/api/admin/orders/{placed['id']}", json={}, headers=admin_headers)
        assert resp.status_code == 400

    def test_admin_list_filters_by_customer(self, client, admin_headers, customer, placed):
        body = client.get(f"/api/admin/orders?user_id={customer.id}", headers=admin_headers).get_json()
        assert body["total"] == 1

    def test_manual_charge(self, client, admin_headers, saved_card, fake_gateway, sent_emails, placed):
        assert placed["payment_intent_id"] == "pi_checkout"

        resp = client.post(
            f"/api/admin/orders/{placed['id']}/charge",
            json={"payment_method_id": "pm_test_visa"},
            headers=admin_headers,
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["payment_status"] == "succeeded"
        assert body["order"]["paid_at"] is not None
        assert len(sent_emails) == 2
        assert fake_gateway.called("confirm_payment_intent") == [("confirm_payment_intent", "pi_checkout", "pm_test_visa")]

    def test_manual_charge_requires_action(self, client, admin_headers, saved_card, fake_gateway, placed):
        fake_gateway.charge_status = "requires_action"

        resp = client.post(
            f"/api/admin/orders/{placed['id']}/charge",
            json={"payment_method_id": "pm_test_visa"},
            headers=admin_headers,
        )

        assert resp.status_code == 400
        body = resp.get_json()
        assert body["success"] is False
        assert body["requires_action"] is True
        assert body["client_secret"] == "pi_confirm_secret"

        order = client.get(f"/api/admin/orders/{placed['id']}", headers=admin_headers).get_json()["order"]
        assert order["payment_status"] == "processing"
        assert order["payment_intent_id"] == "pi_checkout"

    def test_completing_order_with_in_flight_intent_does_not_charge_again(
        self, client, customer_headers, admin_headers, white_post, sold_rider, saved_card, fake_gateway, sent_emails
    ):
        fake_gateway.intent_status = "processing"
        resp = checkout(
            client, customer_headers, white_post, rental_riders(sold_rider, 2), payment_method_id="pm_test_visa"
        )
        order_id = resp.get_json()["order"]["id"]

        resp = client.put(f"/api/admin/orders/{order_id}", json={"status": "completed"}, headers=admin_headers)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["order"]["status"] == "completed"
        assert body["order"]["payment_status"] == "processing"
        assert fake_gateway.called("charge_payment_method") == []
        assert fake_gateway.called("cancel_payment_intent") == []

    def test_completing_order_with_settled_intent_marks_paid(
        self, client, customer_headers, admin_headers, white_post, sold_rider, saved_card, fake_gateway, sent_emails
    ):
        fake_gateway.intent_status = "processing"
        resp = checkout(
            client, customer_headers, white_post, rental_riders(sold_rider, 2), payment_method_id="pm_test_visa"
        )
        order_id = resp.get_json()["order"]["id"]
        fake_gateway.intent_status = "succeeded"

        body = client.put(
            f"/api/admin/orders/{order_id}", json={"status": "completed"}, headers=admin_headers
        ).get_json()

        assert body["order"]["payment_status"] == "succeeded"
        assert body["order"]["payment_intent_id"] == "pi_checkout"
        assert fake_gateway.called("charge_payment_method") == []

    def test_completing_order_with_unpaid_intent_cancels_it_and_charges_card(
        self, client, admin_headers, saved_card, fake_gateway, sent_emails, placed
    ):
        assert placed["payment_status"] == "pending"

        body = client.put(
            f"/api/admin/orders/{placed['id']}", json={"status": "completed"}, headers=admin_headers
        ).get_json()

        assert fake_gateway.called("cancel_payment_intent") == [("cancel_payment_intent", "pi_checkout")]
        assert fake_gateway.called("charge_payment_method") == [
            ("charge_payment_method", "cus_test_agent", "pm_test_visa", 7137)
        ]
        assert body["order"]["payment_status"] == "succeeded"
        assert body["order"]["payment_intent_id"] == "pi_capture"

    def test_unpaid_intent_that_cannot_be_cancelled_is_not_charged(
        self, client, admin_headers, saved_card, fake_gateway, sent_emails, placed
    ):
        from pinkpost.services.gateway import GatewayError

        fake_gateway.cancel_error = GatewayError("intent already confirmed")

        body = client.put(
            f"/api/admin/orders/{placed['id']}", json={"status": "completed"}, headers=admin_headers
        ).get_json()

        assert body["order"]["status"] == "completed"
        assert body["order"]["payment_status"] == "failed"
        assert fake_gateway.called("charge_payment_method") == []

    def test_order_detail_unexpected_error_is_500(self, client, admin_headers, placed, monkeypatch):
        from pinkpost.services import order_service

        def _boom(order_id):
            raise RuntimeError("database went away")

        monkeypatch.setattr(order_service, "get_order", _boom)

        resp = client.get(f"/api/admin/orders/{placed['id']}", headers=admin_headers)

        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}

    def test_manual_charge_needs_payment_method(self, client, admin_headers, placed):
        resp = client.post(f"/api/admin/orders/{placed['id']}/charge", json={}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Payment method ID is required"


# =============================================================================
# TAX PREVIEW / NOTIFICATIONS
# =============================================================================


class TestTaxPreview:

    def test_fallback_preview(self, client, customer_headers):
        resp = client.post(
            "/api/tax/calculate",
            json={
                "items": [
                    {"item_type": "post", "total_price": "55.00"},
                    {"item_type": "rider", "total_price": "10.00"},
                ],
                "address": {"address": "1 Main St", "city": "Louisville", "state": "KY", "zip": "40202"},
            },
            headers=customer_headers,
        )

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["tax"] == "3.90"
        assert body["tax_method"] == "fallback"
        assert body["taxable_amount"] == "65.00"

    def test_discount_and_fees_in_taxable_amount(self, client, customer_headers):
        resp = client.post(
            "/api/tax/calculate",
            json={
                "items": [{"item_type": "sign", "total_price": "40.00"}],
                "discount": "50.00",
                "no_post_surcharge": "5.00",
                "expedite_fee": "50.00",
            },
            headers=customer_headers,
        )
        body = resp.get_json()
        assert body["taxable_amount"] == "55.00"
        assert body["tax"] == "3.30"

    def test_empty_items(self, client, customer_headers):
        resp = client.post("/api/tax/calculate", json={"items": []}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "At least one item is required"


class TestNotifications:

    def test_status_change_notifies_customer(self, client, customer_headers, admin_headers, placed):
        client.put(f"/api/admin/orders/{placed['id']}", json={"status": "confirmed"}, headers=admin_headers)

        body = client.get("/api/notifications", headers=customer_headers).get_json()
        assert body["unread_count"] == 1
        assert placed["order_number"] in body["notifications"][0]["message"]

    def test_mark_all_read(self, client, customer_headers, admin_headers, placed):
        client.put(f"/api/admin/orders/{placed['id']}", json={"status": "confirmed"}, headers=admin_headers)
        client.put(f"/api/admin/orders/{placed['id']}", json={"status": "scheduled"}, headers=admin_headers)

        resp = client.post("/api/notifications/read-all", headers=customer_headers)
        assert resp.get_json()["updated"] == 2
        assert client.get("/api/notifications", headers=customer_headers).get_json()["unread_count"] == 0
