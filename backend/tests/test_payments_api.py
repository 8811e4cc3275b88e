"""
Saved payment method tests.

Verifies:
- The first saved card becomes the default
- Setting and deleting defaults keeps exactly one default per customer
- Customers cannot touch each other's cards
- SetupIntent client secrets for adding a card
"""

import pytest

from pinkpost.models import PaymentMethod


def add_card(client, headers, pm_id, **extra):
    return client.post("/api/payments/methods", json={"payment_method_id": pm_id, **extra}, headers=headers)


class TestSetupIntent:

    def test_returns_client_secret_and_creates_customer(self, client, customer_headers, fake_gateway):
        resp = client.post("/api/payments/setup-intent", headers=customer_headers)

        assert resp.status_code == 200
        assert resp.get_json() == {"client_secret": "seti_secret_cus_agent"}
        assert fake_gateway.called("create_setup_intent") == [("create_setup_intent", "cus_agent")]

    def test_existing_stripe_customer_is_reused(self, client, customer_headers, saved_card, fake_gateway):
        resp = client.post("/api/payments/setup-intent", headers=customer_headers)

        assert resp.get_json()["client_secret"] == "seti_secret_cus_test_agent"
        assert fake_gateway.called("create_customer") == []

    def test_unconfigured_stripe_is_400(self, client, customer_headers):
        resp = client.post("/api/payments/setup-intent", headers=customer_headers)

        assert resp.status_code == 400
        assert "STRIPE_SECRET_KEY" in resp.get_json()["error"]


class TestPaymentMethods:

    def test_first_card_is_default(self, client, customer, customer_headers, fake_gateway):
        resp = add_card(client, customer_headers, "pm_first")

        assert resp.status_code == 201
        method = resp.get_json()["payment_method"]
        assert method["is_default"] is True
        assert fake_gateway.called("create_customer") == [("create_customer", "agent@realty.test")]
        assert fake_gateway.called("set_default_payment_method")[0][1:] == ("cus_agent", "pm_first")

    def test_second_card_not_default_unless_asked(self, client, customer_headers, fake_gateway):
        add_card(client, customer_headers, "pm_first")
        second = add_card(client, customer_headers, "pm_second").get_json()["payment_method"]
        third = add_card(client, customer_headers, "pm_third", make_default=True).get_json()["payment_method"]

        assert second["is_default"] is False
        assert third["is_default"] is True

        methods = client.get("/api/payments/methods", headers=customer_headers).get_json()["payment_methods"]
        assert [m["is_default"] for m in methods].count(True) == 1

    def test_duplicate_card_rejected(self, client, customer_headers, fake_gateway):
        add_card(client, customer_headers, "pm_first")
        resp = add_card(client, customer_headers, "pm_first")
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "This card is already saved"

    def test_missing_id(self, client, customer_headers, fake_gateway):
        assert add_card(client, customer_headers, "").status_code == 400

    def test_set_default(self, client, db_session, customer_headers, fake_gateway):
        first = add_card(client, customer_headers, "pm_first").get_json()["payment_method"]
        second = add_card(client, customer_headers, "pm_second").get_json()["payment_method"]

        resp = client.post(f"/api/payments/methods/{second['id']}/default", headers=customer_headers)

        assert resp.status_code == 200
        assert db_session.get(PaymentMethod, first["id"]).is_default is False
        assert db_session.get(PaymentMethod, second["id"]).is_default is True

    def test_deleting_default_promotes_remaining_card(self, client, db_session, customer_headers, fake_gateway):
        first = add_card(client, customer_headers, "pm_first").get_json()["payment_method"]
        second = add_card(client, customer_headers, "pm_second").get_json()["payment_method"]

        resp = client.delete(f"/api/payments/methods/{first['id']}", headers=customer_headers)

        assert resp.status_code == 200
        assert fake_gateway.called("detach_payment_method") == [("detach_payment_method", "pm_first")]
        assert db_session.get(PaymentMethod, second["id"]).is_default is True

    @pytest.mark.parametrize("method,suffix", [("POST", "/default"), ("DELETE", "")])
    def test_other_customers_card_is_404(self, client, customer_headers, other_headers, fake_gateway, method, suffix):
        card = add_card(client, customer_headers, "pm_first").get_json()["payment_method"]
        resp = getattr(client, method.lower())(f"/api/payments/methods/{card['id']}{suffix}", headers=other_headers)
        assert resp.status_code == 404
