"""
Promo code tests.

Verifies:
- Discount math: fixed never exceeds the subtotal, percentage rounds to the cent
- Strict validation reasons (inactive, window, usage cap, minimum order)
- Lenient checkout lookup and redemption counting
- Admin CRUD and the validate endpoint
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from pinkpost.models import PromoCode, PromoCodeUsage
from pinkpost.services import promotions_service
from pinkpost.services.promotions_service import PromoCodeError
from pinkpost.time_utils import utcnow
from pinkpost.validation import ValidationError

D = Decimal


def make_promo(db_session, code="SAVE30", discount_type="fixed", value="30.00", **fields):
    promo = PromoCode(
        code=code,
        discount_type=discount_type,
        discount_value=D(value),
        current_uses=fields.pop("current_uses", 0),
        is_active=fields.pop("is_active", True),
        **fields,
    )
    db_session.add(promo)
    db_session.commit()
    return promo


# =============================================================================
# DISCOUNT BOUNDS
# =============================================================================


class TestDiscountBounds:

    @pytest.mark.parametrize("subtotal", ["0.00", "10.00", "29.99", "30.00", "100.00"])
    def test_fixed_never_exceeds_subtotal(self, db_session, subtotal):
        promo = make_promo(db_session)
        discount = promotions_service.compute_discount(promo, D(subtotal))
        assert discount == min(D("30.00"), D(subtotal))

    @pytest.mark.parametrize(
        "subtotal,value,expected",
        [
            ("100.00", "10", "10.00"),
            ("65.00", "15", "9.75"),
            ("33.33", "10", "3.33"),
            ("0.05", "10", "0.01"),  # 0.005 rounds half-up
        ],
    )
    def test_percentage_rounds_to_cent(self, db_session, subtotal, value, expected):
        promo = make_promo(db_session, code="PCT", discount_type="percentage", value=value)
        assert promotions_service.compute_discount(promo, D(subtotal)) == D(expected)


# =============================================================================
# STRICT VALIDATION
# =============================================================================


class TestValidatePromoCode:

    def test_code_is_normalized(self, db_session):
        make_promo(db_session)
        result = promotions_service.validate_promo_code("  save30 ", D("100.00"))
        assert result.promo.code == "SAVE30"
        assert result.discount == D("30.00")

    def test_missing_code(self, db_session):
        with pytest.raises(PromoCodeError, match="required"):
            promotions_service.validate_promo_code("   ", D("100.00"))

    def test_unknown_code(self, db_session):
        with pytest.raises(PromoCodeError, match="Invalid promo code"):
            promotions_service.validate_promo_code("NOPE", D("100.00"))

    def test_inactive(self, db_session):
        make_promo(db_session, is_active=False)
        with pytest.raises(PromoCodeError, match="no longer active"):
            promotions_service.validate_promo_code("SAVE30", D("100.00"))

    def test_not_started(self, db_session):
        make_promo(db_session, starts_at=utcnow() + timedelta(days=2))
        with pytest.raises(PromoCodeError, match="not yet active"):
            promotions_service.validate_promo_code("SAVE30", D("100.00"))

    def test_expired(self, db_session):
        make_promo(db_session, expires_at=utcnow() - timedelta(minutes=1))
        with pytest.raises(PromoCodeError, match="expired"):
            promotions_service.validate_promo_code("SAVE30", D("100.00"))

    def test_usage_limit(self, db_session):
        make_promo(db_session, max_uses=5, current_uses=5)
        with pytest.raises(PromoCodeError, match="usage limit"):
            promotions_service.validate_promo_code("SAVE30", D("100.00"))

    def test_minimum_order(self, db_session):
        make_promo(db_session, min_order_amount=D("75.00"))
        with pytest.raises(PromoCodeError, match=r"Minimum order amount of \$75.00"):
            promotions_service.validate_promo_code("SAVE30", D("74.99"))

    def test_checkout_lookup_is_lenient(self, db_session):
        make_promo(db_session, is_active=False)
        promo, discount = promotions_service.resolve_checkout_discount("SAVE30", D("100.00"))
        assert promo is None
        assert discount == D("0.00")


# =============================================================================
# REDEMPTION
# =============================================================================


class TestRecordPromoUsage:

    def test_increments_current_uses(self, db_session, customer):
        promo = make_promo(db_session, max_uses=2)

        promotions_service.record_promo_usage(promo.id, customer.id, None, D("30.00"))

        db_session.refresh(promo)
        assert promo.current_uses == 1
        assert db_session.query(PromoCodeUsage).filter_by(promo_code_id=promo.id).count() == 1

    def test_cap_is_never_exceeded(self, db_session, customer):
        promo = make_promo(db_session, max_uses=1, current_uses=1)

        promotions_service.record_promo_usage(promo.id, customer.id, None, D("30.00"))

        db_session.refresh(promo)
        assert promo.current_uses == 1
        assert db_session.query(PromoCodeUsage).count() == 1


# =============================================================================
# ADMIN CRUD
# =============================================================================


class TestPromoAdmin:

    def test_create_normalizes_code(self, db_session):
        promo = promotions_service.create_promo_code(
            {"code": "spring10", "discount_type": "percentage", "discount_value": "10"}
        )
        assert promo.code == "SPRING10"
        assert promo.is_active is True
        assert promo.current_uses == 0

    def test_duplicate_code_rejected(self, db_session):
        make_promo(db_session)
        with pytest.raises(ValidationError, match="already exists"):
            promotions_service.create_promo_code({"code": "save30", "discount_type": "fixed", "discount_value": "5"})

    def test_percentage_over_100_rejected(self, db_session):
        with pytest.raises(ValidationError):
            promotions_service.create_promo_code({"code": "X", "discount_type": "percentage", "discount_value": "150"})

    def test_admin_endpoints(self, client, admin_headers):
        resp = client.post(
            "/api/admin/promo-codes",
            json={"code": "fall5", "discount_type": "fixed", "discount_value": "5.00", "max_uses": 10},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        promo_id = resp.get_json()["promo_code"]["id"]

        resp = client.delete(f"/api/admin/promo-codes/{promo_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.get_json()["promo_code"]["is_active"] is False

    def test_customers_cannot_manage_promos(self, client, customer_headers):
        resp = client.get("/api/admin/promo-codes", headers=customer_headers)
        assert resp.status_code == 403


class TestValidateEndpoint:

    def test_valid_code(self, client, db_session, customer_headers):
        make_promo(db_session)
        resp = client.post(
            "/api/promo-codes/validate",
            json={"code": "save30", "subtotal": "100.00"},
            headers=customer_headers,
        )
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["valid"] is True
        assert body["discount"] == "30.00"

    def test_invalid_code(self, client, db_session, customer_headers):
        resp = client.post(
            "/api/promo-codes/validate",
            json={"code": "bogus", "subtotal": "100.00"},
            headers=customer_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid promo code"
