"""
Authentication and health endpoint tests.
"""

import pytest

from pinkpost.models import Notification

PASSWORD = "Password123"


class TestRegister:

    def test_register_returns_token(self, client, db_session):
        resp = client.post(
            "/api/auth/register",
            json={"email": "New.Agent@Realty.test", "password": PASSWORD, "full_name": "Nia New"},
        )

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["user"]["email"] == "new.agent@realty.test"
        assert body["user"]["role"] == "customer"
        assert body["token"]
        assert body["message"] == "Registration successful"

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.get_json()["user"]["full_name"] == "Nia New"

    def test_register_creates_welcome_notification(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "hi@realty.test", "password": PASSWORD})
        user_id = resp.get_json()["user"]["id"]
        assert db_session.query(Notification).filter_by(user_id=user_id, type="welcome").count() == 1

    @pytest.mark.parametrize(
        "password,message",
        [
            ("Short1", "at least 8 characters"),
            ("alllowercase1", "uppercase"),
            ("ALLUPPERCASE1", "lowercase"),
            ("NoDigitsHere", "digit"),
        ],
    )
    def test_weak_password(self, client, db_session, password, message):
        resp = client.post("/api/auth/register", json={"email": "weak@realty.test", "password": password})
        assert resp.status_code == 400
        assert message in resp.get_json()["error"]

    def test_duplicate_email(self, client, customer):
        resp = client.post("/api/auth/register", json={"email": "AGENT@realty.test", "password": PASSWORD})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "An account with this email already exists"

    def test_missing_fields(self, client, db_session):
        resp = client.post("/api/auth/register", json={"email": "x@realty.test"})
        assert resp.status_code == 400


class TestLogin:

    def test_login_and_logout(self, client, customer):
        resp = client.post("/api/auth/login", json={"email": "agent@realty.test", "password": PASSWORD})
        assert resp.status_code == 200
        headers = {"Authorization": f"Bearer {resp.get_json()['token']}"}

        assert client.get("/api/auth/me", headers=headers).status_code == 200
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_wrong_password(self, client, customer):
        resp = client.post("/api/auth/login", json={"email": "agent@realty.test", "password": "Wrong12345"})
        assert resp.status_code == 401
        assert resp.get_json()["error"] == "Invalid credentials"

    def test_inactive_user_cannot_login(self, client, db_session, customer):
        customer.is_active = False
        db_session.commit()
        resp = client.post("/api/auth/login", json={"email": "agent@realty.test", "password": PASSWORD})
        assert resp.status_code == 401

    def test_logout_without_header(self, client, db_session):
        assert client.post("/api/auth/logout").status_code == 401


class TestHealth:

    def test_health_reports_integrations(self, client, db_session):
        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["stripe"] == {"configured": False}
        assert body["checks"]["email"] == {"configured": False}
