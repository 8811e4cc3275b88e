"""
Resend mailer tests.

Every provider problem, including a 2xx reply that is not JSON, surfaces as
MailerError so email_service can log it and move on.
"""

import httpx
import pytest

from pinkpost.extensions import mailer
from pinkpost.services.mailer import RESEND_API_URL, MailerError


def reply(status_code, **kwargs):
    def _post(url, **_):
        return httpx.Response(status_code, request=httpx.Request("POST", url), **kwargs)
    return _post


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(mailer, "_api_key", "re_test_fake")
    return mailer


class TestResendMailer:

    def test_returns_message_id(self, configured, monkeypatch):
        monkeypatch.setattr(httpx, "post", reply(200, json={"id": "msg_123"}))

        assert configured.send(to="agent@realty.test", subject="Hi", html="<p>Hi</p>") == "msg_123"

    def test_non_json_success_body_is_mailer_error(self, configured, monkeypatch):
        monkeypatch.setattr(httpx, "post", reply(200, text="<html>gateway page</html>"))

        with pytest.raises(MailerError):
            configured.send(to="agent@realty.test", subject="Hi", html="<p>Hi</p>")

    def test_http_error_is_mailer_error(self, configured, monkeypatch):
        monkeypatch.setattr(httpx, "post", reply(422, json={"message": "invalid from"}))

        with pytest.raises(MailerError):
            configured.send(to=["agent@realty.test"], subject="Hi", html="<p>Hi</p>")

    def test_network_failure_is_mailer_error(self, configured, monkeypatch):
        def _down(url, **_):
            raise httpx.ConnectError("connection refused", request=httpx.Request("POST", url))

        monkeypatch.setattr(httpx, "post", _down)

        with pytest.raises(MailerError):
            configured.send(to="agent@realty.test", subject="Hi", html="<p>Hi</p>")

    def test_unconfigured_is_mailer_error(self, monkeypatch):
        monkeypatch.setattr(mailer, "_api_key", None)

        with pytest.raises(MailerError, match="RESEND_API_KEY"):
            mailer.send(to="agent@realty.test", subject="Hi", html="<p>Hi</p>")

    def test_posts_to_resend(self, configured, monkeypatch):
        seen = {}

        def _post(url, **kwargs):
            seen["url"] = url
            seen["json"] = kwargs["json"]
            return httpx.Response(200, json={"id": "msg_1"}, request=httpx.Request("POST", url))

        monkeypatch.setattr(httpx, "post", _post)

        configured.send(to="agent@realty.test", subject="Order placed", html="<p>ok</p>")

        assert seen["url"] == RESEND_API_URL
        assert seen["json"]["to"] == ["agent@realty.test"]
        assert seen["json"]["subject"] == "Order placed"
