# Overview: Minimal Resend HTTP client used for transactional email.

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class MailerError(Exception):
    """Raised when an email could not be handed to the provider."""


class ResendMailer:
    """
    One attempt per message, bounded by EMAIL_TIMEOUT_SECONDS.

    Callers in email_service treat every MailerError as log-and-continue.
    """

    def __init__(self, app=None):
        self._api_key: str | None = None
        self._sender: str | None = None
        self._timeout: float = 10.0
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self._api_key = app.config.get("RESEND_API_KEY")
        self._sender = app.config.get("EMAIL_FROM")
        self._timeout = float(app.config.get("EMAIL_TIMEOUT_SECONDS", 10))
        app.extensions["resend_mailer"] = self

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def send(self, *, to: str | list[str], subject: str, html: str) -> str | None:
        if not self._api_key:
            raise MailerError("RESEND_API_KEY is not configured")

        recipients = [to] if isinstance(to, str) else list(to)
        try:
            response = httpx.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json={"from": self._sender, "to": recipients, "subject": subject, "html": html},
                timeout=self._timeout,
            )
            response.raise_for_status()
            message_id = response.json().get("id")
        except (httpx.HTTPError, ValueError) as exc:
            raise MailerError(f"Email send failed: {exc}") from exc

        logger.info("Sent email %r to %s (id=%s)", subject, ", ".join(recipients), message_id)
        return message_id
