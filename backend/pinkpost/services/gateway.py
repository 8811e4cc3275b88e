# Overview: Stripe client wrapper for payments and Stripe Tax; all amounts cross this boundary in cents.

"""
Stripe Gateway

WHY: The order engine keeps decimal dollars. Stripe speaks integer cents and
raises its own exception hierarchy. This wrapper is the only place that
imports the Stripe SDK, converts amounts, and normalizes provider errors into
GatewayError so callers can choose between fallback and failure-flagging.

Follows the Flask extension pattern (init_app) so tests can swap methods
on the shared instance in extensions.py.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import stripe

from pinkpost.money import to_cents

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised for any payment/tax provider failure."""


@dataclass
class PaymentIntentResult:
    id: str
    status: str
    client_secret: str | None = None


@dataclass
class WebhookEvent:
    type: str
    object_id: str | None
    status: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class TaxCalculationResult:
    tax_amount_exclusive: int  # cents
    tax_breakdown: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class CardDetails:
    id: str
    brand: str
    last4: str
    exp_month: int
    exp_year: int


class StripeGateway:
    def __init__(self, app=None):
        self._api_key: str | None = None
        self._api_version: str | None = None
        self._return_url: str | None = None
        self._webhook_secret: str | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self._api_key = app.config.get("STRIPE_SECRET_KEY")
        self._api_version = app.config.get("STRIPE_API_VERSION")
        self._webhook_secret = app.config.get("STRIPE_WEBHOOK_SECRET")
        app_url = app.config.get("APP_URL") or ""
        self._return_url = f"{app_url.rstrip('/')}/dashboard/order-confirmation"
        app.extensions["stripe_gateway"] = self

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _stripe(self):
        if not self._api_key:
            raise GatewayError("STRIPE_SECRET_KEY is not configured")
        stripe.api_key = self._api_key
        if self._api_version:
            stripe.api_version = self._api_version
        return stripe

    # =========================================================================
    # CUSTOMERS
    # =========================================================================

    def create_customer(self, email: str, name: str | None = None) -> str:
        try:
            customer = self._stripe().Customer.create(email=email, name=name or None)
        except stripe.StripeError as exc:
            raise GatewayError(f"Customer creation failed: {exc}") from exc
        logger.info("Created Stripe customer %s for %s", customer.id, email)
        return customer.id

    # =========================================================================
    # PAYMENT INTENTS
    # =========================================================================

    def create_payment_intent(
        self,
        amount,
        customer_id: str | None = None,
        payment_method_id: str | None = None,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntentResult:
        """
        Create (and, when a payment method is given, confirm) a PaymentIntent.

        Args:
            amount: Decimal dollars; converted to cents here.
        """
        params: dict[str, Any] = {
            "amount": to_cents(amount),
            "currency": "usd",
            "automatic_payment_methods": {"enabled": True},
        }
        if customer_id:
            params["customer"] = customer_id
        if payment_method_id:
            params["payment_method"] = payment_method_id
            params["confirm"] = True
            params["return_url"] = self._return_url
        if metadata:
            params["metadata"] = metadata

        try:
            intent = self._stripe().PaymentIntent.create(**params)
        except stripe.StripeError as exc:
            raise GatewayError(f"PaymentIntent creation failed: {exc}") from exc

        return PaymentIntentResult(id=intent.id, status=intent.status, client_secret=intent.client_secret)

    def confirm_payment_intent(self, payment_intent_id: str, payment_method_id: str) -> PaymentIntentResult:
        try:
            intent = self._stripe().PaymentIntent.confirm(
                payment_intent_id,
                payment_method=payment_method_id,
                return_url=self._return_url,
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"PaymentIntent confirmation failed: {exc}") from exc
        return PaymentIntentResult(id=intent.id, status=intent.status, client_secret=intent.client_secret)

    def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntentResult:
        try:
            intent = self._stripe().PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as exc:
            raise GatewayError(f"PaymentIntent lookup failed: {exc}") from exc
        return PaymentIntentResult(id=intent.id, status=intent.status, client_secret=intent.client_secret)

    def cancel_payment_intent(self, payment_intent_id: str) -> None:
        try:
            self._stripe().PaymentIntent.cancel(payment_intent_id)
        except stripe.StripeError as exc:
            raise GatewayError(f"PaymentIntent cancellation failed: {exc}") from exc
        logger.info("Cancelled PaymentIntent %s", payment_intent_id)

    def charge_payment_method(
        self,
        customer_id: str,
        payment_method_id: str,
        amount_cents: int,
        description: str,
        metadata: dict[str, str] | None = None,
    ) -> PaymentIntentResult:
        """Off-session charge of a saved card."""
        try:
            intent = self._stripe().PaymentIntent.create(
                amount=amount_cents,
                currency="usd",
                customer=customer_id,
                payment_method=payment_method_id,
                off_session=True,
                confirm=True,
                description=description,
                metadata=metadata or {},
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"Charge failed: {exc}") from exc

        logger.info("Charged %s cents to customer %s (%s)", amount_cents, customer_id, intent.status)
        return PaymentIntentResult(id=intent.id, status=intent.status, client_secret=intent.client_secret)

    # =========================================================================
    # PAYMENT METHODS
    # =========================================================================

    def create_setup_intent(self, customer_id: str) -> str:
        """Start saving a card for later off-session charges; returns the client secret."""
        try:
            intent = self._stripe().SetupIntent.create(
                customer=customer_id,
                payment_method_types=["card"],
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"SetupIntent creation failed: {exc}") from exc
        return intent.client_secret

    def attach_payment_method(self, payment_method_id: str, customer_id: str) -> CardDetails:
        try:
            pm = self._stripe().PaymentMethod.attach(payment_method_id, customer=customer_id)
        except stripe.StripeError as exc:
            raise GatewayError(f"Could not attach payment method: {exc}") from exc

        card = getattr(pm, "card", None)
        return CardDetails(
            id=pm.id,
            brand=getattr(card, "brand", None) or "unknown",
            last4=getattr(card, "last4", None) or "****",
            exp_month=getattr(card, "exp_month", None) or 0,
            exp_year=getattr(card, "exp_year", None) or 0,
        )

    def detach_payment_method(self, payment_method_id: str) -> None:
        try:
            self._stripe().PaymentMethod.detach(payment_method_id)
        except stripe.StripeError as exc:
            raise GatewayError(f"Could not detach payment method: {exc}") from exc

    def set_default_payment_method(self, customer_id: str, payment_method_id: str) -> None:
        try:
            self._stripe().Customer.modify(
                customer_id,
                invoice_settings={"default_payment_method": payment_method_id},
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"Could not set default payment method: {exc}") from exc

    # =========================================================================
    # STRIPE TAX
    # =========================================================================

    def calculate_tax(self, line_items: list[dict], address: dict) -> TaxCalculationResult:
        """
        Args:
            line_items: [{"amount": cents, "reference": str, "tax_code": str}]
            address: {"line1", "city", "state", "postal_code", "country"}
        """
        try:
            calculation = self._stripe().tax.Calculation.create(
                currency="usd",
                line_items=line_items,
                customer_details={"address": address, "address_source": "shipping"},
            )
        except stripe.StripeError as exc:
            raise GatewayError(f"Tax calculation failed: {exc}") from exc

        breakdown = []
        for entry in calculation.tax_breakdown or []:
            details = entry.tax_rate_details
            breakdown.append({
                "amount": entry.amount,
                "jurisdiction": getattr(details, "state", None) or getattr(details, "country", None) or "",
                "rate": getattr(details, "percentage_decimal", None) or "0",
                "tax_type": getattr(details, "tax_type", None),
            })

        return TaxCalculationResult(
            tax_amount_exclusive=calculation.tax_amount_exclusive,
            tax_breakdown=breakdown,
        )

    # =========================================================================
    # WEBHOOKS
    # =========================================================================

    def construct_webhook_event(self, payload: bytes, signature: str) -> WebhookEvent:
        """
        Verify a webhook delivery against STRIPE_WEBHOOK_SECRET and flatten it.

        Raises:
            GatewayError: secret missing, bad signature or unparseable payload.
        """
        if not self._webhook_secret:
            raise GatewayError("STRIPE_WEBHOOK_SECRET is not configured")
        try:
            stripe.Webhook.construct_event(payload, signature, self._webhook_secret)
            event = json.loads(payload)
        except (ValueError, stripe.SignatureVerificationError) as exc:
            raise GatewayError(f"Webhook verification failed: {exc}") from exc

        obj = (event.get("data") or {}).get("object") or {}
        return WebhookEvent(
            type=event.get("type") or "",
            object_id=obj.get("id"),
            status=obj.get("status"),
            metadata=dict(obj.get("metadata") or {}),
        )
