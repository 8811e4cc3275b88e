# Overview: Transactional emails (order confirmation, admin alert, installation complete); best-effort.

"""
Every send_* function returns True when the provider accepted the message
and False otherwise. Failures are logged and never raised: email is a side
channel and must not fail checkout or a status transition.
"""

from __future__ import annotations

import logging

from flask import current_app, render_template_string
from markupsafe import Markup

from ..extensions import mailer
from ..models import Order
from .mailer import MailerError
from pinkpost.money import money_str

logger = logging.getLogger(__name__)


_LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{{ title }}</title></head>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #FFF0F3;">
  <div style="background-color: white; border-radius: 12px; padding: 32px;">
    <h1 style="color: #E84A7A; margin: 0; text-align: center;">Pink Post Installations</h1>
    {{ body }}
  </div>
</body>
</html>"""

_ORDER_CONFIRMATION = """
<p>Hi {{ name }},</p>
<p>Thank you for your order! We have received it and will schedule your installation soon.</p>
<p><strong>Order Number:</strong> {{ order.order_number }}<br>
<strong>Property:</strong> {{ address }}
{% if order.requested_date %}<br><strong>Requested Date:</strong> {{ order.requested_date.isoformat() }}{% endif %}</p>
<table style="width: 100%; border-collapse: collapse;">
  <tr><th align="left">Item</th><th>Qty</th><th align="right">Price</th></tr>
  {% for item in items %}
  <tr><td>{{ item.description or item.item_type }}</td><td align="center">{{ item.quantity }}</td><td align="right">${{ item.total_price }}</td></tr>
  {% endfor %}
</table>
<p style="text-align: right;"><strong>Total: ${{ total }}</strong></p>
"""

_ADMIN_ORDER = """
<p>{% if order.is_expedited %}<strong>EXPEDITED</strong> {% endif %}New order {{ order.order_number }}</p>
<p><strong>Customer:</strong> {{ name }} ({{ email }})<br>
<strong>Property:</strong> {{ address }}<br>
<strong>Total:</strong> ${{ total }}</p>
<p><a href="{{ link }}">View order</a></p>
"""

_INSTALLATION_COMPLETE = """
<p>Hi {{ name }},</p>
<p>Your sign post at <strong>{{ address }}</strong> has been installed.</p>
<p>Order Number: {{ order.order_number }}</p>
<p><a href="{{ link }}">View your installations</a></p>
"""


def _render(title: str, body_template: str, **context) -> str:
    body = render_template_string(body_template, **context)
    return render_template_string(_LAYOUT, title=title, body=Markup(body))


def _address(order: Order) -> str:
    return f"{order.property_address}, {order.property_city}, {order.property_state} {order.property_zip}"


def _customer_name(order: Order) -> str:
    user = order.user
    return (user.full_name or user.email) if user else "there"


def _app_url() -> str:
    return (current_app.config.get("APP_URL") or "").rstrip("/")


def _send(to: str | None, subject: str, html: str) -> bool:
    if not to:
        logger.warning("Skipping email %r: no recipient", subject)
        return False
    try:
        mailer.send(to=to, subject=subject, html=html)
    except MailerError as exc:
        logger.warning("Email %r to %s failed: %s", subject, to, exc)
        return False
    return True


def send_order_confirmation(order: Order) -> bool:
    items = [
        {
            "description": item.description,
            "item_type": item.item_type,
            "quantity": item.quantity,
            "total_price": money_str(item.total_price),
        }
        for item in order.items
    ]
    subject = f"Order Confirmation - {order.order_number}"
    html = _render(
        subject,
        _ORDER_CONFIRMATION,
        name=_customer_name(order),
        order=order,
        address=_address(order),
        items=items,
        total=money_str(order.total),
    )
    return _send(order.user.email if order.user else None, subject, html)


def send_admin_order_notification(order: Order) -> bool:
    prefix = "EXPEDITED " if order.is_expedited else ""
    subject = f"{prefix}New Order: {order.order_number}"
    html = _render(
        subject,
        _ADMIN_ORDER,
        order=order,
        name=_customer_name(order),
        email=order.user.email if order.user else "",
        address=_address(order),
        total=money_str(order.total),
        link=f"{_app_url()}/admin/orders/{order.id}",
    )
    return _send(current_app.config.get("ADMIN_NOTIFICATION_EMAIL"), subject, html)


def send_installation_complete(order: Order) -> bool:
    subject = "Your Sign Installation is Complete!"
    html = _render(
        subject,
        _INSTALLATION_COMPLETE,
        name=_customer_name(order),
        order=order,
        address=_address(order),
        link=f"{_app_url()}/dashboard",
    )
    return _send(order.user.email if order.user else None, subject, html)
