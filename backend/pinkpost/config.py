# backend/pinkpost/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pinkpost.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Public site URL, used for payment return URLs and links in emails
    APP_URL = os.environ.get("APP_URL", "http://localhost:3000")

    # Stripe (payments + Stripe Tax)
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION", "2023-10-16")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")

    # Resend transactional email
    RESEND_API_KEY = os.environ.get("RESEND_API_KEY")
    EMAIL_FROM = os.environ.get("EMAIL_FROM", "Pink Post Installations <orders@pinkposts.com>")
    ADMIN_NOTIFICATION_EMAIL = os.environ.get("ADMIN_NOTIFICATION_EMAIL", "admin@pinkposts.com")
    EMAIL_TIMEOUT_SECONDS = float(os.environ.get("EMAIL_TIMEOUT_SECONDS", "10"))

    # Pricing (dollars). Loaded into services.pricing_service.PricingConfig.
    PRICING_FUEL_SURCHARGE = os.environ.get("PRICING_FUEL_SURCHARGE", "2.47")
    PRICING_EXPEDITE_FEE = os.environ.get("PRICING_EXPEDITE_FEE", "25.00")
    PRICING_NO_POST_SURCHARGE = os.environ.get("PRICING_NO_POST_SURCHARGE", "0.00")
    PRICING_FALLBACK_TAX_RATE = os.environ.get("PRICING_FALLBACK_TAX_RATE", "0.06")
    PRICING_DEFAULT_STATE = os.environ.get("PRICING_DEFAULT_STATE", "KY")

    # Session lifetimes
    SESSION_ABSOLUTE_HOURS = int(os.environ.get("SESSION_ABSOLUTE_HOURS", "24"))
    SESSION_IDLE_HOURS = int(os.environ.get("SESSION_IDLE_HOURS", "2"))

    # Frontend dev servers allowed to call the API from the browser
    CORS_ALLOWED_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if o.strip()
    ]
