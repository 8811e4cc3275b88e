"""
Pytest fixtures for Pink Post backend tests.

Provides test database setup, seeded catalog, customer/admin accounts,
bearer-token headers, and in-process fakes for Stripe and Resend.
"""

from decimal import Decimal

import pytest

from pinkpost import create_app
from pinkpost.extensions import db, gateway, mailer
from pinkpost.models import PaymentMethod, PostType, RiderCatalog, LockboxType
from pinkpost.models.auth import ROLE_ADMIN
from pinkpost.services import auth_service, catalog_service, session_service
from pinkpost.services.gateway import CardDetails, PaymentIntentResult, TaxCalculationResult

PASSWORD = "Password123"
WEBHOOK_SECRET = "whsec_test_pinkpost"


@pytest.fixture(scope='session', autouse=True)
def fast_bcrypt():
    """Minimum bcrypt cost keeps account fixtures fast."""
    original = auth_service.BCRYPT_ROUNDS
    auth_service.BCRYPT_ROUNDS = 4
    yield
    auth_service.BCRYPT_ROUNDS = original


@pytest.fixture(scope='session')
def app():
    """Create application for testing. Stripe and Resend start unconfigured."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'STRIPE_SECRET_KEY': None,
        'STRIPE_WEBHOOK_SECRET': WEBHOOK_SECRET,
        'RESEND_API_KEY': None,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


# =============================================================================
# CATALOG
# =============================================================================

@pytest.fixture(scope='function')
def catalog(db_session):
    """Seed the default catalog (3 post types, riders, 3 lockbox types)."""
    catalog_service.seed_catalog()
    return catalog_service


@pytest.fixture(scope='function')
def white_post(catalog, db_session):
    return db_session.query(PostType).filter_by(name="White Vinyl Post").one()


@pytest.fixture(scope='function')
def sold_rider(catalog, db_session):
    return db_session.query(RiderCatalog).filter_by(name="SOLD").one()


@pytest.fixture(scope='function')
def rental_lockbox_type(catalog, db_session):
    return db_session.query(LockboxType).filter_by(name="Mechanical (Rental)").one()


@pytest.fixture(scope='function')
def sentrilock_type(catalog, db_session):
    return db_session.query(LockboxType).filter_by(name="SentriLock").one()


# =============================================================================
# ACCOUNTS
# =============================================================================

@pytest.fixture(scope='function')
def customer(db_session):
    return auth_service.create_user(
        email="agent@realty.test",
        password=PASSWORD,
        full_name="Avery Agent",
        phone="502-555-0100",
    )


@pytest.fixture(scope='function')
def other_customer(db_session):
    return auth_service.create_user(email="rival@realty.test", password=PASSWORD, full_name="Riley Rival")


@pytest.fixture(scope='function')
def admin(db_session):
    return auth_service.create_user(
        email="ops@pinkpost.test",
        password=PASSWORD,
        full_name="Ops Admin",
        role=ROLE_ADMIN,
    )


def bearer(user) -> dict:
    _, token = session_service.create_session(user_id=user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def customer_headers(customer):
    return bearer(customer)


@pytest.fixture(scope='function')
def other_headers(other_customer):
    return bearer(other_customer)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture(scope='function')
def saved_card(db_session, customer):
    """Default card on a customer that already has a Stripe customer id."""
    customer.stripe_customer_id = "cus_test_agent"
    method = PaymentMethod(
        user_id=customer.id,
        stripe_payment_method_id="pm_test_visa",
        brand="visa",
        last4="4242",
        exp_month=12,
        exp_year=2030,
        is_default=True,
    )
    db_session.add(method)
    db_session.commit()
    return method


# =============================================================================
# EXTERNAL SERVICE FAKES
# =============================================================================

class FakeGateway:
    """
    Stands in for Stripe on the shared gateway instance.

    tax_cents / tax_percent drive calculate_tax; tax_error makes it raise.
    charge_status drives charge_payment_method; charge_error makes it raise.
    intent_status is what checkout creates and what a later lookup reports;
    cancel_error makes cancel_payment_intent raise.
    """

    def __init__(self):
        self.calls = []
        self.tax_cents = 0
        self.tax_percent = "6.0"
        self.tax_error = None
        self.charge_status = "succeeded"
        self.charge_error = None
        self.intent_status = "requires_payment_method"
        self.cancel_error = None

    def create_customer(self, email, name=None):
        self.calls.append(("create_customer", email))
        return f"cus_{email.split('@')[0]}"

    def create_payment_intent(self, amount, customer_id=None, payment_method_id=None, metadata=None):
        self.calls.append(("create_payment_intent", Decimal(amount), customer_id, payment_method_id))
        return PaymentIntentResult(id="pi_checkout", status=self.intent_status, client_secret="pi_checkout_secret")

    def confirm_payment_intent(self, payment_intent_id, payment_method_id):
        self.calls.append(("confirm_payment_intent", payment_intent_id, payment_method_id))
        return PaymentIntentResult(id=payment_intent_id, status=self.charge_status, client_secret="pi_confirm_secret")

    def retrieve_payment_intent(self, payment_intent_id):
        self.calls.append(("retrieve_payment_intent", payment_intent_id))
        return PaymentIntentResult(id=payment_intent_id, status=self.intent_status, client_secret="pi_checkout_secret")

    def cancel_payment_intent(self, payment_intent_id):
        self.calls.append(("cancel_payment_intent", payment_intent_id))
        if self.cancel_error:
            raise self.cancel_error

    def create_setup_intent(self, customer_id):
        self.calls.append(("create_setup_intent", customer_id))
        return f"seti_secret_{customer_id}"

    def charge_payment_method(self, customer_id, payment_method_id, amount_cents, description, metadata=None):
        self.calls.append(("charge_payment_method", customer_id, payment_method_id, amount_cents))
        if self.charge_error:
            raise self.charge_error
        return PaymentIntentResult(id="pi_capture", status=self.charge_status)

    def attach_payment_method(self, payment_method_id, customer_id):
        self.calls.append(("attach_payment_method", payment_method_id, customer_id))
        return CardDetails(id=payment_method_id, brand="visa", last4="4242", exp_month=12, exp_year=2030)

    def detach_payment_method(self, payment_method_id):
        self.calls.append(("detach_payment_method", payment_method_id))

    def set_default_payment_method(self, customer_id, payment_method_id):
        self.calls.append(("set_default_payment_method", customer_id, payment_method_id))

    def calculate_tax(self, line_items, address):
        self.calls.append(("calculate_tax", line_items, address))
        if self.tax_error:
            raise self.tax_error
        return TaxCalculationResult(
            tax_amount_exclusive=self.tax_cents,
            tax_breakdown=[{"amount": self.tax_cents, "jurisdiction": address.get("state"), "rate": self.tax_percent}],
        )

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture(scope='function')
def fake_gateway(monkeypatch):
    """Configure the shared gateway and route every Stripe call to FakeGateway."""
    fake = FakeGateway()
    monkeypatch.setattr(gateway, "_api_key", "sk_test_fake")
    for name in (
        "create_customer",
        "create_payment_intent",
        "confirm_payment_intent",
        "retrieve_payment_intent",
        "cancel_payment_intent",
        "create_setup_intent",
        "charge_payment_method",
        "attach_payment_method",
        "detach_payment_method",
        "set_default_payment_method",
        "calculate_tax",
    ):
        monkeypatch.setattr(gateway, name, getattr(fake, name))
    return fake


@pytest.fixture(scope='function')
def sent_emails(monkeypatch):
    """Capture outgoing email instead of calling Resend."""
    outbox = []

    def _send(*, to, subject, html):
        outbox.append({"to": to, "subject": subject, "html": html})
        return f"email_{len(outbox)}"

    monkeypatch.setattr(mailer, "_api_key", "re_test_fake")
    monkeypatch.setattr(mailer, "send", _send)
    return outbox

