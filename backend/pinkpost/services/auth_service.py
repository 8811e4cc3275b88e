# Overview: Account creation and password authentication for customers and admins.

"""
Authentication Service

Passwords are hashed with bcrypt. Emails are the login identifier and are
stored lower-cased.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS)
- Minimum 8 characters, with upper, lower and digit
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..models import User
from ..models.auth import ROLE_CUSTOMER, VALID_ROLES
from pinkpost.time_utils import utcnow


BCRYPT_ROUNDS = 12

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not password or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_user(
    email: str,
    password: str,
    full_name: str | None = None,
    phone: str | None = None,
    company: str | None = None,
    license_number: str | None = None,
    role: str = ROLE_CUSTOMER,
) -> User:
    """
    Create a user with a bcrypt password hash.

    Raises:
        ValueError: malformed email, unknown role, or email already registered
        PasswordValidationError: password doesn't meet requirements
    """
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValueError("A valid email address is required")
    if role not in VALID_ROLES:
        raise ValueError(f"Unknown role: {role}")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise ValueError("An account with this email already exists")

    password_hash = hash_password(password)

    user = User(
        email=email,
        password_hash=password_hash,
        full_name=(full_name or "").strip() or None,
        phone=(phone or "").strip() or None,
        company=(company or "").strip() or None,
        license_number=(license_number or "").strip() or None,
        role=role,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Returns the active User if credentials are valid, None otherwise.
    Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        User.email == normalize_email(email),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password or "", user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None
