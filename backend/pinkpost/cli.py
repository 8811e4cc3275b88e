# Overview: Flask CLI command groups for bootstrap, admin users, and promo codes.

# backend/pinkpost/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Idempotent: creates tables and seeds the post type, rider and lockbox catalog.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create-admin --email admin@pinkpost.local --password "Password123"
#   Create an admin account (prompts if options are omitted).
# - python -m flask users list [--role admin]
#
# Promo codes:
# - python -m flask promos create --code SPRING10 --type percentage --value 10 [--max-uses 100]
# - python -m flask promos list [--active-only]

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .models.auth import VALID_ROLES, ROLE_ADMIN
from .services import catalog_service, promotions_service
from .services.auth_service import create_user, PasswordValidationError
from .validation import ValidationError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed the default catalog.

    Creates (only when missing, matched by name):
    - Post types: White Vinyl, Black Vinyl ($55), Signature Pink ($65)
    - Rider catalog at $5 rental each
    - Lockbox types: SentriLock, Mechanical (Customer Owned), Mechanical (Rental)
    """
    click.echo("START Initializing Pink Post...")

    db.create_all()
    click.echo("PASS Tables ready")

    created = catalog_service.seed_catalog()
    click.echo(
        f"PASS Catalog seeded: {created['post_types']} post types, "
        f"{created['riders']} riders, {created['lockbox_types']} lockbox types created"
    )
    click.echo("DONE System initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("This will DELETE ALL DATA. Continue?", abort=True)

    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset. Run 'python -m flask system init' to seed the catalog.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('create-admin')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', 'full_name', default=None, help='Full name')
@with_appcontext
def create_admin_cli(email, password, full_name):
    """
    Create an admin account.

    Password must meet strength requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    """
    try:
        user = create_user(email=email, password=password, full_name=full_name, role=ROLE_ADMIN)
        click.echo(f"PASS Created admin {user.email} (ID: {user.id})")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
    except ValueError as e:
        click.echo(f"FAIL {e}")


@users_group.command('list')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), default=None, help='Filter by role')
@with_appcontext
def list_users_cli(role):
    """List users with role and creation date."""
    q = db.session.query(User)
    if role:
        q = q.filter_by(role=role)
    users = q.order_by(User.id).all()

    if not users:
        click.echo("No users found")
        return

    click.echo(f"{'ID':<6} {'Email':<36} {'Role':<10} Created")
    for user in users:
        created = user.created_at.strftime('%Y-%m-%d') if user.created_at else "-"
        click.echo(f"{user.id:<6} {user.email:<36} {user.role:<10} {created}")


@click.group('promos')
def promos_group():
    """Promo code management."""


@promos_group.command('create')
@click.option('--code', required=True, help='Code customers type at checkout')
@click.option('--type', 'discount_type', type=click.Choice(['percentage', 'fixed']), required=True)
@click.option('--value', 'discount_value', required=True, help='Percent (0-100) or dollar amount')
@click.option('--min-order', 'min_order_amount', default=None, help='Minimum subtotal in dollars')
@click.option('--max-uses', type=int, default=None, help='Total redemption limit')
@click.option('--description', default=None)
@with_appcontext
def create_promo_cli(code, discount_type, discount_value, min_order_amount, max_uses, description):
    """Create an active promo code."""
    data = {
        "code": code,
        "discount_type": discount_type,
        "discount_value": discount_value,
        "min_order_amount": min_order_amount,
        "max_uses": max_uses,
        "description": description,
    }
    try:
        promo = promotions_service.create_promo_code({k: v for k, v in data.items() if v is not None})
        click.echo(f"PASS Created promo code {promo.code} (ID: {promo.id})")
    except ValidationError as e:
        click.echo(f"FAIL {e}")


@promos_group.command('list')
@click.option('--active-only', is_flag=True, help='Hide deactivated codes')
@with_appcontext
def list_promos_cli(active_only):
    """List promo codes with usage counts."""
    promos = promotions_service.list_promo_codes(active_only=active_only)
    if not promos:
        click.echo("No promo codes found")
        return

    for promo in promos:
        limit = promo.max_uses if promo.max_uses else "unlimited"
        state = "active" if promo.is_active else "inactive"
        click.echo(
            f"{promo.code:<16} {promo.discount_type:<10} {promo.discount_value:>8} "
            f"uses {promo.current_uses}/{limit} ({state})"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(promos_group)
