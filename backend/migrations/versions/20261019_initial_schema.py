"""Initial schema: accounts, catalog, storage, promotions, orders, installations

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. users, session_tokens (bcrypt accounts + opaque bearer sessions)
2. post_types, rider_catalog, lockbox_types (product catalog)
3. customer_signs, customer_riders, customer_lockboxes, customer_brochure_boxes (warehouse storage)
4. promo_codes, promo_code_usages
5. orders (version_id optimistic locking), order_items
6. installations, installation_riders, installation_lockboxes, service_requests
7. payment_methods, notifications
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


NOW = sa.text('(CURRENT_TIMESTAMP)')


def _stored_item_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('in_storage', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('removed_from_storage_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    # ==========================================================================
    # 1. ACCOUNTS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('company', sa.String(length=255), nullable=True),
        sa.Column('license_number', sa.String(length=64), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='customer'),
        sa.Column('stripe_customer_id', sa.String(length=64), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_customer_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_users_email'), ['email'], unique=True)
        batch_op.create_index(batch_op.f('ix_users_role'), ['role'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_session_tokens_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_token_hash'), ['token_hash'], unique=True)
        batch_op.create_index(batch_op.f('ix_session_tokens_expires_at'), ['expires_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_session_tokens_is_revoked'), ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 2. CATALOG
    # ==========================================================================
    op.create_table('post_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('image_url', sa.String(length=255), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    op.create_table('rider_catalog',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('rental_price', sa.Numeric(precision=10, scale=2), nullable=False, server_default='5'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    op.create_table('lockbox_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('rental_price', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('install_fee', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('is_rentable', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    for table in ('post_types', 'rider_catalog', 'lockbox_types'):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{table}_is_active'), ['is_active'], unique=False)

    # ==========================================================================
    # 3. CUSTOMER STORAGE
    # ==========================================================================
    op.create_table('customer_signs',
        *_stored_item_columns(),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('size', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_table('customer_riders',
        *_stored_item_columns(),
        sa.Column('rider_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['rider_id'], ['rider_catalog.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_table('customer_lockboxes',
        *_stored_item_columns(),
        sa.Column('lockbox_type_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['lockbox_type_id'], ['lockbox_types.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_table('customer_brochure_boxes',
        *_stored_item_columns(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    for table in ('customer_signs', 'customer_riders', 'customer_lockboxes', 'customer_brochure_boxes'):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{table}_user_id'), ['user_id'], unique=False)
            batch_op.create_index(batch_op.f(f'ix_{table}_in_storage'), ['in_storage'], unique=False)
    with op.batch_alter_table('customer_riders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_customer_riders_rider_id'), ['rider_id'], unique=False)
    with op.batch_alter_table('customer_lockboxes', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_customer_lockboxes_lockbox_type_id'), ['lockbox_type_id'], unique=False)

    # ==========================================================================
    # 4. PROMOTIONS
    # ==========================================================================
    op.create_table('promo_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('discount_type', sa.String(length=16), nullable=False),
        sa.Column('discount_value', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('min_order_amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('max_uses', sa.Integer(), nullable=True),
        sa.Column('current_uses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('promo_codes', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_promo_codes_code'), ['code'], unique=True)
        batch_op.create_index(batch_op.f('ix_promo_codes_is_active'), ['is_active'], unique=False)

    # ==========================================================================
    # 5. ORDERS
    # ==========================================================================
    op.create_table('orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('post_type_id', sa.Integer(), nullable=True),
        sa.Column('promo_code_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('payment_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('property_type', sa.String(length=32), nullable=False),
        sa.Column('property_address', sa.String(length=255), nullable=False),
        sa.Column('property_city', sa.String(length=128), nullable=False),
        sa.Column('property_state', sa.String(length=8), nullable=False),
        sa.Column('property_zip', sa.String(length=16), nullable=False),
        sa.Column('installation_location', sa.String(length=255), nullable=True),
        sa.Column('property_notes', sa.Text(), nullable=True),
        sa.Column('requested_date', sa.Date(), nullable=True),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_expedited', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('subtotal', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('discount', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('fuel_surcharge', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('no_post_surcharge', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('expedite_fee', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('tax', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('tax_method', sa.String(length=16), nullable=False, server_default='fallback'),
        sa.Column('tax_rate', sa.Numeric(precision=8, scale=4), nullable=True),
        sa.Column('payment_intent_id', sa.String(length=64), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['post_type_id'], ['post_types.id'], ),
        sa.ForeignKeyConstraint(['promo_code_id'], ['promo_codes.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_orders_order_number'), ['order_number'], unique=True)
        batch_op.create_index(batch_op.f('ix_orders_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_payment_status'), ['payment_status'], unique=False)
        batch_op.create_index(batch_op.f('ix_orders_payment_intent_id'), ['payment_intent_id'], unique=False)
        batch_op.create_index('ix_orders_user_status_created', ['user_id', 'status', 'created_at'], unique=False)

    op.create_table('order_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('item_type', sa.String(length=16), nullable=False),
        sa.Column('item_category', sa.String(length=16), nullable=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('total_price', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('customer_sign_id', sa.Integer(), nullable=True),
        sa.Column('customer_rider_id', sa.Integer(), nullable=True),
        sa.Column('customer_lockbox_id', sa.Integer(), nullable=True),
        sa.Column('customer_brochure_box_id', sa.Integer(), nullable=True),
        sa.Column('rider_id', sa.Integer(), nullable=True),
        sa.Column('lockbox_type_id', sa.Integer(), nullable=True),
        sa.Column('lockbox_code', sa.String(length=64), nullable=True),
        sa.Column('custom_value', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['customer_sign_id'], ['customer_signs.id'], ),
        sa.ForeignKeyConstraint(['customer_rider_id'], ['customer_riders.id'], ),
        sa.ForeignKeyConstraint(['customer_lockbox_id'], ['customer_lockboxes.id'], ),
        sa.ForeignKeyConstraint(['customer_brochure_box_id'], ['customer_brochure_boxes.id'], ),
        sa.ForeignKeyConstraint(['rider_id'], ['rider_catalog.id'], ),
        sa.ForeignKeyConstraint(['lockbox_type_id'], ['lockbox_types.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('order_items', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_order_items_order_id'), ['order_id'], unique=False)

    op.create_table('promo_code_usages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('promo_code_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('discount_amount', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('used_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['promo_code_id'], ['promo_codes.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('promo_code_usages', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_promo_code_usages_promo_code_id'), ['promo_code_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_promo_code_usages_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_promo_code_usages_order_id'), ['order_id'], unique=False)
        batch_op.create_index('ix_promo_code_usages_code_user', ['promo_code_id', 'user_id'], unique=False)

    # ==========================================================================
    # 6. INSTALLATIONS
    # ==========================================================================
    op.create_table('installations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('post_type_id', sa.Integer(), nullable=True),
        sa.Column('customer_sign_id', sa.Integer(), nullable=True),
        sa.Column('property_address', sa.String(length=255), nullable=False),
        sa.Column('property_city', sa.String(length=128), nullable=False),
        sa.Column('property_state', sa.String(length=8), nullable=False),
        sa.Column('property_zip', sa.String(length=16), nullable=False),
        sa.Column('installation_location', sa.String(length=255), nullable=True),
        sa.Column('status', sa.String(length=24), nullable=False, server_default='active'),
        sa.Column('installed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('removal_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('removed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['post_type_id'], ['post_types.id'], ),
        sa.ForeignKeyConstraint(['customer_sign_id'], ['customer_signs.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('order_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('installations', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_installations_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_installations_status'), ['status'], unique=False)

    op.create_table('installation_riders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('installation_id', sa.Integer(), nullable=False),
        sa.Column('rider_id', sa.Integer(), nullable=False),
        sa.Column('customer_rider_id', sa.Integer(), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('is_rental', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('custom_value', sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(['installation_id'], ['installations.id'], ),
        sa.ForeignKeyConstraint(['rider_id'], ['rider_catalog.id'], ),
        sa.ForeignKeyConstraint(['customer_rider_id'], ['customer_riders.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_table('installation_lockboxes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('installation_id', sa.Integer(), nullable=False),
        sa.Column('lockbox_type_id', sa.Integer(), nullable=False),
        sa.Column('customer_lockbox_id', sa.Integer(), nullable=True),
        sa.Column('is_rental', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('code', sa.String(length=64), nullable=True),
        sa.ForeignKeyConstraint(['installation_id'], ['installations.id'], ),
        sa.ForeignKeyConstraint(['lockbox_type_id'], ['lockbox_types.id'], ),
        sa.ForeignKeyConstraint(['customer_lockbox_id'], ['customer_lockboxes.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    for table in ('installation_riders', 'installation_lockboxes'):
        with op.batch_alter_table(table, schema=None) as batch_op:
            batch_op.create_index(batch_op.f(f'ix_{table}_installation_id'), ['installation_id'], unique=False)

    op.create_table('service_requests',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('installation_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('request_type', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('requested_date', sa.Date(), nullable=True),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['installation_id'], ['installations.id'], ),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('service_requests', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_service_requests_installation_id'), ['installation_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_service_requests_user_id'), ['user_id'], unique=False)
        batch_op.create_index(batch_op.f('ix_service_requests_status'), ['status'], unique=False)

    # ==========================================================================
    # 7. PAYMENT METHODS & NOTIFICATIONS
    # ==========================================================================
    op.create_table('payment_methods',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('stripe_payment_method_id', sa.String(length=64), nullable=False),
        sa.Column('brand', sa.String(length=32), nullable=True),
        sa.Column('last4', sa.String(length=4), nullable=True),
        sa.Column('exp_month', sa.Integer(), nullable=True),
        sa.Column('exp_year', sa.Integer(), nullable=True),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('stripe_payment_method_id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('payment_methods', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_payment_methods_user_id'), ['user_id'], unique=False)

    op.create_table('notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=40), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(length=255), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=NOW, nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('notifications', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_notifications_user_id'), ['user_id'], unique=False)
        batch_op.create_index('ix_notifications_user_read', ['user_id', 'is_read'], unique=False)


def downgrade():
    for table in (
        'notifications', 'payment_methods', 'service_requests',
        'installation_lockboxes', 'installation_riders', 'installations',
        'promo_code_usages', 'order_items', 'orders', 'promo_codes',
        'customer_brochure_boxes', 'customer_lockboxes', 'customer_riders', 'customer_signs',
        'lockbox_types', 'rider_catalog', 'post_types',
        'session_tokens', 'users',
    ):
        op.drop_table(table)
