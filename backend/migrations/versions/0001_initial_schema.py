"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete stockroom schema:
- roles / permissions / role_permissions: role-based access control
- users / session_tokens: accounts, hashed bearer tokens and reset tokens
- categories / products: catalog with the stock counter
- customers / providers / branches: parties and locations
- purchases / purchase_lines, sales / sale_lines: stock-moving documents
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def _created_at():
    return sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                     server_default=sa.text('CURRENT_TIMESTAMP'))


def upgrade():
    # ============================================================================
    # Access control
    # ============================================================================
    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='0'),
        _created_at(),
        sa.PrimaryKeyConstraint('id', name='pk_roles'),
        sa.UniqueConstraint('code', name='uq_roles_code'),
        sa.UniqueConstraint('name', name='uq_roles_name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id', name='pk_permissions'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_permissions_code', 'permissions', ['code'], unique=True)
    op.create_index('ix_permissions_category', 'permissions', ['category'])

    op.create_table(
        'role_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('permission_id', sa.Integer(), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], name='fk_role_permissions_role_id_roles'),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'],
                                name='fk_role_permissions_permission_id_permissions'),
        sa.PrimaryKeyConstraint('id', name='pk_role_permissions'),
        sa.UniqueConstraint('role_id', 'permission_id', name='uq_role_permissions'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_role_permissions_role_id', 'role_permissions', ['role_id'])
    op.create_index('ix_role_permissions_permission_id', 'role_permissions', ['permission_id'])

    # ============================================================================
    # Accounts and sessions
    # ============================================================================
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('lastname', sa.String(length=100), nullable=False),
        sa.Column('contact_number', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('reset_token_hash', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expires_at', sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], name='fk_users_role_id_roles'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role_id', 'users', ['role_id'])
    op.create_index('ix_users_reset_token_hash', 'users', ['reset_token_hash'], unique=True)

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        _created_at(),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_expires_at', 'session_tokens', ['expires_at'])
    op.create_index('ix_session_tokens_is_revoked', 'session_tokens', ['is_revoked'])
    op.create_index('ix_session_tokens_user_active', 'session_tokens', ['user_id', 'is_revoked'])

    # ============================================================================
    # Catalog
    # ============================================================================
    op.create_table(
        'categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _created_at(),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
        sa.UniqueConstraint('code', name='uq_categories_code'),
        sa.UniqueConstraint('name', name='uq_categories_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_categories_status', 'categories', ['status'])

    # stock only moves through purchases and sales; the CHECK is the backstop
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('batch_date', sa.Date(), nullable=False),
        sa.Column('expiration_date', sa.Date(), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.CheckConstraint('stock >= 0', name='ck_products_stock_non_negative'),
        sa.CheckConstraint('batch_date <= expiration_date', name='ck_products_batch_before_expiration'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], name='fk_products_category_id_categories'),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('code', name='uq_products_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_category_id', 'products', ['category_id'])
    op.create_index('ix_products_status', 'products', ['status'])
    op.create_index('ix_products_status_expiration', 'products', ['status', 'expiration_date'])

    # ============================================================================
    # Parties and locations
    # ============================================================================
    op.create_table(
        'customers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('lastname', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('is_default', sa.Boolean(), nullable=False, server_default='0'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_customers'),
        sa.UniqueConstraint('code', name='uq_customers_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_customers_email', 'customers', ['email'], unique=True)
    op.create_index('ix_customers_status', 'customers', ['status'])
    # At most one walk-in default customer
    op.create_index(
        'uq_customers_single_default', 'customers', ['is_default'], unique=True,
        sqlite_where=sa.text('is_default = 1'),
        postgresql_where=sa.text('is_default'),
    )

    op.create_table(
        'providers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('nit', sa.String(length=20), nullable=False),
        sa.Column('company', sa.String(length=150), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('contact_phone', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _created_at(),
        sa.PrimaryKeyConstraint('id', name='pk_providers'),
        sa.UniqueConstraint('code', name='uq_providers_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_providers_email', 'providers', ['email'], unique=True)
    op.create_index('ix_providers_status', 'providers', ['status'])

    op.create_table(
        'branches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('location', sa.String(length=150), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _created_at(),
        sa.PrimaryKeyConstraint('id', name='pk_branches'),
        sa.UniqueConstraint('code', name='uq_branches_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_branches_status', 'branches', ['status'])

    # ============================================================================
    # Purchases
    # ============================================================================
    op.create_table(
        'purchases',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('provider_id', sa.Integer(), nullable=False),
        sa.Column('purchase_date', sa.Date(), nullable=False),
        sa.Column('total', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['provider_id'], ['providers.id'], name='fk_purchases_provider_id_providers'),
        sa.PrimaryKeyConstraint('id', name='pk_purchases'),
        sa.UniqueConstraint('code', name='uq_purchases_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchases_provider_id', 'purchases', ['provider_id'])
    op.create_index('ix_purchases_status', 'purchases', ['status'])
    op.create_index('ix_purchases_status_date', 'purchases', ['status', 'purchase_date'])

    op.create_table(
        'purchase_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('purchase_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('line_total', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_lines_purchase_line_quantity_positive'),
        sa.ForeignKeyConstraint(['purchase_id'], ['purchases.id'], name='fk_purchase_lines_purchase_id_purchases'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_purchase_lines_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_purchase_lines'),
        sa.UniqueConstraint('purchase_id', 'position', name='uq_purchase_lines_position'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchase_lines_purchase_id', 'purchase_lines', ['purchase_id'])
    op.create_index('ix_purchase_lines_product_id', 'purchase_lines', ['product_id'])

    # ============================================================================
    # Sales
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=16), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('sales_date', sa.Date(), nullable=False),
        sa.Column('total', sa.Numeric(precision=14, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='processing'),
        _created_at(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], name='fk_sales_customer_id_customers'),
        sa.PrimaryKeyConstraint('id', name='pk_sales'),
        sa.UniqueConstraint('code', name='uq_sales_code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sales_customer_id', 'sales', ['customer_id'])
    op.create_index('ix_sales_status', 'sales', ['status'])
    op.create_index('ix_sales_status_date', 'sales', ['status', 'sales_date'])

    op.create_table(
        'sale_lines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('sale_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('line_total', sa.Numeric(precision=14, scale=2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_sale_lines_sale_line_quantity_positive'),
        sa.ForeignKeyConstraint(['sale_id'], ['sales.id'], name='fk_sale_lines_sale_id_sales'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], name='fk_sale_lines_product_id_products'),
        sa.PrimaryKeyConstraint('id', name='pk_sale_lines'),
        sa.UniqueConstraint('sale_id', 'position', name='uq_sale_lines_position'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_sale_lines_sale_id', 'sale_lines', ['sale_id'])
    op.create_index('ix_sale_lines_product_id', 'sale_lines', ['product_id'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('sale_lines')
    op.drop_table('sales')
    op.drop_table('purchase_lines')
    op.drop_table('purchases')
    op.drop_table('branches')
    op.drop_table('providers')
    op.drop_index('uq_customers_single_default', table_name='customers')
    op.drop_table('customers')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('session_tokens')
    op.drop_table('users')
    op.drop_table('role_permissions')
    op.drop_table('permissions')
    op.drop_table('roles')
