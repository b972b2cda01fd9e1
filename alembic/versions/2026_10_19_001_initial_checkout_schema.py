"""Initial checkout schema: catalog, stock and loyalty ledgers, orders

Revision ID: 001_initial_checkout_schema
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
import sqlmodel

# revision identifiers
revision = '001_initial_checkout_schema'
down_revision = None

UUID = sqlmodel.sql.sqltypes.GUID
MONEY = sa.Numeric(10, 2)

order_type = sa.Enum('DINE_IN', 'TAKEAWAY', 'DELIVERY', name='ordertype')
order_status = sa.Enum('PENDING', 'PREPARING', 'READY', 'SERVED', 'PAID', 'CANCELLED', name='orderstatus')
kitchen_status = sa.Enum('PENDING', 'PREPARING', 'READY', 'COMPLETED', name='kitchenstatus')
table_status = sa.Enum('AVAILABLE', 'OCCUPIED', 'RESERVED', 'MAINTENANCE', name='tablestatus')
stock_log_type = sa.Enum('SALE', 'RESTOCK', 'ADJUSTMENT', 'INITIAL', name='stocklogtype')
discount_type = sa.Enum('PERCENTAGE', 'FIXED', name='discounttype')
loyalty_type = sa.Enum('EARNED', 'REDEEMED', 'ADJUSTMENT', 'REFUND', name='loyaltytransactiontype')
payment_method = sa.Enum('CASH', 'CARD', 'ONLINE', name='paymentmethod')
payment_status = sa.Enum('PENDING', 'COMPLETED', 'FAILED', 'REFUNDED', name='paymentstatus')


def upgrade():
    op.create_table(
        'restaurants',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, index=True),
        sa.Column('address', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('currency_symbol', sa.String(8), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
    )

    op.create_table(
        'tables',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('restaurant_id', UUID(), sa.ForeignKey('restaurants.id'), nullable=False, index=True),
        sa.Column('area_id', UUID(), nullable=True),
        sa.Column('table_number', sa.String(50), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('status', table_status, nullable=False, index=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'products',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('restaurant_id', UUID(), sa.ForeignKey('restaurants.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.String(2000), nullable=True),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('cost', MONEY, nullable=True),
        sa.Column('is_available', sa.Boolean(), nullable=False, index=True),
        sa.Column('has_variations', sa.Boolean(), nullable=False),
        sa.Column('track_quantity', sa.Boolean(), nullable=False, index=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('stock_alert', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_non_negative'),
    )

    op.create_table(
        'product_sizes',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('product_id', UUID(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('price_adjustment', MONEY, nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
    )

    op.create_table(
        'product_addons',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('product_id', UUID(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('addon_product_id', UUID(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('price_override', MONEY, nullable=True),
        sa.Column('quantity_default', sa.Integer(), nullable=False),
        sa.Column('is_required', sa.Boolean(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False),
    )

    op.create_table(
        'discounts',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('restaurant_id', UUID(), sa.ForeignKey('restaurants.id'), nullable=False, index=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('code', sa.String(30), nullable=False, index=True),
        sa.Column('type', discount_type, nullable=False),
        sa.Column('value', MONEY, nullable=False),
        sa.Column('min_order_amount', MONEY, nullable=False),
        sa.Column('max_discount_amount', MONEY, nullable=True),
        sa.Column('usage_limit', sa.Integer(), nullable=True),
        sa.Column('used_count', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, index=True),
        sa.Column('starts_at', sa.Date(), nullable=True),
        sa.Column('expires_at', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('restaurant_id', 'code', name='uq_discounts_restaurant_code'),
        sa.CheckConstraint('usage_limit IS NULL OR used_count <= usage_limit', name='ck_discounts_usage_limit'),
    )

    op.create_table(
        'customers',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('restaurant_id', UUID(), sa.ForeignKey('restaurants.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('address', sa.String(500), nullable=True),
        sa.Column('loyalty_points', sa.Integer(), nullable=False),
        sa.Column('last_visit_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('loyalty_points >= 0', name='ck_customers_points_non_negative'),
    )

    op.create_table(
        'orders',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('restaurant_id', UUID(), sa.ForeignKey('restaurants.id'), nullable=False, index=True),
        sa.Column('user_id', UUID(), nullable=True, index=True),
        sa.Column('table_id', UUID(), sa.ForeignKey('tables.id'), nullable=True, index=True),
        sa.Column('customer_id', UUID(), sa.ForeignKey('customers.id'), nullable=True, index=True),
        sa.Column('discount_id', UUID(), sa.ForeignKey('discounts.id'), nullable=True),
        sa.Column('order_number', sa.String(40), nullable=False, index=True),
        sa.Column('order_type', order_type, nullable=False, index=True),
        sa.Column('status', order_status, nullable=False, index=True),
        sa.Column('kitchen_status', kitchen_status, nullable=False, index=True),
        sa.Column('subtotal', MONEY, nullable=False),
        sa.Column('tax', MONEY, nullable=False),
        sa.Column('discount_amount', MONEY, nullable=False),
        sa.Column('loyalty_amount', MONEY, nullable=False),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('points_earned', sa.Integer(), nullable=False),
        sa.Column('points_redeemed', sa.Integer(), nullable=False),
        sa.Column('notes', sa.String(2000), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('restaurant_id', 'order_number', name='uq_orders_restaurant_number'),
    )

    op.create_table(
        'order_items',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('order_id', UUID(), sa.ForeignKey('orders.id'), nullable=False, index=True),
        sa.Column('product_id', UUID(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('size_id', UUID(), sa.ForeignKey('product_sizes.id'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('total', MONEY, nullable=False),
        sa.Column('notes', sa.String(1000), nullable=True),
        sa.Column('addons', sa.JSON(), nullable=True),
    )

    op.create_table(
        'payments',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('order_id', UUID(), sa.ForeignKey('orders.id'), nullable=False, unique=True, index=True),
        sa.Column('method', payment_method, nullable=False, index=True),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('status', payment_status, nullable=False, index=True),
        sa.Column('transaction_id', sa.String(64), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
    )

    op.create_table(
        'stock_logs',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('restaurant_id', UUID(), sa.ForeignKey('restaurants.id'), nullable=False, index=True),
        sa.Column('product_id', UUID(), sa.ForeignKey('products.id'), nullable=False, index=True),
        sa.Column('user_id', UUID(), nullable=True),
        sa.Column('order_id', UUID(), sa.ForeignKey('orders.id'), nullable=True, index=True),
        sa.Column('quantity_before', sa.Integer(), nullable=False),
        sa.Column('quantity_change', sa.Integer(), nullable=False),
        sa.Column('quantity_after', sa.Integer(), nullable=False),
        sa.Column('type', stock_log_type, nullable=False, index=True),
        sa.Column('note', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )

    op.create_table(
        'loyalty_transactions',
        sa.Column('id', UUID(), primary_key=True),
        sa.Column('customer_id', UUID(), sa.ForeignKey('customers.id'), nullable=False, index=True),
        sa.Column('order_id', UUID(), sa.ForeignKey('orders.id'), nullable=True, index=True),
        sa.Column('type', loyalty_type, nullable=False, index=True),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('description', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )


def downgrade():
    op.drop_table('loyalty_transactions')
    op.drop_table('stock_logs')
    op.drop_table('payments')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('customers')
    op.drop_table('discounts')
    op.drop_table('product_addons')
    op.drop_table('product_sizes')
    op.drop_table('products')
    op.drop_table('tables')
    op.drop_table('restaurants')

    for enum in (
        payment_status, payment_method, loyalty_type, discount_type,
        stock_log_type, table_status, kitchen_status, order_status, order_type,
    ):
        enum.drop(op.get_bind(), checkfirst=True)
