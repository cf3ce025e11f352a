from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        'products',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('code', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('category', sa.String(100), nullable=True),
        sa.Column('wholesale_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('retail_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 4), nullable=False, server_default='0'),
        sa.Column('stock_quantity', sa.Integer, nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_products_stock_non_negative'),
    )
    op.create_index('ix_products_code', 'products', ['code'], unique=True)
    op.create_index('ix_products_deleted_at', 'products', ['deleted_at'])

    op.create_table(
        'sale_orders',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('contact_person', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('shipping_address', sa.String(500), nullable=True),
        sa.Column('delivery_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text, nullable=False, server_default=''),
        sa.Column('status', sa.String(24), nullable=False, server_default='draft'),
        sa.Column('salesperson_id', sa.Uuid, nullable=False),
        sa.Column('manager_id', sa.Uuid, nullable=True),
        sa.Column('warehouse_id', sa.Uuid, nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('deleted_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_sale_orders_status', 'sale_orders', ['status'])
    op.create_index('ix_sale_orders_salesperson_id', 'sale_orders', ['salesperson_id'])
    op.create_index('ix_sale_orders_created_at', 'sale_orders', ['created_at'])
    op.create_index('ix_sale_orders_deleted_at', 'sale_orders', ['deleted_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('order_id', sa.Uuid, sa.ForeignKey('sale_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.Uuid, sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('position', sa.Integer, nullable=False, server_default='0'),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('line_total', sa.Numeric(14, 2), nullable=False),
        sa.Column('is_in_stock', sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column('line_status', sa.String(16), nullable=False, server_default='pending'),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_quantity_positive'),
        sa.CheckConstraint('unit_price >= 0', name='ck_order_items_unit_price_non_negative'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_index('ix_order_items_product_id', 'order_items', ['product_id'])

    op.create_table(
        'order_status_history',
        sa.Column('id', sa.Uuid, primary_key=True),
        sa.Column('order_id', sa.Uuid, sa.ForeignKey('sale_orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('previous_status', sa.String(24), nullable=False),
        sa.Column('new_status', sa.String(24), nullable=False),
        sa.Column('changed_by', sa.Uuid, nullable=False),
        sa.Column('changed_at', sa.DateTime(), nullable=False),
        sa.Column('notes', sa.Text, nullable=True),
    )
    op.create_index('ix_order_status_history_order_id', 'order_status_history', ['order_id'])
    op.create_index('ix_order_status_history_changed_at', 'order_status_history', ['changed_at'])

def downgrade():
    op.drop_table('order_status_history')
    op.drop_table('order_items')
    op.drop_table('sale_orders')
    op.drop_table('products')
