"""initial scancount schema

Revision ID: 20261016_initial
Revises:
Create Date: 2026-10-16 00:00:00.000000

Creates the complete schema:
- api_tokens: Bearer tokens (hash only) carrying client_id / user_id
- barcode_products: Shared local barcode catalog (registry write-through)
- inventory_items: Per-client stocked items with par levels
- stock_movements: Append-only record of every quantity change
- vendors / vendor_items / purchase_orders: Supply terms and order history
- scanning_sessions / scanning_session_items: Scan sessions and their
  accumulated per-barcode items
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261016_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """
    Create all tables from scratch.

    scanning_session_items carries UNIQUE (session_id, barcode); the scan
    upsert targets it, so it must exist before any scanning traffic.
    """

    # ============================================================================
    # api_tokens: Caller identity
    # ============================================================================
    op.create_table(
        'api_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('label', sa.String(length=128), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token_hash', name='uq_api_tokens_hash'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_api_tokens_client_id', 'api_tokens', ['client_id'])

    # ============================================================================
    # barcode_products: Local catalog
    # ============================================================================
    op.create_table(
        'barcode_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('barcode', sa.String(length=32), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=255), nullable=True),
        sa.Column('category', sa.String(length=255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('size_info', sa.String(length=64), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=True),
        sa.Column('data_source', sa.String(length=64), nullable=False),
        sa.Column('confidence_score', sa.Float(), nullable=False),
        sa.Column('is_verified', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('barcode', name='uq_barcode_products_barcode'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_barcode_products_category', 'barcode_products', ['category'])

    # ============================================================================
    # inventory_items: Stocked items
    # ============================================================================
    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.String(length=64), nullable=False),
        sa.Column('item_name', sa.String(length=255), nullable=False),
        sa.Column('barcode', sa.String(length=32), nullable=True),
        sa.Column('category', sa.String(length=128), nullable=True),
        sa.Column('unit', sa.String(length=32), nullable=False),
        sa.Column('current_quantity', sa.Integer(), nullable=False),
        sa.Column('par_level_low', sa.Integer(), nullable=False),
        sa.Column('par_level_high', sa.Integer(), nullable=False),
        sa.Column('cost_per_unit_cents', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('last_restocked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_items_client_id', 'inventory_items', ['client_id'])
    op.create_index('ix_inventory_items_client_barcode', 'inventory_items', ['client_id', 'barcode'])
    op.create_index('ix_inventory_items_client_active', 'inventory_items', ['client_id', 'is_active'])

    # ============================================================================
    # stock_movements: Append-only quantity history
    # ============================================================================
    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.String(length=64), nullable=False),
        sa.Column('inventory_item_id', sa.Integer(), nullable=False),
        sa.Column('movement_type', sa.String(length=32), nullable=False),
        sa.Column('quantity_delta', sa.Integer(), nullable=False),
        sa.Column('previous_quantity', sa.Integer(), nullable=False),
        sa.Column('new_quantity', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('reference_id', sa.String(length=64), nullable=True),
        sa.Column('created_by_user_id', sa.String(length=64), nullable=True),
        sa.Column('movement_date', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stock_movements_client_id', 'stock_movements', ['client_id'])
    op.create_index('ix_stock_movements_reference', 'stock_movements', ['reference_id'])
    op.create_index('ix_stock_movements_item_date', 'stock_movements', ['inventory_item_id', 'movement_date'])

    # ============================================================================
    # vendors, vendor_items, purchase_orders
    # ============================================================================
    op.create_table(
        'vendors',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('client_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('delivery_days', sa.Integer(), nullable=False),
        sa.Column('is_preferred', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_vendors_client_id', 'vendors', ['client_id'])
    op.create_index('ix_vendors_client_active', 'vendors', ['client_id', 'is_active'])

    op.create_table(
        'vendor_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('inventory_item_id', sa.Integer(), nullable=False),
        sa.Column('vendor_sku', sa.String(length=64), nullable=True),
        sa.Column('cost_per_unit_cents', sa.Integer(), nullable=False),
        sa.Column('minimum_order_quantity', sa.Integer(), nullable=False),
        sa.Column('case_size', sa.Integer(), nullable=False),
        sa.Column('is_preferred', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('vendor_id', 'inventory_item_id', name='uq_vendor_items_vendor_item'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_vendor_items_vendor_id', 'vendor_items', ['vendor_id'])
    op.create_index('ix_vendor_items_inventory_item_id', 'vendor_items', ['inventory_item_id'])

    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('vendor_id', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('order_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['vendor_id'], ['vendors.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_purchase_orders_vendor_id', 'purchase_orders', ['vendor_id'])
    op.create_index('ix_purchase_orders_vendor_status', 'purchase_orders', ['vendor_id', 'status'])

    # ============================================================================
    # scanning_sessions / scanning_session_items
    # ============================================================================
    op.create_table(
        'scanning_sessions',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('client_id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('workflow_type', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('allow_quantity_edit', sa.Boolean(), nullable=False),
        sa.Column('require_location', sa.Boolean(), nullable=False),
        sa.Column('auto_apply_changes', sa.Boolean(), nullable=False),
        sa.Column('block_on_anomalies', sa.Boolean(), nullable=False),
        sa.Column('apply_mode', sa.String(length=8), nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_activity_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completion_summary', sa.JSON(), nullable=True),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_scanning_sessions_client_id', 'scanning_sessions', ['client_id'])
    op.create_index('ix_scanning_sessions_workflow_type', 'scanning_sessions', ['workflow_type'])
    op.create_index('ix_scanning_sessions_status', 'scanning_sessions', ['status'])
    op.create_index('ix_scanning_sessions_client_status', 'scanning_sessions', ['client_id', 'status'])
    op.create_index('ix_scanning_sessions_user_started', 'scanning_sessions', ['user_id', 'started_at'])

    op.create_table(
        'scanning_session_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('session_id', sa.String(length=64), nullable=False),
        sa.Column('barcode', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('scan_count', sa.Integer(), nullable=False),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_brand', sa.String(length=255), nullable=True),
        sa.Column('product_category', sa.String(length=255), nullable=True),
        sa.Column('inventory_item_id', sa.Integer(), nullable=True),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('scanned_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_scanned_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['session_id'], ['scanning_sessions.id']),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_id', 'barcode', name='uq_scan_items_session_barcode'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_scanning_session_items_session_id', 'scanning_session_items', ['session_id'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('scanning_session_items')
    op.drop_table('scanning_sessions')
    op.drop_table('purchase_orders')
    op.drop_table('vendor_items')
    op.drop_table('vendors')
    op.drop_table('stock_movements')
    op.drop_table('inventory_items')
    op.drop_table('barcode_products')
    op.drop_table('api_tokens')
