"""Workflow entities: paint orders and service requests

Revision ID: 0002_workflow
Revises: 0001_identities
Create Date: 2024-05-01

Both tables carry the same lifecycle columns:
- status (pending_approval -> assigned -> in_progress -> completed | cancelled)
- approval_status (pending -> approved | rejected), approved_by, approved_at
- assigned_to, assigned_at, completion_date
- cancelled_by_user_id / cancelled_by_customer_id, cancelled_at
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_workflow'
down_revision = '0001_identities'
branch_labels = None
depends_on = None


def _lifecycle_columns():
    return [
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.Integer(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='pending_approval'),
        sa.Column('approval_status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('assigned_to', sa.Integer(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('completion_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_by_user_id', sa.Integer(), nullable=True),
        sa.Column('cancelled_by_customer_id', sa.Integer(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id'], ),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['approved_by'], ['users.id'], ),
        sa.ForeignKeyConstraint(['assigned_to'], ['users.id'], ),
        sa.ForeignKeyConstraint(['cancelled_by_user_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['cancelled_by_customer_id'], ['customers.id'], ),
        sa.PrimaryKeyConstraint('id'),
    ]


def _lifecycle_indexes(table):
    with op.batch_alter_table(table, schema=None) as batch_op:
        batch_op.create_index(batch_op.f(f'ix_{table}_customer_id'), ['customer_id'], unique=False)
        batch_op.create_index(batch_op.f(f'ix_{table}_created_by'), ['created_by'], unique=False)
        batch_op.create_index(batch_op.f(f'ix_{table}_assigned_to'), ['assigned_to'], unique=False)
        batch_op.create_index(batch_op.f(f'ix_{table}_status'), ['status'], unique=False)
        batch_op.create_index(batch_op.f(f'ix_{table}_approval_status'), ['approval_status'], unique=False)


def upgrade():
    # ==========================================================================
    # 1. PAINT ORDERS
    # ==========================================================================
    op.create_table('paint_orders',
        *_lifecycle_columns(),
        sa.Column('paint_brand', sa.String(length=128), nullable=True),
        sa.Column('paint_type', sa.String(length=128), nullable=False),
        sa.Column('paint_color', sa.String(length=128), nullable=True),
        sa.Column('quantity', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='kg'),
        sa.Column('payment_type', sa.String(length=32), nullable=True),
        sa.Column('order_date', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('delivery_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sqlite_autoincrement=True
    )
    _lifecycle_indexes('paint_orders')

    # ==========================================================================
    # 2. SERVICE REQUESTS
    # ==========================================================================
    op.create_table('service_requests',
        *_lifecycle_columns(),
        sa.Column('service_type', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('priority', sa.String(length=16), nullable=False, server_default='medium'),
        sa.Column('request_date', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('scheduled_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('technician_notes', sa.Text(), nullable=True),
        sqlite_autoincrement=True
    )
    _lifecycle_indexes('service_requests')


def downgrade():
    op.drop_table('service_requests')
    op.drop_table('paint_orders')
