"""Catalog: paint types and machines

Revision ID: 0003_catalog
Revises: 0002_workflow
Create Date: 2024-05-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0003_catalog'
down_revision = '0002_workflow'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('paint_types',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('type', sa.String(length=128), nullable=False),
        sa.Column('color', sa.String(length=128), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=False, server_default='litre'),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('brand', 'type', 'color', name='uq_paint_types_brand_type_color'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('paint_types', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_paint_types_status'), ['status'], unique=False)

    op.create_table('machines',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('machine_type', sa.String(length=128), nullable=False),
        sa.Column('machine_name', sa.String(length=255), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('model', sa.String(length=128), nullable=True),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('price', sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='available'),
        sa.Column('production_year', sa.Integer(), nullable=True),
        sa.Column('machine_condition', sa.String(length=64), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.ForeignKeyConstraint(['created_by'], ['users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('machines', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_machines_status'), ['status'], unique=False)


def downgrade():
    with op.batch_alter_table('machines', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_machines_status'))
    op.drop_table('machines')

    with op.batch_alter_table('paint_types', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_paint_types_status'))
    op.drop_table('paint_types')
