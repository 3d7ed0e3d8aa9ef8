"""Machines: images

Revision ID: 0004_machine_images
Revises: 0003_catalog
Create Date: 2024-06-12
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0004_machine_images'
down_revision = '0003_catalog'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('machines', schema=None) as batch_op:
        batch_op.add_column(sa.Column('images', sa.Text(), nullable=True))


def downgrade():
    with op.batch_alter_table('machines', schema=None) as batch_op:
        batch_op.drop_column('images')
