"""Cookie policies schema

Revision ID: 3f1c9a2d7b40
Revises: 
Create Date: 2026-10-19 09:12:44.512031

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2d7b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the policies table."""
    op.create_table(
        'policies',
        sa.Column('domain', sa.Text(), nullable=True),
        sa.Column('value', sa.Integer(), nullable=True),
        if_not_exists=True,
    )
    op.create_index('domain', 'policies', ['domain'], unique=True, if_not_exists=True)


def downgrade() -> None:
    """Drop the policies table."""
    op.drop_index('domain', table_name='policies')
    op.drop_table('policies')
