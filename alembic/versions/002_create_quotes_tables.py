"""Create quotes and quote_items tables.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create quotes and quote_items tables."""
    op.create_table(
        'quotes',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='received', index=True),
        sa.Column('customer_name', sa.String(255), nullable=True),
        sa.Column('customer_email', sa.String(255), nullable=True),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('customer_company', sa.String(255), nullable=True),
        sa.Column('delivery_method', sa.String(20), nullable=False, server_default='pickup'),
        sa.Column('delivery_address', postgresql.JSONB, nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('priced', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('estimated_total', sa.Numeric(26, 9), nullable=True),
        # Totals are written once, when the quote is sent
        sa.Column('subtotal', sa.Numeric(26, 9), nullable=True),
        sa.Column('tax1', sa.Numeric(26, 9), nullable=True),
        sa.Column('tax2', sa.Numeric(26, 9), nullable=True),
        sa.Column('total', sa.Numeric(26, 9), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        'quote_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('quote_id', sa.String(36),
                  sa.ForeignKey('quotes.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_id', sa.String(36), nullable=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('unit_price', sa.Numeric(14, 4), nullable=True),
    )


def downgrade() -> None:
    """Drop quotes and quote_items tables."""
    op.drop_table('quote_items')
    op.drop_table('quotes')
