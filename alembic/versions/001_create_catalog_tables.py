"""Create categories, products and product category link tables.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create catalogue tables."""
    # Category tree
    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('slug', sa.String(255), nullable=False),
        sa.Column('parent_id', sa.String(36), sa.ForeignKey('categories.id'), nullable=True, index=True),
        sa.Column('full_path', sa.String(1000), nullable=False, unique=True),
        sa.Column('depth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('ancestors', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Sibling slugs are unique under one parent
    op.create_unique_constraint(
        'uq_categories_parent_slug',
        'categories',
        ['parent_id', 'slug'],
    )

    # Products table
    op.create_table(
        'products',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('external_id', sa.Integer(), nullable=True, unique=True),
        sa.Column('sku', sa.String(100), nullable=True),
        sa.Column('name', sa.String(500), nullable=False),
        sa.Column('short_description', sa.Text(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('brand', sa.String(100), nullable=True, index=True),
        sa.Column('regular_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('sale_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('sale_price_for_sale', sa.Numeric(12, 2), nullable=True),
        sa.Column('inventory', sa.Integer(), nullable=True),
        sa.Column('is_in_stock', sa.Boolean(), nullable=False, server_default='true', index=True),
        sa.Column('visibility', sa.String(50), nullable=False, server_default='visible', index=True),
        sa.Column('published', sa.Boolean(), nullable=False, server_default='false', index=True),
        sa.Column('tax_status', sa.String(50), nullable=True),
        sa.Column('width_inches', sa.String(50), nullable=True),
        sa.Column('height_inches', sa.String(50), nullable=True),
        sa.Column('length_inches', sa.String(50), nullable=True),
        sa.Column('weight_lbs', sa.String(50), nullable=True),
        sa.Column('images', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('image_public_ids', postgresql.JSONB, nullable=False, server_default='[]'),
        sa.Column('raw', postgresql.JSONB, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()'), index=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )

    # Leaf assignments chosen by editors
    op.create_table(
        'product_categories',
        sa.Column('product_id', sa.String(36),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.String(36), primary_key=True, index=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
    )

    # Leaf assignments plus every ancestor, queried by the product filters
    op.create_table(
        'product_category_closure',
        sa.Column('product_id', sa.String(36),
                  sa.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('category_id', sa.String(36), primary_key=True, index=True),
    )


def downgrade() -> None:
    """Drop catalogue tables."""
    op.drop_table('product_category_closure')
    op.drop_table('product_categories')
    op.drop_table('products')
    op.drop_table('categories')
