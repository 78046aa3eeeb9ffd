"""add_crawl_tables

Revision ID: 2b7c41e0a9d3
Revises:
Create Date: 2026-01-06 15:57:42.118402

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '2b7c41e0a9d3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('naics_codes',
        sa.Column('naics_code', sa.String(length=6), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('level', sa.SmallInteger(), nullable=False),
        sa.Column('parent_code', sa.String(length=6), nullable=True),
        sa.ForeignKeyConstraint(['parent_code'], ['naics_codes.naics_code']),
        sa.PrimaryKeyConstraint('naics_code')
    )
    op.create_index('ix_naics_codes_parent', 'naics_codes', ['parent_code'], unique=False)
    op.create_index('ix_naics_codes_level', 'naics_codes', ['level'], unique=False)

    op.create_table('soc_codes',
        sa.Column('soc_code', sa.String(length=7), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('soc_code')
    )

    op.create_table('oews_series',
        sa.Column('series_id', sa.String(length=30), nullable=False),
        sa.Column('soc_code', sa.String(length=7), nullable=False),
        sa.Column('naics_code', sa.String(length=6), nullable=False),
        sa.Column('does_exist', sa.Boolean(), nullable=False),
        sa.Column('last_checked', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['soc_code'], ['soc_codes.soc_code']),
        sa.ForeignKeyConstraint(['naics_code'], ['naics_codes.naics_code']),
        sa.PrimaryKeyConstraint('series_id')
    )
    op.create_index('ix_oews_series_soc', 'oews_series', ['soc_code'], unique=False)
    op.create_index('ix_oews_series_naics', 'oews_series', ['naics_code'], unique=False)

    op.create_table('wages',
        sa.Column('series_id', sa.String(length=30), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('mean_annual_wage', sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(['series_id'], ['oews_series.series_id']),
        sa.PrimaryKeyConstraint('series_id', 'year')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('wages')

    op.drop_index('ix_oews_series_naics', table_name='oews_series')
    op.drop_index('ix_oews_series_soc', table_name='oews_series')
    op.drop_table('oews_series')

    op.drop_table('soc_codes')

    op.drop_index('ix_naics_codes_level', table_name='naics_codes')
    op.drop_index('ix_naics_codes_parent', table_name='naics_codes')
    op.drop_table('naics_codes')
