"""add_bulk_oe_tables

Revision ID: 9f1d5a6c3e27
Revises: 2b7c41e0a9d3
Create Date: 2026-02-06 12:00:00.412977

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9f1d5a6c3e27'
down_revision: Union[str, Sequence[str], None] = '2b7c41e0a9d3'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False)


def upgrade() -> None:
    """Upgrade schema."""
    # Lookup tables
    op.create_table('oe_areatypes',
        sa.Column('areatype_code', sa.String(length=5), nullable=False),
        sa.Column('areatype_name', sa.String(length=200), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('areatype_code')
    )
    op.create_table('oe_areas',
        sa.Column('state_code', sa.String(length=5), nullable=False),
        sa.Column('area_code', sa.String(length=10), nullable=False),
        sa.Column('areatype_code', sa.String(length=5), nullable=False),
        sa.Column('area_name', sa.String(length=500), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['areatype_code'], ['oe_areatypes.areatype_code']),
        sa.PrimaryKeyConstraint('state_code', 'area_code')
    )
    op.create_table('oe_datatypes',
        sa.Column('datatype_code', sa.String(length=5), nullable=False),
        sa.Column('datatype_name', sa.String(length=200), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('datatype_code')
    )
    op.create_table('oe_sectors',
        sa.Column('sector_code', sa.String(length=10), nullable=False),
        sa.Column('sector_name', sa.String(length=500), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('sector_code')
    )
    op.create_table('oe_occupations',
        sa.Column('occupation_code', sa.String(length=10), nullable=False),
        sa.Column('occupation_name', sa.String(length=500), nullable=False),
        sa.Column('occupation_description', sa.Text(), nullable=True),
        sa.Column('display_level', sa.SmallInteger(), nullable=False),
        sa.Column('selectable', sa.Boolean(), nullable=False),
        sa.Column('sort_sequence', sa.Integer(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('occupation_code')
    )
    op.create_table('oe_industries',
        sa.Column('industry_code', sa.String(length=10), nullable=False),
        sa.Column('industry_name', sa.String(length=500), nullable=False),
        sa.Column('display_level', sa.SmallInteger(), nullable=False),
        sa.Column('selectable', sa.Boolean(), nullable=False),
        sa.Column('sort_sequence', sa.Integer(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('industry_code')
    )
    op.create_table('oe_footnotes',
        sa.Column('footnote_code', sa.String(length=10), nullable=False),
        sa.Column('footnote_text', sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('footnote_code')
    )
    op.create_table('oe_releases',
        sa.Column('release_date', sa.String(length=20), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('release_date')
    )
    op.create_table('oe_seasonal',
        sa.Column('seasonal_code', sa.String(length=1), nullable=False),
        sa.Column('seasonal_text', sa.String(length=100), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('seasonal_code')
    )

    # Series catalog
    op.create_table('oe_series',
        sa.Column('series_id', sa.String(length=30), nullable=False),
        sa.Column('seasonal', sa.String(length=1), nullable=False),
        sa.Column('areatype_code', sa.String(length=5), nullable=False),
        sa.Column('industry_code', sa.String(length=10), nullable=False),
        sa.Column('occupation_code', sa.String(length=10), nullable=False),
        sa.Column('datatype_code', sa.String(length=5), nullable=False),
        sa.Column('state_code', sa.String(length=5), nullable=False),
        sa.Column('area_code', sa.String(length=10), nullable=False),
        sa.Column('sector_code', sa.String(length=10), nullable=False),
        sa.Column('series_title', sa.Text(), nullable=False),
        sa.Column('footnote_codes', sa.String(length=500), nullable=True),
        sa.Column('begin_year', sa.SmallInteger(), nullable=False),
        sa.Column('begin_period', sa.String(length=5), nullable=False),
        sa.Column('end_year', sa.SmallInteger(), nullable=False),
        sa.Column('end_period', sa.String(length=5), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['seasonal'], ['oe_seasonal.seasonal_code']),
        sa.ForeignKeyConstraint(['areatype_code'], ['oe_areatypes.areatype_code']),
        sa.ForeignKeyConstraint(['industry_code'], ['oe_industries.industry_code']),
        sa.ForeignKeyConstraint(['occupation_code'], ['oe_occupations.occupation_code']),
        sa.ForeignKeyConstraint(['datatype_code'], ['oe_datatypes.datatype_code']),
        sa.ForeignKeyConstraint(['sector_code'], ['oe_sectors.sector_code']),
        sa.ForeignKeyConstraint(['state_code', 'area_code'], ['oe_areas.state_code', 'oe_areas.area_code']),
        sa.PrimaryKeyConstraint('series_id')
    )
    op.create_index('ix_oe_series_occupation', 'oe_series', ['occupation_code'], unique=False)
    op.create_index('ix_oe_series_industry', 'oe_series', ['industry_code'], unique=False)
    op.create_index('ix_oe_series_area', 'oe_series', ['state_code', 'area_code'], unique=False)
    op.create_index('ix_oe_series_datatype', 'oe_series', ['datatype_code'], unique=False)

    # Observations
    op.create_table('oe_data',
        sa.Column('series_id', sa.String(length=30), nullable=False),
        sa.Column('year', sa.SmallInteger(), nullable=False),
        sa.Column('period', sa.String(length=5), nullable=False),
        sa.Column('value', sa.Numeric(precision=20, scale=2), nullable=True),
        sa.Column('footnote_codes', sa.String(length=500), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['series_id'], ['oe_series.series_id']),
        sa.PrimaryKeyConstraint('series_id', 'year', 'period')
    )
    op.create_index('ix_oe_data_year_period', 'oe_data', ['year', 'period'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_oe_data_year_period', table_name='oe_data')
    op.drop_table('oe_data')

    op.drop_index('ix_oe_series_datatype', table_name='oe_series')
    op.drop_index('ix_oe_series_area', table_name='oe_series')
    op.drop_index('ix_oe_series_industry', table_name='oe_series')
    op.drop_index('ix_oe_series_occupation', table_name='oe_series')
    op.drop_table('oe_series')

    for table in ('oe_seasonal', 'oe_releases', 'oe_footnotes', 'oe_industries', 'oe_occupations',
                  'oe_sectors', 'oe_datatypes', 'oe_areas', 'oe_areatypes'):
        op.drop_table(table)
