"""
OEWS Database Models

Two groups of tables:

* Bulk tables (oe_*) mirror the flat files published at
  https://download.bls.gov/pub/time.series/oe/ and are filled by the bulk loader.
* Crawl tables (naics_codes, soc_codes, oews_series, wages) hold the NAICS
  hierarchy, the occupation list, and the durable per-series resolutions and
  wage observations discovered through the BLS API.

Load order matters: every lookup table before oe_series, oe_series before
oe_data; naics_codes and soc_codes before oews_series, oews_series before wages.
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Boolean, Text, SmallInteger,
    ForeignKey, ForeignKeyConstraint, Index, func
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# ==================== BULK LOOKUP TABLES ====================

class OEAreaType(Base):
    """OE Area type codes"""
    __tablename__ = 'oe_areatypes'

    areatype_code = Column(String(5), primary_key=True)  # 'M', 'N', 'S'
    areatype_name = Column(String(200), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OEAreaType(code='{self.areatype_code}', name='{self.areatype_name}')>"


class OEArea(Base):
    """OE Area codes (geographic areas), keyed by state and area"""
    __tablename__ = 'oe_areas'

    state_code = Column(String(5), primary_key=True)
    area_code = Column(String(10), primary_key=True)  # '0000000', '0010180', etc.
    areatype_code = Column(String(5), ForeignKey('oe_areatypes.areatype_code'), nullable=False)
    area_name = Column(String(500), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OEArea(state='{self.state_code}', code='{self.area_code}', name='{self.area_name}')>"


class OEDataType(Base):
    """OE Data type codes - what is being measured"""
    __tablename__ = 'oe_datatypes'

    datatype_code = Column(String(5), primary_key=True)  # '01' employment, '03' mean annual wage, etc.
    datatype_name = Column(String(200), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OEDataType(code='{self.datatype_code}', name='{self.datatype_name}')>"


class OESector(Base):
    """OE Sector codes"""
    __tablename__ = 'oe_sectors'

    sector_code = Column(String(10), primary_key=True)  # '000000', '11--12', etc.
    sector_name = Column(String(500), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OESector(code='{self.sector_code}', name='{self.sector_name}')>"


class OEOccupation(Base):
    """OE Occupation codes (SOC - Standard Occupational Classification)"""
    __tablename__ = 'oe_occupations'

    occupation_code = Column(String(10), primary_key=True)  # '000000', '111011', etc.
    occupation_name = Column(String(500), nullable=False)
    occupation_description = Column(Text)
    display_level = Column(SmallInteger, nullable=False)
    selectable = Column(Boolean, nullable=False)
    sort_sequence = Column(Integer, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OEOccupation(code='{self.occupation_code}', name='{self.occupation_name}')>"


class OEIndustry(Base):
    """OE Industry classifications"""
    __tablename__ = 'oe_industries'

    industry_code = Column(String(10), primary_key=True)  # '000000', '110000', etc.
    industry_name = Column(String(500), nullable=False)
    display_level = Column(SmallInteger, nullable=False)
    selectable = Column(Boolean, nullable=False)
    sort_sequence = Column(Integer, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OEIndustry(code='{self.industry_code}', name='{self.industry_name}')>"


class OEFootnote(Base):
    """OE Footnote codes"""
    __tablename__ = 'oe_footnotes'

    footnote_code = Column(String(10), primary_key=True)
    footnote_text = Column(Text, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OEFootnote(code='{self.footnote_code}')>"


class OERelease(Base):
    """OE Release dates"""
    __tablename__ = 'oe_releases'

    release_date = Column(String(20), primary_key=True)
    description = Column(Text, nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OERelease(date='{self.release_date}')>"


class OESeasonal(Base):
    """OE Seasonal adjustment codes"""
    __tablename__ = 'oe_seasonal'

    seasonal_code = Column(String(1), primary_key=True)  # 'S' or 'U'
    seasonal_text = Column(String(100), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<OESeasonal(code='{self.seasonal_code}', text='{self.seasonal_text}')>"


# ==================== BULK SERIES & DATA ====================

class OESeries(Base):
    """OE Series catalog - metadata for each OEWS time series"""
    __tablename__ = 'oe_series'

    series_id = Column(String(30), primary_key=True)  # 'OEUN000000000000000000001', etc.

    seasonal = Column(String(1), ForeignKey('oe_seasonal.seasonal_code'), nullable=False)
    areatype_code = Column(String(5), ForeignKey('oe_areatypes.areatype_code'), nullable=False)
    industry_code = Column(String(10), ForeignKey('oe_industries.industry_code'), nullable=False)
    occupation_code = Column(String(10), ForeignKey('oe_occupations.occupation_code'), nullable=False)
    datatype_code = Column(String(5), ForeignKey('oe_datatypes.datatype_code'), nullable=False)
    state_code = Column(String(5), nullable=False)
    area_code = Column(String(10), nullable=False)
    sector_code = Column(String(10), ForeignKey('oe_sectors.sector_code'), nullable=False)

    series_title = Column(Text, nullable=False)
    footnote_codes = Column(String(500))
    begin_year = Column(SmallInteger, nullable=False)
    begin_period = Column(String(5), nullable=False)
    end_year = Column(SmallInteger, nullable=False)
    end_period = Column(String(5), nullable=False)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        ForeignKeyConstraint(['state_code', 'area_code'], ['oe_areas.state_code', 'oe_areas.area_code']),
        Index('ix_oe_series_occupation', 'occupation_code'),
        Index('ix_oe_series_industry', 'industry_code'),
        Index('ix_oe_series_area', 'state_code', 'area_code'),
        Index('ix_oe_series_datatype', 'datatype_code'),
    )

    def __repr__(self):
        return f"<OESeries(id='{self.series_id}', occupation='{self.occupation_code}', industry='{self.industry_code}')>"


class OEData(Base):
    """OE Time series data - OEWS observations"""
    __tablename__ = 'oe_data'

    series_id = Column(String(30), ForeignKey('oe_series.series_id'), primary_key=True)
    year = Column(SmallInteger, primary_key=True, nullable=False)
    period = Column(String(5), primary_key=True, nullable=False)  # 'A01' for annual

    value = Column(Numeric(20, 2, asdecimal=False))  # NULL when suppressed ('-')
    footnote_codes = Column(String(500))

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index('ix_oe_data_year_period', 'year', 'period'),
    )

    def __repr__(self):
        return f"<OEData(series='{self.series_id}', date={self.year}-{self.period}, value={self.value})>"


# ==================== CRAWL TABLES ====================

class NaicsCode(Base):
    """NAICS industry classification node; depth is encoded by code length (2-6)"""
    __tablename__ = 'naics_codes'

    naics_code = Column(String(6), primary_key=True)
    title = Column(Text, nullable=False)
    level = Column(SmallInteger, nullable=False)
    parent_code = Column(String(6), ForeignKey('naics_codes.naics_code'))  # NULL only at level 2

    __table_args__ = (
        Index('ix_naics_codes_parent', 'parent_code'),
        Index('ix_naics_codes_level', 'level'),
    )

    def __repr__(self):
        return f"<NaicsCode(code='{self.naics_code}', level={self.level})>"


class SocCode(Base):
    """Detailed SOC occupation code ('11-1011')"""
    __tablename__ = 'soc_codes'

    soc_code = Column(String(7), primary_key=True)
    title = Column(Text, nullable=False)

    def __repr__(self):
        return f"<SocCode(code='{self.soc_code}', title='{self.title}')>"


class OEWSSeries(Base):
    """
    Durable resolution of one occupation x industry series.

    A row means the series was checked against the API at last_checked and
    either returned data (does_exist) or did not. Written once per series_id.
    """
    __tablename__ = 'oews_series'

    series_id = Column(String(30), primary_key=True)
    soc_code = Column(String(7), ForeignKey('soc_codes.soc_code'), nullable=False)
    naics_code = Column(String(6), ForeignKey('naics_codes.naics_code'), nullable=False)
    does_exist = Column(Boolean, nullable=False)
    last_checked = Column(DateTime(timezone=True), nullable=False)

    wages = relationship("Wage", back_populates="series")

    __table_args__ = (
        Index('ix_oews_series_soc', 'soc_code'),
        Index('ix_oews_series_naics', 'naics_code'),
    )

    def __repr__(self):
        return f"<OEWSSeries(id='{self.series_id}', exists={self.does_exist})>"


class Wage(Base):
    """Annual mean wage observation for a resolved series"""
    __tablename__ = 'wages'

    series_id = Column(String(30), ForeignKey('oews_series.series_id'), primary_key=True)
    year = Column(SmallInteger, primary_key=True)
    mean_annual_wage = Column(Integer)  # NULL when BLS suppresses the estimate

    series = relationship("OEWSSeries", back_populates="wages")

    def __repr__(self):
        return f"<Wage(series='{self.series_id}', year={self.year}, wage={self.mean_annual_wage})>"
