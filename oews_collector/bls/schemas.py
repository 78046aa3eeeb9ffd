"""
OEWS Schemas

Pydantic models describing every record that is allowed to reach storage
(one row model per OE flat file kind plus the crawl tables) and the BLS API
response bodies the client accepts.

Row models are strict and forbid unknown fields: the parser already produced
typed values, so any coercion here would hide a parser bug.
"""
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator


Code = Annotated[str, StringConstraints(min_length=1, max_length=30)]
Name = Annotated[str, StringConstraints(min_length=1)]
Period = Annotated[str, StringConstraints(pattern=r'^(A01|M(0[1-9]|1[0-3])|Q0[1-5]|S0[1-3])$')]
Year = Annotated[int, Field(ge=1900, le=2100)]
SeasonalCode = Literal['S', 'U']


class _Row(BaseModel):
    model_config = ConfigDict(strict=True, extra='forbid')


# ==================== BULK FILE ROWS ====================

class OccupationRow(_Row):
    occupation_code: Code
    occupation_name: Name
    occupation_description: Optional[str]
    display_level: int
    selectable: bool
    sort_sequence: int


class IndustryRow(_Row):
    industry_code: Code
    industry_name: Name
    display_level: int
    selectable: bool
    sort_sequence: int


class AreaRow(_Row):
    state_code: Code
    area_code: Code
    areatype_code: Code
    area_name: Name


class AreatypeRow(_Row):
    areatype_code: Code
    areatype_name: Name


class DatatypeRow(_Row):
    datatype_code: Code
    datatype_name: Name


class SectorRow(_Row):
    sector_code: Code
    sector_name: Name


class FootnoteRow(_Row):
    footnote_code: Code
    footnote_text: str


class ReleaseRow(_Row):
    release_date: Code
    description: str


class SeasonalRow(_Row):
    seasonal_code: SeasonalCode
    seasonal_text: Name


class SeriesRow(_Row):
    series_id: Code
    seasonal: SeasonalCode
    areatype_code: Code
    industry_code: Code
    occupation_code: Code
    datatype_code: Code
    state_code: Code
    area_code: Code
    sector_code: Code
    series_title: str
    footnote_codes: Optional[str]
    begin_year: Year
    begin_period: Period
    end_year: Year
    end_period: Period


class DataRow(_Row):
    series_id: Code
    year: Year
    period: Period
    value: Optional[float]
    footnote_codes: Optional[str]


# ==================== CRAWL ROWS ====================

class NaicsRow(_Row):
    naics_code: Annotated[str, StringConstraints(pattern=r'^\d{2,6}$')]
    title: Name
    level: Annotated[int, Field(ge=2, le=6)]
    parent_code: Optional[Annotated[str, StringConstraints(pattern=r'^\d{2,5}$')]]


class SocRow(_Row):
    soc_code: Annotated[str, StringConstraints(pattern=r'^\d{2}-\d{4}$')]
    title: Name


# ==================== BLS API RESPONSES ====================

class TimeseriesFootnote(BaseModel):
    code: Optional[str] = None
    text: Optional[str] = None


class TimeseriesDataPoint(BaseModel):
    model_config = ConfigDict(extra='ignore')

    year: Annotated[str, StringConstraints(pattern=r'^\d{4}$')]
    period: str
    periodName: str
    # Thousands separators allowed; '-' marks a suppressed estimate
    value: Annotated[str, StringConstraints(strip_whitespace=True, pattern=r'^(-|-?\d[\d,]*(\.\d+)?)$')]
    footnotes: List[TimeseriesFootnote] = []


class TimeseriesSeries(BaseModel):
    model_config = ConfigDict(extra='ignore')

    seriesID: str
    data: List[TimeseriesDataPoint]


class TimeseriesResults(BaseModel):
    series: List[TimeseriesSeries]


class TimeseriesResponse(BaseModel):
    """Body of POST /timeseries/data/"""
    status: Literal['REQUEST_SUCCEEDED', 'REQUEST_FAILED', 'REQUEST_NOT_PROCESSED']
    responseTime: float = 0
    message: List[str] = []
    Results: Optional[TimeseriesResults] = None

    @model_validator(mode='after')
    def results_present_on_success(self) -> 'TimeseriesResponse':
        if self.status == 'REQUEST_SUCCEEDED' and self.Results is None:
            raise ValueError('Results missing from a successful response')
        return self


class Industry(BaseModel):
    code: str
    text: str


class IndustriesResponse(BaseModel):
    """Body of GET /surveys/OEWS/industries/"""
    industries: List[Industry]
