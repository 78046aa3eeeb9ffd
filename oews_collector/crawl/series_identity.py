"""
Deterministic OEWS series identifiers.

An OE series id is built from fixed-width segments:

    OE  U  N  0000000  110000  111011  03
    |   |  |  |        |       |       datatype (03 = annual mean wage)
    |   |  |  |        |       occupation (SOC without the dash)
    |   |  |  |        industry (NAICS, right-padded with zeros to 6)
    |   |  |  area (national)
    |   |  area type (N = national)
    |   seasonal (U = not seasonally adjusted)
    survey prefix

The same (occupation, industry) pair always derives the same 25-character id;
the crawl's resumability relies on this.
"""
import re
from dataclasses import dataclass

SURVEY_PREFIX = 'OE'
SEASONAL_CODE = 'U'
NATIONAL_AREATYPE = 'N'
NATIONAL_AREA = '0000000'
MEAN_ANNUAL_WAGE = '03'

INDUSTRY_WIDTH = 6

_SOC_RE = re.compile(r'^\d{2}-?\d{4}$')
_NAICS_RE = re.compile(r'^\d{2,6}$')
_DATATYPE_RE = re.compile(r'^\d{2}$')


def industry_segment(naics_code: str) -> str:
    """
    The 6-character industry segment of a series id.

    Codes that differ only by trailing zeros ('11111' and '111110') share a
    segment and therefore a series id.
    """
    return naics_code.strip().ljust(INDUSTRY_WIDTH, '0')


def derive_series_id(soc_code: str, naics_code: str, datatype_code: str = MEAN_ANNUAL_WAGE) -> str:
    """
    Build the national series id for an occupation x industry pair.

    Raises ValueError for codes that do not have the expected digit layout.
    """
    soc = soc_code.strip()
    naics = naics_code.strip()
    if not _SOC_RE.match(soc):
        raise ValueError(f"Invalid SOC code: {soc_code!r}")
    if not _NAICS_RE.match(naics):
        raise ValueError(f"Invalid NAICS code: {naics_code!r}")
    if not _DATATYPE_RE.match(datatype_code):
        raise ValueError(f"Invalid datatype code: {datatype_code!r}")

    return (
        f"{SURVEY_PREFIX}{SEASONAL_CODE}{NATIONAL_AREATYPE}{NATIONAL_AREA}"
        f"{industry_segment(naics)}{soc.replace('-', '')}{datatype_code}"
    )


@dataclass(frozen=True)
class SeriesIdentity:
    soc_code: str
    naics_code: str
    datatype_code: str = MEAN_ANNUAL_WAGE

    @property
    def series_id(self) -> str:
        return derive_series_id(self.soc_code, self.naics_code, self.datatype_code)
