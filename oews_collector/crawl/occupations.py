"""
Occupation list for the wage crawl, taken from the BLS oe.occupation file.

Codes are published without a dash ('111011') and stored in SOC form
('11-1011'). Only six-digit codes are kept; aggregate rows with other
layouts are ignored.
"""
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

import requests
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from oews_collector.bls import record_parser as rp
from oews_collector.bls.schemas import SocRow
from oews_collector.bls.schema_validator import validate_batch
from oews_collector.database.connection import get_session
from oews_collector.database.models import SocCode
from oews_collector.database.upsert import insert_do_nothing
from oews_collector.exceptions import HeaderMismatchError, StructuralParseError, TransportError

log = logging.getLogger(__name__)

# Older releases of oe.occupation omit the description column
OCCUPATION_LISTING_SHAPE = rp.RecordShape(
    kind='oe.occupation',
    fields=(
        rp.FieldSpec('occupation_code', rp.FieldKind.STR),
        rp.FieldSpec('occupation_name', rp.FieldKind.STR),
        rp.FieldSpec('display_level', rp.FieldKind.INT),
        rp.FieldSpec('selectable', rp.FieldKind.BOOL),
        rp.FieldSpec('sort_sequence', rp.FieldKind.INT),
    ),
    min_fields=5,
)

ACCEPTED_SHAPES = (rp.OCCUPATION_SHAPE, OCCUPATION_LISTING_SHAPE)

_RAW_CODE_RE = re.compile(r'^\d{6}$')
_SOC_RE = re.compile(r'^\d{2}-\d{4}$')


def format_soc_code(code: str) -> str:
    """'111011' -> '11-1011'; anything else is returned unchanged"""
    code = code.strip()
    if _RAW_CODE_RE.match(code):
        return f"{code[:2]}-{code[2:]}"
    return code


def _shape_for_header(header_line: str) -> rp.RecordShape:
    header = rp.split_header(header_line, rp.FieldLayout.TAB)
    for shape in ACCEPTED_SHAPES:
        if header == list(shape.field_names):
            return shape
    raise HeaderMismatchError(
        f"Unexpected oe.occupation header: {header}", line=header_line.rstrip('\r\n')
    )


def parse_occupation_text(text: str) -> List[Dict]:
    """
    Parse oe.occupation contents into validated soc_codes rows.

    Raises StructuralParseError for an empty file or a short row and
    HeaderMismatchError for an unknown header.
    """
    lines = [(n, line.rstrip('\r')) for n, line in enumerate(text.split('\n'), start=1)]
    lines = [(n, line) for n, line in lines if line.strip()]
    if not lines:
        raise StructuralParseError("oe.occupation is empty")

    shape = _shape_for_header(lines[0][1])

    rows: Dict[str, Dict] = {}
    for line_number, line in lines[1:]:
        try:
            record = rp.parse_line(line, shape)
        except StructuralParseError as e:
            raise StructuralParseError(f"oe.occupation: {e}", line_number=line_number, line=e.line) from e
        if isinstance(record, rp.ParseFailure):
            raise StructuralParseError(f"oe.occupation: {record}", line_number=line_number, line=line)

        soc_code = format_soc_code(record['occupation_code'])
        if not _SOC_RE.match(soc_code):
            continue
        rows.setdefault(soc_code, {'soc_code': soc_code, 'title': record['occupation_name']})

    result = validate_batch(list(rows.values()), SocRow, context='oe.occupation')
    log.info(f"SOC occupation rows: {len(result)} of {len(lines) - 1}")
    return result


def read_occupation_file(path: Union[str, Path]) -> List[Dict]:
    with open(path, 'r', encoding='utf-8') as f:
        return parse_occupation_text(f.read())


def fetch_occupation_file(
    base_url: str,
    user_agent: str,
    timeout: int = 60,
    session: Optional[requests.Session] = None,
) -> List[Dict]:
    """Download oe.occupation from the bulk directory and parse it"""
    http = session or requests.Session()
    url = f"{base_url.rstrip('/')}/oe.occupation"
    try:
        response = http.get(url, headers={'User-Agent': user_agent}, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Failed to fetch {url}: {e}") from e
    if not response.ok:
        raise TransportError(
            f"Failed to fetch {url}: HTTP {response.status_code}", status_code=response.status_code
        )
    return parse_occupation_text(response.text)


def save_soc_codes(session_factory: sessionmaker, rows: List[Dict]) -> int:
    """Insert soc_codes rows; existing codes are left untouched"""
    rows = sorted(rows, key=lambda r: r['soc_code'])
    with get_session(session_factory) as session:
        inserted = insert_do_nothing(session, SocCode, rows, ['soc_code'])
    log.info(f"SOC codes: {len(rows)} submitted, {inserted} inserted")
    return inserted


def load_soc_codes(session: Session) -> List[str]:
    """Every stored occupation code, in code order"""
    return list(session.execute(select(SocCode.soc_code).order_by(SocCode.soc_code)).scalars())
