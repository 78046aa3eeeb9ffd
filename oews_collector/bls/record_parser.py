# record_parser.py
"""
Line parsers for BLS OE flat files downloaded from:
https://download.bls.gov/pub/time.series/oe/

Pure functions, no I/O. A line is turned into a typed record (dict) according
to a RecordShape, or into a ParseFailure describing the offending field.
StructuralParseError is raised only when the line cannot even be cut into the
declared number of fields.

Two layouts exist for the same logical records:
  - TAB: fields split on a single tab (current upstream format)
  - FIXED_WIDTH: fields cut at fixed offsets with a free-width title and a
    trailing footnote/year/period block (legacy oe.series format)
"""
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from oews_collector.exceptions import StructuralParseError


# Token BLS uses for missing/suppressed numeric values
MISSING_VALUE_TOKENS = ('-',)

_INTEGER_RE = re.compile(r'-?\d+', re.ASCII)


class FieldLayout(str, Enum):
    TAB = 'tab'
    FIXED_WIDTH = 'fixed_width'


class FieldKind(str, Enum):
    STR = 'str'
    INT = 'int'
    YEAR = 'year'
    NUMBER = 'number'
    BOOL = 'bool'


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind = FieldKind.STR
    optional: bool = False


@dataclass(frozen=True)
class FixedWidthSpec:
    """Offsets for the legacy fixed-width layout"""
    prefix: Tuple[Tuple[str, int], ...]
    free_field: str
    suffix: Tuple[Tuple[str, int], ...]

    @property
    def prefix_length(self) -> int:
        return sum(width for _, width in self.prefix)

    @property
    def suffix_length(self) -> int:
        return sum(width for _, width in self.suffix)


@dataclass(frozen=True)
class RecordShape:
    """Declared field list of one flat file kind"""
    kind: str
    fields: Tuple[FieldSpec, ...]
    min_fields: int
    fixed_width: Optional[FixedWidthSpec] = None

    @property
    def field_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def supports(self, layout: FieldLayout) -> bool:
        return layout == FieldLayout.TAB or self.fixed_width is not None


@dataclass(frozen=True)
class ParseFailure:
    """A line that splits into fields but holds an unusable value"""
    kind: str
    field: str
    value: str
    reason: str

    def __str__(self) -> str:
        return f"{self.kind}: field '{self.field}' {self.reason} ({self.value!r})"


ParsedLine = Union[Dict, ParseFailure]


# ==================== FIELD CONVERSION ====================

class _FieldError(Exception):
    def __init__(self, reason: str):
        self.reason = reason


def _convert(spec: FieldSpec, raw: str):
    if spec.kind == FieldKind.STR:
        if raw == '':
            return None if spec.optional else ''
        return raw

    if raw == '':
        if spec.optional:
            return None
        raise _FieldError("is empty")

    if spec.kind in (FieldKind.YEAR, FieldKind.INT):
        if not _INTEGER_RE.fullmatch(raw):
            raise _FieldError("is not an integer")
        return int(raw)

    if spec.kind == FieldKind.NUMBER:
        if raw in MISSING_VALUE_TOKENS:
            return None
        try:
            value = float(raw.replace(',', ''))
        except ValueError:
            raise _FieldError("is not numeric")
        if not math.isfinite(value):
            raise _FieldError("is not a finite number")
        return value

    if spec.kind == FieldKind.BOOL:
        if raw == 'T':
            return True
        if raw == 'F':
            return False
        raise _FieldError("is not a T/F flag")

    raise _FieldError(f"has unknown kind {spec.kind}")


def _build_record(shape: RecordShape, raw_values: Dict[str, str]) -> ParsedLine:
    record = {}
    for spec in shape.fields:
        raw = raw_values.get(spec.name, '')
        try:
            record[spec.name] = _convert(spec, raw)
        except _FieldError as e:
            return ParseFailure(kind=shape.kind, field=spec.name, value=raw, reason=e.reason)
    return record


# ==================== LAYOUT SPLITTERS ====================

def _split_tab(line: str, shape: RecordShape) -> Union[Dict[str, str], ParseFailure]:
    parts = [part.strip() for part in line.split('\t')]
    if len(parts) < shape.min_fields:
        raise StructuralParseError(
            f"{shape.kind}: expected at least {shape.min_fields} tab-separated fields, got {len(parts)}",
            line=line,
        )

    extra = parts[len(shape.fields):]
    if any(extra):
        return ParseFailure(
            kind=shape.kind, field='<extra>', value='\t'.join(extra),
            reason=f"has {len(extra)} unexpected trailing field(s)",
        )

    parts += [''] * (len(shape.fields) - len(parts))
    return dict(zip(shape.field_names, parts))


def _split_fixed_width(line: str, shape: RecordShape) -> Dict[str, str]:
    layout = shape.fixed_width
    if len(line) < layout.prefix_length + layout.suffix_length:
        raise StructuralParseError(
            f"{shape.kind}: fixed-width line is {len(line)} characters, "
            f"need at least {layout.prefix_length + layout.suffix_length}",
            line=line,
        )

    values: Dict[str, str] = {}
    cursor = 0
    for name, width in layout.prefix:
        values[name] = line[cursor:cursor + width].strip()
        cursor += width

    suffix_start = len(line) - layout.suffix_length
    values[layout.free_field] = line[cursor:suffix_start].strip()

    cursor = suffix_start
    for name, width in layout.suffix:
        values[name] = line[cursor:cursor + width].strip()
        cursor += width

    return values


# ==================== PUBLIC API ====================

def parse_line(line: str, shape: RecordShape, layout: FieldLayout = FieldLayout.TAB) -> ParsedLine:
    """
    Parse one non-header line.

    Returns a dict keyed by the shape's field names, or a ParseFailure when a
    field value is unusable (non-integer year, bad flag, non-numeric value).
    Raises StructuralParseError when the line has too few fields to parse.
    """
    line = line.rstrip('\r\n')

    if layout == FieldLayout.FIXED_WIDTH:
        if shape.fixed_width is None:
            raise StructuralParseError(f"{shape.kind} has no fixed-width layout", line=line)
        raw_values = _split_fixed_width(line, shape)
    else:
        raw_values = _split_tab(line, shape)
        if isinstance(raw_values, ParseFailure):
            return raw_values

    return _build_record(shape, raw_values)


def detect_layout(header_line: str) -> FieldLayout:
    """The header row declares the layout: tabs mean tab-delimited"""
    return FieldLayout.TAB if '\t' in header_line else FieldLayout.FIXED_WIDTH


def split_header(header_line: str, layout: FieldLayout) -> List[str]:
    header_line = header_line.rstrip('\r\n')
    if layout == FieldLayout.TAB:
        return [name.strip() for name in header_line.split('\t') if name.strip()]
    return header_line.split()


# ==================== OE RECORD SHAPES ====================

def _str(name: str, optional: bool = False) -> FieldSpec:
    return FieldSpec(name, FieldKind.STR, optional)


SERIES_FIXED_WIDTH = FixedWidthSpec(
    prefix=(
        ('series_id', 30),
        ('seasonal', 1),
        ('areatype_code', 1),
        ('industry_code', 6),
        ('occupation_code', 6),
        ('datatype_code', 2),
        ('state_code', 2),
        ('area_code', 7),
        ('sector_code', 6),
    ),
    free_field='series_title',
    suffix=(
        ('footnote_codes', 10),
        ('begin_year', 4),
        ('begin_period', 3),
        ('end_year', 4),
        ('end_period', 3),
    ),
)


SERIES_SHAPE = RecordShape(
    kind='oe.series',
    fields=(
        _str('series_id'),
        _str('seasonal'),
        _str('areatype_code'),
        _str('industry_code'),
        _str('occupation_code'),
        _str('datatype_code'),
        _str('state_code'),
        _str('area_code'),
        _str('sector_code'),
        _str('series_title'),
        _str('footnote_codes', optional=True),
        FieldSpec('begin_year', FieldKind.YEAR),
        _str('begin_period'),
        FieldSpec('end_year', FieldKind.YEAR),
        _str('end_period'),
    ),
    min_fields=15,
    fixed_width=SERIES_FIXED_WIDTH,
)

DATA_SHAPE = RecordShape(
    kind='oe.data',
    fields=(
        _str('series_id'),
        FieldSpec('year', FieldKind.YEAR),
        _str('period'),
        FieldSpec('value', FieldKind.NUMBER),
        _str('footnote_codes', optional=True),
    ),
    min_fields=4,
)

OCCUPATION_SHAPE = RecordShape(
    kind='oe.occupation',
    fields=(
        _str('occupation_code'),
        _str('occupation_name'),
        _str('occupation_description', optional=True),
        FieldSpec('display_level', FieldKind.INT),
        FieldSpec('selectable', FieldKind.BOOL),
        FieldSpec('sort_sequence', FieldKind.INT),
    ),
    min_fields=6,
)

INDUSTRY_SHAPE = RecordShape(
    kind='oe.industry',
    fields=(
        _str('industry_code'),
        _str('industry_name'),
        FieldSpec('display_level', FieldKind.INT),
        FieldSpec('selectable', FieldKind.BOOL),
        FieldSpec('sort_sequence', FieldKind.INT),
    ),
    min_fields=5,
)

AREA_SHAPE = RecordShape(
    kind='oe.area',
    fields=(_str('state_code'), _str('area_code'), _str('areatype_code'), _str('area_name')),
    min_fields=4,
)

AREATYPE_SHAPE = RecordShape(
    kind='oe.areatype', fields=(_str('areatype_code'), _str('areatype_name')), min_fields=2,
)

DATATYPE_SHAPE = RecordShape(
    kind='oe.datatype', fields=(_str('datatype_code'), _str('datatype_name')), min_fields=2,
)

SECTOR_SHAPE = RecordShape(
    kind='oe.sector', fields=(_str('sector_code'), _str('sector_name')), min_fields=2,
)

FOOTNOTE_SHAPE = RecordShape(
    kind='oe.footnote', fields=(_str('footnote_code'), _str('footnote_text')), min_fields=2,
)

RELEASE_SHAPE = RecordShape(
    kind='oe.release', fields=(_str('release_date'), _str('description')), min_fields=2,
)

SEASONAL_SHAPE = RecordShape(
    kind='oe.seasonal', fields=(_str('seasonal_code'), _str('seasonal_text')), min_fields=2,
)
