# bulk_loader.py
"""
Streaming loader for BLS OE flat files downloaded from:
https://download.bls.gov/pub/time.series/oe/

Each file is read line by line (oe.series is ~1.2GB, oe.data.1.AllData has
12M+ rows), parsed into typed records, validated in fixed-size batches and
committed with INSERT ... ON CONFLICT DO NOTHING on the file's natural key.
Re-running a load over already-loaded data is therefore a cheap no-op.

Failure policy: a header mismatch, an unparseable line or a batch that fails
validation aborts the load. Batches committed before the failure stay
committed; re-running the loader resumes safely.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple, Type, Union

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from oews_collector.bls import record_parser as rp
from oews_collector.bls import schemas
from oews_collector.bls.record_parser import FieldLayout, ParseFailure, RecordShape
from oews_collector.bls.schema_validator import validate_batch
from oews_collector.database import models
from oews_collector.database.connection import get_session
from oews_collector.database.upsert import insert_do_nothing
from oews_collector.exceptions import HeaderMismatchError, StructuralParseError

log = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 2000


@dataclass(frozen=True)
class BulkFileSpec:
    """Everything the loader needs to know about one OE file kind"""
    kind: str
    shape: RecordShape
    row_model: Type[BaseModel]
    model: Any
    key_columns: Tuple[str, ...]
    default_batch_size: Optional[int] = None

    @property
    def expected_header(self) -> List[str]:
        return self.shape.field_names


BULK_FILE_SPECS: Dict[str, BulkFileSpec] = {
    spec.kind: spec for spec in (
        BulkFileSpec('oe.areatype', rp.AREATYPE_SHAPE, schemas.AreatypeRow, models.OEAreaType, ('areatype_code',)),
        BulkFileSpec('oe.area', rp.AREA_SHAPE, schemas.AreaRow, models.OEArea, ('state_code', 'area_code')),
        BulkFileSpec('oe.datatype', rp.DATATYPE_SHAPE, schemas.DatatypeRow, models.OEDataType, ('datatype_code',)),
        BulkFileSpec('oe.sector', rp.SECTOR_SHAPE, schemas.SectorRow, models.OESector, ('sector_code',)),
        BulkFileSpec('oe.occupation', rp.OCCUPATION_SHAPE, schemas.OccupationRow, models.OEOccupation, ('occupation_code',)),
        BulkFileSpec('oe.industry', rp.INDUSTRY_SHAPE, schemas.IndustryRow, models.OEIndustry, ('industry_code',)),
        BulkFileSpec('oe.footnote', rp.FOOTNOTE_SHAPE, schemas.FootnoteRow, models.OEFootnote, ('footnote_code',)),
        BulkFileSpec('oe.release', rp.RELEASE_SHAPE, schemas.ReleaseRow, models.OERelease, ('release_date',)),
        BulkFileSpec('oe.seasonal', rp.SEASONAL_SHAPE, schemas.SeasonalRow, models.OESeasonal, ('seasonal_code',)),
        BulkFileSpec('oe.series', rp.SERIES_SHAPE, schemas.SeriesRow, models.OESeries, ('series_id',), 1000),
        BulkFileSpec('oe.data', rp.DATA_SHAPE, schemas.DataRow, models.OEData, ('series_id', 'year', 'period'), 2000),
    )
}

# Foreign-key load order. Kinds within one tier are independent of each other
# and may load concurrently; a tier starts only after the previous one finished.
BULK_LOAD_ORDER: Tuple[Tuple[str, ...], ...] = (
    ('oe.areatype', 'oe.datatype', 'oe.sector', 'oe.occupation', 'oe.industry',
     'oe.footnote', 'oe.release', 'oe.seasonal'),
    ('oe.area',),
    ('oe.series',),
    ('oe.data',),
)

DEFAULT_DATA_FILES = ['oe.data.0.Current']


def spec_for_file(file_name: str) -> BulkFileSpec:
    """Resolve 'oe.data.0.Current' style names to their file kind"""
    if file_name.startswith('oe.data.'):
        return BULK_FILE_SPECS['oe.data']
    try:
        return BULK_FILE_SPECS[file_name]
    except KeyError:
        raise ValueError(f"Unknown OE file kind: {file_name}") from None


@dataclass(frozen=True)
class KeyFilter:
    """
    Pre-computed set of accepted keys for one record field.

    Built once before a load so multi-million row files are filtered with a
    set lookup instead of a query per row.
    """
    field: str
    keys: FrozenSet[str]

    def accepts(self, record: Dict) -> bool:
        return record.get(self.field) in self.keys

    @classmethod
    def from_table(cls, session: Session, column, field: Optional[str] = None) -> 'KeyFilter':
        keys = frozenset(session.execute(select(column)).scalars())
        return cls(field=field or column.key, keys=keys)


@dataclass
class LoadResult:
    file_name: str
    file_kind: str
    lines_read: int = 0
    records_loaded: int = 0
    rows_inserted: int = 0
    skipped: int = 0
    invalid: int = 0
    batches: int = 0
    invalid_samples: List[str] = field(default_factory=list)


class BulkFileLoader:
    """Loads OE flat files into the oe_* tables"""

    MAX_INVALID_SAMPLES = 20

    def __init__(
        self,
        session_factory: sessionmaker,
        batch_size: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        if batch_size is not None and batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.session_factory = session_factory
        self.batch_size = batch_size
        self.log = logger or log

    # ==================== SINGLE FILE ====================

    def load(
        self,
        file_path: Union[str, Path],
        kind: Optional[str] = None,
        expected_header: Optional[Sequence[str]] = None,
        batch_size: Optional[int] = None,
        key_filter: Optional[KeyFilter] = None,
        skip_invalid: bool = False,
    ) -> LoadResult:
        """
        Stream one file into its table.

        Args:
            file_path: Path to the flat file
            kind: File kind ('oe.series', 'oe.data', ...); derived from the file name if omitted
            expected_header: Ordered header fields; defaults to the kind's declared fields
            batch_size: Records per validated upsert
            key_filter: Only load records whose key is in this pre-computed set
            skip_invalid: Count and skip lines with unusable values instead of aborting

        Returns:
            LoadResult with line, record and batch counts
        """
        path = Path(file_path)
        spec = BULK_FILE_SPECS[kind] if kind else spec_for_file(path.name)
        size = batch_size or self.batch_size or spec.default_batch_size or DEFAULT_BATCH_SIZE
        if size < 1:
            raise ValueError("batch_size must be >= 1")
        expected = list(expected_header) if expected_header is not None else spec.expected_header

        result = LoadResult(file_name=path.name, file_kind=spec.kind)
        self.log.info(f"Loading {path.name} into {spec.model.__tablename__} (batch size {size:,})")

        with open(path, 'r', encoding='utf-8', newline='') as f:
            header_line, header_number = self._read_header(f, path.name)
            layout = self._check_header(header_line, expected, spec, path.name)

            batch: List[Dict] = []
            for line_number, line in enumerate(f, start=header_number + 1):
                if not line.strip():
                    continue
                result.lines_read += 1

                record = self._parse(line, line_number, spec, layout, path.name)
                if isinstance(record, ParseFailure):
                    if not skip_invalid:
                        raise StructuralParseError(
                            f"{path.name}: {record}", line_number=line_number, line=line.rstrip('\r\n')
                        )
                    result.invalid += 1
                    if len(result.invalid_samples) < self.MAX_INVALID_SAMPLES:
                        result.invalid_samples.append(f"line {line_number}: {record}")
                    self.log.debug(f"{path.name} line {line_number} skipped: {record}")
                    continue

                if key_filter is not None and not key_filter.accepts(record):
                    result.skipped += 1
                    continue

                batch.append(record)
                if len(batch) >= size:
                    self._commit_batch(spec, batch, result)
                    batch = []

            if batch:
                self._commit_batch(spec, batch, result)

        self.log.info(
            f"  ✓ {path.name}: {result.records_loaded:,} records in {result.batches} batches "
            f"({result.rows_inserted:,} new, {result.skipped:,} filtered, {result.invalid:,} invalid)"
        )
        return result

    def _read_header(self, f, file_name: str) -> Tuple[str, int]:
        for line_number, line in enumerate(f, start=1):
            if line.strip():
                return line, line_number
        raise StructuralParseError(f"{file_name} is empty")

    def _check_header(self, header_line: str, expected: List[str], spec: BulkFileSpec, file_name: str) -> FieldLayout:
        layout = rp.detect_layout(header_line)
        if not spec.shape.supports(layout):
            raise HeaderMismatchError(
                f"{file_name}: header is not tab-delimited and {spec.kind} has no fixed-width layout",
                line=header_line.rstrip('\r\n'),
            )

        header = rp.split_header(header_line, layout)
        if header != expected:
            raise HeaderMismatchError(
                f"Unexpected {file_name} header: {header} (expected {expected})",
                line=header_line.rstrip('\r\n'),
            )
        self.log.debug(f"{file_name}: {layout.value} layout")
        return layout

    def _parse(self, line: str, line_number: int, spec: BulkFileSpec, layout: FieldLayout, file_name: str):
        try:
            return rp.parse_line(line, spec.shape, layout)
        except StructuralParseError as e:
            raise StructuralParseError(f"{file_name}: {e}", line_number=line_number, line=e.line) from e

    def _commit_batch(self, spec: BulkFileSpec, batch: List[Dict], result: LoadResult):
        batch_number = result.batches + 1
        validate_batch(batch, spec.row_model, context=f"{result.file_name} batch {batch_number}")
        records = _sorted_unique(batch, spec.key_columns)

        with get_session(self.session_factory) as session:
            inserted = insert_do_nothing(session, spec.model, records, spec.key_columns)

        result.batches = batch_number
        result.records_loaded += len(records)
        result.rows_inserted += inserted
        if batch_number % 10 == 0:
            self.log.info(f"    Batch {batch_number}: {result.records_loaded:,} records loaded...")

    # ==================== WHOLE DIRECTORY ====================

    def load_directory(
        self,
        data_dir: Union[str, Path],
        data_files: Optional[List[str]] = None,
        skip_reference: bool = False,
        skip_data: bool = False,
        filter_unknown_series: bool = True,
        skip_invalid: bool = False,
        max_workers: int = 1,
    ) -> List[LoadResult]:
        """
        Load a downloaded OE directory in foreign-key order.

        Lookup files load first (concurrently when max_workers > 1), then
        oe.series, then each data file. With filter_unknown_series, data rows
        whose series is not in oe_series are counted as skipped.
        """
        data_path = Path(data_dir)
        if not data_path.exists():
            raise FileNotFoundError(f"Data directory not found: {data_path}")

        results: List[LoadResult] = []

        if not skip_reference:
            for tier in BULK_LOAD_ORDER:
                if tier == ('oe.data',):
                    continue
                paths = [self._require(data_path / kind) for kind in tier]
                results.extend(self._load_tier(paths, skip_invalid, max_workers))

        if not skip_data:
            files = data_files or DEFAULT_DATA_FILES
            key_filter = None
            if filter_unknown_series:
                with get_session(self.session_factory) as session:
                    key_filter = KeyFilter.from_table(session, models.OESeries.series_id)
                self.log.info(f"Filtering data rows against {len(key_filter.keys):,} known series")

            for file_name in files:
                results.append(self.load(
                    self._require(data_path / file_name),
                    kind='oe.data',
                    key_filter=key_filter,
                    skip_invalid=skip_invalid,
                ))

        return results

    def _load_tier(self, paths: List[Path], skip_invalid: bool, max_workers: int) -> List[LoadResult]:
        if max_workers <= 1 or len(paths) == 1:
            return [self.load(p, skip_invalid=skip_invalid) for p in paths]

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [executor.submit(self.load, p, skip_invalid=skip_invalid) for p in paths]
            return [future.result() for future in futures]

    @staticmethod
    def _require(path: Path) -> Path:
        if not path.exists():
            raise FileNotFoundError(f"Flat file not found: {path}")
        return path


def _sorted_unique(records: List[Dict], key_columns: Sequence[str]) -> List[Dict]:
    """Order a batch by primary key, keeping the first occurrence of each key"""
    unique: Dict[Tuple, Dict] = {}
    for record in records:
        key = tuple(record[col] for col in key_columns)
        if key not in unique:
            unique[key] = record
    return [unique[key] for key in sorted(unique)]


def get_all_data_files(data_dir: Union[str, Path]) -> List[str]:
    """Get list of all OE data files in a directory"""
    data_path = Path(data_dir)
    return sorted(f.name for f in data_path.glob("oe.data.*") if f.is_file())
