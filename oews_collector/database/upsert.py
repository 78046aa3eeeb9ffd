"""
Conflict-safe batch inserts.

Rows whose natural key already exists are skipped by the database
(ON CONFLICT ... DO NOTHING), never overwritten and never raised as errors.
This is what makes re-running a load or a crawl safe.
"""
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

# PostgreSQL caps bind parameters per statement at 65535
MAX_PARAMS_PER_STATEMENT = 30000


def _dialect_insert(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise NotImplementedError(f"ON CONFLICT DO NOTHING is not supported for dialect '{dialect}'")
    return insert


def insert_do_nothing(session: Session, model, rows: List[Dict], key_columns: Sequence[str]) -> int:
    """
    Insert a batch of rows, skipping any whose key_columns already exist.

    Executes inside the caller's transaction; the caller commits.
    Returns the number of rows the database reports as inserted.
    """
    if not rows:
        return 0

    insert = _dialect_insert(session)
    columns_per_row = max(len(rows[0]), 1)
    rows_per_statement = max(1, MAX_PARAMS_PER_STATEMENT // columns_per_row)

    inserted = 0
    for start in range(0, len(rows), rows_per_statement):
        chunk = rows[start:start + rows_per_statement]
        stmt = insert(model).values(chunk).on_conflict_do_nothing(index_elements=list(key_columns))
        result = session.execute(stmt)
        if result.rowcount is not None and result.rowcount >= 0:
            inserted += result.rowcount
    return inserted
