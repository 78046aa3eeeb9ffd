from oews_collector.database.connection import (
    DatabaseConnection,
    create_db_engine,
    get_session,
    init_database,
    make_session_factory,
)
from oews_collector.database.upsert import insert_do_nothing

__all__ = [
    'DatabaseConnection',
    'create_db_engine',
    'get_session',
    'init_database',
    'make_session_factory',
    'insert_do_nothing',
]
