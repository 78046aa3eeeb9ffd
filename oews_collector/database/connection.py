"""
Database Connection Management
Handles engine creation, connection pooling and session scoping
"""
from contextlib import contextmanager
from typing import Generator, Optional
import logging

from sqlalchemy import create_engine, event, exc, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session

from oews_collector.config import settings


logger = logging.getLogger(__name__)


def create_db_engine(
    url: str,
    *,
    pool_size: Optional[int] = None,
    max_overflow: Optional[int] = None,
    pool_timeout: Optional[int] = None,
    statement_timeout_ms: Optional[int] = None,
    echo: bool = False,
    **kwargs,
) -> Engine:
    """
    Create an engine for the given URL.

    PostgreSQL connections get a server-side statement_timeout so no storage
    write can block indefinitely. SQLite connections get foreign keys enabled,
    which SQLite leaves off by default.
    """
    is_sqlite = url.startswith("sqlite")
    engine_kwargs = dict(echo=echo, **kwargs)

    if not is_sqlite:
        engine_kwargs.setdefault("pool_pre_ping", True)
        if pool_size is not None:
            engine_kwargs["pool_size"] = pool_size
        if max_overflow is not None:
            engine_kwargs["max_overflow"] = max_overflow
        if pool_timeout is not None:
            engine_kwargs["pool_timeout"] = pool_timeout
        if statement_timeout_ms and url.startswith("postgresql"):
            connect_args = engine_kwargs.setdefault("connect_args", {})
            connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"

    engine = create_engine(url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(engine, "checkout")
    def _receive_checkout(dbapi_conn, connection_record, connection_proxy):
        logger.debug("Connection checked out from pool")

    return engine


class DatabaseConnection:
    """Process-wide engine and session factory built from settings"""

    _engine: Optional[Engine] = None
    _session_factory: Optional[sessionmaker] = None

    @classmethod
    def get_engine(cls) -> Engine:
        """Get or create database engine"""
        if cls._engine is None:
            logger.info("Creating database engine...")
            db = settings.database
            cls._engine = create_db_engine(
                db.url,
                pool_size=db.pool_size,
                max_overflow=db.max_overflow,
                pool_timeout=db.pool_timeout,
                statement_timeout_ms=db.statement_timeout_ms,
                pool_recycle=db.pool_recycle,
                echo=db.echo,
            )
            logger.info("Database engine created successfully")

        return cls._engine

    @classmethod
    def get_session_factory(cls) -> sessionmaker:
        """Get or create session factory"""
        if cls._session_factory is None:
            cls._session_factory = make_session_factory(cls.get_engine())
            logger.info("Session factory created")

        return cls._session_factory

    @classmethod
    def dispose(cls):
        """Dispose of engine and sessions (cleanup)"""
        if cls._engine:
            cls._engine.dispose()
            cls._engine = None

        cls._session_factory = None
        logger.info("Database connections disposed")


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


@contextmanager
def get_session(session_factory: Optional[sessionmaker] = None) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic commit/rollback

    Usage:
        with get_session() as session:
            session.add(obj)
    """
    factory = session_factory or DatabaseConnection.get_session_factory()
    session = factory()

    try:
        yield session
        session.commit()
    except exc.SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Database session error: {e}")
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_database(engine: Optional[Engine] = None):
    """Initialize database (create tables if not exist)"""
    from oews_collector.database.models import Base

    logger.info("Initializing database...")
    Base.metadata.create_all(engine or DatabaseConnection.get_engine())
    logger.info("Database initialized successfully")


def get_table_row_count(session: Session, model) -> int:
    """Row count for a mapped table"""
    return session.execute(select(func.count()).select_from(model)).scalar_one()
