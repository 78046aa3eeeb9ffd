"""
tests/conftest.py

Shared pytest fixtures.

  engine / session_factory  in-memory SQLite with every table created and
                            foreign keys enforced
  fake_bls                  FakeBLS session (see tests/fakes.py)
  bls_client                BLSClient wired to fake_bls with throttling off
  hierarchy                 small NAICS tree (11 > 111 > 1111, 11 > 112, 21)
"""
import pytest
from sqlalchemy.pool import StaticPool

from oews_collector.bls.bls_client import BLSClient, RateLimiter
from oews_collector.config import settings
from oews_collector.crawl.hierarchy import ClassificationHierarchy
from oews_collector.database.connection import create_db_engine, init_database, make_session_factory
from tests.crawl_samples import NAICS_NODES, seed_crawl_tables
from tests.fakes import FakeBLS


# ── Database ───────────────────────────────────────────────────────────────

@pytest.fixture
def engine():
    engine = create_db_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep a developer's .env and shell out of the tests."""
    for name in ("DATABASE_URL", "BLS_API_KEY", "CRAWL_BATCH_SIZE", "CRAWL_START_YEAR",
                 "CRAWL_END_YEAR", "API_RETRIES", "LOG_LEVEL", "ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    settings.reset()
    yield
    settings.reset()


# ── Fake HTTP ──────────────────────────────────────────────────────────────

@pytest.fixture
def fake_bls():
    return FakeBLS()


@pytest.fixture
def bls_client(fake_bls):
    return BLSClient(
        api_key="test-key",
        session=fake_bls,
        rate_limiter=RateLimiter(max_requests=100_000, window_seconds=1),
    )


# ── Crawl fixtures ─────────────────────────────────────────────────────────

@pytest.fixture
def hierarchy():
    return ClassificationHierarchy(NAICS_NODES)


@pytest.fixture
def seeded_crawl_db(session_factory):
    seed_crawl_tables(session_factory)
    return session_factory
