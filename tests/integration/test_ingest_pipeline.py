"""
tests/integration/test_ingest_pipeline.py

The full ingestion sequence against one database, with the BLS API faked:

  1. bulk load of an OE directory
  2. SOC codes from the same oe.occupation file
  3. NAICS hierarchy from the industries endpoint
  4. wage crawl, then a re-run that must not touch the API
"""
from sqlalchemy import select

from oews_collector.bls.bulk_loader import BulkFileLoader
from oews_collector.crawl.existence_cache import SeriesExistenceCache
from oews_collector.crawl.hierarchy import ClassificationHierarchy, fetch_naics_nodes, save_naics_nodes
from oews_collector.crawl.occupations import load_soc_codes, read_occupation_file, save_soc_codes
from oews_collector.crawl.orchestrator import CrawlOrchestrator
from oews_collector.crawl.series_identity import derive_series_id
from oews_collector.database.connection import get_table_row_count
from oews_collector.database.models import OEData, OEWSSeries, Wage
from tests.fakes import data_point
from tests.oe_files import write_oe_directory


INDUSTRIES = [
    {"code": "000000", "text": "Cross-industry, Private, Federal, State, and Local Government"},
    {"code": "11", "text": "Agriculture, Forestry, Fishing and Hunting"},
    {"code": "111", "text": "Crop Production"},
    {"code": "112", "text": "Animal Production and Aquaculture"},
    {"code": "21", "text": "Mining, Quarrying, and Oil and Gas Extraction"},
]


def test_bulk_load_then_crawl(tmp_path, session_factory, fake_bls, bls_client):
    oe_dir = write_oe_directory(tmp_path / "oe")

    BulkFileLoader(session_factory).load_directory(oe_dir)
    save_soc_codes(session_factory, read_occupation_file(oe_dir / "oe.occupation"))

    fake_bls.industries = INDUSTRIES
    save_naics_nodes(session_factory, fetch_naics_nodes(bls_client))

    fake_bls.available = {
        derive_series_id("11-1011", "11"): [data_point(2022, "251000"), data_point(2023, "258900")],
        derive_series_id("11-1011", "112"): [data_point(2023, "199000")],
    }

    with session_factory() as session:
        hierarchy = ClassificationHierarchy.from_session(session)
        soc_codes = load_soc_codes(session)
    assert soc_codes == ["00-0000", "11-1011"]

    def crawl():
        orchestrator = CrawlOrchestrator(
            SeriesExistenceCache(session_factory), bls_client, hierarchy, start_year=2022, end_year=2023,
        )
        return orchestrator.run(soc_codes)

    stats = crawl()
    assert stats.occupations == 2
    assert stats.series_found == 2
    # 00-0000: 11 and 21; 11-1011: 11, 21, 111, 112
    assert stats.series_checked == 6

    calls_after_first_run = len(fake_bls.calls)
    rerun = crawl()
    assert len(fake_bls.calls) == calls_after_first_run
    assert rerun.requests == 0

    with session_factory() as session:
        assert get_table_row_count(session, OEData) == 3
        assert get_table_row_count(session, OEWSSeries) == 6
        wages = session.execute(select(Wage.year, Wage.mean_annual_wage).order_by(Wage.mean_annual_wage)).all()
    assert [tuple(w) for w in wages] == [(2023, 199000), (2022, 251000), (2023, 258900)]
