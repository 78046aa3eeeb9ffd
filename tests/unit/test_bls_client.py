"""
tests/unit/test_bls_client.py

BLSClient batching, response mapping and failure classification against a
fake requests.Session.
"""
import pytest
import requests

from oews_collector.bls.bls_client import BLSClient, RateLimiter, WageObservation
from oews_collector.exceptions import ResponseValidationError, TransportError
from tests.fakes import FakeBLS, FakeResponse, FakeSession, data_point, timeseries_payload


def make_client(session, **kwargs) -> BLSClient:
    kwargs.setdefault("rate_limiter", RateLimiter(max_requests=100_000, window_seconds=1))
    return BLSClient(api_key="test-key", session=session, **kwargs)


def ids(n: int):
    return [f"OEUN0000000110000{i:06d}03" for i in range(n)]


class TestResolveBatch:

    def test_request_body(self, fake_bls, bls_client):
        bls_client.resolve_batch(["A"], 2021, 2023)

        call = fake_bls.calls[0]
        assert call["method"] == "POST"
        assert call["url"] == "https://api.bls.gov/publicAPI/v2/timeseries/data/"
        assert call["json"] == {
            "seriesid": ["A"], "startyear": "2021", "endyear": "2023", "registrationkey": "test-key",
        }

    def test_found_and_missing_series(self, fake_bls, bls_client):
        fake_bls.available = {"A": [data_point(2023, "246,440"), data_point(2022, "-")]}

        resolved = bls_client.resolve_batch(["A", "B"], 2022, 2023)

        assert resolved["A"] == [WageObservation(2023, "A01", 246440.0), WageObservation(2022, "A01", None)]
        assert resolved["B"] is None

    def test_entry_without_data_is_not_found(self, fake_bls, bls_client):
        fake_bls.available = {"A": []}
        assert bls_client.resolve_batch(["A"], 2023, 2023) == {"A": None}

    def test_mapping_uses_series_id_not_position(self):
        payload = timeseries_payload({"B": [data_point(2023, "2")], "A": [data_point(2023, "1")]})
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, payload)))

        resolved = client.resolve_batch(["A", "B"], 2023, 2023)

        assert resolved["A"][0].value == 1.0
        assert resolved["B"][0].value == 2.0

    def test_unrequested_series_are_ignored(self):
        payload = timeseries_payload({"Z": [data_point(2023, "1")]})
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, payload)))
        assert client.resolve_batch(["A"], 2023, 2023) == {"A": None}

    def test_requests_never_exceed_fifty_series(self, fake_bls, bls_client):
        resolved = bls_client.resolve_batch(ids(120), 2023, 2023)

        assert [len(batch) for batch in fake_bls.posted_series] == [50, 50, 20]
        assert len(resolved) == 120
        assert bls_client.requests_made == 3

    def test_smaller_configured_batch(self, fake_bls):
        client = make_client(fake_bls, batch_size=10)
        client.resolve_batch(ids(25), 2023, 2023)
        assert [len(batch) for batch in fake_bls.posted_series] == [10, 10, 5]

    def test_duplicate_ids_are_requested_once(self, fake_bls, bls_client):
        bls_client.resolve_batch(["A", "A", "B"], 2023, 2023)
        assert fake_bls.posted_series == [["A", "B"]]

    @pytest.mark.parametrize("start,end", [(2024, 2023), (2000, 2023)])
    def test_invalid_year_range_raises(self, bls_client, start, end):
        with pytest.raises(ValueError):
            bls_client.resolve_batch(["A"], start, end)

    @pytest.mark.parametrize("batch_size", [0, 51])
    def test_batch_size_is_bounded(self, fake_bls, batch_size):
        with pytest.raises(ValueError):
            make_client(fake_bls, batch_size=batch_size)


class TestFailures:

    def test_server_error_raises_transport_error(self):
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(500, text="Internal Server Error")))
        with pytest.raises(TransportError) as exc_info:
            client.resolve_batch(["A"], 2023, 2023)
        assert exc_info.value.status_code == 500
        assert client.requests_made == 1

    def test_client_error_is_not_retried(self):
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(403, text="Forbidden")), retries=3)
        with pytest.raises(TransportError):
            client.resolve_batch(["A"], 2023, 2023)
        assert client.requests_made == 1

    def test_request_failed_status_raises_transport_error(self):
        payload = {"status": "REQUEST_NOT_PROCESSED", "message": ["daily threshold reached"]}
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, payload)))
        with pytest.raises(TransportError, match="daily threshold"):
            client.resolve_batch(["A"], 2023, 2023)

    def test_non_json_body_raises_validation_error(self):
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, text="<html>maintenance</html>")))
        with pytest.raises(ResponseValidationError):
            client.resolve_batch(["A"], 2023, 2023)

    def test_malformed_body_raises_validation_error(self):
        payload = {"status": "REQUEST_SUCCEEDED", "Results": {"series": [{"seriesID": "A"}]}}
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, payload)))
        with pytest.raises(ResponseValidationError) as exc_info:
            client.resolve_batch(["A"], 2023, 2023)
        assert any("data" in e for e in exc_info.value.errors)

    @pytest.mark.parametrize("point", [
        data_point(2023, "garbage"),
        data_point(2023, "nan"),
        {**data_point(2023, "100"), "year": "20x3"},
    ])
    def test_malformed_data_point_raises_validation_error(self, point):
        payload = timeseries_payload({"A": [point]})
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, payload)))
        with pytest.raises(ResponseValidationError) as exc_info:
            client.resolve_batch(["A"], 2023, 2023)
        assert any("data[0]" in e for e in exc_info.value.errors)

    def test_network_error_raises_transport_error(self):
        def fail(method, url, body):
            raise requests.ConnectionError("connection refused")

        client = make_client(FakeSession(fail))
        with pytest.raises(TransportError, match="connection refused"):
            client.resolve_batch(["A"], 2023, 2023)

    def test_retry_when_enabled(self, monkeypatch):
        monkeypatch.setattr("oews_collector.bls.bls_client.time.sleep", lambda s: None)
        responses = [FakeResponse(503, text="busy"), FakeResponse(200, timeseries_payload({}))]
        client = make_client(FakeSession(lambda m, u, b: responses.pop(0)), retries=2)

        assert client.resolve_batch(["A"], 2023, 2023) == {"A": None}
        assert client.requests_made == 2


class TestIndustries:

    def test_industries_are_validated(self):
        bls = FakeBLS(industries=[{"code": "11", "text": "Agriculture"}])
        client = make_client(bls)
        assert client.get_industries().industries[0].code == "11"

    def test_malformed_industries_raise(self):
        client = make_client(FakeSession(lambda m, u, b: FakeResponse(200, {"industries": [{"code": "11"}]})))
        with pytest.raises(ResponseValidationError):
            client.get_industries()


class TestRateLimiter:

    def test_waits_when_window_is_full(self, monkeypatch):
        sleeps = []
        monkeypatch.setattr("oews_collector.bls.bls_client.time.sleep", sleeps.append)
        limiter = RateLimiter(max_requests=2, window_seconds=10)

        limiter.acquire()
        limiter.acquire()
        assert sleeps == []

        limiter.acquire()
        assert len(sleeps) == 1
        assert 9 < sleeps[0] <= 10.01
