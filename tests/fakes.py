"""
tests/fakes.py

Stand-ins for requests.Session used by the client, downloader and crawl tests.
"""
import json
from typing import Callable, Dict, List, Optional

import requests


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: Optional[str] = None,
                 content: bytes = b""):
        self.status_code = status_code
        self._payload = payload
        self.content = content
        if text is not None:
            self.text = text
        elif payload is not None:
            self.text = json.dumps(payload)
        else:
            self.text = content.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload

    def raise_for_status(self):
        if not self.ok:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeSession:
    """Records requests and answers them with a handler(method, url, body) -> FakeResponse."""

    def __init__(self, handler: Callable[[str, str, Optional[Dict]], FakeResponse]):
        self.handler = handler
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict] = []

    def request(self, method, url, timeout=None, json=None, **kwargs):
        self.calls.append({"method": method, "url": url, "json": json})
        return self.handler(method, url, json)

    def get(self, url, timeout=None, headers=None, stream=False, **kwargs):
        self.calls.append({"method": "GET", "url": url, "json": None})
        return self.handler("GET", url, None)

    @property
    def posted_series(self) -> List[List[str]]:
        return [c["json"]["seriesid"] for c in self.calls if c["method"] == "POST"]


def timeseries_payload(series: Dict[str, List[Dict]], status: str = "REQUEST_SUCCEEDED") -> Dict:
    return {
        "status": status,
        "responseTime": 12,
        "message": [],
        "Results": {"series": [{"seriesID": sid, "data": data} for sid, data in series.items()]},
    }


def data_point(year: int, value: str, period: str = "A01") -> Dict:
    return {"year": str(year), "period": period, "periodName": "Annual", "value": value, "footnotes": [{}]}


class FakeBLS(FakeSession):
    """
    BLS API stand-in. `available` maps series id -> data points; requested ids
    missing from it are left out of the response, as the real API does.
    """

    def __init__(self, available: Optional[Dict[str, List[Dict]]] = None,
                 industries: Optional[List[Dict]] = None):
        self.available = dict(available or {})
        self.industries = industries or []
        super().__init__(self._answer)

    def _answer(self, method, url, body):
        if url.endswith("/timeseries/data/"):
            found = {sid: self.available[sid] for sid in body["seriesid"] if sid in self.available}
            return FakeResponse(200, timeseries_payload(found))
        if url.endswith("/surveys/OEWS/industries/"):
            return FakeResponse(200, {"industries": self.industries})
        return FakeResponse(404, text="not found")

