import asyncio

import pytest
from fastapi.testclient import TestClient

from globalcve.core.config import settings
from globalcve.core.dependencies import get_latest_service, get_search_service, run_until_disconnect
from globalcve.core.exceptions import ClientDisconnected
from globalcve.api.cves import parse_start_index
from globalcve.main import app
from globalcve.services.cve_service import CVEService

from conftest import StaticKEVFeed, failing_adapter, static_adapter

ITEMS = [
    {"id": "CVE-2024-0001", "severity": "HIGH", "published": "2024-01-10", "description": "Acme gateway injection"},
    {"id": "CVE-2024-0002", "cvss": 9.2, "published": "2024-03-01", "description": "Widget overflow"},
]


@pytest.fixture
def client(test_settings):
    feed = StaticKEVFeed([{"cveID": "CVE-2024-0001", "dateAdded": "2024-02-01"}])

    def service():
        return CVEService([static_adapter("A", ITEMS)], feed, test_settings)

    app.dependency_overrides[get_search_service] = service
    app.dependency_overrides[get_latest_service] = service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_root_and_health(client):
    root = client.get("/")
    assert root.status_code == 200
    assert root.json()["endpoints"]["search"] == f"{settings.API_PREFIX}/cves"

    health = client.get("/health")
    assert health.json()["status"] == "healthy"
    assert "X-Process-Time" in health.headers


def test_search_response_shape(client):
    response = client.get("/api/cves")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"query", "results", "stats", "total", "page", "totalPages"}
    assert [r["id"] for r in body["results"]] == ["CVE-2024-0002", "CVE-2024-0001"]
    assert body["results"][1]["kev"] is True
    assert body["results"][0]["severity"] == "CRITICAL"
    assert body["stats"]["totalCount"] == 2
    assert body["stats"]["bySeverity"]["HIGH"] == 1
    assert body["totalPages"] == 1


def test_search_flags_only_activate_on_literal_true(client):
    assert client.get("/api/cves", params={"isKev": "true"}).json()["total"] == 1
    assert client.get("/api/cves", params={"isKev": "1"}).json()["total"] == 2
    assert client.get("/api/cves", params={"hasExploit": "True"}).json()["total"] == 2


def test_search_query_and_filters(client):
    body = client.get("/api/cves", params={"query": "acme", "severity": "high"}).json()

    assert body["query"] == "acme"
    assert [r["id"] for r in body["results"]] == ["CVE-2024-0001"]


def test_garbage_start_index_is_zero(client):
    body = client.get("/api/cves", params={"startIndex": "abc"}).json()

    assert body["page"] == 1
    assert len(body["results"]) == 2


def test_latest_cves(client):
    body = client.get("/api/latest-cves", params={"sort": "oldest"}).json()

    assert set(body) == {"results", "stats", "total"}
    assert [r["id"] for r in body["results"]] == ["CVE-2024-0001", "CVE-2024-0002"]


def test_all_sources_down_is_still_200(test_settings):
    def service():
        return CVEService([failing_adapter("A", RuntimeError("down"))], StaticKEVFeed(fail=True), test_settings)

    app.dependency_overrides[get_search_service] = service
    try:
        with TestClient(app) as test_client:
            response = test_client.get("/api/cves", params={"query": "x"})
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200
    assert response.json()["results"] == []
    assert response.json()["stats"]["totalCount"] == 0


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"


@pytest.mark.parametrize("raw,expected", [
    ("100", 100), (" 7 ", 7), ("-5", 0), ("abc", 0), (None, 0), ("1.5", 0),
])
def test_parse_start_index(raw, expected):
    assert parse_start_index(raw) == expected


class FakeURL:
    path = "/api/cves"


class FakeRequest:
    url = FakeURL()

    def __init__(self, disconnect_after: int):
        self.polls = 0
        self.disconnect_after = disconnect_after

    async def is_disconnected(self) -> bool:
        self.polls += 1
        return self.polls > self.disconnect_after


@pytest.mark.asyncio
async def test_disconnect_cancels_pipeline():
    cancelled = asyncio.Event()

    async def pipeline():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    with pytest.raises(ClientDisconnected):
        await run_until_disconnect(FakeRequest(disconnect_after=1), pipeline(), poll_interval=0.01)

    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_connected_client_gets_result():
    async def pipeline():
        await asyncio.sleep(0.01)
        return "done"

    result = await run_until_disconnect(FakeRequest(disconnect_after=1000), pipeline(), poll_interval=0.005)
    assert result == "done"
