"""Shared fixtures: fake adapters, an offline KEV feed and test settings."""

from typing import Any, Dict, List, Optional

import httpx
import pytest

from globalcve.core.config import Settings
from globalcve.models.cve import CVERecord, KEVEntry
from globalcve.services.kev_index import KEVFeed
from globalcve.services.providers.base import CallableAdapter


class StaticKEVFeed(KEVFeed):
    """KEV feed that never touches the network"""

    def __init__(self, entries: Optional[List[Dict[str, Any]]] = None, fail: bool = False):
        super().__init__()
        self._static = [KEVEntry.model_validate(e) for e in entries or []]
        self.fail = fail
        self.calls = 0

    async def fetch(self, client: httpx.AsyncClient) -> List[KEVEntry]:
        self.calls += 1
        if self.fail:
            raise RuntimeError("KEV feed unreachable")
        return self._static


def static_adapter(name: str, items: List[Dict[str, Any]], query_bound: bool = False) -> CallableAdapter:
    async def fetch(client, query):
        return [dict(item) for item in items]

    return CallableAdapter(name, fetch, query_bound=query_bound)


def failing_adapter(name: str, exc: Exception) -> CallableAdapter:
    async def fetch(client, query):
        raise exc

    return CallableAdapter(name, fetch)


def make_record(cve_id: str, published: Optional[str] = None, source: str = "NVD", **kwargs) -> CVERecord:
    kwargs.setdefault("description", f"Issue {cve_id}")
    return CVERecord(id=cve_id, published=published, source=source, **kwargs)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ADAPTER_TIMEOUT_SECONDS=1.0,
        HTTP_TIMEOUT_SECONDS=1.0,
        NVD_API_KEY=None,
        GITHUB_TOKEN=None,
        DISABLED_SOURCES=[],
        SURFACE_KEV_RECORDS=False,
    )


@pytest.fixture
def kev_feed() -> StaticKEVFeed:
    return StaticKEVFeed([
        {"cveID": "CVE-2024-0001", "dateAdded": "2024-02-01", "vendorProject": "Acme",
         "product": "Gateway", "vulnerabilityName": "Acme Gateway Command Injection"},
    ])
