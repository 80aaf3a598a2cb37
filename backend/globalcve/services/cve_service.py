"""
Aggregation pipeline behind the search and latest endpoints
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx
from pydantic import ValidationError

from globalcve.core.config import Settings
from globalcve.models.cve import CVERecord, CVESearchResponse, LatestCVEsResponse
from globalcve.services.dispatcher import DispatchResult, FanOutDispatcher
from globalcve.services.filters import (
    SORT_NEWEST,
    FilterParams,
    apply_filters,
    deduplicate,
    paginate,
    sort_records,
)
from globalcve.services.kev_index import KEVFeed, KEVIndex
from globalcve.services.normalizer import normalize_item
from globalcve.services.providers.base import SourceAdapter
from globalcve.services.query_engine import parse_advanced_query, record_matches
from globalcve.services.stats_service import calculate_stats

logger = logging.getLogger(__name__)


@dataclass
class SearchParams:
    query: str = ""
    severity: Optional[str] = None
    sort: str = SORT_NEWEST
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    source: Optional[str] = None
    has_exploit: bool = False
    is_kev: bool = False
    start_index: int = 0

    def filters(self) -> FilterParams:
        return FilterParams(
            severity=self.severity,
            start_date=self.start_date,
            end_date=self.end_date,
            source=self.source,
            has_exploit=self.has_exploit,
            is_kev=self.is_kev,
        )


@dataclass
class LatestParams:
    sort: str = SORT_NEWEST
    start_date: Optional[str] = None


class CVEService:
    """Fan-out, normalize, enrich, filter and summarize across all sources"""

    def __init__(self, adapters: Sequence[SourceAdapter], kev_feed: KEVFeed, settings: Settings):
        self.adapters = list(adapters)
        self.kev_feed = kev_feed
        self.settings = settings
        self.dispatcher = FanOutDispatcher(self.adapters, timeout=settings.ADAPTER_TIMEOUT_SECONDS)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.HTTP_TIMEOUT_SECONDS,
            follow_redirects=True,
            headers={"User-Agent": self.settings.USER_AGENT},
        )

    async def search(self, params: SearchParams) -> CVESearchResponse:
        query = params.query or ""
        logger.info(f"CVE search: query={query!r} sources={len(self.adapters)}")

        async with self._client() as client:
            kev_index = await KEVIndex.build(self.kev_feed, client, query)
            dispatched = await self.dispatcher.dispatch(client, query)

        records = self._collect(dispatched, kev_index)

        if query.strip():
            terms = parse_advanced_query(query)
            records = [r for r in records if record_matches(r, query, terms)]

        records = apply_filters(records, params.filters())
        records = deduplicate(records)
        records = sort_records(records, params.sort)

        stats = calculate_stats(records)
        page = paginate(records, params.start_index)
        logger.info(f"CVE search {query!r}: {page.total} results, page {page.page}/{page.total_pages}")

        return CVESearchResponse(
            query=query,
            results=page.items,
            stats=stats,
            total=page.total,
            page=page.page,
            total_pages=page.total_pages,
        )

    async def latest(self, params: LatestParams) -> LatestCVEsResponse:
        logger.info(f"Latest CVEs: sources={len(self.adapters)}")

        async with self._client() as client:
            kev_index = await KEVIndex.build(self.kev_feed, client)
            dispatched = await self.dispatcher.dispatch(client)

        records = self._collect(dispatched, kev_index)
        records = apply_filters(records, FilterParams(start_date=params.start_date))
        records = deduplicate(records)
        records = sort_records(records, params.sort)

        return LatestCVEsResponse(
            results=records,
            stats=calculate_stats(records),
            total=len(records),
        )

    def _collect(self, dispatched: DispatchResult, kev_index: KEVIndex) -> List[CVERecord]:
        """Normalize merged items in adapter order and apply the KEV flag"""
        records: List[CVERecord] = []
        dropped = 0
        for adapter, item in dispatched.merged():
            try:
                record = normalize_item(item, adapter.name, adapter.description_placeholder)
            except (ValueError, ValidationError) as e:
                logger.debug(f"Dropping malformed item from {adapter.name}: {e}")
                record = None
            if record is None:
                dropped += 1
                continue
            record.kev = kev_index.is_flagged(record.id)
            records.append(record)

        if dropped:
            logger.debug(f"Dropped {dropped} items without a usable CVE record")
        return records
