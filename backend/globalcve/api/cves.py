"""
CVE search and latest-feed endpoints
"""
from fastapi import APIRouter, Depends, Query, Request
from typing import Optional
from slowapi import Limiter
from slowapi.util import get_remote_address

from globalcve.core.config import settings
from globalcve.core.dependencies import get_latest_service, get_search_service, run_until_disconnect
from globalcve.models.cve import CVESearchResponse, LatestCVEsResponse
from globalcve.services.cve_service import CVEService, LatestParams, SearchParams
from globalcve.services.filters import SORT_NEWEST

router = APIRouter(tags=["cves"])
limiter = Limiter(key_func=get_remote_address)


def parse_start_index(value: Optional[str]) -> int:
    """Lenient integer: garbage and negatives become 0"""
    try:
        return max(int(str(value).strip()), 0)
    except (TypeError, ValueError):
        return 0


def is_true(value: Optional[str]) -> bool:
    return value == "true"


@router.get("/cves", response_model=CVESearchResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def search_cves(
    request: Request,
    query: str = Query("", description="Advanced query: \"phrase\", -exclude, +include, a|b"),
    severity: Optional[str] = Query(None, description="CRITICAL, HIGH, MEDIUM, LOW or UNKNOWN"),
    sort: str = Query(SORT_NEWEST, description="newest or oldest"),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    source: Optional[str] = Query(None, description="Source tag, e.g. NVD"),
    hasExploit: Optional[str] = Query(None),
    isKev: Optional[str] = Query(None),
    startIndex: Optional[str] = Query(None),
    service: CVEService = Depends(get_search_service),
):
    """Search every source and return one page of merged results"""
    params = SearchParams(
        query=query,
        severity=severity,
        sort=sort,
        start_date=startDate,
        end_date=endDate,
        source=source,
        has_exploit=is_true(hasExploit),
        is_kev=is_true(isKev),
        start_index=parse_start_index(startIndex),
    )
    return await run_until_disconnect(request, service.search(params))


@router.get("/latest-cves", response_model=LatestCVEsResponse)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
async def latest_cves(
    request: Request,
    sort: str = Query(SORT_NEWEST, description="newest or oldest"),
    startDate: Optional[str] = Query(None),
    service: CVEService = Depends(get_latest_service),
):
    """Most recent entries across the browse feeds, unpaginated"""
    params = LatestParams(sort=sort, start_date=startDate)
    return await run_until_disconnect(request, service.latest(params))
