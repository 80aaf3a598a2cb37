"""
CNNVD (China National Vulnerability Database) adapter
"""
import asyncio
import httpx
import logging
from typing import Any, Dict, List

from globalcve.services.providers.base import SourceAdapter, RawItem

logger = logging.getLogger(__name__)

LEVEL_MAP = {
    "critical": "CRITICAL",
    "超危": "CRITICAL",
    "high": "HIGH",
    "高危": "HIGH",
    "medium": "MEDIUM",
    "中危": "MEDIUM",
    "low": "LOW",
    "低危": "LOW",
}


def map_cnnvd_level(level: Any) -> str:
    if not isinstance(level, str):
        return "UNKNOWN"
    return LEVEL_MAP.get(level.strip().lower(), "UNKNOWN")


class CNNVDAdapter(SourceAdapter):
    """Keyword search against the CNNVD list API, enriched with detail calls"""

    LIST_URL = "https://www.cnnvd.org.cn/web/vulInfo/queryList"
    DETAIL_URL = "https://www.cnnvd.org.cn/web/cnnvdInfo/getCnnvdDetail"
    PAGE_SIZE = 50

    name = "CNNVD"
    query_bound = True

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        data = await self._post_json(
            client,
            self.LIST_URL,
            json={"pageIndex": 1, "pageSize": self.PAGE_SIZE, "keyword": query or ""},
        )
        listing = data.get("list")
        if listing is None:
            listing = (data.get("data") or {}).get("records", [])

        detailed = await asyncio.gather(*(self._with_details(client, item) for item in listing))
        return [self._to_item(item) for item in detailed if item.get("cveCode") or item.get("cnnvdCode")]

    async def _with_details(self, client: httpx.AsyncClient, item: Dict[str, Any]) -> Dict[str, Any]:
        try:
            details = await self._post_json(client, self.DETAIL_URL, json={"cnnvdCode": item.get("cnnvdCode")})
        except Exception as e:
            logger.debug(f"CNNVD detail fetch error for {item.get('cnnvdCode')}: {e}")
            return item

        if isinstance(details, dict):
            details = (details.get("data") or {}).get("cnnvdDetail") or details
            return {**item, **details}
        return item

    def _to_item(self, item: Dict[str, Any]) -> RawItem:
        return {
            "id": item.get("cveCode") or item.get("cnnvdCode"),
            "description": item.get("description") or item.get("vulDesc") or item.get("title") or item.get("vulName"),
            "severity": map_cnnvd_level(item.get("vulLevel") or item.get("hazardLevel")),
            "published": item.get("publishTime"),
            "metadata": {
                "cnnvdId": item.get("cnnvdCode"),
                "vulType": item.get("vulType"),
            },
        }
