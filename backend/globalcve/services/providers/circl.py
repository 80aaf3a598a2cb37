import httpx
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from globalcve.models.cve import parse_timestamp
from globalcve.services.providers.base import SourceAdapter, RawItem
from globalcve.services.query_engine import is_exact_cve_id

logger = logging.getLogger(__name__)


class CIRCLAdapter(SourceAdapter):
    """CIRCL CVE-Search API: exact id lookup or keyword search"""

    BASE_URL = "https://cve.circl.lu/api"

    name = "CIRCL"
    query_bound = True
    description_placeholder = "No description available from CIRCL."

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        query = query.strip()
        if not query:
            return []

        if is_exact_cve_id(query):
            url = f"{self.BASE_URL}/cve/{quote(query.upper())}"
        else:
            url = f"{self.BASE_URL}/search/{quote(query)}"
        logger.debug(f"CIRCL query: {url}")

        data = await self._get_json(client, url)
        if data is None:
            return []
        if isinstance(data, dict) and isinstance(data.get("results"), list):
            entries = data["results"]
        elif isinstance(data, list):
            entries = data
        else:
            entries = [data]

        return [item for item in (self._to_item(e) for e in entries if isinstance(e, dict)) if item]

    def _to_item(self, entry: Dict[str, Any]) -> Optional[RawItem]:
        metadata = entry.get("cveMetadata") or {}
        cve_id = metadata.get("cveId") or entry.get("id")
        if not cve_id:
            return None

        cna = (entry.get("containers") or {}).get("cna") or {}
        cna_descriptions = cna.get("descriptions") or [{}]
        description = (entry.get("summary") or cna_descriptions[0].get("value") or "").strip()

        raw_date = entry.get("Published") or metadata.get("datePublished")
        published = raw_date if parse_timestamp(raw_date) else None

        return {
            "id": cve_id,
            "description": description,
            "published": published,
            "cvss": entry.get("cvss"),
            "cvssv3": entry.get("cvss3"),
            "severity": entry.get("severity"),
            "metadata": {
                "references": entry.get("references", []),
                "cwe": entry.get("cwe"),
            },
        }
