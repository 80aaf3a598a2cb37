import asyncio
import httpx
import logging
from typing import List, Dict, Any, Optional

from globalcve.core.exceptions import SourceFetchError
from globalcve.services.providers.base import SourceAdapter, RawItem
from globalcve.services.query_engine import is_exact_cve_id

logger = logging.getLogger(__name__)


class NVDAdapter(SourceAdapter):
    """NIST NVD API Provider (v2.0)"""

    # NVD API 2.0 URL
    BASE_URL = "https://services.nvd.nist.gov/rest/json/cves/2.0"
    RESULTS_PER_PAGE = 100

    name = "NVD"
    query_bound = True
    description_placeholder = "No description"

    def __init__(self, api_key: Optional[str] = None, pages: int = 5):
        self.api_key = api_key
        self.pages = max(pages, 1)

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        """
        Fetch up to `pages` pages of 100 CVEs matching the keyword query
        """
        headers = {"apiKey": self.api_key} if self.api_key else {}

        if is_exact_cve_id(query):
            pages = [await self._fetch_page(client, {"cveId": query.strip().upper()}, headers)]
        else:
            base_params: Dict[str, Any] = {"resultsPerPage": self.RESULTS_PER_PAGE}
            if query.strip():
                base_params["keywordSearch"] = query.strip()

            requests = [
                self._fetch_page(client, {**base_params, "startIndex": i * self.RESULTS_PER_PAGE}, headers)
                for i in range(self.pages)
            ]
            pages = await asyncio.gather(*requests, return_exceptions=True)

        items: List[RawItem] = []
        errors = []
        for number, page in enumerate(pages, start=1):
            if isinstance(page, BaseException):
                logger.warning(f"NVD page {number} error: {page}")
                errors.append(page)
                continue
            for vuln in page.get("vulnerabilities", []):
                item = self._normalize_cve(vuln.get("cve", {}))
                if item:
                    items.append(item)

        if errors and len(errors) == len(pages):
            raise SourceFetchError(f"All {len(pages)} NVD pages failed", self.name)
        return items

    async def _fetch_page(self, client: httpx.AsyncClient, params: Dict[str, Any], headers: Dict[str, str]) -> Dict:
        logger.debug(f"Fetching NVD page: {params}")
        return await self._get_json(client, self.BASE_URL, params=params, headers=headers)

    def _normalize_cve(self, cve: Dict) -> Optional[RawItem]:
        """Convert NVD CVE JSON to an adapter item"""
        cve_id = cve.get("id")
        if not cve_id:
            return None

        # Extract description (English preferred)
        descriptions = cve.get("descriptions", [])
        description = next(
            (d.get("value") for d in descriptions if d.get("lang") == "en"),
            descriptions[0].get("value") if descriptions else None,
        )

        # Extract CVSS Metrics (V3.1 preferred, then V3.0)
        metrics = cve.get("metrics", {})
        cvss_data = {}
        for key in ("cvssMetricV31", "cvssMetricV30"):
            if metrics.get(key):
                cvss_data = metrics[key][0].get("cvssData", {})
                break

        weaknesses = [
            w["description"][0].get("value")
            for w in cve.get("weaknesses", [])
            if w.get("description")
        ]

        return {
            "id": cve_id,
            "description": description,
            "severity": cvss_data.get("baseSeverity", "UNKNOWN"),
            "cvss": cvss_data.get("baseScore"),
            "published": cve.get("published"),
            "metadata": {
                "cwe": weaknesses[0] if weaknesses else None,
                "cwes": [w for w in weaknesses if w],
                "references": self._extract_references(cve.get("references", [])),
                "vectorString": cvss_data.get("vectorString"),
            },
        }

    def _extract_references(self, refs: List[Dict]) -> List[Dict[str, Any]]:
        return [
            {"url": r.get("url"), "source": r.get("source"), "tags": r.get("tags", [])}
            for r in refs
        ]
