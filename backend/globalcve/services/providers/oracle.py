import httpx
import logging
from typing import List

from globalcve.services.providers.base import SourceAdapter, RawItem, parse_score, table_rows

logger = logging.getLogger(__name__)


class OracleCPUAdapter(SourceAdapter):
    """Oracle Critical Patch Update risk matrices, filtered by the query"""

    CPU_URL = "https://www.oracle.com/security-alerts/cpujan2024.html"
    CPU_RELEASE_DATE = "2024-01-16"
    ALERTS_URL = "https://www.oracle.com/security-alerts/"

    name = "ORACLE.CPU"
    query_bound = True

    def __init__(self, cpu_url: str = CPU_URL, release_date: str = CPU_RELEASE_DATE):
        self.cpu_url = cpu_url
        self.release_date = release_date

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        html = await self._get_text(client, self.cpu_url)
        return self.parse(html, query)

    def parse(self, html: str, query: str = "") -> List[RawItem]:
        needle = query.strip().lower()
        items: List[RawItem] = []

        for cells in table_rows(html, min_cells=4):
            texts = [c.get_text(" ", strip=True) for c in cells]
            cve_id, description, component, base_score = texts[:4]
            if not cve_id.startswith("CVE-"):
                continue
            if needle and needle not in cve_id.lower() and needle not in description.lower():
                continue

            items.append({
                "id": cve_id,
                "description": f"[{component}] {description}",
                "cvss": parse_score(base_score),
                "published": self.release_date,
                "metadata": {
                    "product": component,
                    "cvssBaseScore": base_score,
                    "affectedVersions": texts[4] if len(texts) > 4 else None,
                    "vendor": "Oracle",
                    "cpuUrl": self.cpu_url,
                },
            })
        return items
