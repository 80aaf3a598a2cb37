import httpx
import logging
from typing import List

from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids, table_rows

logger = logging.getLogger(__name__)


class VMwareAdvisoryAdapter(SourceAdapter):
    """VMware security advisories table"""

    ADVISORY_URL = "https://www.vmware.com/security/advisories.html"

    name = "VMWARE"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        html = await self._get_text(client, self.ADVISORY_URL)
        return self.parse(html)

    def parse(self, html: str) -> List[RawItem]:
        items: List[RawItem] = []
        for cells in table_rows(html, min_cells=5):
            advisory_id, description, products, severity, published = [
                c.get_text(" ", strip=True) for c in cells[:5]
            ]
            link = cells[0].find("a")

            for cve_id in extract_cve_ids(description):
                items.append({
                    "id": cve_id,
                    "description": f"[{products}] {description}",
                    "severity": severity.upper(),
                    "published": published or None,
                    "metadata": {
                        "advisoryId": advisory_id,
                        "advisoryUrl": link.get("href") if link else self.ADVISORY_URL,
                        "affectedProducts": [p.strip() for p in products.split(",") if p.strip()],
                        "vendor": "VMware",
                    },
                })
        return items
