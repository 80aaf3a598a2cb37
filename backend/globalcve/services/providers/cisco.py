import re
import httpx
import logging
from typing import List

from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids, parse_score, table_rows

logger = logging.getLogger(__name__)

PRODUCT = re.compile(r"\[(.*?)\]")


class CiscoAdvisoryAdapter(SourceAdapter):
    """Cisco security advisory publication listing"""

    LISTING_URL = "https://tools.cisco.com/security/center/publicationListing.x"

    name = "CISCO"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        html = await self._get_text(client, self.LISTING_URL)
        return self.parse(html)

    def parse(self, html: str) -> List[RawItem]:
        items: List[RawItem] = []
        for cells in table_rows(html, "table.data-table tr", min_cells=5):
            link = cells[0].find("a")
            title = (link or cells[0]).get_text(" ", strip=True)
            published = cells[1].get_text(strip=True)
            score_text = cells[3].get_text(strip=True)

            product_match = PRODUCT.search(title)
            for cve_id in extract_cve_ids(cells[2].get_text(" ", strip=True)):
                items.append({
                    "id": cve_id,
                    "description": title,
                    "cvss": parse_score(score_text),
                    "published": published or None,
                    "metadata": {
                        "product": product_match.group(1) if product_match else "Unknown Product",
                        "cvssScore": score_text,
                        "advisoryUrl": link.get("href") if link else self.LISTING_URL,
                        "vendor": "Cisco",
                    },
                })
        return items
