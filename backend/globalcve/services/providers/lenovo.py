import re
import httpx
import logging
from typing import List

from globalcve.services.providers.base import SourceAdapter, RawItem, table_rows

logger = logging.getLogger(__name__)

THINKPAD_MODEL = re.compile(r"ThinkPad\s+[A-Za-z0-9]+")


class ThinkPadAdapter(SourceAdapter):
    """Lenovo PSIRT advisories that mention ThinkPad models"""

    PSIRT_URL = "https://support.lenovo.com/us/en/product_security/ps"

    name = "LENOVO.THINKPAD"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        html = await self._get_text(client, self.PSIRT_URL)
        return self.parse(html)

    def parse(self, html: str) -> List[RawItem]:
        items: List[RawItem] = []
        for cells in table_rows(html, min_cells=4):
            texts = [c.get_text(" ", strip=True) for c in cells]
            if "thinkpad" not in " ".join(texts).lower():
                continue

            advisory_id, description, severity, published = texts[:4]
            link = cells[0].find("a")
            items.append({
                "id": advisory_id,
                "description": description,
                "severity": severity.upper(),
                "published": published or None,
                "metadata": {
                    "affectedModels": sorted(set(THINKPAD_MODEL.findall(description))),
                    "advisoryUrl": link.get("href") if link else self.PSIRT_URL,
                    "type": "ThinkPad",
                    "vendor": "Lenovo",
                },
            })
        return items
