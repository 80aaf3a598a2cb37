import httpx
import logging
from typing import List

from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids, table_rows

logger = logging.getLogger(__name__)

PRIORITY_MAP = {
    "hot news": "CRITICAL",
    "high priority": "HIGH",
    "medium priority": "MEDIUM",
    "low priority": "LOW",
}


class SAPNotesAdapter(SourceAdapter):
    """SAP security notes table"""

    SECURITY_URL = "https://support.sap.com/security"

    name = "SAP"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        html = await self._get_text(client, self.SECURITY_URL)
        return self.parse(html)

    def parse(self, html: str) -> List[RawItem]:
        items: List[RawItem] = []
        for cells in table_rows(html, "table.security-notes-table tr", min_cells=5):
            texts = [c.get_text(" ", strip=True) for c in cells]
            note_id, title, published, priority, cve_text = texts[:5]
            component = texts[5] if len(texts) > 5 else ""

            for cve_id in extract_cve_ids(cve_text):
                items.append({
                    "id": cve_id,
                    "description": f"[SAP {component}] {title}".replace("[SAP ]", "[SAP]"),
                    "severity": PRIORITY_MAP.get(priority.lower(), "UNKNOWN"),
                    "published": published or None,
                    "metadata": {
                        "noteId": note_id,
                        "component": component,
                        "priority": priority,
                        "noteUrl": f"{self.SECURITY_URL}/{note_id}",
                        "vendor": "SAP",
                    },
                })
        return items
