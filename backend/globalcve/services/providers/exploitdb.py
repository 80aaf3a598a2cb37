import csv
import io
import httpx
import logging
from typing import Dict, List

from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids

logger = logging.getLogger(__name__)


class ExploitDBAdapter(SourceAdapter):
    """Exploit-DB public exploit index (CSV)"""

    CSV_URL = "https://gitlab.com/exploit-database/exploitdb/-/raw/main/files_exploits.csv"
    EXPLOIT_URL = "https://www.exploit-db.com/exploits/{}"

    name = "EXPLOITDB"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        text = await self._get_text(client, self.CSV_URL)
        reader = csv.DictReader(io.StringIO(text))

        items: List[RawItem] = []
        for row in reader:
            items.extend(self._to_items(row))
        logger.debug(f"ExploitDB entries loaded: {len(items)}")
        return items

    def _to_items(self, row: Dict[str, str]) -> List[RawItem]:
        edb_id = (row.get("id") or "").strip()
        if not edb_id:
            return []

        metadata = {
            "edbId": edb_id,
            "exploitAvailable": True,
            "type": row.get("type"),
            "platform": row.get("platform"),
            "author": row.get("author"),
            "verified": row.get("verified") == "1",
            "link": self.EXPLOIT_URL.format(edb_id),
        }
        base = {
            "description": row.get("description"),
            "published": row.get("date_published") or row.get("date_added"),
            "metadata": metadata,
        }

        # One record per referenced CVE, or one keyed by the EDB id
        ids = extract_cve_ids(row.get("codes")) or [f"EDB-{edb_id}"]
        return [{"id": cve_id, **base, "metadata": dict(metadata)} for cve_id in ids]
