import feedparser
import httpx
import logging
from typing import Any, Dict, List, Optional

from globalcve.core.exceptions import SourceParseError
from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids, parse_score

logger = logging.getLogger(__name__)


class JVNAdapter(SourceAdapter):
    """JVN iPedia RSS feed of newly published vulnerabilities"""

    FEED_URL = "https://jvndb.jvn.jp/en/rss/jvndb_new.rdf"

    name = "JVN"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        text = await self._get_text(client, self.FEED_URL)
        feed = feedparser.parse(text)
        if feed.bozo and not feed.entries:
            raise SourceParseError(f"Unreadable RSS: {feed.bozo_exception}", self.name, raw_data_sample=text[:200])

        items = [self._to_item(entry) for entry in feed.entries]
        logger.debug(f"JVN feed loaded: {len(items)}")
        return [item for item in items if item]

    def _to_item(self, entry: Dict[str, Any]) -> Optional[RawItem]:
        jvn_id = entry.get("sec_identifier") or entry.get("id")
        references = " ".join(
            ref.get("href", "") if isinstance(ref, dict) else str(ref)
            for ref in entry.get("sec_references", []) or []
        )
        cve_ids = extract_cve_ids(" ".join([entry.get("title", ""), entry.get("summary", ""), references]))
        record_id = cve_ids[0] if cve_ids else jvn_id
        if not record_id:
            return None

        cvss = entry.get("sec_cvss")
        score = parse_score(cvss.get("score")) if isinstance(cvss, dict) else None
        severity = cvss.get("severity") if isinstance(cvss, dict) else None

        return {
            "id": record_id,
            "description": entry.get("summary") or entry.get("title"),
            "published": entry.get("published") or entry.get("dc_date") or entry.get("updated"),
            "cvss": score,
            "severity": severity,
            "metadata": {
                "jvnId": jvn_id,
                "title": entry.get("title"),
                "link": entry.get("link"),
                "cves": cve_ids,
            },
        }
