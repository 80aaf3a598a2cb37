"""
Known Exploited Vulnerabilities enrichment

The index is built once per request, before the fan-out, and only read
afterwards. A record is flagged when its id is in the catalogue or when the
active search query matches a catalogue entry with that id, so the flag can
change with the query.
"""
import logging
from typing import Iterable, List, Optional, Set

import httpx

from globalcve.core.exceptions import SourceFetchError, SourceParseError
from globalcve.models.cve import KEVEntry
from globalcve.services.query_engine import is_exact_cve_id, matches_query, parse_advanced_query

logger = logging.getLogger(__name__)


class KEVFeed:
    """CISA KEV catalogue, downloaded at most once per instance"""

    FEED_URL = "https://www.cisa.gov/sites/default/files/feeds/known_exploited_vulnerabilities.json"
    name = "KEV"

    def __init__(self, url: Optional[str] = None):
        self.url = url or self.FEED_URL
        self._entries: Optional[List[KEVEntry]] = None

    async def fetch(self, client: httpx.AsyncClient) -> List[KEVEntry]:
        if self._entries is not None:
            return self._entries

        try:
            response = await client.get(self.url)
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Request failed: {e}", self.name, url=self.url) from e
        if response.status_code != 200:
            raise SourceFetchError(
                f"Unexpected status {response.status_code}", self.name,
                status_code=response.status_code, url=self.url,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise SourceParseError(f"Invalid JSON: {e}", self.name, raw_data_sample=response.text[:200]) from e

        entries = []
        for item in data.get("vulnerabilities", []):
            if isinstance(item, dict) and item.get("cveID"):
                entries.append(KEVEntry.model_validate(item))

        self._entries = entries
        return entries


def keyword_match_kev(entries: Iterable[KEVEntry], query: str) -> Set[str]:
    """Ids of catalogue entries that the free-text query matches"""
    if not query or not query.strip():
        return set()

    if is_exact_cve_id(query):
        wanted = query.strip().upper()
        return {e.cve_id for e in entries if e.cve_id.upper() == wanted}

    terms = parse_advanced_query(query)
    if terms.is_empty():
        return set()
    return {e.cve_id for e in entries if matches_query(e.search_text(), terms)}


class KEVIndex:
    """Read-only id lookup plus query-derived keyword matches"""

    def __init__(self, ids: Iterable[str] = (), keyword_matches: Iterable[str] = ()):
        self._ids = frozenset(ids)
        self._keyword_matches = frozenset(keyword_matches)

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def keyword_matches(self) -> frozenset:
        return self._keyword_matches

    def is_flagged(self, cve_id: str) -> bool:
        return cve_id in self._ids or cve_id in self._keyword_matches

    @classmethod
    def from_entries(cls, entries: Iterable[KEVEntry], query: str = "") -> "KEVIndex":
        entries = list(entries)
        return cls(
            ids=(e.cve_id for e in entries),
            keyword_matches=keyword_match_kev(entries, query),
        )

    @classmethod
    async def build(cls, feed: KEVFeed, client: httpx.AsyncClient, query: str = "") -> "KEVIndex":
        """Build the index; a failing feed yields an empty index"""
        try:
            entries = await feed.fetch(client)
        except Exception as e:
            logger.error(f"KEV fetch error: {e}")
            return cls()

        index = cls.from_entries(entries, query)
        logger.info(f"KEV entries loaded: {len(index)}, keyword matches: {len(index.keyword_matches)}")
        return index
