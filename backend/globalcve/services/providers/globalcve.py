"""
Adapters for the GlobalCVE release assets (CVE.org mirror and yearly archive)
"""
import io
import json
import re
import zipfile
import httpx
import logging
from typing import Any, Dict, Iterable, List, Optional

from globalcve.core.exceptions import SourceParseError
from globalcve.services.providers.base import SourceAdapter, RawItem

logger = logging.getLogger(__name__)

YEAR_PREFIX = re.compile(r"^CVE-(\d{4})-", re.IGNORECASE)


def substring_matches(entries: Iterable[Dict[str, Any]], query: str) -> List[Dict[str, Any]]:
    """Entries whose id or description contains the lower-cased query"""
    needle = query.strip().lower()
    return [
        e for e in entries
        if isinstance(e, dict) and any(
            isinstance(field, str) and needle in field.lower()
            for field in (e.get("id"), e.get("description"))
        )
    ]


def to_item(entry: Dict[str, Any]) -> RawItem:
    return {
        "id": entry.get("id"),
        "description": entry.get("description"),
        "published": entry.get("published"),
        "severity": entry.get("severity"),
        "cvss": entry.get("cvss"),
        "cvssScore": entry.get("cvssScore"),
        "cvssv3": entry.get("cvssv3"),
        "cvssv2": entry.get("cvssv2"),
        "metadata": entry.get("metadata") or {},
    }


class CVEOrgAdapter(SourceAdapter):
    """CVE.org dump published as a GlobalCVE release asset"""

    DUMP_URL = "https://github.com/globalcve/globalcve/releases/download/v1.0.0/cveorg.json"

    name = "CVE.ORG"
    query_bound = True
    description_placeholder = "No description available from CVE.org."

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        if not query.strip():
            return []
        data = await self._get_json(client, self.DUMP_URL)
        matches = substring_matches(data or [], query)
        logger.debug(f"Matching CVE.org entries: {len(matches)}")
        return [to_item(e) for e in matches]


class ArchiveAdapter(SourceAdapter):
    """Per-year CVE archive, consulted when the query names a CVE year"""

    ZIP_URL = "https://github.com/globalcve/globalcve/releases/download/v1.0.1/cves.zip"

    name = "ARCHIVE"
    query_bound = True
    description_placeholder = "No description available from archive."

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        year = self.year_of(query)
        if not year:
            return []

        response = await self._get(client, self.ZIP_URL)
        entries = self.read_year(response.content, year)
        if entries is None:
            logger.warning(f"{year}.json not found in cves.zip")
            return []

        matches = substring_matches(entries, query)
        logger.debug(f"Matching {year} archive CVEs: {len(matches)}")
        return [to_item(e) for e in matches]

    @staticmethod
    def year_of(query: str) -> Optional[str]:
        match = YEAR_PREFIX.match(query.strip())
        return match.group(1) if match else None

    def read_year(self, payload: bytes, year: str) -> Optional[List[Dict[str, Any]]]:
        try:
            with zipfile.ZipFile(io.BytesIO(payload)) as archive:
                try:
                    raw = archive.read(f"cves/{year}.json")
                except KeyError:
                    return None
        except zipfile.BadZipFile as e:
            raise SourceParseError(f"Invalid archive: {e}", self.name) from e

        try:
            return json.loads(raw.decode("utf-8"))
        except ValueError as e:
            raise SourceParseError(f"Invalid {year}.json: {e}", self.name) from e
