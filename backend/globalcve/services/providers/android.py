"""
Android Security Bulletin adapter
Source: https://source.android.com/security/bulletin
"""
import asyncio
import httpx
import logging
from datetime import date
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup

from globalcve.core.exceptions import SourceFetchError
from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids

logger = logging.getLogger(__name__)

SEVERITY_MAP = {
    "critical": "CRITICAL",
    "high": "HIGH",
    "moderate": "MEDIUM",
    "low": "LOW",
}


def recent_months(count: int, today: Optional[date] = None) -> List[Tuple[int, int]]:
    """(year, month) pairs for the current month and the count-1 before it"""
    today = today or date.today()
    year, month = today.year, today.month
    months = []
    for _ in range(count):
        months.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return months


class AndroidBulletinAdapter(SourceAdapter):
    """Monthly Android bulletins, one record per CVE row"""

    BULLETIN_URL = "https://source.android.com/security/bulletin/{year}-{month:02d}-01"

    name = "ANDROID"
    query_bound = False

    def __init__(self, months: int = 12):
        self.months = months

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        months = recent_months(self.months)
        pages = await asyncio.gather(
            *(self._fetch_bulletin(client, year, month) for year, month in months),
            return_exceptions=True,
        )

        items: List[RawItem] = []
        for (year, month), page in zip(months, pages):
            if isinstance(page, BaseException):
                # Bulletins for the current month are often not out yet
                logger.debug(f"Android bulletin {year}-{month:02d} unavailable: {page}")
                continue
            items.extend(page)

        if pages and all(isinstance(p, BaseException) for p in pages):
            raise SourceFetchError(f"No bulletin reachable in the last {self.months} months", self.name)
        return items

    async def _fetch_bulletin(self, client: httpx.AsyncClient, year: int, month: int) -> List[RawItem]:
        url = self.BULLETIN_URL.format(year=year, month=month)
        html = await self._get_text(client, url)
        return self.parse_bulletin(html, f"{year}-{month:02d}-01", url)

    def parse_bulletin(self, html: str, patch_level: str, url: str) -> List[RawItem]:
        soup = BeautifulSoup(html, "html.parser")
        items: List[RawItem] = []

        for table in soup.find_all("table"):
            header = [th.get_text(strip=True).lower() for th in table.find_all("th")]
            if "cve" not in header or "severity" not in header:
                continue
            cve_col = header.index("cve")
            severity_col = header.index("severity")
            type_col = header.index("type") if "type" in header else None

            heading = table.find_previous(["h3", "h2"])
            component = heading.get_text(strip=True) if heading else "Android"

            for row in table.find_all("tr"):
                cells = row.find_all("td")
                if len(cells) <= max(cve_col, severity_col):
                    continue
                severity = SEVERITY_MAP.get(cells[severity_col].get_text(strip=True).lower(), "UNKNOWN")
                vuln_type = cells[type_col].get_text(strip=True) if type_col is not None and len(cells) > type_col else None

                for cve_id in extract_cve_ids(cells[cve_col].get_text(" ", strip=True)):
                    kind = f" {vuln_type}" if vuln_type else ""
                    items.append({
                        "id": cve_id,
                        "description": f"Android {component}{kind} vulnerability addressed in {patch_level} security patch level",
                        "severity": severity,
                        "published": patch_level,
                        "metadata": {
                            "component": component,
                            "type": vuln_type,
                            "patchLevel": patch_level,
                            "bulletinUrl": url,
                        },
                    })
        return items
