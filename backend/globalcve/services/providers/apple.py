"""
Apple security releases adapter
Sources:
- https://support.apple.com/en-us/HT201222
- https://support.apple.com/en-us/HT201222.rss
"""
import asyncio
import re
import httpx
import logging
from typing import Any, Dict, List

import feedparser
from bs4 import BeautifulSoup

from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids

logger = logging.getLogger(__name__)

ADVISORY_ID = re.compile(r"HT\d+|\b\d{6}\b")
PRODUCT = re.compile(r"for\s+(.*?)$")


def infer_apple_severity(text: str) -> str:
    text = text.lower()
    if any(k in text for k in ("arbitrary code execution", "kernel", "root", "elevation of privilege")):
        return "CRITICAL"
    if any(k in text for k in ("denial of service", "information disclosure")):
        return "HIGH"
    if any(k in text for k in ("bypass", "tracking")):
        return "MEDIUM"
    return "UNKNOWN"


class AppleAdvisoryAdapter(SourceAdapter):
    """Recent Apple security releases, one record per CVE in each advisory"""

    RSS_URL = "https://support.apple.com/en-us/HT201222.rss"

    name = "APPLE"
    query_bound = False

    def __init__(self, max_items: int = 20):
        self.max_items = max_items

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        feed = feedparser.parse(await self._get_text(client, self.RSS_URL))
        entries = [e for e in feed.entries[:self.max_items] if e.get("link")]

        # Each advisory page lists the CVEs it fixes
        pages = await asyncio.gather(
            *(self._get_text(client, entry["link"]) for entry in entries),
            return_exceptions=True,
        )

        items: List[RawItem] = []
        for entry, page in zip(entries, pages):
            if isinstance(page, BaseException):
                logger.debug(f"Apple advisory page failed: {page}")
                continue
            items.extend(self._to_items(entry, page))
        return items

    def _to_items(self, entry: Dict[str, Any], html: str) -> List[RawItem]:
        link = entry.get("link", "")
        title = entry.get("title", "")
        match = ADVISORY_ID.search(link)
        advisory = match.group(0) if match else None

        product_match = PRODUCT.search(title)
        product = product_match.group(1) if product_match else "Apple Product"

        summary = BeautifulSoup(entry.get("summary", ""), "html.parser").get_text(" ", strip=True)
        page_text = BeautifulSoup(html, "html.parser").get_text(" ", strip=True)
        description = summary or f"Security update for {product}. See {advisory or link} for details."

        return [
            {
                "id": cve_id,
                "description": description,
                "severity": infer_apple_severity(summary or page_text),
                "published": entry.get("published"),
                "metadata": {"advisory": advisory, "product": product, "advisoryUrl": link},
            }
            for cve_id in extract_cve_ids(page_text)
        ]
