"""
CERT-FR advisories adapter
Source: https://cert.ssi.gouv.fr/
"""
import asyncio
import re
import httpx
import logging
from typing import Any, Dict, List

import feedparser
from bs4 import BeautifulSoup

from globalcve.core.exceptions import SourceFetchError
from globalcve.services.providers.base import SourceAdapter, RawItem, extract_cve_ids

logger = logging.getLogger(__name__)

CERTFR_ID = re.compile(r"CERTFR-\d{4}-[A-Z]{3,4}-?\d+")


def infer_certfr_risk(text: str) -> str:
    lowered = text.lower()
    if "critique" in lowered or "critical" in lowered:
        return "CRITICAL"
    if "important" in lowered or "élevé" in lowered:
        return "HIGH"
    if "modéré" in lowered or "moderate" in lowered:
        return "MEDIUM"
    if "faible" in lowered or "low" in lowered:
        return "LOW"
    return "UNKNOWN"


class CertFRAdapter(SourceAdapter):
    """French and English CERT-FR RSS feeds"""

    FEED_URL = "https://cert.ssi.gouv.fr/feed/{lang}.xml"
    ALERT_URL = "https://cert.ssi.gouv.fr/alerte/{}/"

    name = "CERT-FR"
    query_bound = False
    LANGUAGES = ("fr", "en")

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        feeds = await asyncio.gather(
            *(self._get_text(client, self.FEED_URL.format(lang=lang)) for lang in self.LANGUAGES),
            return_exceptions=True,
        )
        if all(isinstance(f, BaseException) for f in feeds):
            raise SourceFetchError("Both FR and EN feeds failed", self.name)

        items: List[RawItem] = []
        for lang, text in zip(self.LANGUAGES, feeds):
            if isinstance(text, BaseException):
                logger.warning(f"CERT-FR {lang} feed failed: {text}")
                continue
            for entry in feedparser.parse(text).entries:
                items.extend(self._to_items(entry, lang))
        return items

    def _to_items(self, entry: Dict[str, Any], lang: str) -> List[RawItem]:
        title = entry.get("title", "")
        raw_description = entry.get("summary", "")
        haystack = " ".join([title, raw_description, entry.get("link", "")])

        match = CERTFR_ID.search(haystack)
        if not match:
            return []
        cert_id = match.group(0)

        description = BeautifulSoup(raw_description, "html.parser").get_text(" ", strip=True) or title
        risk = infer_certfr_risk(f"{title} {description}")

        return [
            {
                "id": cve_id,
                "description": description,
                "severity": risk,
                "published": entry.get("published"),
                "metadata": {
                    "advisory": cert_id,
                    "risk": risk,
                    "lang": lang,
                    "alertUrl": entry.get("link") or self.ALERT_URL.format(cert_id),
                },
            }
            for cve_id in extract_cve_ids(haystack)
        ]
