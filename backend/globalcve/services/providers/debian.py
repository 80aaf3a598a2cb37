import httpx
import logging
from typing import Any, Dict, List

from globalcve.services.providers.base import SourceAdapter, RawItem

logger = logging.getLogger(__name__)

URGENCY_MAP = {
    "high": "CRITICAL",
    "medium": "HIGH",
    "low": "MEDIUM",
    "unimportant": "LOW",
}


def map_debian_urgency(urgency: str) -> str:
    return URGENCY_MAP.get((urgency or "").strip().lower().rstrip("*"), "UNKNOWN")


class DebianAdapter(SourceAdapter):
    """Debian security tracker JSON dump (package -> CVE -> info)"""

    TRACKER_URL = "https://security-tracker.debian.org/tracker/data/json"
    CVE_URL = "https://security-tracker.debian.org/tracker/{}"

    name = "DEBIAN"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        data = await self._get_json(client, self.TRACKER_URL)
        return self.parse(data)

    def parse(self, data: Dict[str, Dict[str, Any]]) -> List[RawItem]:
        items: List[RawItem] = []
        for package, vulnerabilities in data.items():
            for cve_id, info in vulnerabilities.items():
                if not cve_id.startswith("CVE-"):
                    continue
                items.append(self._to_item(package, cve_id, info or {}))
        return items

    def _to_item(self, package: str, cve_id: str, info: Dict[str, Any]) -> RawItem:
        releases = info.get("releases") or {}
        urgencies = [r.get("urgency") for r in releases.values() if r.get("urgency")]
        urgency = info.get("urgency") or (urgencies[0] if urgencies else "")
        description = info.get("description") or f"Security issue in {package}"

        return {
            "id": cve_id,
            "description": f"[Debian {package}] {description}",
            "severity": map_debian_urgency(urgency),
            # The tracker dump carries no dates
            "published": None,
            "metadata": {
                "package": package,
                "affectedVersions": [d for d, r in releases.items() if r.get("status") == "open"],
                "fixedVersions": [f"{d}: {r['fixed_version']}" for d, r in releases.items() if r.get("fixed_version")],
                "trackerUrl": self.CVE_URL.format(cve_id),
                "vendor": "Debian",
            },
        }
