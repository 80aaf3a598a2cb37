import httpx
import logging
from typing import Any, Dict, List, Optional

from globalcve.services.providers.base import SourceAdapter, RawItem

logger = logging.getLogger(__name__)

PRIORITY_MAP = {
    "critical": "CRITICAL",
    "high": "HIGH",
    "medium": "MEDIUM",
    "low": "LOW",
    "negligible": "LOW",
}


class UbuntuAdapter(SourceAdapter):
    """Ubuntu CVE tracker, most recently published entries"""

    API_URL = "https://ubuntu.com/security/cves.json"
    CVE_URL = "https://ubuntu.com/security/{}"
    LIMIT = 100

    name = "UBUNTU"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        data = await self._get_json(
            client, self.API_URL, params={"limit": self.LIMIT, "order": "descending"}
        )
        return [item for item in (self._to_item(e) for e in data.get("cves", [])) if item]

    def _to_item(self, entry: Dict[str, Any]) -> Optional[RawItem]:
        cve_id = entry.get("id")
        if not cve_id:
            return None

        packages = [p.get("name") for p in entry.get("packages", []) if p.get("name")]
        label = ", ".join(packages[:3])
        prefix = f"[Ubuntu {label}]" if label else "[Ubuntu]"

        return {
            "id": cve_id,
            "description": f"{prefix} {entry.get('description') or ''}".strip(),
            "severity": PRIORITY_MAP.get(str(entry.get("priority") or "").lower(), "UNKNOWN"),
            "published": entry.get("published"),
            "metadata": {
                "packages": packages,
                "notices": [n.get("id") for n in entry.get("notices", []) if isinstance(n, dict)],
                "url": self.CVE_URL.format(cve_id),
                "vendor": "Ubuntu",
            },
        }
