import httpx
import logging
from typing import Any, Dict, List, Optional

from globalcve.services.providers.base import SourceAdapter, RawItem, parse_score

logger = logging.getLogger(__name__)

SEVERITY_MAP = {
    "critical": "CRITICAL",
    "important": "HIGH",
    "moderate": "MEDIUM",
    "low": "LOW",
}


class RedHatAdapter(SourceAdapter):
    """Red Hat Security Data API, most recent CVEs"""

    API_URL = "https://access.redhat.com/hydra/rest/securitydata/cve.json"
    PER_PAGE = 200

    name = "REDHAT"
    query_bound = False

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        data = await self._get_json(client, self.API_URL, params={"per_page": self.PER_PAGE})
        return [item for item in (self._to_item(e) for e in data or []) if item]

    def _to_item(self, entry: Dict[str, Any]) -> Optional[RawItem]:
        cve_id = entry.get("CVE")
        if not cve_id:
            return None

        description = entry.get("bugzilla_description") or ""
        severity = SEVERITY_MAP.get(str(entry.get("severity") or "").lower(), "UNKNOWN")
        return {
            "id": cve_id,
            "description": f"[RedHat] {description}".strip(),
            "severity": severity,
            "published": entry.get("public_date"),
            "metadata": {
                "affectedPackages": entry.get("affected_packages", []),
                "cvss3Score": parse_score(entry.get("cvss3_score")),
                "advisories": entry.get("advisories", []),
                "resourceUrl": entry.get("resource_url"),
                "vendor": "RedHat",
            },
        }
