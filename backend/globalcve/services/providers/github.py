"""
GitHub Security Advisories adapter (GraphQL API)
"""
import httpx
import logging
from typing import Any, Dict, List

from globalcve.core.exceptions import SourceParseError
from globalcve.services.providers.base import SourceAdapter, RawItem

logger = logging.getLogger(__name__)

SEVERITY_MAP = {
    "CRITICAL": "CRITICAL",
    "HIGH": "HIGH",
    "MODERATE": "MEDIUM",
    "LOW": "LOW",
}

ADVISORIES_QUERY = """
query {
  securityAdvisories(first: 100, orderBy: {field: PUBLISHED_AT, direction: DESC}) {
    nodes {
      ghsaId
      summary
      description
      severity
      publishedAt
      withdrawnAt
      references { url }
      identifiers { type value }
      vulnerabilities(first: 5) { nodes { package { ecosystem name } } }
    }
  }
}
"""


class GitHubAdvisoryAdapter(SourceAdapter):
    """Latest reviewed advisories, one record per CVE identifier"""

    GRAPHQL_URL = "https://api.github.com/graphql"

    name = "GITHUB"
    query_bound = False

    def __init__(self, token: str):
        self.token = token

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        data = await self._post_json(
            client,
            self.GRAPHQL_URL,
            json={"query": ADVISORIES_QUERY},
            headers={"Authorization": f"bearer {self.token}"},
        )
        if data.get("errors"):
            raise SourceParseError(f"GraphQL errors: {data['errors']}", self.name)

        nodes = ((data.get("data") or {}).get("securityAdvisories") or {}).get("nodes", [])
        items: List[RawItem] = []
        for advisory in nodes:
            if advisory.get("withdrawnAt"):
                continue
            items.extend(self._to_items(advisory))
        return items

    def _to_items(self, advisory: Dict[str, Any]) -> List[RawItem]:
        cves = [i["value"] for i in advisory.get("identifiers", []) if i.get("type") == "CVE"]
        packages = [
            (v.get("package") or {})
            for v in (advisory.get("vulnerabilities") or {}).get("nodes", [])
        ]
        packages = [p for p in packages if p.get("name")]

        return [
            {
                "id": cve_id,
                "description": advisory.get("description") or advisory.get("summary"),
                "severity": SEVERITY_MAP.get(str(advisory.get("severity") or "").upper(), "UNKNOWN"),
                "published": advisory.get("publishedAt"),
                "metadata": {
                    "ghsaId": advisory.get("ghsaId"),
                    "ecosystem": ", ".join(p.get("ecosystem") or "" for p in packages),
                    "package": ", ".join(p["name"] for p in packages),
                    "references": [r.get("url") for r in advisory.get("references", [])],
                },
            }
            for cve_id in cves
        ]
