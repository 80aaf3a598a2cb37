import httpx
import logging
from typing import List

from globalcve.services.kev_index import KEVFeed
from globalcve.services.providers.base import SourceAdapter, RawItem

logger = logging.getLogger(__name__)


class KEVSourceAdapter(SourceAdapter):
    """Surfaces the KEV catalogue itself as a source of records"""

    name = "KEV"
    query_bound = False

    def __init__(self, feed: KEVFeed):
        self.feed = feed

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        # The feed caches, so this reuses the download made for the index
        entries = await self.feed.fetch(client)
        return [
            {
                "id": entry.cve_id,
                "description": entry.short_description or entry.vulnerability_name,
                "published": entry.date_added,
                "metadata": {
                    "vulnerabilityName": entry.vulnerability_name,
                    "vendorProject": entry.vendor_project,
                    "product": entry.product,
                    "dueDate": entry.due_date,
                    "requiredAction": entry.required_action,
                },
            }
            for entry in entries
        ]
