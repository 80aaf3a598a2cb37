from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional
import logging
import re

import httpx
from bs4 import BeautifulSoup, Tag

from globalcve.core.exceptions import SourceFetchError, SourceParseError

logger = logging.getLogger(__name__)

CVE_PATTERN = re.compile(r"CVE-\d{4}-\d{4,}", re.IGNORECASE)

RawItem = Dict[str, Any]
FetchFn = Callable[[httpx.AsyncClient, str], Awaitable[List[RawItem]]]


def extract_cve_ids(text: Optional[str]) -> List[str]:
    """Distinct CVE ids in order of first appearance"""
    if not text:
        return []
    seen = {}
    for match in CVE_PATTERN.findall(text):
        seen.setdefault(match.upper(), None)
    return list(seen)


def parse_score(value: Any) -> Optional[float]:
    """Float out of a scraped score cell, None when absent or not numeric"""
    if value is None:
        return None
    try:
        score = float(str(value).strip())
    except ValueError:
        return None
    return None if score != score else score  # NaN


def table_rows(html: str, selector: str = "table tr", min_cells: int = 1) -> Iterator[List[Tag]]:
    """Data cells of every matching table row with at least min_cells cells"""
    soup = BeautifulSoup(html, "html.parser")
    for row in soup.select(selector):
        cells = row.find_all("td")
        if len(cells) >= min_cells:
            yield cells


class SourceAdapter(ABC):
    """Abstract base class for vulnerability feed adapters"""

    # Source tag stamped on every record this adapter produces
    name: str = ""
    # True when the feed narrows results by keyword server-side
    query_bound: bool = False
    description_placeholder: str = "No description available"

    @abstractmethod
    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        """Return near-normalized items; raise SourceError on failure"""
        pass

    def __repr__(self) -> str:
        mode = "query-bound" if self.query_bound else "browse-only"
        return f"<{type(self).__name__} {self.name} ({mode})>"

    async def _get(self, client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
        return await self._request(client, "GET", url, **kwargs)

    async def _post(self, client: httpx.AsyncClient, url: str, **kwargs) -> httpx.Response:
        return await self._request(client, "POST", url, **kwargs)

    async def _request(self, client: httpx.AsyncClient, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Request failed: {e}", self.name, url=url) from e

        if not response.is_success:
            raise SourceFetchError(
                f"Unexpected status {response.status_code}",
                self.name,
                status_code=response.status_code,
                url=url,
            )
        return response

    async def _get_text(self, client: httpx.AsyncClient, url: str, **kwargs) -> str:
        response = await self._get(client, url, **kwargs)
        return response.text

    async def _get_json(self, client: httpx.AsyncClient, url: str, **kwargs) -> Any:
        response = await self._get(client, url, **kwargs)
        return self._decode_json(response)

    async def _post_json(self, client: httpx.AsyncClient, url: str, **kwargs) -> Any:
        response = await self._post(client, url, **kwargs)
        return self._decode_json(response)

    def _decode_json(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise SourceParseError(
                f"Invalid JSON: {e}", self.name, raw_data_sample=response.text[:200]
            ) from e


class CallableAdapter(SourceAdapter):
    """Adapter backed by a plain coroutine function"""

    def __init__(self, name: str, fn: FetchFn, query_bound: bool = False,
                 description_placeholder: Optional[str] = None):
        self.name = name
        self.query_bound = query_bound
        self._fn = fn
        if description_placeholder:
            self.description_placeholder = description_placeholder

    async def fetch(self, client: httpx.AsyncClient, query: str) -> List[RawItem]:
        return await self._fn(client, query)
