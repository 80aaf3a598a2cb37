"""
Concurrent fan-out over source adapters

Every adapter runs as its own task under a time budget; the dispatch joins
all of them. A failing or slow adapter contributes nothing and never fails
the dispatch. Cancelling the dispatch cancels every adapter still running.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import httpx

from globalcve.core.exceptions import SourceTimeoutError
from globalcve.services.providers.base import RawItem, SourceAdapter

logger = logging.getLogger(__name__)


@dataclass
class AdapterOutcome:
    """What one adapter contributed to a dispatch"""
    adapter: SourceAdapter
    items: List[RawItem] = field(default_factory=list)
    error: Optional[str] = None
    elapsed: float = 0.0

    @property
    def name(self) -> str:
        return self.adapter.name

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DispatchResult:
    outcomes: List[AdapterOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[AdapterOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def merged(self) -> List[Tuple[SourceAdapter, RawItem]]:
        """All items paired with their adapter, in adapter order"""
        return [(o.adapter, item) for o in self.outcomes for item in o.items]


class FanOutDispatcher:
    """Invokes each adapter exactly once, concurrently"""

    def __init__(self, adapters: Sequence[SourceAdapter], timeout: float = 25.0):
        self.adapters = list(adapters)
        self.timeout = timeout

    async def dispatch(self, client: httpx.AsyncClient, query: str = "") -> DispatchResult:
        tasks = [
            asyncio.create_task(self._invoke(adapter, client, query), name=f"adapter:{adapter.name}")
            for adapter in self.adapters
        ]
        try:
            outcomes = await asyncio.gather(*tasks)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Dispatch cancelled, in-flight adapters stopped")
            raise

        result = DispatchResult(outcomes=list(outcomes))
        logger.info(
            f"Dispatch complete: {len(result.merged())} items from "
            f"{len(self.adapters) - len(result.failures)}/{len(self.adapters)} sources"
        )
        return result

    async def _invoke(self, adapter: SourceAdapter, client: httpx.AsyncClient, query: str) -> AdapterOutcome:
        # Browse-only feeds get no query; the query engine filters them locally
        adapter_query = query if adapter.query_bound else ""
        start = time.perf_counter()

        try:
            items = await asyncio.wait_for(adapter.fetch(client, adapter_query), timeout=self.timeout)
        except asyncio.TimeoutError:
            error = SourceTimeoutError(adapter.name, self.timeout)
            logger.warning(f"Source {adapter.name} failed: {error}")
            return AdapterOutcome(adapter, error=str(error), elapsed=time.perf_counter() - start)
        except asyncio.CancelledError:
            # Only a cancellation aimed at this task stops the dispatch
            task = asyncio.current_task()
            cancelling = getattr(task, "cancelling", None)
            if cancelling is None or cancelling():
                raise
            logger.error(f"Source {adapter.name} failed: cancelled itself")
            return AdapterOutcome(adapter, error="Cancelled", elapsed=time.perf_counter() - start)
        except Exception as e:
            logger.error(f"Source {adapter.name} failed: {e}")
            return AdapterOutcome(adapter, error=str(e) or type(e).__name__, elapsed=time.perf_counter() - start)

        elapsed = time.perf_counter() - start
        if not isinstance(items, list):
            logger.error(f"Source {adapter.name} returned {type(items).__name__}, expected list")
            return AdapterOutcome(adapter, error="Invalid result type", elapsed=elapsed)

        logger.info(f"Source {adapter.name}: {len(items)} items in {elapsed:.2f}s")
        return AdapterOutcome(adapter, items=items, elapsed=elapsed)
