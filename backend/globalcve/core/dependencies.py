"""
FastAPI dependencies for the aggregation pipeline
"""
import asyncio
import logging
from typing import Awaitable, TypeVar

from fastapi import Depends, Request

from globalcve.core.config import settings
from globalcve.core.exceptions import ClientDisconnected
from globalcve.services.cve_service import CVEService
from globalcve.services.kev_index import KEVFeed
from globalcve.services.providers.registry import build_latest_adapters, build_search_adapters

logger = logging.getLogger(__name__)

T = TypeVar("T")

DISCONNECT_POLL_SECONDS = 0.5


def get_kev_feed() -> KEVFeed:
    """Fresh KEV feed per request; nothing is shared across requests"""
    return KEVFeed()


def get_search_service(kev_feed: KEVFeed = Depends(get_kev_feed)) -> CVEService:
    return CVEService(build_search_adapters(settings, kev_feed), kev_feed, settings)


def get_latest_service(kev_feed: KEVFeed = Depends(get_kev_feed)) -> CVEService:
    return CVEService(build_latest_adapters(settings, kev_feed), kev_feed, settings)


async def run_until_disconnect(request: Request, work: Awaitable[T],
                               poll_interval: float = DISCONNECT_POLL_SECONDS) -> T:
    """
    Await `work` while watching the client connection.

    If the client goes away first, the work is cancelled (which cancels every
    adapter task it started) and ClientDisconnected is raised.
    """
    pipeline = asyncio.ensure_future(work)

    async def watch() -> None:
        while not await request.is_disconnected():
            await asyncio.sleep(poll_interval)

    watcher = asyncio.ensure_future(watch())
    try:
        await asyncio.wait({pipeline, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        pipeline.cancel()
        watcher.cancel()
        raise

    if pipeline.done():
        watcher.cancel()
        return pipeline.result()

    logger.info(f"Client disconnected from {request.url.path}, cancelling pipeline")
    pipeline.cancel()
    try:
        await pipeline
    except asyncio.CancelledError:
        pass
    raise ClientDisconnected(request.url.path)
