"""In-process cache slot for the parsed ranges dataset."""

import asyncio
import concurrent.futures
import enum
import logging
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from .ranges import Dataset

logger = logging.getLogger(__name__)

DatasetLoader = Callable[[], Awaitable[Dataset]]


class CacheOrigin(str, enum.Enum):
    """Whether get_or_populate was served from the slot or had to populate it."""

    HIT = "hit"
    MISS = "miss"


class DatasetCache:
    """Holds at most one Dataset for the lifetime of the process.

    The loader runs with no lock held; the slot lock only covers reading or
    swapping the reference. With ``single_flight`` enabled, concurrent misses
    share one population task, including misses from event loops running in
    other threads. Without it every miss runs its own loader and
    the last one to finish owns the slot.
    """

    def __init__(self, single_flight: bool = True):
        self.single_flight = single_flight
        self._lock = Lock()
        self._dataset: Optional[Dataset] = None
        self._pending: Optional["concurrent.futures.Future[Dataset]"] = None
        self._populate_count = 0

    def peek(self) -> Optional[Dataset]:
        """Return the cached dataset without populating."""
        with self._lock:
            return self._dataset

    def clear(self) -> None:
        """Empty the slot; the next get_or_populate call will repopulate."""
        with self._lock:
            self._dataset = None
        logger.info("Dataset cache cleared")

    def _store(self, dataset: Dataset) -> None:
        with self._lock:
            self._dataset = dataset
            self._populate_count += 1

    async def get_or_populate(self, loader: DatasetLoader) -> Tuple[Dataset, CacheOrigin]:
        """Return the cached dataset, populating it with *loader* on a miss."""
        dataset = self.peek()
        if dataset is not None:
            logger.debug("Dataset cache hit")
            return dataset, CacheOrigin.HIT

        if not self.single_flight:
            logger.info("Dataset cache miss, populating")
            dataset = await loader()
            self._store(dataset)
            return dataset, CacheOrigin.MISS

        with self._lock:
            if self._dataset is not None:
                return self._dataset, CacheOrigin.HIT
            marker = self._pending
            if marker is None:
                logger.info("Dataset cache miss, populating")
                marker = concurrent.futures.Future()
                self._pending = marker
                task = asyncio.ensure_future(self._populate(loader, marker))
                task.add_done_callback(self._population_done)
            else:
                logger.debug("Dataset cache miss, awaiting in-flight population")

        # Loop-independent marker, so misses from other threads can wait on it too.
        # Shielded so a cancelled caller does not abort the population for others
        dataset = await asyncio.shield(asyncio.wrap_future(marker))
        return dataset, CacheOrigin.MISS

    def _release(self, marker: "concurrent.futures.Future[Dataset]") -> None:
        with self._lock:
            if self._pending is marker:
                self._pending = None

    async def _populate(self, loader: DatasetLoader, marker: "concurrent.futures.Future[Dataset]") -> Dataset:
        try:
            dataset = await loader()
            self._store(dataset)
        except asyncio.CancelledError:
            self._release(marker)
            marker.cancel()
            raise
        except BaseException as e:
            self._release(marker)
            marker.set_exception(e)
            raise
        self._release(marker)
        marker.set_result(dataset)
        logger.info(
            "Dataset cache populated (ipv4=%d, ipv6=%d, freshness=%s)",
            len(dataset.v4_entries), len(dataset.v6_entries), dataset.freshness_tag,
        )
        return dataset

    @staticmethod
    def _population_done(future: "asyncio.Future[Dataset]") -> None:
        # Retrieve the exception so an abandoned population does not warn
        if not future.cancelled() and future.exception() is not None:
            logger.debug("Dataset population failed: %s", future.exception())

    async def get_cache_info(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            dataset = self._dataset
            populating = self._pending is not None
            populate_count = self._populate_count

        info: Dict[str, Any] = {
            "populated": dataset is not None,
            "populating": populating,
            "populate_count": populate_count,
            "single_flight": self.single_flight,
        }
        if dataset is not None:
            info.update({
                "ipv4_entries": len(dataset.v4_entries),
                "ipv6_entries": len(dataset.v6_entries),
                "freshness_tag": dataset.freshness_tag,
                "sync_token": dataset.sync_token,
                "create_date": dataset.create_date,
                "loaded_at": dataset.loaded_at.isoformat(),
            })
        return info
