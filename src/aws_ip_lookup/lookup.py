"""Address lookup against the cached AWS ranges dataset."""

import logging
from typing import Optional

from .cache import CacheOrigin, DatasetCache
from .client_ranges import RangesClient
from .matcher import match
from .models import LookupResponse, RangeLookupError
from .parser import DatasetParser
from .ranges import Dataset
from .utils.ip_utils import parse_address

logger = logging.getLogger(__name__)

LOCAL_CACHE_STATUS = "LOCAL"


class LookupService:
    """Validates a requested address, ensures the dataset is loaded and matches it."""

    def __init__(self, cache: DatasetCache, client: RangesClient, parser: DatasetParser):
        self.cache = cache
        self.client = client
        self.parser = parser

    async def load_dataset(self) -> Dataset:
        """Fetch and parse a fresh dataset; used as the cache loader."""
        fetched = await self.client.fetch()
        return self.parser.parse(fetched.raw, fetched.freshness_tag)

    async def lookup(self, ip_text: Optional[str]) -> LookupResponse:
        """Look up *ip_text*.

        Raises ParameterError for a missing, empty or invalid address before
        the cache is consulted, and FetchError or ParseError when the dataset
        cannot be populated.
        """
        address = parse_address(ip_text)

        try:
            dataset, origin = await self.cache.get_or_populate(self.load_dataset)
        except RangeLookupError as e:
            logger.error(f"Unable to fetch AWS ranges: {e}")
            raise

        cache_status = LOCAL_CACHE_STATUS if origin is CacheOrigin.HIT else dataset.freshness_tag
        matches = match(dataset, address)
        logger.debug("Lookup %s: %d matches (cache_status=%s)", ip_text, len(matches), cache_status)

        return LookupResponse(
            requested_ip=ip_text,
            cache_status=cache_status,
            matches=matches,
        )

    async def close(self):
        await self.client.close()
