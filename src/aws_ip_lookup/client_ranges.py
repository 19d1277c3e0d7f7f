"""HTTP client for the published AWS ranges document."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log,
)

from .settings import Settings
from .models import FetchError
from .version import get_local_version

logger = logging.getLogger(__name__)

UNKNOWN_FRESHNESS = "UNKNOWN"


@dataclass(frozen=True)
class FetchedRanges:
    """Raw ranges document plus the freshness tag reported alongside it."""

    raw: Dict[str, Any]
    freshness_tag: str


class RangesClient:
    """Fetches ip-ranges.json with transport-level retries."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self.url = settings.ranges_url
        self.timeout = settings.request_timeout
        self.max_retries = settings.max_retries
        self.freshness_header = settings.freshness_header
        self.retry_wait = wait_exponential(multiplier=1, min=1, max=4)

        self.client = httpx.AsyncClient(
            headers={
                "Accept": "application/json",
                "User-Agent": f"aws-ip-lookup/{get_local_version()}",
            },
            timeout=self.timeout,
            transport=transport,
        )

        logger.debug("RangesClient initialized (url=%s, timeout=%s)", self.url, self.timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.client.aclose()

    def _handle_response(self, response: httpx.Response) -> FetchedRanges:
        """Convert an HTTP response into FetchedRanges or raise FetchError."""
        if response.status_code != 200:
            raise FetchError(
                error="Unexpected status from ranges endpoint",
                details=f"{self.url} returned {response.status_code}",
                status_code=response.status_code,
                retryable=response.status_code >= 500 or response.status_code == 429,
            )

        try:
            body = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise FetchError(
                error="Invalid JSON response",
                details=str(e),
                status_code=response.status_code,
            ) from e

        if not isinstance(body, dict):
            raise FetchError(
                error="Invalid JSON response",
                details=f"expected an object, got {type(body).__name__}",
                status_code=response.status_code,
            )

        freshness_tag = response.headers.get(self.freshness_header) or UNKNOWN_FRESHNESS
        return FetchedRanges(raw=body, freshness_tag=freshness_tag)

    async def _request(self) -> httpx.Response:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception_type((httpx.TimeoutException, httpx.ConnectError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                logger.debug("Ranges request GET %s (attempt %d)", self.url, attempt.retry_state.attempt_number)
                return await self.client.get(self.url)

    async def fetch(self) -> FetchedRanges:
        """Download the ranges document."""
        try:
            response = await self._request()
        except (httpx.TimeoutException, httpx.ConnectError) as e:
            raise FetchError(
                error="Ranges endpoint unreachable",
                details=str(e),
                retryable=True,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Unexpected error fetching ranges: {e}")
            raise FetchError(error="Request failed", details=str(e)) from e

        result = self._handle_response(response)
        logger.info(
            "Fetched ranges document (status=%d, freshness=%s)",
            response.status_code, result.freshness_tag,
        )
        return result

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
