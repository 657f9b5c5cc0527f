import asyncio
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import structlog

from rentaliq.models.property import Property, SearchCriteria

logger = structlog.get_logger()


class SourceAdapter(ABC):
    """One external property source, normalized into Property records.

    `search` never raises: any failure inside `_search` is logged and
    reported as an empty result so one broken source cannot block the others.
    """

    name: str = "unknown"
    is_free: bool = False
    RATE_LIMIT_SECONDS = 0.0

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rate_limit_seconds: Optional[float] = None,
    ):
        self.timeout = timeout
        self.transport = transport
        self.rate_limit_seconds = (
            self.RATE_LIMIT_SECONDS if rate_limit_seconds is None else rate_limit_seconds
        )
        self._last_request_time: Optional[float] = None

    async def search(self, criteria: SearchCriteria) -> list[Property]:
        try:
            properties = await self._search(criteria)
        except Exception as e:
            logger.error(
                "Source search failed",
                source=self.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return []

        logger.info("Source search complete", source=self.name, count=len(properties))
        return properties

    @abstractmethod
    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        ...

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
        )

    async def _rate_limit(self):
        """Enforce rate limiting between requests."""
        if self._last_request_time and self.rate_limit_seconds:
            elapsed = asyncio.get_event_loop().time() - self._last_request_time
            if elapsed < self.rate_limit_seconds:
                await asyncio.sleep(self.rate_limit_seconds - elapsed)
        self._last_request_time = asyncio.get_event_loop().time()

    def _get_headers(self) -> dict:
        """Get request headers to mimic browser."""
        return {
            "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
            "Accept": "text/html,application/json",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def _parse_items(self, items: list, parse, **context) -> list[Property]:
        """Parse raw items one by one, skipping any that fail."""
        properties = []
        for item in items:
            try:
                prop = parse(item)
                if prop:
                    properties.append(prop)
            except Exception as e:
                logger.warning(
                    "Failed to parse listing",
                    source=self.name,
                    error=str(e),
                    **context,
                )
        return properties
