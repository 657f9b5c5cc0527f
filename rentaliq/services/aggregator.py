import asyncio
import random
from typing import Optional

import structlog

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.services.demo_data import generate_demo_properties

logger = structlog.get_logger()


def deduplicate_properties(properties: list[Property]) -> list[Property]:
    """Merge records sharing an identity key.

    The first record seen for a key is kept unless a later one carries strictly
    more images, in which case the later one replaces it in place.
    """
    by_key: dict[str, Property] = {}
    for prop in properties:
        key = prop.identity_key
        existing = by_key.get(key)
        if existing is None or len(prop.images) > len(existing.images):
            by_key[key] = prop
    return list(by_key.values())


class PropertyAggregator:
    """Fans a search out to every source and merges the results."""

    def __init__(
        self,
        adapters: list[SourceAdapter],
        demo_count: int = 10,
        rng: Optional[random.Random] = None,
    ):
        self.adapters = adapters
        self.demo_count = demo_count
        self.rng = rng

    @property
    def free_adapters(self) -> list[SourceAdapter]:
        return [adapter for adapter in self.adapters if adapter.is_free]

    async def search_all(self, criteria: SearchCriteria) -> list[Property]:
        """Search every source; fall back to placeholder data when nothing is found."""
        criteria.validate()
        logger.info("Searching all sources", location=criteria.location_label, sources=len(self.adapters))

        properties = await self._gather(self.adapters, criteria)
        if properties:
            return properties

        logger.warning(
            "No properties from any source, using demo data",
            location=criteria.location_label,
            count=self.demo_count,
        )
        return generate_demo_properties(
            criteria.city,
            criteria.state,
            count=self.demo_count,
            zip_code=criteria.zip_code,
            rng=self.rng,
        )

    async def search_free_sources(self, criteria: SearchCriteria) -> list[Property]:
        """Search only sources that need no paid credentials. Never falls back to demo data."""
        criteria.validate()
        return await self._gather(self.free_adapters, criteria)

    async def _gather(self, adapters: list[SourceAdapter], criteria: SearchCriteria) -> list[Property]:
        results = await asyncio.gather(
            *(adapter.search(criteria) for adapter in adapters),
            return_exceptions=True,
        )

        properties = []
        source_counts = {}
        for adapter, result in zip(adapters, results):
            if isinstance(result, list):
                properties.extend(result)
                source_counts[adapter.name] = len(result)
            else:
                logger.error("Source raised during search", source=adapter.name, error=str(result))
                source_counts[adapter.name] = 0

        for prop in properties:
            prop.metadata.setdefault("isDemo", False)

        unique = deduplicate_properties(properties)
        logger.info(
            "Property search completed",
            total=len(properties),
            unique=len(unique),
            sources=source_counts,
        )
        return unique
