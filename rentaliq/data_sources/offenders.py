from dataclasses import dataclass
from typing import Optional

import structlog

from rentaliq.geo import FEET_PER_MILE, haversine_miles
from rentaliq.models.property import Location
from rentaliq.scrapers.extractors import to_float
from rentaliq.services.job_orchestrator import JobOrchestrator, RetryPolicy

logger = structlog.get_logger()

REGISTRY_SEARCH_URL = "https://www.nsopw.gov/search?addressOrZip={zip_code}"


@dataclass
class OffenderProximity:
    count: int
    within_1_mile: int
    within_half_mile: int
    nearest_distance_miles: Optional[float]
    score: float  # 0-100, higher is safer

    @property
    def nearest_distance_feet(self) -> Optional[float]:
        if self.nearest_distance_miles is None:
            return None
        return self.nearest_distance_miles * FEET_PER_MILE


def offender_score(within_1_mile: int) -> float:
    return max(0, 100 - within_1_mile * 10)


class OffenderRegistryClient:
    """Registered-offender proximity from a live scrape of the national registry."""

    def __init__(
        self,
        orchestrator: JobOrchestrator,
        dataset_id: str,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.orchestrator = orchestrator
        self.dataset_id = dataset_id
        self.retry_policy = retry_policy or RetryPolicy(attempts=5, delay=2.0)

    async def get_offender_proximity(self, location: Location) -> Optional[OffenderProximity]:
        """Offender counts around the location, or None when the registry could not be read."""
        if not self.orchestrator.api_token or not self.dataset_id or not location.zip_code:
            logger.info("Offender registry lookup not configured", zip_code=location.zip_code)
            return None
        if not location.has_coordinates:
            logger.info("Offender proximity needs coordinates", zip_code=location.zip_code)
            return None

        records = await self.orchestrator.run(
            JobOrchestrator.TRIGGER_URL,
            [{"url": REGISTRY_SEARCH_URL.format(zip_code=location.zip_code)}],
            params={"dataset_id": self.dataset_id, "include_errors": "true"},
            retry_policy=self.retry_policy,
        )
        if not records:
            return None

        return self.summarize(location, records)

    @staticmethod
    def summarize(location: Location, records: list[dict]) -> Optional[OffenderProximity]:
        """Distance buckets around the location. None when no record could be located."""
        distances = []
        for record in records:
            if not isinstance(record, dict):
                continue
            lat = to_float(record.get("latitude"))
            lon = to_float(record.get("longitude"))
            if lat is None or lon is None:
                continue
            distances.append(haversine_miles(location.latitude, location.longitude, lat, lon))

        if not distances:
            logger.warning(
                "No offender records carried coordinates",
                zip_code=location.zip_code,
                records=len(records),
            )
            return None

        within_1_mile = sum(1 for d in distances if d <= 1)
        return OffenderProximity(
            count=len(records),
            within_1_mile=within_1_mile,
            within_half_mile=sum(1 for d in distances if d <= 0.5),
            nearest_distance_miles=min(distances),
            score=offender_score(within_1_mile),
        )
