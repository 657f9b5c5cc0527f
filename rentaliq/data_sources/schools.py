from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from rentaliq.models.property import Location
from rentaliq.scrapers.extractors import to_float

logger = structlog.get_logger()


@dataclass
class SchoolRatings:
    average_rating: float  # 0-10
    school_count: int


class SchoolRatingsClient:
    """Client for the GreatSchools nearby-schools API."""

    BASE_URL = "https://api.greatschools.org/schools/nearby"
    SEARCH_RADIUS_MILES = 5
    RESULT_LIMIT = 10

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def get_school_ratings(self, location: Location) -> Optional[SchoolRatings]:
        if not self.api_key:
            logger.info("GreatSchools API key not configured")
            return None
        if not location.has_coordinates:
            return None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    self.BASE_URL,
                    params={
                        "lat": location.latitude,
                        "lon": location.longitude,
                        "radius": self.SEARCH_RADIUS_MILES,
                        "limit": self.RESULT_LIMIT,
                    },
                    headers={"X-API-Key": self.api_key},
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error("School ratings request failed", error=str(e))
                return None

        schools = data.get("schools") if isinstance(data, dict) else None
        if not isinstance(schools, list):
            return None

        ratings = []
        for school in schools:
            rating = to_float(school.get("rating")) if isinstance(school, dict) else None
            if rating is not None:
                ratings.append(rating)

        if not ratings:
            return None

        return SchoolRatings(
            average_rating=round(sum(ratings) / len(ratings), 1),
            school_count=len(schools),
        )
