from dataclasses import dataclass
from typing import Optional

import httpx
import structlog

from rentaliq.models.property import Location

logger = structlog.get_logger()

# National average is roughly 40 crimes per 1,000 residents
NATIONAL_CRIMES_PER_1000 = 40
POPULATION_ESTIMATE = 100_000
VIOLENT_SHARE = 0.3
PROPERTY_SHARE = 0.7


@dataclass
class CrimeStatistics:
    score: float  # 0-100, higher is safer
    total_incidents: int
    violent_crimes: int
    property_crimes: int
    crimes_per_1000: float

    @property
    def violent_crimes_per_1000(self) -> float:
        return self.violent_crimes / POPULATION_ESTIMATE * 1000

    @property
    def property_crimes_per_1000(self) -> float:
        return self.property_crimes / POPULATION_ESTIMATE * 1000


def crime_score(crimes_per_1000: float) -> float:
    """Safety score: 100 at zero crime, 0 at or above the national average."""
    return max(0.0, min(100.0, 100 - (crimes_per_1000 / NATIONAL_CRIMES_PER_1000) * 100))


class CrimeStatsClient:
    """Client for the FBI Crime Data Explorer arrest statistics."""

    BASE_URL = "https://api.usa.gov/crime/fbi/cde/arrest/state/{state}/all"

    def __init__(
        self,
        api_key: str = "DEMO_KEY",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    async def get_crime_statistics(self, location: Location) -> Optional[CrimeStatistics]:
        """Crime statistics for the location's state, or None when unavailable."""
        if not location.state:
            return None

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(
                    self.BASE_URL.format(state=location.state.upper()),
                    params={"API_KEY": self.api_key},
                    headers={"User-Agent": "RentalIQ/1.0"},
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Crime data request failed", state=location.state, error=str(e))
                return None

        try:
            total_incidents = int(data["data"][0]["value"])
        except (KeyError, IndexError, TypeError, ValueError):
            logger.warning("Crime data response missing totals", state=location.state)
            return None

        crimes_per_1000 = total_incidents / POPULATION_ESTIMATE * 1000
        return CrimeStatistics(
            score=round(crime_score(crimes_per_1000)),
            total_incidents=total_incidents,
            violent_crimes=round(total_incidents * VIOLENT_SHARE),
            property_crimes=round(total_incidents * PROPERTY_SHARE),
            crimes_per_1000=round(crimes_per_1000, 2),
        )
