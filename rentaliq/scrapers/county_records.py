import asyncio
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog
from bs4 import BeautifulSoup

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.extractors import (
    extract_zip,
    infer_property_type,
    parse_price,
    to_float,
    to_int,
)

logger = structlog.get_logger()


@dataclass(frozen=True)
class CountyConfig:
    name: str
    state: str
    search_url: str
    card_selector: str
    address_selector: str
    owner_selector: str
    value_selector: str
    year_built_selector: str
    sqft_selector: str
    api_url: Optional[str] = None


# Assessor search pages and their result markup
COUNTY_CONFIGS = {
    "travis-tx": CountyConfig(
        name="Travis",
        state="TX",
        search_url="https://www.traviscad.org/property-search/",
        card_selector=".property-result",
        address_selector=".property-address",
        owner_selector=".owner-name",
        value_selector=".market-value",
        year_built_selector=".year-built",
        sqft_selector=".square-feet",
        api_url="https://data.texas.gov/resource/property-data.json",
    ),
    "maricopa-az": CountyConfig(
        name="Maricopa",
        state="AZ",
        search_url="https://mcassessor.maricopa.gov/",
        card_selector=".parcel-info",
        address_selector=".address",
        owner_selector=".owner",
        value_selector=".assessed-value",
        year_built_selector=".year",
        sqft_selector=".sqft",
        api_url="https://mcassessor.maricopa.gov/api/property",
    ),
}

CITY_TO_COUNTY = {
    "austin": "travis-tx",
    "phoenix": "maricopa-az",
    "scottsdale": "maricopa-az",
    "mesa": "maricopa-az",
}


def find_county_key(city: str, state: str = "") -> Optional[str]:
    """County config key for a city, or None when the county is not configured."""
    key = CITY_TO_COUNTY.get((city or "").strip().lower())
    if key and state and COUNTY_CONFIGS[key].state != state.strip().upper():
        return None
    return key


class CountyRecordsAdapter(SourceAdapter):
    """Public county assessor records (off-market properties)."""

    name = "county-records"
    is_free = True
    HTML_RESULT_LIMIT = 50
    API_RESULT_LIMIT = 100

    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        county_key = find_county_key(criteria.city, criteria.state)
        if not county_key:
            logger.info("County not configured", city=criteria.city, state=criteria.state)
            return []

        config = COUNTY_CONFIGS[county_key]
        async with self._client() as client:
            results = await asyncio.gather(
                self._scrape_search_page(client, config, criteria.city),
                self._query_open_data(client, config, criteria.city),
                return_exceptions=True,
            )

        properties = []
        for result in results:
            if isinstance(result, list):
                properties.extend(result)
            elif isinstance(result, Exception):
                logger.warning("County lookup path failed", county=config.name, error=str(result))
        return properties

    async def _scrape_search_page(
        self,
        client: httpx.AsyncClient,
        config: CountyConfig,
        city: str,
    ) -> list[Property]:
        try:
            response = await client.get(
                config.search_url,
                params={"city": city, "limit": self.HTML_RESULT_LIMIT},
                headers=self._get_headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("County search page failed", county=config.name, error=str(e))
            return []

        soup = BeautifulSoup(response.text, "html.parser")
        cards = soup.select(config.card_selector)
        return self._parse_items(
            cards,
            lambda card: self._parse_card(card, config, city),
            county=config.name,
        )

    def _parse_card(self, card, config: CountyConfig, city: str) -> Optional[Property]:
        """Parse one result card from an assessor search page."""

        def text(selector: str) -> str:
            el = card.select_one(selector)
            return el.get_text(" ", strip=True) if el else ""

        address = text(config.address_selector)
        if not address:
            return None

        value = parse_price(text(config.value_selector))
        owner = text(config.owner_selector)

        return Property(
            address=address,
            city=city,
            state=config.state,
            zip_code=extract_zip(address) or "",
            source=self.name,
            property_type=infer_property_type(card.get_text(" ", strip=True)),
            year_built=to_int(text(config.year_built_selector)),
            square_feet=to_int(text(config.sqft_selector).replace("sq ft", "").strip()),
            purchase_price=value,
            current_value=value,
            source_url=config.search_url,
            metadata={
                "owner": owner or None,
                "county": config.name,
                "dataSource": "county-html",
                "isOffMarket": True,
            },
        )

    async def _query_open_data(
        self,
        client: httpx.AsyncClient,
        config: CountyConfig,
        city: str,
    ) -> list[Property]:
        if not config.api_url:
            return []

        try:
            response = await client.get(
                config.api_url,
                params={"city": city, "$limit": self.API_RESULT_LIMIT},
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            records = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("County open-data API failed", county=config.name, error=str(e))
            return []

        if not isinstance(records, list):
            return []
        return self._parse_items(
            records,
            lambda record: self._parse_api_record(record, config, city),
            county=config.name,
        )

    def _parse_api_record(self, record: dict, config: CountyConfig, city: str) -> Optional[Property]:
        address = record.get("address") or record.get("property_address")
        if not address:
            return None

        value = parse_price(record.get("market_value") or record.get("assessed_value"))
        parcel_id = record.get("parcel_id")

        return Property(
            address=str(address),
            city=str(record.get("city") or city),
            state=config.state,
            zip_code=str(record.get("zip") or record.get("zipcode") or ""),
            source=self.name,
            bedrooms=to_int(record.get("bedrooms")) or 0,
            bathrooms=to_float(record.get("bathrooms")) or 0,
            square_feet=to_int(record.get("square_feet") or record.get("living_area")),
            year_built=to_int(record.get("year_built")),
            purchase_price=value,
            current_value=value,
            external_id=str(parcel_id) if parcel_id else None,
            source_url=record.get("url"),
            metadata={
                "owner": record.get("owner_name"),
                "parcelId": parcel_id,
                "county": config.name,
                "dataSource": "county-api",
                "isOffMarket": True,
            },
        )

    @staticmethod
    def supported_counties() -> list[str]:
        return [f"{config.name} County, {config.state}" for config in COUNTY_CONFIGS.values()]
