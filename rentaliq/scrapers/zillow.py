from typing import Optional

import httpx
import structlog

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.extractors import (
    map_property_type,
    parse_address,
    parse_price,
    to_float,
    to_int,
)

logger = structlog.get_logger()


class ZillowAdapter(SourceAdapter):
    """Zillow listing search through the RapidAPI proxy."""

    name = "zillow"
    BASE_URL = "https://zillow-com1.p.rapidapi.com/propertyExtendedSearch"
    API_HOST = "zillow-com1.p.rapidapi.com"
    PAGE_SIZE = 40
    MAX_PAGES = 3
    MAX_COMPARABLES = 20

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _get_headers(self) -> dict:
        return {
            "X-RapidAPI-Key": self.api_key,
            "X-RapidAPI-Host": self.API_HOST,
        }

    def _build_search_params(self, criteria: SearchCriteria, page: int) -> dict:
        params = {
            "location": criteria.location_label,
            "status_type": "ForSale",
            "page": page,
        }
        if criteria.min_price:
            params["price_min"] = criteria.min_price
        if criteria.max_price:
            params["price_max"] = criteria.max_price
        if criteria.min_bedrooms:
            params["beds_min"] = criteria.min_bedrooms
        if criteria.max_bedrooms:
            params["beds_max"] = criteria.max_bedrooms
        return params

    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        if not self.api_key:
            logger.info("RapidAPI key not configured, skipping", source=self.name)
            return []

        properties = []
        async with self._client() as client:
            for page in range(1, self.MAX_PAGES + 1):
                try:
                    response = await client.get(
                        self.BASE_URL,
                        params=self._build_search_params(criteria, page),
                        headers=self._get_headers(),
                    )
                    response.raise_for_status()
                    listings = self._listings(response.json())
                except (httpx.HTTPError, ValueError) as e:
                    logger.error("Zillow search failed", error=str(e), page=page)
                    break

                properties.extend(self._parse_items(listings, self._parse_listing, page=page))

                if len(listings) < self.PAGE_SIZE:
                    break

        return properties

    @staticmethod
    def _listings(data) -> list:
        if isinstance(data, list):
            return data
        if isinstance(data, dict):
            props = data.get("props")
            if isinstance(props, list):
                return props
        return []

    def _parse_listing(self, data: dict, fallback: Optional[Property] = None) -> Optional[Property]:
        """Parse a single listing from the search response."""
        street, city, state, zip_code = self._split_address(data.get("address"))
        street = street or data.get("streetAddress") or ""
        city = city or data.get("city") or (fallback.city if fallback else "")
        state = state or data.get("state") or (fallback.state if fallback else "")
        zip_code = zip_code or data.get("zipcode") or (fallback.zip_code if fallback else "")

        zpid = data.get("zpid")
        detail_url = data.get("detailUrl")
        if detail_url and detail_url.startswith("/"):
            detail_url = f"https://www.zillow.com{detail_url}"

        metadata = {}
        days_on_market = to_int(data.get("daysOnZillow"))
        if days_on_market is not None:
            metadata["daysOnMarket"] = days_on_market
        if data.get("listingStatus"):
            metadata["listingStatus"] = data["listingStatus"]

        price = parse_price(data.get("price"))
        img = data.get("imgSrc")

        return Property(
            address=str(street),
            city=str(city),
            state=str(state),
            zip_code=str(zip_code),
            source=self.name,
            property_type=map_property_type(data.get("propertyType") or data.get("homeType")),
            bedrooms=to_int(data.get("bedrooms")) or 0,
            bathrooms=to_float(data.get("bathrooms")) or 0,
            square_feet=to_int(data.get("livingArea")),
            lot_size=to_float(data.get("lotAreaValue")),
            year_built=to_int(data.get("yearBuilt")),
            purchase_price=price,
            current_value=parse_price(data.get("zestimate")) or price,
            estimated_rent=parse_price(data.get("rentZestimate")),
            latitude=to_float(data.get("latitude")),
            longitude=to_float(data.get("longitude")),
            external_id=str(zpid) if zpid else None,
            source_url=detail_url,
            images=[img] if img else [],
            metadata=metadata,
        )

    @staticmethod
    def _split_address(address) -> tuple[str, str, str, str]:
        """Address arrives as "street, city, ST zip" or as an object."""
        if isinstance(address, dict):
            return (
                address.get("streetAddress") or "",
                address.get("city") or "",
                address.get("state") or "",
                address.get("zipcode") or "",
            )
        if not isinstance(address, str) or not address.strip():
            return "", "", "", ""

        parsed = parse_address(address)
        if parsed:
            return parsed.street, parsed.city, parsed.state, parsed.zip_code

        parts = [part.strip() for part in address.split(",")]
        street = parts[0]
        city = parts[1] if len(parts) > 1 else ""
        state_zip = parts[2].split() if len(parts) > 2 else []
        state = state_zip[0] if state_zip else ""
        zip_code = state_zip[1] if len(state_zip) > 1 else ""
        return street, city, state, zip_code

    async def _fetch_by_status(self, subject: Property, status_type: str, extra: dict) -> list[dict]:
        if not self.api_key:
            logger.info("RapidAPI key not configured, skipping", source=self.name)
            return []

        params = {
            "location": f"{subject.city}, {subject.state} {subject.zip_code}".strip(", "),
            "status_type": status_type,
            "page": 1,
            **extra,
        }
        try:
            async with self._client() as client:
                response = await client.get(self.BASE_URL, params=params, headers=self._get_headers())
                response.raise_for_status()
                return self._listings(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Zillow lookup failed", status_type=status_type, error=str(e))
            return []

    async def recently_sold(self, subject: Property) -> list[Property]:
        """Recently sold homes near the subject, for use as comparables."""
        listings = await self._fetch_by_status(
            subject,
            "RecentlySold",
            {"home_type": subject.property_type.value},
        )

        comparables = []
        for data in listings[: self.MAX_COMPARABLES]:
            # Skip if missing critical data
            if not isinstance(data, dict):
                continue
            if not data.get("price") or not data.get("bedrooms") or not data.get("livingArea"):
                continue
            comparables.extend(
                self._parse_items([data], lambda item: self._parse_listing(item, fallback=subject))
            )
        return comparables

    async def for_rent(self, subject: Property) -> list[Property]:
        """Rental listings with the subject's bedroom count; price is the monthly rent."""
        extra = {}
        if subject.bedrooms:
            extra = {"bedsMin": subject.bedrooms, "bedsMax": subject.bedrooms}
        listings = await self._fetch_by_status(subject, "ForRent", extra)

        rentals = self._parse_items(
            [item for item in listings if isinstance(item, dict) and parse_price(item.get("price"))],
            lambda item: self._parse_listing(item, fallback=subject),
        )
        for rental in rentals:
            rental.estimated_rent = rental.purchase_price
            rental.purchase_price = None
            rental.current_value = None
        return rentals
