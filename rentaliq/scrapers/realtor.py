from typing import Optional

import httpx
import structlog

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.extractors import map_property_type, parse_price, to_float, to_int

logger = structlog.get_logger()


class RealtorAdapter(SourceAdapter):
    """Realtor.com for-sale listings through the RapidAPI proxy."""

    name = "realtor"
    BASE_URL = "https://realtor.p.rapidapi.com/properties/v2/list-for-sale"
    API_HOST = "realtor.p.rapidapi.com"
    RESULT_LIMIT = 50

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key

    def _get_headers(self) -> dict:
        return {
            "X-RapidAPI-Key": self.api_key,
            "X-RapidAPI-Host": self.API_HOST,
        }

    def _build_search_params(self, criteria: SearchCriteria) -> dict:
        params = {
            "offset": 0,
            "limit": self.RESULT_LIMIT,
            "sort": "relevance",
        }
        if criteria.city:
            params["city"] = criteria.city
        if criteria.state:
            params["state_code"] = criteria.state
        if criteria.zip_code:
            params["postal_code"] = criteria.zip_code
        if criteria.min_price:
            params["price_min"] = criteria.min_price
        if criteria.max_price:
            params["price_max"] = criteria.max_price
        if criteria.min_bedrooms:
            params["beds_min"] = criteria.min_bedrooms
        return params

    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        if not self.api_key:
            logger.info("RapidAPI key not configured, skipping", source=self.name)
            return []

        async with self._client() as client:
            try:
                response = await client.get(
                    self.BASE_URL,
                    params=self._build_search_params(criteria),
                    headers=self._get_headers(),
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error("Realtor search failed", error=str(e))
                return []

        listings = data.get("properties", []) if isinstance(data, dict) else []
        return self._parse_items(listings, self._parse_listing)

    def _parse_listing(self, data: dict) -> Optional[Property]:
        """Parse a single listing from API response."""
        address = data.get("address") or {}

        building_size = data.get("building_size") or {}
        lot_size = data.get("lot_size") or {}

        images = []
        for photo in data.get("photos") or []:
            href = photo.get("href") if isinstance(photo, dict) else None
            if href:
                images.append(href)

        metadata = {}
        if data.get("list_date"):
            metadata["listDate"] = data["list_date"]

        property_id = data.get("property_id")
        price = parse_price(data.get("price"))

        return Property(
            address=str(address.get("line") or ""),
            city=str(address.get("city") or ""),
            state=str(address.get("state_code") or ""),
            zip_code=str(address.get("postal_code") or ""),
            source=self.name,
            property_type=map_property_type(data.get("prop_type")),
            bedrooms=to_int(data.get("beds")) or 0,
            bathrooms=to_float(data.get("baths")) or 0,
            square_feet=to_int(building_size.get("size")),
            lot_size=to_float(lot_size.get("size")),
            year_built=to_int(data.get("year_built")),
            purchase_price=price,
            current_value=price,
            latitude=to_float(address.get("lat")),
            longitude=to_float(address.get("lon")),
            external_id=str(property_id) if property_id else None,
            source_url=data.get("rdc_web_url"),
            images=images,
            metadata=metadata,
        )
