from typing import Optional

import structlog

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.extractors import map_property_type, parse_price, to_float, to_int
from rentaliq.services.job_orchestrator import JobOrchestrator, RetryPolicy

logger = structlog.get_logger()

# Vendor fields kept in metadata rather than on the record
METADATA_FIELDS = {
    "days_on_market": "daysOnMarket",
    "price_per_sqft": "pricePerSqft",
    "hoa_fee": "hoaFee",
    "tax_amount": "taxAmount",
}


class BrightDataAdapter(SourceAdapter):
    """Bulk real-estate dataset queried through one Bright Data job cycle."""

    name = "bright-data"
    RESULT_LIMIT = 1000

    def __init__(
        self,
        orchestrator: JobOrchestrator,
        dataset_id: str,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.orchestrator = orchestrator
        self.dataset_id = dataset_id
        self.retry_policy = retry_policy

    def _build_payload(self, criteria: SearchCriteria) -> dict:
        filters = {}
        if criteria.city:
            filters["city"] = criteria.city
        if criteria.state:
            filters["state"] = criteria.state
        if criteria.zip_code:
            filters["zip_code"] = criteria.zip_code
        if criteria.min_price:
            filters["price_min"] = criteria.min_price
        if criteria.max_price:
            filters["price_max"] = criteria.max_price
        if criteria.min_bedrooms:
            filters["bedrooms_min"] = criteria.min_bedrooms

        return {
            "dataset_id": self.dataset_id,
            "filters": filters,
            "format": "json",
            "limit": self.RESULT_LIMIT,
        }

    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        if not self.orchestrator.api_token:
            logger.info("Bright Data token not configured, skipping", source=self.name)
            return []

        records = await self.orchestrator.run(
            JobOrchestrator.TRIGGER_URL,
            self._build_payload(criteria),
            retry_policy=self.retry_policy,
        )
        return self._parse_items(records, self._parse_record)

    def _parse_record(self, data: dict) -> Optional[Property]:
        """Parse a single dataset record."""
        external_id = data.get("zpid") or data.get("property_id")

        metadata = {}
        for vendor_key, meta_key in METADATA_FIELDS.items():
            if data.get(vendor_key) is not None:
                metadata[meta_key] = data[vendor_key]
        metadata["dataSource"] = "bright-data"

        images = data.get("images") or []
        if not isinstance(images, list):
            images = []

        return Property(
            address=str(data.get("address") or ""),
            city=str(data.get("city") or ""),
            state=str(data.get("state") or ""),
            zip_code=str(data.get("zip_code") or data.get("zipcode") or ""),
            source=self.name,
            property_type=map_property_type(data.get("property_type")),
            bedrooms=to_int(data.get("bedrooms")) or 0,
            bathrooms=to_float(data.get("bathrooms")) or 0,
            square_feet=to_int(data.get("square_feet")),
            lot_size=to_float(data.get("lot_size")),
            year_built=to_int(data.get("year_built")),
            purchase_price=parse_price(data.get("price")),
            current_value=parse_price(data.get("price")),
            latitude=to_float(data.get("latitude")),
            longitude=to_float(data.get("longitude")),
            external_id=str(external_id) if external_id else None,
            source_url=data.get("listing_url") or data.get("url"),
            images=[str(img) for img in images if img],
            metadata=metadata,
        )
