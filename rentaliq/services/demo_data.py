"""Placeholder properties shown when no real source returns data.

Every record is flagged with ``metadata["isDemo"] = True`` and a ``demo-`` source
prefix so callers can filter or badge it.
"""
import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from rentaliq.models.property import Property, PropertyType

DEMO_ADDRESSES = [
    "1234 Oak Street",
    "5678 Maple Avenue",
    "9012 Pine Drive",
    "3456 Elm Boulevard",
    "7890 Cedar Lane",
    "2345 Birch Court",
    "6789 Willow Way",
    "123 Magnolia Drive",
    "456 Cypress Street",
    "789 Poplar Avenue",
]

DEMO_TYPES = [
    PropertyType.SINGLE_FAMILY,
    PropertyType.MULTI_FAMILY,
    PropertyType.CONDO,
    PropertyType.TOWNHOUSE,
]

DEMO_SOURCES = ["demo-county", "demo-craigslist", "demo-auction", "demo-listing"]

AUCTION_TYPES = ["Tax Sale", "Foreclosure", "Sheriff Sale", "Trustee Sale"]

DEMO_IMAGES = [
    "https://images.unsplash.com/photo-1568605114967-8130f3a36994?w=800&h=600&fit=crop&q=80",
    "https://images.unsplash.com/photo-1570129477492-45c003edd2be?w=800&h=600&fit=crop&q=80",
]

# Center of generated coordinates (Austin, TX)
BASE_LATITUDE = 30.2672
BASE_LONGITUDE = -97.7431


def generate_demo_properties(
    city: str,
    state: str,
    count: int = 10,
    zip_code: str = "",
    rng: Optional[random.Random] = None,
) -> list[Property]:
    """Generate `count` plausible, clearly flagged placeholder properties."""
    rng = rng or random.Random()
    now = datetime.now(timezone.utc)
    properties = []

    for i in range(count):
        address = DEMO_ADDRESSES[i % len(DEMO_ADDRESSES)]
        if i >= len(DEMO_ADDRESSES):
            address = f"{address} Unit {i // len(DEMO_ADDRESSES) + 1}"

        base_price = 200000 + rng.random() * 400000
        sqft = int(1200 + rng.random() * 2000)
        source = DEMO_SOURCES[i % len(DEMO_SOURCES)]
        is_auction = source == "demo-auction"

        metadata = {
            "isDemo": True,
            "daysOnMarket": rng.randint(0, 59),
            "pricePerSqft": round(base_price / sqft),
            "dataSource": "County Auction" if is_auction else "Demo Data",
            "isAuction": is_auction,
        }

        # Auction properties sell at 60-80% of value
        discount = 1.0
        if is_auction:
            discount = 0.6 + rng.random() * 0.2
            auction_date = now + timedelta(days=rng.random() * 30)
            metadata.update({
                "auctionType": rng.choice(AUCTION_TYPES),
                "auctionDate": auction_date.isoformat(),
                "estimatedEquity": round(base_price * (1 - discount)),
                "daysUntilAuction": max(1, (auction_date - now).days + 1),
            })

        properties.append(
            Property(
                address=address,
                city=city,
                state=state,
                zip_code=zip_code or str(78700 + i),
                source=source,
                property_type=DEMO_TYPES[i % len(DEMO_TYPES)],
                bedrooms=rng.randint(2, 5),
                bathrooms=rng.randint(1, 3),
                square_feet=sqft,
                lot_size=float(rng.randint(5000, 9999)),
                year_built=rng.randint(1980, 2019),
                purchase_price=round(base_price * discount),
                current_value=round(base_price),
                latitude=BASE_LATITUDE + (rng.random() - 0.5) * 0.1,
                longitude=BASE_LONGITUDE + (rng.random() - 0.5) * 0.1,
                external_id=f"demo-{i}",
                source_url=f"https://example.com/property/{i}",
                images=list(DEMO_IMAGES),
                metadata=metadata,
            )
        )

    return properties
