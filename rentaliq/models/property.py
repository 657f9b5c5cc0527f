import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from rentaliq.errors import LocationRequiredError


class PropertyType(str, Enum):
    SINGLE_FAMILY = "SINGLE_FAMILY"
    MULTI_FAMILY = "MULTI_FAMILY"
    CONDO = "CONDO"
    TOWNHOUSE = "TOWNHOUSE"
    APARTMENT = "APARTMENT"
    LAND = "LAND"


def _normalize_key_part(value: Optional[str]) -> str:
    return re.sub(r"\s+", " ", (value or "").strip()).lower()


@dataclass
class Property:
    """A property record normalized from any source."""
    address: str
    city: str
    state: str
    zip_code: str
    source: str
    property_type: PropertyType = PropertyType.SINGLE_FAMILY

    # Physical attributes
    bedrooms: int = 0
    bathrooms: float = 0
    square_feet: Optional[int] = None
    lot_size: Optional[float] = None
    year_built: Optional[int] = None

    # Value attributes
    purchase_price: Optional[float] = None
    current_value: Optional[float] = None
    estimated_rent: Optional[float] = None

    # Location
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    # Provenance
    external_id: Optional[str] = None
    source_url: Optional[str] = None
    images: list[str] = field(default_factory=list)
    description: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if not (self.address or "").strip():
            raise ValueError("Property address is required")
        self.address = self.address.strip()
        self.city = (self.city or "").strip()
        self.state = (self.state or "").strip()
        self.zip_code = (self.zip_code or "").strip()

    @property
    def identity_key(self) -> str:
        """Normalized address-city-zip key shared by records of the same property."""
        return "-".join(
            _normalize_key_part(part) for part in (self.address, self.city, self.zip_code)
        )

    @property
    def id(self) -> str:
        if self.external_id:
            return f"{self.source}-{self.external_id}"
        return f"{self.source}-{self.identity_key}"

    @property
    def price(self) -> Optional[float]:
        """Best available price figure: asking price, else current value."""
        return self.purchase_price or self.current_value

    @property
    def days_on_market(self) -> Optional[int]:
        value = self.metadata.get("daysOnMarket")
        return int(value) if isinstance(value, (int, float)) else None

    @property
    def is_demo(self) -> bool:
        return bool(self.metadata.get("isDemo", False))

    def to_dict(self) -> dict:
        metadata = dict(self.metadata)
        metadata.setdefault("isDemo", False)
        return {
            "id": self.id,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zipCode": self.zip_code,
            "propertyType": self.property_type.value,
            "bedrooms": self.bedrooms,
            "bathrooms": self.bathrooms,
            "squareFeet": self.square_feet,
            "lotSize": self.lot_size,
            "yearBuilt": self.year_built,
            "purchasePrice": self.purchase_price,
            "currentValue": self.current_value,
            "estimatedRent": self.estimated_rent,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "externalId": self.external_id,
            "sourceUrl": self.source_url,
            "images": list(self.images),
            "description": self.description,
            "source": self.source,
            "metadata": metadata,
        }


@dataclass
class SearchCriteria:
    """Location and filter criteria for a property search."""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    min_price: Optional[int] = None
    max_price: Optional[int] = None
    min_bedrooms: Optional[int] = None
    max_bedrooms: Optional[int] = None
    property_type: Optional[PropertyType] = None

    @property
    def has_location(self) -> bool:
        return bool(self.zip_code.strip()) or bool(self.city.strip() and self.state.strip())

    @property
    def location_label(self) -> str:
        """Location string in the form listing APIs accept: zip, else "City, ST"."""
        if self.zip_code.strip():
            return self.zip_code.strip()
        return f"{self.city.strip()}, {self.state.strip()}"

    def validate(self) -> None:
        if not self.has_location:
            raise LocationRequiredError()


@dataclass
class Location:
    """A point to rate, with whatever address parts are known."""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_property(cls, prop: Property) -> "Location":
        return cls(
            latitude=prop.latitude,
            longitude=prop.longitude,
            address=prop.address,
            city=prop.city,
            state=prop.state,
            zip_code=prop.zip_code,
        )
