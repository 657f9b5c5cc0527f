from typing import Optional

from pydantic import BaseModel, Field

from rentaliq.models.property import Location, Property, PropertyType, SearchCriteria


class SearchRequest(BaseModel):
    """Location and filters for a property search."""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    min_price: Optional[int] = Field(None, ge=0)
    max_price: Optional[int] = Field(None, ge=0)
    min_bedrooms: Optional[int] = Field(None, ge=0)
    max_bedrooms: Optional[int] = Field(None, ge=0)
    property_type: Optional[PropertyType] = None

    def to_criteria(self) -> SearchCriteria:
        return SearchCriteria(
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            min_price=self.min_price,
            max_price=self.max_price,
            min_bedrooms=self.min_bedrooms,
            max_bedrooms=self.max_bedrooms,
            property_type=self.property_type,
        )


class SearchResponse(BaseModel):
    location: str
    total: int
    demo: bool  # True when every result is placeholder data
    properties: list[dict]


class SubjectPropertyRequest(BaseModel):
    """The property to value."""
    address: str = Field(min_length=1)
    city: str = ""
    state: str = ""
    zip_code: str = ""
    property_type: PropertyType = PropertyType.SINGLE_FAMILY
    bedrooms: int = Field(0, ge=0)
    bathrooms: float = Field(0, ge=0)
    square_feet: Optional[int] = Field(None, gt=0)
    year_built: Optional[int] = None
    price: Optional[float] = Field(None, gt=0)
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_property(self) -> Property:
        return Property(
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
            source="manual",
            property_type=self.property_type,
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
            square_feet=self.square_feet,
            year_built=self.year_built,
            purchase_price=self.price,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class LocationRequest(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""

    def to_location(self) -> Location:
        return Location(
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
            city=self.city,
            state=self.state,
            zip_code=self.zip_code,
        )


class HousingAuthority(BaseModel):
    name: str
    phone: str
    website: str


class Section8Check(BaseModel):
    eligible: bool
    reason: str
    max_rent: int


class FairMarketRentResponse(BaseModel):
    zip_code: str
    bedrooms: int
    fair_market_rent: int
    year: int
    source: str
    metro_area: Optional[str] = None
    housing_authority: Optional[HousingAuthority] = None
    eligibility: Optional[Section8Check] = None
