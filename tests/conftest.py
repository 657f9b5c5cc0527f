import pytest

from rentaliq.models.property import Property, PropertyType


def make_property(**overrides) -> Property:
    """Property with sensible defaults for tests."""
    values = dict(
        address="100 Congress Ave",
        city="Austin",
        state="TX",
        zip_code="78701",
        source="test",
        property_type=PropertyType.SINGLE_FAMILY,
        bedrooms=3,
        bathrooms=2,
        square_feet=1500,
        year_built=2000,
        purchase_price=300000,
    )
    values.update(overrides)
    return Property(**values)


@pytest.fixture
def subject() -> Property:
    return make_property(address="500 Subject St", purchase_price=300000)
