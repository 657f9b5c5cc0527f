"""Tests for free-text and payload extraction helpers."""
from rentaliq.models.property import PropertyType
from rentaliq.scrapers.extractors import (
    detect_owner_financing,
    extract_bathrooms,
    extract_bedrooms,
    extract_square_feet,
    extract_zip,
    infer_property_type,
    map_property_type,
    parse_address,
    parse_price,
    to_float,
    to_int,
)


class TestPropertyTypes:
    """Tests for vendor type mapping and free-text inference."""

    def test_vendor_strings(self):
        """Vendor type strings map onto the closed enum."""
        assert map_property_type("single_family") == PropertyType.SINGLE_FAMILY
        assert map_property_type("SINGLE FAMILY") == PropertyType.SINGLE_FAMILY
        assert map_property_type("MultiFamily") == PropertyType.MULTI_FAMILY
        assert map_property_type("condos") == PropertyType.CONDO
        assert map_property_type("townhomes") == PropertyType.TOWNHOUSE
        assert map_property_type("LOT") == PropertyType.LAND

    def test_unknown_defaults_to_single_family(self):
        """Unknown or missing types default to single family."""
        assert map_property_type("castle") == PropertyType.SINGLE_FAMILY
        assert map_property_type(None) == PropertyType.SINGLE_FAMILY

    def test_inference_from_text(self):
        """Keywords in listing text pick the property type."""
        assert infer_property_type("Cute condo near downtown") == PropertyType.CONDO
        assert infer_property_type("2 story townhome") == PropertyType.TOWNHOUSE
        assert infer_property_type("Duplex, owner finance") == PropertyType.MULTI_FAMILY
        assert infer_property_type("5 acres of raw land") == PropertyType.LAND
        assert infer_property_type("3br 2ba house") == PropertyType.SINGLE_FAMILY


class TestOwnerFinancing:
    """Tests for owner-financing keyword detection."""

    def test_detects_keywords(self):
        """Common owner-financing phrases are detected."""
        assert detect_owner_financing("OWNER FINANCING available, low down")
        assert detect_owner_financing("Seller will carry - no bank needed")
        assert detect_owner_financing("flexible financing")

    def test_ignores_plain_listing(self):
        """Listings without financing language are not flagged."""
        assert not detect_owner_financing("3br 2ba house with pool")
        assert not detect_owner_financing(None)


class TestParsing:
    """Tests for price, number and address parsing."""

    def test_parse_price(self):
        """Prices parse from strings and numbers."""
        assert parse_price("$250,000") == 250000
        assert parse_price(199999.99) == 199999
        assert parse_price("call for price") is None
        assert parse_price(0) is None

    def test_numeric_narrowing(self):
        """Loosely typed values narrow to numbers or None."""
        assert to_int("1,500") == 1500
        assert to_int("n/a") is None
        assert to_float("2.5") == 2.5
        assert to_float(True) is None

    def test_parse_address(self):
        """One-line US addresses split into parts."""
        parsed = parse_address("1234 Main St, Austin, TX 78701")
        assert parsed.street == "1234 Main St"
        assert parsed.city == "Austin"
        assert parsed.state == "TX"
        assert parsed.zip_code == "78701"

    def test_parse_address_without_number(self):
        """Text without a street number is not an address."""
        assert parse_address("Nice house, Austin, TX 78701") is None

    def test_listing_shorthand(self):
        """Classifieds shorthand yields beds, baths, area and ZIP."""
        title = "$180,000 / 3br - 1400ft2 - 2ba home near 78745"
        assert extract_bedrooms(title) == 3
        assert extract_bathrooms(title) == 2.0
        assert extract_square_feet(title) == 1400
        assert extract_zip(title) == "78745"
        assert extract_square_feet("1,850 sq ft") == 1850
