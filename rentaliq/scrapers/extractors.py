from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from rentaliq.models.property import PropertyType


@dataclass
class ParsedAddress:
    street: str
    city: str
    state: str
    zip_code: str


# Vendor property type strings (lower-cased, spaces/dashes as underscores)
PROPERTY_TYPE_MAP = {
    'single_family': PropertyType.SINGLE_FAMILY,
    'singlefamily': PropertyType.SINGLE_FAMILY,
    'single_family_home': PropertyType.SINGLE_FAMILY,
    'house': PropertyType.SINGLE_FAMILY,
    'multi_family': PropertyType.MULTI_FAMILY,
    'multifamily': PropertyType.MULTI_FAMILY,
    'duplex_triplex': PropertyType.MULTI_FAMILY,
    'condo': PropertyType.CONDO,
    'condos': PropertyType.CONDO,
    'condominium': PropertyType.CONDO,
    'townhouse': PropertyType.TOWNHOUSE,
    'townhomes': PropertyType.TOWNHOUSE,
    'townhome': PropertyType.TOWNHOUSE,
    'apartment': PropertyType.APARTMENT,
    'apartments': PropertyType.APARTMENT,
    'land': PropertyType.LAND,
    'lot': PropertyType.LAND,
    'lots_land': PropertyType.LAND,
}

# Free-text keywords, checked in order
PROPERTY_TYPE_KEYWORDS = [
    (r'\bcondo(?:minium)?s?\b', PropertyType.CONDO),
    (r'\btown ?(?:house|home)s?\b', PropertyType.TOWNHOUSE),
    (r'\b(?:apartment|duplex|triplex|fourplex|quadplex)s?\b', PropertyType.MULTI_FAMILY),
    (r'\b(?:land|lots?|acres?|acreage)\b', PropertyType.LAND),
]

OWNER_FINANCE_KEYWORDS = [
    'owner financ',
    'seller financ',
    'owner carry',
    'seller carry',
    'no bank',
    'financing available',
    'flexible financing',
]

# "1234 Main St, Austin, TX 78701"
ADDRESS_PATTERN = re.compile(r'(\d+[^,]+),\s*([^,]+),\s*([A-Z]{2})\s*(\d{5})')
ZIP_PATTERN = re.compile(r'\b(\d{5})(?:-\d{4})?\b')


def map_property_type(raw: Optional[str]) -> PropertyType:
    """Map a vendor property type string onto PropertyType (default SINGLE_FAMILY)."""
    if not raw:
        return PropertyType.SINGLE_FAMILY
    key = re.sub(r'[\s\-]+', '_', str(raw).strip().lower())
    return PROPERTY_TYPE_MAP.get(key, PropertyType.SINGLE_FAMILY)


def infer_property_type(text: Optional[str]) -> PropertyType:
    """Best-guess property type from listing text."""
    text_lower = (text or '').lower()
    for pattern, property_type in PROPERTY_TYPE_KEYWORDS:
        if re.search(pattern, text_lower):
            return property_type
    return PropertyType.SINGLE_FAMILY


def detect_owner_financing(text: Optional[str]) -> bool:
    """True when the text mentions owner or seller financing."""
    text_lower = (text or '').lower()
    return any(keyword in text_lower for keyword in OWNER_FINANCE_KEYWORDS)


def parse_price(text: Any) -> Optional[int]:
    """Parse "$250,000" / "250000" / 250000.0 into whole dollars."""
    if text is None or isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        return int(text) if text > 0 else None
    digits = re.sub(r'[^\d.]', '', str(text))
    if not digits:
        return None
    try:
        value = int(float(digits))
    except ValueError:
        return None
    return value if value > 0 else None


def to_int(value: Any) -> Optional[int]:
    """Narrow a loosely typed payload value to int."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(str(value).replace(',', '')))
    except (TypeError, ValueError):
        return None


def to_float(value: Any) -> Optional[float]:
    """Narrow a loosely typed payload value to float."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace(',', ''))
    except (TypeError, ValueError):
        return None


def parse_address(text: Optional[str]) -> Optional[ParsedAddress]:
    """Split a one-line US address into street, city, state and ZIP."""
    if not text:
        return None
    match = ADDRESS_PATTERN.search(text)
    if not match:
        return None
    return ParsedAddress(
        street=match.group(1).strip(),
        city=match.group(2).strip(),
        state=match.group(3),
        zip_code=match.group(4),
    )


def extract_zip(text: Optional[str]) -> Optional[str]:
    """Extract a 5-digit ZIP code from text."""
    if not text:
        return None
    match = ZIP_PATTERN.search(text)
    return match.group(1) if match else None


def extract_bedrooms(text: Optional[str]) -> Optional[int]:
    """Bedroom count from classifieds shorthand such as "3br" or "3 bed"."""
    match = re.search(r'(\d+)\s*(?:br|bd|beds?|bedrooms?)\b', (text or '').lower())
    return int(match.group(1)) if match else None


def extract_bathrooms(text: Optional[str]) -> Optional[float]:
    match = re.search(r'(\d+(?:\.\d)?)\s*(?:ba|baths?|bathrooms?)\b', (text or '').lower())
    return float(match.group(1)) if match else None


def extract_square_feet(text: Optional[str]) -> Optional[int]:
    """Living area from "1500ft2", "1,500 sq ft" or "1500 sqft"."""
    match = re.search(r'(\d[\d,]*)\s*(?:ft2|ft²|sq\.?\s*ft|sqft|square feet)', (text or '').lower())
    if not match:
        return None
    return to_int(match.group(1))
