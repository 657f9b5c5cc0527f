import re
from dataclasses import dataclass
from typing import Optional

import httpx
import structlog
from bs4 import BeautifulSoup

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.extractors import ADDRESS_PATTERN, infer_property_type, parse_price

logger = structlog.get_logger()

# Sheriff / county foreclosure sale pages
COUNTY_AUCTION_URLS = {
    "travis-tx": "https://www.traviscountytx.gov/sheriff/foreclosures",
    "bexar-tx": "https://www.bexar.org/2233/Foreclosure-Sales",
    "harris-tx": "https://hcso.harriscountytx.gov/Services/Civil-Process/Foreclosure-Sales",
    "dallas-tx": "https://www.dallascounty.org/government/sheriff/foreclosures.php",
    "tarrant-tx": "https://www.tarrantcounty.com/en/sheriff/foreclosures.html",
    "maricopa-az": "https://mcso.maricopa.gov/foreclosures",
    "los-angeles-ca": "https://www.assessor.lacounty.gov/foreclosures",
    "san-diego-ca": "https://www.sdsheriff.gov/foreclosures",
}

CITY_TO_COUNTY = {
    "austin": "Travis",
    "san antonio": "Bexar",
    "houston": "Harris",
    "dallas": "Dallas",
    "fort worth": "Tarrant",
    "phoenix": "Maricopa",
    "scottsdale": "Maricopa",
    "mesa": "Maricopa",
    "los angeles": "Los Angeles",
    "san diego": "San Diego",
}

# Tried in order; the first selector that yields listings wins
LISTING_SELECTORS = [
    ".foreclosure-listing",
    ".auction-item",
    "table.foreclosures tr",
    ".property-listing",
]

AUCTION_DATE_PATTERN = re.compile(
    r"(?:Auction|Sale)\s*(?:Date)?:?\s*(\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4})", re.IGNORECASE
)
MINIMUM_BID_PATTERN = re.compile(r"(?:Min|Minimum|Starting)\s*(?:Bid)?:?\s*\$?([\d,]+)", re.IGNORECASE)
CASE_NUMBER_PATTERN = re.compile(r"Case\s*(?:No|Number)?\.?:?\s*([\w\-]+)", re.IGNORECASE)


@dataclass
class AuctionListing:
    address: str
    city: str
    state: str
    zip_code: str
    auction_date: str
    county: str
    source_url: str
    minimum_bid: Optional[int] = None
    case_number: Optional[str] = None
    text: str = ""


def county_key(county: str, state: str) -> str:
    return f"{county.strip().lower().replace(' ', '-')}-{state.strip().lower()}"


def parse_auction_listing(text: str, county: str, source_url: str) -> Optional[AuctionListing]:
    """Parse "123 Main St, Austin, TX 78701 - Auction: 12/15/2024 - Min Bid: $250,000"."""
    address_match = ADDRESS_PATTERN.search(text)
    if not address_match:
        return None

    date_match = AUCTION_DATE_PATTERN.search(text)
    bid_match = MINIMUM_BID_PATTERN.search(text)
    case_match = CASE_NUMBER_PATTERN.search(text)

    return AuctionListing(
        address=address_match.group(1).strip(),
        city=address_match.group(2).strip(),
        state=address_match.group(3),
        zip_code=address_match.group(4),
        auction_date=date_match.group(1) if date_match else "TBD",
        minimum_bid=parse_price(bid_match.group(1)) if bid_match else None,
        case_number=case_match.group(1) if case_match else None,
        county=county,
        source_url=source_url,
        text=text,
    )


class CourthouseAuctionAdapter(SourceAdapter):
    """Foreclosure auctions published on county sheriff websites."""

    name = "courthouse-auction"
    is_free = True

    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        county = CITY_TO_COUNTY.get(criteria.city.strip().lower())
        if not county:
            logger.info("No auction county for city", city=criteria.city)
            return []

        url = COUNTY_AUCTION_URLS.get(county_key(county, criteria.state))
        if not url:
            logger.info("No auction page configured", county=county, state=criteria.state)
            return []

        try:
            async with self._client() as client:
                response = await client.get(url, headers=self._get_headers())
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Auction page fetch failed", county=county, error=str(e))
            return []

        return self.parse_auction_page(response.text, county, url)

    def parse_auction_page(self, html: str, county: str, url: str) -> list[Property]:
        soup = BeautifulSoup(html, "html.parser")

        for selector in LISTING_SELECTORS:
            elements = soup.select(selector)
            auctions = self._parse_items(
                elements,
                lambda el: self._to_property(
                    parse_auction_listing(el.get_text(" ", strip=True), county, url)
                ),
                county=county,
            )
            if auctions:
                return auctions

        return []

    def _to_property(self, auction: Optional[AuctionListing]) -> Optional[Property]:
        if auction is None:
            return None

        return Property(
            address=auction.address,
            city=auction.city,
            state=auction.state,
            zip_code=auction.zip_code,
            source=self.name,
            property_type=infer_property_type(auction.text),
            purchase_price=auction.minimum_bid,
            current_value=auction.minimum_bid,
            external_id=auction.case_number,
            source_url=auction.source_url,
            metadata={
                "auctionDate": auction.auction_date,
                "auctionType": "Foreclosure",
                "county": auction.county,
                "caseNumber": auction.case_number,
                "isAuction": True,
                "isOffMarket": True,
                "dealType": "auction",
            },
        )

    @staticmethod
    def supported_locations() -> list[str]:
        locations = []
        for key in COUNTY_AUCTION_URLS:
            county, state = key.rsplit("-", 1)
            locations.append(f"{county.replace('-', ' ').title()} County, {state.upper()}")
        return locations
