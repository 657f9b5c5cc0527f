from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.bright_data import BrightDataAdapter
from rentaliq.scrapers.zillow import ZillowAdapter
from rentaliq.scrapers.realtor import RealtorAdapter
from rentaliq.scrapers.county_records import CountyRecordsAdapter, COUNTY_CONFIGS, CITY_TO_COUNTY
from rentaliq.scrapers.craigslist import (
    CraigslistAdapter,
    OWNER_FINANCE_QUERIES,
    FSBO_QUERY,
    CITY_SUBDOMAINS,
)
from rentaliq.scrapers.courthouse_auctions import CourthouseAuctionAdapter, COUNTY_AUCTION_URLS
from rentaliq.scrapers.extractors import (
    map_property_type,
    infer_property_type,
    detect_owner_financing,
    parse_price,
    parse_address,
)

__all__ = [
    "SourceAdapter",
    # Paid / credentialed sources
    "BrightDataAdapter",
    "ZillowAdapter",
    "RealtorAdapter",
    # Free public sources
    "CountyRecordsAdapter",
    "COUNTY_CONFIGS",
    "CITY_TO_COUNTY",
    "CraigslistAdapter",
    "OWNER_FINANCE_QUERIES",
    "FSBO_QUERY",
    "CITY_SUBDOMAINS",
    "CourthouseAuctionAdapter",
    "COUNTY_AUCTION_URLS",
    # Extractors
    "map_property_type",
    "infer_property_type",
    "detect_owner_financing",
    "parse_price",
    "parse_address",
]
