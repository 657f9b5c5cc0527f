"""Tests for the property source adapters."""
import asyncio

import httpx

from rentaliq.models.property import Property, PropertyType, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.bright_data import BrightDataAdapter
from rentaliq.scrapers.county_records import CountyRecordsAdapter, find_county_key
from rentaliq.scrapers.courthouse_auctions import (
    CourthouseAuctionAdapter,
    county_key,
    parse_auction_listing,
)
from rentaliq.scrapers.craigslist import (
    CraigslistAdapter,
    extract_post_id,
    get_craigslist_subdomain,
)
from rentaliq.scrapers.realtor import RealtorAdapter
from rentaliq.scrapers.zillow import ZillowAdapter
from rentaliq.services.job_orchestrator import JobOrchestrator, RetryPolicy

AUSTIN = SearchCriteria(city="Austin", state="TX")


class BrokenAdapter(SourceAdapter):
    name = "broken"

    async def _search(self, criteria):
        raise RuntimeError("unexpected payload")


class TestSourceAdapterBase:
    """Tests for the shared adapter contract."""

    def test_search_never_raises(self):
        """Errors inside an adapter become an empty result."""
        assert asyncio.run(BrokenAdapter().search(AUSTIN)) == []

    def test_bad_items_skipped(self):
        """One unparsable item does not discard the batch."""
        adapter = BrokenAdapter()

        def parse(item):
            return Property(address=item, city="Austin", state="TX", zip_code="78701", source="x")

        parsed = adapter._parse_items(["1 Main St", "", "2 Main St"], parse)
        assert [p.address for p in parsed] == ["1 Main St", "2 Main St"]


class TestBrightDataAdapter:
    """Tests for the bulk dataset adapter."""

    def test_search_parses_snapshot_records(self):
        """Dataset records are normalized into properties."""
        payloads = []

        def handler(request):
            if request.method == "POST":
                payloads.append(request.content)
                return httpx.Response(200, json={"snapshot_id": "s_1"})
            return httpx.Response(200, json=[
                {
                    "zpid": 123,
                    "address": "1 Lake Dr",
                    "city": "Austin",
                    "state": "TX",
                    "zip_code": "78703",
                    "price": "$450,000",
                    "bedrooms": "3",
                    "bathrooms": 2.5,
                    "square_feet": "1,800",
                    "property_type": "condo",
                    "days_on_market": 14,
                    "images": ["a.jpg", "b.jpg"],
                    "listing_url": "https://example.com/1",
                },
                {"address": "", "city": "Austin"},
            ])

        orchestrator = JobOrchestrator(
            "token",
            retry_policy=RetryPolicy(attempts=2, delay=0),
            transport=httpx.MockTransport(handler),
        )
        adapter = BrightDataAdapter(orchestrator, "gd_test")
        properties = asyncio.run(adapter.search(AUSTIN))

        assert len(properties) == 1
        prop = properties[0]
        assert prop.source == "bright-data"
        assert prop.purchase_price == 450000
        assert prop.square_feet == 1800
        assert prop.property_type == PropertyType.CONDO
        assert prop.metadata["daysOnMarket"] == 14
        assert prop.external_id == "123"
        assert b'"dataset_id":"gd_test"' in payloads[0].replace(b" ", b"")

    def test_no_token_skips(self):
        """Without a token the adapter makes no request."""
        def handler(request):
            raise AssertionError("no request expected")

        orchestrator = JobOrchestrator("", transport=httpx.MockTransport(handler))
        assert asyncio.run(BrightDataAdapter(orchestrator, "gd_test").search(AUSTIN)) == []


ZILLOW_LISTING = {
    "zpid": "2001",
    "address": "742 Evergreen Ter, Austin, TX 78745",
    "price": 325000,
    "bedrooms": 3,
    "bathrooms": 2,
    "livingArea": 1600,
    "propertyType": "SINGLE_FAMILY",
    "rentZestimate": 2100,
    "daysOnZillow": 21,
    "imgSrc": "https://photos.example.com/1.jpg",
    "detailUrl": "/homedetails/2001_zpid/",
}


class TestZillowAdapter:
    """Tests for the Zillow search adapter."""

    def test_parses_listing(self):
        """Listings are parsed including the string address."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"props": [ZILLOW_LISTING]})

        adapter = ZillowAdapter("key", transport=httpx.MockTransport(handler))
        properties = asyncio.run(adapter.search(AUSTIN))

        # A short page ends pagination
        assert len(requests) == 1
        assert requests[0].headers["X-RapidAPI-Key"] == "key"
        assert requests[0].url.params["location"] == "Austin, TX"

        prop = properties[0]
        assert prop.address == "742 Evergreen Ter"
        assert prop.zip_code == "78745"
        assert prop.estimated_rent == 2100
        assert prop.days_on_market == 21
        assert prop.source_url == "https://www.zillow.com/homedetails/2001_zpid/"

    def test_full_pages_continue(self):
        """Full pages fetch the next page, up to three."""
        pages = []

        def handler(request):
            pages.append(request.url.params["page"])
            listings = [dict(ZILLOW_LISTING, zpid=str(i), address=f"{i} Oak St, Austin, TX 78745") for i in range(40)]
            return httpx.Response(200, json={"props": listings})

        adapter = ZillowAdapter("key", transport=httpx.MockTransport(handler))
        properties = asyncio.run(adapter.search(AUSTIN))

        assert pages == ["1", "2", "3"]
        assert len(properties) == 120

    def test_http_error_returns_empty(self):
        """API errors yield no properties."""
        adapter = ZillowAdapter("key", transport=httpx.MockTransport(lambda r: httpx.Response(429)))
        assert asyncio.run(adapter.search(AUSTIN)) == []

    def test_recently_sold_skips_incomplete(self, subject):
        """Sold comparables need price, bedrooms and living area."""
        incomplete = dict(ZILLOW_LISTING, livingArea=None)

        def handler(request):
            assert request.url.params["status_type"] == "RecentlySold"
            return httpx.Response(200, json={"props": [ZILLOW_LISTING, incomplete]})

        adapter = ZillowAdapter("key", transport=httpx.MockTransport(handler))
        sold = asyncio.run(adapter.recently_sold(subject))
        assert len(sold) == 1

    def test_for_rent_moves_price_to_rent(self, subject):
        """Rental listing prices are monthly rents."""
        rental = dict(ZILLOW_LISTING, price=1950)

        def handler(request):
            assert request.url.params["status_type"] == "ForRent"
            assert request.url.params["bedsMin"] == "3"
            return httpx.Response(200, json={"props": [rental]})

        adapter = ZillowAdapter("key", transport=httpx.MockTransport(handler))
        rentals = asyncio.run(adapter.for_rent(subject))

        assert rentals[0].estimated_rent == 1950
        assert rentals[0].purchase_price is None


class TestRealtorAdapter:
    """Tests for the Realtor.com adapter."""

    def test_parses_nested_fields(self):
        """Nested address, size and photo fields are flattened."""
        listing = {
            "property_id": "M123",
            "address": {"line": "9 Elm St", "city": "Austin", "state_code": "TX", "postal_code": "78702"},
            "prop_type": "single_family",
            "beds": 4,
            "baths": 3,
            "building_size": {"size": 2200},
            "price": 510000,
            "photos": [{"href": "p1.jpg"}, {"href": "p2.jpg"}],
            "rdc_web_url": "https://www.realtor.com/M123",
        }
        adapter = RealtorAdapter(
            "key",
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"properties": [listing]})),
        )
        prop = asyncio.run(adapter.search(AUSTIN))[0]

        assert prop.address == "9 Elm St"
        assert prop.square_feet == 2200
        assert prop.images == ["p1.jpg", "p2.jpg"]
        assert prop.source == "realtor"


COUNTY_HTML = """
<div class="property-result">
  <span class="property-address">55 River Rd 78704</span>
  <span class="owner-name">Jane Smith</span>
  <span class="market-value">$390,000</span>
  <span class="year-built">1985</span>
  <span class="square-feet">1,700 sq ft</span>
</div>
"""


class TestCountyRecordsAdapter:
    """Tests for the county assessor adapter."""

    def test_unconfigured_county_returns_empty(self):
        """Cities without a county config return nothing."""
        assert find_county_key("Boise", "ID") is None
        assert asyncio.run(CountyRecordsAdapter().search(SearchCriteria(city="Boise", state="ID"))) == []

    def test_html_and_api_paths(self):
        """Both the search page and the open-data API contribute records."""
        def handler(request):
            if "traviscad" in request.url.host:
                return httpx.Response(200, text=COUNTY_HTML)
            return httpx.Response(200, json=[
                {"address": "77 Hill St", "zip": "78705", "market_value": "275000", "parcel_id": "P-1"},
            ])

        adapter = CountyRecordsAdapter(transport=httpx.MockTransport(handler))
        properties = asyncio.run(adapter.search(AUSTIN))

        by_source = {p.metadata["dataSource"]: p for p in properties}
        html_record = by_source["county-html"]
        assert html_record.metadata["owner"] == "Jane Smith"
        assert html_record.purchase_price == 390000
        assert html_record.zip_code == "78704"
        assert html_record.metadata["isOffMarket"] is True

        api_record = by_source["county-api"]
        assert api_record.external_id == "P-1"
        assert api_record.state == "TX"


CRAIGSLIST_HTML = """
<ul>
  <li class="result-row">
    <time datetime="2024-03-01 10:15"></time>
    <a class="result-title" href="/rea/d/owner-finance/7712345678.html">3br 2ba home OWNER FINANCE</a>
    <span class="result-price">$185,000</span>
    <span class="result-hood">(South Austin)</span>
  </li>
  <li class="result-row">
    <a class="result-title" href="https://austin.craigslist.org/rea/d/duplex/7700000001.html">Duplex, cash only</a>
    <span class="result-price">$240,000</span>
  </li>
  <li class="result-row">
    <a class="result-title" href="/rea/d/no-price/7700000002.html">No price listed</a>
  </li>
</ul>
"""


class TestCraigslistAdapter:
    """Tests for the Craigslist owner-finance adapter."""

    def test_subdomain_and_post_id(self):
        """Cities map to subdomains and URLs to post ids."""
        assert get_craigslist_subdomain("San Antonio") == "sanantonio"
        assert get_craigslist_subdomain("Boise") == "boise"
        assert extract_post_id("https://austin.craigslist.org/rea/d/x/7712345678.html") == "7712345678"

    def test_parse_listings(self):
        """Rows become properties tagged with financing flags."""
        adapter = CraigslistAdapter()
        properties = adapter.parse_listings(CRAIGSLIST_HTML, AUSTIN, "austin", "owner finance")

        assert len(properties) == 2
        first, second = properties
        assert first.source_url == "https://austin.craigslist.org/rea/d/owner-finance/7712345678.html"
        assert first.metadata["ownerFinancing"] is True
        assert first.metadata["neighborhood"] == "South Austin"
        assert first.metadata["dealType"] == "owner-finance"
        assert first.bedrooms == 3
        assert second.metadata["ownerFinancing"] is False
        assert second.property_type == PropertyType.MULTI_FAMILY

    def test_search_dedupes_across_queries(self):
        """The same post found by several queries is returned once."""
        queries = []

        def handler(request):
            queries.append(request.url.params["query"])
            return httpx.Response(200, text=CRAIGSLIST_HTML)

        adapter = CraigslistAdapter(transport=httpx.MockTransport(handler), rate_limit_seconds=0)
        properties = asyncio.run(adapter.search(AUSTIN))

        assert "owner finance" in queries
        assert "FSBO owner" in queries
        assert len(properties) == 2


AUCTION_HTML = """
<div class="auction-item">123 Main St, Austin, TX 78701 - Sale Date: 12/15/2024 - Min Bid: $150,000 Case No. 2024-CV-001</div>
<div class="auction-item">Parcel withdrawn</div>
"""


class TestCourthouseAuctionAdapter:
    """Tests for the foreclosure auction adapter."""

    def test_parse_listing_text(self):
        """Auction text yields address, date, bid and case number."""
        listing = parse_auction_listing(
            "123 Main St, Austin, TX 78701 - Auction: 12/15/2024 - Min Bid: $250,000",
            "Travis",
            "https://example.com",
        )
        assert listing.address == "123 Main St"
        assert listing.auction_date == "12/15/2024"
        assert listing.minimum_bid == 250000

    def test_parse_auction_page(self):
        """Listing blocks without an address are skipped."""
        adapter = CourthouseAuctionAdapter()
        properties = adapter.parse_auction_page(AUCTION_HTML, "Travis", "https://example.com/auctions")

        assert len(properties) == 1
        prop = properties[0]
        assert prop.purchase_price == 150000
        assert prop.metadata["caseNumber"] == "2024-CV-001"
        assert prop.metadata["dealType"] == "auction"
        assert prop.metadata["isAuction"] is True

    def test_county_keys(self):
        """Multi-word counties use dashed keys."""
        assert county_key("Los Angeles", "CA") == "los-angeles-ca"
        assert "Los Angeles County, CA" in CourthouseAuctionAdapter.supported_locations()

    def test_unknown_city_returns_empty(self):
        """Cities without an auction page return nothing."""
        assert asyncio.run(CourthouseAuctionAdapter().search(SearchCriteria(city="Boise", state="ID"))) == []
