import re
from datetime import datetime
from typing import Optional

import httpx
import structlog
from bs4 import BeautifulSoup

from rentaliq.models.property import Property, SearchCriteria
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.extractors import (
    detect_owner_financing,
    extract_bathrooms,
    extract_bedrooms,
    extract_square_feet,
    extract_zip,
    infer_property_type,
    parse_address,
    parse_price,
)

logger = structlog.get_logger()

OWNER_FINANCE_QUERIES = [
    "owner finance",
    "seller finance",
    "owner financing",
    "no bank financing",
    "owner carry",
]

FSBO_QUERY = "FSBO owner"

# Cities whose subdomain is not simply the name without spaces
CITY_SUBDOMAINS = {
    "austin": "austin",
    "houston": "houston",
    "dallas": "dallas",
    "san antonio": "sanantonio",
    "phoenix": "phoenix",
    "los angeles": "losangeles",
    "san diego": "sandiego",
    "new york": "newyork",
    "chicago": "chicago",
    "miami": "miami",
    "atlanta": "atlanta",
    "seattle": "seattle",
    "denver": "denver",
    "portland": "portland",
    "las vegas": "lasvegas",
}


def get_craigslist_subdomain(city: str) -> str:
    city_lower = (city or "").strip().lower()
    return CITY_SUBDOMAINS.get(city_lower) or re.sub(r"\s+", "", city_lower)


def extract_post_id(url: str) -> Optional[str]:
    match = re.search(r"/(\d+)\.html", url or "")
    return match.group(1) if match else None


class CraigslistAdapter(SourceAdapter):
    """Owner-financed and FSBO listings from Craigslist real estate search."""

    name = "craigslist"
    is_free = True
    SEARCH_URL = "https://{subdomain}.craigslist.org/search/rea"
    RATE_LIMIT_SECONDS = 1.0

    async def _search(self, criteria: SearchCriteria) -> list[Property]:
        if not criteria.city:
            logger.info("Craigslist needs a city, skipping")
            return []

        subdomain = get_craigslist_subdomain(criteria.city)
        properties = []

        async with self._client() as client:
            for query in [*OWNER_FINANCE_QUERIES, FSBO_QUERY]:
                await self._rate_limit()
                listings = await self._search_query(client, subdomain, query, criteria)
                properties.extend(listings)

        return self.deduplicate_listings(properties)

    async def _search_query(
        self,
        client: httpx.AsyncClient,
        subdomain: str,
        query: str,
        criteria: SearchCriteria,
    ) -> list[Property]:
        try:
            response = await client.get(
                self.SEARCH_URL.format(subdomain=subdomain),
                params={"query": query, "sort": "date", "availabilityMode": 0},
                headers=self._get_headers(),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Craigslist search failed", query=query, error=str(e))
            return []

        return self.parse_listings(response.text, criteria, subdomain, query)

    def parse_listings(
        self,
        html: str,
        criteria: SearchCriteria,
        subdomain: str,
        query: str,
    ) -> list[Property]:
        soup = BeautifulSoup(html, "html.parser")
        return self._parse_items(
            soup.select(".result-row"),
            lambda row: self._parse_row(row, criteria, subdomain, query),
            query=query,
        )

    def _parse_row(self, row, criteria: SearchCriteria, subdomain: str, query: str) -> Optional[Property]:
        """Parse a single search result row."""
        title_el = row.select_one(".result-title")
        if not title_el:
            return None

        title = title_el.get_text(" ", strip=True)
        price_el = row.select_one(".result-price")
        price = parse_price(price_el.get_text(strip=True) if price_el else None)
        if not title or not price:
            return None

        href = title_el.get("href") or ""
        url = href if href.startswith("http") else f"https://{subdomain}.craigslist.org{href}"

        hood_el = row.select_one(".result-hood")
        neighborhood = hood_el.get_text(" ", strip=True).strip("() ") if hood_el else ""

        time_el = row.select_one("time")
        posted = None
        if time_el and time_el.get("datetime"):
            try:
                posted = datetime.fromisoformat(time_el["datetime"]).isoformat()
            except ValueError:
                posted = None

        # Listings rarely carry a street address; the title keeps distinct posts apart
        parsed = parse_address(title)
        address = parsed.street if parsed else title

        return Property(
            address=address,
            city=parsed.city if parsed else criteria.city,
            state=parsed.state if parsed else criteria.state,
            zip_code=(parsed.zip_code if parsed else extract_zip(title)) or "",
            source=self.name,
            property_type=infer_property_type(title),
            bedrooms=extract_bedrooms(title) or 0,
            bathrooms=extract_bathrooms(title) or 0,
            square_feet=extract_square_feet(title),
            purchase_price=price,
            current_value=price,
            external_id=extract_post_id(url),
            source_url=url,
            description=title,
            metadata={
                "title": title,
                "neighborhood": neighborhood or None,
                "ownerFinancing": detect_owner_financing(title),
                "isFSBO": True,
                "postedDate": posted,
                "searchQuery": query,
                "dealType": "owner-finance" if query != FSBO_QUERY else "fsbo",
                "dataSource": "craigslist",
            },
        )

    @staticmethod
    def deduplicate_listings(properties: list[Property]) -> list[Property]:
        """Keep the first listing seen for each listing URL."""
        seen_urls = set()
        unique = []
        for prop in properties:
            if prop.source_url in seen_urls:
                continue
            seen_urls.add(prop.source_url)
            unique.append(prop)
        return unique
