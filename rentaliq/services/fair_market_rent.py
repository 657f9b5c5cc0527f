"""HUD Fair Market Rent (FMR) client for Section 8 payment standards.

API documentation: https://www.huduser.gov/portal/dataset/fmr-api.html
"""
from dataclasses import dataclass
from datetime import date
from typing import Optional

import httpx
import structlog

logger = structlog.get_logger()

FALLBACK_YEAR = 2024
MAX_TABLE_BEDROOMS = 6
# HUD prices each bedroom beyond four at +15% of the 4BR rate
EXTRA_BEDROOM_FACTOR = 0.15

# 2024 metro rates keyed by ZIP prefix, bedrooms 0-6
METRO_FMR_TABLE = {
    "782": ("San Antonio", [936, 1106, 1368, 1881, 2257, 2596, 2985]),
    "787": ("Austin", [1254, 1401, 1730, 2381, 2912, 3349, 3851]),
    "770": ("Houston", [949, 1090, 1341, 1806, 2208, 2539, 2920]),
    "752": ("Dallas", [1031, 1173, 1454, 1980, 2436, 2801, 3221]),
    "761": ("Fort Worth", [1031, 1173, 1454, 1980, 2436, 2801, 3221]),
    "799": ("El Paso", [749, 852, 1050, 1456, 1755, 2018, 2321]),
}

DEFAULT_FMR_RATES = [900, 1000, 1300, 1800, 2200, 2500, 2900]

HOUSING_AUTHORITIES = {
    "782": {
        "name": "San Antonio Housing Authority",
        "phone": "(210) 477-6000",
        "website": "https://www.saha.org",
    },
    "787": {
        "name": "Housing Authority of the City of Austin",
        "phone": "(512) 477-4488",
        "website": "https://www.hacanet.org",
    },
    "770": {
        "name": "Houston Housing Authority",
        "phone": "(713) 260-0500",
        "website": "https://www.housingforhouston.com",
    },
    "752": {
        "name": "Dallas Housing Authority",
        "phone": "(214) 951-8300",
        "website": "https://www.dha.org",
    },
}


@dataclass
class FairMarketRent:
    zip_code: str
    year: int
    bedrooms: int
    amount: int
    source: str  # HUD_API or FALLBACK
    metro_area: Optional[str] = None


@dataclass
class Section8Eligibility:
    eligible: bool
    reason: str
    max_rent: int


def fallback_fair_market_rent(zip_code: str, bedrooms: int) -> FairMarketRent:
    """Regional table by ZIP prefix, else the generic default table."""
    clamped = max(0, min(bedrooms, MAX_TABLE_BEDROOMS))
    metro = METRO_FMR_TABLE.get((zip_code or "")[:3])

    if metro:
        metro_name, rates = metro
        return FairMarketRent(
            zip_code=zip_code,
            year=FALLBACK_YEAR,
            bedrooms=clamped,
            amount=rates[clamped],
            source="FALLBACK",
            metro_area=metro_name,
        )

    logger.warning("ZIP code not in FMR table, using default rates", zip_code=zip_code)
    return FairMarketRent(
        zip_code=zip_code,
        year=FALLBACK_YEAR,
        bedrooms=clamped,
        amount=DEFAULT_FMR_RATES[clamped],
        source="FALLBACK",
    )


def get_housing_authority(zip_code: str) -> Optional[dict]:
    return HOUSING_AUTHORITIES.get((zip_code or "")[:3])


def check_section8_eligibility(monthly_rent: float, fmr: int) -> Section8Eligibility:
    """Rent at or below FMR qualifies for a Section 8 voucher."""
    if monthly_rent <= fmr:
        return Section8Eligibility(
            eligible=True,
            reason=f"Rent of ${monthly_rent:,.0f}/mo is at or below Section 8 FMR of ${fmr:,}/mo",
            max_rent=fmr,
        )
    return Section8Eligibility(
        eligible=False,
        reason=(
            f"Rent of ${monthly_rent:,.0f}/mo exceeds Section 8 FMR of ${fmr:,}/mo "
            f"by ${monthly_rent - fmr:,.0f}"
        ),
        max_rent=fmr,
    )


class FairMarketRentClient:
    """Client for the HUD USER FMR API."""

    BASE_URL = "https://www.huduser.gov/hudapi/public/fmr/data/{zip_code}"

    def __init__(
        self,
        api_token: str = "",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json", "User-Agent": "RentalIQ/1.0"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _request(self, zip_code: str, year: int) -> dict:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(
                self.BASE_URL.format(zip_code=zip_code),
                params={"year": year},
                headers=self._get_headers(),
            )

            if response.status_code == 401:
                logger.error("HUD API: Invalid API token")
                raise ValueError("Invalid HUD API token")

            if response.status_code != 200:
                logger.error(
                    "HUD API error",
                    status=response.status_code,
                    response=response.text[:200],
                )
                raise ValueError(f"HUD API error: {response.status_code}")

            return response.json()

    async def get_fair_market_rent(
        self,
        zip_code: str,
        bedrooms: int,
        year: Optional[int] = None,
    ) -> FairMarketRent:
        """Monthly FMR for a ZIP code and bedroom count. Falls back to regional tables."""
        year = year or date.today().year

        try:
            data = await self._request(zip_code, year)
            amount, data_year, metro_area = self._parse_rates(data, bedrooms)
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning("HUD FMR lookup failed, using fallback", zip_code=zip_code, error=str(e))
            return fallback_fair_market_rent(zip_code, bedrooms)

        if not amount:
            logger.warning("FMR amount not found in HUD data, using fallback", zip_code=zip_code)
            return fallback_fair_market_rent(zip_code, bedrooms)

        return FairMarketRent(
            zip_code=zip_code,
            year=data_year or year,
            bedrooms=bedrooms,
            amount=amount,
            source="HUD_API",
            metro_area=metro_area,
        )

    @staticmethod
    def _parse_rates(data: dict, bedrooms: int) -> tuple[Optional[int], Optional[int], Optional[str]]:
        """Extract the FMR for a bedroom count from a HUD response."""
        payload = data["data"]
        if not isinstance(payload, dict):
            return None, None, None
        rates = payload.get("basicdata", payload)
        if isinstance(rates, list):
            rates = rates[0] if rates else {}
        if not isinstance(rates, dict):
            return None, None, None

        def rate(count: int) -> Optional[float]:
            value = rates.get(f"fmr_{count}") or rates.get(f"fmr{count}")
            return float(value) if value else None

        if bedrooms > 4:
            four_bedroom = rate(4)
            amount = round(four_bedroom * (1 + EXTRA_BEDROOM_FACTOR * (bedrooms - 4))) if four_bedroom else None
        else:
            value = rate(max(bedrooms, 0))
            amount = round(value) if value else None

        year = payload.get("year") or rates.get("year")
        metro_area = payload.get("metro_name") or rates.get("metro_name") or payload.get("area_name")
        return amount, int(year) if year else None, metro_area
