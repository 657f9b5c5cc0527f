"""Tests for HUD Fair Market Rent lookup and Section 8 eligibility."""
import asyncio

import httpx
import pytest

from rentaliq.services.fair_market_rent import (
    FairMarketRentClient,
    check_section8_eligibility,
    fallback_fair_market_rent,
    get_housing_authority,
)


def make_client(handler):
    return FairMarketRentClient(api_token="token", transport=httpx.MockTransport(handler))


class TestFallback:
    """Tests for the regional fallback tables."""

    def test_metro_table(self):
        """Known ZIP prefixes use their metro rates."""
        fmr = fallback_fair_market_rent("78201", 3)

        assert fmr.amount == 1881
        assert fmr.metro_area == "San Antonio"
        assert fmr.source == "FALLBACK"
        assert fmr.year == 2024

    def test_default_table(self):
        """Unknown prefixes use the national default rates."""
        fmr = fallback_fair_market_rent("99999", 2)
        assert fmr.amount == 1300
        assert fmr.metro_area is None

    def test_bedrooms_clamped(self):
        """Bedroom counts outside 0-6 are clamped to the table."""
        assert fallback_fair_market_rent("78701", 9).amount == 3851
        assert fallback_fair_market_rent("78701", 9).bedrooms == 6
        assert fallback_fair_market_rent("78701", -1).amount == 1254


class TestFairMarketRentClient:
    """Tests for the HUD API client."""

    def test_parses_basicdata(self):
        """Rates, year and metro come from the HUD response."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={
                "data": {
                    "year": "2025",
                    "metro_name": "Austin-Round Rock, TX MSA",
                    "basicdata": {"fmr_2": 1730, "fmr_4": 2000},
                }
            })

        fmr = asyncio.run(make_client(handler).get_fair_market_rent("78701", 2, year=2025))

        assert fmr.amount == 1730
        assert fmr.year == 2025
        assert fmr.source == "HUD_API"
        assert fmr.metro_area == "Austin-Round Rock, TX MSA"
        assert requests[0].url.path == "/hudapi/public/fmr/data/78701"
        assert requests[0].url.params["year"] == "2025"
        assert requests[0].headers["Authorization"] == "Bearer token"

    def test_list_shaped_basicdata(self):
        """Small-area responses list their rates; the first entry is used."""
        payload = {"data": {"basicdata": [{"fmr2": "1500", "year": 2024}, {"fmr2": "9999"}]}}
        fmr = asyncio.run(
            make_client(lambda r: httpx.Response(200, json=payload)).get_fair_market_rent("78701", 2, year=2024)
        )
        assert fmr.amount == 1500
        assert fmr.year == 2024

    def test_large_units_extrapolated(self):
        """Each bedroom beyond four adds 15% of the 4BR rate."""
        payload = {"data": {"basicdata": {"fmr_4": 2000}}}
        fmr = asyncio.run(
            make_client(lambda r: httpx.Response(200, json=payload)).get_fair_market_rent("78701", 6, year=2024)
        )
        assert fmr.amount == 2600

    def test_invalid_token_falls_back(self):
        """A 401 from HUD uses the regional table instead of failing."""
        fmr = asyncio.run(make_client(lambda r: httpx.Response(401)).get_fair_market_rent("78201", 3, year=2024))
        assert fmr.source == "FALLBACK"
        assert fmr.amount == 1881

    def test_missing_rate_falls_back(self):
        """A response without the requested bedroom rate falls back."""
        payload = {"data": {"basicdata": {"fmr_2": 1730}}}
        fmr = asyncio.run(
            make_client(lambda r: httpx.Response(200, json=payload)).get_fair_market_rent("78701", 3, year=2024)
        )
        assert fmr.source == "FALLBACK"
        assert fmr.amount == 2381

    def test_transport_error_falls_back(self):
        """Network failures fall back to the table."""
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        fmr = asyncio.run(make_client(handler).get_fair_market_rent("99999", 1, year=2024))
        assert fmr.amount == 1000

    @pytest.mark.parametrize(
        "payload",
        [{"data": []}, {"data": "No data"}, {"data": {"basicdata": ["x"]}}, ["not", "an", "object"]],
    )
    def test_malformed_payload_falls_back(self, payload):
        """Unexpected response shapes use the regional table."""
        fmr = asyncio.run(
            make_client(lambda r: httpx.Response(200, json=payload)).get_fair_market_rent("78701", 2, year=2024)
        )
        assert fmr.source == "FALLBACK"
        assert fmr.amount == 1730


class TestEligibility:
    """Tests for Section 8 eligibility and housing authority lookup."""

    def test_rent_at_or_below_fmr_is_eligible(self):
        """Rent up to and including FMR qualifies."""
        assert check_section8_eligibility(1800, 1881).eligible
        assert check_section8_eligibility(1881, 1881).eligible

    def test_rent_above_fmr(self):
        """Rent above FMR does not qualify and the gap is reported."""
        result = check_section8_eligibility(2000, 1881)
        assert not result.eligible
        assert "by $119" in result.reason
        assert result.max_rent == 1881

    def test_housing_authority(self):
        """Authorities are found by ZIP prefix."""
        assert get_housing_authority("78205")["name"] == "San Antonio Housing Authority"
        assert get_housing_authority("10001") is None
