"""API endpoint for HUD Fair Market Rent lookups."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from rentaliq.api.deps import get_fmr_client
from rentaliq.api.schemas import FairMarketRentResponse, HousingAuthority, Section8Check
from rentaliq.services.fair_market_rent import (
    FairMarketRentClient,
    check_section8_eligibility,
    get_housing_authority,
)

router = APIRouter(prefix="/section8", tags=["section8"])


@router.get("/fmr", response_model=FairMarketRentResponse)
async def fair_market_rent(
    zip_code: str = Query(..., pattern=r"^\d{5}$"),
    bedrooms: int = Query(2, ge=0, le=10),
    rent: Optional[float] = Query(None, gt=0, description="Proposed monthly rent to check against FMR"),
    client: FairMarketRentClient = Depends(get_fmr_client),
):
    fmr = await client.get_fair_market_rent(zip_code, bedrooms)
    authority = get_housing_authority(zip_code)

    eligibility = None
    if rent is not None:
        check = check_section8_eligibility(rent, fmr.amount)
        eligibility = Section8Check(eligible=check.eligible, reason=check.reason, max_rent=check.max_rent)

    return FairMarketRentResponse(
        zip_code=zip_code,
        bedrooms=fmr.bedrooms,
        fair_market_rent=fmr.amount,
        year=fmr.year,
        source=fmr.source,
        metro_area=fmr.metro_area,
        housing_authority=HousingAuthority(**authority) if authority else None,
        eligibility=eligibility,
    )
