"""API endpoints for valuation reports and area ratings."""
from fastapi import APIRouter, Depends, HTTPException
import structlog

from rentaliq.analysis.area_rating import AreaRiskScorer
from rentaliq.api.deps import get_area_scorer, get_report_service
from rentaliq.api.schemas import LocationRequest, SubjectPropertyRequest
from rentaliq.errors import NoComparablesError
from rentaliq.services.valuation_report import ValuationReportService

logger = structlog.get_logger()
router = APIRouter(prefix="/analysis", tags=["analysis"])


@router.post("/report")
async def valuation_report(
    request: SubjectPropertyRequest,
    service: ValuationReportService = Depends(get_report_service),
):
    """
    Full valuation report for a subject property.

    Includes:
    - Similarity-weighted value and rent estimates
    - Sold comparables and rental comps
    - Area crime grade
    - Aggressive, conservative and Section 8 investor opinions
    - HUD Fair Market Rent and voucher outlook
    """
    try:
        subject = request.to_property()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        return await service.generate(subject)
    except NoComparablesError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/area-rating")
async def area_rating(
    request: LocationRequest,
    scorer: AreaRiskScorer = Depends(get_area_scorer),
):
    """A-F area grade from crime, registered offender and school data."""
    rating = await scorer.rate(request.to_location())
    return rating.to_dict()
