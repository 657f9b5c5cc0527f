"""API endpoints for multi-source property search."""
from fastapi import APIRouter, Depends, HTTPException
import structlog

from rentaliq.api.deps import get_aggregator
from rentaliq.api.schemas import SearchRequest, SearchResponse
from rentaliq.errors import LocationRequiredError
from rentaliq.models.property import Property, SearchCriteria
from rentaliq.services.aggregator import PropertyAggregator

logger = structlog.get_logger()
router = APIRouter(prefix="/properties", tags=["properties"])


def _response(criteria: SearchCriteria, properties: list[Property]) -> SearchResponse:
    return SearchResponse(
        location=criteria.location_label,
        total=len(properties),
        demo=bool(properties) and all(prop.is_demo for prop in properties),
        properties=[prop.to_dict() for prop in properties],
    )


@router.post("/search", response_model=SearchResponse)
async def search_properties(
    request: SearchRequest,
    aggregator: PropertyAggregator = Depends(get_aggregator),
):
    """
    Search every configured source.

    Falls back to clearly flagged placeholder listings when no source returns data.
    """
    criteria = request.to_criteria()
    try:
        properties = await aggregator.search_all(criteria)
    except LocationRequiredError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _response(criteria, properties)


@router.post("/search/free", response_model=SearchResponse)
async def search_free_properties(
    request: SearchRequest,
    aggregator: PropertyAggregator = Depends(get_aggregator),
):
    """Search only the free public sources (county records, Craigslist, courthouse auctions)."""
    criteria = request.to_criteria()
    try:
        properties = await aggregator.search_free_sources(criteria)
    except LocationRequiredError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return _response(criteria, properties)
