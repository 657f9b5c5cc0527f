"""Service providers for route handlers. Tests swap these via app.dependency_overrides."""
from fastapi import Depends

from rentaliq.analysis.area_rating import AreaRiskScorer
from rentaliq.config import Settings, get_settings
from rentaliq.services import factory
from rentaliq.services.aggregator import PropertyAggregator
from rentaliq.services.fair_market_rent import FairMarketRentClient
from rentaliq.services.valuation_report import ValuationReportService


def get_aggregator(settings: Settings = Depends(get_settings)) -> PropertyAggregator:
    return factory.build_aggregator(settings)


def get_report_service(settings: Settings = Depends(get_settings)) -> ValuationReportService:
    return factory.build_report_service(settings)


def get_area_scorer(settings: Settings = Depends(get_settings)) -> AreaRiskScorer:
    return factory.build_area_scorer(settings)


def get_fmr_client(settings: Settings = Depends(get_settings)) -> FairMarketRentClient:
    return factory.build_fmr_client(settings)
