"""Builds the pipeline's services from settings."""
from typing import Optional

from rentaliq.analysis.area_rating import AreaRiskScorer
from rentaliq.analysis.experts import AnthropicNarrator, ExpertSynthesizer, Narrator, NullNarrator
from rentaliq.analysis.valuation import SimilarityValuationEngine
from rentaliq.config import Settings
from rentaliq.data_sources.crime import CrimeStatsClient
from rentaliq.data_sources.offenders import OffenderRegistryClient
from rentaliq.data_sources.schools import SchoolRatingsClient
from rentaliq.scrapers.base import SourceAdapter
from rentaliq.scrapers.bright_data import BrightDataAdapter
from rentaliq.scrapers.county_records import CountyRecordsAdapter
from rentaliq.scrapers.courthouse_auctions import CourthouseAuctionAdapter
from rentaliq.scrapers.craigslist import CraigslistAdapter
from rentaliq.scrapers.realtor import RealtorAdapter
from rentaliq.scrapers.zillow import ZillowAdapter
from rentaliq.services.aggregator import PropertyAggregator
from rentaliq.services.fair_market_rent import FairMarketRentClient
from rentaliq.services.job_orchestrator import JobOrchestrator, RetryPolicy
from rentaliq.services.valuation_report import ValuationReportService


def build_orchestrator(settings: Settings, attempts: Optional[int] = None) -> JobOrchestrator:
    return JobOrchestrator(
        api_token=settings.bright_data_api_token,
        retry_policy=RetryPolicy(
            attempts=attempts or settings.job_poll_attempts,
            delay=settings.job_poll_delay_seconds,
        ),
        timeout=settings.http_timeout_seconds,
    )


def build_adapters(settings: Settings) -> list[SourceAdapter]:
    """Every property source, paid ones included even when their credentials are blank."""
    timeout = settings.http_timeout_seconds
    return [
        BrightDataAdapter(build_orchestrator(settings), settings.bright_data_dataset_id, timeout=timeout),
        ZillowAdapter(settings.rapidapi_key, timeout=timeout),
        RealtorAdapter(settings.rapidapi_key, timeout=timeout),
        CountyRecordsAdapter(timeout=timeout),
        CraigslistAdapter(timeout=timeout),
        CourthouseAuctionAdapter(timeout=timeout),
    ]


def build_aggregator(settings: Settings) -> PropertyAggregator:
    return PropertyAggregator(build_adapters(settings), demo_count=settings.demo_property_count)


def build_narrator(settings: Settings) -> Narrator:
    if settings.anthropic_api_key:
        return AnthropicNarrator(settings.anthropic_api_key, model=settings.anthropic_model)
    return NullNarrator()


def build_area_scorer(settings: Settings) -> AreaRiskScorer:
    timeout = settings.http_timeout_seconds
    return AreaRiskScorer(
        crime_client=CrimeStatsClient(settings.fbi_api_key, timeout=timeout),
        offender_client=OffenderRegistryClient(
            build_orchestrator(settings, attempts=settings.offender_poll_attempts),
            settings.bright_data_offender_dataset_id,
            retry_policy=RetryPolicy(
                attempts=settings.offender_poll_attempts,
                delay=settings.job_poll_delay_seconds,
            ),
        ),
        school_client=SchoolRatingsClient(settings.great_schools_api_key, timeout=timeout),
    )


def build_fmr_client(settings: Settings) -> FairMarketRentClient:
    return FairMarketRentClient(settings.hud_api_token, timeout=settings.http_timeout_seconds)


def build_report_service(settings: Settings) -> ValuationReportService:
    return ValuationReportService(
        comparables=ZillowAdapter(settings.rapidapi_key, timeout=settings.http_timeout_seconds),
        engine=SimilarityValuationEngine(),
        scorer=build_area_scorer(settings),
        synthesizer=ExpertSynthesizer(build_narrator(settings)),
        fmr_client=build_fmr_client(settings),
    )
