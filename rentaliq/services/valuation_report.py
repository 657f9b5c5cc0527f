"""Full valuation report for a single subject property.

Combines sold comparables, rental comps, area risk, HUD Fair Market Rent and the
three investor opinions into one camelCase payload.
"""
import asyncio
from datetime import datetime, timezone
from typing import Optional, Protocol

import structlog

from rentaliq.analysis.area_rating import AreaRating, AreaRiskScorer, crime_comparison
from rentaliq.analysis.experts import ExpertSynthesizer
from rentaliq.geo import haversine_miles
from rentaliq.analysis.valuation import (
    RentSummary,
    SimilarityValuationEngine,
    ValuationEstimate,
    summarize_rents,
)
from rentaliq.errors import NoComparablesError
from rentaliq.models.property import Location, Property
from rentaliq.services.fair_market_rent import (
    FairMarketRent,
    FairMarketRentClient,
    check_section8_eligibility,
    get_housing_authority,
)

logger = structlog.get_logger()

SECTION8_OCCUPANCY_RATE = 95

INSPECTION_REQUIREMENTS = [
    "Working smoke and carbon monoxide detectors",
    "Safe electrical wiring and outlets",
    "Adequate heating and hot water",
    "No peeling paint (lead-based paint rules for pre-1978 homes)",
    "Secure doors, windows and locks",
]


class ComparablesProvider(Protocol):
    async def recently_sold(self, subject: Property) -> list[Property]:
        ...

    async def for_rent(self, subject: Property) -> list[Property]:
        ...


class ValuationReportService:
    """Builds the valuation report for a subject property."""

    def __init__(
        self,
        comparables: ComparablesProvider,
        engine: SimilarityValuationEngine,
        scorer: AreaRiskScorer,
        synthesizer: ExpertSynthesizer,
        fmr_client: FairMarketRentClient,
    ):
        self.comparables = comparables
        self.engine = engine
        self.scorer = scorer
        self.synthesizer = synthesizer
        self.fmr_client = fmr_client

    async def generate(self, subject: Property) -> dict:
        """Raises NoComparablesError when no priced comparable is found."""
        logger.info("Generating valuation report", address=subject.address, zip_code=subject.zip_code)

        sold, rentals = await asyncio.gather(
            self.comparables.recently_sold(subject),
            self.comparables.for_rent(subject),
        )

        ranked = self.engine.rank(subject, sold)
        if not ranked:
            logger.warning("No comparables found", address=subject.address)
            raise NoComparablesError()

        estimate = self.engine.estimate_from_comparables(subject, ranked)

        area_rating, fmr = await asyncio.gather(
            self.scorer.rate(Location.from_property(subject)),
            self.fmr_client.get_fair_market_rent(subject.zip_code, subject.bedrooms),
        )

        subject_price = subject.price or estimate.estimated_value
        opinions = await self.synthesizer.synthesize(
            subject_price=subject_price,
            comparable_avg_price=estimate.average_comparable_price,
            comparable_avg_rent=estimate.average_comparable_rent or estimate.estimated_rent,
            area_rating=area_rating,
            subsidy_fmr=fmr.amount,
        )

        report = {
            "propertyId": subject.id,
            "estimatedValue": estimate.estimated_value,
            "valueRange": {"low": estimate.value_low, "high": estimate.value_high},
            "pricePerSqft": estimate.price_per_sqft,
            "estimatedRent": estimate.estimated_rent,
            "rentRange": {"low": estimate.rent_low, "high": estimate.rent_high},
            "comparables": [comparable.to_dict() for comparable in estimate.comparables],
            "rentalComps": [self._rental_comp(subject, rental) for rental in rentals],
            "rentAnalysis": self._rent_analysis(summarize_rents([r.estimated_rent for r in rentals])),
            "crimeScore": self._crime_block(area_rating),
            "expertAnalyses": [opinion.to_dict() for opinion in opinions],
            "governmentHousing": self._government_housing(estimate, fmr, area_rating),
            "marketTrend": estimate.market_trend.value,
            "confidence": estimate.confidence.value,
            "averageSimilarity": round(estimate.average_similarity, 1),
            "insights": estimate.insights,
            "generatedAt": datetime.now(timezone.utc).isoformat(),
        }

        logger.info(
            "Valuation report generated",
            address=subject.address,
            value=estimate.estimated_value,
            grade=area_rating.grade,
            recommendations=[opinion.recommendation.value for opinion in opinions],
        )
        return report

    @staticmethod
    def _rental_comp(subject: Property, rental: Property) -> dict:
        distance = None
        if None not in (subject.latitude, subject.longitude, rental.latitude, rental.longitude):
            distance = round(
                haversine_miles(subject.latitude, subject.longitude, rental.latitude, rental.longitude), 2
            )

        rent = rental.estimated_rent or 0
        return {
            "address": rental.address,
            "monthlyRent": rent,
            "bedrooms": rental.bedrooms,
            "bathrooms": rental.bathrooms,
            "squareFeet": rental.square_feet,
            "rentPerSqft": round(rent / rental.square_feet, 2) if rental.square_feet else None,
            "distanceMiles": distance,
            "sourceUrl": rental.source_url,
        }

    @staticmethod
    def _rent_analysis(summary: Optional[RentSummary]) -> Optional[dict]:
        if summary is None:
            return None
        return {
            "averageRent": summary.average_rent,
            "medianRent": summary.median_rent,
            "rentRange": {"low": summary.rent_low, "high": summary.rent_high},
            "sampleSize": summary.sample_size,
        }

    @staticmethod
    def _crime_block(area_rating: AreaRating) -> dict:
        crime = area_rating.crime
        return {
            "overallScore": area_rating.grade,
            "scoreNumber": round(area_rating.score),
            "crimeGrade": area_rating.crime_grade,
            "violentCrimeRate": round(crime.violent_crimes_per_1000, 1) if crime else None,
            "propertyCrimeRate": round(crime.property_crimes_per_1000, 1) if crime else None,
            "comparison": crime_comparison(crime.violent_crimes_per_1000)
            if crime
            else "Crime data unavailable for this area",
            "recommendation": area_rating.crime_recommendation,
            "warnings": area_rating.warnings,
            "positives": area_rating.positives,
            "details": area_rating.details,
        }

    @staticmethod
    def _government_housing(
        estimate: ValuationEstimate,
        fmr: FairMarketRent,
        area_rating: AreaRating,
    ) -> dict:
        eligibility = check_section8_eligibility(estimate.estimated_rent, fmr.amount)
        authority = get_housing_authority(fmr.zip_code)

        if eligibility.eligible and area_rating.grade in ("A", "B", "C"):
            voucher_demand = "High"
        elif eligibility.eligible:
            voucher_demand = "Moderate"
        else:
            voucher_demand = "Low"

        recommendations = []
        if eligibility.eligible:
            recommendations.append(
                f"List with the local housing authority at up to ${fmr.amount:,}/mo to attract voucher holders"
            )
        else:
            recommendations.append(
                f"Market rent of ${estimate.estimated_rent:,}/mo is above FMR; Section 8 would lower income "
                f"to ${fmr.amount:,}/mo"
            )
        recommendations.append("Schedule a pre-inspection against Housing Quality Standards before listing")
        if area_rating.grade in ("D", "F"):
            recommendations.append("Budget for extra security and turnover in this area")

        return {
            "section8Eligible": eligibility.eligible,
            "eligibilityReason": eligibility.reason,
            "fairMarketRent": fmr.amount,
            "fmrSource": fmr.source,
            "fmrYear": fmr.year,
            "section8Potential": fmr.amount * 12,
            "voucherDemand": voucher_demand,
            "localHousingAuthority": authority["name"] if authority else "Local public housing agency",
            "housingAuthorityContact": authority,
            "inspectionRequirements": INSPECTION_REQUIREMENTS,
            "potentialMonthlyIncome": fmr.amount,
            "occupancyRate": SECTION8_OCCUPANCY_RATE,
            "recommendations": recommendations,
        }

