from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import structlog

from rentaliq.geo import haversine_miles
from rentaliq.errors import NoComparablesError
from rentaliq.models.property import Property

logger = structlog.get_logger()

MAX_COMPARABLES = 10
RANGE_PERCENT = 0.10
# Monthly rent proxy when no comparable carries a rent figure
RENT_TO_VALUE_RATIO = 0.005

# Similarity penalties: (points per unit of difference, cap)
BEDROOM_PENALTY = (10, 20)
BATHROOM_PENALTY = (7.5, 15)
SQFT_PERCENT_PENALTY = (100, 25)
YEAR_BUILT_PENALTY = (0.5, 15)
DISTANCE_PENALTY = (2, 10)
PROPERTY_TYPE_PENALTY = 20


class ConfidenceLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class MarketTrend(str, Enum):
    APPRECIATING = "Appreciating"
    STABLE = "Stable"
    DECLINING = "Declining"


@dataclass
class Comparable:
    property: Property
    similarity: float
    distance_miles: Optional[float] = None

    @property
    def price(self) -> float:
        return self.property.price or 0

    @property
    def rent(self) -> Optional[float]:
        return self.property.estimated_rent

    @property
    def weight(self) -> float:
        return self.similarity / 100

    def to_dict(self) -> dict:
        prop = self.property
        return {
            "address": prop.address,
            "city": prop.city,
            "zipCode": prop.zip_code,
            "price": self.price,
            "bedrooms": prop.bedrooms,
            "bathrooms": prop.bathrooms,
            "squareFeet": prop.square_feet,
            "yearBuilt": prop.year_built,
            "propertyType": prop.property_type.value,
            "pricePerSqft": round(self.price / prop.square_feet) if prop.square_feet else None,
            "rentEstimate": self.rent,
            "daysOnMarket": prop.days_on_market,
            "similarity": round(self.similarity, 1),
            "distanceMiles": round(self.distance_miles, 2) if self.distance_miles is not None else None,
        }


@dataclass
class ValuationEstimate:
    estimated_value: int
    value_low: int
    value_high: int
    estimated_rent: int
    rent_low: int
    rent_high: int
    confidence: ConfidenceLevel
    market_trend: MarketTrend
    average_similarity: float
    comparables: list[Comparable]
    rent_from_comparables: bool
    price_per_sqft: Optional[int] = None
    rent_per_sqft: Optional[float] = None
    average_days_on_market: Optional[float] = None
    insights: list[str] = field(default_factory=list)

    @property
    def average_comparable_price(self) -> float:
        return sum(c.price for c in self.comparables) / len(self.comparables)

    @property
    def average_comparable_rent(self) -> Optional[float]:
        rents = [c.rent for c in self.comparables if c.rent]
        return sum(rents) / len(rents) if rents else None


@dataclass
class RentSummary:
    average_rent: int
    median_rent: int
    rent_low: int
    rent_high: int
    sample_size: int


def _capped(difference: float, penalty: tuple[float, float]) -> float:
    per_unit, cap = penalty
    return min(difference * per_unit, cap)


def confidence_tier(average_similarity: float) -> ConfidenceLevel:
    if average_similarity >= 80:
        return ConfidenceLevel.HIGH
    if average_similarity >= 60:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def market_trend(days_on_market: list[int]) -> MarketTrend:
    """Trend from average days on market. No data reads as Stable."""
    if not days_on_market:
        return MarketTrend.STABLE
    average = sum(days_on_market) / len(days_on_market)
    if average < 30:
        return MarketTrend.APPRECIATING
    if average < 60:
        return MarketTrend.STABLE
    return MarketTrend.DECLINING


def _weighted_average(pairs: list[tuple[float, float]]) -> float:
    """Average of (value, weight) pairs; plain mean when every weight is zero."""
    total_weight = sum(weight for _, weight in pairs)
    if total_weight <= 0:
        return sum(value for value, _ in pairs) / len(pairs)
    return sum(value * weight for value, weight in pairs) / total_weight


class SimilarityValuationEngine:
    """Values a subject property from similarity-weighted comparables."""

    def __init__(self, max_comparables: int = MAX_COMPARABLES):
        self.max_comparables = max_comparables

    def score(
        self,
        subject: Property,
        comparable: Property,
        distance_miles: Optional[float] = None,
    ) -> float:
        """Similarity of a comparable to the subject, 0-100."""
        score = 100.0

        score -= _capped(abs((subject.bedrooms or 0) - (comparable.bedrooms or 0)), BEDROOM_PENALTY)
        score -= _capped(abs((subject.bathrooms or 0) - (comparable.bathrooms or 0)), BATHROOM_PENALTY)

        if subject.square_feet and comparable.square_feet:
            percent_diff = abs(subject.square_feet - comparable.square_feet) / subject.square_feet
            score -= _capped(percent_diff, SQFT_PERCENT_PENALTY)

        if subject.year_built and comparable.year_built:
            score -= _capped(abs(subject.year_built - comparable.year_built), YEAR_BUILT_PENALTY)

        if subject.property_type != comparable.property_type:
            score -= PROPERTY_TYPE_PENALTY

        if distance_miles:
            score -= _capped(distance_miles, DISTANCE_PENALTY)

        return max(0.0, score)

    def rank(self, subject: Property, candidates: list[Property]) -> list[Comparable]:
        """Score priced candidates and return the most similar, best first."""
        comparables = []
        for candidate in candidates:
            if not candidate.price or candidate.price <= 0:
                continue

            distance = None
            if None not in (subject.latitude, subject.longitude, candidate.latitude, candidate.longitude):
                distance = haversine_miles(
                    subject.latitude, subject.longitude, candidate.latitude, candidate.longitude
                )

            comparables.append(
                Comparable(
                    property=candidate,
                    similarity=self.score(subject, candidate, distance),
                    distance_miles=distance,
                )
            )

        comparables.sort(key=lambda c: c.similarity, reverse=True)
        return comparables[: self.max_comparables]

    def estimate(self, subject: Property, candidates: list[Property]) -> ValuationEstimate:
        """Value and rent estimate for the subject.

        Raises NoComparablesError when no candidate carries a price; callers are
        expected to check for comparables first.
        """
        return self.estimate_from_comparables(subject, self.rank(subject, candidates))

    def estimate_from_comparables(
        self,
        subject: Property,
        comparables: list[Comparable],
    ) -> ValuationEstimate:
        if not comparables:
            raise NoComparablesError()

        estimated_value = round(_weighted_average([(c.price, c.weight) for c in comparables]))

        rent_pairs = [(c.rent, c.weight) for c in comparables if c.rent and c.rent > 0]
        if rent_pairs:
            estimated_rent = round(_weighted_average(rent_pairs))
        else:
            estimated_rent = round(estimated_value * RENT_TO_VALUE_RATIO)

        average_similarity = sum(c.similarity for c in comparables) / len(comparables)
        days = [c.property.days_on_market for c in comparables if c.property.days_on_market is not None]
        trend = market_trend(days)

        price_per_sqft = None
        rent_per_sqft = None
        if subject.square_feet:
            price_per_sqft = round(estimated_value / subject.square_feet)
            rent_per_sqft = round(estimated_rent / subject.square_feet, 2)

        estimate = ValuationEstimate(
            estimated_value=estimated_value,
            value_low=round(estimated_value * (1 - RANGE_PERCENT)),
            value_high=round(estimated_value * (1 + RANGE_PERCENT)),
            estimated_rent=estimated_rent,
            rent_low=round(estimated_rent * (1 - RANGE_PERCENT)),
            rent_high=round(estimated_rent * (1 + RANGE_PERCENT)),
            confidence=confidence_tier(average_similarity),
            market_trend=trend,
            average_similarity=average_similarity,
            comparables=comparables,
            rent_from_comparables=bool(rent_pairs),
            price_per_sqft=price_per_sqft,
            rent_per_sqft=rent_per_sqft,
            average_days_on_market=sum(days) / len(days) if days else None,
        )
        estimate.insights = self._insights(subject, estimate)

        logger.info(
            "Valuation estimated",
            address=subject.address,
            value=estimated_value,
            comparables=len(comparables),
            confidence=estimate.confidence.value,
        )
        return estimate

    @staticmethod
    def _insights(subject: Property, estimate: ValuationEstimate) -> list[str]:
        location = ", ".join(part for part in (subject.city, subject.state) if part)
        insights = [
            f"Analyzed {len(estimate.comparables)} comparable properties in {location or subject.zip_code}",
            f"Average similarity score: {estimate.average_similarity:.0f}%",
        ]
        if estimate.average_days_on_market is not None:
            insights.append(f"Average days on market: {estimate.average_days_on_market:.0f}")
        if estimate.price_per_sqft:
            insights.append(f"Price per square foot: ${estimate.price_per_sqft}")
        insights.append(f"Estimated monthly rent: ${estimate.estimated_rent:,}")
        if not estimate.rent_from_comparables:
            insights.append("No comparable rents available; rent estimated at 0.5% of value")

        if estimate.market_trend == MarketTrend.APPRECIATING:
            insights.append("Market is appreciating - properties selling quickly")
        elif estimate.market_trend == MarketTrend.DECLINING:
            insights.append("Market is cooling - properties taking longer to sell")
        else:
            insights.append("Market is stable")
        return insights


def summarize_rents(rents: list[float]) -> Optional[RentSummary]:
    """Average, median and quartile rents for an area. None when there is no data."""
    rents = sorted(r for r in rents if r and r > 0)
    if not rents:
        return None

    count = len(rents)
    return RentSummary(
        average_rent=round(sum(rents) / count),
        median_rent=round(rents[count // 2]),
        rent_low=round(rents[int(count * 0.25)]),
        rent_high=round(rents[int(count * 0.75)]),
        sample_size=count,
    )
