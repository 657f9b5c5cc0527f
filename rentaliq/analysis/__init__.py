from rentaliq.geo import haversine_miles, EARTH_RADIUS_MILES
from rentaliq.analysis.valuation import (
    SimilarityValuationEngine,
    ValuationEstimate,
    Comparable,
    ConfidenceLevel,
    MarketTrend,
    RentSummary,
    summarize_rents,
)
from rentaliq.analysis.area_rating import AreaRiskScorer, AreaRating, grade_for
from rentaliq.analysis.experts import (
    ExpertSynthesizer,
    ExpertOpinion,
    Archetype,
    RecommendationLevel,
    Narrator,
    NullNarrator,
    AnthropicNarrator,
)

__all__ = [
    "haversine_miles",
    "EARTH_RADIUS_MILES",
    "SimilarityValuationEngine",
    "ValuationEstimate",
    "Comparable",
    "ConfidenceLevel",
    "MarketTrend",
    "RentSummary",
    "summarize_rents",
    "AreaRiskScorer",
    "AreaRating",
    "grade_for",
    "ExpertSynthesizer",
    "ExpertOpinion",
    "Archetype",
    "RecommendationLevel",
    "Narrator",
    "NullNarrator",
    "AnthropicNarrator",
]
