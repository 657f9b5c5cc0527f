import asyncio
from dataclasses import dataclass, field
from typing import Optional

import structlog

from rentaliq.data_sources.crime import CrimeStatistics, CrimeStatsClient
from rentaliq.data_sources.offenders import OffenderProximity, OffenderRegistryClient
from rentaliq.data_sources.schools import SchoolRatings, SchoolRatingsClient
from rentaliq.models.property import Location

logger = structlog.get_logger()

# Neutral sub-scores used when a lookup is unavailable
NEUTRAL_CRIME_SCORE = 50
NEUTRAL_OFFENDER_SCORE = 50
NEUTRAL_SCHOOL_RATING = 5

CRIME_WEIGHT = 0.5
OFFENDER_WEIGHT = 0.3
SCHOOL_WEIGHT = 0.2

OFFENDER_WARNING_COUNT = 5
OFFENDER_WARNING_FEET = 1000
EXCELLENT_SCHOOL_RATING = 8

NATIONAL_VIOLENT_CRIMES_PER_1000 = 3.8

CRIME_RECOMMENDATIONS = {
    "A": "Excellent safety rating. Very low crime area ideal for families and long-term investment.",
    "B": "Good safety rating. Below average crime rates make this a solid investment area.",
    "C": "Average safety rating. Crime rates are moderate. Consider security measures for rental properties.",
    "D": "Below average safety rating. Higher crime rates may affect property values and rental demand.",
    "F": "Poor safety rating. High crime area may present challenges for rental management and property values.",
}


def grade_for(score: float) -> str:
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    return "F"


def crime_comparison(violent_crimes_per_1000: float) -> str:
    """Violent crime rate relative to the national average, as a sentence fragment."""
    percent_diff = round(
        (NATIONAL_VIOLENT_CRIMES_PER_1000 - violent_crimes_per_1000) / NATIONAL_VIOLENT_CRIMES_PER_1000 * 100
    )
    if percent_diff > 0:
        return f"{percent_diff}% safer than national average"
    return f"{abs(percent_diff)}% higher crime than national average"


@dataclass
class AreaRating:
    grade: str
    score: float
    crime_grade: str
    crime_score: float
    offender_grade: str
    offender_score: float
    school_rating: float
    offender_count: int = 0
    nearest_offender_miles: Optional[float] = None
    crime: Optional[CrimeStatistics] = None
    warnings: list[str] = field(default_factory=list)
    positives: list[str] = field(default_factory=list)
    details: dict = field(default_factory=dict)

    @property
    def crime_recommendation(self) -> str:
        return CRIME_RECOMMENDATIONS[self.grade]

    def to_dict(self) -> dict:
        return {
            "overallGrade": self.grade,
            "overallScore": round(self.score, 1),
            "crimeGrade": self.crime_grade,
            "crimeScore": self.crime_score,
            "sexOffenderGrade": self.offender_grade,
            "sexOffenderScore": self.offender_score,
            "sexOffenderCount": self.offender_count,
            "sexOffenderDistance": self.nearest_offender_miles,
            "schoolRating": self.school_rating,
            "details": self.details,
            "warnings": self.warnings,
            "positives": self.positives,
        }


class AreaRiskScorer:
    """Combines crime, offender proximity and school signals into an A-F grade."""

    def __init__(
        self,
        crime_client: CrimeStatsClient,
        offender_client: OffenderRegistryClient,
        school_client: SchoolRatingsClient,
    ):
        self.crime_client = crime_client
        self.offender_client = offender_client
        self.school_client = school_client

    async def rate(self, location: Location) -> AreaRating:
        results = await asyncio.gather(
            self.crime_client.get_crime_statistics(location),
            self.offender_client.get_offender_proximity(location),
            self.school_client.get_school_ratings(location),
            return_exceptions=True,
        )

        crime, offenders, schools = [
            self._settled(name, result)
            for name, result in zip(("crime", "offenders", "schools"), results)
        ]
        rating = self.combine(crime, offenders, schools)

        logger.info(
            "Area rated",
            zip_code=location.zip_code,
            grade=rating.grade,
            score=round(rating.score, 1),
            crime_available=crime is not None,
            offenders_available=offenders is not None,
            schools_available=schools is not None,
        )
        return rating

    @staticmethod
    def _settled(name: str, result):
        if isinstance(result, Exception):
            logger.warning("Area sub-lookup failed", lookup=name, error=str(result))
            return None
        return result

    @staticmethod
    def combine(
        crime: Optional[CrimeStatistics],
        offenders: Optional[OffenderProximity],
        schools: Optional[SchoolRatings],
    ) -> AreaRating:
        """Weight the available sub-scores, substituting neutral values for missing ones."""
        crime_score = crime.score if crime else NEUTRAL_CRIME_SCORE
        offender_score = offenders.score if offenders else NEUTRAL_OFFENDER_SCORE
        school_rating = schools.average_rating if schools else NEUTRAL_SCHOOL_RATING

        score = (
            crime_score * CRIME_WEIGHT
            + offender_score * OFFENDER_WEIGHT
            + school_rating * 10 * SCHOOL_WEIGHT
        )
        crime_grade = grade_for(crime_score)

        warnings = []
        positives = []

        if crime:
            if crime_grade in ("D", "F"):
                warnings.append(f"High crime area (Grade {crime_grade})")
            elif crime_grade in ("A", "B"):
                positives.append(f"Low crime area (Grade {crime_grade})")

        if offenders:
            if offenders.within_1_mile > OFFENDER_WARNING_COUNT:
                warnings.append(f"{offenders.within_1_mile} registered sex offenders within 1 mile")
            elif offenders.within_1_mile == 0:
                positives.append("No registered sex offenders within 1 mile")

            nearest_feet = offenders.nearest_distance_feet
            if nearest_feet is not None and nearest_feet < OFFENDER_WARNING_FEET:
                warnings.append(f"Sex offender within {round(nearest_feet)} feet")

        if schools and schools.average_rating >= EXCELLENT_SCHOOL_RATING:
            positives.append(f"Excellent schools (avg rating: {schools.average_rating}/10)")

        details = {
            "totalCrimes": crime.total_incidents if crime else 0,
            "violentCrimes": crime.violent_crimes if crime else 0,
            "propertyCrimes": crime.property_crimes if crime else 0,
            "crimesPer1000": crime.crimes_per_1000 if crime else 0,
            "sexOffendersWithin1Mile": offenders.within_1_mile if offenders else 0,
            "sexOffendersWithinHalfMile": offenders.within_half_mile if offenders else 0,
            "nearestSexOffenderFeet": round(offenders.nearest_distance_feet)
            if offenders and offenders.nearest_distance_feet is not None
            else None,
            "schoolCount": schools.school_count if schools else 0,
        }

        return AreaRating(
            grade=grade_for(score),
            score=score,
            crime_grade=crime_grade,
            crime_score=crime_score,
            offender_grade=grade_for(offender_score),
            offender_score=offender_score,
            school_rating=school_rating,
            offender_count=offenders.count if offenders else 0,
            nearest_offender_miles=offenders.nearest_distance_miles if offenders else None,
            crime=crime,
            warnings=warnings,
            positives=positives,
            details=details,
        )
