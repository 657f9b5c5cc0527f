"""Tests for area risk scoring and its data-source clients."""
import asyncio

import httpx
import pytest

from rentaliq.analysis.area_rating import AreaRiskScorer, crime_comparison, grade_for
from rentaliq.data_sources.crime import CrimeStatistics, CrimeStatsClient
from rentaliq.data_sources.offenders import OffenderProximity, OffenderRegistryClient
from rentaliq.data_sources.schools import SchoolRatings, SchoolRatingsClient
from rentaliq.models.property import Location
from rentaliq.services.job_orchestrator import JobOrchestrator, RetryPolicy


def crime(score, total=1000):
    return CrimeStatistics(
        score=score,
        total_incidents=total,
        violent_crimes=round(total * 0.3),
        property_crimes=round(total * 0.7),
        crimes_per_1000=total / 100,
    )


def offenders(within_1_mile=0, nearest_miles=None, within_half_mile=0):
    return OffenderProximity(
        count=within_1_mile,
        within_1_mile=within_1_mile,
        within_half_mile=within_half_mile,
        nearest_distance_miles=nearest_miles,
        score=max(0, 100 - within_1_mile * 10),
    )


class FakeLookup:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    async def _lookup(self, location):
        if self.error:
            raise self.error
        return self.result

    get_crime_statistics = _lookup
    get_offender_proximity = _lookup
    get_school_ratings = _lookup


class TestCombine:
    """Tests for weighting sub-scores into a grade."""

    def test_safe_area_grades_a(self):
        """Crime 95, no offenders and 9/10 schools rate 95.5, grade A."""
        rating = AreaRiskScorer.combine(crime(95), offenders(0), SchoolRatings(average_rating=9, school_count=4))

        assert rating.score == pytest.approx(95.5)
        assert rating.grade == "A"
        assert rating.warnings == []
        assert rating.positives == [
            "Low crime area (Grade A)",
            "No registered sex offenders within 1 mile",
            "Excellent schools (avg rating: 9/10)",
        ]
        assert rating.details["schoolCount"] == 4

    def test_all_missing_uses_neutral_values(self):
        """No data at all gives the neutral 50, grade F, with no flags."""
        rating = AreaRiskScorer.combine(None, None, None)

        assert rating.score == 50
        assert rating.grade == "F"
        assert rating.crime_score == 50
        assert rating.offender_score == 50
        assert rating.school_rating == 5
        assert rating.warnings == []
        assert rating.positives == []
        assert rating.details["nearestSexOffenderFeet"] is None

    def test_offender_warnings(self):
        """Many nearby offenders and a very close one both warn."""
        rating = AreaRiskScorer.combine(None, offenders(within_1_mile=6, nearest_miles=0.1), None)

        assert "6 registered sex offenders within 1 mile" in rating.warnings
        assert "Sex offender within 528 feet" in rating.warnings
        assert rating.offender_score == 40
        assert rating.details["nearestSexOffenderFeet"] == 528

    def test_high_crime_warning(self):
        """A D or F crime grade is flagged."""
        rating = AreaRiskScorer.combine(crime(40), None, None)
        assert rating.crime_grade == "F"
        assert rating.warnings == ["High crime area (Grade F)"]

    def test_to_dict(self):
        """Serialized rating rounds the score and keeps camelCase keys."""
        data = AreaRiskScorer.combine(crime(87), offenders(1, nearest_miles=0.5), None).to_dict()

        assert data["overallGrade"] == "B"
        assert data["overallScore"] == 80.5
        assert data["sexOffenderScore"] == 90
        assert data["sexOffenderDistance"] == 0.5
        assert data["crimeGrade"] == "B"


class TestRate:
    """Tests for the concurrent area lookup."""

    def test_failing_lookup_treated_as_neutral(self):
        """A raising client contributes neutral values instead of failing."""
        scorer = AreaRiskScorer(
            FakeLookup(error=RuntimeError("crime api down")),
            FakeLookup(offenders(0)),
            FakeLookup(SchoolRatings(average_rating=5, school_count=2)),
        )
        rating = asyncio.run(scorer.rate(Location(zip_code="78701", state="TX")))

        assert rating.crime_score == 50
        assert rating.offender_score == 100
        assert rating.score == pytest.approx(25 + 30 + 10)
        assert rating.grade == "D"

    def test_all_sources_present(self):
        """Results from every client flow into the rating."""
        scorer = AreaRiskScorer(
            FakeLookup(crime(95)),
            FakeLookup(offenders(0)),
            FakeLookup(SchoolRatings(average_rating=9, school_count=3)),
        )
        rating = asyncio.run(scorer.rate(Location(latitude=30.2, longitude=-97.7, zip_code="78701", state="TX")))
        assert rating.grade == "A"


class TestHelpers:
    """Tests for grade bands and the national comparison."""

    def test_grade_boundaries(self):
        """Bands are inclusive at their lower edge."""
        assert grade_for(90) == "A"
        assert grade_for(89.99) == "B"
        assert grade_for(80) == "B"
        assert grade_for(70) == "C"
        assert grade_for(60) == "D"
        assert grade_for(59.99) == "F"

    def test_crime_comparison(self):
        """Violent crime is compared against 3.8 per 1,000."""
        assert crime_comparison(1.9) == "50% safer than national average"
        assert crime_comparison(5.7) == "50% higher crime than national average"


class TestCrimeStatsClient:
    """Tests for the FBI crime data client."""

    def test_parses_state_totals(self):
        """Arrest totals become a safety score and split counts."""
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"data": [{"value": 2000}]})

        client = CrimeStatsClient(api_key="key", transport=httpx.MockTransport(handler))
        stats = asyncio.run(client.get_crime_statistics(Location(state="tx")))

        assert requests[0].url.path.endswith("/state/TX/all")
        assert requests[0].url.params["API_KEY"] == "key"
        assert stats.score == 50
        assert stats.violent_crimes == 600
        assert stats.property_crimes == 1400
        assert stats.crimes_per_1000 == 20
        assert stats.violent_crimes_per_1000 == pytest.approx(6.0)

    def test_errors_return_none(self):
        """HTTP errors and odd payloads give no statistics."""
        failing = CrimeStatsClient(transport=httpx.MockTransport(lambda r: httpx.Response(503)))
        empty = CrimeStatsClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"data": []})))

        assert asyncio.run(failing.get_crime_statistics(Location(state="TX"))) is None
        assert asyncio.run(empty.get_crime_statistics(Location(state="TX"))) is None
        assert asyncio.run(empty.get_crime_statistics(Location(zip_code="78701"))) is None


class TestOffenderRegistryClient:
    """Tests for offender proximity."""

    def test_summarize_distances(self):
        """Records are bucketed by distance from the location."""
        location = Location(latitude=0.0, longitude=0.0, zip_code="78701")
        records = [
            {"latitude": 0.0, "longitude": 0.01},
            {"latitude": "0.0", "longitude": "0.005"},
            {"latitude": 0.0, "longitude": 0.1},
            {"name": "no coordinates"},
        ]
        proximity = OffenderRegistryClient.summarize(location, records)

        assert proximity.count == 4
        assert proximity.within_1_mile == 2
        assert proximity.within_half_mile == 1
        assert proximity.nearest_distance_miles == pytest.approx(0.345, abs=0.01)
        assert proximity.score == 80

    def test_unlocated_records_rate_neutral(self):
        """Offenders without coordinates never earn the no-offenders positive."""
        location = Location(latitude=30.2, longitude=-97.7, zip_code="78701")
        records = [{"name": f"offender {i}"} for i in range(8)] + ["junk"]

        assert OffenderRegistryClient.summarize(location, records) is None

        rating = AreaRiskScorer.combine(None, OffenderRegistryClient.summarize(location, records), None)
        assert rating.offender_score == 50
        assert "No registered sex offenders within 1 mile" not in rating.positives

    def test_live_scrape(self):
        """Registry records come back through a trigger/poll cycle."""
        posted = []

        def handler(request):
            if request.method == "POST":
                posted.append(request)
                return httpx.Response(200, json={"snapshot_id": "s_off"})
            return httpx.Response(200, json=[{"latitude": 30.2, "longitude": -97.7}])

        orchestrator = JobOrchestrator(api_token="token", transport=httpx.MockTransport(handler))
        client = OffenderRegistryClient(orchestrator, dataset_id="gd_off", retry_policy=RetryPolicy(attempts=1, delay=0))
        proximity = asyncio.run(
            client.get_offender_proximity(Location(latitude=30.2, longitude=-97.7, zip_code="78701"))
        )

        assert posted[0].url.params["dataset_id"] == "gd_off"
        assert proximity.within_1_mile == 1
        assert proximity.nearest_distance_miles == 0
        assert proximity.score == 90

    def test_unconfigured_returns_none(self):
        """Without a token or dataset no scrape is attempted."""
        client = OffenderRegistryClient(JobOrchestrator(api_token=""), dataset_id="gd_x")
        location = Location(latitude=30.2, longitude=-97.7, zip_code="78701")
        assert asyncio.run(client.get_offender_proximity(location)) is None

    def test_needs_coordinates(self):
        """A location without coordinates cannot be measured against."""
        client = OffenderRegistryClient(JobOrchestrator(api_token="token"), dataset_id="gd_x")
        assert asyncio.run(client.get_offender_proximity(Location(zip_code="78701"))) is None


class TestSchoolRatingsClient:
    """Tests for the school ratings client."""

    def test_averages_ratings(self):
        """Unrated schools count toward the total but not the average."""
        payload = {"schools": [{"rating": 8}, {"rating": "9"}, {"rating": None}]}
        client = SchoolRatingsClient(
            api_key="key", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=payload))
        )
        ratings = asyncio.run(client.get_school_ratings(Location(latitude=30.2, longitude=-97.7)))

        assert ratings.average_rating == 8.5
        assert ratings.school_count == 3

    def test_missing_key_or_coordinates(self):
        """No key or no coordinates means no lookup."""
        assert asyncio.run(SchoolRatingsClient(api_key="").get_school_ratings(Location(latitude=1, longitude=1))) is None
        assert asyncio.run(SchoolRatingsClient(api_key="key").get_school_ratings(Location(zip_code="78701"))) is None
