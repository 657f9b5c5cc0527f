from rentaliq.data_sources.crime import CrimeStatsClient, CrimeStatistics
from rentaliq.data_sources.offenders import OffenderRegistryClient, OffenderProximity
from rentaliq.data_sources.schools import SchoolRatingsClient, SchoolRatings

__all__ = [
    "CrimeStatsClient",
    "CrimeStatistics",
    "OffenderRegistryClient",
    "OffenderProximity",
    "SchoolRatingsClient",
    "SchoolRatings",
]
