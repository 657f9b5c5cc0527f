from rentaliq.models.property import Property, PropertyType, SearchCriteria, Location
from rentaliq.models.scrape_job import ScrapeJob, ScrapeJobStatus

__all__ = ["Property", "PropertyType", "SearchCriteria", "Location", "ScrapeJob", "ScrapeJobStatus"]
