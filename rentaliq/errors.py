class LocationRequiredError(ValueError):
    """Raised when a search carries neither city/state nor a postal code."""

    def __init__(self, message: str = "City and state, or a ZIP code, are required to search"):
        super().__init__(message)


class NoComparablesError(ValueError):
    """Raised when a valuation is requested without any comparable properties."""

    def __init__(self, message: str = "No comparable properties found for this address"):
        super().__init__(message)
