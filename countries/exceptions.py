class CountryCacheError(Exception):
    """Base class for errors raised by the countries app."""


class ExternalSourceError(CountryCacheError):
    """One of the external data sources was unreachable or answered badly."""

    def __init__(self, source, details):
        self.source = source
        self.details = details
        super().__init__(f"Could not fetch data from {source}: {details}")


class StoreError(CountryCacheError):
    """The cache database could not be read or written."""
