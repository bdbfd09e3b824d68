"""Error taxonomy for ingestion and queries."""

from typing import Optional


class WeatherAnalyzerError(Exception):
    """Base class for all service errors."""


class TransportError(WeatherAnalyzerError):
    """The weather provider could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(WeatherAnalyzerError):
    """The provider payload is malformed or incomplete."""


class DuplicateRecordError(WeatherAnalyzerError):
    """A record with the same location and timestamp is already stored."""


class RecordNotFoundError(WeatherAnalyzerError):
    """The requested record does not exist."""


class IngestionInternalError(WeatherAnalyzerError):
    """Unexpected failure inside an ingestion cycle."""
