"""Exception hierarchy shared by services, data sources and the API layer."""

from typing import Optional


class ErgboardError(Exception):
    """Base class for all application errors."""


class ValidationError(ErgboardError):
    """Malformed query parameters (bad period, missing or inverted custom range)."""


class ExternalApiError(ErgboardError):
    """Non-success response from the Concept2 API."""

    def __init__(self, status_code: int, body: str, endpoint: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint
        where = f" for {endpoint}" if endpoint else ""
        super().__init__(f"Concept2 API error ({status_code}){where}: {body}")


class SchemaValidationError(ErgboardError):
    """An external payload did not match the expected shape."""


class TokenRefreshError(ErgboardError):
    """The refresh grant was rejected or could not be completed."""


class SystemicError(ErgboardError):
    """The member directory or token store could not be reached."""


class ConfigurationError(ErgboardError):
    """A required setting is missing."""
