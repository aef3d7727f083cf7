"""
Domain-specific exception hierarchy for the availability engine.
"""


class AvailabilityError(Exception):
    """Base class for all application-level errors."""


class InvalidInputError(AvailabilityError, ValueError):
    """Raised when an availability query is malformed; no partial result is produced."""


class CalendarAPIError(AvailabilityError):
    """Raised when external calendar busy times cannot be fetched or parsed."""


class ConfigurationError(AvailabilityError, ValueError):
    """Raised when the configuration references something that does not exist."""
