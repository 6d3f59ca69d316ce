"""
Domain-specific exception hierarchy for the barber slot finder.

The slot calculator itself never raises; these errors belong to the layers
around it (store adapters, configuration, orchestration).
"""


class BarberSlotsError(Exception):
    """Base class for all application-level errors."""


class DataStoreError(BarberSlotsError):
    """Raised when booking data cannot be fetched or parsed."""


class BarberNotFoundError(BarberSlotsError):
    """Raised when no active barber matches the requested identifier."""


class ServiceNotFoundError(BarberSlotsError):
    """Raised when the service being booked does not belong to the barber."""


class ConfigurationError(BarberSlotsError):
    """Raised when required configuration values are missing."""
