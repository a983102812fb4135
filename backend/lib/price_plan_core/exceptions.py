"""
Exception hierarchy for the price plan comparator.

An unknown meter is reported as None by the services, never as an exception.
"""


class PricePlanError(Exception):
    """Base exception for the price plan comparator."""


class ConfigurationError(PricePlanError):
    """Settings or the price plan catalog are invalid."""


class ReadingFormatError(PricePlanError):
    """An imported reading could not be parsed."""


class ReadingStoreError(PricePlanError):
    """The reading store backend failed."""


class CostCalculationError(PricePlanError):
    """Cost cannot be computed for the meter's readings."""


class EmptyReadingSetError(CostCalculationError):
    """The meter is known but has no readings to average."""


class UndefinedElapsedTimeError(CostCalculationError):
    """All readings share one timestamp, so no time has elapsed."""


def require(condition: bool, message: str, exc: type = PricePlanError):
    """Raise the given exception if condition is False."""
    if not condition:
        raise exc(message)
