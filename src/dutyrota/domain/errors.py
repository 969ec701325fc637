"""Exceptions raised by the duty rotation engine."""


class DutyRotaError(Exception):
    """Base class for all dutyrota errors."""


class InvalidInputError(DutyRotaError, ValueError):
    """Raised when a request cannot be scheduled at all.

    Examples are an empty roster or a date range that ends before it
    starts. Conditions that still allow a best-effort schedule (an
    unbalanced result, an override outside the range) are never raised.
    """
