"""Failure kinds raised by the domain services.

The HTTP layer maps these onto status codes; services only classify.
"""

from typing import Optional


class OutletsServiceError(Exception):
    """Base class for errors raised by the outlets services."""

    pass


class ValidationError(OutletsServiceError):
    """Input is malformed or out of range. Nothing was written."""

    pass


class NotFoundError(OutletsServiceError):
    """A referenced outlet, category or ledger pair does not exist."""

    def __init__(self, entity: str, key: object):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ConflictRolledBackError(OutletsServiceError):
    """A multi-step write failed partway and was rolled back as a whole.

    The original failure is available as ``__cause__``.
    """

    def __init__(self, unit: str, message: Optional[str] = None):
        self.unit = unit
        super().__init__(message or f"{unit} failed and was rolled back")


class InternalError(OutletsServiceError):
    """The backing store is unreachable or failed unexpectedly."""

    pass


__all__ = [
    "OutletsServiceError",
    "ValidationError",
    "NotFoundError",
    "ConflictRolledBackError",
    "InternalError",
]
