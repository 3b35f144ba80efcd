# barbershop/errors.py
"""
Errors raised by the booking engine, the role guard and the catalog.

Each one ends the request that triggered it. Only ``BookingTimeoutError`` is
worth retrying, and retrying is up to the caller.
"""


class BookingError(Exception):
    """Base class for every domain error the service reports."""


class InvalidIntervalError(BookingError):
    """The end of a time range is not after its start."""


class NotFoundError(BookingError):
    """A referenced barber, client, service or appointment does not exist."""


class ConflictError(BookingError):
    """Double booking, or a uniqueness rule in the store was violated."""


class UnsupportedServiceError(BookingError):
    """The barber does not offer one of the requested services."""


class InvalidStateError(BookingError):
    """The appointment cannot move to the requested status."""


class RoleConflictError(BookingError):
    """Another active barber already holds the chief role."""


class AgeRestrictionError(BookingError):
    """The barber is younger than the minimum age."""


class ProtectedEntityError(BookingError):
    """The current chief cannot be deleted."""


class BookingTimeoutError(BookingError, TimeoutError):
    """A lock or the store did not become available in time."""


class InvalidValueError(BookingError):
    """A price, duration or rating is out of range."""


class OutsideAvailabilityError(BookingError):
    """The interval is outside the barber's windows or the shop's hours."""


class StoreError(BookingError):
    """The store failed in a way that does not map to a domain error."""
