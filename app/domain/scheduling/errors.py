"""
Booking error variants

Every failure the booking core can report is one subclass of BookingError.
Routers and tests match on the class; the HTTP layer reads status_code and code
from the instance. Message strings are for humans only.
"""

from typing import Any, Optional


class BookingError(Exception):
    """Base class for all booking-core failures"""

    status_code = 400
    default_message = "Booking request failed"

    def __init__(self, message: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.code = self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


# ============================================================================
# Input validation
# ============================================================================


class InvalidTimeWindow(BookingError):
    default_message = "Booking time must fall inside the operating hours"


class InvalidSlotAlignment(BookingError):
    default_message = "Booking time must start on a slot boundary"


class PastBooking(BookingError):
    default_message = "Cannot create a booking in the past"


class InvalidDate(BookingError):
    default_message = "Invalid date format, use YYYY-MM-DD"


class InvalidStatus(BookingError):
    default_message = "Unknown booking status"


class InvalidTransition(BookingError):
    status_code = 409
    default_message = "Status transition not allowed"


# ============================================================================
# Authorization
# ============================================================================


class NotOwner(BookingError):
    status_code = 403
    default_message = "Access denied. This vehicle does not belong to you"


class Forbidden(BookingError):
    status_code = 403
    default_message = "Access denied"


# ============================================================================
# Missing references
# ============================================================================


class UnknownService(BookingError):
    default_message = "Invalid service ID"


class UnknownLocation(BookingError):
    status_code = 404
    default_message = "Location not found"


class UnknownBooking(BookingError):
    status_code = 404
    default_message = "Booking not found"


class NotFound(BookingError):
    """Booking missing or owned by someone else"""

    status_code = 404
    default_message = "Booking not found or you do not have access to it"


# ============================================================================
# Capacity and integrity
# ============================================================================


class SlotFull(BookingError):
    status_code = 409
    default_message = "Sorry, this time slot is full. Please choose another time"


class BookingConflict(BookingError):
    status_code = 409
    default_message = "Booking could not be numbered due to a concurrent request. Please retry"
