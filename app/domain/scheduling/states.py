"""
Booking status pipeline

BOOKED -> DITERIMA -> DICUCI -> SIAP_DIAMBIL -> SELESAI
DIBATALKAN and EXPIRED are terminal and reachable from any non-terminal state.
"""

from enum import Enum

from .errors import InvalidStatus, InvalidTransition


class BookingStatus(str, Enum):
    BOOKED = "BOOKED"
    DITERIMA = "DITERIMA"  # received at the location
    DICUCI = "DICUCI"  # washing
    SIAP_DIAMBIL = "SIAP_DIAMBIL"  # ready for pickup
    SELESAI = "SELESAI"  # completed
    DIBATALKAN = "DIBATALKAN"  # cancelled
    EXPIRED = "EXPIRED"


PIPELINE = (
    BookingStatus.BOOKED,
    BookingStatus.DITERIMA,
    BookingStatus.DICUCI,
    BookingStatus.SIAP_DIAMBIL,
    BookingStatus.SELESAI,
)

TERMINAL_STATUSES = frozenset(
    {BookingStatus.SELESAI, BookingStatus.DIBATALKAN, BookingStatus.EXPIRED}
)

# Cancelled bookings release their slot
NON_OCCUPYING_STATUSES = frozenset({BookingStatus.DIBATALKAN})

INITIAL_NOTE = "Booking created successfully"

# Customer-facing (title, message) per status; other statuses notify nobody
CUSTOMER_MESSAGES = {
    BookingStatus.DITERIMA: (
        "Vehicle Received",
        "Your vehicle {plate} has been received and is waiting in the wash queue.",
    ),
    BookingStatus.DICUCI: (
        "Washing In Progress",
        "Your vehicle {plate} is being washed right now.",
    ),
    BookingStatus.SIAP_DIAMBIL: (
        "Ready For Pickup",
        "Your vehicle {plate} is clean and ready to be picked up.",
    ),
    BookingStatus.SELESAI: (
        "Booking Completed",
        "Booking {booking_number} is complete. Thank you for washing with us!",
    ),
}


def parse_status(value) -> BookingStatus:
    """Coerce a raw value into a BookingStatus or raise InvalidStatus"""
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(str(value).strip().upper())
    except ValueError as e:
        allowed = ", ".join(s.value for s in BookingStatus)
        raise InvalidStatus(f"Unknown status '{value}'. Allowed: {allowed}") from e


def is_forward_transition(current: BookingStatus, target: BookingStatus) -> bool:
    if current in TERMINAL_STATUSES:
        return False
    if target in (BookingStatus.DIBATALKAN, BookingStatus.EXPIRED):
        return True
    return PIPELINE.index(target) > PIPELINE.index(current)


def check_transition(current, target: BookingStatus, strict: bool) -> None:
    """Raise InvalidTransition when strict mode is on and the move is not forward"""
    if not strict:
        return
    current = parse_status(current)
    if not is_forward_transition(current, target):
        raise InvalidTransition(f"Cannot move booking from {current.value} to {target.value}")
