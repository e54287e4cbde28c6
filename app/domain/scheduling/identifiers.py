"""Booking number and queue number assignment"""

from datetime import date, datetime

from sqlalchemy.orm import Session

from .repository import BookingRepository
from .time_calculator import SchedulingPolicy, calendar_day_bounds, civil_date


def format_booking_number(prefix: str, location_id: int, day: date, sequence: int) -> str:
    """TC-3-2911202507: prefix, location, DDMMYYYY, sequence zero-padded to two digits"""
    return f"{prefix}-{location_id}-{day.strftime('%d%m%Y')}{sequence:02d}"


class IdentifierAssigner:
    """
    Sequence numbers are scoped to (location, civil day of creation). The queue
    number and the booking number suffix are the same value.
    """

    def __init__(
        self,
        db: Session,
        policy: SchedulingPolicy,
        prefix: str = "TC",
        repo: BookingRepository = None,
    ):
        self.db = db
        self.policy = policy
        self.prefix = prefix
        self.repo = repo or BookingRepository()

    def next_sequence(self, location_id: int, created_at: datetime) -> int:
        start, end = calendar_day_bounds(civil_date(created_at, self.policy), self.policy)
        created = self.repo.count_created_between(self.db, location_id, start, end)
        highest = self.repo.max_queue_number_between(self.db, location_id, start, end)
        return max(created, highest) + 1

    def assign(self, location_id: int, created_at: datetime) -> tuple[str, int]:
        """Return (booking_number, queue_number) for a booking created at created_at"""
        sequence = self.next_sequence(location_id, created_at)
        day = civil_date(created_at, self.policy)
        return format_booking_number(self.prefix, location_id, day, sequence), sequence
