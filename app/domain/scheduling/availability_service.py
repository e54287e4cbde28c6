"""Availability service - Read-only slot grid for one location and day"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from .errors import UnknownLocation
from .repository import BookingRepository
from .time_calculator import SchedulingPolicy, day_bounds, enumerate_slots

logger = logging.getLogger(__name__)

AVAILABLE = "AVAILABLE"
BOOKED = "BOOKED"


@dataclass(frozen=True)
class SlotCell:
    slot_time: datetime
    queue_position: int
    state: str


class AvailabilityService:
    """
    Projects `capacity` cells per slot across the whole operating day.

    Queue positions run continuously over the day, and within a slot the first
    `occupied` cells are BOOKED. Uses the same policy object as the capacity
    ledger so both always agree on the limit.
    """

    def __init__(self, db: Session, policy: Optional[SchedulingPolicy] = None):
        self.db = db
        self.policy = policy or SchedulingPolicy.from_config()
        self.repo = BookingRepository()

    def availability(self, location_id: int, day: date) -> list[SlotCell]:
        if not self.repo.find_location(self.db, location_id):
            raise UnknownLocation()

        start, end = day_bounds(day, self.policy)
        occupied = self.repo.count_slot_occupancy_between(self.db, location_id, start, end)

        cells = []
        position = 1
        for slot in enumerate_slots(day, self.policy):
            taken = occupied.get(slot, 0)
            for seat in range(1, self.policy.capacity + 1):
                cells.append(SlotCell(slot, position, BOOKED if seat <= taken else AVAILABLE))
                position += 1

        logger.debug(
            f"📅 Availability for location {location_id} on {day}: "
            f"{sum(occupied.values())} booked of {len(cells)}"
        )
        return cells
