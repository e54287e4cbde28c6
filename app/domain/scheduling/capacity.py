"""
Capacity ledger

Counts the non-cancelled bookings occupying a slot and refuses a reservation
once the slot holds `capacity` of them. The count is only meaningful inside the
creating transaction while the location guard is held.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from threading import Lock

from sqlalchemy.orm import Session

from .errors import SlotFull
from .repository import BookingRepository
from .time_calculator import SchedulingPolicy

logger = logging.getLogger(__name__)

# One lock per location, created on first use
_location_locks: dict[int, Lock] = {}
_registry_lock = Lock()


def _lock_for(location_id: int) -> Lock:
    with _registry_lock:
        lock = _location_locks.get(location_id)
        if lock is None:
            lock = Lock()
            _location_locks[location_id] = lock
        return lock


@contextmanager
def location_guard(db: Session, location_id: int, repo: BookingRepository):
    """
    Serialize booking creation for one location.

    The in-process lock covers workers sharing this interpreter; the row lock on
    the location covers other processes on databases that honour FOR UPDATE.
    Commit or roll back inside the guard so both stay held through the insert.
    """
    lock = _lock_for(location_id)
    with lock:
        yield repo.lock_location(db, location_id)


class CapacityLedger:
    """Per-slot occupancy checks against the configured capacity"""

    def __init__(self, db: Session, policy: SchedulingPolicy, repo: BookingRepository = None):
        self.db = db
        self.policy = policy
        self.repo = repo or BookingRepository()

    @property
    def limit(self) -> int:
        return self.policy.capacity

    def occupancy(self, location_id: int, slot: datetime) -> int:
        return self.repo.count_slot_occupancy(self.db, location_id, slot)

    def reserve(self, location_id: int, slot: datetime) -> int:
        """
        Confirm there is room in the slot.

        Returns the occupancy seen before the caller's insert.
        Raises SlotFull when occupancy has reached the limit.
        """
        taken = self.occupancy(location_id, slot)
        if taken >= self.limit:
            logger.info(
                f"🚫 Slot full at location {location_id} for {slot.isoformat()} ({taken}/{self.limit})"
            )
            raise SlotFull(details={"slot": slot.isoformat(), "capacity": self.limit})
        return taken
