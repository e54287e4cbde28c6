"""
Slot grid and calendar math

All persisted timestamps are naive UTC. The operating window is defined in the
business's civil timezone and converted to UTC here, once, so nothing depends
on the server's local time.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from functools import cached_property
from typing import Optional
from zoneinfo import ZoneInfo

from ... import config
from .errors import InvalidDate, InvalidSlotAlignment, InvalidTimeWindow, PastBooking


def resolve_timezone(name: str) -> tzinfo:
    if name.upper() in ("UTC", "Z", "ETC/UTC"):
        return timezone.utc
    return ZoneInfo(name)


@dataclass(frozen=True)
class SchedulingPolicy:
    """Operating window, grid and per-slot capacity shared by the ledger and the projector"""

    opening_hour: int = 8
    closing_hour: int = 18
    slot_minutes: int = 30
    capacity: int = 3
    timezone_name: str = "UTC"

    def __post_init__(self):
        if not 0 <= self.opening_hour < self.closing_hour <= 24:
            raise ValueError(f"Invalid operating window {self.opening_hour}-{self.closing_hour}")
        if self.slot_minutes <= 0 or 60 % self.slot_minutes != 0:
            raise ValueError(f"Slot length must divide an hour, got {self.slot_minutes}")
        if self.capacity < 1:
            raise ValueError(f"Slot capacity must be positive, got {self.capacity}")

    @classmethod
    def from_config(cls) -> "SchedulingPolicy":
        return cls(
            opening_hour=config.OPENING_HOUR,
            closing_hour=config.CLOSING_HOUR,
            slot_minutes=config.SLOT_MINUTES,
            capacity=config.SLOT_CAPACITY,
            timezone_name=config.BUSINESS_TIMEZONE,
        )

    @cached_property
    def tz(self) -> tzinfo:
        return resolve_timezone(self.timezone_name)

    @property
    def slot_length(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)

    @property
    def slots_per_day(self) -> int:
        return (self.closing_hour - self.opening_hour) * 60 // self.slot_minutes


def to_utc_naive(ts: datetime) -> datetime:
    """Normalize to naive UTC. Naive input is taken to already be UTC."""
    if ts.tzinfo is None:
        return ts
    return ts.astimezone(timezone.utc).replace(tzinfo=None)


def _civil_to_utc(day: date, at: time, policy: SchedulingPolicy) -> datetime:
    return to_utc_naive(datetime.combine(day, at, tzinfo=policy.tz))


def to_civil(ts: datetime, policy: SchedulingPolicy) -> datetime:
    """Naive UTC -> aware datetime in the business timezone"""
    return ts.replace(tzinfo=timezone.utc).astimezone(policy.tz)


def civil_date(ts: datetime, policy: SchedulingPolicy) -> date:
    return to_civil(ts, policy).date()


def validate_slot_timestamp(
    ts: datetime, policy: SchedulingPolicy, now: Optional[datetime] = None
) -> datetime:
    """
    Check that ts is a bookable slot start and return it as naive UTC.

    Raises:
        InvalidTimeWindow: outside [opening_hour, closing_hour) civil time
        InvalidSlotAlignment: not on a slot boundary
        PastBooking: not strictly after now
    """
    ts = to_utc_naive(ts)
    local = to_civil(ts, policy)

    if local.hour < policy.opening_hour or local.hour >= policy.closing_hour:
        raise InvalidTimeWindow(
            f"Booking time must be between {policy.opening_hour:02d}:00 and "
            f"{policy.closing_hour:02d}:00 ({policy.timezone_name})"
        )

    if local.minute % policy.slot_minutes != 0 or local.second or local.microsecond:
        raise InvalidSlotAlignment(
            f"Slots are only available every {policy.slot_minutes} minutes"
        )

    now = to_utc_naive(now) if now is not None else datetime.now(timezone.utc).replace(tzinfo=None)
    if ts <= now:
        raise PastBooking()

    return ts


def day_bounds(day: date, policy: SchedulingPolicy) -> tuple[datetime, datetime]:
    """Inclusive [first slot start, last slot start] of the operating window, naive UTC"""
    start = _civil_to_utc(day, time(policy.opening_hour), policy)
    end = start + policy.slot_length * (policy.slots_per_day - 1)
    return start, end


def calendar_day_bounds(day: date, policy: SchedulingPolicy) -> tuple[datetime, datetime]:
    """Half-open [midnight, next midnight) of the civil day, naive UTC"""
    start = _civil_to_utc(day, time(0), policy)
    end = _civil_to_utc(day + timedelta(days=1), time(0), policy)
    return start, end


def enumerate_slots(day: date, policy: SchedulingPolicy) -> list[datetime]:
    """All slot starts of the day in order, naive UTC"""
    start, _ = day_bounds(day, policy)
    return [start + policy.slot_length * i for i in range(policy.slots_per_day)]


def parse_date(value: Optional[str]) -> date:
    """Parse a YYYY-MM-DD query value"""
    if not value:
        raise InvalidDate('Query parameter "date" (YYYY-MM-DD) is required')
    try:
        return date.fromisoformat(value.strip())
    except ValueError as e:
        raise InvalidDate(f"Invalid date '{value}', use YYYY-MM-DD") from e
