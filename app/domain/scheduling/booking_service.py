"""Booking service - Creation and status lifecycle of bookings"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ... import config
from ...models import Booking, BookingStatusHistory, User, utc_now
from ...services import notification_service
from .capacity import CapacityLedger, location_guard
from .display import encode_for_display, safe_encode
from .errors import (
    BookingConflict,
    Forbidden,
    NotFound,
    NotOwner,
    UnknownBooking,
    UnknownLocation,
    UnknownService,
)
from .identifiers import IdentifierAssigner
from .repository import BookingRepository
from .states import (
    CUSTOMER_MESSAGES,
    INITIAL_NOTE,
    BookingStatus,
    check_transition,
    parse_status,
)
from .time_calculator import (
    SchedulingPolicy,
    calendar_day_bounds,
    civil_date,
    validate_slot_timestamp,
)

logger = logging.getLogger(__name__)

STAFF_ROLES = ("ADMIN", "SUPERADMIN")

# Attempts at the numbered insert before giving up with BookingConflict
MAX_NUMBERING_ATTEMPTS = 2


class BookingService:
    """Service layer for the booking lifecycle"""

    def __init__(
        self,
        db: Session,
        policy: Optional[SchedulingPolicy] = None,
        clock: Callable[[], datetime] = utc_now,
        notifier=notification_service.send_status_update_notification,
        encoder: Callable[[str], str] = encode_for_display,
        strict_transitions: Optional[bool] = None,
        number_prefix: Optional[str] = None,
    ):
        self.db = db
        self.policy = policy or SchedulingPolicy.from_config()
        self.clock = clock
        self.notifier = notifier
        self.encoder = encoder
        self.strict_transitions = (
            config.STRICT_STATUS_TRANSITIONS if strict_transitions is None else strict_transitions
        )
        self.repo = BookingRepository()
        self.ledger = CapacityLedger(db, self.policy, self.repo)
        self.assigner = IdentifierAssigner(
            db, self.policy, number_prefix or config.BOOKING_NUMBER_PREFIX, self.repo
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_booking(
        self,
        user_id: int,
        vehicle_id: int,
        service_id: int,
        location_id: int,
        slot: datetime,
    ) -> Booking:
        """
        Reserve a slot and persist a new BOOKED booking with its first history row.

        Raises:
            InvalidTimeWindow, InvalidSlotAlignment, PastBooking: bad slot
            NotOwner: vehicle does not belong to user_id
            UnknownService, UnknownLocation: missing references
            SlotFull: slot already holds `capacity` active bookings
            BookingConflict: numbering still collided after a retry
        """
        slot = validate_slot_timestamp(slot, self.policy, now=self.clock())

        vehicle = self.repo.find_owned_vehicle(self.db, vehicle_id, user_id)
        if not vehicle:
            logger.warning(f"⚠️ User {user_id} tried to book with vehicle {vehicle_id} they do not own")
            raise NotOwner()

        service = self.repo.find_service(self.db, service_id)
        if not service:
            raise UnknownService()
        total_price = service.price

        if not self.repo.find_location(self.db, location_id):
            raise UnknownLocation()

        for attempt in range(1, MAX_NUMBERING_ATTEMPTS + 1):
            try:
                booking = self._insert_booking(
                    user_id, vehicle_id, service_id, location_id, slot, total_price
                )
            except IntegrityError as e:
                logger.warning(
                    f"⚠️ Booking number collision at location {location_id} (attempt {attempt}): {e.orig}"
                )
                if attempt == MAX_NUMBERING_ATTEMPTS:
                    raise BookingConflict() from e
                continue

            logger.info(
                f"✅ Booking {booking.booking_number} created for user {user_id} "
                f"at location {location_id}, slot {slot.isoformat()} (queue {booking.queue_number})"
            )
            return booking

    def _insert_booking(
        self,
        user_id: int,
        vehicle_id: int,
        service_id: int,
        location_id: int,
        slot: datetime,
        total_price: int,
    ) -> Booking:
        """Capacity check, numbering, booking row and history row as one transaction"""
        with location_guard(self.db, location_id, self.repo):
            try:
                self.ledger.reserve(location_id, slot)

                created_at = self.clock()
                booking_number, queue_number = self.assigner.assign(location_id, created_at)

                booking = self.repo.add_booking(
                    self.db,
                    booking_number=booking_number,
                    queue_number=queue_number,
                    booking_date=slot,
                    total_price=total_price,
                    status=BookingStatus.BOOKED.value,
                    user_id=user_id,
                    vehicle_id=vehicle_id,
                    service_id=service_id,
                    location_id=location_id,
                    created_at=created_at,
                    updated_at=created_at,
                )
                self.repo.add_history(
                    self.db, booking.id, BookingStatus.BOOKED.value, INITIAL_NOTE, created_at
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(booking)
        return booking

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def transition_status(
        self,
        booking_id: int,
        target_status,
        note: Optional[str] = None,
        actor: Optional[User] = None,
    ) -> Booking:
        """
        Move a booking to target_status, append history, then notify the owner.

        Raises:
            InvalidStatus: target_status is not a known status
            UnknownBooking: no such booking
            Forbidden: actor is an admin of another location
            InvalidTransition: strict mode and the move is not forward
        """
        target = parse_status(target_status)

        booking = self.repo.get_booking_for_update(self.db, booking_id)
        if not booking:
            self.db.rollback()
            raise UnknownBooking()

        try:
            self._authorize_staff(actor, booking)
            check_transition(booking.status, target, self.strict_transitions)

            previous = booking.status
            now = self.clock()
            booking.status = target.value
            booking.updated_at = now
            self.repo.add_history(self.db, booking.id, target.value, note, now)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(booking)
        logger.info(f"🔄 Booking {booking.booking_number} status: {previous} → {target.value}")

        self._notify_owner(booking, target)
        return booking

    def _authorize_staff(self, actor: Optional[User], booking: Booking) -> None:
        if actor is None or actor.role == "SUPERADMIN":
            return
        if actor.role != "ADMIN" or actor.location_id != booking.location_id:
            logger.warning(
                f"⚠️ User {actor.id} ({actor.role}) denied status change on booking {booking.id}"
            )
            raise Forbidden("Access denied. You are not an admin of this booking's location")

    def _notify_owner(self, booking: Booking, status: BookingStatus) -> None:
        message = CUSTOMER_MESSAGES.get(status)
        if not message:
            return
        title, template = message
        try:
            self.notifier(self.db, booking, title, template)
        except Exception as e:
            logger.error(f"❌ Notification for booking {booking.id} failed: {e}")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_owned_booking(self, booking_id: int, requester_id: int) -> Booking:
        booking = self.repo.get_owned_booking(self.db, booking_id, requester_id)
        if not booking:
            raise NotFound()
        return booking

    def get_booking_detail(self, booking_id: int, requester_id: int) -> tuple[Booking, Optional[str]]:
        """Owned booking plus its display code (None when the encoder fails)"""
        booking = self.get_owned_booking(booking_id, requester_id)
        return booking, self.display_code(booking)

    def display_code(self, booking: Booking) -> Optional[str]:
        return safe_encode(self.encoder, booking.booking_number)

    def get_timeline(
        self, booking_id: int, requester_id: int
    ) -> tuple[Booking, list[BookingStatusHistory]]:
        booking = self.get_owned_booking(booking_id, requester_id)
        return booking, self.repo.get_history(self.db, booking.id)

    def list_user_bookings(self, user_id: int) -> list[Booking]:
        return self.repo.get_user_bookings(self.db, user_id)

    def list_transactions(self, actor: User, day: Optional[date] = None) -> tuple[date, list[Booking]]:
        """Bookings whose slot falls on the civil day; admins only see their own location"""
        if actor.role not in STAFF_ROLES:
            raise Forbidden()
        if actor.role == "ADMIN" and actor.location_id is None:
            raise Forbidden("Access denied or location not found")

        if day is None:
            day = civil_date(self.clock(), self.policy)

        start, end = calendar_day_bounds(day, self.policy)
        location_id = actor.location_id if actor.role == "ADMIN" else None
        return day, self.repo.get_bookings_between(self.db, start, end, location_id)
