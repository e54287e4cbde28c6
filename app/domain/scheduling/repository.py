"""Booking repository - Database operations for bookings and their collaborators"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, BookingStatusHistory, Location, Service, User, Vehicle
from .states import NON_OCCUPYING_STATUSES


class BookingRepository:
    """Repository for booking database operations"""

    # Collaborator lookups

    @staticmethod
    def find_owned_vehicle(db: Session, vehicle_id: int, owner_id: int) -> Optional[Vehicle]:
        return (
            db.query(Vehicle)
            .filter(Vehicle.id == vehicle_id, Vehicle.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def find_service(db: Session, service_id: int) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def find_location(db: Session, location_id: int) -> Optional[Location]:
        return db.query(Location).filter(Location.id == location_id).first()

    @staticmethod
    def lock_location(db: Session, location_id: int) -> Optional[Location]:
        """SELECT ... FOR UPDATE on the location row; held until the transaction ends"""
        return (
            db.query(Location)
            .filter(Location.id == location_id)
            .with_for_update()
            .first()
        )

    # Occupancy and sequence counts

    @staticmethod
    def count_slot_occupancy(db: Session, location_id: int, slot: datetime) -> int:
        """Non-cancelled bookings at this location and exact slot start"""
        released = [s.value for s in NON_OCCUPYING_STATUSES]
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.location_id == location_id,
                Booking.booking_date == slot,
                Booking.status.notin_(released),
            )
            .scalar()
        )

    @staticmethod
    def count_slot_occupancy_between(
        db: Session, location_id: int, start: datetime, end: datetime
    ) -> dict[datetime, int]:
        """Non-cancelled bookings per slot start for start <= slot <= end"""
        released = [s.value for s in NON_OCCUPYING_STATUSES]
        rows = (
            db.query(Booking.booking_date, func.count(Booking.id))
            .filter(
                Booking.location_id == location_id,
                Booking.booking_date >= start,
                Booking.booking_date <= end,
                Booking.status.notin_(released),
            )
            .group_by(Booking.booking_date)
            .all()
        )
        return {slot: count for slot, count in rows}

    @staticmethod
    def count_created_between(
        db: Session, location_id: int, start: datetime, end: datetime
    ) -> int:
        """Bookings created at this location with start <= created_at < end"""
        return (
            db.query(func.count(Booking.id))
            .filter(
                Booking.location_id == location_id,
                Booking.created_at >= start,
                Booking.created_at < end,
            )
            .scalar()
        )

    @staticmethod
    def max_queue_number_between(
        db: Session, location_id: int, start: datetime, end: datetime
    ) -> int:
        return (
            db.query(func.max(Booking.queue_number))
            .filter(
                Booking.location_id == location_id,
                Booking.created_at >= start,
                Booking.created_at < end,
            )
            .scalar()
            or 0
        )

    # Booking rows

    @staticmethod
    def add_booking(db: Session, **booking_data) -> Booking:
        booking = Booking(**booking_data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def add_history(
        db: Session, booking_id: int, status: str, notes: Optional[str], created_at: datetime
    ) -> BookingStatusHistory:
        entry = BookingStatusHistory(
            booking_id=booking_id, status=status, notes=notes, created_at=created_at
        )
        db.add(entry)
        db.flush()
        return entry

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.vehicle), joinedload(Booking.service))
            .filter(Booking.id == booking_id)
            .first()
        )

    @staticmethod
    def get_booking_for_update(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).with_for_update().first()

    @staticmethod
    def get_owned_booking(db: Session, booking_id: int, user_id: int) -> Optional[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.vehicle), joinedload(Booking.service))
            .filter(Booking.id == booking_id, Booking.user_id == user_id)
            .first()
        )

    @staticmethod
    def get_user_bookings(db: Session, user_id: int) -> list[Booking]:
        return (
            db.query(Booking)
            .options(joinedload(Booking.vehicle), joinedload(Booking.service))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.booking_date.desc())
            .all()
        )

    @staticmethod
    def get_history(db: Session, booking_id: int) -> list[BookingStatusHistory]:
        return (
            db.query(BookingStatusHistory)
            .filter(BookingStatusHistory.booking_id == booking_id)
            .order_by(BookingStatusHistory.created_at.asc(), BookingStatusHistory.id.asc())
            .all()
        )

    @staticmethod
    def get_bookings_between(
        db: Session, start: datetime, end: datetime, location_id: Optional[int] = None
    ) -> list[Booking]:
        """Bookings with start <= slot < end, optionally for one location"""
        query = (
            db.query(Booking)
            .options(
                joinedload(Booking.user),
                joinedload(Booking.vehicle),
                joinedload(Booking.service),
            )
            .filter(Booking.booking_date >= start, Booking.booking_date < end)
        )
        if location_id is not None:
            query = query.filter(Booking.location_id == location_id)
        return query.order_by(Booking.booking_date.desc()).all()

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()
