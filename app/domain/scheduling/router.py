"""Booking router - FastAPI endpoints for bookings, slot availability and staff transactions"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ... import config
from ...auth import get_current_user, require_staff
from ...database import get_db
from ...models import Booking, User
from ...rate_limiter import create_rate_limiter
from .availability_service import AvailabilityService
from .booking_service import BookingService
from .schemas import (
    BookingCreate,
    BookingResponse,
    ServiceSummary,
    SlotResponse,
    StatusUpdate,
    TimelineEntry,
    TimelineResponse,
    TransactionListResponse,
    TransactionResponse,
    VehicleSummary,
)
from .time_calculator import parse_date, to_civil

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])
slots_router = APIRouter(prefix="/slots", tags=["Slots"])
transactions_router = APIRouter(prefix="/transactions", tags=["Transactions"])

booking_rate_limit = create_rate_limiter(
    limit=config.BOOKING_RATE_LIMIT,
    window_seconds=config.BOOKING_RATE_WINDOW,
    key_prefix="create_booking",
)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


def as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def success(message: str, data) -> dict:
    return {"status": "success", "message": message, "data": data}


def to_booking_response(booking: Booking, qr_code: Optional[str] = None) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        status=booking.status,
        paymentStatus=booking.payment_status,
        bookingNumber=booking.booking_number,
        bookingDate=as_utc(booking.booking_date),
        queueNumber=booking.queue_number,
        locationId=booking.location_id,
        vehicle=VehicleSummary(
            plate=booking.vehicle.plate,
            type=booking.vehicle.type,
            model=booking.vehicle.model,
        ),
        service=ServiceSummary(
            name=booking.service.name,
            description=booking.service.description,
        ),
        totalPrice=booking.total_price,
        qrCode=qr_code,
    )


# ============================================================================
# CUSTOMER BOOKINGS
# ============================================================================


@router.post("", status_code=201)
def create_booking(
    data: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Reserve a slot for one of the current user's vehicles"""
    booking = service.create_booking(
        user_id=current_user.id,
        vehicle_id=data.vehicleId,
        service_id=data.serviceId,
        location_id=data.locationId,
        slot=data.bookingDate,
    )
    response = to_booking_response(booking, service.display_code(booking))
    return success("Booking created successfully!", response.model_dump(mode="json"))


@router.get("")
def get_my_bookings(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """All bookings of the current user, latest slot first"""
    bookings = service.list_user_bookings(current_user.id)
    return success(
        "Booking history retrieved successfully.",
        [to_booking_response(b).model_dump(mode="json") for b in bookings],
    )


@router.get("/{booking_id}")
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """One of the current user's bookings, with its QR code"""
    booking, qr_code = service.get_booking_detail(booking_id, current_user.id)
    return success(
        "Booking details retrieved successfully.",
        to_booking_response(booking, qr_code).model_dump(mode="json"),
    )


@router.get("/{booking_id}/timeline")
def get_booking_timeline(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Status history of one of the current user's bookings, oldest first"""
    booking, history = service.get_timeline(booking_id, current_user.id)
    response = TimelineResponse(
        bookingNumber=booking.booking_number,
        vehicleModel=booking.vehicle.model,
        plate=booking.vehicle.plate,
        service=booking.service.name,
        timeline=[
            TimelineEntry(status=h.status, timestamp=as_utc(h.created_at), notes=h.notes)
            for h in history
        ],
    )
    return success("Booking status history retrieved successfully.", response.model_dump(mode="json"))


# ============================================================================
# STAFF
# ============================================================================


@router.patch("/{booking_id}/status")
def update_booking_status(
    booking_id: int,
    data: StatusUpdate,
    current_user: User = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    """Move a booking along the wash pipeline (location admin or super admin)"""
    booking = service.transition_status(booking_id, data.status, data.notes, actor=current_user)
    return success(
        f"Booking status updated to {booking.status}.",
        {"id": booking.id, "bookingNumber": booking.booking_number, "status": booking.status},
    )


@transactions_router.get("")
def get_transactions(
    date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    current_user: User = Depends(require_staff),
    service: BookingService = Depends(get_booking_service),
):
    """Daily bookings for the admin's location, or every location for the super admin"""
    day = parse_date(date) if date else None
    day, bookings = service.list_transactions(current_user, day)
    policy = service.policy

    def hhmm(value: datetime) -> str:
        return to_civil(value, policy).strftime("%H:%M")

    transactions = [
        TransactionResponse(
            bookingNumber=b.booking_number,
            vehicle={"plate": b.vehicle.plate, "type": b.vehicle.type.lower()},
            customer={"name": b.user.name, "phone": b.user.phone},
            service={"name": b.service.name, "price": b.total_price},
            time={
                "bookingTime": hhmm(b.booking_date),
                "estimateFinish": hhmm(b.booking_date + policy.slot_length),
            },
            status=b.status,
        )
        for b in bookings
    ]
    response = TransactionListResponse(date=day.isoformat(), transactions=transactions)
    return success("Transactions retrieved successfully.", response.model_dump(mode="json"))


# ============================================================================
# PUBLIC SLOT AVAILABILITY
# ============================================================================


@slots_router.get("/availability")
def get_slot_availability(
    locationId: int = Query(..., gt=0),
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Every queue position of the day at one location, AVAILABLE or BOOKED"""
    day = parse_date(date)
    cells = service.availability(locationId, day)
    return success(
        "Slot availability retrieved successfully.",
        [
            SlotResponse(
                time=as_utc(c.slot_time), queueNumber=c.queue_position, status=c.state
            ).model_dump(mode="json")
            for c in cells
        ],
    )
