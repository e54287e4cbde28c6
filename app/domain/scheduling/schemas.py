"""Booking domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class BookingCreate(BaseModel):
    """Schema for creating a booking"""

    vehicleId: int = Field(gt=0)
    serviceId: int = Field(gt=0)
    locationId: int = Field(gt=0)
    bookingDate: datetime


class StatusUpdate(BaseModel):
    """Schema for a staff status change; the status value is checked by the service"""

    status: str
    notes: Optional[str] = None

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, v):
        if v is not None:
            v = v.strip()
            return v or None
        return v


class VehicleSummary(BaseModel):
    plate: str
    type: str
    model: Optional[str] = None


class ServiceSummary(BaseModel):
    name: str
    description: Optional[str] = None


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    status: str
    paymentStatus: str
    bookingNumber: str
    bookingDate: datetime
    queueNumber: int
    locationId: int
    vehicle: VehicleSummary
    service: ServiceSummary
    totalPrice: int
    qrCode: Optional[str] = None


class TimelineEntry(BaseModel):
    status: str
    timestamp: datetime
    notes: Optional[str] = None


class TimelineResponse(BaseModel):
    bookingNumber: str
    vehicleModel: Optional[str] = None
    plate: str
    service: str
    timeline: list[TimelineEntry]


class SlotResponse(BaseModel):
    time: datetime
    queueNumber: int
    status: str


class TransactionResponse(BaseModel):
    bookingNumber: str
    vehicle: dict[str, Any]
    customer: dict[str, Any]
    service: dict[str, Any]
    time: dict[str, str]
    status: str


class TransactionListResponse(BaseModel):
    date: str
    transactions: list[TransactionResponse]


class NotificationResponse(BaseModel):
    id: int
    bookingId: Optional[int] = None
    title: str
    message: str
    type: str
    isRead: bool
    createdAt: Optional[datetime] = None
