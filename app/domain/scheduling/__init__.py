"""
Scheduling domain - slot grid, capacity, booking lifecycle

Structure:
- time_calculator.py      operating window and slot grid math
- capacity.py             per-slot occupancy and the per-location creation guard
- identifiers.py          booking number and queue number assignment
- states.py               status pipeline and transition rules
- booking_service.py      booking creation and status transitions
- availability_service.py read-only slot grid per location and day
- display.py              QR code for booking numbers
- repository.py           database queries
- router.py               HTTP endpoints
"""

from .router import router, slots_router, transactions_router

__all__ = ["router", "slots_router", "transactions_router"]
