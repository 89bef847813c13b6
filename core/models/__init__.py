"""Core application data models exposed as a flat module-level API."""

from .booking import (
    Booking,
    BookingState,
    BookingStatus,
    BookingType,
    PaymentStatus,
    normalize_status,
)
from .evidence import Evidence
from .payment import Payment
from .property import PG, Room
from .user import User

__all__ = [
    "User",
    "PG",
    "Room",
    "Booking",
    "BookingState",
    "BookingStatus",
    "BookingType",
    "PaymentStatus",
    "normalize_status",
    "Evidence",
    "Payment",
]
