"""Typed access to the booking rules configured in Django settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.conf import settings


@dataclass(frozen=True)
class BookingSettings:
    fixed_deposit: Decimal
    platform_fee: Decimal
    payment_window: timedelta
    sweep_batch_size: int
    refund_backend: str


def booking_settings() -> BookingSettings:
    return BookingSettings(
        fixed_deposit=Decimal(getattr(settings, "BOOKING_FIXED_DEPOSIT", 1000)),
        platform_fee=Decimal(getattr(settings, "BOOKING_PLATFORM_FEE", 299)),
        payment_window=timedelta(hours=getattr(settings, "BOOKING_PAYMENT_WINDOW_HOURS", 24)),
        sweep_batch_size=getattr(settings, "BOOKING_SWEEP_BATCH_SIZE", 50),
        refund_backend=getattr(
            settings,
            "BOOKING_REFUND_BACKEND",
            "core.services.refunds.ManualRefundBackend",
        ),
    )
