from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ..conf import booking_settings
from ..models import Room


@dataclass(frozen=True)
class BookingQuote:
    rent_amount: Decimal
    deposit_amount: Decimal
    platform_fee: Decimal

    @property
    def total_amount(self) -> Decimal:
        return self.rent_amount + self.deposit_amount + self.platform_fee


def build_quote(room: Room) -> BookingQuote:
    """Price a booking: one month's rent upfront plus the fixed deposit and fee.

    Fixed and open-ended bookings are charged the same; the date range of a
    fixed booking only records how long the stay lasts.
    """

    config = booking_settings()
    return BookingQuote(
        rent_amount=Decimal(room.rent_monthly or 0),
        deposit_amount=config.fixed_deposit,
        platform_fee=config.platform_fee,
    )
