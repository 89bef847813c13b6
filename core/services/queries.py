from __future__ import annotations

from django.db.models import Count, Q, QuerySet

from ..exceptions import InvalidRequest
from ..models import Booking, normalize_status

_OPEN = Q(status="pending")

OWNER_BUCKETS: dict[str, Q] = {
    "pending": _OPEN & Q(payment_status__in=["submitted", "refund_pending"]),
    "accepted": Q(status="accepted"),
    "rejected": Q(status__in=["rejected", "cancelled", "expired"]),
}


class CustomerBookingsQuery:
    """Bookings made by one customer, newest first."""

    def __init__(self, customer):
        self.customer = customer

    def list(self, status: str | None = None) -> QuerySet[Booking]:
        queryset = Booking.objects.filter(customer=self.customer).select_related("pg", "room")
        status = normalize_status(status)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at", "-id")


class OwnerBookingQueue:
    """Bookings on an owner's PGs grouped into work buckets."""

    def __init__(self, owner):
        self.owner = owner

    def _base(self) -> QuerySet[Booking]:
        return Booking.objects.filter(pg__owner=self.owner)

    def list(self, bucket: str = "pending") -> QuerySet[Booking]:
        bucket = (bucket or "pending").strip().lower()
        try:
            condition = OWNER_BUCKETS[bucket]
        except KeyError:
            raise InvalidRequest(
                f"Unknown bucket '{bucket}'; expected one of: {', '.join(OWNER_BUCKETS)}."
            ) from None
        return (
            self._base()
            .filter(condition)
            .select_related("pg", "room", "customer")
            .order_by("-created_at", "-id")
        )

    def counts(self) -> dict[str, int]:
        aggregates = {name: Count("id", filter=condition) for name, condition in OWNER_BUCKETS.items()}
        aggregates["awaiting_payment"] = Count("id", filter=_OPEN & Q(payment_status="pending"))
        return self._base().aggregate(**aggregates)
