from __future__ import annotations

from django.db import models
from django.db.models import Q
from django.utils import timezone

from ..exceptions import InvalidRequest, InvalidState
from .property import PG, Room
from .user import User


class BookingStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Awaiting Payment"
    SUBMITTED = "submitted", "Payment Submitted"
    REFUND_PENDING = "refund_pending", "Refund Pending"
    VERIFIED = "verified", "Verified"
    REFUNDED = "refunded", "Refunded"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"


class BookingType(models.TextChoices):
    FIXED = "fixed", "Fixed Dates"
    UNLIMITED = "unlimited", "Open Ended"


class BookingState(models.TextChoices):
    """Composite of ``status`` and ``payment_status`` treated as one state."""

    PAYMENT_PENDING = "payment_pending", "Awaiting Payment"
    PAYMENT_SUBMITTED = "payment_submitted", "Awaiting Owner Decision"
    REFUND_PENDING = "refund_pending", "Awaiting Refund"
    ACCEPTED = "accepted", "Accepted"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"
    EXPIRED = "expired", "Expired"


_state = BookingState
_status = BookingStatus
_payment = PaymentStatus

# state -> (status, payment_status)
STATE_FIELDS: dict[str, tuple[str, str]] = {
    _state.PAYMENT_PENDING.value: (_status.PENDING.value, _payment.PENDING.value),
    _state.PAYMENT_SUBMITTED.value: (_status.PENDING.value, _payment.SUBMITTED.value),
    _state.REFUND_PENDING.value: (_status.PENDING.value, _payment.REFUND_PENDING.value),
    _state.ACCEPTED.value: (_status.ACCEPTED.value, _payment.VERIFIED.value),
    _state.REJECTED.value: (_status.REJECTED.value, _payment.REFUNDED.value),
    _state.CANCELLED.value: (_status.CANCELLED.value, _payment.CANCELLED.value),
    _state.EXPIRED.value: (_status.EXPIRED.value, _payment.EXPIRED.value),
}
FIELDS_STATE = {fields: state for state, fields in STATE_FIELDS.items()}

# event -> {from_state: to_state}
TRANSITIONS: dict[str, dict[str, str]] = {
    "submit_payment": {_state.PAYMENT_PENDING.value: _state.PAYMENT_SUBMITTED.value},
    "cancel": {_state.PAYMENT_PENDING.value: _state.CANCELLED.value},
    "expire": {
        _state.PAYMENT_PENDING.value: _state.EXPIRED.value,
        _state.PAYMENT_SUBMITTED.value: _state.EXPIRED.value,
    },
    "accept": {_state.PAYMENT_SUBMITTED.value: _state.ACCEPTED.value},
    "reject": {_state.PAYMENT_SUBMITTED.value: _state.REFUND_PENDING.value},
    "confirm_refund": {_state.REFUND_PENDING.value: _state.REJECTED.value},
}

TRANSITION_ERRORS = {
    "submit_payment": "Payment can only be submitted while the booking is awaiting payment.",
    "cancel": "Only bookings that are still awaiting payment can be cancelled.",
    "expire": "Only bookings awaiting payment or an owner decision can expire.",
    "accept": "This booking is not awaiting an owner decision.",
    "reject": "This booking is not awaiting an owner decision.",
    "confirm_refund": "This booking is not waiting for a refund.",
}

TERMINAL_STATES = frozenset(
    {_state.ACCEPTED.value, _state.REJECTED.value, _state.CANCELLED.value, _state.EXPIRED.value}
)
# States entered by giving the booking's beds back to the room.
RELEASED_STATES = frozenset({_state.REJECTED.value, _state.CANCELLED.value, _state.EXPIRED.value})

STATUS_SYNONYMS = {
    "approved": BookingStatus.ACCEPTED,
    "confirmed": BookingStatus.ACCEPTED,
    "declined": BookingStatus.REJECTED,
    "canceled": BookingStatus.CANCELLED,
}


def normalize_status(value: str | None) -> str | None:
    """Map a client-supplied status (or a legacy synonym) onto ``BookingStatus``."""

    raw = (value or "").strip().lower()
    if not raw:
        return None
    raw = STATUS_SYNONYMS.get(raw, raw)
    if raw not in BookingStatus.values:
        raise InvalidRequest(f"Unknown booking status '{value}'.")
    return raw


class Booking(models.Model):
    customer = models.ForeignKey(
        User,
        on_delete=models.PROTECT,
        limit_choices_to={"user_type": "customer"},
        related_name="bookings",
    )
    pg = models.ForeignKey(PG, on_delete=models.PROTECT, related_name="bookings")
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name="bookings")
    booking_type = models.CharField(max_length=10, choices=BookingType.choices)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    beds_booked = models.PositiveIntegerField(default=1)

    rent_amount = models.DecimalField(max_digits=10, decimal_places=2)
    deposit_amount = models.DecimalField(max_digits=10, decimal_places=2)
    platform_fee = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)

    status = models.CharField(max_length=10, choices=BookingStatus.choices, default=BookingStatus.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    customer_upi = models.CharField(max_length=100)
    owner_upi = models.CharField(max_length=100, null=True, blank=True)
    payment_evidence_ref = models.CharField(max_length=500, null=True, blank=True)
    refund_evidence_ref = models.CharField(max_length=500, null=True, blank=True)
    owner_reason = models.TextField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    decision_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(db_index=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["status", "payment_status"], name="booking_state_idx")]
        constraints = [
            models.CheckConstraint(condition=Q(beds_booked__gte=1), name="booking_beds_booked_positive"),
        ]

    def __str__(self) -> str:  # pragma: no cover - simple display helper
        return f"Booking #{self.pk} for {self.room} by {self.customer}"

    # State helpers ----------------------------------------------------
    @property
    def state(self) -> str:
        try:
            return FIELDS_STATE[(self.status, self.payment_status)]
        except KeyError:
            raise InvalidState(
                f"Booking #{self.pk} has an unknown state {self.status}/{self.payment_status}."
            ) from None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def holds_beds(self) -> bool:
        """True while the room's ``available_beds`` still excludes this booking's beds."""
        return self.state not in RELEASED_STATES

    @property
    def stay_days(self) -> int | None:
        if self.booking_type != BookingType.FIXED or not self.end_date:
            return None
        return max((self.end_date - self.start_date).days, 0)

    def next_state(self, event: str) -> str:
        targets = TRANSITIONS[event]
        current = self.state
        if current not in targets:
            raise InvalidState(TRANSITION_ERRORS[event])
        return targets[current]

    def _advance(self, event: str, **changes) -> str:
        new_state = self.next_state(event)
        self.status, self.payment_status = STATE_FIELDS[new_state]
        for field, value in changes.items():
            setattr(self, field, value)
        self.save(update_fields=["status", "payment_status", *changes])
        return new_state

    # Transitions ------------------------------------------------------
    def mark_payment_submitted(self, evidence_ref: str) -> str:
        return self._advance("submit_payment", payment_evidence_ref=evidence_ref)

    def mark_cancelled(self, when=None) -> str:
        return self._advance("cancel", decision_at=when or timezone.now())

    def mark_expired(self, when=None) -> str:
        return self._advance("expire", decision_at=when or timezone.now(), owner_reason="Auto-expired")

    def mark_accepted(self, when=None) -> str:
        return self._advance("accept", decision_at=when or timezone.now(), owner_reason=None)

    def mark_refund_pending(self, reason: str) -> str:
        return self._advance("reject", owner_reason=reason)

    def mark_rejected(self, evidence_ref: str, when=None) -> str:
        return self._advance("confirm_refund", refund_evidence_ref=evidence_ref, decision_at=when or timezone.now())
